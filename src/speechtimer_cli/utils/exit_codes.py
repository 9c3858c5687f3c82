"""
Exit codes for SpeechTimer CLI.

Semantic exit codes so scripts wrapping the CLI can tell what happened.
"""

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or validation error (including agenda validation errors)
ERROR_INVALID_ARGS = 2

# Resource not found (agenda item, snapshot, config key)
ERROR_NOT_FOUND = 5

# Command rejected by the current timer state
ERROR_CONFLICT = 7
