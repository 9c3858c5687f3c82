"""SpeechTimer CLI - agenda import and stage-signal timers for speaking clubs."""

__version__ = "0.3.0"
