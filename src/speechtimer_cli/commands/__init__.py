"""Command groups for SpeechTimer CLI."""
