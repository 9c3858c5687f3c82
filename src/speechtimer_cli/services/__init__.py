"""Services module for SpeechTimer CLI - business logic layer."""

from .agenda_service import AgendaService
from .config_service import ConfigService, get_config_service

__all__ = [
    "AgendaService",
    "ConfigService",
    "get_config_service",
]
