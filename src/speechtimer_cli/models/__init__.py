"""SpeechTimer CLI domain models.

Pydantic models for agenda items, completion records and configuration.
The timer engine lives in the ``timer`` subpackage.
"""

from .agenda import (
    AgendaImport,
    AgendaItem,
    AgendaItemCreate,
    AgendaItemUpdate,
    CompletionRecord,
    SessionCategory,
)
from .config_models import AppConfig

__all__ = [
    "AgendaItem",
    "AgendaItemCreate",
    "AgendaItemUpdate",
    "AgendaImport",
    "CompletionRecord",
    "SessionCategory",
    "AppConfig",
]
