# Re-export all models for convenient imports
from app.models.suggestion import (
    Suggestion,
    StatusHistoryEntry,
    SuggestionCategory,
    SuggestionStatus,
    SuggestionPriority,
    PRIORITY_RANK,
)
from app.models.activity_log import ActivityLog, ActivityAction

__all__ = [
    "Suggestion",
    "StatusHistoryEntry",
    "SuggestionCategory",
    "SuggestionStatus",
    "SuggestionPriority",
    "PRIORITY_RANK",
    "ActivityLog",
    "ActivityAction",
]
