from app.services.presence_tracker import PresenceTracker, PresenceRecord
from app.services.priority_classifier import PriorityClassifier, PriorityResult
from app.services.attachment_store import AttachmentStore, AttachmentResult
from app.services.suggestion_service import SuggestionService, SuggestionFilters
from app.services.activity_ledger import ActivityLedger, ActivityLogFilters

__all__ = [
    "PresenceTracker",
    "PresenceRecord",
    "PriorityClassifier",
    "PriorityResult",
    "AttachmentStore",
    "AttachmentResult",
    "SuggestionService",
    "SuggestionFilters",
    "ActivityLedger",
    "ActivityLogFilters",
]
