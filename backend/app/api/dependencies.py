"""
Request-scoped access to the components the application owns.

Long-lived collaborators (presence tracker, classifier, attachment store) are
created once in app.main and kept on app.state; tests swap them through
app.dependency_overrides.
"""
from fastapi import Depends, Request

from app.services.activity_ledger import ActivityLedger
from app.services.attachment_store import AttachmentStore
from app.services.presence_tracker import PresenceTracker
from app.services.priority_classifier import PriorityClassifier
from app.services.suggestion_service import SuggestionService


def get_presence_tracker(request: Request) -> PresenceTracker:
    return request.app.state.presence_tracker


def get_priority_classifier(request: Request) -> PriorityClassifier:
    return request.app.state.priority_classifier


def get_attachment_store(request: Request) -> AttachmentStore:
    return request.app.state.attachment_store


def get_suggestion_service(
    classifier: PriorityClassifier = Depends(get_priority_classifier),
    attachments: AttachmentStore = Depends(get_attachment_store),
) -> SuggestionService:
    return SuggestionService(classifier=classifier, attachments=attachments)


def get_activity_ledger() -> ActivityLedger:
    return ActivityLedger()
