from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, JSON, Boolean, Index
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow, value_enum


class SuggestionCategory(str, enum.Enum):
    """Which office a suggestion is routed to"""
    ACADEMIC = "academic"
    ADMINISTRATIVE = "administrative"
    EXTRACURRICULAR = "extracurricular"
    GENERAL = "general"


class SuggestionStatus(str, enum.Enum):
    """Workflow status. Any status may move to any other."""
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    FORWARDED = "forwarded"
    ACTION_TAKEN = "action_taken"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class SuggestionPriority(str, enum.Enum):
    """Triage priority"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


# urgent sorts first for "priority_high"
PRIORITY_RANK = {
    SuggestionPriority.URGENT: 1,
    SuggestionPriority.HIGH: 2,
    SuggestionPriority.MEDIUM: 3,
    SuggestionPriority.LOW: 4,
}


class Suggestion(Base):
    """A student suggestion and its triage state"""
    __tablename__ = "suggestions"

    __table_args__ = (
        Index('ix_suggestions_status', 'status'),
        Index('ix_suggestions_priority', 'priority'),
        Index('ix_suggestions_category', 'category'),
        Index('ix_suggestions_archived_created', 'is_archived', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    tracking_code = Column(String(64), unique=True, nullable=False, index=True)

    category = Column(value_enum(SuggestionCategory), nullable=False)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)

    # Submitter details, never stored for anonymous suggestions
    is_anonymous = Column(Boolean, default=False, nullable=False)
    submitter = Column(JSON, nullable=True)

    status = Column(value_enum(SuggestionStatus), default=SuggestionStatus.SUBMITTED, nullable=False)
    priority = Column(value_enum(SuggestionPriority), default=SuggestionPriority.MEDIUM, nullable=False)

    # Classifier output, written once at creation
    ai_priority_reason = Column(Text, nullable=True)
    ai_analyzed = Column(Boolean, default=False, nullable=False)

    image_url = Column(String(1024), nullable=True)

    # Read receipt (set once, never cleared)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)
    read_by = Column(String(100), nullable=True)

    # Archive state (toggles)
    is_archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(DateTime, nullable=True)
    archived_by = Column(String(100), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    status_history = relationship(
        "StatusHistoryEntry",
        back_populates="suggestion",
        order_by="StatusHistoryEntry.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Suggestion {self.tracking_code} [{self.status}]>"


class StatusHistoryEntry(Base):
    """One status change, appended and never edited"""
    __tablename__ = "suggestion_status_history"

    # Integer key keeps insertion order even when timestamps collide
    id = Column(Integer, primary_key=True, autoincrement=True)
    suggestion_id = Column(GUID, ForeignKey("suggestions.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(value_enum(SuggestionStatus), nullable=False)
    notes = Column(Text, nullable=True)
    changed_by = Column(String(100), nullable=True)
    changed_at = Column(DateTime, default=utcnow, nullable=False)

    suggestion = relationship("Suggestion", back_populates="status_history")

    def __repr__(self):
        return f"<StatusHistoryEntry {self.status} by {self.changed_by}>"
