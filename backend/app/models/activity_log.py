from sqlalchemy import Column, String, DateTime, Text, JSON
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow


class ActivityAction(str, enum.Enum):
    """Staff actions recorded in the activity ledger"""
    LOGIN = "login"
    LOGOUT = "logout"
    SESSION_ENDED = "session_ended"
    VIEW_SUGGESTION = "view_suggestion"
    UPDATE_STATUS = "update_status"
    UPDATE_PRIORITY = "update_priority"
    ARCHIVE_SUGGESTION = "archive_suggestion"
    UNARCHIVE_SUGGESTION = "unarchive_suggestion"
    DELETE_SUGGESTION = "delete_suggestion"
    BULK_DELETE = "bulk_delete"
    # Trash actions are kept in the vocabulary; deletion is permanent so nothing emits them
    RESTORE_SUGGESTION = "restore_suggestion"
    PERMANENT_DELETE = "permanent_delete"
    EMPTY_TRASH = "empty_trash"
    MARK_READ = "mark_read"


class ActivityLog(Base):
    """Append-only record of a staff action"""
    __tablename__ = "activity_logs"

    id = Column(GUID, primary_key=True, default=generate_uuid)

    # Actor identity is copied in so entries survive credential table changes
    admin_role = Column(String(50), nullable=False, index=True)
    admin_label = Column(String(100), nullable=False)

    action = Column(String(50), nullable=False, index=True)

    # Target snapshot (the suggestion may since have been deleted)
    suggestion_id = Column(GUID, nullable=True, index=True)
    suggestion_title = Column(String(200), nullable=True)
    suggestion_tracking_code = Column(String(64), nullable=True, index=True)

    # Action-specific payload (old/new values, bulk summaries)
    details = Column(JSON, nullable=True)

    # Request metadata, stored for forensics and never returned by the API
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    # Timestamp
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<ActivityLog {self.action} by {self.admin_label}>"
