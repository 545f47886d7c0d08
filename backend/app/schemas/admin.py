from typing import Optional, List, Dict, Any, Type
from datetime import datetime

from app.models.activity_log import ActivityAction
from app.models.suggestion import SuggestionStatus, SuggestionPriority
from app.schemas.base import CamelModel, Pagination


# ==================== Session Schemas ====================

class StaffVerifyRequest(CamelModel):
    password: str = ""


class StaffIdentityResponse(CamelModel):
    role: str
    label: str
    color: str


class OnlineStaffResponse(CamelModel):
    role: str
    label: str
    color: str
    last_seen: datetime
    login_time: datetime


class OnlineStaffListResponse(CamelModel):
    items: List[OnlineStaffResponse]
    count: int


class SessionAck(CamelModel):
    message: str


# ==================== Activity Log Details ====================
# Each action carries its own payload shape, validated before the entry is written.

class StatusChangeDetails(CamelModel):
    old_status: SuggestionStatus
    new_status: SuggestionStatus
    notes: str = ""


class PriorityChangeDetails(CamelModel):
    old_priority: SuggestionPriority
    new_priority: SuggestionPriority


class DeletedSuggestionRef(CamelModel):
    id: str
    title: str
    tracking_code: str


class BulkDeleteDetails(CamelModel):
    count: int
    deleted_suggestions: List[DeletedSuggestionRef] = []


class ArchiveDetails(CamelModel):
    was_archived: bool


class ReadDetails(CamelModel):
    first_read: bool = True


DETAILS_SCHEMAS: Dict[str, Type[CamelModel]] = {
    ActivityAction.UPDATE_STATUS.value: StatusChangeDetails,
    ActivityAction.UPDATE_PRIORITY.value: PriorityChangeDetails,
    ActivityAction.BULK_DELETE.value: BulkDeleteDetails,
    ActivityAction.ARCHIVE_SUGGESTION.value: ArchiveDetails,
    ActivityAction.UNARCHIVE_SUGGESTION.value: ArchiveDetails,
    ActivityAction.MARK_READ.value: ReadDetails,
}


# ==================== Activity Log Schemas ====================

class ActivityLogResponse(CamelModel):
    """Ledger entry as shown to staff. Request metadata is never included."""
    id: str
    admin_role: str
    admin_label: str
    action: str
    suggestion_id: Optional[str] = None
    suggestion_title: Optional[str] = None
    suggestion_tracking_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime


class ActivityLogListResponse(CamelModel):
    items: List[ActivityLogResponse]
    pagination: Pagination


class AdminActivityCount(CamelModel):
    role: str
    label: str
    count: int


class ActionCount(CamelModel):
    action: str
    count: int


class ActivityLogStats(CamelModel):
    total_logs: int
    by_admin: List[AdminActivityCount]
    by_action: List[ActionCount]
    today_count: int
    week_count: int


class DeprecatedLogCount(CamelModel):
    count: int
    deprecated_roles: List[str]


class CleanupResult(CamelModel):
    deleted_count: int
    message: str
