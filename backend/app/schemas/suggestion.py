from pydantic import EmailStr, Field, field_validator, model_serializer
from pydantic_core import PydanticCustomError
from typing import Optional, List, Literal
from datetime import datetime

from app.models.suggestion import SuggestionCategory, SuggestionStatus, SuggestionPriority
from app.schemas.base import CamelModel, Pagination


TITLE_MAX_LENGTH = 200
CONTENT_MAX_LENGTH = 2000
NOTES_MAX_LENGTH = 500

YearLevel = Literal["1st Year", "2nd Year", "3rd Year", "4th Year", ""]


def _required_text(value: Optional[str], label: str, max_length: int) -> str:
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise PydanticCustomError("string_type", f"{label} must be text")
    value = value.strip()
    if not value:
        raise PydanticCustomError("required", f"{label} is required")
    if len(value) > max_length:
        raise PydanticCustomError(
            "too_long", f"{label} cannot exceed {max_length} characters"
        )
    return value


# ==================== Request Schemas ====================

class SubmitterInfo(CamelModel):
    """Optional contact details of an identified submitter"""
    name: str = Field("", max_length=100)
    student_id: str = Field("", max_length=50)
    email: Optional[EmailStr] = None
    contact_number: str = Field("", max_length=30)
    course: str = Field("", max_length=100)
    year_level: YearLevel = ""
    wants_follow_up: bool = False

    @field_validator('name', 'student_id', 'contact_number', 'course', mode='before')
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else ("" if v is None else v)

    @field_validator('email', mode='before')
    @classmethod
    def blank_email_is_absent(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v


class SuggestionCreate(CamelModel):
    """Public submission payload"""
    category: SuggestionCategory
    title: str
    content: str
    is_anonymous: bool = False
    submitter: Optional[SubmitterInfo] = None
    image: Optional[str] = Field(None, description="Base64 image or data URI")

    @field_validator('title', mode='before')
    @classmethod
    def validate_title(cls, v):
        return _required_text(v, "Title", TITLE_MAX_LENGTH)

    @field_validator('content', mode='before')
    @classmethod
    def validate_content(cls, v):
        return _required_text(v, "Content", CONTENT_MAX_LENGTH)

    @field_validator('image', mode='before')
    @classmethod
    def blank_image_is_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class StatusUpdate(CamelModel):
    status: SuggestionStatus
    notes: str = Field("", max_length=NOTES_MAX_LENGTH)

    @field_validator('notes', mode='before')
    @classmethod
    def strip_notes(cls, v):
        return v.strip() if isinstance(v, str) else ("" if v is None else v)


class PriorityUpdate(CamelModel):
    priority: SuggestionPriority


class BulkDeleteRequest(CamelModel):
    ids: List[str] = Field(..., min_length=1)


# ==================== Response Schemas ====================

class SuggestionCreateResponse(CamelModel):
    """Returned to the student right after submitting"""
    tracking_code: str
    category: SuggestionCategory
    title: str
    status: SuggestionStatus
    priority: SuggestionPriority
    ai_priority_reason: Optional[str] = None
    ai_analyzed: bool
    image_url: Optional[str] = None
    created_at: datetime


class PublicStatusHistoryEntry(CamelModel):
    status: SuggestionStatus
    notes: Optional[str] = None
    changed_at: datetime


class StatusHistoryEntryResponse(PublicStatusHistoryEntry):
    changed_by: Optional[str] = None


class PublicSuggestionResponse(CamelModel):
    """Tracking lookup view. Carries no submitter details and no staff names."""
    tracking_code: str
    category: SuggestionCategory
    title: str
    content: str
    status: SuggestionStatus
    priority: SuggestionPriority
    image_url: Optional[str] = None
    status_history: List[PublicStatusHistoryEntry] = []
    created_at: datetime
    updated_at: datetime


class SuggestionResponse(CamelModel):
    """Staff view of a suggestion"""
    id: str
    tracking_code: str
    category: SuggestionCategory
    title: str
    content: str
    is_anonymous: bool
    submitter: Optional[SubmitterInfo] = None
    status: SuggestionStatus
    priority: SuggestionPriority
    ai_priority_reason: Optional[str] = None
    ai_analyzed: bool = False
    image_url: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None
    read_by: Optional[str] = None
    is_archived: bool
    archived_at: Optional[datetime] = None
    archived_by: Optional[str] = None
    status_history: List[StatusHistoryEntryResponse] = []
    created_at: datetime
    updated_at: datetime

    @model_serializer(mode='wrap')
    def hide_anonymous_submitter(self, handler):
        data = handler(self)
        if self.is_anonymous or self.submitter is None:
            data.pop("submitter", None)
        return data


class SuggestionListResponse(CamelModel):
    items: List[SuggestionResponse]
    pagination: Pagination


class StatusChangeResponse(SuggestionResponse):
    """Updated suggestion plus the status it moved away from"""
    old_status: SuggestionStatus


class PriorityChangeResponse(SuggestionResponse):
    old_priority: SuggestionPriority


class ArchiveToggleResponse(SuggestionResponse):
    was_archived_before: bool


class DeletedSuggestionSummary(CamelModel):
    id: str
    title: str
    tracking_code: str


class BulkDeleteResponse(CamelModel):
    deleted_count: int
    deleted_suggestions: List[DeletedSuggestionSummary]


# ==================== Statistics ====================

class SuggestionStats(CamelModel):
    """Dashboard counters. Grouped counts cover non-archived suggestions."""
    total: int
    recent_count: int
    by_category: dict
    by_status: dict
    by_priority: dict
    anonymous_count: int
    identified_count: int
    unread_count: int
    archived_count: int
    deleted_count: int = 0
