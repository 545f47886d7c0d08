"""
Admin suggestion endpoints: triage listing and state transitions.

Every mutation is recorded in the activity ledger after it succeeds. The
response is built before the ledger write so a failed append cannot affect it.
"""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, Type

from app.api.dependencies import get_activity_ledger, get_suggestion_service
from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import SuggestionNotFoundError
from app.core.security import StaffIdentity
from app.models.activity_log import ActivityAction
from app.modules.auth.dependencies import get_current_staff
from app.schemas.base import Pagination
from app.schemas.suggestion import (
    StatusUpdate,
    PriorityUpdate,
    BulkDeleteRequest,
    SuggestionResponse,
    SuggestionListResponse,
    StatusChangeResponse,
    PriorityChangeResponse,
    ArchiveToggleResponse,
    DeletedSuggestionSummary,
    BulkDeleteResponse,
)
from app.services.activity_ledger import ActivityLedger
from app.services.suggestion_service import SuggestionService, SuggestionFilters
from app.utils.pagination import PaginationParams

router = APIRouter()


def _page(page: Optional[int], limit: Optional[int]) -> PaginationParams:
    return PaginationParams.clamp(
        page, limit,
        default_limit=settings.SUGGESTIONS_DEFAULT_PAGE_SIZE,
        max_limit=settings.SUGGESTIONS_MAX_PAGE_SIZE,
    )


def _staff_view(schema: Type[SuggestionResponse], suggestion, **extra) -> SuggestionResponse:
    """Staff view of `suggestion` with the fields of a change response added"""
    return schema(**dict(SuggestionResponse.model_validate(suggestion)), **extra)


@router.get("", response_model=SuggestionListResponse)
async def list_suggestions(
    page: Optional[int] = Query(1),
    limit: Optional[int] = Query(None),
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    sort: Optional[str] = Query("newest"),
    archived: Optional[str] = Query("false"),
    identity: Optional[str] = Query("all"),
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    service: SuggestionService = Depends(get_suggestion_service),
):
    """
    List suggestions for triage.

    Filters are AND-combined; `search` matches title, content or tracking code.
    `archived` is false (active only, default), true (archived only) or all.
    Sorts: newest, oldest, recently_updated, priority_high, priority_low.
    """
    filters = SuggestionFilters(
        category=category,
        status=status,
        search=search,
        date_from=date_from,
        date_to=date_to,
        sort=sort,
        archived=archived,
        identity=identity,
    )
    items, pagination = await service.list_suggestions(db, filters, _page(page, limit))
    return SuggestionListResponse(
        items=[SuggestionResponse.model_validate(s) for s in items],
        pagination=Pagination(**pagination),
    )


@router.get("/archived", response_model=SuggestionListResponse)
async def list_archived_suggestions(
    page: Optional[int] = Query(1),
    limit: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    service: SuggestionService = Depends(get_suggestion_service),
):
    """Archived suggestions, most recently archived first"""
    items, pagination = await service.list_archived(db, _page(page, limit))
    return SuggestionListResponse(
        items=[SuggestionResponse.model_validate(s) for s in items],
        pagination=Pagination(**pagination),
    )


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_suggestions(
    request: Request,
    payload: BulkDeleteRequest,
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    service: SuggestionService = Depends(get_suggestion_service),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    """Permanently delete several suggestions; unknown ids are skipped"""
    result = await service.bulk_delete(db, payload.ids)
    response = BulkDeleteResponse(
        deleted_count=result["deleted_count"],
        deleted_suggestions=[DeletedSuggestionSummary(**s) for s in result["deleted_suggestions"]],
    )

    if result["deleted_count"]:
        await ledger.append(
            db, staff, ActivityAction.BULK_DELETE,
            details={
                "count": result["deleted_count"],
                "deleted_suggestions": result["deleted_suggestions"],
            },
            request=request,
        )
    return response


@router.get("/{suggestion_id}", response_model=SuggestionResponse)
async def get_suggestion(
    suggestion_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    service: SuggestionService = Depends(get_suggestion_service),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    suggestion = await service.get_by_id(db, suggestion_id)
    response = SuggestionResponse.model_validate(suggestion)
    await ledger.append(db, staff, ActivityAction.VIEW_SUGGESTION, suggestion=suggestion, request=request)
    return response


@router.put("/{suggestion_id}/status", response_model=StatusChangeResponse)
async def update_status(
    suggestion_id: str,
    payload: StatusUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    service: SuggestionService = Depends(get_suggestion_service),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    """Move to any status; the change is appended to the status history"""
    suggestion, old_status = await service.update_status(
        db, suggestion_id, payload.status, payload.notes, changed_by=staff.label
    )
    response = _staff_view(StatusChangeResponse, suggestion, old_status=old_status)
    await ledger.append(
        db, staff, ActivityAction.UPDATE_STATUS, suggestion=suggestion,
        details={"old_status": old_status, "new_status": payload.status, "notes": payload.notes},
        request=request,
    )
    return response


@router.put("/{suggestion_id}/priority", response_model=PriorityChangeResponse)
async def update_priority(
    suggestion_id: str,
    payload: PriorityUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    service: SuggestionService = Depends(get_suggestion_service),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    suggestion, old_priority = await service.update_priority(db, suggestion_id, payload.priority)
    response = _staff_view(PriorityChangeResponse, suggestion, old_priority=old_priority)
    await ledger.append(
        db, staff, ActivityAction.UPDATE_PRIORITY, suggestion=suggestion,
        details={"old_priority": old_priority, "new_priority": payload.priority},
        request=request,
    )
    return response


@router.put("/{suggestion_id}/read", response_model=SuggestionResponse)
async def mark_read(
    suggestion_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    service: SuggestionService = Depends(get_suggestion_service),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    """Idempotent; only the first read is stamped and logged"""
    suggestion, first_read = await service.mark_read(db, suggestion_id, read_by=staff.label)
    response = SuggestionResponse.model_validate(suggestion)
    if first_read:
        await ledger.append(
            db, staff, ActivityAction.MARK_READ, suggestion=suggestion,
            details={"first_read": True}, request=request,
        )
    return response


@router.put("/{suggestion_id}/archive", response_model=ArchiveToggleResponse)
async def toggle_archive(
    suggestion_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    service: SuggestionService = Depends(get_suggestion_service),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    suggestion, was_archived = await service.toggle_archive(db, suggestion_id, actor=staff.label)
    response = _staff_view(ArchiveToggleResponse, suggestion, was_archived_before=was_archived)
    action = ActivityAction.UNARCHIVE_SUGGESTION if was_archived else ActivityAction.ARCHIVE_SUGGESTION
    await ledger.append(
        db, staff, action, suggestion=suggestion,
        details={"was_archived": was_archived}, request=request,
    )
    return response


@router.delete("/{suggestion_id}", response_model=DeletedSuggestionSummary)
async def delete_suggestion(
    suggestion_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    service: SuggestionService = Depends(get_suggestion_service),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    """Permanent; there is no trash to restore from"""
    summary = await service.delete_suggestion(db, suggestion_id)
    if summary is None:
        raise SuggestionNotFoundError(suggestion_id)

    response = DeletedSuggestionSummary(**summary)
    await ledger.append(db, staff, ActivityAction.DELETE_SUGGESTION, target=summary, request=request)
    return response
