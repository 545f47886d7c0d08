"""
Admin activity log endpoints.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.api.dependencies import get_activity_ledger
from app.core.config import settings
from app.core.database import get_db
from app.core.logging_config import logger
from app.core.security import StaffIdentity, DEPRECATED_ROLES
from app.modules.auth.dependencies import get_current_staff, get_privileged_staff
from app.schemas.admin import (
    ActivityLogResponse,
    ActivityLogListResponse,
    ActivityLogStats,
    DeprecatedLogCount,
    CleanupResult,
)
from app.schemas.base import Pagination
from app.services.activity_ledger import ActivityLedger, ActivityLogFilters
from app.utils.pagination import PaginationParams

router = APIRouter()


@router.get("", response_model=ActivityLogListResponse)
async def list_activity_logs(
    page: Optional[int] = Query(1),
    limit: Optional[int] = Query(None),
    admin_role: Optional[str] = Query(None, alias="adminRole"),
    action: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    """List ledger entries, newest first"""
    params = PaginationParams.clamp(
        page, limit,
        default_limit=settings.ACTIVITY_LOGS_DEFAULT_PAGE_SIZE,
        max_limit=settings.ACTIVITY_LOGS_MAX_PAGE_SIZE,
    )
    filters = ActivityLogFilters(
        admin_role=admin_role,
        action=action,
        search=search,
        date_from=date_from,
        date_to=date_to,
    )
    items, pagination = await ledger.list_logs(db, filters, params)
    return ActivityLogListResponse(
        items=[ActivityLogResponse.model_validate(log) for log in items],
        pagination=Pagination(**pagination),
    )


@router.get("/stats", response_model=ActivityLogStats)
async def get_activity_stats(
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    return ActivityLogStats(**await ledger.get_stats(db))


@router.get("/deprecated-count", response_model=DeprecatedLogCount)
async def count_deprecated_logs(
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_privileged_staff),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    """Entries written under roles that no longer exist"""
    return DeprecatedLogCount(
        count=await ledger.count_deprecated(db),
        deprecated_roles=list(DEPRECATED_ROLES),
    )


@router.delete("/cleanup", response_model=CleanupResult)
async def cleanup_deprecated_logs(
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_privileged_staff),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    deleted = await ledger.cleanup_deprecated(db)
    logger.info(f"[ActivityLogs] {staff.label} removed {deleted} deprecated entries")
    return CleanupResult(
        deleted_count=deleted,
        message=f"Removed {deleted} log entries from deprecated roles",
    )
