"""
Activity Ledger - append-only record of staff actions.

Appends are best effort: a ledger failure is logged and swallowed so it can
never undo or fail the action being recorded.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_, or_, delete
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, List, Tuple, Dict, Any

from fastapi import Request

from app.core.logging_config import logger
from app.core.security import StaffIdentity, DEPRECATED_ROLES
from app.core.types import utcnow
from app.models.activity_log import ActivityLog, ActivityAction
from app.models.suggestion import Suggestion
from app.schemas.admin import DETAILS_SCHEMAS
from app.utils.filters import ALL, parse_date_bound, like_pattern
from app.utils.pagination import PaginationParams, paginate


@dataclass
class ActivityLogFilters:
    admin_role: Optional[str] = None
    action: Optional[str] = None
    search: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None


def client_ip(request: Optional[Request]) -> Optional[str]:
    """First X-Forwarded-For hop, else the socket peer"""
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()[:45]
    return request.client.host if request.client else None


def shape_details(action: str, details: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Validate the payload against the action's schema and store it camelCased"""
    if not details:
        return None
    schema = DETAILS_SCHEMAS.get(action)
    if schema is None:
        return dict(details)
    return schema.model_validate(details).model_dump(mode="json", by_alias=True)


class ActivityLedger:
    """Staff activity log: append, query, stats and deprecated-role maintenance"""

    # ==================== APPEND ====================

    async def append(
        self,
        db: AsyncSession,
        actor: Optional[StaffIdentity],
        action: ActivityAction,
        suggestion: Optional[Suggestion] = None,
        details: Optional[Dict[str, Any]] = None,
        request: Optional[Request] = None,
        target: Optional[Dict[str, str]] = None,
    ) -> Optional[ActivityLog]:
        """
        Record one staff action. Never raises.

        Args:
            actor: Resolved staff identity; the entry is skipped when None
            action: What was done
            suggestion: Target suggestion, snapshotted into the entry
            details: Action-specific payload (see DETAILS_SCHEMAS)
            request: Source of IP address and user agent
            target: Snapshot {"id", "title", "tracking_code"} for targets that no longer exist
        """
        if actor is None:
            return None

        if suggestion is not None:
            target = {
                "id": suggestion.id,
                "title": suggestion.title,
                "tracking_code": suggestion.tracking_code,
            }
        target = target or {}

        try:
            entry = ActivityLog(
                admin_role=actor.role,
                admin_label=actor.label,
                action=action.value,
                suggestion_id=target.get("id"),
                suggestion_title=target.get("title"),
                suggestion_tracking_code=target.get("tracking_code"),
                details=shape_details(action.value, details),
                ip_address=client_ip(request),
                user_agent=request.headers.get("user-agent") if request is not None else None,
            )
            db.add(entry)
            await db.commit()
            return entry
        except Exception as e:
            await db.rollback()
            logger.log_error_with_context(e, context=f"activity ledger append ({action.value})")
            return None

    # ==================== QUERY ====================

    async def list_logs(
        self,
        db: AsyncSession,
        filters: ActivityLogFilters,
        params: PaginationParams
    ) -> Tuple[List[ActivityLog], Dict[str, int]]:
        """Newest first"""
        conditions = []
        if filters.admin_role and filters.admin_role != ALL:
            conditions.append(ActivityLog.admin_role == filters.admin_role)
        if filters.action and filters.action != ALL:
            conditions.append(ActivityLog.action == filters.action)
        if filters.search and filters.search.strip():
            pattern = like_pattern(filters.search.strip())
            conditions.append(or_(
                ActivityLog.suggestion_tracking_code.ilike(pattern, escape="\\"),
                ActivityLog.suggestion_title.ilike(pattern, escape="\\"),
                ActivityLog.admin_label.ilike(pattern, escape="\\"),
            ))

        date_from = parse_date_bound(filters.date_from, "dateFrom")
        if date_from is not None:
            conditions.append(ActivityLog.created_at >= date_from)
        date_to = parse_date_bound(filters.date_to, "dateTo", end_of_day=True)
        if date_to is not None:
            conditions.append(ActivityLog.created_at <= date_to)

        query = select(ActivityLog)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        return await paginate(db, query, params)

    # ==================== STATS ====================

    async def get_stats(self, db: AsyncSession) -> Dict[str, Any]:
        now = utcnow()
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

        total = (await db.execute(select(func.count()).select_from(ActivityLog))).scalar() or 0

        count_col = func.count().label("count")
        by_admin_rows = await db.execute(
            select(ActivityLog.admin_role, func.min(ActivityLog.admin_label), count_col)
            .group_by(ActivityLog.admin_role)
            .order_by(count_col.desc(), ActivityLog.admin_role)
        )
        by_action_rows = await db.execute(
            select(ActivityLog.action, count_col)
            .group_by(ActivityLog.action)
            .order_by(count_col.desc(), ActivityLog.action)
        )

        today_count = (await db.execute(
            select(func.count()).select_from(ActivityLog).where(ActivityLog.created_at >= midnight)
        )).scalar() or 0
        week_count = (await db.execute(
            select(func.count()).select_from(ActivityLog).where(ActivityLog.created_at >= now - timedelta(days=7))
        )).scalar() or 0

        return {
            "total_logs": total,
            "by_admin": [
                {"role": role, "label": label, "count": count}
                for role, label, count in by_admin_rows.all()
            ],
            "by_action": [
                {"action": action, "count": count}
                for action, count in by_action_rows.all()
            ],
            "today_count": today_count,
            "week_count": week_count,
        }

    # ==================== MAINTENANCE ====================

    async def count_deprecated(self, db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count()).select_from(ActivityLog)
            .where(ActivityLog.admin_role.in_(DEPRECATED_ROLES))
        )
        return result.scalar() or 0

    async def cleanup_deprecated(self, db: AsyncSession) -> int:
        """Delete entries written under retired roles; returns how many were removed"""
        result = await db.execute(
            delete(ActivityLog).where(ActivityLog.admin_role.in_(DEPRECATED_ROLES))
        )
        await db.commit()
        deleted = result.rowcount or 0
        logger.info(f"[ActivityLedger] Removed {deleted} entries from deprecated roles")
        return deleted
