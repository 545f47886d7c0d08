"""
Suggestion Service - business logic for the suggestion lifecycle

Handles:
- Intake (classification, image attachment, tracking code)
- Filtered, sorted, paginated staff listing
- Status / priority / read / archive transitions with their side effects
- Deletion and dashboard statistics
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_, or_, case, delete
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, List, Tuple, Dict, Any

from app.core.config import settings
from app.core.exceptions import SuggestionNotFoundError
from app.core.logging_config import logger
from app.core.types import utcnow
from app.models.suggestion import (
    Suggestion,
    StatusHistoryEntry,
    SuggestionCategory,
    SuggestionStatus,
    SuggestionPriority,
    PRIORITY_RANK,
)
from app.schemas.suggestion import SuggestionCreate
from app.services.attachment_store import AttachmentStore
from app.services.priority_classifier import PriorityClassifier
from app.utils.filters import ALL, parse_enum_filter, parse_date_bound, like_pattern
from app.utils.pagination import PaginationParams, paginate
from app.utils.tracking_code import generate_tracking_code, normalize_tracking_code

TRACKING_CODE_ATTEMPTS = 5
RECENT_WINDOW = timedelta(days=7)


@dataclass
class SuggestionFilters:
    """Staff listing filters, as received on the query string"""
    category: Optional[str] = None
    status: Optional[str] = None
    search: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    sort: Optional[str] = None
    archived: Optional[str] = None  # "false" (default) | "true" | "all"
    identity: Optional[str] = None  # "anonymous" | "identified" | "all"


class SuggestionService:
    """Suggestion store and query engine"""

    def __init__(
        self,
        classifier: Optional[PriorityClassifier] = None,
        attachments: Optional[AttachmentStore] = None,
        tracking_prefix: Optional[str] = None,
    ):
        self.classifier = classifier or PriorityClassifier(client=None)
        self.attachments = attachments or AttachmentStore(storage=None)
        self.tracking_prefix = tracking_prefix or settings.TRACKING_CODE_PREFIX

    # ==================== INTAKE ====================

    async def _unique_tracking_code(self, db: AsyncSession) -> str:
        for _ in range(TRACKING_CODE_ATTEMPTS):
            code = generate_tracking_code(self.tracking_prefix)
            existing = await db.execute(
                select(Suggestion.id).where(Suggestion.tracking_code == code)
            )
            if existing.scalar_one_or_none() is None:
                return code
        raise RuntimeError("Could not generate a unique tracking code")

    async def create_suggestion(
        self,
        db: AsyncSession,
        data: SuggestionCreate
    ) -> Tuple[Suggestion, bool]:
        """
        Create a suggestion from a validated public submission.

        The classifier is always consulted; the image is uploaded only when
        present. Neither collaborator can fail the submission.

        Returns:
            (persisted suggestion, whether the classifier produced the priority)
        """
        classification = await self.classifier.classify(
            data.title, data.content, data.category.value
        )

        image_url = None
        if data.image:
            upload = await self.attachments.store(data.image)
            if upload.success:
                image_url = upload.url
            else:
                logger.warning(f"[Suggestions] Saving without image: {upload.error}")

        submitter = None
        if not data.is_anonymous and data.submitter is not None:
            submitter = data.submitter.model_dump(mode="json")

        suggestion = Suggestion(
            tracking_code=await self._unique_tracking_code(db),
            category=data.category,
            title=data.title,
            content=data.content,
            is_anonymous=data.is_anonymous,
            submitter=submitter,
            status=SuggestionStatus.SUBMITTED,
            priority=classification.priority,
            ai_priority_reason=classification.reason,
            ai_analyzed=classification.was_classified,
            image_url=image_url,
            status_history=[],
        )
        db.add(suggestion)
        await db.commit()

        logger.info(
            f"[Suggestions] Created {suggestion.tracking_code} "
            f"({suggestion.category.value}, {suggestion.priority.value}, anonymous={suggestion.is_anonymous})"
        )
        return suggestion, classification.was_classified

    # ==================== LOOKUP ====================

    async def get_by_tracking_code(self, db: AsyncSession, tracking_code: str) -> Suggestion:
        code = normalize_tracking_code(tracking_code)
        result = await db.execute(select(Suggestion).where(Suggestion.tracking_code == code))
        suggestion = result.scalar_one_or_none()
        if not suggestion:
            raise SuggestionNotFoundError(code)
        return suggestion

    async def get_by_id(self, db: AsyncSession, suggestion_id: str) -> Suggestion:
        result = await db.execute(select(Suggestion).where(Suggestion.id == suggestion_id))
        suggestion = result.scalar_one_or_none()
        if not suggestion:
            raise SuggestionNotFoundError(suggestion_id)
        return suggestion

    # ==================== QUERY ====================

    @staticmethod
    def _conditions(filters: SuggestionFilters) -> list:
        conditions = []

        archived = (filters.archived or "false").lower()
        if archived == "true":
            conditions.append(Suggestion.is_archived.is_(True))
        elif archived != ALL:
            conditions.append(Suggestion.is_archived.is_(False))

        category = parse_enum_filter(SuggestionCategory, filters.category, "category")
        if category is not None:
            conditions.append(Suggestion.category == category)

        status = parse_enum_filter(SuggestionStatus, filters.status, "status")
        if status is not None:
            conditions.append(Suggestion.status == status)

        if filters.identity == "anonymous":
            conditions.append(Suggestion.is_anonymous.is_(True))
        elif filters.identity == "identified":
            conditions.append(Suggestion.is_anonymous.is_(False))

        if filters.search and filters.search.strip():
            pattern = like_pattern(filters.search.strip())
            conditions.append(or_(
                Suggestion.title.ilike(pattern, escape="\\"),
                Suggestion.content.ilike(pattern, escape="\\"),
                Suggestion.tracking_code.ilike(pattern, escape="\\"),
            ))

        date_from = parse_date_bound(filters.date_from, "dateFrom")
        if date_from is not None:
            conditions.append(Suggestion.created_at >= date_from)

        date_to = parse_date_bound(filters.date_to, "dateTo", end_of_day=True)
        if date_to is not None:
            conditions.append(Suggestion.created_at <= date_to)

        return conditions

    @staticmethod
    def _ordering(sort: Optional[str]) -> list:
        rank = case(PRIORITY_RANK, value=Suggestion.priority, else_=5)
        if sort == "oldest":
            return [Suggestion.created_at.asc(), Suggestion.id.asc()]
        if sort == "recently_updated":
            return [Suggestion.updated_at.desc(), Suggestion.id.desc()]
        if sort == "priority_high":
            return [rank.asc(), Suggestion.created_at.desc(), Suggestion.id.desc()]
        if sort == "priority_low":
            return [rank.desc(), Suggestion.created_at.desc(), Suggestion.id.desc()]
        return [Suggestion.created_at.desc(), Suggestion.id.desc()]

    async def list_suggestions(
        self,
        db: AsyncSession,
        filters: SuggestionFilters,
        params: PaginationParams
    ) -> Tuple[List[Suggestion], Dict[str, int]]:
        """All filters are AND-combined; the search term is OR-ed across text fields"""
        query = select(Suggestion)
        conditions = self._conditions(filters)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(*self._ordering(filters.sort))
        return await paginate(db, query, params)

    async def list_archived(
        self,
        db: AsyncSession,
        params: PaginationParams
    ) -> Tuple[List[Suggestion], Dict[str, int]]:
        query = (
            select(Suggestion)
            .where(Suggestion.is_archived.is_(True))
            .order_by(Suggestion.archived_at.desc(), Suggestion.id.desc())
        )
        return await paginate(db, query, params)

    # ==================== TRANSITIONS ====================

    async def update_status(
        self,
        db: AsyncSession,
        suggestion_id: str,
        status: SuggestionStatus,
        notes: str,
        changed_by: str
    ) -> Tuple[Suggestion, SuggestionStatus]:
        """Append a history entry, then move to the new status (same status still appends)"""
        suggestion = await self.get_by_id(db, suggestion_id)
        old_status = suggestion.status
        now = utcnow()

        suggestion.status_history.append(StatusHistoryEntry(
            status=status,
            notes=notes or "",
            changed_by=changed_by,
            changed_at=now,
        ))
        suggestion.status = status
        suggestion.updated_at = now
        await db.commit()

        logger.info(f"[Suggestions] {suggestion.tracking_code}: {old_status.value} -> {status.value} by {changed_by}")
        return suggestion, old_status

    async def update_priority(
        self,
        db: AsyncSession,
        suggestion_id: str,
        priority: SuggestionPriority
    ) -> Tuple[Suggestion, SuggestionPriority]:
        """Change priority; the classifier's rationale is left untouched"""
        suggestion = await self.get_by_id(db, suggestion_id)
        old_priority = suggestion.priority
        suggestion.priority = priority
        suggestion.updated_at = utcnow()
        await db.commit()
        return suggestion, old_priority

    async def mark_read(
        self,
        db: AsyncSession,
        suggestion_id: str,
        read_by: str
    ) -> Tuple[Suggestion, bool]:
        """
        Idempotent: only the first call records reader and time.

        Returns:
            (suggestion, True when this call was the first read)
        """
        suggestion = await self.get_by_id(db, suggestion_id)
        if suggestion.is_read:
            return suggestion, False

        now = utcnow()
        suggestion.is_read = True
        suggestion.read_at = now
        suggestion.read_by = read_by
        suggestion.updated_at = now
        await db.commit()
        return suggestion, True

    async def toggle_archive(
        self,
        db: AsyncSession,
        suggestion_id: str,
        actor: str
    ) -> Tuple[Suggestion, bool]:
        """
        Flip archive state. Archiving stamps who and when; unarchiving clears both.

        Returns:
            (suggestion, archive state before the call)
        """
        suggestion = await self.get_by_id(db, suggestion_id)
        was_archived = bool(suggestion.is_archived)
        now = utcnow()

        if was_archived:
            suggestion.is_archived = False
            suggestion.archived_at = None
            suggestion.archived_by = None
        else:
            suggestion.is_archived = True
            suggestion.archived_at = now
            suggestion.archived_by = actor
        suggestion.updated_at = now
        await db.commit()
        return suggestion, was_archived

    # ==================== DELETION ====================

    async def delete_suggestion(self, db: AsyncSession, suggestion_id: str) -> Optional[Dict[str, str]]:
        """
        Permanently delete one suggestion and its history.

        Returns:
            {"id", "title", "tracking_code"} of the removed row, None if absent
        """
        result = await db.execute(select(Suggestion).where(Suggestion.id == suggestion_id))
        suggestion = result.scalar_one_or_none()
        if suggestion is None:
            return None

        summary = {
            "id": suggestion.id,
            "title": suggestion.title,
            "tracking_code": suggestion.tracking_code,
        }
        await db.delete(suggestion)
        await db.commit()
        logger.info(f"[Suggestions] Deleted {summary['tracking_code']}")
        return summary

    async def bulk_delete(self, db: AsyncSession, ids: List[str]) -> Dict[str, Any]:
        """
        Delete every listed suggestion that exists; unknown ids are ignored.

        Returns:
            {"deleted_count", "deleted_suggestions": [{"id", "title", "tracking_code"}]}
        """
        unique_ids = list(dict.fromkeys(i for i in ids if i))
        if not unique_ids:
            return {"deleted_count": 0, "deleted_suggestions": []}

        rows = await db.execute(
            select(Suggestion.id, Suggestion.title, Suggestion.tracking_code)
            .where(Suggestion.id.in_(unique_ids))
        )
        summaries = [
            {"id": row.id, "title": row.title, "tracking_code": row.tracking_code}
            for row in rows.all()
        ]
        found_ids = [s["id"] for s in summaries]
        if not found_ids:
            return {"deleted_count": 0, "deleted_suggestions": []}

        await db.execute(
            delete(StatusHistoryEntry).where(StatusHistoryEntry.suggestion_id.in_(found_ids))
        )
        result = await db.execute(
            delete(Suggestion).where(Suggestion.id.in_(found_ids))
        )
        await db.commit()

        deleted_count = result.rowcount if result.rowcount is not None and result.rowcount >= 0 else len(found_ids)
        logger.info(f"[Suggestions] Bulk deleted {deleted_count} of {len(unique_ids)} requested")
        return {"deleted_count": deleted_count, "deleted_suggestions": summaries}

    # ==================== STATISTICS ====================

    async def _grouped_counts(self, db: AsyncSession, column, members) -> Dict[str, int]:
        counts = {m.value: 0 for m in members}
        result = await db.execute(
            select(column, func.count())
            .where(Suggestion.is_archived.is_(False))
            .group_by(column)
        )
        for key, count in result.all():
            counts[key.value if hasattr(key, "value") else key] = count
        return counts

    async def _count(self, db: AsyncSession, *conditions) -> int:
        query = select(func.count()).select_from(Suggestion)
        if conditions:
            query = query.where(and_(*conditions))
        return (await db.execute(query)).scalar() or 0

    async def get_statistics(self, db: AsyncSession) -> Dict[str, Any]:
        """Dashboard counters over non-archived suggestions, plus the archived total"""
        active = Suggestion.is_archived.is_(False)
        since = utcnow() - RECENT_WINDOW

        return {
            "total": await self._count(db, active),
            "recent_count": await self._count(db, active, Suggestion.created_at >= since),
            "by_category": await self._grouped_counts(db, Suggestion.category, SuggestionCategory),
            "by_status": await self._grouped_counts(db, Suggestion.status, SuggestionStatus),
            "by_priority": await self._grouped_counts(db, Suggestion.priority, SuggestionPriority),
            "anonymous_count": await self._count(db, active, Suggestion.is_anonymous.is_(True)),
            "identified_count": await self._count(db, active, Suggestion.is_anonymous.is_(False)),
            "unread_count": await self._count(db, active, Suggestion.is_read.is_(False)),
            "archived_count": await self._count(db, Suggestion.is_archived.is_(True)),
            # Deletion is permanent, nothing is ever in the trash
            "deleted_count": 0,
        }
