"""
Pagination Utility Module

Offset pagination shared by the suggestion and activity log listings.
"""
import math
from typing import List, Any, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select


class PaginationParams(BaseModel):
    """1-indexed page and page size, clamped to [1, max_limit]"""
    page: int = 1
    limit: int = 20

    @classmethod
    def clamp(cls, page: Optional[int], limit: Optional[int],
              default_limit: int = 20, max_limit: int = 100) -> "PaginationParams":
        page = max(1, page or 1)
        limit = max(1, min(max_limit, limit or default_limit))
        return cls(page=page, limit=limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_count(total: int, limit: int) -> int:
    """ceil(total / limit); zero items means zero pages"""
    return math.ceil(total / limit) if total > 0 else 0


async def paginate(
    db: AsyncSession,
    query: Select,
    params: PaginationParams,
) -> Tuple[List[Any], dict]:
    """
    Run `query` for one page.

    Args:
        db: Database session
        query: Filtered and ordered SQLAlchemy select
        params: Page and page size

    Returns:
        (rows for the page, {"total", "page", "pages", "limit"})
    """
    count_stmt = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar() or 0

    result = await db.execute(query.offset(params.offset).limit(params.limit))
    items = list(result.scalars().all())

    return items, {
        "total": total,
        "page": params.page,
        "pages": page_count(total, params.limit),
        "limit": params.limit,
    }
