"""
Admin dashboard statistics.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_suggestion_service
from app.core.database import get_db
from app.core.security import StaffIdentity
from app.modules.auth.dependencies import get_current_staff
from app.schemas.suggestion import SuggestionStats
from app.services.suggestion_service import SuggestionService

router = APIRouter()


@router.get("/stats", response_model=SuggestionStats)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    service: SuggestionService = Depends(get_suggestion_service),
):
    """Counters over active suggestions, plus the archived total"""
    return SuggestionStats(**await service.get_statistics(db))
