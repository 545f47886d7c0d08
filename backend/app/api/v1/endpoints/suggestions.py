"""
Public suggestion endpoints: submission and tracking lookup.
"""
from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_suggestion_service
from app.core.database import get_db
from app.core.rate_limiter import submission_rate_limit
from app.schemas.suggestion import (
    SuggestionCreate,
    SuggestionCreateResponse,
    PublicSuggestionResponse,
)
from app.services.suggestion_service import SuggestionService

router = APIRouter(prefix="/suggestions", tags=["Suggestions"])


@router.post("", response_model=SuggestionCreateResponse, status_code=status.HTTP_201_CREATED)
@submission_rate_limit()
async def submit_suggestion(
    request: Request,
    payload: SuggestionCreate,
    db: AsyncSession = Depends(get_db),
    service: SuggestionService = Depends(get_suggestion_service),
):
    """
    Submit a suggestion.

    Priority is assigned automatically; an attached image is stored when
    possible. The returned tracking code is the student's only handle on it.
    """
    suggestion, was_classified = await service.create_suggestion(db, payload)

    return SuggestionCreateResponse(
        tracking_code=suggestion.tracking_code,
        category=suggestion.category,
        title=suggestion.title,
        status=suggestion.status,
        priority=suggestion.priority,
        ai_priority_reason=suggestion.ai_priority_reason,
        ai_analyzed=was_classified,
        image_url=suggestion.image_url,
        created_at=suggestion.created_at,
    )


@router.get("/track/{tracking_code}", response_model=PublicSuggestionResponse)
async def track_suggestion(
    tracking_code: str = Path(..., min_length=5, max_length=50),
    db: AsyncSession = Depends(get_db),
    service: SuggestionService = Depends(get_suggestion_service),
):
    """Public status lookup by tracking code (case-insensitive)"""
    suggestion = await service.get_by_tracking_code(db, tracking_code)
    return PublicSuggestionResponse.model_validate(suggestion)
