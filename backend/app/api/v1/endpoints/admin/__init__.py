"""
Staff API endpoints for the InnoVoice dashboard.
Everything except /verify requires the X-Admin-Password header.
"""
from fastapi import APIRouter

from app.api.v1.endpoints.admin import session, suggestions, stats, activity_logs

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

admin_router.include_router(session.router, tags=["Admin Session"])
admin_router.include_router(suggestions.router, prefix="/suggestions", tags=["Admin Suggestions"])
admin_router.include_router(stats.router, tags=["Admin Stats"])
admin_router.include_router(activity_logs.router, prefix="/activity-logs", tags=["Admin Activity Logs"])
