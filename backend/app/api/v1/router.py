from fastapi import APIRouter
from app.api.v1.endpoints import suggestions
from app.api.v1.endpoints.admin import admin_router

api_router = APIRouter()


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Liveness check for the load balancer"""
    return {"status": "healthy", "service": "innovoice-backend"}


api_router.include_router(suggestions.router)
api_router.include_router(admin_router)
