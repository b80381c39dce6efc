"""
Health Endpoint
"""
from fastapi import APIRouter, Depends

from homefield.core.config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Liveness plus which integrations are configured."""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "supabase_configured": bool(settings.supabase_url and settings.supabase_service_key),
        "vapi_configured": bool(settings.vapi_api_key and settings.roofing_assistant_id),
        "notion_configured": bool(settings.notion_api_token),
    }
