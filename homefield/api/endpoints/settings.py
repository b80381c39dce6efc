"""
Settings Endpoints
Self-service notification preferences for the caller's own client record
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from homefield.api.dependencies import get_accessor, get_current_identity
from homefield.core.errors import InvalidInputError
from homefield.domain.models.tenant import Identity
from homefield.domain.services.tenant_data import TenantScopedAccessor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portal", tags=["settings"])

# Only these columns may be written through this route
NOTIFICATION_FIELDS = {
    "notify_email": bool,
    "notify_sms": bool,
}


@router.patch("/settings")
async def update_settings(
    payload: Dict[str, Any] = Body(...),
    identity: Identity = Depends(get_current_identity),
    accessor: TenantScopedAccessor = Depends(get_accessor),
):
    """
    Update notification preferences.

    Unknown keys are ignored; a body with neither preference is a 400.
    """
    try:
        updated = accessor.update_tenant_by_owner(identity.id, payload, NOTIFICATION_FIELDS)
    except ValueError:
        raise InvalidInputError("No valid fields")

    logger.info(f"Notification settings updated for user {identity.id[:8]}...: {updated}")
    return updated
