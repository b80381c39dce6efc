"""
Admin Endpoints
Agency-wide client overview, client removal and portal invitations
Requires admin role
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from supabase import Client

from homefield.api.dependencies import (
    get_accessor,
    get_current_identity,
    get_metrics_aggregator,
    get_store,
    get_tenant_resolver,
    require_admin,
)
from homefield.core.config import Settings, get_settings
from homefield.core.errors import BackendUnavailableError, InvalidInputError, NotFoundError
from homefield.domain.models.tenant import Identity, TenantContext
from homefield.domain.services.authorization import Operation, authorize
from homefield.domain.services.metrics_aggregator import MetricsAggregator
from homefield.domain.services.tenant_data import TENANTS_TABLE, TenantScopedAccessor
from homefield.domain.services.tenant_resolver import TenantResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portal/admin", tags=["admin"])


@router.get("")
async def list_clients(
    admin: TenantContext = Depends(require_admin),
    accessor: TenantScopedAccessor = Depends(get_accessor),
    aggregator: MetricsAggregator = Depends(get_metrics_aggregator),
):
    """
    All active clients with their metrics, newest first.

    Soft-deleted clients are excluded.
    """
    try:
        tenants = accessor.list_active_tenants()
    except Exception as e:
        logger.error(f"Failed to list clients: {e}")
        return {"clients": []}

    metrics = await aggregator.aggregate(tenant.id for tenant in tenants)
    return {
        "clients": [
            {**tenant.model_dump(), **metrics[tenant.id].model_dump()}
            for tenant in tenants
        ]
    }


@router.delete("/clients/{client_id}")
async def delete_client(
    client_id: str,
    admin: TenantContext = Depends(require_admin),
    identity: Identity = Depends(get_current_identity),
    resolver: TenantResolver = Depends(get_tenant_resolver),
    accessor: TenantScopedAccessor = Depends(get_accessor),
):
    """
    Soft-delete a client. Leads, appointments and payments are kept.

    Raises:
        NotFoundError: If the client does not exist
        InvalidInputError: If the admin targets their own account
    """
    target = resolver.get_tenant(client_id)
    authorize(
        identity,
        caller_tenant=admin.tenant,
        target_id=client_id,
        target=target,
        operation=Operation.DELETE_TENANT,
    ).raise_for_denial()

    soft = accessor.soft_delete_tenant(client_id)
    logger.info(f"Client {client_id} deleted by admin {admin.tenant_id} (soft={soft})")
    return {"success": True}


@router.post("/invite")
async def invite_client(
    payload: Dict[str, Any] = Body(...),
    admin: TenantContext = Depends(require_admin),
    resolver: TenantResolver = Depends(get_tenant_resolver),
    supabase: Client = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """
    Invite a client to the portal by email and link the new auth user to
    the client record.
    """
    client_id: Optional[str] = payload.get("clientId")
    if not client_id:
        raise InvalidInputError("clientId is required")

    client = resolver.get_tenant(client_id)
    if client is None:
        raise NotFoundError("Client not found")
    if client.auth_user_id:
        raise InvalidInputError("Client already has an account")

    email = client.email_for_notifications or client.business_email_for_leads
    if not email:
        raise InvalidInputError("Client has no email address")

    try:
        invite = supabase.auth.admin.invite_user_by_email(
            email,
            options={
                "redirect_to": f"{settings.site_url}/portal/dashboard",
                "data": {
                    "agency_client_id": client.id,
                    "first_name": client.first_name,
                },
            },
        )
    except Exception as e:
        logger.error(f"Invite for client {client_id} failed: {e}")
        raise BackendUnavailableError(getattr(e, "message", None) or str(e)) from e

    if invite and invite.user:
        try:
            supabase.table(TENANTS_TABLE).update({"auth_user_id": str(invite.user.id)}).eq("id", client.id).execute()
        except Exception as e:
            logger.error(f"Invited {email} but failed to link client {client_id}: {e}")

    logger.info(f"Invited client {client_id} at {email}")
    return {"success": True, "email": email}
