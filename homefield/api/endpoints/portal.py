"""
Portal Endpoints
Tenant-scoped views for agency clients and their team members
"""
import logging
from typing import Any, Dict, Optional, Type

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel

from homefield.api.dependencies import get_accessor, get_current_tenant, get_metrics_aggregator
from homefield.core.errors import BackendUnavailableError, InvalidInputError
from homefield.domain.models.portal import Appointment, ConversationMessage, Lead, MetricsRecord, Payment
from homefield.domain.models.tenant import TenantContext
from homefield.domain.services.metrics_aggregator import MetricsAggregator
from homefield.domain.services.tenant_data import MAX_PAGE_SIZE, TenantScopedAccessor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portal", tags=["portal"])

# Fields a tenant may change on its own leads
WRITABLE_PORTAL_LEAD_FIELDS = {
    "status": str,
    "notes": str,
}


def _list_or_empty(
    accessor: TenantScopedAccessor,
    collection: str,
    model: Type[BaseModel],
    tenant_id: str,
    filters: Optional[Dict[str, Any]] = None,
    limit: int = 50,
    offset: int = 0,
) -> Dict[str, Any]:
    """Tenant list read; a store failure degrades to an empty page."""
    try:
        page = accessor.list(collection, tenant_id, filters=filters, limit=limit, offset=offset)
    except BackendUnavailableError as e:
        logger.warning(f"Returning empty {collection} for tenant {tenant_id}: {e.message}")
        return {collection: [], "count": 0}
    return {
        collection: [model.model_validate(row).model_dump() for row in page.rows],
        "count": page.count or 0,
    }


@router.get("/me")
async def get_me(tenant: TenantContext = Depends(get_current_tenant)):
    """Resolved tenant and how the caller reached it."""
    return {
        "client": tenant.tenant.model_dump(),
        "membership": tenant.membership.value,
        "isAdmin": tenant.tenant.is_admin,
    }


@router.get("/dashboard", response_model=MetricsRecord)
async def get_dashboard(
    tenant: TenantContext = Depends(get_current_tenant),
    aggregator: MetricsAggregator = Depends(get_metrics_aggregator),
):
    return await aggregator.aggregate_one(tenant.tenant_id)


@router.get("/leads")
async def list_leads(
    status: Optional[str] = None,
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    tenant: TenantContext = Depends(get_current_tenant),
    accessor: TenantScopedAccessor = Depends(get_accessor),
):
    return _list_or_empty(accessor, "leads", Lead, tenant.tenant_id, {"status": status}, limit, offset)


@router.get("/leads/{lead_id}")
async def get_lead(
    lead_id: str,
    tenant: TenantContext = Depends(get_current_tenant),
    accessor: TenantScopedAccessor = Depends(get_accessor),
):
    lead = accessor.get("leads", tenant.tenant_id, lead_id)
    return {"lead": Lead.model_validate(lead).model_dump()}


@router.patch("/leads/{lead_id}")
async def update_lead(
    lead_id: str,
    payload: Dict[str, Any] = Body(...),
    tenant: TenantContext = Depends(get_current_tenant),
    accessor: TenantScopedAccessor = Depends(get_accessor),
):
    """Update status or notes on one of the tenant's leads."""
    try:
        lead = accessor.update("leads", tenant.tenant_id, lead_id, payload, WRITABLE_PORTAL_LEAD_FIELDS)
    except ValueError:
        raise InvalidInputError("No valid fields")
    return {"lead": Lead.model_validate(lead).model_dump()}


@router.get("/appointments")
async def list_appointments(
    status: Optional[str] = None,
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    tenant: TenantContext = Depends(get_current_tenant),
    accessor: TenantScopedAccessor = Depends(get_accessor),
):
    return _list_or_empty(accessor, "appointments", Appointment, tenant.tenant_id, {"status": status}, limit, offset)


@router.get("/billing")
async def list_payments(
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    tenant: TenantContext = Depends(get_current_tenant),
    accessor: TenantScopedAccessor = Depends(get_accessor),
):
    return _list_or_empty(accessor, "payments", Payment, tenant.tenant_id, limit=limit, offset=offset)


@router.get("/conversations")
async def list_conversations(
    lead_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    tenant: TenantContext = Depends(get_current_tenant),
    accessor: TenantScopedAccessor = Depends(get_accessor),
):
    return _list_or_empty(
        accessor, "sms_conversations", ConversationMessage, tenant.tenant_id, {"lead_id": lead_id}, limit, offset
    )
