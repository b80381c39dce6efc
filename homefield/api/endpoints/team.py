"""
Team Endpoints
Lets a primary client review and remove its team members
"""
import logging

from fastapi import APIRouter, Depends

from homefield.api.dependencies import get_accessor, require_primary_tenant
from homefield.core.errors import NotFoundError
from homefield.domain.models.tenant import TeamMember, TenantContext
from homefield.domain.services.tenant_data import TenantScopedAccessor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portal/team", tags=["team"])

TEAM_COLLECTION = "client_team_members"


@router.get("")
async def list_team(
    tenant: TenantContext = Depends(require_primary_tenant),
    accessor: TenantScopedAccessor = Depends(get_accessor),
):
    """Members of the caller's tenant, oldest first."""
    page = accessor.list(TEAM_COLLECTION, tenant.tenant_id, descending=False, limit=None)
    return {"members": [TeamMember(**row).model_dump() for row in page.rows]}


@router.delete("/{member_id}")
async def remove_team_member(
    member_id: str,
    tenant: TenantContext = Depends(require_primary_tenant),
    accessor: TenantScopedAccessor = Depends(get_accessor),
):
    """
    Remove a team member.

    The delete is scoped to the caller's tenant, so a member of another
    tenant is reported as not found.
    """
    try:
        accessor.delete(TEAM_COLLECTION, tenant.tenant_id, member_id)
    except NotFoundError:
        raise NotFoundError("Team member not found")

    logger.info(f"Removed team member {member_id} from client {tenant.tenant_id}")
    return {"success": True}
