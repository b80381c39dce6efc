"""
Tenant Resolver
Maps an authenticated identity to its agency client via direct ownership
or team membership
"""
import logging
from typing import Any, Dict, Optional

from supabase import Client

from homefield.domain.models.tenant import (
    Identity,
    MembershipKind,
    Tenant,
    TenantContext,
)

logger = logging.getLogger(__name__)

TENANTS_TABLE = "agency_clients"
TEAM_MEMBERS_TABLE = "client_team_members"


class TenantLookupFailed(Exception):
    """Store error while resolving a tenant; never leaves this module."""


class TenantResolver:
    """
    Resolves the tenant a caller may act for.

    Lookup order:
    1. agency_clients.auth_user_id == identity (primary owner)
    2. client_team_members.auth_user_id == identity -> parent client
    3. no tenant

    Direct ownership always wins. Soft-deleted tenants are never returned.
    Store errors are logged and reported as "no tenant", so callers default
    to deny.
    """

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def resolve(self, identity: Optional[Identity]) -> Optional[TenantContext]:
        if identity is None:
            return None

        try:
            return self._resolve(identity)
        except TenantLookupFailed as e:
            logger.warning(f"Tenant lookup for user {identity.id[:8]}... failed, treating as no tenant: {e}")
            return None

    def _resolve(self, identity: Identity) -> Optional[TenantContext]:
        owned = self._first(
            self.supabase.table(TENANTS_TABLE).select("*").eq("auth_user_id", identity.id).limit(1)
        )
        if owned is not None:
            if owned.get("deleted_at") is None:
                return TenantContext(tenant=Tenant.from_row(owned), membership=MembershipKind.PRIMARY)
            return None

        membership = self._first(
            self.supabase.table(TEAM_MEMBERS_TABLE).select("client_id").eq("auth_user_id", identity.id).limit(1)
        )
        if membership is None or not membership.get("client_id"):
            return None

        parent = self._first(
            self.supabase.table(TENANTS_TABLE).select("*").eq("id", membership["client_id"]).limit(1)
        )
        if parent is None or parent.get("deleted_at") is not None:
            return None
        return TenantContext(tenant=Tenant.from_row(parent), membership=MembershipKind.TEAM_MEMBER)

    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        """Point lookup by id, regardless of soft-delete state."""
        try:
            row = self._first(self.supabase.table(TENANTS_TABLE).select("*").eq("id", tenant_id).limit(1))
        except TenantLookupFailed as e:
            logger.warning(f"Tenant {tenant_id} lookup failed: {e}")
            return None
        return Tenant.from_row(row) if row is not None else None

    @staticmethod
    def _first(query: Any) -> Optional[Dict[str, Any]]:
        try:
            response = query.execute()
        except Exception as e:
            raise TenantLookupFailed(str(e)) from e
        return response.data[0] if response.data else None
