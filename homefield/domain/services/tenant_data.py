"""
Tenant-Scoped Data Accessor
Reads and writes against tenant-partitioned collections, always filtered
by client_id
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel
from supabase import Client

from homefield.core.errors import BackendUnavailableError, NotFoundError
from homefield.domain.models.tenant import Tenant
from homefield.utils.tenant_filter import apply_tenant_filter, project_allowed

logger = logging.getLogger(__name__)

TENANTS_TABLE = "agency_clients"

# Collections partitioned by client_id
TENANT_SCOPED_COLLECTIONS = frozenset({
    "leads",
    "appointments",
    "payments",
    "sms_conversations",
    "client_team_members",
})

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


class Page(BaseModel):
    rows: List[Dict[str, Any]]
    count: Optional[int] = None


def _error_message(error: Exception) -> str:
    # postgrest APIError keeps the server message on .message
    return getattr(error, "message", None) or str(error)


class TenantScopedAccessor:
    """
    Generic list/get/update/delete over tenant-partitioned collections.

    Every query carries the tenant filter; asking for an unscoped
    collection or omitting the tenant id raises immediately.
    """

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _scoped(self, collection: str, query: Any, tenant_id: str) -> Any:
        if collection not in TENANT_SCOPED_COLLECTIONS:
            raise ValueError(f"{collection} is not a tenant-scoped collection")
        return apply_tenant_filter(query, tenant_id)

    def list(
        self,
        collection: str,
        tenant_id: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: str = "created_at",
        descending: bool = True,
        limit: Optional[int] = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> Page:
        """
        List rows for one tenant.

        Args:
            collection: Table name (must be tenant-scoped)
            tenant_id: Tenant id applied as client_id filter
            filters: Extra equality filters; None values are skipped
            order_by: Column to order by
            descending: Newest first by default
            limit: Page size (capped at MAX_PAGE_SIZE); None for no paging
            offset: Rows to skip

        Raises:
            BackendUnavailableError: If the store rejects the query
        """
        query = self.supabase.table(collection).select("*", count="exact")
        query = self._scoped(collection, query, tenant_id)
        for column, value in (filters or {}).items():
            if value is not None:
                query = query.eq(column, value)
        query = query.order(order_by, desc=descending)
        if limit is not None:
            limit = max(1, min(limit, MAX_PAGE_SIZE))
            offset = max(0, offset)
            query = query.range(offset, offset + limit - 1)

        try:
            response = query.execute()
        except Exception as e:
            logger.error(f"List {collection} for tenant {tenant_id} failed: {e}")
            raise BackendUnavailableError(f"Failed to fetch {collection}") from e

        return Page(rows=response.data or [], count=response.count)

    def get(self, collection: str, tenant_id: str, record_id: str) -> Dict[str, Any]:
        query = self.supabase.table(collection).select("*").eq("id", record_id)
        query = self._scoped(collection, query, tenant_id).limit(1)
        try:
            response = query.execute()
        except Exception as e:
            raise BackendUnavailableError(f"Failed to fetch {collection}") from e

        if not response.data:
            raise NotFoundError("Record not found")
        return response.data[0]

    def update(
        self,
        collection: str,
        tenant_id: str,
        record_id: str,
        values: Mapping[str, Any],
        allowed_fields: Mapping[str, type],
    ) -> Dict[str, Any]:
        updates = project_allowed(values, allowed_fields)
        if not updates:
            raise ValueError("No writable fields supplied")

        query = self.supabase.table(collection).update(updates).eq("id", record_id)
        query = self._scoped(collection, query, tenant_id)
        try:
            response = query.execute()
        except Exception as e:
            raise BackendUnavailableError(f"Failed to update {collection}") from e

        if not response.data:
            raise NotFoundError("Record not found")
        return response.data[0]

    def delete(self, collection: str, tenant_id: str, record_id: str) -> None:
        query = self.supabase.table(collection).delete().eq("id", record_id)
        query = self._scoped(collection, query, tenant_id)
        try:
            response = query.execute()
        except Exception as e:
            raise BackendUnavailableError(f"Failed to delete from {collection}") from e

        if not response.data:
            raise NotFoundError("Record not found")

    # ------------------------------------------------------------------
    # agency_clients rows (the tenants themselves)
    # ------------------------------------------------------------------

    def update_tenant_by_owner(
        self,
        auth_user_id: str,
        payload: Mapping[str, Any],
        allowed_fields: Mapping[str, type],
    ) -> Dict[str, Any]:
        """
        Self-service update of the caller's own tenant row.

        Only allow-listed fields are written; a soft-deleted tenant is
        treated as absent.

        Raises:
            ValueError: If nothing writable was supplied
            NotFoundError: If the caller owns no active tenant
            BackendUnavailableError: If the store rejects the update
        """
        updates = project_allowed(payload, allowed_fields)
        if not updates:
            raise ValueError("No valid fields")

        try:
            response = (
                self.supabase.table(TENANTS_TABLE)
                .update(updates)
                .eq("auth_user_id", auth_user_id)
                .is_("deleted_at", "null")
                .execute()
            )
        except Exception as e:
            raise BackendUnavailableError(_error_message(e)) from e

        if not response.data:
            raise NotFoundError("Client not found")
        row = response.data[0]
        return {field: row.get(field) for field in allowed_fields}

    def list_active_tenants(self) -> List[Tenant]:
        """All tenants without a deletion timestamp, newest first."""
        response = (
            self.supabase.table(TENANTS_TABLE)
            .select("*")
            .is_("deleted_at", "null")
            .order("created_at", desc=True)
            .execute()
        )
        return [Tenant.from_row(row) for row in response.data or []]

    def soft_delete_tenant(self, tenant_id: str) -> bool:
        """
        Mark a tenant deleted, falling back to a hard delete of the tenant
        row when the schema has no deleted_at column. Dependent rows are
        never touched.

        Returns:
            True for a soft delete, False when the hard-delete fallback ran

        Raises:
            BackendUnavailableError: If neither delete succeeds
        """
        deleted_at = datetime.now(timezone.utc).isoformat()
        try:
            self.supabase.table(TENANTS_TABLE).update({"deleted_at": deleted_at}).eq("id", tenant_id).execute()
            return True
        except Exception as e:
            message = _error_message(e)
            if "deleted_at" not in message:
                raise BackendUnavailableError(message) from e
            logger.warning(f"deleted_at unavailable, hard-deleting tenant {tenant_id}: {message}")

        try:
            self.supabase.table(TENANTS_TABLE).delete().eq("id", tenant_id).execute()
        except Exception as e:
            raise BackendUnavailableError(_error_message(e)) from e
        return False
