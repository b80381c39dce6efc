"""
Tenant Filter Utility
Shared helpers for tenant filtering and write allow-lists on Supabase queries
"""
from typing import Any, Dict, Mapping, Optional


TENANT_COLUMN = "client_id"


class MissingTenantFilterError(ValueError):
    """A tenant-partitioned query was built without a tenant id."""


def apply_tenant_filter(query: Any, tenant_id: Optional[str], column: str = TENANT_COLUMN) -> Any:
    """
    Apply tenant filtering to a Supabase query.

    Args:
        query: Supabase query builder (from supabase.table(...).select(...))
        tenant_id: Tenant the caller resolved to
        column: Name of the tenant column (default: "client_id")

    Returns:
        Query with ``column = tenant_id`` applied

    Raises:
        MissingTenantFilterError: If tenant_id is empty. Admin-wide reads
        iterate tenants explicitly instead of skipping the filter.
    """
    if not tenant_id:
        raise MissingTenantFilterError(f"Refusing to query without a {column} filter")
    return query.eq(column, tenant_id)


def project_allowed(payload: Mapping[str, Any], allowed: Mapping[str, type]) -> Dict[str, Any]:
    """
    Keep only allow-listed keys whose values have the declared type.

    Keys outside ``allowed`` are dropped, as are values of the wrong type
    (``bool`` is not accepted where ``int`` is declared). ``None`` is kept
    for non-boolean fields so callers can clear a column.
    """
    projected: Dict[str, Any] = {}
    for key, expected in allowed.items():
        if key not in payload:
            continue
        value = payload[key]
        if value is None and expected is not bool:
            projected[key] = None
        elif expected is int and isinstance(value, bool):
            continue
        elif isinstance(value, expected):
            projected[key] = value
    return projected
