"""
Metrics Aggregator
Folds per-tenant lead, appointment and payment reads into MetricsRecord
"""
import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from supabase import Client

from homefield.domain.models.portal import AppointmentStatus, MetricsRecord, PaymentStatus
from homefield.utils.tenant_filter import apply_tenant_filter

logger = logging.getLogger(__name__)

T = TypeVar("T")


def compute_show_rate(showed: int, appointments: int) -> float:
    """Percentage of appointments attended; 0 when there are none."""
    if appointments <= 0:
        return 0.0
    rate = (showed / appointments) * 100
    return max(0.0, min(100.0, rate))


def compute_total_charged(payments: Iterable[Dict[str, Any]]) -> float:
    """Sum of succeeded payments in major units (amount_cents / 100)."""
    total_cents = sum(
        (payment.get("amount_cents") or 0)
        for payment in payments
        if payment.get("status") == PaymentStatus.SUCCEEDED.value
    )
    return total_cents / 100


class MetricsAggregator:
    """
    Computes MetricsRecord for one or many tenants.

    Per tenant, five independent reads are issued concurrently:
    - lead count
    - appointment count
    - showed appointment count
    - succeeded payment amounts
    - most recent lead timestamp

    A failed read only zeroes its own field; it never aborts the tenant or
    the batch.
    """

    def __init__(self, supabase: Client):
        self.supabase = supabase

    async def aggregate(self, tenant_ids: Iterable[str]) -> Dict[str, MetricsRecord]:
        unique_ids = list(dict.fromkeys(tenant_ids))
        records = await asyncio.gather(*(self.aggregate_one(tenant_id) for tenant_id in unique_ids))
        return dict(zip(unique_ids, records))

    async def aggregate_one(self, tenant_id: str) -> MetricsRecord:
        lead_count, appointment_count, showed_count, payments, last_lead_at = await asyncio.gather(
            self._guarded(tenant_id, "lead_count", 0, lambda: self._count("leads", tenant_id)),
            self._guarded(tenant_id, "appointment_count", 0, lambda: self._count("appointments", tenant_id)),
            self._guarded(
                tenant_id,
                "showed_count",
                0,
                lambda: self._count("appointments", tenant_id, status=AppointmentStatus.SHOWED.value),
            ),
            self._guarded(tenant_id, "payments", [], lambda: self._succeeded_payments(tenant_id)),
            self._guarded(tenant_id, "last_lead_at", None, lambda: self._last_lead_at(tenant_id)),
        )

        return MetricsRecord(
            lead_count=lead_count,
            appointment_count=appointment_count,
            show_rate=compute_show_rate(showed_count, appointment_count),
            total_charged=compute_total_charged(payments),
            last_lead_at=last_lead_at,
        )

    async def _guarded(self, tenant_id: str, field: str, default: T, read: Callable[[], T]) -> T:
        try:
            return await asyncio.to_thread(read)
        except Exception as e:
            logger.warning(f"Metrics read '{field}' failed for tenant {tenant_id}, using default: {e}")
            return default

    def _count(self, table: str, tenant_id: str, status: Optional[str] = None) -> int:
        query = self.supabase.table(table).select("id", count="exact", head=True)
        query = apply_tenant_filter(query, tenant_id)
        if status is not None:
            query = query.eq("status", status)
        response = query.execute()
        return response.count or 0

    def _succeeded_payments(self, tenant_id: str) -> List[Dict[str, Any]]:
        query = self.supabase.table("payments").select("amount_cents, status")
        query = apply_tenant_filter(query, tenant_id).eq("status", PaymentStatus.SUCCEEDED.value)
        response = query.execute()
        return response.data or []

    def _last_lead_at(self, tenant_id: str) -> Optional[str]:
        query = self.supabase.table("leads").select("created_at")
        query = apply_tenant_filter(query, tenant_id).order("created_at", desc=True).limit(1)
        response = query.execute()
        return response.data[0].get("created_at") if response.data else None
