"""
Dialer Service
Cold-call queue, dispositions, CSV import and daily statistics over
dialer_leads and dialer_call_history
"""
import logging
import random
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Mapping, Optional

from supabase import Client

from homefield.core.errors import BackendUnavailableError, InvalidInputError, NotFoundError
from homefield.domain.models.dialer import (
    CALLABLE_ATTEMPT_LIMIT,
    CALLABLE_STATUSES,
    CALLBACK_BATCH_LIMIT,
    CONTACT_OUTCOMES,
    CONVERSATION_OUTCOMES,
    EASTERN,
    FINAL_STATUSES,
    QUEUEABLE_STATUSES,
    TIMEZONE_SCHEDULE,
    UNREACHED_OUTCOMES,
    WRITABLE_LEAD_FIELDS,
    DialerOutcome,
    DialerStatus,
    DialerTimezone,
    DispositionRequest,
    ImportResult,
    ImportRow,
    get_et_hour,
    get_schedule_for_hour,
    get_timezone_for_hour,
    timezone_for_state,
)
from homefield.utils.tenant_filter import project_allowed

logger = logging.getLogger(__name__)

LEADS_TABLE = "dialer_leads"
HISTORY_TABLE = "dialer_call_history"
CALL_LOGS_TABLE = "call_logs"
DAILY_STATS_TABLE = "daily_call_stats"

MIN_PHONE_DIGITS = 7
CONVERSATION_REQUEUE_DAYS = 3
CALLBACK_DEFAULT_DAYS = 1

# PostgREST or_() syntax characters; stripped from free-text search
_FILTER_SYNTAX = re.compile(r"[,()]")


def normalize_phone(phone: str) -> str:
    """Digits only, dropping a leading US country code from 11-digit numbers."""
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 11 and digits.startswith("1"):
        return digits[1:]
    return digits


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _end_of_day(now: datetime) -> datetime:
    return now.replace(hour=23, minute=59, second=59, microsecond=999000)


def _note_timestamp(now: datetime) -> str:
    local = now.astimezone(EASTERN)
    hour = local.hour % 12 or 12
    return f"{local:%b} {local.day}, {hour}:{local:%M} {local:%p}"


class DialerService:
    """
    Power-dialer operations.

    Dialer leads are shared across the agency, not partitioned by tenant.
    """

    def __init__(self, supabase: Client, rng: Optional[random.Random] = None):
        self.supabase = supabase
        self.rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Lead CRUD
    # ------------------------------------------------------------------

    def list_leads(
        self,
        status: Optional[str] = None,
        timezone_bucket: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Dict[str, Any]:
        limit = max(1, limit)
        offset = max(0, offset)
        query = (
            self.supabase.table(LEADS_TABLE)
            .select("*", count="exact")
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
        )
        if status:
            query = query.eq("status", status)
        if timezone_bucket:
            query = query.eq("timezone", timezone_bucket)
        if search:
            term = _FILTER_SYNTAX.sub(" ", search).strip()
            if term:
                query = query.or_(
                    f"business_name.ilike.%{term}%,owner_name.ilike.%{term}%,phone_number.ilike.%{term}%"
                )

        try:
            response = query.execute()
        except Exception as e:
            raise BackendUnavailableError(str(e)) from e
        return {"leads": response.data or [], "count": response.count}

    def get_lead(self, lead_id: str) -> Dict[str, Any]:
        try:
            response = self.supabase.table(LEADS_TABLE).select("*").eq("id", lead_id).limit(1).execute()
        except Exception as e:
            raise BackendUnavailableError(str(e)) from e
        if not response.data:
            raise NotFoundError("Lead not found")
        return response.data[0]

    def get_lead_with_history(self, lead_id: str) -> Dict[str, Any]:
        lead = self.get_lead(lead_id)
        try:
            history = (
                self.supabase.table(HISTORY_TABLE)
                .select("*")
                .eq("lead_id", lead_id)
                .order("created_at", desc=True)
                .execute()
            ).data
        except Exception as e:
            logger.warning(f"Call history for lead {lead_id} unavailable: {e}")
            history = []
        return {"lead": lead, "history": history or []}

    def update_lead(self, lead_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        updates = project_allowed(payload, WRITABLE_LEAD_FIELDS)
        if not updates:
            raise InvalidInputError("No valid fields")

        try:
            response = self.supabase.table(LEADS_TABLE).update(updates).eq("id", lead_id).execute()
        except Exception as e:
            raise BackendUnavailableError(str(e)) from e
        if not response.data:
            raise NotFoundError("Lead not found")
        return response.data[0]

    def delete_lead(self, lead_id: str) -> None:
        try:
            self.supabase.table(LEADS_TABLE).delete().eq("id", lead_id).execute()
        except Exception as e:
            raise BackendUnavailableError(str(e)) from e

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    def _count(self, query: Any) -> int:
        try:
            return query.execute().count or 0
        except Exception as e:
            logger.warning(f"Dialer count query failed, using 0: {e}")
            return 0

    def _leads_count(self) -> Any:
        return self.supabase.table(LEADS_TABLE).select("*", count="exact", head=True)

    def _callable_count(self) -> int:
        return self._count(
            self._leads_count().in_("status", CALLABLE_STATUSES).lt("attempt_count", CALLABLE_ATTEMPT_LIMIT)
        )

    def _calls_on(self, day: str) -> int:
        return self._count(
            self.supabase.table(HISTORY_TABLE).select("*", count="exact", head=True).eq("call_date", day)
        )

    def _timezone_breakdown(self) -> Dict[str, int]:
        return {
            bucket.value: self._count(
                self._leads_count()
                .in_("status", QUEUEABLE_STATUSES)
                .eq("timezone", bucket.value)
                .lt("attempt_count", CALLABLE_ATTEMPT_LIMIT)
            )
            for bucket in DialerTimezone
        }

    # ------------------------------------------------------------------
    # Queue and stats
    # ------------------------------------------------------------------

    def build_queue(
        self,
        now: Optional[datetime] = None,
        timezone_bucket: Optional[str] = None,
        limit: int = 50,
    ) -> Dict[str, Any]:
        """
        Current call queue: overdue callbacks first, then queued leads for
        the timezone bucket the cascade schedule points at this hour.
        """
        now = now or _utcnow()
        et_hour = get_et_hour(now)
        current_timezone = timezone_bucket or get_timezone_for_hour(et_hour)
        schedule = get_schedule_for_hour(et_hour)
        today = now.date().isoformat()

        try:
            callbacks = (
                self.supabase.table(LEADS_TABLE)
                .select("*")
                .eq("status", DialerStatus.CALLBACK.value)
                .lte("next_call_at", now.isoformat())
                .lt("attempt_count", CALLABLE_ATTEMPT_LIMIT)
                .order("next_call_at")
                .limit(CALLBACK_BATCH_LIMIT)
                .execute()
            ).data or []

            queue_query = (
                self.supabase.table(LEADS_TABLE)
                .select("*")
                .eq("status", DialerStatus.QUEUED.value)
                .lt("attempt_count", CALLABLE_ATTEMPT_LIMIT)
                .order("attempt_count")
                .order("created_at")
                .limit(max(1, limit))
            )
            if current_timezone:
                queue_query = queue_query.eq("timezone", current_timezone)
            queued = queue_query.execute().data or []

            callbacks_due = (
                self.supabase.table(LEADS_TABLE)
                .select("*")
                .eq("status", DialerStatus.CALLBACK.value)
                .lte("next_call_at", _end_of_day(now).isoformat())
                .lt("attempt_count", CALLABLE_ATTEMPT_LIMIT)
                .order("next_call_at")
                .execute()
            ).data or []
        except Exception as e:
            raise BackendUnavailableError(str(e)) from e

        seen = {lead["id"] for lead in callbacks}
        leads = callbacks + [lead for lead in queued if lead["id"] not in seen]

        return {
            "leads": leads,
            "totalToday": self._callable_count(),
            "completedToday": self._calls_on(today),
            "currentTimezone": current_timezone,
            "currentHourBlock": schedule.label if schedule else None,
            "callbacksDue": callbacks_due,
            "breakdownByTimezone": self._timezone_breakdown(),
        }

    def daily_stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or _utcnow()
        today = now.date().isoformat()

        breakdown = self._timezone_breakdown()
        breakdown_by_hour = [
            {"hour": slot.label, "timezone": slot.timezone.value, "count": breakdown[slot.timezone.value]}
            for slot in TIMEZONE_SCHEDULE
        ]

        try:
            history = (
                self.supabase.table(HISTORY_TABLE).select("outcome").eq("call_date", today).execute()
            ).data or []
        except Exception as e:
            logger.warning(f"Today's outcomes unavailable: {e}")
            history = []

        today_outcomes: Dict[str, int] = {}
        for row in history:
            outcome = row.get("outcome")
            today_outcomes[outcome] = today_outcomes.get(outcome, 0) + 1

        return {
            "totalLeads": self._callable_count(),
            "completedToday": self._calls_on(today),
            "callbacksDueToday": self._count(
                self._leads_count()
                .eq("status", DialerStatus.CALLBACK.value)
                .lte("next_call_at", _end_of_day(now).isoformat())
            ),
            "breakdownByTimezone": breakdown,
            "breakdownByHour": breakdown_by_hour,
            "todayOutcomes": today_outcomes,
            "totalDemos": self._count(self._leads_count().eq("demo_booked", True)),
            "totalCompleted": self._count(self._leads_count().eq("status", DialerStatus.COMPLETED.value)),
            "totalArchived": self._count(self._leads_count().eq("status", DialerStatus.ARCHIVED.value)),
        }

    # ------------------------------------------------------------------
    # Dispositions
    # ------------------------------------------------------------------

    def record_disposition(self, request: DispositionRequest, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Apply a call outcome to a lead and log it.

        Raises:
            InvalidInputError: leadId or outcome missing
            NotFoundError: lead does not exist
            BackendUnavailableError: lead update failed
        """
        if not request.lead_id or request.outcome is None:
            raise InvalidInputError("leadId and outcome are required")

        now = now or _utcnow()
        lead = self.get_lead(request.lead_id)
        outcome = DialerOutcome(request.outcome).value

        attempt_count = (lead.get("attempt_count") or 0) + 1
        max_attempts = lead.get("max_attempts") or CALLABLE_ATTEMPT_LIMIT
        exhausted = attempt_count >= max_attempts

        update: Dict[str, Any] = {
            "attempt_count": attempt_count,
            "last_called_at": now.isoformat(),
            "last_outcome": outcome,
            "next_call_at": None,
        }

        if outcome in UNREACHED_OUTCOMES:
            delay = timedelta(days=2 + self.rng.random())
            update["status"] = DialerStatus.ARCHIVED.value if exhausted else DialerStatus.QUEUED.value
            update["next_call_at"] = (now + delay).isoformat()
        elif outcome == DialerOutcome.CONVERSATION.value:
            update["status"] = DialerStatus.ARCHIVED.value if exhausted else DialerStatus.QUEUED.value
            update["next_call_at"] = (now + timedelta(days=CONVERSATION_REQUEUE_DAYS)).isoformat()
        elif outcome == DialerOutcome.DEMO_BOOKED.value:
            update["status"] = DialerStatus.COMPLETED.value
            update["demo_booked"] = True
            update["demo_date"] = request.demo_date
        elif outcome == DialerOutcome.NOT_INTERESTED.value:
            update["status"] = DialerStatus.COMPLETED.value
            update["not_interested"] = True
        elif outcome == DialerOutcome.WRONG_NUMBER.value:
            update["status"] = DialerStatus.COMPLETED.value
            update["wrong_number"] = True
        elif outcome == DialerOutcome.CALLBACK.value:
            update["status"] = DialerStatus.CALLBACK.value
            update["next_call_at"] = request.callback_at or (
                now + timedelta(days=CALLBACK_DEFAULT_DAYS)
            ).isoformat()

        entry = f"[{_note_timestamp(now)}] {outcome}"
        if request.notes:
            entry = f"{entry}: {request.notes}"
        update["notes"] = f"{lead['notes']}\n{entry}" if lead.get("notes") else entry

        try:
            self.supabase.table(LEADS_TABLE).update(update).eq("id", request.lead_id).execute()
        except Exception as e:
            raise BackendUnavailableError(str(e)) from e

        self._log_history(request, outcome, attempt_count, now)
        self._log_call(lead, request, outcome)
        self._bump_daily_stats(outcome, now)

        return {"success": True, "newStatus": update["status"], "attemptCount": attempt_count}

    def _log_history(self, request: DispositionRequest, outcome: str, attempt_number: int, now: datetime) -> None:
        try:
            self.supabase.table(HISTORY_TABLE).insert({
                "lead_id": request.lead_id,
                "attempt_number": attempt_number,
                "outcome": outcome,
                "notes": request.notes or None,
                "demo_date": request.demo_date or None,
                "callback_at": request.callback_at or None,
                "call_date": now.date().isoformat(),
            }).execute()
        except Exception as e:
            logger.error(f"Failed to log call history for lead {request.lead_id}: {e}")

    def _log_call(self, lead: Dict[str, Any], request: DispositionRequest, outcome: str) -> None:
        # call_logs feeds the legacy cold-call dashboard
        try:
            self.supabase.table(CALL_LOGS_TABLE).insert({
                "business_name": lead.get("business_name"),
                "phone_number": lead.get("phone_number"),
                "contact_made": outcome in CONTACT_OUTCOMES,
                "conversation": outcome in CONVERSATION_OUTCOMES,
                "demo_booked": outcome == DialerOutcome.DEMO_BOOKED.value,
                "outcome": outcome,
                "notes": request.notes or None,
                "lead_id": request.lead_id,
            }).execute()
        except Exception as e:
            logger.error(f"Failed to write call log for lead {request.lead_id}: {e}")

    def _bump_daily_stats(self, outcome: str, now: datetime) -> None:
        today = now.date().isoformat()
        contact = 1 if outcome in CONTACT_OUTCOMES else 0
        conversation = 1 if outcome in CONVERSATION_OUTCOMES else 0
        demo = 1 if outcome == DialerOutcome.DEMO_BOOKED.value else 0

        try:
            existing = (
                self.supabase.table(DAILY_STATS_TABLE).select("*").eq("call_date", today).limit(1).execute()
            ).data
            if existing:
                row = existing[0]
                self.supabase.table(DAILY_STATS_TABLE).update({
                    "total_dials": (row.get("total_dials") or 0) + 1,
                    "contacts": (row.get("contacts") or 0) + contact,
                    "conversations": (row.get("conversations") or 0) + conversation,
                    "demos_booked": (row.get("demos_booked") or 0) + demo,
                }).eq("call_date", today).execute()
            else:
                self.supabase.table(DAILY_STATS_TABLE).insert({
                    "call_date": today,
                    "total_dials": 1,
                    "contacts": contact,
                    "conversations": conversation,
                    "demos_booked": demo,
                }).execute()
        except Exception as e:
            logger.error(f"Failed to update daily call stats for {today}: {e}")

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_leads(
        self,
        rows: Iterable[ImportRow],
        batch_name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ImportResult:
        """
        Import CSV rows, deduplicating on normalized phone number.

        Existing leads are refreshed unless already completed or archived;
        both cases count as duplicates.
        """
        batch = batch_name or (now or _utcnow()).isoformat()
        result = ImportResult()

        for row in rows:
            label = row.business_name or "unknown"
            if not row.phone_number:
                result.errors.append(f"Skipped lead with no phone number: {label}")
                continue

            phone = normalize_phone(row.phone_number)
            if len(phone) < MIN_PHONE_DIGITS:
                result.errors.append(f"Invalid phone number for {label}: {row.phone_number}")
                continue

            fields = {
                "state": _clean(row.state),
                "business_name": _clean(row.business_name),
                "owner_name": _clean(row.owner_name),
                "first_name": _clean(row.first_name),
                "website": _clean(row.website),
                "timezone": timezone_for_state(row.state),
            }

            try:
                existing = (
                    self.supabase.table(LEADS_TABLE)
                    .select("id, status")
                    .eq("phone_number", phone)
                    .limit(1)
                    .execute()
                ).data
            except Exception as e:
                result.errors.append(f"Error importing {label}: {e}")
                continue

            if existing:
                result.duplicates += 1
                if existing[0].get("status") in FINAL_STATUSES:
                    continue
                refresh = {key: value for key, value in fields.items() if value}
                if refresh:
                    try:
                        self.supabase.table(LEADS_TABLE).update(refresh).eq("id", existing[0]["id"]).execute()
                    except Exception as e:
                        result.errors.append(f"Error updating {label}: {e}")
                        continue
                result.updated += 1
                continue

            try:
                self.supabase.table(LEADS_TABLE).insert({
                    **fields,
                    "phone_number": phone,
                    "import_batch": batch,
                }).execute()
            except Exception as e:
                message = getattr(e, "message", None) or str(e)
                if "unique" in message:
                    result.duplicates += 1
                else:
                    result.errors.append(f"Error importing {label}: {message}")
                continue
            result.imported += 1

        return result


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None
