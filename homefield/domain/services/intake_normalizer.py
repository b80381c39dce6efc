"""
Intake Normalizer
Turns public form submissions into persisted rows and fires the
onboarding notification without letting either block the submitter
"""
import asyncio
import logging
import re
import uuid
from typing import Any, Dict, Optional

from homefield.core.errors import DownstreamNotificationError, ErrorKind, Result
from homefield.domain.models.intake import IntakeOutcome, OnboardingSubmission, VslSubmission
from homefield.infrastructure.webhooks.n8n import WorkflowWebhookClient

logger = logging.getLogger(__name__)

AFFIRMATIVE = "Yes"
SLUG_MAX_LENGTH = 50
PENDING_ONBOARDING = "pending"

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")

# Free-text fields where an empty string means "not provided"
_BLANK_AS_NULL = ("business_ein", "image_sharing_url", "questions")


def slugify(name: Optional[str]) -> str:
    """Lowercase, hyphen-separated, at most 50 characters."""
    if not name:
        return ""
    slug = _NON_ALPHANUMERIC.sub("-", name.lower()).strip("-")
    # Truncation can expose a trailing hyphen
    return slug[:SLUG_MAX_LENGTH].rstrip("-")


def is_affirmative(value: Optional[str]) -> bool:
    """Exact, case-sensitive comparison against "Yes"."""
    return value == AFFIRMATIVE


def normalize_onboarding(submission: OnboardingSubmission) -> Dict[str, Any]:
    """
    Map an onboarding submission to an agency_clients row.

    Every column is present; absent fields are explicit None.
    """
    record = submission.model_dump(by_alias=False, exclude={"onboarding_call_booked"})
    for field in _BLANK_AS_NULL:
        if not record.get(field):
            record[field] = None

    record["onboarding_call_booked"] = is_affirmative(submission.onboarding_call_booked)
    record["onboarding_status"] = PENDING_ONBOARDING
    return record


def build_onboarding_notification(client_id: str, submission: OnboardingSubmission) -> Dict[str, Any]:
    owner_name = " ".join(part for part in (submission.first_name, submission.last_name) if part)
    return {
        "clientId": client_id,
        "companyName": submission.legal_business_name,
        "companySlug": slugify(submission.legal_business_name),
        "ownerName": owner_name,
        "email": submission.email_for_notifications,
        "phone": submission.cell_phone_for_notifications,
        "city": submission.city,
        "state": submission.state,
        "timeZone": submission.time_zone,
        "onboardingCallBooked": is_affirmative(submission.onboarding_call_booked),
    }


def normalize_vsl(submission: VslSubmission) -> Dict[str, Any]:
    """Map a VSL confirmation to a vsl_submissions row."""
    return {
        "type": submission.type,
        "name": submission.name,
        "email": submission.email,
        "business_name": submission.business_name or None,
        "service_type": submission.service_type or None,
        "service_area": submission.service_area or None,
        "current_leads": submission.current_leads or None,
        "phone": submission.phone or None,
        "submitted_at": submission.timestamp,
    }


class IntakeService:
    """
    Orchestrates public submissions.

    Each step returns a Result. Persistence failures fall back to a locally
    generated id; notification failures are logged. Neither is surfaced to
    the submitter.
    """

    def __init__(self, supabase: Optional[Any], notifier: Optional[WorkflowWebhookClient] = None):
        self.supabase = supabase
        self.notifier = notifier

    async def submit_onboarding(self, submission: OnboardingSubmission) -> IntakeOutcome:
        record = normalize_onboarding(submission)

        persisted = await self._insert("agency_clients", record)
        if persisted.ok and persisted.value:
            client_id = persisted.value
        else:
            client_id = str(uuid.uuid4())
            logger.error(f"Onboarding insert failed, continuing with local id {client_id}: {persisted.message}")

        notified = await self._notify(build_onboarding_notification(client_id, submission))
        if not notified.ok:
            logger.error(f"Onboarding webhook failed for client {client_id}: {notified.message}")

        return IntakeOutcome(client_id=client_id, persisted=persisted.ok, notified=notified.ok)

    async def submit_vsl(self, submission: VslSubmission) -> Result:
        result = await self._insert("vsl_submissions", normalize_vsl(submission))
        if not result.ok:
            logger.error(f"VSL submission insert failed: {result.message}")
        return result

    async def _insert(self, table: str, record: Dict[str, Any]) -> Result:
        if self.supabase is None:
            return Result.failure(ErrorKind.BACKEND_UNAVAILABLE, "Supabase is not configured")

        try:
            response = await asyncio.to_thread(
                lambda: self.supabase.table(table).insert(record).execute()
            )
        except Exception as e:
            return Result.failure(ErrorKind.BACKEND_UNAVAILABLE, str(e))

        if not response.data:
            return Result.failure(ErrorKind.BACKEND_UNAVAILABLE, f"Insert into {table} returned no row")
        return Result.success(response.data[0].get("id"))

    async def _notify(self, payload: Dict[str, Any]) -> Result:
        if self.notifier is None:
            return Result.failure(ErrorKind.DOWNSTREAM_NOTIFICATION_FAILED, "No webhook configured")

        try:
            await self.notifier.send(payload)
        except DownstreamNotificationError as e:
            return Result.failure(e.kind, e.message)
        return Result.success()
