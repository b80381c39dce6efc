"""
Dialer Domain Models
Cold-call queue leads, call history and the timezone cascade schedule
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Set

import pytz
from pydantic import BaseModel, ConfigDict


class DialerTimezone(str, Enum):
    ET = "ET"
    CT = "CT"
    MT = "MT"
    PT = "PT"


class DialerStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    CALLBACK = "callback"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class DialerOutcome(str, Enum):
    """Disposition logged by the caller after a dial"""
    NO_ANSWER = "no_answer"
    VOICEMAIL = "voicemail"
    GATEKEEPER = "gatekeeper"
    CONVERSATION = "conversation"
    DEMO_BOOKED = "demo_booked"
    NOT_INTERESTED = "not_interested"
    WRONG_NUMBER = "wrong_number"
    CALLBACK = "callback"


# Leads at or above this attempt count drop out of the callable pool
CALLABLE_ATTEMPT_LIMIT = 5
CALLBACK_BATCH_LIMIT = 20

CALLABLE_STATUSES: List[str] = ["queued", "callback", "in_progress"]
QUEUEABLE_STATUSES: List[str] = ["queued", "callback"]
FINAL_STATUSES: Set[str] = {"completed", "archived"}

# Outcomes re-queued after 2-3 days
UNREACHED_OUTCOMES: Set[str] = {"no_answer", "voicemail", "gatekeeper"}
CONTACT_OUTCOMES: Set[str] = {"conversation", "demo_booked", "callback", "not_interested"}
CONVERSATION_OUTCOMES: Set[str] = {"conversation", "demo_booked"}

# Fields a caller may PATCH on a dialer lead
WRITABLE_LEAD_FIELDS = {
    "status": str,
    "notes": str,
    "next_call_at": str,
    "timezone": str,
    "state": str,
    "business_name": str,
    "owner_name": str,
    "first_name": str,
    "phone_number": str,
    "website": str,
    "demo_booked": bool,
    "demo_date": str,
    "not_interested": bool,
    "wrong_number": bool,
    "max_attempts": int,
}


class DispositionRequest(BaseModel):
    """Body of POST /portal/dialer/disposition"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    lead_id: Optional[str] = None
    outcome: Optional[DialerOutcome] = None
    notes: Optional[str] = None
    demo_date: Optional[str] = None
    callback_at: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "DispositionRequest":
        return cls(
            lead_id=payload.get("leadId"),
            outcome=payload.get("outcome"),
            notes=payload.get("notes"),
            demo_date=payload.get("demoDate"),
            callback_at=payload.get("callbackAt"),
        )


class ImportRow(BaseModel):
    """One CSV row sent to the import endpoint"""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    state: Optional[str] = None
    business_name: Optional[str] = None
    phone_number: Optional[str] = None
    owner_name: Optional[str] = None
    first_name: Optional[str] = None
    website: Optional[str] = None


class ImportResult(BaseModel):
    imported: int = 0
    duplicates: int = 0
    updated: int = 0
    errors: List[str] = []


class ScheduleSlot(BaseModel):
    et_hour: int
    timezone: DialerTimezone
    label: str


# ET hour -> timezone bucket to dial, so every region is reached mid-morning
# and mid-afternoon local time
TIMEZONE_SCHEDULE: List[ScheduleSlot] = [
    ScheduleSlot(et_hour=8, timezone=DialerTimezone.ET, label="8-9 AM ET → Eastern leads"),
    ScheduleSlot(et_hour=9, timezone=DialerTimezone.ET, label="9-10 AM ET → Eastern leads"),
    ScheduleSlot(et_hour=10, timezone=DialerTimezone.CT, label="10-11 AM ET → Central leads (9 AM their time)"),
    ScheduleSlot(et_hour=11, timezone=DialerTimezone.MT, label="11 AM-12 PM ET → Mountain leads (9 AM their time)"),
    ScheduleSlot(et_hour=12, timezone=DialerTimezone.PT, label="12-1 PM ET → Pacific leads (9 AM their time)"),
    ScheduleSlot(et_hour=13, timezone=DialerTimezone.PT, label="1-2 PM ET → Pacific leads (10 AM their time)"),
    ScheduleSlot(et_hour=14, timezone=DialerTimezone.MT, label="2-3 PM ET → Mountain leads (12 PM their time)"),
    ScheduleSlot(et_hour=15, timezone=DialerTimezone.CT, label="3-4 PM ET → Central leads (2 PM their time)"),
    ScheduleSlot(et_hour=16, timezone=DialerTimezone.PT, label="4-5 PM ET → Pacific leads (1 PM their time)"),
    ScheduleSlot(et_hour=17, timezone=DialerTimezone.MT, label="5-6 PM ET → Mountain leads (3 PM their time)"),
    ScheduleSlot(et_hour=18, timezone=DialerTimezone.CT, label="6-7 PM ET → Central leads (5 PM their time)"),
    ScheduleSlot(et_hour=19, timezone=DialerTimezone.ET, label="7-8 PM ET → Eastern leads (7 PM their time)"),
]

STATE_TIMEZONE_MAP: Dict[str, str] = {
    # Eastern
    "NC": "ET", "FL": "ET", "GA": "ET", "SC": "ET", "VA": "ET", "NY": "ET", "PA": "ET",
    "OH": "ET", "MI": "ET", "IN": "ET", "KY": "ET", "TN": "ET", "AL": "ET", "MS": "ET",
    "CT": "ET", "DE": "ET", "ME": "ET", "MD": "ET", "MA": "ET", "NH": "ET", "NJ": "ET",
    "RI": "ET", "VT": "ET", "WV": "ET", "DC": "ET",
    # Central
    "TX": "CT", "IL": "CT", "WI": "CT", "MN": "CT", "IA": "CT", "MO": "CT", "AR": "CT",
    "LA": "CT", "KS": "CT", "NE": "CT", "ND": "CT", "SD": "CT", "OK": "CT",
    # Mountain
    "AZ": "MT", "CO": "MT", "ID": "MT", "MT": "MT", "NM": "MT", "UT": "MT", "WY": "MT",
    # Pacific
    "CA": "PT", "NV": "PT", "OR": "PT", "WA": "PT",
    # Territories / others
    "HI": "PT", "AK": "PT", "PR": "ET", "VI": "ET", "GU": "PT",
}

STATE_ABBREVIATIONS: Dict[str, str] = {
    "ALABAMA": "AL", "ALASKA": "AK", "ARIZONA": "AZ", "ARKANSAS": "AR",
    "CALIFORNIA": "CA", "COLORADO": "CO", "CONNECTICUT": "CT", "DELAWARE": "DE",
    "FLORIDA": "FL", "GEORGIA": "GA", "HAWAII": "HI", "IDAHO": "ID",
    "ILLINOIS": "IL", "INDIANA": "IN", "IOWA": "IA", "KANSAS": "KS",
    "KENTUCKY": "KY", "LOUISIANA": "LA", "MAINE": "ME", "MARYLAND": "MD",
    "MASSACHUSETTS": "MA", "MICHIGAN": "MI", "MINNESOTA": "MN", "MISSISSIPPI": "MS",
    "MISSOURI": "MO", "MONTANA": "MT", "NEBRASKA": "NE", "NEVADA": "NV",
    "NEW HAMPSHIRE": "NH", "NEW JERSEY": "NJ", "NEW MEXICO": "NM", "NEW YORK": "NY",
    "NORTH CAROLINA": "NC", "NORTH DAKOTA": "ND", "OHIO": "OH", "OKLAHOMA": "OK",
    "OREGON": "OR", "PENNSYLVANIA": "PA", "RHODE ISLAND": "RI", "SOUTH CAROLINA": "SC",
    "SOUTH DAKOTA": "SD", "TENNESSEE": "TN", "TEXAS": "TX", "UTAH": "UT",
    "VERMONT": "VT", "VIRGINIA": "VA", "WASHINGTON": "WA", "WEST VIRGINIA": "WV",
    "WISCONSIN": "WI", "WYOMING": "WY",
}

EASTERN = pytz.timezone("America/New_York")


def get_et_hour(now: Optional[datetime] = None) -> int:
    """Hour of day in America/New_York for ``now`` (default: current time)."""
    if now is None:
        return datetime.now(EASTERN).hour
    if now.tzinfo is None:
        now = pytz.UTC.localize(now)
    return now.astimezone(EASTERN).hour


def get_schedule_for_hour(et_hour: int) -> Optional[ScheduleSlot]:
    for slot in TIMEZONE_SCHEDULE:
        if slot.et_hour == et_hour:
            return slot
    return None


def get_timezone_for_hour(et_hour: int) -> Optional[str]:
    slot = get_schedule_for_hour(et_hour)
    return slot.timezone.value if slot else None


def timezone_for_state(state: Optional[str]) -> Optional[str]:
    """Map a state abbreviation or full name to its dialer bucket."""
    if not state:
        return None
    normalized = state.strip().upper()
    if len(normalized) == 2:
        return STATE_TIMEZONE_MAP.get(normalized)
    abbreviation = STATE_ABBREVIATIONS.get(normalized)
    if abbreviation:
        return STATE_TIMEZONE_MAP.get(abbreviation)
    return None
