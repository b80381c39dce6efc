"""
Portal Domain Models
Tenant-scoped records and the derived metrics record
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    APPOINTMENT_BOOKED = "appointment_booked"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    SHOWED = "showed"  # prospect attended; drives show rate
    NO_SHOW = "no_show"
    RESCHEDULED = "rescheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class Lead(BaseModel):
    """Inbound lead belonging to one tenant"""
    model_config = ConfigDict(extra="allow")

    id: str
    client_id: str
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    status: Optional[str] = LeadStatus.NEW.value
    source: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None


class Appointment(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    client_id: str
    lead_id: Optional[str] = None
    scheduled_at: Optional[str] = None
    status: Optional[str] = AppointmentStatus.SCHEDULED.value
    created_at: Optional[str] = None


class Payment(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    client_id: str
    appointment_id: Optional[str] = None
    amount_cents: Optional[int] = 0
    status: Optional[str] = PaymentStatus.PENDING.value
    created_at: Optional[str] = None


class ConversationMessage(BaseModel):
    """One row of sms_conversations (a single message, not a thread)"""
    model_config = ConfigDict(extra="allow")

    id: str
    client_id: str
    lead_id: Optional[str] = None
    role: Optional[str] = None
    content: Optional[str] = None
    created_at: Optional[str] = None


class MetricsRecord(BaseModel):
    """Per-tenant metrics computed on every request, never persisted"""
    lead_count: int = 0
    appointment_count: int = 0
    show_rate: float = Field(default=0.0, ge=0.0, le=100.0)
    total_charged: float = 0.0
    last_lead_at: Optional[str] = None
