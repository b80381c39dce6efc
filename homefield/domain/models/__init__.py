"""Domain models"""

# Tenancy
from .tenant import (
    Identity,
    Tenant,
    TenantRole,
    TeamMember,
    TeamMemberRole,
    MembershipKind,
    TenantContext,
)

# Tenant-scoped records
from .portal import (
    LeadStatus,
    AppointmentStatus,
    PaymentStatus,
    Lead,
    Appointment,
    Payment,
    ConversationMessage,
    MetricsRecord,
)

# Public intake payloads
from .intake import (
    OnboardingSubmission,
    VslSubmission,
    RoofingCallRequest,
    IntakeOutcome,
)

# Dialer models
from .dialer import (
    DialerTimezone,
    DialerStatus,
    DialerOutcome,
    DispositionRequest,
    ImportRow,
    ImportResult,
)
