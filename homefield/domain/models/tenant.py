"""
Tenant Domain Models
Identity, agency client (tenant) and team membership
"""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class TenantRole(str, Enum):
    """Role stored on agency_clients.role"""
    ADMIN = "admin"
    CLIENT = "client"


class TeamMemberRole(str, Enum):
    MANAGER = "manager"
    VIEWER = "viewer"
    CONTRACTOR = "contractor"
    INSPECTOR = "inspector"


class MembershipKind(str, Enum):
    """How the caller reached the tenant"""
    PRIMARY = "primary"
    TEAM_MEMBER = "team_member"


class Identity(BaseModel):
    """Authenticated principal as established by Supabase Auth"""
    id: str
    email: Optional[str] = None


class Tenant(BaseModel):
    """An agency client; the unit of data isolation"""
    model_config = ConfigDict(extra="allow")

    id: str
    legal_business_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email_for_notifications: Optional[str] = None
    business_email_for_leads: Optional[str] = None
    business_phone: Optional[str] = None
    auth_user_id: Optional[str] = None
    role: str = TenantRole.CLIENT.value
    onboarding_status: Optional[str] = None
    notify_email: bool = False
    notify_sms: bool = False
    deleted_at: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == TenantRole.ADMIN.value

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Tenant":
        # Columns the store leaves NULL fall back to model defaults
        return cls(**{k: v for k, v in row.items() if v is not None or k == "deleted_at"})


class TeamMember(BaseModel):
    """Grant letting a secondary identity act as a tenant's owner"""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    client_id: str
    auth_user_id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = TeamMemberRole.VIEWER.value
    created_at: Optional[str] = None


class TenantContext(BaseModel):
    """A resolved tenant together with how the caller reached it"""
    tenant: Tenant
    membership: MembershipKind

    @property
    def tenant_id(self) -> str:
        return self.tenant.id

    @property
    def is_primary(self) -> bool:
        return self.membership == MembershipKind.PRIMARY
