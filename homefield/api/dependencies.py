"""
API Dependencies
Shared dependencies for sessions, tenant resolution, Supabase access and
outbound clients
"""
import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from supabase import Client, create_client

from homefield.core.config import Settings, get_settings
from homefield.core.errors import BackendUnavailableError, ForbiddenError
from homefield.core.session_middleware import get_access_token
from homefield.domain.models.tenant import Identity, TenantContext, TenantRole
from homefield.domain.services.authorization import authorize
from homefield.domain.services.dialer_service import DialerService
from homefield.domain.services.intake_normalizer import IntakeService
from homefield.domain.services.metrics_aggregator import MetricsAggregator
from homefield.domain.services.session_resolver import SessionResolver
from homefield.domain.services.tenant_data import TenantScopedAccessor
from homefield.domain.services.tenant_resolver import TenantResolver
from homefield.infrastructure.tasks.notion import NotionTaskClient
from homefield.infrastructure.voice.vapi import VapiClient
from homefield.infrastructure.webhooks.n8n import WorkflowWebhookClient

logger = logging.getLogger(__name__)


@lru_cache
def _create_client(url: str, key: str) -> Client:
    return create_client(url, key)


def get_supabase(settings: Settings = Depends(get_settings)) -> Client:
    """
    Get Supabase client with validation.

    Raises:
        RuntimeError: If Supabase URL or SERVICE_KEY is not configured
    """
    if not settings.supabase_url:
        raise RuntimeError(
            "SUPABASE_URL is not configured. "
            "Set SUPABASE_URL environment variable."
        )
    if not settings.supabase_service_key:
        raise RuntimeError(
            "SUPABASE_SERVICE_KEY is not configured. "
            "Set SUPABASE_SERVICE_KEY environment variable."
        )

    return _create_client(settings.supabase_url, settings.supabase_service_key)


def get_store(settings: Settings = Depends(get_settings)) -> Client:
    """Supabase client for authenticated routes; misconfiguration is a 500."""
    try:
        return get_supabase(settings)
    except RuntimeError as e:
        logger.error(f"Supabase unavailable: {e}")
        raise BackendUnavailableError("Server misconfigured") from e


def get_optional_supabase(settings: Settings = Depends(get_settings)) -> Optional[Client]:
    """Supabase client for public intake, or None when not configured."""
    try:
        return get_supabase(settings)
    except RuntimeError as e:
        logger.warning(f"Supabase not configured for intake: {e}")
        return None


# =============================================================================
# Session and tenant
# =============================================================================

def get_session_resolver(
    supabase: Optional[Client] = Depends(get_optional_supabase),
    settings: Settings = Depends(get_settings),
) -> SessionResolver:
    return SessionResolver(supabase, jwt_secret=settings.supabase_jwt_secret)


def get_optional_identity(
    access_token: Optional[str] = Depends(get_access_token),
    resolver: SessionResolver = Depends(get_session_resolver),
) -> Optional[Identity]:
    return resolver.resolve(access_token)


def get_current_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Identity:
    """
    Dependency requiring an authenticated caller.

    Raises:
        UnauthenticatedError: If the session is missing or invalid
    """
    authorize(identity).raise_for_denial()
    return identity


def get_tenant_resolver(supabase: Client = Depends(get_store)) -> TenantResolver:
    return TenantResolver(supabase)


def get_optional_tenant(
    identity: Identity = Depends(get_current_identity),
    resolver: TenantResolver = Depends(get_tenant_resolver),
) -> Optional[TenantContext]:
    return resolver.resolve(identity)


def get_current_tenant(
    tenant: Optional[TenantContext] = Depends(get_optional_tenant),
) -> TenantContext:
    """
    Dependency requiring a resolved tenant.

    Raises:
        ForbiddenError: If the caller owns no tenant and belongs to no team
    """
    if tenant is None:
        raise ForbiddenError("No client account found")
    return tenant


def require_primary_tenant(
    tenant: TenantContext = Depends(get_current_tenant),
) -> TenantContext:
    """Dependency restricting a route to the tenant's direct owner."""
    if not tenant.is_primary:
        raise ForbiddenError("Only the account owner can manage the team")
    return tenant


def require_admin(
    identity: Identity = Depends(get_current_identity),
    tenant: Optional[TenantContext] = Depends(get_optional_tenant),
) -> TenantContext:
    """
    Dependency to require the admin role.

    Raises:
        ForbiddenError: If the caller's tenant is not an admin
    """
    authorize(
        identity,
        caller_tenant=tenant.tenant if tenant else None,
        required_role=TenantRole.ADMIN,
    ).raise_for_denial()
    return tenant


# =============================================================================
# Services
# =============================================================================

def get_accessor(supabase: Client = Depends(get_store)) -> TenantScopedAccessor:
    return TenantScopedAccessor(supabase)


def get_metrics_aggregator(supabase: Client = Depends(get_store)) -> MetricsAggregator:
    return MetricsAggregator(supabase)


def get_dialer_service(supabase: Client = Depends(get_store)) -> DialerService:
    return DialerService(supabase)


def get_webhook_client(settings: Settings = Depends(get_settings)) -> Optional[WorkflowWebhookClient]:
    if not settings.n8n_onboarding_webhook_url:
        return None
    return WorkflowWebhookClient(
        settings.n8n_onboarding_webhook_url,
        timeout=settings.outbound_timeout_seconds,
    )


def get_intake_service(
    supabase: Optional[Client] = Depends(get_optional_supabase),
    notifier: Optional[WorkflowWebhookClient] = Depends(get_webhook_client),
) -> IntakeService:
    return IntakeService(supabase, notifier)


def get_vapi_client(settings: Settings = Depends(get_settings)) -> Optional[VapiClient]:
    """VAPI client, or None when the API key or assistant is missing."""
    if not settings.vapi_api_key or not settings.roofing_assistant_id:
        return None
    return VapiClient(
        settings.vapi_api_key,
        settings.vapi_phone_number_id,
        base_url=settings.vapi_api_url,
        timeout=settings.outbound_timeout_seconds,
    )


def get_notion_client(settings: Settings = Depends(get_settings)) -> Optional[NotionTaskClient]:
    if not settings.notion_api_token:
        return None
    return NotionTaskClient(
        settings.notion_api_token,
        settings.notion_todo_db,
        base_url=settings.notion_api_url,
        timeout=settings.outbound_timeout_seconds,
    )
