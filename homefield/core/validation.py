"""
Settings Validation Module
Validates integration settings on startup
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from homefield.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of a configuration validation check."""
    integration: str
    setting: str
    is_valid: bool
    message: str


class SettingsValidator:
    """
    Validates integration settings at startup.

    Supabase is required for every portal route; the outbound integrations
    degrade gracefully and are only reported as warnings.
    """

    REQUIRED_SETTINGS = {
        "database": [
            ("supabase_url", "Supabase database"),
            ("supabase_service_key", "Supabase database"),
        ],
    }

    OPTIONAL_SETTINGS = {
        "auth": [("supabase_jwt_secret", "Local JWT verification")],
        "voice": [
            ("vapi_api_key", "VAPI voice calls"),
            ("roofing_assistant_id", "VAPI roofing assistant"),
        ],
        "tasks": [("notion_api_token", "Notion mission-control tasks")],
    }

    def __init__(self, settings: Settings, strict: bool = False):
        """
        Initialize validator.

        Args:
            settings: Settings instance to check
            strict: If True, treat warnings as errors
        """
        self.settings = settings
        self.strict = strict
        self.results: List[ValidationResult] = []

    def validate_all(self) -> Tuple[bool, List[ValidationResult]]:
        """
        Validate all integration settings.

        Returns:
            Tuple of (all_valid, list of results)
        """
        self.results = []

        for integration, settings_list in self.REQUIRED_SETTINGS.items():
            for name, description in settings_list:
                if getattr(self.settings, name, None):
                    self._add(integration, name, True, f"{description} configured")
                else:
                    self._add(integration, name, False, f"{description} requires {name.upper()} to be set")

        for integration, settings_list in self.OPTIONAL_SETTINGS.items():
            for name, description in settings_list:
                if getattr(self.settings, name, None):
                    self._add(integration, name, True, f"{description} configured")
                else:
                    self._add(
                        integration,
                        name,
                        not self.strict,
                        f"WARNING: {description} not configured (optional)",
                    )

        all_valid = all(r.is_valid for r in self.results)
        return all_valid, self.results

    def _add(self, integration: str, setting: str, is_valid: bool, message: str):
        self.results.append(ValidationResult(
            integration=integration,
            setting=setting,
            is_valid=is_valid,
            message=message,
        ))

    def log_results(self):
        """Log all validation results."""
        for r in self.results:
            if not r.is_valid:
                logger.error(f"  ✗ [{r.integration}] {r.message}")
            elif "WARNING" in r.message:
                logger.warning(f"  ⚠ [{r.integration}] {r.message}")
            else:
                logger.info(f"  ✓ [{r.integration}] {r.message}")

    def get_error_summary(self) -> Optional[str]:
        """Get summary of errors for exception message."""
        errors = [r for r in self.results if not r.is_valid]
        if not errors:
            return None

        lines = ["Configuration errors:"]
        for r in errors:
            lines.append(f"  - {r.setting}: {r.message}")
        return "\n".join(lines)


def validate_settings_on_startup(settings: Settings, strict: bool = False) -> None:
    """
    Validate settings at startup.

    Raises:
        RuntimeError: If required configuration is missing
    """
    validator = SettingsValidator(settings, strict=strict)
    all_valid, _ = validator.validate_all()
    validator.log_results()

    if not all_valid:
        raise RuntimeError(validator.get_error_summary())

    logger.info("All integration settings validated successfully")
