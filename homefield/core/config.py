"""
Configuration Management
Loads settings from environment variables and the .env file
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # API Settings
    api_prefix: str = "/api"
    cors_origins: list[str] = ["http://localhost:3000"]
    site_url: str = "https://homefieldhub.com"

    # Supabase (auth + database)
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    supabase_jwt_secret: Optional[str] = None

    # Outbound integrations
    n8n_onboarding_webhook_url: str = (
        "https://n8n-production-1286.up.railway.app/webhook/client-onboarding"
    )
    vapi_api_url: str = "https://api.vapi.ai"
    vapi_api_key: Optional[str] = None
    vapi_assistant_id: Optional[str] = None
    vapi_roofing_assistant_id: Optional[str] = None
    vapi_phone_number_id: str = "5589e5e2-6c0b-4760-a00c-a08b70a7c460"
    notion_api_url: str = "https://api.notion.com/v1"
    notion_api_token: Optional[str] = None
    notion_todo_db: str = "2d99cb3d-8484-8024-befa-f9e71640a5f6"

    # Applies to every outbound httpx call
    outbound_timeout_seconds: float = 10.0

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def roofing_assistant_id(self) -> Optional[str]:
        return self.vapi_roofing_assistant_id or self.vapi_assistant_id


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
