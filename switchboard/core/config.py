"""
Configuration management for the Lead Switchboard
Uses Pydantic Settings for environment variable management
"""

from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Public callback base (domain only, https)
    public_base_url: Optional[str] = Field(default=None)

    # Bland AI Configuration
    bland_api_key: Optional[str] = Field(default=None)
    bland_api_endpoint: str = Field(default="https://api.bland.ai/v1/calls")
    bland_persona_id: Optional[str] = Field(default=None)
    bland_voice: Optional[str] = Field(default=None)

    # Vapi Configuration
    vapi_api_key: Optional[str] = Field(default=None)
    vapi_api_endpoint: str = Field(default="https://api.vapi.ai/call/phone")
    vapi_assistant_id: Optional[str] = Field(default=None)
    vapi_phone_number_id: Optional[str] = Field(default=None)
    vapi_voice_id: str = Field(default="21m00Tcm4TlvDq8ikWAM")

    # Database Configuration
    database_type: str = Field(default="sqlite")
    sqlite_path: str = Field(default="switchboard.db")
    postgres_url: Optional[str] = Field(default=None)

    # Lead Pipeline
    default_phone_region: str = Field(default="US")
    dedupe_window_minutes: int = Field(default=30)
    immediate_window_seconds: int = Field(default=300)
    lead_payload_max_chars: int = Field(default=16000)

    # Provider Callbacks
    callback_secret: Optional[str] = Field(default=None)
    callback_payload_max_chars: int = Field(default=8000)
    transcript_max_chars: int = Field(default=20000)

    # Audit Log
    audit_json_max_chars: int = Field(default=8000)
    audit_error_log_interval_seconds: float = Field(default=5.0)

    # Deferred Dispatch
    dispatch_scheduler: str = Field(default="asyncio")
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Security
    admin_api_key: Optional[str] = Field(default=None)
    webhook_requests_per_minute: int = Field(default=100)

    # Application Settings
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    environment: str = Field(default="development")

    # Server Configuration
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=8000)

    # CORS Settings
    allowed_origins: str = Field(default="http://localhost:3000,http://localhost:8000")

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.allowed_origins.split(",")]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
