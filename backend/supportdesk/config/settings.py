"""
Application configuration settings.
Loads SupportDesk configuration from environment variables and .env files.

Version: 1.0.0

Groups:
- Application and API
- Document store (in-memory or Redis)
- Completion provider (OpenAI or offline)
- Escalation heuristics
- Authentication
- Seeding, telemetry and rate limiting
"""
from enum import Enum
from functools import lru_cache
from typing import Annotated, Any, Dict, List, Optional
import json
import logging

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_SECRET_KEY = "change-me-in-production"


class StoreType(str, Enum):
    """Supported document store backends."""
    IN_MEMORY = "in_memory"
    REDIS = "redis"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


def _parse_list(v: Any) -> Any:
    """Accept JSON arrays or comma-separated strings for list fields."""
    if v is None:
        return []
    if isinstance(v, str):
        v = v.strip()
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        return [item.strip() for item in v.split(',') if item.strip()]
    return v


class Settings(BaseSettings):
    """
    SupportDesk settings.

    Every field can be overridden by the upper-cased environment variable
    of the same name (e.g. ``STORE_TYPE=redis``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===========================
    # Application
    # ===========================

    app_name: str = Field(default="SupportDesk", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment"
    )
    debug: bool = Field(default=False, description="Expose error details in responses")
    log_level: str = Field(default="INFO", description="Root log level")

    api_prefix: str = Field(default="/api", description="Prefix for all API routers")
    api_host: str = Field(default="0.0.0.0", description="Bind host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="Bind port")
    cors_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # ===========================
    # Document Store
    # ===========================

    store_type: StoreType = Field(
        default=StoreType.IN_MEMORY,
        description="Document store backend"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (store_type=redis)"
    )
    redis_key_prefix: str = Field(
        default="supportdesk:",
        description="Prefix for every Redis key"
    )
    redis_max_connections: int = Field(default=50, ge=1)
    redis_socket_timeout: int = Field(default=5, ge=1)
    redis_socket_connect_timeout: int = Field(default=5, ge=1)
    redis_health_check_interval: int = Field(default=30, ge=0)

    # ===========================
    # Completion Provider
    # ===========================

    openai_api_key: Optional[SecretStr] = Field(
        default=None,
        description="OpenAI API key; the offline provider is used when unset"
    )
    openai_base_url: Optional[str] = Field(
        default=None,
        description="Override for OpenAI-compatible endpoints"
    )
    completion_models: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["gpt-4o-mini", "gpt-4o", "gpt-3.5-turbo"],
        description="Models tried in order until one answers"
    )
    completion_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    completion_max_tokens: int = Field(default=500, ge=16)
    completion_timeout: float = Field(default=30.0, gt=0)
    completion_retry_attempts: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Attempts per model before moving to the next one"
    )
    completion_breaker_fail_max: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures before the provider circuit opens"
    )
    completion_breaker_reset_seconds: int = Field(
        default=60,
        ge=1,
        description="Seconds the provider circuit stays open"
    )
    dev_mock_ai: bool = Field(
        default=False,
        description="Force the offline canned provider"
    )

    # ===========================
    # Escalation
    # ===========================

    escalation_extra_keywords: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description="Additional escalation trigger terms"
    )
    conversation_context_messages: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Transcript tail passed to the completion provider"
    )

    # ===========================
    # Authentication
    # ===========================

    secret_key: SecretStr = Field(
        default=SecretStr(DEFAULT_SECRET_KEY),
        description="JWT signing key"
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expiration_hours: int = Field(default=24 * 7, ge=1)
    bcrypt_rounds: int = Field(default=12, ge=4, le=16, description="bcrypt cost factor")

    # ===========================
    # Seeding
    # ===========================

    seed_sample_faqs: bool = Field(
        default=True,
        description="Insert the sample FAQ catalog when the collection is empty"
    )
    bootstrap_admin_email: Optional[str] = Field(default=None)
    bootstrap_admin_password: Optional[SecretStr] = Field(default=None)
    bootstrap_admin_name: str = Field(default="Administrator")

    # ===========================
    # Telemetry & Rate Limiting
    # ===========================

    enable_telemetry: bool = Field(default=True, description="Expose /metrics")
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_requests: int = Field(default=100, ge=1)
    rate_limit_period: int = Field(default=60, ge=1, description="Window in seconds")

    # ===========================
    # Validators
    # ===========================

    @field_validator('cors_origins', 'completion_models', 'escalation_extra_keywords', mode='before')
    @classmethod
    def parse_list_fields(cls, v):
        """Parse list fields from JSON or comma-separated strings."""
        return _parse_list(v)

    @field_validator('completion_models')
    @classmethod
    def require_model(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("completion_models must name at least one model")
        return v

    @field_validator('escalation_extra_keywords')
    @classmethod
    def normalise_keywords(cls, v: List[str]) -> List[str]:
        return [kw.strip().lower() for kw in v if kw.strip()]

    # ===========================
    # Helpers
    # ===========================

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    def get_openai_api_key(self) -> Optional[str]:
        """
        Get the OpenAI API key value.

        Returns:
            API key string or None if not set
        """
        if self.openai_api_key:
            value = self.openai_api_key.get_secret_value().strip()
            return value or None
        return None

    def get_secret_key(self) -> str:
        return self.secret_key.get_secret_value()

    def validate_configuration(self) -> List[str]:
        """
        Check the configuration for unsafe or inconsistent values.

        Returns:
            List of warning messages (empty when the configuration is sound)
        """
        warnings = []

        if self.get_secret_key() == DEFAULT_SECRET_KEY:
            warnings.append("SECRET_KEY is the default value")

        if self.store_type == StoreType.IN_MEMORY and self.is_production:
            warnings.append("In-memory store loses all data on restart")

        if not self.get_openai_api_key() and not self.dev_mock_ai:
            warnings.append("OPENAI_API_KEY not set, using offline completion provider")

        if self.bootstrap_admin_email and not self.bootstrap_admin_password:
            warnings.append("BOOTSTRAP_ADMIN_EMAIL set without BOOTSTRAP_ADMIN_PASSWORD")

        if self.debug and self.is_production:
            warnings.append("DEBUG enabled in production")

        return warnings

    def get_safe_dict(self) -> Dict[str, Any]:
        """Settings as a dict with secrets masked, for logging."""
        data = self.model_dump()
        for key, value in data.items():
            if isinstance(value, SecretStr):
                data[key] = "***" if value.get_secret_value() else None
        return data


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()


settings = get_settings()

__all__ = ['Settings', 'StoreType', 'Environment', 'settings', 'get_settings']
