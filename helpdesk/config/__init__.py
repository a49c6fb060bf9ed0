"""
Helpdesk settings and shared vocabularies.

Settings come from the environment (or `.env`) through pydantic-settings.
The enums below fix the spelling of roles and ticket states both in
the database and on the wire.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings; every field can be overridden by an env var of the same name."""

    # ========== Application ==========
    app_name: str = Field(default="helpdesk-service", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/helpdesk",
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== SLA ==========
    sla_window_minutes: int = Field(
        default=120,
        description="Minutes between ticket creation and its SLA deadline",
        ge=1
    )
    sla_urgency_threshold_minutes: int = Field(
        default=120,
        description="Remaining minutes below which a countdown is flagged urgent",
        ge=0
    )
    sla_poll_interval_seconds: float = Field(
        default=1.0,
        description="Seconds between SLA countdown recomputations",
        gt=0
    )
    sla_config_path: Path = Field(
        default=Path("sla_config.yaml"),
        description="Optional YAML file overriding the SLA window settings"
    )

    # ========== Notifications ==========
    notification_poll_interval_seconds: float = Field(
        default=30.0,
        description="Seconds between client-side notification refreshes",
        gt=0
    )

    # ========== Auth ==========
    token_ttl_minutes: int = Field(
        default=60 * 24,
        description="Lifetime of issued bearer tokens",
        ge=1
    )
    min_password_length: int = Field(default=6, description="Minimum password length", ge=4)
    reset_token_ttl_minutes: int = Field(
        default=60,
        description="Lifetime of admin-issued password reset links",
        ge=1
    )
    token_sweep_interval_seconds: float = Field(
        default=15 * 60.0,
        description="Seconds between server-side purges of expired tokens",
        gt=0
    )

    # ========== Attachments ==========
    upload_dir: Path = Field(
        default=Path("uploads"),
        description="Directory where uploaded attachments are stored"
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Largest accepted attachment size",
        ge=1
    )

    # ========== LLM (Insights) ==========
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key used for generated insights"
    )
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="Chat model used for ticket insights"
    )
    llm_temperature: float = Field(
        default=0.3,
        description="Default temperature for LLM",
        ge=0.0,
        le=1.0
    )
    llm_max_tokens: int = Field(
        default=1000,
        description="Default max tokens for LLM generation",
        ge=1,
        le=8000
    )
    mock_llm: bool = Field(
        default=False,
        description="Use mock LLM responses for testing (no API calls)"
    )
    insight_fallback_to_keywords: bool = Field(
        default=True,
        description="Fall back to keyword analysis when the LLM is unavailable"
    )

    # ========== Client ==========
    api_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL used by the bundled API client"
    )
    api_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for API client requests",
        gt=0
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()


# ========== Constants ==========

class Role(str, Enum):
    """User roles, least privileged first."""
    CUSTOMER = "Customer"
    AGENT = "Agent"
    MANAGER = "Manager"
    ADMIN = "Admin"
    SUPER_ADMIN = "Super Admin"


class TicketStatus(str, Enum):
    """Ticket lifecycle statuses."""
    OPEN = "Open"
    IN_PROGRESS = "In-Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class Priority(str, Enum):
    """Ticket priority levels."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class UserStatus(str, Enum):
    """Account status."""
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class ArticleVisibility(str, Enum):
    """Knowledge base article audience."""
    PUBLIC = "PUBLIC"
    INTERNAL = "INTERNAL"


class Sentiment(str, Enum):
    """Sentiment labels produced by the insight annotator."""
    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"


class RouteId(str, Enum):
    """Navigational areas gated by role."""
    DASHBOARD = "dashboard"
    ANALYTICS = "analytics"
    TICKETS = "tickets"
    USERS = "users"
    KNOWLEDGE_BASE = "kb"
    NOTIFICATIONS = "notifications"


class AnalyticsRange(str, Enum):
    """Reporting windows for the analytics summary."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL = "all"


DEFAULT_CATEGORY = "General"

# ========== Lists for validation ==========

STAFF_ROLES = [Role.AGENT, Role.MANAGER, Role.ADMIN, Role.SUPER_ADMIN]
VALID_ROLES = list(Role)
VALID_STATUSES = list(TicketStatus)
VALID_PRIORITIES = list(Priority)
CLOSED_STATUSES = [TicketStatus.RESOLVED, TicketStatus.CLOSED]
