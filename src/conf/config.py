"""Configuration for the HubSpot workflow webhook service.

Reads environment variables (and an optional ``.env`` file) for API access,
HubSpot object/property names and workflow timing.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Runtime configuration loaded from environment."""

    # =========================================================================
    # HUBSPOT API
    # =========================================================================
    HUBSPOT_PRIVATE_APP_TOKEN: SecretStr = Field(
        default=SecretStr(""), description="Private app access token used as the API bearer credential."
    )
    HUBSPOT_API_BASE_URL: str = Field(
        default="https://api.hubapi.com", description="Base URL of the HubSpot REST API."
    )
    HUBSPOT_TIMEOUT_SECONDS: float = Field(
        default=30.0, gt=0, description="Timeout applied to every outbound HubSpot request."
    )
    HUBSPOT_CLIENT_SECRET: SecretStr = Field(
        default=SecretStr(""),
        description="App client secret. When set, webhook requests must carry a valid v3 signature.",
    )
    PUBLIC_BASE_URL: str = Field(
        default="",
        description=(
            "Publicly reachable base URL of this service. Used to rebuild the URI HubSpot "
            "signed when the app runs behind a proxy. Empty means use the request URL."
        ),
    )

    # =========================================================================
    # OWNER ROLE WORKFLOW
    # =========================================================================
    LEADS_OBJECT: str = Field(default="leads", description="Object type of the grouped records.")
    OWNER_ROLE_PROP: str = Field(default="owner_role", description="Internal name of the role property.")
    REAL_ESTATE_ID_PROP: str = Field(
        default="real_estate_record_id", description="Internal name of the grouping-key property."
    )
    PRIMARY_VALUE: str = Field(default="Primary", description="Role value that triggers reconciliation.")
    SECONDARY_VALUE: str = Field(default="Secondary", description="Role value written to siblings.")
    PROCESSING_DELAY_MS: int = Field(
        default=2000,
        ge=0,
        description="Delay before reconciling, so the upstream process can write the grouping key.",
    )
    SEARCH_PAGE_LIMIT: int = Field(
        default=100, gt=0, le=100, description="Page size for CRM search requests."
    )

    # =========================================================================
    # TASK MIRRORING WORKFLOW
    # =========================================================================
    CONTRACT_OBJECT_TYPE: str = Field(
        default="",
        description="Contract custom object type id (e.g. '2-1234567') or name. Empty disables contract lookups.",
    )
    TASK_ASSOCIATION_DELAY_MS: int = Field(
        default=1500,
        ge=0,
        description="Delay before mirroring, so deal/contract associations can be attached after task creation.",
    )
    MAX_ASSOCIATIONS: int = Field(
        default=500, gt=0, description="Page size for association listings."
    )

    # =========================================================================
    # SERVER
    # =========================================================================
    WEBHOOK_MAX_BODY_BYTES: int = Field(
        default=2 * 1024 * 1024, gt=0, description="Largest accepted webhook body in bytes."
    )
    PORT: int = Field(default=3000, description="Port the ASGI server listens on.")

    # =========================================================================
    # LOGGING / MONITORING
    # =========================================================================
    LOG_LEVEL: str = Field(default="INFO", description="Root log level.")
    LOG_JSON: bool = Field(default=False, description="Emit JSON log lines instead of pretty output.")
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking. Leave empty to disable.",
    )
    SENTRY_ENVIRONMENT: str = Field(
        default="development",
        description="Sentry environment (development, staging, production).",
    )
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry traces sample rate (0.0-1.0).",
    )

    @model_validator(mode="after")
    def _validate_role_markers(self) -> "Settings":
        if self.PRIMARY_VALUE.strip().lower() == self.SECONDARY_VALUE.strip().lower():
            raise ValueError("PRIMARY_VALUE and SECONDARY_VALUE must differ")
        return self

    @property
    def hubspot_configured(self) -> bool:
        """Check if a HubSpot token is available."""
        return bool(self.HUBSPOT_PRIVATE_APP_TOKEN.get_secret_value())

    @property
    def contract_object_type(self) -> str | None:
        """Return the configured contract object type, or None when disabled."""
        value = self.CONTRACT_OBJECT_TYPE.strip()
        return value or None

    @property
    def processing_delay_seconds(self) -> float:
        return self.PROCESSING_DELAY_MS / 1000

    @property
    def task_association_delay_seconds(self) -> float:
        return self.TASK_ASSOCIATION_DELAY_MS / 1000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[arg-type]


def validate_required_settings(settings_instance: Settings | None = None) -> None:
    """Validate that all required environment variables are set.

    Raises RuntimeError if critical settings are missing.

    Args:
        settings_instance: Settings instance to validate. If None, uses global settings.
    """
    if settings_instance is None:
        settings_instance = get_settings()

    errors: list[str] = []
    warnings: list[str] = []

    if not settings_instance.hubspot_configured:
        errors.append("HUBSPOT_PRIVATE_APP_TOKEN is required")

    if not settings_instance.HUBSPOT_CLIENT_SECRET.get_secret_value():
        warnings.append("HUBSPOT_CLIENT_SECRET not set (webhook signature verification disabled)")

    if not settings_instance.contract_object_type:
        warnings.append("CONTRACT_OBJECT_TYPE not set (task mirroring only follows deals)")

    for warning in warnings:
        logger.warning("Configuration warning: %s", warning)

    if errors:
        error_msg = "Critical configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
        logger.error(error_msg)
        raise RuntimeError(error_msg)


settings = get_settings()
