"""toolguard configuration.

Environment-driven settings. Every field accepts a ``TOOLGUARD_`` prefixed
variable; the unprefixed names used by existing deployments (``DATA_DIR``,
``N8N_ALERT_WEBHOOK_URL``, ``PUBLIC_URL``) are accepted as fallbacks.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = "/data"
DEFAULT_HEALTH_FILE = "tool-health.json"
DEFAULT_FAILURE_THRESHOLD = 3


class ToolguardSettings(BaseSettings):
    """Settings for the resilience engine."""

    data_dir: str = Field(
        default=DEFAULT_DATA_DIR,
        validation_alias=AliasChoices("TOOLGUARD_DATA_DIR", "DATA_DIR", "data_dir"),
    )
    health_file_name: str = Field(
        default=DEFAULT_HEALTH_FILE,
        validation_alias=AliasChoices("TOOLGUARD_HEALTH_FILE_NAME", "health_file_name"),
    )

    # Degradation alerts (empty URL disables alerting)
    alert_webhook_url: str = Field(
        default="",
        validation_alias=AliasChoices(
            "TOOLGUARD_ALERT_WEBHOOK_URL", "N8N_ALERT_WEBHOOK_URL", "alert_webhook_url"
        ),
    )
    server_url: str = Field(
        default="",
        validation_alias=AliasChoices("TOOLGUARD_SERVER_URL", "PUBLIC_URL", "server_url"),
    )
    alert_timeout: float = Field(
        default=10.0,
        gt=0,
        validation_alias=AliasChoices("TOOLGUARD_ALERT_TIMEOUT", "alert_timeout"),
    )

    failure_threshold: int = Field(
        default=DEFAULT_FAILURE_THRESHOLD,
        ge=1,
        validation_alias=AliasChoices("TOOLGUARD_FAILURE_THRESHOLD", "failure_threshold"),
    )

    model_config = {"env_file": ".env", "extra": "ignore", "populate_by_name": True}

    @property
    def health_file(self) -> Path:
        return Path(self.data_dir) / self.health_file_name

    @property
    def alerting_enabled(self) -> bool:
        return bool(self.alert_webhook_url)


def get_settings(**overrides: object) -> ToolguardSettings:
    """Build settings from the environment, applying explicit overrides."""
    settings = ToolguardSettings(**overrides)
    logger.debug(
        "toolguard config: health_file=%s, threshold=%d, alerting=%s",
        settings.health_file,
        settings.failure_threshold,
        settings.alerting_enabled,
    )
    return settings
