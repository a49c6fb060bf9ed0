"""
SLA Configuration Provider
==========================

Loads the SLA window settings from an optional YAML policy file,
falling back to application settings for anything the file omits.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from helpdesk.config import settings
from helpdesk.core import ConfigurationException
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.tickets.domain import SLAConfig

logger = get_logger(__name__)


class YAMLSLAConfigProvider:
    """
    SLA configuration provider that loads from YAML.

    Expected layout:

        sla:
          window_minutes: 120
          urgency_threshold_minutes: 120
          poll_interval_seconds: 1
    """

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = Path(config_path or settings.sla_config_path)
        self._config: Optional[SLAConfig] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        defaults = SLAConfig.from_settings()

        if not self._config_path.exists():
            self._config = defaults
            return

        with open(self._config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        section = data.get("sla", data) if isinstance(data, dict) else None
        if not isinstance(section, dict):
            raise ConfigurationException(
                f"SLA config must be a mapping: {self._config_path}"
            )

        try:
            self._config = SLAConfig(**{**defaults.model_dump(), **section})
        except ValidationError as e:
            raise ConfigurationException(
                f"Invalid SLA config in {self._config_path}",
                {"errors": e.errors(include_url=False)}
            )
        logger.info(
            "SLA configuration loaded",
            extra={"path": str(self._config_path), "window_minutes": self._config.window_minutes}
        )

    def get_config(self) -> SLAConfig:
        """Get current SLA configuration."""
        return self._config

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()
