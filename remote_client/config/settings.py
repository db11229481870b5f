"""Library settings from environment variables.

Centralized environment variable parsing and validation.
"""

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

ENV_PREFIX = "REMOTE_CLIENT_"


@dataclass
class Settings:
    """Library settings from environment.

    Handles parsing, validation, and defaults for all env vars.
    """

    # Connection
    inactivity_timeout: float = field(default=30.0)

    # Host key verification
    known_hosts: str | None = field(default=None)
    strict_host_key_checking: bool = field(default=True)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from REMOTE_CLIENT_* environment variables.

        Returns:
            Settings instance with values from environment
        """
        return cls(
            inactivity_timeout=cls._get_float("INACTIVITY_TIMEOUT", 30.0),
            known_hosts=os.getenv(f"{ENV_PREFIX}KNOWN_HOSTS") or None,
            strict_host_key_checking=cls._get_bool("STRICT_HOST_KEY_CHECKING", True),
            log_level=os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("LOG_COLORS", True),
        )

    @staticmethod
    def _get_float(name: str, default: float) -> float:
        """Get a positive number from environment.

        Args:
            name: Variable name without prefix
            default: Default value if unset or invalid

        Returns:
            Parsed value or default
        """
        key = f"{ENV_PREFIX}{name}"
        value = os.getenv(key)
        if value is None:
            return default

        try:
            parsed = float(value)
        except ValueError:
            logger.warning("Invalid number for %s: %s, using default %s", key, value, default)
            return default

        if parsed <= 0:
            logger.warning("%s must be positive, got %s, using default %s", key, value, default)
            return default
        return parsed

    @staticmethod
    def _get_bool(name: str, default: bool) -> bool:
        """Get boolean from environment."""
        value = os.getenv(f"{ENV_PREFIX}{name}")
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")
