"""Application settings from environment variables.

Centralized environment variable parsing and validation.
"""

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

TRANSPORT_CHOICES = ("auto", "multiplexed", "persistent")
MCP_TRANSPORT_CHOICES = ("http", "stdio")


@dataclass
class Settings:
    """Application settings from environment.

    Handles parsing, validation, and defaults for all DEPLOY_SCOUT_* env vars.
    """

    # Target host
    host: str | None = field(default=None)
    user: str = field(default="root")
    port: int = field(default=22)
    identity_file: str | None = field(default=None)
    password: str | None = field(default=None, repr=False)

    # Session
    connect_timeout: int = field(default=30)
    command_timeout: int = field(default=120)
    transport: str = field(default="auto")
    control_dir: str = field(default="~/.deploy_scout/sockets")
    control_persist: int = field(default=600)

    # Deployment
    deploy_path: str = field(default="~/deploy")
    health_interval: int = field(default=10)
    health_max_wait: int = field(default=300)
    token_timeout: int = field(default=60)

    # MCP server
    mcp_transport: str = field(default="http")
    http_host: str = field(default="0.0.0.0")
    http_port: int = field(default=8000)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)
    log_payloads: bool = field(default=False)
    slow_threshold_ms: int = field(default=1000)
    include_traceback: bool = field(default=False)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables.

        Returns:
            Settings instance with values from environment
        """
        return cls(
            host=os.getenv("DEPLOY_SCOUT_HOST") or None,
            user=os.getenv("DEPLOY_SCOUT_USER", "root"),
            port=cls._get_int("DEPLOY_SCOUT_PORT", 22),
            identity_file=os.getenv("DEPLOY_SCOUT_IDENTITY_FILE") or None,
            password=os.getenv("DEPLOY_SCOUT_PASSWORD") or None,
            connect_timeout=cls._get_int("DEPLOY_SCOUT_CONNECT_TIMEOUT", 30),
            command_timeout=cls._get_int("DEPLOY_SCOUT_COMMAND_TIMEOUT", 120),
            transport=cls._get_choice("DEPLOY_SCOUT_TRANSPORT", TRANSPORT_CHOICES, "auto"),
            control_dir=os.getenv("DEPLOY_SCOUT_CONTROL_DIR", "~/.deploy_scout/sockets"),
            control_persist=cls._get_int("DEPLOY_SCOUT_CONTROL_PERSIST", 600),
            deploy_path=os.getenv("DEPLOY_SCOUT_DEPLOY_PATH", "~/deploy"),
            health_interval=cls._get_int("DEPLOY_SCOUT_HEALTH_INTERVAL", 10),
            health_max_wait=cls._get_int("DEPLOY_SCOUT_HEALTH_MAX_WAIT", 300),
            token_timeout=cls._get_int("DEPLOY_SCOUT_TOKEN_TIMEOUT", 60),
            mcp_transport=cls._get_choice(
                "DEPLOY_SCOUT_MCP_TRANSPORT", MCP_TRANSPORT_CHOICES, "http"
            ),
            http_host=os.getenv("DEPLOY_SCOUT_HTTP_HOST", "0.0.0.0"),
            http_port=cls._get_int("DEPLOY_SCOUT_HTTP_PORT", 8000),
            log_level=os.getenv("DEPLOY_SCOUT_LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("DEPLOY_SCOUT_LOG_COLORS", True),
            log_payloads=cls._get_bool("DEPLOY_SCOUT_LOG_PAYLOADS", False),
            slow_threshold_ms=cls._get_int("DEPLOY_SCOUT_SLOW_THRESHOLD_MS", 1000),
            include_traceback=cls._get_bool("DEPLOY_SCOUT_INCLUDE_TRACEBACK", False),
        )

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer from environment.

        Args:
            key: Environment variable key
            default: Default value if not set or invalid

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, using default %d", key, value, default)
            return default

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Get boolean from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Boolean value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _get_choice(key: str, choices: tuple[str, ...], default: str) -> str:
        """Get one of a fixed set of values from environment.

        Unknown values fall back to the default with a warning.
        """
        value = os.getenv(key, "").strip().lower()
        if not value:
            return default
        if value in choices:
            return value
        logger.warning("Invalid value for %s: %s, using default %s", key, value, default)
        return default
