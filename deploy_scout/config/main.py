"""Application configuration.

Delegates to specialized components:
- SSHConfigParser: Reads ~/.ssh/config
- HostKeyVerifier: Manages known_hosts
- Settings: Environment variables
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from deploy_scout.config.host_keys import HostKeyVerifier
from deploy_scout.config.parser import SSHConfigParser
from deploy_scout.config.settings import Settings
from deploy_scout.models import ConnectionContext, SSHHost

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Application configuration.

    Aggregates settings from SSH config, known_hosts, and environment.
    """

    settings: Settings
    parser: SSHConfigParser
    host_keys: HostKeyVerifier
    _hosts_cache: dict[str, SSHHost] | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_env(cls, ssh_config_path: Path | str | None = None) -> "Config":
        """Create config from environment.

        Args:
            ssh_config_path: Override for the SSH config file location

        Returns:
            Configured instance with all components initialized
        """
        settings = Settings.from_env()
        parser = SSHConfigParser(config_path=ssh_config_path)
        host_keys = HostKeyVerifier(
            known_hosts_path=os.getenv("DEPLOY_SCOUT_KNOWN_HOSTS"),
            strict_checking=Settings._get_bool("DEPLOY_SCOUT_STRICT_HOST_KEY_CHECKING", False),
        )
        return cls(settings=settings, parser=parser, host_keys=host_keys)

    def get_hosts(self) -> dict[str, SSHHost]:
        """Get SSH host aliases, parsed once and cached."""
        if self._hosts_cache is None:
            self._hosts_cache = self.parser.parse()
        return self._hosts_cache

    def get_host(self, name: str) -> SSHHost | None:
        return self.get_hosts().get(name)

    def connection_context(self, host: str | None = None) -> ConnectionContext:
        """Build connection parameters for a target host.

        An SSH config alias is resolved first; values it does not set come
        from the DEPLOY_SCOUT_* settings. Any other name is used as the
        hostname directly.

        Args:
            host: Alias or hostname (default: DEPLOY_SCOUT_HOST)

        Returns:
            ConnectionContext for the target

        Raises:
            ValueError: If no host is given or configured
        """
        name = host or self.settings.host
        if not name:
            raise ValueError("No target host configured. Set DEPLOY_SCOUT_HOST or pass a host.")

        alias = self.get_host(name)
        if alias is not None:
            logger.debug("Resolved host alias %s to %s", name, alias.hostname)
            return ConnectionContext(
                host=alias.hostname,
                username=alias.user or self.settings.user,
                port=alias.port or self.settings.port,
                identity_file=alias.identity_file or self.settings.identity_file,
                password=self.settings.password,
                connect_timeout=self.settings.connect_timeout,
            )

        return ConnectionContext(
            host=name,
            username=self.settings.user,
            port=self.settings.port,
            identity_file=self.settings.identity_file,
            password=self.settings.password,
            connect_timeout=self.settings.connect_timeout,
        )

    # Delegate to settings for convenience
    @property
    def transport(self) -> str:
        """Session transport preference (auto, multiplexed or persistent)."""
        return self.settings.transport

    @property
    def command_timeout(self) -> int:
        """Command timeout in seconds."""
        return self.settings.command_timeout

    @property
    def deploy_path(self) -> str:
        """Default remote deployment directory."""
        return self.settings.deploy_path

    @property
    def mcp_transport(self) -> str:
        """MCP server transport (http or stdio)."""
        return self.settings.mcp_transport

    @property
    def http_host(self) -> str:
        """HTTP server bind address."""
        return self.settings.http_host

    @property
    def http_port(self) -> int:
        """HTTP server port."""
        return self.settings.http_port

    @property
    def known_hosts_path(self) -> str | None:
        """Path to known_hosts file or None if disabled."""
        return self.host_keys.get_known_hosts_path()
