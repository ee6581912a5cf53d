"""SSH config file parser.

Reads ~/.ssh/config and extracts host aliases so a deployment target can be
named the same way it is named for `ssh`.
"""

import logging
import os
import re
from pathlib import Path

from deploy_scout.models import SSHHost

logger = logging.getLogger(__name__)


class SSHConfigParser:
    """Parser for SSH config files.

    Only HostName, User, Port and IdentityFile are read. Values under a
    wildcard `Host *` block apply to every alias that follows it.
    """

    def __init__(self, config_path: Path | str | None = None):
        """Initialize SSH config parser.

        Args:
            config_path: Path to SSH config file (default: ~/.ssh/config)
        """
        if config_path is None:
            config_path = Path.home() / ".ssh" / "config"
        self.config_path = Path(config_path)

    def parse(self) -> dict[str, SSHHost]:
        """Parse SSH config and return host definitions.

        Returns:
            Dictionary mapping alias to SSHHost
        """
        if not self.config_path.exists():
            logger.debug("SSH config not found: %s", self.config_path)
            return {}

        try:
            content = self.config_path.read_text()
        except OSError as e:
            logger.warning("Cannot read SSH config %s: %s", self.config_path, e)
            return {}

        hosts: dict[str, SSHHost] = {}
        current_host: str | None = None
        current_data: dict[str, str] = {}
        global_defaults: dict[str, str] = {}

        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            host_match = re.match(r"^Host\s+(\S+)", line, re.IGNORECASE)
            if host_match:
                self._store(hosts, current_host, current_data)
                current_host = host_match.group(1)
                if "*" in current_host or "?" in current_host:
                    current_host = "*"
                current_data = global_defaults.copy() if current_host != "*" else {}
                continue

            kv_match = re.match(r"^(\w+)\s*=?\s*(.+)$", line)
            if kv_match and current_host:
                key = kv_match.group(1).lower()
                value = kv_match.group(2).strip().strip('"')
                if key == "identityfile":
                    value = os.path.expanduser(value)
                current_data[key] = value
                if current_host == "*":
                    global_defaults[key] = value

        self._store(hosts, current_host, current_data)
        logger.debug("Parsed %d hosts from %s", len(hosts), self.config_path)
        return hosts

    def _store(
        self,
        hosts: dict[str, SSHHost],
        name: str | None,
        data: dict[str, str],
    ) -> None:
        if not name or name == "*" or not data.get("hostname"):
            return

        port: int | None = None
        if "port" in data:
            try:
                port = int(data["port"])
            except ValueError:
                logger.warning("Invalid port for host %s: %s", name, data["port"])

        hosts[name] = SSHHost(
            name=name,
            hostname=data["hostname"],
            user=data.get("user"),
            port=port,
            identity_file=data.get("identityfile"),
        )
