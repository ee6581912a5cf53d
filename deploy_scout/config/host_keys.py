"""SSH host key verification.

Resolves the known_hosts file used by the persistent transport.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class HostKeyVerifier:
    """Resolve and hold the known_hosts path for asyncssh connections."""

    def __init__(
        self,
        known_hosts_path: str | None = None,
        strict_checking: bool = False,
        default_path: Path | None = None,
    ):
        """Initialize host key verifier.

        Args:
            known_hosts_path: Path to known_hosts file or 'none' to disable
            strict_checking: Raise instead of disabling when the file is missing
            default_path: File used when no path is given (default: ~/.ssh/known_hosts)

        Raises:
            FileNotFoundError: If strict mode and file missing
        """
        self.strict_checking = strict_checking
        self._default = default_path or Path.home() / ".ssh" / "known_hosts"
        self._known_hosts = self._resolve_known_hosts(known_hosts_path)

    def _resolve_known_hosts(self, env_value: str | None) -> str | None:
        """Resolve known_hosts path.

        Returns:
            Path to known_hosts file or None to disable verification

        Raises:
            FileNotFoundError: If strict mode and file missing
        """
        if env_value and env_value.lower() == "none":
            logger.critical(
                "SSH HOST KEY VERIFICATION DISABLED for persistent sessions. "
                "Only use in trusted networks."
            )
            return None

        path = Path(os.path.expanduser(env_value)) if env_value else self._default
        if path.exists():
            return str(path)

        if self.strict_checking:
            raise FileNotFoundError(
                f"SSH host key verification required but known_hosts not found at {path}.\n\n"
                f"To fix this:\n"
                f"1. Add host keys: ssh-keyscan <hostname> >> {path}\n"
                f"2. Or disable strict mode: unset DEPLOY_SCOUT_STRICT_HOST_KEY_CHECKING\n"
                f"3. Or disable verification (NOT RECOMMENDED): DEPLOY_SCOUT_KNOWN_HOSTS=none"
            )
        logger.warning("known_hosts not found at %s, verification disabled", path)
        return None

    def get_known_hosts_path(self) -> str | None:
        """Get path to known_hosts file, or None if verification is disabled."""
        return self._known_hosts

    def is_enabled(self) -> bool:
        return self._known_hosts is not None
