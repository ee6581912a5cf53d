"""SSH-related data models."""

from dataclasses import dataclass, field
from enum import Enum


class SessionState(Enum):
    """Lifecycle of a remote session.

    A session moves DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED
    exactly once. A session that failed to connect or was torn down is never
    reopened; create a new one instead.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class ConnectionContext:
    """Connection parameters for a single remote host.

    When neither identity_file nor password is given, authentication is
    delegated to ssh-agent and the default key files. With identity_file set,
    password is used as the key passphrase.
    """

    host: str
    username: str = "root"
    port: int = 22
    identity_file: str | None = None
    password: str | None = field(default=None, repr=False)
    connect_timeout: int = 30

    @property
    def destination(self) -> str:
        """Get the user@host form used by ssh and scp."""
        return f"{self.username}@{self.host}"

    @property
    def has_credentials(self) -> bool:
        """Whether explicit credential material was supplied."""
        return bool(self.identity_file or self.password)

    def __str__(self) -> str:
        return f"{self.destination}:{self.port}"


@dataclass
class SSHHost:
    """Host alias read from an SSH config file.

    Fields left as None were not set for the alias and fall back to the
    environment settings when a ConnectionContext is built.
    """

    name: str
    hostname: str
    user: str | None = None
    port: int | None = None
    identity_file: str | None = None
