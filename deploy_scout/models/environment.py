"""Remote host environment data models."""

from dataclasses import dataclass, field


@dataclass
class DockerEnvironmentInfo:
    """Docker tooling available on the remote host."""

    docker_version: str = ""
    server_version: str = ""
    compose_version: str = ""
    has_permissions: bool = False

    @property
    def is_ready(self) -> bool:
        """Whether Docker and Compose are usable by the SSH user."""
        return bool(self.docker_version and self.compose_version and self.has_permissions)


@dataclass
class DeploymentState:
    """Containers left behind by earlier deployments in a directory."""

    existing_containers: list[str] = field(default_factory=list)

    @property
    def has_previous_deployment(self) -> bool:
        return bool(self.existing_containers)


@dataclass
class RemoteFileInfo:
    """Existence and size of a remote file."""

    path: str
    exists: bool = False
    size: int = 0


@dataclass
class FileTransferResult:
    """Result of an upload followed by remote size verification."""

    success: bool
    bytes_transferred: int = 0
    verified: bool = False
    remote_file: RemoteFileInfo | None = None
    message: str = ""
