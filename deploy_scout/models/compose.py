"""Docker Compose status data models."""

from dataclasses import dataclass, field


@dataclass
class ServiceStatus:
    """Status of one compose service as reported by `docker compose ps`."""

    name: str
    status: str
    container: str = ""
    ports: str = ""
    healthy: bool = False
    terminal: bool = False
    details: str = ""

    @property
    def stable(self) -> bool:
        """Whether the service reached a state worth reporting."""
        return self.healthy or self.terminal

    @property
    def successful_exit(self) -> bool:
        """Whether the service terminated with exit status 0."""
        lowered = self.status.lower()
        return "exited" in lowered and ("(0)" in lowered or "exit 0" in lowered)


@dataclass
class ComposeStatus:
    """Snapshot of every service in a compose deployment."""

    services: list[ServiceStatus] = field(default_factory=list)
    service_urls: dict[str, list[str]] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.services)

    @property
    def healthy(self) -> int:
        return sum(1 for s in self.services if s.healthy)

    @property
    def unhealthy(self) -> int:
        return self.total - self.healthy

    @property
    def failed(self) -> int:
        """Services that terminated without a clean exit."""
        return sum(
            1 for s in self.services if s.terminal and not s.successful_exit
        )

    def get(self, name: str) -> ServiceStatus | None:
        """Find a service by name."""
        for service in self.services:
            if service.name == name:
                return service
        return None


@dataclass
class ComposeOperationResult:
    """Result of a compose lifecycle command (up, down, pull)."""

    exit_code: int
    output: str = ""
    error: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0
