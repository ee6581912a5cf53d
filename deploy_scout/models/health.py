"""Health check data models."""

from dataclasses import dataclass, field
from enum import Enum


class ServiceOutcome(Enum):
    """Final verdict for a service after health monitoring."""

    HEALTHY = "healthy"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class ServiceReport:
    """Outcome of a single service at the end of monitoring."""

    name: str
    outcome: ServiceOutcome
    status: str = ""
    message: str = ""

    @property
    def is_failure(self) -> bool:
        return self.outcome in (ServiceOutcome.FAILED, ServiceOutcome.TIMED_OUT)


@dataclass
class HealthCheckResult:
    """Aggregate result of a health monitoring run."""

    reports: list[ServiceReport] = field(default_factory=list)
    elapsed: float = 0.0
    timed_out: bool = False

    @property
    def total(self) -> int:
        return len(self.reports)

    @property
    def healthy(self) -> int:
        return sum(1 for r in self.reports if not r.is_failure)

    @property
    def failures(self) -> list[ServiceReport]:
        return [r for r in self.reports if r.is_failure]

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        """One line summary, e.g. '2/3 services healthy'."""
        return f"{self.healthy}/{self.total} services healthy"


@dataclass
class ServiceHealth:
    """Health of one service merged with its first reachable URL."""

    name: str
    healthy: bool
    status: str
    url: str | None = None


@dataclass
class DeploymentStatus:
    """Health snapshot of a deployment with discovered service URLs."""

    services: list[ServiceHealth] = field(default_factory=list)
    service_urls: dict[str, list[str]] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.services)

    @property
    def healthy(self) -> int:
        return sum(1 for s in self.services if s.healthy)
