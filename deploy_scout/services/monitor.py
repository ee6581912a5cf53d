"""Health monitoring of a compose deployment.

Polls `docker compose ps` until every service is running or has stopped for
good, or until max_wait elapses, then evaluates each service once and
reports all outcomes before raising a single aggregate error.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from deploy_scout.models import (
    DeploymentStatus,
    HealthCheckResult,
    ServiceHealth,
    ServiceOutcome,
    ServiceReport,
    ServiceStatus,
)
from deploy_scout.protocols import RemoteSession
from deploy_scout.services.compose import discover_service_urls, get_service_statuses
from deploy_scout.services.errors import HealthCheckError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 10.0
DEFAULT_MAX_WAIT = 300.0

ReportCallback = Callable[[ServiceReport], None]


def evaluate_service(service: ServiceStatus) -> ServiceReport:
    """Turn a service's final status into its outcome."""
    if service.healthy:
        detail = f", Ports: {service.ports}" if service.ports else ""
        return ServiceReport(
            name=service.name,
            outcome=ServiceOutcome.HEALTHY,
            status=service.status,
            message=f"Service {service.name} is healthy - Status: {service.status}{detail}",
        )
    if service.terminal:
        if service.successful_exit:
            return ServiceReport(
                name=service.name,
                outcome=ServiceOutcome.COMPLETED,
                status=service.status,
                message=f"Service {service.name} completed successfully - Status: {service.status}",
            )
        return ServiceReport(
            name=service.name,
            outcome=ServiceOutcome.FAILED,
            status=service.status,
            message=(
                f"Service {service.name} terminated unexpectedly - "
                f"Status: {service.status}, Details: {service.details}"
            ),
        )
    return ServiceReport(
        name=service.name,
        outcome=ServiceOutcome.TIMED_OUT,
        status=service.status,
        message=f"Service {service.name} failed to become healthy - Status: {service.status}",
    )


class HealthMonitor:
    """Wait for the services of a deployment to become healthy.

    Example:
        >>> monitor = HealthMonitor(session, "~/app", max_wait=120)
        >>> result = await monitor.wait_for_healthy()
        >>> print(result.summary())
    """

    def __init__(
        self,
        session: RemoteSession,
        deploy_path: str,
        interval: float = DEFAULT_INTERVAL,
        max_wait: float = DEFAULT_MAX_WAIT,
        on_report: ReportCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize health monitor.

        Args:
            session: Connected remote session
            deploy_path: Directory holding the compose file
            interval: Seconds between polls
            max_wait: Seconds before unsettled services are timed out
            on_report: Called once per service with its final report
            clock: Monotonic time source
        """
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        if max_wait < 0:
            raise ValueError(f"max_wait must be >= 0, got {max_wait}")

        self.session = session
        self.deploy_path = deploy_path
        self.interval = interval
        self.max_wait = max_wait
        self.on_report = on_report
        self._clock = clock

    async def _pause(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def _poll(self) -> list[ServiceStatus]:
        return await get_service_statuses(self.session, self.deploy_path)

    async def wait_for_healthy(self) -> HealthCheckResult:
        """Poll until every service settles or max_wait elapses.

        Returns:
            HealthCheckResult when every service is healthy or completed

        Raises:
            HealthCheckError: After all reports were emitted, if any service
                failed, timed out or could not be polled
            TransportError: If the very first poll fails
        """
        start = self._clock()
        logger.debug(
            "Starting health check for services in %s (interval=%ss, max_wait=%ss)",
            self.deploy_path,
            self.interval,
            self.max_wait,
        )

        initial = await self._poll()
        if not initial:
            logger.warning("No services found in %s", self.deploy_path)
            return HealthCheckResult(elapsed=self._clock() - start)

        latest: dict[str, ServiceStatus] = {}
        for service in initial:
            latest.setdefault(service.name, service)
        tracked = list(latest)
        logger.info("Monitoring %d service(s): %s", len(tracked), ", ".join(tracked))

        polls = 1
        timed_out = False
        poll_error: TransportError | None = None

        while not all(latest[name].stable for name in tracked):
            remaining = self.max_wait - (self._clock() - start)
            if remaining <= 0:
                timed_out = True
                logger.warning("Health check timed out after %ss", self.max_wait)
                break

            await self._pause(min(self.interval, remaining))

            try:
                current = await self._poll()
            except TransportError as e:
                poll_error = e
                logger.error("Health check polling failed: %s", e)
                break

            polls += 1
            self._merge(latest, current)
            logger.debug(
                "Poll #%d at %.1fs: %d/%d healthy, %d terminal",
                polls,
                self._clock() - start,
                sum(1 for name in tracked if latest[name].healthy),
                len(tracked),
                sum(1 for name in tracked if latest[name].terminal),
            )

        if poll_error is None:
            try:
                self._merge(latest, await self._poll())
                polls += 1
            except TransportError as e:
                poll_error = e
                logger.error("Final health poll failed: %s", e)

        reports = []
        for name in tracked:
            service = latest[name]
            if poll_error is not None and not service.stable:
                reports.append(
                    ServiceReport(
                        name=name,
                        outcome=ServiceOutcome.FAILED,
                        status=service.status,
                        message=(
                            f"Health check for service {name} failed due to polling error: "
                            f"{poll_error}"
                        ),
                    )
                )
            else:
                reports.append(evaluate_service(service))

        for report in reports:
            self._emit(report)

        result = HealthCheckResult(
            reports=reports,
            elapsed=self._clock() - start,
            timed_out=timed_out,
        )
        logger.info(
            "Health check completed after %.1fs (%d polls): %s",
            result.elapsed,
            polls,
            result.summary(),
        )

        if poll_error is not None:
            raise HealthCheckError(result) from poll_error
        if not result.succeeded:
            raise HealthCheckError(result)
        return result

    @staticmethod
    def _merge(latest: dict[str, ServiceStatus], current: list[ServiceStatus]) -> None:
        """Update tracked services; services missing from a poll keep their last status."""
        seen: set[str] = set()
        for service in current:
            if service.name in latest and service.name not in seen:
                latest[service.name] = service
                seen.add(service.name)

    def _emit(self, report: ServiceReport) -> None:
        if report.is_failure:
            logger.error(report.message)
        else:
            logger.info(report.message)
        if self.on_report is not None:
            try:
                self.on_report(report)
            except Exception as e:
                logger.warning("Report callback failed for %s: %s", report.name, e)


async def wait_for_healthy(
    session: RemoteSession,
    deploy_path: str,
    interval: float = DEFAULT_INTERVAL,
    max_wait: float = DEFAULT_MAX_WAIT,
    on_report: ReportCallback | None = None,
) -> HealthCheckResult:
    """Convenience wrapper around HealthMonitor.wait_for_healthy."""
    monitor = HealthMonitor(
        session,
        deploy_path,
        interval=interval,
        max_wait=max_wait,
        on_report=on_report,
    )
    return await monitor.wait_for_healthy()


async def get_deployment_status(
    session: RemoteSession,
    deploy_path: str,
    host: str | None = None,
) -> DeploymentStatus:
    """Snapshot service health merged with the first discovered URL of each."""
    statuses = await get_service_statuses(session, deploy_path)
    service_urls = await discover_service_urls(session, deploy_path, host)

    services = []
    for status in statuses:
        urls = service_urls.get(status.name) or service_urls.get(status.container) or []
        services.append(
            ServiceHealth(
                name=status.name,
                healthy=status.healthy,
                status=status.status,
                url=urls[0] if urls else None,
            )
        )

    result = DeploymentStatus(services=services, service_urls=service_urls)
    logger.debug(
        "Deployment status: %d/%d services healthy, %d URL(s) discovered",
        result.healthy,
        result.total,
        len(service_urls),
    )
    return result
