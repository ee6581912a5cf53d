"""Deployment tool handlers.

Each handler takes the dependency container explicitly and returns text for
the MCP client. Deployment and transport failures are returned as
"Error: ..." strings; programming errors propagate.
"""

import logging

from deploy_scout.dependencies import Dependencies
from deploy_scout.models import ServiceReport
from deploy_scout.services.compose import collect_compose_status
from deploy_scout.services.errors import (
    DockerEnvironmentError,
    HealthCheckError,
    RemoteCommandError,
    TransportError,
)
from deploy_scout.services.files import transfer_with_verification
from deploy_scout.services.inspector import extract_token, get_service_logs
from deploy_scout.services.monitor import HealthMonitor, get_deployment_status
from deploy_scout.utils.urls import can_show_host, format_status_table, mask_url_hosts

logger = logging.getLogger(__name__)

HANDLED_ERRORS = (TransportError, RemoteCommandError, DockerEnvironmentError, ValueError)

_OUTCOME_ICONS = {
    "healthy": "✓",
    "completed": "✓",
    "failed": "✗",
    "timed_out": "⧗",
}


def _format_report(report: ServiceReport) -> str:
    icon = _OUTCOME_ICONS.get(report.outcome.value, "?")
    return f"  [{icon}] {report.name}: {report.outcome.value} ({report.status or 'unknown'})"


async def handle_compose_status(
    deps: Dependencies,
    host: str | None = None,
    path: str | None = None,
    show_host: bool = False,
) -> str:
    """Render the service table of a deployment.

    Args:
        deps: Dependency container
        host: SSH config alias or hostname (default: DEPLOY_SCOUT_HOST)
        path: Deployment directory (default: DEPLOY_SCOUT_DEPLOY_PATH)
        show_host: Show IP addresses in URLs instead of masking them

    Returns:
        Service table or error message
    """
    deploy_path = path or deps.config.deploy_path
    try:
        session = await deps.get_session(host)
        status = await collect_compose_status(session, deploy_path)
    except HANDLED_ERRORS as e:
        return f"Error: {e}"

    urls = status.service_urls
    if not can_show_host(session.context.host, force=show_host):
        urls = mask_url_hosts(urls)

    summary = f"{status.healthy}/{status.total} services healthy"
    if status.failed:
        summary += f", {status.failed} failed"
    return f"{format_status_table(status, urls)}\n{summary}"


async def handle_deployment_status(
    deps: Dependencies,
    host: str | None = None,
    path: str | None = None,
) -> str:
    """List each service with health and its first discovered URL."""
    deploy_path = path or deps.config.deploy_path
    try:
        session = await deps.get_session(host)
        status = await get_deployment_status(session, deploy_path)
    except HANDLED_ERRORS as e:
        return f"Error: {e}"

    if not status.services:
        return f"No services found in {deploy_path}"

    lines = [f"Deployment {deploy_path}: {status.healthy}/{status.total} services healthy"]
    for service in status.services:
        icon = "✓" if service.healthy else "✗"
        url = f" -> {service.url}" if service.url else ""
        lines.append(f"  [{icon}] {service.name} ({service.status}){url}")
    return "\n".join(lines)


async def handle_wait_for_healthy(
    deps: Dependencies,
    host: str | None = None,
    path: str | None = None,
    interval: float | None = None,
    max_wait: float | None = None,
) -> str:
    """Run the health monitor and report every service's outcome."""
    settings = deps.config.settings
    deploy_path = path or deps.config.deploy_path
    try:
        session = await deps.get_session(host)
        monitor = HealthMonitor(
            session,
            deploy_path,
            interval=interval if interval is not None else settings.health_interval,
            max_wait=max_wait if max_wait is not None else settings.health_max_wait,
        )
        result = await monitor.wait_for_healthy()
    except HealthCheckError as e:
        lines = [f"Error: {e}"]
        lines.extend(_format_report(r) for r in e.result.reports)
        return "\n".join(lines)
    except HANDLED_ERRORS as e:
        return f"Error: {e}"

    if not result.reports:
        return f"No services found in {deploy_path}"

    lines = [f"All services settled after {result.elapsed:.1f}s: {result.summary()}"]
    lines.extend(_format_report(r) for r in result.reports)
    return "\n".join(lines)


async def handle_service_logs(
    deps: Dependencies,
    service: str,
    host: str | None = None,
    tail: int = 100,
) -> str:
    """Get the tail of a container's logs."""
    try:
        session = await deps.get_session(host)
        logs = await get_service_logs(session, service, tail=tail)
    except HANDLED_ERRORS as e:
        return f"Error: {e}"
    return logs or f"(no logs for {service})"


async def handle_dashboard_token(
    deps: Dependencies,
    service: str,
    host: str | None = None,
    timeout: float | None = None,
) -> str:
    """Wait for a login token to appear in a service's logs."""
    wait = timeout if timeout is not None else deps.config.settings.token_timeout
    try:
        session = await deps.get_session(host)
        token = await extract_token(session, service, timeout=wait)
    except HANDLED_ERRORS as e:
        return f"Error: {e}"

    if token is None:
        return f"No dashboard token found in {service} logs within {wait}s"
    return token


async def handle_run_command(
    deps: Dependencies,
    command: str,
    host: str | None = None,
    timeout: float | None = None,
) -> str:
    """Execute a shell command on the target host."""
    try:
        session = await deps.get_session(host)
        result = await session.run(command, timeout=timeout)
    except HANDLED_ERRORS as e:
        return f"Error: {e}"

    output_parts = []
    if result.output:
        output_parts.append(result.output)
    if result.error:
        output_parts.append(f"[stderr]\n{result.error}")
    if not result.succeeded:
        output_parts.append(f"[exit code: {result.exit_code}]")
    return "\n".join(output_parts) if output_parts else "(no output)"


async def handle_upload_file(
    deps: Dependencies,
    local_path: str,
    remote_path: str,
    host: str | None = None,
) -> str:
    """Upload a file and verify its size on the remote side."""
    try:
        session = await deps.get_session(host)
        result = await transfer_with_verification(session, local_path, remote_path)
    except HANDLED_ERRORS as e:
        return f"Error: {e}"
    return f"{result.message} ({result.bytes_transferred} bytes, verified)"
