"""Docker Compose operations and status collection on the remote host.

Status parsing is done by pure functions from raw `docker compose ps` text
to ServiceStatus records so it can be tested without a remote host. The
structured, tab-separated format is tried first; the plain table output is
parsed heuristically as a fallback.
"""

import asyncio
import json
import logging
import re
from collections.abc import AsyncIterator
from typing import Any

import yaml

from deploy_scout.models import ComposeOperationResult, ComposeStatus, ServiceStatus
from deploy_scout.protocols import RemoteSession
from deploy_scout.services.errors import RemoteCommandError
from deploy_scout.utils.shell import quote_remote_path
from deploy_scout.utils.urls import build_service_url, is_valid_port

logger = logging.getLogger(__name__)

STATUS_FORMAT = "table {{.Name}}\\t{{.Service}}\\t{{.Status}}\\t{{.Ports}}"

STATUS_KEYWORDS = ("Up", "Exited", "Restarting", "Dead", "Created", "Paused")
_HEALTHY_WORDS = ("up", "running", "healthy")
_TERMINAL_WORDS = ("exited", "dead", "stopped", "killed")

_PORT_MAPPING = re.compile(r"\d+\.\d+\.\d+\.\d+:\d+->\d+/\w+")
_PUBLISHED_PORT = re.compile(r":(\d+)->")
_COMPOSE_FILE_PORT = re.compile(r"^(?:[\d.]+:)?(\d+):\d+(?:/\w+)?$")


# Status classification


def is_status_healthy(status: str) -> bool:
    """Service is running: status mentions up, running or healthy."""
    lowered = status.lower()
    return any(word in lowered for word in _HEALTHY_WORDS)


def is_status_terminal(status: str) -> bool:
    """Service will not change state without intervention."""
    lowered = status.lower()
    if any(word in lowered for word in _TERMINAL_WORDS):
        return True
    return "exit" in lowered and ("0" in lowered or "code" in lowered)


def is_successful_exit(status: str) -> bool:
    """Terminal status that reports exit code 0."""
    lowered = status.lower()
    return "exited" in lowered and ("(0)" in lowered or "exit 0" in lowered)


def make_service_status(
    name: str,
    status: str,
    container: str = "",
    ports: str = "",
    details: str = "",
) -> ServiceStatus:
    """Build a ServiceStatus with healthy/terminal flags derived from status."""
    return ServiceStatus(
        name=name,
        status=status,
        container=container,
        ports=ports,
        healthy=is_status_healthy(status),
        terminal=is_status_terminal(status),
        details=details,
    )


# Structured output


_HEADER_FIELDS = ("NAME", "CONTAINER")


def _is_header(line: str) -> bool:
    fields = line.split()
    return bool(fields) and fields[0].upper() in _HEADER_FIELDS


def parse_status_line(line: str) -> ServiceStatus | None:
    """Parse one tab-separated `Name Service Status Ports` line.

    Returns:
        ServiceStatus, or None for headers and lines with fewer than 3 fields
    """
    if not line.strip() or _is_header(line):
        return None
    parts = [part.strip() for part in line.split("\t") if part.strip()]
    if len(parts) < 3:
        return None

    container, service, status = parts[0], parts[1], parts[2]
    ports = parts[3] if len(parts) > 3 else ""
    return make_service_status(
        name=service,
        status=status,
        container=container,
        ports=ports,
        details=f"Container: {container}, Status: {status}",
    )


def parse_status_output(output: str) -> list[ServiceStatus]:
    """Parse structured `docker compose ps --format` output."""
    services = []
    for line in output.split("\n"):
        service = parse_status_line(line.rstrip("\r"))
        if service is not None:
            services.append(service)
    return services


# Unformatted output


def extract_service_name(container: str) -> str:
    """Guess the service from a container name like project_web_1 or app-web-1."""
    parts = [part for part in re.split(r"[_-]", container) if part]
    if len(parts) >= 2:
        return parts[-2]
    return container


def extract_status(line: str) -> str:
    """Find the status phrase, e.g. 'Up 2 minutes', in a table line."""
    lowered = line.lower()
    for keyword in STATUS_KEYWORDS:
        index = lowered.find(keyword.lower())
        if index < 0:
            continue
        end = line.find("  ", index)
        if end > index:
            return line[index:end].strip()
        return line[index:].strip()
    return "unknown"


def extract_ports(line: str) -> str:
    """Collect a.b.c.d:port->port/proto mappings from a table line."""
    return ", ".join(_PORT_MAPPING.findall(line))


def parse_fallback_output(output: str) -> list[ServiceStatus]:
    """Parse plain `docker compose ps` table output heuristically."""
    services = []
    for raw in output.split("\n"):
        line = raw.rstrip("\r")
        if not line.strip() or _is_header(line) or line.startswith("--"):
            continue
        parts = line.split()
        if len(parts) < 2:
            continue
        container = parts[0]
        services.append(
            make_service_status(
                name=extract_service_name(container),
                status=extract_status(line),
                container=container,
                ports=extract_ports(line),
                details=line.strip(),
            )
        )
    return services


def published_ports(ports: str) -> list[int]:
    """Host ports published in a Ports column, in order, without duplicates."""
    result: list[int] = []
    for match in _PUBLISHED_PORT.findall(ports):
        port = int(match)
        if is_valid_port(port) and port not in result:
            result.append(port)
    return result


def urls_from_statuses(services: list[ServiceStatus], host: str) -> dict[str, list[str]]:
    """Map each service to URLs of its published ports."""
    service_urls: dict[str, list[str]] = {}
    for service in services:
        urls = [build_service_url(host, port) for port in published_ports(service.ports)]
        if urls:
            service_urls.setdefault(service.name, [])
            for url in urls:
                if url not in service_urls[service.name]:
                    service_urls[service.name].append(url)
    return service_urls


# Remote collection


def status_command(deploy_path: str) -> str:
    path = quote_remote_path(deploy_path)
    return (
        f"cd {path} && (docker compose ps --format '{STATUS_FORMAT}' "
        f"|| docker-compose ps --format '{STATUS_FORMAT}' || true)"
    )


def fallback_status_command(deploy_path: str) -> str:
    path = quote_remote_path(deploy_path)
    return f"cd {path} && (docker compose ps || docker-compose ps || true)"


async def get_service_statuses(session: RemoteSession, deploy_path: str) -> list[ServiceStatus]:
    """Collect per-service status, falling back to the plain table format.

    Raises:
        TransportError: If the session fails; parsing problems never raise
    """
    result = await session.run(status_command(deploy_path))
    services: list[ServiceStatus] = []
    if result.succeeded and result.output:
        services = parse_status_output(result.output)

    if not services:
        logger.debug("Structured compose ps gave no services, trying plain output")
        fallback = await session.run(fallback_status_command(deploy_path))
        if fallback.succeeded and fallback.output:
            services = parse_fallback_output(fallback.output)

    logger.debug(
        "Compose status in %s: %d service(s), %d healthy",
        deploy_path,
        len(services),
        sum(1 for s in services if s.healthy),
    )
    return services


async def collect_compose_status(
    session: RemoteSession,
    deploy_path: str,
    host: str | None = None,
) -> ComposeStatus:
    """Snapshot all services of the deployment, with URLs of published ports.

    Args:
        session: Connected remote session
        deploy_path: Directory holding the compose file
        host: Host name used in URLs (default: the session's host)

    Returns:
        ComposeStatus with services in listing order
    """
    services = await get_service_statuses(session, deploy_path)
    url_host = host or session.context.host
    return ComposeStatus(services=services, service_urls=urls_from_statuses(services, url_host))


async def watch_compose_status(
    session: RemoteSession,
    deploy_path: str,
    interval: float = 10.0,
    host: str | None = None,
) -> AsyncIterator[ComposeStatus]:
    """Yield a status snapshot immediately, then once per interval.

    Stops when the consumer stops iterating or the task is cancelled.
    """
    while True:
        yield await collect_compose_status(session, deploy_path, host)
        await asyncio.sleep(interval)


# Lifecycle operations


def _operation_result(exit_code: int, output: str, error: str) -> ComposeOperationResult:
    return ComposeOperationResult(exit_code=exit_code, output=output, error=error)


async def stop_services(session: RemoteSession, deploy_path: str) -> ComposeOperationResult:
    """Run `docker compose down`. Tolerates a deployment that is not running."""
    path = quote_remote_path(deploy_path)
    logger.info("Stopping containers in %s", deploy_path)
    result = await session.run(
        f"cd {path} && (docker compose down || docker-compose down || true)"
    )
    logger.debug("Stop completed with exit code %d", result.exit_code)
    return _operation_result(result.exit_code, result.output, result.error)


async def pull_images(session: RemoteSession, deploy_path: str) -> ComposeOperationResult:
    """Run `docker compose pull`. Pull failures are not fatal."""
    path = quote_remote_path(deploy_path)
    logger.info("Pulling images in %s", deploy_path)
    result = await session.run(
        f"cd {path} && (docker compose pull || docker-compose pull || true)"
    )
    logger.debug("Pull completed with exit code %d", result.exit_code)
    return _operation_result(result.exit_code, result.output, result.error)


async def start_services(session: RemoteSession, deploy_path: str) -> ComposeOperationResult:
    """Run `docker compose up -d`, which must succeed.

    Raises:
        RemoteCommandError: If the containers could not be started
    """
    path = quote_remote_path(deploy_path)
    command = f"cd {path} && (docker compose up -d || docker-compose up -d)"
    logger.info("Starting containers in %s", deploy_path)
    result = await session.run(command)
    if not result.succeeded:
        logger.warning("Start failed with exit code %d: %s", result.exit_code, result.error)
        raise RemoteCommandError(command, result)
    return _operation_result(result.exit_code, result.output, result.error)


async def get_compose_logs(session: RemoteSession, deploy_path: str, tail: int = 100) -> str:
    """Get the last lines of logs from every service in the deployment."""
    path = quote_remote_path(deploy_path)
    result = await session.run(
        f"cd {path} && (docker compose logs --tail={int(tail)} "
        f"|| docker-compose logs --tail={int(tail)} || true)"
    )
    logger.debug("Retrieved %d characters of logs", len(result.output))
    return result.output


# URL discovery


def _compose_json_records(output: str) -> list[dict[str, Any]]:
    """Decode `docker compose ps --format json` (a JSON array or NDJSON)."""
    text = output.strip()
    if not text:
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    if isinstance(data, dict):
        return [data]

    records = []
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        try:
            item = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Skipping unparseable compose ps line: %s", line)
            continue
        if isinstance(item, dict):
            records.append(item)
    return records


def parse_compose_json_ports(output: str, host: str) -> dict[str, list[str]]:
    """Extract URLs from the Publishers of `docker compose ps --format json`."""
    service_urls: dict[str, list[str]] = {}
    for record in _compose_json_records(output):
        name = record.get("Service") or record.get("Name")
        publishers = record.get("Publishers") or []
        if not name or not isinstance(publishers, list):
            continue
        urls = []
        for publisher in publishers:
            if not isinstance(publisher, dict):
                continue
            try:
                port = int(publisher.get("PublishedPort") or 0)
            except (TypeError, ValueError):
                continue
            url = build_service_url(host, port)
            if is_valid_port(port) and url not in urls:
                urls.append(url)
        if urls:
            service_urls[name] = urls
    return service_urls


def parse_docker_ps_ports(output: str, host: str) -> dict[str, list[str]]:
    """Extract URLs from `docker ps --format 'table {{.Names}}\\t{{.Ports}}'`."""
    service_urls: dict[str, list[str]] = {}
    lines = [line for line in output.split("\n") if line.strip()]
    for line in lines[1:]:
        parts = line.split("\t", 1)
        if len(parts) < 2 or "->" not in parts[1]:
            continue
        urls = [build_service_url(host, port) for port in published_ports(parts[1])]
        if urls:
            service_urls[parts[0].strip()] = urls
    return service_urls


def parse_compose_file_ports(content: str, host: str) -> dict[str, list[str]]:
    """Extract URLs from the `ports:` entries of a compose file."""
    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError as e:
        logger.debug("Cannot parse compose file: %s", e)
        return {}
    if not isinstance(document, dict) or not isinstance(document.get("services"), dict):
        return {}

    service_urls: dict[str, list[str]] = {}
    for name, definition in document["services"].items():
        if not isinstance(definition, dict):
            continue
        urls: list[str] = []
        for entry in definition.get("ports") or []:
            if isinstance(entry, dict):
                published = entry.get("published")
            else:
                match = _COMPOSE_FILE_PORT.match(str(entry).strip())
                published = match.group(1) if match else None
            try:
                port = int(published) if published is not None else 0
            except (TypeError, ValueError):
                continue
            url = build_service_url(host, port)
            if is_valid_port(port) and url not in urls:
                urls.append(url)
        if urls:
            service_urls[str(name)] = urls
    return service_urls


async def discover_service_urls(
    session: RemoteSession,
    deploy_path: str,
    host: str | None = None,
) -> dict[str, list[str]]:
    """Find URLs of published service ports.

    Tries compose JSON publishers, then the docker ps port table, then the
    compose file itself, returning the first non-empty result.
    """
    url_host = host or session.context.host
    path = quote_remote_path(deploy_path)

    result = await session.run(
        f"cd {path} && (docker compose ps --format json || docker-compose ps --format json) 2>/dev/null"
    )
    if result.succeeded and result.output:
        urls = parse_compose_json_ports(result.output, url_host)
        if urls:
            return urls

    result = await session.run(
        f"cd {path} && docker ps --format 'table {{{{.Names}}}}\\t{{{{.Ports}}}}' --no-trunc"
    )
    if result.succeeded and result.output:
        urls = parse_docker_ps_ports(result.output, url_host)
        if urls:
            return urls

    result = await session.run(
        f"cd {path} && (cat docker-compose.yml 2>/dev/null || cat docker-compose.yaml 2>/dev/null "
        "|| cat compose.yaml 2>/dev/null)"
    )
    if result.succeeded and result.output:
        return parse_compose_file_ports(result.output, url_host)

    logger.debug("No service URLs discovered in %s", deploy_path)
    return {}
