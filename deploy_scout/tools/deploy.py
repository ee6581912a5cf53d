"""MCP tools for inspecting compose deployments over SSH."""

from deploy_scout.services.state import get_dependencies
from deploy_scout.tools.handlers import (
    handle_compose_status,
    handle_dashboard_token,
    handle_deployment_status,
    handle_run_command,
    handle_service_logs,
    handle_upload_file,
    handle_wait_for_healthy,
)


async def compose_status(
    host: str | None = None,
    path: str | None = None,
    show_host: bool = False,
) -> str:
    """Show the status of every compose service in a deployment directory.

    Args:
        host: SSH config alias or hostname. Defaults to DEPLOY_SCOUT_HOST.
        path: Remote deployment directory. Defaults to DEPLOY_SCOUT_DEPLOY_PATH.
        show_host: Show IP addresses in service URLs instead of masking them.

    Returns:
        Table of services with status and URLs.
    """
    return await handle_compose_status(get_dependencies(), host, path, show_host)


async def deployment_status(host: str | None = None, path: str | None = None) -> str:
    """Show health and first discovered URL of each service.

    Args:
        host: SSH config alias or hostname. Defaults to DEPLOY_SCOUT_HOST.
        path: Remote deployment directory. Defaults to DEPLOY_SCOUT_DEPLOY_PATH.
    """
    return await handle_deployment_status(get_dependencies(), host, path)


async def wait_for_healthy(
    host: str | None = None,
    path: str | None = None,
    interval: float | None = None,
    max_wait: float | None = None,
) -> str:
    """Wait until every service is running or has exited, then report each one.

    Args:
        host: SSH config alias or hostname. Defaults to DEPLOY_SCOUT_HOST.
        path: Remote deployment directory. Defaults to DEPLOY_SCOUT_DEPLOY_PATH.
        interval: Seconds between polls. Defaults to DEPLOY_SCOUT_HEALTH_INTERVAL.
        max_wait: Seconds before unsettled services time out.
            Defaults to DEPLOY_SCOUT_HEALTH_MAX_WAIT.
    """
    return await handle_wait_for_healthy(get_dependencies(), host, path, interval, max_wait)


async def service_logs(service: str, host: str | None = None, tail: int = 100) -> str:
    """Read the last lines of a container's logs.

    Args:
        service: Container name.
        host: SSH config alias or hostname. Defaults to DEPLOY_SCOUT_HOST.
        tail: Number of lines to return.
    """
    return await handle_service_logs(get_dependencies(), service, host, tail)


async def dashboard_token(
    service: str,
    host: str | None = None,
    timeout: float | None = None,
) -> str:
    """Wait for a dashboard login token to appear in a service's logs.

    Args:
        service: Container name.
        host: SSH config alias or hostname. Defaults to DEPLOY_SCOUT_HOST.
        timeout: Seconds to keep looking. Defaults to DEPLOY_SCOUT_TOKEN_TIMEOUT.
    """
    return await handle_dashboard_token(get_dependencies(), service, host, timeout)


async def run_command(
    command: str,
    host: str | None = None,
    timeout: float | None = None,
) -> str:
    """Run a shell command on the target host.

    Args:
        command: Shell command line.
        host: SSH config alias or hostname. Defaults to DEPLOY_SCOUT_HOST.
        timeout: Seconds before the command is abandoned.
    """
    return await handle_run_command(get_dependencies(), command, host, timeout)


async def upload_file(local_path: str, remote_path: str, host: str | None = None) -> str:
    """Copy a local file to the target host and verify its size.

    Args:
        local_path: File on the machine running this server.
        remote_path: Destination path; ~ and $VARS are expanded remotely.
        host: SSH config alias or hostname. Defaults to DEPLOY_SCOUT_HOST.
    """
    return await handle_upload_file(get_dependencies(), local_path, remote_path, host)
