"""Deploy Scout FastMCP server.

This is a thin wrapper that wires together the MCP server with tools.
All business logic is delegated to the tools/ and services/ modules.
"""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from deploy_scout.config import Settings
from deploy_scout.dependencies import Dependencies
from deploy_scout.middleware import ErrorHandlingMiddleware, LoggingMiddleware
from deploy_scout.services.state import set_dependencies
from deploy_scout.tools import (
    compose_status,
    dashboard_token,
    deployment_status,
    run_command,
    service_logs,
    upload_file,
    wait_for_healthy,
)
from deploy_scout.utils.console import MCPRequestFormatter

NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "asyncssh",
    "httpx",
    "httpcore",
    "fastmcp",
    "starlette",
    "anyio",
)


def _configure_logging() -> None:
    """Configure colorful logging for the deploy_scout package.

    Called at module load time so logging is configured before any loggers
    are used, regardless of how the server is started.
    """
    settings = Settings.from_env()
    use_colors = settings.log_colors and sys.stderr.isatty()

    package_logger = logging.getLogger("deploy_scout")
    package_logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(MCPRequestFormatter(use_colors=use_colors))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    for name in NOISY_LOGGERS:
        lg = logging.getLogger(name)
        lg.setLevel(logging.WARNING)
        lg.handlers = []
        lg.propagate = False

    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(logging.WARNING)


_configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Own the dependency container for the lifetime of the server.

    Sessions are opened lazily by the tools and all of them are closed
    on shutdown.

    Yields:
        Dict with the dependency container
    """
    logger.info("Deploy Scout server starting up")

    deps = Dependencies.create()
    set_dependencies(deps)

    settings = deps.config.settings
    logger.info(
        "Default target: %s (transport=%s, deploy_path=%s)",
        settings.host or "(none)",
        settings.transport,
        settings.deploy_path,
    )
    logger.info("Deploy Scout server ready to accept connections")

    try:
        yield {"deps": deps}
    finally:
        logger.info("Deploy Scout server shutting down")
        await deps.cleanup()
        logger.info("Deploy Scout server shutdown complete")


def configure_middleware(server: FastMCP, settings: Settings | None = None) -> None:
    """Configure middleware stack for the server.

    Adds middleware in order: ErrorHandling -> Logging (with integrated timing)

    Args:
        server: The FastMCP server to configure.
        settings: Settings to read logging options from (default: environment)
    """
    settings = settings or Settings.from_env()

    # First added = innermost
    server.add_middleware(ErrorHandlingMiddleware(include_traceback=settings.include_traceback))
    server.add_middleware(
        LoggingMiddleware(
            include_payloads=settings.log_payloads,
            slow_threshold_ms=float(settings.slow_threshold_ms),
        )
    )


def create_server() -> FastMCP:
    """Create and configure the MCP server with all middleware and tools.

    Returns:
        Configured FastMCP server instance
    """
    server = FastMCP("deploy_scout", lifespan=app_lifespan)

    configure_middleware(server)

    for tool in (
        compose_status,
        deployment_status,
        wait_for_healthy,
        service_logs,
        dashboard_token,
        run_command,
        upload_file,
    ):
        server.tool()(tool)

    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> PlainTextResponse:
        """Health check endpoint."""
        client_host = request.client.host if request.client else "unknown"
        logger.debug("Health check from %s", client_host)
        return PlainTextResponse("OK")

    return server


# Default server instance
mcp = create_server()
