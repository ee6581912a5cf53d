"""MCP tools for Deploy Scout."""

from deploy_scout.tools.deploy import (
    compose_status,
    dashboard_token,
    deployment_status,
    run_command,
    service_logs,
    upload_file,
    wait_for_healthy,
)

__all__ = [
    "compose_status",
    "dashboard_token",
    "deployment_status",
    "run_command",
    "service_logs",
    "upload_file",
    "wait_for_healthy",
]
