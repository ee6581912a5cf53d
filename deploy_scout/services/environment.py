"""Validation and preparation of the remote Docker environment."""

import logging

from deploy_scout.models import DeploymentState, DockerEnvironmentInfo
from deploy_scout.protocols import RemoteSession
from deploy_scout.services.errors import DockerEnvironmentError, RemoteCommandError
from deploy_scout.utils.shell import quote_remote_path

logger = logging.getLogger(__name__)


async def validate_docker_environment(session: RemoteSession) -> DockerEnvironmentInfo:
    """Check Docker, its daemon, Compose and the user's permissions.

    Returns:
        DockerEnvironmentInfo with version strings

    Raises:
        DockerEnvironmentError: On the first missing prerequisite
    """
    os_release = await session.run(
        "cat /etc/os-release 2>/dev/null | grep -E '^(NAME|VERSION)=' | head -2 || uname -a"
    )
    if os_release.succeeded and os_release.output:
        logger.info("Remote OS: %s", os_release.output.replace("\n", " "))

    docker = await session.run("docker --version")
    if not docker.succeeded:
        raise DockerEnvironmentError(
            f"Docker is not installed on the target server: {docker.combined()}"
        )
    logger.info("Remote Docker: %s", docker.output.strip())

    daemon = await session.run("docker info --format '{{.ServerVersion}}' 2>/dev/null")
    if not daemon.succeeded:
        raise DockerEnvironmentError(
            f"Docker daemon is not running on the target server: {daemon.combined()}"
        )

    compose = await session.run("docker compose version")
    if not compose.succeeded:
        raise DockerEnvironmentError(
            "Docker Compose is not available on the target server "
            f"('docker compose version' exited {compose.exit_code}): {compose.combined()}"
        )

    permissions = await session.run("docker ps > /dev/null 2>&1 && echo OK || echo SUDO_REQUIRED")
    if permissions.output.strip() != "OK":
        raise DockerEnvironmentError(
            "User does not have permission to run Docker commands. "
            "Add the user to the 'docker' group and reconnect."
        )

    info = DockerEnvironmentInfo(
        docker_version=docker.output.strip(),
        server_version=daemon.output.strip(),
        compose_version=compose.output.strip(),
        has_permissions=True,
    )
    logger.debug("Docker environment validated (server %s)", info.server_version)
    return info


async def prepare_deploy_dir(session: RemoteSession, deploy_path: str) -> str:
    """Create the deployment directory if needed.

    Raises:
        RemoteCommandError: If the directory could not be created
    """
    command = f"mkdir -p {quote_remote_path(deploy_path)}"
    result = await session.run(command)
    if not result.succeeded:
        raise RemoteCommandError(command, result)
    logger.debug("Deployment directory prepared: %s", deploy_path)
    return deploy_path


async def get_deployment_state(session: RemoteSession, deploy_path: str) -> DeploymentState:
    """List containers left by a previous deployment in deploy_path."""
    path = quote_remote_path(deploy_path)
    result = await session.run(
        f"cd {path} 2>/dev/null && docker compose ps -a --format '{{{{.Name}}}}' 2>/dev/null || true"
    )
    containers = [line.strip() for line in result.output.split("\n") if line.strip()]
    state = DeploymentState(existing_containers=containers)
    logger.debug(
        "Deployment state: %d existing container(s), previous deployment: %s",
        len(containers),
        state.has_previous_deployment,
    )
    return state
