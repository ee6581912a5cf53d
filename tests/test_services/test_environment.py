"""Tests for remote Docker environment checks."""

import pytest

from deploy_scout.models import CommandResult, ConnectionContext
from deploy_scout.services.environment import (
    get_deployment_state,
    prepare_deploy_dir,
    validate_docker_environment,
)
from deploy_scout.services.errors import DockerEnvironmentError, RemoteCommandError

READY_HOST = [
    ("os-release", CommandResult(0, 'NAME="Debian GNU/Linux"\nVERSION="12 (bookworm)"')),
    ("docker --version", CommandResult(0, "Docker version 27.3.1, build ce12230")),
    ("docker info", CommandResult(0, "27.3.1")),
    ("docker compose version", CommandResult(0, "Docker Compose version v2.29.7")),
    ("docker ps", CommandResult(0, "OK")),
]


class FakeSession:
    def __init__(self, responses: list[tuple[str, CommandResult]]) -> None:
        self.context = ConnectionContext(host="example.com")
        self.responses = responses
        self.commands: list[str] = []

    async def run(self, command: str, timeout: float | None = None) -> CommandResult:
        self.commands.append(command)
        for needle, result in self.responses:
            if needle in command:
                return result
        return CommandResult(0)


def override(needle: str, result: CommandResult) -> list[tuple[str, CommandResult]]:
    return [(needle, result)] + READY_HOST


@pytest.mark.asyncio
async def test_ready_host_validates() -> None:
    """A host with Docker, a daemon, Compose and permissions is ready."""
    info = await validate_docker_environment(FakeSession(READY_HOST))

    assert info.is_ready
    assert info.server_version == "27.3.1"
    assert info.compose_version == "Docker Compose version v2.29.7"


@pytest.mark.asyncio
async def test_missing_docker_raises() -> None:
    """Missing docker stops validation before the later checks."""
    session = FakeSession(
        override("docker --version", CommandResult(127, "", "docker: command not found"))
    )

    with pytest.raises(DockerEnvironmentError, match="not installed"):
        await validate_docker_environment(session)

    assert not any("docker compose version" in c for c in session.commands)


@pytest.mark.asyncio
async def test_stopped_daemon_raises() -> None:
    """A daemon that is not running is reported."""
    session = FakeSession(override("docker info", CommandResult(1)))

    with pytest.raises(DockerEnvironmentError, match="daemon is not running"):
        await validate_docker_environment(session)


@pytest.mark.asyncio
async def test_missing_compose_raises() -> None:
    """Missing Compose v2 is reported with its exit code."""
    session = FakeSession(override("docker compose version", CommandResult(125)))

    with pytest.raises(DockerEnvironmentError, match="exited 125"):
        await validate_docker_environment(session)


@pytest.mark.asyncio
async def test_missing_permissions_raises() -> None:
    """A user outside the docker group cannot deploy."""
    session = FakeSession(override("docker ps", CommandResult(0, "SUDO_REQUIRED")))

    with pytest.raises(DockerEnvironmentError, match="permission"):
        await validate_docker_environment(session)


@pytest.mark.asyncio
async def test_prepare_deploy_dir() -> None:
    """The directory is created with mkdir -p; failure raises."""
    session = FakeSession([])
    assert await prepare_deploy_dir(session, "~/deploy") == "~/deploy"
    assert session.commands == ['mkdir -p "$HOME/deploy"']

    failing = FakeSession([("mkdir", CommandResult(1, "", "Permission denied"))])
    with pytest.raises(RemoteCommandError, match="Permission denied"):
        await prepare_deploy_dir(failing, "/srv/app")


@pytest.mark.asyncio
async def test_get_deployment_state() -> None:
    """Existing containers mark a previous deployment."""
    session = FakeSession([("ps -a", CommandResult(0, "app-web-1\napp-db-1\n"))])

    state = await get_deployment_state(session, "/opt/app")

    assert state.existing_containers == ["app-web-1", "app-db-1"]
    assert state.has_previous_deployment

    empty = await get_deployment_state(FakeSession([]), "/opt/app")
    assert not empty.has_previous_deployment
