"""Tests for the shared session lifecycle."""

from pathlib import Path

import pytest

from deploy_scout.models import CommandResult, ConnectionContext, SessionState
from deploy_scout.services.errors import (
    ConnectionFailedError,
    FileTransferError,
    RemoteCommandError,
    SessionStateError,
    TransportTimeoutError,
)
from deploy_scout.services.session import BaseSession


class RecordingSession(BaseSession):
    """Session whose transport steps are scripted by the test."""

    transport_name = "recording"

    def __init__(
        self,
        responses: dict[str, CommandResult] | None = None,
        verify_error: Exception | None = None,
        close_error: Exception | None = None,
    ) -> None:
        super().__init__(ConnectionContext(host="example.com", username="deploy"))
        self.responses = responses or {}
        self.verify_error = verify_error
        self.close_error = close_error
        self.commands: list[str] = []
        self.uploads: list[tuple[Path, str]] = []
        self.opened = 0
        self.closed = 0

    async def _open(self) -> None:
        self.opened += 1

    async def _close(self) -> None:
        self.closed += 1
        if self.close_error:
            raise self.close_error

    async def _run(self, command: str, timeout: float | None) -> CommandResult:
        self.commands.append(command)
        if command == "whoami && pwd":
            if self.verify_error:
                raise self.verify_error
            return self.responses.get(command, CommandResult(0, "deploy\n/home/deploy"))
        return self.responses.get(command, CommandResult(0, ""))

    async def _upload(self, source: Path, destination: str) -> None:
        self.uploads.append((source, destination))


@pytest.mark.asyncio
async def test_connect_verifies_and_marks_connected() -> None:
    """connect opens the transport and runs the verification command."""
    session = RecordingSession()

    await session.connect()

    assert session.state is SessionState.CONNECTED
    assert session.is_connected
    assert session.commands == ["whoami && pwd"]


@pytest.mark.asyncio
async def test_run_before_connect_raises() -> None:
    """Using a session before connect raises SessionStateError."""
    session = RecordingSession()

    with pytest.raises(SessionStateError):
        await session.run("uptime")


@pytest.mark.asyncio
async def test_session_cannot_be_reopened() -> None:
    """A session connects at most once."""
    session = RecordingSession()
    await session.connect()
    await session.disconnect()

    with pytest.raises(SessionStateError):
        await session.connect()
    with pytest.raises(SessionStateError):
        await session.run("uptime")


@pytest.mark.asyncio
async def test_failed_verification_tears_down() -> None:
    """A failing verification command raises and releases the transport."""
    session = RecordingSession(
        responses={"whoami && pwd": CommandResult(1, "", "permission denied")}
    )

    with pytest.raises(ConnectionFailedError, match="verification command failed"):
        await session.connect()

    assert session.state is SessionState.DISCONNECTED
    assert session.closed == 1


@pytest.mark.asyncio
async def test_transport_error_during_verification_is_connection_failure() -> None:
    """Transport errors while verifying surface as ConnectionFailedError."""
    session = RecordingSession(verify_error=TransportTimeoutError("no output"))

    with pytest.raises(ConnectionFailedError) as exc_info:
        await session.connect()

    assert isinstance(exc_info.value.__cause__, TransportTimeoutError)
    assert session.state is SessionState.DISCONNECTED


@pytest.mark.asyncio
async def test_disconnect_is_idempotent_and_never_raises() -> None:
    """Teardown errors are swallowed and a second disconnect is a no-op."""
    session = RecordingSession(close_error=OSError("socket gone"))
    await session.connect()

    await session.disconnect()
    await session.disconnect()

    assert session.closed == 1
    assert session.state is SessionState.DISCONNECTED


@pytest.mark.asyncio
async def test_non_zero_exit_is_returned_not_raised() -> None:
    """run returns failing results; run_checked raises them."""
    session = RecordingSession(responses={"false": CommandResult(1, "", "nope")})
    await session.connect()

    result = await session.run("false")
    assert result.exit_code == 1

    with pytest.raises(RemoteCommandError) as exc_info:
        await session.run_checked("false")
    assert exc_info.value.result.exit_code == 1
    assert "nope" in str(exc_info.value)


@pytest.mark.asyncio
async def test_expand_remote_path_skips_plain_paths() -> None:
    """Paths without $ or ~ are returned without a round trip."""
    session = RecordingSession()
    await session.connect()

    assert await session.expand_remote_path("/opt/app") == "/opt/app"
    assert session.commands == ["whoami && pwd"]


@pytest.mark.asyncio
async def test_expand_remote_path_uses_remote_shell() -> None:
    """A leading ~ is expanded by echo on the remote host."""
    session = RecordingSession(
        responses={'echo "$HOME/app"': CommandResult(0, "/home/deploy/app")}
    )
    await session.connect()

    assert await session.expand_remote_path("~/app") == "/home/deploy/app"


@pytest.mark.asyncio
async def test_upload_expands_destination(tmp_path: Path) -> None:
    """upload copies to the expanded path and reports the file size."""
    source = tmp_path / "docker-compose.yml"
    source.write_text("services: {}\n")
    session = RecordingSession(
        responses={'echo "$HOME/app/docker-compose.yml"': CommandResult(0, "/home/deploy/app/docker-compose.yml")}
    )
    await session.connect()

    result = await session.upload(source, "~/app/docker-compose.yml")

    assert result.success
    assert result.bytes_transferred == source.stat().st_size
    assert session.uploads == [(source, "/home/deploy/app/docker-compose.yml")]


@pytest.mark.asyncio
async def test_upload_missing_file_raises(tmp_path: Path) -> None:
    """Uploading a missing local file raises FileTransferError."""
    session = RecordingSession()
    await session.connect()

    with pytest.raises(FileTransferError):
        await session.upload(tmp_path / "missing.env", "/opt/app/.env")


@pytest.mark.asyncio
async def test_context_manager_connects_and_disconnects() -> None:
    """async with connects on entry and disconnects on exit."""
    session = RecordingSession()

    async with session as active:
        assert active.is_connected

    assert session.state is SessionState.DISCONNECTED
    assert session.closed == 1
