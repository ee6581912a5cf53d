"""Tests for verified file transfer."""

from pathlib import Path

import pytest

from deploy_scout.models import CommandResult, ConnectionContext, TransferResult
from deploy_scout.services.errors import FileTransferError
from deploy_scout.services.files import get_file_info, transfer_with_verification


class FakeSession:
    def __init__(self, responses: list[tuple[str, CommandResult]]) -> None:
        self.context = ConnectionContext(host="example.com")
        self.responses = responses
        self.commands: list[str] = []
        self.uploads: list[tuple[Path, str]] = []

    async def run(self, command: str, timeout: float | None = None) -> CommandResult:
        self.commands.append(command)
        for needle, result in self.responses:
            if needle in command:
                return result
        return CommandResult(0)

    async def upload(self, local_path, remote_path: str) -> TransferResult:
        self.uploads.append((Path(local_path), remote_path))
        return TransferResult(success=True, message="ok")


def ls_line(size: int, name: str = "/opt/app/.env") -> str:
    return f"-rw-r--r-- 1 deploy deploy {size} Jan 10 12:00 {name}"


@pytest.mark.asyncio
async def test_get_file_info_parses_size() -> None:
    """The size column of ls -la is returned."""
    session = FakeSession([("ls -la", CommandResult(0, ls_line(1234)))])

    info = await get_file_info(session, "/opt/app/.env")

    assert info.exists
    assert info.size == 1234
    assert session.commands[0].startswith('ls -la "/opt/app/.env"')


@pytest.mark.asyncio
async def test_get_file_info_missing_file() -> None:
    """The not-found marker means the file does not exist."""
    session = FakeSession([("ls -la", CommandResult(0, "FILE_NOT_FOUND"))])

    info = await get_file_info(session, "~/missing")

    assert not info.exists
    assert '"$HOME/missing"' in session.commands[0]


@pytest.mark.asyncio
async def test_get_file_info_unparseable_listing_falls_back_to_test() -> None:
    """When ls output has no size, existence is checked with test -f."""
    session = FakeSession(
        [
            ("ls -la", CommandResult(0, "weird output")),
            ("test -f", CommandResult(0, "EXISTS")),
        ]
    )

    info = await get_file_info(session, "/opt/app/.env")

    assert info.exists
    assert info.size == -1


@pytest.mark.asyncio
async def test_transfer_with_verification(tmp_path: Path) -> None:
    """Upload is followed by a size check on the remote copy."""
    source = tmp_path / ".env"
    source.write_text("A=1\nB=2\n")
    size = source.stat().st_size
    session = FakeSession([("ls -la", CommandResult(0, ls_line(size)))])

    result = await transfer_with_verification(session, source, "/opt/app/.env")

    assert result.success
    assert result.verified
    assert result.bytes_transferred == size
    assert result.remote_file is not None and result.remote_file.size == size
    assert session.uploads == [(source, "/opt/app/.env")]


@pytest.mark.asyncio
async def test_transfer_size_mismatch_raises(tmp_path: Path) -> None:
    """A remote copy of a different size fails verification."""
    source = tmp_path / ".env"
    source.write_text("A=1\n")
    session = FakeSession([("ls -la", CommandResult(0, ls_line(1)))])

    with pytest.raises(FileTransferError, match="size mismatch"):
        await transfer_with_verification(session, source, "/opt/app/.env")


@pytest.mark.asyncio
async def test_transfer_missing_remote_raises(tmp_path: Path) -> None:
    """A remote copy that cannot be found fails verification."""
    source = tmp_path / ".env"
    source.write_text("A=1\n")
    session = FakeSession([("ls -la", CommandResult(0, "FILE_NOT_FOUND"))])

    with pytest.raises(FileTransferError, match="not found on remote server"):
        await transfer_with_verification(session, source, "/opt/app/.env")


@pytest.mark.asyncio
async def test_transfer_missing_local_file_raises(tmp_path: Path) -> None:
    """Nothing is uploaded when the local file does not exist."""
    session = FakeSession([])

    with pytest.raises(FileTransferError, match="Local file not found"):
        await transfer_with_verification(session, tmp_path / "nope", "/opt/app/nope")

    assert session.uploads == []
