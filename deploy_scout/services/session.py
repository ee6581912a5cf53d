"""Shared behaviour of remote sessions.

Both transports implement the same lifecycle:

    async with MultiplexedSession(context) as session:
        result = await session.run("docker compose ps")

A session connects once and disconnects once. Subclasses provide the
transport-specific _open, _close, _run and _upload steps.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from types import TracebackType

from deploy_scout.models import CommandResult, ConnectionContext, SessionState, TransferResult
from deploy_scout.services.errors import (
    ConnectionFailedError,
    FileTransferError,
    RemoteCommandError,
    SessionStateError,
    TransportError,
)
from deploy_scout.utils.shell import quote_remote_path

logger = logging.getLogger(__name__)


class BaseSession(ABC):
    """Base class for a single-host remote session."""

    transport_name = "base"

    def __init__(self, context: ConnectionContext) -> None:
        """Initialize session.

        Args:
            context: Connection parameters, fixed for the session lifetime
        """
        self.context = context
        self._state = SessionState.DISCONNECTED
        self._opened = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is SessionState.CONNECTED

    async def connect(self) -> None:
        """Establish the session and verify it can run commands.

        Raises:
            ConnectionFailedError: If the session could not be established
            SessionStateError: If this session was connected before
        """
        if self._opened:
            raise SessionStateError(
                f"{self.transport_name} session to {self.context} cannot be reopened"
            )
        self._opened = True
        self._state = SessionState.CONNECTING
        logger.info("Opening %s session to %s", self.transport_name, self.context)

        try:
            await self._open()
            await self._verify()
        except BaseException:
            await self._safe_close()
            self._state = SessionState.DISCONNECTED
            raise

        self._state = SessionState.CONNECTED
        logger.info("Session to %s ready (transport=%s)", self.context, self.transport_name)

    async def disconnect(self) -> None:
        """Tear the session down. Never raises; safe to call repeatedly."""
        if self._state is SessionState.DISCONNECTED:
            return
        logger.info("Closing %s session to %s", self.transport_name, self.context)
        try:
            await self._safe_close()
        finally:
            self._state = SessionState.DISCONNECTED

    async def run(self, command: str, timeout: float | None = None) -> CommandResult:
        """Execute a command on the remote host.

        A non-zero exit code is returned in the result, not raised.

        Args:
            command: Shell command line
            timeout: Override the transport's default time window

        Returns:
            CommandResult with exit code and output

        Raises:
            SessionStateError: If the session is not connected
            TransportError: If the transport failed
        """
        self._require_connected()
        logger.debug("Running on %s: %s", self.context.host, command)
        result = await self._run(command, timeout)
        logger.debug("Command on %s exited with %d", self.context.host, result.exit_code)
        return result

    async def run_checked(self, command: str, timeout: float | None = None) -> CommandResult:
        """Execute a command that must succeed.

        Raises:
            RemoteCommandError: If the command exits non-zero
        """
        result = await self.run(command, timeout=timeout)
        if not result.succeeded:
            raise RemoteCommandError(command, result)
        return result

    async def upload(self, local_path: str | Path, remote_path: str) -> TransferResult:
        """Copy a local file to the remote host.

        Remote paths containing $VAR or ~ are expanded on the remote side first.

        Args:
            local_path: Local file to copy
            remote_path: Destination on the remote host

        Returns:
            TransferResult with bytes transferred

        Raises:
            FileTransferError: If the file is missing or the copy fails
        """
        self._require_connected()
        source = Path(local_path)
        if not source.is_file():
            raise FileTransferError(f"Source file not found: {source}")

        destination = await self.expand_remote_path(remote_path)
        size = source.stat().st_size
        logger.info("Uploading %s to %s:%s (%d bytes)", source, self.context.host, destination, size)
        await self._upload(source, destination)
        return TransferResult(
            success=True,
            message=f"Uploaded {source} -> {destination}",
            bytes_transferred=size,
        )

    async def expand_remote_path(self, path: str) -> str:
        """Expand $VAR and a leading ~ in a path on the remote host.

        Paths without either are returned unchanged without a round trip.
        """
        if "$" not in path and not path.startswith("~"):
            return path
        result = await self.run(f"echo {quote_remote_path(path)}")
        expanded = result.output.strip()
        if not result.succeeded or not expanded:
            logger.warning("Could not expand remote path %s, using as-is", path)
            return path
        return expanded

    async def _verify(self) -> None:
        """Prove the session can execute commands end to end."""
        try:
            result = await self._run("whoami && pwd", None)
        except ConnectionFailedError:
            raise
        except TransportError as e:
            raise ConnectionFailedError(self.context.host, f"verification failed: {e}") from e
        if not result.succeeded:
            raise ConnectionFailedError(
                self.context.host,
                f"verification command failed ({result.exit_code}): {result.combined()}",
            )
        identity = result.output.splitlines()
        if identity:
            logger.debug("Connected to %s as %s", self.context.host, identity[0])

    async def _safe_close(self) -> None:
        try:
            await self._close()
        except Exception as e:
            logger.debug("Error while closing session to %s: %s", self.context, e)

    def _require_connected(self) -> None:
        if not self.is_connected:
            raise SessionStateError(
                f"{self.transport_name} session to {self.context} is {self._state.value}"
            )

    async def __aenter__(self) -> "BaseSession":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.disconnect()

    @abstractmethod
    async def _open(self) -> None:
        """Establish the transport. Raise ConnectionFailedError on failure."""

    @abstractmethod
    async def _close(self) -> None:
        """Release every transport resource."""

    @abstractmethod
    async def _run(self, command: str, timeout: float | None) -> CommandResult:
        """Execute one command over the established transport."""

    @abstractmethod
    async def _upload(self, source: Path, destination: str) -> None:
        """Copy a file. Raise FileTransferError on failure."""
