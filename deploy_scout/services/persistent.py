"""Persistent transport: one long-lived remote shell over asyncssh.

Commands are written to the shell's stdin wrapped in framing markers and
their output is read back line by line until the end marker. Only one
command may be in flight at a time, enforced by a lock around the whole
write-then-drain cycle. File copies use a separate SFTP channel.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any

import asyncssh

from deploy_scout.models import CommandResult, ConnectionContext
from deploy_scout.services.errors import (
    ConnectionFailedError,
    FileTransferError,
    ProtocolDesyncError,
    TransportTimeoutError,
)
from deploy_scout.services.framing import END_MARKER, OutputParser, wrap_command
from deploy_scout.services.session import BaseSession

logger = logging.getLogger(__name__)

READY_MARKER = "___DEPLOY_SCOUT_READY___"
SHELL_COMMAND = "bash"

# Minimum per-read window for command output
DEFAULT_READ_TIMEOUT = 120
_EXIT_WAIT_SECONDS = 3
_STDERR_PEEK_SECONDS = 0.5


class PersistentSession(BaseSession):
    """Session that keeps a single remote bash process open."""

    transport_name = "persistent"

    def __init__(
        self,
        context: ConnectionContext,
        read_timeout: float | None = None,
        known_hosts: str | None = None,
    ) -> None:
        """Initialize persistent session.

        Args:
            context: Connection parameters
            read_timeout: Seconds to wait for each output line
                (default: the larger of connect_timeout and 120)
            known_hosts: Path to known_hosts file, or None to disable verification
        """
        super().__init__(context)
        self.read_timeout = (
            read_timeout
            if read_timeout is not None
            else max(context.connect_timeout, DEFAULT_READ_TIMEOUT)
        )
        self.known_hosts = known_hosts
        self._lock = asyncio.Lock()
        self._conn: asyncssh.SSHClientConnection | None = None
        self._process: asyncssh.SSHClientProcess[str] | None = None
        self._stale_frames = 0

    def connect_options(self) -> dict[str, Any]:
        """Build keyword arguments for asyncssh.connect."""
        options: dict[str, Any] = {
            "port": self.context.port,
            "username": self.context.username,
            "known_hosts": self.known_hosts,
            "connect_timeout": self.context.connect_timeout,
        }
        if self.context.identity_file:
            options["client_keys"] = [os.path.expanduser(self.context.identity_file)]
            if self.context.password:
                options["passphrase"] = self.context.password
        elif self.context.password:
            options["password"] = self.context.password
        return options

    async def _open(self) -> None:
        if self.known_hosts is None:
            logger.warning("SSH host key verification disabled for %s", self.context.host)

        try:
            self._conn = await asyncssh.connect(self.context.host, **self.connect_options())
        except (OSError, asyncssh.Error) as e:
            raise ConnectionFailedError(self.context.host, e) from e

        try:
            self._process = await self._conn.create_process(SHELL_COMMAND, errors="replace")
        except (OSError, asyncssh.Error) as e:
            raise ConnectionFailedError(self.context.host, f"cannot start shell: {e}") from e

        await self._wait_ready()

    async def _wait_ready(self) -> None:
        """Require the shell to echo the ready marker within connect_timeout."""
        process = self._require_process()
        process.stdin.write(f"echo {READY_MARKER}\n")

        try:
            line = await asyncio.wait_for(
                process.stdout.readline(), timeout=self.context.connect_timeout
            )
        except TimeoutError:
            detail = await self._peek_stderr()
            raise ConnectionFailedError(
                self.context.host,
                f"shell not ready after {self.context.connect_timeout}s"
                + (f": {detail}" if detail else ""),
            ) from None

        if line.strip() != READY_MARKER:
            detail = await self._peek_stderr()
            raise ConnectionFailedError(
                self.context.host,
                f"unexpected shell output {line.strip()!r}" + (f": {detail}" if detail else ""),
            )
        logger.debug("Remote shell ready on %s", self.context.host)

    async def _peek_stderr(self) -> str:
        """Read whatever stderr is immediately available, for diagnostics."""
        if self._process is None:
            return ""
        try:
            data = await asyncio.wait_for(
                self._process.stderr.read(4096), timeout=_STDERR_PEEK_SECONDS
            )
        except (TimeoutError, OSError, asyncssh.Error):
            return ""
        return data.strip()

    async def _run(self, command: str, timeout: float | None) -> CommandResult:
        process = self._require_process()
        read_timeout = timeout if timeout is not None else self.read_timeout

        async with self._lock:
            await self._discard_stale_frames(read_timeout)

            try:
                process.stdin.write(wrap_command(command))
            except (OSError, asyncssh.Error) as e:
                raise ProtocolDesyncError(f"cannot write to remote shell: {e}") from e

            parser = OutputParser()
            try:
                try:
                    await process.stdin.drain()
                except (OSError, asyncssh.Error) as e:
                    raise ProtocolDesyncError(f"cannot write to remote shell: {e}") from e

                while not parser.feed(await self._read_line(read_timeout)):
                    pass
            except (asyncio.CancelledError, TransportTimeoutError):
                # The rest of this frame is still queued on stdout
                self._stale_frames += 1
                logger.debug(
                    "Abandoned command on %s (%d stale frame(s) pending)",
                    self.context.host,
                    self._stale_frames,
                )
                raise

        exit_code, output = parser.result()
        return CommandResult(exit_code=exit_code, output=output)

    async def _read_line(self, read_timeout: float) -> str:
        """Read one line of shell output.

        Raises:
            TransportTimeoutError: If no line arrives within read_timeout
            ProtocolDesyncError: If the stream fails or ends
        """
        process = self._require_process()
        try:
            line = await asyncio.wait_for(process.stdout.readline(), timeout=read_timeout)
        except TimeoutError:
            raise TransportTimeoutError(
                f"no output from {self.context.host} for {read_timeout}s"
            ) from None
        except (OSError, asyncssh.Error) as e:
            raise ProtocolDesyncError(f"remote shell stream failed: {e}") from e

        if not line:
            raise ProtocolDesyncError(
                f"remote shell on {self.context.host} closed before end of output"
            )
        return line

    async def _discard_stale_frames(self, read_timeout: float) -> None:
        """Consume the remains of abandoned commands up to their end markers.

        Raises:
            TransportTimeoutError: If an abandoned command is still producing
                no output; the frame stays pending for the next attempt
        """
        while self._stale_frames:
            line = await self._read_line(read_timeout)
            if line.rstrip("\r\n") == END_MARKER:
                self._stale_frames -= 1
                logger.debug("Discarded stale frame on %s", self.context.host)

    async def _upload(self, source: Path, destination: str) -> None:
        if self._conn is None:
            raise FileTransferError("No SSH connection")
        try:
            async with self._conn.start_sftp_client() as sftp:
                await sftp.put(str(source), destination)
        except (OSError, asyncssh.Error) as e:
            raise FileTransferError(f"SFTP upload to {self.context.host}:{destination} failed: {e}") from e

    async def _close(self) -> None:
        process, self._process = self._process, None
        conn, self._conn = self._conn, None

        if process is not None:
            try:
                process.stdin.write("exit\n")
                process.stdin.write_eof()
                await asyncio.wait_for(process.wait_closed(), timeout=_EXIT_WAIT_SECONDS)
            except (TimeoutError, OSError, asyncssh.Error) as e:
                logger.debug("Remote shell did not exit cleanly: %s", e)
                process.close()

        if conn is not None:
            conn.close()
            try:
                await asyncio.wait_for(conn.wait_closed(), timeout=_EXIT_WAIT_SECONDS)
            except TimeoutError:
                logger.debug("Timed out waiting for connection to %s to close", self.context.host)

    def _require_process(self) -> "asyncssh.SSHClientProcess[str]":
        if self._process is None:
            raise ProtocolDesyncError("Remote shell is not running")
        return self._process
