"""Multiplexed transport over an OpenSSH control socket.

One authenticated master connection owns a local control socket. Every
command and copy is a separate `ssh`/`scp` invocation that reuses the
socket, so commands may run concurrently and each yields its own exit code
and separate stdout/stderr.
"""

import logging
import os
import uuid
from pathlib import Path

from deploy_scout.models import CommandResult, ConnectionContext
from deploy_scout.services.errors import ConnectionFailedError, FileTransferError, TransportError
from deploy_scout.services.process import run_process
from deploy_scout.services.session import BaseSession

logger = logging.getLogger(__name__)

DEFAULT_CONTROL_DIR = "~/.deploy_scout/sockets"

# Extra time allowed for the master on top of ssh's own ConnectTimeout
_MASTER_GRACE_SECONDS = 10
_EXIT_TIMEOUT_SECONDS = 10


class MultiplexedSession(BaseSession):
    """Session that multiplexes ssh invocations over a control socket.

    Requires the OpenSSH client and a platform with Unix domain sockets.
    Runs in BatchMode, so authentication must come from an identity file,
    ssh-agent or the default keys; password prompts are never answered.
    """

    transport_name = "multiplexed"

    def __init__(
        self,
        context: ConnectionContext,
        control_dir: str | Path = DEFAULT_CONTROL_DIR,
        control_persist: int = 600,
        command_timeout: float | None = None,
    ) -> None:
        """Initialize multiplexed session.

        Args:
            context: Connection parameters
            control_dir: Directory holding the control socket
            control_persist: Seconds the master lingers after its last client
            command_timeout: Default per-invocation timeout (None = no limit)
        """
        super().__init__(context)
        self.control_dir = Path(control_dir).expanduser()
        self.control_persist = control_persist
        self.command_timeout = command_timeout
        # Kept short: Unix socket paths are limited to ~104 bytes
        self.socket_path = self.control_dir / f"ssh-{uuid.uuid4().hex[:8]}"

    def master_args(self) -> list[str]:
        """Build the command line that starts the master connection."""
        args = [
            "ssh",
            "-M",
            "-S",
            str(self.socket_path),
            "-o",
            f"ControlPersist={self.control_persist}",
            "-o",
            "BatchMode=yes",
            "-o",
            "StrictHostKeyChecking=accept-new",
            "-o",
            f"ConnectTimeout={self.context.connect_timeout}",
            "-p",
            str(self.context.port),
        ]
        if self.context.identity_file:
            args += ["-i", os.path.expanduser(self.context.identity_file)]
        args += [self.context.destination, "echo deploy_scout master ready"]
        return args

    def command_args(self, command: str) -> list[str]:
        """Build the command line that runs a command through the socket."""
        return [
            "ssh",
            "-S",
            str(self.socket_path),
            "-o",
            "BatchMode=yes",
            "-p",
            str(self.context.port),
            self.context.destination,
            command,
        ]

    def copy_args(self, source: Path, destination: str) -> list[str]:
        """Build the scp command line that copies through the socket."""
        return [
            "scp",
            "-o",
            f"ControlPath={self.socket_path}",
            "-o",
            "BatchMode=yes",
            "-P",
            str(self.context.port),
            str(source),
            f"{self.context.destination}:{destination}",
        ]

    def exit_args(self) -> list[str]:
        """Build the command line that stops the master."""
        return ["ssh", "-S", str(self.socket_path), "-O", "exit", self.context.destination]

    async def _open(self) -> None:
        if self.context.password:
            logger.warning(
                "Passwords and key passphrases are not used in BatchMode; "
                "relying on ssh-agent/default keys for %s",
                self.context,
            )
        try:
            self.control_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
        except OSError as e:
            raise ConnectionFailedError(self.context.host, f"cannot create {self.control_dir}: {e}") from e

        logger.debug("Starting ssh master (socket=%s)", self.socket_path)
        try:
            result = await run_process(
                self.master_args(),
                timeout=self.context.connect_timeout + _MASTER_GRACE_SECONDS,
            )
        except TransportError as e:
            raise ConnectionFailedError(self.context.host, e) from e

        if not result.succeeded:
            reason = result.error or result.output or f"ssh exited with {result.exit_code}"
            raise ConnectionFailedError(self.context.host, reason)

    async def _run(self, command: str, timeout: float | None) -> CommandResult:
        return await run_process(
            self.command_args(command),
            timeout=timeout if timeout is not None else self.command_timeout,
        )

    async def _upload(self, source: Path, destination: str) -> None:
        result = await run_process(self.copy_args(source, destination), timeout=self.command_timeout)
        if not result.succeeded:
            raise FileTransferError(
                f"scp to {self.context.host}:{destination} failed "
                f"({result.exit_code}): {result.error or result.output}"
            )

    async def _close(self) -> None:
        try:
            result = await run_process(self.exit_args(), timeout=_EXIT_TIMEOUT_SECONDS)
            if not result.succeeded:
                logger.debug("ssh -O exit returned %d: %s", result.exit_code, result.error)
        except TransportError as e:
            logger.debug("Failed to stop ssh master for %s: %s", self.context, e)

        try:
            self.socket_path.unlink(missing_ok=True)
        except OSError as e:
            logger.debug("Failed to remove control socket %s: %s", self.socket_path, e)
