"""Local process execution for the OpenSSH client binaries."""

import asyncio
import logging

from deploy_scout.models import TRANSPORT_FAILURE, CommandResult
from deploy_scout.services.errors import TransportTimeoutError

logger = logging.getLogger(__name__)


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace").rstrip("\r\n")


async def run_process(
    args: list[str],
    timeout: float | None = None,
) -> CommandResult:
    """Run a local program to completion and capture its output.

    Stdin is detached so ssh never waits for input. Stdout and stderr are
    captured separately.

    Args:
        args: Program and arguments, e.g. ["ssh", "-S", sock, ...]
        timeout: Seconds to wait before killing the process (None = no limit)

    Returns:
        CommandResult with the process exit code. When the program cannot be
        started at all, exit_code is TRANSPORT_FAILURE and error explains why.

    Raises:
        TransportTimeoutError: If the process exceeded its timeout
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.warning("Cannot start %s: %s", args[0], e)
        return CommandResult(exit_code=TRANSPORT_FAILURE, error=f"Cannot start {args[0]}: {e}")

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        await _kill(process)
        raise TransportTimeoutError(
            f"{args[0]} did not finish within {timeout}s"
        ) from None
    except asyncio.CancelledError:
        await _kill(process)
        raise

    returncode = process.returncode if process.returncode is not None else TRANSPORT_FAILURE
    return CommandResult(
        exit_code=returncode,
        output=_decode(stdout),
        error=_decode(stderr),
    )


async def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill a process and reap it, ignoring one that already exited."""
    try:
        process.kill()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(process.wait(), timeout=5)
    except TimeoutError:
        logger.debug("Process %s did not exit after kill", process.pid)
