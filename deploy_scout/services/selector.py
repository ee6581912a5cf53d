"""Transport selection and scoped session acquisition."""

import logging
import shutil
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from deploy_scout.models import ConnectionContext
from deploy_scout.services.multiplexed import DEFAULT_CONTROL_DIR, MultiplexedSession
from deploy_scout.services.persistent import PersistentSession
from deploy_scout.services.session import BaseSession

logger = logging.getLogger(__name__)

TRANSPORTS = ("auto", "multiplexed", "persistent")


def supports_multiplexing() -> bool:
    """Whether the local platform can host an OpenSSH control socket."""
    return sys.platform != "win32" and shutil.which("ssh") is not None


def select_transport(context: ConnectionContext, preference: str = "auto") -> str:
    """Choose the transport for a session.

    Decided once per session. Passwords and key passphrases need the persistent
    transport because the multiplexed one runs ssh in BatchMode.

    Args:
        context: Connection parameters
        preference: "auto", "multiplexed" or "persistent"

    Returns:
        "multiplexed" or "persistent"

    Raises:
        ValueError: If preference is not a known transport
    """
    if preference not in TRANSPORTS:
        raise ValueError(f"transport must be one of {', '.join(TRANSPORTS)}, got '{preference}'")
    if preference != "auto":
        return preference
    if context.password:
        return "persistent"
    return "multiplexed" if supports_multiplexing() else "persistent"


def create_session(
    context: ConnectionContext,
    preference: str = "auto",
    control_dir: str | Path = DEFAULT_CONTROL_DIR,
    control_persist: int = 600,
    command_timeout: float | None = None,
    known_hosts: str | None = None,
) -> BaseSession:
    """Create an unconnected session using the selected transport."""
    transport = select_transport(context, preference)
    logger.debug("Selected %s transport for %s", transport, context)
    if transport == "multiplexed":
        return MultiplexedSession(
            context,
            control_dir=control_dir,
            control_persist=control_persist,
            command_timeout=command_timeout,
        )
    return PersistentSession(context, read_timeout=command_timeout, known_hosts=known_hosts)


@asynccontextmanager
async def open_session(
    context: ConnectionContext,
    preference: str = "auto",
    **options: object,
) -> AsyncIterator[BaseSession]:
    """Open a session and guarantee it is disconnected on every exit path.

    Example:
        async with open_session(context) as session:
            status = await collect_compose_status(session, "~/app")
    """
    session = create_session(context, preference, **options)  # type: ignore[arg-type]
    await session.connect()
    try:
        yield session
    finally:
        await session.disconnect()
