"""Protocol interfaces for dependency inversion.

Deployment services depend on the RemoteSession protocol rather than on a
concrete transport, so either transport (or a test double) can be passed.

Usage Example:

    from deploy_scout.protocols import RemoteSession

    async def uptime(session: RemoteSession) -> str:
        result = await session.run("uptime")
        return result.output

    # Any transport works
    async with open_session(context) as session:
        await uptime(session)

    # Or a fake for testing
    class FakeSession:
        context = ConnectionContext(host="test")

        async def run(self, command, timeout=None):
            return CommandResult(exit_code=0, output="up 3 days")

    await uptime(FakeSession())
"""

from pathlib import Path
from typing import Protocol, runtime_checkable

from deploy_scout.models import CommandResult, ConnectionContext, TransferResult


@runtime_checkable
class RemoteSession(Protocol):
    """Protocol for a connected single-host session.

    Implementations must keep the connection context fixed for their
    lifetime and return non-zero exit codes as results, not exceptions.
    """

    context: ConnectionContext

    async def run(self, command: str, timeout: float | None = None) -> CommandResult:
        """Execute a shell command on the remote host.

        Args:
            command: Shell command line
            timeout: Optional time window override in seconds

        Returns:
            CommandResult with exit code and output

        Raises:
            TransportError: If the transport itself fails
        """
        ...

    async def upload(self, local_path: str | Path, remote_path: str) -> TransferResult:
        """Copy a local file to the remote host.

        Args:
            local_path: Local file to copy
            remote_path: Destination path, may contain $VAR or ~

        Returns:
            TransferResult with bytes transferred

        Raises:
            FileTransferError: If the copy fails
        """
        ...
