"""Command execution data models."""

from dataclasses import dataclass

# Exit code reported when the transport failed before the remote command ran
TRANSPORT_FAILURE = -1


@dataclass
class CommandResult:
    """Result of a remote command execution.

    The persistent transport merges stderr into output, so error is empty
    there. The multiplexed transport keeps the two streams apart.
    """

    exit_code: int
    output: str = ""
    error: str = ""

    @property
    def succeeded(self) -> bool:
        """Whether the remote command exited with status 0."""
        return self.exit_code == 0

    @property
    def transport_failed(self) -> bool:
        """Whether the command never reached the remote host."""
        return self.exit_code == TRANSPORT_FAILURE

    def combined(self) -> str:
        """Output and error joined for display."""
        parts = [part for part in (self.output, self.error) if part]
        return "\n".join(parts)


@dataclass
class TransferResult:
    """Result of a file transfer operation."""

    success: bool
    message: str
    bytes_transferred: int = 0
