"""Exceptions raised by remote sessions and deployment services."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from deploy_scout.models import CommandResult, HealthCheckResult


class TransportError(Exception):
    """Base class for failures of the SSH transport itself."""


class ConnectionFailedError(TransportError):
    """Failed to establish a usable remote session."""

    def __init__(self, host_name: str, reason: str | Exception):
        """Initialize connection error.

        Args:
            host_name: Host the session was opened against
            reason: Description or original exception
        """
        self.host_name = host_name
        self.reason = reason
        super().__init__(f"Cannot connect to {host_name}: {reason}")


class SessionStateError(TransportError):
    """Session used before connect or after teardown."""


class ProtocolDesyncError(TransportError):
    """Command framing was lost; the session cannot be trusted any more."""


class TransportTimeoutError(TransportError):
    """A single read or invocation exceeded its time window."""


class FileTransferError(TransportError):
    """Copying a file to the remote host failed."""


class RemoteCommandError(Exception):
    """A command that must succeed returned a non-zero exit code."""

    def __init__(self, command: str, result: "CommandResult"):
        """Initialize remote command error.

        Args:
            command: Command that was executed
            result: Result carrying the exit code and output
        """
        self.command = command
        self.result = result
        detail = (result.error or result.output).strip()
        message = f"Command failed with exit code {result.exit_code}: {command}"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)


class HealthCheckError(Exception):
    """One or more services failed health monitoring."""

    def __init__(self, result: "HealthCheckResult"):
        """Initialize health check error.

        Args:
            result: Aggregate result with one report per service
        """
        self.result = result
        failed = ", ".join(
            f"{r.name} ({r.outcome.value})" for r in result.failures
        )
        super().__init__(f"Health check failed: {result.summary()}; failing: {failed}")


class DockerEnvironmentError(Exception):
    """The remote host cannot run Docker Compose deployments."""
