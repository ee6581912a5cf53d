"""Data models for Deploy Scout."""

from deploy_scout.models.command import (
    TRANSPORT_FAILURE,
    CommandResult,
    TransferResult,
)
from deploy_scout.models.compose import (
    ComposeOperationResult,
    ComposeStatus,
    ServiceStatus,
)
from deploy_scout.models.environment import (
    DeploymentState,
    DockerEnvironmentInfo,
    FileTransferResult,
    RemoteFileInfo,
)
from deploy_scout.models.health import (
    DeploymentStatus,
    HealthCheckResult,
    ServiceHealth,
    ServiceOutcome,
    ServiceReport,
)
from deploy_scout.models.ssh import ConnectionContext, SessionState, SSHHost

__all__ = [
    "CommandResult",
    "ComposeOperationResult",
    "ComposeStatus",
    "ConnectionContext",
    "DeploymentState",
    "DeploymentStatus",
    "DockerEnvironmentInfo",
    "FileTransferResult",
    "HealthCheckResult",
    "RemoteFileInfo",
    "ServiceHealth",
    "ServiceOutcome",
    "ServiceReport",
    "ServiceStatus",
    "SessionState",
    "SSHHost",
    "TRANSPORT_FAILURE",
    "TransferResult",
]
