"""Services for Deploy Scout."""

from deploy_scout.services.compose import (
    collect_compose_status,
    discover_service_urls,
    get_compose_logs,
    get_service_statuses,
    pull_images,
    start_services,
    stop_services,
    watch_compose_status,
)
from deploy_scout.services.environment import (
    get_deployment_state,
    prepare_deploy_dir,
    validate_docker_environment,
)
from deploy_scout.services.errors import (
    ConnectionFailedError,
    DockerEnvironmentError,
    FileTransferError,
    HealthCheckError,
    ProtocolDesyncError,
    RemoteCommandError,
    SessionStateError,
    TransportError,
    TransportTimeoutError,
)
from deploy_scout.services.files import get_file_info, transfer_with_verification
from deploy_scout.services.inspector import extract_token, find_token, get_service_logs
from deploy_scout.services.monitor import (
    HealthMonitor,
    evaluate_service,
    get_deployment_status,
    wait_for_healthy,
)
from deploy_scout.services.multiplexed import MultiplexedSession
from deploy_scout.services.persistent import PersistentSession
from deploy_scout.services.selector import (
    create_session,
    open_session,
    select_transport,
    supports_multiplexing,
)
from deploy_scout.services.session import BaseSession

__all__ = [
    "BaseSession",
    "ConnectionFailedError",
    "DockerEnvironmentError",
    "FileTransferError",
    "HealthCheckError",
    "HealthMonitor",
    "MultiplexedSession",
    "PersistentSession",
    "ProtocolDesyncError",
    "RemoteCommandError",
    "SessionStateError",
    "TransportError",
    "TransportTimeoutError",
    "collect_compose_status",
    "create_session",
    "discover_service_urls",
    "evaluate_service",
    "extract_token",
    "find_token",
    "get_compose_logs",
    "get_deployment_state",
    "get_deployment_status",
    "get_file_info",
    "get_service_logs",
    "get_service_statuses",
    "open_session",
    "prepare_deploy_dir",
    "pull_images",
    "select_transport",
    "start_services",
    "stop_services",
    "supports_multiplexing",
    "transfer_with_verification",
    "validate_docker_environment",
    "wait_for_healthy",
]
