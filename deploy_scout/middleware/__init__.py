"""Deploy Scout middleware components."""

from deploy_scout.middleware.base import DeployScoutMiddleware
from deploy_scout.middleware.errors import ErrorHandlingMiddleware
from deploy_scout.middleware.logging import LoggingMiddleware

__all__ = [
    "DeployScoutMiddleware",
    "ErrorHandlingMiddleware",
    "LoggingMiddleware",
]
