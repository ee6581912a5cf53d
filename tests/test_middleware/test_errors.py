"""Tests for error handling middleware."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from deploy_scout.middleware.errors import ErrorHandlingMiddleware
from deploy_scout.models import CommandResult
from deploy_scout.services.errors import ConnectionFailedError, RemoteCommandError


@pytest.fixture
def mock_context() -> MagicMock:
    """Create a mock middleware context."""
    context = MagicMock()
    context.method = "tools/call"
    return context


@pytest.mark.asyncio
async def test_passes_through_results(mock_context: MagicMock) -> None:
    """Successful calls return their result unchanged."""
    middleware = ErrorHandlingMiddleware(logger=MagicMock())

    result = await middleware.on_message(mock_context, AsyncMock(return_value="ok"))

    assert result == "ok"
    assert middleware.get_error_stats() == {}


@pytest.mark.asyncio
async def test_operational_errors_are_warnings(mock_context: MagicMock) -> None:
    """Remote failures are logged as warnings and re-raised."""
    mock_logger = MagicMock()
    middleware = ErrorHandlingMiddleware(logger=mock_logger)
    error = ConnectionFailedError("10.0.0.5", "Permission denied")

    with pytest.raises(ConnectionFailedError):
        await middleware.on_message(mock_context, AsyncMock(side_effect=error))

    mock_logger.warning.assert_called_once()
    mock_logger.error.assert_not_called()


@pytest.mark.asyncio
async def test_unexpected_errors_are_errors(mock_context: MagicMock) -> None:
    """Other exceptions are logged as errors, with a traceback if enabled."""
    mock_logger = MagicMock()
    middleware = ErrorHandlingMiddleware(logger=mock_logger, include_traceback=True)

    with pytest.raises(KeyError):
        await middleware.on_message(mock_context, AsyncMock(side_effect=KeyError("deps")))

    args = mock_logger.error.call_args.args
    assert args[2] == "KeyError"
    assert "Traceback" in args[4]


@pytest.mark.asyncio
async def test_error_stats_and_reset(mock_context: MagicMock) -> None:
    """Errors are counted by type until reset."""
    middleware = ErrorHandlingMiddleware(logger=MagicMock())
    failure = RemoteCommandError("docker compose up -d", CommandResult(1))

    for _ in range(2):
        with pytest.raises(RemoteCommandError):
            await middleware.on_message(mock_context, AsyncMock(side_effect=failure))

    assert middleware.get_error_stats() == {"RemoteCommandError": 2}
    middleware.reset_stats()
    assert middleware.get_error_stats() == {}


@pytest.mark.asyncio
async def test_callback_receives_error(mock_context: MagicMock) -> None:
    """The callback is called with the exception and context."""
    callback = MagicMock()
    middleware = ErrorHandlingMiddleware(logger=MagicMock(), error_callback=callback)
    error = ValueError("bad interval")

    with pytest.raises(ValueError):
        await middleware.on_message(mock_context, AsyncMock(side_effect=error))

    callback.assert_called_once_with(error, mock_context)


@pytest.mark.asyncio
async def test_failing_callback_does_not_mask_error(mock_context: MagicMock) -> None:
    """A callback that raises is logged; the original error still propagates."""
    mock_logger = MagicMock()
    callback = MagicMock(side_effect=RuntimeError("sink down"))
    middleware = ErrorHandlingMiddleware(logger=mock_logger, error_callback=callback)

    with pytest.raises(ValueError):
        await middleware.on_message(mock_context, AsyncMock(side_effect=ValueError("bad")))

    assert "Error callback failed" in str(mock_logger.warning.call_args_list)
