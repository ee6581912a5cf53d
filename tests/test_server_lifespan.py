"""Tests for server lifespan and tool registration."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from deploy_scout.config import Settings
from deploy_scout.services import state

EXPECTED_TOOLS = {
    "compose_status",
    "deployment_status",
    "wait_for_healthy",
    "service_logs",
    "dashboard_token",
    "run_command",
    "upload_file",
}


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset the global dependency container around each test."""
    state.reset_state()
    yield
    state.reset_state()


@pytest.mark.asyncio
async def test_lifespan_installs_and_cleans_up_dependencies() -> None:
    """The lifespan owns the dependency container and closes its sessions."""
    from deploy_scout.server import app_lifespan, create_server

    deps = MagicMock()
    deps.config.settings = Settings(host="10.0.0.5")
    deps.cleanup = AsyncMock()

    with patch("deploy_scout.server.Dependencies.create", return_value=deps):
        mcp = create_server()
        async with app_lifespan(mcp) as result:
            assert result["deps"] is deps
            assert state.get_dependencies() is deps
            deps.cleanup.assert_not_awaited()

    deps.cleanup.assert_awaited_once()


@pytest.mark.asyncio
async def test_lifespan_cleans_up_on_error() -> None:
    """Sessions are closed even if the server fails while running."""
    from deploy_scout.server import app_lifespan, create_server

    deps = MagicMock()
    deps.config.settings = Settings()
    deps.cleanup = AsyncMock()

    with patch("deploy_scout.server.Dependencies.create", return_value=deps):
        with pytest.raises(RuntimeError):
            async with app_lifespan(create_server()):
                raise RuntimeError("transport crashed")

    deps.cleanup.assert_awaited_once()


@pytest.mark.asyncio
async def test_all_tools_registered() -> None:
    """Every deployment tool is exposed by the server."""
    from deploy_scout.server import create_server

    tools = await create_server().get_tools()

    assert EXPECTED_TOOLS <= set(tools)
