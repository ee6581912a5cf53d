"""Tests for dependency injection container."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from deploy_scout.config import Config, HostKeyVerifier, Settings, SSHConfigParser
from deploy_scout.dependencies import Dependencies
from deploy_scout.services.errors import ConnectionFailedError


def make_config(tmp_path: Path, **settings) -> Config:
    ssh_config = tmp_path / "ssh_config"
    ssh_config.write_text("Host prod\n    HostName prod.example.com\n    User deploy\n")
    return Config(
        settings=Settings(**settings),
        parser=SSHConfigParser(ssh_config),
        host_keys=HostKeyVerifier(default_path=tmp_path / "known_hosts"),
    )


def fake_session() -> MagicMock:
    session = MagicMock()
    session.connect = AsyncMock()
    session.disconnect = AsyncMock()
    session.is_connected = True
    return session


class TestDependencies:
    """Test Dependencies container."""

    def test_from_config_uses_provided_config(self, tmp_path: Path) -> None:
        """Dependencies.from_config() should use provided config."""
        config = make_config(tmp_path)

        assert Dependencies.from_config(config).config is config

    @pytest.mark.asyncio
    async def test_session_is_created_with_settings(self, tmp_path: Path) -> None:
        """Sessions are created from the settings and connected."""
        deps = Dependencies.from_config(
            make_config(tmp_path, transport="persistent", command_timeout=45, control_persist=90)
        )
        session = fake_session()

        with patch("deploy_scout.dependencies.create_session", return_value=session) as create:
            assert await deps.get_session("prod") is session

        context = create.call_args.args[0]
        assert context.host == "prod.example.com"
        assert context.username == "deploy"
        assert create.call_args.kwargs["preference"] == "persistent"
        assert create.call_args.kwargs["command_timeout"] == 45
        assert create.call_args.kwargs["control_persist"] == 90
        assert create.call_args.kwargs["known_hosts"] is None
        session.connect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connected_session_is_reused(self, tmp_path: Path) -> None:
        """A second request for the same host reuses the session."""
        deps = Dependencies.from_config(make_config(tmp_path, host="10.0.0.5"))

        with patch("deploy_scout.dependencies.create_session", side_effect=[fake_session()]) as create:
            first = await deps.get_session()
            second = await deps.get_session("10.0.0.5")

        assert first is second
        assert create.call_count == 1

    @pytest.mark.asyncio
    async def test_dropped_session_is_replaced(self, tmp_path: Path) -> None:
        """A session that is no longer connected is replaced."""
        deps = Dependencies.from_config(make_config(tmp_path, host="10.0.0.5"))
        dropped, fresh = fake_session(), fake_session()

        with patch("deploy_scout.dependencies.create_session", side_effect=[dropped, fresh]):
            await deps.get_session()
            dropped.is_connected = False
            assert await deps.get_session() is fresh

    @pytest.mark.asyncio
    async def test_failed_connect_is_not_cached(self, tmp_path: Path) -> None:
        """Connection failures propagate and leave nothing behind."""
        deps = Dependencies.from_config(make_config(tmp_path, host="10.0.0.5"))
        broken = fake_session()
        broken.connect = AsyncMock(side_effect=ConnectionFailedError("10.0.0.5", "refused"))
        working = fake_session()

        with patch("deploy_scout.dependencies.create_session", side_effect=[broken, working]):
            with pytest.raises(ConnectionFailedError):
                await deps.get_session()
            assert await deps.get_session() is working

    @pytest.mark.asyncio
    async def test_missing_host_raises(self, tmp_path: Path) -> None:
        """Without a target host no session can be opened."""
        deps = Dependencies.from_config(make_config(tmp_path))

        with pytest.raises(ValueError):
            await deps.get_session()

    @pytest.mark.asyncio
    async def test_cleanup_disconnects_all_sessions(self, tmp_path: Path) -> None:
        """cleanup closes every session once."""
        deps = Dependencies.from_config(make_config(tmp_path, host="10.0.0.5"))
        sessions = [fake_session(), fake_session()]

        with patch("deploy_scout.dependencies.create_session", side_effect=sessions):
            await deps.get_session()
            await deps.get_session("prod")

        await deps.cleanup()
        await deps.cleanup()

        for session in sessions:
            session.disconnect.assert_awaited_once()
