"""Tests for protocol interfaces.

Verifies that concrete implementations satisfy protocol contracts.
"""

from typing import Protocol

import pytest

from deploy_scout.models import CommandResult, ConnectionContext, TransferResult


def test_sessions_implement_protocol():
    """Both transports satisfy the RemoteSession protocol."""
    from deploy_scout.protocols import RemoteSession
    from deploy_scout.services.multiplexed import MultiplexedSession
    from deploy_scout.services.persistent import PersistentSession

    context = ConnectionContext(host="h")

    assert isinstance(MultiplexedSession(context), RemoteSession)
    assert isinstance(PersistentSession(context), RemoteSession)


def test_protocol_runtime_checkable():
    """Verify protocols are decorated with @runtime_checkable."""
    from deploy_scout.protocols import RemoteSession

    assert issubclass(RemoteSession, Protocol)
    assert not isinstance(object(), RemoteSession)


@pytest.mark.asyncio
async def test_protocol_allows_fakes():
    """Services accept any object with the protocol's methods."""
    from deploy_scout.protocols import RemoteSession
    from deploy_scout.services.inspector import get_service_logs

    class FakeSession:
        context = ConnectionContext(host="test")

        async def run(self, command, timeout=None):
            return CommandResult(exit_code=0, output="up 3 days")

        async def upload(self, local_path, remote_path):
            return TransferResult(success=True, message="ok")

    session = FakeSession()

    assert isinstance(session, RemoteSession)
    assert await get_service_logs(session, "web") == "up 3 days"
