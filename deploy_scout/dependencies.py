"""Dependency injection container for Deploy Scout.

Holds the configuration and the one remote session the server owns.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from deploy_scout.config import Config
from deploy_scout.services.selector import create_session
from deploy_scout.services.session import BaseSession

logger = logging.getLogger(__name__)


@dataclass
class Dependencies:
    """Container for Deploy Scout dependencies.

    The session to a host is opened lazily on first use and reused until
    cleanup. A session that has dropped is replaced by a new one.

    Example:
        deps = Dependencies.create()
        session = await deps.get_session()
        result = await session.run("docker compose ps")
    """

    config: Config
    _sessions: dict[str, BaseSession] = field(default_factory=dict, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @classmethod
    def create(cls) -> "Dependencies":
        """Create dependencies with configuration from the environment."""
        return cls(config=Config.from_env())

    @classmethod
    def from_config(cls, config: Config) -> "Dependencies":
        """Create dependencies with custom configuration."""
        return cls(config=config)

    async def get_session(self, host: str | None = None) -> BaseSession:
        """Get a connected session, opening one if needed.

        Args:
            host: SSH config alias or hostname (default: DEPLOY_SCOUT_HOST)

        Raises:
            ValueError: If no host is configured
            ConnectionFailedError: If the session could not be established
        """
        context = self.config.connection_context(host)
        key = str(context)

        async with self._lock:
            session = self._sessions.get(key)
            if session is not None and session.is_connected:
                return session
            if session is not None:
                logger.info("Session to %s dropped, opening a new one", key)

            settings = self.config.settings
            session = create_session(
                context,
                preference=settings.transport,
                control_dir=settings.control_dir,
                control_persist=settings.control_persist,
                command_timeout=settings.command_timeout,
                known_hosts=self.config.known_hosts_path,
            )
            try:
                await session.connect()
            except BaseException:
                self._sessions.pop(key, None)
                raise
            self._sessions[key] = session
            return session

    async def cleanup(self) -> None:
        """Disconnect every open session."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.disconnect()
        if sessions:
            logger.info("Closed %d session(s)", len(sessions))
