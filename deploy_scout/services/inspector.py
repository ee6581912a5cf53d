"""Service log retrieval and dashboard token extraction."""

import asyncio
import logging
import re
import time
from collections.abc import Iterable

from deploy_scout.protocols import RemoteSession
from deploy_scout.utils.shell import quote_arg

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_PHRASE = "Login to the dashboard at"
DEFAULT_TOKEN_PATTERN = re.compile(r"\?t=(?P<token>[A-Za-z0-9\-_.:]+)")
DEFAULT_TOKEN_DELIMITER = "?t="
DEFAULT_POLL_INTERVAL = 2.0
TOKEN_LOG_TAIL = 50


async def get_service_logs(session: RemoteSession, service: str, tail: int = 100) -> str:
    """Get the last lines of a container's logs, stderr included.

    Args:
        session: Connected remote session
        service: Container name
        tail: Number of lines to return

    Returns:
        Log text (empty if the container has no logs or does not exist)
    """
    result = await session.run(f"docker logs --tail {int(tail)} {quote_arg(service)} 2>&1")
    if not result.succeeded:
        logger.debug("docker logs for %s exited with %d", service, result.exit_code)
    return result.output


def find_token(
    lines: Iterable[str],
    phrase: str = DEFAULT_TOKEN_PHRASE,
    pattern: re.Pattern[str] = DEFAULT_TOKEN_PATTERN,
    delimiter: str = DEFAULT_TOKEN_DELIMITER,
) -> str | None:
    """Find a token on a log line that contains the introductory phrase.

    The regex is tried first. If it does not match, the text after the
    delimiter up to the next whitespace is used.

    Returns:
        The token, or None if no line yields one
    """
    needle = phrase.lower()
    for line in lines:
        if needle not in line.lower():
            continue
        match = pattern.search(line)
        if match:
            return match.group("token") if "token" in pattern.groupindex else match.group(1)
        index = line.find(delimiter)
        if index >= 0:
            words = line[index + len(delimiter):].split()
            if words:
                return words[0]
    return None


async def extract_token(
    session: RemoteSession,
    service: str,
    timeout: float,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    stop: asyncio.Event | None = None,
    phrase: str = DEFAULT_TOKEN_PHRASE,
    pattern: re.Pattern[str] = DEFAULT_TOKEN_PATTERN,
    delimiter: str = DEFAULT_TOKEN_DELIMITER,
) -> str | None:
    """Poll a service's logs until a login token appears.

    Args:
        session: Connected remote session
        service: Container name
        timeout: Seconds to keep polling
        poll_interval: Seconds between log reads
        stop: Optional event that ends polling early
        phrase: Text that marks the line carrying the token
        pattern: Regex with a "token" group
        delimiter: Fallback prefix the token follows

    Returns:
        The token, or None on timeout or stop. Task cancellation propagates.
    """
    deadline = time.monotonic() + timeout
    logger.debug("Waiting up to %ss for token in %s logs", timeout, service)

    while True:
        if stop is not None and stop.is_set():
            logger.debug("Token extraction for %s stopped", service)
            return None

        logs = await get_service_logs(session, service, tail=TOKEN_LOG_TAIL)
        token = find_token(logs.split("\n"), phrase, pattern, delimiter)
        if token:
            logger.info("Found dashboard token for %s", service)
            return token

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.warning("No token found in %s logs within %ss", service, timeout)
            return None

        wait = min(poll_interval, remaining)
        if stop is None:
            await asyncio.sleep(wait)
        else:
            try:
                await asyncio.wait_for(stop.wait(), timeout=wait)
            except TimeoutError:
                pass
