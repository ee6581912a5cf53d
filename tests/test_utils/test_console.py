"""Tests for the console log formatters."""

import logging
import sys

from deploy_scout.utils.console import COLORS, ColorfulFormatter, MCPRequestFormatter


def make_record(name: str, message: str, level: int = logging.INFO, exc_info=None):
    return logging.LogRecord(name, level, __file__, 1, message, None, exc_info)


def test_plain_format_strips_package_prefix():
    """Without colors, lines read timestamp | level | component | message."""
    formatter = ColorfulFormatter(use_colors=False)

    line = formatter.format(make_record("deploy_scout.services.monitor", "2/3 services healthy"))

    assert " | INFO     | services.monitor" in line
    assert line.endswith("| 2/3 services healthy")
    assert "\033[" not in line


def test_colors_highlight_urls_and_health():
    """URLs and health summaries are highlighted."""
    formatter = ColorfulFormatter(use_colors=True)

    line = formatter.format(
        make_record("deploy_scout.tools", "Dashboard at http://host:18888, 3/3 services healthy")
    )

    assert f"{COLORS['bright_blue']}http://host:18888," in line
    assert f"{COLORS['cyan']}3/3 services healthy{COLORS['reset']}" in line


def test_exception_is_appended():
    """Tracebacks are included when the record carries exc_info."""
    formatter = ColorfulFormatter(use_colors=False)
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = make_record("deploy_scout.server", "failed", logging.ERROR, sys.exc_info())

    line = formatter.format(record)

    assert "Traceback" in line
    assert "RuntimeError: boom" in line


def test_request_formatter_indicators():
    """Indicators are chosen from the message text."""
    formatter = MCPRequestFormatter(use_colors=True)

    timed_out = formatter.format(make_record("deploy_scout.services.monitor", "Health check timed out"))
    starting = formatter.format(make_record("deploy_scout.server", "Starting deploy_scout server"))
    neutral = formatter.format(make_record("deploy_scout.server", "Target host set"))

    assert timed_out.startswith(f"{COLORS['bright_yellow']}!")
    assert starting.startswith(f"{COLORS['bright_green']}>>>")
    assert neutral.startswith("    ")


def test_request_formatter_without_colors_has_no_indicator():
    """Plain output is identical to the base formatter."""
    record = make_record("deploy_scout.server", "Starting server")

    assert MCPRequestFormatter(use_colors=False).format(record) == ColorfulFormatter(
        use_colors=False
    ).format(record)
