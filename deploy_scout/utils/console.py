"""Colorful console logging formatter with EST timestamps."""

import logging
import re
from datetime import datetime
from zoneinfo import ZoneInfo

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
    "white": "\033[37m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

# Component colors for logger names
COMPONENT_COLORS = {
    "deploy_scout.server": COLORS["bright_cyan"],
    "deploy_scout.services.multiplexed": COLORS["bright_magenta"],
    "deploy_scout.services.persistent": COLORS["bright_magenta"],
    "deploy_scout.services.session": COLORS["magenta"],
    "deploy_scout.services.monitor": COLORS["bright_blue"],
    "deploy_scout.services": COLORS["blue"],
    "deploy_scout.tools": COLORS["cyan"],
    "deploy_scout.middleware": COLORS["yellow"],
    "deploy_scout.config": COLORS["green"],
    "default": COLORS["white"],
}

EST = ZoneInfo("America/New_York")

_PREFIX = "deploy_scout."
_URL_PATTERN = re.compile(r"(\w+://[^\s]+)")
_DURATION_PATTERN = re.compile(r"(\d+\.?\d*m?s)\b")
_SSH_PATTERN = re.compile(r"(\w+@[\w\.\-]+:\d+)")
_HEALTH_PATTERN = re.compile(r"(\d+/\d+ services healthy)")


class ColorfulFormatter(logging.Formatter):
    """Colorful log formatter with EST timestamps and component highlighting."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        """Get color for a logger name; the first matching prefix wins."""
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created, tz=EST)
        return f"{dt.strftime('%H:%M:%S')}.{int(record.msecs):03d} {dt.strftime('%m/%d')}"

    def _format_level(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname, COLORS["white"])
        return self._colorize(f"{record.levelname:<8}", color)

    def _format_component(self, record: logging.LogRecord) -> str:
        name = record.name
        if name.startswith(_PREFIX):
            name = name[len(_PREFIX):]
        color = self._get_component_color(record.name)
        return self._colorize(f"{name:<22}", color)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with colors and EST timestamp."""
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        level = self._format_level(record)
        component = self._format_component(record)
        sep = self._colorize("|", COLORS["dim"])
        message = self._highlight_message(record.getMessage())

        line = f"{timestamp} {sep} {level} {sep} {component} {sep} {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line

    def _highlight_message(self, message: str) -> str:
        """Highlight URLs, durations, user@host:port and health summaries."""
        if not self.use_colors:
            return message

        if "://" in message:
            message = _URL_PATTERN.sub(f"{COLORS['bright_blue']}\\1{COLORS['reset']}", message)

        if "s" in message:
            message = _DURATION_PATTERN.sub(
                f"{COLORS['bright_yellow']}\\1{COLORS['reset']}", message
            )

        if "@" in message:
            message = _SSH_PATTERN.sub(f"{COLORS['bright_magenta']}\\1{COLORS['reset']}", message)

        if "healthy" in message:
            message = _HEALTH_PATTERN.sub(f"{COLORS['cyan']}\\1{COLORS['reset']}", message)

        return message


class MCPRequestFormatter(ColorfulFormatter):
    """Extended formatter with event indicators for server and session activity."""

    def format(self, record: logging.LogRecord) -> str:
        """Format with a leading indicator chosen from the message text."""
        base = super().format(record)
        if not self.use_colors:
            return base

        message = record.getMessage().lower()

        if "starting" in message or "ready" in message:
            return f"{COLORS['bright_green']}>>>{COLORS['reset']} {base}"
        elif "shutting down" in message or "shutdown" in message:
            return f"{COLORS['bright_red']}<<<{COLORS['reset']} {base}"
        elif "error" in message or "failed" in message:
            return f"{COLORS['bright_red']}!!{COLORS['reset']}  {base}"
        elif "warning" in message or "slow" in message or "timed out" in message:
            return f"{COLORS['bright_yellow']}!{COLORS['reset']}   {base}"
        elif "completed" in message or "healthy" in message:
            return f"{COLORS['bright_green']}OK{COLORS['reset']}  {base}"
        elif "opening" in message or "uploading" in message:
            return f"{COLORS['bright_cyan']}+{COLORS['reset']}   {base}"
        elif "closing" in message:
            return f"{COLORS['bright_yellow']}-{COLORS['reset']}   {base}"

        return f"    {base}"
