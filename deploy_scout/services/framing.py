"""Output framing for commands sent over a shared shell stream.

Every command written to a long-lived shell is wrapped so its output is
bracketed by a start and an end marker line, with the exit status reported
on its own marker line just before the end:

    ___DEPLOY_SCOUT_CMD_START___
    <stdout and stderr of the command, interleaved>
    ___DEPLOY_SCOUT_EXIT_CODE___<decimal>
    ___DEPLOY_SCOUT_CMD_END___

The parser ignores everything before the start marker, including leftover
end and exit markers from an abandoned command, which lets a session
resynchronise after a cancelled read.

Trailing line terminators of the recovered output are not significant and
are stripped. A missing or malformed exit-code line yields exit code 0.
"""

from collections.abc import Iterable

START_MARKER = "___DEPLOY_SCOUT_CMD_START___"
END_MARKER = "___DEPLOY_SCOUT_CMD_END___"
EXIT_CODE_MARKER = "___DEPLOY_SCOUT_EXIT_CODE___"

# Shell variable carrying the exit status from the subshell to printf
_STATUS_VAR = "__deploy_scout_ec"


def wrap_command(command: str) -> str:
    """Wrap a command with framing markers.

    The command runs in a subshell on its own line: `exit` cannot terminate
    the shared shell, and a trailing comment or `&` cannot swallow the closing
    parenthesis. Stdin is detached so the command cannot consume the next
    framed command from the shared stream. Directory and environment changes
    therefore do not carry over between commands.

    Args:
        command: Shell command to execute

    Returns:
        Multi-line script, newline terminated, ready to write to a shell
    """
    return (
        f"echo {START_MARKER}\n"
        "(\n"
        f"{command}\n"
        ") < /dev/null 2>&1\n"
        f"{_STATUS_VAR}=$?\n"
        f"printf '\\n%s%d\\n' '{EXIT_CODE_MARKER}' \"${_STATUS_VAR}\"\n"
        f"echo {END_MARKER}\n"
    )


def _strip_terminator(line: str) -> str:
    return line.rstrip("\r\n")


class OutputParser:
    """Streaming consumer of framed command output.

    Feed lines one at a time until feed() returns True, then call result().

    Example:
        >>> parser = OutputParser()
        >>> for line in lines:
        ...     if parser.feed(line):
        ...         break
        >>> exit_code, output = parser.result()
    """

    def __init__(self) -> None:
        self._started = False
        self._done = False
        self._lines: list[str] = []
        self._exit_code = 0

    @property
    def started(self) -> bool:
        return self._started

    @property
    def done(self) -> bool:
        return self._done

    def feed(self, line: str) -> bool:
        """Consume one line.

        Args:
            line: Line of shell output, with or without its terminator

        Returns:
            True once the end marker has been consumed
        """
        if self._done:
            return True

        text = _strip_terminator(line)

        if not self._started:
            if text == START_MARKER:
                self._started = True
            return False

        if text == END_MARKER:
            self._done = True
            return True

        if text.startswith(EXIT_CODE_MARKER):
            self._exit_code = parse_exit_code(text[len(EXIT_CODE_MARKER):])
            return False

        self._lines.append(text)
        return False

    def result(self) -> tuple[int, str]:
        """Return (exit_code, output) recovered so far."""
        lines = list(self._lines)
        while lines and lines[-1] == "":
            lines.pop()
        return self._exit_code, "\n".join(lines)


def parse_exit_code(value: str) -> int:
    """Parse the suffix of an exit-code marker line.

    Returns:
        The decimal exit status, or 0 when the suffix is not an integer
    """
    try:
        return int(value.strip())
    except ValueError:
        return 0


def parse_output(lines: Iterable[str] | str) -> tuple[int, str]:
    """Parse a complete framed transcript.

    Args:
        lines: Transcript lines, or the whole transcript as one string

    Returns:
        Tuple of (exit_code, output). Output collected before a missing end
        marker is still returned.
    """
    if isinstance(lines, str):
        lines = lines.split("\n")

    parser = OutputParser()
    for line in lines:
        if parser.feed(line):
            break
    return parser.result()
