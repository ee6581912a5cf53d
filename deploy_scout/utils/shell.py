"""Shell command safety utilities."""

import shlex


def quote_arg(arg: str) -> str:
    """Safely quote a shell argument.

    Args:
        arg: Argument to quote

    Returns:
        Shell-safe quoted argument with no expansion
    """
    return shlex.quote(arg)


def quote_remote_path(path: str) -> str:
    """Double-quote a remote path so $VAR and a leading ~ still expand.

    A leading ~ is rewritten to $HOME because tilde is not expanded inside
    double quotes. Backslashes, double quotes and backticks are escaped.

    Args:
        path: Remote file system path, e.g. "~/app" or "$HOME/app"

    Returns:
        Double-quoted path, e.g. "\"$HOME/app\""
    """
    if path == "~" or path.startswith("~/"):
        path = "$HOME" + path[1:]
    for char in ("\\", '"', "`"):
        path = path.replace(char, "\\" + char)
    return f'"{path}"'
