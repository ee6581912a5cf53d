"""Service URL building, masking and status table formatting."""

import ipaddress
from urllib.parse import urlsplit

from deploy_scout.models import ComposeStatus

SECURE_PORTS = (443, 8443)
MASK = "***"


def is_valid_port(port: int) -> bool:
    """Check a TCP/UDP port is within 1-65535."""
    return 0 < port <= 65535


def build_service_url(host: str, port: int) -> str:
    """Build the URL of a published port, using https for 443 and 8443."""
    scheme = "https" if port in SECURE_PORTS else "http"
    return f"{scheme}://{host}:{port}"


def is_ip_address(host: str) -> bool:
    """Whether host is a literal IPv4 or IPv6 address."""
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def can_show_host(host: str | None, force: bool = False) -> bool:
    """Decide whether the target host may appear in output.

    IP addresses are masked unless force is set; domain names are shown.
    """
    if not host:
        return False
    if force:
        return True
    return not is_ip_address(host)


def mask_url_host(url: str, replacement: str = MASK) -> str:
    """Replace the host of a URL, keeping scheme, port and path."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        return url
    port = f":{parts.port}" if parts.port else ""
    path = parts.path + (f"?{parts.query}" if parts.query else "")
    return f"{parts.scheme}://{replacement}{port}{path}".rstrip("/")


def mask_url_hosts(
    service_urls: dict[str, list[str]],
    custom_domain: str | None = None,
) -> dict[str, list[str]]:
    """Mask the host of every URL with a custom domain or '***'."""
    replacement = custom_domain or MASK
    return {
        service: [mask_url_host(url, replacement) for url in urls]
        for service, urls in service_urls.items()
    }


def find_common_prefix(names: list[str]) -> str:
    """Longest case-insensitive common prefix of two or more names."""
    if len(names) <= 1:
        return ""
    prefix = names[0]
    for name in names[1:]:
        while prefix and not name.lower().startswith(prefix.lower()):
            prefix = prefix[:-1]
        if not prefix:
            break
    return prefix


def _display_names(names: list[str]) -> dict[str, str]:
    prefix = find_common_prefix(names)
    if len(prefix) < 3:
        return {name: name for name in names}
    display = {}
    for name in names:
        short = name[len(prefix):].lstrip("-_.")
        display[name] = short or name
    return display


def _cell(text: str, width: int) -> str:
    if len(text) > width:
        return text[: width - 3] + "..."
    return text.ljust(width)


def format_status_table(
    status: ComposeStatus,
    service_urls: dict[str, list[str]] | None = None,
) -> str:
    """Render services, statuses and URLs as a box-drawn table.

    A common prefix of three or more characters shared by all service names
    is dropped for display.

    Args:
        status: Compose status snapshot
        service_urls: URLs per service (defaults to status.service_urls)

    Returns:
        Multi-line table, or "No services detected"
    """
    if not status.services:
        return "No services detected"

    urls_by_service = status.service_urls if service_urls is None else service_urls
    names = [s.name for s in status.services]
    display = _display_names(names)

    name_width = min(max(15, *(len(n) for n in display.values())), 25)
    status_width = min(max(12, *(len(s.status) for s in status.services)), 20)
    url_width = 25
    for urls in urls_by_service.values():
        for url in urls:
            url_width = max(url_width, len(url))
    url_width = min(url_width, 40)

    def border(left: str, mid: str, right: str) -> str:
        return (
            f"{left}{'─' * (name_width + 2)}{mid}{'─' * (status_width + 2)}"
            f"{mid}{'─' * (url_width + 2)}{right}"
        )

    lines = [
        "Service Status:",
        border("┌", "┬", "┐"),
        f"│ {'Service'.ljust(name_width)} │ {'Status'.ljust(status_width)} │ {'URL'.ljust(url_width)} │",
        border("├", "┼", "┤"),
    ]

    for service in sorted(status.services, key=lambda s: display[s.name]):
        name_col = _cell(display[service.name], name_width)
        status_col = _cell(service.status, status_width)
        urls = urls_by_service.get(service.name, [])
        if not urls:
            lines.append(f"│ {name_col} │ {status_col} │ {'-'.ljust(url_width)} │")
            continue
        for index, url in enumerate(urls):
            if index:
                name_col = " " * name_width
                status_col = " " * status_width
            lines.append(f"│ {name_col} │ {status_col} │ {_cell(url, url_width)} │")

    lines.append(border("└", "┴", "┘"))
    return "\n".join(lines)
