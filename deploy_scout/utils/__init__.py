"""Utilities for Deploy Scout."""

from deploy_scout.utils.console import ColorfulFormatter, MCPRequestFormatter
from deploy_scout.utils.shell import quote_arg, quote_remote_path
from deploy_scout.utils.urls import (
    build_service_url,
    can_show_host,
    format_status_table,
    mask_url_hosts,
)

__all__ = [
    "build_service_url",
    "can_show_host",
    "ColorfulFormatter",
    "format_status_table",
    "mask_url_hosts",
    "MCPRequestFormatter",
    "quote_arg",
    "quote_remote_path",
]
