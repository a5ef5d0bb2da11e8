"""Proxmox VE command line adapter."""
from .client import PlatformClient
from .parsing import parse_column_table, parse_lxc_ips, parse_storage_status

__all__ = [
    'PlatformClient',
    'parse_column_table',
    'parse_lxc_ips',
    'parse_storage_status',
]
