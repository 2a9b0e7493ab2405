"""Host interface for prefstore.

Provides abstractions for the host platform sources the property resolver
reads (files, kernel parameters, storage, device identity). This allows the
resolver to be pointed at fake sources in tests and on development hosts.
"""

from .environment import get_app_dir, get_app_db_path, APP_DB_FILENAME
from .filesystem import ensure_dir, token_path, read_token_file, list_tokens
from .device import DeviceQuery, FileDeviceQuery, DeviceInfoField, OSInfoField
from .kernel import read_cmdline, cmdline_value, previous_boot_panicked
from .storage import disk_capacity, free_space

__all__ = [
    "get_app_dir",
    "get_app_db_path",
    "APP_DB_FILENAME",
    "ensure_dir",
    "token_path",
    "read_token_file",
    "list_tokens",
    "DeviceQuery",
    "FileDeviceQuery",
    "DeviceInfoField",
    "OSInfoField",
    "read_cmdline",
    "cmdline_value",
    "previous_boot_panicked",
    "disk_capacity",
    "free_space",
]
