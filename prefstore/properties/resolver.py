"""System property resolution.

A system property key is the reserved prefix followed by a token, e.g.
"com.palm.properties.nduid". Sources are tried in a fixed order and the
first one that knows the token answers:

1. {properties_dir}/{token}   factory/flash-time files; override everything
2. computed tokens             device identity, OS build, storage, boot state
3. {tokens_dir}/{token}        runtime tokens written after first boot
4. {runtime_dir}/{token}       configurable runtime directory

If a provisioned file exists the search stops there, even when reading it
fails. A computed token that cannot be produced fails with
SystemConfigMissing instead of falling through to the runtime directories.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from prefstore import config
from prefstore.exceptions import NoSuchKey, ParamError, SystemConfigMissing
from prefstore.host import kernel, storage
from prefstore.host.device import DeviceInfoField, DeviceQuery, FileDeviceQuery, OSInfoField
from prefstore.host.filesystem import read_token_file, token_path
from prefstore.store import AppHandle

_logger = logging.getLogger(__name__)

PROPERTY_PREFIX = "com.palm.properties."

# OS build info
TOKEN_VERSION = "version"
TOKEN_BUILD_NAME = "buildName"
TOKEN_BUILD_NUMBER = "buildNumber"
# derived from runtime info
TOKEN_NDUID = "nduid"
TOKEN_BOARD_TYPE = "boardType"
TOKEN_DISK_SIZE = "storageCapacity"
TOKEN_FREE_SPACE = "storageFreeSpace"
TOKEN_PREV_PANIC = "prevBootPanicked"
TOKEN_PREV_SHUTDOWN_CLEAN = "prevShutdownClean"

COMPUTED_TOKENS = (
    TOKEN_VERSION,
    TOKEN_BUILD_NAME,
    TOKEN_BUILD_NUMBER,
    TOKEN_NDUID,
    TOKEN_BOARD_TYPE,
    TOKEN_DISK_SIZE,
    TOKEN_FREE_SPACE,
    TOKEN_PREV_PANIC,
    TOKEN_PREV_SHUTDOWN_CLEAN,
)

# The shutdown-clean flag is written by the boot scripts into this
# application's own store.
SYSTEM_APP_ID = "com.palm.system"
LAST_UMOUNT_CLEAN_KEY = "last_umount_clean"
SHUTDOWN_CLEAN_UNKNOWN = " "


def strip_prefix(key: str) -> str | None:
    """Return the token of a system property key, or None if unprefixed."""
    if key.startswith(PROPERTY_PREFIX):
        return key[len(PROPERTY_PREFIX):]
    return None


def make_key(token: str) -> str:
    """Prefix a token to form a system property key."""
    return f"{PROPERTY_PREFIX}{token}"


class SystemPropertyResolver:
    """Resolves one system property key at a time.

    Nothing is cached: file-backed values are re-read and computed values
    recomputed on every call.
    """

    def __init__(
        self,
        settings: config.Settings | None = None,
        device_query: DeviceQuery | None = None,
    ):
        """Initialize resolver.

        Args:
            settings: Settings naming the source directories and files
            device_query: Hardware/OS query interface; defaults to
                FileDeviceQuery over the same settings
        """
        self.settings = settings or config.default_settings
        self.device_query = device_query or FileDeviceQuery(self.settings)
        self._providers: dict[str, Callable[[], str]] = {
            TOKEN_NDUID: self._nduid,
            TOKEN_BOARD_TYPE: lambda: self.device_query.device_info(DeviceInfoField.BOARD_TYPE),
            TOKEN_VERSION: lambda: self.device_query.os_info(OSInfoField.CORE_OS_KERNEL_VERSION),
            TOKEN_BUILD_NAME: lambda: self.device_query.os_info(OSInfoField.IMAGE_NAME),
            TOKEN_BUILD_NUMBER: lambda: self.device_query.os_info(OSInfoField.BUILD_ID),
            TOKEN_DISK_SIZE: self._disk_capacity,
            TOKEN_FREE_SPACE: self._free_space,
            TOKEN_PREV_PANIC: self._prev_boot_panicked,
            TOKEN_PREV_SHUTDOWN_CLEAN: self._prev_shutdown_clean,
        }

    @property
    def source_dirs(self) -> tuple[Path, Path, Path]:
        """Token directories in precedence order."""
        return (
            Path(self.settings.properties_dir),
            Path(self.settings.tokens_dir),
            Path(self.settings.runtime_dir),
        )

    def resolve(self, key: str) -> str:
        """Resolve a system property key to its value text.

        Args:
            key: Prefixed property key (e.g. "com.palm.properties.nduid")

        Returns:
            Property value; file-backed values are the file contents minus
            one trailing newline

        Raises:
            NoSuchKey: If key lacks the prefix or no source knows the token
            SystemConfigMissing: If a computed token's source is unavailable
        """
        if not isinstance(key, str):
            raise ParamError(details={"key": repr(key)})
        token = strip_prefix(key)
        if not token:
            raise NoSuchKey(details={"key": key})

        properties_dir, tokens_dir, runtime_dir = self.source_dirs

        path = token_path(properties_dir, token)
        if path is not None:
            return read_token_file(path)

        provider = self._providers.get(token)
        if provider is not None:
            return provider()

        for directory in (tokens_dir, runtime_dir):
            path = token_path(directory, token)
            if path is not None:
                return read_token_file(path)

        raise NoSuchKey(details={"key": key})

    def resolve_document(self, key: str) -> list[str]:
        """Resolve a key to a one-element array holding its value."""
        return [self.resolve(key)]

    def cmdline_value(self, name: str) -> str:
        """Value of a name=value kernel boot parameter."""
        return kernel.cmdline_value(name, self.settings.cmdline_path)

    # ==========================================================================
    # COMPUTED TOKENS
    # ==========================================================================

    def _nduid(self) -> str:
        try:
            return self.device_query.device_info(DeviceInfoField.NDUID)
        except SystemConfigMissing:
            # Some build targets lack the device-info interface; the id is
            # still written to a file there.
            _logger.debug("device info unavailable; reading %s", self.settings.nduid_path)
        path = Path(self.settings.nduid_path)
        try:
            value = path.read_text(encoding="utf-8")
        except OSError:
            raise SystemConfigMissing(details={"path": str(path)})
        return value[:-1] if value.endswith("\n") else value

    def _disk_capacity(self) -> str:
        size = storage.disk_capacity(self.settings.partitions_path, self.settings.storage_device)
        return str(size)

    def _free_space(self) -> str:
        return str(storage.free_space(self.settings.storage_mount))

    def _prev_boot_panicked(self) -> str:
        panicked = kernel.previous_boot_panicked(self.settings.cmdline_path)
        return "true" if panicked else "false"

    def _prev_shutdown_clean(self) -> str:
        handle = AppHandle(SYSTEM_APP_ID, self.settings)
        try:
            return handle.get_string(LAST_UMOUNT_CLEAN_KEY)
        except NoSuchKey:
            return SHUTDOWN_CLEAN_UNKNOWN
        finally:
            handle.close(commit=False)
