"""Hardware and OS query interface.

The resolver asks a DeviceQuery for device identity, board type and
OS build fields. On a device this is backed by the platform's hardware
abstraction layer; FileDeviceQuery is the default and answers from the
files the platform image ships.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Protocol

from prefstore import config
from prefstore.exceptions import SystemConfigMissing

_logger = logging.getLogger(__name__)


class DeviceInfoField(Enum):
    """Fields of the device-info subdevice."""

    NDUID = "nduid"
    BOARD_TYPE = "board_type"


class OSInfoField(Enum):
    """Fields of the OS-info subdevice."""

    CORE_OS_KERNEL_VERSION = "core_os_kernel_version"
    BUILD_ID = "build_id"
    IMAGE_NAME = "image_name"


# OS-info field -> key in the KEY=value build info file
BUILD_INFO_KEYS = {
    OSInfoField.CORE_OS_KERNEL_VERSION: "PRODUCT_VERSION_STRING",
    OSInfoField.IMAGE_NAME: "BUILDNAME",
    OSInfoField.BUILD_ID: "BUILDNUMBER",
}


class DeviceQuery(Protocol):
    """Query interface for device identity and OS build information.

    Both methods raise SystemConfigMissing when the field cannot be
    obtained.
    """

    def device_info(self, field: DeviceInfoField) -> str:
        ...

    def os_info(self, field: OSInfoField) -> str:
        ...


def read_build_info(path: str | Path, file_key: str) -> str | None:
    """Look up one KEY=value line in a build info file.

    Args:
        path: Build info file (e.g. /etc/palm-build-info)
        file_key: Key as written in the file (e.g. BUILDNUMBER)

    Returns:
        Value with trailing newlines removed, or None if the file or key
        is missing
    """
    try:
        with open(path, encoding="utf-8") as f:
            for line in f:
                name, sep, value = line.partition("=")
                if sep and name == file_key:
                    return value.rstrip("\n")
    except OSError:
        return None
    return None


class FileDeviceQuery:
    """DeviceQuery answered from files on the root filesystem.

    - nduid: machine id file
    - board type: board type file
    - OS fields: KEY=value build info file
    """

    def __init__(self, settings: "config.Settings | None" = None):
        self.settings = settings or config.default_settings

    def _read_single_line(self, path: Path) -> str:
        try:
            value = path.read_text(encoding="utf-8").strip()
        except OSError as e:
            _logger.debug("device info file %s unavailable: %s", path, e)
            raise SystemConfigMissing(details={"path": str(path)})
        if not value:
            raise SystemConfigMissing(details={"path": str(path)})
        return value

    def device_info(self, field: DeviceInfoField) -> str:
        if field is DeviceInfoField.NDUID:
            return self._read_single_line(Path(self.settings.machine_id_path))
        if field is DeviceInfoField.BOARD_TYPE:
            return self._read_single_line(Path(self.settings.board_type_path))
        raise SystemConfigMissing(details={"field": repr(field)})

    def os_info(self, field: OSInfoField) -> str:
        file_key = BUILD_INFO_KEYS.get(field)
        if file_key is None:
            raise SystemConfigMissing(details={"field": repr(field)})
        value = read_build_info(self.settings.build_info_path, file_key)
        if value is None:
            raise SystemConfigMissing(
                details={"path": str(self.settings.build_info_path), "key": file_key}
            )
        return value
