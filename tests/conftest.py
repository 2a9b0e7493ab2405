"""Pytest fixtures for prefstore tests."""

import pytest

from prefstore.config import Settings
from prefstore.exceptions import SystemConfigMissing
from prefstore.host.device import DeviceInfoField, OSInfoField
from prefstore.properties import SystemPropertyResolver, reset_visibility_filter


PARTITIONS = """major minor  #blocks  name

   7     0      51200 loop0
 179     0    7864320 mmcblk0
 179     1       4096 mmcblk0p1
 179     2     409600 mmcblk0p2
"""

BUILD_INFO = """PRODUCT_VERSION_STRING=Open webOS 3.5
BUILDNAME=openwebos-qemux86
BUILDNUMBER=142
"""


class FakeDeviceQuery:
    """DeviceQuery answering from dictionaries; missing fields are unavailable."""

    def __init__(self, device=None, os=None):
        self.device = device or {}
        self.os = os or {}
        self.calls = []

    def device_info(self, field: DeviceInfoField) -> str:
        self.calls.append(field)
        try:
            return self.device[field]
        except KeyError:
            raise SystemConfigMissing()

    def os_info(self, field: OSInfoField) -> str:
        self.calls.append(field)
        try:
            return self.os[field]
        except KeyError:
            raise SystemConfigMissing()


@pytest.fixture(autouse=True)
def reset_whitelist():
    """Forget the process-wide whitelist between tests."""
    reset_visibility_filter()
    yield
    reset_visibility_filter()


@pytest.fixture
def settings(tmp_path):
    """Settings pointing every source at a scratch directory tree."""
    root = tmp_path / "root"
    dirs = {
        "prefs_root": root / "var" / "preferences",
        "properties_dir": root / "etc" / "prefs" / "properties",
        "tokens_dir": root / "dev" / "tokens",
        "runtime_dir": root / "var" / "lib" / "prefs" / "properties",
    }
    for path in dirs.values():
        path.mkdir(parents=True)

    etc = root / "etc"
    (etc / "prefs" / "public_properties").write_text("")
    (etc / "cmdline").write_text("console=ttyS0 root=/dev/mmcblk0p2 lastboot=clean\n")
    (etc / "partitions").write_text(PARTITIONS)
    (etc / "palm-build-info").write_text(BUILD_INFO)
    (etc / "machine-id").write_text("0123456789abcdef\n")
    (etc / "board_type").write_text("qemux86\n")
    (etc / "nduid").write_text("fallback-nduid\n")

    return Settings(
        config_path=tmp_path / "missing.toml",
        whitelist_path=etc / "prefs" / "public_properties",
        cmdline_path=etc / "cmdline",
        partitions_path=etc / "partitions",
        build_info_path=etc / "palm-build-info",
        machine_id_path=etc / "machine-id",
        board_type_path=etc / "board_type",
        nduid_path=etc / "nduid",
        storage_mount=tmp_path,
        **dirs,
    )


@pytest.fixture
def device_query():
    return FakeDeviceQuery(
        device={
            DeviceInfoField.NDUID: "device-nduid",
            DeviceInfoField.BOARD_TYPE: "board-x",
        },
        os={
            OSInfoField.CORE_OS_KERNEL_VERSION: "3.5.0",
            OSInfoField.IMAGE_NAME: "image-name",
            OSInfoField.BUILD_ID: "142",
        },
    )


@pytest.fixture
def resolver(settings, device_query):
    return SystemPropertyResolver(settings, device_query=device_query)


@pytest.fixture
def write_whitelist(settings):
    """Write the whitelist file from a list of keys."""

    def _write(keys):
        settings.whitelist_path.write_text("".join(f"{k}\n" for k in keys))

    return _write


@pytest.fixture
def fake_query():
    """The FakeDeviceQuery class, for tests building their own."""
    return FakeDeviceQuery
