"""Tests for the host interface layer (prefstore.host)."""

import os

import pytest

from prefstore.exceptions import NoSuchKey, SystemConfigMissing
from prefstore.host import (
    DeviceInfoField,
    FileDeviceQuery,
    OSInfoField,
    cmdline_value,
    disk_capacity,
    free_space,
    get_app_db_path,
    get_app_dir,
    list_tokens,
    previous_boot_panicked,
    read_cmdline,
    read_token_file,
    token_path,
)


class TestEnvironment:
    def test_app_paths_are_pure(self, settings):
        app_dir = get_app_dir("com.palm.browser", settings)
        assert app_dir == settings.prefs_root / "com.palm.browser"
        assert get_app_db_path("com.palm.browser", settings) == app_dir / "prefsDB.sl"
        assert not app_dir.exists()


class TestTokenFiles:
    def test_token_path_only_for_existing_files(self, tmp_path):
        (tmp_path / "nduid").write_text("x")
        assert token_path(tmp_path, "nduid") == tmp_path / "nduid"
        assert token_path(tmp_path, "missing") is None

    @pytest.mark.parametrize("token", ["", ".", "..", "../etc", "a/b"])
    def test_token_path_rejects_path_like_tokens(self, tmp_path, token):
        assert token_path(tmp_path, token) is None

    def test_read_strips_one_trailing_newline(self, tmp_path):
        (tmp_path / "a").write_text("value\n")
        (tmp_path / "b").write_text("value\n\n")
        (tmp_path / "c").write_text("  spaced  ")
        assert read_token_file(tmp_path / "a") == "value"
        assert read_token_file(tmp_path / "b") == "value\n"
        assert read_token_file(tmp_path / "c") == "  spaced  "

    def test_read_unreadable_file_is_no_such_key(self, tmp_path):
        with pytest.raises(NoSuchKey):
            read_token_file(tmp_path / "absent")

    def test_list_tokens_regular_files_only(self, tmp_path):
        (tmp_path / "b").write_text("")
        (tmp_path / "a").write_text("")
        (tmp_path / "subdir").mkdir()
        assert list_tokens(tmp_path) == ["a", "b"]

    def test_list_tokens_missing_directory(self, tmp_path):
        assert list_tokens(tmp_path / "absent") == []


class TestKernel:
    def test_read_cmdline_first_line(self, tmp_path):
        path = tmp_path / "cmdline"
        path.write_text("quiet root=/dev/sda1\nsecond line\n")
        assert read_cmdline(path) == "quiet root=/dev/sda1"

    def test_cmdline_value(self, settings):
        assert cmdline_value("root", settings.cmdline_path) == "/dev/mmcblk0p2"
        with pytest.raises(SystemConfigMissing):
            cmdline_value("absent", settings.cmdline_path)

    def test_previous_boot_panicked(self, tmp_path, settings):
        assert previous_boot_panicked(settings.cmdline_path) is False
        path = tmp_path / "panic"
        path.write_text("console=ttyS0 lastboot=panic\n")
        assert previous_boot_panicked(path) is True

    def test_missing_cmdline(self, tmp_path):
        with pytest.raises(SystemConfigMissing):
            read_cmdline(tmp_path / "absent")


class TestStorage:
    def test_disk_capacity_uses_whole_device_row(self, settings):
        assert disk_capacity(settings.partitions_path, "mmcblk0") == 7864320 * 1024

    def test_disk_capacity_unknown_device(self, settings):
        with pytest.raises(SystemConfigMissing):
            disk_capacity(settings.partitions_path, "sdz")

    def test_disk_capacity_missing_table(self, tmp_path):
        with pytest.raises(SystemConfigMissing):
            disk_capacity(tmp_path / "absent", "mmcblk0")

    def test_free_space(self, tmp_path):
        st = os.statvfs(tmp_path)
        assert free_space(tmp_path) == st.f_bavail * st.f_frsize

    def test_free_space_missing_mount(self, tmp_path):
        with pytest.raises(SystemConfigMissing):
            free_space(tmp_path / "absent")


class TestFileDeviceQuery:
    def test_device_fields(self, settings):
        query = FileDeviceQuery(settings)
        assert query.device_info(DeviceInfoField.NDUID) == "0123456789abcdef"
        assert query.device_info(DeviceInfoField.BOARD_TYPE) == "qemux86"

    def test_os_fields(self, settings):
        query = FileDeviceQuery(settings)
        assert query.os_info(OSInfoField.CORE_OS_KERNEL_VERSION) == "Open webOS 3.5"
        assert query.os_info(OSInfoField.IMAGE_NAME) == "openwebos-qemux86"
        assert query.os_info(OSInfoField.BUILD_ID) == "142"

    def test_missing_sources(self, settings):
        settings.machine_id_path.unlink()
        settings.build_info_path.write_text("BUILDNAME=x\n")
        query = FileDeviceQuery(settings)
        with pytest.raises(SystemConfigMissing):
            query.device_info(DeviceInfoField.NDUID)
        with pytest.raises(SystemConfigMissing):
            query.os_info(OSInfoField.BUILD_ID)
