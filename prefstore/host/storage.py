"""Storage capacity and free space."""

import logging
import os
from pathlib import Path

from prefstore.exceptions import SystemConfigMissing

_logger = logging.getLogger(__name__)

# /proc/partitions reports sizes in 1 KiB blocks
PARTITION_BLOCK_SIZE = 1024


def disk_capacity(partitions_path: str | Path, device: str) -> int:
    """Compute the size in bytes of a block device from the partition table.

    The partition table looks like:

        major minor  #blocks  name

         179     0    7864320 mmcblk0
         179     1       4096 mmcblk0p1

    Only the row naming the whole device counts.

    Raises:
        SystemConfigMissing: If the table is unreadable or lacks the device
    """
    try:
        with open(partitions_path, encoding="utf-8") as f:
            lines = f.readlines()
    except OSError:
        raise SystemConfigMissing(details={"path": str(partitions_path)})

    for line in lines:
        fields = line.split()
        if len(fields) != 4 or fields[3] != device:
            continue
        try:
            n_blocks = int(fields[2])
        except ValueError:
            break
        return n_blocks * PARTITION_BLOCK_SIZE

    raise SystemConfigMissing(details={"path": str(partitions_path), "device": device})


def free_space(mount_point: str | Path) -> int:
    """Bytes available to unprivileged users on a mounted filesystem.

    Raises:
        SystemConfigMissing: If the filesystem cannot be queried
    """
    try:
        st = os.statvfs(mount_point)
    except OSError as e:
        _logger.warning("statvfs(%s) failed: %s", mount_point, e)
        raise SystemConfigMissing(details={"path": str(mount_point)})
    return st.f_bavail * st.f_frsize
