"""Kernel boot parameter access."""

from pathlib import Path

from prefstore.exceptions import SystemConfigMissing

PANIC_MARKER = "lastboot=panic"


def read_cmdline(path: str | Path = "/proc/cmdline") -> str:
    """Read the first line of the kernel command line.

    Raises:
        SystemConfigMissing: If the command line cannot be read
    """
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            line = f.readline()
    except OSError:
        raise SystemConfigMissing(details={"path": str(path)})
    if not line:
        raise SystemConfigMissing(details={"path": str(path)})
    return line.rstrip("\n")


def cmdline_value(name: str, path: str | Path = "/proc/cmdline") -> str:
    """Return the value of a name=value boot parameter.

    Examples:
        >>> # cmdline: "console=ttyS0 root=/dev/mmcblk0p2"
        >>> cmdline_value("root")
        '/dev/mmcblk0p2'

    Raises:
        SystemConfigMissing: If the command line is unreadable or the
            parameter is not present
    """
    for param in read_cmdline(path).split():
        key, sep, value = param.partition("=")
        if sep and key == name:
            return value
    raise SystemConfigMissing(details={"parameter": name})


def previous_boot_panicked(path: str | Path = "/proc/cmdline") -> bool:
    """True if the bootloader flagged the previous boot as a panic."""
    return PANIC_MARKER in read_cmdline(path)
