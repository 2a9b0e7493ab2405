"""Configuration management for prefstore.

Settings name every filesystem location the store and the property
resolver touch, so a device image, a development checkout and the test
suite can each point them somewhere else.

Configuration Resolution Order:
1. Environment variables (highest priority)
2. TOML config file
3. Built-in defaults

Config file location: explicit override, then $PREFSTORE_CONFIG, then
/etc/prefstore/config.toml.

Example config.toml:

    [paths]
    prefs_root = "/var/preferences"
    properties_dir = "/etc/prefs/properties"
    tokens_dir = "/dev/tokens"

    [storage]
    device = "mmcblk0"
    mount_point = "/media/internal"

    [logging]
    level = "info"
"""

import os
import sys
from pathlib import Path
from typing import Optional, Any

# Python 3.11+ has tomllib in stdlib, otherwise use tomli
if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None


DEFAULT_CONFIG_PATH = Path("/etc/prefstore/config.toml")

# setting name -> (TOML table, TOML key, default)
PATH_DEFAULTS: dict[str, tuple[str, str, str]] = {
    "prefs_root": ("paths", "prefs_root", "/var/preferences"),
    "properties_dir": ("paths", "properties_dir", "/etc/prefs/properties"),
    "whitelist_path": ("paths", "whitelist_path", "/etc/prefs/public_properties"),
    "tokens_dir": ("paths", "tokens_dir", "/dev/tokens"),
    "runtime_dir": ("paths", "runtime_dir", "/var/lib/prefs/properties"),
    "machine_id_path": ("paths", "machine_id_path", "/etc/machine-id"),
    "nduid_path": ("paths", "nduid_path", "/var/lib/nyx/nduid"),
    "board_type_path": ("paths", "board_type_path", "/var/lib/nyx/board_type"),
    "build_info_path": ("paths", "build_info_path", "/etc/palm-build-info"),
    "cmdline_path": ("paths", "cmdline_path", "/proc/cmdline"),
    "partitions_path": ("paths", "partitions_path", "/proc/partitions"),
    "storage_mount": ("storage", "mount_point", "/media/internal"),
}

STORAGE_DEVICE_DEFAULT = "mmcblk0"
LOG_LEVEL_DEFAULT = "warning"


def load_toml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        config_path: Path to config.toml file

    Returns:
        Dictionary with configuration sections

    Raises:
        ImportError: If tomli is not available (Python < 3.11)
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is invalid TOML
    """
    if tomllib is None:
        raise ImportError(
            "tomli is required for Python < 3.11. "
            "Install it with: pip install tomli"
        )

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            return tomllib.load(f)
        except Exception as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}")


def get_config_path(config_override: Optional[Path] = None) -> Path:
    """Get configuration file path.

    Args:
        config_override: Optional explicit config path

    Returns:
        Path to configuration file

    Examples:
        >>> get_config_path()
        Path('/etc/prefstore/config.toml')

        >>> get_config_path(Path("/tmp/prefs.toml"))
        Path('/tmp/prefs.toml')
    """
    if config_override:
        return Path(config_override)

    env_path = os.environ.get("PREFSTORE_CONFIG")
    if env_path:
        return Path(env_path)

    return DEFAULT_CONFIG_PATH


class Settings:
    """prefstore settings with TOML configuration support.

    Every location in PATH_DEFAULTS becomes a Path attribute. The matching
    environment variable is PREFSTORE_<NAME> (e.g. PREFSTORE_TOKENS_DIR).
    Keyword overrides passed to the constructor win over everything, which
    is how tests and embedding callers point the store at scratch
    directories.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        **overrides: Any,
    ):
        """Initialize settings.

        Args:
            config_path: Optional explicit path to config.toml
            **overrides: Setting values that take precedence over env vars
                and the config file (e.g. prefs_root=tmp_path)
        """
        self._config: dict[str, Any] = {}

        config_path = get_config_path(config_path)
        if config_path.exists():
            try:
                self._config = load_toml_config(config_path)
            except (ImportError, ValueError) as e:
                # Log warning but continue with defaults
                import warnings
                warnings.warn(f"Failed to load config from {config_path}: {e}")

        self._apply_config()

        unknown = set(overrides) - set(PATH_DEFAULTS) - {"storage_device", "log_level"}
        if unknown:
            raise TypeError(f"Unknown settings: {sorted(unknown)}")
        for key, value in overrides.items():
            if key in PATH_DEFAULTS:
                value = Path(value)
            setattr(self, key, value)

    def _apply_config(self):
        """Apply settings in order env var > TOML > default."""
        for name, (table, toml_key, default) in PATH_DEFAULTS.items():
            table_config = self._config.get(table, {})
            value = os.environ.get(
                f"PREFSTORE_{name.upper()}",
                table_config.get(toml_key, default),
            )
            setattr(self, name, Path(value))

        storage_config = self._config.get("storage", {})
        self.storage_device = os.environ.get(
            "PREFSTORE_STORAGE_DEVICE",
            storage_config.get("device", STORAGE_DEVICE_DEFAULT),
        )

        logging_config = self._config.get("logging", {})
        self.log_level = os.environ.get(
            "PREFSTORE_LOG_LEVEL",
            logging_config.get("level", LOG_LEVEL_DEFAULT),
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        return getattr(self, key, default)


# Default settings instance, used when callers pass no Settings
default_settings = Settings()
