"""Per-application path resolution.

Path Resolution:
- Each application's store lives in its own directory under the
  preferences root: {prefs_root}/{app_id}/prefsDB.sl
- The preferences root comes from Settings (PREFSTORE_PREFS_ROOT env var,
  [paths] prefs_root in config.toml, or /var/preferences)

The path is a pure function of the application id: computing it never
touches the filesystem.
"""

from pathlib import Path

from prefstore import config

APP_DB_FILENAME = "prefsDB.sl"


def get_app_dir(app_id: str, settings: "config.Settings | None" = None) -> Path:
    """Resolve the directory holding an application's store.

    Args:
        app_id: Application identifier (e.g. "com.example.app")
        settings: Settings to read prefs_root from (default settings if None)

    Returns:
        Directory path for the application

    Examples:
        >>> get_app_dir("com.palm.browser")
        Path('/var/preferences/com.palm.browser')
    """
    settings = settings or config.default_settings
    # joined as text so an absolute app id still lands under the root
    return Path(f"{settings.prefs_root}/{app_id}")


def get_app_db_path(app_id: str, settings: "config.Settings | None" = None) -> Path:
    """Resolve the backing database file for an application.

    Examples:
        >>> get_app_db_path("com.palm.browser")
        Path('/var/preferences/com.palm.browser/prefsDB.sl')
    """
    return get_app_dir(app_id, settings) / APP_DB_FILENAME
