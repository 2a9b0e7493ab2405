"""prefstore

Per-application JSON preference storage and system property resolution.
"""

__version__ = "0.1.0"

# Store exports
from prefstore.store import AppHandle, AppStore, open_app, clear_app_data

# System property exports
from prefstore.properties import (
    PROPERTY_PREFIX,
    SystemPropertyResolver,
    SystemPropertyEnumerator,
    VisibilityFilter,
    get_visibility_filter,
)

# Configuration exports
from prefstore.config import Settings

# Exception exports
from prefstore import exceptions
from prefstore.exceptions import ErrorKind, PrefsError, error_string

__all__ = [
    # Store
    "AppHandle",
    "AppStore",
    "open_app",
    "clear_app_data",
    # System properties
    "PROPERTY_PREFIX",
    "SystemPropertyResolver",
    "SystemPropertyEnumerator",
    "VisibilityFilter",
    "get_visibility_filter",
    # Configuration
    "Settings",
    # Exceptions module (access as prefstore.exceptions.NoSuchKey, etc.)
    "exceptions",
    "ErrorKind",
    "PrefsError",
    "error_string",
]
