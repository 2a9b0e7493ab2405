"""prefstore per-application store.

Each application owns one sqlite database holding a single table of
key/value rows, where every value is a complete JSON object or array.

ARCHITECTURE:
- AppHandle owns its connection and exactly one transaction
- Handles are opened lazily: creating one never touches disk
- close(commit) or the context manager decides commit vs rollback
- One handle per application at a time; a concurrent writer from another
  process surfaces as Busy
"""

from .database import AppHandle, AppStore, open_app, clear_app_data

__all__ = [
    "AppHandle",
    "AppStore",
    "open_app",
    "clear_app_data",
]
