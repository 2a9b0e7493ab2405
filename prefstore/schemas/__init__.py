"""Schema access utilities for prefstore.

Provides runtime access to the bundled SQL schema of the per-application
preferences table.

Lookup order:
- importlib.resources first (installed package)
- file reading next to this module (development checkout)
- FileNotFoundError if neither location has the schema

USAGE:
    >>> from prefstore.schemas import get_sql_schema
    >>> prefs_sql = get_sql_schema('prefs')
"""

from __future__ import annotations

from pathlib import Path

# Try importlib.resources for bundled package support
try:
    from importlib.resources import files as resource_files
    HAS_RESOURCE_FILES = True
except ImportError:
    HAS_RESOURCE_FILES = False


VALID_SCHEMAS = {"prefs"}


def get_sql_schema(name: str = "prefs") -> str:
    """Get SQL schema content.

    Args:
        name: Schema name; only 'prefs' exists

    Returns:
        SQL schema content as string

    Raises:
        ValueError: If name is not a known schema
        FileNotFoundError: If schema file not found in bundled or file locations
    """
    if name not in VALID_SCHEMAS:
        raise ValueError(
            f"Invalid schema: {name!r}. Must be one of: {sorted(VALID_SCHEMAS)}"
        )

    if HAS_RESOURCE_FILES:
        try:
            schema_file = resource_files("prefstore.schemas") / "sql" / f"{name}.sql"
            if schema_file.is_file():
                return schema_file.read_text(encoding="utf-8")
        except (FileNotFoundError, ModuleNotFoundError, AttributeError):
            # Fall through to file reading
            pass

    file_path = Path(__file__).parent / "sql" / f"{name}.sql"
    if file_path.exists():
        return file_path.read_text(encoding="utf-8")

    raise FileNotFoundError(
        f"SQL schema file not found for {name!r}. Searched: {file_path}"
    )
