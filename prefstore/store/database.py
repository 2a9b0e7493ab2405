"""Per-application preference store operations."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from prefstore import codec, config
from prefstore.exceptions import (
    Busy,
    DatabaseError,
    IllegalKey,
    InvalidHandle,
    NoSuchKey,
    ParamError,
    ValueNotJSON,
)
from prefstore.host.environment import get_app_db_path, get_app_dir
from prefstore.host.filesystem import ensure_dir
from prefstore.schemas import get_sql_schema

_logger = logging.getLogger(__name__)

_BUSY_ERROR_NAMES = {"SQLITE_BUSY", "SQLITE_LOCKED"}


def _is_missing_table(error: sqlite3.Error) -> bool:
    return "no such table" in str(error)


def _translate_error(error: sqlite3.Error, statement: str | None = None) -> Exception:
    """Map a sqlite3 error to Busy or DatabaseError."""
    name = getattr(error, "sqlite_errorname", "")
    message = str(error)
    if name in _BUSY_ERROR_NAMES or "database is locked" in message:
        return Busy(details={"sqlite": message})
    return DatabaseError(f"unspecified sqlite3 error: {message}", statement=statement)


def _is_valid_app_id(app_id: str) -> bool:
    """Non-empty and never climbing out of the preferences root."""
    return isinstance(app_id, str) and bool(app_id) and ".." not in Path(app_id).parts


def _create_table_statement() -> str:
    """The bundled schema as a single executable statement."""
    lines = [
        line for line in get_sql_schema("prefs").splitlines()
        if not line.lstrip().startswith("--")
    ]
    return "\n".join(lines).strip()


class AppHandle:
    """Handle on one application's preference store.

    CONNECTION LIFECYCLE:
    - Creating a handle only computes the store path; nothing touches disk
    - The first operation creates the directory, opens the sqlite database
      and begins the handle's single transaction
    - close(commit) commits or rolls back that transaction and releases the
      connection; the handle is unusable afterwards
    - As a context manager: commits on success, rolls back on exception,
      always closes

    SELF-REPAIR:
    A store directory can exist without its table (e.g. created by an
    external tool). Any statement failing with "no such table" creates the
    table and is retried exactly once.
    """

    def __init__(self, app_id: str, settings: config.Settings | None = None):
        """Initialize a handle.

        Args:
            app_id: Application identifier (e.g. "com.example.app")
            settings: Settings with prefs_root (default settings if None)

        Raises:
            InvalidHandle: If app_id is None, empty or contains ".."
        """
        if not _is_valid_app_id(app_id):
            raise InvalidHandle(details={"app_id": app_id})
        self.app_id = app_id
        self.app_dir: Path = get_app_dir(app_id, settings)
        self.db_path: Path = get_app_db_path(app_id, settings)
        self._conn: sqlite3.Connection | None = None
        self._in_transaction = False
        self._closed = False

    def __repr__(self) -> str:
        return f"AppHandle(app_id={self.app_id!r}, open={self.is_open})"

    @property
    def is_open(self) -> bool:
        """True while the underlying connection is open."""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @property
    def closed(self) -> bool:
        return self._closed

    def _get_connection(self) -> sqlite3.Connection:
        """Get connection, opening the database and a transaction if needed.

        Raises:
            InvalidHandle: If the handle was closed
            Busy: If the database is locked by another process
            DatabaseError: If sqlite cannot open the database
        """
        if self._closed:
            raise InvalidHandle(details={"app_id": self.app_id})
        if self._conn is None:
            ensure_dir(self.app_dir)
            try:
                # timeout=0: a locked store is reported as Busy, never waited on
                conn = sqlite3.connect(str(self.db_path), timeout=0, isolation_level=None)
            except sqlite3.Error as e:
                raise _translate_error(e)
            self._conn = conn
        if not self._in_transaction:
            try:
                self._conn.execute("BEGIN")
            except sqlite3.Error as e:
                raise _translate_error(e, "BEGIN")
            self._in_transaction = True
        return self._conn

    def _add_table(self) -> None:
        statement = _create_table_statement()
        _logger.info("creating preferences table in %s", self.db_path)
        try:
            self._get_connection().execute(statement)
        except sqlite3.Error as e:
            raise _translate_error(e, statement)

    def _run(self, statement: str, params: tuple = (), can_add_table: bool = True) -> list[tuple]:
        """Execute one statement and return all result rows.

        On a missing table the table is created and the statement retried
        once; any other failure, or a second failure, is raised.
        """
        conn = self._get_connection()
        for attempt in (0, 1):
            try:
                return conn.execute(statement, params).fetchall()
            except sqlite3.Error as e:
                if attempt == 0 and can_add_table and _is_missing_table(e):
                    self._add_table()
                    continue
                _logger.error("sqlite3 statement %r failed: %s", statement, e)
                raise _translate_error(e, statement)
        raise DatabaseError(statement=statement)

    @staticmethod
    def _check_key(key: str) -> None:
        if not isinstance(key, str):
            raise ParamError(details={"key": repr(key)})

    # ==========================================================================
    # READS
    # ==========================================================================

    def get(self, key: str) -> str:
        """Get the stored JSON text for a key.

        Args:
            key: Preference key

        Returns:
            JSON document text

        Raises:
            NoSuchKey: If no entry exists for key
            ValueNotJSON: If the stored value is not a JSON document
        """
        self._check_key(key)
        rows = self._run("SELECT value FROM data WHERE key = ?", (key,))
        if not rows or rows[0][0] is None:
            raise NoSuchKey(details={"app_id": self.app_id, "key": key})
        value = rows[0][0]
        if not codec.is_document(value):
            _logger.error("non-json value stored for %s/%s: %r", self.app_id, key, value)
            raise ValueNotJSON(details={"app_id": self.app_id, "key": key})
        return value

    def get_document(self, key: str) -> dict | list:
        """Get the parsed JSON document for a key."""
        return codec.as_document(self.get(key))

    def get_string(self, key: str) -> str:
        """Get a value stored with set_string().

        Raises:
            ValueNotJSON: If the value is not a one-string array
        """
        return codec.unwrap_string(self.get(key))

    def get_int(self, key: str) -> int:
        """Get a value stored with set_int().

        Raises:
            ValueNotJSON: If the value is not a one-string array holding a
                base-10 integer
        """
        return codec.unwrap_int(self.get(key))

    def list_keys(self) -> list[str]:
        """List every key in the store."""
        return [row[0] for row in self._run("SELECT key FROM data")]

    def list_all(self) -> list[dict]:
        """List every entry as a single-entry {key: value} object.

        Entries whose stored value is not a JSON document cannot be
        represented and are skipped.
        """
        entries = []
        for key, value in self._run("SELECT key, value FROM data"):
            try:
                entries.append({key: codec.as_document(value)})
            except ValueNotJSON:
                _logger.warning("skipping non-json value for %s/%s", self.app_id, key)
        return entries

    # ==========================================================================
    # WRITES
    # ==========================================================================

    def set(self, key: str, value: str) -> None:
        """Set the JSON text for a key, replacing any existing entry.

        Args:
            key: Non-empty preference key
            value: JSON text whose root is an object or array

        Raises:
            IllegalKey: If key is empty
            ValueNotJSON: If value is not a JSON document
        """
        self._check_key(key)
        if not key:
            raise IllegalKey(details={"app_id": self.app_id})
        if not isinstance(value, str):
            raise ValueNotJSON(details={"value": repr(value)})
        codec.validate_document(value)
        # REPLACE, not INSERT, so a key never has two rows
        self._run("REPLACE INTO data VALUES(?, ?)", (key, value))

    def set_document(self, key: str, document: dict | list) -> None:
        """Serialize a dict or list and store it under key."""
        self._check_key(key)
        if not key:
            raise IllegalKey(details={"app_id": self.app_id})
        self.set(key, codec.encode_document(document))

    def set_string(self, key: str, value: str) -> None:
        """Store a plain string as a one-element array."""
        self.set(key, codec.wrap_scalar(value))

    def set_int(self, key: str, value: int) -> None:
        """Store an integer as a one-element array of its decimal string."""
        self.set(key, codec.wrap_scalar(value))

    def remove(self, key: str) -> None:
        """Remove the entry for key. Removing a missing key is not an error."""
        self._check_key(key)
        self._run("DELETE FROM data WHERE key = ?", (key,))

    # ==========================================================================
    # LIFECYCLE
    # ==========================================================================

    def close(self, commit: bool) -> None:
        """End the transaction and release the connection.

        Args:
            commit: Commit the transaction if True, roll it back otherwise

        Raises:
            InvalidHandle: If the handle was already closed
            Busy: If the commit could not get the database lock
            DatabaseError: If the commit or rollback failed
        """
        if self._closed:
            raise InvalidHandle(details={"app_id": self.app_id})
        self._closed = True
        conn, self._conn = self._conn, None
        if conn is None:
            return
        statement = "COMMIT" if commit else "ROLLBACK"
        try:
            # sqlite may already have ended the transaction after an error
            if self._in_transaction and conn.in_transaction:
                conn.execute(statement)
        except sqlite3.Error as e:
            _logger.error("%s failed for %s: %s", statement, self.app_id, e)
            raise _translate_error(e, statement)
        finally:
            self._in_transaction = False
            conn.close()

    def __enter__(self) -> AppHandle:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager, committing or rolling back the transaction."""
        if not self._closed:
            self.close(commit=exc_type is None)


class AppStore:
    """Entry point for per-application stores.

    Each application id maps to {prefs_root}/{app_id}/prefsDB.sl holding a
    single `data(key, value)` table.

    USAGE:
        store = AppStore(settings)
        with store.open("com.example.app") as prefs:
            prefs.set("greeting", '"hi"')   # rejected: not a document
            prefs.set("greeting", '["hi"]')
    """

    def __init__(self, settings: config.Settings | None = None):
        self.settings = settings or config.default_settings

    def open(self, app_id: str) -> AppHandle:
        """Create a handle for app_id without touching disk.

        Raises:
            InvalidHandle: If app_id is None, empty or contains ".."
        """
        return AppHandle(app_id, self.settings)

    def db_path(self, app_id: str) -> Path:
        """Backing database file for app_id."""
        return get_app_db_path(app_id, self.settings)

    def clear_all(self, app_id: str) -> None:
        """Delete an application's entire backing store.

        Independent of any open handle.

        Raises:
            ParamError: If the backing file cannot be deleted (e.g. absent)
        """
        if not _is_valid_app_id(app_id):
            raise ParamError(details={"app_id": app_id})
        path = self.db_path(app_id)
        try:
            path.unlink()
        except OSError as e:
            _logger.debug("unlink(%s) failed: %s", path, e)
            raise ParamError(details={"path": str(path)})


def open_app(app_id: str, settings: config.Settings | None = None) -> AppHandle:
    """Create a handle on an application's store.

    Returns:
        AppHandle; use as context manager or call close(commit)
    """
    return AppStore(settings).open(app_id)


def clear_app_data(app_id: str, settings: config.Settings | None = None) -> None:
    """Delete an application's entire backing store."""
    AppStore(settings).clear_all(app_id)

