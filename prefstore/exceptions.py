"""Custom exceptions for prefstore.

Every failure in the store and the property resolver is reported as a
PrefsError subclass. Each class carries an ErrorKind so boundary layers
(the bus service, the CLI) can map it to its fixed human-readable message
with error_string().
"""

from enum import Enum


class ErrorKind(Enum):
    """Error kinds shared by the store, the resolver and their callers."""

    NONE = "none"
    INVALID_HANDLE = "invalid_handle"
    NO_SUCH_KEY = "no_such_key"
    OUT_OF_MEMORY = "out_of_memory"
    BUSY = "busy"
    NOT_IMPLEMENTED = "not_implemented"
    VALUE_NOT_JSON = "value_not_json"
    ILLEGAL_KEY = "illegal_key"
    SYSTEM_CONFIG_MISSING = "system_config_missing"
    PARAM_ERROR = "param_error"
    INTERNAL = "internal"
    DATABASE_ERROR = "database_error"
    UNKNOWN_ERROR_CODE = "unknown_error_code"


ERROR_MESSAGES = {
    ErrorKind.NONE: "no error",
    ErrorKind.INVALID_HANDLE: "invalid handle",
    ErrorKind.NO_SUCH_KEY: "no such key",
    ErrorKind.OUT_OF_MEMORY: "unable to allocate memory",
    ErrorKind.UNKNOWN_ERROR_CODE: "unknown error code",
    ErrorKind.BUSY: "underlying database is busy",
    ErrorKind.NOT_IMPLEMENTED: "unimplemented",
    ErrorKind.VALUE_NOT_JSON: "illegal value (not a json document)",
    ErrorKind.ILLEGAL_KEY: "illegal key",
    ErrorKind.SYSTEM_CONFIG_MISSING: "required system resource is missing",
    ErrorKind.PARAM_ERROR: "general parameter error",
    ErrorKind.INTERNAL: "unspecified failure occurred",
    ErrorKind.DATABASE_ERROR: "unspecified sqlite3 error",
}


class PrefsError(Exception):
    """Base exception for all prefstore errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str | None = None, details: dict | None = None):
        """Initialize exception with message and optional details.

        Args:
            message: Human-readable error message. Defaults to the fixed
                message for this error kind.
            details: Optional dictionary with additional error context
        """
        if message is None:
            message = ERROR_MESSAGES[self.kind]
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def error_text(self) -> str:
        """The fixed message shown to callers at the boundary."""
        return ERROR_MESSAGES[self.kind]


class InvalidHandle(PrefsError):
    """Raised when a handle is missing, closed, or was never opened."""

    kind = ErrorKind.INVALID_HANDLE


class NoSuchKey(PrefsError):
    """Raised when a key has no entry in the store or any property source."""

    kind = ErrorKind.NO_SUCH_KEY


class OutOfMemory(PrefsError):
    kind = ErrorKind.OUT_OF_MEMORY


class Busy(PrefsError):
    """Raised when another process holds the application's store locked.

    Not retried; retry policy belongs to the caller.
    """

    kind = ErrorKind.BUSY


class NotImplementedOperation(PrefsError):
    kind = ErrorKind.NOT_IMPLEMENTED


class ValueNotJSON(PrefsError):
    """Raised when a value is not a top-level JSON object or array."""

    kind = ErrorKind.VALUE_NOT_JSON


class IllegalKey(PrefsError):
    """Raised when a preference key is empty."""

    kind = ErrorKind.ILLEGAL_KEY


class SystemConfigMissing(PrefsError):
    """Raised when a required OS or hardware source is unavailable."""

    kind = ErrorKind.SYSTEM_CONFIG_MISSING


class ParamError(PrefsError):
    """Raised for malformed requests and failed store deletion."""

    kind = ErrorKind.PARAM_ERROR


class InternalError(PrefsError):
    kind = ErrorKind.INTERNAL


class DatabaseError(PrefsError):
    """Raised when sqlite fails for a reason other than a busy lock.

    Attributes:
        statement: SQL statement that failed, when known
    """

    kind = ErrorKind.DATABASE_ERROR

    def __init__(self, message: str | None = None, statement: str | None = None):
        super().__init__(message, details={"statement": statement} if statement else None)
        self.statement = statement


class UnknownErrorCode(PrefsError):
    """Raised when translating an error kind that has no message."""

    kind = ErrorKind.UNKNOWN_ERROR_CODE


_EXCEPTIONS_BY_KIND = {
    cls.kind: cls
    for cls in (
        InvalidHandle,
        NoSuchKey,
        OutOfMemory,
        Busy,
        NotImplementedOperation,
        ValueNotJSON,
        IllegalKey,
        SystemConfigMissing,
        ParamError,
        InternalError,
        DatabaseError,
        UnknownErrorCode,
    )
}


def error_string(kind: ErrorKind) -> str:
    """Translate an error kind to its fixed human-readable message.

    Args:
        kind: Error kind to translate

    Returns:
        Static message for the kind

    Raises:
        UnknownErrorCode: If kind is not a recognized ErrorKind
    """
    try:
        return ERROR_MESSAGES[kind]
    except (KeyError, TypeError):
        raise UnknownErrorCode(details={"kind": repr(kind)})


def exception_for(kind: ErrorKind) -> type[PrefsError]:
    """Return the exception class raised for an error kind."""
    try:
        return _EXCEPTIONS_BY_KIND[kind]
    except KeyError:
        raise UnknownErrorCode(details={"kind": repr(kind)})
