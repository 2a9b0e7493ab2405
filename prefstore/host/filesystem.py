"""File system operations for token-file property sources."""

import logging
from pathlib import Path

from prefstore.exceptions import NoSuchKey

_logger = logging.getLogger(__name__)


def ensure_dir(path: str | Path) -> Path:
    """Ensure directory exists, create if not.

    Args:
        path: Path to directory

    Returns:
        Path object for the directory
    """
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def token_path(directory: str | Path, token: str) -> Path | None:
    """Return the path of a token file if it exists in directory.

    Tokens containing a path separator never name a file in the directory.
    """
    if not token or "/" in token or token in (".", ".."):
        return None
    path = Path(directory) / token
    if path.exists():
        return path
    return None


def read_token_file(path: str | Path) -> str:
    """Read a token file's value.

    The value is the verbatim file contents with a single trailing
    newline removed.

    Raises:
        NoSuchKey: If the file cannot be read
    """
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        _logger.error("failed to open file %s: %s", path, e)
        raise NoSuchKey(details={"path": str(path)})
    if text.endswith("\n"):
        text = text[:-1]
    return text


def list_tokens(directory: str | Path) -> list[str]:
    """List the regular files in a token directory.

    A missing or unreadable directory yields no tokens.
    """
    try:
        return sorted(entry.name for entry in Path(directory).iterdir() if entry.is_file())
    except OSError:
        return []
