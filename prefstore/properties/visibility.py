"""Visibility whitelist for system properties.

Only properties named in the whitelist file may be disclosed to callers on
the public channel. The file ships with the package, so it is read once per
process and never again: an update to it always comes with a restart.

WHITELIST FORMAT:
One fully prefixed key per line, every line newline-terminated, no blank
lines, no duplicates. A violation means the shipped file is broken and is
reported with an AssertionError rather than handled.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from prefstore import config

_logger = logging.getLogger(__name__)


def load_whitelist(path: str | Path) -> frozenset[str]:
    """Read a whitelist file into an immutable set.

    A missing file yields an empty set (nothing is public).

    Raises:
        AssertionError: If a line lacks its newline or is a duplicate
    """
    keys: set[str] = set()
    try:
        f = open(path, encoding="utf-8")
    except FileNotFoundError:
        _logger.info("no whitelist at %s; no system property is public", path)
        return frozenset()
    with f:
        for line in f:
            assert line.endswith("\n"), f"unterminated whitelist line in {path}: {line!r}"
            key = line[:-1]
            assert key not in keys, f"duplicate whitelist entry in {path}: {key!r}"
            keys.add(key)
    return frozenset(keys)


class VisibilityFilter:
    """Lazily built, immutable set of publicly disclosable property keys.

    The first is_public() call builds the set; concurrent first callers
    wait for that single build and reuse its result.
    """

    def __init__(self, whitelist_path: str | Path):
        self.whitelist_path = Path(whitelist_path)
        self._keys: frozenset[str] | None = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._keys is not None

    def _get_keys(self) -> frozenset[str]:
        keys = self._keys
        if keys is None:
            with self._lock:
                if self._keys is None:
                    self._keys = load_whitelist(self.whitelist_path)
                keys = self._keys
        return keys

    def is_public(self, key: str) -> bool:
        """True if key may be disclosed on the public channel."""
        return key in self._get_keys()

    def public_keys(self) -> frozenset[str]:
        return self._get_keys()


_filter: VisibilityFilter | None = None
_filter_lock = threading.Lock()


def get_visibility_filter(settings: config.Settings | None = None) -> VisibilityFilter:
    """Return the process-wide filter, creating it on first use.

    Args:
        settings: Settings naming the whitelist file; only consulted by the
            call that creates the filter
    """
    global _filter
    if _filter is None:
        with _filter_lock:
            if _filter is None:
                settings = settings or config.default_settings
                _filter = VisibilityFilter(settings.whitelist_path)
    return _filter


def reset_visibility_filter() -> None:
    """Forget the process-wide filter. Tests only."""
    global _filter
    with _filter_lock:
        _filter = None


def is_public(key: str) -> bool:
    """Check key against the process-wide whitelist."""
    return get_visibility_filter().is_public(key)
