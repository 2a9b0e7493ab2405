"""System property enumeration.

Keys are discovered in encounter order from the provisioned directory, the
runtime tokens directory and the second runtime directory, followed by the
computed tokens. A key seen once is never listed or resolved again, so the
same token present in several directories appears exactly once, with the
value of the highest-precedence source.
"""

from __future__ import annotations

from typing import Any, Iterator

from prefstore.codec import key_value_object
from prefstore.host.filesystem import list_tokens
from prefstore.properties.resolver import COMPUTED_TOKENS, SystemPropertyResolver, make_key
from prefstore.properties.visibility import VisibilityFilter, get_visibility_filter


class SystemPropertyEnumerator:
    """Lists system property keys, or keys with their values."""

    def __init__(
        self,
        resolver: SystemPropertyResolver | None = None,
        visibility: VisibilityFilter | None = None,
    ):
        self.resolver = resolver or SystemPropertyResolver()
        self._visibility = visibility

    @property
    def visibility(self) -> VisibilityFilter:
        if self._visibility is None:
            self._visibility = get_visibility_filter(self.resolver.settings)
        return self._visibility

    def _candidate_keys(self) -> Iterator[str]:
        for directory in self.resolver.source_dirs:
            for token in list_tokens(directory):
                yield make_key(token)
        for token in COMPUTED_TOKENS:
            yield make_key(token)

    def _unique_keys(self, public_only: bool) -> Iterator[str]:
        seen: set[str] = set()
        for key in self._candidate_keys():
            if public_only and not self.visibility.is_public(key):
                continue
            if key in seen:
                continue
            seen.add(key)
            yield key

    def list_keys(self, public_only: bool = False) -> list[str]:
        """List every system property key, each once.

        Args:
            public_only: Only include whitelisted keys

        Returns:
            Prefixed keys in encounter order
        """
        return list(self._unique_keys(public_only))

    def list_all(self, public_only: bool = False) -> list[dict[str, Any]]:
        """List every system property as a single-entry {key: value} object.

        Each key is resolved once. A key that fails to resolve fails the
        whole listing with that error.

        Raises:
            PrefsError: The first resolution failure
        """
        return [
            key_value_object(key, self.resolver.resolve(key))
            for key in self._unique_keys(public_only)
        ]
