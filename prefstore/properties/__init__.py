"""System properties: resolution, enumeration and visibility."""

from .resolver import (
    PROPERTY_PREFIX,
    COMPUTED_TOKENS,
    SystemPropertyResolver,
    make_key,
    strip_prefix,
)
from .enumerator import SystemPropertyEnumerator
from .visibility import (
    VisibilityFilter,
    get_visibility_filter,
    reset_visibility_filter,
    is_public,
)

__all__ = [
    "PROPERTY_PREFIX",
    "COMPUTED_TOKENS",
    "SystemPropertyResolver",
    "SystemPropertyEnumerator",
    "VisibilityFilter",
    "get_visibility_filter",
    "reset_visibility_filter",
    "is_public",
    "make_key",
    "strip_prefix",
]
