"""JSON value codec.

Every preference value is a complete JSON document whose root is an
object or an array. Bare scalars are not accepted as documents; the
convenience setters wrap them in a one-element array of strings and the
typed getters unwrap them again.
"""

import json
import logging
from typing import Any

from .exceptions import ValueNotJSON

_logger = logging.getLogger(__name__)


def _parse(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        raise ValueNotJSON(details={"value": text})


def is_toplevel(obj: Any) -> bool:
    """True if a parsed JSON value may stand as a document."""
    return isinstance(obj, (dict, list))


def is_document(text: str) -> bool:
    """Check whether text is a top-level JSON object or array.

    Args:
        text: Candidate JSON text

    Returns:
        True if text parses and its root is an object or array
    """
    try:
        return is_toplevel(json.loads(text))
    except (TypeError, ValueError):
        return False


def validate_document(text: str) -> None:
    """Validate that text is a top-level JSON object or array.

    Raises:
        ValueNotJSON: If text does not parse, or parses to a bare scalar
    """
    if not is_document(text):
        raise ValueNotJSON(details={"value": text})


def as_document(text: str) -> dict | list:
    """Parse text, requiring an object or array root.

    Raises:
        ValueNotJSON: If text is not a top-level JSON document
    """
    obj = _parse(text)
    if not is_toplevel(obj):
        _logger.error("string %r not acceptable as a json document", text)
        raise ValueNotJSON(details={"value": text})
    return obj


def encode_document(obj: Any) -> str:
    """Serialize a dict or list to document text.

    Raises:
        ValueNotJSON: If obj is not a dict or list, or is not serializable
    """
    if not is_toplevel(obj):
        raise ValueNotJSON(details={"value": repr(obj)})
    try:
        return json.dumps(obj)
    except (TypeError, ValueError):
        raise ValueNotJSON(details={"value": repr(obj)})


def wrap_scalar(value: str | int) -> str:
    """Wrap a plain string or integer in a one-element string array.

    Integers are stored as their base-10 string form.

    Examples:
        >>> wrap_scalar("hello")
        '["hello"]'
        >>> wrap_scalar(42)
        '["42"]'
    """
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValueNotJSON(details={"value": repr(value)})
    if isinstance(value, int):
        value = str(value)
    return json.dumps([value])


def unwrap_string(text: str) -> str:
    """Return element 0 of a one-string array document.

    Raises:
        ValueNotJSON: If the document is not an array, is empty, or its
            first element is not a string
    """
    doc = as_document(text)
    if not isinstance(doc, list) or not doc or not isinstance(doc[0], str):
        raise ValueNotJSON(details={"value": text})
    return doc[0]


def unwrap_int(text: str) -> int:
    """Return element 0 of a one-string array document as an integer.

    Surrounding whitespace is accepted. Non-numeric content is rejected
    instead of producing an arbitrary integer.

    Raises:
        ValueNotJSON: If the element is missing, not a string, or not a
            base-10 integer
    """
    raw = unwrap_string(text)
    try:
        return int(raw.strip(), 10)
    except ValueError:
        raise ValueNotJSON(details={"value": text})


def key_value_object(key: str, value: str) -> dict[str, Any]:
    """Build a single-entry object for a key and its raw value text.

    Document values are embedded as parsed JSON; anything else (plain
    token file contents, bare scalars) is embedded as a JSON string.
    """
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return {key: value}
    if not is_toplevel(parsed):
        return {key: value}
    return {key: parsed}
