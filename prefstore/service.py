"""Message-bus boundary for the preferences service.

Translates bus requests into store and resolver calls and their results
into reply documents. The transport itself is not part of this package:
a bus binding parses the payload, calls PrefsService.dispatch() and sends
the returned document back.

CATEGORIES:
- /systemProperties: read-only system properties, served on both the
  public and the private channel. Public callers only see whitelisted keys.
- /appProperties: per-application stores, private channel only.

REPLIES:
- Success: {"returnValue": true, ...} or, for the plain list methods, a
  bare JSON array
- Failure: {"returnValue": false, "errorText": "<fixed message>"}

Each request's fields are checked up front against a typed request class;
a missing or mistyped field fails the request before any store or resolver
call is made.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, ValidationError

from prefstore import config
from prefstore.codec import key_value_object
from prefstore.exceptions import (
    NoSuchKey,
    NotImplementedOperation,
    ParamError,
    PrefsError,
    ValueNotJSON,
    error_string,
)
from prefstore.properties import (
    SystemPropertyEnumerator,
    SystemPropertyResolver,
    VisibilityFilter,
    get_visibility_filter,
)
from prefstore.store import AppHandle

_logger = logging.getLogger(__name__)

SYSTEM_CATEGORY = "/systemProperties"
APP_CATEGORY = "/appProperties"


class RequestError(ParamError):
    """A request payload is missing a field or has one of the wrong type.

    Unlike other errors, the reply carries this exception's own message so
    the caller learns which parameter was wrong.
    """


# ============================================================================
# REQUESTS
# ============================================================================

class Request(BaseModel):
    """Base for typed requests. Every declared field is required; string
    fields must already be strings (no coercion)."""

    model_config = ConfigDict(frozen=True, strict=True)

    @classmethod
    def from_payload(cls, payload: Any) -> Request:
        """Validate a parsed payload and build the request.

        Raises:
            RequestError: If the payload is not an object, or a field is
                missing or of the wrong type
        """
        if not isinstance(payload, dict):
            raise RequestError("Payload must be a JSON object.")
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            loc = e.errors()[0]["loc"]
            name = loc[0] if loc else "payload"
            raise RequestError(f'Missing required parameter "{name}".')


class KeyRequest(Request):
    key: str


class AppRequest(Request):
    appId: str


class AppKeyRequest(AppRequest):
    key: str


class AppSetRequest(AppKeyRequest):
    value: Any


# ============================================================================
# REPLIES
# ============================================================================

def success_reply(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    reply = dict(extra or {})
    reply["returnValue"] = True
    return reply


def error_reply(error: PrefsError) -> dict[str, Any]:
    """Reply document for a failed request."""
    if isinstance(error, RequestError):
        text = error.message
    else:
        text = error.error_text
    return {"returnValue": False, "errorText": text}


def wrap_values(values: list) -> dict[str, Any]:
    """Wrap a list result for the *Obj method variants."""
    return success_reply({"values": values})


class PrefsService:
    """Request handlers for both service categories.

    Args:
        settings: Settings shared by the store and the resolver
        resolver: System property resolver (built from settings if None)
        visibility: Whitelist filter (process-wide filter if None)
    """

    def __init__(
        self,
        settings: config.Settings | None = None,
        resolver: SystemPropertyResolver | None = None,
        visibility: VisibilityFilter | None = None,
    ):
        self.settings = settings or config.default_settings
        self.resolver = resolver or SystemPropertyResolver(self.settings)
        self._visibility = visibility
        self.enumerator = SystemPropertyEnumerator(self.resolver, visibility)

        sys_methods = {
            "getSysKeys": lambda p, public: self.get_sys_keys(public),
            "getSysKeysObj": lambda p, public: self.get_sys_keys(public, as_obj=True),
            "getAllSysProperties": lambda p, public: self.get_all_sys_properties(public),
            "getAllSysPropertiesObj": lambda p, public: self.get_all_sys_properties(public, as_obj=True),
            "getSomeSysProperties": lambda p, public: self.get_some_sys_properties(p, public),
            "getSomeSysPropertiesObj": lambda p, public: self.get_some_sys_properties(p, public, as_obj=True),
            "getSysProperty": lambda p, public: self.get_sys_property(p, public),
        }
        # Deprecated method names
        sys_methods["GetKeys"] = sys_methods["getSysKeys"]
        sys_methods["GetAll"] = sys_methods["getAllSysProperties"]
        sys_methods["GetSome"] = sys_methods["getSomeSysProperties"]
        sys_methods["Get"] = sys_methods["getSysProperty"]

        app_methods = {
            "getAppKeys": lambda p, public: self.get_app_keys(p),
            "getAppKeysObj": lambda p, public: self.get_app_keys(p, as_obj=True),
            "getAllAppProperties": lambda p, public: self.get_all_app_properties(p),
            "getAllAppPropertiesObj": lambda p, public: self.get_all_app_properties(p, as_obj=True),
            "getAppProperty": lambda p, public: self.get_app_property(p),
            "setAppProperty": lambda p, public: self.set_app_property(p),
            "removeAppProperty": lambda p, public: self.remove_app_property(p),
        }
        app_methods["GetKeys"] = app_methods["getAppKeys"]
        app_methods["GetAll"] = app_methods["getAllAppProperties"]
        app_methods["Get"] = app_methods["getAppProperty"]
        app_methods["Set"] = app_methods["setAppProperty"]
        app_methods["Remove"] = app_methods["removeAppProperty"]

        self._methods: dict[str, dict[str, Callable[[Any, bool], Any]]] = {
            SYSTEM_CATEGORY: sys_methods,
            APP_CATEGORY: app_methods,
        }

    @property
    def visibility(self) -> VisibilityFilter:
        if self._visibility is None:
            self._visibility = get_visibility_filter(self.settings)
        return self._visibility

    # ==========================================================================
    # DISPATCH
    # ==========================================================================

    def dispatch(self, category: str, method: str, payload: Any, public: bool = False) -> Any:
        """Run one request and return its reply document.

        Args:
            category: SYSTEM_CATEGORY or APP_CATEGORY
            method: Method name within the category
            payload: Parsed request payload
            public: True for requests arriving on the public channel

        Returns:
            Reply document (dict, or list for the plain list methods)
        """
        _logger.debug("%s/%s(%r) public=%s", category, method, payload, public)
        if public and category == APP_CATEGORY:
            # application stores are not served on the public channel
            return error_reply(NotImplementedOperation())
        handler = self._methods.get(category, {}).get(method)
        if handler is None:
            return error_reply(NotImplementedOperation())
        try:
            return handler(payload, public)
        except PrefsError as e:
            _logger.debug("%s/%s failed: %s", category, method, e.message)
            return error_reply(e)

    def handle_message(self, category: str, method: str, payload_text: str, public: bool = False) -> str:
        """Parse a payload, dispatch it and serialize the reply."""
        try:
            payload = json.loads(payload_text) if payload_text else {}
        except ValueError:
            return json.dumps(error_reply(ParamError()))
        return json.dumps(self.dispatch(category, method, payload, public))

    # ==========================================================================
    # SYSTEM PROPERTIES
    # ==========================================================================

    def get_sys_keys(self, public: bool, as_obj: bool = False) -> Any:
        keys = self.enumerator.list_keys(public_only=public)
        return wrap_values(keys) if as_obj else keys

    def get_all_sys_properties(self, public: bool, as_obj: bool = False) -> Any:
        try:
            pairs = self.enumerator.list_all(public_only=public)
        except PrefsError as e:
            _logger.error("listing all system properties failed: %s", e.message)
            raise
        return wrap_values(pairs) if as_obj else pairs

    def get_some_sys_properties(self, payload: Any, public: bool, as_obj: bool = False) -> Any:
        """Resolve a list of {"key": ...} requests.

        A key that fails reports {"errorText": ...} in its slot; the other
        keys are still resolved.

        Raises:
            ParamError: If the payload is not an array
        """
        if not isinstance(payload, list):
            raise ParamError()
        results = []
        for elem in payload:
            if not isinstance(elem, dict) or not isinstance(elem.get("key"), str):
                results.append({"errorText": 'missing "key" parameter'})
                continue
            key = elem["key"]
            if public and not self.visibility.is_public(key):
                results.append({"errorText": error_string(NoSuchKey.kind)})
                continue
            try:
                results.append({key: self.resolver.resolve(key)})
            except PrefsError as e:
                results.append({"errorText": e.error_text})
        return wrap_values(results) if as_obj else results

    def get_sys_property(self, payload: Any, public: bool) -> dict[str, Any]:
        request = KeyRequest.from_payload(payload)
        if public and not self.visibility.is_public(request.key):
            raise NoSuchKey(details={"key": request.key})
        value = self.resolver.resolve(request.key)
        return success_reply(key_value_object(request.key, value))

    # ==========================================================================
    # APPLICATION PROPERTIES
    # ==========================================================================

    def _open(self, app_id: str) -> AppHandle:
        return AppHandle(app_id, self.settings)

    def get_app_keys(self, payload: Any, as_obj: bool = False) -> Any:
        request = AppRequest.from_payload(payload)
        handle = self._open(request.appId)
        try:
            keys = handle.list_keys()
        finally:
            handle.close(commit=False)
        return wrap_values(keys) if as_obj else keys

    def get_all_app_properties(self, payload: Any, as_obj: bool = False) -> Any:
        request = AppRequest.from_payload(payload)
        handle = self._open(request.appId)
        try:
            entries = handle.list_all()
        finally:
            handle.close(commit=False)
        return wrap_values(entries) if as_obj else entries

    def get_app_property(self, payload: Any) -> dict[str, Any]:
        request = AppKeyRequest.from_payload(payload)
        with self._open(request.appId) as handle:
            value = handle.get(request.key)
        return success_reply(key_value_object(request.key, value))

    def set_app_property(self, payload: Any) -> dict[str, Any]:
        """Store a value. A string value is taken as JSON text; any other
        value is serialized first."""
        request = AppSetRequest.from_payload(payload)
        if isinstance(request.value, str):
            text = request.value
        else:
            try:
                text = json.dumps(request.value)
            except (TypeError, ValueError):
                raise ValueNotJSON()
        with self._open(request.appId) as handle:
            handle.set(request.key, text)
        return success_reply()

    def remove_app_property(self, payload: Any) -> dict[str, Any]:
        request = AppKeyRequest.from_payload(payload)
        with self._open(request.appId) as handle:
            handle.remove(request.key)
        return success_reply()
