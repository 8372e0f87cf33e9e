from __future__ import annotations

from collections.abc import Mapping, Sequence
from json import JSONDecodeError
from typing import Protocol

JSONValue = dict[str, "JSONValue"] | list["JSONValue"] | str | int | float | bool | None
JSONObject = dict[str, JSONValue]

# TypedDicts are Mappings, so encoders can hand records straight to dump_json_str
_JSONInputValue = str | int | float | bool | None | Mapping[str, object] | Sequence[object]


class InvalidJsonError(ValueError):
    """Raised when a payload is not valid JSON."""


class JSONTypeError(TypeError):
    """Raised when a JSON value has an unexpected type or a required key is absent."""


class _JsonLoads(Protocol):
    def __call__(self, s: str) -> JSONValue: ...


class _JsonDumps(Protocol):
    def __call__(
        self,
        obj: _JSONInputValue,
        *,
        separators: tuple[str, str] | None = ...,
        sort_keys: bool = ...,
    ) -> str: ...


def dump_json_str(value: _JSONInputValue, *, compact: bool = True) -> str:
    """Serialize a JSON-compatible value.

    Compact output (the default) has no whitespace after separators, which keeps
    request and response bodies byte-stable across runs.
    """
    module = __import__("json")
    dumps: _JsonDumps = module.dumps
    if compact:
        return dumps(value, separators=(",", ":"), sort_keys=False)
    return dumps(value, separators=None, sort_keys=False)


def load_json_str(raw: str) -> JSONValue:
    module = __import__("json")
    loads: _JsonLoads = module.loads
    try:
        value = loads(raw)
    except JSONDecodeError as exc:
        raise InvalidJsonError("Invalid JSON payload") from exc
    return value


def load_json_bytes(raw: bytes) -> JSONValue:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidJsonError("JSON payload is not valid UTF-8") from exc
    return load_json_str(text)


def narrow_json_to_dict(value: JSONValue) -> JSONObject:
    """Narrow a JSONValue to an object. Raises JSONTypeError otherwise."""
    if not isinstance(value, dict):
        raise JSONTypeError(f"Expected JSON object, got {type(value).__name__}")
    return value


def narrow_json_to_list(value: JSONValue) -> list[JSONValue]:
    """Narrow a JSONValue to an array. Raises JSONTypeError otherwise."""
    if not isinstance(value, list):
        raise JSONTypeError(f"Expected JSON array, got {type(value).__name__}")
    return value


def require_str(obj: JSONObject, key: str) -> str:
    value = obj.get(key)
    if value is None:
        raise JSONTypeError(f"Missing required field '{key}'")
    if not isinstance(value, str):
        raise JSONTypeError(f"Field '{key}' must be a string, got {type(value).__name__}")
    return value


def require_int(obj: JSONObject, key: str) -> int:
    """Extract a required integer. bool is rejected even though it subclasses int."""
    value = obj.get(key)
    if value is None:
        raise JSONTypeError(f"Missing required field '{key}'")
    if isinstance(value, bool) or not isinstance(value, int):
        raise JSONTypeError(f"Field '{key}' must be an integer, got {type(value).__name__}")
    return value


def require_bool(obj: JSONObject, key: str) -> bool:
    value = obj.get(key)
    if value is None:
        raise JSONTypeError(f"Missing required field '{key}'")
    if not isinstance(value, bool):
        raise JSONTypeError(f"Field '{key}' must be a boolean, got {type(value).__name__}")
    return value


def require_list(obj: JSONObject, key: str) -> list[JSONValue]:
    value = obj.get(key)
    if value is None:
        raise JSONTypeError(f"Missing required field '{key}'")
    if not isinstance(value, list):
        raise JSONTypeError(f"Field '{key}' must be an array, got {type(value).__name__}")
    return value


def require_dict(obj: JSONObject, key: str) -> JSONObject:
    value = obj.get(key)
    if value is None:
        raise JSONTypeError(f"Missing required field '{key}'")
    if not isinstance(value, dict):
        raise JSONTypeError(f"Field '{key}' must be an object, got {type(value).__name__}")
    return value


def optional_str(obj: JSONObject, key: str) -> str | None:
    """Extract an optional string. Absent keys and JSON null both yield None."""
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise JSONTypeError(f"Field '{key}' must be a string, got {type(value).__name__}")
    return value


def optional_int(obj: JSONObject, key: str) -> int | None:
    """Extract an optional integer. Absent keys and JSON null both yield None.

    Zero is returned as 0, never folded into None.
    """
    value = obj.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise JSONTypeError(f"Field '{key}' must be an integer, got {type(value).__name__}")
    return value


__all__ = [
    "InvalidJsonError",
    "JSONObject",
    "JSONTypeError",
    "JSONValue",
    "dump_json_str",
    "load_json_bytes",
    "load_json_str",
    "narrow_json_to_dict",
    "narrow_json_to_list",
    "optional_int",
    "optional_str",
    "require_bool",
    "require_dict",
    "require_int",
    "require_list",
    "require_str",
]
