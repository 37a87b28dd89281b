"""Read and write fields on nested paths of unstructured configuration maps."""

from __future__ import annotations

import copy
from typing import Any

_MISSING = object()


class NestedFieldError(TypeError):
    """A value on a nested path does not have the expected type."""


def _describe(path: list[str]) -> str:
    return ".".join(path)


def _lookup(obj: dict | None, fields: tuple[str, ...]) -> Any:
    """Walk ``fields`` into ``obj``; return ``_MISSING`` when the path is absent."""
    value: Any = {} if obj is None else obj
    walked: list[str] = []
    for field in fields:
        if not isinstance(value, dict):
            raise NestedFieldError(
                f"{_describe(walked)} accessor error: {value!r} is of the type "
                f"{type(value).__name__}, expected dict"
            )
        if field not in value:
            return _MISSING
        value = value[field]
        walked.append(field)
    return value


def nested_field(obj, *args):
    """Return a deep copy of the value at the path, or None when it is absent."""
    value = _lookup(obj, args)
    if value is _MISSING:
        return None
    return copy.deepcopy(value)


def nested_string(obj, *args):
    """Return the string at the path, or None when it is absent."""
    value = _lookup(obj, args)
    if value is _MISSING:
        return None
    if not isinstance(value, str):
        raise NestedFieldError(
            f"{_describe(list(args))} accessor error: {value!r} is of the type "
            f"{type(value).__name__}, expected str"
        )
    return value


def nested_string_slice(obj, *args):
    """Return a copy of the list of strings at the path, or None when it is absent."""
    value = _lookup(obj, args)
    if value is _MISSING:
        return None
    if not isinstance(value, list):
        raise NestedFieldError(
            f"{_describe(list(args))} accessor error: {value!r} is of the type "
            f"{type(value).__name__}, expected list"
        )
    for item in value:
        if not isinstance(item, str):
            raise NestedFieldError(
                f"{_describe(list(args))} accessor error: contains non-string item "
                f"{item!r} of the type {type(item).__name__}"
            )
    return list(value)


def nested_slice(obj, *args):
    """Return a deep copy of the list at the path, or None when it is absent."""
    value = _lookup(obj, args)
    if value is _MISSING:
        return None
    if not isinstance(value, list):
        raise NestedFieldError(
            f"{_describe(list(args))} accessor error: {value!r} is of the type "
            f"{type(value).__name__}, expected list"
        )
    return copy.deepcopy(value)


def nested_map(obj, *args):
    """Return a deep copy of the map at the path, or None when it is absent."""
    value = _lookup(obj, args)
    if value is _MISSING:
        return None
    if not isinstance(value, dict):
        raise NestedFieldError(
            f"{_describe(list(args))} accessor error: {value!r} is of the type "
            f"{type(value).__name__}, expected dict"
        )
    return copy.deepcopy(value)


def set_nested_field(obj, value, *args):
    """Store a deep copy of ``value`` at the path, creating intermediate maps."""
    if not args:
        raise ValueError("a field path is required")
    *parents, last = args
    current = obj
    walked: list[str] = []
    for field in parents:
        walked.append(field)
        if field not in current:
            current[field] = {}
        elif not isinstance(current[field], dict):
            raise NestedFieldError(
                f"value cannot be set because {_describe(walked)} is not a dict"
            )
        current = current[field]
    current[last] = copy.deepcopy(value)


def pruned(config, *args):
    """Return a new map holding only the given paths of ``config``.

    Each positional argument is one path, a sequence of field names. A
    ``config`` of None, or a call without paths, returns ``config`` itself.
    """
    if config is None or not args:
        return config
    result: dict = {}
    for path in args:
        fields = tuple(path)
        try:
            value = _lookup(config, fields)
        except NestedFieldError:
            continue
        if value is _MISSING:
            continue
        set_nested_field(result, value, *fields)
    return result