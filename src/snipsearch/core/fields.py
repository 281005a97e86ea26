"""Field access over snippets and arbitrary caller data.

Snippet fields are read directly; any other name, including dotted paths
like ``meta.author``, is walked segment by segment across mappings and
object attributes. Missing data never raises: text access degrades to ""
and raw access to None.
"""

from typing import Any, Mapping

from pydantic import BaseModel

from snipsearch.core.schemas import Snippet

_SNIPPET_FIELDS = frozenset(Snippet.model_fields)

_MISSING = object()


def _step(obj: Any, key: str) -> Any:
    if obj is None:
        return _MISSING
    if isinstance(obj, Mapping):
        return obj.get(key, _MISSING)
    if isinstance(obj, BaseModel):
        extra = obj.model_extra or {}
        if key in extra:
            return extra[key]
        if key in type(obj).model_fields:
            return getattr(obj, key)
        return _MISSING
    if isinstance(obj, (list, tuple)) and key.isdigit():
        index = int(key)
        return obj[index] if index < len(obj) else _MISSING
    return getattr(obj, key, _MISSING)


def resolve_field(item: Any, field: str) -> Any:
    """Return the raw value at field (or dotted path), None if missing."""
    if not field:
        return None

    if isinstance(item, Snippet) and field in _SNIPPET_FIELDS:
        return getattr(item, field)

    value: Any = item
    for key in field.split("."):
        value = _step(value, key)
        if value is _MISSING:
            return None
    return value


def to_text(value: Any) -> str:
    """Render a raw field value as searchable text."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set)):
        return " ".join(to_text(v) for v in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def get_field_value(item: Any, field: str) -> str:
    """Return the text at field; arrays are space-joined, missing is ""."""
    return to_text(resolve_field(item, field))
