"""Optional-field access over loosely structured help records.

Help records arrive as whatever ``ConvertTo-Json`` produced from a
``Get-Help -Full`` object: nested dicts, lists, bare strings, or nothing at
all. PowerShell property names are case-insensitive, and single-item
collections are serialized without the surrounding list, so every accessor
here tolerates both.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_TEXT_KEY = "Text"


def get_field(record: Any, *path: str) -> Any | None:
    """Follow ``path`` through nested mappings; None when any step is absent."""
    current = record
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = _lookup(current, key)
        if current is None:
            return None
    return current


def as_list(value: Any) -> list[Any]:
    """Return ``value`` as a list of non-None items (single items are wrapped)."""
    if value is None:
        return []
    if isinstance(value, (str, bytes, Mapping)):
        return [value]
    if isinstance(value, (list, tuple)):
        return [item for item in value if item is not None]
    return [value]


def as_text(value: Any) -> str:
    """Coerce a scalar or ``{Text: ...}`` record to trimmed text; "" otherwise."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return str(value).strip()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, Mapping):
        return as_text(_lookup(value, _TEXT_KEY))
    return ""


def fragment_text(item: Any) -> str:
    """Text of one fragment: its ``Text`` field, else the item itself if it is a string."""
    if isinstance(item, Mapping):
        return as_text(_lookup(item, _TEXT_KEY))
    if isinstance(item, str):
        return item.strip()
    return ""


def first_text(value: Any) -> str:
    """First non-empty fragment text in ``value``."""
    for item in as_list(value):
        text = fragment_text(item)
        if text:
            return text
    return ""


def joined_text(value: Any, separator: str = "\n") -> str:
    """All non-empty fragment texts in ``value`` joined by ``separator``."""
    parts = [text for text in (fragment_text(item) for item in as_list(value)) if text]
    return separator.join(parts).strip()


def _lookup(mapping: Mapping[Any, Any], key: str) -> Any | None:
    if key in mapping:
        return mapping[key]
    folded = key.casefold()
    for candidate, value in mapping.items():
        if isinstance(candidate, str) and candidate.casefold() == folded:
            return value
    return None
