"""Per-form state and the value resolution rules shared by every field."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

_BRACKET_PATTERN = re.compile(r"\[([^\]]*)\]")

MULTI_VALUE_TYPES = (list, tuple, set, frozenset)


def normalize_name(name: str) -> str:
    """Convert HTML array notation to a dot path. address[city] -> address.city, tags[] -> tags"""
    return _BRACKET_PATTERN.sub(lambda m: f".{m.group(1)}" if m.group(1) else "", name)


def resolve_path(target: Any, name: str) -> Any:
    """Resolve a dotted path against nested mappings, objects and sequences.

    Returns None when any segment is missing. A mapping key matching the full
    name (as submitted, or normalised to a dot path) is preferred over walking
    the segments.
    """
    if target is None:
        return None

    path = normalize_name(name)
    if isinstance(target, Mapping):
        if name in target:
            return target[name]
        if path in target:
            return target[path]

    current = target
    for segment in path.split("."):
        if current is None:
            return None
        current = _get_segment(current, segment)
    return current


def _get_segment(current: Any, segment: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(segment)

    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        try:
            return current[int(segment)]
        except (ValueError, IndexError):
            return None

    return getattr(current, segment, None)


def stringify(value: Any) -> str:
    """Coerce a value to the string form used for checked/selected comparisons."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, Enum):
        return stringify(value.value)
    return str(value)


def matches(resolved: Any, candidate: Any) -> bool:
    """Loose equality between a resolved value (scalar or multi-value) and a field value."""
    if isinstance(resolved, MULTI_VALUE_TYPES):
        return stringify(candidate) in {stringify(item) for item in resolved}
    return stringify(resolved) == stringify(candidate)


@dataclass
class FormContext:
    """State for building one form: previous submission values and the bound model.

    Create one per request (or per bind_model/close bracket); never share an
    instance between concurrently rendered forms.
    """

    old_input: Mapping[str, Any] = field(default_factory=dict)
    model: Any | None = None

    def old_value(self, name: str) -> Any:
        return resolve_path(self.old_input, name)

    def model_value(self, name: str) -> Any:
        if self.model is None:
            return None
        return resolve_path(self.model, name)

    def resolve_value(self, name: str, explicit: Any = None) -> Any:
        """Explicit value, then old input, then the bound model. None means absent."""
        if explicit is not None:
            return explicit

        old = self.old_value(name)
        if old is not None:
            return old

        return self.model_value(name)

    def resolve_checked(self, name: str, value: Any, explicit: bool | None = None) -> bool:
        """Checked state for checkboxes and radios, using the same precedence as values."""
        if explicit is not None:
            return bool(explicit)

        old = self.old_value(name)
        if old is not None:
            return matches(old, value)

        if self.model is not None:
            model_value = self.model_value(name)
            return model_value is not None and matches(model_value, value)

        return False
