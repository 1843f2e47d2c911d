"""HTML attribute and tag serialisation."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from markupsafe import Markup, escape


def attr_name(key: str) -> str:
    """Convert Python keyword naming to HTML: class_ -> class, data_id -> data-id"""
    return key.rstrip("_").replace("_", "-")


def merge_attrs(options: Mapping[str, Any] | None, attrs: Mapping[str, Any]) -> dict[str, Any]:
    """Merge an options mapping (keys used verbatim) with keyword attributes (keys converted)."""
    merged = dict(options or {})
    for key, value in attrs.items():
        merged[attr_name(key)] = value
    return merged


def render_attrs(attrs: Mapping[str, Any], exclude: Iterable[str] = ()) -> str:
    """Render a dict as HTML attributes string. Returns '' or ' key="val" key2="val2"'.

    True renders a bare boolean attribute; False and None are omitted.
    """
    excluded = set(exclude)
    parts = []
    for key, value in attrs.items():
        if key in excluded or value is None or value is False:
            continue
        if value is True:
            parts.append(str(escape(key)))
        else:
            parts.append(f'{escape(key)}="{escape(str(value))}"')
    if not parts:
        return ""
    return " " + " ".join(parts)


def tag(
    name: str,
    attrs: Mapping[str, Any],
    content: str | None = None,
    *,
    void: bool = False,
    exclude: Iterable[str] = (),
) -> Markup:
    """Build a single element. Content must already be escaped (or be Markup)."""
    html = f"<{name}{render_attrs(attrs, exclude)}>"
    if void:
        return Markup(html)
    return Markup(f"{html}{content or ''}</{name}>")
