"""Flash submitted form values into the session so the next render can repopulate fields."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from formbuilder.config import FormSettings, get_settings

if TYPE_CHECKING:
    from litestar import Request

logger = logging.getLogger(__name__)

# Request scope key caching the popped old input for the rest of the request
OLD_INPUT_SCOPE_KEY = "formbuilder.old_input"


def collect_values(form_data: Any) -> dict[str, Any]:
    """Collect string values from submitted form data.

    Repeated keys and ``name[]`` keys become lists; uploads and other
    non-string values are skipped.
    """
    if hasattr(form_data, "multi_items"):
        items: Iterable[tuple[str, Any]] = form_data.multi_items()
    else:
        items = form_data.items()

    values: dict[str, Any] = {}
    for key, value in items:
        if not isinstance(value, str):
            continue

        if key.endswith("[]"):
            values.setdefault(key[:-2], []).append(value)
        elif key in values:
            existing = values[key]
            values[key] = [*existing, value] if isinstance(existing, list) else [existing, value]
        else:
            values[key] = value
    return values


def flash_old_input(
    request: Request,
    values: Mapping[str, Any],
    settings: FormSettings | None = None,
    *,
    exclude: Iterable[str] = (),
) -> None:
    """Store submitted values in the session for the next request.

    The CSRF field and anything in ``settings.dont_flash`` are never stored.
    """
    settings = settings or get_settings()
    excluded = {settings.csrf_field_name, *settings.dont_flash, *exclude}

    flashed = {k: v for k, v in values.items() if k not in excluded}
    request.session[settings.old_input_session_key] = flashed
    logger.debug("Flashed %d old input fields", len(flashed))


async def flash_request_input(
    request: Request,
    settings: FormSettings | None = None,
    *,
    exclude: Iterable[str] = (),
) -> dict[str, Any]:
    """Read the request's form data and flash it. Returns the collected values."""
    form_data = await request.form()
    values = collect_values(form_data)
    flash_old_input(request, values, settings, exclude=exclude)
    return values


def get_old_input(request: Request, settings: FormSettings | None = None) -> Mapping[str, Any]:
    """Get the flashed input for this request.

    The session copy is removed on first access and cached on the request
    scope, so every form rendered during the request sees the same values.
    """
    if OLD_INPUT_SCOPE_KEY not in request.scope:
        settings = settings or get_settings()
        request.scope[OLD_INPUT_SCOPE_KEY] = request.session.pop(settings.old_input_session_key, None) or {}
    return request.scope[OLD_INPUT_SCOPE_KEY]
