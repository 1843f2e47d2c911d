"""Session-backed CSRF tokens for forms rendered by FormRenderer."""

from __future__ import annotations

import hmac
import secrets
from typing import TYPE_CHECKING

from markupsafe import Markup, escape

from formbuilder.config import FormSettings, get_settings

if TYPE_CHECKING:
    from litestar import Request


def csrf_token(request: Request, settings: FormSettings | None = None) -> str:
    """Return the session's CSRF token, creating one if needed."""
    settings = settings or get_settings()
    if settings.csrf_session_key not in request.session:
        request.session[settings.csrf_session_key] = secrets.token_urlsafe(32)
    return request.session[settings.csrf_session_key]


def csrf_field(request: Request, settings: FormSettings | None = None) -> Markup:
    """Generate a hidden CSRF input field, creating a session token if needed."""
    settings = settings or get_settings()
    token = csrf_token(request, settings)
    return Markup(
        f'<input type="hidden" name="{escape(settings.csrf_field_name)}" value="{escape(token)}">'
    )


async def verify_csrf(request: Request, settings: FormSettings | None = None) -> bool:
    """Verify CSRF token from form data against the session token.

    Returns True if the token is valid. Rotates the token on success.
    """
    settings = settings or get_settings()
    form_data = await request.form()
    submitted_token = form_data.get(settings.csrf_field_name, "")
    stored_token = request.session.get(settings.csrf_session_key, "")

    if not stored_token or not hmac.compare_digest(str(submitted_token), str(stored_token)):
        return False

    # Rotate token after successful check (single-use)
    request.session[settings.csrf_session_key] = secrets.token_urlsafe(32)
    return True
