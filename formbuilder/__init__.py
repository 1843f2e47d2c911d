"""formbuilder - HTML form helpers with old input and model repopulation."""

from formbuilder.config import FormSettings, get_settings
from formbuilder.context import FormContext, resolve_path
from formbuilder.csrf import csrf_field, csrf_token, verify_csrf
from formbuilder.old_input import flash_old_input, flash_request_input, get_old_input
from formbuilder.renderer import FormRenderer, InputType

__all__ = [
    "FormContext",
    "FormRenderer",
    "FormSettings",
    "InputType",
    "csrf_field",
    "csrf_token",
    "flash_old_input",
    "flash_request_input",
    "get_old_input",
    "get_settings",
    "resolve_path",
    "verify_csrf",
]
