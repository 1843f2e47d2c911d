"""FormRenderer - HTML form fields with old input and model repopulation."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from datetime import date
from enum import Enum
from typing import Any

from markupsafe import Markup, escape

from formbuilder.config import FormSettings, get_settings
from formbuilder.context import FormContext, matches, stringify
from formbuilder.html import merge_attrs, render_attrs, tag

logger = logging.getLogger(__name__)

SPOOFABLE_METHODS = ("GET", "POST")
MULTIPART = "multipart/form-data"
NO_HIDDEN = "no-hidden"

# Keys consumed by open() rather than copied onto the <form> tag
_OPEN_KEYS = ("route", "url", "action", "method", "files", "enctype")

# Input attributes only the renderer sets
_RESERVED = frozenset({"type", "name", "value"})

UrlFor = Callable[[str, Any], str]
AbsoluteUrl = Callable[[str], str]
CsrfField = Callable[[], Markup]


class InputType(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    NUMBER = "number"
    DATE = "date"
    DATETIME_LOCAL = "datetime-local"
    TIME = "time"
    URL = "url"
    SEARCH = "search"
    COLOR = "color"
    RANGE = "range"
    HIDDEN = "hidden"
    FILE = "file"
    PASSWORD = "password"
    IMAGE = "image"


# Never given a value attribute, whatever the context holds
VALUE_SUPPRESSED = frozenset({InputType.FILE, InputType.PASSWORD, InputType.IMAGE})


def format_label(name: str) -> str:
    """first_name -> First Name, billing-address -> Billing Address"""
    return " ".join(word.capitalize() for word in re.sub(r"[_-]", " ", name).split())


def _choice_pairs(choices: Mapping[Any, Any] | Iterable[tuple[Any, Any]]) -> Iterable[tuple[Any, Any]]:
    if isinstance(choices, Mapping):
        return choices.items()
    return choices


def _typed_input(input_type: InputType):
    """Build a FormRenderer method that renders a fixed input type."""
    if input_type in VALUE_SUPPRESSED:

        def render(self, ctx: FormContext, name: str, options: Mapping[str, Any] | None = None, **attrs) -> Markup:
            return self.input(ctx, input_type, name, None, options, **attrs)

    else:

        def render(
            self,
            ctx: FormContext,
            name: str,
            value: Any = None,
            options: Mapping[str, Any] | None = None,
            **attrs,
        ) -> Markup:
            return self.input(ctx, input_type, name, value, options, **attrs)

    render.__name__ = input_type.name.lower()
    render.__doc__ = f'Render an <input type="{input_type.value}"> field.'
    return render


class FormRenderer:
    """Renders form tags and fields as Markup.

    The renderer holds no per-form state. Everything that depends on the
    current form (old input, bound model) lives in the FormContext passed to
    each call, so one renderer can serve any number of forms.

    Usage:
        renderer = FormRenderer(url_for=urls.route_url, csrf_field=lambda: csrf_field(request))
        ctx = FormContext(old_input=get_old_input(request))

        renderer.bind_model(ctx, user, {"route": ("users.update", {"user_id": user.id}), "method": "PUT"})
        renderer.text(ctx, "name")
        renderer.checkbox(ctx, "newsletter")
        renderer.close(ctx)
    """

    def __init__(
        self,
        *,
        url_for: UrlFor | None = None,
        absolute_url: AbsoluteUrl | None = None,
        csrf_field: CsrfField | None = None,
        settings: FormSettings | None = None,
    ):
        self.url_for = url_for
        self.absolute_url = absolute_url
        self.csrf_field = csrf_field
        self.settings = settings or get_settings()

    # -- Form open/close --

    def open(self, options: Mapping[str, Any] | None = None, **attrs) -> Markup:
        """Render the opening <form> tag plus CSRF and method override fields.

        The action comes from the first of ``route``, ``url`` or ``action``.
        Methods other than GET/POST are sent as POST with a hidden override field.
        """
        merged = merge_attrs(options, attrs)

        form_attrs: dict[str, Any] = {}
        action = self._resolve_action(merged)
        if action is not None:
            form_attrs["action"] = action

        method = str(merged.get("method") or "POST").upper()
        form_attrs["method"] = method if method in SPOOFABLE_METHODS else "POST"

        if merged.get("files"):
            form_attrs["enctype"] = MULTIPART
        if merged.get("enctype") is not None:
            form_attrs["enctype"] = merged["enctype"]

        for key, value in merged.items():
            if key not in _OPEN_KEYS:
                form_attrs[key] = value

        html = f"<form{render_attrs(form_attrs)}>"

        if form_attrs["method"] == "POST":
            if self.csrf_field is not None:
                html += str(self.csrf_field())
            else:
                logger.debug("No CSRF field configured; rendering POST form without a token")

        if method not in SPOOFABLE_METHODS:
            logger.debug("Spoofing %s form via %s field", method, self.settings.method_field_name)
            html += self._hidden(self.settings.method_field_name, method)

        return Markup(html)

    def bind_model(
        self,
        ctx: FormContext,
        model: Any,
        options: Mapping[str, Any] | None = None,
        **attrs,
    ) -> Markup:
        """Open a form and bind ``model`` so later fields default to its values."""
        ctx.model = model
        return self.open(options, **attrs)

    def close(self, ctx: FormContext | None = None) -> Markup:
        """Render </form> and unbind any model from the context."""
        if ctx is not None:
            ctx.model = None
        return Markup("</form>")

    # -- Inputs --

    def input(
        self,
        ctx: FormContext,
        input_type: InputType | str,
        name: str,
        value: Any = None,
        options: Mapping[str, Any] | None = None,
        **attrs,
    ) -> Markup:
        """Render a generic <input>. The value attribute is omitted when no value resolves."""
        input_type = InputType(input_type)
        fixed: dict[str, Any] = {"type": input_type.value, "name": name}

        if input_type not in VALUE_SUPPRESSED:
            resolved = ctx.resolve_value(name, value)
            if resolved is not None:
                fixed["value"] = stringify(resolved)

        return self._void("input", fixed, merge_attrs(options, attrs))

    text = _typed_input(InputType.TEXT)
    email = _typed_input(InputType.EMAIL)
    tel = _typed_input(InputType.TEL)
    number = _typed_input(InputType.NUMBER)
    date = _typed_input(InputType.DATE)
    datetime = _typed_input(InputType.DATETIME_LOCAL)
    datetime_local = datetime
    time = _typed_input(InputType.TIME)
    url = _typed_input(InputType.URL)
    search = _typed_input(InputType.SEARCH)
    color = _typed_input(InputType.COLOR)
    range = _typed_input(InputType.RANGE)
    hidden = _typed_input(InputType.HIDDEN)
    file = _typed_input(InputType.FILE)
    password = _typed_input(InputType.PASSWORD)
    image = _typed_input(InputType.IMAGE)

    def checkbox(
        self,
        ctx: FormContext,
        name: str,
        value: Any = 1,
        checked: bool | None = None,
        options: Mapping[str, Any] | None = None,
        **attrs,
    ) -> Markup:
        """Render a checkbox preceded by a hidden "unchecked" input of the same name.

        Pass ``{"no-hidden": True}`` (or ``no_hidden=True``) to skip the hidden input.
        """
        merged = merge_attrs(options, attrs)
        no_hidden = merged.pop(NO_HIDDEN, None)

        html = ""
        if no_hidden is None or no_hidden is False:
            html += self._hidden(name, self.settings.unchecked_value)

        fixed = {
            "type": "checkbox",
            "name": name,
            "value": stringify(value),
            "checked": ctx.resolve_checked(name, value, checked),
        }
        return Markup(html + str(self._void("input", fixed, merged)))

    def radio(
        self,
        ctx: FormContext,
        name: str,
        value: Any,
        checked: bool | None = None,
        options: Mapping[str, Any] | None = None,
        **attrs,
    ) -> Markup:
        fixed = {
            "type": "radio",
            "name": name,
            "value": stringify(value),
            "checked": ctx.resolve_checked(name, value, checked),
        }
        return self._void("input", fixed, merge_attrs(options, attrs))

    def textarea(
        self,
        ctx: FormContext,
        name: str,
        value: Any = None,
        options: Mapping[str, Any] | None = None,
        **attrs,
    ) -> Markup:
        resolved = ctx.resolve_value(name, value)
        merged = merge_attrs(options, attrs)
        merged.pop("name", None)
        return tag("textarea", {"name": name, **merged}, escape(stringify(resolved)))

    # -- Selects --

    def select(
        self,
        ctx: FormContext,
        name: str,
        choices: Mapping[Any, Any] | Iterable[tuple[Any, Any]] = (),
        selected: Any = None,
        options: Mapping[str, Any] | None = None,
        **attrs,
    ) -> Markup:
        """Render a <select>. ``choices`` keep their order; list values select several options."""
        resolved = ctx.resolve_value(name, selected)

        option_html = "".join(
            tag(
                "option",
                {"value": stringify(option_value), "selected": matches(resolved, option_value)},
                escape(option_label),
            )
            for option_value, option_label in _choice_pairs(choices)
        )

        merged = merge_attrs(options, attrs)
        merged.pop("name", None)
        return tag("select", {"name": name, **merged}, option_html)

    def select_range(
        self,
        ctx: FormContext,
        name: str,
        start: int,
        end: int,
        selected: Any = None,
        options: Mapping[str, Any] | None = None,
        **attrs,
    ) -> Markup:
        """Select with values start..end inclusive, ascending."""
        choices = [(i, i) for i in range(start, end + 1)]
        return self.select(ctx, name, choices, selected, options, **attrs)

    def select_year(
        self,
        ctx: FormContext,
        name: str,
        start_year: int | None = None,
        end_year: int | None = None,
        selected: Any = None,
        options: Mapping[str, Any] | None = None,
        **attrs,
    ) -> Markup:
        """Select with years from end_year down to start_year.

        Defaults to a window around the current year (100 back, 10 ahead).
        """
        current_year = date.today().year
        if start_year is None:
            start_year = current_year - self.settings.year_window_before
        if end_year is None:
            end_year = current_year + self.settings.year_window_after

        choices = [(year, year) for year in range(end_year, start_year - 1, -1)]
        return self.select(ctx, name, choices, selected, options, **attrs)

    def select_month(
        self,
        ctx: FormContext,
        name: str,
        selected: Any = None,
        options: Mapping[str, Any] | None = None,
        month_format: str = "%B",
        **attrs,
    ) -> Markup:
        """Select with months 1-12 labelled by the locale's month names."""
        choices = [(month, date(2000, month, 1).strftime(month_format)) for month in range(1, 13)]
        return self.select(ctx, name, choices, selected, options, **attrs)

    # -- Labels & buttons --

    def label(self, name: str, text: str | None = None, options: Mapping[str, Any] | None = None, **attrs) -> Markup:
        """Render a <label>. ``for`` is always the field name."""
        merged = merge_attrs(options, attrs)
        merged.pop("for", None)
        return tag("label", {"for": name, **merged}, escape(text or format_label(name)))

    def button(self, text: str | None = None, options: Mapping[str, Any] | None = None, **attrs) -> Markup:
        merged = merge_attrs(options, attrs)
        button_type = merged.pop("type", None) or "button"
        return tag("button", {"type": button_type, **merged}, escape(text if text is not None else ""))

    def submit(self, value: str | None = None, options: Mapping[str, Any] | None = None, **attrs) -> Markup:
        fixed = {"type": "submit", "value": value or self.settings.submit_label}
        return self._void("input", fixed, merge_attrs(options, attrs))

    # -- Internals --

    def _resolve_action(self, merged: Mapping[str, Any]) -> str | None:
        if merged.get("route") is not None:
            route = merged["route"]
            if isinstance(route, (list, tuple)):
                route_name, params = route[0], route[1] if len(route) > 1 else None
            else:
                route_name, params = route, None
            if self.url_for is None:
                raise RuntimeError("Cannot resolve route without a url_for; pass url_for= to FormRenderer")
            return self.url_for(route_name, params)

        if merged.get("url") is not None:
            if self.absolute_url is None:
                raise RuntimeError("Cannot resolve url without an absolute_url; pass absolute_url= to FormRenderer")
            return self.absolute_url(merged["url"])

        return merged.get("action")

    @staticmethod
    def _void(name: str, fixed: dict[str, Any], merged: Mapping[str, Any]) -> Markup:
        """Fixed attributes first, then caller attributes that don't clash with them."""
        extra = {k: v for k, v in merged.items() if k not in fixed and k not in _RESERVED}
        return tag(name, {**fixed, **extra}, void=True)

    @staticmethod
    def _hidden(name: str, value: Any) -> str:
        return str(tag("input", {"type": "hidden", "name": name, "value": stringify(value)}, void=True))


# Operations whose first argument is a FormContext
CONTEXT_OPERATIONS = frozenset({
    "bind_model", "close", "input", "checkbox", "radio", "textarea",
    "select", "select_range", "select_year", "select_month",
    *(input_type.name.lower() for input_type in InputType),
    "datetime", "datetime_local",
})
