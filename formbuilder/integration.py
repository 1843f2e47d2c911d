"""Litestar and Jinja wiring for FormRenderer.

Templates get a ``form_for`` global that builds a request-scoped FormSession:

    {% set form = form_for(request) %}
    {{ form.open({"route": "contact.submit"}) }}
    {{ form.label("email") }} {{ form.email("email", class_="wide") }}
    {{ form.submit("Send") }}
    {{ form.close() }}
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Any

from litestar.contrib.jinja import JinjaTemplateEngine
from litestar.exceptions import NoRouteMatchFoundException
from litestar.template import TemplateConfig

from formbuilder.config import FormSettings, get_settings
from formbuilder.context import FormContext
from formbuilder.csrf import csrf_field
from formbuilder.old_input import get_old_input
from formbuilder.renderer import CONTEXT_OPERATIONS, FormRenderer

if TYPE_CHECKING:
    from litestar import Request

logger = logging.getLogger(__name__)

# Matches the parameter name in path segments such as {user_id:int}
PATH_PARAM_PATTERN = re.compile(r"\{(\w+)(?::[^}]*)?\}")


class LitestarUrls:
    """Route and URL resolution backed by the request's Litestar app."""

    def __init__(self, request: Request):
        self.request = request

    def route_url(self, name: str, params: Mapping[str, Any] | Sequence[Any] | None = None) -> str:
        """Reverse a named route. Positional params fill path parameters in order."""
        app = self.request.app
        if params is None:
            return app.route_reverse(name)
        if isinstance(params, Mapping):
            return app.route_reverse(name, **params)
        return app.route_reverse(name, **self._positional_params(name, params))

    def absolute_url(self, path: str) -> str:
        if "://" in path or path.startswith("//"):
            return path
        base = str(self.request.base_url).rstrip("/")
        return f"{base}/{path.lstrip('/')}"

    def _positional_params(self, name: str, params: Sequence[Any]) -> dict[str, Any]:
        index = self.request.app.get_handler_index_by_name(name)
        if index is None:
            raise NoRouteMatchFoundException(f"Route {name} can not be found")

        param_names = PATH_PARAM_PATTERN.findall(index["paths"][0])
        logger.debug("Mapping positional params for route %s onto %s", name, param_names)
        return dict(zip(param_names, params))


class FormSession:
    """A FormRenderer paired with one FormContext.

    Context-taking operations are exposed with the context already applied,
    so templates call ``form.text("name")`` instead of passing it themselves.
    """

    def __init__(self, renderer: FormRenderer, context: FormContext):
        self.renderer = renderer
        self.context = context

    def __getattr__(self, name: str) -> Callable[..., Any]:
        operation = getattr(self.renderer, name)
        if name in CONTEXT_OPERATIONS:
            return partial(operation, self.context)
        return operation

    def __repr__(self) -> str:
        return f"FormSession(model={self.context.model!r})"


def form_for(request: Request, model: Any = None, settings: FormSettings | None = None) -> FormSession:
    """Build a FormSession wired to the request's routes, CSRF token and old input."""
    settings = settings or get_settings()
    urls = LitestarUrls(request)
    renderer = FormRenderer(
        url_for=urls.route_url,
        absolute_url=urls.absolute_url,
        csrf_field=partial(csrf_field, request, settings),
        settings=settings,
    )
    context = FormContext(old_input=get_old_input(request, settings), model=model)
    return FormSession(renderer, context)


def build_template_engine_callback(extra_globals: dict[str, Any] | None = None) -> Callable:
    """Build a template engine callback that registers the form globals."""

    def configure_engine(engine: JinjaTemplateEngine):
        engine.engine.globals.update({
            "form_for": form_for,
            "csrf_field": csrf_field,
            **(extra_globals or {}),
        })

    return configure_engine


def create_template_config(directories: list[Path], extra_globals: dict[str, Any] | None = None) -> TemplateConfig:
    """Create a Jinja template config with the form globals registered."""
    return TemplateConfig(
        directory=directories,
        engine=JinjaTemplateEngine,
        engine_callback=build_template_engine_callback(extra_globals),
    )
