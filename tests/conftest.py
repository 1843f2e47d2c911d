"""Shared pytest fixtures."""

from unittest.mock import MagicMock

import pytest
from markupsafe import Markup

from formbuilder.config import FormSettings, clear_settings_cache
from formbuilder.context import FormContext
from formbuilder.renderer import FormRenderer

CSRF_MARKUP = Markup('<input type="hidden" name="_csrf" value="tok">')


@pytest.fixture(autouse=True)
def clean_settings_cache():
    """Ensure cached settings never leak between tests."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings():
    return FormSettings()


@pytest.fixture
def csrf_markup():
    return CSRF_MARKUP


@pytest.fixture
def renderer(settings):
    """A renderer with stub route, URL and CSRF collaborators."""
    return FormRenderer(
        url_for=lambda name, params: f"/r/{name}" + (f"?{params}" if params else ""),
        absolute_url=lambda path: f"http://testserver/{path.lstrip('/')}",
        csrf_field=lambda: CSRF_MARKUP,
        settings=settings,
    )


@pytest.fixture
def ctx():
    return FormContext()


@pytest.fixture
def mock_request_factory():
    """Factory fixture that returns mock requests with session and scope dicts."""
    def _make(session=None, form_data=None, scope=None):
        request = MagicMock()
        request.session = session if session is not None else {}
        request.scope = scope if scope is not None else {}
        if form_data is not None:
            async def _form():
                return form_data
            request.form = _form
        return request
    return _make
