"""Template Engine — renders named views into HTML responses.

The workflows never build markup themselves: they hand a view name and a
context dict to the Presenter, which resolves ``<view>.html`` from the
template directory and renders it with Jinja2. Formatting helpers live
here too and are registered as template filters.
"""

from datetime import date
from typing import Any, Callable, Dict

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def fmt_date(value: date | None, default: str = "N/A") -> str:
    """Format a date as a medium human-readable string (e.g. Oct 6, 2014)."""
    if value is None:
        return default
    return f"{value:%b} {value.day}, {value.year}"


def fmt_int(value: int | None) -> str:
    """Format an integer with comma separators."""
    if value is None:
        return "N/A"
    return f"{value:,}"


# ---------------------------------------------------------------------------
# Presenter
# ---------------------------------------------------------------------------

class Presenter:
    """Render a named view with a data context.

    Usage::

        presenter = Presenter("verticals/catalog/templates")
        return presenter.render(request, "author_list", {"author_list": authors})
    """

    def __init__(self, directory: str, globals_: Dict[str, Any] | None = None):
        self.templates = Jinja2Templates(directory=directory)
        self.register_filter("fmt_date", fmt_date)
        self.register_filter("fmt_int", fmt_int)
        for key, value in (globals_ or {}).items():
            self.templates.env.globals[key] = value

    def register_filter(self, name: str, fn: Callable[..., Any]) -> None:
        self.templates.env.filters[name] = fn

    def render(
        self,
        request: Request,
        view: str,
        context: Dict[str, Any] | None = None,
        status_code: int = 200,
    ) -> Response:
        return self.templates.TemplateResponse(
            request,
            f"{view}.html",
            context or {},
            status_code=status_code,
        )


def get_presenter(request: Request) -> Presenter:
    """FastAPI dependency for the Presenter built by create_app()."""
    return request.app.state.presenter
