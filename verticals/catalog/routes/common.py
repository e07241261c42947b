"""Helpers shared by the catalog workflows."""

import html
from typing import Any, Iterable, Mapping

from fastapi import HTTPException
from fastapi.responses import RedirectResponse

CATALOG = "/catalog"


def redirect(url: str) -> RedirectResponse:
    """303 so the browser follows a POST with a GET."""
    return RedirectResponse(url, status_code=303)


def submitted(form: Mapping[str, Any], fields: Iterable[str], **extra: Any) -> dict:
    """The would-be entity built from raw form input, never from the store."""
    values = {}
    for name in fields:
        value = form.get(name)
        values[name] = value if isinstance(value, str) else ""
    values.update(extra)
    return values


def as_form_values(entity: dict, fields: Iterable[str]) -> dict:
    """Copy a stored entity with escaped text fields turned back into plain text.

    Stored text went through the escape rule; form inputs show what the
    user typed so a resubmission escapes it exactly once again.
    """
    values = dict(entity)
    for name in fields:
        if isinstance(values.get(name), str):
            values[name] = html.unescape(values[name])
    return values


def ensure_same_identity(form: Mapping[str, Any], field: str, path_id: str) -> None:
    """Reject a delete whose body names a different entity than the URL."""
    body_id = form.get(field)
    if body_id and body_id != path_id:
        raise HTTPException(
            status_code=400,
            detail=f"Form field {field} does not match the requested entity",
        )
