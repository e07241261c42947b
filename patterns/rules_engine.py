"""Declarative form-field rules.

A form is validated by a list of FieldRule chains, one per field. Each
chain is an ordered mix of sanitizers (trim, escape, to_date) and checks
(min_length, alphanumeric, iso_date, ...). Sanitizers rewrite the value
seen by later steps; checks record a FieldError but never stop the chain,
so one field can report several problems.

No database, no side effects: validate() takes the submitted mapping and
returns cleaned values plus errors::

    result = validate(form, [
        FieldRule("name", "Genre name required").trim().min_length(1).escape(),
    ])
    if not result.is_valid:
        ...
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from html import escape as html_escape
from typing import Any, Callable, Iterable, Mapping


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class FieldError:
    """One failed check on one field."""

    field: str
    message: str
    value: Any = None


@dataclass
class ValidationResult:
    """Aggregate outcome of validating a whole form."""

    values: dict[str, Any]
    errors: list[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def messages_for(self, field_name: str) -> list[str]:
        return [e.message for e in self.errors if e.field == field_name]


# ---------------------------------------------------------------------------
# Field rule chain
# ---------------------------------------------------------------------------

_Step = tuple[str, Callable[[Any], Any], str | None]


class FieldRule:
    """Ordered sanitize/check chain for a single form field.

    ``message`` is the default text for checks that do not carry their
    own; with_message() replaces the text of the most recent check.
    """

    def __init__(self, name: str, message: str | None = None):
        self.name = name
        self.message = message or f"Invalid value for {name}"
        self._steps: list[_Step] = []
        self._optional = False
        self._each = False

    # -- modifiers --

    def optional(self) -> "FieldRule":
        """Skip every step when the value is missing or empty."""
        self._optional = True
        return self

    def each(self) -> "FieldRule":
        """Apply the chain to every item of a list value."""
        self._each = True
        return self

    def with_message(self, message: str) -> "FieldRule":
        for i in range(len(self._steps) - 1, -1, -1):
            kind, fn, _ = self._steps[i]
            if kind == "check":
                self._steps[i] = (kind, fn, message)
                return self
        raise ValueError("with_message() must follow a check")

    # -- sanitizers --

    def trim(self) -> "FieldRule":
        return self._sanitize(lambda v: v.strip() if isinstance(v, str) else v)

    def escape(self) -> "FieldRule":
        return self._sanitize(lambda v: html_escape(v, quote=True) if isinstance(v, str) else v)

    def to_date(self) -> "FieldRule":
        return self._sanitize(lambda v: parse_iso_date(v) if isinstance(v, str) else v)

    # -- checks --

    def min_length(self, n: int, message: str | None = None) -> "FieldRule":
        return self._check(lambda v: len(v or "") >= n, message)

    def max_length(self, n: int, message: str | None = None) -> "FieldRule":
        return self._check(lambda v: len(v or "") <= n, message)

    def alphanumeric(self, message: str | None = None) -> "FieldRule":
        return self._check(lambda v: isinstance(v, str) and v.isascii() and v.isalnum(), message)

    def iso_date(self, message: str | None = None) -> "FieldRule":
        return self._check(lambda v: parse_iso_date(v) is not None, message)

    def one_of(self, choices: Iterable[str], message: str | None = None) -> "FieldRule":
        allowed = set(choices)
        return self._check(lambda v: v in allowed, message)

    # -- execution --

    def run(self, raw: Any) -> tuple[Any, list[FieldError]]:
        """Return the cleaned value and the errors for ``raw``."""
        if self._optional and not raw:
            return None, []
        if self._each:
            cleaned, errors = [], []
            for item in as_list(raw):
                value, item_errors = self._run_one(item)
                cleaned.append(value)
                errors.extend(item_errors)
            return cleaned, errors
        return self._run_one(raw)

    def _run_one(self, raw: Any) -> tuple[Any, list[FieldError]]:
        value = "" if raw is None else raw
        errors: list[FieldError] = []
        for kind, fn, message in self._steps:
            if kind == "sanitize":
                value = fn(value)
            elif not fn(value):
                errors.append(FieldError(self.name, message or self.message, raw))
        return value, errors

    def _sanitize(self, fn: Callable[[Any], Any]) -> "FieldRule":
        self._steps.append(("sanitize", fn, None))
        return self

    def _check(self, fn: Callable[[Any], bool], message: str | None) -> "FieldRule":
        self._steps.append(("check", fn, message))
        return self


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def parse_iso_date(value: Any) -> date | None:
    """Parse an ISO-8601 date or datetime string; None when it is not one."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def as_list(value: Any) -> list:
    """Normalise a multi-valued form field: absent -> [], scalar -> [scalar]."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


# ---------------------------------------------------------------------------
# Form validation
# ---------------------------------------------------------------------------

def validate(form: Mapping[str, Any], rules: Iterable[FieldRule]) -> ValidationResult:
    """Run every rule against ``form``.

    Fields without a rule are copied through untouched.
    """
    values = dict(form)
    errors: list[FieldError] = []
    for rule in rules:
        cleaned, field_errors = rule.run(form.get(rule.name))
        values[rule.name] = cleaned
        errors.extend(field_errors)
    return ValidationResult(values=values, errors=errors)
