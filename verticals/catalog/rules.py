"""Catalog form rules — the field chains each workflow validates against.

Builders return fresh chains on every call so no rule state is shared
between requests.
"""

from typing import Iterable

from patterns.rules_engine import (
    FieldError,
    FieldRule,
    ValidationResult,
    as_list,
    validate,
)

__all__ = [
    "FieldError",
    "ValidationResult",
    "as_list",
    "author_rules",
    "book_rules",
    "genre_rules",
    "mark_checked",
    "validate",
]


def author_rules() -> list[FieldRule]:
    return [
        FieldRule("first_name")
        .trim()
        .min_length(1).with_message("First name must be specified.")
        .max_length(100).with_message("First name must be at most 100 characters.")
        .escape()
        .alphanumeric().with_message("First name has non-alphanumeric characters."),
        FieldRule("family_name")
        .trim()
        .min_length(1).with_message("Family name must be specified.")
        .max_length(100).with_message("Family name must be at most 100 characters.")
        .escape()
        .alphanumeric().with_message("Family name has non-alphanumeric characters."),
        FieldRule("date_of_birth", "Invalid date of birth").optional().iso_date().to_date(),
        FieldRule("date_of_death", "Invalid date of death").optional().iso_date().to_date(),
    ]


def genre_rules() -> list[FieldRule]:
    return [
        FieldRule("name", "Genre name required")
        .trim()
        .min_length(1)
        .min_length(3).with_message("Genre name must be at least 3 characters.")
        .max_length(100).with_message("Genre name must be at most 100 characters.")
        .escape(),
    ]


def book_rules() -> list[FieldRule]:
    return [
        FieldRule("title", "Title must not be empty.").trim().min_length(1).escape(),
        FieldRule("author", "Author must not be empty.").trim().min_length(1).escape(),
        FieldRule("summary", "Summary must not be empty.").trim().min_length(1).escape(),
        FieldRule("isbn", "ISBN must not be empty").trim().min_length(1).escape(),
        FieldRule("genre").each().escape(),
    ]


def mark_checked(genres: Iterable[dict], selected_ids: Iterable[str]) -> list[dict]:
    """Copy each genre dict with ``checked`` set by id membership.

    Comparison is on the string identity, never on object equality, since
    the selected ids come from a form or a separately loaded book.
    """
    selected = {str(i) for i in selected_ids}
    return [{**g, "checked": str(g["id"]) in selected} for g in genres]
