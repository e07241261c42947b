"""Book workflow — list, detail, create and update.

Deleting a book is not implemented; both delete routes answer 501.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from core.engine.template_engine import Presenter, get_presenter
from verticals.catalog.repository import (
    AuthorRepository,
    BookInstanceRepository,
    BookRepository,
    GenreRepository,
    get_author_repository,
    get_book_instance_repository,
    get_book_repository,
    get_genre_repository,
)
from verticals.catalog.routes.common import as_form_values, redirect, submitted
from verticals.catalog.rules import as_list, book_rules, mark_checked, validate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books")

FORM_FIELDS = ("title", "author", "summary", "isbn")
TEXT_FIELDS = ("title", "summary", "isbn")


def _form_entity(form, book_id: str | None = None) -> dict:
    """Submitted book with ``genre`` always a list."""
    book = submitted(form, FORM_FIELDS)
    book["genre"] = as_list(form.getlist("genre"))
    if book_id:
        book["id"] = book_id
    return book


def _book_values(values: dict) -> dict:
    return {
        "title": values["title"],
        "author": values["author"],
        "summary": values["summary"],
        "isbn": values["isbn"],
        "genre": values["genre"],
    }


async def _render_form(
    request: Request,
    presenter: Presenter,
    authors: AuthorRepository,
    genres: GenreRepository,
    title: str,
    book: dict | None = None,
    errors: list | None = None,
):
    """Book form with all authors and genres, genres checked by book membership."""
    all_authors, all_genres = await asyncio.gather(authors.list(), genres.list())
    selected = book["genre"] if book else []
    return presenter.render(request, "book_form", {
        "title": title,
        "authors": all_authors,
        "genres": mark_checked(all_genres, selected),
        "book": book,
        "errors": errors or [],
    })


# ============================================================================
# Read path
# ============================================================================

@router.get("")
async def book_list(
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    books: BookRepository = Depends(get_book_repository),
):
    """All books sorted by title, with their authors."""
    book_list = await books.list_populated()
    return presenter.render(request, "book_list", {
        "title": "Book List",
        "book_list": book_list,
    })


@router.get("/create")
async def book_create_get(
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    authors: AuthorRepository = Depends(get_author_repository),
    genres: GenreRepository = Depends(get_genre_repository),
):
    return await _render_form(request, presenter, authors, genres, "Create Book")


@router.get("/{book_id}")
async def book_detail(
    book_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    books: BookRepository = Depends(get_book_repository),
    instances: BookInstanceRepository = Depends(get_book_instance_repository),
):
    """A book with its author, genres and physical copies."""
    book, book_instances = await asyncio.gather(
        books.get_populated(book_id),
        instances.list_by_book(book_id),
    )
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found")

    return presenter.render(request, "book_detail", {
        "title": book["title"],
        "book": book,
        "book_instances": book_instances,
    })


# ============================================================================
# Create
# ============================================================================

@router.post("/create")
async def book_create_post(
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    books: BookRepository = Depends(get_book_repository),
    authors: AuthorRepository = Depends(get_author_repository),
    genres: GenreRepository = Depends(get_genre_repository),
):
    form = await request.form()
    book = _form_entity(form)
    result = validate(book, book_rules())

    if not result.is_valid:
        return await _render_form(
            request, presenter, authors, genres, "Create Book",
            book=book, errors=result.errors,
        )

    created = await books.create(_book_values(result.values))
    logger.info("book_created id=%s genres=%d", created["id"], len(created["genre"]))
    return redirect(created["url"])


# ============================================================================
# Update
# ============================================================================

@router.get("/{book_id}/update")
async def book_update_get(
    book_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    books: BookRepository = Depends(get_book_repository),
    authors: AuthorRepository = Depends(get_author_repository),
    genres: GenreRepository = Depends(get_genre_repository),
):
    book, all_authors, all_genres = await asyncio.gather(
        books.get(book_id),
        authors.list(),
        genres.list(),
    )
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found")

    return presenter.render(request, "book_form", {
        "title": "Update Book",
        "authors": all_authors,
        "genres": mark_checked(all_genres, book["genre"]),
        "book": as_form_values(book, TEXT_FIELDS),
        "errors": [],
    })


@router.post("/{book_id}/update")
async def book_update_post(
    book_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    books: BookRepository = Depends(get_book_repository),
    authors: AuthorRepository = Depends(get_author_repository),
    genres: GenreRepository = Depends(get_genre_repository),
):
    """Replace the book's fields and genre set, keeping its id."""
    form = await request.form()
    book = _form_entity(form, book_id)
    result = validate(book, book_rules())

    if not result.is_valid:
        return await _render_form(
            request, presenter, authors, genres, "Update Book",
            book=book, errors=result.errors,
        )

    updated = await books.update(book_id, _book_values(result.values))
    if updated is None:
        raise HTTPException(status_code=404, detail="Book not found")

    logger.info("book_updated id=%s", book_id)
    return redirect(updated["url"])


# ============================================================================
# Delete
# ============================================================================

@router.get("/{book_id}/delete", response_class=PlainTextResponse, status_code=501)
async def book_delete_get(book_id: str):
    return "NOT IMPLEMENTED: Book delete GET"


@router.post("/{book_id}/delete", response_class=PlainTextResponse, status_code=501)
async def book_delete_post(book_id: str):
    return "NOT IMPLEMENTED: Book delete POST"
