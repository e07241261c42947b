"""Genre workflow — list, detail, de-duplicating create, update, guarded delete."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from core.engine.template_engine import Presenter, get_presenter
from verticals.catalog.repository import (
    BookRepository,
    GenreRepository,
    get_book_repository,
    get_genre_repository,
)
from verticals.catalog.routes.common import (
    CATALOG,
    as_form_values,
    ensure_same_identity,
    redirect,
    submitted,
)
from verticals.catalog.rules import genre_rules, validate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/genres")

LIST_URL = f"{CATALOG}/genres"


@router.get("")
async def genre_list(
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    genres: GenreRepository = Depends(get_genre_repository),
):
    genre_list = await genres.list()
    return presenter.render(request, "genre_list", {
        "title": "Genre List",
        "genre_list": genre_list,
    })


@router.get("/create")
async def genre_create_get(
    request: Request,
    presenter: Presenter = Depends(get_presenter),
):
    return presenter.render(request, "genre_form", {"title": "Create Genre"})


@router.get("/{genre_id}")
async def genre_detail(
    genre_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    genres: GenreRepository = Depends(get_genre_repository),
    books: BookRepository = Depends(get_book_repository),
):
    genre, genre_books = await asyncio.gather(
        genres.get(genre_id),
        books.list_by_genre(genre_id),
    )
    if genre is None:
        raise HTTPException(status_code=404, detail="Genre not found")

    return presenter.render(request, "genre_detail", {
        "title": "Genre Detail",
        "genre": genre,
        "genre_books": genre_books,
    })


@router.post("/create")
async def genre_create_post(
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    genres: GenreRepository = Depends(get_genre_repository),
):
    """Create a genre, or redirect to the one that already has this name."""
    form = await request.form()
    result = validate(submitted(form, ("name",)), genre_rules())

    if not result.is_valid:
        return presenter.render(request, "genre_form", {
            "title": "Create Genre",
            "genre": submitted(form, ("name",)),
            "errors": result.errors,
        })

    name = result.values["name"]
    found = await genres.find_by_name(name)
    if found:
        logger.info("genre_exists id=%s", found["id"])
        return redirect(found["url"])

    genre = await genres.create({"name": name})
    logger.info("genre_created id=%s", genre["id"])
    return redirect(genre["url"])


@router.get("/{genre_id}/update")
async def genre_update_get(
    genre_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    genres: GenreRepository = Depends(get_genre_repository),
):
    genre = await genres.get(genre_id)
    if genre is None:
        raise HTTPException(status_code=404, detail="Genre not found")

    return presenter.render(request, "genre_form", {
        "title": "Update Genre",
        "genre": as_form_values(genre, ("name",)),
    })


@router.post("/{genre_id}/update")
async def genre_update_post(
    genre_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    genres: GenreRepository = Depends(get_genre_repository),
):
    form = await request.form()
    result = validate(submitted(form, ("name",)), genre_rules())

    if not result.is_valid:
        return presenter.render(request, "genre_form", {
            "title": "Update Genre",
            "genre": submitted(form, ("name",), id=genre_id),
            "errors": result.errors,
        })

    genre = await genres.update(genre_id, {"name": result.values["name"]})
    if genre is None:
        raise HTTPException(status_code=404, detail="Genre not found")

    logger.info("genre_updated id=%s", genre_id)
    return redirect(genre["url"])


@router.get("/{genre_id}/delete")
async def genre_delete_get(
    genre_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    genres: GenreRepository = Depends(get_genre_repository),
    books: BookRepository = Depends(get_book_repository),
):
    genre, genre_books = await asyncio.gather(
        genres.get(genre_id),
        books.list_by_genre(genre_id),
    )
    if genre is None:
        return redirect(LIST_URL)

    return presenter.render(request, "genre_delete", {
        "title": "Delete Genre",
        "genre": genre,
        "genre_books": genre_books,
    })


@router.post("/{genre_id}/delete")
async def genre_delete_post(
    genre_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    genres: GenreRepository = Depends(get_genre_repository),
    books: BookRepository = Depends(get_book_repository),
):
    """Delete the genre unless books are still filed under it."""
    form = await request.form()
    ensure_same_identity(form, "genreid", genre_id)

    genre, genre_books = await asyncio.gather(
        genres.get(genre_id),
        books.list_by_genre(genre_id),
    )
    if genre_books:
        logger.info("genre_delete_blocked id=%s books=%d", genre_id, len(genre_books))
        return presenter.render(request, "genre_delete", {
            "title": "Delete Genre",
            "genre": genre,
            "genre_books": genre_books,
        })

    if genre is not None:
        await genres.delete(genre_id)
        logger.info("genre_deleted id=%s", genre_id)
    return redirect(LIST_URL)
