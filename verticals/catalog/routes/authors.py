"""Author workflow — list, detail, create, update and guarded delete."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from core.engine.template_engine import Presenter, get_presenter
from verticals.catalog.repository import (
    AuthorRepository,
    BookRepository,
    get_author_repository,
    get_book_repository,
)
from verticals.catalog.routes.common import (
    CATALOG,
    as_form_values,
    ensure_same_identity,
    redirect,
    submitted,
)
from verticals.catalog.rules import author_rules, validate
from verticals.catalog.uploads import UploadStore, get_upload_store, is_present

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/authors")

LIST_URL = f"{CATALOG}/authors"
FORM_FIELDS = ("first_name", "family_name", "date_of_birth", "date_of_death")


def _form_entity(form, author_id: str | None = None) -> dict:
    author = submitted(form, FORM_FIELDS)
    author["date_of_birth_yyyy_mm_dd"] = author["date_of_birth"]
    author["date_of_death_yyyy_mm_dd"] = author["date_of_death"]
    if author_id:
        author["id"] = author_id
    return author


async def _save_image(form, uploads: UploadStore) -> str:
    upload = form.get("upload_file")
    if not is_present(upload):
        raise HTTPException(status_code=400, detail="No files were uploaded.")
    return await uploads.save(upload)


# ============================================================================
# Read path
# ============================================================================

@router.get("")
async def author_list(
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    authors: AuthorRepository = Depends(get_author_repository),
):
    """All authors sorted by family name."""
    author_list = await authors.list()
    return presenter.render(request, "author_list", {
        "title": "Author List",
        "author_list": author_list,
    })


@router.get("/create")
async def author_create_get(
    request: Request,
    presenter: Presenter = Depends(get_presenter),
):
    return presenter.render(request, "author_form", {"title": "Create Author"})


@router.get("/{author_id}")
async def author_detail(
    author_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    authors: AuthorRepository = Depends(get_author_repository),
    books: BookRepository = Depends(get_book_repository),
):
    """An author and the books they wrote."""
    author, author_books = await asyncio.gather(
        authors.get(author_id),
        books.list_by_author(author_id),
    )
    if author is None:
        raise HTTPException(status_code=404, detail="Author not found")

    return presenter.render(request, "author_detail", {
        "title": "Author Detail",
        "author": author,
        "author_books": author_books,
    })


# ============================================================================
# Create
# ============================================================================

@router.post("/create")
async def author_create_post(
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    authors: AuthorRepository = Depends(get_author_repository),
    uploads: UploadStore = Depends(get_upload_store),
):
    """Validate, require an image, then persist and redirect to the new author."""
    form = await request.form()
    result = validate(submitted(form, FORM_FIELDS), author_rules())

    if not result.is_valid:
        return presenter.render(request, "author_form", {
            "title": "Create Author",
            "author": _form_entity(form),
            "errors": result.errors,
        })

    image_path = await _save_image(form, uploads)
    try:
        author = await authors.create({
            "first_name": result.values["first_name"],
            "family_name": result.values["family_name"],
            "date_of_birth": result.values["date_of_birth"],
            "date_of_death": result.values["date_of_death"],
            "image_path": image_path,
        })
    except Exception:
        await uploads.remove(image_path)
        raise
    logger.info("author_created id=%s", author["id"])
    return redirect(author["url"])


# ============================================================================
# Update
# ============================================================================

@router.get("/{author_id}/update")
async def author_update_get(
    author_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    authors: AuthorRepository = Depends(get_author_repository),
):
    author = await authors.get(author_id)
    if author is None:
        raise HTTPException(status_code=404, detail="Author not found")

    return presenter.render(request, "author_form", {
        "title": "Update Author",
        "author": as_form_values(author, ("first_name", "family_name")),
    })


@router.post("/{author_id}/update")
async def author_update_post(
    author_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    authors: AuthorRepository = Depends(get_author_repository),
    uploads: UploadStore = Depends(get_upload_store),
):
    """Replace the author's mutable fields, keeping its id."""
    form = await request.form()
    result = validate(submitted(form, FORM_FIELDS), author_rules())

    if not result.is_valid:
        return presenter.render(request, "author_form", {
            "title": "Update Author",
            "author": _form_entity(form, author_id),
            "errors": result.errors,
        })

    previous = await authors.get(author_id)
    image_path = await _save_image(form, uploads)
    try:
        author = await authors.update(author_id, {
            "first_name": result.values["first_name"],
            "family_name": result.values["family_name"],
            "date_of_birth": result.values["date_of_birth"],
            "date_of_death": result.values["date_of_death"],
            "image_path": image_path,
        })
    except Exception:
        await uploads.remove(image_path)
        raise
    if author is None:
        await uploads.remove(image_path)
        raise HTTPException(status_code=404, detail="Author not found")

    if previous is not None:
        await uploads.remove(previous["image_path"])
    logger.info("author_updated id=%s", author_id)
    return redirect(author["url"])


# ============================================================================
# Delete
# ============================================================================

@router.get("/{author_id}/delete")
async def author_delete_get(
    author_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    authors: AuthorRepository = Depends(get_author_repository),
    books: BookRepository = Depends(get_book_repository),
):
    author, author_books = await asyncio.gather(
        authors.get(author_id),
        books.list_by_author(author_id),
    )
    if author is None:
        return redirect(LIST_URL)

    return presenter.render(request, "author_delete", {
        "title": "Delete Author",
        "author": author,
        "author_books": author_books,
    })


@router.post("/{author_id}/delete")
async def author_delete_post(
    author_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    authors: AuthorRepository = Depends(get_author_repository),
    books: BookRepository = Depends(get_book_repository),
):
    """Delete the author unless books still reference it.

    The book check and the delete are separate statements; a book created
    in between is not detected.
    """
    form = await request.form()
    ensure_same_identity(form, "authorid", author_id)

    author, author_books = await asyncio.gather(
        authors.get(author_id),
        books.list_by_author(author_id),
    )
    if author_books:
        logger.info("author_delete_blocked id=%s books=%d", author_id, len(author_books))
        return presenter.render(request, "author_delete", {
            "title": "Delete Author",
            "author": author,
            "author_books": author_books,
        })

    if author is not None:
        await authors.delete(author_id)
        logger.info("author_deleted id=%s", author_id)
    return redirect(LIST_URL)
