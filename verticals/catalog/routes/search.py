"""Search adapter and catalog home.

Search does not filter yet: both endpoints load every book and author.
The page reserves empty ``books_result`` / ``authors_result`` slots for
matches; the JSON endpoint returns the collections with virtual fields.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from core.engine.template_engine import Presenter, get_presenter
from verticals.catalog.models.schemas import ErrorResponse, SearchResponse
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

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def index(
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    books: BookRepository = Depends(get_book_repository),
    instances: BookInstanceRepository = Depends(get_book_instance_repository),
    authors: AuthorRepository = Depends(get_author_repository),
    genres: GenreRepository = Depends(get_genre_repository),
):
    """Home page with record counts."""
    book_count, instance_count, available_count, author_count, genre_count = (
        await asyncio.gather(
            books.count(),
            instances.count(),
            instances.count_available(),
            authors.count(),
            genres.count(),
        )
    )
    return presenter.render(request, "index", {
        "title": "Local Library Home",
        "data": {
            "book_count": book_count,
            "book_instance_count": instance_count,
            "book_instance_available_count": available_count,
            "author_count": author_count,
            "genre_count": genre_count,
        },
    })


@router.get("/search")
async def search_get(
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    books: BookRepository = Depends(get_book_repository),
    authors: AuthorRepository = Depends(get_author_repository),
):
    book_list, author_list = await asyncio.gather(books.list(), authors.list())
    return presenter.render(request, "search", {
        "title": "Automatic Search",
        "search": request.query_params.get("search_input", ""),
        "books": book_list,
        "authors": author_list,
        "books_result": [],
        "authors_result": [],
    })


@router.api_route(
    "/api/search",
    methods=["GET", "POST"],
    response_model=SearchResponse,
    responses={500: {"model": ErrorResponse}},
)
async def search_api(
    books: BookRepository = Depends(get_book_repository),
    authors: AuthorRepository = Depends(get_author_repository),
):
    """Every book and author as JSON, virtual fields included."""
    try:
        book_list, author_list = await asyncio.gather(books.list(), authors.list())
    except SQLAlchemyError:
        logger.exception("search_fetch_failed")
        return JSONResponse(status_code=500, content={"message": "Error fetching data"})

    return {"books": book_list, "authors": author_list}
