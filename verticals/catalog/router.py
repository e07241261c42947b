"""Catalog router — every catalog page and the JSON search endpoint.

Mounted by the app under /catalog:
- Home page with counts, search page and JSON search
- Authors, genres and books: list, detail, create, update, delete
- Book instances: list and detail
"""

from fastapi import APIRouter

from verticals.catalog.routes import authors, books, genres, instances, search

router = APIRouter()

router.include_router(search.router)
router.include_router(authors.router)
router.include_router(genres.router)
router.include_router(books.router)
router.include_router(instances.router)
