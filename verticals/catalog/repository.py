"""Catalog repositories — async data access for the four entity types.

Extends BaseRepository with the catalog's natural sort keys, the
dependent-book lookups used by detail pages and the delete guard, and
genre resolution for the book's many-to-many field.
"""

from typing import Any

from fastapi import Depends, Request
from sqlalchemy import select

from core.database import Database
from patterns.repository import BaseRepository
from verticals.catalog.models.db_models import (
    Author,
    Book,
    BookInstance,
    BookInstanceStatus,
    Genre,
    book_genres,
)


# ---------------------------------------------------------------------------
# Author / Genre repositories
# ---------------------------------------------------------------------------

class AuthorRepository(BaseRepository[Author]):
    """Repository for authors, sorted by family name."""

    model = Author
    default_order = ("family_name", "first_name")


class GenreRepository(BaseRepository[Genre]):
    """Repository for genres, sorted by name."""

    model = Genre
    default_order = ("name",)

    async def find_by_name(self, name: str) -> dict | None:
        return await self.find_one(name=name)


# ---------------------------------------------------------------------------
# Book repository
# ---------------------------------------------------------------------------

class BookRepository(BaseRepository[Book]):
    """Repository for books.

    The ``genre`` key of create/update payloads is a list of genre ids;
    it is resolved to Genre rows inside the same session.
    """

    model = Book
    default_order = ("title",)

    async def list_populated(self) -> list[dict]:
        """All books with author and genres inlined, sorted by title."""
        stmt = self._apply_order(select(Book), None)
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [row.to_dict(populate=True) for row in result.scalars().all()]

    async def get_populated(self, book_id: str) -> dict | None:
        async with self.database.session() as session:
            row = await session.get(Book, book_id)
            return row.to_dict(populate=True) if row else None

    async def list_by_author(self, author_id: str) -> list[dict]:
        return await self.list(filters={"author_id": author_id})

    async def list_by_genre(self, genre_id: str) -> list[dict]:
        stmt = (
            select(Book)
            .join(book_genres, book_genres.c.book_id == Book.id)
            .where(book_genres.c.genre_id == genre_id)
        )
        return await self._fetch_all(self._apply_order(stmt, None))

    async def create(self, data: dict[str, Any]) -> dict:
        fields = dict(data)
        genre_ids = fields.pop("genre", None) or []
        async with self.database.session() as session:
            book = Book(
                title=fields["title"],
                author_id=fields["author"],
                summary=fields["summary"],
                isbn=fields["isbn"],
            )
            book.genres = await self._resolve_genres(session, genre_ids)
            session.add(book)
            await session.flush()
            await self._before_return(session, book)
            return self.serialize(book)

    async def update(self, item_id: str, data: dict[str, Any]) -> dict | None:
        fields = dict(data)
        genre_ids = fields.pop("genre", None) or []
        async with self.database.session() as session:
            book = await session.get(Book, item_id)
            if not book:
                return None
            book.title = fields["title"]
            book.author_id = fields["author"]
            book.summary = fields["summary"]
            book.isbn = fields["isbn"]
            book.genres = await self._resolve_genres(session, genre_ids)
            await session.flush()
            await self._before_return(session, book)
            return self.serialize(book)

    @staticmethod
    async def _resolve_genres(session, genre_ids: list[str]) -> list[Genre]:
        if not genre_ids:
            return []
        result = await session.execute(select(Genre).where(Genre.id.in_(genre_ids)))
        return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Book instance repository
# ---------------------------------------------------------------------------

class BookInstanceRepository(BaseRepository[BookInstance]):
    """Repository for physical copies."""

    model = BookInstance
    default_order = ("due_back",)

    def serialize(self, row: BookInstance) -> dict:
        return row.to_dict(populate=True)

    async def list_by_book(self, book_id: str) -> list[dict]:
        return await self.list(filters={"book_id": book_id})

    async def count_available(self) -> int:
        return await self.count(filters={"status": BookInstanceStatus.AVAILABLE.value})


# ---------------------------------------------------------------------------
# FastAPI dependency factories
# ---------------------------------------------------------------------------

def get_database(request: Request) -> Database:
    """The Database built by create_app() for this application."""
    return request.app.state.database


def get_author_repository(database: Database = Depends(get_database)) -> AuthorRepository:
    """FastAPI dependency for AuthorRepository."""
    return AuthorRepository(database)


def get_genre_repository(database: Database = Depends(get_database)) -> GenreRepository:
    """FastAPI dependency for GenreRepository."""
    return GenreRepository(database)


def get_book_repository(database: Database = Depends(get_database)) -> BookRepository:
    """FastAPI dependency for BookRepository."""
    return BookRepository(database)


def get_book_instance_repository(
    database: Database = Depends(get_database),
) -> BookInstanceRepository:
    """FastAPI dependency for BookInstanceRepository."""
    return BookInstanceRepository(database)
