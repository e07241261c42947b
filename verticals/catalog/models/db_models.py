"""SQLAlchemy models for the catalog vertical.

Each model inherits from Base and uses IdentityMixin for its immutable id.
The to_dict() method provides the standard serialisation interface used by
repositories, templates and the JSON search endpoint. Virtual fields
(display names, detail URLs, formatted dates) are computed there and never
stored.
"""

from datetime import date
from enum import Enum

from sqlalchemy import Column, Date, ForeignKey, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.engine.template_engine import fmt_date
from core.models.base import Base, IdentityMixin

CATALOG_PREFIX = "/catalog"


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


class BookInstanceStatus(str, Enum):
    """Circulation states of a physical copy."""

    AVAILABLE = "Available"
    MAINTENANCE = "Maintenance"
    LOANED = "Loaned"
    RESERVED = "Reserved"


book_genres = Table(
    "book_genres",
    Base.metadata,
    Column("book_id", String(36), ForeignKey("books.id", ondelete="CASCADE"), primary_key=True),
    Column("genre_id", String(36), ForeignKey("genres.id"), primary_key=True),
)


class Author(IdentityMixin, Base):
    """A person credited with one or more books."""

    __tablename__ = "authors"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    family_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    date_of_death: Mapped[date | None] = mapped_column(Date, nullable=True)
    image_path: Mapped[str | None] = mapped_column(String(500), nullable=True)

    @property
    def name(self) -> str:
        if self.first_name and self.family_name:
            return f"{self.family_name}, {self.first_name}"
        return ""

    @property
    def url(self) -> str:
        return f"{CATALOG_PREFIX}/authors/{self.id}"

    @property
    def lifespan(self) -> str:
        born = fmt_date(self.date_of_birth, default="")
        died = fmt_date(self.date_of_death, default="")
        if not born and not died:
            return ""
        return f"{born} - {died}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "family_name": self.family_name,
            "date_of_birth": _iso(self.date_of_birth),
            "date_of_death": _iso(self.date_of_death),
            "image_path": self.image_path,
            "name": self.name,
            "url": self.url,
            "lifespan": self.lifespan,
            "date_of_birth_formatted": fmt_date(self.date_of_birth, default=""),
            "date_of_death_formatted": fmt_date(self.date_of_death, default=""),
            "date_of_birth_yyyy_mm_dd": _iso(self.date_of_birth) or "",
            "date_of_death_yyyy_mm_dd": _iso(self.date_of_death) or "",
        }


class Genre(IdentityMixin, Base):
    """A category of books (e.g. Fantasy, Poetry)."""

    __tablename__ = "genres"

    # Not unique at the storage level; the create workflow looks names up first.
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    @property
    def url(self) -> str:
        return f"{CATALOG_PREFIX}/genres/{self.id}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
        }


class Book(IdentityMixin, Base):
    """A title in the catalog, independent of how many copies exist."""

    __tablename__ = "books"

    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("authors.id"), nullable=False, index=True
    )
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    isbn: Mapped[str] = mapped_column(String(32), nullable=False)

    author: Mapped["Author"] = relationship(lazy="joined")
    genres: Mapped[list["Genre"]] = relationship(
        secondary=book_genres, lazy="selectin", order_by="Genre.name"
    )

    @property
    def url(self) -> str:
        return f"{CATALOG_PREFIX}/books/{self.id}"

    def to_dict(self, populate: bool = False) -> dict:
        """Serialise the book.

        References are ids unless ``populate`` is set, in which case the
        author and genres are inlined as their own dicts.
        """
        if populate:
            author = self.author.to_dict() if self.author else None
            genre = [g.to_dict() for g in self.genres]
        else:
            author = self.author_id
            genre = [g.id for g in self.genres]
        return {
            "id": self.id,
            "title": self.title,
            "author": author,
            "summary": self.summary,
            "isbn": self.isbn,
            "genre": genre,
            "url": self.url,
        }


class BookInstance(IdentityMixin, Base):
    """A specific physical copy of a book that can be borrowed."""

    __tablename__ = "book_instances"

    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id"), nullable=False, index=True
    )
    imprint: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookInstanceStatus.MAINTENANCE.value
    )
    due_back: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)

    book: Mapped["Book"] = relationship(lazy="joined")

    @property
    def url(self) -> str:
        return f"{CATALOG_PREFIX}/bookinstances/{self.id}"

    def to_dict(self, populate: bool = False) -> dict:
        if populate:
            book = self.book.to_dict(populate=True) if self.book else None
        else:
            book = self.book_id
        return {
            "id": self.id,
            "book": book,
            "imprint": self.imprint,
            "status": self.status,
            "due_back": _iso(self.due_back),
            "url": self.url,
            "due_back_formatted": fmt_date(self.due_back, default=""),
            "due_back_yyyy_mm_dd": _iso(self.due_back) or "",
        }
