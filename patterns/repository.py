"""Async repository pattern for database access.

Provides a generic base repository with CRUD operations, sorted listing,
filter lookups and counting. Verticals subclass this to add domain-specific
queries.

Every method opens its own session from the shared Database, so callers
can await several independent reads together::

    author, books = await asyncio.gather(
        authors.get(author_id),
        books.list_by_author(author_id),
    )
"""

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.sql import Select

from core.database import Database
from core.models.base import Base

# ---------------------------------------------------------------------------
# Type variable for model classes
# ---------------------------------------------------------------------------

ModelT = TypeVar("ModelT", bound=Base)

# Columns the repository owns; callers can never overwrite them.
PROTECTED_COLUMNS = ("id", "created_at", "updated_at")


# ---------------------------------------------------------------------------
# Base repository
# ---------------------------------------------------------------------------

class BaseRepository(Generic[ModelT]):
    """Generic async repository with CRUD + sorting + counting.

    Subclass and set `model` (and optionally `default_order`) to your
    SQLAlchemy model::

        class GenreRepository(BaseRepository[Genre]):
            model = Genre
            default_order = ("name",)
    """

    model: type[ModelT]
    default_order: Sequence[str] = ()

    def __init__(self, database: Database):
        self.database = database

    # -- Hooks --

    def serialize(self, row: ModelT) -> dict:
        return row.to_dict()

    def _apply_filters(self, stmt: Select, filters: dict[str, Any] | None) -> Select:
        if filters:
            for col_name, value in filters.items():
                if not hasattr(self.model, col_name):
                    raise ValueError(f"{self.model.__name__} has no column {col_name!r}")
                stmt = stmt.where(getattr(self.model, col_name) == value)
        return stmt

    def _apply_order(self, stmt: Select, order_by: Sequence[str] | None) -> Select:
        for col_name in order_by if order_by is not None else self.default_order:
            stmt = stmt.order_by(getattr(self.model, col_name).asc())
        return stmt

    async def _fetch_all(self, stmt: Select) -> list[dict]:
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [self.serialize(row) for row in result.scalars().all()]

    # -- List --

    async def list(
        self,
        filters: dict[str, Any] | None = None,
        order_by: Sequence[str] | None = None,
    ) -> list[dict]:
        """List items matching equality filters, sorted ascending.

        Without ``order_by`` the repository's natural key is used.
        """
        stmt = self._apply_filters(select(self.model), filters)
        stmt = self._apply_order(stmt, order_by)
        return await self._fetch_all(stmt)

    # -- Get by ID --

    async def get(self, item_id: str) -> dict | None:
        """Get a single item by ID."""
        async with self.database.session() as session:
            row = await session.get(self.model, item_id)
            return self.serialize(row) if row else None

    # -- Find one --

    async def find_one(self, **filters: Any) -> dict | None:
        """Return the first item matching all filters, or None."""
        stmt = self._apply_filters(select(self.model), filters)
        stmt = self._apply_order(stmt, None).limit(1)
        rows = await self._fetch_all(stmt)
        return rows[0] if rows else None

    # -- Count --

    async def count(self, filters: dict[str, Any] | None = None) -> int:
        stmt = self._apply_filters(select(func.count()).select_from(self.model), filters)
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return result.scalar() or 0

    # -- Create --

    async def create(self, data: dict[str, Any]) -> dict:
        """Create a new item. The identity is assigned here."""
        fields = {k: v for k, v in data.items() if k not in PROTECTED_COLUMNS}
        async with self.database.session() as session:
            item = self.model(**fields)
            session.add(item)
            await session.flush()
            await self._before_return(session, item)
            return self.serialize(item)

    # -- Update --

    async def update(self, item_id: str, data: dict[str, Any]) -> dict | None:
        """Replace mutable fields of an existing item. Returns None if not found."""
        async with self.database.session() as session:
            item = await session.get(self.model, item_id)
            if not item:
                return None

            for key, value in data.items():
                if hasattr(item, key) and key not in PROTECTED_COLUMNS:
                    setattr(item, key, value)

            await session.flush()
            await self._before_return(session, item)
            return self.serialize(item)

    # -- Delete --

    async def delete(self, item_id: str) -> bool:
        """Delete an item. Returns True if deleted, False if not found."""
        async with self.database.session() as session:
            item = await session.get(self.model, item_id)
            if not item:
                return False

            await session.delete(item)
            await session.flush()
            return True

    async def _before_return(self, session, item: ModelT) -> None:
        """Reload server-generated columns so serialize() never lazy-loads."""
        await session.refresh(item)
