"""Base model and mixins for all SQLAlchemy models.

Provides:
- Base: Declarative base class for all models
- IdentityMixin: Adds an immutable UUID string primary key and timestamps

Identities are stored as 36-character strings so the same models run on
PostgreSQL and SQLite, and so ids can be used verbatim in URLs and forms.
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def new_identity() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Declarative base for all catalog models."""
    pass


class IdentityMixin:
    """Mixin providing identity and standard audit columns.

    Adds:
    - id: UUID string primary key (assigned on insert, never reassigned)
    - created_at: Timestamp set on insert
    - updated_at: Timestamp updated on every change
    """

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_identity,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
