"""
Superhero Registry Backend — Superhero SQLAlchemy Model
========================================================

What:  ORM model representing the `superheroes` table.
Who:   Used by SuperheroService for CRUD and by Alembic for schema management.

Table Design:
    - UUID primary key, generated on insert and never reused
    - nickname: UNIQUE at the storage level, so two concurrent renames to the
      same nickname cannot both commit even though the service also checks first
    - superpowers: JSON list (ordered, display order only)
    - images: a single comma-joined TEXT column. The service owns the
      encode/decode step; callers never see the raw string. No entry may
      contain a comma.
    - created_at / updated_at: timezone-aware, set by the service. SQLite
      drops the offset on storage, so UTCDateTime reattaches UTC on load.

    Index on created_at DESC serves the newest-first listing.

Column types are the generic SQLAlchemy ones (Uuid, DateTime, JSON) so the same
model runs against PostgreSQL in production and SQLite in the test suite.
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, DateTime, Index, String, Text, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from app.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    DateTime(timezone=True) that always hands back aware UTC values.

    PostgreSQL returns aware datetimes already. SQLite returns naive ones,
    which are stored in UTC and get UTC attached here. Naive values on
    write are taken to be UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Superhero(Base):
    """
    A superhero record.

    Lifecycle:
        1. Created by SuperheroService.create (fails on duplicate nickname)
        2. Mutated by update, add_image and remove_image
        3. Deleted permanently by remove (no soft delete)
    """

    __tablename__ = "superheroes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    nickname: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Public hero name, unique (case-sensitive)",
    )

    real_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    origin_description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    superpowers: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    catch_phrase: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Comma-joined image URLs, see app.services.superhero_service.encode_images
    images: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default=text("''"),
        comment="Comma-separated image URLs",
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        UniqueConstraint("nickname", name="uq_superheroes_nickname"),
    )

    def __repr__(self) -> str:
        return f"<Superhero(id={self.id}, nickname='{self.nickname}')>"


# Newest-first listing
Index("idx_superheroes_created_at", Superhero.created_at.desc())
