"""Declarative base and the draft/published column mixin."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class PublishableMixin:
    """Columns shared by every draft/published table.

    ``(id, is_published)`` is the composite primary key: the draft and the
    published copy of an entity share ``id``.
    """

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    is_published: Mapped[bool] = mapped_column(
        Boolean, primary_key=True, nullable=False, default=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class HashedMixin:
    """Fingerprint column for entities compared hash-to-hash."""

    content_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
