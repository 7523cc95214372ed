"""CMS collection models (entity-attribute-value).

Fields, items and values reference their parent on the same side of the
draft/published pair, so deleting a published collection removes only the
published fields, items and values.
"""

import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKeyConstraint, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from draftsync.models._base import Base, PublishableMixin


class Collection(Base, PublishableMixin):
    """Collection model."""

    __tablename__ = "collections"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sorting: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CollectionField(Base, PublishableMixin):
    """Typed attribute definition of a collection."""

    __tablename__ = "collection_fields"
    __table_args__ = (
        ForeignKeyConstraint(
            ["collection_id", "is_published"],
            ["collections.id", "collections.is_published"],
            ondelete="CASCADE",
        ),
    )

    collection_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    default: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    fillable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reference_collection_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    data: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)


class CollectionItem(Base, PublishableMixin):
    """Item of a collection."""

    __tablename__ = "collection_items"
    __table_args__ = (
        ForeignKeyConstraint(
            ["collection_id", "is_published"],
            ["collections.id", "collections.is_published"],
            ondelete="CASCADE",
        ),
    )

    collection_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True
    )
    manual_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_publishable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class CollectionItemValue(Base, PublishableMixin):
    """Value of one field for one item."""

    __tablename__ = "collection_item_values"
    __table_args__ = (
        ForeignKeyConstraint(
            ["item_id", "is_published"],
            ["collection_items.id", "collection_items.is_published"],
            ondelete="CASCADE",
        ),
        ForeignKeyConstraint(
            ["field_id", "is_published"],
            ["collection_fields.id", "collection_fields.is_published"],
            ondelete="CASCADE",
        ),
    )

    item_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    field_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
