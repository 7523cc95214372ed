"""Page and page layers models."""

import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKeyConstraint, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from draftsync.models._base import Base, HashedMixin, PublishableMixin


class Page(Base, PublishableMixin, HashedMixin):
    """Page model."""

    __tablename__ = "pages"

    page_folder_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_index: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_dynamic: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # 401, 404 or 500 for error pages
    error_page: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    settings: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)


class PageLayers(Base, PublishableMixin, HashedMixin):
    """Layer tree of a page. Removed with its page on the same side."""

    __tablename__ = "page_layers"
    __table_args__ = (
        ForeignKeyConstraint(
            ["page_id", "is_published"],
            ["pages.id", "pages.is_published"],
            ondelete="CASCADE",
        ),
    )

    page_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    layers: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    generated_css: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
