"""Component and layer style models."""

from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from draftsync.models._base import Base, HashedMixin, PublishableMixin


class Component(Base, PublishableMixin, HashedMixin):
    """Reusable layer tree."""

    __tablename__ = "components"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    layers: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)


class LayerStyle(Base, PublishableMixin, HashedMixin):
    """Named style preset applied to layers."""

    __tablename__ = "layer_styles"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    classes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    design: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
