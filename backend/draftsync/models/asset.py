"""Asset, asset folder and font models."""

import uuid
from typing import Optional

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from draftsync.models._base import Base, PublishableMixin


class AssetFolder(Base, PublishableMixin):
    """Folder in the asset tree."""

    __tablename__ = "asset_folders"

    asset_folder_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Asset(Base, PublishableMixin):
    """Uploaded file metadata. The bytes live in external storage under ``storage_path``."""

    __tablename__ = "assets"

    asset_folder_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )
    filename: Mapped[str] = mapped_column(String(512), nullable=False)
    storage_path: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    public_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    mime_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class Font(Base, PublishableMixin):
    """Custom or hosted font."""

    __tablename__ = "fonts"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    family: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    variants: Mapped[Optional[list]] = mapped_column(JSONB, nullable=True)
    weights: Mapped[Optional[list]] = mapped_column(JSONB, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    storage_path: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
