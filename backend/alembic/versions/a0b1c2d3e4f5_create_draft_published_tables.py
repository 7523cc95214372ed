"""Create draft/published tables.

Revision ID: a0b1c2d3e4f5
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision = "a0b1c2d3e4f5"
down_revision = None
branch_labels = None
depends_on = None


def _publishable_columns():
    """Key, side and lifecycle columns shared by every draft/published table."""
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _pk(table: str):
    return sa.PrimaryKeyConstraint("id", "is_published", name=f"pk_{table}")


def _same_side_fk(columns, parent: str):
    """Composite reference to the parent row on the same side, cascading deletes."""
    return sa.ForeignKeyConstraint(
        [columns, "is_published"],
        [f"{parent}.id", f"{parent}.is_published"],
        ondelete="CASCADE",
    )


def upgrade():
    """Create every draft/published table plus the settings key/value table."""
    op.create_table(
        "page_folders",
        *_publishable_columns(),
        sa.Column("page_folder_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("depth", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("settings", postgresql.JSONB(), nullable=False, server_default="{}"),
        _pk("page_folders"),
    )

    op.create_table(
        "pages",
        *_publishable_columns(),
        sa.Column("page_folder_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("depth", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_index", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_dynamic", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("error_page", sa.Integer(), nullable=True),
        sa.Column("settings", postgresql.JSONB(), nullable=False, server_default="{}"),
        sa.Column("content_hash", sa.String(64), nullable=True),
        _pk("pages"),
    )

    op.create_table(
        "page_layers",
        *_publishable_columns(),
        sa.Column("page_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("layers", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("generated_css", sa.Text(), nullable=True),
        sa.Column("content_hash", sa.String(64), nullable=True),
        _pk("page_layers"),
        _same_side_fk("page_id", "pages"),
    )
    op.create_index("ix_page_layers_page_id", "page_layers", ["page_id"])

    op.create_table(
        "components",
        *_publishable_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("layers", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("content_hash", sa.String(64), nullable=True),
        _pk("components"),
    )

    op.create_table(
        "layer_styles",
        *_publishable_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("classes", sa.Text(), nullable=True),
        sa.Column("design", postgresql.JSONB(), nullable=True),
        sa.Column("content_hash", sa.String(64), nullable=True),
        _pk("layer_styles"),
    )

    op.create_table(
        "locales",
        *_publishable_columns(),
        sa.Column("code", sa.String(16), nullable=False),
        sa.Column("label", sa.String(255), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        _pk("locales"),
    )

    op.create_table(
        "translations",
        *_publishable_columns(),
        sa.Column("locale_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("source_type", sa.String(50), nullable=False),
        sa.Column("source_id", sa.String(255), nullable=False),
        sa.Column("content_key", sa.String(255), nullable=False),
        sa.Column("content_type", sa.String(50), nullable=False),
        sa.Column("content_value", sa.Text(), nullable=True),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        _pk("translations"),
    )
    op.create_index("ix_translations_locale_id", "translations", ["locale_id"])

    # CMS collections (entity-attribute-value)
    op.create_table(
        "collections",
        *_publishable_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sorting", postgresql.JSONB(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        _pk("collections"),
    )

    op.create_table(
        "collection_fields",
        *_publishable_columns(),
        sa.Column("collection_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("key", sa.String(255), nullable=True),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("default", sa.Text(), nullable=True),
        sa.Column("fillable", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reference_collection_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("hidden", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("data", postgresql.JSONB(), nullable=True),
        _pk("collection_fields"),
        _same_side_fk("collection_id", "collections"),
    )
    op.create_index("ix_collection_fields_collection_id", "collection_fields", ["collection_id"])

    op.create_table(
        "collection_items",
        *_publishable_columns(),
        sa.Column("collection_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("manual_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_publishable", sa.Boolean(), nullable=False, server_default=sa.true()),
        _pk("collection_items"),
        _same_side_fk("collection_id", "collections"),
    )
    op.create_index("ix_collection_items_collection_id", "collection_items", ["collection_id"])

    op.create_table(
        "collection_item_values",
        *_publishable_columns(),
        sa.Column("item_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("field_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        _pk("collection_item_values"),
        _same_side_fk("item_id", "collection_items"),
        _same_side_fk("field_id", "collection_fields"),
    )
    op.create_index("ix_collection_item_values_item_id", "collection_item_values", ["item_id"])
    op.create_index("ix_collection_item_values_field_id", "collection_item_values", ["field_id"])

    # Assets and fonts; the bytes live in external storage
    op.create_table(
        "asset_folders",
        *_publishable_columns(),
        sa.Column("asset_folder_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("depth", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        _pk("asset_folders"),
    )

    op.create_table(
        "assets",
        *_publishable_columns(),
        sa.Column("asset_folder_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("filename", sa.String(512), nullable=False),
        sa.Column("storage_path", sa.String(1024), nullable=True),
        sa.Column("public_url", sa.String(2048), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("mime_type", sa.String(255), nullable=True),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        _pk("assets"),
    )

    op.create_table(
        "fonts",
        *_publishable_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("family", sa.String(255), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("variants", postgresql.JSONB(), nullable=True),
        sa.Column("weights", postgresql.JSONB(), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("storage_path", sa.String(1024), nullable=True),
        _pk("fonts"),
    )

    op.create_table(
        "settings",
        sa.Column("key", sa.String(255), primary_key=True),
        sa.Column("value", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )


def downgrade():
    """Drop all tables, children first."""
    for table in (
        "settings",
        "fonts",
        "assets",
        "asset_folders",
        "collection_item_values",
        "collection_items",
        "collection_fields",
        "collections",
        "translations",
        "locales",
        "layer_styles",
        "components",
        "page_layers",
        "pages",
        "page_folders",
    ):
        op.drop_table(table)
