"""Add content_types, content_items and content_relations tables

Revision ID: 1c5e8d2a9b40
Revises:
Create Date: 2026-10-12 10:14:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "1c5e8d2a9b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "content_types",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("json_schema", sa.Text(), nullable=False),
        sa.Column("field_config", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_content_types_slug"), "content_types", ["slug"], unique=True)

    op.create_table(
        "content_items",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("content_type_id", sa.String(length=36), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("data", sa.Text(), nullable=False),
        sa.Column("author_id", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["content_type_id"], ["content_types.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_content_items_content_type_id"), "content_items", ["content_type_id"], unique=False
    )
    op.create_index(op.f("ix_content_items_slug"), "content_items", ["slug"], unique=False)
    op.create_index(
        op.f("ix_content_items_created_at"), "content_items", ["created_at"], unique=False
    )

    op.create_table(
        "content_relations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("source_id", sa.String(length=36), nullable=False),
        sa.Column("target_id", sa.String(length=36), nullable=False),
        sa.Column("field_name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["source_id"], ["content_items.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["target_id"], ["content_items.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_content_relations_source_id"), "content_relations", ["source_id"], unique=False
    )
    op.create_index(
        op.f("ix_content_relations_target_id"), "content_relations", ["target_id"], unique=False
    )
    op.create_index(
        op.f("ix_content_relations_field_name"), "content_relations", ["field_name"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_content_relations_field_name"), table_name="content_relations")
    op.drop_index(op.f("ix_content_relations_target_id"), table_name="content_relations")
    op.drop_index(op.f("ix_content_relations_source_id"), table_name="content_relations")
    op.drop_table("content_relations")
    op.drop_index(op.f("ix_content_items_created_at"), table_name="content_items")
    op.drop_index(op.f("ix_content_items_slug"), table_name="content_items")
    op.drop_index(op.f("ix_content_items_content_type_id"), table_name="content_items")
    op.drop_table("content_items")
    op.drop_index(op.f("ix_content_types_slug"), table_name="content_types")
    op.drop_table("content_types")
