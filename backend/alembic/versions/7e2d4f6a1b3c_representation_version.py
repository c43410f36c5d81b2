"""Add representation_version to content_types

Rows created before this revision keep a NULL version and are upgraded to
the unified representation when read.

Revision ID: 7e2d4f6a1b3c
Revises: 1c5e8d2a9b40
Create Date: 2026-10-14 16:02:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "7e2d4f6a1b3c"
down_revision = "1c5e8d2a9b40"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("content_types") as batch_op:
        batch_op.add_column(sa.Column("representation_version", sa.Integer(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("content_types") as batch_op:
        batch_op.drop_column("representation_version")
