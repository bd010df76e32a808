"""Allow at most one section-wide (sub_section IS NULL) grant per user and section.

Revision ID: 20261020000000
Revises: 20261019100000
Create Date: 2026-10-20

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20261020000000"
down_revision: Union[str, None] = "20261019100000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_index(
        "uq_user_permissions_section_wide",
        "user_permissions",
        ["user_id", "section"],
        unique=True,
        postgresql_where=sa.text("sub_section IS NULL"),
        sqlite_where=sa.text("sub_section IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_user_permissions_section_wide", table_name="user_permissions")
