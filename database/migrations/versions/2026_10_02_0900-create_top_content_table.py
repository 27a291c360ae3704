"""create top content table

Revision ID: 8f2a4c6e1b37
Revises: 3c1e7d9b5a20
Create Date: 2026-10-02 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8f2a4c6e1b37'
down_revision: Union[str, Sequence[str], None] = '3c1e7d9b5a20'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "top_content",
        sa.Column("id", sa.String(length=100), primary_key=True, comment="Instagram media ID"),
        sa.Column("media_type", sa.String(length=50), nullable=True),
        sa.Column("media_url", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("caption", sa.Text(), nullable=True),
        sa.Column("permalink", sa.Text(), nullable=True),
        sa.Column("like_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("comments_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("timestamp", sa.DateTime(), nullable=True, comment="When the media was posted on Instagram"),
        sa.Column(
            "last_updated",
            sa.DateTime(),
            server_default=sa.text("timezone('UTC', now())"),
            nullable=False,
        ),
    )
    op.create_index("idx_top_content_like_count", "top_content", ["like_count"])


def downgrade() -> None:
    op.drop_index("idx_top_content_like_count", table_name="top_content")
    op.drop_table("top_content")
