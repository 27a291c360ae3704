"""create daily metrics table

Revision ID: 3c1e7d9b5a20
Revises:
Create Date: 2026-10-01 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


# revision identifiers, used by Alembic.
revision: str = '3c1e7d9b5a20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

COUNTER_COLUMNS = (
    "reach_daily",
    "impressions_daily",
    "profile_views_daily",
    "email_contacts",
    "website_clicks",
    "phone_call_clicks",
    "text_message_clicks",
    "get_directions_clicks",
    "reach_28d",
    "impressions_28d",
)
BREAKDOWN_COLUMNS = (
    "audience_city",
    "audience_gender_age",
    "audience_country",
    "audience_locale",
    "online_followers",
)


def upgrade() -> None:
    op.create_table(
        "daily_metrics",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False, unique=True, comment="Snapshot day (natural key)"),
        sa.Column("followers_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("media_count", sa.Integer(), nullable=True),
        *[
            sa.Column(name, sa.Integer(), nullable=False, server_default="0")
            for name in COUNTER_COLUMNS
        ],
        *[
            sa.Column(name, JSONB(astext_type=sa.Text()), nullable=True)
            for name in BREAKDOWN_COLUMNS
        ],
        sa.Column(
            "raw_payload",
            JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("timezone('UTC', now())"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            server_default=sa.text("timezone('UTC', now())"),
            nullable=False,
        ),
    )
    op.create_index(
        "idx_daily_metrics_date",
        "daily_metrics",
        ["date"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("idx_daily_metrics_date", table_name="daily_metrics")
    op.drop_table("daily_metrics")
