"""Create the table metadata registry.

Revision ID: 7e2a91c4d3b0
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "7e2a91c4d3b0"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # gen_random_uuid() used by mirrored tables ships with pgcrypto before PG 13.
    op.execute(sa.text("CREATE EXTENSION IF NOT EXISTS pgcrypto"))

    op.create_table(
        "_table_metadata",
        sa.Column("table_name", sa.Text(), primary_key=True, nullable=False),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("airtable_table_id", sa.Text(), nullable=True),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    )
    op.create_index(
        "idx_table_metadata_display_name",
        "_table_metadata",
        ["display_name"],
    )


def downgrade() -> None:
    op.drop_index("idx_table_metadata_display_name", table_name="_table_metadata")
    op.drop_table("_table_metadata")
