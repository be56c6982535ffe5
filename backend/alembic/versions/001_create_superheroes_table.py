"""Create superheroes table

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the `superheroes` table with a UNIQUE nickname and a
       created_at DESC index for the newest-first listing.

Rollback: downgrade() drops the table (all data lost).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "superheroes",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column(
            "nickname",
            sa.String(255),
            nullable=False,
            comment="Public hero name, unique (case-sensitive)",
        ),
        sa.Column("real_name", sa.String(255), nullable=False),
        sa.Column("origin_description", sa.Text(), nullable=False),
        sa.Column("superpowers", sa.JSON(), nullable=False),
        sa.Column("catch_phrase", sa.Text(), nullable=False),
        # Comma-joined image URLs; the service encodes/decodes
        sa.Column(
            "images",
            sa.Text(),
            nullable=False,
            server_default=sa.text("''"),
            comment="Comma-separated image URLs",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        # Closes the check-then-insert race on nickname
        sa.UniqueConstraint("nickname", name="uq_superheroes_nickname"),
    )

    op.create_index(
        "idx_superheroes_created_at",
        "superheroes",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_superheroes_created_at", table_name="superheroes")
    op.drop_table("superheroes")
