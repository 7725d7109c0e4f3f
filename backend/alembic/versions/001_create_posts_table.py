"""Create posts table

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the `posts` table backing the post pages.
How:   Integer autoincrement key, a 255-character title, unbounded content
       and timezone-aware created/updated timestamps.

Rollback: downgrade() drops the table and every post in it.
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
        "posts",

        sa.Column(
            "id",
            sa.Integer(),
            autoincrement=True,
            nullable=False,
            comment="Unique identifier, assigned by the database",
        ),

        sa.Column(
            "title",
            sa.String(255),
            nullable=False,
            comment="Post title, trimmed, 1-255 characters",
        ),

        # TEXT: no length limit on the body
        sa.Column(
            "content",
            sa.Text(),
            nullable=False,
            comment="Post body",
        ),

        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When the post was created (UTC)",
        ),

        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When the post was last changed (UTC)",
        ),

        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )


def downgrade() -> None:
    """Drop the posts table. Destructive: all posts are lost."""
    op.drop_table("posts")
