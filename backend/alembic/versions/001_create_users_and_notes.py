"""Create users and notes tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates `users` and `notes` for the notes application.
How:   notes.owner_user_id references users.id through a DEFERRABLE INITIALLY
       DEFERRED foreign key: the account cascade deletes the user row before
       the notes inside one transaction, and the constraint is checked at
       COMMIT. A plain (immediate) FK would reject the first DELETE.

Rollback: downgrade() drops both tables (destructive).
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
        "users",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("username", sa.String(150), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("profile", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "notes",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("date", sa.String(64), nullable=False),
        sa.Column(
            "image",
            sa.String(255),
            nullable=False,
            comment="Image filename relative to the storage root",
        ),
        sa.Column("owner_user_id", sa.String(64), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["owner_user_id"],
            ["users.id"],
            deferrable=True,
            initially="DEFERRED",
        ),
    )

    # Both cascade steps (resolve, bulk delete) filter on the owner
    op.create_index("idx_notes_owner_user_id", "notes", ["owner_user_id"])


def downgrade() -> None:
    op.drop_index("idx_notes_owner_user_id", table_name="notes")
    op.drop_table("notes")
    op.drop_table("users")
