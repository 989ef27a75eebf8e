"""Create talks and transcripts tables."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3b8e1f2a9c4d"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create talks and transcripts tables."""
    op.create_table(
        "talks",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("filmed", sa.DateTime(), nullable=True),
        sa.Column("published", sa.DateTime(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image", sa.String(length=500), nullable=True),
        sa.Column("languages", sa.JSON(), nullable=True),
        sa.Column("media_slug", sa.String(length=255), nullable=False),
        sa.Column("media_pad", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_talks_id"), "talks", ["id"], unique=False)
    op.create_index(op.f("ix_talks_slug"), "talks", ["slug"], unique=True)

    op.create_table(
        "transcripts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["id"], ["talks.id"]),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    """Drop talks and transcripts tables."""
    op.drop_table("transcripts")
    op.drop_index(op.f("ix_talks_slug"), table_name="talks")
    op.drop_index(op.f("ix_talks_id"), table_name="talks")
    op.drop_table("talks")
