"""Add speakers and workshops.speaker_id

Revision ID: 5c2e8d41a9b3
Revises: 3f9a1c2b7d10
Create Date: 2026-10-19 14:03:27.551902

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c2e8d41a9b3"
down_revision: Union[str, Sequence[str], None] = "3f9a1c2b7d10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema: add speakers and link workshops to a speaker."""
    op.create_table(
        "speakers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=False),
        sa.Column("email", sa.VARCHAR(), nullable=True),
        sa.Column("expertise", sa.VARCHAR(), nullable=False),
        sa.Column("bio", sa.VARCHAR(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_speakers_email"), "speakers", ["email"], unique=False)

    # Batch mode so SQLite can add the foreign key
    with op.batch_alter_table("workshops") as batch_op:
        batch_op.add_column(sa.Column("speaker_id", sa.Uuid(), nullable=True))
        batch_op.create_index(
            batch_op.f("ix_workshops_speaker_id"), ["speaker_id"], unique=False
        )
        batch_op.create_foreign_key(
            "fk_workshops_speaker_id", "speakers", ["speaker_id"], ["id"]
        )


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table("workshops") as batch_op:
        batch_op.drop_constraint("fk_workshops_speaker_id", type_="foreignkey")
        batch_op.drop_index(batch_op.f("ix_workshops_speaker_id"))
        batch_op.drop_column("speaker_id")

    op.drop_index(op.f("ix_speakers_email"), table_name="speakers")
    op.drop_table("speakers")
