"""Init workshop registry

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-10-19 09:12:44.318207

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9a1c2b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

workshop_status = sa.Enum("draft", "published", "archived", name="workshop_status")
registration_close_policy = sa.Enum(
    "start", "1-day", "3-days", "1-week", "custom", name="registration_close_policy"
)
form_field_type = sa.Enum(
    "text",
    "email",
    "phone",
    "number",
    "textarea",
    "select",
    "checkbox",
    "radio",
    "date",
    name="form_field_type",
)
registration_status = sa.Enum(
    "confirmed", "pending", "cancelled", "waitlist", name="registration_status"
)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "workshops",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.VARCHAR(), nullable=False),
        sa.Column("description", sa.VARCHAR(), nullable=False),
        sa.Column("organizer_email", sa.VARCHAR(), nullable=True),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("capacity", sa.INTEGER(), nullable=True),
        sa.Column(
            "registered_count", sa.INTEGER(), server_default="0", nullable=False
        ),
        sa.Column("waitlist_count", sa.INTEGER(), server_default="0", nullable=False),
        sa.Column("enable_waitlist", sa.BOOLEAN(), nullable=False),
        sa.Column("require_approval", sa.BOOLEAN(), nullable=False),
        sa.Column("prevent_duplicates", sa.BOOLEAN(), nullable=False),
        sa.Column("registration_closes", registration_close_policy, nullable=True),
        sa.Column(
            "registration_closes_at", sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column(
            "use_default_fields",
            sa.BOOLEAN(),
            server_default=sa.true(),
            nullable=False,
        ),
        sa.Column(
            "status", workshop_status, server_default="draft", nullable=False
        ),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "capacity IS NULL OR capacity >= 0", name="ck_workshops_capacity_ge_0"
        ),
        sa.CheckConstraint("registered_count >= 0", name="ck_workshops_registered_ge_0"),
        sa.CheckConstraint("waitlist_count >= 0", name="ck_workshops_waitlist_ge_0"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "form_fields",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("workshop_id", sa.Uuid(), nullable=False),
        sa.Column("field_id", sa.VARCHAR(), nullable=False),
        sa.Column("field_type", form_field_type, nullable=False),
        sa.Column("label", sa.VARCHAR(), nullable=False),
        sa.Column("placeholder", sa.VARCHAR(), nullable=True),
        sa.Column("description", sa.VARCHAR(), nullable=True),
        sa.Column("is_required", sa.BOOLEAN(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("default_value", sa.JSON(), nullable=True),
        sa.Column("field_order", sa.INTEGER(), nullable=False),
        sa.ForeignKeyConstraint(["workshop_id"], ["workshops.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "workshop_id", "field_id", name="uq_form_fields_workshop_field"
        ),
    )
    op.create_index(
        op.f("ix_form_fields_workshop_id"), "form_fields", ["workshop_id"], unique=False
    )

    op.create_table(
        "registrations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("workshop_id", sa.Uuid(), nullable=False),
        sa.Column("student_id", sa.VARCHAR(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=False),
        sa.Column("email", sa.VARCHAR(), nullable=True),
        sa.Column("status", registration_status, nullable=False),
        sa.Column("form_data", sa.JSON(), nullable=True),
        sa.Column("waitlist_position", sa.INTEGER(), nullable=True),
        sa.Column("registered_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["workshop_id"], ["workshops.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_registrations_workshop_id"),
        "registrations",
        ["workshop_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_registrations_student_id"), "registrations", ["student_id"], unique=False
    )
    op.create_index(
        op.f("ix_registrations_email"), "registrations", ["email"], unique=False
    )

    op.create_table(
        "waitlist_entries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("workshop_id", sa.Uuid(), nullable=False),
        sa.Column("registration_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=False),
        sa.Column("email", sa.VARCHAR(), nullable=True),
        sa.Column("position", sa.INTEGER(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("position >= 1", name="ck_waitlist_position_ge_1"),
        sa.ForeignKeyConstraint(["registration_id"], ["registrations.id"]),
        sa.ForeignKeyConstraint(["workshop_id"], ["workshops.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("registration_id", name="uq_waitlist_registration"),
    )
    op.create_index(
        op.f("ix_waitlist_entries_workshop_id"),
        "waitlist_entries",
        ["workshop_id"],
        unique=False,
    )
    op.create_index(
        "idx_waitlist_workshop_position",
        "waitlist_entries",
        ["workshop_id", "position"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_waitlist_workshop_position", table_name="waitlist_entries")
    op.drop_index(op.f("ix_waitlist_entries_workshop_id"), table_name="waitlist_entries")
    op.drop_table("waitlist_entries")
    op.drop_index(op.f("ix_registrations_email"), table_name="registrations")
    op.drop_index(op.f("ix_registrations_student_id"), table_name="registrations")
    op.drop_index(op.f("ix_registrations_workshop_id"), table_name="registrations")
    op.drop_table("registrations")
    op.drop_index(op.f("ix_form_fields_workshop_id"), table_name="form_fields")
    op.drop_table("form_fields")
    op.drop_table("workshops")

    bind = op.get_bind()
    for enum_type in (
        registration_status,
        form_field_type,
        registration_close_policy,
        workshop_status,
    ):
        enum_type.drop(bind, checkfirst=True)
