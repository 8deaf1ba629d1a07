"""Waitlist entries held for a full workshop"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, Index, UniqueConstraint
from sqlmodel import Field, SQLModel


class WaitlistEntry(SQLModel, table=True):
    """FIFO queue slot for a waitlisted registration.

    Positions are 1-based and kept contiguous per workshop.
    """

    __tablename__ = "waitlist_entries"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    workshop_id: uuid.UUID = Field(foreign_key="workshops.id", index=True)
    registration_id: uuid.UUID = Field(foreign_key="registrations.id")
    name: str = Field(default="")
    email: Optional[str] = Field(default="")
    position: int
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint("registration_id", name="uq_waitlist_registration"),
        CheckConstraint("position >= 1", name="ck_waitlist_position_ge_1"),
        Index("idx_waitlist_workshop_position", "workshop_id", "position"),
    )
