"""SQLModel Registration model"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


class RegistrationStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"
    WAITLIST = "waitlist"


# Statuses that hold a capacity slot
SEATED_STATUSES = frozenset({RegistrationStatus.CONFIRMED, RegistrationStatus.PENDING})


class Registration(SQLModel, table=True):
    """Registration model for workshop form submissions"""

    __tablename__ = "registrations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    workshop_id: uuid.UUID = Field(foreign_key="workshops.id", index=True)
    student_id: str = Field(index=True)  # Account id or generated guest id
    name: str = Field(default="")
    email: Optional[str] = Field(default="", index=True)
    status: RegistrationStatus = Field(
        default=RegistrationStatus.CONFIRMED,
        sa_column=Column(
            SAEnum(
                RegistrationStatus,
                name="registration_status",
                values_callable=lambda enum: [e.value for e in enum],
            ),
            nullable=False,
        ),
    )
    form_data: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    waitlist_position: Optional[int] = None
    registered_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
