"""SQLModel Workshop model"""

import enum
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, true
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


class WorkshopStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class RegistrationClosePolicy(str, enum.Enum):
    """When registration stops accepting submissions"""

    AT_START = "start"
    ONE_DAY_BEFORE = "1-day"
    THREE_DAYS_BEFORE = "3-days"
    ONE_WEEK_BEFORE = "1-week"
    CUSTOM = "custom"


CLOSE_POLICY_OFFSETS = {
    RegistrationClosePolicy.AT_START: timedelta(0),
    RegistrationClosePolicy.ONE_DAY_BEFORE: timedelta(days=1),
    RegistrationClosePolicy.THREE_DAYS_BEFORE: timedelta(days=3),
    RegistrationClosePolicy.ONE_WEEK_BEFORE: timedelta(weeks=1),
}


class Workshop(SQLModel, table=True):
    """Workshop model.

    Times are stored in UTC. ``registered_count`` and ``waitlist_count`` are
    only changed by the admission service through conditional updates.
    """

    __tablename__ = "workshops"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str
    description: str = Field(default="")
    organizer_email: Optional[str] = None
    speaker_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="speakers.id", index=True
    )
    starts_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    ends_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    # 0 or NULL means unlimited
    capacity: Optional[int] = Field(default=None)
    registered_count: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default="0"),
    )
    waitlist_count: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default="0"),
    )
    enable_waitlist: bool = Field(default=False)
    require_approval: bool = Field(default=False)
    prevent_duplicates: bool = Field(default=False)

    registration_closes: Optional[RegistrationClosePolicy] = Field(
        default=None,
        sa_column=Column(
            SAEnum(
                RegistrationClosePolicy,
                name="registration_close_policy",
                values_callable=lambda enum: [e.value for e in enum],
            ),
            nullable=True,
        ),
    )
    registration_closes_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    use_default_fields: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, server_default=true()),
    )
    status: WorkshopStatus = Field(
        default=WorkshopStatus.DRAFT,
        sa_column=Column(
            SAEnum(
                WorkshopStatus,
                name="workshop_status",
                values_callable=lambda enum: [e.value for e in enum],
            ),
            nullable=False,
            server_default=WorkshopStatus.DRAFT.value,
        ),
    )
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        CheckConstraint(
            "capacity IS NULL OR capacity >= 0", name="ck_workshops_capacity_ge_0"
        ),
        CheckConstraint("registered_count >= 0", name="ck_workshops_registered_ge_0"),
        CheckConstraint("waitlist_count >= 0", name="ck_workshops_waitlist_ge_0"),
    )

    @property
    def has_unlimited_capacity(self) -> bool:
        return not self.capacity


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def registration_close_time(workshop: Workshop) -> Optional[datetime]:
    """Earliest point at which registration is closed, or None if never"""
    candidates = []

    policy = (
        RegistrationClosePolicy(workshop.registration_closes)
        if workshop.registration_closes
        else None
    )
    starts_at = as_utc(workshop.starts_at)
    if policy == RegistrationClosePolicy.CUSTOM:
        if workshop.registration_closes_at is not None:
            candidates.append(as_utc(workshop.registration_closes_at))
    elif policy is not None and starts_at is not None:
        candidates.append(starts_at - CLOSE_POLICY_OFFSETS[policy])

    ends_at = as_utc(workshop.ends_at)
    if ends_at is not None:
        candidates.append(ends_at)

    return min(candidates) if candidates else None
