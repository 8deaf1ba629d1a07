"""Speakers who run workshops"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class Speaker(SQLModel, table=True):
    """Speaker managed by organizers and attached to workshops"""

    __tablename__ = "speakers"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    email: Optional[str] = Field(default=None, index=True)
    expertise: str = Field(default="")
    bio: str = Field(default="")
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
