"""Speaker Service - Handles speaker records and their workshop assignments"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, update
from sqlmodel import Session, select

from workshop_registry.errors import SpeakerNotFoundError
from workshop_registry.models.speaker import Speaker
from workshop_registry.models.workshop import Workshop

logger = logging.getLogger(__name__)

SPEAKER_FIELDS = ("name", "email", "expertise", "bio")


def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(data) - set(SPEAKER_FIELDS)
    if unknown:
        raise ValueError(f"Unknown speaker fields: {', '.join(sorted(unknown))}")

    cleaned = {}
    for key, value in data.items():
        if isinstance(value, str):
            value = value.strip()
        if key == "email":
            value = value.lower() if value else None
        elif value is None:
            value = ""
        cleaned[key] = value
    return cleaned


class SpeakerService:
    """Service for managing speakers"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def create_speaker(self, data: Dict[str, Any]) -> Speaker:
        """
        Create a speaker

        Args:
            data: name (required), email, expertise, bio

        Raises:
            ValueError: if the name is blank or a key is unknown
        """
        speaker = Speaker(**_clean(data))
        if not speaker.name:
            raise ValueError("Speaker name is required")

        self.db.add(speaker)
        self.db.commit()
        self.db.refresh(speaker)

        logger.info(f"Speaker created: {speaker.id}")
        return speaker

    def get_speaker(self, speaker_id: uuid.UUID) -> Speaker:
        speaker = self.db.get(Speaker, speaker_id)
        if not speaker:
            raise SpeakerNotFoundError(speaker_id)
        return speaker

    def list_speakers(self, search: Optional[str] = None) -> List[Speaker]:
        """List speakers by name, optionally filtered on name, email or expertise"""
        statement = select(Speaker)
        if search and search.strip():
            pattern = f"%{search.strip().lower()}%"
            statement = statement.where(
                or_(
                    func.lower(Speaker.name).like(pattern),
                    func.lower(Speaker.email).like(pattern),
                    func.lower(Speaker.expertise).like(pattern),
                )
            )
        return list(self.db.exec(statement.order_by(Speaker.name)).all())

    def workshop_counts(self) -> Dict[uuid.UUID, int]:
        """Number of workshops assigned to each speaker that has any"""
        rows = self.db.exec(
            select(Workshop.speaker_id, func.count(Workshop.id))
            .where(Workshop.speaker_id.is_not(None))
            .group_by(Workshop.speaker_id)
        ).all()
        return {speaker_id: count for speaker_id, count in rows}

    def update_speaker(self, speaker_id: uuid.UUID, data: Dict[str, Any]) -> Speaker:
        speaker = self.get_speaker(speaker_id)
        cleaned = _clean(data)
        if "name" in cleaned and not cleaned["name"]:
            raise ValueError("Speaker name is required")

        for key, value in cleaned.items():
            setattr(speaker, key, value)
        speaker.updated_at = datetime.now(timezone.utc)
        self.db.add(speaker)
        self.db.commit()
        self.db.refresh(speaker)

        logger.info(f"Speaker updated: {speaker.id} ({', '.join(cleaned)})")
        return speaker

    def delete_speaker(self, speaker_id: uuid.UUID) -> None:
        """Delete a speaker; workshops they were assigned to keep running without one"""
        speaker = self.get_speaker(speaker_id)

        detached = self.db.execute(
            update(Workshop)
            .where(Workshop.speaker_id == speaker_id)
            .values(speaker_id=None, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        self.db.delete(speaker)
        self.db.commit()

        logger.info(
            f"Speaker deleted: {speaker_id} (unassigned from {detached.rowcount} workshops)"
        )
