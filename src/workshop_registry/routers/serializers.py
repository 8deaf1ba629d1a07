"""JSON shapes returned by the API"""

from datetime import datetime
from typing import Any, Dict, Optional

from workshop_registry.models.form_config import RegistrationFormConfig, effective_fields
from workshop_registry.models.registration import Registration
from workshop_registry.models.speaker import Speaker
from workshop_registry.models.workshop import Workshop, registration_close_time


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _value(member: Any) -> Any:
    return getattr(member, "value", member)


def workshop_to_dict(workshop: Workshop) -> Dict[str, Any]:
    closes_at = registration_close_time(workshop)
    return {
        "id": str(workshop.id),
        "title": workshop.title,
        "description": workshop.description,
        "organizer_email": workshop.organizer_email,
        "speaker_id": str(workshop.speaker_id) if workshop.speaker_id else None,
        "starts_at": _iso(workshop.starts_at),
        "ends_at": _iso(workshop.ends_at),
        "capacity": workshop.capacity,
        "registered_count": workshop.registered_count,
        "waitlist_count": workshop.waitlist_count,
        "enable_waitlist": workshop.enable_waitlist,
        "require_approval": workshop.require_approval,
        "prevent_duplicates": workshop.prevent_duplicates,
        "registration_closes": _value(workshop.registration_closes),
        "registration_closes_at": _iso(workshop.registration_closes_at),
        "registration_closes_effective": _iso(closes_at),
        "status": _value(workshop.status),
        "created_at": _iso(workshop.created_at),
        "updated_at": _iso(workshop.updated_at),
    }


def form_config_to_dict(config: RegistrationFormConfig) -> Dict[str, Any]:
    return {
        "use_default_fields": config.use_default_fields,
        "custom_fields": [
            field.model_dump(mode="json", exclude_none=True)
            for field in config.custom_fields
        ],
        "fields": [
            field.model_dump(mode="json", exclude_none=True)
            for field in effective_fields(config)
        ],
    }


def registration_to_dict(registration: Registration) -> Dict[str, Any]:
    return {
        "id": str(registration.id),
        "workshop_id": str(registration.workshop_id),
        "student_id": registration.student_id,
        "name": registration.name,
        "email": registration.email,
        "status": _value(registration.status),
        "waitlist_position": registration.waitlist_position,
        "form_data": registration.form_data or {},
        "registered_at": _iso(registration.registered_at),
        "updated_at": _iso(registration.updated_at),
    }


def speaker_to_dict(speaker: Speaker, workshop_count: int = 0) -> Dict[str, Any]:
    return {
        "id": str(speaker.id),
        "name": speaker.name,
        "email": speaker.email,
        "expertise": speaker.expertise,
        "bio": speaker.bio,
        "workshop_count": workshop_count,
        "created_at": _iso(speaker.created_at),
        "updated_at": _iso(speaker.updated_at),
    }
