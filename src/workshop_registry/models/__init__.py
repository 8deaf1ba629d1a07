"""Database models for Workshop Registry"""

from workshop_registry.models.form_field import FormField
from workshop_registry.models.registration import Registration, RegistrationStatus
from workshop_registry.models.speaker import Speaker
from workshop_registry.models.waitlist import WaitlistEntry
from workshop_registry.models.workshop import Workshop, WorkshopStatus

__all__ = [
    "Workshop",
    "WorkshopStatus",
    "FormField",
    "Registration",
    "RegistrationStatus",
    "WaitlistEntry",
    "Speaker",
]
