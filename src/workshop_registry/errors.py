"""Domain errors raised by the registration services.

Services raise these; routers translate them into HTTP responses. Admission
rejections ("closed", "full", "duplicate") are not errors, they come back as
an ``Outcome`` from the admission engine.
"""

from dataclasses import dataclass
from typing import List, Optional


class InvalidFieldError(ValueError):
    """A field definition violates an authoring rule"""

    def __init__(self, message: str, field_id: Optional[str] = None):
        super().__init__(message)
        self.field_id = field_id
        self.message = message

    def to_dict(self) -> dict:
        return {"field_id": self.field_id, "message": self.message}


class FieldNotFoundError(LookupError):
    """Field id does not exist in the current schema"""

    def __init__(self, field_id: str):
        super().__init__(f"Field '{field_id}' not found")
        self.field_id = field_id


class UnknownFieldIdError(ValueError):
    """Reorder request is not a permutation of the current field ids"""

    def __init__(self, unknown_ids: List[str], missing_ids: List[str]):
        parts = []
        if unknown_ids:
            parts.append(f"unknown ids: {', '.join(unknown_ids)}")
        if missing_ids:
            parts.append(f"missing ids: {', '.join(missing_ids)}")
        super().__init__(
            "Field order must list every current field exactly once ("
            + "; ".join(parts or ["duplicate ids"])
            + ")"
        )
        self.unknown_ids = unknown_ids
        self.missing_ids = missing_ids


class SchemaValidationError(ValueError):
    """Aggregate authoring failure reported before publishing"""

    def __init__(self, errors: List[InvalidFieldError]):
        super().__init__(
            "Registration form is invalid: " + "; ".join(e.message for e in errors)
        )
        self.errors = errors


@dataclass(frozen=True)
class FieldFailure:
    field_id: str
    message: str

    def to_dict(self) -> dict:
        return {"field_id": self.field_id, "message": self.message}


class SubmissionValidationError(ValueError):
    """Submitted answers violate the derived validation rules"""

    def __init__(self, failures: List[FieldFailure]):
        super().__init__(
            "Registration form has errors: "
            + "; ".join(f"{f.field_id}: {f.message}" for f in failures)
        )
        self.failures = failures


class WorkshopNotFoundError(LookupError):
    def __init__(self, workshop_id):
        super().__init__(f"Workshop {workshop_id} not found")
        self.workshop_id = workshop_id


class SpeakerNotFoundError(LookupError):
    def __init__(self, speaker_id):
        super().__init__(f"Speaker {speaker_id} not found")
        self.speaker_id = speaker_id


class RegistrationNotFoundError(LookupError):
    def __init__(self, registration_id):
        super().__init__(f"Registration {registration_id} not found")
        self.registration_id = registration_id


class RegistrationNotAllowedError(Exception):
    """Workshop exists but is not accepting registrations (draft or archived)"""


class InvalidStatusTransitionError(ValueError):
    """Registration status change that the lifecycle does not allow"""


class PersistenceConflict(Exception):
    """Counter precondition failed between the admission decision and the write"""


class PersistenceUnavailable(Exception):
    """Storage could not be reached; the caller may retry"""
