"""Registration service for handling workshop form submissions"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from workshop_registry.backends.llm_client import LLMClient
from workshop_registry.config import config
from workshop_registry.errors import (
    InvalidStatusTransitionError,
    RegistrationNotAllowedError,
    RegistrationNotFoundError,
    WorkshopNotFoundError,
)
from workshop_registry.models.form_config import EMAIL_FIELD_ID, FULL_NAME_FIELD_ID
from workshop_registry.models.registration import Registration, RegistrationStatus
from workshop_registry.models.workshop import Workshop, WorkshopStatus
from workshop_registry.services.admission_service import (
    AdmissionService,
    Outcome,
    OutcomeKind,
    RejectionReason,
)
from workshop_registry.services.form_field_service import FormFieldService
from workshop_registry.services.validation_service import derive_validator
from workshop_registry.system_prompts import CONFIRMATION_MESSAGE_PROMPT

logger = logging.getLogger(__name__)


@dataclass
class RegistrationResult:
    outcome: Outcome
    registration: Optional[Registration] = None


def generate_guest_id() -> str:
    return f"guest-{uuid.uuid4().hex[:12]}"


class RegistrationService:
    """Service for managing workshop registrations"""

    def __init__(self, db_session: Session, llm_client: Optional[LLMClient] = None):
        self.db = db_session
        self.llm_client = llm_client
        self.admission = AdmissionService(
            db_session, max_attempts=config["admission_max_attempts"]
        )

    def _get_workshop(self, workshop_id: uuid.UUID) -> Workshop:
        workshop = self.db.get(Workshop, workshop_id)
        if not workshop:
            raise WorkshopNotFoundError(workshop_id)
        return workshop

    def _is_duplicate(self, workshop_id: uuid.UUID, email: Optional[str]) -> bool:
        if not email:
            return False
        stmt = select(Registration.id).where(
            Registration.workshop_id == workshop_id,
            Registration.email == email.strip().lower(),
            Registration.status != RegistrationStatus.CANCELLED,
        )
        return self.db.exec(stmt).first() is not None

    def submit_registration(
        self,
        workshop_id: uuid.UUID,
        form_data: Dict[str, Any],
        student_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> RegistrationResult:
        """
        Validate a submission and run it through admission.

        Args:
            workshop_id: UUID of the workshop
            form_data: Raw answers keyed by field id
            student_id: Account id of the respondent; a guest id is generated if absent
            now: Decision time (defaults to the current time)

        Returns:
            RegistrationResult with the outcome and, when admitted, the stored registration

        Raises:
            WorkshopNotFoundError: if the workshop doesn't exist
            RegistrationNotAllowedError: if the workshop is not published
            SubmissionValidationError: if any answer fails validation
        """
        workshop = self._get_workshop(workshop_id)
        if workshop.status != WorkshopStatus.PUBLISHED:
            raise RegistrationNotAllowedError("Workshop is not accepting registrations")

        form_config = FormFieldService(self.db).load_form_config(workshop)
        cleaned = derive_validator(form_config).clean(form_data)

        email = cleaned.get(EMAIL_FIELD_ID)
        if workshop.prevent_duplicates and self._is_duplicate(workshop_id, email):
            logger.info(f"Duplicate registration for workshop {workshop_id} refused")
            return RegistrationResult(Outcome.rejected(RejectionReason.DUPLICATE))

        registration = Registration(
            workshop_id=workshop_id,
            student_id=student_id or generate_guest_id(),
            name=cleaned.get(FULL_NAME_FIELD_ID, ""),
            email=email or "",
            form_data=cleaned,
        )

        outcome = self.admission.admit_and_record(workshop_id, registration, now)
        if outcome.kind == OutcomeKind.REJECTED:
            return RegistrationResult(outcome)
        return RegistrationResult(outcome, registration)

    def get_registration_by_id(
        self, registration_id: uuid.UUID
    ) -> Optional[Registration]:
        """Get a registration by ID"""
        stmt = select(Registration).where(Registration.id == registration_id)
        return self.db.exec(stmt).first()

    def _require_registration(self, registration_id: uuid.UUID) -> Registration:
        registration = self.get_registration_by_id(registration_id)
        if not registration:
            raise RegistrationNotFoundError(registration_id)
        return registration

    def get_registrations_for_workshop(
        self,
        workshop_id: uuid.UUID,
        status: Optional[RegistrationStatus] = None,
    ) -> List[Registration]:
        """Get registrations for a workshop, oldest first"""
        stmt = select(Registration).where(Registration.workshop_id == workshop_id)
        if status is not None:
            stmt = stmt.where(Registration.status == status)
        stmt = stmt.order_by(Registration.registered_at)
        return list(self.db.exec(stmt).all())

    def get_registration_count_for_workshop(self, workshop_id: uuid.UUID) -> int:
        """Get the total number of registrations for a workshop"""
        stmt = select(func.count(Registration.id)).where(
            Registration.workshop_id == workshop_id
        )
        return self.db.exec(stmt).one()

    def approve_registration(self, registration_id: uuid.UUID) -> Registration:
        """Confirm a registration that was waiting for organizer approval"""
        registration = self._require_registration(registration_id)
        if registration.status != RegistrationStatus.PENDING:
            raise InvalidStatusTransitionError(
                f"Only pending registrations can be approved (status is {registration.status.value})"
            )

        # A cancellation racing this approval must not be turned back into a seat
        if not self.admission.change_status(
            registration, RegistrationStatus.PENDING, RegistrationStatus.CONFIRMED
        ):
            self.db.rollback()
            raise InvalidStatusTransitionError(
                "Registration changed while it was being approved"
            )
        self.db.commit()
        self.db.refresh(registration)

        logger.info(f"Approved registration {registration.id}")
        return registration

    def cancel_registration(
        self, registration_id: uuid.UUID, promote_next: bool = False
    ) -> Registration:
        """
        Cancel a registration and release the seat or waitlist place it held.

        Args:
            registration_id: UUID of the registration
            promote_next: Move the head of the waitlist into the freed seat

        Returns:
            The cancelled registration
        """
        registration = self._require_registration(registration_id)
        if registration.status == RegistrationStatus.CANCELLED:
            raise InvalidStatusTransitionError("Registration is already cancelled")

        if not self.admission.cancel(registration):
            raise InvalidStatusTransitionError(
                "Registration changed while it was being cancelled"
            )

        logger.info(f"Cancelled registration {registration.id}")

        if promote_next:
            self.admission.promote_from_waitlist(registration.workshop_id)
            self.db.refresh(registration)
        return registration

    def promote_from_waitlist(self, workshop_id: uuid.UUID) -> Optional[Registration]:
        """Promote the head of the waitlist if a seat is free"""
        self._get_workshop(workshop_id)
        return self.admission.promote_from_waitlist(workshop_id)

    async def generate_confirmation_message(
        self, workshop: Workshop, registration: Registration, outcome: Outcome
    ) -> str:
        """Generate a personalized confirmation message using LLM"""
        if outcome.kind == OutcomeKind.WAITLISTED:
            fallback = (
                f"Thanks {registration.name}! {workshop.title} is currently full, "
                f"so you're #{outcome.waitlist_position} on the waitlist."
            )
        elif outcome.status == RegistrationStatus.PENDING:
            fallback = (
                f"Thanks for registering for {workshop.title}, {registration.name}! "
                "Your spot is awaiting approval from the organizer."
            )
        else:
            fallback = (
                f"Thanks for registering for {workshop.title}, {registration.name}! "
                "We're excited to see you there."
            )

        if self.llm_client is None:
            return fallback

        try:
            starts = (
                workshop.starts_at.strftime("%B %d, %Y %I:%M %p")
                if workshop.starts_at
                else "TBD"
            )
            user_message = f"""Generate a confirmation message for this registration:

Workshop: {workshop.title}
Starts: {starts}
Description: {workshop.description if workshop.description else 'No description provided'}

Registrant: {registration.name}
Status: {registration.status.value}
Waitlist position: {outcome.waitlist_position if outcome.waitlist_position else 'n/a'}

Generate just the confirmation message, nothing else."""

            messages = [{"role": "user", "content": user_message}]

            response = await self.llm_client.process_instruction(
                messages=messages, system=CONFIRMATION_MESSAGE_PROMPT, max_tokens=150
            )
            return response.strip()

        except Exception as e:
            logger.warning(f"Failed to generate LLM confirmation message: {e}")
            return fallback
