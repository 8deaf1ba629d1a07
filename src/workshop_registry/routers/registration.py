"""Respondent-facing registration endpoints"""

import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlmodel import Session

from workshop_registry.config import config
from workshop_registry.errors import RegistrationNotAllowedError
from workshop_registry.models.database import get_db
from workshop_registry.models.workshop import WorkshopStatus
from workshop_registry.routers.http_errors import SERVICE_ERRORS, http_error
from workshop_registry.routers.serializers import form_config_to_dict, workshop_to_dict
from workshop_registry.services.admission_service import (
    OutcomeKind,
    RejectionReason,
    WorkshopCounters,
    admission_state,
)
from workshop_registry.services.email_service import EmailService
from workshop_registry.services.llm_service import get_llm_client
from workshop_registry.services.registration_service import RegistrationService
from workshop_registry.services.workshop_service import WorkshopService

router = APIRouter(tags=["Registration"])

logger = logging.getLogger(__name__)

REJECTION_MESSAGES = {
    RejectionReason.CLOSED: "Registration for this workshop is closed",
    RejectionReason.FULL: "This workshop is full",
    RejectionReason.DUPLICATE: "This email address is already registered for this workshop",
}


class RegistrationRequest(BaseModel):
    form_data: Dict[str, Any] = Field(
        ...,
        description="Answers keyed by field id",
        json_schema_extra={
            "example": {
                "fullName": "Ada Lovelace",
                "email": "ada@example.com",
                "experience": "beginner",
            }
        },
    )
    student_id: Optional[str] = Field(
        None, description="Account id of the respondent; omitted for guests"
    )


def get_email_service(llm_client=Depends(get_llm_client)) -> EmailService:
    return EmailService(llm_client, config)


@router.get("/workshops/{workshop_id}/form")
async def get_registration_form(workshop_id: uuid.UUID, db: Session = Depends(get_db)):
    """Fields a respondent fills in, plus whether the workshop is taking registrations"""
    workshop_service = WorkshopService(db)
    try:
        workshop = workshop_service.get_workshop(workshop_id)
        if workshop.status != WorkshopStatus.PUBLISHED:
            raise RegistrationNotAllowedError("Workshop is not accepting registrations")
        form_config = workshop_service.get_form_config(workshop_id)
    except SERVICE_ERRORS as e:
        raise http_error(e)

    counters = WorkshopCounters.from_workshop(workshop)
    spots_remaining = (
        None
        if counters.unlimited
        else max(counters.capacity - counters.registered_count, 0)
    )
    return {
        "workshop": workshop_to_dict(workshop),
        "form": form_config_to_dict(form_config),
        "admission_state": admission_state(counters).value,
        "spots_remaining": spots_remaining,
    }


@router.post("/workshops/{workshop_id}/register")
async def submit_registration(
    workshop_id: uuid.UUID,
    request: RegistrationRequest,
    db: Session = Depends(get_db),
    llm_client=Depends(get_llm_client),
    email_service: EmailService = Depends(get_email_service),
):
    """Validate a submission and admit, waitlist or reject it"""
    registration_service = RegistrationService(db, llm_client)

    try:
        result = registration_service.submit_registration(
            workshop_id, request.form_data, student_id=request.student_id
        )
    except SERVICE_ERRORS as e:
        logger.info(f"Registration for workshop {workshop_id} refused: {e}")
        raise http_error(e)

    outcome = result.outcome
    if outcome.kind == OutcomeKind.REJECTED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": REJECTION_MESSAGES[outcome.reason],
                "reason": outcome.reason.value,
            },
        )

    registration = result.registration
    workshop = WorkshopService(db).get_workshop(workshop_id)

    message = await registration_service.generate_confirmation_message(
        workshop, registration, outcome
    )

    # Delivery problems are reported, never fatal
    email_sent = await email_service.notify_registrant(workshop, registration, outcome)
    await email_service.notify_organizer(workshop, registration)

    return {
        "success": True,
        "outcome": outcome.kind.value,
        "status": registration.status.value,
        "waitlist_position": registration.waitlist_position,
        "registration_id": str(registration.id),
        "message": message,
        "email_sent": email_sent,
    }
