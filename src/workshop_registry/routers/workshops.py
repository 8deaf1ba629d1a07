"""Organizer endpoints for managing workshops, forms and registrations"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import redis
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field, ValidationError
from sqlmodel import Session

from workshop_registry.config import config
from workshop_registry.models.database import get_db, get_redis
from workshop_registry.models.form_config import effective_fields
from workshop_registry.models.registration import RegistrationStatus
from workshop_registry.models.workshop import RegistrationClosePolicy, WorkshopStatus
from workshop_registry.routers.http_errors import SERVICE_ERRORS, http_error
from workshop_registry.routers.serializers import (
    form_config_to_dict,
    registration_to_dict,
    workshop_to_dict,
)
from workshop_registry.services.analytics_service import summarize_workshop
from workshop_registry.services.draft_state_manager import DraftStateManager
from workshop_registry.services.export_service import export_registrations_csv
from workshop_registry.services.field_suggestion_service import FieldSuggestionService
from workshop_registry.services.llm_service import get_llm_client
from workshop_registry.services.registration_service import RegistrationService
from workshop_registry.services.workshop_service import WorkshopService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


class FormConfigRequest(BaseModel):
    use_default_fields: bool = Field(
        True, description="Collect full name, email and phone before custom fields"
    )
    custom_fields: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Custom field definitions in display order",
        json_schema_extra={
            "example": [
                {
                    "type": "select",
                    "label": "Experience level",
                    "required": True,
                    "options": ["Beginner", "Intermediate", "Advanced"],
                }
            ]
        },
    )


class WorkshopSettingsRequest(BaseModel):
    title: str = Field(..., description="Workshop title")
    description: str = ""
    organizer_email: Optional[str] = None
    speaker_id: Optional[uuid.UUID] = Field(
        None, description="Speaker running the workshop"
    )
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    capacity: Optional[int] = Field(
        None, ge=0, description="Maximum seats; 0 or null means unlimited"
    )
    enable_waitlist: bool = False
    require_approval: bool = False
    prevent_duplicates: bool = False
    registration_closes: Optional[RegistrationClosePolicy] = None
    registration_closes_at: Optional[datetime] = None


class WorkshopCreateRequest(WorkshopSettingsRequest):
    form: Optional[FormConfigRequest] = None


class WorkshopUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    organizer_email: Optional[str] = None
    speaker_id: Optional[uuid.UUID] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    capacity: Optional[int] = Field(None, ge=0)
    enable_waitlist: Optional[bool] = None
    require_approval: Optional[bool] = None
    prevent_duplicates: Optional[bool] = None
    registration_closes: Optional[RegistrationClosePolicy] = None
    registration_closes_at: Optional[datetime] = None


class FieldOrderRequest(BaseModel):
    field_ids: List[str]


class FieldSuggestionRequest(BaseModel):
    prompt: str = Field(
        ...,
        description="What the organizer wants to collect",
        json_schema_extra={"example": "Ask about dietary needs and laptop OS"},
    )


def get_draft_manager(redis_client=Depends(get_redis)) -> DraftStateManager:
    return DraftStateManager(redis_client, ttl_seconds=config["draft_ttl_seconds"])


def _workshop_with_form(service: WorkshopService, workshop_id: uuid.UUID) -> dict:
    workshop = service.get_workshop(workshop_id)
    return {
        **workshop_to_dict(workshop),
        "form": form_config_to_dict(service.get_form_config(workshop_id)),
    }


# Workshops


@router.post("/workshops", status_code=status.HTTP_201_CREATED)
async def create_workshop(request: WorkshopCreateRequest, db: Session = Depends(get_db)):
    service = WorkshopService(db)
    try:
        workshop = service.create_workshop(
            request.model_dump(exclude={"form"}),
            request.form.model_dump() if request.form else None,
        )
        return _workshop_with_form(service, workshop.id)
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.get("/workshops")
async def list_workshops(
    status_filter: Optional[WorkshopStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    workshops = WorkshopService(db).list_workshops(status_filter)
    return {"workshops": [workshop_to_dict(w) for w in workshops]}


@router.get("/workshops/{workshop_id}")
async def get_workshop(workshop_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        return _workshop_with_form(WorkshopService(db), workshop_id)
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.patch("/workshops/{workshop_id}")
async def update_workshop(
    workshop_id: uuid.UUID,
    request: WorkshopUpdateRequest,
    db: Session = Depends(get_db),
):
    updates = request.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No settings to update")
    try:
        return workshop_to_dict(WorkshopService(db).update_workshop(workshop_id, updates))
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.post("/workshops/{workshop_id}/publish")
async def publish_workshop(workshop_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        return workshop_to_dict(WorkshopService(db).publish_workshop(workshop_id))
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.post("/workshops/{workshop_id}/archive")
async def archive_workshop(workshop_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        return workshop_to_dict(WorkshopService(db).archive_workshop(workshop_id))
    except SERVICE_ERRORS as e:
        raise http_error(e)


# Registration form


@router.put("/workshops/{workshop_id}/form")
async def replace_form(
    workshop_id: uuid.UUID, request: FormConfigRequest, db: Session = Depends(get_db)
):
    try:
        saved = WorkshopService(db).update_form_config(workshop_id, request.model_dump())
        return form_config_to_dict(saved)
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.post("/workshops/{workshop_id}/form/fields", status_code=status.HTTP_201_CREATED)
async def add_field(
    workshop_id: uuid.UUID, definition: Dict[str, Any], db: Session = Depends(get_db)
):
    try:
        field = WorkshopService(db).add_field(workshop_id, definition)
        return field.model_dump(mode="json", exclude_none=True)
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.patch("/workshops/{workshop_id}/form/fields/{field_id}")
async def update_field(
    workshop_id: uuid.UUID,
    field_id: str,
    patch: Dict[str, Any],
    db: Session = Depends(get_db),
):
    try:
        field = WorkshopService(db).update_field(workshop_id, field_id, patch)
        return field.model_dump(mode="json", exclude_none=True)
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.delete("/workshops/{workshop_id}/form/fields/{field_id}")
async def remove_field(
    workshop_id: uuid.UUID, field_id: str, db: Session = Depends(get_db)
):
    try:
        return form_config_to_dict(WorkshopService(db).remove_field(workshop_id, field_id))
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.put("/workshops/{workshop_id}/form/order")
async def reorder_fields(
    workshop_id: uuid.UUID, request: FieldOrderRequest, db: Session = Depends(get_db)
):
    try:
        saved = WorkshopService(db).reorder_fields(workshop_id, request.field_ids)
        return form_config_to_dict(saved)
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.post("/workshops/{workshop_id}/form/suggestions")
async def suggest_fields(
    workshop_id: uuid.UUID,
    request: FieldSuggestionRequest,
    db: Session = Depends(get_db),
    llm_client=Depends(get_llm_client),
):
    """AI-suggested fields; nothing is saved until the organizer adds them"""
    if llm_client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Field suggestions are not configured",
        )
    service = WorkshopService(db)
    try:
        workshop = service.get_workshop(workshop_id)
        form_config = service.get_form_config(workshop_id)
        suggestions = await FieldSuggestionService(llm_client).suggest_fields(
            workshop, request.prompt, form_config.custom_fields
        )
    except SERVICE_ERRORS as e:
        raise http_error(e)
    return {
        "fields": [f.model_dump(mode="json", exclude_none=True) for f in suggestions]
    }


# Registrations


@router.get("/workshops/{workshop_id}/registrations")
async def list_registrations(
    workshop_id: uuid.UUID,
    status_filter: Optional[RegistrationStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    try:
        WorkshopService(db).get_workshop(workshop_id)
    except SERVICE_ERRORS as e:
        raise http_error(e)
    registrations = RegistrationService(db).get_registrations_for_workshop(
        workshop_id, status_filter
    )
    return {
        "registrations": [registration_to_dict(r) for r in registrations],
        "count": len(registrations),
    }


@router.post("/registrations/{registration_id}/approve")
async def approve_registration(
    registration_id: uuid.UUID, db: Session = Depends(get_db)
):
    try:
        registration = RegistrationService(db).approve_registration(registration_id)
    except SERVICE_ERRORS as e:
        raise http_error(e)
    return registration_to_dict(registration)


@router.post("/registrations/{registration_id}/cancel")
async def cancel_registration(
    registration_id: uuid.UUID,
    promote_next: bool = False,
    db: Session = Depends(get_db),
):
    try:
        registration = RegistrationService(db).cancel_registration(
            registration_id, promote_next=promote_next
        )
    except SERVICE_ERRORS as e:
        raise http_error(e)
    return registration_to_dict(registration)


@router.post("/workshops/{workshop_id}/waitlist/promote")
async def promote_from_waitlist(workshop_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        promoted = RegistrationService(db).promote_from_waitlist(workshop_id)
    except SERVICE_ERRORS as e:
        raise http_error(e)
    return {
        "promoted": registration_to_dict(promoted) if promoted else None,
    }


@router.get("/workshops/{workshop_id}/registrations/export")
async def export_registrations(workshop_id: uuid.UUID, db: Session = Depends(get_db)):
    service = WorkshopService(db)
    try:
        workshop = service.get_workshop(workshop_id)
        fields = effective_fields(service.get_form_config(workshop_id))
    except SERVICE_ERRORS as e:
        raise http_error(e)

    registrations = RegistrationService(db).get_registrations_for_workshop(workshop_id)
    content = export_registrations_csv(registrations, fields)
    filename = f"registrations-{workshop.id}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/workshops/{workshop_id}/analytics")
async def workshop_analytics(workshop_id: uuid.UUID, db: Session = Depends(get_db)):
    service = WorkshopService(db)
    try:
        workshop = service.get_workshop(workshop_id)
        fields = effective_fields(service.get_form_config(workshop_id))
    except SERVICE_ERRORS as e:
        raise http_error(e)

    registrations = RegistrationService(db).get_registrations_for_workshop(workshop_id)
    return summarize_workshop(workshop, registrations, fields)


# Drafts


@router.get("/drafts/{draft_id}")
async def get_draft(
    draft_id: str, drafts: DraftStateManager = Depends(get_draft_manager)
):
    try:
        return drafts.get_draft(draft_id)
    except redis.RedisError:
        raise HTTPException(status_code=503, detail="Draft storage is unavailable")


@router.patch("/drafts/{draft_id}")
async def update_draft(
    draft_id: str,
    updates: Dict[str, Any],
    drafts: DraftStateManager = Depends(get_draft_manager),
):
    try:
        return drafts.update_draft(draft_id, updates)
    except redis.RedisError:
        raise HTTPException(status_code=503, detail="Draft storage is unavailable")


@router.delete("/drafts/{draft_id}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_draft(
    draft_id: str, drafts: DraftStateManager = Depends(get_draft_manager)
):
    try:
        drafts.clear_draft(draft_id)
    except redis.RedisError:
        raise HTTPException(status_code=503, detail="Draft storage is unavailable")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/drafts/{draft_id}/commit", status_code=status.HTTP_201_CREATED)
async def commit_draft(
    draft_id: str,
    drafts: DraftStateManager = Depends(get_draft_manager),
    db: Session = Depends(get_db),
):
    """Create a draft workshop from a complete draft and discard the draft"""
    try:
        draft = drafts.get_draft(draft_id)
    except redis.RedisError:
        raise HTTPException(status_code=503, detail="Draft storage is unavailable")

    if not drafts.is_complete(draft):
        raise HTTPException(status_code=400, detail="Draft is not complete yet")

    settings = {
        key: draft.get(key)
        for key in WorkshopCreateRequest.model_fields
        if key != "form" and draft.get(key) is not None
    }
    try:
        request = WorkshopCreateRequest.model_validate(
            {**settings, "form": draft.get("form")}
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Draft is invalid: {e}")

    service = WorkshopService(db)
    try:
        workshop = service.create_workshop(
            request.model_dump(exclude={"form"}),
            request.form.model_dump() if request.form else None,
        )
        result = _workshop_with_form(service, workshop.id)
    except SERVICE_ERRORS as e:
        raise http_error(e)

    try:
        drafts.clear_draft(draft_id)
    except redis.RedisError as e:
        logger.warning(f"Created workshop {workshop.id} but could not clear draft: {e}")
    return result
