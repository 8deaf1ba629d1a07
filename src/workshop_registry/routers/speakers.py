"""Organizer endpoints for managing speakers"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field
from sqlmodel import Session

from workshop_registry.models.database import get_db
from workshop_registry.routers.http_errors import SERVICE_ERRORS, http_error
from workshop_registry.routers.serializers import speaker_to_dict
from workshop_registry.services.speaker_service import SpeakerService

router = APIRouter(prefix="/admin/speakers", tags=["Speakers"])


class SpeakerRequest(BaseModel):
    name: str = Field(..., description="Speaker's full name")
    email: Optional[str] = None
    expertise: str = Field(
        "",
        description="Areas of expertise",
        json_schema_extra={"example": "Glazing, Raku firing"},
    )
    bio: str = ""


class SpeakerUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    expertise: Optional[str] = None
    bio: Optional[str] = None


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_speaker(request: SpeakerRequest, db: Session = Depends(get_db)):
    try:
        return speaker_to_dict(SpeakerService(db).create_speaker(request.model_dump()))
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.get("")
async def list_speakers(
    search: Optional[str] = Query(None, description="Match on name, email or expertise"),
    db: Session = Depends(get_db),
):
    service = SpeakerService(db)
    counts = service.workshop_counts()
    return {
        "speakers": [
            speaker_to_dict(speaker, counts.get(speaker.id, 0))
            for speaker in service.list_speakers(search)
        ]
    }


@router.get("/{speaker_id}")
async def get_speaker(speaker_id: uuid.UUID, db: Session = Depends(get_db)):
    service = SpeakerService(db)
    try:
        speaker = service.get_speaker(speaker_id)
        return speaker_to_dict(speaker, service.workshop_counts().get(speaker.id, 0))
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.patch("/{speaker_id}")
async def update_speaker(
    speaker_id: uuid.UUID, request: SpeakerUpdateRequest, db: Session = Depends(get_db)
):
    updates = request.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No speaker details to update")
    service = SpeakerService(db)
    try:
        speaker = service.update_speaker(speaker_id, updates)
        return speaker_to_dict(speaker, service.workshop_counts().get(speaker.id, 0))
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.delete("/{speaker_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_speaker(speaker_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        SpeakerService(db).delete_speaker(speaker_id)
    except SERVICE_ERRORS as e:
        raise http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
