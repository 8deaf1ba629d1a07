"""Workshop Service - Handles workshop settings and registration form persistence"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import func
from sqlmodel import Session, select

from workshop_registry.errors import (
    InvalidFieldError,
    InvalidStatusTransitionError,
    SchemaValidationError,
    WorkshopNotFoundError,
)
from workshop_registry.models.form_config import (
    DEFAULT_FIELDS,
    FieldDefinition,
    RegistrationFormConfig,
)
from workshop_registry.models.registration import Registration
from workshop_registry.models.speaker import Speaker
from workshop_registry.models.workshop import (
    RegistrationClosePolicy,
    Workshop,
    WorkshopStatus,
    as_utc,
)
from workshop_registry.services.form_field_service import FormFieldService
from workshop_registry.services.form_schema_service import FormSchema

logger = logging.getLogger(__name__)

# Settings an organizer may change; counters and status have their own paths
EDITABLE_SETTINGS = (
    "title",
    "description",
    "organizer_email",
    "speaker_id",
    "starts_at",
    "ends_at",
    "capacity",
    "enable_waitlist",
    "require_approval",
    "prevent_duplicates",
    "registration_closes",
    "registration_closes_at",
)

FormInput = Union[RegistrationFormConfig, Dict[str, Any]]


def _check_settings(workshop: Workshop) -> None:
    if not workshop.title or not workshop.title.strip():
        raise ValueError("Workshop title is required")
    if workshop.capacity is not None and (
        isinstance(workshop.capacity, bool) or workshop.capacity < 0
    ):
        raise ValueError("Capacity must be zero (unlimited) or a positive number")
    starts_at, ends_at = as_utc(workshop.starts_at), as_utc(workshop.ends_at)
    if starts_at and ends_at and ends_at < starts_at:
        raise ValueError("Workshop cannot end before it starts")
    if workshop.registration_closes is not None:
        policy = RegistrationClosePolicy(workshop.registration_closes)
        if policy == RegistrationClosePolicy.CUSTOM:
            if workshop.registration_closes_at is None:
                raise ValueError("A custom registration deadline needs a closing time")
        elif workshop.starts_at is None:
            raise ValueError(
                f"Registration close policy '{policy.value}' needs a start time"
            )


def build_form_config(form: Optional[FormInput]) -> RegistrationFormConfig:
    """
    Run raw form input through the authoring rules.

    Each custom field is added through ``FormSchema.add_field`` so ids are
    assigned and every field is checked the same way the editor checks it.

    Raises:
        InvalidFieldError: on the first field that breaks an authoring rule
    """
    if form is None:
        return RegistrationFormConfig()

    if isinstance(form, RegistrationFormConfig):
        use_default_fields = form.use_default_fields
        raw_fields: Iterable[Any] = form.custom_fields
    else:
        use_default_fields = bool(form.get("use_default_fields", True))
        raw_fields = form.get("custom_fields") or []

    schema = FormSchema(RegistrationFormConfig(use_default_fields=use_default_fields))
    for raw in raw_fields:
        schema.add_field(raw)
    return schema.to_config()


def _fields_by_id(config: RegistrationFormConfig) -> Dict[str, FieldDefinition]:
    fields = list(config.custom_fields)
    if config.use_default_fields:
        fields = list(DEFAULT_FIELDS) + fields
    return {field.id: field for field in fields}


def additive_change_problems(
    current: RegistrationFormConfig, proposed: RegistrationFormConfig
) -> List[InvalidFieldError]:
    """Fields that existing registrations answer must survive with the same type"""
    problems = []
    proposed_fields = _fields_by_id(proposed)
    for field_id, field in _fields_by_id(current).items():
        replacement = proposed_fields.get(field_id)
        if replacement is None:
            problems.append(
                InvalidFieldError(
                    f"Field '{field.label}' has registrations and cannot be removed",
                    field_id,
                )
            )
        elif replacement.type != field.type:
            problems.append(
                InvalidFieldError(
                    f"Field '{field.label}' has registrations; its type cannot change "
                    f"from {field.type.value} to {replacement.type.value}",
                    field_id,
                )
            )
    return problems


class WorkshopService:
    """Service for creating, editing and publishing workshops"""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.form_fields = FormFieldService(db_session)

    def create_workshop(
        self, settings: Dict[str, Any], form: Optional[FormInput] = None
    ) -> Workshop:
        """
        Create a draft workshop with its registration form

        Args:
            settings: Workshop settings (see EDITABLE_SETTINGS)
            form: Form config or raw ``{use_default_fields, custom_fields}``

        Returns:
            The stored workshop

        Raises:
            ValueError: if settings are inconsistent
            InvalidFieldError: if a form field breaks an authoring rule
        """
        unknown = set(settings) - set(EDITABLE_SETTINGS)
        if unknown:
            raise ValueError(f"Unknown workshop settings: {', '.join(sorted(unknown))}")

        workshop = Workshop(**settings)
        _check_settings(workshop)
        self._check_speaker(workshop)
        form_config = build_form_config(form)

        self.db.add(workshop)
        self.db.flush()
        self.form_fields.save_form_config(workshop, form_config)
        self.db.commit()
        self.db.refresh(workshop)

        logger.info(
            f"Workshop created: {workshop.id} with {len(form_config.custom_fields)} custom fields"
        )
        return workshop

    def _check_speaker(self, workshop: Workshop) -> None:
        if workshop.speaker_id is None:
            return
        if isinstance(workshop.speaker_id, str):
            workshop.speaker_id = uuid.UUID(workshop.speaker_id)
        with self.db.no_autoflush:
            speaker = self.db.get(Speaker, workshop.speaker_id)
        if speaker is None:
            raise ValueError(f"Speaker {workshop.speaker_id} does not exist")

    def get_workshop(self, workshop_id: uuid.UUID) -> Workshop:
        workshop = self.db.get(Workshop, workshop_id)
        if not workshop:
            raise WorkshopNotFoundError(workshop_id)
        return workshop

    def list_workshops(self, status: Optional[WorkshopStatus] = None) -> List[Workshop]:
        """List workshops, soonest first"""
        statement = select(Workshop)
        if status is not None:
            statement = statement.where(Workshop.status == status)
        statement = statement.order_by(Workshop.starts_at, Workshop.created_at)
        return list(self.db.exec(statement).all())

    def update_workshop(
        self, workshop_id: uuid.UUID, updated_data: Dict[str, Any]
    ) -> Workshop:
        """
        Update workshop settings

        Raises:
            WorkshopNotFoundError: if the workshop doesn't exist
            ValueError: for non-editable keys or inconsistent settings
        """
        workshop = self.get_workshop(workshop_id)

        not_editable = set(updated_data) - set(EDITABLE_SETTINGS)
        if not_editable:
            raise ValueError(
                f"These settings cannot be changed here: {', '.join(sorted(not_editable))}"
            )

        for key, value in updated_data.items():
            setattr(workshop, key, value)
        try:
            _check_settings(workshop)
            self._check_speaker(workshop)
        except ValueError:
            self.db.rollback()
            raise

        workshop.updated_at = datetime.now(timezone.utc)
        self.db.add(workshop)
        self.db.commit()
        self.db.refresh(workshop)

        logger.info(f"Workshop updated: {workshop.id} ({', '.join(updated_data)})")
        return workshop

    def get_form_config(self, workshop_id: uuid.UUID) -> RegistrationFormConfig:
        return self.form_fields.load_form_config(self.get_workshop(workshop_id))

    def has_registrations(self, workshop_id: uuid.UUID) -> bool:
        count = self.db.exec(
            select(func.count(Registration.id)).where(
                Registration.workshop_id == workshop_id
            )
        ).one()
        return count > 0

    def _save_schema(self, workshop: Workshop, schema: FormSchema) -> RegistrationFormConfig:
        proposed = schema.to_config()
        if self.has_registrations(workshop.id):
            current = self.form_fields.load_form_config(workshop)
            problems = additive_change_problems(current, proposed)
            if problems:
                logger.warning(
                    f"Refused form change for workshop {workshop.id}: {len(problems)} breaking edits"
                )
                raise SchemaValidationError(problems)

        self.form_fields.save_form_config(workshop, proposed)
        workshop.updated_at = datetime.now(timezone.utc)
        self.db.add(workshop)
        self.db.commit()
        self.db.refresh(workshop)
        return proposed

    def update_form_config(
        self, workshop_id: uuid.UUID, form: FormInput
    ) -> RegistrationFormConfig:
        """
        Replace a workshop's registration form

        Once registrations exist the change must be additive: every field
        they answered keeps its id and type.

        Raises:
            InvalidFieldError: if a field breaks an authoring rule
            SchemaValidationError: if the change would orphan stored answers
        """
        workshop = self.get_workshop(workshop_id)
        config = build_form_config(form)
        saved = self._save_schema(workshop, FormSchema(config))
        logger.info(f"Replaced registration form of workshop {workshop_id}")
        return saved

    def _load_schema(self, workshop_id: uuid.UUID):
        workshop = self.get_workshop(workshop_id)
        return workshop, FormSchema(self.form_fields.load_form_config(workshop))

    def add_field(
        self, workshop_id: uuid.UUID, definition: Union[FieldDefinition, Dict[str, Any]]
    ) -> FieldDefinition:
        workshop, schema = self._load_schema(workshop_id)
        field = schema.add_field(definition)
        self._save_schema(workshop, schema)
        return field

    def update_field(
        self, workshop_id: uuid.UUID, field_id: str, patch: Dict[str, Any]
    ) -> FieldDefinition:
        workshop, schema = self._load_schema(workshop_id)
        field = schema.update_field(field_id, patch)
        self._save_schema(workshop, schema)
        return field

    def remove_field(
        self, workshop_id: uuid.UUID, field_id: str
    ) -> RegistrationFormConfig:
        workshop, schema = self._load_schema(workshop_id)
        schema.remove_field(field_id)
        return self._save_schema(workshop, schema)

    def reorder_fields(
        self, workshop_id: uuid.UUID, field_ids: List[str]
    ) -> RegistrationFormConfig:
        workshop, schema = self._load_schema(workshop_id)
        schema.reorder(field_ids)
        return self._save_schema(workshop, schema)

    def publish_workshop(self, workshop_id: uuid.UUID) -> Workshop:
        """
        Open a workshop for registration

        Raises:
            SchemaValidationError: if the registration form is not publishable
            InvalidStatusTransitionError: if the workshop is archived
        """
        workshop = self.get_workshop(workshop_id)
        if workshop.status == WorkshopStatus.ARCHIVED:
            raise InvalidStatusTransitionError("Archived workshops cannot be published")
        if workshop.status == WorkshopStatus.PUBLISHED:
            return workshop

        FormSchema(self.form_fields.load_form_config(workshop)).ensure_valid()

        workshop.status = WorkshopStatus.PUBLISHED
        workshop.updated_at = datetime.now(timezone.utc)
        self.db.add(workshop)
        self.db.commit()
        self.db.refresh(workshop)

        logger.info(f"Workshop published: {workshop.id}")
        return workshop

    def archive_workshop(self, workshop_id: uuid.UUID) -> Workshop:
        """Stop accepting registrations; stored registrations are kept"""
        workshop = self.get_workshop(workshop_id)
        if workshop.status == WorkshopStatus.ARCHIVED:
            return workshop

        workshop.status = WorkshopStatus.ARCHIVED
        workshop.updated_at = datetime.now(timezone.utc)
        self.db.add(workshop)
        self.db.commit()
        self.db.refresh(workshop)

        logger.info(f"Workshop archived: {workshop.id}")
        return workshop
