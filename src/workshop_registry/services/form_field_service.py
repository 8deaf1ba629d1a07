"""FormField service for persisting workshop registration forms"""

import logging
import uuid
from typing import List

from sqlalchemy import delete
from sqlmodel import Session, select

from workshop_registry.models.form_config import RegistrationFormConfig
from workshop_registry.models.form_field import FormField
from workshop_registry.models.workshop import Workshop

logger = logging.getLogger(__name__)


class FormFieldService:
    """Service for storing and loading form fields"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def save_form_config(
        self, workshop: Workshop, config: RegistrationFormConfig
    ) -> List[FormField]:
        """
        Replace the stored fields of a workshop with the given config
        Note: This does NOT commit - caller must handle transaction

        Args:
            workshop: Workshop the form belongs to
            config: Validated form config (every custom field has an id)

        Returns:
            List of created FormField instances
        """
        self.db.execute(delete(FormField).where(FormField.workshop_id == workshop.id))

        created_fields = []
        for i, definition in enumerate(config.custom_fields):
            form_field = FormField.from_definition(workshop.id, definition, i)
            self.db.add(form_field)
            created_fields.append(form_field)

        workshop.use_default_fields = config.use_default_fields
        self.db.add(workshop)

        logger.info(
            f"Prepared {len(created_fields)} form fields for workshop {workshop.id}"
        )
        return created_fields

    def get_fields_by_workshop_id(self, workshop_id: uuid.UUID) -> List[FormField]:
        """
        Get all form fields for a workshop, ordered by field_order

        Args:
            workshop_id: UUID of the workshop

        Returns:
            List of FormField instances ordered by field_order
        """
        statement = (
            select(FormField)
            .where(FormField.workshop_id == workshop_id)
            .order_by(FormField.field_order)
        )
        fields = list(self.db.exec(statement).all())
        logger.debug(f"Retrieved {len(fields)} form fields for workshop {workshop_id}")
        return fields

    def load_form_config(self, workshop: Workshop) -> RegistrationFormConfig:
        """Rebuild the pydantic form config of a workshop from stored rows"""
        fields = self.get_fields_by_workshop_id(workshop.id)
        return RegistrationFormConfig(
            use_default_fields=workshop.use_default_fields,
            custom_fields=[field.to_definition() for field in fields],
        )
