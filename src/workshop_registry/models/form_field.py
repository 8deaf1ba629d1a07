"""SQLModel FormField model for custom registration form fields"""

import uuid
from typing import Any, List, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlmodel import Field, SQLModel

from workshop_registry.models.field_type import FieldType
from workshop_registry.models.form_config import FieldDefinition


class FormField(SQLModel, table=True):
    """One custom field of a workshop registration form"""

    __tablename__ = "form_fields"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    workshop_id: uuid.UUID = Field(
        foreign_key="workshops.id", ondelete="CASCADE", index=True
    )
    field_id: str  # Key used in submitted form_data (e.g., 'experience_level')
    field_type: FieldType = Field(
        sa_column=Column(
            SQLEnum(
                FieldType,
                name="form_field_type",
                values_callable=lambda x: [e.value for e in x],
            ),
            nullable=False,
        )
    )
    label: str
    placeholder: Optional[str] = None
    description: Optional[str] = None
    is_required: bool = Field(default=False)
    options: Optional[List[dict]] = Field(
        default=None, sa_column=Column(JSON)
    )  # [{"value": ..., "label": ...}]
    default_value: Optional[Any] = Field(default=None, sa_column=Column(JSON))
    field_order: int = Field(default=0)  # Display and submission order

    __table_args__ = (
        UniqueConstraint("workshop_id", "field_id", name="uq_form_fields_workshop_field"),
    )

    def to_definition(self) -> FieldDefinition:
        return FieldDefinition(
            id=self.field_id,
            type=self.field_type,
            label=self.label,
            placeholder=self.placeholder,
            description=self.description,
            required=self.is_required,
            options=self.options,
            default_value=self.default_value,
        )

    @classmethod
    def from_definition(
        cls, workshop_id: uuid.UUID, definition: FieldDefinition, order: int
    ) -> "FormField":
        return cls(
            workshop_id=workshop_id,
            field_id=definition.id,
            field_type=definition.type,
            label=definition.label,
            placeholder=definition.placeholder,
            description=definition.description,
            is_required=definition.required,
            options=(
                [option.model_dump() for option in definition.options]
                if definition.options
                else None
            ),
            default_value=definition.default_value,
            field_order=order,
        )
