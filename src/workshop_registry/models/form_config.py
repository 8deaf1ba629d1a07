"""Registration form configuration models.

A workshop carries one ``RegistrationFormConfig``: an optional block of
default fields (full name, email, phone) followed by the organizer's custom
fields. These are plain pydantic models; ``FormField`` rows persist them.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from workshop_registry.models.field_type import OPTION_FIELD_TYPES, FieldType

FULL_NAME_FIELD_ID = "fullName"
EMAIL_FIELD_ID = "email"
PHONE_FIELD_ID = "phone"

RESERVED_FIELD_IDS = frozenset({FULL_NAME_FIELD_ID, EMAIL_FIELD_ID, PHONE_FIELD_ID})


class FieldOption(BaseModel):
    """A selectable option; ``value`` is what gets submitted and compared"""

    value: str
    label: str


def _normalize_option(option: Any) -> Any:
    if isinstance(option, str):
        return {"value": option, "label": option}
    if isinstance(option, dict) and "value" in option and not option.get("label"):
        return {**option, "label": option["value"]}
    return option


class FieldDefinition(BaseModel):
    """Describes one registration form input"""

    id: Optional[str] = None
    type: FieldType
    label: str = ""
    placeholder: Optional[str] = None
    description: Optional[str] = None
    required: bool = False
    options: Optional[List[FieldOption]] = None
    default_value: Optional[Union[bool, int, float, str, List[str]]] = None

    @field_validator("options", mode="before")
    @classmethod
    def _normalize_options(cls, v):
        # Options arrive either as bare strings or as {value, label} records
        if v is None:
            return None
        return [_normalize_option(option) for option in v]

    @property
    def has_options(self) -> bool:
        return bool(self.options)

    @property
    def requires_options(self) -> bool:
        return self.type in OPTION_FIELD_TYPES

    def option_values(self) -> List[str]:
        return [option.value for option in self.options or []]


class RegistrationFormConfig(BaseModel):
    """Default + custom fields attached to a workshop"""

    use_default_fields: bool = True
    custom_fields: List[FieldDefinition] = Field(default_factory=list)


DEFAULT_FIELDS = (
    FieldDefinition(
        id=FULL_NAME_FIELD_ID,
        type=FieldType.TEXT,
        label="Full Name",
        placeholder="Jane Doe",
        required=True,
    ),
    FieldDefinition(
        id=EMAIL_FIELD_ID,
        type=FieldType.EMAIL,
        label="Email",
        placeholder="jane@example.com",
        required=True,
    ),
    FieldDefinition(
        id=PHONE_FIELD_ID,
        type=FieldType.PHONE,
        label="Phone",
        required=False,
    ),
)


def effective_fields(config: RegistrationFormConfig) -> List[FieldDefinition]:
    """Ordered fields a respondent actually fills in"""
    fields: List[FieldDefinition] = []
    if config.use_default_fields:
        fields.extend(field.model_copy(deep=True) for field in DEFAULT_FIELDS)
    fields.extend(field.model_copy(deep=True) for field in config.custom_fields)
    return fields
