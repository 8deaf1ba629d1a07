"""Enums for registration form fields"""

from enum import Enum


class FieldType(str, Enum):
    """Enum for form field types"""

    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    DATE = "date"


# Field types that must carry at least one option
OPTION_FIELD_TYPES = frozenset({FieldType.SELECT, FieldType.CHECKBOX, FieldType.RADIO})
