"""Derive submission validators from registration form definitions.

``derive_validator`` is a pure function of the form config: the same config
always yields a validator with the same accept/reject behaviour, so it can
be tested by building field lists and payloads directly.
"""

import math
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from workshop_registry.errors import FieldFailure, SubmissionValidationError
from workshop_registry.models.field_type import FieldType
from workshop_registry.models.form_config import (
    FieldDefinition,
    RegistrationFormConfig,
    effective_fields,
)

# local@domain with at least one dot in the domain part
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s.]+$")

# Plain decimal or exponent notation; no underscores, inf or nan
NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")

# A rule returns an error message, or None when the value is acceptable
FieldRule = Callable[[Any], Optional[str]]


def _is_absent(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _text_rule(label: str, required: bool) -> FieldRule:
    def rule(value):
        if _is_absent(value):
            return f"{label} is required" if required else None
        if not isinstance(value, str):
            return f"{label} must be text"
        return None

    return rule


def _email_rule(label: str, required: bool) -> FieldRule:
    def rule(value):
        if _is_absent(value):
            return f"{label} is required" if required else None
        if not isinstance(value, str) or not EMAIL_PATTERN.match(value.strip()):
            return "Please enter a valid email address"
        return None

    return rule


def _number_rule(label: str, required: bool) -> FieldRule:
    def rule(value):
        if _is_absent(value):
            return f"{label} is required" if required else None
        if parse_number(value) is None:
            return f"{label} must be a number"
        return None

    return rule


def _choice_rule(label: str, required: bool, allowed: frozenset) -> FieldRule:
    def rule(value):
        if _is_absent(value):
            return f"Please select a {label}" if required else None
        if not isinstance(value, str) or value not in allowed:
            return f"Please select a valid option for {label}"
        return None

    return rule


def _multi_choice_rule(label: str, required: bool, allowed: frozenset) -> FieldRule:
    def rule(value):
        if _is_absent(value):
            return f"Please select at least one {label}" if required else None
        if not isinstance(value, (list, tuple)):
            return f"{label} must be a list of options"
        if any(not isinstance(item, str) or item not in allowed for item in value):
            return f"Please select valid options for {label}"
        if required and not value:
            return f"Please select at least one {label}"
        return None

    return rule


def _boolean_rule(label: str, required: bool) -> FieldRule:
    def rule(value):
        if _is_absent(value):
            return f"{label} is required" if required else None
        if not isinstance(value, bool):
            return f"{label} must be true or false"
        if required and value is not True:
            return f"{label} is required"
        return None

    return rule


def parse_number(value: Any) -> Optional[float]:
    """Parse a finite number from a numeric value or plain numeric text"""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        if not NUMBER_PATTERN.match(value.strip()):
            return None
        value = value.strip()
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date (or datetime) into a calendar date"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _date_rule(label: str, required: bool) -> FieldRule:
    def rule(value):
        if _is_absent(value):
            return f"{label} is required" if required else None
        if parse_date(value) is None:
            return f"{label} must be a valid date"
        return None

    return rule


def rule_for_field(field: FieldDefinition) -> FieldRule:
    """Build the validation rule for one field definition"""
    label = field.label or field.id
    required = field.required
    allowed = frozenset(field.option_values())

    if field.type in (FieldType.TEXT, FieldType.TEXTAREA, FieldType.PHONE):
        return _text_rule(label, required)
    if field.type == FieldType.EMAIL:
        return _email_rule(label, required)
    if field.type == FieldType.NUMBER:
        return _number_rule(label, required)
    if field.type in (FieldType.SELECT, FieldType.RADIO):
        return _choice_rule(label, required, allowed)
    if field.type == FieldType.CHECKBOX:
        if field.has_options:
            return _multi_choice_rule(label, required, allowed)
        return _boolean_rule(label, required)
    if field.type == FieldType.DATE:
        return _date_rule(label, required)
    return _text_rule(label, required)


class SubmissionValidator:
    """Validates submitted form_data against a fixed, ordered set of rules"""

    def __init__(self, rules: List[Tuple[str, FieldType, FieldRule]]):
        self._rules = list(rules)

    @property
    def field_ids(self) -> List[str]:
        return [field_id for field_id, _, _ in self._rules]

    def validate(self, form_data: Mapping[str, Any]) -> List[FieldFailure]:
        """Collect every field failure; keys not in the form are ignored"""
        failures = []
        for field_id, _, rule in self._rules:
            message = rule(form_data.get(field_id))
            if message:
                failures.append(FieldFailure(field_id=field_id, message=message))
        return failures

    def clean(self, form_data: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate and return only known, present answers.

        Raises:
            SubmissionValidationError: if any field fails; nothing is kept
        """
        failures = self.validate(form_data)
        if failures:
            raise SubmissionValidationError(failures)

        cleaned: Dict[str, Any] = {}
        for field_id, field_type, _ in self._rules:
            value = form_data.get(field_id)
            if value is None:
                continue
            if isinstance(value, str):
                value = value.strip()
                if field_type == FieldType.EMAIL:
                    value = value.lower()
                if not value:
                    continue
            elif isinstance(value, tuple):
                value = list(value)
            cleaned[field_id] = value
        return cleaned


def derive_validator(config: RegistrationFormConfig) -> SubmissionValidator:
    """Translate a form config into a submission validator"""
    rules = [
        (field.id, field.type, rule_for_field(field))
        for field in effective_fields(config)
        if field.id
    ]
    return SubmissionValidator(rules)
