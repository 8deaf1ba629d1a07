"""Authoring-time model of a workshop registration form"""

import logging
import uuid
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from workshop_registry.errors import (
    FieldNotFoundError,
    InvalidFieldError,
    SchemaValidationError,
    UnknownFieldIdError,
)
from workshop_registry.models.field_type import FieldType
from workshop_registry.models.form_config import (
    RESERVED_FIELD_IDS,
    FieldDefinition,
    RegistrationFormConfig,
)
from workshop_registry.services.validation_service import parse_number

logger = logging.getLogger(__name__)


def generate_field_id() -> str:
    return f"field_{uuid.uuid4().hex[:8]}"


def parse_field_definition(data: Union[FieldDefinition, Dict[str, Any]]) -> FieldDefinition:
    """Coerce raw field data into a FieldDefinition, raising InvalidFieldError"""
    if isinstance(data, FieldDefinition):
        return data.model_copy(deep=True)
    try:
        return FieldDefinition.model_validate(data)
    except ValidationError as e:
        field_id = data.get("id") if isinstance(data, dict) else None
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidFieldError(f"Invalid field definition ({problems})", field_id)


def _default_value_problem(field: FieldDefinition) -> Optional[str]:
    value = field.default_value
    if value is None:
        return None

    if field.type == FieldType.CHECKBOX:
        if field.has_options:
            if not isinstance(value, list) or any(
                v not in field.option_values() for v in value
            ):
                return "Default value must be a list of option values"
        elif not isinstance(value, bool):
            return "Default value must be true or false"
        return None

    if field.type in (FieldType.SELECT, FieldType.RADIO):
        if value not in field.option_values():
            return "Default value must be one of the options"
        return None

    if field.type == FieldType.NUMBER:
        if parse_number(value) is None:
            return "Default value must be a number"
        return None

    if not isinstance(value, str):
        return "Default value must be text"
    return None


def field_problems(field: FieldDefinition) -> List[str]:
    """Authoring rule violations of a single field"""
    problems = []
    if not field.label or not field.label.strip():
        problems.append("Field label is required")
    if field.requires_options and not field.has_options:
        problems.append(f"A {field.type.value} field needs at least one option")
    default_problem = _default_value_problem(field)
    if default_problem:
        problems.append(default_problem)
    return problems


class FormSchema:
    """Editable registration form for a single workshop.

    Single writer: the organizer editing a draft. Every mutation validates
    the field it touches; ``validate_schema`` re-checks the whole form
    before a workshop is published.
    """

    def __init__(self, config: Optional[RegistrationFormConfig] = None):
        config = config or RegistrationFormConfig()
        self.use_default_fields = config.use_default_fields
        self._fields: List[FieldDefinition] = [
            field.model_copy(deep=True) for field in config.custom_fields
        ]

    @property
    def fields(self) -> List[FieldDefinition]:
        return [field.model_copy(deep=True) for field in self._fields]

    @property
    def field_ids(self) -> List[str]:
        return [field.id for field in self._fields]

    def to_config(self) -> RegistrationFormConfig:
        return RegistrationFormConfig(
            use_default_fields=self.use_default_fields, custom_fields=self.fields
        )

    def _index_of(self, field_id: str) -> int:
        for i, field in enumerate(self._fields):
            if field.id == field_id:
                return i
        raise FieldNotFoundError(field_id)

    def _check(self, field: FieldDefinition) -> None:
        problems = field_problems(field)
        if problems:
            raise InvalidFieldError("; ".join(problems), field.id)

    def _taken_ids(self, exclude: Optional[str] = None) -> set:
        taken = {f.id for f in self._fields if f.id != exclude}
        if self.use_default_fields:
            taken |= RESERVED_FIELD_IDS
        return taken

    def add_field(
        self, definition: Union[FieldDefinition, Dict[str, Any]]
    ) -> FieldDefinition:
        """Append a field; assigns a fresh id when none is supplied"""
        field = parse_field_definition(definition)
        if not field.requires_options:
            field.options = None

        self._check(field)

        if field.id is None or not str(field.id).strip():
            field.id = generate_field_id()
            while field.id in self._taken_ids():
                field.id = generate_field_id()
        elif field.id in self._taken_ids():
            raise InvalidFieldError(f"Field id '{field.id}' is already in use", field.id)

        self._fields.append(field)
        logger.info(f"Added {field.type.value} field '{field.id}' ({field.label})")
        return field.model_copy(deep=True)

    def update_field(self, field_id: str, patch: Dict[str, Any]) -> FieldDefinition:
        """Apply a partial update; the id itself cannot be changed"""
        index = self._index_of(field_id)
        current = self._fields[index]

        merged = current.model_dump()
        merged.update({k: v for k, v in patch.items() if k != "id"})
        merged["id"] = field_id

        field = parse_field_definition(merged)
        if not field.requires_options:
            # Switching away from an option-bearing type drops stale options
            field.options = None
        if field.type != current.type and "default_value" not in patch:
            # A default written for the old type no longer applies
            field.default_value = None
        self._check(field)

        self._fields[index] = field
        logger.info(f"Updated field '{field_id}'")
        return field.model_copy(deep=True)

    def remove_field(self, field_id: str) -> None:
        """Remove a field; unknown ids are ignored"""
        before = len(self._fields)
        self._fields = [f for f in self._fields if f.id != field_id]
        if len(self._fields) != before:
            logger.info(f"Removed field '{field_id}'")

    def reorder(self, field_ids: Iterable[str]) -> None:
        """Replace the custom field ordering with a permutation of current ids"""
        requested = list(field_ids)
        current = self.field_ids
        if Counter(requested) != Counter(current):
            unknown = [fid for fid in requested if fid not in current]
            missing = [fid for fid in current if fid not in requested]
            raise UnknownFieldIdError(unknown, missing)

        by_id = {field.id: field for field in self._fields}
        self._fields = [by_id[fid] for fid in requested]

    def validate_schema(self) -> List[InvalidFieldError]:
        """Aggregate check run before publishing; empty list means valid"""
        errors: List[InvalidFieldError] = []
        for field in self._fields:
            for problem in field_problems(field):
                errors.append(InvalidFieldError(problem, field.id))

        counts = Counter(field.id for field in self._fields)
        for field_id, count in counts.items():
            if count > 1:
                errors.append(
                    InvalidFieldError(f"Duplicate field id '{field_id}'", field_id)
                )
            if self.use_default_fields and field_id in RESERVED_FIELD_IDS:
                errors.append(
                    InvalidFieldError(
                        f"Field id '{field_id}' is reserved for a default field",
                        field_id,
                    )
                )
        return errors

    def ensure_valid(self) -> None:
        errors = self.validate_schema()
        if errors:
            raise SchemaValidationError(errors)
