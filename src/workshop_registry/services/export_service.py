"""CSV export of workshop registrations"""

import csv
import io
from typing import Any, List, Sequence

from workshop_registry.models.form_config import FieldDefinition
from workshop_registry.models.registration import Registration

BASE_COLUMNS = [
    "Registration ID",
    "Name",
    "Email",
    "Status",
    "Waitlist Position",
    "Registered At",
]


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def export_registrations_csv(
    registrations: Sequence[Registration], fields: Sequence[FieldDefinition]
) -> str:
    """
    Render registrations as CSV, one column per form field.

    Answers to fields that were later removed from the form are still
    exported, under their field id.
    """
    columns: List[str] = [f.id for f in fields]
    labels = {f.id: f.label or f.id for f in fields}
    for registration in registrations:
        for key in (registration.form_data or {}).keys():
            if key not in labels:
                labels[key] = key
                columns.append(key)

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL)
    writer.writerow(BASE_COLUMNS + [labels[c] for c in columns])

    for registration in registrations:
        answers = registration.form_data or {}
        writer.writerow(
            [
                str(registration.id),
                registration.name,
                registration.email,
                registration.status.value,
                registration.waitlist_position or "",
                (
                    registration.registered_at.isoformat()
                    if registration.registered_at
                    else ""
                ),
            ]
            + [_format_value(answers.get(c)) for c in columns]
        )

    return buffer.getvalue()
