"""Registration analytics for a workshop"""

from collections import Counter
from typing import Any, Dict, List, Sequence

from workshop_registry.models.field_type import FieldType
from workshop_registry.models.form_config import FieldDefinition
from workshop_registry.models.registration import Registration, RegistrationStatus
from workshop_registry.models.workshop import Workshop


BOOLEAN_LABELS = {"true": "Yes", "false": "No"}


def _answered(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, list):
        return bool(value)
    return True


def _field_summary(
    field: FieldDefinition, registrations: Sequence[Registration]
) -> Dict[str, Any]:
    responses = [
        (r.form_data or {}).get(field.id)
        for r in registrations
        if _answered((r.form_data or {}).get(field.id))
    ]
    summary: Dict[str, Any] = {
        "field_id": field.id,
        "label": field.label,
        "type": field.type.value,
        "responses": len(responses),
        "response_rate": (
            round(len(responses) / len(registrations), 3) if registrations else 0.0
        ),
    }

    if field.has_options or field.type == FieldType.CHECKBOX:
        counts: Counter = Counter()
        for response in responses:
            if isinstance(response, list):
                counts.update(str(item) for item in response)
            elif isinstance(response, bool):
                counts["true" if response else "false"] += 1
            else:
                counts[str(response)] += 1
        labels = {o.value: o.label for o in field.options or []}
        if not field.has_options:
            labels.update(BOOLEAN_LABELS)
        summary["distribution"] = [
            {"value": value, "label": labels.get(value, value), "count": count}
            for value, count in counts.most_common()
        ]
        summary["top_answer"] = summary["distribution"][0]["value"] if counts else None
    else:
        lengths = [len(str(r)) for r in responses]
        summary["average_length"] = round(sum(lengths) / len(lengths)) if lengths else 0

    return summary


def summarize_workshop(
    workshop: Workshop,
    registrations: Sequence[Registration],
    fields: Sequence[FieldDefinition],
) -> Dict[str, Any]:
    """Counts per status, fill rate and per-field answer breakdown"""
    by_status = Counter(r.status.value for r in registrations)
    active: List[Registration] = [
        r for r in registrations if r.status != RegistrationStatus.CANCELLED
    ]

    return {
        "workshop_id": str(workshop.id),
        "title": workshop.title,
        "capacity": workshop.capacity or None,
        "registered_count": workshop.registered_count,
        "waitlist_count": workshop.waitlist_count,
        "fill_rate": (
            round(workshop.registered_count / workshop.capacity, 3)
            if workshop.capacity
            else None
        ),
        "status_counts": {status.value: by_status.get(status.value, 0) for status in RegistrationStatus},
        "total_registrations": len(registrations),
        "fields": [_field_summary(f, active) for f in fields if f.id],
    }
