import csv
import io

import pytest

from workshop_registry.models.field_type import FieldType
from workshop_registry.models.form_config import FieldDefinition, effective_fields
from workshop_registry.models.registration import Registration, RegistrationStatus
from workshop_registry.services.analytics_service import summarize_workshop
from workshop_registry.services.export_service import BASE_COLUMNS, export_registrations_csv

CUSTOM_FIELDS = [
    {
        "id": "experience",
        "type": "select",
        "label": "Experience level",
        "required": True,
        "options": ["beginner", "intermediate", "advanced"],
    },
    {"id": "tools", "type": "checkbox", "label": "Tools", "options": ["Wheel", "Kiln"]},
    {"id": "notes", "type": "textarea", "label": "Notes"},
]


@pytest.fixture
def pottery_workshop(make_workshop, registration_service):
    workshop = make_workshop(capacity=4, custom_fields=CUSTOM_FIELDS)
    answers = [
        {"fullName": "Ada", "email": "ada@example.com", "experience": "beginner",
         "tools": ["Wheel", "Kiln"], "notes": "Left handed"},
        {"fullName": "Bea", "email": "bea@example.com", "experience": "beginner",
         "tools": ["Wheel"]},
        {"fullName": "Cy", "email": "cy@example.com", "experience": "advanced"},
    ]
    registrations = [
        registration_service.submit_registration(workshop.id, data).registration
        for data in answers
    ]
    return workshop, registrations


def _fields(workshop_service, workshop):
    return effective_fields(workshop_service.get_form_config(workshop.id))


def test_csv_has_one_column_per_field(pottery_workshop, workshop_service, registration_service):
    workshop, _ = pottery_workshop
    registrations = registration_service.get_registrations_for_workshop(workshop.id)

    content = export_registrations_csv(registrations, _fields(workshop_service, workshop))
    rows = list(csv.reader(io.StringIO(content)))

    assert rows[0] == BASE_COLUMNS + [
        "Full Name", "Email", "Phone", "Experience level", "Tools", "Notes",
    ]
    assert len(rows) == 4
    by_name = {row[1]: row for row in rows[1:]}
    assert by_name["Ada"][2:4] == ["ada@example.com", "confirmed"]
    assert by_name["Ada"][-3:] == ["beginner", "Wheel, Kiln", "Left handed"]
    assert by_name["Cy"][-2:] == ["", ""]


def test_csv_keeps_answers_to_unknown_fields(pottery_workshop, workshop_service, registration_service):
    workshop, _ = pottery_workshop
    registrations = registration_service.get_registrations_for_workshop(workshop.id)
    registrations[0].form_data = {**registrations[0].form_data, "legacy": True}

    content = export_registrations_csv(registrations, _fields(workshop_service, workshop))
    rows = list(csv.reader(io.StringIO(content)))

    assert rows[0][-1] == "legacy"
    assert rows[1][-1] == "Yes"
    assert rows[2][-1] == ""


def test_summary_counts_and_distribution(pottery_workshop, workshop_service, registration_service):
    workshop, registrations = pottery_workshop
    registration_service.cancel_registration(registrations[2].id)
    workshop = workshop_service.get_workshop(workshop.id)
    all_registrations = registration_service.get_registrations_for_workshop(workshop.id)

    summary = summarize_workshop(
        workshop, all_registrations, _fields(workshop_service, workshop)
    )

    assert summary["registered_count"] == 2
    assert summary["fill_rate"] == 0.5
    assert summary["total_registrations"] == 3
    assert summary["status_counts"] == {
        "confirmed": 2, "pending": 0, "cancelled": 1, "waitlist": 0,
    }

    by_id = {f["field_id"]: f for f in summary["fields"]}
    assert by_id["experience"]["responses"] == 2
    assert by_id["experience"]["top_answer"] == "beginner"
    assert by_id["tools"]["distribution"] == [
        {"value": "Wheel", "label": "Wheel", "count": 2},
        {"value": "Kiln", "label": "Kiln", "count": 1},
    ]
    assert by_id["notes"]["response_rate"] == 0.5
    assert by_id["notes"]["average_length"] == len("Left handed")


def test_summary_for_unlimited_workshop_without_registrations(make_workshop, workshop_service):
    workshop = make_workshop()

    summary = summarize_workshop(workshop, [], _fields(workshop_service, workshop))

    assert summary["capacity"] is None
    assert summary["fill_rate"] is None
    assert all(f["responses"] == 0 for f in summary["fields"])
    assert all(f["response_rate"] == 0.0 for f in summary["fields"])


def test_summary_counts_bare_checkbox_as_yes_no(make_workshop):
    workshop = make_workshop(capacity=3)
    agree = FieldDefinition(
        id="agree", type=FieldType.CHECKBOX, label="I agree to the studio rules"
    )
    registrations = [
        Registration(
            workshop_id=workshop.id,
            student_id=f"student-{i}",
            name=f"Student {i}",
            email=f"student{i}@example.com",
            status=RegistrationStatus.CONFIRMED,
            form_data={"agree": answer},
        )
        for i, answer in enumerate([True, False, True])
    ]

    summary = summarize_workshop(workshop, registrations, [agree])

    field = summary["fields"][0]
    assert "average_length" not in field
    assert field["distribution"] == [
        {"value": "true", "label": "Yes", "count": 2},
        {"value": "false", "label": "No", "count": 1},
    ]
    assert field["top_answer"] == "true"
