import uuid
from datetime import datetime, timedelta, timezone

import pytest

from workshop_registry.errors import (
    FieldNotFoundError,
    InvalidFieldError,
    InvalidStatusTransitionError,
    SchemaValidationError,
    UnknownFieldIdError,
    WorkshopNotFoundError,
)
from workshop_registry.models.field_type import FieldType
from workshop_registry.models.form_field import FormField
from workshop_registry.models.workshop import RegistrationClosePolicy, WorkshopStatus

STARTS_AT = datetime(2026, 11, 20, 18, 0, tzinfo=timezone.utc)


def _create(workshop_service, custom_fields=None, **settings):
    return workshop_service.create_workshop(
        {"title": "Sourdough basics", "starts_at": STARTS_AT, **settings},
        {"custom_fields": custom_fields or []},
    )


def test_create_workshop_starts_as_draft_with_form(workshop_service):
    workshop = _create(
        workshop_service,
        custom_fields=[
            {"type": "text", "label": "Allergies"},
            {"type": "radio", "label": "Session", "options": ["Morning", "Evening"]},
        ],
        capacity=12,
    )

    assert workshop.status == WorkshopStatus.DRAFT
    assert workshop.registered_count == 0
    assert workshop.waitlist_count == 0

    config = workshop_service.get_form_config(workshop.id)
    assert config.use_default_fields is True
    assert [f.label for f in config.custom_fields] == ["Allergies", "Session"]
    assert all(f.id.startswith("field_") for f in config.custom_fields)
    assert config.custom_fields[1].option_values() == ["Morning", "Evening"]


def test_create_workshop_rejects_bad_input(workshop_service):
    with pytest.raises(ValueError, match="title"):
        workshop_service.create_workshop({"title": "  "})
    with pytest.raises(ValueError, match="end before it starts"):
        _create(workshop_service, ends_at=STARTS_AT - timedelta(hours=1))
    with pytest.raises(ValueError, match="custom registration deadline"):
        _create(workshop_service, registration_closes=RegistrationClosePolicy.CUSTOM)
    with pytest.raises(ValueError, match="Unknown workshop settings"):
        _create(workshop_service, registered_count=5)
    with pytest.raises(InvalidFieldError):
        _create(workshop_service, custom_fields=[{"type": "select", "label": "Pick"}])

    assert workshop_service.list_workshops() == []


def test_list_and_get_workshops(workshop_service):
    later = _create(workshop_service, starts_at=STARTS_AT + timedelta(days=3))
    sooner = _create(workshop_service)
    workshop_service.publish_workshop(later.id)

    assert [w.id for w in workshop_service.list_workshops()] == [sooner.id, later.id]
    assert [w.id for w in workshop_service.list_workshops(WorkshopStatus.PUBLISHED)] == [
        later.id
    ]
    with pytest.raises(WorkshopNotFoundError):
        workshop_service.get_workshop(uuid.uuid4())


def test_update_workshop_settings_only(workshop_service):
    workshop = _create(workshop_service, capacity=10)

    updated = workshop_service.update_workshop(
        workshop.id, {"capacity": 20, "enable_waitlist": True}
    )
    assert updated.capacity == 20
    assert updated.enable_waitlist is True

    with pytest.raises(ValueError, match="cannot be changed"):
        workshop_service.update_workshop(workshop.id, {"registered_count": 0})
    with pytest.raises(ValueError, match="cannot be changed"):
        workshop_service.update_workshop(workshop.id, {"status": "published"})


def test_field_level_edits(workshop_service):
    workshop = _create(workshop_service)

    company = workshop_service.add_field(
        workshop.id, {"id": "company", "type": "text", "label": "Company"}
    )
    role = workshop_service.add_field(
        workshop.id, {"type": "select", "label": "Role", "options": ["Dev", "Ops"]}
    )
    workshop_service.update_field(workshop.id, company.id, {"required": True})
    config = workshop_service.reorder_fields(workshop.id, [role.id, company.id])

    assert [f.id for f in config.custom_fields] == [role.id, "company"]
    assert config.custom_fields[1].required is True

    config = workshop_service.remove_field(workshop.id, role.id)
    assert [f.id for f in config.custom_fields] == ["company"]

    with pytest.raises(FieldNotFoundError):
        workshop_service.update_field(workshop.id, "missing", {"label": "x"})
    with pytest.raises(UnknownFieldIdError):
        workshop_service.reorder_fields(workshop.id, ["company", "ghost"])


def test_publish_refuses_optionless_option_field(workshop_service):
    workshop = _create(workshop_service)
    # Rows written outside the editor can still break authoring rules
    workshop_service.db.add(
        FormField(
            workshop_id=workshop.id,
            field_id="track",
            field_type=FieldType.SELECT,
            label="Track",
            options=None,
            field_order=0,
        )
    )
    workshop_service.db.commit()

    with pytest.raises(SchemaValidationError) as exc_info:
        workshop_service.publish_workshop(workshop.id)

    assert exc_info.value.errors[0].field_id == "track"
    assert workshop_service.get_workshop(workshop.id).status == WorkshopStatus.DRAFT


def test_publish_and_archive_transitions(workshop_service):
    workshop = _create(workshop_service)

    assert workshop_service.publish_workshop(workshop.id).status == WorkshopStatus.PUBLISHED
    assert workshop_service.publish_workshop(workshop.id).status == WorkshopStatus.PUBLISHED
    assert workshop_service.archive_workshop(workshop.id).status == WorkshopStatus.ARCHIVED

    with pytest.raises(InvalidStatusTransitionError):
        workshop_service.publish_workshop(workshop.id)


def test_form_changes_are_additive_once_registered(
    make_workshop, workshop_service, registration_service
):
    workshop = make_workshop(
        custom_fields=[{"id": "level", "type": "select", "label": "Level", "options": ["A", "B"]}]
    )
    registration_service.submit_registration(
        workshop.id, {"fullName": "Ada", "email": "ada@example.com", "level": "A"}
    )

    # Adding fields and relabelling is fine
    workshop_service.add_field(workshop.id, {"id": "notes", "type": "textarea", "label": "Notes"})
    workshop_service.update_field(workshop.id, "level", {"label": "Experience level"})

    with pytest.raises(SchemaValidationError) as exc_info:
        workshop_service.remove_field(workshop.id, "level")
    assert exc_info.value.errors[0].field_id == "level"

    with pytest.raises(SchemaValidationError):
        workshop_service.update_field(workshop.id, "level", {"type": "text"})

    with pytest.raises(SchemaValidationError):
        workshop_service.update_form_config(
            workshop.id, {"use_default_fields": False, "custom_fields": []}
        )

    config = workshop_service.get_form_config(workshop.id)
    assert [f.id for f in config.custom_fields] == ["level", "notes"]
    assert config.custom_fields[0].label == "Experience level"


def test_form_can_be_replaced_freely_before_registrations(workshop_service):
    workshop = _create(
        workshop_service, custom_fields=[{"id": "level", "type": "text", "label": "Level"}]
    )

    config = workshop_service.update_form_config(
        workshop.id,
        {
            "use_default_fields": False,
            "custom_fields": [{"type": "email", "label": "Work email"}],
        },
    )

    assert config.use_default_fields is False
    assert [f.type for f in config.custom_fields] == [FieldType.EMAIL]
    assert workshop_service.get_workshop(workshop.id).use_default_fields is False
