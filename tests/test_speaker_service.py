import uuid

import pytest

from workshop_registry.errors import SpeakerNotFoundError
from workshop_registry.services.speaker_service import SpeakerService


@pytest.fixture
def speaker_service(_db_session):
    return SpeakerService(_db_session)


@pytest.fixture
def mira(speaker_service):
    return speaker_service.create_speaker(
        {
            "name": "  Mira Okafor ",
            "email": "Mira@Example.com",
            "expertise": "Raku firing, glazes",
            "bio": "Studio potter for twenty years",
        }
    )


def test_create_speaker_normalizes_input(mira):
    assert mira.name == "Mira Okafor"
    assert mira.email == "mira@example.com"
    assert mira.expertise == "Raku firing, glazes"


def test_create_speaker_requires_a_name(speaker_service):
    with pytest.raises(ValueError, match="name is required"):
        speaker_service.create_speaker({"name": "   "})


def test_create_speaker_rejects_unknown_fields(speaker_service):
    with pytest.raises(ValueError, match="Unknown speaker fields: twitter"):
        speaker_service.create_speaker({"name": "Mira", "twitter": "@mira"})


def test_list_speakers_sorted_and_searchable(speaker_service, mira):
    speaker_service.create_speaker({"name": "Ada Lovelace", "expertise": "Wheel throwing"})

    assert [s.name for s in speaker_service.list_speakers()] == ["Ada Lovelace", "Mira Okafor"]
    assert [s.name for s in speaker_service.list_speakers("RAKU")] == ["Mira Okafor"]
    assert [s.name for s in speaker_service.list_speakers("wheel")] == ["Ada Lovelace"]
    assert speaker_service.list_speakers("sculpture") == []


def test_update_speaker(speaker_service, mira):
    updated = speaker_service.update_speaker(mira.id, {"bio": "Teaches raku", "email": ""})

    assert updated.bio == "Teaches raku"
    assert updated.email is None
    assert updated.name == "Mira Okafor"

    with pytest.raises(ValueError):
        speaker_service.update_speaker(mira.id, {"name": ""})


def test_unknown_speaker_raises(speaker_service):
    with pytest.raises(SpeakerNotFoundError):
        speaker_service.get_speaker(uuid.uuid4())
    with pytest.raises(SpeakerNotFoundError):
        speaker_service.delete_speaker(uuid.uuid4())


def test_workshop_must_reference_an_existing_speaker(make_workshop, workshop_service, mira):
    workshop = make_workshop(speaker_id=mira.id)
    assert workshop.speaker_id == mira.id

    with pytest.raises(ValueError, match="does not exist"):
        workshop_service.update_workshop(workshop.id, {"speaker_id": uuid.uuid4()})
    assert workshop_service.get_workshop(workshop.id).speaker_id == mira.id

    with pytest.raises(ValueError, match="does not exist"):
        make_workshop(speaker_id=uuid.uuid4())


def test_deleting_a_speaker_unassigns_their_workshops(
    make_workshop, workshop_service, speaker_service, mira
):
    first = make_workshop(speaker_id=mira.id)
    second = make_workshop(speaker_id=mira.id)
    assert speaker_service.workshop_counts() == {mira.id: 2}

    speaker_service.delete_speaker(mira.id)

    assert speaker_service.list_speakers() == []
    assert workshop_service.get_workshop(first.id).speaker_id is None
    assert workshop_service.get_workshop(second.id).speaker_id is None
    assert speaker_service.workshop_counts() == {}
