"""Test the speaker endpoints under /admin/speakers"""

import uuid

import pytest

WORKSHOP_PAYLOAD = {
    "title": "Raku Firing",
    "starts_at": "2030-05-04T10:00:00+00:00",
    "capacity": 8,
}


@pytest.fixture
def speaker(client):
    response = client.post(
        "/admin/speakers",
        json={"name": "Mira Okafor", "email": "mira@example.com", "expertise": "Raku"},
    )
    assert response.status_code == 201
    return response.json()


class TestSpeakerEndpoints:
    """Test speaker management and assignment to workshops"""

    def test_create_and_list(self, client, speaker):
        assert speaker["name"] == "Mira Okafor"
        assert speaker["workshop_count"] == 0

        listed = client.get("/admin/speakers", params={"search": "raku"}).json()
        assert [s["id"] for s in listed["speakers"]] == [speaker["id"]]
        assert client.get("/admin/speakers", params={"search": "glaze"}).json() == {
            "speakers": []
        }

    def test_create_requires_name(self, client):
        response = client.post("/admin/speakers", json={"email": "x@example.com"})
        assert response.status_code == 422
        assert client.post("/admin/speakers", json={"name": " "}).status_code == 400

    def test_update_and_get(self, client, speaker):
        response = client.patch(f"/admin/speakers/{speaker['id']}", json={"bio": "Potter"})

        assert response.status_code == 200
        assert response.json()["bio"] == "Potter"
        assert client.get(f"/admin/speakers/{speaker['id']}").json()["bio"] == "Potter"
        assert client.patch(f"/admin/speakers/{speaker['id']}", json={}).status_code == 400

    def test_unknown_speaker_is_404(self, client):
        missing = uuid.uuid4()

        assert client.get(f"/admin/speakers/{missing}").status_code == 404
        assert client.delete(f"/admin/speakers/{missing}").status_code == 404

    def test_assign_speaker_to_workshop_and_delete(self, client, speaker):
        payload = {**WORKSHOP_PAYLOAD, "speaker_id": speaker["id"]}
        workshop = client.post("/admin/workshops", json=payload).json()
        assert workshop["speaker_id"] == speaker["id"]
        assert client.get(f"/admin/speakers/{speaker['id']}").json()["workshop_count"] == 1

        response = client.delete(f"/admin/speakers/{speaker['id']}")

        assert response.status_code == 204
        assert client.get(f"/admin/workshops/{workshop['id']}").json()["speaker_id"] is None

    def test_workshop_with_unknown_speaker_is_rejected(self, client):
        payload = {**WORKSHOP_PAYLOAD, "speaker_id": str(uuid.uuid4())}

        response = client.post("/admin/workshops", json=payload)

        assert response.status_code == 400
        assert "does not exist" in response.json()["detail"]
