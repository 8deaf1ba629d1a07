"""Test the respondent-facing registration endpoints"""

import logging
import uuid
from datetime import datetime, timezone

from workshop_registry.errors import PersistenceUnavailable
from workshop_registry.models.workshop import RegistrationClosePolicy
from workshop_registry.services.registration_service import RegistrationService

logger = logging.getLogger(__name__)

ADA = {"fullName": "Ada Lovelace", "email": "ada@example.com", "phone": "555-0100"}
BEA = {"fullName": "Bea Smith", "email": "bea@example.com"}


class TestRegistrationForm:
    """Test GET /workshops/{id}/form"""

    def test_published_form_is_served(self, client, make_workshop):
        workshop = make_workshop(
            capacity=10,
            custom_fields=[
                {"type": "radio", "label": "Track", "required": True, "options": ["Wheel", "Hand"]}
            ],
        )

        response = client.get(f"/workshops/{workshop.id}/form")

        assert response.status_code == 200
        data = response.json()
        assert data["workshop"]["title"] == "Intro to Pottery"
        assert data["admission_state"] == "open"
        assert data["spots_remaining"] == 10
        labels = [f["label"] for f in data["form"]["fields"]]
        assert labels == ["Full Name", "Email", "Phone", "Track"]
        assert data["form"]["fields"][3]["options"][0] == {"value": "Wheel", "label": "Wheel"}

    def test_draft_form_is_forbidden(self, client, make_workshop):
        workshop = make_workshop(publish=False)

        response = client.get(f"/workshops/{workshop.id}/form")

        assert response.status_code == 403

    def test_unknown_workshop_returns_404(self, client):
        response = client.get(f"/workshops/{uuid.uuid4()}/form")

        assert response.status_code == 404
        assert "not found" in response.json()["detail"]


class TestRegistrationSubmission:
    """Test POST /workshops/{id}/register"""

    def test_confirmed_registration(self, client, make_workshop, email_client, llm_client):
        workshop = make_workshop(capacity=5)
        llm_client.text_response = "  Can't wait to see you, Ada!  "

        response = client.post(f"/workshops/{workshop.id}/register", json={"form_data": ADA})

        logger.info(f"Response content: {response.text}")
        assert response.status_code == 200
        result = response.json()
        assert result["success"] is True
        assert result["outcome"] == "accepted"
        assert result["status"] == "confirmed"
        assert result["waitlist_position"] is None
        assert result["message"] == "Can't wait to see you, Ada!"
        assert result["email_sent"] is True
        uuid.UUID(result["registration_id"])

        recipients = [email["to"] for email in email_client.sent]
        assert recipients == ["ada@example.com", "organizer@example.com"]

    def test_waitlisted_registration(self, client, make_workshop):
        workshop = make_workshop(capacity=1, enable_waitlist=True)
        client.post(f"/workshops/{workshop.id}/register", json={"form_data": ADA})

        response = client.post(f"/workshops/{workshop.id}/register", json={"form_data": BEA})

        assert response.status_code == 200
        result = response.json()
        assert result["outcome"] == "waitlisted"
        assert result["status"] == "waitlist"
        assert result["waitlist_position"] == 1

    def test_pending_registration_when_approval_required(self, client, make_workshop):
        workshop = make_workshop(require_approval=True)

        response = client.post(f"/workshops/{workshop.id}/register", json={"form_data": ADA})

        assert response.status_code == 200
        assert response.json()["status"] == "pending"

    def test_email_failure_does_not_fail_registration(self, client, make_workshop, email_client):
        workshop = make_workshop()
        email_client.fail = True

        response = client.post(f"/workshops/{workshop.id}/register", json={"form_data": ADA})

        assert response.status_code == 200
        assert response.json()["email_sent"] is False

    def test_invalid_answers_return_field_errors(self, client, make_workshop):
        workshop = make_workshop()

        response = client.post(
            f"/workshops/{workshop.id}/register",
            json={"form_data": {"fullName": "", "email": "not-an-email"}},
        )

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["message"] == "Please correct the errors in the form"
        assert detail["errors"] == [
            {"field_id": "fullName", "message": "Full Name is required"},
            {"field_id": "email", "message": "Please enter a valid email address"},
        ]

    def test_full_workshop_rejects(self, client, make_workshop):
        workshop = make_workshop(capacity=1)
        client.post(f"/workshops/{workshop.id}/register", json={"form_data": ADA})

        response = client.post(f"/workshops/{workshop.id}/register", json={"form_data": BEA})

        assert response.status_code == 409
        assert response.json()["detail"] == {
            "message": "This workshop is full",
            "reason": "full",
        }

    def test_closed_workshop_rejects(self, client, make_workshop):
        workshop = make_workshop(
            registration_closes=RegistrationClosePolicy.CUSTOM,
            registration_closes_at=datetime(2020, 1, 1, tzinfo=timezone.utc),
        )

        response = client.post(f"/workshops/{workshop.id}/register", json={"form_data": ADA})

        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "closed"

    def test_duplicate_email_rejects(self, client, make_workshop, email_client):
        workshop = make_workshop(prevent_duplicates=True)
        client.post(f"/workshops/{workshop.id}/register", json={"form_data": ADA})
        sent_before = len(email_client.sent)

        response = client.post(
            f"/workshops/{workshop.id}/register",
            json={"form_data": {**ADA, "email": "ADA@example.com"}},
        )

        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "duplicate"
        assert len(email_client.sent) == sent_before

    def test_draft_workshop_is_forbidden(self, client, make_workshop):
        workshop = make_workshop(publish=False)

        response = client.post(f"/workshops/{workshop.id}/register", json={"form_data": ADA})

        assert response.status_code == 403

    def test_unknown_workshop_returns_404(self, client):
        response = client.post(f"/workshops/{uuid.uuid4()}/register", json={"form_data": ADA})

        assert response.status_code == 404

    def test_storage_outage_returns_503(self, client, make_workshop, monkeypatch):
        workshop = make_workshop()

        def unavailable(self, *args, **kwargs):
            raise PersistenceUnavailable("database is locked")

        monkeypatch.setattr(RegistrationService, "submit_registration", unavailable)

        response = client.post(f"/workshops/{workshop.id}/register", json={"form_data": ADA})

        assert response.status_code == 503
        assert "try again" in response.json()["detail"]
