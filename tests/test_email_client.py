from types import SimpleNamespace

import pytest

from tests.config import test_config
from workshop_registry.backends.email_client import ORGANIZER_TAG, EmailClient


class FakeMailgunResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


@pytest.fixture
def mailgun_client():
    client = EmailClient(test_config)
    client.requests = []

    def create(data, domain):
        client.requests.append({"data": data, "domain": domain})
        return client.next_response

    client.next_response = FakeMailgunResponse(200, {"id": "<1@mg.example.com>"})
    client.client = SimpleNamespace(messages=SimpleNamespace(create=create))
    return client


def test_build_message_sets_reply_to_only_when_given(mailgun_client):
    message = mailgun_client.build_message(
        "ada@example.com", "Hello", "Welcome", reply_to="organizer@example.com"
    )

    assert message["from"] == test_config["sender_email"]
    assert message["h:Reply-To"] == "organizer@example.com"
    assert message["o:tag"] == "workshop-registrant"

    message = mailgun_client.build_message("ada@example.com", "Hello")
    assert message["subject"] == "Your workshop registration"
    assert "h:Reply-To" not in message


@pytest.mark.asyncio
async def test_send_email_posts_to_configured_domain(mailgun_client):
    response = await mailgun_client.send_email(
        to="organizer@example.com", text="New registration", tag=ORGANIZER_TAG
    )

    assert response == {"id": "<1@mg.example.com>"}
    request = mailgun_client.requests[0]
    assert request["domain"] == "mg.example.com"
    assert request["data"]["o:tag"] == "workshop-organizer"


@pytest.mark.asyncio
async def test_send_email_raises_on_mailgun_error(mailgun_client):
    mailgun_client.next_response = FakeMailgunResponse(401, {"message": "Forbidden"})

    with pytest.raises(RuntimeError, match="Failed to send email"):
        await mailgun_client.send_email(to="ada@example.com", text="Hi")
