"""Shared test configuration and fixtures for Workshop Registry tests"""

import logging
import os
from datetime import datetime, timedelta, timezone

# In-memory database for the module-level engine used by health checks
os.environ["DATABASE_URL"] = "sqlite://"

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from tests.config import test_config
from workshop_registry.main import app
from workshop_registry.models.database import get_db, get_redis, init_db
from workshop_registry.routers.registration import get_email_service
from workshop_registry.services.email_service import EmailService
from workshop_registry.services.llm_service import get_llm_client
from workshop_registry.services.registration_service import RegistrationService
from workshop_registry.services.workshop_service import WorkshopService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeLLMClient:
    """Stands in for LLMClient; records calls and replays canned replies"""

    def __init__(self):
        self.text_response = "See you at the workshop!"
        self.json_response = {"subject": "Registered", "body": "You're in."}
        self.error = None
        self.calls = []

    async def process_instruction(self, messages, max_tokens=1000, system=None):
        self.calls.append({"messages": messages, "system": system})
        if self.error:
            raise self.error
        return self.text_response

    async def process_json_instruction(self, messages, max_tokens=1000, system=None):
        self.calls.append({"messages": messages, "system": system})
        if self.error:
            raise self.error
        return self.json_response


class FakeEmailClient:
    """Captures outgoing emails instead of calling Mailgun"""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_email(self, to, text, subject=None, tag="workshop-registrant", reply_to=None):
        if self.fail:
            raise RuntimeError("Email sending failed: mailgun is down")
        self.sent.append(
            {"to": to, "subject": subject, "text": text, "tag": tag, "reply_to": reply_to}
        )
        return {"id": f"<{len(self.sent)}@mg.example.com>"}


@pytest.fixture
def engine():
    """In-memory SQLite engine shared by every session of one test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def _db_session(engine):
    """Private DB session for fixtures only.

    Do not use this fixture directly in tests. Prefer higher-level service
    fixtures like `workshop_service` or `registration_service`.
    """
    session = Session(engine)
    yield session
    session.close()


@pytest.fixture
def llm_client():
    return FakeLLMClient()


@pytest.fixture
def email_client():
    return FakeEmailClient()


@pytest.fixture
def redis_client():
    """In-process Redis with its own server per test"""
    client = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    client.flushdb()


@pytest.fixture
def email_service(llm_client, email_client):
    return EmailService(llm_client, test_config, email_client=email_client)


@pytest.fixture
def workshop_service(_db_session):
    """Create a WorkshopService instance for testing"""
    return WorkshopService(_db_session)


@pytest.fixture
def registration_service(_db_session, llm_client):
    """Create a RegistrationService instance for testing"""
    return RegistrationService(_db_session, llm_client)


@pytest.fixture
def make_workshop(workshop_service):
    """Factory for published workshops starting a week from now"""

    def _make_workshop(publish=True, custom_fields=None, use_default_fields=True, **settings):
        starts_at = datetime.now(timezone.utc) + timedelta(days=7)
        data = {
            "title": "Intro to Pottery",
            "description": "Hands-on wheel throwing for beginners",
            "organizer_email": "organizer@example.com",
            "starts_at": starts_at,
            "ends_at": starts_at + timedelta(hours=3),
        }
        data.update(settings)
        workshop = workshop_service.create_workshop(
            data,
            {
                "use_default_fields": use_default_fields,
                "custom_fields": custom_fields or [],
            },
        )
        if publish:
            workshop = workshop_service.publish_workshop(workshop.id)
        return workshop

    return _make_workshop


@pytest.fixture
def client(_db_session, llm_client, email_service, redis_client):
    """Test client using the test database and doubles for external services"""

    # Store original overrides to restore them later
    original_overrides = app.dependency_overrides.copy()

    def get_test_db():
        return _db_session

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_llm_client] = lambda: llm_client
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_redis] = lambda: redis_client

    client = TestClient(app)

    yield client

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)
