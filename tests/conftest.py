"""Pytest configuration and fixtures.

Every test runs against its own in-memory SQLite database. The generation
provider is replaced by ``FakeGenerator`` and outbound HTTP by
``httpx.MockTransport``.
"""

import json
from typing import Any, Dict, List, Optional, Union

import httpx
import pytest
from fastapi.testclient import TestClient

import portal.models  # noqa: F401
from portal.config import Settings
from portal.database import Base, build_engine, build_session_factory
from portal.dependencies import create_access_token
from portal.errors import GenerationFailed
from portal.main import create_app
from portal.models.client import ClientProfile
from portal.models.user import User
from portal.services.generation import GenerationInvoker
from portal.services.notifications import EmailSink, Notifier, WebhookSink

N8N_URL = "https://n8n.test/webhook/onboarding"
EMAIL_URL = "https://mail.test/send"


class FakeGenerator(GenerationInvoker):
    """Invoker whose provider call replays queued replies.

    Queue strings (model output) or exceptions. When the queue is empty
    ``default_reply`` is returned.
    """

    def __init__(self, settings: Settings, default_reply: str = "Generated content for the client."):
        super().__init__(settings)
        self.default_reply = default_reply
        self.replies: List[Union[str, Exception]] = []
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *replies: Union[str, Exception, dict]) -> "FakeGenerator":
        for reply in replies:
            self.replies.append(json.dumps(reply) if isinstance(reply, dict) else reply)
        return self

    async def _complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: int,
        model: Optional[str],
        response_format: Optional[Dict[str, str]] = None
    ) -> str:
        self.calls.append({
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "model": model or self.default_model,
            "response_format": response_format,
        })
        reply = self.replies.pop(0) if self.replies else self.default_reply
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def last_call(self) -> Dict[str, Any]:
        return self.calls[-1]


class RecordingTransport:
    """Builds an ``httpx.MockTransport`` that records requests and answers with queued outcomes.

    Queue status codes, ready-made ``httpx.Response`` objects, or exceptions.
    """

    def __init__(self, default_status: int = 200):
        self.default_status = default_status
        self.statuses: List[Union[int, httpx.Response, Exception]] = []
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.statuses.pop(0) if self.statuses else self.default_status
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, httpx.Response):
            return outcome
        return httpx.Response(outcome, json={"ok": outcome < 400})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


async def no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def settings():
    return Settings(
        ENVIRONMENT="test",
        DEBUG=False,
        DATABASE_URL="sqlite:///:memory:",
        OPENAI_API_KEY="test-openai-key",
        JWT_SECRET="test-secret",
        N8N_WEBHOOK_URL=N8N_URL,
        EMAIL_WEBHOOK_URL=EMAIL_URL,
        ADMIN_EMAIL="admin@agency.test",
        WEBHOOK_MAX_ATTEMPTS=3,
        WEBHOOK_RETRY_BACKOFF_SECONDS=0.5,
    )


@pytest.fixture
def session_factory(settings):
    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def generator(settings):
    return FakeGenerator(settings)


@pytest.fixture
def http():
    return RecordingTransport()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def notifier(settings, session_factory, http, sleeps):
    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return Notifier(
        settings,
        session_factory=session_factory,
        webhook_sink=WebhookSink(transport=http.transport()),
        email_sink=EmailSink(settings.EMAIL_WEBHOOK_URL, transport=http.transport()),
        sleep=record_sleep,
    )


@pytest.fixture
def app(settings, session_factory, generator, notifier):
    return create_app(
        settings=settings,
        session_factory=session_factory,
        generator=generator,
        notifier=notifier,
    )


@pytest.fixture
def client(app):
    return TestClient(app)


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

def make_user(db, subject: str, email: str, role: str = "client", is_active: bool = True) -> User:
    user = User(auth_subject=subject, email=email, name=subject.title(), role=role, is_active=is_active)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_profile(db, user: User, **overrides) -> ClientProfile:
    fields = dict(
        unique_client_id=f"CL-TEST-{user.auth_subject.upper()}",
        company_name="Acme Outdoor Co",
        industry="Outdoor Retail",
        website_url="https://acme.test",
        company_description="Direct-to-consumer camping gear",
        employee_count="11-50",
        business_model="B2C",
        worked_with_agency=True,
        current_channels=["Google Ads", "Instagram"],
        primary_challenges=["Rising CPA"],
        has_google_analytics="yes",
        tracking_tools=["GA4"],
        social_platforms=["Instagram", "TikTok"],
        primary_goal="Grow online revenue",
        key_metrics=["ROAS", "CPA"],
        target_roas="4x",
        ideal_customer_profile="Weekend campers aged 25-45",
        competitors=["REI", "Backcountry"],
        monthly_budget_range="$10k-$25k",
        has_creative_assets=False,
        has_marketing_contact=True,
        marketing_contact_name="Dana Reyes",
        marketing_contact_email="dana@acme.test",
        status="active",
        onboarding_completed=True,
    )
    fields.update(overrides)
    profile = ClientProfile(user_id=user.user_id, **fields)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture
def client_user(db):
    return make_user(db, "client-sub", "owner@acme.test")


@pytest.fixture
def profile(db, client_user):
    return make_profile(db, client_user)


@pytest.fixture
def admin_user(db):
    return make_user(db, "admin-sub", "admin@agency.test", role="admin")


@pytest.fixture
def new_user(db):
    return make_user(db, "new-sub", "new@startup.test")


def bearer(user: User, settings: Settings) -> Dict[str, str]:
    token = create_access_token(user.auth_subject, user.role, settings=settings)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client_headers(client_user, profile, settings):
    return bearer(client_user, settings)


@pytest.fixture
def admin_headers(admin_user, settings):
    return bearer(admin_user, settings)


@pytest.fixture
def new_user_headers(new_user, settings):
    return bearer(new_user, settings)


@pytest.fixture
def provider_error():
    """An exception the invoker maps to a failed generation."""
    return GenerationFailed("Generation call failed")
