"""Tests for the notification outbox and HTTP sinks."""

import httpx
import pytest

from portal.models.activity import ActivityLog, ActivityType
from portal.models.notification import NotificationChannel, NotificationOutbox, NotificationStatus
from portal.services.notifications import (
    EmailSink,
    Notifier,
    WebhookSink,
    decode_list_field,
    onboarding_payload,
)
from tests.conftest import EMAIL_URL, N8N_URL, RecordingTransport


def _webhook(db, notifier, profile, payload=None):
    notification = notifier.enqueue(
        db, NotificationChannel.WEBHOOK, "onboarding_completed", N8N_URL,
        payload or {"clientId": str(profile.client_id)}, client_id=profile.client_id,
    )
    db.commit()
    return notification


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("value, expected", [
    (None, []),
    ("", []),
    (["a"], ["a"]),
    ('["a", "b"]', ["a", "b"]),
    ("free text", ["free text"]),
])
def test_decode_list_field(value, expected):
    assert decode_list_field(value) == expected


def test_onboarding_payload_is_camel_case(profile, client_user):
    payload = onboarding_payload(profile, client_user.email, resent=True)

    assert payload["uniqueClientId"] == profile.unique_client_id
    assert payload["companyName"] == "Acme Outdoor Co"
    assert payload["currentChannels"] == ["Google Ads", "Instagram"]
    assert payload["marketingContactEmail"] == "dana@acme.test"
    assert payload["email"] == "owner@acme.test"
    assert payload["resent"] is True
    assert "timestamp" in payload


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_webhook_sink_send(http):
    sink = WebhookSink(transport=http.transport())

    assert await sink.send(N8N_URL, None, {"hello": "world"}) is True
    assert str(http.requests[0].url) == N8N_URL
    assert http.bodies() == [{"hello": "world"}]

    http.statuses.append(502)
    assert await sink.send(N8N_URL, None, {}) is False


@pytest.mark.asyncio
async def test_email_sink_relay_body(http):
    sink = EmailSink(EMAIL_URL, transport=http.transport())

    assert await sink.send("owner@acme.test", "Welcome", {"body": "Hi there"}) is True
    assert http.bodies() == [{"email": "owner@acme.test", "subject": "Welcome", "mailBody": "Hi there"}]


@pytest.mark.asyncio
async def test_email_sink_unconfigured(http):
    sink = EmailSink(None, transport=http.transport())

    assert await sink.send("owner@acme.test", "Welcome", {"body": "Hi"}) is False
    assert http.requests == []


# ---------------------------------------------------------------------------
# Outbox
# ---------------------------------------------------------------------------

def test_queue_onboarding(db, notifier, profile, client_user):
    ids = notifier.queue_onboarding(db, profile, client_user)
    db.commit()

    rows = {n.event_type: n for n in db.query(NotificationOutbox).all()}
    assert len(ids) == 3
    assert set(rows) == {"onboarding_completed", "welcome_email", "admin_onboarding_notification"}
    assert rows["onboarding_completed"].destination == N8N_URL
    assert rows["welcome_email"].destination == "owner@acme.test"
    assert rows["admin_onboarding_notification"].destination == "admin@agency.test"
    assert "CL-TEST-CLIENT-SUB" in rows["admin_onboarding_notification"].payload["body"]
    assert all(n.status == NotificationStatus.PENDING for n in rows.values())


def test_queue_onboarding_without_webhook_url(db, settings, session_factory, profile, client_user):
    settings.N8N_WEBHOOK_URL = None
    notifier = Notifier(settings, session_factory=session_factory)

    ids = notifier.queue_onboarding(db, profile, client_user)

    assert len(ids) == 2
    assert db.query(NotificationOutbox).filter_by(channel=NotificationChannel.WEBHOOK).count() == 0


@pytest.mark.asyncio
async def test_deliver_first_attempt(db, notifier, profile, http, sleeps):
    notification = _webhook(db, notifier, profile)

    assert await notifier.deliver_notification(db, notification) is True

    assert notification.status == NotificationStatus.SENT
    assert notification.attempts == 1
    assert notification.response_code == 200
    assert notification.sent_at is not None
    assert notification.last_error is None
    assert sleeps == []


@pytest.mark.asyncio
async def test_deliver_retries_with_linear_backoff(db, notifier, profile, http, sleeps):
    http.statuses.extend([500, 503, 200])
    notification = _webhook(db, notifier, profile)

    assert await notifier.deliver_notification(db, notification) is True

    assert notification.attempts == 3
    assert notification.status == NotificationStatus.SENT
    assert sleeps == [0.5, 1.0]
    assert len(http.requests) == 3


@pytest.mark.asyncio
async def test_deliver_gives_up_after_max_attempts(db, notifier, profile, http, sleeps):
    http.default_status = 500
    notification = _webhook(db, notifier, profile)

    assert await notifier.deliver_notification(db, notification) is False

    assert notification.status == NotificationStatus.FAILED
    assert notification.attempts == 3
    assert notification.response_code == 500
    assert notification.last_error == "HTTP 500"
    assert sleeps == [0.5, 1.0]


@pytest.mark.asyncio
async def test_deliver_records_transport_errors(db, notifier, profile, http):
    http.statuses.extend([httpx.ConnectError("connection refused")] * 3)
    notification = _webhook(db, notifier, profile)

    assert await notifier.deliver_notification(db, notification) is False
    assert notification.last_error == "connection refused"


@pytest.mark.asyncio
async def test_unconfigured_email_fails_without_retry(db, settings, session_factory, profile, sleeps):
    http = RecordingTransport()

    async def record_sleep(seconds):
        sleeps.append(seconds)

    notifier = Notifier(
        settings,
        session_factory=session_factory,
        email_sink=EmailSink(None, transport=http.transport()),
        sleep=record_sleep,
    )
    notification = notifier.enqueue_email(
        db, "welcome_email", "owner@acme.test", {"subject": "Hi", "body": "Welcome"},
        client_id=profile.client_id,
    )
    db.commit()

    assert await notifier.deliver_notification(db, notification) is False
    assert notification.attempts == 1
    assert notification.last_error == "EMAIL_WEBHOOK_URL not configured"
    assert sleeps == []
    assert http.requests == []


@pytest.mark.asyncio
async def test_delivered_webhook_is_logged_as_activity(db, notifier, profile):
    notification = _webhook(db, notifier, profile)

    await notifier.deliver_notification(db, notification)

    activity = db.query(ActivityLog).filter_by(client_id=profile.client_id).one()
    assert activity.activity_type == ActivityType.N8N_WEBHOOK_SENT


@pytest.mark.asyncio
async def test_deliver_by_id_uses_own_session(db, notifier, profile, client_user, http):
    ids = notifier.queue_onboarding(db, profile, client_user)
    db.commit()

    await notifier.deliver_all(ids)

    db.expire_all()
    statuses = {n.event_type: n.status for n in db.query(NotificationOutbox).all()}
    assert set(statuses.values()) == {NotificationStatus.SENT}
    assert len(http.requests) == 3

    # Already sent: nothing is re-posted
    assert await notifier.deliver(ids[0]) is True
    assert len(http.requests) == 3
