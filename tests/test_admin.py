"""Tests for the admin endpoints."""

from portal.models.activity import ActivityLog, ActivityType
from portal.models.chat import ChatMessage
from portal.models.client import ClientProfile
from portal.models.document import DocumentType, GeneratedDocument
from portal.models.link import Link
from portal.models.notification import NotificationOutbox
from portal.models.user import User
from tests.conftest import EMAIL_URL, N8N_URL, make_profile, make_user

GIFT = {
    "giftName": "Trail Coffee Kit",
    "description": "Pour-over set with their logo",
    "reasoning": "Fits an outdoor brand",
    "estimatedCost": "$90",
    "vendor": "Snow Peak",
    "fulfillmentNotes": "Ships in a week",
}


def _chat(db, profile, *turns):
    for sequence, (role, content) in enumerate(turns, start=1):
        db.add(ChatMessage(client_id=profile.client_id, role=role, content=content, sequence=sequence))
    db.commit()


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------

def test_admin_requires_admin_role(client, client_headers):
    response = client.get("/api/v1/admin/clients", headers=client_headers)

    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden"}


def test_list_clients(client, db, admin_headers, profile):
    db.add(GeneratedDocument(
        client_id=profile.client_id,
        document_type=DocumentType.POSITIONING,
        title="Positioning Statement",
        content="# Voice",
    ))
    db.commit()
    other = make_profile(db, make_user(db, "other-sub", "hi@other.test"), company_name="Other Co")

    response = client.get("/api/v1/admin/clients", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    rows = {c["company_name"]: c for c in body["clients"]}
    assert rows["Acme Outdoor Co"]["email"] == "owner@acme.test"
    assert rows["Acme Outdoor Co"]["document_count"] == 1
    assert rows["Other Co"]["document_count"] == 0

    searched = client.get("/api/v1/admin/clients", params={"search": "other"}, headers=admin_headers)
    assert [c["unique_client_id"] for c in searched.json()["clients"]] == [other.unique_client_id]


def test_client_detail(client, db, admin_headers, profile):
    db.add(Link(client_id=profile.client_id, title="Report", url="https://reports.test/acme"))
    db.add(ActivityLog(
        client_id=profile.client_id,
        activity_type=ActivityType.ONBOARDING_COMPLETED,
        description="Onboarding completed",
    ))
    db.commit()

    response = client.get(f"/api/v1/admin/clients/{profile.client_id}", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    detail = body["client"]
    assert detail["email"] == "owner@acme.test"
    assert detail["business_info"]["company_name"] == "Acme Outdoor Co"
    assert detail["audience"]["competitors"] == ["REI", "Backcountry"]
    assert [link["title"] for link in body["links"]] == ["Report"]
    assert [a["activity_type"] for a in body["activity_logs"]] == ["onboarding_completed"]


def test_client_detail_unknown(client, admin_headers):
    response = client.get(
        "/api/v1/admin/clients/00000000-0000-0000-0000-000000000000",
        headers=admin_headers,
    )

    assert response.status_code == 404


def test_delete_client_cascades(client, db, admin_headers, profile, client_user):
    _chat(db, profile, ("user", "hi"), ("assistant", "hello"))
    db.add(GeneratedDocument(
        client_id=profile.client_id,
        document_type=DocumentType.GTM_STRATEGY,
        title="Go-To-Market Strategy",
        content="# GTM",
    ))
    db.commit()

    response = client.delete(f"/api/v1/admin/clients/{profile.client_id}", headers=admin_headers)

    assert response.status_code == 200
    deleted = response.json()["deleted"]
    assert deleted["unique_client_id"] == profile.unique_client_id
    assert deleted["email"] == "owner@acme.test"

    db.expire_all()
    assert db.query(ClientProfile).count() == 0
    assert db.query(User).filter_by(email="owner@acme.test").count() == 0
    assert db.query(ChatMessage).count() == 0
    assert db.query(GeneratedDocument).count() == 0


# ---------------------------------------------------------------------------
# Webhook re-delivery
# ---------------------------------------------------------------------------

def test_resend_webhook(client, db, admin_headers, profile, http):
    response = client.post(
        f"/api/v1/admin/clients/{profile.client_id}/resend-webhook",
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["delivered"] is True
    assert body["notification"]["status"] == "sent"
    assert body["notification"]["attempts"] == 1

    assert [str(r.url) for r in http.requests] == [N8N_URL]
    sent = http.bodies()[0]
    assert sent["resent"] is True
    assert sent["uniqueClientId"] == profile.unique_client_id

    types = {a.activity_type for a in db.query(ActivityLog).filter_by(client_id=profile.client_id)}
    assert ActivityType.N8N_WEBHOOK_RESENT in types


def test_resend_webhook_failure_reported(client, admin_headers, profile, http):
    http.default_status = 500

    response = client.post(
        f"/api/v1/admin/clients/{profile.client_id}/resend-webhook",
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["delivered"] is False
    assert body["notification"]["status"] == "failed"
    assert body["notification"]["last_error"] == "HTTP 500"


def test_resend_webhook_unconfigured(client, settings, admin_headers, profile):
    settings.N8N_WEBHOOK_URL = None

    response = client.post(
        f"/api/v1/admin/clients/{profile.client_id}/resend-webhook",
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "N8N webhook URL not configured"}


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------

def test_delete_link(client, db, admin_headers, profile):
    link = Link(client_id=profile.client_id, title="Drive", url="https://drive.test")
    db.add(link)
    db.commit()

    response = client.delete(f"/api/v1/admin/links/{link.link_id}", headers=admin_headers)
    assert response.status_code == 200

    again = client.delete(f"/api/v1/admin/links/{link.link_id}", headers=admin_headers)
    assert again.status_code == 404
    assert again.json() == {"error": "Link not found"}


# ---------------------------------------------------------------------------
# Chats
# ---------------------------------------------------------------------------

def test_chat_overview(client, db, admin_headers, profile):
    _chat(db, profile, ("user", "a"), ("assistant", "b"), ("user", "c"))
    quiet = make_profile(db, make_user(db, "quiet-sub", "quiet@test.test"), company_name="Quiet Co")

    response = client.get("/api/v1/admin/chats", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total_clients_with_chats"] == 1
    assert body["total_messages"] == 3
    summary = body["clients"][0]
    assert summary["company_name"] == "Acme Outdoor Co"
    assert summary["chat_stats"]["user_messages"] == 2
    assert summary["chat_stats"]["assistant_messages"] == 1
    assert summary["chat_stats"]["flagged_messages"] == 0
    assert str(quiet.client_id) not in [c["client_id"] for c in body["clients"]]


def test_chat_transcript_and_flag(client, db, admin_headers, profile):
    _chat(db, profile, ("user", "is this legal?"), ("assistant", "yes"))

    transcript = client.get(
        "/api/v1/admin/chats",
        params={"client_id": str(profile.client_id)},
        headers=admin_headers,
    ).json()
    assert transcript["total_messages"] == 2
    assert transcript["client"]["company_name"] == "Acme Outdoor Co"
    message_id = transcript["messages"][1]["message_id"]

    response = client.patch(
        f"/api/v1/admin/chats/messages/{message_id}",
        json={"flagged": True},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["message"]["flagged"] is True
    stats = client.get("/api/v1/admin/chats", headers=admin_headers).json()
    assert stats["clients"][0]["chat_stats"]["flagged_messages"] == 1


# ---------------------------------------------------------------------------
# Gifts
# ---------------------------------------------------------------------------

def test_gift_recommendation(client, db, admin_headers, profile, generator, http):
    generator.queue(GIFT)

    response = client.post(
        "/api/v1/admin/gift-recommendation",
        json={"clientId": str(profile.client_id)},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["recommendation"]["gift_name"] == "Trail Coffee Kit"
    assert body["recommendation"]["estimated_cost"] == "$90"
    assert body["email_queued"] is True
    assert generator.last_call["model"] == generator.fast_model

    # Admin email delivered in the background
    assert [str(r.url) for r in http.requests] == [EMAIL_URL]
    email = http.bodies()[0]
    assert email["email"] == "admin@agency.test"
    assert "Acme Outdoor Co" in email["subject"]
    assert "Trail Coffee Kit" in email["mailBody"]

    types = [a.activity_type for a in db.query(ActivityLog).filter_by(client_id=profile.client_id)]
    assert types == [ActivityType.GIFT_RECOMMENDED]


def test_gift_recommendation_bad_output(client, db, admin_headers, profile, generator):
    generator.queue({"description": "no name"})

    response = client.post(
        "/api/v1/admin/gift-recommendation",
        json={"clientId": str(profile.client_id)},
        headers=admin_headers,
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate gift recommendation"}
    assert db.query(NotificationOutbox).count() == 0
