"""Tests for strategy document generation and caching."""

import pytest

from portal.errors import GenerationFailed, InvalidArgument, NotFoundError
from portal.models.activity import ActivityLog, ActivityType
from portal.models.document import DocumentType, GeneratedDocument
from portal.services.documents import DocumentService, DocumentStore, count_words
from portal.services.prompts import DOCUMENT_TITLES


def test_count_words():
    assert count_words("one two  three\nfour\tfive") == 5
    assert count_words("") == 0


def test_registry_has_fifteen_types():
    assert len(DOCUMENT_TITLES) == 15
    assert set(DOCUMENT_TITLES) == set(DocumentType)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_generate_then_cached(db, profile, generator):
    service = DocumentService(db, generator)

    first = await service.get_or_generate(profile.client_id, "gtm-strategy")
    second = await service.get_or_generate(profile.client_id, "gtm-strategy")

    assert first.cached is False
    assert second.cached is True
    assert second.document.document_id == first.document.document_id
    assert second.document.content == first.document.content
    assert len(generator.calls) == 1


@pytest.mark.asyncio
async def test_generation_prompt_and_parameters(db, profile, generator):
    generator.queue("# Go-To-Market\n\nLaunch plan")
    result = await DocumentService(db, generator).get_or_generate(profile.client_id, "gtm-strategy")

    call = generator.last_call
    system, user = call["messages"]
    assert call["temperature"] == 0.7
    assert call["max_tokens"] == 4000
    assert "Company Name: Acme Outdoor Co" in system["content"]
    assert user["content"] == "Generate the Go-To-Market Strategy document based on the client context provided."
    assert result.document.title == "Go-To-Market Strategy"
    assert result.document.word_count == 4


@pytest.mark.asyncio
async def test_force_regenerate_overwrites_in_place(db, profile, generator):
    service = DocumentService(db, generator)
    generator.queue("first version", "second version here")

    first = await service.get_or_generate(profile.client_id, "positioning")
    generated_at = first.document.generated_at
    updated_at = first.document.updated_at

    second = await service.get_or_generate(profile.client_id, "positioning", force_regenerate=True)

    assert second.cached is False
    assert second.document.content == "second version here"
    assert second.document.word_count == 3
    assert second.document.generated_at == generated_at
    assert second.document.updated_at > updated_at
    assert db.query(GeneratedDocument).filter_by(client_id=profile.client_id).count() == 1


@pytest.mark.asyncio
async def test_invalid_type_reads_and_writes_nothing(db, profile, generator):
    with pytest.raises(InvalidArgument):
        await DocumentService(db, generator).get_or_generate(profile.client_id, "not-a-type")

    assert generator.calls == []
    assert db.query(GeneratedDocument).count() == 0


@pytest.mark.asyncio
async def test_unknown_client(db, generator):
    from uuid import uuid4

    with pytest.raises(NotFoundError):
        await DocumentService(db, generator).get_or_generate(uuid4(), "gtm-strategy")


@pytest.mark.asyncio
async def test_empty_generation_is_a_failure(db, profile, generator):
    generator.queue("   ")

    with pytest.raises(GenerationFailed):
        await DocumentService(db, generator).get_or_generate(profile.client_id, "quick-wins")

    assert DocumentStore(db).get(profile.client_id, DocumentType.QUICK_WINS) is None


@pytest.mark.asyncio
async def test_generation_records_activity(db, profile, generator):
    await DocumentService(db, generator).get_or_generate(profile.client_id, "seo-strategy")

    activity = db.query(ActivityLog).filter_by(client_id=profile.client_id).one()
    assert activity.activity_type == ActivityType.DOCUMENT_GENERATED
    assert activity.activity_metadata["document_type"] == "seo-strategy"


def test_upsert_keeps_one_row_per_key(db, profile):
    store = DocumentStore(db)
    store.upsert(profile.client_id, DocumentType.MESSAGING, "Messaging", "a b", 2)
    store.upsert(profile.client_id, DocumentType.MESSAGING, "Messaging", "a b c", 3)

    rows = db.query(GeneratedDocument).all()
    assert len(rows) == 1
    assert rows[0].word_count == 3


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

def test_generate_endpoint(client, client_headers):
    response = client.post(
        "/api/v1/documents/generate",
        json={"documentType": "gtm-strategy"},
        headers=client_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["cached"] is False
    assert body["document"]["document_type"] == "gtm-strategy"
    assert body["document"]["content"] == "Generated content for the client."

    again = client.post(
        "/api/v1/documents/generate",
        json={"document_type": "gtm-strategy"},
        headers=client_headers,
    )
    assert again.json()["cached"] is True


def test_generate_endpoint_invalid_type(client, client_headers, generator):
    response = client.post(
        "/api/v1/documents/generate",
        json={"documentType": "bogus"},
        headers=client_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid document type"}
    assert generator.calls == []


def test_generate_endpoint_failure_uses_public_message(client, client_headers, generator, provider_error):
    generator.queue(provider_error)

    response = client.post(
        "/api/v1/documents/generate",
        json={"documentType": "crm-design"},
        headers=client_headers,
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate document"}


def test_generate_endpoint_requires_auth(client):
    response = client.post("/api/v1/documents/generate", json={"documentType": "gtm-strategy"})

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_generate_endpoint_without_profile(client, new_user_headers):
    response = client.post(
        "/api/v1/documents/generate",
        json={"documentType": "gtm-strategy"},
        headers=new_user_headers,
    )

    assert response.status_code == 404
    assert response.json() == {"error": "Client profile not found"}


def test_generate_endpoint_missing_body_field(client, client_headers):
    response = client.post("/api/v1/documents/generate", json={}, headers=client_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"
    assert response.json()["details"]


def test_list_and_fetch_documents(client, client_headers):
    assert client.get("/api/v1/documents/kpi-framework", headers=client_headers).status_code == 404

    client.post("/api/v1/documents/generate", json={"documentType": "kpi-framework"}, headers=client_headers)
    client.post("/api/v1/documents/generate", json={"documentType": "paid-ads"}, headers=client_headers)

    listing = client.get("/api/v1/documents", headers=client_headers).json()
    assert listing["total"] == 2
    assert {d["document_type"] for d in listing["documents"]} == {"kpi-framework", "paid-ads"}
    assert "content" not in listing["documents"][0]

    detail = client.get("/api/v1/documents/kpi-framework", headers=client_headers)
    assert detail.status_code == 200
    assert detail.json()["document"]["title"] == "Reporting & KPI Framework"


def test_fetch_unknown_type(client, client_headers):
    response = client.get("/api/v1/documents/bogus", headers=client_headers)
    assert response.status_code == 400


def test_document_types_endpoint(client, client_headers):
    body = client.get("/api/v1/documents/types", headers=client_headers).json()
    assert len(body["document_types"]) == 15
    assert body["document_types"]["quick-wins"] == DOCUMENT_TITLES[DocumentType.QUICK_WINS]
