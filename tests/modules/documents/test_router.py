"""
HTTP tests for the transfer document and verification endpoints.
"""

import pytest

from app.core.config import settings
from app.core.rate_limit import reset_memory_store

API = "/api/v1"


def issue_body(student):
    return {"student": student.model_dump(mode="json")}


async def issue(client, headers, student) -> dict:
    response = await client.post(f"{API}/documents", json=issue_body(student), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestDocumentEndpoints:
    @pytest.mark.asyncio
    async def test_issue_document(self, client, director_headers, director, maria_silva):
        data = await issue(client, director_headers, maria_silva)

        assert len(data["short_id"]) == 8
        assert len(data["digest"]) == 64
        assert data["qr_payload"] == f"{data['short_id']}|{data['digest']}"
        assert data["origin_school"] == director.school
        assert data["student"]["full_name"] == "Maria Silva"

    @pytest.mark.asyncio
    async def test_issue_requires_director(self, client, student_headers, maria_silva):
        response = await client.post(
            f"{API}/documents", json=issue_body(maria_silva), headers=student_headers
        )

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "DIRECTOR_ACCESS_REQUIRED"

    @pytest.mark.asyncio
    async def test_issue_with_invalid_token(self, client, maria_silva):
        response = await client.post(
            f"{API}/documents",
            json=issue_body(maria_silva),
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_issue_rejects_unknown_subject(self, client, director_headers, maria_silva):
        body = issue_body(maria_silva)
        body["student"]["grades"]["oficios"] = "10"

        response = await client.post(f"{API}/documents", json=body, headers=director_headers)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_and_search(self, client, director_headers, maria_silva):
        data = await issue(client, director_headers, maria_silva)

        everything = await client.get(f"{API}/documents", headers=director_headers)
        by_bi = await client.get(
            f"{API}/documents", params={"search": "987654"}, headers=director_headers
        )
        nothing = await client.get(
            f"{API}/documents", params={"search": "Joaquim"}, headers=director_headers
        )

        assert everything.json()["total"] == 1
        assert by_bi.json()["documents"][0]["short_id"] == data["short_id"]
        assert nothing.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_get_other_school_document(
        self, client, director_headers, other_director_headers, maria_silva
    ):
        data = await issue(client, director_headers, maria_silva)

        response = await client.get(
            f"{API}/documents/{data['short_id']}", headers=other_director_headers
        )

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "DOCUMENT_ACCESS_DENIED"

    @pytest.mark.asyncio
    async def test_amend_then_verify_tampered(self, client, director_headers, maria_silva):
        data = await issue(client, director_headers, maria_silva)
        body = issue_body(maria_silva)
        body["student"]["grades"]["matematica"] = "20"

        amended = await client.put(
            f"{API}/documents/{data['short_id']}/student", json=body, headers=director_headers
        )
        verified = await client.get(f"{API}/verify/{data['short_id']}")

        assert amended.status_code == 200
        assert amended.json()["digest"] == data["digest"]
        assert verified.json()["status"] == "tampered"

    @pytest.mark.asyncio
    async def test_delete_document(self, client, director_headers, maria_silva):
        data = await issue(client, director_headers, maria_silva)

        deleted = await client.delete(
            f"{API}/documents/{data['short_id']}", headers=director_headers
        )
        again = await client.delete(
            f"{API}/documents/{data['short_id']}", headers=director_headers
        )

        assert deleted.status_code == 204
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_subjects(self, client):
        response = await client.get(f"{API}/documents/subjects")

        tracks = response.json()["tracks"]
        assert response.status_code == 200
        assert len(tracks["primary"]) == 9
        assert len(tracks["secondary"]) == 12


class TestVerifyEndpoints:
    @pytest.mark.asyncio
    async def test_verify_is_public(self, client, director_headers, maria_silva):
        data = await issue(client, director_headers, maria_silva)

        response = await client.get(f"{API}/verify/{data['short_id'].lower()}")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "valid"
        assert body["record"]["digest"] == data["digest"]

    @pytest.mark.asyncio
    async def test_verify_unknown(self, client):
        response = await client.get(f"{API}/verify/ZZZZZZZZ")

        assert response.status_code == 200
        assert response.json()["status"] == "not_found"
        assert response.json()["record"] is None

    @pytest.mark.asyncio
    async def test_verify_qr(self, client, director_headers, maria_silva):
        data = await issue(client, director_headers, maria_silva)

        response = await client.post(f"{API}/verify/qr", json={"payload": data["qr_payload"]})

        assert response.json()["status"] == "valid"

    @pytest.mark.asyncio
    async def test_verify_qr_malformed(self, client):
        response = await client.post(f"{API}/verify/qr", json={"payload": "hello"})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "INVALID_QR_PAYLOAD"

    @pytest.mark.asyncio
    async def test_verify_is_rate_limited(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_enabled", True)
        monkeypatch.setattr(settings, "verify_rate_limit", 2)
        reset_memory_store()

        try:
            statuses = [
                (await client.get(f"{API}/verify/ZZZZZZZZ")).status_code for _ in range(3)
            ]
        finally:
            reset_memory_store()

        assert statuses == [200, 200, 429]
