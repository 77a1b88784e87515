"""
CareLink Services — HTTP Endpoint Tests
=========================================

What:  End-to-end tests through the FastAPI app with in-memory stores.
How:   HTTPX AsyncClient over ASGITransport (see conftest.test_client).

What we test:
    ✅ Add → get round trip returns the stored record
    ✅ Status codes: 400 / 403 / 404 / 500 with the shared error body
    ✅ DELETE with a JSON body
    ✅ Organization listing
    ✅ Partner code generate / resolve / unknown code
    ✅ Health, request IDs and CORS headers
"""

from unittest.mock import AsyncMock

import pytest

from carelink.config import settings


async def _add(client, payload):
    response = await client.post("/api/caretaker/add", json=payload)
    assert response.status_code == 200
    return response.json()["id"]


class TestCaretakerEndpoints:

    @pytest.mark.asyncio
    async def test_add_then_get(self, test_client, caretaker_payload):
        response = await test_client.post("/api/caretaker/add", json=caretaker_payload)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Caretaker added successfully"
        assert isinstance(body["id"], str) and body["id"]

        listed = await test_client.get("/api/caretaker/get", params={"patientId": "p1"})
        assert listed.status_code == 200
        records = listed.json()
        assert len(records) == 1
        record = records[0]
        assert record["id"] == body["id"]
        for key, value in caretaker_payload.items():
            assert record[key] == value
        assert record["createdAt"]

    @pytest.mark.asyncio
    async def test_add_keeps_extra_keys_in_audit_and_reads_numeric_phone(
        self, test_client, document_store, caretaker_payload,
    ):
        body = {**caretaker_payload, "phone": 5551234, "note": "x"}

        response = await test_client.post("/api/caretaker/add", json=body)

        assert response.status_code == 200
        record = (await test_client.get("/api/caretaker/get", params={"patientId": "p1"})).json()[0]
        assert record["phone"] == "5551234"
        logged = (await document_store.query("logs", []))[0]["details"]["data"]
        assert logged["note"] == "x"
        assert logged["phone"] == "5551234"

    @pytest.mark.asyncio
    async def test_add_missing_fields_is_400(self, test_client, document_store):
        response = await test_client.post("/api/caretaker/add", json={"patientId": "p1", "name": "Jane"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["fields"] == ["relation", "email", "phone"]
        assert await document_store.query("caretakers", []) == []
        assert await document_store.query("logs", []) == []

    @pytest.mark.asyncio
    async def test_add_without_body_is_400(self, test_client):
        response = await test_client.post("/api/caretaker/add")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_get_unknown_patient_is_empty_list(self, test_client):
        response = await test_client.get("/api/caretaker/get", params={"patientId": "nobody"})

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_get_without_patient_id_is_400(self, test_client):
        response = await test_client.get("/api/caretaker/get")

        assert response.status_code == 400
        assert response.json()["message"] == "patientId is required"

    @pytest.mark.asyncio
    async def test_update_flow(self, test_client, caretaker_payload):
        caretaker_id = await _add(test_client, caretaker_payload)

        response = await test_client.post("/api/caretaker/update", json={
            "id": caretaker_id, "patientId": "p1", "name": "Janet",
            "relation": "niece", "phone": "555-2", "email": "janet@x.com",
        })

        assert response.status_code == 200
        assert response.json() == {"message": "Caretaker updated successfully"}
        record = (await test_client.get("/api/caretaker/get", params={"patientId": "p1"})).json()[0]
        assert record["name"] == "Janet"
        assert record["updatedAt"]

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, test_client, caretaker_payload):
        caretaker_id = await _add(test_client, caretaker_payload)

        response = await test_client.post("/api/caretaker/update", json={
            "id": caretaker_id, "patientId": "p1", "relation": "son",
        })

        assert response.status_code == 200
        record = (await test_client.get("/api/caretaker/get", params={"patientId": "p1"})).json()[0]
        assert record["relation"] == "son"
        assert record["name"] == "Jane"
        assert record["email"] == "j@x.com"

    @pytest.mark.asyncio
    async def test_update_wrong_patient_is_403(self, test_client, caretaker_payload):
        caretaker_id = await _add(test_client, caretaker_payload)

        response = await test_client.post("/api/caretaker/update", json={
            "id": caretaker_id, "patientId": "p2", "name": "Mallory",
        })

        assert response.status_code == 403
        assert response.json()["message"] == "Unauthorized to update this caretaker"
        record = (await test_client.get("/api/caretaker/get", params={"patientId": "p1"})).json()[0]
        assert record["name"] == "Jane"

    @pytest.mark.asyncio
    async def test_update_unknown_id_is_404(self, test_client):
        response = await test_client.post("/api/caretaker/update", json={"id": "missing", "patientId": "p1"})

        assert response.status_code == 404
        assert response.json()["message"] == "Caretaker not found"

    @pytest.mark.asyncio
    async def test_update_without_id_is_400(self, test_client):
        response = await test_client.post("/api/caretaker/update", json={"patientId": "p1"})

        assert response.status_code == 400
        assert response.json()["message"] == "id and patientId are required"

    @pytest.mark.asyncio
    async def test_delete_flow(self, test_client, caretaker_payload, document_store):
        caretaker_id = await _add(test_client, caretaker_payload)

        response = await test_client.request(
            "DELETE", "/api/caretaker/delete", json={"id": caretaker_id, "patientId": "p1"},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Caretaker deleted successfully"}
        assert (await test_client.get("/api/caretaker/get", params={"patientId": "p1"})).json() == []
        actions = [log["action"] for log in await document_store.query("logs", [])]
        assert actions == ["CREATE", "DELETE"]

    @pytest.mark.asyncio
    async def test_delete_wrong_patient_is_403(self, test_client, caretaker_payload):
        caretaker_id = await _add(test_client, caretaker_payload)

        response = await test_client.request(
            "DELETE", "/api/caretaker/delete", json={"id": caretaker_id, "patientId": "p2"},
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Unauthorized to delete this caretaker"

    @pytest.mark.asyncio
    async def test_delete_unknown_id_is_404(self, test_client):
        response = await test_client.request(
            "DELETE", "/api/caretaker/delete", json={"id": "missing", "patientId": "p1"},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_organization_listing(self, test_client, document_store, caretaker_payload):
        await document_store.set("users", "p1", {"organizationId": "org1", "role": "user", "name": "Pat"})
        await document_store.set("users", "p9", {"organizationId": "org2", "role": "user", "name": "Kim"})
        caretaker_id = await _add(test_client, caretaker_payload)
        await _add(test_client, {**caretaker_payload, "patientId": "p9"})

        response = await test_client.get("/api/caretakers/all", params={"organizationId": "org1"})

        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == [caretaker_id]

    @pytest.mark.asyncio
    async def test_organization_without_patients_is_empty(self, test_client):
        response = await test_client.get("/api/caretakers/all", params={"organizationId": "empty"})

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_organization_id_required(self, test_client):
        response = await test_client.get("/api/caretakers/all")
        assert response.status_code == 400


class TestDependencyErrors:

    @pytest.mark.asyncio
    async def test_store_error_is_500_with_reason(self, test_client, document_store, caretaker_payload):
        document_store.add = AsyncMock(side_effect=RuntimeError("deadline exceeded"))

        response = await test_client.post("/api/caretaker/add", json=caretaker_payload)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "dependency_error"
        assert body["message"] == "Failed to add caretaker"
        assert body["details"] == {"reason": "deadline exceeded"}

    @pytest.mark.asyncio
    async def test_store_error_reason_hidden_when_disabled(
        self, test_client, document_store, caretaker_payload, monkeypatch,
    ):
        monkeypatch.setattr(settings, "expose_error_details", False)
        document_store.query = AsyncMock(side_effect=RuntimeError("internal index name"))

        response = await test_client.get("/api/caretaker/get", params={"patientId": "p1"})

        assert response.status_code == 500
        assert response.json()["details"] is None
        assert "internal index name" not in response.text


class TestPartnerEndpoints:

    @pytest.mark.asyncio
    async def test_generate_and_resolve(self, test_client):
        response = await test_client.post("/partner/generate", json={"userId": "user-1"})

        assert response.status_code == 200
        body = response.json()
        assert body["userId"] == "user-1"
        assert body["message"]
        code = body["partnerCode"]
        assert len(code) == 6 and code == code.upper()

        resolved = await test_client.get(f"/partner/{code}")
        assert resolved.status_code == 200
        assert resolved.json()["userId"] == "user-1"

    @pytest.mark.asyncio
    async def test_generate_without_user_id_is_400(self, test_client):
        response = await test_client.post("/partner/generate", json={})

        assert response.status_code == 400
        assert response.json()["message"] == "userId is required"

    @pytest.mark.asyncio
    async def test_unknown_code_is_404(self, test_client):
        response = await test_client.get("/partner/000000")

        assert response.status_code == 404
        assert response.json()["message"] == "Invalid or expired partner code"


class TestCrossCutting:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "trace-42"})
        assert response.headers["X-Request-ID"] == "trace-42"

    @pytest.mark.asyncio
    async def test_request_id_in_error_body(self, test_client):
        response = await test_client.get("/api/caretaker/get", headers={"X-Request-ID": "trace-43"})
        assert response.json()["request_id"] == "trace-43"

    @pytest.mark.asyncio
    async def test_cors_allows_configured_origin_with_credentials(self, test_client):
        response = await test_client.get("/health", headers={"Origin": "http://middleware:3001"})

        assert response.headers["access-control-allow-origin"] == "http://middleware:3001"
        assert response.headers["access-control-allow-credentials"] == "true"

    @pytest.mark.asyncio
    async def test_cors_rejects_other_origins(self, test_client):
        response = await test_client.get("/health", headers={"Origin": "http://evil.example"})
        assert "access-control-allow-origin" not in response.headers
