"""
CareLink Services — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   In-memory stores stand in for Firestore; the FastAPI app is built with
       them injected and driven through an HTTPX AsyncClient.

Fixture Hierarchy (all function-scoped, fresh for each test):
    ├── document_store:    MemoryDocumentStore
    ├── code_store:        MemoryPartnerCodeStore
    ├── audit_logger:      AuditLogger over document_store
    ├── caretaker_service: CaretakerService over document_store
    ├── partner_service:   PartnerCodeService over code_store
    ├── caretaker_payload: a complete add request body
    └── test_client:       HTTPX AsyncClient talking to create_app(...)
"""

import os

# Override settings for testing BEFORE any carelink imports
os.environ["SERVICE"] = "all"
os.environ["DOCUMENT_STORE_BACKEND"] = "memory"
os.environ["PARTNER_CODE_BACKEND"] = "memory"
os.environ["FIREBASE_CREDENTIALS"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from carelink.services.audit_service import AuditLogger
from carelink.services.caretaker_service import CaretakerService
from carelink.services.partner_service import PartnerCodeService
from carelink.stores.memory import MemoryDocumentStore, MemoryPartnerCodeStore


@pytest.fixture
def document_store():
    return MemoryDocumentStore()


@pytest.fixture
def code_store():
    return MemoryPartnerCodeStore()


@pytest.fixture
def audit_logger(document_store):
    return AuditLogger(document_store)


@pytest.fixture
def caretaker_service(document_store, audit_logger):
    return CaretakerService(document_store, audit_logger)


@pytest.fixture
def partner_service(code_store):
    return PartnerCodeService(code_store)


@pytest.fixture
def caretaker_payload():
    """A complete, valid body for POST /api/caretaker/add."""
    return {
        "patientId": "p1",
        "name": "Jane",
        "relation": "daughter",
        "email": "j@x.com",
        "phone": "555-1",
    }


@pytest_asyncio.fixture
async def test_client(document_store, code_store):
    """
    HTTPX AsyncClient routed straight into the app (no server, no lifespan).

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from carelink.main import create_app

    app = create_app(document_store=document_store, partner_code_store=code_store)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
