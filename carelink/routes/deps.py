"""
CareLink Services — Route Dependencies
========================================

What:  FastAPI dependencies that hand stores and services to route handlers.
How:   Stores live on app.state (set by create_app or the lifespan); each
       request builds lightweight service objects around them.

Example usage in a route:
    @router.get("/caretaker/get")
    async def get_caretakers(service: CaretakerService = Depends(get_caretaker_service)):
        ...
"""

from fastapi import Depends, Request

from carelink.config import settings
from carelink.services.audit_service import AuditLogger
from carelink.services.caretaker_service import CaretakerService
from carelink.services.partner_service import PartnerCodeService
from carelink.stores.base import DocumentStore, PartnerCodeStore


def get_document_store(request: Request) -> DocumentStore:
    store = getattr(request.app.state, "document_store", None)
    if store is None:
        raise RuntimeError("Document store is not initialized")
    return store


def get_partner_code_store(request: Request) -> PartnerCodeStore:
    store = getattr(request.app.state, "partner_code_store", None)
    if store is None:
        raise RuntimeError("Partner code store is not initialized")
    return store


def get_audit_logger(store: DocumentStore = Depends(get_document_store)) -> AuditLogger:
    return AuditLogger(store)


def get_caretaker_service(
    store: DocumentStore = Depends(get_document_store),
    audit: AuditLogger = Depends(get_audit_logger),
) -> CaretakerService:
    return CaretakerService(store, audit)


def get_partner_service(
    store: PartnerCodeStore = Depends(get_partner_code_store),
) -> PartnerCodeService:
    return PartnerCodeService(store, ttl_seconds=settings.partner_code_ttl_seconds)
