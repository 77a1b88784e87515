"""
CareLink Services — Caretaker Service (Business Logic)
=======================================================

What:  Add, read, update, delete and organization-wide listing of caretakers.
How:   Validates required fields, enforces patient ownership, performs the
       document store operation, and records an audit entry for mutations.
Who:   Called by the /api/caretaker* route handlers; calls DocumentStore
       and AuditLogger.

Operation Flow (mutations):
    ┌──────────┐    ┌───────────┐    ┌────────────┐    ┌───────────┐
    │ Validate │───▶│ Ownership │───▶│ Store call │───▶│ Audit log │
    │  (400)   │    │ (404/403) │    │   (500)    │    │ (silent)  │
    └──────────┘    └───────────┘    └────────────┘    └───────────┘

    Delete writes its audit entry BEFORE the store delete, so a crash
    between the two leaves a log entry for a deletion that did not happen.

Error Handling Strategy:
    Our own exceptions (ValidationError, NotFoundError, AuthorizationError)
    propagate unchanged. Any other exception from the store is wrapped in
    DependencyError carrying the store's message.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Tuple

from carelink.exceptions import (
    AuthorizationError,
    CareLinkError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from carelink.schemas.caretaker import CaretakerCreate, CaretakerDelete, CaretakerUpdate
from carelink.services.audit_service import USERS_COLLECTION, AuditAction, AuditLogger
from carelink.stores.base import SERVER_TIMESTAMP, Document, DocumentStore, FieldFilter

logger = logging.getLogger(__name__)

CARETAKERS_COLLECTION = "caretakers"
CARETAKER_ENTITY = "Caretaker"
PATIENT_ROLE = "user"

# Fields an update may overwrite; stored and wire names coincide
MUTABLE_FIELDS = ("name", "relation", "phone", "email")

# Stands in for an empty patient id set; no real document id can equal it
NO_PATIENTS_SENTINEL = "__no_patients__"


def _missing(values: Dict[str, Optional[str]]) -> List[str]:
    return [name for name, value in values.items() if not value]


def _pre_image(doc: Document) -> Dict[str, Any]:
    return {key: value for key, value in doc.items() if key != "id"}


def _created_key(doc: Document) -> Tuple[int, float]:
    created = doc.get("createdAt")
    if not isinstance(created, datetime):
        return (1, 0.0)
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return (0, created.timestamp())


def _insertion_order(docs: Iterable[Document]) -> List[Document]:
    # Records without a usable createdAt (missing, or written as another type
    # by other clients) go last, in store order
    return sorted(docs, key=_created_key)


@asynccontextmanager
async def _store_call(failure_message: str, **context: Any) -> AsyncIterator[None]:
    """Translate unexpected store exceptions into DependencyError."""
    try:
        yield
    except CareLinkError:
        raise
    except Exception as e:
        logger.error("%s: %s | Context: %s", failure_message, e, context, exc_info=True)
        raise DependencyError(message=failure_message, reason=str(e), context=context) from e


class CaretakerService:
    """
    Business logic layer for caretaker records.

    Responsibilities:
        - add():                  create one record, audit CREATE
        - list_for_patient():     records with a given patientId
        - update():               ownership check, overwrite, audit UPDATE
        - delete():               ownership check, audit DELETE, delete
        - list_for_organization():two-phase users → caretakers lookup
    """

    def __init__(self, store: DocumentStore, audit: AuditLogger) -> None:
        self.store = store
        self.audit = audit

    async def add(self, payload: CaretakerCreate) -> str:
        """
        Create a caretaker record.

        Returns:
            The store-assigned document id.

        Raises:
            ValidationError: Any of patientId, name, relation, email, phone is missing
            DependencyError: The store write failed
        """
        missing = _missing({
            "patientId": payload.patient_id,
            "name": payload.name,
            "relation": payload.relation,
            "email": payload.email,
            "phone": payload.phone,
        })
        if missing:
            raise ValidationError(
                message=f"Missing required fields: {', '.join(missing)}",
                fields=missing,
            )

        async with _store_call("Failed to add caretaker", patient_id=payload.patient_id):
            caretaker_id = await self.store.add(CARETAKERS_COLLECTION, {
                "patientId": payload.patient_id,
                "name": payload.name,
                "relation": payload.relation,
                "email": payload.email,
                "phone": payload.phone,
                "createdAt": SERVER_TIMESTAMP,
            })

        await self.audit.record(
            AuditAction.CREATE,
            payload.patient_id,
            CARETAKER_ENTITY,
            caretaker_id,
            payload.name,
            {"data": payload.to_payload()},
        )
        logger.info("Caretaker added with ID: %s", caretaker_id)
        return caretaker_id

    async def list_for_patient(self, patient_id: Optional[str]) -> List[Document]:
        """Caretakers of one patient in insertion order; [] when there are none."""
        if not patient_id:
            raise ValidationError(message="patientId is required", fields=["patientId"])

        async with _store_call("Failed to fetch caretakers", patient_id=patient_id):
            caretakers = await self.store.query(
                CARETAKERS_COLLECTION,
                [FieldFilter("patientId", "==", patient_id)],
            )

        if not caretakers:
            logger.info("No caretakers found for patientId: %s", patient_id)
            return []
        logger.debug("Retrieved %d caretakers for patientId %s", len(caretakers), patient_id)
        return _insertion_order(caretakers)

    async def _owned_caretaker(self, caretaker_id: str, patient_id: str, verb: str) -> Document:
        doc = await self.store.get(CARETAKERS_COLLECTION, caretaker_id)
        if doc is None:
            raise NotFoundError(
                resource=CARETAKER_ENTITY,
                resource_id=caretaker_id,
                message="Caretaker not found",
            )
        if doc.get("patientId") != patient_id:
            logger.warning(
                "Patient %s attempted to %s caretaker %s owned by another patient",
                patient_id, verb, caretaker_id,
            )
            raise AuthorizationError(
                message=f"Unauthorized to {verb} this caretaker",
                context={"caretaker_id": caretaker_id},
            )
        return doc

    async def update(self, payload: CaretakerUpdate) -> None:
        """
        Overwrite name, relation, phone and email of a caretaker the caller owns.
        Fields absent from the body keep their stored values.

        Raises:
            ValidationError:    id or patientId missing
            NotFoundError:      no caretaker with that id
            AuthorizationError: the caretaker belongs to another patient
            DependencyError:    a store call failed
        """
        if not payload.id or not payload.patient_id:
            raise ValidationError(
                message="id and patientId are required",
                fields=_missing({"id": payload.id, "patientId": payload.patient_id}),
            )

        async with _store_call("Failed to update caretaker", caretaker_id=payload.id):
            existing = await self._owned_caretaker(payload.id, payload.patient_id, "update")
            changes = {
                name: getattr(payload, name)
                for name in MUTABLE_FIELDS
                if name in payload.model_fields_set
            }
            await self.store.update(
                CARETAKERS_COLLECTION,
                payload.id,
                {**changes, "updatedAt": SERVER_TIMESTAMP},
            )

        await self.audit.record(
            AuditAction.UPDATE,
            payload.patient_id,
            CARETAKER_ENTITY,
            payload.id,
            payload.name or existing.get("name"),
            {"oldData": _pre_image(existing), "newData": payload.to_payload()},
        )
        logger.info("Caretaker updated successfully: %s", payload.id)

    async def delete(self, payload: CaretakerDelete) -> None:
        """
        Delete a caretaker the caller owns.

        The DELETE audit entry is written before the store delete is issued.

        Raises:
            Same as update().
        """
        if not payload.id or not payload.patient_id:
            raise ValidationError(
                message="id and patientId are required",
                fields=_missing({"id": payload.id, "patientId": payload.patient_id}),
            )

        async with _store_call("Failed to delete caretaker", caretaker_id=payload.id):
            existing = await self._owned_caretaker(payload.id, payload.patient_id, "delete")
            pre_image = _pre_image(existing)
            await self.audit.record(
                AuditAction.DELETE,
                payload.patient_id,
                CARETAKER_ENTITY,
                payload.id,
                pre_image.get("name"),
                {"data": pre_image},
            )
            await self.store.delete(CARETAKERS_COLLECTION, payload.id)

        logger.info("Caretaker deleted successfully: %s", payload.id)

    async def list_for_organization(self, organization_id: Optional[str]) -> List[Document]:
        """
        Every caretaker of every patient in an organization.

        Phase 1: users with organizationId == X and role == "user".
        Phase 2: caretakers whose patientId is in that id set. An empty set is
        replaced by NO_PATIENTS_SENTINEL because the store rejects an empty
        "in" filter.
        """
        if not organization_id:
            raise ValidationError(message="organizationId is required", fields=["organizationId"])

        async with _store_call("Failed to fetch caretakers", organization_id=organization_id):
            patients = await self.store.query(USERS_COLLECTION, [
                FieldFilter("organizationId", "==", organization_id),
                FieldFilter("role", "==", PATIENT_ROLE),
            ])
            patient_ids = [patient["id"] for patient in patients] or [NO_PATIENTS_SENTINEL]

            caretakers = await self.store.query(
                CARETAKERS_COLLECTION,
                [FieldFilter("patientId", "in", patient_ids)],
            )

        logger.info(
            "Organization %s: %d patients, %d caretakers",
            organization_id, len(patients), len(caretakers),
        )
        return caretakers
