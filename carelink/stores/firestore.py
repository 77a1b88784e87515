"""
CareLink Services — Firestore Store Backends
==============================================

What:  DocumentStore and PartnerCodeStore backed by Google Cloud Firestore.
How:   firebase-admin initializes a named app from the decoded service account
       and hands out its async Firestore client (firestore_async).
Who:   Built once by the application lifespan in main.py.
When:  Every caretaker, user and log read/write in production.

Firestore specifics handled here:
    - SERVER_TIMESTAMP sentinel → firestore.SERVER_TIMESTAMP
    - "in" filters accept at most 30 values; longer lists are split into
      several queries whose results are concatenated
    - Documents come back as DocumentSnapshot; we flatten them to dicts
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import firebase_admin
from firebase_admin import credentials, firestore_async
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter as FirestoreFieldFilter

from carelink.stores.base import (
    SERVER_TIMESTAMP,
    Document,
    DocumentStore,
    FieldFilter,
    PartnerCodeStore,
)

logger = logging.getLogger(__name__)

# Firestore limit on the number of values in a single "in" filter
IN_FILTER_LIMIT = 30

PARTNER_CODES_COLLECTION = "partnerCodes"

_APP_NAME = "carelink"


def init_firebase_app(service_account: Dict[str, Any]) -> firebase_admin.App:
    """
    Initialize (or reuse) the firebase-admin app for this process.

    Raises:
        ValueError: The service account dict is not a valid certificate.
    """
    try:
        return firebase_admin.get_app(_APP_NAME)
    except ValueError:
        pass
    cred = credentials.Certificate(service_account)
    app = firebase_admin.initialize_app(cred, name=_APP_NAME)
    logger.info("Firebase app initialized for project %s", service_account.get("project_id", "unknown"))
    return app


def _to_firestore(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: (firestore.SERVER_TIMESTAMP if value is SERVER_TIMESTAMP else value)
        for key, value in data.items()
    }


def _snapshot_to_document(snapshot) -> Document:
    return {"id": snapshot.id, **(snapshot.to_dict() or {})}


def _split_in_filter(filters: Sequence[FieldFilter]) -> List[List[FieldFilter]]:
    """
    Expand the filter list into one or more filter lists, each within
    Firestore's "in" limit. Only the first oversized "in" filter is split;
    Firestore allows a single "in" per query anyway.
    """
    for index, f in enumerate(filters):
        if f.op == "in" and len(f.value) > IN_FILTER_LIMIT:
            values = list(f.value)
            return [
                [
                    *filters[:index],
                    FieldFilter(f.field, "in", values[start:start + IN_FILTER_LIMIT]),
                    *filters[index + 1:],
                ]
                for start in range(0, len(values), IN_FILTER_LIMIT)
            ]
    return [list(filters)]


class FirestoreDocumentStore(DocumentStore):
    """DocumentStore over firebase-admin's async Firestore client."""

    def __init__(self, app: firebase_admin.App, client=None) -> None:
        self._app = app
        self._client = client if client is not None else firestore_async.client(app)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        snapshot = await self._client.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return _snapshot_to_document(snapshot)

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        _, ref = await self._client.collection(collection).add(_to_firestore(data))
        return ref.id

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        await self._client.collection(collection).document(doc_id).set(_to_firestore(data))

    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        await self._client.collection(collection).document(doc_id).update(_to_firestore(data))

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._client.collection(collection).document(doc_id).delete()

    async def query(self, collection: str, filters: Sequence[FieldFilter]) -> List[Document]:
        documents: List[Document] = []
        for chunk in _split_in_filter(filters):
            q = self._client.collection(collection)
            for f in chunk:
                q = q.where(filter=FirestoreFieldFilter(f.field, f.op, f.value))
            snapshots = await q.get()
            documents.extend(_snapshot_to_document(s) for s in snapshots)
        return documents

    async def close(self) -> None:
        firebase_admin.delete_app(self._app)
        logger.info("Firebase app released")


class FirestorePartnerCodeStore(PartnerCodeStore):
    """
    Partner codes as documents in the partnerCodes collection,
    keyed by the code itself. Shared by every instance using the same project.
    """

    def __init__(self, documents: DocumentStore) -> None:
        self._documents = documents

    async def get(self, code: str) -> Optional[Dict[str, Any]]:
        doc = await self._documents.get(PARTNER_CODES_COLLECTION, code)
        if doc is None:
            return None
        return {"userId": doc.get("userId"), "createdAt": doc.get("createdAt")}

    async def set(self, code: str, user_id: str) -> None:
        await self._documents.set(
            PARTNER_CODES_COLLECTION,
            code,
            {"userId": user_id, "createdAt": SERVER_TIMESTAMP},
        )

    async def delete(self, code: str) -> None:
        await self._documents.delete(PARTNER_CODES_COLLECTION, code)
