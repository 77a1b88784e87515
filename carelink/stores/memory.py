"""
CareLink Services — In-Memory Store Backends
==============================================

What:  Process-local implementations of DocumentStore and PartnerCodeStore.
Who:   MemoryPartnerCodeStore is the default partner code backend;
       MemoryDocumentStore backs local development (DOCUMENT_STORE_BACKEND=memory)
       and is the fake store injected by the test suite.

Limitations:
    - Nothing survives a restart
    - Each process has its own data (no sharing between uvicorn workers)
    - Safe for a single asyncio event loop; the locks are asyncio locks
"""

import asyncio
import copy
import logging
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from carelink.stores.base import (
    SERVER_TIMESTAMP,
    Document,
    DocumentStore,
    FieldFilter,
    PartnerCodeStore,
)

logger = logging.getLogger(__name__)


def _resolve_timestamps(data: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    return {key: (now if value is SERVER_TIMESTAMP else value) for key, value in data.items()}


def _matches(doc: Dict[str, Any], filters: Sequence[FieldFilter]) -> bool:
    for f in filters:
        if f.field not in doc:
            return False
        if f.op == "==" and doc[f.field] != f.value:
            return False
        if f.op == "in" and doc[f.field] not in f.value:
            return False
    return True


class MemoryDocumentStore(DocumentStore):
    """
    Dict-of-dicts document store.

    Collections keep insertion order, so query() returns documents in the
    order they were added.
    """

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self._lock = asyncio.Lock()

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        doc = self._collections[collection].get(doc_id)
        if doc is None:
            return None
        return {"id": doc_id, **copy.deepcopy(doc)}

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        # 20 chars, same shape as Firestore auto ids
        doc_id = uuid.uuid4().hex[:20]
        async with self._lock:
            self._collections[collection][doc_id] = copy.deepcopy(_resolve_timestamps(data))
        return doc_id

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        async with self._lock:
            self._collections[collection][doc_id] = copy.deepcopy(_resolve_timestamps(data))

    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        async with self._lock:
            docs = self._collections[collection]
            if doc_id not in docs:
                raise KeyError(f"No document to update: {collection}/{doc_id}")
            docs[doc_id].update(copy.deepcopy(_resolve_timestamps(data)))

    async def delete(self, collection: str, doc_id: str) -> None:
        async with self._lock:
            self._collections[collection].pop(doc_id, None)

    async def query(self, collection: str, filters: Sequence[FieldFilter]) -> List[Document]:
        return [
            {"id": doc_id, **copy.deepcopy(doc)}
            for doc_id, doc in self._collections[collection].items()
            if _matches(doc, filters)
        ]


class MemoryPartnerCodeStore(PartnerCodeStore):
    """Partner codes held in a dict guarded by an asyncio.Lock."""

    def __init__(self) -> None:
        self._codes: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, code: str) -> Optional[Dict[str, Any]]:
        async with self._lock:
            entry = self._codes.get(code)
            return dict(entry) if entry is not None else None

    async def set(self, code: str, user_id: str) -> None:
        async with self._lock:
            if code in self._codes:
                # Collisions are not prevented, only made visible
                logger.warning("Partner code %s reissued; previous mapping replaced", code)
            self._codes[code] = {
                "userId": user_id,
                "createdAt": datetime.now(timezone.utc),
            }

    async def delete(self, code: str) -> None:
        async with self._lock:
            self._codes.pop(code, None)
