"""
CareLink Services — Abstract Store Interfaces
===============================================

What:  Abstract base classes for the document store and the partner code store.
How:   Concrete backends (Firestore, in-memory) implement these; services only
       ever see the abstract type, handed to them through FastAPI dependencies.
Who:   Implemented by stores/firestore.py and stores/memory.py;
       called by CaretakerService, AuditLogger and PartnerCodeService.

Document model:
    Documents are plain dicts. Reads return a copy of the stored fields plus
    an "id" key carrying the document id. Writes never include "id".

    SERVER_TIMESTAMP may be used as any field value on add/update; the backend
    replaces it with its own clock (Firestore: server-side, memory: UTC now).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


class _ServerTimestamp:
    """Sentinel asking the backend to assign the write time."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"

    # Identity checks against SERVER_TIMESTAMP must survive copying
    def __copy__(self) -> "_ServerTimestamp":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "_ServerTimestamp":
        return self


SERVER_TIMESTAMP = _ServerTimestamp()

Document = Dict[str, Any]


@dataclass(frozen=True)
class FieldFilter:
    """
    One query predicate.

    op is "==" (equality) or "in" (value is a non-empty list).
    """
    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in ("==", "in"):
            raise ValueError(f"Unsupported filter operator '{self.op}'")
        if self.op == "in" and not self.value:
            raise ValueError(f"'in' filter on '{self.field}' needs a non-empty list")


class DocumentStore(ABC):
    """
    Collection/document addressed storage.

    Contract:
        - get() returns None for a missing document (never raises for absence)
        - update() and delete() act on an existing document id
        - query() ANDs all filters together
        - Backend failures propagate as exceptions; callers translate them
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document with a store-assigned id and return that id."""
        ...

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Create or replace the document with the given id."""
        ...

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Merge the given fields into an existing document."""
        ...

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        ...

    @abstractmethod
    async def query(self, collection: str, filters: Sequence[FieldFilter]) -> List[Document]:
        ...

    async def close(self) -> None:
        """Release client resources at application shutdown."""
        return None


class PartnerCodeStore(ABC):
    """Key-value store for partner code → user id mappings."""

    @abstractmethod
    async def get(self, code: str) -> Optional[Dict[str, Any]]:
        """Return {"userId", "createdAt"} for the code, or None."""
        ...

    @abstractmethod
    async def set(self, code: str, user_id: str) -> None:
        """Map code to user_id, overwriting any previous mapping for that code."""
        ...

    @abstractmethod
    async def delete(self, code: str) -> None:
        ...
