"""
CareLink Services — Audit Logger
==================================

What:  Appends an audit entry to the `logs` collection for every caretaker
       create, update and delete.
How:   Resolves the acting user's display name from the `users` collection,
       then adds one immutable log document with a server timestamp.
Who:   Called by CaretakerService after (or, for deletes, before) each mutation.

Failure policy (log-and-continue):
    record() never raises. A failed name lookup falls back to "Unknown";
    a failed log write is logged to the process log and dropped. Callers'
    responses therefore never depend on the audit trail, and the trail may
    miss entries under partial failure.

Log entry shape:
    {
        "timestamp":  SERVER_TIMESTAMP,
        "action":     "CREATE" | "UPDATE" | "DELETE",
        "userId":     "<acting user id>" | "unknown",
        "userName":   "<users/{id}.name>" | "Unnamed User" | "Unknown",
        "entity":     "Caretaker",
        "entityId":   "<document id>",
        "entityName": "<name>" | "N/A",
        "details":    {...}
    }
"""

import enum
import logging
from typing import Any, Dict, Optional

from carelink.stores.base import SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
LOGS_COLLECTION = "logs"

UNKNOWN_USER_NAME = "Unknown"
UNNAMED_USER_NAME = "Unnamed User"
UNKNOWN_USER_ID = "unknown"
MISSING_ENTITY_NAME = "N/A"


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditLogger:
    """Best-effort writer of audit entries into a DocumentStore."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def resolve_user_name(self, user_id: Optional[str]) -> str:
        """
        Display name for the acting user.

        Returns:
            The user's name, "Unnamed User" when the user exists without one,
            "Unknown" when the user is missing or the lookup fails.
        """
        if not user_id:
            return UNKNOWN_USER_NAME
        try:
            user = await self.store.get(USERS_COLLECTION, user_id)
        except Exception as e:
            logger.error("Error fetching user %s: %s", user_id, e)
            return UNKNOWN_USER_NAME
        if user is None:
            return UNKNOWN_USER_NAME
        return user.get("name") or UNNAMED_USER_NAME

    async def record(
        self,
        action: AuditAction,
        user_id: Optional[str],
        entity: str,
        entity_id: Optional[str],
        entity_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Write one audit entry. Never raises."""
        try:
            user_name = await self.resolve_user_name(user_id)
            entry = {
                "timestamp": SERVER_TIMESTAMP,
                "action": AuditAction(action).value,
                "userId": user_id or UNKNOWN_USER_ID,
                "userName": user_name,
                "entity": entity,
                "entityId": entity_id,
                "entityName": entity_name or MISSING_ENTITY_NAME,
                "details": details or {},
            }
            await self.store.add(LOGS_COLLECTION, entry)
            logger.info(
                "Logged: %s on %s (%s, %s) by %s (%s)",
                entry["action"], entity, entity_id, entity_name, user_id, user_name,
            )
        except Exception as e:
            logger.error("Error logging change %s on %s %s: %s", action, entity, entity_id, e, exc_info=True)
