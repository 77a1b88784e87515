"""
CareLink Services — Partner Code Service
==========================================

What:  Issues short linking codes for a user and resolves them back.
How:   A code is 3 cryptographically random bytes rendered as 6 uppercase hex
       characters (16^6 ≈ 16.7M possible codes), stored in a PartnerCodeStore.
Who:   Called by the /partner route handlers.

Known gaps:
    - No collision check: a regenerated duplicate replaces the earlier
      mapping, so the older code would resolve to the newer user.
    - Codes only expire when PARTNER_CODE_TTL_SECONDS is set.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from carelink.exceptions import NotFoundError, ValidationError
from carelink.stores.base import PartnerCodeStore

logger = logging.getLogger(__name__)

CODE_BYTES = 3


def generate_code() -> str:
    """6-character uppercase hexadecimal code, e.g. '3FA9C1'."""
    return secrets.token_hex(CODE_BYTES).upper()


class PartnerCodeService:
    """
    Partner code issue/resolve.

    Args:
        store:       where code → user id mappings live
        ttl_seconds: optional lifetime; None keeps codes until restart
                     (memory backend) or forever (Firestore backend)
    """

    def __init__(self, store: PartnerCodeStore, ttl_seconds: Optional[int] = None) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds

    async def generate(self, user_id: Optional[str]) -> str:
        """
        Create and store a new code for user_id.

        Raises:
            ValidationError: user_id missing or empty
        """
        if not user_id:
            raise ValidationError(message="userId is required", fields=["userId"])

        code = generate_code()
        await self.store.set(code, user_id)
        logger.info("Partner code generated for user %s", user_id)
        return code

    def _expired(self, created_at) -> bool:
        if self.ttl_seconds is None or not isinstance(created_at, datetime):
            return False
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) - created_at > timedelta(seconds=self.ttl_seconds)

    async def resolve(self, code: str) -> str:
        """
        User id mapped to code.

        Raises:
            NotFoundError: unknown code, or a code past its TTL (which is deleted)
        """
        entry = await self.store.get(code)
        if entry is not None and self._expired(entry.get("createdAt")):
            await self.store.delete(code)
            logger.info("Partner code %s expired", code)
            entry = None

        if entry is None or not entry.get("userId"):
            raise NotFoundError(
                resource="partner code",
                resource_id=code,
                message="Invalid or expired partner code",
            )
        return entry["userId"]
