"""Two-phase deletes.

A delete request is parked under ``del:{user_id}`` for a short window and the
user is asked to confirm. The next message either confirms, cancels, or
supersedes it (it is cleared and processed as a fresh message).

    NONE → PENDING → CONFIRMED | CANCELLED | SUPERSEDED
"""

import json
from enum import Enum

from loguru import logger
from pydantic import ValidationError

from dompet.db.kv import KeyValueStore
from dompet.errors import KeyValueError
from dompet.models.schemas import PendingConfirmation

AFFIRMATIVE = {"ya", "iya", "yes", "ok", "oke", "y", "confirm", "lanjut", "betul", "bener", "gas", "hapus"}
NEGATIVE = {"tidak", "gak", "ga", "nggak", "enggak", "no", "n", "batal", "cancel", "jangan"}


class ConfirmationState(str, Enum):
    NONE = "NONE"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    SUPERSEDED = "SUPERSEDED"


def classify_reply(text: str) -> ConfirmationState:
    """What a reply does to a pending confirmation."""
    token = text.strip().lower().rstrip("!.?")
    if token in AFFIRMATIVE:
        return ConfirmationState.CONFIRMED
    if token in NEGATIVE:
        return ConfirmationState.CANCELLED
    return ConfirmationState.SUPERSEDED


class ConfirmationStore:
    """Pending confirmations in the key-value store. Every store error fails open."""

    def __init__(self, kv: KeyValueStore, ttl: int = 60):
        self.kv = kv
        self.ttl = ttl

    @staticmethod
    def key(user_id: int | str) -> str:
        return f"del:{user_id}"

    async def get(self, user_id: int | str) -> PendingConfirmation | None:
        try:
            raw = await self.kv.get(self.key(user_id))
        except KeyValueError as e:
            logger.error("Pending confirmation read failed, treating as none: {}", e)
            return None
        if raw is None:
            return None
        try:
            return PendingConfirmation.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Discarding unreadable pending confirmation for {}: {}", user_id, e)
            await self.clear(user_id)
            return None

    async def set(self, user_id: int | str, pending: PendingConfirmation) -> bool:
        """Replaces any existing entry. Returns False if the store is down."""
        try:
            await self.kv.put(self.key(user_id), pending.model_dump_json(), ttl=self.ttl)
        except KeyValueError as e:
            logger.error("Pending confirmation write failed: {}", e)
            return False
        return True

    async def clear(self, user_id: int | str) -> None:
        try:
            await self.kv.delete(self.key(user_id))
        except KeyValueError as e:
            logger.error("Pending confirmation clear failed: {}", e)
