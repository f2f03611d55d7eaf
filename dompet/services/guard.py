"""Per-user limits and input hygiene applied before any inference.

All counters live in the key-value store. If the store fails the request is
allowed through.
"""

import json
import re
import time
from datetime import datetime

from loguru import logger

from dompet.db.kv import KeyValueStore
from dompet.errors import KeyValueError
from dompet.utils.dates import WIB, next_midnight_wib_epoch

INJECTION_PATTERNS = [
    re.compile(
        r"ignore\s+(all\s+)?(previous|above|prior|earlier|system)\s+(instructions?|rules?|prompts?|context)",
        re.I,
    ),
    re.compile(
        r"abaikan\s+(semua\s+)?(instruksi|aturan|perintah|prompt)\s+(sebelumnya|di\s*atas|lama)", re.I
    ),
    re.compile(r"^(system|assistant)\s*:", re.I | re.M),
    re.compile(r"\[/?INST\]", re.I),
    re.compile(r"<</?SYS>>", re.I),
    re.compile(r"(you\s+are\s+now|kamu\s+sekarang\s+(adalah|jadi)|act\s+as|pretend\s+(to\s+be|you're))", re.I),
    re.compile(r"(new\s+instructions?|override|forget\s+everything|reset\s+your\s+(role|persona|instructions?))", re.I),
    re.compile(r"```(system|instructions?|prompt)[\s\S]*?```", re.I),
    re.compile(r"<(system|instructions?|prompt)>[\s\S]*?</\1>", re.I),
]
EXCESS_WHITESPACE = re.compile(r"\s{3,}")


def has_injection_patterns(text: str) -> bool:
    return any(p.search(text) for p in INJECTION_PATTERNS)


def sanitize_user_input(text: str, max_length: int = 500) -> str | None:
    """Truncate, strip injection phrases and collapse whitespace. None if nothing is left."""
    cleaned = text[:max_length]
    for pattern in INJECTION_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    cleaned = EXCESS_WHITESPACE.sub("  ", cleaned).strip()
    return cleaned or None


class MessageGuard:
    def __init__(
        self,
        kv: KeyValueStore,
        rate_limit_max: int = 30,
        rate_limit_window: int = 60,
        daily_ai_limit: int = 200,
        dedup_ttl: int = 300,
        clock=time.time,
    ):
        self.kv = kv
        self.rate_limit_max = rate_limit_max
        self.rate_limit_window = rate_limit_window
        self.daily_ai_limit = daily_ai_limit
        self.dedup_ttl = dedup_ttl
        self.clock = clock

    async def is_duplicate(self, chat_id: int | None, message_id: int | None) -> bool:
        """True if this chat message was already seen; marks it as seen otherwise."""
        if not chat_id or not message_id:
            return False
        key = f"dedup:{chat_id}:{message_id}"
        try:
            if await self.kv.get(key) is not None:
                logger.warning("Skipping duplicate message {}", key)
                return True
            await self.kv.put(key, "1", ttl=self.dedup_ttl)
        except KeyValueError as e:
            logger.error("Dedup check failed, processing anyway: {}", e)
        return False

    async def is_rate_limited(self, user_id: int | str) -> bool:
        key = f"rl:{user_id}"
        now = int(self.clock())
        try:
            raw = await self.kv.get(key)
            entry = json.loads(raw) if raw else None
            if not entry or now - entry["start"] >= self.rate_limit_window:
                await self.kv.put(
                    key,
                    json.dumps({"count": 1, "start": now}),
                    expires_at=now + self.rate_limit_window,
                )
                return False

            if entry["count"] >= self.rate_limit_max:
                logger.warning(
                    "User {} exceeded {} msgs/{}s", user_id, self.rate_limit_max, self.rate_limit_window
                )
                return True

            await self.kv.put(
                key,
                json.dumps({"count": entry["count"] + 1, "start": entry["start"]}),
                expires_at=entry["start"] + self.rate_limit_window,
            )
            return False
        except (KeyValueError, json.JSONDecodeError, KeyError, TypeError) as e:
            logger.error("Rate limit check failed, allowing: {}", e)
            return False

    async def consume_ai_budget(self, user_id: int | str) -> bool:
        """Count one inference call against today's budget. False once it is spent."""
        now = datetime.fromtimestamp(self.clock(), WIB)
        key = f"ai:{user_id}:{now.date().isoformat()}"
        try:
            raw = await self.kv.get(key)
            count = int(raw) if raw else 0
            if count >= self.daily_ai_limit:
                logger.warning("User {} hit the daily AI limit ({})", user_id, self.daily_ai_limit)
                return False
            await self.kv.put(key, str(count + 1), expires_at=next_midnight_wib_epoch(now))
        except (KeyValueError, ValueError) as e:
            logger.error("AI budget check failed, allowing: {}", e)
        return True
