from loguru import logger

from dompet.bot.formatter import (
    AI_LIMIT_REPLY,
    CANCELLED_REPLY,
    ERROR_REPLY,
    RATE_LIMITED_REPLY,
    format_reply,
)
from dompet.db.repository import Repositories
from dompet.llm.parser import IntentParser
from dompet.models.schemas import ActionResult, User
from dompet.services.confirm import ConfirmationState, ConfirmationStore, classify_reply
from dompet.services.guard import MessageGuard, has_injection_patterns, sanitize_user_input
from dompet.services.router import ActionRouter


class MessageProcessor:
    """One inbound chat message in, at most one reply out."""

    def __init__(
        self,
        repos: Repositories,
        parser: IntentParser,
        router: ActionRouter,
        confirmations: ConfirmationStore,
        guard: MessageGuard,
        history_size: int = 6,
        max_input_length: int = 500,
    ):
        self.repos = repos
        self.parser = parser
        self.router = router
        self.confirmations = confirmations
        self.guard = guard
        self.history_size = history_size
        self.max_input_length = max_input_length

    async def handle(
        self,
        telegram_id: str,
        text: str,
        display_name: str = "Driver",
        chat_id: int | None = None,
        message_id: int | None = None,
    ) -> str | None:
        """Returns the reply to send, or None when the message is ignored."""
        if await self.guard.is_duplicate(chat_id, message_id):
            return None
        if await self.guard.is_rate_limited(telegram_id):
            return RATE_LIMITED_REPLY

        if has_injection_patterns(text):
            logger.warning("Injection pattern stripped from {}'s message", telegram_id)
        cleaned = sanitize_user_input(text, self.max_input_length)
        if cleaned is None:
            logger.info("Empty message after sanitizing, ignoring")
            return None

        try:
            user = self.repos.users.get_or_create(telegram_id, display_name)

            reply = await self._resolve_pending(user, cleaned)
            if reply is not None:
                return reply

            if not await self.guard.consume_ai_budget(user.id):
                return AI_LIMIT_REPLY

            history = self.repos.conversations.recent(user.id, self.history_size)
            self.repos.conversations.save(user.id, "user", cleaned)

            result = await self.parser.run(cleaned, history)
            results = await self.router.process(user, result.action_calls, cleaned)
            reply = format_reply(results, result.text, result.dropped_items)

            self.repos.conversations.save(user.id, "assistant", reply)
            return reply
        except Exception:
            logger.exception("Failed to handle message from {}", telegram_id)
            return ERROR_REPLY

    async def _resolve_pending(self, user: User, text: str) -> str | None:
        """Handle a reply to a pending delete. None means: run the normal pipeline."""
        pending = await self.confirmations.get(user.id)
        if pending is None:
            return None

        state = classify_reply(text)
        await self.confirmations.clear(user.id)

        if state == ConfirmationState.CONFIRMED:
            logger.info("User #{} confirmed delete: {}", user.id, pending.description)
            result = self.router.execute_confirmed(user, pending)
            return format_reply([result])
        if state == ConfirmationState.CANCELLED:
            logger.info("User #{} cancelled delete: {}", user.id, pending.description)
            return format_reply([ActionResult(type="cancelled", message=CANCELLED_REPLY)])

        logger.info("Pending delete superseded for user #{}", user.id)
        return None
