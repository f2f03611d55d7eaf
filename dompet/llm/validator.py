"""Bounds, caps and dedup for model-proposed actions.

Everything the model proposes passes through ``validate_action_calls`` before
it reaches the router.
"""

import json
import re

from loguru import logger

from dompet.llm.tools import ActionName
from dompet.models.schemas import ActionCall, PipelineResult
from dompet.utils.money import validate_amount

MAX_LINE_ITEMS = 10
MAX_DELETES_PER_BATCH = 1

# Actions carrying one amount; an invalid value removes the whole call
SINGLE_AMOUNT_FIELDS: dict[str, tuple[str, ...]] = {
    ActionName.RECORD_DEBT.value: ("amount",),
    ActionName.PAY_DEBT.value: ("amount",),
    ActionName.EDIT_DEBT.value: ("new_amount",),
    ActionName.EDIT_TRANSACTION.value: ("new_amount",),
    ActionName.SET_OBLIGATION.value: ("amount",),
    ActionName.SET_GOAL.value: ("target_amount",),
    ActionName.SET_SAVING.value: ("amount",),
}

DESTRUCTIVE_ACTIONS = {ActionName.EDIT_TRANSACTION.value, ActionName.EDIT_DEBT.value}

CASUAL_PATTERNS = [
    re.compile(r"^(halo|hai|hey|hi|yo|woi)\b"),
    re.compile(r"^(pagi|siang|sore|malam|met\s)"),
    re.compile(r"^(makasih|thanks|thank|terima\s*kasih)"),
    re.compile(r"^(ok|oke|okey|sip|siap|mantap|good|nice)\b"),
    re.compile(r"^(bye|dadah|sampai\s*jumpa)"),
    re.compile(r"^(lagi\s+apa|apa\s+kabar|gimana)"),
    re.compile(r"^(lu\s+siapa|kamu\s+siapa|lo\s+bisa\s+apa)"),
]


def is_casual_chat(text: str) -> bool:
    """Greetings and small talk of at most four words."""
    lower = text.strip().lower()
    if len(lower.split()) > 4:
        return False
    return any(p.search(lower) for p in CASUAL_PATTERNS)


def is_destructive(call: ActionCall) -> bool:
    return call.name in DESTRUCTIVE_ACTIONS and call.arguments.get("action") == "delete"


def action_key(call: ActionCall) -> str:
    """Name plus canonical arguments; equal keys mean a true duplicate."""
    return call.name + ":" + json.dumps(call.arguments, sort_keys=True, default=str)


def deduplicate(calls: list[ActionCall]) -> list[ActionCall]:
    seen: set[str] = set()
    unique = []
    for call in calls:
        key = action_key(call)
        if key in seen:
            logger.warning("Duplicate tool call removed: {}", call.name)
            continue
        seen.add(key)
        unique.append(call)
    return unique


def _validate_line_items(call: ActionCall) -> tuple[ActionCall | None, int]:
    """Returns the cleaned call (None if nothing survives) and the dropped count."""
    items = call.arguments.get("transactions")
    if isinstance(items, str):
        try:
            items = json.loads(items)
        except json.JSONDecodeError:
            logger.error("transactions is an unparseable string, clearing")
            items = []
    if not isinstance(items, list):
        logger.error("transactions is not a list: {}", type(items).__name__)
        items = []

    dropped = 0
    if len(items) > MAX_LINE_ITEMS:
        logger.warning("Runaway array: {} items, truncating to {}", len(items), MAX_LINE_ITEMS)
        dropped += len(items) - MAX_LINE_ITEMS
        items = items[:MAX_LINE_ITEMS]

    valid = []
    for item in items:
        amount = validate_amount(item.get("amount")) if isinstance(item, dict) else None
        if amount is None:
            logger.warning("Invalid line item skipped: {}", item)
            dropped += 1
            continue
        valid.append({**item, "amount": amount})

    if not valid:
        return None, dropped
    return ActionCall(name=call.name, arguments={**call.arguments, "transactions": valid}), dropped


def _validate_single_amount(call: ActionCall) -> ActionCall | None:
    arguments = dict(call.arguments)
    for field in SINGLE_AMOUNT_FIELDS.get(call.name, ()):
        if arguments.get(field) is None:
            continue
        amount = validate_amount(arguments[field])
        if amount is None:
            logger.warning("Invalid {} {!r} for {}, removing call", field, arguments[field], call.name)
            return None
        arguments[field] = amount
    return ActionCall(name=call.name, arguments=arguments)


def validate_action_calls(result: PipelineResult) -> PipelineResult:
    dropped = result.dropped_items
    deletes = 0
    kept: list[ActionCall] = []

    for call in result.action_calls:
        if call.name == ActionName.RECORD_TRANSACTIONS.value:
            cleaned, item_drops = _validate_line_items(call)
            dropped += item_drops
        else:
            cleaned = _validate_single_amount(call)
            if cleaned is None:
                dropped += 1
        if cleaned is None:
            continue

        if is_destructive(cleaned):
            deletes += 1
            if deletes > MAX_DELETES_PER_BATCH:
                logger.warning("Extra delete dropped: {} {}", cleaned.name, cleaned.arguments)
                continue

        kept.append(cleaned)

    return PipelineResult(action_calls=deduplicate(kept), text=result.text, dropped_items=dropped)
