"""Turn a raw model response into a PipelineResult.

Two response shapes are understood: the chat-completions shape
(``choices[0].message.tool_calls``) and the legacy flat shape
(``tool_calls`` / ``response`` at the top level). Nothing here raises on
malformed output.
"""

import json
import re
from typing import Any, Callable

from loguru import logger

from dompet.models.schemas import ActionCall, PipelineResult

THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL)
FIRST_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def strip_thinking_tags(text: str) -> str:
    return THINK_BLOCK.sub("", text).strip()


def parse_arguments(raw: Any) -> dict:
    """Arguments arrive as a dict or as a JSON string; fall back to {}."""
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        return {}

    cleaned = strip_thinking_tags(raw)
    if not cleaned:
        return {}

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        match = FIRST_OBJECT.search(cleaned)
        parsed = None
        if match:
            try:
                parsed = json.loads(match.group(0))
            except json.JSONDecodeError:
                pass
        if parsed is None:
            logger.warning("Could not parse tool arguments: {}", cleaned)
            return {}

    return parsed if isinstance(parsed, dict) else {}


def deep_parse_arguments(args: dict) -> dict:
    """Decode string values that are themselves JSON arrays/objects."""
    result = {}
    for key, value in args.items():
        if isinstance(value, str):
            trimmed = value.strip()
            if (trimmed.startswith("[") and trimmed.endswith("]")) or (
                trimmed.startswith("{") and trimmed.endswith("}")
            ):
                try:
                    result[key] = json.loads(trimmed)
                    logger.debug("Deep-parsed string field {!r}", key)
                    continue
                except json.JSONDecodeError:
                    pass
        result[key] = value
    return result


def _clean_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return strip_thinking_tags(value) or None


def _to_action_call(raw: Any) -> ActionCall | None:
    if not isinstance(raw, dict):
        return None
    function = raw.get("function") if isinstance(raw.get("function"), dict) else {}
    name = function.get("name") or raw.get("name")
    if not name:
        logger.warning("Dropping tool call without a name: {}", raw)
        return None
    raw_args = function.get("arguments")
    if raw_args is None:
        raw_args = raw.get("arguments")
    return ActionCall(name=name, arguments=deep_parse_arguments(parse_arguments(raw_args)))


def _to_action_calls(raw_calls: list) -> list[ActionCall]:
    calls = [_to_action_call(raw) for raw in raw_calls]
    return [call for call in calls if call is not None]


def _first_message(raw: dict) -> dict:
    choices = raw.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message")
        if isinstance(message, dict):
            return message
    return {}


def _legacy_text(raw: dict) -> str | None:
    return _clean_text(raw.get("response")) or _clean_text(raw.get("content"))


def _match_chat_shape(raw: dict) -> PipelineResult | None:
    message = _first_message(raw)
    calls = message.get("tool_calls")
    if not isinstance(calls, list) or not calls:
        return None
    logger.debug("Found {} tool calls in choices[0].message", len(calls))
    return PipelineResult(
        action_calls=_to_action_calls(calls),
        text=_clean_text(message.get("content")) or _legacy_text(raw),
    )


def _match_legacy_shape(raw: dict) -> PipelineResult | None:
    calls = raw.get("tool_calls")
    if not isinstance(calls, list) or not calls:
        return None
    logger.debug("Found {} tool calls at top level", len(calls))
    return PipelineResult(
        action_calls=_to_action_calls(calls),
        text=_clean_text(_first_message(raw).get("content")) or _legacy_text(raw),
    )


def _match_text_shape(raw: dict) -> PipelineResult | None:
    text = _clean_text(_first_message(raw).get("content")) or _legacy_text(raw)
    if text is None:
        return None
    return PipelineResult(text=text)


SHAPE_MATCHERS: tuple[Callable[[dict], PipelineResult | None], ...] = (
    _match_chat_shape,
    _match_legacy_shape,
    _match_text_shape,
)


def normalize_response(raw: Any) -> PipelineResult:
    """Try each known shape in order; an unrecognised response is empty."""
    if hasattr(raw, "model_dump"):
        raw = raw.model_dump()
    if not isinstance(raw, dict):
        return PipelineResult()

    for matcher in SHAPE_MATCHERS:
        result = matcher(raw)
        if result is not None:
            return result

    logger.warning("Unrecognised model response shape: keys={}", list(raw))
    return PipelineResult()
