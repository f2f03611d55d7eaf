from datetime import date

from loguru import logger
from openai import AsyncOpenAI, OpenAIError

from dompet.errors import InferenceError
from dompet.llm.classifier import can_skip_nlu, classify_input
from dompet.llm.prompts import CASUAL_PROMPT, EXECUTOR_PROMPT, FALLBACK_REPLY, NLU_PROMPT
from dompet.llm.response import normalize_response, strip_thinking_tags
from dompet.llm.selector import select_tools_for_message
from dompet.llm.tools import tool_schemas
from dompet.llm.validator import is_casual_chat, validate_action_calls
from dompet.models.schemas import PipelineResult
from dompet.utils.dates import today_wib


class IntentParser:
    def __init__(
        self,
        api_key: str,
        model: str,
        nlu_model: str,
        base_url: str = "https://openrouter.ai/api/v1",
        client: AsyncOpenAI | None = None,
    ):
        self.client = client or AsyncOpenAI(base_url=base_url, api_key=api_key)
        self.model = model
        self.nlu_model = nlu_model

    async def normalize(self, text: str, today: date) -> str:
        """Rewrite slang into explicit amounts. Falls back to the raw text."""
        messages = [
            {"role": "system", "content": NLU_PROMPT.format(current_date=today.isoformat())},
            {"role": "user", "content": text},
        ]
        try:
            response = await self.client.chat.completions.create(
                model=self.nlu_model,
                messages=messages,
                temperature=0.1,
            )
        except OpenAIError as e:
            logger.warning("NLU call failed, using raw text: {}", e)
            return text

        content = response.choices[0].message.content if response.choices else None
        normalized = strip_thinking_tags(content or "")
        if not normalized:
            logger.warning("NLU returned nothing, using raw text")
            return text
        logger.debug("NLU: {!r} → {!r}", text, normalized)
        return normalized

    async def chat(self, text: str, history: list[dict] | None = None) -> PipelineResult:
        messages = [{"role": "system", "content": CASUAL_PROMPT}]
        if history:
            messages.extend(history)
        messages.append({"role": "user", "content": text})

        try:
            response = await self.client.chat.completions.create(
                model=self.nlu_model,
                messages=messages,
                temperature=0.7,
            )
        except OpenAIError as e:
            raise InferenceError(f"casual chat failed: {e}") from e

        return normalize_response(response)

    async def execute(
        self,
        original: str,
        normalized: str,
        tools: list[dict],
        today: date,
        history: list[dict] | None = None,
    ) -> PipelineResult:
        messages = [
            {"role": "system", "content": EXECUTOR_PROMPT.format(current_date=today.isoformat())}
        ]
        if history:
            messages.extend(history)

        content = normalized
        if normalized != original:
            content = f'[Pesan asli: "{original}"]\n\n{normalized}'
        messages.append({"role": "user", "content": content})

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                tools=tools,
                tool_choice="required",
                temperature=0.1,
            )
        except OpenAIError as e:
            raise InferenceError(f"tool call request failed: {e}") from e

        logger.debug("Executor raw response: {}", response)
        return normalize_response(response)

    async def run(
        self,
        text: str,
        history: list[dict] | None = None,
        today: date | None = None,
    ) -> PipelineResult:
        today = today or today_wib()

        if is_casual_chat(text):
            logger.info("Casual chat, single call")
            return await self.chat(text, history)

        input_class = classify_input(text)
        if can_skip_nlu(input_class):
            normalized = text
            logger.info("Input {}: skipping NLU", input_class.value)
        else:
            normalized = await self.normalize(text, today)

        selection = select_tools_for_message(normalized)
        result = await self.execute(
            text, normalized, tool_schemas(selection.actions), today, history
        )
        result = validate_action_calls(result)

        if not result.action_calls and not result.text:
            logger.warning("Pipeline produced no output, sending fallback")
            result.text = FALLBACK_REPLY

        logger.info(
            "Pipeline done: class={} tools={} calls={} text={}",
            input_class.value,
            selection.label,
            len(result.action_calls),
            "yes" if result.text else "no",
        )
        return result
