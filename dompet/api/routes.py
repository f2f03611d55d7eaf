from fastapi import APIRouter, HTTPException
from loguru import logger

from dompet.deps import processor, repos
from dompet.llm.classifier import can_skip_nlu, classify_input
from dompet.llm.selector import select_tools_for_message
from dompet.models.schemas import (
    ActionResult,
    ClassifyRequest,
    ClassifyResponse,
    MessageRequest,
    MessageResponse,
    TargetBreakdown,
    User,
)
from dompet.services.debt import get_debts_list
from dompet.services.target import calculate_daily_target

router = APIRouter()


def _get_user(telegram_id: str) -> User:
    user = repos.users.get_by_telegram(telegram_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("/messages", response_model=MessageResponse)
async def post_message(request: MessageRequest):
    logger.info("Message from {}: {}", request.telegram_id, request.text)
    reply = await processor.handle(
        request.telegram_id,
        request.text,
        display_name=request.display_name,
        chat_id=request.chat_id,
        message_id=request.message_id,
    )
    return MessageResponse(reply=reply)


@router.post("/classify", response_model=ClassifyResponse)
def classify_message(request: ClassifyRequest):
    input_class = classify_input(request.message)
    selection = select_tools_for_message(request.message)
    return ClassifyResponse(
        input_class=input_class.value,
        can_skip_nlu=can_skip_nlu(input_class),
        tools_label=selection.label,
        tools=[action.value for action in selection.actions],
    )


@router.get("/users/{telegram_id}/target", response_model=TargetBreakdown)
def get_target(telegram_id: str):
    return calculate_daily_target(repos, _get_user(telegram_id))


@router.get("/users/{telegram_id}/debts", response_model=ActionResult)
def get_debts(telegram_id: str, type: str = "all"):
    if type not in ("hutang", "piutang", "all"):
        raise HTTPException(status_code=400, detail="type must be hutang, piutang or all")
    return get_debts_list(repos, _get_user(telegram_id), {"type": type})
