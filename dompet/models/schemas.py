from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


# ── Pipeline ──


class ActionCall(BaseModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class PipelineResult(BaseModel):
    action_calls: list[ActionCall] = Field(default_factory=list)
    text: str | None = None
    # Line items removed by the validator, reported back as "N item gagal"
    dropped_items: int = 0


class PendingConfirmation(BaseModel):
    subject_kind: Literal["ledger_entry", "debt"]
    payload: dict[str, Any]
    description: str


ResultType = Literal[
    "transactions_recorded",
    "debt_recorded",
    "debt_paid",
    "summary",
    "debts_list",
    "debt_history",
    "daily_target",
    "obligation_set",
    "goal_set",
    "saving_set",
    "edited",
    "clarification",
    "confirmation_required",
    "cancelled",
]


class ActionResult(BaseModel):
    type: ResultType
    data: Any = None
    message: str | None = None
    # Set on the first recording result when the batch recorded income
    progress: "TargetBreakdown | None" = None


# ── Ledger ──


class User(BaseModel):
    id: int | None = None
    telegram_id: str
    display_name: str = "Driver"
    timezone: str = "Asia/Jakarta"


class Transaction(BaseModel):
    id: int | None = None
    user_id: int
    type: Literal["income", "expense"]
    amount: int
    category: str = "lainnya"
    description: str = ""
    source_text: str = ""
    trx_date: date
    created_at: datetime = Field(default_factory=datetime.now)


class Debt(BaseModel):
    id: int | None = None
    user_id: int
    type: Literal["hutang", "piutang"]
    person_name: str
    amount: int
    remaining: int
    note: str | None = None
    source_text: str = ""
    due_date: date | None = None
    next_payment_date: date | None = None
    interest_rate: float = 0
    interest_type: Literal["none", "flat", "daily"] = "none"
    tenor_months: int | None = None
    installment_amount: int | None = None
    installment_freq: Literal["daily", "weekly", "monthly"] = "monthly"
    total_with_interest: int
    status: Literal["active", "settled"] = "active"
    created_at: datetime = Field(default_factory=datetime.now)
    settled_at: datetime | None = None


class DebtPayment(BaseModel):
    id: int | None = None
    debt_id: int
    amount: int
    source_text: str = ""
    paid_at: datetime = Field(default_factory=datetime.now)


class Obligation(BaseModel):
    id: int | None = None
    user_id: int
    name: str
    amount: int
    frequency: Literal["daily", "weekly", "monthly"] = "daily"
    note: str | None = None
    source_text: str = ""
    status: Literal["active", "done"] = "active"
    created_at: datetime = Field(default_factory=datetime.now)


class Goal(BaseModel):
    id: int | None = None
    user_id: int
    name: str
    target_amount: int
    saved_amount: int = 0
    deadline_days: int = 30
    source_text: str = ""
    status: Literal["active", "cancelled", "achieved"] = "active"
    created_at: datetime = Field(default_factory=datetime.now)


# ── Derived ──


class DueStatus(BaseModel):
    status: Literal["overdue", "urgent", "soon", "ok", "no_due"]
    days_left: int = 0
    is_overdue: bool = False


class TargetItem(BaseModel):
    name: str
    daily_amount: int


class TargetBreakdown(BaseModel):
    obligations: list[TargetItem] = []
    debt_installments: list[TargetItem] = []
    avg_operational: int = 0
    daily_saving: int = 0
    goals: list[TargetItem] = []
    buffer: int = 0
    total_target: int = 0
    today_income: int = 0
    remaining: int = 0
    progress_percent: int = 0


# ── HTTP ──


class MessageRequest(BaseModel):
    telegram_id: str
    text: str
    display_name: str = "Driver"
    chat_id: int | None = None
    message_id: int | None = None


class MessageResponse(BaseModel):
    reply: str | None = None


class ClassifyRequest(BaseModel):
    message: str


class ClassifyResponse(BaseModel):
    input_class: str
    can_skip_nlu: bool
    tools_label: str
    tools: list[str]


ActionResult.model_rebuild()
