"""Action catalogue exposed to the model as function-calling tools."""

from enum import Enum


class ActionName(str, Enum):
    RECORD_TRANSACTIONS = "record_transactions"
    RECORD_DEBT = "record_debt"
    PAY_DEBT = "pay_debt"
    GET_SUMMARY = "get_summary"
    GET_DEBTS = "get_debts"
    GET_DEBT_HISTORY = "get_debt_history"
    EDIT_TRANSACTION = "edit_transaction"
    ASK_CLARIFICATION = "ask_clarification"
    EDIT_DEBT = "edit_debt"
    GET_DAILY_TARGET = "get_daily_target"
    SET_OBLIGATION = "set_obligation"
    SET_GOAL = "set_goal"
    SET_SAVING = "set_saving"
    EDIT_OBLIGATION = "edit_obligation"
    EDIT_GOAL = "edit_goal"


def _tool(name: ActionName, description: str, properties: dict, required: list[str]) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name.value,
            "description": description,
            "parameters": {"type": "object", "properties": properties, "required": required},
        },
    }


_INT = {"type": "integer"}
_STR = {"type": "string"}

TOOLS: dict[ActionName, dict] = {
    ActionName.RECORD_TRANSACTIONS: _tool(
        ActionName.RECORD_TRANSACTIONS,
        "Catat transaksi pemasukan/pengeluaran.",
        {
            "transactions": {
                "type": "array",
                "maxItems": 10,
                "items": {
                    "type": "object",
                    "properties": {
                        "type": {"type": "string", "enum": ["income", "expense"]},
                        "amount": _INT,
                        "category": _STR,
                        "description": _STR,
                        "date_offset": _INT,
                    },
                    "required": ["type", "amount", "category", "description"],
                },
            }
        },
        ["transactions"],
    ),
    ActionName.RECORD_DEBT: _tool(
        ActionName.RECORD_DEBT,
        "Catat hutang/piutang baru.",
        {
            "type": {"type": "string", "enum": ["hutang", "piutang"]},
            "person_name": _STR,
            "amount": _INT,
            "remaining": _INT,
            "due_date": {"type": "string", "description": "YYYY-MM-DD"},
            "due_date_days": _INT,
            "recurring_day": _INT,
            "interest_rate": {"type": "number"},
            "interest_type": {"type": "string", "enum": ["none", "flat", "daily"]},
            "tenor_months": _INT,
            "installment_amount": _INT,
            "installment_freq": {"type": "string", "enum": ["daily", "weekly", "monthly"]},
            "note": _STR,
        },
        ["type", "person_name", "amount"],
    ),
    ActionName.PAY_DEBT: _tool(
        ActionName.PAY_DEBT,
        "Catat pembayaran hutang/piutang.",
        {"person_name": _STR, "amount": _INT},
        ["person_name", "amount"],
    ),
    ActionName.GET_SUMMARY: _tool(
        ActionName.GET_SUMMARY,
        "Rekap keuangan.",
        {"period": {"type": "string", "enum": ["today", "yesterday", "this_week", "this_month"]}},
        ["period"],
    ),
    ActionName.GET_DEBTS: _tool(
        ActionName.GET_DEBTS,
        "Daftar hutang/piutang aktif.",
        {"type": {"type": "string", "enum": ["hutang", "piutang", "all"]}},
        ["type"],
    ),
    ActionName.GET_DEBT_HISTORY: _tool(
        ActionName.GET_DEBT_HISTORY,
        "Riwayat pembayaran hutang.",
        {"person_name": _STR},
        ["person_name"],
    ),
    ActionName.EDIT_TRANSACTION: _tool(
        ActionName.EDIT_TRANSACTION,
        "Edit atau hapus transaksi.",
        {
            "action": {"type": "string", "enum": ["edit", "delete"]},
            "target": _STR,
            "new_amount": _INT,
        },
        ["action", "target"],
    ),
    ActionName.ASK_CLARIFICATION: _tool(
        ActionName.ASK_CLARIFICATION,
        "Tanya balik jika ambigu.",
        {"message": _STR},
        ["message"],
    ),
    ActionName.EDIT_DEBT: _tool(
        ActionName.EDIT_DEBT,
        "Edit/hapus hutang-piutang.",
        {
            "action": {"type": "string", "enum": ["edit", "delete"]},
            "person_name": _STR,
            "new_amount": _INT,
        },
        ["action", "person_name"],
    ),
    ActionName.GET_DAILY_TARGET: _tool(ActionName.GET_DAILY_TARGET, "Target harian.", {}, []),
    ActionName.SET_OBLIGATION: _tool(
        ActionName.SET_OBLIGATION,
        "Catat kewajiban rutin.",
        {
            "name": _STR,
            "amount": _INT,
            "frequency": {"type": "string", "enum": ["daily", "weekly", "monthly"]},
        },
        ["name", "amount"],
    ),
    ActionName.SET_GOAL: _tool(
        ActionName.SET_GOAL,
        "Goal menabung.",
        {"name": _STR, "target_amount": _INT, "deadline_days": _INT},
        ["name", "target_amount"],
    ),
    ActionName.SET_SAVING: _tool(
        ActionName.SET_SAVING, "Tabungan minimum harian.", {"amount": _INT}, ["amount"]
    ),
    ActionName.EDIT_OBLIGATION: _tool(
        ActionName.EDIT_OBLIGATION,
        "Hapus/selesaikan kewajiban.",
        {"action": {"type": "string", "enum": ["delete", "done"]}, "name": _STR},
        ["action", "name"],
    ),
    ActionName.EDIT_GOAL: _tool(
        ActionName.EDIT_GOAL,
        "Batalkan/selesaikan goal.",
        {"action": {"type": "string", "enum": ["cancel", "done"]}, "name": _STR},
        ["action", "name"],
    ),
}

ALL_ACTIONS: tuple[ActionName, ...] = tuple(TOOLS)

TRANSACTION_ACTIONS = (
    ActionName.RECORD_TRANSACTIONS,
    ActionName.EDIT_TRANSACTION,
    ActionName.ASK_CLARIFICATION,
)
DEBT_ACTIONS = (
    ActionName.RECORD_DEBT,
    ActionName.PAY_DEBT,
    ActionName.GET_DEBTS,
    ActionName.GET_DEBT_HISTORY,
    ActionName.EDIT_DEBT,
    ActionName.ASK_CLARIFICATION,
)
QUERY_ACTIONS = (
    ActionName.GET_SUMMARY,
    ActionName.GET_DEBTS,
    ActionName.GET_DEBT_HISTORY,
    ActionName.GET_DAILY_TARGET,
    ActionName.ASK_CLARIFICATION,
)
EDIT_ACTIONS = (
    ActionName.EDIT_TRANSACTION,
    ActionName.EDIT_DEBT,
    ActionName.EDIT_OBLIGATION,
    ActionName.EDIT_GOAL,
    ActionName.ASK_CLARIFICATION,
)
SETTING_ACTIONS = (
    ActionName.SET_OBLIGATION,
    ActionName.SET_GOAL,
    ActionName.SET_SAVING,
    ActionName.GET_DAILY_TARGET,
    ActionName.ASK_CLARIFICATION,
)


def tool_schemas(actions: tuple[ActionName, ...]) -> list[dict]:
    return [TOOLS[action] for action in actions]
