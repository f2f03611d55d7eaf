"""Keyword pre-filter that narrows the tool list sent with each request.

The model still picks the action; this only shrinks the menu. When no rule
matches, the full catalogue is sent.
"""

import re
from typing import NamedTuple

from loguru import logger

from dompet.llm.tools import (
    ALL_ACTIONS,
    DEBT_ACTIONS,
    EDIT_ACTIONS,
    QUERY_ACTIONS,
    SETTING_ACTIONS,
    TRANSACTION_ACTIONS,
    ActionName,
)


class ToolSelection(NamedTuple):
    actions: tuple[ActionName, ...]
    label: str


# First match wins
ROUTES: list[tuple[re.Pattern, tuple[ActionName, ...], str]] = [
    (
        re.compile(r"\b(rekap|ringkasan|summary|daftar|list|riwayat|histor\w*|target|berapa)\b", re.I),
        QUERY_ACTIONS,
        "QUERY",
    ),
    (
        re.compile(
            r"\b(ubah|edit|ganti|hapus|delete|hilang|selesai|batal|cancel|koreksi|salah|harusnya)\b",
            re.I,
        ),
        EDIT_ACTIONS,
        "EDIT",
    ),
    (
        re.compile(r"\b(cicilan|kewajiban|obligation|goal|nabung|saving|tabung)\b", re.I),
        SETTING_ACTIONS,
        "SETTING",
    ),
    (
        re.compile(r"\b(hutang|piutang|utang|minjem|pinjam|pinjem|ngutang|bayar|nyicil|lunas)\b", re.I),
        DEBT_ACTIONS,
        "DEBT",
    ),
    (
        re.compile(
            r"\b(\d+|rb|ribu|jt|juta|goceng|gocap|ceban|seceng|makan|bensin|rokok|parkir"
            r"|servis|pulsa|orderan|bonus|tip|gaji|dapet|dapat)\b",
            re.I,
        ),
        TRANSACTION_ACTIONS,
        "TRANSACTION",
    ),
]


def select_tools_for_message(text: str) -> ToolSelection:
    cleaned = text.strip()
    for pattern, actions, label in ROUTES:
        if pattern.search(cleaned):
            logger.debug("Tool selector matched {} ({} tools)", label, len(actions))
            return ToolSelection(actions, label)

    logger.debug("Tool selector fallback: ALL ({} tools)", len(ALL_ACTIONS))
    return ToolSelection(ALL_ACTIONS, "ALL")
