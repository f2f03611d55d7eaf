"""Pre-pipeline input classification.

Decides whether a message needs the slang-normalization call before action
extraction. Pure regex, no model cost.

- CLEAN: explicit amounts (Rp / grouped digits), no slang
- QUERY: read-only commands (rekap, daftar, target, ...)
- SLANG: Indonesian money slang that must be normalized
- EDIT: edit/delete/correction commands
- COMPLEX: multi-line mixes or anything unrecognised
"""

import re
from enum import Enum


class InputClass(str, Enum):
    CLEAN = "CLEAN"
    QUERY = "QUERY"
    SLANG = "SLANG"
    EDIT = "EDIT"
    COMPLEX = "COMPLEX"


# Suffixes attach straight to digits ("25rb", "1jt"); only a preceding letter rules a match out
SLANG_PATTERN = re.compile(
    r"(?<![a-z])(rb|ribu|jt|juta|ceban|goceng|gocap|seceng|setengah\s*juta|sejuta)\b", re.IGNORECASE
)
QUERY_PATTERN = re.compile(r"^(rekap|daftar|cek|lihat|target|riwayat)\b", re.IGNORECASE)
EDIT_PATTERN = re.compile(
    r"\b(ubah|edit|hapus|delete|salah|koreksi|yang terakhir|batal(?:kan)?|cancel)\b", re.IGNORECASE
)
# Grouped digits (25.000 / 1,500,000), Rp-prefixed 4+ digits, or a bare 4+ digit number
CLEAN_AMOUNT = re.compile(
    r"(?:rp\.?\s*)?\d{1,3}(?:[.,]\d{3})+|(?:rp\.?\s*)\d{4,}|\b\d{4,}\b", re.IGNORECASE
)
TARGET_PATTERN = re.compile(r"^(kewajiban|cicilan|goal|nabung|tabung|set\s)", re.IGNORECASE)


def _is_clean_line(line: str) -> bool:
    return bool(CLEAN_AMOUNT.search(line)) and not SLANG_PATTERN.search(line)


def classify_input(text: str) -> InputClass:
    trimmed = text.strip()
    lines = [line for line in trimmed.split("\n") if line.strip()]

    # Multi-line is decided here and never falls through to the rules below
    if len(lines) > 1:
        if all(_is_clean_line(line) for line in lines):
            return InputClass.CLEAN
        return InputClass.COMPLEX

    if EDIT_PATTERN.search(trimmed):
        return InputClass.EDIT

    if QUERY_PATTERN.search(trimmed):
        return InputClass.QUERY

    if SLANG_PATTERN.search(trimmed):
        return InputClass.SLANG

    # Obligation/goal setup skips normalization even without an explicit amount
    if TARGET_PATTERN.search(trimmed):
        return InputClass.CLEAN

    if CLEAN_AMOUNT.search(trimmed):
        return InputClass.CLEAN

    return InputClass.COMPLEX


def can_skip_nlu(input_class: InputClass) -> bool:
    return input_class in (InputClass.CLEAN, InputClass.QUERY)
