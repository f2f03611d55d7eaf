import re
from datetime import date

from loguru import logger

from dompet.db.repository import Repositories
from dompet.models.schemas import ActionResult, Transaction, User
from dompet.utils.dates import date_from_offset, date_range, today_wib
from dompet.utils.money import format_rupiah, parse_int, sanitize_string, validate_amount

CATEGORIES = {
    "income": {"orderan", "bonus", "tip", "gaji", "lainnya"},
    "expense": {"makan", "bensin", "rokok", "parkir", "servis", "pulsa", "lainnya"},
}

PERIOD_LABELS = {
    "today": "Hari Ini",
    "yesterday": "Kemarin",
    "this_week": "Minggu Ini",
    "this_month": "Bulan Ini",
}

LAST_ONE_PATTERN = re.compile(r"terakhir|barusan|tadi|baru aja")
MAX_BACKDATE_DAYS = 366


def _category(trx_type: str, raw) -> str:
    category = str(raw or "").strip().lower()
    return category if category in CATEGORIES[trx_type] else "lainnya"


def record_transactions(
    repos: Repositories,
    user: User,
    args: dict,
    source_text: str,
    today: date | None = None,
) -> ActionResult:
    today = today or today_wib()
    recorded = []

    for item in args.get("transactions") or []:
        if not isinstance(item, dict):
            continue
        amount = validate_amount(item.get("amount"))
        trx_type = item.get("type")
        if amount is None or trx_type not in CATEGORIES:
            logger.warning("Skipping invalid line item: {}", item)
            continue

        offset = parse_int(item.get("date_offset")) or 0
        offset = min(0, max(offset, -MAX_BACKDATE_DAYS))
        trx = repos.transactions.add(
            Transaction(
                user_id=user.id,
                type=trx_type,
                amount=amount,
                category=_category(trx_type, item.get("category")),
                description=sanitize_string(item.get("description")),
                source_text=source_text,
                trx_date=date_from_offset(offset, today),
            )
        )
        recorded.append(
            {
                "type": trx.type,
                "amount": trx.amount,
                "category": trx.category,
                "description": trx.description,
                "trx_date": trx.trx_date,
            }
        )

    logger.info("Recorded {} transactions for user #{}", len(recorded), user.id)
    return ActionResult(type="transactions_recorded", data=recorded)


def resolve_target(repos: Repositories, user: User, target: str) -> Transaction | None:
    """Find the transaction a free-text reference points at, most specific layer first."""
    lowered = (target or "").lower().strip()
    if not lowered:
        return None

    keywords = [w for w in lowered.split() if len(w) > 2]
    if keywords:
        found = repos.transactions.find_by_description(user.id, keywords)
        if found:
            return found

    found = repos.transactions.find_by_category(user.id, lowered)
    if found:
        return found

    found = repos.transactions.find_by_source_text(user.id, lowered)
    if found:
        return found

    if LAST_ONE_PATTERN.search(lowered):
        return repos.transactions.find_last(user.id)
    return None


def _label(trx: Transaction) -> str:
    return "Pemasukan" if trx.type == "income" else "Pengeluaran"


def delete_transaction(repos: Repositories, trx: Transaction) -> ActionResult:
    repos.transactions.delete(trx.id)
    logger.info("Transaction #{} deleted", trx.id)
    suffix = f" ({trx.description})" if trx.description else ""
    return ActionResult(
        type="edited",
        data={"deleted": trx.model_dump(mode="json")},
        message=f"🗑️ Dihapus: {_label(trx)} {format_rupiah(trx.amount)}{suffix}",
    )


def edit_transaction(repos: Repositories, user: User, args: dict) -> ActionResult:
    target = args.get("target") or ""
    trx = resolve_target(repos, user, target)
    if trx is None:
        return ActionResult(
            type="clarification",
            message=(
                f'Gue gak nemu transaksi "{sanitize_string(target)}" di catatan lo. '
                'Coba sebutin lebih spesifik ya, misalnya "yang makan 25rb tadi".'
            ),
        )

    action = args.get("action")
    if action == "delete":
        return delete_transaction(repos, trx)

    if action == "edit":
        if args.get("new_amount") is None:
            return ActionResult(
                type="clarification",
                message=f'Ketemu transaksi "{trx.description}" ({format_rupiah(trx.amount)}). Mau diubah jadi berapa?',
            )
        new_amount = validate_amount(args["new_amount"])
        if new_amount is None:
            return ActionResult(type="clarification", message="Jumlah barunya gak valid. Coba tulis ulang ya.")

        repos.transactions.update(trx.id, amount=new_amount)
        return ActionResult(
            type="edited",
            data={"old": {"amount": trx.amount, "description": trx.description}, "new": {"amount": new_amount}},
            message=f'Diubah: "{trx.description}"\n   {format_rupiah(trx.amount)} → {format_rupiah(new_amount)}',
        )

    return ActionResult(type="clarification", message="Mau diapain nih? Bilang 'edit' atau 'hapus' ya.")


def get_summary(
    repos: Repositories, user: User, args: dict, today: date | None = None
) -> ActionResult:
    period = args.get("period") if args.get("period") in PERIOD_LABELS else "today"
    start, end = date_range(period, today)
    rows = repos.transactions.get_by_date_range(user.id, start, end)

    total_income = sum(t.amount for t in rows if t.type == "income")
    total_expense = sum(t.amount for t in rows if t.type == "expense")
    return ActionResult(
        type="summary",
        data={
            "period_label": PERIOD_LABELS[period],
            "start": start,
            "end": end,
            "total_income": total_income,
            "total_expense": total_expense,
            "details": [
                {"type": t.type, "amount": t.amount, "description": t.description} for t in rows
            ],
        },
    )
