"""Daily income target: obligations, debts, goals and savings amortized per day."""

import re
from datetime import date, timedelta
from typing import Sequence, TypeVar

from loguru import logger

from dompet.db.repository import Repositories
from dompet.models.schemas import (
    ActionResult,
    Debt,
    Goal,
    Obligation,
    TargetBreakdown,
    TargetItem,
    User,
)
from dompet.services.debt import get_debt_status
from dompet.utils.dates import today_wib
from dompet.utils.money import parse_int, round_half_up, sanitize_string, validate_amount

BUFFER_RATE = 0.1
OPERATIONAL_WINDOW_DAYS = 7
DEFAULT_DEADLINE_DAYS = 30
FREQUENCY_DAYS = {"daily": 1, "weekly": 7, "monthly": 30}
DAILY_SAVING_KEY = "daily_saving"

# Words too generic to identify an obligation or goal by name
NAME_STOPWORDS = {
    "kewajiban", "obligation", "goal", "target", "hapus", "delete", "selesai",
    "batal", "cancel", "yang", "untuk", "buat", "done",
}

NamedT = TypeVar("NamedT", Obligation, Goal)


def obligation_daily(obligation: Obligation) -> int:
    if obligation.frequency == "weekly":
        return round_half_up(obligation.amount / 7)
    if obligation.frequency == "monthly":
        return round_half_up(obligation.amount / 30)
    return obligation.amount


def debt_daily_amount(debt: Debt, today: date) -> int:
    """Share of a debt to set aside today, never more than what is left."""
    status = get_debt_status(debt.due_date, debt.next_payment_date, today)
    if status.is_overdue:
        daily = debt.installment_amount or debt.remaining
    elif debt.installment_amount:
        daily = round_half_up(debt.installment_amount / FREQUENCY_DAYS.get(debt.installment_freq, 30))
    else:
        daily = round_half_up(debt.remaining / 30)
    return min(daily, debt.remaining)


def goal_daily(goal: Goal) -> int:
    days = goal.deadline_days or DEFAULT_DEADLINE_DAYS
    return max(0, round_half_up((goal.target_amount - goal.saved_amount) / days))


def build_target_breakdown(
    obligations: Sequence[Obligation],
    debts: Sequence[Debt],
    goals: Sequence[Goal],
    avg_operational: int,
    daily_saving: int,
    today_income: int,
    today: date,
) -> TargetBreakdown:
    obligation_items = [TargetItem(name=o.name, daily_amount=obligation_daily(o)) for o in obligations]
    debt_items = [
        TargetItem(name=f"Hutang {d.person_name}", daily_amount=debt_daily_amount(d, today))
        for d in debts
        if d.type == "hutang"
    ]
    goal_items = [TargetItem(name=g.name, daily_amount=goal_daily(g)) for g in goals]

    subtotal = (
        sum(i.daily_amount for i in obligation_items)
        + sum(i.daily_amount for i in debt_items)
        + avg_operational
        + daily_saving
        + sum(i.daily_amount for i in goal_items)
    )
    buffer = round_half_up(subtotal * BUFFER_RATE)
    total = subtotal + buffer

    return TargetBreakdown(
        obligations=obligation_items,
        debt_installments=debt_items,
        avg_operational=avg_operational,
        daily_saving=daily_saving,
        goals=goal_items,
        buffer=buffer,
        total_target=total,
        today_income=today_income,
        remaining=max(0, total - today_income),
        progress_percent=round_half_up(today_income / total * 100) if total > 0 else 0,
    )


def _daily_saving(repos: Repositories, user: User) -> int:
    raw = repos.settings.get(user.id, DAILY_SAVING_KEY)
    try:
        return int(raw) if raw else 0
    except ValueError:
        logger.warning("Bad daily_saving setting for user #{}: {!r}", user.id, raw)
        return 0


def calculate_daily_target(
    repos: Repositories, user: User, today: date | None = None
) -> TargetBreakdown:
    today = today or today_wib()
    return build_target_breakdown(
        obligations=repos.obligations.get_active(user.id),
        debts=repos.debts.get_active(user.id),
        goals=repos.goals.get_active(user.id),
        avg_operational=repos.transactions.average_daily_expense(
            user.id, today - timedelta(days=OPERATIONAL_WINDOW_DAYS), today
        ),
        daily_saving=_daily_saving(repos, user),
        today_income=repos.transactions.total_income(user.id, today),
        today=today,
    )


def has_target_components(repos: Repositories, user: User) -> bool:
    return bool(
        repos.obligations.get_active(user.id)
        or repos.goals.get_active(user.id)
        or _daily_saving(repos, user) > 0
        or repos.debts.get_active(user.id, "hutang")
    )


def get_income_progress(
    repos: Repositories, user: User, today: date | None = None
) -> TargetBreakdown | None:
    """Breakdown to show after income is recorded; None when nothing is set up."""
    if not has_target_components(repos, user):
        return None
    return calculate_daily_target(repos, user, today)


def get_daily_target(repos: Repositories, user: User, today: date | None = None) -> ActionResult:
    return ActionResult(type="daily_target", data=calculate_daily_target(repos, user, today))


def find_by_name(items: Sequence[NamedT], query: str) -> NamedT | None:
    """Case-insensitive substring match first, then any meaningful token. Newest wins."""
    needle = (query or "").strip().lower()
    if not needle:
        return None
    newest_first = sorted(items, key=lambda i: i.id or 0, reverse=True)

    for item in newest_first:
        if needle in item.name.lower():
            return item

    tokens = [t for t in re.split(r"\s+", needle) if len(t) >= 3 and t not in NAME_STOPWORDS]
    for item in newest_first:
        name = item.name.lower()
        if any(t in name for t in tokens):
            return item
    return None


def set_obligation(repos: Repositories, user: User, args: dict, source_text: str) -> ActionResult:
    amount = validate_amount(args.get("amount"))
    if amount is None:
        return ActionResult(type="clarification", message="Jumlah kewajiban tidak valid. Coba lagi ya bos.")

    frequency = args.get("frequency") if args.get("frequency") in FREQUENCY_DAYS else "daily"
    obligation = repos.obligations.add(
        Obligation(
            user_id=user.id,
            name=sanitize_string(args.get("name")) or "Kewajiban",
            amount=amount,
            frequency=frequency,
            note=sanitize_string(args["note"]) if args.get("note") else None,
            source_text=source_text,
        )
    )
    logger.info("Obligation #{} set: {} {} {}", obligation.id, obligation.name, amount, frequency)
    return ActionResult(
        type="obligation_set",
        data={"name": obligation.name, "amount": amount, "frequency": frequency},
    )


def set_goal(repos: Repositories, user: User, args: dict, source_text: str) -> ActionResult:
    amount = validate_amount(args.get("target_amount"))
    if amount is None:
        return ActionResult(type="clarification", message="Jumlah target tidak valid. Coba lagi ya bos.")

    days = parse_int(args.get("deadline_days"))
    if days is None or days <= 0:
        days = DEFAULT_DEADLINE_DAYS
    goal = repos.goals.add(
        Goal(
            user_id=user.id,
            name=sanitize_string(args.get("name")) or "Goal",
            target_amount=amount,
            deadline_days=days,
            source_text=source_text,
        )
    )
    logger.info("Goal #{} set: {} {} in {} days", goal.id, goal.name, amount, days)
    return ActionResult(
        type="goal_set",
        data={
            "name": goal.name,
            "target_amount": amount,
            "deadline_days": days,
            "daily": goal_daily(goal),
        },
    )


def set_saving(repos: Repositories, user: User, args: dict) -> ActionResult:
    amount = validate_amount(args.get("amount"))
    if amount is None:
        return ActionResult(type="clarification", message="Jumlah tabungan tidak valid. Coba lagi ya bos.")

    repos.settings.upsert(user.id, DAILY_SAVING_KEY, str(amount))
    return ActionResult(type="saving_set", data={"daily_saving": amount})


def edit_obligation(repos: Repositories, user: User, args: dict) -> ActionResult:
    name = args.get("name") or ""
    obligation = find_by_name(repos.obligations.get_active(user.id), name)
    if obligation is None:
        return ActionResult(
            type="clarification",
            message=f'Kewajiban "{sanitize_string(name)}" tidak ditemukan. Cek lagi ya bos.',
        )

    if args.get("action") in ("delete", "done"):
        repos.obligations.update(obligation.id, status="done")
        return ActionResult(type="edited", message=f'Kewajiban "{obligation.name}" sudah dihapus/selesai.')

    return ActionResult(type="clarification", message="Aksi tidak dikenal.")


def edit_goal(repos: Repositories, user: User, args: dict) -> ActionResult:
    name = args.get("name") or ""
    goal = find_by_name(repos.goals.get_active(user.id), name)
    if goal is None:
        return ActionResult(
            type="clarification",
            message=f'Goal "{sanitize_string(name)}" tidak ditemukan. Cek lagi ya bos.',
        )

    action = args.get("action")
    if action == "cancel":
        repos.goals.update(goal.id, status="cancelled")
        return ActionResult(type="edited", message=f'Goal "{goal.name}" sudah dibatalkan.')
    if action == "done":
        repos.goals.update(goal.id, status="achieved")
        return ActionResult(type="edited", message=f'🎉 Goal "{goal.name}" tercapai!')

    return ActionResult(type="clarification", message="Aksi tidak dikenal.")
