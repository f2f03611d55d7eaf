"""Hutang/piutang: recording, payments, status and history."""

import re
from datetime import date, datetime, timedelta

from loguru import logger

from dompet.db.repository import Repositories
from dompet.models.schemas import ActionResult, Debt, DebtPayment, DueStatus, User
from dompet.utils.dates import add_months, today_wib
from dompet.utils.money import (
    format_rupiah,
    parse_int,
    parse_rate,
    round_half_up,
    sanitize_string,
    validate_amount,
)

DUPLICATE_WINDOW = timedelta(seconds=60)
ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
INTEREST_TYPES = ("none", "flat", "daily")
INSTALLMENT_FREQS = ("daily", "weekly", "monthly")
MAX_TENOR_MONTHS = 360
MAX_DUE_DAYS = 3660


def _tenor(args: dict) -> int | None:
    tenor = parse_int(args.get("tenor_months"))
    if tenor is None or not 0 < tenor <= MAX_TENOR_MONTHS:
        return None
    return tenor


def calculate_interest(
    principal: int, rate: float, interest_type: str, tenor_months: int | None
) -> tuple[int, int | None]:
    """Returns (total_with_interest, installment_amount)."""
    if interest_type == "none" or rate <= 0:
        if tenor_months and tenor_months > 0:
            return principal, round_half_up(principal / tenor_months)
        return principal, None

    months = tenor_months or 1
    if interest_type == "flat":
        total = principal + round_half_up(principal * rate * months)
        return total, round_half_up(total / months)
    if interest_type == "daily":
        return principal + round_half_up(principal * rate * months * 30), None

    return principal, None


def get_debt_status(
    due_date: date | None, next_payment_date: date | None, today: date
) -> DueStatus:
    check = next_payment_date or due_date
    if check is None:
        return DueStatus(status="no_due")

    days_left = (check - today).days
    if days_left < 0:
        return DueStatus(status="overdue", days_left=days_left, is_overdue=True)
    if days_left <= 3:
        return DueStatus(status="urgent", days_left=days_left)
    if days_left <= 7:
        return DueStatus(status="soon", days_left=days_left)
    return DueStatus(status="ok", days_left=days_left)


def resolve_due_date(args: dict, today: date) -> tuple[date | None, date | None]:
    """(due_date, next_payment_date) from an absolute date, a day offset or a monthly day."""
    raw_due = args.get("due_date")
    if isinstance(raw_due, str) and ISO_DATE.match(raw_due):
        try:
            due = date.fromisoformat(raw_due)
        except ValueError:
            logger.warning("Ignoring impossible due_date {!r}", raw_due)
        else:
            return due, due

    offset = parse_int(args.get("due_date_days"))
    if offset and abs(offset) <= MAX_DUE_DAYS:
        due = today + timedelta(days=offset)
        return due, due

    recurring_day = parse_int(args.get("recurring_day"))
    if recurring_day:
        day = min(28, max(1, recurring_day))
        this_month = today.replace(day=day)
        next_payment = add_months(this_month, 1) if today.day >= day else this_month

        tenor = _tenor(args)
        if tenor:
            return add_months(this_month, tenor), next_payment
        return next_payment, next_payment

    return None, None


def advance_payment_date(current: date | None, freq: str) -> date | None:
    if current is None:
        return None
    if freq == "daily":
        return current + timedelta(days=1)
    if freq == "weekly":
        return current + timedelta(days=7)
    return add_months(current, 1)


def _recorded(debt: Debt, today: date) -> ActionResult:
    return ActionResult(
        type="debt_recorded",
        data={
            "type": debt.type,
            "person_name": debt.person_name,
            "amount": debt.amount,
            "remaining": debt.remaining,
            "due_date": debt.due_date,
            "due_status": get_debt_status(debt.due_date, debt.next_payment_date, today),
            "interest_rate": debt.interest_rate,
            "interest_type": debt.interest_type,
            "tenor_months": debt.tenor_months,
            "installment_amount": debt.installment_amount,
            "installment_freq": debt.installment_freq,
            "total_with_interest": debt.total_with_interest,
        },
    )


def record_debt(
    repos: Repositories,
    user: User,
    args: dict,
    source_text: str,
    today: date | None = None,
    now: datetime | None = None,
) -> ActionResult:
    today = today or today_wib()
    now = now or datetime.now()

    amount = validate_amount(args.get("amount"))
    if amount is None:
        return ActionResult(type="clarification", message="Jumlah hutang tidak valid.")
    debt_type = args.get("type")
    if debt_type not in ("hutang", "piutang"):
        return ActionResult(type="clarification", message="Ini hutang atau piutang, bos?")
    person = sanitize_string(args.get("person_name")).strip()
    if not person:
        return ActionResult(type="clarification", message="Hutang ke siapa, bos?")

    # The model sometimes emits record_debt twice for one message
    existing = repos.debts.find_active_by_person(user.id, person)
    if existing and existing.amount == amount and now - existing.created_at < DUPLICATE_WINDOW:
        logger.warning("Skipping duplicate debt to {!r} ({})", person, amount)
        return _recorded(existing, today)

    due_date, next_payment_date = resolve_due_date(args, today)
    interest_rate = parse_rate(args.get("interest_rate"))
    interest_type = args.get("interest_type")
    if interest_type not in INTEREST_TYPES:
        interest_type = "none"
    installment_freq = args.get("installment_freq")
    if installment_freq not in INSTALLMENT_FREQS:
        installment_freq = "monthly"
    tenor_months = _tenor(args)
    total, installment = calculate_interest(amount, interest_rate, interest_type, tenor_months)

    remaining = total
    if args.get("remaining") is not None:
        remaining = min(validate_amount(args["remaining"]) or total, total)
    if args.get("installment_amount") is not None:
        installment = validate_amount(args["installment_amount"]) or installment

    debt = repos.debts.add(
        Debt(
            user_id=user.id,
            type=debt_type,
            person_name=person,
            amount=amount,
            remaining=remaining,
            note=sanitize_string(args["note"]) if args.get("note") else None,
            source_text=source_text,
            due_date=due_date,
            next_payment_date=next_payment_date,
            interest_rate=interest_rate,
            interest_type=interest_type,
            tenor_months=tenor_months,
            installment_amount=installment,
            installment_freq=installment_freq,
            total_with_interest=total,
            created_at=now,
        )
    )
    logger.info("Recorded {} #{} {} {}", debt.type, debt.id, person, amount)
    return _recorded(debt, today)


def pay_debt(
    repos: Repositories,
    user: User,
    args: dict,
    source_text: str,
    today: date | None = None,
) -> ActionResult:
    amount = validate_amount(args.get("amount"))
    if amount is None:
        return ActionResult(type="clarification", message="Jumlah pembayaran tidak valid.")

    person = args.get("person_name") or ""
    debt = repos.debts.find_active_by_person(user.id, person)
    if debt is None:
        return ActionResult(
            type="clarification",
            message=f'Tidak ditemukan hutang aktif ke "{sanitize_string(person)}". Cek lagi nama orangnya ya.',
        )

    new_remaining = max(0, debt.remaining - amount)
    repos.debts.update_remaining(debt.id, new_remaining)
    repos.debts.add_payment(DebtPayment(debt_id=debt.id, amount=amount, source_text=source_text))

    next_payment = None
    if new_remaining > 0 and debt.next_payment_date:
        next_payment = advance_payment_date(debt.next_payment_date, debt.installment_freq)
        repos.debts.update(debt.id, next_payment_date=next_payment)

    payments = repos.debts.get_payments(debt.id)
    logger.info("Payment {} on debt #{}, remaining {}", amount, debt.id, new_remaining)
    return ActionResult(
        type="debt_paid",
        data={
            "person_name": debt.person_name,
            "type": debt.type,
            "paid": amount,
            "remaining": new_remaining,
            "payment_number": len(payments),
            "total_paid": sum(p.amount for p in payments),
            "installment_amount": debt.installment_amount,
            "next_payment_date": next_payment,
            "tenor_months": debt.tenor_months,
        },
    )


def get_debts_list(
    repos: Repositories, user: User, args: dict, today: date | None = None
) -> ActionResult:
    today = today or today_wib()
    debts = []
    for debt in repos.debts.get_active(user.id, args.get("type") or "all"):
        status = get_debt_status(debt.due_date, debt.next_payment_date, today)
        debts.append({**debt.model_dump(), "due_status": status})

    debts.sort(key=lambda d: (not d["due_status"].is_overdue, d["due_status"].days_left))
    return ActionResult(type="debts_list", data={"debts": debts})


def get_debt_history(
    repos: Repositories, user: User, args: dict, today: date | None = None
) -> ActionResult:
    today = today or today_wib()
    person = args.get("person_name") or ""
    # Settled debts still have a payment history worth showing
    debt = repos.debts.find_active_by_person(user.id, person) or repos.debts.find_by_person(
        user.id, person
    )
    if debt is None:
        return ActionResult(
            type="clarification",
            message=f'Tidak ditemukan hutang/piutang ke "{sanitize_string(person)}".',
        )

    payments = repos.debts.get_payments(debt.id)
    return ActionResult(
        type="debt_history",
        data={
            "person_name": debt.person_name,
            "type": debt.type,
            "amount": debt.amount,
            "remaining": debt.remaining,
            "total_paid": sum(p.amount for p in payments),
            "due_date": debt.due_date,
            "due_status": get_debt_status(debt.due_date, debt.next_payment_date, today),
            "next_payment_date": debt.next_payment_date,
            "installment_amount": debt.installment_amount,
            "payments": [p.model_dump() for p in payments],
            "status": debt.status,
        },
    )


def resolve_debt(repos: Repositories, user: User, person_name: str) -> Debt | None:
    return repos.debts.find_active_by_person(user.id, person_name or "")


def delete_debt(repos: Repositories, debt: Debt) -> ActionResult:
    """Soft delete: the row is settled, payments stay."""
    repos.debts.settle(debt.id)
    logger.info("Debt #{} deleted (settled)", debt.id)
    return ActionResult(
        type="edited",
        data={"deleted_debt": debt.model_dump(mode="json")},
        message=f"🗑️ Hutang ke {debt.person_name} ({format_rupiah(debt.amount)}) dihapus.",
    )


def edit_debt(repos: Repositories, user: User, args: dict) -> ActionResult:
    person = args.get("person_name") or ""
    debt = resolve_debt(repos, user, person)
    if debt is None:
        return ActionResult(
            type="clarification",
            message=f'Gak nemu hutang aktif ke "{sanitize_string(person)}". Cek lagi namanya ya.',
        )

    action = args.get("action")
    if action == "delete":
        return delete_debt(repos, debt)

    if action == "edit" and args.get("new_amount") is not None:
        new_amount = validate_amount(args["new_amount"])
        if new_amount is None:
            return ActionResult(type="clarification", message="Jumlah barunya gak valid.")

        new_total, installment = calculate_interest(
            new_amount, debt.interest_rate, debt.interest_type, debt.tenor_months
        )
        new_remaining = min(
            new_total, max(0, debt.remaining + new_total - debt.total_with_interest)
        )
        repos.debts.update(
            debt.id,
            amount=new_amount,
            total_with_interest=new_total,
            installment_amount=installment if installment is not None else debt.installment_amount,
        )
        repos.debts.update_remaining(debt.id, new_remaining)
        return ActionResult(
            type="edited",
            data={
                "person_name": debt.person_name,
                "old_amount": debt.amount,
                "new_amount": new_amount,
                "new_remaining": new_remaining,
            },
            message=(
                f"Hutang ke {debt.person_name} diubah:\n"
                f"   {format_rupiah(debt.amount)} → {format_rupiah(new_amount)}\n"
                f"   Sisa: {format_rupiah(new_remaining)}"
            ),
        )

    return ActionResult(type="clarification", message=f"Mau diapain hutang ke {debt.person_name}?")
