from datetime import date, datetime, timedelta

from dompet.models.schemas import Debt
from dompet.services.debt import (
    advance_payment_date,
    calculate_interest,
    edit_debt,
    get_debt_history,
    get_debt_status,
    get_debts_list,
    pay_debt,
    record_debt,
    resolve_due_date,
)
from tests.conftest import TODAY


class TestCalculateInterest:
    def test_flat(self):
        assert calculate_interest(1_500_000, 0.02, "flat", 6) == (1_680_000, 280_000)

    def test_daily_has_no_installment(self):
        assert calculate_interest(500_000, 0.001, "daily", 1) == (515_000, None)

    def test_none_with_tenor_splits_principal(self):
        assert calculate_interest(1_000_000, 0, "none", 3) == (1_000_000, 333_333)

    def test_none_without_tenor(self):
        assert calculate_interest(1_000_000, 0, "none", None) == (1_000_000, None)

    def test_flat_defaults_to_one_month(self):
        assert calculate_interest(100_000, 0.1, "flat", None) == (110_000, 110_000)

    def test_zero_rate_is_treated_as_none(self):
        assert calculate_interest(600_000, 0, "flat", 6) == (600_000, 100_000)


class TestDebtStatus:
    def test_overdue(self):
        status = get_debt_status(TODAY - timedelta(days=3), None, TODAY)
        assert status.status == "overdue"
        assert status.days_left == -3
        assert status.is_overdue

    def test_urgent_range(self):
        assert get_debt_status(TODAY, None, TODAY).status == "urgent"
        assert get_debt_status(TODAY + timedelta(days=3), None, TODAY).status == "urgent"

    def test_exactly_seven_days_is_soon(self):
        status = get_debt_status(TODAY + timedelta(days=7), None, TODAY)
        assert status.status == "soon"
        assert status.days_left == 7

    def test_ok_beyond_a_week(self):
        assert get_debt_status(TODAY + timedelta(days=8), None, TODAY).status == "ok"

    def test_no_due(self):
        assert get_debt_status(None, None, TODAY).status == "no_due"

    def test_next_payment_overrides_later_due_date(self):
        status = get_debt_status(TODAY + timedelta(days=90), TODAY - timedelta(days=1), TODAY)
        assert status.status == "overdue"


class TestResolveDueDate:
    def test_absolute_date(self):
        assert resolve_due_date({"due_date": "2026-04-01"}, TODAY) == (date(2026, 4, 1), date(2026, 4, 1))

    def test_day_offset(self):
        expected = TODAY + timedelta(days=14)
        assert resolve_due_date({"due_date_days": 14}, TODAY) == (expected, expected)

    def test_recurring_day_later_this_month(self):
        assert resolve_due_date({"recurring_day": 15}, TODAY) == (date(2026, 3, 15), date(2026, 3, 15))

    def test_recurring_day_already_passed(self):
        assert resolve_due_date({"recurring_day": 5}, TODAY) == (date(2026, 4, 5), date(2026, 4, 5))

    def test_recurring_day_with_tenor_sets_final_due(self):
        due, next_payment = resolve_due_date({"recurring_day": 31, "tenor_months": 12}, TODAY)
        assert next_payment == date(2026, 3, 28)
        assert due == date(2027, 3, 28)

    def test_nothing_given(self):
        assert resolve_due_date({"due_date": "besok"}, TODAY) == (None, None)


def test_advance_payment_date():
    assert advance_payment_date(date(2026, 1, 31), "monthly") == date(2026, 2, 28)
    assert advance_payment_date(date(2026, 1, 31), "weekly") == date(2026, 2, 7)
    assert advance_payment_date(date(2026, 1, 31), "daily") == date(2026, 2, 1)
    assert advance_payment_date(None, "monthly") is None


class TestRecordDebt:
    def test_records_with_interest_and_due(self, repos, user):
        args = {
            "type": "hutang",
            "person_name": "Koperasi",
            "amount": 1_500_000,
            "interest_rate": 0.02,
            "interest_type": "flat",
            "tenor_months": 6,
            "due_date_days": 30,
        }
        result = record_debt(repos, user, args, "pinjem koperasi", today=TODAY)
        assert result.type == "debt_recorded"
        assert result.data["total_with_interest"] == 1_680_000
        assert result.data["installment_amount"] == 280_000
        assert result.data["remaining"] == 1_680_000
        assert result.data["due_status"].status == "ok"

        stored = repos.debts.find_active_by_person(user.id, "koperasi")
        assert stored.due_date == TODAY + timedelta(days=30)

    def test_invalid_amount_asks_again(self, repos, user):
        result = record_debt(repos, user, {"type": "hutang", "person_name": "A", "amount": 0}, "", today=TODAY)
        assert result.type == "clarification"
        assert repos.debts.get_active(user.id) == []

    def test_duplicate_within_a_minute_is_not_inserted(self, repos, user):
        args = {"type": "piutang", "person_name": "Andi", "amount": 200_000}
        now = datetime(2026, 3, 10, 9, 0, 0)
        record_debt(repos, user, args, "", today=TODAY, now=now)
        record_debt(repos, user, args, "", today=TODAY, now=now + timedelta(seconds=30))
        assert len(repos.debts.get_active(user.id)) == 1

        record_debt(repos, user, args, "", today=TODAY, now=now + timedelta(seconds=90))
        assert len(repos.debts.get_active(user.id)) == 2

    def test_remaining_cannot_exceed_total(self, repos, user):
        args = {"type": "hutang", "person_name": "Bank", "amount": 1_000_000, "remaining": 5_000_000}
        result = record_debt(repos, user, args, "", today=TODAY)
        assert result.data["remaining"] == 1_000_000


def _seed_debt(repos, user, **overrides) -> Debt:
    fields = dict(
        user_id=user.id,
        type="hutang",
        person_name="Siti",
        amount=300_000,
        remaining=300_000,
        total_with_interest=300_000,
        created_at=datetime(2026, 1, 1),
    )
    fields.update(overrides)
    return repos.debts.add(Debt(**fields))


class TestPayDebt:
    def test_partial_payment_advances_next_date(self, repos, user):
        _seed_debt(repos, user, next_payment_date=date(2026, 3, 15), installment_freq="weekly")
        result = pay_debt(repos, user, {"person_name": "siti", "amount": 100_000}, "bayar siti", today=TODAY)

        assert result.type == "debt_paid"
        assert result.data["remaining"] == 200_000
        assert result.data["payment_number"] == 1
        assert result.data["total_paid"] == 100_000
        assert result.data["next_payment_date"] == date(2026, 3, 22)

    def test_full_payment_settles(self, repos, user):
        debt = _seed_debt(repos, user)
        pay_debt(repos, user, {"person_name": "Siti", "amount": 100_000}, "", today=TODAY)
        result = pay_debt(repos, user, {"person_name": "Siti", "amount": 500_000}, "", today=TODAY)

        assert result.data["remaining"] == 0
        assert result.data["payment_number"] == 2
        assert result.data["total_paid"] == 600_000
        assert result.data["next_payment_date"] is None
        stored = repos.debts.get(debt.id)
        assert stored.status == "settled"
        assert stored.remaining == 0

    def test_unknown_person_is_clarification(self, repos, user):
        result = pay_debt(repos, user, {"person_name": "Joko", "amount": 1000}, "", today=TODAY)
        assert result.type == "clarification"
        assert "Joko" in result.message


def test_debts_list_puts_overdue_first(repos, user):
    _seed_debt(repos, user, person_name="Later", due_date=TODAY + timedelta(days=20))
    _seed_debt(repos, user, person_name="Late", due_date=TODAY - timedelta(days=2))
    _seed_debt(repos, user, person_name="Soon", due_date=TODAY + timedelta(days=5))

    result = get_debts_list(repos, user, {"type": "all"}, today=TODAY)
    assert [d["person_name"] for d in result.data["debts"]] == ["Late", "Soon", "Later"]


def test_history_falls_back_to_settled_debt(repos, user):
    _seed_debt(repos, user, amount=100_000, remaining=100_000, total_with_interest=100_000)
    pay_debt(repos, user, {"person_name": "Siti", "amount": 100_000}, "", today=TODAY)

    result = get_debt_history(repos, user, {"person_name": "Siti"}, today=TODAY)
    assert result.type == "debt_history"
    assert result.data["status"] == "settled"
    assert result.data["total_paid"] == 100_000
    assert len(result.data["payments"]) == 1


class TestEditDebt:
    def test_edit_adjusts_remaining_by_delta(self, repos, user):
        debt = _seed_debt(repos, user, amount=300_000, remaining=200_000)
        result = edit_debt(repos, user, {"action": "edit", "person_name": "Siti", "new_amount": 250_000})

        assert result.type == "edited"
        stored = repos.debts.get(debt.id)
        assert stored.amount == 250_000
        assert stored.remaining == 150_000

    def test_delete_is_soft(self, repos, user):
        debt = _seed_debt(repos, user)
        result = edit_debt(repos, user, {"action": "delete", "person_name": "Siti"})

        assert result.type == "edited"
        stored = repos.debts.get(debt.id)
        assert stored is not None
        assert stored.status == "settled"

    def test_missing_debt(self, repos, user):
        assert edit_debt(repos, user, {"action": "edit", "person_name": "X", "new_amount": 1}).type == "clarification"


def test_edit_recomputes_interest_totals(repos, user):
    debt = _seed_debt(
        repos,
        user,
        person_name="Koperasi",
        amount=1_500_000,
        remaining=1_400_000,
        total_with_interest=1_680_000,
        interest_rate=0.02,
        interest_type="flat",
        tenor_months=6,
        installment_amount=280_000,
    )
    edit_debt(repos, user, {"action": "edit", "person_name": "Koperasi", "new_amount": 1_200_000})

    stored = repos.debts.get(debt.id)
    assert stored.total_with_interest == 1_344_000
    assert stored.installment_amount == 224_000
    assert stored.remaining == 1_064_000
    assert stored.remaining <= stored.total_with_interest


def test_malformed_numbers_fall_back_instead_of_failing(repos, user):
    args = {
        "type": "hutang",
        "person_name": "Bank",
        "amount": 600_000,
        "interest_rate": "banyak",
        "interest_type": "compound",
        "tenor_months": "enam",
        "installment_freq": "yearly",
        "due_date_days": "14",
    }
    result = record_debt(repos, user, args, "", today=TODAY)

    assert result.type == "debt_recorded"
    assert result.data["total_with_interest"] == 600_000
    assert result.data["interest_type"] == "none"
    assert result.data["installment_freq"] == "monthly"
    assert result.data["due_date"] == TODAY + timedelta(days=14)
