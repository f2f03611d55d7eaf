from datetime import date, timedelta

from dompet.models.schemas import Transaction
from dompet.services.transaction import (
    edit_transaction,
    get_summary,
    record_transactions,
    resolve_target,
)
from tests.conftest import TODAY


def _add(repos, user, description, amount, category="makan", trx_type="expense", day=TODAY, source=""):
    return repos.transactions.add(
        Transaction(
            user_id=user.id,
            type=trx_type,
            amount=amount,
            category=category,
            description=description,
            source_text=source,
            trx_date=day,
        )
    )


def test_record_transactions_with_offsets_and_categories(repos, user):
    args = {
        "transactions": [
            {"type": "expense", "amount": 25_000, "category": "Makan", "description": "nasi padang"},
            {"type": "expense", "amount": 40_000, "category": "bensin", "description": "pertalite", "date_offset": -2},
            {"type": "income", "amount": 59_000, "category": "crypto", "description": "orderan"},
            {"type": "expense", "amount": -1, "category": "makan", "description": "bad"},
        ]
    }
    result = record_transactions(repos, user, args, "makan 25rb", today=TODAY)

    assert result.type == "transactions_recorded"
    assert [t["amount"] for t in result.data] == [25_000, 40_000, 59_000]
    assert result.data[0]["category"] == "makan"
    assert result.data[1]["trx_date"] == TODAY - timedelta(days=2)
    assert result.data[2]["category"] == "lainnya"


def test_description_is_html_escaped(repos, user):
    args = {"transactions": [{"type": "expense", "amount": 1000, "category": "makan", "description": "<b>x</b>"}]}
    result = record_transactions(repos, user, args, "", today=TODAY)
    assert result.data[0]["description"] == "&lt;b&gt;x&lt;/b&gt;"


class TestResolveTarget:
    def test_description_keywords_in_order(self, repos, user):
        _add(repos, user, "makan di bu tami", 20_000)
        _add(repos, user, "makan siang", 15_000)
        assert resolve_target(repos, user, "makan bu tami").amount == 20_000

    def test_category(self, repos, user):
        _add(repos, user, "pertalite", 40_000, category="bensin")
        assert resolve_target(repos, user, "bensin").amount == 40_000

    def test_source_text(self, repos, user):
        _add(repos, user, "x", 5_000, source="Rokok goceng")
        assert resolve_target(repos, user, "rokok goceng").amount == 5_000

    def test_last_one_words(self, repos, user):
        _add(repos, user, "a", 1_000)
        _add(repos, user, "b", 2_000)
        assert resolve_target(repos, user, "yang terakhir").amount == 2_000

    def test_nothing_found(self, repos, user):
        _add(repos, user, "a", 1_000)
        assert resolve_target(repos, user, "parkir") is None
        assert resolve_target(repos, user, "") is None


def test_edit_amount(repos, user):
    trx = _add(repos, user, "nasi goreng", 20_000)
    result = edit_transaction(repos, user, {"action": "edit", "target": "nasi goreng", "new_amount": 25_000})
    assert result.type == "edited"
    assert repos.transactions.get(trx.id).amount == 25_000


def test_edit_without_amount_asks(repos, user):
    _add(repos, user, "nasi goreng", 20_000)
    result = edit_transaction(repos, user, {"action": "edit", "target": "nasi"})
    assert result.type == "clarification"
    assert "Rp20.000" in result.message


def test_delete_removes_row(repos, user):
    trx = _add(repos, user, "kopi", 8_000)
    result = edit_transaction(repos, user, {"action": "delete", "target": "kopi"})
    assert result.type == "edited"
    assert repos.transactions.get(trx.id) is None


def test_unknown_target_is_clarification(repos, user):
    result = edit_transaction(repos, user, {"action": "delete", "target": "pulsa"})
    assert result.type == "clarification"


def test_summary_periods(repos, user):
    _add(repos, user, "orderan", 100_000, category="orderan", trx_type="income")
    _add(repos, user, "makan", 25_000)
    _add(repos, user, "bensin kemarin", 30_000, day=TODAY - timedelta(days=1))
    _add(repos, user, "bulan lalu", 99_000, day=date(2026, 2, 27))

    today = get_summary(repos, user, {"period": "today"}, today=TODAY).data
    assert (today["total_income"], today["total_expense"]) == (100_000, 25_000)
    assert today["period_label"] == "Hari Ini"

    yesterday = get_summary(repos, user, {"period": "yesterday"}, today=TODAY).data
    assert yesterday["total_expense"] == 30_000

    # 2026-03-10 is a Tuesday; the week starts on Monday the 9th
    week = get_summary(repos, user, {"period": "this_week"}, today=TODAY).data
    assert week["total_expense"] == 55_000

    month = get_summary(repos, user, {"period": "this_month"}, today=TODAY).data
    assert month["total_expense"] == 55_000
    assert len(month["details"]) == 3


def test_date_offset_is_parsed_and_bounded(repos, user):
    args = {
        "transactions": [
            {"type": "expense", "amount": 1000, "category": "makan", "description": "a", "date_offset": "-1"},
            {"type": "expense", "amount": 2000, "category": "makan", "description": "b", "date_offset": -(10**9)},
            {"type": "expense", "amount": 3000, "category": "makan", "description": "c", "date_offset": 3},
        ]
    }
    result = record_transactions(repos, user, args, "", today=TODAY)
    assert [t["trx_date"] for t in result.data] == [
        TODAY - timedelta(days=1),
        TODAY - timedelta(days=366),
        TODAY,
    ]
