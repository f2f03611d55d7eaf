import pytest

from dompet.llm.selector import select_tools_for_message
from dompet.llm.tools import ALL_ACTIONS, TOOLS, ActionName, tool_schemas


@pytest.mark.parametrize(
    "text, label",
    [
        ("rekap minggu ini", "QUERY"),
        ("lihat daftar hutang", "QUERY"),
        ("hapus transaksi rokok", "EDIT"),
        ("koreksi data terakhir, ubah jumlah menjadi Rp250.000", "EDIT"),
        ("set kewajiban cicilan gopay Rp50.000 per hari", "SETTING"),
        ("set goal beli helm Rp300.000 deadline 30 hari", "SETTING"),
        ("piutang dari Andi sebesar Rp200.000", "DEBT"),
        ("pembayaran dari Andi, bayar Rp50.000", "DEBT"),
        ("pengeluaran makan Rp25.000", "TRANSACTION"),
        ("halo bro apa kabar", "ALL"),
    ],
)
def test_routes_by_first_matching_rule(text, label):
    assert select_tools_for_message(text).label == label


def test_fallback_offers_full_catalogue():
    selection = select_tools_for_message("hmm gimana ya")
    assert selection.actions == ALL_ACTIONS
    assert set(selection.actions) == set(ActionName)


def test_every_subset_can_ask_for_clarification():
    for text in ["rekap", "hapus makan", "nabung", "hutang ke Siti", "makan 25000"]:
        assert ActionName.ASK_CLARIFICATION in select_tools_for_message(text).actions


def test_tool_schemas_are_openai_functions():
    schemas = tool_schemas((ActionName.RECORD_TRANSACTIONS, ActionName.PAY_DEBT))
    assert [s["function"]["name"] for s in schemas] == ["record_transactions", "pay_debt"]
    assert all(s["type"] == "function" for s in schemas)
    assert len(TOOLS) == len(ActionName)
