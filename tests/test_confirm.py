import pytest

from dompet.models.schemas import PendingConfirmation
from dompet.services.confirm import ConfirmationState, classify_reply


def _pending(description="Pengeluaran Rp8.000 (kopi)") -> PendingConfirmation:
    return PendingConfirmation(subject_kind="ledger_entry", payload={"id": 1, "target": "kopi"}, description=description)


@pytest.mark.parametrize("text", ["ya", "Iya", "OK!", "gas", "y", "  oke  ", "hapus"])
def test_affirmative_replies(text):
    assert classify_reply(text) == ConfirmationState.CONFIRMED


@pytest.mark.parametrize("text", ["batal", "Gak", "no.", "jangan", "cancel"])
def test_negative_replies(text):
    assert classify_reply(text) == ConfirmationState.CANCELLED


@pytest.mark.parametrize("text", ["ya hapus aja", "makan 25rb", "", "okelah"])
def test_anything_else_supersedes(text):
    assert classify_reply(text) == ConfirmationState.SUPERSEDED


@pytest.mark.asyncio
async def test_set_get_clear(confirmations, kv):
    assert await confirmations.get(7) is None
    assert await confirmations.set(7, _pending())
    assert "del:7" in kv.data

    stored = await confirmations.get(7)
    assert stored == _pending()

    await confirmations.clear(7)
    assert await confirmations.get(7) is None


@pytest.mark.asyncio
async def test_newer_request_replaces_older(confirmations):
    await confirmations.set(7, _pending("first"))
    await confirmations.set(7, _pending("second"))
    assert (await confirmations.get(7)).description == "second"


@pytest.mark.asyncio
async def test_entry_expires_after_ttl(confirmations, kv):
    await confirmations.set(7, _pending())
    kv.now += 59
    assert await confirmations.get(7) is not None
    kv.now += 1
    assert await confirmations.get(7) is None


@pytest.mark.asyncio
async def test_store_outage_fails_open(confirmations, kv):
    kv.broken = True
    assert await confirmations.set(7, _pending()) is False
    assert await confirmations.get(7) is None
    await confirmations.clear(7)


@pytest.mark.asyncio
async def test_unreadable_entry_is_discarded(confirmations, kv):
    await kv.put("del:7", "{not json", ttl=60)
    assert await confirmations.get(7) is None
    assert "del:7" not in kv.data
