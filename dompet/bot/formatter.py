"""Render action results as Telegram HTML replies."""

from dompet.models.schemas import ActionResult, DueStatus, TargetBreakdown
from dompet.utils.money import format_rupiah, sanitize_string

EMPTY_REPLY = "✅ Diproses!"
ERROR_REPLY = "⚠️ Waduh, ada error nih. Coba lagi ya."
RATE_LIMITED_REPLY = "⏳ Pelan-pelan bos, kebanyakan pesan. Tunggu sebentar ya."
AI_LIMIT_REPLY = "🙏 Jatah AI hari ini udah habis bos. Besok lanjut lagi ya."
CANCELLED_REPLY = "👌 Oke, gak jadi dihapus."

FREQ_LABELS = {"daily": "hari", "weekly": "minggu", "monthly": "bulan"}


def _debt_label(debt_type: str) -> tuple[str, str]:
    if debt_type == "hutang":
        return "🔴", "Hutang ke"
    return "🟢", "Piutang dari"


def _due_line(status: DueStatus | None) -> str | None:
    if status is None or status.status == "no_due":
        return None
    if status.is_overdue:
        return f"   ⚠️ Telat {-status.days_left} hari!"
    if status.days_left == 0:
        return "   ⏰ Jatuh tempo hari ini"
    return f"   📅 Jatuh tempo {status.days_left} hari lagi"


def format_target(breakdown: TargetBreakdown, title: str = "🎯 <b>Target Harian</b>") -> list[str]:
    lines = [title]
    for item in breakdown.obligations:
        lines.append(f"  • {sanitize_string(item.name)}: {format_rupiah(item.daily_amount)}")
    for item in breakdown.debt_installments:
        lines.append(f"  • {sanitize_string(item.name)}: {format_rupiah(item.daily_amount)}")
    if breakdown.avg_operational:
        lines.append(f"  • Operasional: {format_rupiah(breakdown.avg_operational)}")
    if breakdown.daily_saving:
        lines.append(f"  • Tabungan: {format_rupiah(breakdown.daily_saving)}")
    for item in breakdown.goals:
        lines.append(f"  • Goal {sanitize_string(item.name)}: {format_rupiah(item.daily_amount)}")
    if breakdown.buffer:
        lines.append(f"  • Buffer 10%: {format_rupiah(breakdown.buffer)}")
    lines.append(f"<b>Total: {format_rupiah(breakdown.total_target)}</b>")
    lines.append(
        f"💰 Hari ini: {format_rupiah(breakdown.today_income)} ({breakdown.progress_percent}%)"
    )
    if breakdown.remaining > 0:
        lines.append(f"   ↳ Kurang {format_rupiah(breakdown.remaining)} lagi")
    else:
        lines.append("   ↳ 🎉 Target tercapai!")
    return lines


def _format_result(r: ActionResult) -> list[str]:
    data = r.data
    lines: list[str] = []

    if r.type == "transactions_recorded":
        lines.append("✅ <b>Tercatat!</b>")
        for t in data or []:
            icon, label = ("💰", "Pemasukan") if t["type"] == "income" else ("💸", "Pengeluaran")
            lines.append(f"{icon} {label}: {format_rupiah(t['amount'])} (<i>{t['description']}</i>)")
        if r.progress is not None:
            lines.append("")
            lines.extend(format_target(r.progress, "📈 <b>Progress Target</b>"))

    elif r.type == "debt_recorded":
        icon, label = _debt_label(data["type"])
        lines.append(f"{icon} {label} <b>{data['person_name']}</b>: {format_rupiah(data['amount'])}")
        if data["total_with_interest"] != data["amount"]:
            lines.append(f"   Total + bunga: {format_rupiah(data['total_with_interest'])}")
        if data["remaining"] != data["total_with_interest"]:
            lines.append(f"   Sisa: {format_rupiah(data['remaining'])}")
        if data.get("installment_amount"):
            freq = FREQ_LABELS.get(data.get("installment_freq"), "bulan")
            lines.append(f"   Cicilan: {format_rupiah(data['installment_amount'])}/{freq}")
        due = _due_line(data.get("due_status"))
        if due:
            lines.append(due)

    elif r.type == "debt_paid":
        lines.append(
            f"💳 Bayar ke <b>{data['person_name']}</b>: {format_rupiah(data['paid'])}"
            f" (pembayaran ke-{data['payment_number']})"
        )
        if data["remaining"] > 0:
            lines.append(f"   ↳ Sisa: {format_rupiah(data['remaining'])}")
            if data.get("next_payment_date"):
                lines.append(f"   ↳ Bayar berikutnya: {data['next_payment_date']}")
        else:
            lines.append("   ↳ 🎉 Lunas!")

    elif r.type == "summary":
        lines.append(f"📊 <b>Rekap {data['period_label']}</b>")
        lines.append(f"💰 Pemasukan: {format_rupiah(data['total_income'])}")
        lines.append(f"💸 Pengeluaran: {format_rupiah(data['total_expense'])}")
        lines.append("━━━━━━━━━━━━━━")
        net = data["total_income"] - data["total_expense"]
        lines.append(f"{'📈' if net >= 0 else '📉'} Bersih: {format_rupiah(net)}")
        if data["details"]:
            lines.append("")
            for d in data["details"]:
                lines.append(f"  • {d['description'] or d['type']}: {format_rupiah(d['amount'])}")

    elif r.type == "debts_list":
        if not data["debts"]:
            lines.append("✨ Tidak ada hutang/piutang aktif!")
        else:
            lines.append("📋 <b>Daftar Hutang/Piutang Aktif:</b>")
            for d in data["debts"]:
                icon, label = _debt_label(d["type"])
                lines.append(
                    f"{icon} {label} <b>{d['person_name']}</b>: "
                    f"{format_rupiah(d['remaining'])} / {format_rupiah(d['total_with_interest'])}"
                )
                due = _due_line(d.get("due_status"))
                if due:
                    lines.append(due)

    elif r.type == "debt_history":
        icon, label = _debt_label(data["type"])
        status = " (lunas)" if data["status"] == "settled" else ""
        lines.append(f"{icon} <b>Riwayat {label} {data['person_name']}</b>{status}")
        for i, p in enumerate(data["payments"], 1):
            lines.append(f"  {i}. {p['paid_at']:%d/%m} {format_rupiah(p['amount'])}")
        lines.append(f"Total dibayar: {format_rupiah(data['total_paid'])}")
        lines.append(f"Sisa: {format_rupiah(data['remaining'])}")

    elif r.type == "daily_target":
        lines.extend(format_target(data))

    elif r.type == "obligation_set":
        freq = FREQ_LABELS.get(data["frequency"], "hari")
        lines.append(f"📌 Kewajiban <b>{data['name']}</b>: {format_rupiah(data['amount'])}/{freq}")

    elif r.type == "goal_set":
        lines.append(
            f"🎯 Goal <b>{data['name']}</b>: {format_rupiah(data['target_amount'])} "
            f"dalam {data['deadline_days']} hari ({format_rupiah(data['daily'])}/hari)"
        )

    elif r.type == "saving_set":
        lines.append(f"🐷 Tabungan harian: {format_rupiah(data['daily_saving'])}")

    elif r.type == "edited":
        lines.append(f"✏️ {r.message}")

    elif r.type == "confirmation_required":
        lines.append(f"⚠️ Yakin mau hapus <b>{r.message}</b>?")
        lines.append("Balas <b>ya</b> untuk hapus atau <b>batal</b>. Berlaku 60 detik.")

    elif r.type == "cancelled":
        lines.append(r.message or CANCELLED_REPLY)

    elif r.type == "clarification":
        lines.append(f"🤔 {r.message}")

    return lines


def format_reply(results: list[ActionResult], text: str | None = None, dropped_items: int = 0) -> str:
    """Never empty: Telegram rejects blank messages."""
    if not results and text:
        reply = text
    else:
        lines = []
        for r in results:
            lines.extend(_format_result(r))
        reply = "\n".join(lines) or text or EMPTY_REPLY

    if dropped_items:
        reply += f"\n\n⚠️ {dropped_items} item gagal dicatat (jumlah tidak valid)."
    return reply
