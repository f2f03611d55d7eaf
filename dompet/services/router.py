"""Dispatch validated action calls to the ledger services."""

from datetime import date
from typing import Callable

from loguru import logger

from dompet.db.repository import Repositories
from dompet.llm.tools import ActionName
from dompet.llm.validator import is_destructive
from dompet.models.schemas import ActionCall, ActionResult, PendingConfirmation, User
from dompet.services import debt, target, transaction
from dompet.services.confirm import ConfirmationStore
from dompet.utils.dates import today_wib
from dompet.utils.money import format_rupiah

Handler = Callable[[User, dict, str, date], ActionResult]

ACTION_FAILED_MESSAGE = "Ada bagian yang gagal diproses. Coba tulis ulang bagian itu ya, bos."


class ActionRouter:
    def __init__(self, repos: Repositories, confirmations: ConfirmationStore):
        self.repos = repos
        self.confirmations = confirmations
        r = repos
        self.handlers: dict[ActionName, Handler] = {
            ActionName.RECORD_TRANSACTIONS: lambda u, a, s, t: transaction.record_transactions(r, u, a, s, t),
            ActionName.RECORD_DEBT: lambda u, a, s, t: debt.record_debt(r, u, a, s, t),
            ActionName.PAY_DEBT: lambda u, a, s, t: debt.pay_debt(r, u, a, s, t),
            ActionName.GET_SUMMARY: lambda u, a, s, t: transaction.get_summary(r, u, a, t),
            ActionName.GET_DEBTS: lambda u, a, s, t: debt.get_debts_list(r, u, a, t),
            ActionName.GET_DEBT_HISTORY: lambda u, a, s, t: debt.get_debt_history(r, u, a, t),
            ActionName.EDIT_TRANSACTION: lambda u, a, s, t: transaction.edit_transaction(r, u, a),
            ActionName.ASK_CLARIFICATION: lambda u, a, s, t: ActionResult(
                type="clarification", message=a.get("message") or "Maksudnya gimana, bos?"
            ),
            ActionName.EDIT_DEBT: lambda u, a, s, t: debt.edit_debt(r, u, a),
            ActionName.GET_DAILY_TARGET: lambda u, a, s, t: target.get_daily_target(r, u, t),
            ActionName.SET_OBLIGATION: lambda u, a, s, t: target.set_obligation(r, u, a, s),
            ActionName.SET_GOAL: lambda u, a, s, t: target.set_goal(r, u, a, s),
            ActionName.SET_SAVING: lambda u, a, s, t: target.set_saving(r, u, a),
            ActionName.EDIT_OBLIGATION: lambda u, a, s, t: target.edit_obligation(r, u, a),
            ActionName.EDIT_GOAL: lambda u, a, s, t: target.edit_goal(r, u, a),
        }

    async def process(
        self,
        user: User,
        calls: list[ActionCall],
        source_text: str,
        today: date | None = None,
    ) -> list[ActionResult]:
        today = today or today_wib()
        results: list[ActionResult] = []
        recorded_income = False

        for call in calls:
            try:
                action = ActionName(call.name)
            except ValueError:
                logger.warning("Blocked unknown action {!r} for user #{}", call.name, user.id)
                continue

            try:
                if is_destructive(call):
                    results.append(await self.request_confirmation(user, action, call.arguments))
                    continue
                result = self.handlers[action](user, call.arguments, source_text, today)
            except Exception:
                # Actions before this one are already saved and stay in the reply
                logger.exception("Action {} failed for user #{}: {}", call.name, user.id, call.arguments)
                results.append(ActionResult(type="clarification", message=ACTION_FAILED_MESSAGE))
                continue

            results.append(result)
            if result.type == "transactions_recorded" and any(
                item["type"] == "income" for item in result.data or []
            ):
                recorded_income = True

        if recorded_income:
            self._attach_progress(user, results, today)
        return results

    def _attach_progress(self, user: User, results: list[ActionResult], today: date) -> None:
        progress = target.get_income_progress(self.repos, user, today)
        if progress is None:
            return
        for result in results:
            if result.type == "transactions_recorded":
                result.progress = progress
                return

    async def request_confirmation(
        self, user: User, action: ActionName, arguments: dict
    ) -> ActionResult:
        """Resolve the row to delete now, park it, and ask the user."""
        if action == ActionName.EDIT_TRANSACTION:
            found = transaction.resolve_target(self.repos, user, arguments.get("target") or "")
            if found is None:
                return transaction.edit_transaction(self.repos, user, arguments)
            label = "Pemasukan" if found.type == "income" else "Pengeluaran"
            description = f"{label} {format_rupiah(found.amount)}"
            if found.description:
                description += f" ({found.description})"
            pending = PendingConfirmation(
                subject_kind="ledger_entry",
                payload={"id": found.id, "target": arguments.get("target")},
                description=description,
            )
        else:
            found = debt.resolve_debt(self.repos, user, arguments.get("person_name") or "")
            if found is None:
                return debt.edit_debt(self.repos, user, arguments)
            label = "Hutang ke" if found.type == "hutang" else "Piutang dari"
            pending = PendingConfirmation(
                subject_kind="debt",
                payload={"id": found.id, "person_name": found.person_name},
                description=f"{label} {found.person_name} {format_rupiah(found.remaining)}",
            )

        # A newer request replaces whatever was pending
        await self.confirmations.set(user.id, pending)
        logger.info("Delete pending for user #{}: {}", user.id, pending.description)
        return ActionResult(
            type="confirmation_required",
            data=pending.model_dump(),
            message=pending.description,
        )

    def execute_confirmed(self, user: User, pending: PendingConfirmation) -> ActionResult:
        row_id = pending.payload.get("id")
        if pending.subject_kind == "ledger_entry":
            found = self.repos.transactions.get(row_id) if row_id else None
            if found is None or found.user_id != user.id:
                return ActionResult(type="clarification", message="Transaksinya udah gak ada, bos.")
            return transaction.delete_transaction(self.repos, found)

        found = self.repos.debts.get(row_id) if row_id else None
        if found is None or found.user_id != user.id or found.status != "active":
            return ActionResult(type="clarification", message="Hutangnya udah gak aktif, bos.")
        return debt.delete_debt(self.repos, found)
