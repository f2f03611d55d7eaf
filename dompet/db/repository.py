import re
from datetime import date, datetime
from typing import Generic, TypeVar

from pydantic import BaseModel
from tinydb import Query, TinyDB

from dompet.models.schemas import (
    Debt,
    DebtPayment,
    Goal,
    Obligation,
    Transaction,
    User,
)
from dompet.utils.money import round_half_up

ModelT = TypeVar("ModelT", bound=BaseModel)


class _Repository(Generic[ModelT]):
    table_name: str
    model: type[ModelT]

    def __init__(self, db: TinyDB):
        self.db = db
        self.table = db.table(self.table_name)

    def _to_model(self, doc) -> ModelT:
        return self.model(id=doc.doc_id, **doc)

    def _newest_first(self, docs) -> list[ModelT]:
        return [self._to_model(doc) for doc in sorted(docs, key=lambda d: d.doc_id, reverse=True)]

    def add(self, item: ModelT) -> ModelT:
        data = item.model_dump(mode="json")
        data.pop("id", None)
        item.id = self.table.insert(data)
        return item

    def get(self, id: int) -> ModelT | None:
        doc = self.table.get(doc_id=id)
        if doc is None:
            return None
        return self._to_model(doc)

    def update(self, id: int, **fields) -> ModelT | None:
        if self.table.get(doc_id=id) is None:
            return None
        updates = {
            k: v.isoformat() if isinstance(v, (date, datetime)) else v
            for k, v in fields.items()
        }
        if updates:
            self.table.update(updates, doc_ids=[id])
        return self.get(id)


class UserRepository(_Repository[User]):
    table_name = "users"
    model = User

    def get_by_telegram(self, telegram_id: str) -> User | None:
        U = Query()
        doc = self.table.get(U.telegram_id == telegram_id)
        if doc is None:
            return None
        return self._to_model(doc)

    def get_or_create(self, telegram_id: str, display_name: str) -> User:
        existing = self.get_by_telegram(telegram_id)
        if existing:
            return existing
        return self.add(User(telegram_id=telegram_id, display_name=display_name))


class TransactionRepository(_Repository[Transaction]):
    table_name = "transactions"
    model = Transaction

    def get_by_date_range(self, user_id: int, start: date, end: date) -> list[Transaction]:
        T = Query()
        docs = self.table.search(
            (T.user_id == user_id)
            & (T.trx_date.test(lambda v: start.isoformat() <= v <= end.isoformat()))
        )
        docs.sort(key=lambda d: (d["trx_date"], d.doc_id))
        return [self._to_model(doc) for doc in docs]

    def average_daily_expense(self, user_id: int, start: date, end: date) -> int:
        """Expense total divided by the number of distinct days that had expenses."""
        expenses = [t for t in self.get_by_date_range(user_id, start, end) if t.type == "expense"]
        days = {t.trx_date for t in expenses}
        if not days:
            return 0
        return round_half_up(sum(t.amount for t in expenses) / len(days))

    def total_income(self, user_id: int, day: date) -> int:
        return sum(
            t.amount for t in self.get_by_date_range(user_id, day, day) if t.type == "income"
        )

    def find_by_description(self, user_id: int, keywords: list[str]) -> Transaction | None:
        """Newest transaction whose description contains the keywords in order."""
        pattern = re.compile(".*".join(re.escape(k) for k in keywords), re.IGNORECASE)
        T = Query()
        docs = self.table.search(
            (T.user_id == user_id) & (T.description.test(lambda v: bool(pattern.search(v or ""))))
        )
        matches = self._newest_first(docs)
        return matches[0] if matches else None

    def find_by_category(self, user_id: int, category: str) -> Transaction | None:
        T = Query()
        docs = self.table.search(
            (T.user_id == user_id) & (T.category.test(lambda v: (v or "").lower() == category))
        )
        matches = self._newest_first(docs)
        return matches[0] if matches else None

    def find_by_source_text(self, user_id: int, text: str) -> Transaction | None:
        T = Query()
        docs = self.table.search(
            (T.user_id == user_id) & (T.source_text.test(lambda v: text in (v or "").lower()))
        )
        matches = self._newest_first(docs)
        return matches[0] if matches else None

    def find_last(self, user_id: int) -> Transaction | None:
        T = Query()
        matches = self._newest_first(self.table.search(T.user_id == user_id))
        return matches[0] if matches else None

    def delete(self, id: int) -> bool:
        if self.table.get(doc_id=id) is None:
            return False
        self.table.remove(doc_ids=[id])
        return True


class DebtRepository(_Repository[Debt]):
    table_name = "debts"
    model = Debt

    def __init__(self, db: TinyDB):
        super().__init__(db)
        self.payments = db.table("debt_payments")

    def _by_person(self, user_id: int, name: str, status: str | None) -> list[Debt]:
        D = Query()
        cond = (D.user_id == user_id) & (
            D.person_name.test(lambda v: v.lower() == name.strip().lower())
        )
        if status:
            cond &= D.status == status
        return self._newest_first(self.table.search(cond))

    def find_active_by_person(self, user_id: int, name: str) -> Debt | None:
        matches = self._by_person(user_id, name, "active")
        return matches[0] if matches else None

    def find_by_person(self, user_id: int, name: str) -> Debt | None:
        """Newest debt for a person regardless of status."""
        matches = self._by_person(user_id, name, None)
        return matches[0] if matches else None

    def get_active(self, user_id: int, type: str = "all") -> list[Debt]:
        D = Query()
        cond = (D.user_id == user_id) & (D.status == "active")
        if type and type != "all":
            cond &= D.type == type
        docs = sorted(self.table.search(cond), key=lambda d: (d["type"], d.doc_id))
        return [self._to_model(doc) for doc in docs]

    def update_remaining(self, id: int, remaining: int) -> Debt | None:
        """Set the remaining balance; reaching zero settles the debt for good."""
        remaining = max(remaining, 0)
        if remaining == 0:
            return self.settle(id)
        return self.update(id, remaining=remaining)

    def settle(self, id: int) -> Debt | None:
        return self.update(id, remaining=0, status="settled", settled_at=datetime.now())

    def add_payment(self, payment: DebtPayment) -> DebtPayment:
        data = payment.model_dump(mode="json")
        data.pop("id", None)
        payment.id = self.payments.insert(data)
        return payment

    def get_payments(self, debt_id: int) -> list[DebtPayment]:
        P = Query()
        docs = sorted(self.payments.search(P.debt_id == debt_id), key=lambda d: d.doc_id)
        return [DebtPayment(id=doc.doc_id, **doc) for doc in docs]


class ObligationRepository(_Repository[Obligation]):
    table_name = "obligations"
    model = Obligation

    def get_active(self, user_id: int) -> list[Obligation]:
        O = Query()
        docs = sorted(
            self.table.search((O.user_id == user_id) & (O.status == "active")),
            key=lambda d: d.doc_id,
        )
        return [self._to_model(doc) for doc in docs]


class GoalRepository(_Repository[Goal]):
    table_name = "goals"
    model = Goal

    def get_active(self, user_id: int) -> list[Goal]:
        G = Query()
        docs = sorted(
            self.table.search((G.user_id == user_id) & (G.status == "active")),
            key=lambda d: d.doc_id,
        )
        return [self._to_model(doc) for doc in docs]


class SettingsRepository:
    def __init__(self, db: TinyDB):
        self.table = db.table("user_settings")

    def get(self, user_id: int, key: str) -> str | None:
        S = Query()
        doc = self.table.get((S.user_id == user_id) & (S.key == key))
        return doc["value"] if doc else None

    def upsert(self, user_id: int, key: str, value: str) -> None:
        S = Query()
        self.table.upsert(
            {"user_id": user_id, "key": key, "value": value},
            (S.user_id == user_id) & (S.key == key),
        )


class ConversationRepository:
    def __init__(self, db: TinyDB):
        self.table = db.table("conversation_logs")

    def save(self, user_id: int, role: str, content: str) -> None:
        self.table.insert(
            {
                "user_id": user_id,
                "role": role,
                "content": content,
                "created_at": datetime.now().isoformat(),
            }
        )

    def recent(self, user_id: int, limit: int = 6) -> list[dict]:
        """Last `limit` turns in chronological order, ready to send as history."""
        C = Query()
        docs = sorted(self.table.search(C.user_id == user_id), key=lambda d: d.doc_id)
        return [{"role": d["role"], "content": d["content"]} for d in docs[-limit:]]


class Repositories:
    """Every table the bot touches, sharing one TinyDB handle."""

    def __init__(self, db: TinyDB):
        self.db = db
        self.users = UserRepository(db)
        self.transactions = TransactionRepository(db)
        self.debts = DebtRepository(db)
        self.obligations = ObligationRepository(db)
        self.goals = GoalRepository(db)
        self.settings = SettingsRepository(db)
        self.conversations = ConversationRepository(db)
