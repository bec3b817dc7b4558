import logging
import threading
from datetime import datetime, timezone
from decimal import InvalidOperation
from typing import Optional
from uuid import uuid4

from reconcile import (
    InvalidAmount,
    Participant,
    SplitPolicy,
    aggregate_balances,
    allocate,
    net_drift,
    simplify,
    to_split_entries,
)
from reconcile.models import Balance, SplitEntry
from reconcile.money import to_minor

from . import settings
from .models import (
    Group,
    Person,
    GroupExpense,
    Settlement,
    CreateGroupRequest,
    PersonRequest,
    ExpenseRequest,
    ExpenseResponse,
    ExpenseDetail,
    SettlementPlan,
    LedgerExport,
)
from .summary import build_share_message

logger = logging.getLogger(__name__)


class GroupServiceError(Exception):
    pass


class GroupNotFoundError(GroupServiceError):
    pass


class PersonNotFoundError(GroupServiceError):
    pass


class ExpenseNotFoundError(GroupServiceError):
    pass


class GroupClosedError(GroupServiceError):
    pass


class InMemoryStorage:
    def __init__(self):
        self.lock = threading.RLock()
        self.clear()

    def clear(self):
        self.groups: dict[str, dict] = {}
        self.persons: dict[str, dict] = {}
        self.expenses: dict[str, dict] = {}
        self.expense_splits: dict[str, list[dict]] = {}
        self.settlements: dict[str, dict] = {}


class GroupService:
    def __init__(self, storage: Optional[InMemoryStorage] = None, default_currency: Optional[str] = None):
        self.storage = storage or InMemoryStorage()
        self.default_currency = default_currency or settings.DEFAULT_CURRENCY

    # Groups

    def create_group(self, request: CreateGroupRequest) -> Group:
        group_data = {
            "id": str(uuid4()),
            "name": request.name.strip(),
            "currency": (request.currency or self.default_currency).upper(),
            "created_at": datetime.now(timezone.utc),
            "is_closed": False,
            "closed_at": None,
        }
        with self.storage.lock:
            self.storage.groups[group_data["id"]] = group_data
        logger.info("Created group %s (%s)", group_data["id"], group_data["name"])
        return Group(**group_data)

    def get_group(self, group_id: str) -> Group:
        with self.storage.lock:
            return Group(**self._group_data(group_id))

    def list_groups(self) -> list[Group]:
        with self.storage.lock:
            groups = [Group(**g) for g in self.storage.groups.values()]
        groups.sort(key=lambda g: g.created_at, reverse=True)
        return groups

    def delete_group(self, group_id: str) -> None:
        with self.storage.lock:
            self._group_data(group_id)
            for expense_id in [e["id"] for e in self._expense_rows(group_id)]:
                self.storage.expenses.pop(expense_id, None)
                self.storage.expense_splits.pop(expense_id, None)
            for person_id in [p["id"] for p in self._person_rows(group_id)]:
                self.storage.persons.pop(person_id, None)
            for settlement_id in [s["id"] for s in self.storage.settlements.values() if s["group_id"] == group_id]:
                self.storage.settlements.pop(settlement_id, None)
            del self.storage.groups[group_id]
        logger.info("Deleted group %s", group_id)

    # Persons

    def add_person(self, group_id: str, request: PersonRequest) -> Person:
        with self.storage.lock:
            self._open_group_data(group_id)
            person_data = {
                "id": str(uuid4()),
                "group_id": group_id,
                "name": request.name.strip(),
                "created_at": datetime.now(timezone.utc),
            }
            self.storage.persons[person_data["id"]] = person_data
        return Person(**person_data)

    def rename_person(self, group_id: str, person_id: str, request: PersonRequest) -> Person:
        with self.storage.lock:
            self._open_group_data(group_id)
            person_data = self._person_data(group_id, person_id)
            person_data["name"] = request.name.strip()
        return Person(**person_data)

    def remove_person(self, group_id: str, person_id: str) -> None:
        # Historical splits keep pointing at the removed id; balances drop them.
        with self.storage.lock:
            self._open_group_data(group_id)
            self._person_data(group_id, person_id)
            del self.storage.persons[person_id]
        logger.info("Removed person %s from group %s", person_id, group_id)

    def list_persons(self, group_id: str) -> list[Person]:
        with self.storage.lock:
            self._group_data(group_id)
            return [Person(**p) for p in self._person_rows(group_id)]

    # Expenses

    def add_expense(self, group_id: str, request: ExpenseRequest) -> ExpenseResponse:
        with self.storage.lock:
            group = self._open_group_data(group_id)
            expense_id = str(uuid4())
            amount_minor, splits, difference = self._resolve_splits(group_id, expense_id, request)

            now = datetime.now(timezone.utc)
            expense_data = {
                "id": expense_id,
                "group_id": group_id,
                "paid_by": request.paid_by,
                "amount_minor": amount_minor,
                "currency": group["currency"],
                "split_policy": SplitPolicy(request.split_policy),
                "description": request.description.strip(),
                "occurred_on": request.occurred_on or now.date(),
                "created_at": now,
                "updated_at": now,
            }
            self.storage.expenses[expense_id] = expense_data
            self.storage.expense_splits[expense_id] = [s.model_dump() for s in splits]

        logger.info("Added expense %s of %s minor units to group %s", expense_id, amount_minor, group_id)
        return ExpenseResponse(
            expense=GroupExpense(**expense_data),
            splits=splits,
            difference_minor=difference,
            message="Expense added successfully",
        )

    def update_expense(self, group_id: str, expense_id: str, request: ExpenseRequest) -> ExpenseResponse:
        with self.storage.lock:
            self._open_group_data(group_id)
            expense_data = self._expense_data(group_id, expense_id)
            amount_minor, splits, difference = self._resolve_splits(group_id, expense_id, request)

            expense_data.update({
                "paid_by": request.paid_by,
                "amount_minor": amount_minor,
                "split_policy": SplitPolicy(request.split_policy),
                "description": request.description.strip(),
                "occurred_on": request.occurred_on or expense_data["occurred_on"],
                "updated_at": datetime.now(timezone.utc),
            })
            self.storage.expense_splits[expense_id] = [s.model_dump() for s in splits]

        logger.info("Updated expense %s in group %s", expense_id, group_id)
        return ExpenseResponse(
            expense=GroupExpense(**expense_data),
            splits=splits,
            difference_minor=difference,
            message="Expense updated successfully",
        )

    def delete_expense(self, group_id: str, expense_id: str) -> None:
        with self.storage.lock:
            self._open_group_data(group_id)
            self._expense_data(group_id, expense_id)
            del self.storage.expenses[expense_id]
            self.storage.expense_splits.pop(expense_id, None)
        logger.info("Deleted expense %s from group %s", expense_id, group_id)

    def get_expense(self, group_id: str, expense_id: str) -> ExpenseDetail:
        with self.storage.lock:
            expense_data = self._expense_data(group_id, expense_id)
            return ExpenseDetail(
                expense=GroupExpense(**expense_data),
                splits=self.storage.expense_splits.get(expense_id, []),
            )

    def list_expenses(self, group_id: str) -> list[GroupExpense]:
        with self.storage.lock:
            self._group_data(group_id)
            expenses = [GroupExpense(**e) for e in self._expense_rows(group_id)]
        expenses.sort(key=lambda e: (e.occurred_on, e.created_at), reverse=True)
        return expenses

    # Balances and settlement

    def get_balances(self, group_id: str) -> list[Balance]:
        with self.storage.lock:
            self._group_data(group_id)
            return self._balances(group_id)

    def get_settlement_plan(self, group_id: str) -> SettlementPlan:
        with self.storage.lock:
            group = self._group_data(group_id)
            balances = self._balances(group_id)
            drift = net_drift(balances)
            frozen = self._settlement_data(group_id)

            if frozen:
                transactions = frozen["transactions"]
            else:
                self._log_drift(group_id, drift)
                transactions = simplify(balances)

        return SettlementPlan(
            group_id=group_id,
            currency=group["currency"],
            is_closed=group["is_closed"],
            balances=balances,
            transactions=transactions,
            drift_minor=drift,
            settlement_id=frozen["id"] if frozen else None,
        )

    def close_group(self, group_id: str) -> Settlement:
        with self.storage.lock:
            group = self._open_group_data(group_id)
            balances = self._balances(group_id)
            self._log_drift(group_id, net_drift(balances))

            now = datetime.now(timezone.utc)
            settlement_data = {
                "id": str(uuid4()),
                "group_id": group_id,
                "created_at": now,
                "transactions": simplify(balances),
            }
            self.storage.settlements[settlement_data["id"]] = settlement_data
            group["is_closed"] = True
            group["closed_at"] = now

        logger.info("Closed group %s with %d settlement transactions",
                    group_id, len(settlement_data["transactions"]))
        return Settlement(**settlement_data)

    def share_summary(self, group_id: str) -> str:
        with self.storage.lock:
            plan = self.get_settlement_plan(group_id)
            group = self.get_group(group_id)
        names = {b.participant_id: b.name for b in plan.balances}
        return build_share_message(group.name, group.currency, plan.balances, plan.transactions, names)

    # Backup

    def export_data(self) -> LedgerExport:
        with self.storage.lock:
            splits = [s for rows in self.storage.expense_splits.values() for s in rows]
            return LedgerExport(
                exported_at=datetime.now(timezone.utc),
                groups=list(self.storage.groups.values()),
                persons=list(self.storage.persons.values()),
                expenses=list(self.storage.expenses.values()),
                splits=splits,
                settlements=list(self.storage.settlements.values()),
            )

    def import_data(self, payload: LedgerExport) -> None:
        with self.storage.lock:
            self.storage.clear()
            for g in payload.groups:
                self.storage.groups[g.id] = g.model_dump()
            for p in payload.persons:
                self.storage.persons[p.id] = p.model_dump()
            for e in payload.expenses:
                self.storage.expenses[e.id] = e.model_dump()
                self.storage.expense_splits[e.id] = []
            for s in payload.splits:
                self.storage.expense_splits.setdefault(s.expense_id, []).append(s.model_dump())
            for st in payload.settlements:
                self.storage.settlements[st.id] = st.model_dump()
        logger.info("Imported %d groups, %d expenses", len(payload.groups), len(payload.expenses))

    # Internals

    def _resolve_splits(self, group_id: str, expense_id: str, request: ExpenseRequest):
        try:
            amount_minor = to_minor(request.amount)
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidAmount(request.amount) from None

        self._person_data(group_id, request.paid_by)
        participants = request.participants or [p["id"] for p in self._person_rows(group_id)]
        for person_id in participants:
            self._person_data(group_id, person_id)

        shares = allocate(amount_minor, request.split_policy, participants, request.values)
        # allocate has already enforced the tolerance
        difference = amount_minor - sum(shares.values())
        raw_inputs = None if SplitPolicy(request.split_policy) == SplitPolicy.EQUAL else request.values
        return amount_minor, to_split_entries(expense_id, shares, raw_inputs), difference

    def _balances(self, group_id: str) -> list[Balance]:
        participants = [Participant(id=p["id"], name=p["name"]) for p in self._person_rows(group_id)]
        expenses = [GroupExpense(**e) for e in self._expense_rows(group_id)]
        splits = [s for e in expenses for s in self.storage.expense_splits.get(e.id, [])]
        return aggregate_balances(participants, expenses, [SplitEntry(**s) for s in splits])

    def _log_drift(self, group_id: str, drift: int) -> None:
        if drift:
            logger.warning("Balances of group %s do not sum to zero (drift %s minor units)", group_id, drift)

    def _group_data(self, group_id: str) -> dict:
        group_data = self.storage.groups.get(group_id)
        if not group_data:
            raise GroupNotFoundError(f"Group {group_id} not found")
        return group_data

    def _open_group_data(self, group_id: str) -> dict:
        group_data = self._group_data(group_id)
        if group_data["is_closed"]:
            raise GroupClosedError(f"Group {group_id} is closed and can no longer be edited")
        return group_data

    def _person_data(self, group_id: str, person_id: str) -> dict:
        person_data = self.storage.persons.get(person_id)
        if not person_data or person_data["group_id"] != group_id:
            raise PersonNotFoundError(f"Person {person_id} not found in group {group_id}")
        return person_data

    def _expense_data(self, group_id: str, expense_id: str) -> dict:
        expense_data = self.storage.expenses.get(expense_id)
        if not expense_data or expense_data["group_id"] != group_id:
            raise ExpenseNotFoundError(f"Expense {expense_id} not found in group {group_id}")
        return expense_data

    def _settlement_data(self, group_id: str) -> Optional[dict]:
        for settlement_data in self.storage.settlements.values():
            if settlement_data["group_id"] == group_id:
                return settlement_data
        return None

    def _person_rows(self, group_id: str) -> list[dict]:
        rows = [p for p in self.storage.persons.values() if p["group_id"] == group_id]
        rows.sort(key=lambda p: p["created_at"])
        return rows

    def _expense_rows(self, group_id: str) -> list[dict]:
        return [e for e in self.storage.expenses.values() if e["group_id"] == group_id]
