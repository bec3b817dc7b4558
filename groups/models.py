from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union
from pydantic import BaseModel, Field, ConfigDict

from reconcile.models import Balance, Expense, SettlementTransaction, SplitEntry, SplitPolicy


class Group(BaseModel):
    id: str
    name: str
    currency: str
    created_at: datetime
    is_closed: bool = False
    closed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Person(BaseModel):
    id: str
    group_id: str
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GroupExpense(Expense):
    group_id: str


class Settlement(BaseModel):
    id: str
    group_id: str
    created_at: datetime
    transactions: list[SettlementTransaction]

    model_config = ConfigDict(from_attributes=True)


class CreateGroupRequest(BaseModel):
    name: str = Field(..., min_length=1)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)

    model_config = ConfigDict(json_schema_extra={
        "example": {"name": "Lisbon trip", "currency": "EUR"}
    })


class PersonRequest(BaseModel):
    name: str = Field(..., min_length=1)


class ExpenseRequest(BaseModel):
    description: str = Field(..., min_length=1)
    amount: Union[Decimal, str] = Field(..., description="Total in major units, e.g. 12.50")
    paid_by: str
    split_policy: str = Field(default=SplitPolicy.EQUAL.value, description="equal, exact or percentage")
    participants: list[str] = Field(default_factory=list, description="Empty means everyone in the group")
    values: dict[str, Optional[Union[Decimal, str]]] = Field(
        default_factory=dict, description="Exact amounts or percentages per participant"
    )
    occurred_on: Optional[date] = None

    model_config = ConfigDict(str_strip_whitespace=True, json_schema_extra={
        "example": {
            "description": "Dinner",
            "amount": "100.00",
            "paid_by": "<person id>",
            "split_policy": "percentage",
            "values": {"<person id>": "50", "<other person id>": "50"},
            "occurred_on": "2024-06-01",
        }
    })


class ExpenseResponse(BaseModel):
    expense: GroupExpense
    splits: list[SplitEntry]
    difference_minor: int = 0
    message: str


class ExpenseDetail(BaseModel):
    expense: GroupExpense
    splits: list[SplitEntry]


class SettlementPlan(BaseModel):
    group_id: str
    currency: str
    is_closed: bool
    balances: list[Balance]
    transactions: list[SettlementTransaction]
    drift_minor: int = 0
    settlement_id: Optional[str] = None


class LedgerExport(BaseModel):
    version: int = 1
    exported_at: datetime
    groups: list[Group] = Field(default_factory=list)
    persons: list[Person] = Field(default_factory=list)
    expenses: list[GroupExpense] = Field(default_factory=list)
    splits: list[SplitEntry] = Field(default_factory=list)
    settlements: list[Settlement] = Field(default_factory=list)
