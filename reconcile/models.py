from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class SplitPolicy(str, Enum):
    EQUAL = "equal"
    EXACT = "exact"
    PERCENTAGE = "percentage"
    SHARES = "shares"


class Participant(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class Expense(BaseModel):
    id: str
    paid_by: str
    amount_minor: int = Field(..., ge=0, description="Total in minor currency units")
    currency: str = "EUR"
    split_policy: SplitPolicy = SplitPolicy.EQUAL
    description: str = ""
    occurred_on: Optional[date] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(from_attributes=True, frozen=True)


class SplitEntry(BaseModel):
    expense_id: str
    participant_id: str
    value: Optional[Decimal] = Field(default=None, description="Raw exact amount or percentage as entered")
    amount_minor: int

    model_config = ConfigDict(from_attributes=True, frozen=True)


class Balance(BaseModel):
    participant_id: str
    name: str
    paid_minor: int = 0
    owed_minor: int = 0
    net_minor: int = 0

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @property
    def is_settled(self) -> bool:
        return self.net_minor == 0


class SettlementTransaction(BaseModel):
    from_participant_id: str
    to_participant_id: str
    amount_minor: int = Field(..., gt=0)

    model_config = ConfigDict(from_attributes=True, frozen=True)
