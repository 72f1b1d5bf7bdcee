"""Entity definitions for the retail-banking snapshot.

Four entities form a chain: Branch <- Customer <- Account <- Transaction.
Instances are immutable; the analytical core only ever reads them.
"""

from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal
from typing import Literal

import pydantic as pdt

AmountPolicy = Literal["non_negative", "signed"]

PeriodGrain = Literal["day", "week", "month", "quarter", "year"]


class ChannelType(str, enum.Enum):
    """Channel a transaction was made through."""

    ONLINE = "ONLINE"
    BRANCH = "BRANCH"

    @classmethod
    def _missing_(cls, value: object) -> "ChannelType | None":
        if isinstance(value, str):
            upper = value.strip().upper()
            for member in cls:
                if member.value == upper:
                    return member
        return None


class BankwinBaseModel(pdt.BaseModel):
    model_config = pdt.ConfigDict(
        frozen=True,
        extra="forbid",
    )


class Branch(BankwinBaseModel):
    branch_id: int
    name: str
    region: str


class Customer(BankwinBaseModel):
    customer_id: int
    full_name: str
    registration_date: date
    branch_id: int


class Account(BankwinBaseModel):
    account_id: int
    account_type: str
    open_date: date
    customer_id: int


class Transaction(BankwinBaseModel):
    """A single monetary movement on an account.

    Amounts are quantized to cents. Sign is not constrained here; the
    entity store applies the configured AmountPolicy at load time.
    """

    transaction_id: int
    transaction_date: date
    amount: Decimal = pdt.Field(max_digits=18, decimal_places=2)
    channel_type: ChannelType
    account_id: int

    @pdt.field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: object) -> object:
        # floats go through str() so 10.1 becomes Decimal("10.1"), not its binary expansion
        if isinstance(value, float):
            return Decimal(str(value))
        return value
