"""Read-only entity store for a banking snapshot.

EntityStore indexes the four entity collections by primary key and checks
referential integrity once, at construction. After that it is never
mutated, so any number of analyses can read from it.

Usage:
    store = EntityStore.from_records(
        branches=[{"branch_id": 1, "name": "Downtown", "region": "North"}],
        customers=[...],
        accounts=[...],
        transactions=[...],
    )
    store.customer(42).full_name
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import TypeVar

import pyarrow as pa
import pydantic as pdt

import bankwin.errors as errors
import bankwin.models as models

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=models.BankwinBaseModel)


def _index(kind: str, items: Iterable[_M], key: str) -> dict[int, _M]:
    """Index entities by primary key, rejecting duplicates."""
    indexed: dict[int, _M] = {}
    for item in items:
        value = getattr(item, key)
        if value in indexed:
            raise errors.DuplicateKeyError(kind=kind, key=value)
        indexed[value] = item
    return indexed


def _coerce(kind: str, model: type[_M], records: Iterable[Mapping | _M]) -> list[_M]:
    """Validate raw records into entity models."""
    result: list[_M] = []
    for position, record in enumerate(records):
        if isinstance(record, model):
            result.append(record)
            continue
        try:
            result.append(model.model_validate(record))
        except pdt.ValidationError as e:
            raise errors.IntegrityError(
                context=f"Validating {kind} record at position {position}",
                cause=_format_validation_errors(e),
                fix=f"Correct the {kind} record so it matches the {model.__name__} model.",
            ) from e
    return result


def _format_validation_errors(error: pdt.ValidationError) -> str:
    messages = []
    for err in error.errors():
        loc = ".".join(str(x) for x in err["loc"])
        messages.append(f"  - {loc}: {err['msg']}")
    return "\n".join(messages)


class EntityStore:
    """Validated, immutable snapshot of branches, customers, accounts and transactions.

    Construction raises:
        DuplicateKeyError: If any collection repeats a primary key.
        MissingReferenceError: If a foreign key has no matching parent.
        AmountPolicyError: If a negative amount is loaded under the
            ``non_negative`` policy.

    Not a Pydantic model -- this is a runtime index, not configuration.
    """

    def __init__(
        self,
        branches: Sequence[models.Branch],
        customers: Sequence[models.Customer],
        accounts: Sequence[models.Account],
        transactions: Sequence[models.Transaction],
        amount_policy: models.AmountPolicy = "non_negative",
    ) -> None:
        self._amount_policy = amount_policy
        self._branches = _index("branch", branches, "branch_id")
        self._customers = _index("customer", customers, "customer_id")
        self._accounts = _index("account", accounts, "account_id")
        self._transactions = _index("transaction", transactions, "transaction_id")

        self._accounts_by_customer: dict[int, list[models.Account]] = {}
        self._transactions_by_account: dict[int, list[models.Transaction]] = {}
        self._validate()

        logger.info(
            "Loaded entity store: %s",
            ", ".join(f"{kind}={count}" for kind, count in self.summary().items()),
        )

    @classmethod
    def from_records(
        cls,
        branches: Iterable[Mapping | models.Branch],
        customers: Iterable[Mapping | models.Customer],
        accounts: Iterable[Mapping | models.Account],
        transactions: Iterable[Mapping | models.Transaction],
        amount_policy: models.AmountPolicy = "non_negative",
    ) -> EntityStore:
        """Build a store from dicts (or model instances)."""
        return cls(
            branches=_coerce("branch", models.Branch, branches),
            customers=_coerce("customer", models.Customer, customers),
            accounts=_coerce("account", models.Account, accounts),
            transactions=_coerce("transaction", models.Transaction, transactions),
            amount_policy=amount_policy,
        )

    @classmethod
    def from_arrow(
        cls,
        branches: pa.Table,
        customers: pa.Table,
        accounts: pa.Table,
        transactions: pa.Table,
        amount_policy: models.AmountPolicy = "non_negative",
    ) -> EntityStore:
        """Build a store from Arrow tables whose columns match the entity fields."""
        return cls.from_records(
            branches=branches.to_pylist(),
            customers=customers.to_pylist(),
            accounts=accounts.to_pylist(),
            transactions=transactions.to_pylist(),
            amount_policy=amount_policy,
        )

    def _validate(self) -> None:
        """Check every foreign key and the amount policy, building child indexes."""
        for customer in self._customers.values():
            if customer.branch_id not in self._branches:
                raise errors.MissingReferenceError(
                    kind="customer",
                    key=customer.customer_id,
                    parent_kind="branch",
                    parent_key=customer.branch_id,
                )

        for account in self._accounts.values():
            if account.customer_id not in self._customers:
                raise errors.MissingReferenceError(
                    kind="account",
                    key=account.account_id,
                    parent_kind="customer",
                    parent_key=account.customer_id,
                )
            self._accounts_by_customer.setdefault(account.customer_id, []).append(account)

        for txn in self._transactions.values():
            if txn.account_id not in self._accounts:
                raise errors.MissingReferenceError(
                    kind="transaction",
                    key=txn.transaction_id,
                    parent_kind="account",
                    parent_key=txn.account_id,
                )
            if self._amount_policy == "non_negative" and txn.amount < 0:
                raise errors.AmountPolicyError(
                    transaction_id=txn.transaction_id,
                    amount=txn.amount,
                    policy=self._amount_policy,
                )
            self._transactions_by_account.setdefault(txn.account_id, []).append(txn)

    @property
    def amount_policy(self) -> models.AmountPolicy:
        return self._amount_policy

    @property
    def branches(self) -> list[models.Branch]:
        return list(self._branches.values())

    @property
    def customers(self) -> list[models.Customer]:
        return list(self._customers.values())

    @property
    def accounts(self) -> list[models.Account]:
        return list(self._accounts.values())

    @property
    def transactions(self) -> list[models.Transaction]:
        return list(self._transactions.values())

    def branch(self, branch_id: int) -> models.Branch:
        return self._branches[branch_id]

    def customer(self, customer_id: int) -> models.Customer:
        return self._customers[customer_id]

    def account(self, account_id: int) -> models.Account:
        return self._accounts[account_id]

    def transaction(self, transaction_id: int) -> models.Transaction:
        return self._transactions[transaction_id]

    def accounts_of(self, customer_id: int) -> list[models.Account]:
        """Accounts owned by a customer, in insertion order."""
        return list(self._accounts_by_customer.get(customer_id, []))

    def transactions_of(self, account_id: int) -> list[models.Transaction]:
        """Transactions posted to an account, in insertion order."""
        return list(self._transactions_by_account.get(account_id, []))

    def summary(self) -> dict[str, int]:
        """Row counts per entity kind."""
        return {
            "branches": len(self._branches),
            "customers": len(self._customers),
            "accounts": len(self._accounts),
            "transactions": len(self._transactions),
        }
