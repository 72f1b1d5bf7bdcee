"""Join resolver: entity store -> transaction-facts.

This is the single denormalization point. Every operator and report reads
the flat fact table produced here and never touches raw entities, so the
Branch/Customer/Account/Transaction join logic lives in one place.

Row order of the fact table is the insertion order of the underlying
entities; downstream operators use it as their stable tie-break.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import pyarrow as pa

import bankwin.errors as errors
import bankwin.models as models
import bankwin.types as types

if TYPE_CHECKING:
    import bankwin.store as store_mod

logger = logging.getLogger(__name__)

_M = TypeVar("_M")


class JoinMode(enum.Enum):
    """Which rows survive the Branch/Customer/Account/Transaction join."""

    # Transactions whose full chain resolves
    INNER = "inner"
    # Every customer, null-filled where there is no account or transaction
    CUSTOMER_OUTER = "customer_outer"


def _fact_row(
    customer: models.Customer,
    branch: models.Branch,
    account: models.Account | None,
    txn: models.Transaction | None,
) -> dict[str, Any]:
    return {
        "transaction_id": txn.transaction_id if txn else None,
        "amount": txn.amount if txn else None,
        "transaction_date": txn.transaction_date if txn else None,
        "channel_type": txn.channel_type.value if txn else None,
        "account_id": account.account_id if account else None,
        "account_type": account.account_type if account else None,
        "customer_id": customer.customer_id,
        "customer_name": customer.full_name,
        "registration_date": customer.registration_date,
        "branch_id": branch.branch_id,
        "branch_name": branch.name,
        "region": branch.region,
    }


def _lookup(kind: str, getter: Callable[[int], _M], key: int, child: str, child_key: int) -> _M:
    try:
        return getter(key)
    except KeyError as e:
        raise errors.ResolutionError(
            context=f"Resolving {child} {child_key!r} to its {kind}",
            cause=f"{kind} {key!r} is not present in the entity store",
            fix="Load the snapshot through EntityStore so references are validated.",
        ) from e


def _inner_rows(store: store_mod.EntityStore) -> list[dict[str, Any]]:
    rows = []
    for txn in store.transactions:
        account = _lookup("account", store.account, txn.account_id, "transaction", txn.transaction_id)
        customer = _lookup("customer", store.customer, account.customer_id, "account", account.account_id)
        branch = _lookup("branch", store.branch, customer.branch_id, "customer", customer.customer_id)
        rows.append(_fact_row(customer, branch, account, txn))
    return rows


def _customer_outer_rows(store: store_mod.EntityStore) -> list[dict[str, Any]]:
    rows = []
    for customer in store.customers:
        branch = _lookup("branch", store.branch, customer.branch_id, "customer", customer.customer_id)
        accounts = store.accounts_of(customer.customer_id)
        if not accounts:
            rows.append(_fact_row(customer, branch, None, None))
            continue
        for account in accounts:
            txns = store.transactions_of(account.account_id)
            if not txns:
                rows.append(_fact_row(customer, branch, account, None))
                continue
            for txn in txns:
                rows.append(_fact_row(customer, branch, account, txn))
    return rows


def resolve_facts(store: store_mod.EntityStore, mode: JoinMode = JoinMode.INNER) -> pa.Table:
    """Materialize the denormalized transaction-fact table.

    Args:
        store: A loaded EntityStore.
        mode: INNER keeps only fully resolved transactions, in transaction
            insertion order. CUSTOMER_OUTER keeps every customer, ordered by
            customer, then account, then transaction, with null transaction
            and account fields where nothing matches.

    Returns:
        pa.Table with FACT_SCHEMA. Possibly empty, never None.

    Raises:
        ResolutionError: If a reference cannot be resolved (malformed input).
    """
    if mode is JoinMode.INNER:
        rows = _inner_rows(store)
    elif mode is JoinMode.CUSTOMER_OUTER:
        rows = _customer_outer_rows(store)
    else:
        raise errors.ResolutionError(
            context="Resolving transaction-facts",
            cause=f"Unsupported join mode {mode!r}",
            fix=f"Use one of: {', '.join(m.name for m in JoinMode)}.",
        )

    logger.debug("Resolved %d fact rows (mode=%s)", len(rows), mode.value)
    return pa.Table.from_pylist(rows, schema=types.FACT_SCHEMA)
