"""Shared fixtures: a small two-branch banking snapshot.

Downtown (branch 1):
    Alice  500  (Jan 300 ONLINE, Feb 200 BRANCH)
    Bob    500  (Jan 500 ONLINE)
    Carol  300  (Mar 300 BRANCH)
    Dave   100  (Feb 100 ONLINE)
Uptown (branch 2):
    Erin   120  (Jan 50 ONLINE, Mar 70 ONLINE)
    Frank  no accounts
    Grace  an account with no transactions
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

import bankwin.store as store_mod


@pytest.fixture
def branch_records() -> list[dict]:
    return [
        {"branch_id": 1, "name": "Downtown", "region": "North"},
        {"branch_id": 2, "name": "Uptown", "region": "South"},
    ]


@pytest.fixture
def customer_records() -> list[dict]:
    return [
        {"customer_id": 10, "full_name": "Alice", "registration_date": date(2023, 1, 4), "branch_id": 1},
        {"customer_id": 11, "full_name": "Bob", "registration_date": date(2023, 2, 9), "branch_id": 1},
        {"customer_id": 12, "full_name": "Carol", "registration_date": date(2023, 3, 1), "branch_id": 1},
        {"customer_id": 13, "full_name": "Dave", "registration_date": date(2023, 5, 17), "branch_id": 1},
        {"customer_id": 20, "full_name": "Erin", "registration_date": date(2023, 6, 2), "branch_id": 2},
        {"customer_id": 21, "full_name": "Frank", "registration_date": date(2023, 7, 21), "branch_id": 2},
        {"customer_id": 22, "full_name": "Grace", "registration_date": date(2023, 8, 30), "branch_id": 2},
    ]


@pytest.fixture
def account_records() -> list[dict]:
    return [
        {"account_id": 100, "account_type": "CHECKING", "open_date": date(2023, 1, 4), "customer_id": 10},
        {"account_id": 101, "account_type": "SAVINGS", "open_date": date(2023, 2, 9), "customer_id": 11},
        {"account_id": 102, "account_type": "CHECKING", "open_date": date(2023, 3, 1), "customer_id": 12},
        {"account_id": 103, "account_type": "CHECKING", "open_date": date(2023, 5, 17), "customer_id": 13},
        {"account_id": 200, "account_type": "CHECKING", "open_date": date(2023, 6, 2), "customer_id": 20},
        {"account_id": 201, "account_type": "SAVINGS", "open_date": date(2023, 8, 30), "customer_id": 22},
    ]


@pytest.fixture
def transaction_records() -> list[dict]:
    return [
        {"transaction_id": 1, "transaction_date": date(2024, 1, 5), "amount": Decimal("300.00"), "channel_type": "ONLINE", "account_id": 100},
        {"transaction_id": 2, "transaction_date": date(2024, 2, 10), "amount": Decimal("200.00"), "channel_type": "BRANCH", "account_id": 100},
        {"transaction_id": 3, "transaction_date": date(2024, 1, 20), "amount": Decimal("500.00"), "channel_type": "ONLINE", "account_id": 101},
        {"transaction_id": 4, "transaction_date": date(2024, 3, 3), "amount": Decimal("300.00"), "channel_type": "BRANCH", "account_id": 102},
        {"transaction_id": 5, "transaction_date": date(2024, 2, 15), "amount": Decimal("100.00"), "channel_type": "ONLINE", "account_id": 103},
        {"transaction_id": 6, "transaction_date": date(2024, 1, 7), "amount": Decimal("50.00"), "channel_type": "ONLINE", "account_id": 200},
        {"transaction_id": 7, "transaction_date": date(2024, 3, 9), "amount": Decimal("70.00"), "channel_type": "ONLINE", "account_id": 200},
    ]


@pytest.fixture
def store(branch_records, customer_records, account_records, transaction_records) -> store_mod.EntityStore:
    return store_mod.EntityStore.from_records(
        branches=branch_records,
        customers=customer_records,
        accounts=account_records,
        transactions=transaction_records,
    )
