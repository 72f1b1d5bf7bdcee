"""Tests for the join resolver."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

import bankwin.errors as errors
import bankwin.join as join
import bankwin.store as store_mod
import bankwin.types as types


class TestInnerMode:
    def test_one_row_per_transaction(self, store):
        facts = join.resolve_facts(store)

        assert facts.num_rows == 7
        assert facts.schema == types.FACT_SCHEMA

    def test_rows_follow_transaction_insertion_order(self, store):
        facts = join.resolve_facts(store)

        assert facts.column("transaction_id").to_pylist() == [1, 2, 3, 4, 5, 6, 7]

    def test_row_carries_full_chain(self, store):
        row = join.resolve_facts(store).to_pylist()[2]

        assert row == {
            "transaction_id": 3,
            "amount": Decimal("500.00"),
            "transaction_date": store.transaction(3).transaction_date,
            "channel_type": "ONLINE",
            "account_id": 101,
            "account_type": "SAVINGS",
            "customer_id": 11,
            "customer_name": "Bob",
            "registration_date": date(2023, 2, 9),
            "branch_id": 1,
            "branch_name": "Downtown",
            "region": "North",
        }

    def test_empty_store_gives_empty_table(self):
        empty = store_mod.EntityStore.from_records([], [], [], [])

        facts = join.resolve_facts(empty)

        assert facts.num_rows == 0
        assert facts.schema == types.FACT_SCHEMA


class TestCustomerOuterMode:
    def test_every_customer_present(self, store):
        facts = join.resolve_facts(store, mode=join.JoinMode.CUSTOMER_OUTER)

        names = list(dict.fromkeys(facts.column("customer_name").to_pylist()))
        assert names == ["Alice", "Bob", "Carol", "Dave", "Erin", "Frank", "Grace"]

    def test_customer_without_accounts_is_null_filled(self, store):
        facts = join.resolve_facts(store, mode=join.JoinMode.CUSTOMER_OUTER)
        frank = [r for r in facts.to_pylist() if r["customer_name"] == "Frank"]

        assert len(frank) == 1
        assert frank[0]["account_id"] is None
        assert frank[0]["transaction_id"] is None
        assert frank[0]["amount"] is None
        assert frank[0]["branch_name"] == "Uptown"
        assert frank[0]["registration_date"] == date(2023, 7, 21)

    def test_account_without_transactions_keeps_account(self, store):
        facts = join.resolve_facts(store, mode=join.JoinMode.CUSTOMER_OUTER)
        grace = [r for r in facts.to_pylist() if r["customer_name"] == "Grace"]

        assert len(grace) == 1
        assert grace[0]["account_id"] == 201
        assert grace[0]["transaction_id"] is None

    def test_row_count(self, store):
        facts = join.resolve_facts(store, mode=join.JoinMode.CUSTOMER_OUTER)

        # 7 transactions + Frank + Grace
        assert facts.num_rows == 9


class TestMalformedInput:
    def test_unknown_mode(self, store):
        with pytest.raises(errors.ResolutionError):
            join.resolve_facts(store, mode="sideways")
