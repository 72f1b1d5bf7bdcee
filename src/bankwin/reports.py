"""Report assembler: composes operators into the named banking analyses.

Each analysis is a pure function of the transaction-fact table. Branch and
customer partitions are keyed by id (names need not be unique) and the
name columns ride along for display.

Usage:
    assembler = ReportAssembler()
    report = assembler.build_report(store)
    report.top_customers.to_pylist()
"""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import TYPE_CHECKING

import pyarrow as pa
import pyarrow.compute as pc

import bankwin.engine as engine_mod
import bankwin.join as join
import bankwin.operators as operators
import bankwin.settings as settings_mod
import bankwin.types as types

if TYPE_CHECKING:
    import bankwin.store as store_mod

logger = logging.getLogger(__name__)

_BRANCH = ["branch_id", "branch_name"]
_CUSTOMER = ["customer_id", "customer_name"]


def _shape(data: pa.Table, schema: pa.Schema) -> pa.Table:
    """Keep the report columns, in order, cast to the report schema."""
    return data.select(schema.names).cast(schema)


@dataclasses.dataclass(frozen=True)
class AnalyticsReport:
    """All analyses computed from one snapshot."""

    top_customers: pa.Table
    running_totals: pa.Table
    growth: pa.Table
    quartiles: pa.Table
    moving_averages: pa.Table
    inactive_customers: pa.Table
    channel_mix: pa.Table

    def to_dict(self) -> dict[str, list[dict]]:
        """Rows of each analysis as lists of dicts."""
        return {
            field.name: getattr(self, field.name).to_pylist()
            for field in dataclasses.fields(self)
        }


class ReportAssembler:
    """Builds report tables from transaction-facts.

    Not a Pydantic model -- this is a runtime handle holding the settings
    and engine every analysis runs with.
    """

    def __init__(
        self,
        settings: settings_mod.AnalyticsSettings | None = None,
        engine: engine_mod.DuckDBEngine | None = None,
    ) -> None:
        self._settings = settings or settings_mod.AnalyticsSettings()
        self._engine = engine or self._settings.engine

    @property
    def settings(self) -> settings_mod.AnalyticsSettings:
        return self._settings

    def customer_totals(self, facts: pa.Table, by_branch: bool = True) -> pa.Table:
        """Total transaction amount per customer (optionally per branch)."""
        keys = [*_BRANCH, *_CUSTOMER] if by_branch else list(_CUSTOMER)
        return operators.group_totals(
            facts, keys, "amount", total_column="total_amount", engine=self._engine
        )

    def top_customers_per_branch(self, facts: pa.Table, n: int | None = None) -> pa.Table:
        """(branch_name, customer_name, total_amount, rank) with rank <= n."""
        totals = self.customer_totals(facts, by_branch=True)
        ranked = operators.partitioned_rank(
            totals,
            "branch_id",
            "total_amount",
            top_n=n if n is not None else self._settings.top_n,
            engine=self._engine,
        )
        return _shape(ranked, types.TOP_CUSTOMERS_SCHEMA)

    def running_monthly_totals(self, facts: pa.Table) -> pa.Table:
        """(branch_name, month, monthly_total, running_total)."""
        result = operators.running_aggregate(
            facts,
            _BRANCH,
            "transaction_date",
            "amount",
            grain=self._settings.period_grain,
            period_column="month",
            total_column="monthly_total",
            running_column="running_total",
            engine=self._engine,
        )
        return _shape(result, types.RUNNING_TOTALS_SCHEMA)

    def month_over_month_growth(self, facts: pa.Table) -> pa.Table:
        """(branch_name, month, monthly_total, monthly_growth); first month is null."""
        result = operators.lag_difference(
            facts,
            _BRANCH,
            "transaction_date",
            "amount",
            grain=self._settings.period_grain,
            period_column="month",
            total_column="monthly_total",
            growth_column="monthly_growth",
            engine=self._engine,
        )
        return _shape(result, types.GROWTH_SCHEMA)

    def customer_quartiles(self, facts: pa.Table) -> pa.Table:
        """(customer_name, total_amount, quartile); quartile 1 is the top segment."""
        totals = self.customer_totals(facts, by_branch=False)
        bucketed = operators.quartiles(
            totals,
            "total_amount",
            bucket_column="quartile",
            engine=self._engine,
        )
        return _shape(bucketed, types.QUARTILE_SCHEMA)

    def moving_averages(
        self,
        facts: pa.Table,
        window: int | None = None,
        partial: bool | None = None,
    ) -> pa.Table:
        """(branch_name, month, monthly_total, moving_avg) over trailing months."""
        result = operators.moving_average(
            facts,
            _BRANCH,
            "transaction_date",
            "amount",
            window=window if window is not None else self._settings.moving_average_window,
            partial=partial if partial is not None else self._settings.moving_average_partial,
            grain=self._settings.period_grain,
            period_column="month",
            total_column="monthly_total",
            average_column="moving_avg",
            engine=self._engine,
        )
        return _shape(result, types.MOVING_AVERAGE_SCHEMA)

    def inactive_customers(self, store: store_mod.EntityStore) -> pa.Table:
        """(customer_name, branch_name, registration_date) for customers with no transactions."""
        outer = join.resolve_facts(store, mode=join.JoinMode.CUSTOMER_OUTER)
        # count skips nulls, so customers with only null-filled rows count zero
        counts = outer.group_by(
            ["customer_id", "customer_name", "branch_name", "registration_date"],
            use_threads=False,
        ).aggregate([("transaction_id", "count")])
        inactive = counts.filter(pc.equal(counts.column("transaction_id_count"), 0))
        return _shape(inactive, types.INACTIVE_CUSTOMERS_SCHEMA)

    def channel_mix(self, facts: pa.Table) -> pa.Table:
        """(branch_name, channel_type, transaction_count, total_amount, share_of_branch)."""
        result = operators.share_of_partition(
            facts,
            _BRANCH,
            "channel_type",
            "amount",
            count_column="transaction_count",
            total_column="total_amount",
            share_column="share_of_branch",
            engine=self._engine,
        )
        return _shape(result, types.CHANNEL_MIX_SCHEMA)

    def build_report(self, store: store_mod.EntityStore) -> AnalyticsReport:
        """Resolve facts once and run every analysis over them."""
        start = time.perf_counter()
        facts = join.resolve_facts(store, mode=join.JoinMode.INNER)
        report = AnalyticsReport(
            top_customers=self.top_customers_per_branch(facts),
            running_totals=self.running_monthly_totals(facts),
            growth=self.month_over_month_growth(facts),
            quartiles=self.customer_quartiles(facts),
            moving_averages=self.moving_averages(facts),
            inactive_customers=self.inactive_customers(store),
            channel_mix=self.channel_mix(facts),
        )
        logger.info(
            "Built report over %d facts in %.1fms",
            facts.num_rows,
            (time.perf_counter() - start) * 1000,
        )
        return report
