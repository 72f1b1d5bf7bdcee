"""Ibis-based compiler for analytical window operators.

Compiles operator definitions into Ibis expression trees and SQL.
The compiler is backend-agnostic -- it builds expressions over an unbound
table named ``CompiledQuery.source_name``; the engine registers the input
under that name and executes the expression.

Every input table carries a hidden ``_ordinal`` column (its row position)
appended by the engine. Compiled expressions use it as the last sort key
so that ties resolve in input order and results repeat exactly across runs.
"""

from __future__ import annotations

import dataclasses
from typing import Literal

import ibis
import ibis.expr.types as ir
import pyarrow as pa

import bankwin.types as types

OperatorKind = Literal[
    "group_totals",
    "rank",
    "running_total",
    "lag_difference",
    "moving_average",
    "ntile",
    "share_of_partition",
]

SOURCE_NAME = "__bankwin_input__"

_ORD = types.ORDINAL_COLUMN

# Map period grains to ibis truncation units
_GRAIN_UNITS: dict[str, str] = {
    "day": "D",
    "week": "W",
    "month": "M",
    "quarter": "Q",
    "year": "Y",
}


# ---------------------------------------------------------------------------
# Operator definitions
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class GroupTotals:
    """Sum a measure per group, keeping groups in first-appearance order."""

    group_by: list[str]
    measure: str
    total_column: str = "total"


@dataclasses.dataclass(frozen=True)
class Rank:
    """SQL RANK() within each partition, ordered by a measure."""

    partition_by: list[str]
    measure: str
    columns: list[str]
    descending: bool = True
    top_n: int | None = None
    rank_column: str = "rank"


@dataclasses.dataclass(frozen=True)
class PeriodWindow:
    """A window computed over per-period totals within each partition.

    ``kind`` selects the window:
        running_total   -- cumulative sum of period totals
        lag_difference  -- period total minus the previous period total
        moving_average  -- trailing mean over ``window`` periods
    """

    kind: Literal["running_total", "lag_difference", "moving_average"]
    partition_by: list[str]
    period_by: str
    measure: str
    grain: str | None = "month"
    period_column: str = "period"
    total_column: str = "period_total"
    output_column: str = "value"
    window: int | None = None
    partial: bool = True


@dataclasses.dataclass(frozen=True)
class NTile:
    """NTILE(buckets) over a measure, optionally within partitions."""

    measure: str
    columns: list[str]
    buckets: int = 4
    partition_by: list[str] = dataclasses.field(default_factory=list)
    descending: bool = True
    bucket_column: str = "bucket"


@dataclasses.dataclass(frozen=True)
class ShareOfPartition:
    """Count and sum per category, plus each category's share of its partition."""

    partition_by: list[str]
    category: str
    measure: str
    count_column: str = "count"
    total_column: str = "total"
    share_column: str = "share"


OperatorDef = GroupTotals | Rank | PeriodWindow | NTile | ShareOfPartition


@dataclasses.dataclass(frozen=True)
class CompiledQuery:
    """Result of compiling an operator definition via Ibis.

    ``ibis_expr`` may carry helper columns (such as ``_ordinal``) that are
    needed for ordering; ``output_columns`` lists what callers receive.
    """

    sql: str
    ibis_expr: ir.Table
    operator: OperatorKind
    source_name: str
    output_columns: list[str]


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------


def _sort_key(column: str | ir.Column, descending: bool) -> ir.Value:
    return ibis.desc(column) if descending else ibis.asc(column)


class WindowCompiler:
    """Compiles operator definitions to Ibis expressions and SQL.

    Stateless compiler -- does not manage backend connections.
    Builds Ibis expression trees over the input schema and renders them
    to SQL using the DuckDB dialect.
    """

    def __init__(self, source_name: str = SOURCE_NAME) -> None:
        self.source_name = source_name

    def compile(self, definition: OperatorDef, schema: pa.Schema) -> CompiledQuery:
        """Compile an operator definition over an input of ``schema``.

        Args:
            definition: One of the operator definition dataclasses.
            schema: Arrow schema of the input table. The ``_ordinal``
                column is added if absent.

        Returns:
            CompiledQuery with SQL, Ibis expression, and output columns.
        """
        source = self._create_source_expression(schema)
        if isinstance(definition, GroupTotals):
            expr, operator, columns = self._group_totals(source, definition)
        elif isinstance(definition, Rank):
            expr, operator, columns = self._rank(source, definition)
        elif isinstance(definition, PeriodWindow):
            expr, operator, columns = self._period_window(source, definition)
        elif isinstance(definition, NTile):
            expr, operator, columns = self._ntile(source, definition)
        elif isinstance(definition, ShareOfPartition):
            expr, operator, columns = self._share(source, definition)
        else:
            msg = f"Unsupported operator definition: {type(definition).__name__}"
            raise TypeError(msg)

        return CompiledQuery(
            sql=self._to_sql(expr),
            ibis_expr=expr,
            operator=operator,
            source_name=self.source_name,
            output_columns=columns,
        )

    def _create_source_expression(self, schema: pa.Schema) -> ir.Table:
        """Unbound Ibis table for the input, with the ordinal column."""
        if _ORD in schema.names:
            schema = schema.remove(schema.get_field_index(_ORD))
        schema = schema.append(pa.field(_ORD, types.Int64))
        return ibis.table(schema=ibis.Schema.from_pyarrow(schema), name=self.source_name)

    def _group_totals(
        self, t: ir.Table, d: GroupTotals
    ) -> tuple[ir.Table, OperatorKind, list[str]]:
        expr = (
            t.group_by(d.group_by)
            .agg(**{d.total_column: t[d.measure].sum(), _ORD: t[_ORD].min()})
            .order_by(_ORD)
        )
        return expr, "group_totals", [*d.group_by, d.total_column]

    def _rank(self, t: ir.Table, d: Rank) -> tuple[ir.Table, OperatorKind, list[str]]:
        # Ties share a rank, so the ordinal is NOT part of the rank ordering
        window = ibis.window(
            group_by=[t[c] for c in d.partition_by] or None,
            order_by=_sort_key(t[d.measure], d.descending),
        )
        # ibis ranks are zero-based
        expr = t.mutate(**{d.rank_column: ibis.rank().over(window) + 1})
        if d.top_n is not None:
            expr = expr.filter(expr[d.rank_column] <= d.top_n)
        expr = expr.order_by([*d.partition_by, d.rank_column, _ORD])
        return expr, "rank", [*d.columns, d.rank_column]

    def _period_expression(self, t: ir.Table, d: PeriodWindow) -> ir.Value:
        if d.grain is None:
            return t[d.period_by]
        return t[d.period_by].truncate(_GRAIN_UNITS[d.grain]).cast("date")

    def _period_window(
        self, t: ir.Table, d: PeriodWindow
    ) -> tuple[ir.Table, OperatorKind, list[str]]:
        bucketed = t.select(
            *d.partition_by,
            **{d.period_column: self._period_expression(t, d), "__measure": t[d.measure]},
        )
        totals = bucketed.group_by([*d.partition_by, d.period_column]).agg(
            **{d.total_column: bucketed["__measure"].sum()}
        )
        group_by = [totals[c] for c in d.partition_by] or None
        period = totals[d.period_column]
        total = totals[d.total_column]

        if d.kind == "running_total":
            value = total.cumsum(group_by=group_by, order_by=period)
        elif d.kind == "lag_difference":
            # lag is null on the first period, so growth stays null there
            value = total - total.lag().over(ibis.window(group_by=group_by, order_by=period))
        elif d.kind == "moving_average":
            frame = ibis.window(
                preceding=d.window - 1, following=0, group_by=group_by, order_by=period
            )
            value = total.cast("float64").mean().over(frame)
            if not d.partial:
                full = period.count().over(frame) >= d.window
                value = ibis.ifelse(full, value, ibis.null().cast("float64"))
        else:
            msg = f"Unsupported period window kind: {d.kind}"
            raise ValueError(msg)

        expr = totals.mutate(**{d.output_column: value}).order_by(
            [*d.partition_by, d.period_column]
        )
        columns = [*d.partition_by, d.period_column, d.total_column, d.output_column]
        return expr, d.kind, columns

    def _ntile(self, t: ir.Table, d: NTile) -> tuple[ir.Table, OperatorKind, list[str]]:
        order = [_sort_key(t[d.measure], d.descending), t[_ORD]]
        window = ibis.window(group_by=[t[c] for c in d.partition_by] or None, order_by=order)
        # ibis buckets are zero-based
        expr = t.mutate(**{d.bucket_column: ibis.ntile(d.buckets).over(window) + 1})
        expr = expr.order_by([*d.partition_by, _sort_key(d.measure, d.descending), _ORD])
        return expr, "ntile", [*d.columns, d.bucket_column]

    def _share(
        self, t: ir.Table, d: ShareOfPartition
    ) -> tuple[ir.Table, OperatorKind, list[str]]:
        keys = [*d.partition_by, d.category]
        grouped = t.group_by(keys).agg(
            **{d.count_column: t.count(), d.total_column: t[d.measure].sum()}
        )
        total = grouped[d.total_column]
        partition_total = total.sum().over(
            ibis.window(group_by=[grouped[c] for c in d.partition_by] or None)
        )
        share = total.cast("float64") / partition_total.cast("float64").nullif(0)
        expr = grouped.mutate(**{d.share_column: share}).order_by(keys)
        return expr, "share_of_partition", [*keys, d.count_column, d.total_column, d.share_column]

    def _to_sql(self, expr: ir.Table) -> str:
        """Render an Ibis expression to DuckDB-dialect SQL."""
        return ibis.to_sql(expr, dialect="duckdb")


__all__ = [
    "CompiledQuery",
    "GroupTotals",
    "NTile",
    "PeriodWindow",
    "Rank",
    "ShareOfPartition",
    "WindowCompiler",
]
