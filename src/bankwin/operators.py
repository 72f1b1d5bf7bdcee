"""Analytical window operators over Arrow tables.

Each operator is a pure function: an input table plus explicit partition,
order, and measure column names in; a new table out. Partition and order
semantics are parameters, never implied by clause ordering.

All operators share the same contract:
- Output is grouped by partition key (ascending) so results are
  reproducible run to run.
- Ties resolve in input row order.
- A missing column, or a null in a partition/order column, raises
  InvalidPartitionError.
- Zero-row input yields a zero-row output with the operator's columns.

Example:
    totals = operators.group_totals(facts, ["branch_id", "customer_id"], "amount")
    top3 = operators.partitioned_rank(totals, "branch_id", "total", top_n=3)
"""

from __future__ import annotations

from collections.abc import Sequence

import pyarrow as pa

import bankwin.compiler as compiler
import bankwin.engine as engine_mod
import bankwin.errors as errors
import bankwin.models as models
import bankwin.types as types

_COMPILER = compiler.WindowCompiler()
_DEFAULT_ENGINE = engine_mod.DuckDBEngine()


def _as_list(columns: str | Sequence[str] | None) -> list[str]:
    if columns is None:
        return []
    if isinstance(columns, str):
        return [columns]
    return list(columns)


def _visible_columns(data: pa.Table) -> list[str]:
    return [c for c in data.column_names if c != types.ORDINAL_COLUMN]


def _require_columns(
    operator: str,
    data: pa.Table,
    keys: Sequence[str],
    measures: Sequence[str] = (),
) -> None:
    """Validate key and measure columns.

    Keys (partition/order columns) must exist and contain no nulls.
    Measures must exist; nulls are left to SQL aggregate semantics.
    """
    for column in [*keys, *measures]:
        if column not in data.column_names:
            raise errors.InvalidPartitionError(
                operator=operator,
                column=column,
                cause=f"Column '{column}' is not present. Available: {_visible_columns(data)}",
            )
    for column in keys:
        null_count = data.column(column).null_count
        if null_count:
            raise errors.InvalidPartitionError(
                operator=operator,
                column=column,
                cause=f"Column '{column}' has {null_count} null value(s); every row needs a key",
            )


def _require_positive(operator: str, parameter: str, value: int | None) -> None:
    if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 1):
        raise errors.OperatorConfigError(operator=operator, parameter=parameter, value=value)


def _run(
    definition: compiler.OperatorDef,
    data: pa.Table,
    engine: engine_mod.DuckDBEngine | None,
) -> pa.Table:
    query = _COMPILER.compile(definition, data.schema)
    return (engine or _DEFAULT_ENGINE).execute(query, data)


def group_totals(
    data: pa.Table,
    group_by: str | Sequence[str],
    measure: str,
    total_column: str = "total",
    engine: engine_mod.DuckDBEngine | None = None,
) -> pa.Table:
    """Sum ``measure`` per group.

    Groups appear in the order of their first row in ``data``, so the
    result keeps insertion order for downstream tie-breaks.
    """
    keys = _as_list(group_by)
    if not keys:
        raise errors.InvalidPartitionError(
            operator="group_totals",
            column="group_by",
            cause="group_by names no columns; at least one grouping key is required",
        )
    _require_columns("group_totals", data, keys, [measure])
    definition = compiler.GroupTotals(group_by=keys, measure=measure, total_column=total_column)
    return _run(definition, data, engine)


def partitioned_rank(
    data: pa.Table,
    partition_by: str | Sequence[str] | None,
    measure: str,
    top_n: int | None = None,
    descending: bool = True,
    rank_column: str = "rank",
    engine: engine_mod.DuckDBEngine | None = None,
) -> pa.Table:
    """Rank rows within each partition by ``measure``.

    Standard RANK semantics: equal measures share a rank and the next
    distinct measure skips ahead (500, 500, 300 -> 1, 1, 3). Rows with
    equal rank keep their input order.

    Args:
        data: Input rows.
        partition_by: Partition column(s); None ranks the whole table.
        measure: Numeric column to order by.
        top_n: If set, keep only rows with rank <= top_n.
        descending: Highest measure gets rank 1 when True.
        rank_column: Name of the output rank column.

    Returns:
        Input columns plus ``rank_column``, ordered by partition, rank,
        then input order.
    """
    keys = _as_list(partition_by)
    _require_columns("partitioned_rank", data, [*keys, measure])
    _require_positive("partitioned_rank", "top_n", top_n)
    definition = compiler.Rank(
        partition_by=keys,
        measure=measure,
        columns=_visible_columns(data),
        descending=descending,
        top_n=top_n,
        rank_column=rank_column,
    )
    return _run(definition, data, engine)


def _period_window(
    kind: str,
    data: pa.Table,
    partition_by: str | Sequence[str] | None,
    period_by: str,
    measure: str,
    grain: models.PeriodGrain | None,
    period_column: str,
    total_column: str,
    output_column: str,
    engine: engine_mod.DuckDBEngine | None,
    window: int | None = None,
    partial: bool = True,
) -> pa.Table:
    keys = _as_list(partition_by)
    _require_columns(kind, data, [*keys, period_by], [measure])
    definition = compiler.PeriodWindow(
        kind=kind,
        partition_by=keys,
        period_by=period_by,
        measure=measure,
        grain=grain,
        period_column=period_column,
        total_column=total_column,
        output_column=output_column,
        window=window,
        partial=partial,
    )
    return _run(definition, data, engine)


def running_aggregate(
    data: pa.Table,
    partition_by: str | Sequence[str] | None,
    period_by: str,
    measure: str,
    grain: models.PeriodGrain | None = "month",
    period_column: str = "period",
    total_column: str = "period_total",
    running_column: str = "running_total",
    engine: engine_mod.DuckDBEngine | None = None,
) -> pa.Table:
    """Per-period totals and their cumulative sum within each partition.

    Rows are bucketed by ``date_trunc(grain, period_by)``; with
    ``grain=None`` the raw ``period_by`` value is the bucket. Rows that
    land in the same bucket merge before the running sum is taken, so the
    last running total of a partition equals the sum of its period totals.
    """
    return _period_window(
        "running_total",
        data,
        partition_by,
        period_by,
        measure,
        grain,
        period_column,
        total_column,
        running_column,
        engine,
    )


def lag_difference(
    data: pa.Table,
    partition_by: str | Sequence[str] | None,
    period_by: str,
    measure: str,
    grain: models.PeriodGrain | None = "month",
    period_column: str = "period",
    total_column: str = "period_total",
    growth_column: str = "growth",
    engine: engine_mod.DuckDBEngine | None = None,
) -> pa.Table:
    """Period total minus the previous period's total within each partition.

    The first period of every partition has no predecessor and its growth
    is null, not zero.
    """
    return _period_window(
        "lag_difference",
        data,
        partition_by,
        period_by,
        measure,
        grain,
        period_column,
        total_column,
        growth_column,
        engine,
    )


def moving_average(
    data: pa.Table,
    partition_by: str | Sequence[str] | None,
    period_by: str,
    measure: str,
    *,
    window: int,
    partial: bool,
    grain: models.PeriodGrain | None = "month",
    period_column: str = "period",
    total_column: str = "period_total",
    average_column: str = "moving_avg",
    engine: engine_mod.DuckDBEngine | None = None,
) -> pa.Table:
    """Trailing mean of the last ``window`` period totals.

    ``partial`` has no default: callers decide whether the first
    ``window - 1`` periods of a partition average over what is available
    (True) or report null (False).
    """
    _require_positive("moving_average", "window", window)
    return _period_window(
        "moving_average",
        data,
        partition_by,
        period_by,
        measure,
        grain,
        period_column,
        total_column,
        average_column,
        engine,
        window=window,
        partial=partial,
    )


def ntile(
    data: pa.Table,
    measure: str,
    buckets: int = 4,
    partition_by: str | Sequence[str] | None = None,
    descending: bool = True,
    bucket_column: str = "bucket",
    engine: engine_mod.DuckDBEngine | None = None,
) -> pa.Table:
    """Split ordered rows into ``buckets`` groups as evenly as possible.

    With N rows and b buckets, the first ``N mod b`` buckets hold
    ``ceil(N / b)`` rows and the rest ``floor(N / b)``. Bucket 1 holds the
    highest measures when ``descending`` is True. Equal measures are
    ordered by input position before bucketing.
    """
    keys = _as_list(partition_by)
    _require_columns("ntile", data, [*keys, measure])
    _require_positive("ntile", "buckets", buckets)
    definition = compiler.NTile(
        measure=measure,
        columns=_visible_columns(data),
        buckets=buckets,
        partition_by=keys,
        descending=descending,
        bucket_column=bucket_column,
    )
    return _run(definition, data, engine)


def quartiles(
    data: pa.Table,
    measure: str,
    partition_by: str | Sequence[str] | None = None,
    bucket_column: str = "quartile",
    engine: engine_mod.DuckDBEngine | None = None,
) -> pa.Table:
    """NTILE(4) with quartile 1 as the highest-value segment."""
    return ntile(
        data,
        measure,
        buckets=4,
        partition_by=partition_by,
        bucket_column=bucket_column,
        engine=engine,
    )


def share_of_partition(
    data: pa.Table,
    partition_by: str | Sequence[str] | None,
    category: str,
    measure: str,
    count_column: str = "count",
    total_column: str = "total",
    share_column: str = "share",
    engine: engine_mod.DuckDBEngine | None = None,
) -> pa.Table:
    """Row count, measure sum, and share of the partition's sum per category."""
    keys = _as_list(partition_by)
    _require_columns("share_of_partition", data, [*keys, category], [measure])
    definition = compiler.ShareOfPartition(
        partition_by=keys,
        category=category,
        measure=measure,
        count_column=count_column,
        total_column=total_column,
        share_column=share_column,
    )
    return _run(definition, data, engine)
