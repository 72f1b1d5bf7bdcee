"""DuckDB engine -- executes compiled operator expressions against Arrow input.

Wraps an Ibis DuckDB connection. The engine registers the input table
(with an appended ``_ordinal`` column) under the compiled query's source
name, executes the Ibis expression, and returns the result as a PyArrow
table. Connections are opened per call unless the caller supplies one, so
no state is shared between analyses.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Literal

import duckdb
import ibis
import pyarrow as pa
import pydantic as pdt

import bankwin.errors as errors
import bankwin.types as types

if TYPE_CHECKING:
    import bankwin.compiler as compiler

logger = logging.getLogger(__name__)


def with_ordinal(data: pa.Table) -> pa.Table:
    """Append the row-position tie-break column to a table."""
    if types.ORDINAL_COLUMN in data.column_names:
        data = data.drop_columns([types.ORDINAL_COLUMN])
    ordinal = pa.array(range(data.num_rows), type=pa.int64())
    return data.append_column(types.ORDINAL_COLUMN, ordinal)


class DuckDBEngine(pdt.BaseModel, strict=True, frozen=True, extra="forbid"):
    """DuckDB execution engine for analytical operators.

    Configuration examples:
        In-memory (default):
            DuckDBEngine()

        Capped parallelism:
            DuckDBEngine(threads=2)
    """

    kind: Literal["duckdb"] = "duckdb"
    database: str = ":memory:"
    threads: int | None = pdt.Field(default=None, ge=1)

    def connect(self) -> ibis.BaseBackend:
        """Create an Ibis DuckDB connection with the configured thread cap."""
        config = {}
        if self.threads is not None:
            config["threads"] = self.threads
        return ibis.duckdb.connect(database=self.database, **config)

    def execute(
        self,
        query: compiler.CompiledQuery,
        data: pa.Table,
        connection: ibis.BaseBackend | None = None,
    ) -> pa.Table:
        """Run a compiled query over ``data``.

        Args:
            query: Output of WindowCompiler.compile().
            data: Input table. Its row order becomes the ``_ordinal``
                tie-break.
            connection: Optional open Ibis connection. When omitted, a
                fresh connection is opened and closed around the call.

        Returns:
            PyArrow Table with ``query.output_columns``.

        Raises:
            EngineError: If DuckDB rejects or fails the query.
        """
        owns_connection = connection is None
        conn = self.connect() if connection is None else connection
        start = time.perf_counter()
        try:
            conn.create_table(query.source_name, with_ordinal(data), overwrite=True)
            try:
                result = conn.to_pyarrow(query.ibis_expr)
            finally:
                conn.drop_table(query.source_name, force=True)
        except duckdb.Error as e:
            raise errors.EngineError(
                context=f"Executing operator '{query.operator}'",
                cause=str(e),
                fix="Check the operator's column names and types match the input table.",
            ) from e
        finally:
            if owns_connection:
                conn.disconnect()

        logger.debug(
            "Executed %s over %d rows -> %d rows in %.1fms\n%s",
            query.operator,
            data.num_rows,
            result.num_rows,
            (time.perf_counter() - start) * 1000,
            query.sql,
        )
        return result.select(query.output_columns)
