"""Tests for the DuckDB execution engine."""

import ibis
import pyarrow as pa
import pydantic
import pytest

import bankwin.compiler as compiler
import bankwin.engine as engine_mod
import bankwin.errors as errors
import bankwin.types as types


def _sample_table() -> pa.Table:
    return pa.table({"customer_id": [3, 1, 2], "amount": [10, 20, 30]})


class TestDuckDBEngineConfig:
    def test_defaults(self):
        engine = engine_mod.DuckDBEngine()

        assert engine.kind == "duckdb"
        assert engine.database == ":memory:"
        assert engine.threads is None

    def test_threads_must_be_positive(self):
        with pytest.raises(pydantic.ValidationError):
            engine_mod.DuckDBEngine(threads=0)

    def test_frozen(self):
        engine = engine_mod.DuckDBEngine()
        with pytest.raises(pydantic.ValidationError):
            engine.threads = 4


class TestWithOrdinal:
    def test_appends_row_positions(self):
        result = engine_mod.with_ordinal(_sample_table())

        assert result.column_names[-1] == types.ORDINAL_COLUMN
        assert result.column(types.ORDINAL_COLUMN).to_pylist() == [0, 1, 2]

    def test_replaces_existing_ordinal(self):
        data = _sample_table().append_column(types.ORDINAL_COLUMN, pa.array([9, 9, 9]))

        result = engine_mod.with_ordinal(data)

        assert result.column_names.count(types.ORDINAL_COLUMN) == 1
        assert result.column(types.ORDINAL_COLUMN).to_pylist() == [0, 1, 2]


class TestExecute:
    def _group_totals(self) -> compiler.CompiledQuery:
        return compiler.WindowCompiler().compile(
            compiler.GroupTotals(group_by=["customer_id"], measure="amount"),
            _sample_table().schema,
        )

    def test_executes_compiled_query(self):
        result = engine_mod.DuckDBEngine(threads=1).execute(self._group_totals(), _sample_table())

        assert result.column_names == ["customer_id", "total"]
        # first-appearance order, not key order
        assert result.column("customer_id").to_pylist() == [3, 1, 2]

    def test_ordinal_not_returned(self):
        result = engine_mod.DuckDBEngine().execute(self._group_totals(), _sample_table())

        assert types.ORDINAL_COLUMN not in result.column_names

    def test_shared_connection_is_left_open(self):
        engine = engine_mod.DuckDBEngine()
        conn = engine.connect()

        engine.execute(self._group_totals(), _sample_table(), connection=conn)

        assert conn.raw_sql("SELECT 42").fetchone() == (42,)
        assert compiler.SOURCE_NAME not in conn.list_tables()
        conn.disconnect()

    def test_duckdb_failure_wrapped(self):
        source = ibis.table({"missing": "int64"}, name=compiler.SOURCE_NAME)
        query = compiler.CompiledQuery(
            sql="",
            ibis_expr=source.select("missing"),
            operator="rank",
            source_name=compiler.SOURCE_NAME,
            output_columns=["missing"],
        )

        with pytest.raises(errors.EngineError) as exc_info:
            engine_mod.DuckDBEngine().execute(query, _sample_table())

        assert "rank" in exc_info.value.context
