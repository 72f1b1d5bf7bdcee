"""Arrow schemas for transaction-facts and report outputs.

PyArrow is the interchange format between the join resolver, the
operators, and the report assembler.
"""

from __future__ import annotations

import pyarrow as pa

ArrowTable = pa.Table
ArrowSchema = pa.Schema

Int64 = pa.int64()
Float64 = pa.float64()
String = pa.string()
Date = pa.date32()
Amount = pa.decimal128(18, 2)
# DuckDB widens SUM over DECIMAL(18, 2) to DECIMAL(38, 2)
Total = pa.decimal128(38, 2)

# Hidden tie-break column appended by the engine before execution
ORDINAL_COLUMN = "_ordinal"

FACT_SCHEMA = pa.schema(
    [
        pa.field("transaction_id", Int64),
        pa.field("amount", Amount),
        pa.field("transaction_date", Date),
        pa.field("channel_type", String),
        pa.field("account_id", Int64),
        pa.field("account_type", String),
        pa.field("customer_id", Int64),
        pa.field("customer_name", String),
        pa.field("registration_date", Date),
        pa.field("branch_id", Int64),
        pa.field("branch_name", String),
        pa.field("region", String),
    ]
)

TOP_CUSTOMERS_SCHEMA = pa.schema(
    [
        pa.field("branch_name", String),
        pa.field("customer_name", String),
        pa.field("total_amount", Total),
        pa.field("rank", Int64),
    ]
)

RUNNING_TOTALS_SCHEMA = pa.schema(
    [
        pa.field("branch_name", String),
        pa.field("month", Date),
        pa.field("monthly_total", Total),
        pa.field("running_total", Total),
    ]
)

GROWTH_SCHEMA = pa.schema(
    [
        pa.field("branch_name", String),
        pa.field("month", Date),
        pa.field("monthly_total", Total),
        pa.field("monthly_growth", Total),
    ]
)

QUARTILE_SCHEMA = pa.schema(
    [
        pa.field("customer_name", String),
        pa.field("total_amount", Total),
        pa.field("quartile", Int64),
    ]
)

MOVING_AVERAGE_SCHEMA = pa.schema(
    [
        pa.field("branch_name", String),
        pa.field("month", Date),
        pa.field("monthly_total", Total),
        pa.field("moving_avg", Float64),
    ]
)

INACTIVE_CUSTOMERS_SCHEMA = pa.schema(
    [
        pa.field("customer_name", String),
        pa.field("branch_name", String),
        pa.field("registration_date", Date),
    ]
)

CHANNEL_MIX_SCHEMA = pa.schema(
    [
        pa.field("branch_name", String),
        pa.field("channel_type", String),
        pa.field("transaction_count", Int64),
        pa.field("total_amount", Total),
        pa.field("share_of_branch", Float64),
    ]
)
