from . import _compat as _compat  # noqa: F401  -- Python 3.14 sqlglot workaround

from .models import Account, AmountPolicy, Branch, ChannelType, Customer, PeriodGrain, Transaction
from .store import EntityStore
from .join import JoinMode, resolve_facts
from .operators import (
    group_totals,
    lag_difference,
    moving_average,
    ntile,
    partitioned_rank,
    quartiles,
    running_aggregate,
    share_of_partition,
)
from .engine import DuckDBEngine
from .reports import AnalyticsReport, ReportAssembler
from .settings import AnalyticsSettings, load_settings

__version__ = "0.1.0"

__all__ = [
    # models
    "Branch",
    "Customer",
    "Account",
    "Transaction",
    "ChannelType",
    "AmountPolicy",
    "PeriodGrain",
    # store + join
    "EntityStore",
    "JoinMode",
    "resolve_facts",
    # operators
    "group_totals",
    "partitioned_rank",
    "running_aggregate",
    "lag_difference",
    "moving_average",
    "ntile",
    "quartiles",
    "share_of_partition",
    # execution
    "DuckDBEngine",
    # reports
    "ReportAssembler",
    "AnalyticsReport",
    # configuration
    "AnalyticsSettings",
    "load_settings",
]
