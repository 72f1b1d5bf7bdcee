"""Python 3.14+ compatibility workarounds.

Applied once at package import time (from ``__init__.py``), before the
compiler first renders SQL.

sqlglot workaround
------------------
Rendering SQL through ``ibis.to_sql`` imports ibis's sqlglot-based
compilers. One of them builds ``Literal.number("binary_double_nan")`` at
class-definition time, and the stricter ``decimal`` module of Python 3.14+
raises ``InvalidOperation`` for it, leaving the compiler package unusable.

On those interpreters the ``InvalidOperation`` trap is disabled for the
importing thread's decimal context. Older interpreters are left untouched,
so amount parsing keeps its usual decimal behaviour there.
"""

from __future__ import annotations

import decimal as _decimal
import sys as _sys

if _sys.version_info >= (3, 14):
    _decimal.getcontext().traps[_decimal.InvalidOperation] = False
