"""
Health evaluation: raw samples -> flags -> weighted severity.

Public API::

    from statuscore.health import (
        Comparison,
        evaluate_flag,
        parse_expression,
        normalize_flag_name,
    )

The severity engine lives in ``statuscore.health.engine`` and the
time-series evaluator in ``statuscore.health.evaluator``.
"""

from statuscore.health.expression import (
    CompiledExpression,
    normalize_flag_name,
    parse_expression,
)
from statuscore.health.flags import Comparison, evaluate_flag

__all__ = [
    "Comparison",
    "evaluate_flag",
    "CompiledExpression",
    "parse_expression",
    "normalize_flag_name",
]
