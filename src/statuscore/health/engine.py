"""
Severity engine — weighted boolean expressions over flags.

A service's severity for one sample is the maximum weight among its
expressions that evaluate true, or ``0`` when none does or no flags are
available.  Weight-max is commutative, so the result depends only on the
flag map and the expression set, never on expression order.

An expression that references a flag absent from the supplied map makes
the whole evaluation fail with ``UnknownFlagError``: the caller must
treat the sample as indeterminate instead of assuming the flag is false.

Usage::

    from statuscore.health.engine import HealthExpression, compute_severity

    expressions = [
        HealthExpression.parse("api-slow", weight=1),
        HealthExpression.parse("api-down", weight=2),
    ]
    compute_severity({"api_slow": True, "api_down": False}, expressions).severity  # 1
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Optional

from statuscore.definitions.schema import ServiceHealthDefinition
from statuscore.errors import ConfigurationError, ExpressionSyntaxError
from statuscore.health.expression import (
    CompiledExpression,
    normalize_flag_name,
    parse_expression,
)

logger = logging.getLogger(__name__)

HEALTHY = 0


@dataclass(frozen=True)
class HealthExpression:
    """A compiled expression and the severity it signals when true."""

    expression: CompiledExpression
    weight: int

    @classmethod
    def parse(cls, expression: str, weight: int) -> "HealthExpression":
        return cls(parse_expression(expression), weight)

    @property
    def source(self) -> str:
        return self.expression.source


@dataclass(frozen=True)
class SeverityResult:
    """Outcome of evaluating one flag map."""

    severity: int
    matched_expression: Optional[str] = None


def compute_severity(
    flags: Mapping[str, bool],
    expressions: Sequence[HealthExpression],
) -> SeverityResult:
    """Return the maximum weight among the expressions that are true.

    ``flags`` may use hyphenated or underscored names.  When several true
    expressions share the maximum weight, the first declared one is
    reported as the match.

    Raises:
        UnknownFlagError: An expression references a flag missing from
            ``flags``.
    """
    if not flags:
        return SeverityResult(HEALTHY)

    normalized = {normalize_flag_name(name): value for name, value in flags.items()}

    best: Optional[HealthExpression] = None
    for expr in expressions:
        if not expr.expression.evaluate(normalized):
            continue
        if best is None or expr.weight > best.weight:
            best = expr

    if best is None:
        return SeverityResult(HEALTHY)
    return SeverityResult(best.weight, best.source)


# ---------------------------------------------------------------------------
# Compiled service health
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompiledServiceHealth:
    """A ``ServiceHealthDefinition`` with its expressions parsed."""

    key: str
    service: str
    category: str
    component_name: Optional[str]
    flags: tuple[str, ...]
    expressions: tuple[HealthExpression, ...]

    def compute(self, flags: Mapping[str, bool]) -> SeverityResult:
        return compute_severity(flags, self.expressions)


def compile_service_health(
    key: str,
    definition: ServiceHealthDefinition,
) -> CompiledServiceHealth:
    """Parse and cross-check the expressions of a health definition.

    Raises:
        ConfigurationError: An expression does not parse, or references a
            flag not declared in ``definition.metrics``.
    """
    declared = {normalize_flag_name(name) for name in definition.metrics}

    expressions = []
    for item in definition.expressions:
        try:
            compiled = HealthExpression.parse(item.expression, item.weight)
        except ExpressionSyntaxError as exc:
            raise ConfigurationError(
                f"Health definition {key!r} (service {definition.service!r}): {exc}"
            ) from exc

        undeclared = sorted(compiled.expression.references - declared)
        if undeclared:
            raise ConfigurationError(
                f"Health definition {key!r} (service {definition.service!r}): "
                f"expression {item.expression!r} references undeclared flags "
                f"{', '.join(undeclared)}"
            )
        expressions.append(compiled)

    logger.debug(
        "Compiled health definition %s: flags=%d, expressions=%d",
        key,
        len(definition.metrics),
        len(expressions),
    )
    return CompiledServiceHealth(
        key=key,
        service=definition.service,
        category=definition.category,
        component_name=definition.component_name,
        flags=tuple(definition.metrics),
        expressions=tuple(expressions),
    )
