"""
Flag evaluation: raw metric sample + (operator, threshold) -> bool.

A missing sample is never a positive signal, so ``None`` yields ``False``
for every operator.  ``eq`` compares exactly; upstream values are counts
or percentages, so no tolerance is applied.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Comparison(str, Enum):
    """Comparison applied between a sample and its threshold."""

    LESS_THAN = "lt"
    GREATER_THAN = "gt"
    EQUAL = "eq"

    @property
    def symbol(self) -> str:
        return {"lt": "<", "gt": ">", "eq": "=="}[self.value]


def evaluate_flag(
    sample: Optional[float],
    operator: Comparison,
    threshold: float,
) -> bool:
    """Return the flag state of ``sample`` compared against ``threshold``."""
    if sample is None:
        return False
    if operator is Comparison.LESS_THAN:
        return sample < threshold
    if operator is Comparison.GREATER_THAN:
        return sample > threshold
    return sample == threshold
