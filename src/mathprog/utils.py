"""
Utility functions shared by the solver adapters and writers.
"""

import math
import time
from typing import Dict, Mapping, Optional, Tuple

from .data_models import Bounds, SumTerms, Variable, VariableKind

# Value engines receive in place of an infinite bound.
ENGINE_INFINITY = 1e30


def is_cpu_timing_supported() -> bool:
    """
    Tell whether the CPU time of the current thread can be measured.

    Returns:
        True if ``time.thread_time`` exists and works on this platform
    """
    if not hasattr(time, "thread_time"):
        return False
    try:
        time.thread_time()
    except OSError:
        return False
    return True


def evaluate(sum_terms: SumTerms, values: Mapping[Variable, float]) -> float:
    """
    Evaluate a linear expression.

    Args:
        sum_terms: the expression
        values: value of every variable used in the expression

    Returns:
        Value of the expression
    """
    total = 0.0
    for term in sum_terms:
        total += term.coefficient * values[term.variable]
    return total


def get_bounds_bounded(bounds: Bounds, infinity: float = ENGINE_INFINITY) -> Tuple[float, float]:
    """Bounds with infinite endpoints replaced by ``±infinity``."""
    lower = bounds.lower if bounds.has_lower else -infinity
    upper = bounds.upper if bounds.has_upper else infinity
    return lower, upper


def format_value(value: Optional[float], decimals: int = 3) -> str:
    if value is None:
        return "null"
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    return f"{value:,.{decimals}f}"


def solution_to_string(values: Dict[Variable, float], objective_value: Optional[float]) -> str:
    lines = []
    for variable, value in values.items():
        kind = variable.kind
        if kind is VariableKind.BOOL:
            lines.append(f"{variable.description} BOOL: {value:g}")
        elif kind is VariableKind.INT:
            lines.append(f"{variable.description} ∈ {variable.bounds} ∩ ℤ: {value:g}")
        else:
            lines.append(f"{variable.description} ∈ {variable.bounds}: {value:g}")
    lines.append(f"Objective value: {objective_value}")
    return "\n".join(lines)
