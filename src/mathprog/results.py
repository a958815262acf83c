"""
Solve outcomes.

Engines report their outcome in their own vocabulary. Each adapter maps its
native codes to an ``EngineStatus``; ``canonical_status`` then turns that,
the presence of a solution and the objective into one ``ResultStatus``.
``Solution`` and ``Result`` are immutable once built.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Hashable, Mapping, Optional

from .data_models import Constraint, Objective, Variable
from .errors import SolverStateError, UnknownEntityError
from .modeling import ImmutableMP
from .parameters import SolverParameters, TimingType
from .utils import evaluate, is_cpu_timing_supported, solution_to_string

logger = logging.getLogger(__name__)

BOOLEAN_TOLERANCE = 1e-6


class ResultStatus(Enum):
    OPTIMAL = "optimal"
    # A solution exists, but there was no objective to optimize or the
    # engine could not tell it is optimal.
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"
    INFEASIBLE_OR_UNBOUNDED = "infeasible_or_unbounded"
    UNBOUNDED = "unbounded"
    TIME_LIMIT_REACHED_WITH_SOLUTION = "time_limit_with_solution"
    TIME_LIMIT_REACHED_NO_SOLUTION = "time_limit_no_solution"
    MEMORY_LIMIT_REACHED_WITH_SOLUTION = "memory_limit_with_solution"
    MEMORY_LIMIT_REACHED_NO_SOLUTION = "memory_limit_no_solution"
    ERROR_WITH_SOLUTION = "error_with_solution"
    ERROR_NO_SOLUTION = "error_no_solution"

    def found_feasible(self) -> bool:
        """
        Whether a feasible solution has been found.

        False for UNBOUNDED although feasible solutions then exist: none is
        attached to the result.
        """
        return self in _FEASIBLE_STATUSES


_FEASIBLE_STATUSES = frozenset({
    ResultStatus.OPTIMAL,
    ResultStatus.FEASIBLE,
    ResultStatus.TIME_LIMIT_REACHED_WITH_SOLUTION,
    ResultStatus.MEMORY_LIMIT_REACHED_WITH_SOLUTION,
    ResultStatus.ERROR_WITH_SOLUTION,
})


class EngineStatus(Enum):
    """Engine-independent meaning of a native engine status code."""

    OPTIMAL = "optimal"
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"
    INFEASIBLE_OR_UNBOUNDED = "infeasible_or_unbounded"
    UNBOUNDED = "unbounded"
    TIME_LIMIT = "time_limit"
    MEMORY_LIMIT = "memory_limit"
    ERROR = "error"


def canonical_status(
    native_status: Hashable,
    status_table: Mapping[Hashable, EngineStatus],
    has_solution: bool,
    objective: Objective,
) -> ResultStatus:
    """
    Map an engine outcome to the shared status taxonomy.

    Args:
        native_status: status code as returned by the engine
        status_table: meaning of the native codes the adapter knows about;
            unknown codes are treated as errors
        has_solution: whether the adapter obtained a value for every variable
        objective: objective of the program that was solved

    Returns:
        The canonical status
    """
    engine_status = status_table.get(native_status, EngineStatus.ERROR)
    if native_status not in status_table:
        logger.warning(f"Unknown engine status {native_status!r}, reported as an error")

    if engine_status is EngineStatus.OPTIMAL:
        if not has_solution:
            logger.warning(f"Engine status {native_status!r} claims optimality but gave no solution")
            return ResultStatus.ERROR_NO_SOLUTION
        return ResultStatus.OPTIMAL if objective.is_complete() else ResultStatus.FEASIBLE
    if engine_status is EngineStatus.FEASIBLE:
        return ResultStatus.FEASIBLE if has_solution else ResultStatus.ERROR_NO_SOLUTION
    if engine_status is EngineStatus.INFEASIBLE:
        return ResultStatus.INFEASIBLE
    if engine_status is EngineStatus.INFEASIBLE_OR_UNBOUNDED:
        return ResultStatus.INFEASIBLE_OR_UNBOUNDED
    if engine_status is EngineStatus.UNBOUNDED:
        return ResultStatus.UNBOUNDED
    if engine_status is EngineStatus.TIME_LIMIT:
        return (ResultStatus.TIME_LIMIT_REACHED_WITH_SOLUTION if has_solution
                else ResultStatus.TIME_LIMIT_REACHED_NO_SOLUTION)
    if engine_status is EngineStatus.MEMORY_LIMIT:
        return (ResultStatus.MEMORY_LIMIT_REACHED_WITH_SOLUTION if has_solution
                else ResultStatus.MEMORY_LIMIT_REACHED_NO_SOLUTION)
    return ResultStatus.ERROR_WITH_SOLUTION if has_solution else ResultStatus.ERROR_NO_SOLUTION


def _non_negative_or_none(value: Optional[float], what: str) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"{what} must be a non-negative duration, got {value}")
    return value


@dataclass(frozen=True)
class SolverDuration:
    """
    Measured durations of a solve, in seconds.

    Attributes:
        wall_seconds: elapsed wall-clock time around the engine call
        cpu_seconds: CPU time of the calling thread, if measurable
        solver_wall_seconds: wall time reported by the engine itself, if any
        solver_cpu_seconds: CPU time reported by the engine itself, if any
    """

    wall_seconds: float
    cpu_seconds: Optional[float] = None
    solver_wall_seconds: Optional[float] = None
    solver_cpu_seconds: Optional[float] = None

    def __post_init__(self):
        if self.wall_seconds is None:
            raise ValueError("Wall duration is required")
        for name in ('wall_seconds', 'cpu_seconds', 'solver_wall_seconds', 'solver_cpu_seconds'):
            object.__setattr__(self, name, _non_negative_or_none(getattr(self, name), name))

    def get(self, timing_type: TimingType) -> Optional[float]:
        if timing_type is TimingType.WALL_TIMING:
            return self.wall_seconds
        return self.cpu_seconds

    def __str__(self) -> str:
        cpu = "n/a" if self.cpu_seconds is None else f"{self.cpu_seconds:.3f}s"
        return f"wall {self.wall_seconds:.3f}s, cpu {cpu}"


class TimingHelper:
    """
    Measures a solve.

    Call ``start`` right before and ``stop`` right after the engine call; the
    engine's own timings, when it reports some, are recorded with
    ``set_solver_duration``.
    """

    def __init__(self) -> None:
        self._cpu_supported = is_cpu_timing_supported()
        self._wall_start: Optional[float] = None
        self._wall_end: Optional[float] = None
        self._cpu_start: Optional[float] = None
        self._cpu_end: Optional[float] = None
        self._solver_durations: Dict[TimingType, float] = {}

    def is_cpu_timing_supported(self) -> bool:
        return self._cpu_supported

    def start(self) -> None:
        self._wall_end = None
        self._cpu_end = None
        self._solver_durations.clear()
        self._cpu_start = time.thread_time() if self._cpu_supported else None
        self._wall_start = time.perf_counter()

    def stop(self) -> None:
        if self._wall_start is None:
            raise SolverStateError("Timing stopped before being started")
        self._wall_end = time.perf_counter()
        self._cpu_end = time.thread_time() if self._cpu_supported else None

    def set_solver_duration(self, timing_type: TimingType, seconds: float) -> None:
        self._solver_durations[timing_type] = seconds

    def get_duration(self) -> SolverDuration:
        if self._wall_end is None:
            raise SolverStateError("Timing has not been stopped, no duration available")
        cpu = None
        if self._cpu_start is not None and self._cpu_end is not None:
            cpu = max(0.0, self._cpu_end - self._cpu_start)
        return SolverDuration(
            wall_seconds=max(0.0, self._wall_end - self._wall_start),
            cpu_seconds=cpu,
            solver_wall_seconds=self._solver_durations.get(TimingType.WALL_TIMING),
            solver_cpu_seconds=self._solver_durations.get(TimingType.CPU_TIMING),
        )


class Solution:
    """
    Values found for a program.

    The solution holds its own snapshot of the program, and gives a value
    to exactly the variables of that program.

    Args:
        problem: the program solved (copied)
        objective_value: objective value reported by the engine
        values: value of every variable of the program
        dual_values: dual value of some constraints of the program, if known
    """

    __slots__ = ('_problem', '_objective_value', '_values', '_dual_values')

    def __init__(
        self,
        problem,
        objective_value: float,
        values: Mapping[Variable, float],
        dual_values: Optional[Mapping[Constraint, float]] = None,
    ) -> None:
        snapshot = ImmutableMP.copy_of(problem)
        objective_value = float(objective_value)
        if not math.isfinite(objective_value):
            raise ValueError(f"Objective value must be finite, got {objective_value}")

        expected = set(snapshot.variables)
        given = set(values)
        if expected != given:
            missing = [v.description for v in expected - given]
            extra = [v.description for v in given - expected]
            raise ValueError(
                f"Solution values do not match the variables of '{snapshot.name}': "
                f"missing {missing}, unknown {extra}"
            )
        ordered: Dict[Variable, float] = {}
        for variable in snapshot.variables:
            value = float(values[variable])
            if not math.isfinite(value):
                raise ValueError(f"Value of {variable.description} must be finite, got {value}")
            ordered[variable] = value

        duals: Dict[Constraint, float] = {}
        if dual_values:
            known = set(snapshot.constraints)
            for constraint, value in dual_values.items():
                if constraint not in known:
                    raise UnknownEntityError(
                        f"Dual value given for {constraint} which is not in '{snapshot.name}'", constraint
                    )
                duals[constraint] = float(value)

        self._problem = snapshot
        self._objective_value = objective_value
        self._values = MappingProxyType(ordered)
        self._dual_values = MappingProxyType(duals)

    @property
    def problem(self) -> ImmutableMP:
        return self._problem

    @property
    def objective_value(self) -> float:
        return self._objective_value

    @property
    def values(self) -> Mapping[Variable, float]:
        return self._values

    @property
    def dual_values(self) -> Mapping[Constraint, float]:
        return self._dual_values

    def get_value(self, variable: Variable) -> float:
        try:
            return self._values[variable]
        except KeyError:
            raise UnknownEntityError(f"Variable {variable!r} has no value in this solution", variable) from None

    def get_boolean_value(self, variable: Variable) -> bool:
        value = self.get_value(variable)
        if abs(value) < BOOLEAN_TOLERANCE:
            return False
        if abs(value - 1.0) < BOOLEAN_TOLERANCE:
            return True
        raise ValueError(f"Variable {variable.description} has a non boolean value: {value}")

    def get_dual_value(self, constraint: Constraint) -> Optional[float]:
        return self._dual_values.get(constraint)

    def computed_objective_value(self) -> float:
        """Objective function evaluated at the solution values."""
        return evaluate(self._problem.objective.function, self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Solution):
            return NotImplemented
        return (self._problem == other._problem
                and self._objective_value == other._objective_value
                and self._values == other._values
                and self._dual_values == other._dual_values)

    def __hash__(self) -> int:
        return hash((self._problem, self._objective_value, frozenset(self._values.items())))

    def __str__(self) -> str:
        return solution_to_string(dict(self._values), self._objective_value)

    def __repr__(self) -> str:
        return (f"Solution(problem={self._problem}, objective_value={self._objective_value}, "
                f"values={len(self._values)})")


class Result:
    """
    Outcome of one solve: status, durations, parameters used and, when a
    feasible solution was found, that solution.

    Use ``Result.with_solution`` or ``Result.no_solution``.
    """

    __slots__ = ('_status', '_duration', '_parameters', '_solution')

    def __init__(
        self,
        status: ResultStatus,
        duration: SolverDuration,
        parameters: SolverParameters,
        solution: Optional[Solution] = None,
    ) -> None:
        if not isinstance(status, ResultStatus):
            raise TypeError(f"ResultStatus expected, got {status!r}")
        if not isinstance(duration, SolverDuration):
            raise TypeError(f"SolverDuration expected, got {duration!r}")
        if status.found_feasible() and solution is None:
            raise ValueError(f"Status {status.name} requires a solution")
        if not status.found_feasible() and solution is not None:
            raise ValueError(f"Status {status.name} does not allow a solution")
        self._status = status
        self._duration = duration
        self._parameters = SolverParameters(parameters)
        self._solution = solution

    @classmethod
    def with_solution(
        cls, status: ResultStatus, duration: SolverDuration, parameters: SolverParameters, solution: Solution
    ) -> "Result":
        return cls(status, duration, parameters, solution)

    @classmethod
    def no_solution(cls, status: ResultStatus, duration: SolverDuration, parameters: SolverParameters) -> "Result":
        return cls(status, duration, parameters, None)

    @property
    def status(self) -> ResultStatus:
        return self._status

    @property
    def duration(self) -> SolverDuration:
        return self._duration

    @property
    def parameters(self) -> SolverParameters:
        """Copy of the parameters used for the solve."""
        return SolverParameters(self._parameters)

    @property
    def solution(self) -> Optional[Solution]:
        return self._solution

    def found_feasible(self) -> bool:
        return self._status.found_feasible()

    def __repr__(self) -> str:
        parts = [f"status={self._status.name}", f"duration={self._duration}", f"parameters={self._parameters!r}"]
        if self._solution is not None:
            parts.append(f"solution={self._solution!r}")
        return f"Result({', '.join(parts)})"

    def to_dict(self) -> Dict[str, Any]:
        """Plain summary, in the shape the benchmark scripts print."""
        summary: Dict[str, Any] = {
            "status": self._status.value,
            "wall_seconds": self._duration.wall_seconds,
            "cpu_seconds": self._duration.cpu_seconds,
            "objective": None,
            "solution": None,
        }
        if self._solution is not None:
            summary["objective"] = self._solution.objective_value
            summary["solution"] = {v.description: x for v, x in self._solution.values.items()}
        return summary
