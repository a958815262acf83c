"""
Solver facade and engine adapters.

A ``Solver`` takes a snapshot of a program and a copy of the parameters,
hands them to an engine, and turns the engine answer into a ``Result``.
Adapters only implement ``_build_underlying`` and ``_solve_underlying``;
status canonicalization, timing and result assembly are shared.

Available engines:
    - scipy: HiGHS through ``scipy.optimize.milp`` (``linprog`` for pure LPs,
      which also gives dual values)
    - gurobi: Gurobi through gurobipy, when installed
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Mapping, Optional, Type

import numpy as np
from scipy.optimize import Bounds as ScipyBounds
from scipy.optimize import LinearConstraint, linprog, milp

from .data_models import ComparisonOperator, Constraint, Sense, Variable, VariableKind
from .errors import EngineFailureError, SolverError, SolverStateError, UnsupportedFeatureError
from .modeling import ImmutableMP
from .naming import FileFormat, resolve_constraint_name, resolve_variable_name
from .parameters import (
    DoubleParameter,
    IntParameter,
    SolverParameters,
    StringParameter,
    TimingType,
    get_preferred_timing_type,
    get_time_limit,
)
from .results import EngineStatus, Result, Solution, TimingHelper, canonical_status
from .utils import evaluate, get_bounds_bounded

logger = logging.getLogger(__name__)


@dataclass
class EngineOutcome:
    """
    Raw answer of an engine, before canonicalization.

    Attributes:
        native_status: status code in the engine's vocabulary
        values: value of every variable, or None when the engine has no solution
        objective_value: objective value reported by the engine, if any
        dual_values: dual value per constraint, when the engine provides them
        solver_wall_seconds: run time reported by the engine, if any
        message: engine message, for logging
    """

    native_status: Hashable
    values: Optional[Dict[Variable, float]] = None
    objective_value: Optional[float] = None
    dual_values: Dict[Constraint, float] = field(default_factory=dict)
    solver_wall_seconds: Optional[float] = None
    message: str = ""


class Solver:
    """
    Base class of the engine adapters.

    Args:
        problem: program to solve; a snapshot is taken
        parameters: parameters to use; a copy is taken
    """

    name = "abstract"

    def __init__(self, problem=None, parameters: Optional[SolverParameters] = None) -> None:
        self._problem: Optional[ImmutableMP] = None
        self._parameters = SolverParameters()
        self._result: Optional[Result] = None
        self._underlying: Any = None
        if problem is not None:
            self.set_problem(problem)
        if parameters is not None:
            self.set_parameters(parameters)

    # ----- configuration -----

    @property
    def problem(self) -> Optional[ImmutableMP]:
        return self._problem

    @property
    def parameters(self) -> SolverParameters:
        return SolverParameters(self._parameters)

    def _check_not_handed_over(self) -> None:
        if self._underlying is not None:
            raise SolverStateError(
                f"The {self.name} engine has been handed over with get_underlying_solver(); "
                f"configure it directly"
            )

    def set_problem(self, problem) -> None:
        self._check_not_handed_over()
        self._problem = ImmutableMP.copy_of(problem)
        self._result = None

    def set_parameters(self, parameters: SolverParameters) -> None:
        self._check_not_handed_over()
        self._parameters.set_parameters(parameters)

    def get_preferred_timing_type(self) -> TimingType:
        return get_preferred_timing_type(self._parameters)

    def get_variable_name(self, variable: Variable, file_format: Optional[FileFormat] = None) -> str:
        return resolve_variable_name(self._require_problem(), variable, self._parameters, file_format)

    def get_constraint_name(self, constraint: Constraint, file_format: Optional[FileFormat] = None) -> str:
        return resolve_constraint_name(self._require_problem(), constraint, self._parameters, file_format)

    def _require_problem(self) -> ImmutableMP:
        if self._problem is None:
            raise SolverStateError(f"No problem has been set on the {self.name} solver")
        return self._problem

    # ----- solving -----

    def status_table(self) -> Mapping[Hashable, EngineStatus]:
        raise NotImplementedError

    def _build_underlying(self, problem: ImmutableMP, parameters: SolverParameters,
                          time_limit: Optional[float]) -> Any:
        raise NotImplementedError

    def _solve_underlying(self, problem: ImmutableMP, parameters: SolverParameters,
                          time_limit: Optional[float], timing: TimingHelper) -> EngineOutcome:
        """Run the engine; ``timing.start()``/``timing.stop()`` must bracket the engine call."""
        raise NotImplementedError

    def solve(self) -> Result:
        """
        Solve the current problem with the current parameters.

        Returns:
            The result, also available afterwards through ``get_result``

        Raises:
            SolverStateError: no problem has been set
            ConfigurationConflictError: both time limits are set
            UnsupportedFeatureError: a CPU limit is set but CPU time cannot be measured
            EngineFailureError: the engine raised
        """
        problem = self._require_problem()
        parameters = SolverParameters(self._parameters)
        self._result = None
        timing_type = get_preferred_timing_type(parameters)
        time_limit = get_time_limit(parameters, timing_type)
        if time_limit is not None and timing_type is TimingType.CPU_TIMING:
            logger.debug(f"{self.name} only limits wall time, using the CPU limit {time_limit}s as wall limit")

        logger.info(f"Solving {problem} with {self.name}, {problem.get_dimension()}")
        timing = TimingHelper()
        try:
            outcome = self._solve_underlying(problem, parameters, time_limit, timing)
        except SolverError:
            raise
        except Exception as exc:
            raise EngineFailureError(f"{self.name} failed solving '{problem.name}': {exc}", self.name) from exc
        if outcome.solver_wall_seconds is not None:
            timing.set_solver_duration(TimingType.WALL_TIMING, outcome.solver_wall_seconds)

        self._result = self._make_result(problem, parameters, outcome, timing)
        logger.info(f"{self.name} finished with status {self._result.status.name} "
                    f"in {self._result.duration}")
        return self._result

    def _make_result(self, problem: ImmutableMP, parameters: SolverParameters,
                     outcome: EngineOutcome, timing: TimingHelper) -> Result:
        has_solution = outcome.values is not None
        status = canonical_status(outcome.native_status, self.status_table(), has_solution, problem.objective)
        if outcome.message:
            logger.debug(f"{self.name} status {outcome.native_status!r}: {outcome.message}")
        duration = timing.get_duration()
        if not status.found_feasible():
            return Result.no_solution(status, duration, parameters)

        objective_value = outcome.objective_value
        if objective_value is None:
            objective_value = evaluate(problem.objective.function, outcome.values)
        solution = Solution(problem, objective_value, outcome.values, outcome.dual_values)
        return Result.with_solution(status, duration, parameters, solution)

    def get_result(self) -> Result:
        """
        Result of the last solve.

        Raises:
            SolverStateError: nothing has been solved since the problem was set
        """
        if self._result is None:
            raise SolverStateError(f"The {self.name} solver has no result, call solve() first")
        assert not self._result.status.found_feasible() or self._result.solution is not None
        return self._result

    def get_underlying_solver(self) -> Any:
        """
        Hand the engine model over to the caller.

        The model is built for the current problem and parameters. Afterwards
        ``set_problem`` and ``set_parameters`` are refused: the caller owns
        the engine configuration.
        """
        if self._underlying is None:
            problem = self._require_problem()
            timing_type = get_preferred_timing_type(self._parameters)
            self._underlying = self._build_underlying(
                problem, self._parameters, get_time_limit(self._parameters, timing_type)
            )
            logger.debug(f"{self.name} engine handed over for '{problem.name}'")
        return self._underlying

    def __repr__(self) -> str:
        return f"{type(self).__name__}(problem={self._problem}, parameters={self._parameters!r})"


# ---------------------------------------------------------------------------
# scipy / HiGHS
# ---------------------------------------------------------------------------

# Same codes for milp and linprog(method="highs"). Codes 1 and 4 are shared by
# several HiGHS outcomes; scipy_native_status tells them apart.
SCIPY_STATUS_TABLE: Mapping[Hashable, EngineStatus] = {
    0: EngineStatus.OPTIMAL,
    1: EngineStatus.TIME_LIMIT,
    2: EngineStatus.INFEASIBLE,
    3: EngineStatus.UNBOUNDED,
    4: EngineStatus.ERROR,
    "iteration_limit": EngineStatus.ERROR,
    "infeasible_or_unbounded": EngineStatus.INFEASIBLE_OR_UNBOUNDED,
}


def scipy_native_status(res) -> Hashable:
    """
    Status code of a scipy HiGHS answer, refined from its message.

    Returns:
        The integer ``res.status``, or ``"iteration_limit"`` /
        ``"infeasible_or_unbounded"`` when the message identifies one of those
        outcomes behind codes 1 and 4
    """
    status = int(res.status)
    message = str(getattr(res, "message", "")).lower()
    if status == 1 and "iteration limit" in message:
        return "iteration_limit"
    if status == 4 and "unbounded or infeasible" in message:
        return "infeasible_or_unbounded"
    return status


@dataclass
class ScipyModel:
    """
    Matrix form of a program, as passed to scipy.

    The objective is always minimized: ``objective_sign`` is -1 for
    maximization problems, whose costs are negated.
    """

    variables: List[Variable]
    constraints: List[Constraint]
    c: np.ndarray
    A: np.ndarray
    row_lower: np.ndarray
    row_upper: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    integrality: np.ndarray
    objective_sign: float
    options: Dict[str, Any]

    @property
    def is_mip(self) -> bool:
        return bool(self.integrality.any())


class ScipySolver(Solver):
    """
    HiGHS through scipy.

    Threads, work directory, memory and tree size limits have no scipy
    counterpart and are ignored. Duals are only available for pure LPs.
    """

    name = "scipy"

    def status_table(self) -> Mapping[Hashable, EngineStatus]:
        return SCIPY_STATUS_TABLE

    def _build_underlying(self, problem: ImmutableMP, parameters: SolverParameters,
                          time_limit: Optional[float]) -> ScipyModel:
        variables = list(problem.variables)
        constraints = list(problem.constraints)
        index = {variable: i for i, variable in enumerate(variables)}
        n, m = len(variables), len(constraints)

        sign = -1.0 if problem.objective.sense is Sense.MAX else 1.0
        c = np.zeros(n)
        for term in problem.objective.function:
            c[index[term.variable]] += sign * term.coefficient

        A = np.zeros((m, n))
        row_lower = np.full(m, -np.inf)
        row_upper = np.full(m, np.inf)
        for row, constraint in enumerate(constraints):
            for term in constraint.lhs:
                A[row, index[term.variable]] += term.coefficient
            if constraint.operator is not ComparisonOperator.GE:
                row_upper[row] = constraint.rhs
            if constraint.operator is not ComparisonOperator.LE:
                row_lower[row] = constraint.rhs

        lower = np.array([v.bounds.lower for v in variables], dtype=float)
        upper = np.array([v.bounds.upper for v in variables], dtype=float)
        integrality = np.array([1 if v.kind.is_int else 0 for v in variables], dtype=int)

        options: Dict[str, Any] = {"disp": False}
        if time_limit is not None:
            options["time_limit"] = time_limit
        for ignored in (IntParameter.MAX_THREADS, StringParameter.WORK_DIR,
                        DoubleParameter.MAX_MEMORY_MB, DoubleParameter.MAX_TREE_SIZE_MB):
            if parameters.get_value(ignored) is not None:
                logger.debug(f"Parameter {ignored.name} is not supported by scipy, ignored")

        return ScipyModel(variables, constraints, c, A, row_lower, row_upper,
                          lower, upper, integrality, sign, options)

    def _solve_underlying(self, problem: ImmutableMP, parameters: SolverParameters,
                          time_limit: Optional[float], timing: TimingHelper) -> EngineOutcome:
        model = self._build_underlying(problem, parameters, time_limit)
        if not model.variables:
            timing.start()
            timing.stop()
            return EngineOutcome(0, values={}, objective_value=0.0, message="empty program")

        if model.is_mip:
            return self._solve_milp(model, timing)
        return self._solve_lp(model, timing)

    def _solve_milp(self, model: ScipyModel, timing: TimingHelper) -> EngineOutcome:
        constraints = None
        if model.constraints:
            constraints = LinearConstraint(model.A, model.row_lower, model.row_upper)
        timing.start()
        res = milp(
            c=model.c,
            integrality=model.integrality,
            bounds=ScipyBounds(model.lower, model.upper),
            constraints=constraints,
            options=model.options,
        )
        timing.stop()
        return self._outcome(model, res, {})

    def _solve_lp(self, model: ScipyModel, timing: TimingHelper) -> EngineOutcome:
        # linprog wants A_ub x <= b_ub and A_eq x = b_eq; GE rows are negated.
        ub_rows: List[int] = []
        ub_signs: List[float] = []
        eq_rows: List[int] = []
        for row, constraint in enumerate(model.constraints):
            if constraint.operator is ComparisonOperator.EQ:
                eq_rows.append(row)
            else:
                ub_rows.append(row)
                ub_signs.append(1.0 if constraint.operator is ComparisonOperator.LE else -1.0)
        signs = np.array(ub_signs)
        A_ub = b_ub = A_eq = b_eq = None
        if ub_rows:
            A_ub = model.A[ub_rows] * signs[:, None]
            b_ub = np.array([model.constraints[r].rhs for r in ub_rows]) * signs
        if eq_rows:
            A_eq = model.A[eq_rows]
            b_eq = np.array([model.constraints[r].rhs for r in eq_rows])

        timing.start()
        res = linprog(
            c=model.c,
            A_ub=A_ub,
            b_ub=b_ub,
            A_eq=A_eq,
            b_eq=b_eq,
            bounds=list(zip(model.lower, model.upper)),
            method="highs",
            options=model.options,
        )
        timing.stop()

        duals: Dict[Constraint, float] = {}
        if int(res.status) == 0:
            # marginals are derivatives of the minimized cost; undo both negations
            ineq = getattr(getattr(res, "ineqlin", None), "marginals", None)
            if ineq is not None:
                for row, row_sign, marginal in zip(ub_rows, ub_signs, ineq):
                    duals[model.constraints[row]] = float(marginal) * row_sign * model.objective_sign
            eq = getattr(getattr(res, "eqlin", None), "marginals", None)
            if eq is not None:
                for row, marginal in zip(eq_rows, eq):
                    duals[model.constraints[row]] = float(marginal) * model.objective_sign
        return self._outcome(model, res, duals)

    @staticmethod
    def _outcome(model: ScipyModel, res, duals: Dict[Constraint, float]) -> EngineOutcome:
        status = int(res.status)
        x = getattr(res, "x", None)
        values = None
        objective_value = None
        # only optimal and limit-reached answers carry a usable point
        if x is not None and status in (0, 1) and np.all(np.isfinite(x)):
            values = {variable: float(value) for variable, value in zip(model.variables, x)}
            if getattr(res, "fun", None) is not None:
                objective_value = model.objective_sign * float(res.fun)
        return EngineOutcome(
            native_status=scipy_native_status(res),
            values=values,
            objective_value=objective_value,
            dual_values=duals,
            message=str(getattr(res, "message", "")),
        )


# ---------------------------------------------------------------------------
# Gurobi
# ---------------------------------------------------------------------------

def _import_gurobipy():
    try:
        import gurobipy as gp
    except ImportError as exc:
        raise UnsupportedFeatureError("The gurobi solver needs gurobipy (pip install mathprog[gurobi])") from exc
    return gp


@dataclass
class GurobiModel:
    """A gurobipy model with the engine objects of each variable and constraint."""

    model: Any
    variables: Dict[Variable, Any]
    constraints: Dict[Constraint, Any]


class GurobiSolver(Solver):
    """Gurobi through gurobipy."""

    name = "gurobi"

    def status_table(self) -> Mapping[Hashable, EngineStatus]:
        GRB = _import_gurobipy().GRB
        return {
            GRB.OPTIMAL: EngineStatus.OPTIMAL,
            GRB.SUBOPTIMAL: EngineStatus.FEASIBLE,
            GRB.INFEASIBLE: EngineStatus.INFEASIBLE,
            GRB.INF_OR_UNBD: EngineStatus.INFEASIBLE_OR_UNBOUNDED,
            GRB.UNBOUNDED: EngineStatus.UNBOUNDED,
            GRB.TIME_LIMIT: EngineStatus.TIME_LIMIT,
            GRB.MEM_LIMIT: EngineStatus.MEMORY_LIMIT,
        }

    def _build_underlying(self, problem: ImmutableMP, parameters: SolverParameters,
                          time_limit: Optional[float]) -> GurobiModel:
        gp = _import_gurobipy()
        GRB = gp.GRB

        model = gp.Model(problem.name or "mathprog")
        model.setParam('OutputFlag', 0)
        model.setParam('LogFile', '')
        self._apply_parameters(model, parameters, time_limit)

        vtypes = {VariableKind.BOOL: GRB.BINARY, VariableKind.INT: GRB.INTEGER, VariableKind.REAL: GRB.CONTINUOUS}
        variables: Dict[Variable, Any] = {}
        for variable in problem.variables:
            lower, upper = get_bounds_bounded(variable.bounds, GRB.INFINITY)
            variables[variable] = model.addVar(
                lb=lower,
                ub=upper,
                vtype=vtypes[variable.kind],
                name=resolve_variable_name(problem, variable, parameters),
            )

        senses = {ComparisonOperator.LE: GRB.LESS_EQUAL, ComparisonOperator.EQ: GRB.EQUAL,
                  ComparisonOperator.GE: GRB.GREATER_EQUAL}
        constraints: Dict[Constraint, Any] = {}
        for constraint in problem.constraints:
            expr = gp.LinExpr([t.coefficient for t in constraint.lhs], [variables[t.variable] for t in constraint.lhs])
            constraints[constraint] = model.addLConstr(
                expr, senses[constraint.operator], constraint.rhs,
                name=resolve_constraint_name(problem, constraint, parameters),
            )

        objective = problem.objective
        if objective.is_complete():
            expr = gp.LinExpr([t.coefficient for t in objective.function],
                              [variables[t.variable] for t in objective.function])
            model.setObjective(expr, GRB.MAXIMIZE if objective.sense is Sense.MAX else GRB.MINIMIZE)

        model.update()
        logger.debug(f"Gurobi model built: {model.NumVars} variables, {model.NumConstrs} constraints")
        return GurobiModel(model, variables, constraints)

    @staticmethod
    def _apply_parameters(model, parameters: SolverParameters, time_limit: Optional[float]) -> None:
        if time_limit is not None:
            model.setParam('TimeLimit', time_limit)
        threads = parameters.get_value(IntParameter.MAX_THREADS)
        if threads is not None:
            model.setParam('Threads', threads)
        work_dir = parameters.get_value(StringParameter.WORK_DIR)
        if work_dir is not None:
            model.setParam('NodefileDir', work_dir)
        tree_size = parameters.get_value(DoubleParameter.MAX_TREE_SIZE_MB)
        if tree_size is not None:
            model.setParam('NodefileStart', tree_size / 1024.0)
        memory = parameters.get_value(DoubleParameter.MAX_MEMORY_MB)
        if memory is not None:
            model.setParam('MemLimit', memory / 1024.0)
        # Gurobi runs are reproducible by default, DETERMINISTIC needs no setting.

    def _solve_underlying(self, problem: ImmutableMP, parameters: SolverParameters,
                          time_limit: Optional[float], timing: TimingHelper) -> EngineOutcome:
        built = self._build_underlying(problem, parameters, time_limit)
        model = built.model
        timing.start()
        model.optimize()
        timing.stop()

        status = model.Status
        values = None
        objective_value = None
        duals: Dict[Constraint, float] = {}
        if model.SolCount > 0:
            values = {variable: float(gvar.X) for variable, gvar in built.variables.items()}
            objective_value = float(model.ObjVal)
            if not model.IsMIP and status == _import_gurobipy().GRB.OPTIMAL:
                duals = {constraint: float(gconstr.Pi) for constraint, gconstr in built.constraints.items()}
        return EngineOutcome(
            native_status=status,
            values=values,
            objective_value=objective_value,
            dual_values=duals,
            solver_wall_seconds=float(model.Runtime),
        )


SOLVER_REGISTRY: Dict[str, Type[Solver]] = {
    "scipy": ScipySolver,
    "gurobi": GurobiSolver,
}


def create_solver(name: str, problem=None, parameters: Optional[SolverParameters] = None) -> Solver:
    """
    Instantiate a registered solver.

    Raises:
        SolverError: no solver is registered under that name
    """
    try:
        solver_cls = SOLVER_REGISTRY[name]
    except KeyError:
        raise SolverError(f"Unknown solver '{name}', available: {sorted(SOLVER_REGISTRY)}") from None
    return solver_cls(problem, parameters)


def solve(problem, solver: str = "scipy", parameters: Optional[SolverParameters] = None) -> Result:
    """Solve a program with the named solver and return the result."""
    return create_solver(solver, problem, parameters).solve()

