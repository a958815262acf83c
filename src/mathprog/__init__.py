"""
Mathematical Programming Package

This package provides an engine-independent model of linear and mixed
integer programs, and a uniform way of solving them with external engines.

Modules:
    data_models: Variables, terms, constraints and objectives
    modeling: Program builder (MP) and program views
    parameters: Typed solver parameters and timing resolution
    naming: Name resolution for variables and constraints
    results: Status canonicalization, solutions and results
    solvers: Solver facade and engine adapters (scipy, gurobi)
    writers: CPLEX LP format export

Main Exports:
    From modeling:
        - MP: Main class for program construction
        - ImmutableMP: Snapshot of a program
    From solvers:
        - solve: Main solver entry point
        - SolverError: Solver exception class
"""

from .data_models import (
    Bounds,
    ComparisonOperator,
    Constraint,
    Objective,
    Sense,
    SumTerms,
    Term,
    Variable,
    VariableDomain,
    VariableKind,
    kind_of,
)
from .errors import (
    ConfigurationConflictError,
    EngineFailureError,
    SolverError,
    SolverStateError,
    UnknownEntityError,
    UnsupportedFeatureError,
)
from .modeling import (
    MP,
    Dimension,
    ImmutableMP,
    MPReadView,
    MPWithTransformedBoolsView,
)
from .naming import (
    FileFormat,
    resolve_constraint_name,
    resolve_variable_name,
)
from .parameters import (
    DoubleParameter,
    IntParameter,
    ObjectParameter,
    SolverParameters,
    StringParameter,
    TimingType,
    get_preferred_timing_type,
)
from .results import (
    Result,
    ResultStatus,
    Solution,
    SolverDuration,
    canonical_status,
)
from .solvers import (
    SOLVER_REGISTRY,
    GurobiSolver,
    ScipySolver,
    Solver,
    create_solver,
    solve,
)
from .writers import write_lp

__version__ = "1.0.0"

__all__ = [
    # Data models
    'Bounds',
    'ComparisonOperator',
    'Constraint',
    'Objective',
    'Sense',
    'SumTerms',
    'Term',
    'Variable',
    'VariableDomain',
    'VariableKind',
    'kind_of',
    # Errors
    'ConfigurationConflictError',
    'EngineFailureError',
    'SolverError',
    'SolverStateError',
    'UnknownEntityError',
    'UnsupportedFeatureError',
    # Modeling
    'MP',
    'Dimension',
    'ImmutableMP',
    'MPReadView',
    'MPWithTransformedBoolsView',
    # Naming
    'FileFormat',
    'resolve_constraint_name',
    'resolve_variable_name',
    # Parameters
    'DoubleParameter',
    'IntParameter',
    'ObjectParameter',
    'SolverParameters',
    'StringParameter',
    'TimingType',
    'get_preferred_timing_type',
    # Results
    'Result',
    'ResultStatus',
    'Solution',
    'SolverDuration',
    'canonical_status',
    # Solvers
    'SOLVER_REGISTRY',
    'GurobiSolver',
    'ScipySolver',
    'Solver',
    'create_solver',
    'solve',
    # Writers
    'write_lp',
]
