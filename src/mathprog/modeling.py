"""
Program builder for mathematical programs.

``MP`` is the mutable aggregate: a name, an insertion-ordered set of
variables keyed by description, an insertion-ordered set of constraints, an
objective and two namers. Every variable used by a constraint or by the
objective is registered in the program when that constraint or objective is
added, so the program never refers to an unknown variable.

The view classes wrap a program by reference (``MPReadView``,
``MPForwarder``, ``MPWithTransformedBoolsView``) or own a deep copy of it
(``ImmutableMP``).
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple, Union

from .data_models import Bounds, Constraint, Objective, Sense, SumTerms, Variable, VariableKind
from .errors import UnknownEntityError
from .naming import (
    ConstraintNamer,
    VariableNamer,
    default_constraint_namer,
    default_variable_namer,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dimension:
    """
    Size of a program: variable counts per kind and number of constraints.

    Attributes:
        bools: number of BOOL variables
        ints: number of INT variables (integer domain, not boolean)
        reals: number of REAL variables
        constraints: number of constraints
    """

    bools: int = 0
    ints: int = 0
    reals: int = 0
    constraints: int = 0

    def __post_init__(self):
        for name in ('bools', 'ints', 'reals', 'constraints'):
            if getattr(self, name) < 0:
                raise ValueError(f"Dimension count '{name}' must be non-negative")

    @property
    def variables(self) -> int:
        return self.bools + self.ints + self.reals

    @property
    def integer_domains(self) -> int:
        return self.bools + self.ints

    def __str__(self) -> str:
        return (f"Dimension(bools={self.bools}, ints={self.ints}, reals={self.reals}, "
                f"constraints={self.constraints})")


def equivalent(mp1, mp2) -> bool:
    """Same variable set, constraint set and objective; names and namers are ignored."""
    return (set(mp1.variables) == set(mp2.variables)
            and set(mp1.constraints) == set(mp2.constraints)
            and mp1.objective == mp2.objective)


def describe(mp) -> str:
    parts = [f"'{mp.name}'"]
    if not mp.objective.is_zero():
        parts.append(str(mp.objective))
    parts.append(f"{len(mp.variables)} variables")
    parts.append(f"{len(mp.constraints)} constraints")
    return f"{type(mp).__name__}({', '.join(parts)})"


class MP:
    """
    Mutable mathematical program.

    Adding a variable whose description is already used by a *different*
    variable (other bounds or kind) raises ``ValueError``; adding the same
    variable again is a no-op. The same check applies to variables reached
    through constraints and the objective, and is done before anything is
    modified.
    """

    def __init__(
        self,
        name: str = "",
        variables_namer: Optional[VariableNamer] = None,
        constraints_namer: Optional[ConstraintNamer] = None,
    ) -> None:
        self._name = name or ""
        self._variables: Dict[str, Variable] = {}
        # dict used as an insertion-ordered set
        self._constraints: Dict[Constraint, None] = {}
        self._objective: Objective = Objective.ZERO
        self._kind_counts: Counter = Counter()
        self._variables_namer: VariableNamer = variables_namer or default_variable_namer
        self._constraints_namer: ConstraintNamer = constraints_namer or default_constraint_namer

    @classmethod
    def copy_of(cls, source) -> "MP":
        """New program holding the content of any program or view."""
        mp = cls(source.name, source.variables_namer, source.constraints_namer)
        for variable in source.variables:
            mp.add_variable(variable)
        mp.set_objective(source.objective)
        for constraint in source.constraints:
            mp.add(constraint)
        return mp

    # ----- read access -----

    @property
    def name(self) -> str:
        return self._name

    @property
    def variables(self) -> Tuple[Variable, ...]:
        return tuple(self._variables.values())

    @property
    def constraints(self) -> Tuple[Constraint, ...]:
        return tuple(self._constraints)

    @property
    def objective(self) -> Objective:
        return self._objective

    @property
    def variables_namer(self) -> VariableNamer:
        return self._variables_namer

    @property
    def constraints_namer(self) -> ConstraintNamer:
        return self._constraints_namer

    def contains_variable(self, description: str) -> bool:
        return description in self._variables

    def contains_constraint(self, constraint: Constraint) -> bool:
        return constraint in self._constraints

    def get_variable(self, description: str) -> Variable:
        try:
            return self._variables[description]
        except KeyError:
            raise UnknownEntityError(
                f"Program '{self._name}' has no variable '{description}'", description
            ) from None

    def get_variable_kind(self, variable: Variable) -> VariableKind:
        self._check_member(variable)
        return variable.kind

    def get_variable_bounds(self, variable: Variable) -> Bounds:
        self._check_member(variable)
        return variable.bounds

    def get_dimension(self) -> Dimension:
        return Dimension(
            bools=self._kind_counts[VariableKind.BOOL],
            ints=self._kind_counts[VariableKind.INT],
            reals=self._kind_counts[VariableKind.REAL],
            constraints=len(self._constraints),
        )

    def _check_member(self, variable: Variable) -> None:
        if self._variables.get(variable.description) != variable:
            raise UnknownEntityError(f"Variable {variable!r} is not in program '{self._name}'", variable)

    # ----- mutation -----

    def _check_compatible(self, variables: Iterable[Variable]) -> None:
        # a batch must agree with the registry and with itself
        seen: Dict[str, Variable] = {}
        for variable in variables:
            if not isinstance(variable, Variable):
                raise TypeError(f"Variable expected, got {variable!r}")
            existing = self._variables.get(variable.description)
            if existing is None:
                existing = seen.setdefault(variable.description, variable)
            if existing != variable:
                raise ValueError(
                    f"Program '{self._name}' cannot hold both {existing!r} and the different "
                    f"variable {variable!r} with the same description"
                )

    def _put_variable(self, variable: Variable) -> bool:
        if variable.description in self._variables:
            return False
        self._variables[variable.description] = variable
        self._kind_counts[variable.kind] += 1
        logger.debug(f"Added variable {variable!r} to '{self._name}'")
        return True

    def _put_variables(self, sum_terms: SumTerms) -> bool:
        added = False
        for variable in sum_terms.variables:
            added = self._put_variable(variable) or added
        return added

    def add_variable(self, variable: Variable) -> bool:
        """
        Register a variable.

        Returns:
            True iff the variable set changed
        """
        self._check_compatible([variable])
        return self._put_variable(variable)

    def add(self, constraint: Constraint) -> bool:
        """
        Add a constraint, registering the variables it uses.

        Returns:
            True iff the constraint set changed
        """
        if not isinstance(constraint, Constraint):
            raise TypeError(f"Constraint expected, got {constraint!r}")
        self._check_compatible(constraint.lhs.variables)
        added_variables = self._put_variables(constraint.lhs)
        added_constraint = constraint not in self._constraints
        if added_constraint:
            self._constraints[constraint] = None
            logger.debug(f"Added constraint {constraint} to '{self._name}'")
        assert not (added_variables and not added_constraint)
        return added_constraint

    def add_all(self, constraints: Iterable[Constraint]) -> bool:
        changed = False
        for constraint in constraints:
            changed = self.add(constraint) or changed
        return changed

    def set_objective(
        self,
        function: Union[Objective, SumTerms, None] = None,
        sense: Optional[Sense] = None,
    ) -> bool:
        """
        Replace the objective, registering the variables it uses.

        Accepts either an ``Objective`` or a function and a sense (MAX when
        omitted). ``None`` resets to ``Objective.ZERO``.

        Returns:
            True iff the objective changed
        """
        if isinstance(function, Objective):
            if sense is not None:
                raise ValueError("Give either an Objective or a function and a sense, not both")
            objective = function
        elif function is None:
            objective = Objective.ZERO
        else:
            objective = Objective(SumTerms.from_terms(function), sense or Sense.MAX)
        self._check_compatible(objective.function.variables)
        self._put_variables(objective.function)
        changed = objective != self._objective
        self._objective = objective
        return changed

    def set_name(self, name: Optional[str]) -> bool:
        new_name = name or ""
        changed = new_name != self._name
        self._name = new_name
        return changed

    def set_variables_namer(self, namer: Optional[VariableNamer]) -> bool:
        new_namer = namer or default_variable_namer
        changed = new_namer is not self._variables_namer
        self._variables_namer = new_namer
        return changed

    def set_constraints_namer(self, namer: Optional[ConstraintNamer]) -> bool:
        new_namer = namer or default_constraint_namer
        changed = new_namer is not self._constraints_namer
        self._constraints_namer = new_namer
        return changed

    def remove_variable(self, variable: Variable) -> bool:
        """
        Remove a variable that no constraint and not the objective uses.

        Returns:
            True iff the variable was in the program
        """
        if self._variables.get(variable.description) != variable:
            return False
        if variable in self._objective.function.variables:
            raise ValueError(f"Cannot remove {variable!r}, used in objective {self._objective}")
        users = [c for c in self._constraints if variable in c.lhs.variables]
        if users:
            raise ValueError(f"Cannot remove {variable!r}, used in constraints: {[str(c) for c in users]}")
        del self._variables[variable.description]
        self._kind_counts[variable.kind] -= 1
        return True

    def clear(self) -> None:
        self._name = ""
        self._variables.clear()
        self._constraints.clear()
        self._kind_counts.clear()
        self._objective = Objective.ZERO
        self._variables_namer = default_variable_namer
        self._constraints_namer = default_constraint_namer

    def copy(self) -> "MP":
        return MP.copy_of(self)

    def build(self) -> "ImmutableMP":
        return ImmutableMP(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, (MP, MPReadView)):
            return NotImplemented
        return equivalent(self, other)

    __hash__ = None

    def __str__(self) -> str:
        return describe(self)

    def __repr__(self) -> str:
        return f"MP(name={self._name!r}, objective={self._objective}, {self.get_dimension()})"


class MPReadView:
    """Read-only access to a program owned by someone else."""

    def __init__(self, delegate) -> None:
        self._delegate = delegate

    @property
    def delegate(self):
        return self._delegate

    @property
    def name(self) -> str:
        return self._delegate.name

    @property
    def variables(self) -> Tuple[Variable, ...]:
        return self._delegate.variables

    @property
    def constraints(self) -> Tuple[Constraint, ...]:
        return self._delegate.constraints

    @property
    def objective(self) -> Objective:
        return self._delegate.objective

    @property
    def variables_namer(self) -> VariableNamer:
        return self._delegate.variables_namer

    @property
    def constraints_namer(self) -> ConstraintNamer:
        return self._delegate.constraints_namer

    def contains_variable(self, description: str) -> bool:
        return self._delegate.contains_variable(description)

    def contains_constraint(self, constraint: Constraint) -> bool:
        return self._delegate.contains_constraint(constraint)

    def get_variable(self, description: str) -> Variable:
        return self._delegate.get_variable(description)

    def get_variable_kind(self, variable: Variable) -> VariableKind:
        return self._delegate.get_variable_kind(variable)

    def get_variable_bounds(self, variable: Variable) -> Bounds:
        return self._delegate.get_variable_bounds(variable)

    def get_dimension(self) -> Dimension:
        return self._delegate.get_dimension()

    def copy(self) -> MP:
        return MP.copy_of(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, (MP, MPReadView)):
            return NotImplemented
        return equivalent(self, other)

    __hash__ = None

    def __str__(self) -> str:
        return describe(self)


class MPForwarder(MPReadView):
    """Forwards reads and writes to the wrapped program."""

    def add_variable(self, variable: Variable) -> bool:
        return self._delegate.add_variable(variable)

    def add(self, constraint: Constraint) -> bool:
        return self._delegate.add(constraint)

    def add_all(self, constraints: Iterable[Constraint]) -> bool:
        return self._delegate.add_all(constraints)

    def set_objective(self, function=None, sense: Optional[Sense] = None) -> bool:
        return self._delegate.set_objective(function, sense)

    def set_name(self, name: Optional[str]) -> bool:
        return self._delegate.set_name(name)

    def set_variables_namer(self, namer: Optional[VariableNamer]) -> bool:
        return self._delegate.set_variables_namer(namer)

    def set_constraints_namer(self, namer: Optional[ConstraintNamer]) -> bool:
        return self._delegate.set_constraints_namer(namer)

    def remove_variable(self, variable: Variable) -> bool:
        return self._delegate.remove_variable(variable)

    def clear(self) -> None:
        self._delegate.clear()


class MPWithTransformedBoolsView(MPForwarder):
    """
    Program seen with boolean variables reported as integers in [0, 1].

    For engines that have no binary type flag.
    """

    def get_variable_kind(self, variable: Variable) -> VariableKind:
        kind = self._delegate.get_variable_kind(variable)
        return VariableKind.INT if kind is VariableKind.BOOL else kind

    def get_dimension(self) -> Dimension:
        dimension = self._delegate.get_dimension()
        return Dimension(0, dimension.bools + dimension.ints, dimension.reals, dimension.constraints)


class ImmutableMP(MPReadView):
    """
    Snapshot of a program.

    Owns a private copy taken at construction, so later changes to the source
    are not seen, and cannot be changed itself.
    """

    def __init__(self, source) -> None:
        if isinstance(source, ImmutableMP):
            snapshot = source._delegate
        else:
            snapshot = MP.copy_of(source)
        super().__init__(snapshot)
        self._variables = snapshot.variables
        self._constraints = snapshot.constraints
        self._dimension = snapshot.get_dimension()

    @classmethod
    def copy_of(cls, source) -> "ImmutableMP":
        if isinstance(source, ImmutableMP):
            return source
        return cls(source)

    @property
    def delegate(self):
        raise AttributeError("An immutable program does not expose its storage")

    @property
    def variables(self) -> Tuple[Variable, ...]:
        return self._variables

    @property
    def constraints(self) -> Tuple[Constraint, ...]:
        return self._constraints

    def get_dimension(self) -> Dimension:
        return self._dimension

    def __hash__(self) -> int:
        return hash((frozenset(self._variables), frozenset(self._constraints), self.objective))

    def __eq__(self, other: object) -> bool:
        return super().__eq__(other)
