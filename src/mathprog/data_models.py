"""
Immutable value model for mathematical programs.

Variables, terms, linear sums, constraints and objectives. Every object here
is hashable and compares by value, so they can be used as dictionary keys by
the program builder, the parameter store and solutions.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Iterable, Iterator, Sequence, Tuple, Union, overload

# Finite doubles this large are reserved: some engines use them to encode
# an infinite bound, so a caller may not use them as a real bound.
HUGE = sys.float_info.max


def _check_finite(value: float, what: str) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{what} must be finite, got {value}")
    return value


def _format_number(value: float) -> str:
    text = f"{value:.3g}"
    return text.replace("e+0", "E+").replace("e-0", "E-").replace("e+", "E+").replace("e-", "E-")


class VariableDomain(Enum):
    INTEGER = "integer"
    REAL = "real"


class VariableKind(Enum):
    """Effective type of a variable, derived from its domain and bounds."""

    BOOL = "bool"
    INT = "int"
    REAL = "real"

    @property
    def domain(self) -> VariableDomain:
        if self is VariableKind.REAL:
            return VariableDomain.REAL
        return VariableDomain.INTEGER

    @property
    def is_int(self) -> bool:
        return self is not VariableKind.REAL


@dataclass(frozen=True)
class Bounds:
    """
    Interval of admissible values for a variable.

    Finite endpoints are closed; an infinite endpoint stands for "no bound"
    and is open.

    Attributes:
        lower: lower endpoint, ``-inf`` when unbounded below
        upper: upper endpoint, ``+inf`` when unbounded above
    """

    lower: float = -math.inf
    upper: float = math.inf

    def __post_init__(self):
        lower = float(self.lower)
        upper = float(self.upper)
        if math.isnan(lower) or math.isnan(upper):
            raise ValueError("Bounds must not be NaN")
        if lower == math.inf or upper == -math.inf:
            raise ValueError(f"Empty bounds: lower={lower}, upper={upper}")
        if abs(lower) == HUGE or abs(upper) == HUGE:
            raise ValueError(
                f"Bound value {HUGE} is reserved for unbounded variables, use an infinite bound instead"
            )
        if lower > upper:
            raise ValueError(f"Lower bound {lower} is greater than upper bound {upper}")
        object.__setattr__(self, 'lower', lower)
        object.__setattr__(self, 'upper', upper)

    @classmethod
    def all_finite(cls) -> "Bounds":
        return cls()

    @classmethod
    def at_least(cls, lower: float) -> "Bounds":
        return cls(_check_finite(lower, "Lower bound"), math.inf)

    @classmethod
    def at_most(cls, upper: float) -> "Bounds":
        return cls(-math.inf, _check_finite(upper, "Upper bound"))

    @classmethod
    def closed(cls, lower: float, upper: float) -> "Bounds":
        return cls(_check_finite(lower, "Lower bound"), _check_finite(upper, "Upper bound"))

    @classmethod
    def zero_one(cls) -> "Bounds":
        return cls(0.0, 1.0)

    @property
    def is_zero_one(self) -> bool:
        return self.lower == 0.0 and self.upper == 1.0

    @property
    def has_lower(self) -> bool:
        return math.isfinite(self.lower)

    @property
    def has_upper(self) -> bool:
        return math.isfinite(self.upper)

    def contains_integer(self) -> bool:
        if not (self.has_lower and self.has_upper):
            return True
        return math.ceil(self.lower) <= math.floor(self.upper)

    def __contains__(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    def __str__(self) -> str:
        start = "[" if self.has_lower else "("
        end = "]" if self.has_upper else ")"
        low = str(self.lower) if self.has_lower else "−∞"
        up = str(self.upper) if self.has_upper else "+∞"
        return f"{start}{low}..{up}{end}"


def kind_of(domain: VariableDomain, bounds: Bounds) -> VariableKind:
    """
    Derive the effective kind of a variable.

    The domain decides first; bounds only matter within the integer domain,
    so a real variable bounded by [0, 1] stays REAL.
    """
    if domain is VariableDomain.REAL:
        return VariableKind.REAL
    if domain is VariableDomain.INTEGER:
        return VariableKind.BOOL if bounds.is_zero_one else VariableKind.INT
    raise TypeError(f"Unknown variable domain: {domain!r}")


def default_description(name: str, references: Sequence[Any] = ()) -> str:
    if not references:
        return name
    return "_".join([name] + [str(ref) for ref in references])


@dataclass(frozen=True)
class Variable:
    """
    A decision variable.

    Identity is the description, built from a categorical name and a list of
    opaque references (``x`` with references ``(3, "a")`` gives ``x_3_a``).
    Two variables are equal iff their descriptions, kinds and bounds are
    equal.

    Attributes:
        name: categorical name, e.g. ``"flow"``
        domain: integer or real
        bounds: admissible interval
        references: objects distinguishing variables sharing a name
        description: identity string derived from name and references
    """

    name: str = field(compare=False)
    domain: VariableDomain
    bounds: Bounds = field(default_factory=Bounds)
    references: Tuple[Any, ...] = field(default=(), compare=False)
    description: str = field(init=False)

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise TypeError(f"Variable name must be a string, got {self.name!r}")
        if not isinstance(self.domain, VariableDomain):
            raise TypeError(f"Unknown variable domain: {self.domain!r}")
        if not isinstance(self.bounds, Bounds):
            raise TypeError(f"Bounds expected, got {self.bounds!r}")
        refs = tuple(self.references)
        if any(ref is None for ref in refs):
            raise ValueError("Variable references must not contain None")
        if self.domain is VariableDomain.INTEGER and not self.bounds.contains_integer():
            raise ValueError(
                f"Integer variable '{default_description(self.name, refs)}' has bounds {self.bounds} "
                f"that contain no integer"
            )
        object.__setattr__(self, 'references', refs)
        object.__setattr__(self, 'description', default_description(self.name, refs))

    @classmethod
    def of(cls, name: str, domain: VariableDomain, bounds: Bounds = None, *references: Any) -> "Variable":
        return cls(name, domain, bounds if bounds is not None else Bounds(), references)

    @classmethod
    def integer(cls, name: str, *references: Any) -> "Variable":
        return cls(name, VariableDomain.INTEGER, Bounds(), references)

    @classmethod
    def real(cls, name: str, *references: Any) -> "Variable":
        return cls(name, VariableDomain.REAL, Bounds(), references)

    @classmethod
    def bool(cls, name: str, *references: Any) -> "Variable":
        return cls(name, VariableDomain.INTEGER, Bounds.zero_one(), references)

    @property
    def kind(self) -> VariableKind:
        return kind_of(self.domain, self.bounds)

    def __str__(self) -> str:
        return self.description

    def __repr__(self) -> str:
        return f"Variable({self.description}, {self.kind.name}, {self.bounds})"


@dataclass(frozen=True)
class Term:
    """A coefficient multiplied by a variable."""

    coefficient: float
    variable: Variable

    def __post_init__(self):
        if not isinstance(self.variable, Variable):
            raise TypeError(f"Variable expected, got {self.variable!r}")
        object.__setattr__(self, 'coefficient', _check_finite(self.coefficient, "Coefficient"))

    def __str__(self) -> str:
        if self.coefficient == 1.0:
            return str(self.variable)
        if self.coefficient == -1.0:
            return f"−{self.variable}"
        return f"{_format_number(self.coefficient)} {self.variable}"


class SumTerms(Sequence[Term]):
    """
    Ordered, immutable sum of terms (a linear expression).

    A variable may appear in several terms; such terms are kept apart.
    Equality is order-sensitive.
    """

    __slots__ = ('_terms', '_variables')

    def __init__(self, terms: Iterable[Term] = ()) -> None:
        terms = tuple(terms)
        for term in terms:
            if not isinstance(term, Term):
                raise TypeError(f"Term expected, got {term!r}")
        self._terms: Tuple[Term, ...] = terms
        self._variables: Tuple[Variable, ...] = tuple(term.variable for term in terms)

    @classmethod
    def of(cls, *coefficients_and_variables: Union[float, Variable]) -> "SumTerms":
        """
        Build a sum from alternating coefficients and variables.

        ``SumTerms.of(143, x, 60, y)`` is ``143 x + 60 y``.
        """
        if len(coefficients_and_variables) % 2 != 0:
            raise ValueError("Expected pairs of coefficient and variable")
        pairs = zip(coefficients_and_variables[::2], coefficients_and_variables[1::2])
        return cls(Term(coefficient, variable) for coefficient, variable in pairs)

    @classmethod
    def from_terms(cls, terms: Iterable[Term]) -> "SumTerms":
        if isinstance(terms, SumTerms):
            return terms
        return cls(terms)

    @property
    def variables(self) -> Tuple[Variable, ...]:
        """Term variables in order, with repetitions."""
        return self._variables

    @overload
    def __getitem__(self, index: int) -> Term: ...

    @overload
    def __getitem__(self, index: slice) -> "SumTerms": ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return SumTerms(self._terms[index])
        return self._terms[index]

    def __len__(self) -> int:
        return len(self._terms)

    def __iter__(self) -> Iterator[Term]:
        return iter(self._terms)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SumTerms):
            return NotImplemented
        return self._terms == other._terms

    def __hash__(self) -> int:
        return hash(self._terms)

    def __str__(self) -> str:
        return " + ".join(str(term) for term in self._terms)

    def __repr__(self) -> str:
        return f"SumTerms({self})"


class ComparisonOperator(Enum):
    LE = "<="
    EQ = "="
    GE = ">="

    @property
    def ascii(self) -> str:
        return self.value

    def __str__(self) -> str:
        return {"LE": "≤", "EQ": "=", "GE": "≥"}[self.name]


class Sense(Enum):
    MAX = "max"
    MIN = "min"


@dataclass(frozen=True)
class Constraint:
    """
    A linear constraint ``lhs operator rhs``.

    The description takes part in equality: two structurally identical
    constraints with different descriptions are different constraints.
    Descriptions should be unique within a program so that constraints can
    be looked up by label.
    """

    description: str
    lhs: SumTerms
    operator: ComparisonOperator
    rhs: float

    def __post_init__(self):
        if not isinstance(self.description, str):
            raise TypeError(f"Constraint description must be a string, got {self.description!r}")
        if not isinstance(self.lhs, SumTerms):
            object.__setattr__(self, 'lhs', SumTerms.from_terms(self.lhs))
        if not self.lhs:
            raise ValueError(f"Constraint '{self.description}' has an empty left-hand side")
        if not isinstance(self.operator, ComparisonOperator):
            raise TypeError(f"Unknown comparison operator: {self.operator!r}")
        object.__setattr__(self, 'rhs', _check_finite(self.rhs, "Right-hand side"))

    @classmethod
    def le(cls, lhs: SumTerms, rhs: float, description: str = "") -> "Constraint":
        return cls(description, lhs, ComparisonOperator.LE, rhs)

    @classmethod
    def eq(cls, lhs: SumTerms, rhs: float, description: str = "") -> "Constraint":
        return cls(description, lhs, ComparisonOperator.EQ, rhs)

    @classmethod
    def ge(cls, lhs: SumTerms, rhs: float, description: str = "") -> "Constraint":
        return cls(description, lhs, ComparisonOperator.GE, rhs)

    def __str__(self) -> str:
        return f"{self.description}: {self.lhs} {self.operator} {_format_number(self.rhs)}"


@dataclass(frozen=True)
class Objective:
    """
    Objective function and optimization sense.

    An empty function means "no objective"; the sense is then normalized to
    MAX so that every empty objective equals ``Objective.ZERO``.
    """

    ZERO: ClassVar["Objective"]

    function: SumTerms = field(default_factory=SumTerms)
    sense: Sense = Sense.MAX

    def __post_init__(self):
        if not isinstance(self.function, SumTerms):
            object.__setattr__(self, 'function', SumTerms.from_terms(self.function))
        if not isinstance(self.sense, Sense):
            raise TypeError(f"Unknown objective sense: {self.sense!r}")
        if not self.function:
            object.__setattr__(self, 'sense', Sense.MAX)

    @classmethod
    def of(cls, function: SumTerms, sense: Sense) -> "Objective":
        return cls(function, sense)

    @classmethod
    def max(cls, function: SumTerms) -> "Objective":
        return cls(function, Sense.MAX)

    @classmethod
    def min(cls, function: SumTerms) -> "Objective":
        return cls(function, Sense.MIN)

    def is_zero(self) -> bool:
        return not self.function

    def is_complete(self) -> bool:
        """True iff there is a function to optimize (the sense is always set)."""
        return not self.is_zero()

    def __str__(self) -> str:
        if self.is_zero():
            return "no objective"
        return f"{self.sense.value} {self.function}"


Objective.ZERO = Objective()
