"""
Name resolution for variables and constraints.

A name is looked up, in order, from:
  1. a namer registered for the requested file format,
  2. a global namer,
  3. the program's own namer (by default the entity description).

A namer returning ``None`` gives the empty name; a namer returning anything
else than a string is a programming error and raises ``TypeError``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

from .errors import UnknownEntityError

if TYPE_CHECKING:
    from .data_models import Constraint, Variable
    from .parameters import SolverParameters

logger = logging.getLogger(__name__)

VariableNamer = Callable[["Variable"], Optional[str]]
ConstraintNamer = Callable[["Constraint"], Optional[str]]


class FileFormat(Enum):
    """Export formats a program can be written to."""

    CPLEX_LP = "lp"
    MPS = "mps"

    @property
    def extension(self) -> str:
        return self.value


def default_variable_namer(variable: "Variable") -> str:
    return variable.description


def default_constraint_namer(constraint: "Constraint") -> str:
    return constraint.description


def apply_namer(namer: Callable[[Any], Optional[str]], entity: Any) -> str:
    name = namer(entity)
    if name is None:
        return ""
    if not isinstance(name, str):
        raise TypeError(f"Illegal name {name!r} for {entity!r}: namers must return strings or None")
    return name


def resolve_name(
    entity: Any,
    own_namer: Callable[[Any], Optional[str]],
    global_namer: Optional[Callable[[Any], Optional[str]]] = None,
    namers_by_format: Optional[Mapping[FileFormat, Callable[[Any], Optional[str]]]] = None,
    file_format: Optional[FileFormat] = None,
) -> str:
    """
    Resolve the name of a variable or constraint.

    Args:
        entity: the variable or constraint to name
        own_namer: the program's namer, used when nothing overrides it
        global_namer: namer overriding the program's one, if any
        namers_by_format: namers to use for specific export formats
        file_format: the export format the name is wanted for, if any

    Returns:
        The name, possibly empty
    """
    if file_format is not None and namers_by_format and file_format in namers_by_format:
        namer = namers_by_format[file_format]
        if not callable(namer):
            raise TypeError(f"Illegal namer {namer!r} for format {file_format.name}: namers must be callables")
        return apply_namer(namer, entity)
    if file_format is not None:
        logger.debug(f"No namer for format {file_format.name}, using the default one for {entity!r}")
    if global_namer is not None:
        return apply_namer(global_namer, entity)
    return apply_namer(own_namer, entity)


def resolve_variable_name(
    mp,
    variable: "Variable",
    parameters: Optional["SolverParameters"] = None,
    file_format: Optional[FileFormat] = None,
) -> str:
    from .parameters import ObjectParameter

    if not mp.contains_variable(variable.description) or mp.get_variable(variable.description) != variable:
        raise UnknownEntityError(f"Variable {variable!r} is not in program '{mp.name}'", variable)
    global_namer = by_format = None
    if parameters is not None:
        global_namer = parameters.get_value(ObjectParameter.NAMER_VARIABLES)
        by_format = parameters.get_value(ObjectParameter.NAMER_VARIABLES_BY_FORMAT)
    return resolve_name(variable, mp.variables_namer, global_namer, by_format, file_format)


def resolve_constraint_name(
    mp,
    constraint: "Constraint",
    parameters: Optional["SolverParameters"] = None,
    file_format: Optional[FileFormat] = None,
) -> str:
    from .parameters import ObjectParameter

    if not mp.contains_constraint(constraint):
        raise UnknownEntityError(f"Constraint {constraint} is not in program '{mp.name}'", constraint)
    global_namer = by_format = None
    if parameters is not None:
        global_namer = parameters.get_value(ObjectParameter.NAMER_CONSTRAINTS)
        by_format = parameters.get_value(ObjectParameter.NAMER_CONSTRAINTS_BY_FORMAT)
    return resolve_name(constraint, mp.constraints_namer, global_namer, by_format, file_format)
