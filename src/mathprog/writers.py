"""
CPLEX LP format writer.

Names are resolved for ``FileFormat.CPLEX_LP``, so namers registered for that
format in the parameters take precedence. Whitespace in names is replaced
by underscores, as the format does not allow it.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, TextIO, Union

from .data_models import ComparisonOperator, Sense, SumTerms, VariableKind
from .naming import FileFormat, resolve_constraint_name, resolve_variable_name
from .parameters import SolverParameters

logger = logging.getLogger(__name__)

MAX_LINE_LENGTH = 200

_WHITESPACE = re.compile(r"\s+")


def _lp_name(name: str) -> str:
    return _WHITESPACE.sub("_", name.strip())


def _number(value: float) -> str:
    return f"{value:.12g}"


def _wrap(prefix: str, pieces: Iterable[str]) -> List[str]:
    lines = []
    current = prefix
    for piece in pieces:
        if len(current) + len(piece) + 1 > MAX_LINE_LENGTH and current.strip():
            lines.append(current)
            current = "   "
        current = f"{current} {piece}" if current.strip() else f"{current}{piece}"
    lines.append(current)
    return lines


def _linear_pieces(sum_terms: SumTerms, names) -> List[str]:
    pieces = []
    for i, term in enumerate(sum_terms):
        coefficient = term.coefficient
        sign = "-" if coefficient < 0 else "+"
        magnitude = abs(coefficient)
        text = names[term.variable] if magnitude == 1.0 else f"{_number(magnitude)} {names[term.variable]}"
        if i == 0:
            pieces.append(text if sign == "+" else f"- {text}")
        else:
            pieces.append(f"{sign} {text}")
    return pieces


def write_lp(mp, stream: TextIO, parameters: Optional[SolverParameters] = None) -> None:
    """
    Write a program in CPLEX LP format.

    Args:
        mp: the program (or any view of one)
        stream: text stream to write to
        parameters: parameters holding namers, if any

    Raises:
        ValueError: a variable resolves to an empty name, or two variables to the same name
    """
    names = {}
    used = {}
    for variable in mp.variables:
        name = _lp_name(resolve_variable_name(mp, variable, parameters, FileFormat.CPLEX_LP))
        if not name:
            raise ValueError(f"Variable {variable!r} has an empty name, cannot write it in LP format")
        if name in used:
            raise ValueError(f"Variables {used[name]!r} and {variable!r} are both named '{name}'")
        used[name] = variable
        names[variable] = name

    lines = [f"\\ Problem: {mp.name}" if mp.name else "\\ Problem"]
    objective = mp.objective
    lines.append("Minimize" if objective.sense is Sense.MIN else "Maximize")
    lines.extend(_wrap(" obj:", _linear_pieces(objective.function, names)))

    lines.append("Subject To")
    for constraint in mp.constraints:
        label = _lp_name(resolve_constraint_name(mp, constraint, parameters, FileFormat.CPLEX_LP))
        prefix = f" {label}:" if label else " "
        pieces = _linear_pieces(constraint.lhs, names)
        pieces.append(f"{constraint.operator.ascii} {_number(constraint.rhs)}")
        lines.extend(_wrap(prefix, pieces))

    bound_lines = []
    generals = []
    binaries = []
    for variable in mp.variables:
        name = names[variable]
        kind = mp.get_variable_kind(variable)
        if kind is VariableKind.BOOL:
            binaries.append(name)
            continue
        if kind is VariableKind.INT:
            generals.append(name)
        bounds = variable.bounds
        if bounds.has_lower and bounds.has_upper:
            bound_lines.append(f" {_number(bounds.lower)} <= {name} <= {_number(bounds.upper)}")
        elif bounds.has_lower:
            # 0 is the default lower bound of the format
            if bounds.lower != 0.0:
                bound_lines.append(f" {name} >= {_number(bounds.lower)}")
        elif bounds.has_upper:
            bound_lines.append(f" -inf <= {name} <= {_number(bounds.upper)}")
        else:
            bound_lines.append(f" {name} free")

    if bound_lines:
        lines.append("Bounds")
        lines.extend(bound_lines)
    if generals:
        lines.append("Generals")
        lines.extend(_wrap("", generals))
    if binaries:
        lines.append("Binaries")
        lines.extend(_wrap("", binaries))
    lines.append("End")

    stream.write("\n".join(lines))
    stream.write("\n")
    logger.debug(f"Wrote '{mp.name}' in LP format: {len(names)} variables, {len(mp.constraints)} constraints")


def write_lp_file(mp, path: Union[str, Path], parameters: Optional[SolverParameters] = None) -> Path:
    """Write a program to an LP file, adding the ``.lp`` extension if missing."""
    path = Path(path)
    if path.suffix != f".{FileFormat.CPLEX_LP.extension}":
        path = path.with_name(f"{path.name}.{FileFormat.CPLEX_LP.extension}")
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        write_lp(mp, f, parameters)
    logger.info(f"LP file written to {path}")
    return path
