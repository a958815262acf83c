"""
Unit tests for variable and constraint name resolution.
"""

import pytest

from mathprog.data_models import Constraint, SumTerms, Variable
from mathprog.errors import UnknownEntityError
from mathprog.examples import get_int_one_four_three
from mathprog.naming import (
    FileFormat,
    resolve_constraint_name,
    resolve_name,
    resolve_variable_name,
)
from mathprog.parameters import ObjectParameter, SolverParameters


def _constraint(mp, description):
    return next(c for c in mp.constraints if c.description == description)


def test_default_names_are_descriptions():
    mp = get_int_one_four_three()
    x = mp.get_variable("x")
    assert resolve_variable_name(mp, x) == "x"
    assert resolve_constraint_name(mp, _constraint(mp, "c1")) == "c1"


def test_program_namer_is_used():
    mp = get_int_one_four_three()
    mp.set_variables_namer(lambda v: f"var_{v.description}")
    mp.set_constraints_namer(lambda c: c.description.upper())
    assert resolve_variable_name(mp, mp.get_variable("y")) == "var_y"
    assert resolve_constraint_name(mp, _constraint(mp, "c2")) == "C2"


def test_global_namer_overrides_program_namer():
    mp = get_int_one_four_three()
    mp.set_variables_namer(lambda v: "from_mp")
    parameters = SolverParameters()
    parameters.set_value(ObjectParameter.NAMER_VARIABLES, lambda v: "global")
    assert resolve_variable_name(mp, mp.get_variable("x"), parameters) == "global"


def test_format_namer_overrides_global_namer_for_its_format_only():
    mp = get_int_one_four_three()
    parameters = SolverParameters()
    parameters.set_value(ObjectParameter.NAMER_CONSTRAINTS, lambda c: "global")
    parameters.set_value(ObjectParameter.NAMER_CONSTRAINTS_BY_FORMAT, {FileFormat.MPS: lambda c: "mps"})
    c1 = _constraint(mp, "c1")
    assert resolve_constraint_name(mp, c1, parameters, FileFormat.MPS) == "mps"
    assert resolve_constraint_name(mp, c1, parameters, FileFormat.CPLEX_LP) == "global"
    assert resolve_constraint_name(mp, c1, parameters) == "global"


def test_format_namer_falls_back_to_program_namer():
    mp = get_int_one_four_three()
    parameters = SolverParameters()
    parameters.set_value(ObjectParameter.NAMER_VARIABLES_BY_FORMAT, {FileFormat.MPS: lambda v: "mps"})
    assert resolve_variable_name(mp, mp.get_variable("x"), parameters, FileFormat.CPLEX_LP) == "x"


def test_namer_returning_none_gives_empty_name():
    mp = get_int_one_four_three()
    mp.set_variables_namer(lambda v: None)
    assert resolve_variable_name(mp, mp.get_variable("x")) == ""


def test_namer_returning_a_non_string_fails():
    mp = get_int_one_four_three()
    mp.set_variables_namer(lambda v: 42)
    with pytest.raises(TypeError):
        resolve_variable_name(mp, mp.get_variable("x"))


def test_non_callable_format_namer_fails():
    x = Variable.integer("x")
    with pytest.raises(TypeError):
        resolve_name(x, str, namers_by_format={FileFormat.MPS: "oops"}, file_format=FileFormat.MPS)


def test_unknown_variable_cannot_be_named():
    mp = get_int_one_four_three()
    with pytest.raises(UnknownEntityError):
        resolve_variable_name(mp, Variable.integer("z"))
    with pytest.raises(UnknownEntityError):
        resolve_variable_name(mp, Variable.real("x"))


def test_unknown_constraint_cannot_be_named():
    mp = get_int_one_four_three()
    foreign = Constraint.le(SumTerms.of(1, mp.get_variable("x")), 1, "foreign")
    with pytest.raises(UnknownEntityError):
        resolve_constraint_name(mp, foreign)


def test_file_format_extension():
    assert FileFormat.CPLEX_LP.extension == "lp"
    assert FileFormat.MPS.extension == "mps"
