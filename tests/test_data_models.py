"""
Unit tests for the value model: variables, terms, sums, constraints, objectives.
"""

import math

import pytest

from mathprog.data_models import (
    HUGE,
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


def test_kind_is_derived_from_domain_then_bounds():
    assert kind_of(VariableDomain.INTEGER, Bounds(0, 1)) is VariableKind.BOOL
    assert kind_of(VariableDomain.INTEGER, Bounds(0, 2)) is VariableKind.INT
    assert kind_of(VariableDomain.INTEGER, Bounds(-1, 1)) is VariableKind.INT
    assert kind_of(VariableDomain.INTEGER, Bounds()) is VariableKind.INT
    # a real variable in [0, 1] stays real
    assert kind_of(VariableDomain.REAL, Bounds(0, 1)) is VariableKind.REAL


def test_variable_constructors():
    assert Variable.bool("b").kind is VariableKind.BOOL
    assert Variable.integer("i").kind is VariableKind.INT
    assert Variable.real("r").kind is VariableKind.REAL
    assert Variable.of("v", VariableDomain.REAL, Bounds.at_least(0)).bounds == Bounds(0, math.inf)


def test_description_joins_name_and_references():
    assert Variable.integer("x").description == "x"
    assert Variable.integer("x", 3, "a").description == "x_3_a"
    assert str(Variable.real("flow", "n1", "n2")) == "flow_n1_n2"


def test_variable_equality_uses_description_kind_and_bounds():
    a = Variable.integer("x", 1)
    b = Variable.integer("x", 1)
    assert a == b
    assert hash(a) == hash(b)

    assert a != Variable.of("x", VariableDomain.INTEGER, Bounds.closed(0, 5), 1)
    assert a != Variable.real("x", 1)
    assert a != Variable.integer("x", 2)


def test_variable_references_reject_none():
    with pytest.raises(ValueError):
        Variable.integer("x", None)


def test_integer_variable_needs_an_integer_in_its_bounds():
    with pytest.raises(ValueError):
        Variable.of("x", VariableDomain.INTEGER, Bounds.closed(0.2, 0.8))
    # fine for a real variable
    Variable.of("x", VariableDomain.REAL, Bounds.closed(0.2, 0.8))


def test_bounds_validation():
    with pytest.raises(ValueError):
        Bounds(2, 1)
    with pytest.raises(ValueError):
        Bounds(math.nan, 1)
    with pytest.raises(ValueError):
        Bounds(math.inf, math.inf)
    with pytest.raises(ValueError):
        Bounds(0, HUGE)
    with pytest.raises(ValueError):
        Bounds.closed(0, math.inf)


def test_bounds_rendering_and_membership():
    assert str(Bounds.zero_one()) == "[0.0..1.0]"
    assert str(Bounds()) == "(−∞..+∞)"
    assert 0.5 in Bounds.zero_one()
    assert 2 not in Bounds.zero_one()
    assert Bounds.at_most(3).has_upper and not Bounds.at_most(3).has_lower


def test_term_rendering():
    i = Variable.integer("i")
    assert str(Term(1, i)) == "i"
    assert str(Term(-1, i)) == "−i"
    assert str(Term(1 / 3, i)) == "0.333 i"


def test_term_coefficient_must_be_finite():
    i = Variable.integer("i")
    with pytest.raises(ValueError):
        Term(math.inf, i)
    with pytest.raises(ValueError):
        Term(math.nan, i)


def test_sum_terms_keeps_repeated_variables_apart():
    x = Variable.real("x")
    s = SumTerms.of(1, x, 2, x)
    assert len(s) == 2
    assert s.variables == (x, x)
    assert s[1] == Term(2, x)
    assert isinstance(s[:1], SumTerms)


def test_sum_terms_equality_is_order_sensitive():
    x = Variable.real("x")
    y = Variable.real("y")
    assert SumTerms.of(1, x, 2, y) == SumTerms.of(1, x, 2, y)
    assert SumTerms.of(1, x, 2, y) != SumTerms.of(2, y, 1, x)


def test_sum_terms_of_needs_pairs():
    with pytest.raises(ValueError):
        SumTerms.of(1, Variable.real("x"), 2)


def test_constraint_validation():
    x = Variable.real("x")
    with pytest.raises(ValueError):
        Constraint("empty", SumTerms(), ComparisonOperator.LE, 1)
    with pytest.raises(ValueError):
        Constraint.le(SumTerms.of(1, x), math.inf, "c")
    with pytest.raises(TypeError):
        Constraint(None, SumTerms.of(1, x), ComparisonOperator.LE, 1)


def test_constraint_description_is_part_of_identity():
    x = Variable.real("x")
    lhs = SumTerms.of(1, x)
    assert Constraint.le(lhs, 3, "a") == Constraint.le(lhs, 3, "a")
    assert Constraint.le(lhs, 3, "a") != Constraint.le(lhs, 3, "b")
    assert Constraint.le(lhs, 3, "a") != Constraint.ge(lhs, 3, "a")


def test_operator_rendering():
    assert str(ComparisonOperator.LE) == "≤"
    assert ComparisonOperator.GE.ascii == ">="


def test_empty_objective_is_zero_whatever_the_sense():
    assert Objective(SumTerms(), Sense.MIN) == Objective.ZERO
    assert Objective.ZERO.is_zero()
    assert not Objective.ZERO.is_complete()


def test_objective_factories():
    x = Variable.real("x")
    objective = Objective.min(SumTerms.of(2, x))
    assert objective.sense is Sense.MIN
    assert objective.is_complete()
    assert objective != Objective.max(SumTerms.of(2, x))
