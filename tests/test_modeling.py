"""
Unit tests for the program builder and its views.
"""

import pytest

from mathprog.data_models import (
    Bounds,
    Constraint,
    Objective,
    Sense,
    SumTerms,
    Variable,
    VariableDomain,
    VariableKind,
)
from mathprog.errors import UnknownEntityError
from mathprog.examples import get_int_one_four_three
from mathprog.modeling import MP, Dimension, ImmutableMP, MPReadView, MPWithTransformedBoolsView


def test_adding_a_constraint_registers_its_variables():
    mp = MP("test")
    x = Variable.real("x")
    y = Variable.integer("y")
    assert mp.add(Constraint.le(SumTerms.of(1, x, 2, y), 4, "c"))

    assert mp.variables == (x, y)
    assert mp.get_dimension() == Dimension(bools=0, ints=1, reals=1, constraints=1)


def test_adding_the_same_constraint_twice():
    mp = MP()
    c = Constraint.le(SumTerms.of(1, Variable.real("x")), 4, "c")
    assert mp.add(c)
    assert not mp.add(c)
    assert mp.constraints == (c,)


def test_objective_registers_its_variables():
    mp = MP()
    b = Variable.bool("b")
    assert mp.set_objective(SumTerms.of(3, b), Sense.MIN)
    assert mp.contains_variable("b")
    assert mp.objective == Objective.min(SumTerms.of(3, b))
    assert not mp.set_objective(Objective.min(SumTerms.of(3, b)))
    assert mp.get_dimension().bools == 1


def test_same_variable_is_added_once():
    mp = MP()
    assert mp.add_variable(Variable.integer("x"))
    assert not mp.add_variable(Variable.integer("x"))
    assert len(mp.variables) == 1


def test_conflicting_variable_is_rejected():
    mp = MP()
    mp.add_variable(Variable.integer("x"))
    with pytest.raises(ValueError):
        mp.add_variable(Variable.of("x", VariableDomain.INTEGER, Bounds.closed(0, 5)))


def test_conflict_leaves_the_program_untouched():
    mp = MP()
    mp.add_variable(Variable.integer("x"))
    y = Variable.real("y")
    other_x = Variable.real("x")
    with pytest.raises(ValueError):
        mp.add(Constraint.le(SumTerms.of(1, y, 1, other_x), 3, "c"))
    assert not mp.contains_variable("y")
    assert mp.constraints == ()


def test_conflict_within_one_constraint_or_objective_is_rejected():
    mp = MP("p")
    x5 = Variable.of("x", VariableDomain.INTEGER, Bounds.closed(0, 5))
    x9 = Variable.of("x", VariableDomain.INTEGER, Bounds.closed(0, 9))
    with pytest.raises(ValueError):
        mp.add(Constraint.le(SumTerms.of(1, x5, 1, x9), 4, "c"))
    with pytest.raises(ValueError):
        mp.set_objective(Objective.max(SumTerms.of(1, x5, 1, x9)))
    assert mp.variables == ()
    assert mp.constraints == ()
    assert mp.objective == Objective.ZERO

    # the same variable twice is fine
    assert mp.add(Constraint.le(SumTerms.of(1, x5, 2, x5), 4, "c"))
    assert mp.variables == (x5,)


def test_lookup_of_unknown_variable():
    mp = get_int_one_four_three()
    assert mp.get_variable("x") == Variable.integer("x")
    with pytest.raises(UnknownEntityError):
        mp.get_variable("z")
    with pytest.raises(UnknownEntityError):
        mp.get_variable_kind(Variable.integer("z"))


def test_remove_variable():
    mp = get_int_one_four_three()
    free = Variable.real("free")
    mp.add_variable(free)
    assert mp.remove_variable(free)
    assert not mp.remove_variable(free)
    with pytest.raises(ValueError):
        mp.remove_variable(mp.get_variable("x"))
    assert mp.get_dimension() == Dimension(ints=2, constraints=3)


def test_equality_ignores_order_and_name():
    x = Variable.real("x")
    c1 = Constraint.le(SumTerms.of(1, x), 3, "c1")
    c2 = Constraint.ge(SumTerms.of(1, x), 1, "c2")
    a = MP("a")
    a.add_all([c1, c2])
    b = MP("b")
    b.add_all([c2, c1])
    assert a == b
    b.set_objective(SumTerms.of(1, x))
    assert a != b


def test_dimension_accessors():
    mp = MP()
    mp.add_variable(Variable.bool("b"))
    mp.add_variable(Variable.integer("i"))
    mp.add_variable(Variable.real("r"))
    dimension = mp.get_dimension()
    assert dimension.variables == 3
    assert dimension.integer_domains == 2
    with pytest.raises(ValueError):
        Dimension(bools=-1)


def test_clear_and_copy():
    mp = get_int_one_four_three()
    copy = mp.copy()
    mp.clear()
    assert mp.variables == ()
    assert mp.objective == Objective.ZERO
    assert copy.name == "OneFourThree"
    assert len(copy.constraints) == 3


def test_immutable_snapshot_ignores_later_changes():
    mp = get_int_one_four_three()
    snapshot = ImmutableMP(mp)
    mp.add(Constraint.le(SumTerms.of(1, mp.get_variable("x")), 16, "low x"))
    assert len(snapshot.constraints) == 3
    assert snapshot.get_dimension().constraints == 3
    assert not hasattr(snapshot, "add")
    assert ImmutableMP.copy_of(snapshot) is snapshot
    assert hash(snapshot) == hash(get_int_one_four_three().build())


def test_read_view_follows_the_program():
    mp = MP()
    view = MPReadView(mp)
    mp.add_variable(Variable.real("x"))
    assert view.contains_variable("x")
    assert view == mp


def test_bools_view_reports_bools_as_ints():
    mp = MP()
    b = Variable.bool("b")
    mp.add_variable(b)
    view = MPWithTransformedBoolsView(mp)
    assert view.get_variable_kind(b) is VariableKind.INT
    assert view.get_variable_bounds(b) == Bounds.zero_one()
    assert view.get_dimension() == Dimension(ints=1)
    assert mp.get_variable_kind(b) is VariableKind.BOOL


def test_bools_view_forwards_mutations():
    mp = MP()
    view = MPWithTransformedBoolsView(mp)
    view.add(Constraint.le(SumTerms.of(1, Variable.real("x")), 1, "c"))
    assert mp.contains_variable("x")
    assert len(mp.constraints) == 1
