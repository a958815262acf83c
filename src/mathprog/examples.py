"""
Small example programs with known optimal solutions.

OneFourThree (named after the coefficient of x in the objective)::

    max 143 x + 60 y
    s.t. c1: 120 x + 210 y <= 15000
         c2: 110 x +  30 y <=  4000
         c3:       x +   y <=    75
         x, y integer

Optimum: x = 22, y = 52, objective 6266. Adding ``low x: x <= 16`` moves the
optimum to x = 16, y = 59, objective 5828.
"""

from typing import Callable, Dict

from .data_models import Constraint, Objective, SumTerms, Variable
from .modeling import MP
from .results import Solution


def get_int_one_four_three() -> MP:
    mp = MP("OneFourThree")
    x = Variable.integer("x")
    y = Variable.integer("y")
    mp.add_variable(x)
    mp.add_variable(y)

    mp.set_objective(Objective.max(SumTerms.of(143, x, 60, y)))
    mp.add(Constraint.le(SumTerms.of(120, x, 210, y), 15000, "c1"))
    mp.add(Constraint.le(SumTerms.of(110, x, 30, y), 4000, "c2"))
    mp.add(Constraint.le(SumTerms.of(1, x, 1, y), 75, "c3"))
    return mp


def get_int_one_four_three_low_x() -> MP:
    mp = get_int_one_four_three()
    x = mp.get_variable("x")
    mp.add(Constraint.le(SumTerms.of(1, x), 16, "low x"))
    return mp


def get_int_one_four_three_solution() -> Solution:
    mp = get_int_one_four_three()
    return Solution(mp, 6266, {mp.get_variable("x"): 22, mp.get_variable("y"): 52})


def get_int_one_four_three_low_x_solution() -> Solution:
    mp = get_int_one_four_three_low_x()
    return Solution(mp, 5828, {mp.get_variable("x"): 16, mp.get_variable("y"): 59})


EXAMPLES: Dict[str, Callable[[], MP]] = {
    "one-four-three": get_int_one_four_three,
    "one-four-three-low-x": get_int_one_four_three_low_x,
}
