"""
Unit tests for solver parameters and time limit resolution.
"""

import pytest

from mathprog.errors import ConfigurationConflictError, UnsupportedFeatureError
from mathprog.naming import FileFormat
from mathprog.parameters import (
    DEFAULT_VALUES,
    DoubleParameter,
    IntParameter,
    ObjectParameter,
    SolverParameters,
    StringParameter,
    TimingType,
    get_default_value,
    get_preferred_timing_type,
    get_time_limit,
)


def test_defaults():
    parameters = SolverParameters()
    assert parameters.get_value(DoubleParameter.MAX_WALL_SECONDS) is None
    assert parameters.get_value(IntParameter.MAX_THREADS) is None
    assert parameters.get_value(IntParameter.DETERMINISTIC) == 0
    assert parameters.get_value(StringParameter.WORK_DIR) is None
    assert parameters.get_value(ObjectParameter.NAMER_VARIABLES) is None
    assert get_default_value(IntParameter.DETERMINISTIC) == 0


def test_every_parameter_has_a_default():
    for parameter_type in (DoubleParameter, IntParameter, StringParameter, ObjectParameter):
        for parameter in parameter_type:
            assert parameter in DEFAULT_VALUES


def test_defaults_cannot_be_modified():
    with pytest.raises(TypeError):
        DEFAULT_VALUES[IntParameter.DETERMINISTIC] = 1


def test_set_value_reports_changes():
    parameters = SolverParameters()
    assert parameters.set_value(DoubleParameter.MAX_WALL_SECONDS, 10)
    assert not parameters.set_value(DoubleParameter.MAX_WALL_SECONDS, 10.0)
    assert parameters.get_value(DoubleParameter.MAX_WALL_SECONDS) == 10.0
    assert parameters.set_value(DoubleParameter.MAX_WALL_SECONDS, None)
    assert not parameters.set_value(DoubleParameter.MAX_WALL_SECONDS, None)


def test_setting_the_default_removes_the_entry():
    parameters = SolverParameters()
    parameters.set_value(IntParameter.DETERMINISTIC, 1)
    assert parameters.get_int_parameters() == {IntParameter.DETERMINISTIC: 1}
    parameters.set_value(IntParameter.DETERMINISTIC, 0)
    assert parameters.get_int_parameters() == {}
    assert parameters == SolverParameters()


@pytest.mark.parametrize("parameter, value", [
    (DoubleParameter.MAX_WALL_SECONDS, -1.0),
    (DoubleParameter.MAX_CPU_SECONDS, 0.0),
    (DoubleParameter.MAX_MEMORY_MB, 0),
    (IntParameter.MAX_THREADS, 0),
    (IntParameter.DETERMINISTIC, 2),
    (IntParameter.DETERMINISTIC, None),
    (StringParameter.WORK_DIR, ""),
    (ObjectParameter.NAMER_VARIABLES, "not callable"),
    (ObjectParameter.NAMER_VARIABLES_BY_FORMAT, {FileFormat.CPLEX_LP: "not callable"}),
])
def test_meaningless_values_are_rejected(parameter, value):
    parameters = SolverParameters()
    with pytest.raises(ValueError):
        parameters.set_value(parameter, value)
    assert parameters == SolverParameters()


@pytest.mark.parametrize("parameter, value", [
    (DoubleParameter.MAX_WALL_SECONDS, "10"),
    (IntParameter.MAX_THREADS, 2.5),
    (IntParameter.MAX_THREADS, True),
    (StringParameter.WORK_DIR, 3),
])
def test_wrongly_typed_values_are_rejected(parameter, value):
    with pytest.raises(TypeError):
        SolverParameters().set_value(parameter, value)


def test_explicit_values_by_type():
    parameters = SolverParameters()
    parameters.set_value(DoubleParameter.MAX_CPU_SECONDS, 5)
    parameters.set_value(IntParameter.MAX_THREADS, 4)
    parameters.set_value(StringParameter.WORK_DIR, "/tmp/engine")
    assert parameters.get_double_parameters() == {DoubleParameter.MAX_CPU_SECONDS: 5.0}
    assert parameters.get_int_parameters() == {IntParameter.MAX_THREADS: 4}
    assert parameters.get_string_parameters() == {StringParameter.WORK_DIR: "/tmp/engine"}
    assert parameters.get_object_parameters() == {}


def test_copy_and_set_parameters():
    source = SolverParameters()
    source.set_value(IntParameter.MAX_THREADS, 2)
    copy = SolverParameters(source)
    assert copy == source
    source.set_value(IntParameter.MAX_THREADS, 3)
    assert copy.get_value(IntParameter.MAX_THREADS) == 2

    target = SolverParameters()
    target.set_value(StringParameter.WORK_DIR, "/tmp")
    assert target.set_parameters(source)
    assert target == source
    assert target.get_value(StringParameter.WORK_DIR) is None
    assert not target.set_parameters(source)


def test_remove_all():
    parameters = SolverParameters()
    assert not parameters.remove_all()
    parameters.set_value(IntParameter.MAX_THREADS, 2)
    assert parameters.remove_all()
    assert parameters == SolverParameters()


def test_equality_by_value_and_no_hash():
    a = SolverParameters()
    b = SolverParameters()
    a.set_value(IntParameter.MAX_THREADS, 2)
    assert a != b
    b.set_value(IntParameter.MAX_THREADS, 2)
    assert a == b
    with pytest.raises(TypeError):
        hash(a)


def test_as_properties_includes_defaults():
    parameters = SolverParameters()
    parameters.set_value(DoubleParameter.MAX_WALL_SECONDS, 2.5)
    properties = parameters.as_properties()
    assert properties["max_wall_seconds"] == "2.500"
    assert properties["max_cpu_seconds"] == "null"
    assert properties["deterministic"] == "0"
    assert properties["work_dir"] == "null"
    assert "namer_variables" not in properties


def test_both_time_limits_conflict():
    parameters = SolverParameters()
    parameters.set_value(DoubleParameter.MAX_WALL_SECONDS, 10)
    parameters.set_value(DoubleParameter.MAX_CPU_SECONDS, 10)
    with pytest.raises(ConfigurationConflictError) as excinfo:
        get_preferred_timing_type(parameters, cpu_timing_supported=True)
    assert DoubleParameter.MAX_WALL_SECONDS in excinfo.value.parameters
    with pytest.raises(ConfigurationConflictError):
        get_preferred_timing_type(parameters, cpu_timing_supported=False)


def test_preferred_timing_type_table():
    wall = SolverParameters()
    wall.set_value(DoubleParameter.MAX_WALL_SECONDS, 10)
    cpu = SolverParameters()
    cpu.set_value(DoubleParameter.MAX_CPU_SECONDS, 10)
    none = SolverParameters()

    assert get_preferred_timing_type(wall, True) is TimingType.WALL_TIMING
    assert get_preferred_timing_type(wall, False) is TimingType.WALL_TIMING
    assert get_preferred_timing_type(cpu, True) is TimingType.CPU_TIMING
    assert get_preferred_timing_type(none, True) is TimingType.CPU_TIMING
    assert get_preferred_timing_type(none, False) is TimingType.WALL_TIMING
    with pytest.raises(UnsupportedFeatureError):
        get_preferred_timing_type(cpu, False)


def test_time_limit_follows_timing_type():
    parameters = SolverParameters()
    parameters.set_value(DoubleParameter.MAX_CPU_SECONDS, 7)
    assert get_time_limit(parameters, TimingType.CPU_TIMING) == 7.0
    assert get_time_limit(parameters, TimingType.WALL_TIMING) is None
