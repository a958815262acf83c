"""
Typed solver parameters.

Parameters are grouped by value type (real, integer, string, object). Every
parameter has a default, so reading a parameter never fails. Only values
differing from the default are stored: setting a parameter back to its
default removes it, and two parameter sets are equal iff they hold the same
explicit values.
"""

from __future__ import annotations

import logging
from enum import Enum
from numbers import Real
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .errors import ConfigurationConflictError, UnsupportedFeatureError
from .naming import FileFormat
from .utils import format_value, is_cpu_timing_supported

logger = logging.getLogger(__name__)


class DoubleParameter(Enum):
    """
    Parameters with a real value, all unset (``None``) by default.

    MAX_WALL_SECONDS and MAX_CPU_SECONDS exclude each other: at most one of
    them may be set.
    """

    MAX_WALL_SECONDS = "max_wall_seconds"
    MAX_CPU_SECONDS = "max_cpu_seconds"
    MAX_TREE_SIZE_MB = "max_tree_size_mb"
    MAX_MEMORY_MB = "max_memory_mb"


class IntParameter(Enum):
    # None for no limit, otherwise strictly positive
    MAX_THREADS = "max_threads"
    # 1 forces reproducible runs, 0 (default) lets the engine run opportunistically
    DETERMINISTIC = "deterministic"


class StringParameter(Enum):
    # Directory for temporary engine files; None lets the engine choose
    WORK_DIR = "work_dir"


class ObjectParameter(Enum):
    """
    Namers overriding those of the program.

    NAMER_VARIABLES and NAMER_CONSTRAINTS are callables used for every
    export; the *_BY_FORMAT ones map a ``FileFormat`` to a callable and take
    precedence for that format.
    """

    NAMER_VARIABLES = "namer_variables"
    NAMER_CONSTRAINTS = "namer_constraints"
    NAMER_VARIABLES_BY_FORMAT = "namer_variables_by_format"
    NAMER_CONSTRAINTS_BY_FORMAT = "namer_constraints_by_format"


Parameter = Union[DoubleParameter, IntParameter, StringParameter, ObjectParameter]

PARAMETER_TYPES = (DoubleParameter, IntParameter, StringParameter, ObjectParameter)

DEFAULT_VALUES: Mapping[Parameter, Any] = MappingProxyType({
    DoubleParameter.MAX_WALL_SECONDS: None,
    DoubleParameter.MAX_CPU_SECONDS: None,
    DoubleParameter.MAX_TREE_SIZE_MB: None,
    DoubleParameter.MAX_MEMORY_MB: None,
    IntParameter.MAX_THREADS: None,
    IntParameter.DETERMINISTIC: 0,
    StringParameter.WORK_DIR: None,
    ObjectParameter.NAMER_VARIABLES: None,
    ObjectParameter.NAMER_CONSTRAINTS: None,
    ObjectParameter.NAMER_VARIABLES_BY_FORMAT: None,
    ObjectParameter.NAMER_CONSTRAINTS_BY_FORMAT: None,
})


class TimingType(Enum):
    WALL_TIMING = "wall"
    CPU_TIMING = "cpu"


def get_default_value(parameter: Parameter) -> Any:
    _check_parameter(parameter)
    return DEFAULT_VALUES[parameter]


def _check_parameter(parameter: Any) -> None:
    if not isinstance(parameter, PARAMETER_TYPES):
        raise TypeError(f"Unknown parameter type: {parameter!r}")


def _positive_or_none(value) -> bool:
    return value is None or value > 0


def _namers_map_or_none(value) -> bool:
    if value is None:
        return True
    if not isinstance(value, Mapping):
        return False
    return all(isinstance(fmt, FileFormat) and callable(namer) for fmt, namer in value.items())


VALIDATORS: Mapping[Parameter, Callable[[Any], bool]] = MappingProxyType({
    DoubleParameter.MAX_WALL_SECONDS: _positive_or_none,
    DoubleParameter.MAX_CPU_SECONDS: _positive_or_none,
    DoubleParameter.MAX_TREE_SIZE_MB: _positive_or_none,
    DoubleParameter.MAX_MEMORY_MB: _positive_or_none,
    IntParameter.MAX_THREADS: _positive_or_none,
    IntParameter.DETERMINISTIC: lambda value: value in (0, 1),
    StringParameter.WORK_DIR: lambda value: value is None or value != "",
    ObjectParameter.NAMER_VARIABLES: lambda value: value is None or callable(value),
    ObjectParameter.NAMER_CONSTRAINTS: lambda value: value is None or callable(value),
    ObjectParameter.NAMER_VARIABLES_BY_FORMAT: _namers_map_or_none,
    ObjectParameter.NAMER_CONSTRAINTS_BY_FORMAT: _namers_map_or_none,
})


def _coerce(parameter: Parameter, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(parameter, DoubleParameter):
        if isinstance(value, bool) or not isinstance(value, Real):
            raise TypeError(f"Parameter {parameter.name} expects a real number, got {value!r}")
        return float(value)
    if isinstance(parameter, IntParameter):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Parameter {parameter.name} expects an integer, got {value!r}")
        return value
    if isinstance(parameter, StringParameter):
        if not isinstance(value, str):
            raise TypeError(f"Parameter {parameter.name} expects a string, got {value!r}")
        return value
    if parameter in (ObjectParameter.NAMER_VARIABLES_BY_FORMAT, ObjectParameter.NAMER_CONSTRAINTS_BY_FORMAT):
        if isinstance(value, Mapping):
            return MappingProxyType(dict(value))
    return value


class SolverParameters:
    """
    Mutable set of parameter values.

    Args:
        source: parameters to copy, if any
    """

    def __init__(self, source: Optional["SolverParameters"] = None) -> None:
        self._values: Dict[Parameter, Any] = {}
        if source is not None:
            self._values.update(source._values)

    def get_value(self, parameter: Parameter) -> Any:
        """Value set for the parameter, or its default."""
        _check_parameter(parameter)
        if parameter in self._values:
            return self._values[parameter]
        return DEFAULT_VALUES[parameter]

    def set_value(self, parameter: Parameter, value: Any) -> bool:
        """
        Set a parameter.

        Returns:
            True iff the value of the parameter changed

        Raises:
            TypeError: if the value has the wrong type for the parameter
            ValueError: if the value is not meaningful for the parameter
        """
        _check_parameter(parameter)
        value = _coerce(parameter, value)
        if not VALIDATORS[parameter](value):
            raise ValueError(f"The value {value!r} is not meaningful for the parameter {parameter.name}")
        if value == DEFAULT_VALUES[parameter]:
            return self._values.pop(parameter, _MISSING) is not _MISSING
        previous = self._values.get(parameter, DEFAULT_VALUES[parameter])
        self._values[parameter] = value
        changed = previous != value
        if changed:
            logger.debug(f"Parameter {parameter.name} set to {value!r}")
        return changed

    def _explicit(self, parameter_type) -> Dict[Any, Any]:
        return {p: v for p, v in self._values.items() if isinstance(p, parameter_type)}

    def get_double_parameters(self) -> Dict[DoubleParameter, float]:
        return self._explicit(DoubleParameter)

    def get_int_parameters(self) -> Dict[IntParameter, int]:
        return self._explicit(IntParameter)

    def get_string_parameters(self) -> Dict[StringParameter, str]:
        return self._explicit(StringParameter)

    def get_object_parameters(self) -> Dict[ObjectParameter, Any]:
        return self._explicit(ObjectParameter)

    def remove_all(self) -> bool:
        changed = bool(self._values)
        self._values.clear()
        return changed

    def set_parameters(self, other: "SolverParameters") -> bool:
        """
        Replace every value by those of ``other``.

        Returns:
            True iff this object changed, that is, iff it differed from ``other``
        """
        if not isinstance(other, SolverParameters):
            raise TypeError(f"SolverParameters expected, got {other!r}")
        if other == self:
            return False
        self.remove_all()
        self._values.update(other._values)
        return True

    def as_properties(self) -> Dict[str, str]:
        """All non-object parameters as text, defaults included."""
        properties: Dict[str, str] = {}
        for parameter in StringParameter:
            value = self.get_value(parameter)
            properties[parameter.value] = "null" if value is None else value
        for parameter in DoubleParameter:
            properties[parameter.value] = format_value(self.get_value(parameter), 3)
        for parameter in IntParameter:
            properties[parameter.value] = format_value(self.get_value(parameter), 0)
        return properties

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SolverParameters):
            return NotImplemented
        return self._values == other._values

    # mutable, so unhashable
    __hash__ = None

    def __repr__(self) -> str:
        shown = ", ".join(f"{p.name}={v!r}" for p, v in self._values.items())
        return f"SolverParameters({shown})"


_MISSING = object()


def get_preferred_timing_type(
    parameters: SolverParameters,
    cpu_timing_supported: Optional[bool] = None,
) -> TimingType:
    """
    Choose how the solve duration should be measured and limited.

    ====================  ==============  ================  ==============  ================
    max wall \\ max cpu    set, supported  set, unsupported  not set, supp.  not set, unsupp.
    ====================  ==============  ================  ==============  ================
    set                   conflict        conflict          WALL            WALL
    not set               CPU             unsupported       CPU             WALL
    ====================  ==============  ================  ==============  ================

    Args:
        parameters: parameters holding the time limits
        cpu_timing_supported: whether CPU time can be measured; probed when None

    Raises:
        ConfigurationConflictError: both time limits are set
        UnsupportedFeatureError: a CPU time limit is set but CPU time cannot be measured
    """
    if cpu_timing_supported is None:
        cpu_timing_supported = is_cpu_timing_supported()
    has_max_wall = parameters.get_value(DoubleParameter.MAX_WALL_SECONDS) is not None
    has_max_cpu = parameters.get_value(DoubleParameter.MAX_CPU_SECONDS) is not None
    if has_max_wall and has_max_cpu:
        raise ConfigurationConflictError(
            "Can't have both CPU time limit and wall time limit",
            (DoubleParameter.MAX_WALL_SECONDS, DoubleParameter.MAX_CPU_SECONDS),
        )
    if has_max_wall:
        return TimingType.WALL_TIMING
    if has_max_cpu:
        if not cpu_timing_supported:
            raise UnsupportedFeatureError("CPU timing not supported but max cpu time is set")
        return TimingType.CPU_TIMING
    return TimingType.CPU_TIMING if cpu_timing_supported else TimingType.WALL_TIMING


def get_time_limit(parameters: SolverParameters, timing_type: TimingType) -> Optional[float]:
    if timing_type is TimingType.WALL_TIMING:
        return parameters.get_value(DoubleParameter.MAX_WALL_SECONDS)
    if timing_type is TimingType.CPU_TIMING:
        return parameters.get_value(DoubleParameter.MAX_CPU_SECONDS)
    raise TypeError(f"Unknown timing type: {timing_type!r}")
