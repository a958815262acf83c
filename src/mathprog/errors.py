"""
Exception types raised by the mathprog package.

Malformed value-model input is reported with the built-in ``ValueError``;
the classes below cover the protocol-level failures.
"""

from typing import Any, Iterable


class SolverError(Exception):
    pass


class ConfigurationConflictError(SolverError):
    """Mutually exclusive parameters have both been given a value."""

    def __init__(self, message: str, parameters: Iterable[Any] = ()) -> None:
        super().__init__(message)
        self.parameters = tuple(parameters)


class UnsupportedFeatureError(SolverError):
    """A requested capability is not available in this environment."""


class SolverStateError(SolverError):
    """An operation was called before the state it needs exists."""


class EngineFailureError(SolverError):
    """The underlying engine raised; the engine exception is the ``__cause__``."""

    def __init__(self, message: str, engine: str = "") -> None:
        super().__init__(message)
        self.engine = engine


class UnknownEntityError(LookupError):
    """A variable or constraint is not part of the program it is used with."""

    def __init__(self, message: str, entity: Any = None) -> None:
        super().__init__(message)
        self.entity = entity
