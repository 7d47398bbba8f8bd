"""Result types for a single override invocation and for a whole dispatch."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final, Union

from .errors import (
    AttributeLookupError,
    ConstructionError,
    InvalidUsageError,
    OverrideNotImplementedError,
    TypeCheckError,
)


class FailureKind(str, Enum):
    INVALID_USAGE = "invalid_usage"
    ALL_DECLINED = "all_declined"
    ATTRIBUTE_LOOKUP = "attribute_lookup"
    CONSTRUCTION = "construction"
    TYPE_CHECK = "type_check"
    PROPAGATED = "propagated"


def failure_kind_of(err: BaseException) -> FailureKind:
    """Classify an exception raised during dispatch."""
    if isinstance(err, InvalidUsageError):
        return FailureKind.INVALID_USAGE
    if isinstance(err, OverrideNotImplementedError):
        return FailureKind.ALL_DECLINED
    if isinstance(err, AttributeLookupError):
        return FailureKind.ATTRIBUTE_LOOKUP
    if isinstance(err, ConstructionError):
        return FailureKind.CONSTRUCTION
    if isinstance(err, TypeCheckError):
        return FailureKind.TYPE_CHECK
    return FailureKind.PROPAGATED


class _DeclinedType:
    _instance: "_DeclinedType | None" = None

    def __new__(cls) -> "_DeclinedType":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DECLINED"


# An override may return this instead of NotImplemented to decline.
DECLINED: Final = _DeclinedType()


@dataclass(frozen=True)
class Accepted:
    value: object


@dataclass(frozen=True)
class Declined:
    pass


@dataclass(frozen=True)
class Failed:
    error: BaseException


InvocationResult = Union[Accepted, Declined, Failed]


def interpret_return(value: object) -> InvocationResult:
    if value is NotImplemented or value is DECLINED:
        return Declined()
    return Accepted(value)


@dataclass(frozen=True)
class NoOverride:
    """No operand overrides the operation; run the native kernel."""


@dataclass(frozen=True)
class Result:
    value: object


@dataclass(frozen=True)
class Failure:
    error: BaseException
    kind: FailureKind

    @classmethod
    def from_exception(cls, err: BaseException) -> "Failure":
        return cls(error=err, kind=failure_kind_of(err))


DispatchOutcome = Union[NoOverride, Result, Failure]

NO_OVERRIDE: Final = NoOverride()
