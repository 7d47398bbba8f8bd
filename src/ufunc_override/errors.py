"""Structured error types for override dispatch."""

from __future__ import annotations

from dataclasses import dataclass


class UfuncOverrideError(Exception):
    """Base class for structured ufunc-override errors."""


class InvalidUsageError(UfuncOverrideError, ValueError):
    """The calling machinery broke the dispatch contract (argument count/shape)."""


@dataclass(frozen=True)
class OverrideNotImplementedError(UfuncOverrideError, TypeError):
    """Every eligible override declined the operation."""

    attribute: str
    ufunc_name: str
    method: str

    def __str__(self) -> str:
        return (
            f"{self.attribute} not implemented for this type "
            f"(ufunc {self.ufunc_name!r}, method {self.method!r})"
        )


class AttributeLookupError(UfuncOverrideError, AttributeError):
    """Fetching an operand's override attribute failed."""


class ConstructionError(UfuncOverrideError, TypeError):
    """Normalized call arguments could not be built."""


class UnsupportedError(UfuncOverrideError):
    """Request exists in the ufunc protocol but the native jax path cannot honour it."""


class TypeCheckError(UfuncOverrideError, TypeError):
    """A native-type predicate or subtype check raised while classifying operands."""
