"""Override resolution for ufunc calls with non-native operands.

If one or more operands expose the override attribute, their overrides are
tried in the order: subclasses before superclasses, otherwise left to right.
The first override returning something other than ``NotImplemented``
determines the result. If every override declines, the call fails with
``OverrideNotImplementedError``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable, Final

from .errors import ConstructionError, InvalidUsageError, OverrideNotImplementedError, TypeCheckError
from .operands import (
    OVERRIDE_ATTRIBUTE,
    OverrideCandidate,
    discover_candidates,
    get_override,
    is_more_specific as default_is_more_specific,
    is_native_array as default_is_native_array,
    is_native_scalar as default_is_native_scalar,
)
from .outcomes import (
    NO_OVERRIDE,
    Accepted,
    DispatchOutcome,
    Failed,
    Failure,
    FailureKind,
    InvocationResult,
    NoOverride,
    Result,
    interpret_return,
)
from .selection import SubtypeOracle, priority_order

logger = logging.getLogger(__name__)

MAX_ARGS: Final[int] = max(1, int(os.environ.get("UFUNC_OVERRIDE_MAX_ARGS", "32")))


@dataclass(frozen=True)
class NormalizedCall:
    inputs: tuple[object, ...]
    kwargs: dict[str, object]


def normalize_call(args: tuple[object, ...], kwds: Mapping[str, object] | None, nin: int) -> NormalizedCall:
    """Split ``args`` into true inputs and an ``out`` keyword.

    Arguments past ``nin`` are taken to be outputs without further checks:
    one trailing argument is stored directly, several are stored as a tuple.
    """
    if kwds is None:
        kwargs: dict[str, object] = {}
    elif isinstance(kwds, Mapping):
        kwargs = dict(kwds)
    else:
        raise ConstructionError(f"keyword arguments must be a mapping, got {type(kwds).__name__}")
    bad_keys = [key for key in kwargs if not isinstance(key, str)]
    if bad_keys:
        raise ConstructionError(f"keyword names must be strings, got {bad_keys!r}")

    nargs = len(args)
    if nargs - nin == 1:
        kwargs["out"] = args[nin]
    elif nargs - nin > 1:
        kwargs["out"] = tuple(args[nin:])
    return NormalizedCall(inputs=tuple(args[:nin]), kwargs=kwargs)


def _ufunc_name(ufunc: object) -> str:
    name = getattr(ufunc, "__name__", None)
    if isinstance(name, str):
        return name
    return repr(ufunc)


class _UfuncLabel:
    """Formats as the ufunc name, read only when a log record is rendered."""

    __slots__ = ("ufunc",)

    def __init__(self, ufunc: object) -> None:
        self.ufunc = ufunc

    def __str__(self) -> str:
        return _ufunc_name(self.ufunc)


class OverrideDispatcher:
    """Resolves which operand override, if any, handles a ufunc call."""

    def __init__(
        self,
        *,
        attribute: str = OVERRIDE_ATTRIBUTE,
        max_args: int = MAX_ARGS,
        is_native_array: Callable[[object], bool] = default_is_native_array,
        is_native_scalar: Callable[[object], bool] = default_is_native_scalar,
        is_more_specific: SubtypeOracle = default_is_more_specific,
    ) -> None:
        self.attribute = attribute
        self.max_args = max_args
        self.is_native_array = is_native_array
        self.is_native_scalar = is_native_scalar
        self.is_more_specific = is_more_specific

    def resolve(
        self,
        ufunc: object,
        method: str,
        args: tuple[object, ...],
        kwds: Mapping[str, object] | None,
        nin: int,
    ) -> DispatchOutcome:
        try:
            return self._resolve(ufunc, method, args, kwds, nin)
        except Exception as exc:
            return Failure.from_exception(exc)

    def _validate(self, args: object, nin: int) -> None:
        if not isinstance(args, tuple):
            raise InvalidUsageError(
                f"override check called with non-tuple arguments ({type(args).__name__})"
            )
        if len(args) > self.max_args:
            raise InvalidUsageError(
                f"too many arguments in override check: {len(args)} > {self.max_args}"
            )
        if isinstance(nin, bool) or not isinstance(nin, int):
            raise InvalidUsageError(f"nin must be an integer, got {type(nin).__name__}")
        if not 0 <= nin <= len(args):
            raise InvalidUsageError(f"nin={nin} out of range for {len(args)} arguments")

    def _resolve(self, ufunc, method, args, kwds, nin) -> DispatchOutcome:
        self._validate(args, nin)
        candidates = discover_candidates(
            args,
            attribute=self.attribute,
            native_array=self.is_native_array,
            native_scalar=self.is_native_scalar,
        )
        if not candidates:
            return NO_OVERRIDE

        logger.debug(
            "%s.%s: override candidates at positions %s",
            _UfuncLabel(ufunc),
            method,
            [c.position for c in candidates],
        )
        call = normalize_call(args, kwds, nin)

        for candidate in priority_order(candidates, self._outranks, value_of=_candidate_value):
            outcome = self.invoke(candidate, ufunc, method, call)
            if isinstance(outcome, Accepted):
                return Result(outcome.value)
            if isinstance(outcome, Failed):
                return Failure(error=outcome.error, kind=FailureKind.PROPAGATED)
            logger.debug(
                "%s.%s: %s at position %d declined",
                _UfuncLabel(ufunc),
                method,
                type(candidate.value).__name__,
                candidate.position,
            )

        raise OverrideNotImplementedError(
            attribute=self.attribute,
            ufunc_name=_ufunc_name(ufunc),
            method=method,
        )

    def _outranks(self, other: object, value: object) -> bool:
        try:
            return bool(self.is_more_specific(other, value))
        except Exception as exc:
            raise TypeCheckError(
                f"subtype check between {type(other).__name__} and {type(value).__name__} failed: {exc}"
            ) from exc

    def invoke(self, candidate: OverrideCandidate, ufunc: object, method: str, call: NormalizedCall) -> InvocationResult:
        """Call one candidate's override; attribute lookup failures are raised, not returned."""
        override = get_override(candidate.value, self.attribute)
        logger.debug(
            "%s.%s: trying %s at position %d",
            _UfuncLabel(ufunc),
            method,
            type(candidate.value).__name__,
            candidate.position,
        )
        try:
            returned = override(ufunc, method, candidate.position, call.inputs, **call.kwargs)
        except Exception as exc:
            return Failed(exc)
        return interpret_return(returned)


def _candidate_value(candidate: OverrideCandidate) -> object:
    return candidate.value


_DEFAULT_DISPATCHER: Final[OverrideDispatcher] = OverrideDispatcher()


def resolve(
    ufunc: object,
    method: str,
    args: tuple[object, ...],
    kwds: Mapping[str, object] | None,
    nin: int,
) -> DispatchOutcome:
    return _DEFAULT_DISPATCHER.resolve(ufunc, method, args, kwds, nin)


def check_override(
    ufunc: object,
    method: str,
    args: tuple[object, ...],
    kwds: Mapping[str, object] | None,
    nin: int,
    *,
    dispatcher: OverrideDispatcher | None = None,
) -> object:
    """Return the override's result, or ``NO_OVERRIDE`` when the native kernel should run.

    Failures are raised; an override's own exception is re-raised unchanged.
    """
    active = dispatcher if dispatcher is not None else _DEFAULT_DISPATCHER
    outcome = active.resolve(ufunc, method, args, kwds, nin)
    if isinstance(outcome, Result):
        return outcome.value
    if isinstance(outcome, NoOverride):
        return NO_OVERRIDE
    raise outcome.error
