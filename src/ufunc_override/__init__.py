"""jax-ufunc-override public API."""

from .dispatcher import (
    MAX_ARGS,
    NormalizedCall,
    OverrideDispatcher,
    check_override,
    normalize_call,
    resolve,
)
from .errors import (
    AttributeLookupError,
    ConstructionError,
    InvalidUsageError,
    OverrideNotImplementedError,
    TypeCheckError,
    UfuncOverrideError,
    UnsupportedError,
)
from .operands import OVERRIDE_ATTRIBUTE, OverrideCandidate, discover_candidates
from .outcomes import (
    DECLINED,
    NO_OVERRIDE,
    Accepted,
    Declined,
    DispatchOutcome,
    Failed,
    Failure,
    FailureKind,
    NoOverride,
    Result,
)
from .selection import priority_order, select_next
from .ufuncs import (
    STANDARD_UFUNCS,
    Ufunc,
    absolute,
    add,
    divide,
    exp,
    log,
    maximum,
    minimum,
    multiply,
    negative,
    power,
    sqrt,
    subtract,
    true_divide,
)

__all__ = [
    "resolve",
    "check_override",
    "normalize_call",
    "OverrideDispatcher",
    "NormalizedCall",
    "MAX_ARGS",
    "OVERRIDE_ATTRIBUTE",
    "OverrideCandidate",
    "discover_candidates",
    "select_next",
    "priority_order",
    "DECLINED",
    "NO_OVERRIDE",
    "Accepted",
    "Declined",
    "Failed",
    "DispatchOutcome",
    "NoOverride",
    "Result",
    "Failure",
    "FailureKind",
    "Ufunc",
    "STANDARD_UFUNCS",
    "add",
    "subtract",
    "multiply",
    "true_divide",
    "divide",
    "maximum",
    "minimum",
    "power",
    "negative",
    "absolute",
    "sqrt",
    "exp",
    "log",
    "UfuncOverrideError",
    "InvalidUsageError",
    "OverrideNotImplementedError",
    "AttributeLookupError",
    "ConstructionError",
    "TypeCheckError",
    "UnsupportedError",
]
