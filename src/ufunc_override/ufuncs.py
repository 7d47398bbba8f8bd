"""Ufunc objects backed by jax kernels that honour operand overrides."""

from __future__ import annotations

import os
from typing import Callable, Final

import jax
from jax import lax
import jax.numpy as jnp

from .dispatcher import OverrideDispatcher, check_override
from .errors import UnsupportedError
from .outcomes import NO_OVERRIDE

_USE_OVERRIDE_DISPATCH: Final[bool] = os.environ.get("UFUNC_OVERRIDE_DISABLE_DISPATCH", "0") != "1"
_USE_JITTED_KERNELS: Final[bool] = os.environ.get("UFUNC_OVERRIDE_DISABLE_JITTED_KERNELS", "0") != "1"

_NATIVE_CALL_KEYWORDS: Final[frozenset[str]] = frozenset({"dtype", "out"})
_JITTED_KERNELS: dict[tuple[str, Callable[..., jnp.ndarray]], Callable[..., jnp.ndarray]] = {}

Reducer = Callable[..., jnp.ndarray]
Accumulator = Callable[[jnp.ndarray, int], jnp.ndarray]


def _jitted_kernel(name: str, kernel: Callable[..., jnp.ndarray]) -> Callable[..., jnp.ndarray]:
    key = (name, kernel)
    fn = _JITTED_KERNELS.get(key)
    if fn is None:
        fn = jax.jit(kernel)
        _JITTED_KERNELS[key] = fn
    return fn


def _has_outputs(outputs) -> bool:
    if outputs is None:
        return False
    if isinstance(outputs, tuple):
        return any(item is not None for item in outputs)
    return True


class Ufunc:
    """Element-wise operation with ``nin`` inputs and ``nout`` outputs.

    Every method first gives operand overrides a chance to handle the call;
    the jax kernel runs only when no operand overrides it.
    """

    def __init__(
        self,
        name: str,
        nin: int,
        nout: int,
        kernel: Callable[..., jnp.ndarray],
        *,
        reducer: Reducer | None = None,
        accumulator: Accumulator | None = None,
        dispatcher: OverrideDispatcher | None = None,
    ) -> None:
        if nin < 1 or nout < 1:
            raise ValueError("a ufunc needs at least one input and one output")
        self.__name__ = name
        self.nin = nin
        self.nout = nout
        self.kernel = kernel
        self.reducer = reducer
        self.accumulator = accumulator
        self.dispatcher = dispatcher

    @property
    def nargs(self) -> int:
        return self.nin + self.nout

    def __repr__(self) -> str:
        return f"<ufunc {self.__name__!r}>"

    def _override(self, method: str, args: tuple[object, ...], kwds: dict[str, object], nin: int) -> object:
        if not _USE_OVERRIDE_DISPATCH:
            return NO_OVERRIDE
        return check_override(self, method, args, kwds, nin, dispatcher=self.dispatcher)

    def _native_kernel(self) -> Callable[..., jnp.ndarray]:
        if not _USE_JITTED_KERNELS:
            return self.kernel
        return _jitted_kernel(self.__name__, self.kernel)

    def _require_binary(self, method: str) -> None:
        if self.nin != 2 or self.nout != 1:
            raise ValueError(f"{method} only supported for binary functions")

    def _check_native_keywords(self, method: str, kwargs: dict[str, object]) -> None:
        unknown = sorted(set(kwargs) - _NATIVE_CALL_KEYWORDS)
        if unknown:
            raise TypeError(f"{self.__name__}.{method}() got unexpected keyword arguments {unknown}")
        if _has_outputs(kwargs.get("out")):
            raise UnsupportedError(
                f"{self.__name__}.{method}: jax arrays are immutable, out= is only honoured by overrides"
            )

    def __call__(self, *args, **kwargs):
        if len(args) < self.nin:
            raise TypeError(f"{self.__name__}() takes at least {self.nin} positional arguments ({len(args)} given)")
        if len(args) > self.nargs:
            raise TypeError(f"{self.__name__}() takes at most {self.nargs} positional arguments ({len(args)} given)")

        result = self._override("__call__", args, kwargs, self.nin)
        if result is not NO_OVERRIDE:
            return result

        self._check_native_keywords("__call__", kwargs)
        if _has_outputs(tuple(args[self.nin :])):
            raise UnsupportedError(
                f"{self.__name__}: jax arrays are immutable, output arguments are only honoured by overrides"
            )
        dtype = kwargs.get("dtype")
        inputs = [jnp.asarray(value, dtype=dtype) for value in args[: self.nin]]
        return self._native_kernel()(*inputs)

    def reduce(self, array, axis=0, dtype=None, out=None, keepdims=False):
        self._require_binary("reduce")
        kwds: dict[str, object] = {"axis": axis, "dtype": dtype, "keepdims": keepdims}
        if out is not None:
            kwds["out"] = out
        result = self._override("reduce", (array,), kwds, 1)
        if result is not NO_OVERRIDE:
            return result

        self._check_native_keywords("reduce", {"out": out})
        if self.reducer is None:
            raise UnsupportedError(f"{self.__name__}.reduce has no native reducer")
        return self.reducer(jnp.asarray(array, dtype=dtype), axis=axis, keepdims=keepdims)

    def accumulate(self, array, axis=0, dtype=None, out=None):
        self._require_binary("accumulate")
        kwds: dict[str, object] = {"axis": axis, "dtype": dtype}
        if out is not None:
            kwds["out"] = out
        result = self._override("accumulate", (array,), kwds, 1)
        if result is not NO_OVERRIDE:
            return result

        self._check_native_keywords("accumulate", {"out": out})
        if self.accumulator is None:
            raise UnsupportedError(f"{self.__name__}.accumulate has no native accumulator")
        arr = jnp.asarray(array, dtype=dtype)
        if arr.ndim == 0:
            raise ValueError("cannot accumulate on a scalar")
        return self.accumulator(arr, int(axis))

    def outer(self, a, b, **kwargs):
        self._require_binary("outer")
        result = self._override("outer", (a, b), kwargs, 2)
        if result is not NO_OVERRIDE:
            return result

        self._check_native_keywords("outer", kwargs)
        dtype = kwargs.get("dtype")
        left = jnp.asarray(a, dtype=dtype)
        right = jnp.asarray(b, dtype=dtype)
        left = jnp.reshape(left, left.shape + (1,) * right.ndim)
        return self._native_kernel()(left, right)


def _cummax(arr: jnp.ndarray, axis: int) -> jnp.ndarray:
    return lax.cummax(arr, axis=axis % arr.ndim)


def _cummin(arr: jnp.ndarray, axis: int) -> jnp.ndarray:
    return lax.cummin(arr, axis=axis % arr.ndim)


add = Ufunc("add", 2, 1, lambda x1, x2: jnp.add(x1, x2), reducer=jnp.sum, accumulator=lambda arr, axis: jnp.cumsum(arr, axis=axis))
subtract = Ufunc("subtract", 2, 1, lambda x1, x2: jnp.subtract(x1, x2))
multiply = Ufunc("multiply", 2, 1, lambda x1, x2: jnp.multiply(x1, x2), reducer=jnp.prod, accumulator=lambda arr, axis: jnp.cumprod(arr, axis=axis))
true_divide = Ufunc("true_divide", 2, 1, lambda x1, x2: jnp.true_divide(x1, x2))
divide = true_divide
maximum = Ufunc("maximum", 2, 1, lambda x1, x2: jnp.maximum(x1, x2), reducer=jnp.max, accumulator=_cummax)
minimum = Ufunc("minimum", 2, 1, lambda x1, x2: jnp.minimum(x1, x2), reducer=jnp.min, accumulator=_cummin)
power = Ufunc("power", 2, 1, lambda x1, x2: jnp.power(x1, x2))
negative = Ufunc("negative", 1, 1, lambda x: -x)
absolute = Ufunc("absolute", 1, 1, lambda x: jnp.abs(x))
sqrt = Ufunc("sqrt", 1, 1, lambda x: jnp.sqrt(x))
exp = Ufunc("exp", 1, 1, lambda x: jnp.exp(x))
log = Ufunc("log", 1, 1, lambda x: jnp.log(x))

STANDARD_UFUNCS: Final[tuple[Ufunc, ...]] = (
    add,
    subtract,
    multiply,
    true_divide,
    maximum,
    minimum,
    power,
    negative,
    absolute,
    sqrt,
    exp,
    log,
)
