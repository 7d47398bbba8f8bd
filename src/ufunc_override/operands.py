"""Operand classification and override-candidate discovery."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Final

import jax.numpy as jnp
import numpy as np

from .errors import AttributeLookupError, TypeCheckError

OVERRIDE_ATTRIBUTE: Final[str] = os.environ.get("UFUNC_OVERRIDE_ATTRIBUTE", "__jax_ufunc__")

_NATIVE_SCALAR_TYPES: Final[tuple[type, ...]] = (bool, int, float, complex, str, bytes, np.generic)


@dataclass(frozen=True)
class OverrideCandidate:
    value: object
    position: int


@lru_cache(maxsize=1)
def native_array_type() -> type:
    """Concrete array class produced by jax (``jaxlib``'s ``ArrayImpl``)."""
    return type(jnp.zeros(()))


def is_native_array(value: object) -> bool:
    # Exact match: subclasses may carry overrides of their own.
    return type(value) is native_array_type()


def is_native_scalar(value: object) -> bool:
    return isinstance(value, _NATIVE_SCALAR_TYPES)


def is_more_specific(other: object, value: object) -> bool:
    """True when ``other`` is an instance of a strict subclass of ``type(value)``."""
    value_type = type(value)
    return type(other) is not value_type and isinstance(other, value_type)


def has_override(value: object, attribute: str = OVERRIDE_ATTRIBUTE) -> bool:
    try:
        getattr(value, attribute)
    except AttributeError:
        return False
    except Exception as exc:
        raise AttributeLookupError(
            f"looking up {attribute} on {type(value).__name__} failed: {exc}"
        ) from exc
    return True


def get_override(value: object, attribute: str = OVERRIDE_ATTRIBUTE) -> Callable[..., object]:
    try:
        return getattr(value, attribute)
    except Exception as exc:
        raise AttributeLookupError(
            f"looking up {attribute} on {type(value).__name__} failed: {exc}"
        ) from exc


def discover_candidates(
    args: tuple[object, ...],
    *,
    attribute: str = OVERRIDE_ATTRIBUTE,
    native_array: Callable[[object], bool] = is_native_array,
    native_scalar: Callable[[object], bool] = is_native_scalar,
) -> list[OverrideCandidate]:
    candidates: list[OverrideCandidate] = []
    for position, value in enumerate(args):
        try:
            native = native_array(value) or native_scalar(value)
        except Exception as exc:
            raise TypeCheckError(
                f"classifying operand {position} ({type(value).__name__}) failed: {exc}"
            ) from exc
        if native:
            continue
        if has_override(value, attribute):
            candidates.append(OverrideCandidate(value=value, position=position))
    return candidates
