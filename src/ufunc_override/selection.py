"""Priority selection among override candidates.

Candidates are tried subclasses before superclasses, otherwise left to right.
The functions here are pure: they only consult the supplied subtype oracle,
so the ordering can be checked against any type system.
"""

from __future__ import annotations

from collections.abc import Container, Iterator, Sequence
from typing import Callable, TypeVar

T = TypeVar("T")

# oracle(other, value) -> True when ``other`` should be tried before ``value``.
SubtypeOracle = Callable[[object, object], bool]


def select_next(
    candidates: Sequence[T],
    is_more_specific: SubtypeOracle,
    *,
    tried: Container[int] = (),
    value_of: Callable[[T], object] | None = None,
) -> int | None:
    """Index of the candidate to try next, or None when nothing is selectable.

    Indices in ``tried`` are ignored. A candidate is skipped while some
    untried candidate to its right is more specific.
    """
    get = value_of if value_of is not None else (lambda item: item)
    for i, candidate in enumerate(candidates):
        if i in tried:
            continue
        value = get(candidate)
        shadowed = False
        for j in range(i + 1, len(candidates)):
            if j in tried:
                continue
            other = candidates[j]
            if is_more_specific(get(other), value):
                shadowed = True
                break
        if not shadowed:
            return i
    return None


def priority_order(candidates: Sequence[T], is_more_specific: SubtypeOracle, *, value_of: Callable[[T], object] | None = None) -> Iterator[T]:
    """Yield candidates in the order overrides are attempted, each exactly once."""
    tried: set[int] = set()
    while True:
        index = select_next(candidates, is_more_specific, tried=tried, value_of=value_of)
        if index is None:
            return
        tried.add(index)
        yield candidates[index]
