"""Optional container with exhaustive dispatch.

An ``Option`` is either ``Present(value)`` or ``Absent()``. Callers never
check the state themselves: ``dispatch`` takes one function per state and
runs exactly one of them. Every combinator in this module is written in
terms of ``dispatch``, so it stays the single place that looks at state.

Example:
    ```python
    from matchkit import option

    doubled = option.map(lambda v: v * 2, option.present(21))
    text = option.dispatch(doubled, str, lambda: "nothing")  # "42"
    ```
"""

from __future__ import annotations

import dataclasses
import typing

from matchkit.errors import InvariantViolationError

if typing.TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from matchkit.result import Result

T = typing.TypeVar("T")


@dataclasses.dataclass(frozen=True, slots=True)
class Present[T]:
    """An option holding a value."""

    value: T


@dataclasses.dataclass(frozen=True, slots=True)
class Absent[T]:
    """An option holding nothing."""


Option = Present[T] | Absent[T]


def present[T](value: T) -> Option[T]:
    """Construct an option holding ``value``.

    ``None`` is a value like any other here; use ``from_nullable`` to treat
    ``None`` as absence.
    """
    return Present(value)


def absent[T]() -> Option[T]:
    """Construct an option holding nothing."""
    return Absent()


def dispatch[T, U](
    o: Option[T],
    on_present: Callable[[T], U],
    on_absent: Callable[[], U],
) -> U:
    """Run ``on_present(value)`` or ``on_absent()`` depending on the state of ``o``.

    Exactly one of the two functions runs and its return value is returned.

    Raises:
        InvariantViolationError: If ``o`` is not an ``Option``.
    """
    if isinstance(o, Present):
        return on_present(o.value)
    if isinstance(o, Absent):
        return on_absent()
    raise InvariantViolationError(
        f"Expected Present or Absent, got {type(o).__name__}",
        hint="Wrap plain values with present()/absent() or from_nullable().",
    )


def map[T, U](f: Callable[[T], U], o: Option[T]) -> Option[U]:  # noqa: A001
    """Apply ``f`` to the value in ``o``; absence stays absent."""
    return dispatch(o, lambda v: present(f(v)), absent)


def apply[T, U](of: Option[Callable[[T], U]], o: Option[T]) -> Option[U]:
    """Apply the function held in ``of`` to the value held in ``o``.

    The result is present only when both options are present.
    """
    return dispatch(of, lambda f: map(f, o), absent)


def bind[T, U](o: Option[T], f: Callable[[T], Option[U]]) -> Option[U]:
    """Feed the value in ``o`` to ``f``, which itself returns an option.

    Unlike ``map`` this does not nest: ``bind(present(v), f) == f(v)``.
    """
    return dispatch(o, f, absent)


def run_chain[T](o: Option[T], stages: Iterable[Callable[[T], Option[T]]]) -> Option[T]:
    """Thread ``o`` through ``stages`` in order, stopping at the first absence.

    - An absent input invokes no stage.
    - Once a stage returns ``Absent`` no later stage is invoked.
    - With no stages the result equals the input.

    Raises:
        InvariantViolationError: If the input or any stage's output is not
            an ``Option``, including the last stage's.
    """
    current = o
    for stage in stages:
        if dispatch(current, lambda _: False, lambda: True):
            break
        current = bind(current, stage)
    return dispatch(current, present, absent)


def from_nullable[T](value: T | None) -> Option[T]:
    """Convert a nullable value: ``None`` becomes ``Absent``."""
    return absent() if value is None else present(value)


def value_or[T](o: Option[T], default: T) -> T:
    """Return the present value, or ``default`` when absent."""
    return dispatch(o, lambda v: v, lambda: default)


def or_else[T](o: Option[T], fallback: Callable[[], Option[T]]) -> Option[T]:
    """Return ``o`` when present, otherwise the option produced by ``fallback``."""
    return dispatch(o, lambda _: o, fallback)


def to_result[T](o: Option[T], reason: Exception | None = None) -> Result[T, Exception]:
    """Convert to a result: present becomes success, absent becomes failure.

    A missing ``reason`` follows ``failure``: the canonical empty reason is used.
    """
    from matchkit import result

    return dispatch(o, result.success, lambda: result.failure(reason))


__all__ = [
    "Absent",
    "Option",
    "Present",
    "absent",
    "apply",
    "bind",
    "dispatch",
    "from_nullable",
    "map",
    "or_else",
    "present",
    "run_chain",
    "to_result",
    "value_or",
]
