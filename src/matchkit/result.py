"""Result container for explicit success/failure values.

A ``Result`` is either ``Success(value)`` or ``Failure(reason)``. Failures
are ordinary values inspected through ``dispatch``; nothing here raises on a
failed computation.

A failure always has a reason. Constructing one without a reason (through
``failure()`` or ``Failure(None)``) stores ``EMPTY_REASON``, the same
placeholder object every time.
"""

from __future__ import annotations

import dataclasses
import typing

from matchkit.errors import EmptyReasonError, InvariantViolationError

if typing.TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from matchkit.option import Option

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)

EMPTY_REASON: typing.Final[EmptyReasonError] = EmptyReasonError("")
"""Canonical reason of a failure constructed without one."""


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful computation, holding its value."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure: Exception]:
    """A failed computation, holding the reason it failed."""

    reason: TFailure

    def __post_init__(self) -> None:
        if self.reason is None:
            object.__setattr__(self, "reason", EMPTY_REASON)


Result = Success[TSuccess] | Failure[TFailure]


def success[T](value: T) -> Result[T, typing.Any]:
    """Construct a successful result."""
    return Success(value)


def failure[E: Exception](reason: E | None = None) -> Result[typing.Any, E]:
    """Construct a failed result; ``None`` becomes ``EMPTY_REASON``."""
    return Failure(typing.cast("E", reason))


def dispatch[T, E: Exception, U](
    r: Result[T, E],
    on_success: Callable[[T], U],
    on_failure: Callable[[E], U],
) -> U:
    """Run ``on_success(value)`` or ``on_failure(reason)`` depending on the state of ``r``.

    Exactly one of the two functions runs and its return value is returned.

    Raises:
        InvariantViolationError: If ``r`` is not a ``Result``.
    """
    if isinstance(r, Success):
        return on_success(r.value)
    if isinstance(r, Failure):
        return on_failure(r.reason)
    raise InvariantViolationError(
        f"Expected Success or Failure, got {type(r).__name__}",
        hint="Wrap plain values with success()/failure() or try_call().",
    )


def map[T, E: Exception, U](f: Callable[[T], U], r: Result[T, E]) -> Result[U, E]:  # noqa: A001
    """Apply ``f`` to a successful value; failures pass through unchanged."""
    return dispatch(r, lambda v: success(f(v)), failure)


def map_failure[T, E: Exception, F: Exception](
    f: Callable[[E], F], r: Result[T, E]
) -> Result[T, F]:
    """Apply ``f`` to a failure reason; successes pass through unchanged."""
    return dispatch(r, success, lambda e: failure(f(e)))


def apply[T, E: Exception, U](
    rf: Result[Callable[[T], U], E], r: Result[T, E]
) -> Result[U, E]:
    """Apply the function held in ``rf`` to the value held in ``r``.

    When both are failures the reason of ``rf`` wins.
    """
    return dispatch(rf, lambda f: map(f, r), failure)


def bind[T, E: Exception, U](
    r: Result[T, E], f: Callable[[T], Result[U, E]]
) -> Result[U, E]:
    """Feed a successful value to ``f``, which itself returns a result."""
    return dispatch(r, f, failure)


def run_chain[T, E: Exception](
    r: Result[T, E], stages: Iterable[Callable[[T], Result[T, E]]]
) -> Result[T, E]:
    """Thread ``r`` through ``stages`` in order, stopping at the first failure.

    Raises:
        InvariantViolationError: If the input or any stage's output is not
            a ``Result``, including the last stage's.
    """
    current = r
    for stage in stages:
        if dispatch(current, lambda _: False, lambda _: True):
            break
        current = bind(current, stage)
    return dispatch(current, success, failure)


def value_or[T, E: Exception](r: Result[T, E], default: T) -> T:
    """Return the successful value, or ``default`` on failure."""
    return dispatch(r, lambda v: v, lambda _: default)


def try_call[T](
    fn: Callable[..., T], /, *args: typing.Any, **kwargs: typing.Any
) -> Result[T, Exception]:
    """Call ``fn`` and capture its outcome.

    Any ``Exception`` raised by ``fn`` becomes the reason of a failure;
    ``BaseException`` subclasses such as ``KeyboardInterrupt`` propagate.
    """
    try:
        value = fn(*args, **kwargs)
    except Exception as e:
        return failure(e)
    return success(value)


def to_option[T, E: Exception](r: Result[T, E]) -> Option[T]:
    """Convert to an option, dropping the failure reason."""
    from matchkit import option

    return dispatch(r, option.present, lambda _: option.absent())


__all__ = [
    "EMPTY_REASON",
    "Failure",
    "Result",
    "Success",
    "apply",
    "bind",
    "dispatch",
    "failure",
    "map",
    "map_failure",
    "run_chain",
    "success",
    "to_option",
    "try_call",
    "value_or",
]
