"""Option boundary tests: factories, dispatch and the combinator laws."""

from __future__ import annotations

from typing import Any

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from matchkit import option, result
from matchkit.errors import InvariantViolationError
from matchkit.option import Absent, Present, absent, present
from matchkit.result import EMPTY_REASON

pytestmark = pytest.mark.unit

options = st.one_of(st.integers().map(present), st.just(absent()))


def _fail_if_called(*_args: Any) -> Any:
    raise AssertionError("handler must not run")


# =============================================================================
# Factories and dispatch
# =============================================================================


def test_present_holds_value() -> None:
    assert present(1) == Present(1)


def test_absent_is_absent() -> None:
    assert absent() == Absent()


def test_present_none_is_still_present() -> None:
    """None is a value; only absent() means absence."""
    assert option.dispatch(present(None), lambda v: ("some", v), lambda: "none") == (
        "some",
        None,
    )


def test_options_are_immutable() -> None:
    o = present(1)
    with pytest.raises(AttributeError):
        o.value = 2  # type: ignore[misc]


def test_nested_options_are_allowed() -> None:
    nested = present(present(3))
    inner = option.dispatch(nested, lambda v: v, absent)
    assert inner == present(3)


def test_dispatch_matches_original_behavior() -> None:
    some = lambda v: v  # noqa: E731
    none = lambda: -1  # noqa: E731

    assert option.dispatch(present(1), some, none) == 1
    assert option.dispatch(absent(), some, none) == -1


def test_dispatch_runs_exactly_one_branch() -> None:
    calls: list[str] = []

    def on_present(v: int) -> str:
        calls.append("present")
        return f"v={v}"

    def on_absent() -> str:
        calls.append("absent")
        return "nothing"

    assert option.dispatch(present(5), on_present, on_absent) == "v=5"
    assert option.dispatch(absent(), on_present, on_absent) == "nothing"
    assert calls == ["present", "absent"]


@pytest.mark.parametrize("bogus", [None, 1, "x", result.success(1)])
def test_dispatch_rejects_non_options(bogus: Any) -> None:
    with pytest.raises(InvariantViolationError) as exc:
        option.dispatch(bogus, _fail_if_called, _fail_if_called)
    assert exc.value.hint is not None


@given(v=st.integers())
@settings(max_examples=25, deadline=None, derandomize=True)
def test_dispatch_present_calls_on_present(v: int) -> None:
    assert option.dispatch(present(v), lambda x: x * 2, lambda: None) == v * 2


# =============================================================================
# map / apply / bind
# =============================================================================


def test_map_over_absent_does_not_call_f() -> None:
    assert option.map(_fail_if_called, absent()) == absent()


def test_map_over_present() -> None:
    assert option.map(lambda v: v != 0, present(1)) == present(True)


@given(o=options)
@settings(max_examples=25, deadline=None, derandomize=True)
def test_map_identity_law(o: option.Option[int]) -> None:
    assert option.map(lambda v: v, o) == o


@given(o=options)
@settings(max_examples=25, deadline=None, derandomize=True)
def test_map_composition_law(o: option.Option[int]) -> None:
    f = lambda v: v + 1  # noqa: E731
    g = lambda v: v * 3  # noqa: E731
    assert option.map(g, option.map(f, o)) == option.map(lambda v: g(f(v)), o)


def test_apply_with_both_present() -> None:
    assert option.apply(present(lambda v: v + 1), present(1)) == present(2)


@given(o=options)
@settings(max_examples=10, deadline=None, derandomize=True)
def test_apply_absent_function_is_absent(o: option.Option[int]) -> None:
    assert option.apply(absent(), o) == absent()


def test_apply_absent_value_is_absent() -> None:
    assert option.apply(present(_fail_if_called), absent()) == absent()


def test_bind_absent_does_not_call_f() -> None:
    assert option.bind(absent(), _fail_if_called) == absent()


@given(v=st.integers())
@settings(max_examples=25, deadline=None, derandomize=True)
def test_bind_present_is_f_of_value(v: int) -> None:
    def half(x: int) -> option.Option[int]:
        return present(x // 2) if x % 2 == 0 else absent()

    assert option.bind(present(v), half) == half(v)


def test_bind_does_not_nest() -> None:
    assert option.bind(present(2), lambda v: present(v * 10)) == present(20)


# =============================================================================
# run_chain
# =============================================================================


def test_run_chain_with_no_stages_returns_input() -> None:
    assert option.run_chain(present(7), []) == present(7)


def test_run_chain_absent_input_invokes_no_stage() -> None:
    assert option.run_chain(absent(), [_fail_if_called, _fail_if_called]) == absent()


def test_run_chain_applies_stages_in_order() -> None:
    stages = [lambda v: present(v + 1), lambda v: present(v * 10)]
    assert option.run_chain(present(1), stages) == present(20)


def test_run_chain_short_circuits_on_first_absent() -> None:
    invoked: list[str] = []

    def first(v: int) -> option.Option[int]:
        invoked.append("first")
        return present(v)

    def second(_v: int) -> option.Option[int]:
        invoked.append("second")
        return absent()

    def third(v: int) -> option.Option[int]:
        invoked.append("third")
        return present(v)

    assert option.run_chain(present(1), [first, second, third]) == absent()
    assert invoked == ["first", "second"]


@pytest.mark.parametrize("position", [0, 1])
def test_run_chain_rejects_non_option_from_any_stage(position: int) -> None:
    stages = [lambda v: present(v), lambda v: present(v)]
    stages[position] = lambda _v: None
    with pytest.raises(InvariantViolationError):
        option.run_chain(present(1), stages)


def test_run_chain_accepts_generators() -> None:
    stages = (lambda v, k=k: present(v + k) for k in range(3))
    assert option.run_chain(present(0), stages) == present(3)


# =============================================================================
# Helpers built on dispatch
# =============================================================================


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, absent()), (0, present(0)), ("", present("")), (False, present(False))],
)
def test_from_nullable(value: Any, expected: option.Option[Any]) -> None:
    assert option.from_nullable(value) == expected


def test_value_or() -> None:
    assert option.value_or(present(1), 9) == 1
    assert option.value_or(absent(), 9) == 9


def test_or_else_only_calls_fallback_when_absent() -> None:
    assert option.or_else(present(1), _fail_if_called) == present(1)
    assert option.or_else(absent(), lambda: present(2)) == present(2)


def test_to_result() -> None:
    reason = KeyError("missing")
    assert option.to_result(present(1)) == result.success(1)
    assert option.to_result(absent(), reason) == result.failure(reason)
    empty = option.to_result(absent())
    assert result.dispatch(empty, _fail_if_called, lambda e: e) is EMPTY_REASON
