import itertools

import pytest

from retry import (
    DEFAULT_MAX_ATTEMPTS,
    Failure,
    RetryExhausted,
    Success,
    attempt,
    execute,
)


def test_returns_value_after_transient_failures() -> None:
    calls: list[int] = []

    def operation() -> str:
        calls.append(1)
        if len(calls) < 3:
            raise ValueError("browser busy")
        return "ok"

    assert execute(operation, max_attempts=5) == "ok"
    assert len(calls) == 3


def test_alternating_messages_collapse_to_distinct_causes() -> None:
    counter = itertools.count()

    def operation() -> None:
        raise RuntimeError("first" if next(counter) % 2 == 0 else "second")

    with pytest.raises(RetryExhausted) as info:
        execute(operation, max_attempts=5)

    assert [str(cause) for cause in info.value.causes] == ["first", "second"]
    assert info.value.attempts == 5
    assert next(counter) == 5


def test_default_attempt_count() -> None:
    calls: list[int] = []

    def operation() -> None:
        calls.append(1)
        raise RuntimeError("nope")

    with pytest.raises(RetryExhausted):
        execute(operation)

    assert len(calls) == DEFAULT_MAX_ATTEMPTS == 3


def test_unmatched_errors_propagate_immediately() -> None:
    calls: list[int] = []

    def operation() -> None:
        calls.append(1)
        raise KeyError("fatal")

    with pytest.raises(KeyError):
        execute(operation, max_attempts=4, retry_on=(ValueError,))

    assert len(calls) == 1


def test_waits_between_attempts_but_not_after_the_last() -> None:
    sleeps: list[float] = []

    def operation() -> None:
        raise ValueError("still failing")

    with pytest.raises(RetryExhausted):
        execute(
            operation,
            max_attempts=3,
            retry_interval=0.5,
            sleep=sleeps.append,
        )

    assert sleeps == [0.5, 0.5]


def test_no_wait_without_interval() -> None:
    sleeps: list[float] = []
    outcome = attempt(
        lambda: 1 / 0, max_attempts=2, sleep=sleeps.append
    )
    assert isinstance(outcome, Failure)
    assert sleeps == []


def test_attempt_returns_typed_outcomes() -> None:
    assert attempt(lambda: 42) == Success(42)

    outcome = attempt(lambda: int("x"), max_attempts=2)
    assert isinstance(outcome, Failure)
    assert len(outcome.errors) == 1
    assert isinstance(outcome.errors[0], ValueError)


def test_on_failure_reports_each_attempt() -> None:
    seen: list[tuple[int, str]] = []
    outcome = attempt(
        lambda: int("x"),
        max_attempts=3,
        on_failure=lambda number, error: seen.append((number, type(error).__name__)),
    )
    assert isinstance(outcome, Failure)
    assert seen == [(1, "ValueError"), (2, "ValueError"), (3, "ValueError")]


def test_rejects_non_positive_attempts() -> None:
    with pytest.raises(ValueError):
        execute(lambda: None, max_attempts=0)
