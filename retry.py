"""Bounded retry helpers that collect distinct failures across attempts."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    """Result of an operation that completed within its attempt budget."""

    value: T


@dataclass(frozen=True, slots=True)
class Failure:
    """Distinct errors collected after every attempt failed."""

    errors: tuple[BaseException, ...]


RetryOutcome = Union[Success[T], Failure]


class RetryExhausted(Exception):
    """Raised when every attempt of an operation failed."""

    def __init__(
        self, causes: tuple[BaseException, ...], attempts: int
    ) -> None:
        self.causes = causes
        self.attempts = attempts
        details = "; ".join(str(cause) for cause in causes)
        super().__init__(
            f"Operation failed after {attempts} attempt(s): {details}"
        )


def _add_distinct(
    errors: list[BaseException], error: BaseException
) -> None:
    message = str(error)
    if all(str(existing) != message for existing in errors):
        errors.append(error)


def attempt(
    operation: Callable[[], T],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_interval: Optional[float] = None,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Optional[Callable[[float], None]] = None,
    on_failure: Optional[Callable[[int, BaseException], None]] = None,
) -> RetryOutcome[T]:
    """Run ``operation`` up to ``max_attempts`` times.

    Errors matching ``retry_on`` are collected (one per distinct message) and
    the operation is tried again after ``retry_interval`` seconds. Any other
    error propagates from the attempt that raised it.
    """

    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    errors: list[BaseException] = []
    for attempt_number in range(1, max_attempts + 1):
        try:
            return Success(operation())
        except retry_on as exc:
            _add_distinct(errors, exc)
            if on_failure is not None:
                on_failure(attempt_number, exc)
        if retry_interval and attempt_number < max_attempts:
            (sleep or time.sleep)(retry_interval)

    return Failure(tuple(errors))


def execute(
    operation: Callable[[], T],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_interval: Optional[float] = None,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Optional[Callable[[float], None]] = None,
    on_failure: Optional[Callable[[int, BaseException], None]] = None,
) -> T:
    """Return the first successful result or raise ``RetryExhausted``."""

    outcome = attempt(
        operation,
        max_attempts=max_attempts,
        retry_interval=retry_interval,
        retry_on=retry_on,
        sleep=sleep,
        on_failure=on_failure,
    )
    if isinstance(outcome, Failure):
        raise RetryExhausted(outcome.errors, attempts=max_attempts)
    return outcome.value


__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "Failure",
    "RetryExhausted",
    "RetryOutcome",
    "Success",
    "attempt",
    "execute",
]
