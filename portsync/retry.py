"""
Bounded retry policy with tagged outcomes.

A call ends as one of:
- Success(value, attempts)
- RetryableFailure(cause, attempt): another attempt will be made
- FatalFailure(cause, attempts): give up. The cause is either a fatal error
  type, any failure in single-shot mode, or the last failure once the
  attempt budget is spent.

The policy never exits the process; the caller decides what a FatalFailure means.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type, Union

from .errors import LoginFailedError
from .logger import logger


@dataclass(frozen=True)
class Success:
    value: Any
    attempts: int = 1


@dataclass(frozen=True)
class RetryableFailure:
    cause: Exception
    attempt: int


@dataclass(frozen=True)
class FatalFailure:
    cause: Exception
    attempts: int


Outcome = Union[Success, RetryableFailure, FatalFailure]


class RetryPolicy:
    def __init__(
        self,
        max_attempts: int = 20,
        delay: float = 10.0,
        fatal: Tuple[Type[BaseException], ...] = (LoginFailedError,),
        single_shot: bool = False,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self.delay = delay
        self.fatal = fatal
        self.single_shot = single_shot

    def classify(self, error: Exception, attempt: int) -> Union[RetryableFailure, FatalFailure]:
        """Decide whether a failure on the given attempt (1-based) may be retried."""
        if isinstance(error, self.fatal):
            return FatalFailure(error, attempt)
        # TODO: single-shot mode gives up on the first transient failure too; revisit
        # whether a short retry budget would serve one-off runs started with the VPN.
        if self.single_shot:
            return FatalFailure(error, attempt)
        if attempt >= self.max_attempts:
            return FatalFailure(error, attempt)
        return RetryableFailure(error, attempt)

    def call(
        self,
        func: Callable[[], Any],
        wait: Callable[[float], Optional[bool]] = time.sleep,
    ) -> Union[Success, FatalFailure]:
        """
        Run func until it succeeds or fails fatally.

        Args:
            func: Callable taking no arguments
            wait: Called with the delay between attempts. A truthy return value
                  (as from threading.Event.wait) means cancellation and stops
                  retrying with the last failure.

        Returns:
            Success or FatalFailure
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return Success(func(), attempt)
            except Exception as e:
                outcome = self.classify(e, attempt)

            if isinstance(outcome, FatalFailure):
                return outcome

            remaining = self.max_attempts - attempt
            logger.info(
                f"Attempt {attempt} failed: {outcome.cause}. "
                f"Retrying in {self.delay}s ({remaining} attempts remaining)"
            )
            if wait(self.delay):
                return FatalFailure(outcome.cause, attempt)
