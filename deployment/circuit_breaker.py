"""
Circuit breaker for provider calls.
Stops hammering the embedding/completion provider while it is failing,
so queries fail fast with a clear "could not answer" instead of timing out.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitOpenError(Exception):
    """Raised when circuit breaker is open."""


@dataclass
class CircuitBreaker:
    """
    Circuit breaker for external provider calls.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: Too many failures, requests rejected immediately
    - HALF_OPEN: Testing recovery, limited requests allowed

    Usage:
        breaker = CircuitBreaker(name="completion", failure_threshold=3)
        result = breaker.call(client.chat.completions.create, **kwargs)
    """

    name: str = "provider"
    failure_threshold: int = 5
    reset_timeout: float = 60.0
    half_open_max_calls: int = 3

    # State tracking
    state: CircuitState = field(default=CircuitState.CLOSED)
    failures: int = field(default=0)
    successes: int = field(default=0)
    last_failure_time: Optional[float] = field(default=None)
    half_open_calls: int = field(default=0)

    def _should_allow_request(self) -> bool:
        if self.state == CircuitState.CLOSED:
            return True

        if self.state == CircuitState.OPEN:
            if (
                self.last_failure_time
                and (time.time() - self.last_failure_time) >= self.reset_timeout
            ):
                self._transition_to_half_open()
                return True
            return False

        return self.half_open_calls < self.half_open_max_calls

    def _transition_to_open(self):
        logger.warning(
            f"Circuit breaker '{self.name}' OPEN: {self.failures} failures in succession"
        )
        self.state = CircuitState.OPEN
        self.last_failure_time = time.time()

    def _transition_to_half_open(self):
        logger.info(f"Circuit breaker '{self.name}' transitioning to HALF_OPEN")
        self.state = CircuitState.HALF_OPEN
        self.half_open_calls = 0
        self.successes = 0

    def _transition_to_closed(self):
        logger.info(f"Circuit breaker '{self.name}' CLOSED: provider recovered")
        self.state = CircuitState.CLOSED
        self.failures = 0
        self.successes = 0
        self.half_open_calls = 0

    def _record_success(self):
        self.failures = 0

        if self.state == CircuitState.HALF_OPEN:
            self.successes += 1
            if self.successes >= self.half_open_max_calls:
                self._transition_to_closed()

    def _record_failure(self):
        self.failures += 1
        self.last_failure_time = time.time()

        if self.state == CircuitState.HALF_OPEN or self.failures >= self.failure_threshold:
            self._transition_to_open()

    def call(self, fn: Callable, *args, **kwargs) -> Any:
        """
        Execute a function with circuit breaker protection.

        Raises:
            CircuitOpenError: If circuit is open
            Exception: Original exception from function
        """
        if not self._should_allow_request():
            remaining = self.reset_timeout - (time.time() - (self.last_failure_time or 0))
            raise CircuitOpenError(
                f"Circuit '{self.name}' is {self.state.value}. Wait {remaining:.0f}s"
            )

        if self.state == CircuitState.HALF_OPEN:
            self.half_open_calls += 1

        try:
            result = fn(*args, **kwargs)
        except Exception:
            self._record_failure()
            raise

        self._record_success()
        return result

    def get_stats(self) -> dict:
        """Get circuit breaker statistics."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failures": self.failures,
            "successes": self.successes,
            "last_failure_time": self.last_failure_time,
            "half_open_calls": self.half_open_calls,
        }


# Global circuit breakers for the two provider calls
_completion_breaker: Optional[CircuitBreaker] = None
_embedding_breaker: Optional[CircuitBreaker] = None


def get_completion_breaker() -> CircuitBreaker:
    """Get circuit breaker for chat completion calls."""
    global _completion_breaker
    if _completion_breaker is None:
        _completion_breaker = CircuitBreaker(
            name="completion", failure_threshold=3, reset_timeout=30.0, half_open_max_calls=2
        )
    return _completion_breaker


def get_embedding_breaker() -> CircuitBreaker:
    """Get circuit breaker for embedding calls."""
    global _embedding_breaker
    if _embedding_breaker is None:
        _embedding_breaker = CircuitBreaker(
            name="embedding", failure_threshold=5, reset_timeout=60.0, half_open_max_calls=3
        )
    return _embedding_breaker


def reset_breakers() -> None:
    """Discard breaker state (used between ingestion runs and in tests)."""
    global _completion_breaker, _embedding_breaker
    _completion_breaker = None
    _embedding_breaker = None
