"""
Guardian AI - Circuit Breaker Pattern

Stops hammering an external dependency (LLM API, JSON-RPC node) once it
keeps failing, and lets a few trial calls through after a cool-down.

States:
- CLOSED: Normal operation, calls pass through
- OPEN: Too many recent failures, calls rejected
- HALF_OPEN: Cool-down elapsed, trial calls allowed
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    """Thresholds for one circuit."""

    failure_threshold: int = 5
    failure_rate_threshold: float = 0.5
    window_size: int = 10
    min_calls_for_rate: int = 5
    recovery_timeout: float = 30.0
    half_open_max_calls: int = 3
    success_threshold: int = 2
    call_timeout: float | None = 30.0


@dataclass
class CircuitStats:
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0
    timeout_calls: int = 0
    # True for success, False for failure, most recent last
    window: deque[bool] = field(default_factory=deque)
    opened_at: float | None = None
    half_open_calls: int = 0
    half_open_successes: int = 0

    @property
    def recent_failures(self) -> int:
        return sum(1 for ok in self.window if not ok)

    @property
    def failure_rate(self) -> float:
        if not self.window:
            return 0.0
        return self.recent_failures / len(self.window)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_calls": self.total_calls,
            "successful_calls": self.successful_calls,
            "failed_calls": self.failed_calls,
            "rejected_calls": self.rejected_calls,
            "timeout_calls": self.timeout_calls,
            "failure_rate": self.failure_rate,
        }


class CircuitBreakerError(Exception):
    """Raised when the circuit is open and the call is rejected."""

    def __init__(
        self,
        circuit_name: str,
        state: CircuitState,
        recovery_time: float | None = None,
    ):
        self.circuit_name = circuit_name
        self.state = state
        self.recovery_time = recovery_time

        msg = f"Circuit '{circuit_name}' is {state.value}"
        if recovery_time:
            msg += f", recovery in {recovery_time:.1f}s"
        super().__init__(msg)


class CircuitBreaker(Generic[T]):
    """
    Async circuit breaker.

    Usage:
        breaker = CircuitBreaker("llm", config)
        result = await breaker.call(provider.complete, messages)
    """

    def __init__(self, name: str, config: CircuitBreakerConfig | None = None):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self._state = CircuitState.CLOSED
        self._stats = CircuitStats(window=deque(maxlen=self.config.window_size))
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def stats(self) -> CircuitStats:
        return self._stats

    @property
    def is_open(self) -> bool:
        return self._state == CircuitState.OPEN

    def _set_state(self, new_state: CircuitState) -> None:
        if new_state == self._state:
            return
        old_state = self._state
        self._state = new_state

        if new_state == CircuitState.OPEN:
            self._stats.opened_at = time.monotonic()
        elif new_state == CircuitState.HALF_OPEN:
            self._stats.half_open_calls = 0
            self._stats.half_open_successes = 0
        else:
            self._stats.window.clear()
            self._stats.opened_at = None

        logger.info(
            "circuit_breaker_state_change",
            name=self.name,
            old_state=old_state.value,
            new_state=new_state.value,
        )

    def _recovery_time(self) -> float | None:
        if self._state != CircuitState.OPEN or self._stats.opened_at is None:
            return None
        elapsed = time.monotonic() - self._stats.opened_at
        return max(0.0, self.config.recovery_timeout - elapsed)

    def _admit(self) -> bool:
        """Decide whether a call may proceed. Caller holds the lock."""
        if self._state == CircuitState.OPEN and self._recovery_time() == 0.0:
            self._set_state(CircuitState.HALF_OPEN)

        if self._state == CircuitState.CLOSED:
            return True
        if self._state == CircuitState.HALF_OPEN:
            if self._stats.half_open_calls < self.config.half_open_max_calls:
                self._stats.half_open_calls += 1
                return True
        return False

    def _should_open(self) -> bool:
        if self._stats.recent_failures >= self.config.failure_threshold:
            return True
        return (
            len(self._stats.window) >= self.config.min_calls_for_rate
            and self._stats.failure_rate >= self.config.failure_rate_threshold
        )

    def _record(self, success: bool) -> None:
        self._stats.total_calls += 1
        if success:
            self._stats.successful_calls += 1
        else:
            self._stats.failed_calls += 1

        if self._state == CircuitState.HALF_OPEN:
            if not success:
                self._set_state(CircuitState.OPEN)
                return
            self._stats.half_open_successes += 1
            if self._stats.half_open_successes >= self.config.success_threshold:
                self._set_state(CircuitState.CLOSED)
            return

        self._stats.window.append(success)
        if not success and self._should_open():
            logger.warning(
                "circuit_breaker_tripped",
                name=self.name,
                failures=self._stats.recent_failures,
                failure_rate=self._stats.failure_rate,
            )
            self._set_state(CircuitState.OPEN)

    async def call(
        self,
        func: Callable[..., Coroutine[Any, Any, T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """
        Execute a coroutine function through the breaker.

        Raises:
            CircuitBreakerError: If the circuit is open
            TimeoutError: If the call exceeds ``call_timeout``
            Exception: Anything raised by ``func`` (recorded as a failure)
        """
        async with self._lock:
            if not self._admit():
                self._stats.rejected_calls += 1
                raise CircuitBreakerError(self.name, self._state, self._recovery_time())

        try:
            if self.config.call_timeout:
                result = await asyncio.wait_for(
                    func(*args, **kwargs), timeout=self.config.call_timeout
                )
            else:
                result = await func(*args, **kwargs)
        except TimeoutError:
            async with self._lock:
                self._stats.timeout_calls += 1
                self._record(False)
            raise
        except Exception:
            async with self._lock:
                self._record(False)
            raise

        async with self._lock:
            self._record(True)
        return result

    async def reset(self) -> None:
        """Force the circuit closed and clear statistics."""
        async with self._lock:
            self._stats = CircuitStats(window=deque(maxlen=self.config.window_size))
            self._set_state(CircuitState.CLOSED)
        logger.info("circuit_breaker_reset", name=self.name)

    def get_status(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "state": self._state.value,
            "stats": self._stats.to_dict(),
            "recovery_time": self._recovery_time(),
        }


class CircuitBreakerRegistry:
    """Named circuit breakers shared across services."""

    def __init__(self) -> None:
        self._breakers: dict[str, CircuitBreaker[Any]] = {}

    def get_or_create(
        self,
        name: str,
        config: CircuitBreakerConfig | None = None,
    ) -> CircuitBreaker[Any]:
        if name not in self._breakers:
            self._breakers[name] = CircuitBreaker(name, config)
            logger.debug("circuit_breaker_created", name=name)
        return self._breakers[name]

    def get_all_status(self) -> dict[str, dict[str, Any]]:
        return {name: b.get_status() for name, b in self._breakers.items()}

    def get_open_circuits(self) -> list[str]:
        return [name for name, b in self._breakers.items() if b.is_open]

    async def reset_all(self) -> None:
        for breaker in self._breakers.values():
            await breaker.reset()


_global_registry: CircuitBreakerRegistry | None = None


def get_circuit_registry() -> CircuitBreakerRegistry:
    """Get the process-wide circuit breaker registry."""
    global _global_registry
    if _global_registry is None:
        _global_registry = CircuitBreakerRegistry()
    return _global_registry


class GuardianCircuits:
    """Pre-configured circuit breakers for Guardian's external dependencies."""

    @staticmethod
    def llm() -> CircuitBreaker[Any]:
        """LLM chat completion API."""
        config = CircuitBreakerConfig(
            failure_threshold=3,
            recovery_timeout=120.0,
            call_timeout=None,  # the HTTP client enforces its own timeout
        )
        return get_circuit_registry().get_or_create("llm", config)

    @staticmethod
    def rpc() -> CircuitBreaker[Any]:
        """Blockchain JSON-RPC node."""
        config = CircuitBreakerConfig(
            failure_threshold=5,
            recovery_timeout=60.0,
            call_timeout=20.0,
        )
        return get_circuit_registry().get_or_create("rpc", config)


__all__ = [
    "CircuitState",
    "CircuitBreakerConfig",
    "CircuitStats",
    "CircuitBreakerError",
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "get_circuit_registry",
    "GuardianCircuits",
]
