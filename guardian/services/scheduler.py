"""
Background Scheduler Service

Drives the monitor's periodic jobs:
- Contract security checks
- AI analysis sweeps
- Event log polling (live mode only)

Every job runs in its own asyncio task. A job that raises is logged and
tried again on its next tick; after MAX_CONSECUTIVE_FAILURES failures in a
row the job is parked until someone resets it.
"""

import asyncio
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog

from guardian.immune.circuit_breaker import CircuitBreakerError

logger = structlog.get_logger(__name__)

MAX_CONSECUTIVE_FAILURES = 10

Job = Callable[[], Coroutine[Any, Any, Any]]


@dataclass
class ScheduledTask:
    """One periodic monitor job and its run history."""

    name: str
    func: Job
    interval_seconds: float
    run_immediately: bool = False  # False waits one full interval before the first run
    last_run: datetime | None = None
    run_count: int = 0
    error_count: int = 0
    consecutive_failures: int = 0
    last_error: str | None = None
    auto_disabled: bool = False

    def record_success(self) -> None:
        self.last_run = datetime.now(UTC)
        self.run_count += 1
        self.consecutive_failures = 0

    def record_failure(self, error: Exception, limit: int) -> bool:
        """Count a failure. Returns True when this one parks the task."""
        self.error_count += 1
        self.consecutive_failures += 1
        self.last_error = str(error)
        if self.consecutive_failures >= limit:
            self.auto_disabled = True
        return self.auto_disabled

    def clear_failures(self) -> None:
        self.consecutive_failures = 0
        self.auto_disabled = False
        self.last_error = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "interval_seconds": self.interval_seconds,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "error_count": self.error_count,
            "consecutive_failures": self.consecutive_failures,
            "auto_disabled": self.auto_disabled,
            "last_error": self.last_error,
        }


class BackgroundScheduler:
    """
    Interval loops for the monitor's jobs.

    Each job gets its own loop so a slow AI sweep never delays a health
    check. ``stop()`` cancels every loop this scheduler started.
    """

    def __init__(self, max_consecutive_failures: int = MAX_CONSECUTIVE_FAILURES) -> None:
        self._max_failures = max_consecutive_failures
        self._tasks: dict[str, ScheduledTask] = {}
        self._loops: dict[str, asyncio.Task[None]] = {}
        self._shutdown = asyncio.Event()
        self._started_at: datetime | None = None
        self._logger = logger.bind(service="scheduler")

    @property
    def is_running(self) -> bool:
        return self._started_at is not None

    @property
    def task_names(self) -> list[str]:
        return list(self._tasks)

    def register(
        self,
        name: str,
        func: Job,
        interval_seconds: float,
        run_immediately: bool = False,
    ) -> None:
        """Add a job. A second registration under the same name is ignored."""
        if name in self._tasks:
            self._logger.warning("task_already_registered", name=name)
            return

        self._tasks[name] = ScheduledTask(
            name=name,
            func=func,
            interval_seconds=interval_seconds,
            run_immediately=run_immediately,
        )
        self._logger.info("task_registered", name=name, interval_seconds=interval_seconds)

    def _spawn(self, task: ScheduledTask) -> None:
        self._loops[task.name] = asyncio.create_task(
            self._loop(task), name=f"scheduler_{task.name}"
        )

    async def start(self) -> None:
        if self.is_running:
            self._logger.warning("scheduler_already_running")
            return

        self._started_at = datetime.now(UTC)
        self._shutdown.clear()
        self._logger.info("scheduler_starting", tasks=self.task_names)

        for task in self._tasks.values():
            if not task.auto_disabled:
                self._spawn(task)

    async def stop(self) -> None:
        if not self.is_running:
            return

        self._shutdown.set()
        loops = list(self._loops.values())
        for loop in loops:
            loop.cancel()
        # Cancellation comes back as a gather result instead of propagating
        await asyncio.gather(*loops, return_exceptions=True)

        self._loops.clear()
        self._started_at = None
        self._logger.info("scheduler_stopped")

    async def _sleep(self, task: ScheduledTask) -> bool:
        """Wait one interval. True means shutdown was requested meanwhile."""
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=task.interval_seconds)
        except TimeoutError:
            return False
        return True

    async def _run_once(self, task: ScheduledTask) -> bool:
        """Run the job once. Returns False if it failed."""
        try:
            await task.func()
        except CircuitBreakerError as e:
            # The breaker already counted the underlying failure
            self._logger.warning("task_circuit_breaker_open", name=task.name, circuit=str(e))
            return False
        except Exception as e:  # A failing job must not kill its loop
            parked = task.record_failure(e, self._max_failures)
            self._logger.error(
                "task_error",
                name=task.name,
                error=str(e),
                consecutive_failures=task.consecutive_failures,
            )
            if parked:
                self._logger.critical(
                    "task_auto_disabled",
                    name=task.name,
                    consecutive_failures=task.consecutive_failures,
                    last_error=task.last_error,
                )
            return False

        task.record_success()
        self._logger.debug("task_executed", name=task.name, run_count=task.run_count)
        return True

    async def _loop(self, task: ScheduledTask) -> None:
        try:
            if not task.run_immediately and await self._sleep(task):
                return
            while not task.auto_disabled:
                await self._run_once(task)
                if task.auto_disabled or await self._sleep(task):
                    return
        finally:
            if self._loops.get(task.name) is asyncio.current_task():
                del self._loops[task.name]

    async def run_task_now(self, name: str) -> bool:
        """Run a job outside its loop. False if unknown or it failed."""
        task = self._tasks.get(name)
        if task is None:
            return False
        self._logger.info("task_run_requested", name=name)
        return await self._run_once(task)

    def reset_task(self, name: str) -> bool:
        """Clear a job's failures and restart its loop if it was parked."""
        task = self._tasks.get(name)
        if task is None:
            return False

        task.clear_failures()
        self._logger.info("task_reset", name=name)
        if self.is_running and name not in self._loops:
            self._spawn(task)
        return True

    def get_auto_disabled_tasks(self) -> list[str]:
        return [name for name, task in self._tasks.items() if task.auto_disabled]

    def get_stats(self) -> dict[str, Any]:
        tasks = self._tasks.values()
        return {
            "is_running": self.is_running,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "tasks_registered": len(self._tasks),
            "total_runs": sum(t.run_count for t in tasks),
            "total_errors": sum(t.error_count for t in tasks),
            "auto_disabled": self.get_auto_disabled_tasks(),
            "tasks": {name: task.to_dict() for name, task in self._tasks.items()},
        }
