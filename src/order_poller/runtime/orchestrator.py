from __future__ import annotations

import asyncio
import logging
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Iterable, Sequence

from order_poller.exceptions.core import ContractViolation
from order_poller.runtime.descriptor import SourceDescriptor
from order_poller.runtime.observation import CycleObservation, SourceObservation
from order_poller.runtime.task import FetchTask
from order_poller.utils.logger import get_logger, log_error, log_heartbeat, log_info
from order_poller.utils.timer import elapsed_ms, monotonic_ms


class CycleState(Enum):
    """
    Poll loop phase.

    IDLE -> FETCHING -> REPORTING -> IDLE (after the fixed delay) -> ...
    There is no terminal state; the loop ends with the process.
    """

    IDLE = "idle"
    FETCHING = "fetching"
    REPORTING = "reporting"


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class PollCycleOrchestrator:
    """
    Fixed-cadence fan-out / join-all poll loop.

    Semantics:
        - every cycle launches exactly one FetchTask per descriptor, concurrently.
        - the cycle waits for *all* tasks to settle; a slow source delays the
          whole cycle but never shortens the others' coverage.
        - after reporting, the loop sleeps `poll_interval_ms` before the next
          cycle. Cycles never overlap.
        - there is no per-task timeout and no cancellation of in-flight fetches.

    A task that raises has broken the no-throw contract of its source or sink.
    Its siblings still settle (and write their snapshots); the orchestrator
    then raises ContractViolation instead of starting another cycle.
    """

    def __init__(
        self,
        descriptors: Iterable[SourceDescriptor],
        *,
        poll_interval_ms: int,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now: Callable[[], datetime] = _utc_now,
        on_cycle: Callable[[CycleObservation], None] | None = None,
        logger: logging.Logger | None = None,
    ):
        self._descriptors: tuple[SourceDescriptor, ...] = tuple(descriptors)
        names = [d.name for d in self._descriptors]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Source names must be unique, duplicated: {duplicates}")
        if int(poll_interval_ms) < 0:
            raise ValueError(f"poll_interval_ms must be >= 0, got {poll_interval_ms}")

        self._poll_interval_ms = int(poll_interval_ms)
        self._sleep = sleep
        self._now = now
        self._on_cycle = on_cycle
        self._logger = logger or get_logger(f"order_poller.runtime.{self.__class__.__name__}")
        self._tasks: tuple[FetchTask, ...] = tuple(FetchTask(d) for d in self._descriptors)
        self._state = CycleState.IDLE
        self._cycle = 0

    # -------------------------------------------------
    # Introspection
    # -------------------------------------------------

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def cycles(self) -> int:
        """Number of cycles started so far."""
        return self._cycle

    @property
    def poll_interval_ms(self) -> int:
        return self._poll_interval_ms

    @property
    def source_names(self) -> tuple[str, ...]:
        return tuple(d.name for d in self._descriptors)

    # -------------------------------------------------
    # Canonical loop
    # -------------------------------------------------

    async def run(self, *, max_cycles: int | None = None) -> None:
        """
        Poll until the process is terminated.

        `max_cycles` bounds the loop (used by `--once` and tests); no delay
        follows the final bounded cycle.
        """
        log_info(
            self._logger,
            "poller.start",
            sources=list(self.source_names),
            poll_interval_ms=self._poll_interval_ms,
            max_cycles=max_cycles,
        )
        completed = 0
        while True:
            await self.run_cycle()
            completed += 1
            if max_cycles is not None and completed >= max_cycles:
                return
            await self._sleep(self._poll_interval_ms / 1000.0)

    async def run_cycle(self) -> CycleObservation:
        """Run one IDLE -> FETCHING -> REPORTING -> IDLE pass and return its observation."""
        self._cycle += 1
        cycle_start = self._now()
        start = monotonic_ms()

        self._state = CycleState.FETCHING
        try:
            pending = [asyncio.create_task(t.run(), name=f"fetch:{t.name}") for t in self._tasks]
            results = await asyncio.gather(*pending, return_exceptions=True)

            self._state = CycleState.REPORTING
            cycle_elapsed = elapsed_ms(start)

            for result in results:
                if isinstance(result, asyncio.CancelledError):
                    raise result
            failures = [(t, r) for t, r in zip(self._tasks, results) if isinstance(r, BaseException)]
            if failures:
                self._raise_contract_violation(failures)

            obs = CycleObservation(
                cycle=self._cycle,
                cycle_start=cycle_start,
                per_source={o.name: o for o in results if isinstance(o, SourceObservation)},
                cycle_elapsed_ms=cycle_elapsed,
            )
            log_heartbeat(self._logger, "poller.cycle_complete", **obs.to_context())
            if self._on_cycle is not None:
                self._on_cycle(obs)
            return obs
        finally:
            # every exit, including a failing on_cycle, returns to IDLE
            self._state = CycleState.IDLE

    def _raise_contract_violation(self, failures: Sequence[tuple[FetchTask, BaseException]]) -> None:
        for task, exc in failures:
            log_error(
                self._logger,
                "poller.contract_violation",
                cycle=self._cycle,
                source=task.name,
                err_type=type(exc).__name__,
                err=str(exc),
                stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            )
        names = ", ".join(task.name for task, _ in failures)
        raise ContractViolation(f"fetch task raised for source(s): {names}") from failures[0][1]
