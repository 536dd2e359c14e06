from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Sequence

from ingestion.contracts.source import Raw
from order_poller.runtime.descriptor import SourceDescriptor
from order_poller.runtime.observation import SourceObservation
from order_poller.utils.logger import get_logger, log_info
from order_poller.utils.timer import elapsed_ms, monotonic_ms


class FetchTask:
    """
    Unit of isolation: one source's fetch, its sink write, and the timing around both.

    Responsibilities:
        fetch -> sink.write (verbatim, in upstream order) -> observation

    There is no retry and no error branch: sources and sinks promise not to
    raise. An empty snapshot is still written.
    """

    def __init__(self, descriptor: SourceDescriptor, *, logger: logging.Logger | None = None):
        self._descriptor = descriptor
        self._logger = logger or get_logger(f"order_poller.runtime.{self.__class__.__name__}")

    @property
    def name(self) -> str:
        return self._descriptor.name

    async def run(self) -> SourceObservation:
        start = monotonic_ms()
        records = await self._fetch()
        self._descriptor.sink.write(records)
        elapsed = elapsed_ms(start)

        obs = SourceObservation(name=self.name, record_count=len(records), elapsed_ms=elapsed)
        log_info(
            self._logger,
            "poller.source_fetched",
            source=self.name,
            count=obs.record_count,
            elapsed_ms=round(elapsed, 3),
        )
        return obs

    async def _fetch(self) -> Sequence[Raw]:
        fetch = self._descriptor.fetch
        if inspect.iscoroutinefunction(fetch):
            return await fetch()
        # blocking HTTP clients run off the event loop
        result = await asyncio.to_thread(fetch)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
