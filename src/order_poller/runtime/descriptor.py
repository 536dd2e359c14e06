from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence, Union

from ingestion.contracts.sink import SnapshotSink
from ingestion.contracts.source import Raw

FetchFn = Callable[[], Union[Sequence[Raw], Awaitable[Sequence[Raw]]]]


@dataclass(frozen=True)
class SourceDescriptor:
    """
    One polled source: a stable name, its fetch capability and its sink.

    Semantics:
        - `name` is unique across the process and identifies the sink file.
        - `fetch` is either a plain callable (run in a worker thread) or a
          coroutine function (awaited on the loop). It must not raise.
        - the full set of descriptors is fixed at startup.
    """

    name: str
    fetch: FetchFn
    sink: SnapshotSink

    @classmethod
    def for_source(cls, source: Any, sink: SnapshotSink) -> "SourceDescriptor":
        """Bind an `OrderSource`-like object (anything with `name` and `fetch`) to a sink."""
        return cls(name=str(source.name), fetch=source.fetch, sink=sink)
