from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from ingestion.contracts.source import Raw


@runtime_checkable
class SnapshotSink(Protocol):
    """
    Append-only destination for the snapshots of one source.

    Contract:
        - `write()` appends one entry per call, including empty snapshots.
        - `write()` never raises; an unavailable backend drops the write.
        - partitioning and rotation are internal to the sink.
    """

    name: str

    def write(self, records: Sequence[Raw]) -> None:
        ...
