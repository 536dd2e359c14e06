from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class SourceObservation:
    """Outcome of one fetch task: how many records the source returned and how long it took."""

    name: str
    record_count: int
    elapsed_ms: float

    def to_context(self) -> dict[str, Any]:
        return {"count": self.record_count, "elapsed_ms": round(self.elapsed_ms, 3)}


@dataclass(frozen=True)
class CycleObservation:
    """
    Diagnostic summary of one poll cycle.

    Reported once on the operator channel and then discarded; nothing in the
    poll loop reads it back.
    """

    cycle: int
    cycle_start: datetime
    per_source: Mapping[str, SourceObservation]
    cycle_elapsed_ms: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "per_source", MappingProxyType(dict(self.per_source)))

    @property
    def total_records(self) -> int:
        return sum(o.record_count for o in self.per_source.values())

    def to_context(self) -> dict[str, Any]:
        return {
            "cycle": self.cycle,
            "cycle_start": self.cycle_start,
            "cycle_elapsed_ms": round(self.cycle_elapsed_ms, 3),
            "total_records": self.total_records,
            "per_source": {name: o.to_context() for name, o in self.per_source.items()},
        }
