from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping

from order_poller.exceptions.core import UpstreamError
from order_poller.utils.logger import get_logger, log_debug, log_source_failure

Raw = Mapping[str, Any]


class OrderSource(ABC):
    """
    Snapshot source for one upstream order-book API.

    Contract:
        - `fetch()` returns the upstream's current open orders, verbatim and in
          upstream order.
        - `fetch()` never raises. Network errors, non-2xx statuses and
          malformed payloads are logged and reported as an empty snapshot.

    Subclasses implement `_fetch()` and are free to raise from it.
    """

    name: str

    def __init__(self, *, name: str, logger: logging.Logger | None = None):
        self.name = str(name)
        self._logger = logger or get_logger(f"ingestion.{self.__class__.__name__}")

    def fetch(self) -> list[Raw]:
        try:
            records = list(self._fetch())
        except Exception as exc:
            status = getattr(getattr(exc, "response", None), "status_code", None)
            log_source_failure(
                self._logger,
                "source.fetch_error",
                source=self.name,
                err_type=type(exc).__name__,
                err=str(exc),
                status_code=status,
            )
            return []
        log_debug(self._logger, "source.fetch_success", source=self.name, n_items=len(records))
        return records

    @abstractmethod
    def _fetch(self) -> list[Raw]:
        raise NotImplementedError

    def close(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


def extract_records(payload: Any, field: str) -> list[Raw]:
    """Return `payload[field]` unmodified; anything but an object holding a list is an upstream error."""
    if not isinstance(payload, Mapping):
        raise UpstreamError(f"Unexpected response body: {type(payload).__name__}")
    records = payload.get(field)
    if not isinstance(records, list):
        raise UpstreamError(f"Unexpected response field {field!r}: {type(records).__name__}")
    return records
