from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
from datetime import date
from pathlib import Path
from typing import Callable, Sequence

from ingestion.contracts.source import Raw
from order_poller.utils.logger import get_logger, log_sink_failure

DEFAULT_MAX_BYTES = 200 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 100
DATE_PATTERN = "%Y-%m-%d"


class DailySizeRotatingFileHandler(logging.handlers.RotatingFileHandler):
    """
    Size-rotated file handler partitioned by calendar date.

    Layout:
        <root>/
          └── <YYYY-MM-DD>/
              ├── <filename>
              ├── <filename>.1
              └── ...

    A new date directory is opened on the first record of a new (local) day.
    Within a day, `<filename>` rolls over to `<filename>.1`, `.2`, ... once it
    would exceed `max_bytes`.
    Storage errors while emitting go to `on_error` when one is given, instead
    of the stock stderr traceback.
    """

    def __init__(
        self,
        root: str | Path,
        filename: str,
        *,
        max_bytes: int = DEFAULT_MAX_BYTES,
        backup_count: int = DEFAULT_BACKUP_COUNT,
        today: Callable[[], date] = date.today,
        on_error: Callable[[BaseException], None] | None = None,
    ):
        if max_bytes <= 0:
            raise ValueError(f"max_bytes must be > 0, got {max_bytes}")
        self._root = Path(root)
        self._filename = str(filename)
        self._today = today
        self._on_error = on_error
        self._date = self._today().strftime(DATE_PATTERN)
        path = self._path_for(self._date)
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(
            str(path),
            maxBytes=int(max_bytes),
            backupCount=int(backup_count),
            encoding="utf-8",
        )

    def _path_for(self, day: str) -> Path:
        return self._root / day / self._filename

    def handleError(self, record: logging.LogRecord) -> None:
        exc = sys.exc_info()[1]
        if self._on_error is None or exc is None:
            super().handleError(record)
            return
        self._on_error(exc)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._switch_date_if_needed()
        except Exception:
            self.handleError(record)
            return
        super().emit(record)

    def _switch_date_if_needed(self) -> None:
        day = self._today().strftime(DATE_PATTERN)
        if day == self._date:
            return
        path = self._path_for(day)
        path.parent.mkdir(parents=True, exist_ok=True)
        if self.stream is not None:
            self.stream.close()
            self.stream = None  # type: ignore[assignment]
        self._date = day
        self.baseFilename = os.path.abspath(path)


class SnapshotFormatter(logging.Formatter):
    """`<YYYY-MM-DD HH:MM:SS.mmm>: <level> - <message>`"""

    default_time_format = "%Y-%m-%d %H:%M:%S"
    default_msec_format = "%s.%03d"

    def __init__(self) -> None:
        super().__init__("%(asctime)s: %(levelname)s - %(message)s")


class RotatingLogSink:
    """
    Snapshot sink backed by a dedicated, date-partitioned, size-rotated log file.

    Each `write()` appends one INFO entry holding the snapshot as indented JSON.
    The sink never raises: if its file cannot be opened at construction it
    degrades to a NullHandler, and a failing write is reported and dropped.
    """

    def __init__(
        self,
        name: str,
        *,
        root: str | Path = "logs",
        max_bytes: int = DEFAULT_MAX_BYTES,
        backup_count: int = DEFAULT_BACKUP_COUNT,
        today: Callable[[], date] = date.today,
        logger: logging.Logger | None = None,
    ):
        self.name = str(name)
        self._ops_logger = logger or get_logger(f"order_poller.sinks.{self.__class__.__name__}")

        self._logger = logging.getLogger(f"snapshots.{self.name}")
        self._logger.propagate = False
        self._logger.setLevel(logging.DEBUG)
        for old in list(self._logger.handlers):
            self._logger.removeHandler(old)
            old.close()

        handler: logging.Handler
        try:
            handler = DailySizeRotatingFileHandler(
                root,
                f"{self.name}.log",
                max_bytes=max_bytes,
                backup_count=backup_count,
                today=today,
                on_error=self._report_write_error,
            )
            handler.setFormatter(SnapshotFormatter())
        except (OSError, ValueError) as exc:
            log_sink_failure(
                self._ops_logger,
                "sink.init_error",
                sink=self.name,
                root=str(root),
                err_type=type(exc).__name__,
                err=str(exc),
            )
            handler = logging.NullHandler()
        self._handler = handler
        self._logger.addHandler(handler)

    @property
    def degraded(self) -> bool:
        return isinstance(self._handler, logging.NullHandler)

    @property
    def path(self) -> Path | None:
        filename = getattr(self._handler, "baseFilename", None)
        return Path(filename) if filename else None

    def write(self, records: Sequence[Raw]) -> None:
        try:
            body = json.dumps(list(records), indent=2, ensure_ascii=False, default=str)
            self._logger.info("%s\n\n", body)
        except Exception as exc:
            self._report_write_error(exc)

    def _report_write_error(self, exc: BaseException) -> None:
        log_sink_failure(
            self._ops_logger,
            "sink.write_error",
            sink=self.name,
            path=self.path,
            err_type=type(exc).__name__,
            err=str(exc),
        )

    def close(self) -> None:
        self._logger.removeHandler(self._handler)
        self._handler.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, path={self.path})"


class NullSink:
    """Sink that accepts and discards every snapshot."""

    def __init__(self, name: str):
        self.name = str(name)

    def write(self, records: Sequence[Raw]) -> None:
        return None

    def close(self) -> None:
        return None
