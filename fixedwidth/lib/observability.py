"""Logging and conversion metrics.

The library itself only logs through module loggers; ``setup_logging`` is
for applications such as the command line tool, and ``ConversionMetrics``
times the phases of a file conversion and emits one structured summary.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Generator, List, Optional

logger = logging.getLogger(__name__)

__all__ = [
    "ConversionMetrics",
    "JSONFormatter",
    "MetricPoint",
    "PhaseTimer",
    "setup_logging",
]

# Attributes present on every LogRecord, so anything else came from extra=
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


@dataclass
class MetricPoint:
    """A single metric data point."""

    name: str
    value: Any
    timestamp: datetime
    unit: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "name": self.name,
            "value": self.value,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.unit:
            result["unit"] = self.unit
        return result


@dataclass
class PhaseTimer:
    """Timer for one named phase of a conversion."""

    name: str
    start_time: float = field(default_factory=time.perf_counter)
    end_time: Optional[float] = None

    def stop(self) -> float:
        self.end_time = time.perf_counter()
        return self.duration

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        end = self.end_time or time.perf_counter()
        return end - self.start_time


class ConversionMetrics:
    """Metrics for converting one file.

    Example:
        metrics = ConversionMetrics("read", source="data.txt")
        with metrics.time_phase("parse"):
            ...
        metrics.record("records", 1000, unit="rows")
        metrics.log_summary()
    """

    def __init__(self, operation: str, source: Optional[str] = None) -> None:
        self.operation = operation
        self.source = source
        self._start_time = time.perf_counter()
        self._end_time: Optional[float] = None
        self._phases: List[PhaseTimer] = []
        self._metrics: List[MetricPoint] = []

    @contextmanager
    def time_phase(self, name: str) -> Generator[PhaseTimer, None, None]:
        timer = PhaseTimer(name=name)
        self._phases.append(timer)
        try:
            yield timer
        finally:
            timer.stop()

    def record(self, name: str, value: Any, unit: Optional[str] = None) -> None:
        self._metrics.append(
            MetricPoint(
                name=name,
                value=value,
                timestamp=datetime.now(timezone.utc),
                unit=unit,
            )
        )

    def finish(self) -> None:
        if self._end_time is None:
            self._end_time = time.perf_counter()

    @property
    def total_duration(self) -> float:
        end = self._end_time or time.perf_counter()
        return end - self._start_time

    def summary(self) -> Dict[str, Any]:
        """Return a summary dictionary of everything tracked."""
        self.finish()
        return {
            "operation": self.operation,
            "source": self.source,
            "timing": {
                "total_seconds": round(self.total_duration, 3),
                "phases": {p.name: round(p.duration, 3) for p in self._phases},
            },
            "metrics": [m.to_dict() for m in self._metrics],
        }

    def to_log_dict(self) -> Dict[str, Any]:
        """Flatten metrics into ``extra=`` fields for structured logging."""
        result: Dict[str, Any] = {
            "conversion_operation": self.operation,
            "total_duration_seconds": round(self.total_duration, 3),
        }
        if self.source:
            result["conversion_source"] = self.source

        for phase in self._phases:
            result[f"phase_{phase.name}_seconds"] = round(phase.duration, 3)

        for metric in self._metrics:
            key = f"metric_{metric.name}"
            if metric.unit:
                key = f"{key}_{metric.unit}"
            result[key] = metric.value

        return result

    def log_summary(self, log: Optional[logging.Logger] = None) -> None:
        self.finish()
        (log or logger).info(
            "%s finished in %.3fs",
            self.operation,
            self.total_duration,
            extra=self.to_log_dict(),
        )


class JSONFormatter(logging.Formatter):
    """Formatter that outputs log records as JSON lines.

    Example output:
        {"timestamp": "2025-01-15T10:30:00.123Z", "level": "INFO",
         "logger": "fixedwidth.lib.reader", "message": "Closed reader after 10 records"}
    """

    def __init__(self, exclude_fields: Optional[List[str]] = None) -> None:
        super().__init__()
        self.exclude_fields = set(exclude_fields or [])

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_attrs = {
            k: v
            for k, v in record.__dict__.items()
            if k not in _RESERVED_ATTRS and k not in self.exclude_fields
        }
        if extra_attrs:
            log_data["extra"] = extra_attrs

        return json.dumps(log_data, default=str)


def setup_logging(
    verbose: bool = False,
    json_format: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Configure the root logger.

    Args:
        verbose: Enable debug-level logging
        json_format: Use JSON output format (for log aggregation)
        log_file: Optional file path to write logs to
    """
    level = logging.DEBUG if verbose else logging.INFO

    formatter = JSONFormatter() if json_format else logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stdout is reserved for records printed by the CLI
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
