"""
Structured logging and in-process metrics for FundGuard.

Log records carry the current request and campaign ids from context
variables, so everything emitted while one campaign is scored can be
correlated in the log aggregator.
"""

import asyncio
import json
import logging
import sys
import time
import traceback
from collections import deque
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Deque, Dict, Optional

from fundguard.config import settings


request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
campaign_id_var: ContextVar[Optional[str]] = ContextVar("campaign_id", default=None)

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s%(context)s"

# Third-party loggers that are too chatty at DEBUG
QUIET_LOGGERS = {
    "urllib3": logging.WARNING,
    "PIL": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "asyncio": logging.WARNING,
    "uvicorn.access": logging.INFO,
}


def _correlation_ids() -> Dict[str, str]:
    ids = {}
    if request_id_var.get():
        ids["request_id"] = request_id_var.get()
    if campaign_id_var.get():
        ids["campaign_id"] = campaign_id_var.get()
    return ids


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with correlation ids and keyword context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "environment": settings.environment,
        }
        entry.update(_correlation_ids())

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": traceback.format_exception(exc_type, exc, tb),
            }

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable single line; keyword context appended as key=value."""

    def __init__(self):
        super().__init__(CONSOLE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        fields = dict(_correlation_ids())
        fields.update(getattr(record, "context", None) or {})
        rendered = " ".join(f"{k}={v}" for k, v in fields.items())

        # The JSON file handler sees the same record, so format a copy
        line = logging.makeLogRecord(record.__dict__)
        line.context = f" | {rendered}" if rendered else ""
        return super().format(line)


class StructuredLogger:
    """
    Logger that takes keyword context instead of format arguments.

    Usage:
        logger = StructuredLogger(__name__)
        logger.info("Campaign analyzed", fraud_score=31, risk_level="High")
        scoped = logger.bind(creator_id="c-17")
        scoped.warning("Creator history unavailable")
    """

    def __init__(self, name: str, **context):
        self._logger = logging.getLogger(name)
        self._context = context

    def bind(self, **context) -> "StructuredLogger":
        merged = dict(self._context, **context)
        return StructuredLogger(self._logger.name, **merged)

    def isEnabledFor(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _log(self, level: int, message: str, exc_info: bool = False, **kwargs):
        if not self._logger.isEnabledFor(level):
            return
        context = dict(self._context, **kwargs)
        self._logger.log(level, message, exc_info=exc_info, extra={"context": context}, stacklevel=3)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs):
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
):
    """
    Configure the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
        json_format: JSON lines on stdout (prod) instead of the console format (dev)
        log_file: Optional path; file output is always JSON
    """
    numeric = getattr(logging, level.upper())
    root = logging.getLogger()
    root.setLevel(numeric)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())
    root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


# ============== METRICS ==============

TIMING_WINDOW = 1000


class MetricsCollector:
    """
    In-process counters and latency samples, exposed on /status.

    Usage:
        metrics.increment("analysis.campaign.total")
        metrics.increment("analysis.fallback.creator")
        metrics.timing("analysis.campaign.latency", 0.125)
    """

    def __init__(self):
        self._counters: Dict[str, int] = {}
        self._timings: Dict[str, Deque[float]] = {}
        self._start_time = time.time()

    def increment(self, name: str, value: int = 1):
        self._counters[name] = self._counters.get(name, 0) + value

    def timing(self, name: str, value: float):
        self._timings.setdefault(name, deque(maxlen=TIMING_WINDOW)).append(value)

    @staticmethod
    def _summarize(values) -> Dict[str, Any]:
        ordered = sorted(values)
        count = len(ordered)
        return {
            "count": count,
            "min": ordered[0],
            "max": ordered[-1],
            "avg": sum(ordered) / count,
            "p50": ordered[count // 2],
            "p95": ordered[int(count * 0.95)] if count >= 20 else None,
        }

    def get_stats(self) -> Dict[str, Any]:
        return {
            "uptime_seconds": time.time() - self._start_time,
            "counters": dict(self._counters),
            "timings": {name: self._summarize(v) for name, v in self._timings.items() if v},
        }

    def reset(self):
        self._counters.clear()
        self._timings.clear()


metrics = MetricsCollector()


# ============== DECORATORS ==============


def _risk_label(result: Any) -> str:
    level = getattr(result, "risk_level", None)
    return str(getattr(level, "value", level) or "unknown").lower().replace(" ", "_")


def _record_outcome(name: str, started: float, result: Any):
    metrics.timing(f"analysis.{name}.latency", time.time() - started)
    metrics.increment(f"analysis.{name}.risk.{_risk_label(result)}")


def track_analysis(name: str):
    """Count calls, errors, latency and resulting risk level for an analysis entry point."""
    def decorator(func):
        if asyncio.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                metrics.increment(f"analysis.{name}.total")
                started = time.time()
                try:
                    result = await func(*args, **kwargs)
                except Exception:
                    metrics.increment(f"analysis.{name}.errors")
                    raise
                _record_outcome(name, started, result)
                return result
            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            metrics.increment(f"analysis.{name}.total")
            started = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception:
                metrics.increment(f"analysis.{name}.errors")
                raise
            _record_outcome(name, started, result)
            return result
        return sync_wrapper

    return decorator


def init_logging():
    """Configure logging from settings: JSON plus a log file in prod, console in dev."""
    prod = settings.is_production
    setup_logging(
        level="INFO" if prod else ("DEBUG" if settings.debug else "INFO"),
        json_format=prod,
        log_file="logs/fundguard.log" if prod else None,
    )
