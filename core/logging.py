# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Core - Logging configuration
# PURPOSE: JSON/human log output with per-evaluation context fields
# CREATED: 19 OCT 2026
# ============================================================================
"""
Structured Logging

Two output formats share one context mechanism:
- json: one JSON object per line, for log aggregators
- human: single line with context in brackets, for development

Context fields (evaluation_id, probe, endpoint, route, component) are
pushed with log_context() and live in a ContextVar, so every probe task
of an evaluation logs its own probe name while sharing the evaluation id.

Usage:
    from core.logging import get_logger, log_context, ComponentType
    logger = get_logger(__name__, ComponentType.EXECUTOR)
    with log_context(evaluation_id="ev-123", route="/healthz"):
        logger.info("Evaluating probes", extra={"probe_count": 5})
"""

import dataclasses
import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple, Union


class ComponentType(str, Enum):
    """Component names attached to log records."""
    EXECUTOR = "executor"
    DISPATCHER = "dispatcher"
    DASHBOARD = "dashboard"
    API = "api"
    LOADER = "loader"


@dataclasses.dataclass(frozen=True)
class LogContext:
    """Contextual fields for one scope. Nested scopes inherit unset fields."""
    evaluation_id: Optional[str] = None
    probe: Optional[str] = None
    endpoint: Optional[str] = None
    route: Optional[str] = None
    component: Optional[str] = None
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict)

    def merged(self, **fields) -> "LogContext":
        """New context with the given fields layered over this one."""
        extra = {**self.extra, **fields.pop("extra", {})}
        known = {k: v for k, v in fields.items() if k in _CONTEXT_FIELDS}
        extra.update({k: v for k, v in fields.items() if k not in _CONTEXT_FIELDS})
        return dataclasses.replace(self, extra=extra, **known)

    def to_dict(self) -> Dict[str, Any]:
        """Set fields only, extra flattened in."""
        result = {
            name: getattr(self, name)
            for name in _CONTEXT_FIELDS
            if getattr(self, name) is not None
        }
        result.update(self.extra)
        return result


_CONTEXT_FIELDS = ("evaluation_id", "probe", "endpoint", "route", "component")

_EMPTY = LogContext()
_stack: ContextVar[Tuple[LogContext, ...]] = ContextVar("health_log_context", default=())


def get_current_context() -> LogContext:
    """Innermost context of the running task."""
    stack = _stack.get()
    return stack[-1] if stack else _EMPTY


@contextmanager
def log_context(**fields) -> Iterator[LogContext]:
    """
    Push context fields for the duration of a block.

    Unknown keyword arguments go into `extra`. Tasks created inside the
    block start with a copy of the stack; their own pushes stay private.

    Example:
        with log_context(evaluation_id="ev-1", probe="disk"):
            logger.info("Probe finished")
    """
    context = get_current_context().merged(**fields)
    token = _stack.set(_stack.get() + (context,))
    try:
        yield context
    finally:
        _stack.reset(token)


# ============================================================================
# FORMATTERS
# ============================================================================

def _record_extra(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, "extra", None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def __init__(self, include_source: bool = True):
        super().__init__()
        self.include_source = include_source

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = get_current_context().to_dict()
        if context:
            log_data["context"] = context
        data = _record_extra(record)
        if data:
            log_data["data"] = data
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        if self.include_source:
            log_data["source"] = f"{record.filename}:{record.lineno}"

        return json.dumps(log_data, default=str)


class HumanFormatter(logging.Formatter):
    """
    Single-line format for terminals:

        2026-10-19 12:00:00 INFO     health.executor [eval=ab12, probe=disk]: message
    """

    _SHOWN = (("evaluation_id", "eval"), ("route", "route"), ("endpoint", "endpoint"), ("probe", "probe"))

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        context = get_current_context()
        parts = [
            f"{label}={getattr(context, name)}"
            for name, label in self._SHOWN
            if getattr(context, name)
        ]
        context_str = f" [{', '.join(parts)}]" if parts else ""

        data = _record_extra(record)
        data_str = f" {data}" if data else ""

        line = f"{timestamp} {record.levelname:<8} {record.name}{context_str}: {record.getMessage()}{data_str}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ============================================================================
# LOGGERS
# ============================================================================

class ContextLogger(logging.LoggerAdapter):
    """
    Adapter that moves call-site extra fields onto record.extra.

    Context fields are not copied; the formatters read them from the
    context stack. The adapter's component is added only when the
    current context names none.
    """

    def process(self, msg, kwargs):
        data = dict(kwargs.get("extra") or {})
        component = (self.extra or {}).get("component")
        if component and not get_current_context().component:
            data.setdefault("component", component)
        kwargs["extra"] = {"extra": data}
        return msg, kwargs


def get_logger(name: str, component: Optional[ComponentType] = None) -> ContextLogger:
    """
    Context-aware logger.

    Args:
        name: Logger name, usually __name__
        component: Component reported when the context sets none
    """
    return ContextLogger(
        logging.getLogger(name),
        {"component": component.value if component is not None else None},
    )


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
    quiet_loggers: Iterable[str] = ("httpx", "httpcore"),
) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Root log level
        json_output: JSON lines instead of human output (LOG_FORMAT=json
            forces it as well)
        quiet_loggers: Chatty libraries held at WARNING or above
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if json_output or os.getenv("LOG_FORMAT", "").lower() == "json":
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = HumanFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every dashboard poll at INFO
    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ComponentType",
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
]
