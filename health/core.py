# ============================================================================
# HEALTH CHECK CORE TYPES
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - Base classes for health checks
# PURPOSE: Probe interface, probe descriptors, results and reports
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Core Types

Defines the probe interface and the value types that flow through the
engine.

Status Hierarchy (worst wins):
- healthy: All systems operational
- degraded: Operational with warnings (non-blocking issues)
- unhealthy: Critical failure (blocks operations)

Types:
- HealthCheckPlugin: the single probe capability ("produce a result")
- CallablePlugin: adapts any sync or async callable to that capability
- ProbeDescriptor: registry entry (name, tags, timeout, plugin)
- HealthCheckResult: immutable outcome of one probe invocation
- HealthReport: immutable outcome of one evaluation (ordered entries)
"""

import asyncio
import dataclasses
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    """Health check status values."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

    @property
    def severity(self) -> int:
        """Rank used for 'worst wins' aggregation."""
        return _SEVERITY[self]

    # str ordering is alphabetical; compare by severity instead
    def __lt__(self, other: "HealthStatus") -> bool:
        return self.severity < HealthStatus(other).severity

    def __le__(self, other: "HealthStatus") -> bool:
        return self.severity <= HealthStatus(other).severity

    def __gt__(self, other: "HealthStatus") -> bool:
        return self.severity > HealthStatus(other).severity

    def __ge__(self, other: "HealthStatus") -> bool:
        return self.severity >= HealthStatus(other).severity

    @classmethod
    def aggregate(cls, statuses: Iterable["HealthStatus"]) -> "HealthStatus":
        """Aggregate multiple statuses (worst wins)."""
        statuses = list(statuses)
        if not statuses:
            return cls.HEALTHY
        return max(statuses, key=lambda s: s.severity)

    @classmethod
    def parse(cls, value: Any) -> "HealthStatus":
        """Parse 'Healthy', 'healthy' or a HealthStatus."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())

    @property
    def display(self) -> str:
        """Capitalized name used by UI payloads ('Healthy')."""
        return self.value.capitalize()


_SEVERITY = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.DEGRADED: 1,
    HealthStatus.UNHEALTHY: 2,
}


# ============================================================================
# RESULTS
# ============================================================================

@dataclass(frozen=True)
class HealthCheckResult:
    """Result from a single health check. Immutable once produced."""
    status: HealthStatus
    message: Optional[str] = None
    details: Mapping[str, Any] = field(default_factory=dict)
    duration_ms: float = 0.0
    checked_at: datetime = field(default_factory=utcnow)

    @classmethod
    def healthy(cls, message: str = None, **details) -> "HealthCheckResult":
        """Create healthy result."""
        return cls(status=HealthStatus.HEALTHY, message=message, details=details)

    @classmethod
    def degraded(cls, message: str, **details) -> "HealthCheckResult":
        """Create degraded result."""
        return cls(status=HealthStatus.DEGRADED, message=message, details=details)

    @classmethod
    def unhealthy(cls, message: str, **details) -> "HealthCheckResult":
        """Create unhealthy result."""
        return cls(status=HealthStatus.UNHEALTHY, message=message, details=details)

    @classmethod
    def from_exception(cls, e: BaseException) -> "HealthCheckResult":
        """Create unhealthy result from exception."""
        return cls(
            status=HealthStatus.UNHEALTHY,
            message=str(e) or type(e).__name__,
            details={"exception_type": type(e).__name__},
        )

    @classmethod
    def timeout(cls, timeout_seconds: float) -> "HealthCheckResult":
        """Create the unhealthy result used for probes that ran out of time."""
        return cls(
            status=HealthStatus.UNHEALTHY,
            message="timeout",
            details={"timeout_seconds": timeout_seconds},
        )

    def with_duration(self, duration_ms: float) -> "HealthCheckResult":
        """Copy of this result with the measured duration."""
        return dataclasses.replace(self, duration_ms=duration_ms)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result = {
            "status": self.status.value,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.message:
            result["message"] = self.message
        if self.details:
            result["details"] = dict(self.details)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HealthCheckResult":
        """Inverse of to_dict (checked_at is not carried on the wire)."""
        return cls(
            status=HealthStatus.parse(data.get("status", "unhealthy")),
            message=data.get("message"),
            details=dict(data.get("details") or {}),
            duration_ms=float(data.get("duration_ms", 0.0)),
        )


# ============================================================================
# PROBES
# ============================================================================

class HealthCheckPlugin(ABC):
    """
    Base class for health check probes.

    Subclass and implement check() to create custom health checks.
    New probe kinds are added by implementing this interface; the executor
    never needs to know about them.

    Attributes:
        name: Default identifier for the check
        tags: Default tags (e.g. "liveness", "readiness")
        timeout_seconds: Default max execution time before timeout
        blocking: If True the executor calls check_blocking() on its
            thread pool instead of awaiting check()

    Example:
        class PostgresCheck(HealthCheckPlugin):
            name = "postgres"
            tags = ("readiness",)
            timeout_seconds = 5.0

            async def check(self) -> HealthCheckResult:
                try:
                    await db.execute("SELECT 1")
                    return HealthCheckResult.healthy()
                except Exception as e:
                    return HealthCheckResult.unhealthy(str(e))
    """

    name: str = "unnamed"
    tags: Tuple[str, ...] = ()
    timeout_seconds: float = 10.0
    blocking: bool = False

    @abstractmethod
    async def check(self) -> HealthCheckResult:
        """
        Execute health check.

        Returns:
            HealthCheckResult with status and optional details
        """
        pass

    def check_blocking(self) -> HealthCheckResult:
        """Synchronous entry point for blocking probes."""
        raise NotImplementedError(f"{type(self).__name__} is not a blocking probe")


ProbeCallable = Callable[[], Any]


def coerce_result(value: Any) -> HealthCheckResult:
    """
    Normalize what a probe callable returned.

    Accepts a HealthCheckResult, a HealthStatus (or its string value),
    a bool (True = healthy) or None (healthy).
    """
    if isinstance(value, HealthCheckResult):
        return value
    if value is None or value is True:
        return HealthCheckResult.healthy()
    if value is False:
        return HealthCheckResult.unhealthy("check returned False")
    if isinstance(value, (HealthStatus, str)):
        return HealthCheckResult(status=HealthStatus.parse(value))
    raise TypeError(f"Unsupported probe return type: {type(value).__name__}")


class CallablePlugin(HealthCheckPlugin):
    """
    Adapts a plain function or coroutine function to the probe interface.

    Sync functions are treated as blocking and run on the executor's
    thread pool.
    """

    def __init__(
        self,
        func: ProbeCallable,
        name: Optional[str] = None,
        tags: Iterable[str] = (),
        timeout_seconds: Optional[float] = None,
    ):
        self.func = func
        self.name = name or getattr(func, "__name__", "callable")
        self.tags = tuple(tags)
        if timeout_seconds is not None:
            self.timeout_seconds = timeout_seconds
        self.blocking = not asyncio.iscoroutinefunction(func)

    async def check(self) -> HealthCheckResult:
        if self.blocking:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, self.check_blocking)
        return coerce_result(await self.func())

    def check_blocking(self) -> HealthCheckResult:
        return coerce_result(self.func())

    def __repr__(self) -> str:
        return f"CallablePlugin({self.name!r})"


@dataclass(frozen=True)
class ProbeDescriptor:
    """
    Registry entry for one probe.

    Invariants: name is non-empty, timeout_seconds > 0.
    """
    name: str
    check: HealthCheckPlugin
    tags: FrozenSet[str] = frozenset()
    timeout_seconds: float = 10.0

    def __post_init__(self):
        if not self.name:
            raise ValueError("Probe name must not be empty")
        if self.timeout_seconds is None or self.timeout_seconds <= 0:
            raise ValueError(
                f"Probe {self.name}: timeout must be > 0 (got {self.timeout_seconds})"
            )
        object.__setattr__(self, "tags", frozenset(self.tags))

    @classmethod
    def from_plugin(
        cls,
        plugin: HealthCheckPlugin,
        name: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> "ProbeDescriptor":
        """Build a descriptor, falling back to the plugin's class attributes."""
        return cls(
            name=name or plugin.name,
            check=plugin,
            tags=frozenset(plugin.tags if tags is None else tags),
            timeout_seconds=timeout_seconds or plugin.timeout_seconds,
        )


# ============================================================================
# REPORTS
# ============================================================================

@dataclass(frozen=True)
class ReportEntry:
    """One (probe name, result) pair of a report."""
    name: str
    result: HealthCheckResult
    tags: FrozenSet[str] = frozenset()

    @property
    def status(self) -> HealthStatus:
        return self.result.status


@dataclass(frozen=True)
class HealthReport:
    """Aggregated result from one evaluation. Entries keep probe order."""
    status: HealthStatus
    entries: Tuple[ReportEntry, ...]
    total_duration_ms: float = 0.0
    generated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[ReportEntry],
        total_duration_ms: float = 0.0,
        generated_at: Optional[datetime] = None,
    ) -> "HealthReport":
        """Build a report, deriving the overall status (worst wins)."""
        entries = tuple(entries)
        return cls(
            status=HealthStatus.aggregate(e.status for e in entries),
            entries=entries,
            total_duration_ms=total_duration_ms,
            generated_at=generated_at or utcnow(),
        )

    @property
    def names(self) -> List[str]:
        return [e.name for e in self.entries]

    def entry(self, name: str) -> Optional[ReportEntry]:
        """Look up an entry by probe name."""
        for e in self.entries:
            if e.name == name:
                return e
        return None

    def counts(self) -> Dict[str, int]:
        """Number of entries per status value."""
        counts = {s.value: 0 for s in HealthStatus}
        for e in self.entries:
            counts[e.status.value] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        checks = {}
        for e in self.entries:
            data = e.result.to_dict()
            data["tags"] = sorted(e.tags)
            checks[e.name] = data
        return {
            "status": self.status.value,
            "checks": checks,
            "total_duration_ms": round(self.total_duration_ms, 2),
            "generated_at": self.generated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HealthReport":
        """Inverse of to_dict."""
        entries = [
            ReportEntry(
                name=name,
                result=HealthCheckResult.from_dict(item),
                tags=frozenset(item.get("tags") or ()),
            )
            for name, item in (data.get("checks") or {}).items()
        ]
        generated_at = data.get("generated_at")
        report = cls.from_entries(
            entries,
            total_duration_ms=float(data.get("total_duration_ms", 0.0)),
            generated_at=datetime.fromisoformat(generated_at) if generated_at else None,
        )
        # An empty remote report still carries its own status
        if not entries and "status" in data:
            report = dataclasses.replace(report, status=HealthStatus.parse(data["status"]))
        return report


__all__ = [
    "HealthStatus",
    "HealthCheckResult",
    "HealthCheckPlugin",
    "CallablePlugin",
    "ProbeCallable",
    "ProbeDescriptor",
    "ReportEntry",
    "HealthReport",
    "coerce_result",
    "utcnow",
]
