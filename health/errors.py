# ============================================================================
# HEALTH CHECK ERRORS
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - Exception taxonomy
# PURPOSE: Errors raised (and recovered) by the health check engine
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Errors

Recovered inside the executor (converted to unhealthy results):
- ProbeTimeoutError: a probe exceeded its timeout
- ProbeFaultError: a probe raised
- AggregationTimeoutError: the whole evaluation exceeded its outer bound

Fatal at startup:
- DuplicateNameError: two probes (or two routes) share a name
- ProbeLoadError: a configured probe factory cannot be imported or built
- ConfigurationError: invalid configuration file or environment

Raised to callers:
- RouteNotFoundError: dispatcher asked for an unmapped route
"""

from typing import Optional


class HealthCheckError(Exception):
    """Base exception for health check errors."""
    pass


class DuplicateNameError(HealthCheckError):
    """Raised when a probe or route name is already registered."""
    def __init__(self, name: str, kind: str = "probe"):
        self.name = name
        self.kind = kind
        super().__init__(f"Duplicate {kind} name: {name}")


class ProbeTimeoutError(HealthCheckError):
    """Raised when a probe exceeds its configured timeout."""
    def __init__(self, name: str, timeout_seconds: float):
        self.name = name
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Probe {name} timed out after {timeout_seconds}s")


class ProbeFaultError(HealthCheckError):
    """Raised when a probe fails with an exception."""
    def __init__(self, name: str, cause: BaseException):
        self.name = name
        self.cause = cause
        super().__init__(str(cause) or type(cause).__name__)


class AggregationTimeoutError(HealthCheckError):
    """Raised when a whole evaluation exceeds the executor's outer bound."""
    def __init__(self, timeout_seconds: float, pending: Optional[list] = None):
        self.timeout_seconds = timeout_seconds
        self.pending = pending or []
        super().__init__(
            f"Evaluation exceeded {timeout_seconds}s "
            f"({len(self.pending)} probes pending)"
        )


class RouteNotFoundError(HealthCheckError):
    """Raised when the dispatcher has no route for a path."""
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Health route not found: {path}")


class ProbeLoadError(HealthCheckError):
    """Raised when a configured probe cannot be built."""
    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Cannot load probe {name}: {reason}")


class ConfigurationError(HealthCheckError):
    """Raised when configuration is missing or invalid."""
    pass


__all__ = [
    "HealthCheckError",
    "DuplicateNameError",
    "ProbeTimeoutError",
    "ProbeFaultError",
    "AggregationTimeoutError",
    "RouteNotFoundError",
    "ProbeLoadError",
    "ConfigurationError",
]
