# ============================================================================
# SHARED TEST FIXTURES
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Tests - Probe doubles and registry fixtures
# PURPOSE: Deterministic probes for executor, router and dashboard tests
# CREATED: 19 OCT 2026
# ============================================================================

import asyncio
import time
from typing import Iterable, Optional

import pytest

from health.core import HealthCheckPlugin, HealthCheckResult, HealthStatus
from health.registry import HealthCheckRegistry


class StaticCheck(HealthCheckPlugin):
    """Returns a fixed status after an optional delay."""

    def __init__(
        self,
        status: HealthStatus = HealthStatus.HEALTHY,
        message: Optional[str] = None,
        delay: float = 0.0,
        **details,
    ):
        self.status = status
        self.message = message
        self.delay = delay
        self.details = details
        self.calls = 0

    async def check(self) -> HealthCheckResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return HealthCheckResult(status=self.status, message=self.message, details=self.details)


class HangingCheck(HealthCheckPlugin):
    """Never returns on its own."""

    def __init__(self):
        self.cancelled = False

    async def check(self) -> HealthCheckResult:
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return HealthCheckResult.healthy()


class FailingCheck(HealthCheckPlugin):
    """Raises the given exception."""

    def __init__(self, error: Exception):
        self.error = error

    async def check(self) -> HealthCheckResult:
        raise self.error


class BlockingCheck(HealthCheckPlugin):
    """Blocks a worker thread with time.sleep."""

    blocking = True

    def __init__(self, seconds: float, status: HealthStatus = HealthStatus.HEALTHY):
        self.seconds = seconds
        self.status = status

    async def check(self) -> HealthCheckResult:
        raise AssertionError("blocking probes run through check_blocking")

    def check_blocking(self) -> HealthCheckResult:
        time.sleep(self.seconds)
        return HealthCheckResult(status=self.status)


def make_registry(*entries) -> HealthCheckRegistry:
    """
    Build a registry from (name, plugin, tags, timeout) tuples.

    tags and timeout may be omitted.
    """
    registry = HealthCheckRegistry()
    for entry in entries:
        name, plugin, *rest = entry
        tags: Iterable[str] = rest[0] if len(rest) > 0 else ()
        timeout = rest[1] if len(rest) > 1 else 1.0
        registry.register_plugin(plugin, name=name, tags=tags, timeout_seconds=timeout)
    return registry


@pytest.fixture
def mixed_registry() -> HealthCheckRegistry:
    """Registry with liveness/readiness tagged probes of every status."""
    return make_registry(
        ("process", StaticCheck(), ["liveness"]),
        ("sqlserver", StaticCheck(HealthStatus.HEALTHY, "connected"), ["readiness", "database"]),
        ("postgres", StaticCheck(HealthStatus.DEGRADED, "slow"), ["readiness", "database"]),
        ("kafka", StaticCheck(HealthStatus.HEALTHY), ["readiness", "external"]),
    )
