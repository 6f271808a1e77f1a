# ============================================================================
# STARTUP HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - Built-in probes
# PURPOSE: Process liveness and required configuration checks
# CREATED: 19 OCT 2026
# ============================================================================
"""
Startup Health Checks

Built-in probes with no external dependencies:
- ProcessCheck (kind "process"): always healthy if the check runs
- EnvironmentCheck (kind "environment"): required environment variables
  are present
"""

import os
import platform
import sys
import time
import logging
from typing import Iterable, List, Optional

from health.core import HealthCheckPlugin, HealthCheckResult
from health.checks.catalog import register_probe_kind

logger = logging.getLogger(__name__)

_PROCESS_STARTED = time.monotonic()


@register_probe_kind("process")
class ProcessCheck(HealthCheckPlugin):
    """
    Basic process health check.

    Always returns healthy if the check runs (proves the event loop is
    responsive).
    """

    name = "process"
    tags = ("liveness",)
    timeout_seconds = 1.0

    async def check(self) -> HealthCheckResult:
        return HealthCheckResult.healthy(
            message="Process running",
            python_version=sys.version.split()[0],
            platform=platform.platform(),
            pid=os.getpid(),
            uptime_seconds=round(time.monotonic() - _PROCESS_STARTED, 1),
        )


@register_probe_kind("environment")
class EnvironmentCheck(HealthCheckPlugin):
    """
    Configuration health check.

    Verifies required environment variables are present.
    Does NOT check if values are valid (that's for other checks).

    Options:
        required: Variables whose absence makes the probe unhealthy
        recommended: Variables whose absence only degrades it
    """

    name = "environment"
    tags = ("readiness",)
    timeout_seconds = 1.0

    def __init__(
        self,
        required: Optional[Iterable[str]] = None,
        recommended: Optional[Iterable[str]] = None,
    ):
        self.required: List[str] = list(required or [])
        self.recommended: List[str] = list(recommended or [])

    async def check(self) -> HealthCheckResult:
        missing = [var for var in self.required if not os.environ.get(var)]
        missing_recommended = [var for var in self.recommended if not os.environ.get(var)]
        present = [
            var for var in self.required + self.recommended
            if os.environ.get(var)
        ]

        if missing:
            logger.warning(f"Required environment variables missing: {missing}")
            return HealthCheckResult.unhealthy(
                message=f"Missing required config: {', '.join(missing)}",
                missing=missing,
                present=present,
            )

        if missing_recommended:
            return HealthCheckResult.degraded(
                message=f"Missing recommended config: {', '.join(missing_recommended)}",
                missing=missing_recommended,
                present=present,
            )

        return HealthCheckResult.healthy(
            message="All required config present",
            present=present,
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ProcessCheck",
    "EnvironmentCheck",
]
