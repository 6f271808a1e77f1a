# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for timeouts, status codes, dashboard polling
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

Default values shared by the pydantic settings models and the components
that can be built without settings (StatusCodeMap, HealthDashboard).
Environment overrides are applied by HealthSettings.with_env_overrides,
not here.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TimeoutDefaults:
    """
    Defaults for probe execution.

    Per-probe timeouts bound each check; the overall timeout is a guard
    around the whole evaluation.
    """
    probe_timeout_seconds: float = 10.0
    overall_timeout_seconds: float = 60.0
    max_parallel: Optional[int] = None  # None = one task per probe
    thread_pool_size: int = 16  # for blocking probes


@dataclass(frozen=True)
class StatusCodeDefaults:
    """
    HTTP status code per overall health status.

    Degraded is reported as 200 so that load balancers keep routing to a
    service that is only partially impaired.
    """
    healthy: int = 200
    degraded: int = 200
    unhealthy: int = 503


@dataclass(frozen=True)
class DashboardDefaults:
    """
    Defaults for the dashboard poller.

    One evaluation every five minutes matches the interval the dashboard
    was originally deployed with.
    """
    evaluation_interval_seconds: float = 300.0
    history_size: int = 50
    poll_timeout_seconds: float = 10.0
    ui_path: str = "/healthchecks-ui"
    api_path: str = "/healthchecks-api"


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "TimeoutDefaults",
    "StatusCodeDefaults",
    "DashboardDefaults",
]
