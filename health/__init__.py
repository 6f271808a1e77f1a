# ============================================================================
# HEALTH CHECK MODULE
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - Health check engine
# PURPOSE: Probe aggregation, reporting and health endpoints
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Module

Probe-based health check engine:
- /healthz: Full report (every probe)
- /livez, /readyz: Tag-filtered reports
- Dashboard: bounded history of local and remote reports

Architecture:
- HealthCheckPlugin: Probe interface (one variant per probe kind)
- HealthCheckRegistry: Named probe descriptors, registration order
- HealthCheckExecutor: Parallel execution with timeouts, worst-wins
- Reporters: JSON, HealthChecks-UI JSON, HTML
- EndpointDispatcher: route -> (predicate, reporter, status codes)
- HealthDashboard: background poller feeding ReportHistory

Usage:
    from health import HealthCheckRegistry, HealthCheckExecutor, EndpointDispatcher
    from health.predicates import has_tag

    registry = HealthCheckRegistry()
    registry.register_plugin(MyCheck(), tags=["readiness"])

    executor = HealthCheckExecutor(registry)
    dispatcher = EndpointDispatcher(executor)
    dispatcher.map_route("/healthz")
    dispatcher.map_route("/readyz", predicate=has_tag("readiness"))

    app.include_router(dispatcher.build_router())
"""

from health.core import (
    HealthStatus,
    HealthCheckResult,
    HealthCheckPlugin,
    CallablePlugin,
    ProbeDescriptor,
    ReportEntry,
    HealthReport,
)
from health.errors import (
    HealthCheckError,
    DuplicateNameError,
    ProbeTimeoutError,
    ProbeFaultError,
    AggregationTimeoutError,
    RouteNotFoundError,
    ProbeLoadError,
    ConfigurationError,
)
from health.predicates import EvaluationPolicy
from health.registry import HealthCheckRegistry
from health.executor import HealthCheckExecutor
from health.reporters import JsonReporter, UIJsonReporter, HtmlReporter, DashboardReporter
from health.history import ReportHistory
from health.dashboard import DashboardEndpoint, HealthDashboard
from health.router import EndpointDispatcher, StatusCodeMap

__all__ = [
    # Core types
    "HealthStatus",
    "HealthCheckResult",
    "HealthCheckPlugin",
    "CallablePlugin",
    "ProbeDescriptor",
    "ReportEntry",
    "HealthReport",
    "EvaluationPolicy",
    # Errors
    "HealthCheckError",
    "DuplicateNameError",
    "ProbeTimeoutError",
    "ProbeFaultError",
    "AggregationTimeoutError",
    "RouteNotFoundError",
    "ProbeLoadError",
    "ConfigurationError",
    # Components
    "HealthCheckRegistry",
    "HealthCheckExecutor",
    "JsonReporter",
    "UIJsonReporter",
    "HtmlReporter",
    "DashboardReporter",
    "ReportHistory",
    "DashboardEndpoint",
    "HealthDashboard",
    "EndpointDispatcher",
    "StatusCodeMap",
]
