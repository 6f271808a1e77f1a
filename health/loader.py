# ============================================================================
# HEALTH COMPONENT LOADER
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - Startup wiring
# PURPOSE: Build registry, executor, dispatcher and dashboard from settings
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Component Loader

Turns HealthSettings into live components, failing fast on any problem:
- Unknown probe kind or unimportable factory -> ProbeLoadError
- Two probes with the same name -> DuplicateNameError
- Unset ${VAR} in probe options -> ConfigurationError

Probe factories are referenced as "package.module:callable" and called
with the probe's options as keyword arguments. They return either a
HealthCheckPlugin or a zero-argument callable (sync or async) that
returns a HealthCheckResult, HealthStatus, bool or None.
"""

import importlib
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import health.checks
from __version__ import __version__
from core.logging import ComponentType, get_logger
from core.config.settings import HealthSettings, ProbeConfig, StatusCodeConfig, expand_env
from health.core import CallablePlugin, HealthCheckPlugin, ProbeDescriptor
from health.dashboard import DashboardEndpoint, HealthDashboard
from health.errors import ProbeLoadError
from health.executor import HealthCheckExecutor
from health.history import ReportHistory
from health.predicates import build_predicate
from health.registry import HealthCheckRegistry
from health.reporters import HtmlReporter, JsonReporter, Reporter, UIJsonReporter
from health.router import EndpointDispatcher, StatusCodeMap

logger = get_logger(__name__, ComponentType.LOADER)


def import_object(path: str) -> Any:
    """
    Import "package.module:attr.sub" and return the attribute.

    Raises:
        ImportError / AttributeError as raised by the import system
    """
    module_name, _, attr_path = path.partition(":")
    obj = importlib.import_module(module_name)
    for attr in attr_path.split("."):
        obj = getattr(obj, attr)
    return obj


def _resolve_factory(config: ProbeConfig) -> Callable[..., Any]:
    if config.kind:
        cls = health.checks.get_probe_kind(config.kind)
        if cls is None:
            raise ProbeLoadError(
                config.name,
                f"unknown kind '{config.kind}' (known: {health.checks.list_probe_kinds()})",
            )
        return cls

    try:
        return import_object(config.factory)
    except (ImportError, AttributeError) as e:
        raise ProbeLoadError(config.name, f"cannot import {config.factory}: {e}") from e


def build_plugin(config: ProbeConfig) -> HealthCheckPlugin:
    """Instantiate the plugin for one configured probe."""
    factory = _resolve_factory(config)
    options = expand_env(config.options)

    try:
        built = factory(**options)
    except TypeError as e:
        raise ProbeLoadError(config.name, f"bad options {sorted(options)}: {e}") from e

    if isinstance(built, HealthCheckPlugin):
        return built
    if callable(built):
        return CallablePlugin(built, name=config.name)
    raise ProbeLoadError(
        config.name,
        f"factory returned {type(built).__name__}, expected a plugin or a callable",
    )


def _timeout_for(config: ProbeConfig, plugin: HealthCheckPlugin, default: float) -> float:
    if config.timeout_seconds:
        return config.timeout_seconds
    # A plugin that declares its own timeout keeps it
    if plugin.timeout_seconds != HealthCheckPlugin.timeout_seconds:
        return plugin.timeout_seconds
    return default


def build_registry(settings: HealthSettings) -> HealthCheckRegistry:
    """Build the probe registry; raises on the first bad probe."""
    registry = HealthCheckRegistry()

    for config in settings.probes:
        if not config.enabled:
            logger.info(f"Health check {config.name} disabled in configuration")
            continue

        plugin = build_plugin(config)
        registry.register(
            ProbeDescriptor(
                name=config.name,
                check=plugin,
                tags=frozenset(config.tags or plugin.tags),
                timeout_seconds=_timeout_for(
                    config, plugin, settings.default_probe_timeout_seconds
                ),
            )
        )

    logger.info(f"Health checks initialized ({len(registry)} checks registered)")
    return registry


def build_executor(settings: HealthSettings, registry: HealthCheckRegistry) -> HealthCheckExecutor:
    return HealthCheckExecutor(
        registry=registry,
        overall_timeout=settings.overall_timeout_seconds,
        max_parallel=settings.max_parallel,
        thread_pool_size=settings.thread_pool_size,
    )


def status_code_map(config: StatusCodeConfig) -> StatusCodeMap:
    return StatusCodeMap(
        healthy=config.healthy,
        degraded=config.degraded,
        unhealthy=config.unhealthy,
    )


def build_reporter(name: str, settings: HealthSettings) -> Reporter:
    if name == "ui":
        return UIJsonReporter()
    if name == "html":
        return HtmlReporter(title=f"{settings.service_name} health")
    return JsonReporter(extra={"service": settings.service_name, "version": __version__})


def build_dispatcher(settings: HealthSettings, executor: HealthCheckExecutor) -> EndpointDispatcher:
    """Map every configured route."""
    dispatcher = EndpointDispatcher(executor, status_codes=status_code_map(settings.status_codes))

    for route in settings.routes:
        dispatcher.map_route(
            route.path,
            predicate=build_predicate(
                tags=route.tags,
                names=route.names,
                exclude=route.exclude_tags,
                match_all_tags=route.match_all_tags,
            ),
            reporter=build_reporter(route.reporter, settings),
            status_codes=status_code_map(route.status_codes) if route.status_codes else None,
        )

    return dispatcher


def build_dashboard(
    settings: HealthSettings,
    executor: HealthCheckExecutor,
) -> Optional[HealthDashboard]:
    """
    Build the dashboard poller (None when disabled).

    Without configured endpoints the dashboard tracks the local registry
    under the service name.
    """
    config = settings.dashboard
    if not config.enabled:
        return None

    endpoints: List[DashboardEndpoint] = [
        DashboardEndpoint(
            name=e.name,
            url=e.url,
            predicate=build_predicate(tags=e.tags, names=e.names),
        )
        for e in config.endpoints
    ]
    if not endpoints:
        endpoints = [DashboardEndpoint(name=settings.service_name)]

    return HealthDashboard(
        endpoints,
        executor=executor,
        history=ReportHistory(max_size=config.history_size),
        interval_seconds=config.evaluation_interval_seconds,
        poll_timeout=config.poll_timeout_seconds,
        verify_tls=config.verify_tls,
    )


@dataclass
class HealthComponents:
    """Everything the application wires together at startup."""
    settings: HealthSettings
    registry: HealthCheckRegistry
    executor: HealthCheckExecutor
    dispatcher: EndpointDispatcher
    dashboard: Optional[HealthDashboard] = None


def build_components(settings: HealthSettings) -> HealthComponents:
    """Build all components from settings."""
    registry = build_registry(settings)
    executor = build_executor(settings, registry)
    return HealthComponents(
        settings=settings,
        registry=registry,
        executor=executor,
        dispatcher=build_dispatcher(settings, executor),
        dashboard=build_dashboard(settings, executor),
    )


__all__ = [
    "import_object",
    "build_plugin",
    "build_registry",
    "build_executor",
    "build_reporter",
    "build_dispatcher",
    "build_dashboard",
    "status_code_map",
    "HealthComponents",
    "build_components",
]
