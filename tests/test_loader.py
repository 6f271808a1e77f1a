# ============================================================================
# LOADER TESTS
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Tests - Settings -> components wiring
# PURPOSE: Verify probe construction and fail-fast startup errors
# CREATED: 19 OCT 2026
# ============================================================================
"""
Loader Tests

External probe factories are provided by a throwaway module placed in
sys.modules for the duration of a test.

Run with:
    pytest tests/test_loader.py -v
"""

import asyncio
import sys
import types

import pytest

from core.config import HealthSettings
from health.checks import EnvironmentCheck, ProcessCheck, list_probe_kinds, register_probe_kind
from health.core import CallablePlugin, HealthCheckResult, HealthStatus
from health.errors import ConfigurationError, DuplicateNameError, ProbeLoadError
from health.loader import (
    build_components,
    build_dashboard,
    build_executor,
    build_plugin,
    build_registry,
    import_object,
)
from health.reporters import JsonReporter, UIJsonReporter


@pytest.fixture
def probe_module(monkeypatch):
    """Module `acme_probes` exposing a few probe factories."""
    module = types.ModuleType("acme_probes")

    def sqlserver_probe(connection_string):
        async def probe():
            if "Server=" not in connection_string:
                return HealthCheckResult.unhealthy("bad connection string")
            return HealthCheckResult.healthy(connection=connection_string)
        return probe

    def disk_probe(path="/", minimum_free_mb=1024):
        def probe():
            return minimum_free_mb < 10_000
        return probe

    def not_a_probe():
        return 42

    module.sqlserver_probe = sqlserver_probe
    module.disk_probe = disk_probe
    module.not_a_probe = not_a_probe
    monkeypatch.setitem(sys.modules, "acme_probes", module)
    return module


def _settings(*probes, **kwargs) -> HealthSettings:
    return HealthSettings.from_dict({"probes": list(probes), **kwargs})


class TestBuildPlugin:

    def test_builtin_kinds_registered(self):
        assert {"process", "environment"} <= set(list_probe_kinds())

    def test_kind(self):
        plugin = build_plugin(_settings({"name": "process", "kind": "process"}).probes[0])
        assert isinstance(plugin, ProcessCheck)

    def test_kind_with_options(self):
        config = _settings({
            "name": "env", "kind": "environment", "options": {"required": ["A"]},
        }).probes[0]
        plugin = build_plugin(config)
        assert isinstance(plugin, EnvironmentCheck)
        assert plugin.required == ["A"]

    def test_factory_with_env_expansion(self, probe_module, monkeypatch):
        monkeypatch.setenv("SQL_DSN", "Server=db01;Database=orders")
        config = _settings({
            "name": "sqlserver",
            "factory": "acme_probes:sqlserver_probe",
            "options": {"connection_string": "${SQL_DSN}"},
        }).probes[0]

        plugin = build_plugin(config)
        result = asyncio.run(plugin.check())

        assert isinstance(plugin, CallablePlugin)
        assert plugin.name == "sqlserver"
        assert plugin.blocking is False
        assert result.details["connection"] == "Server=db01;Database=orders"

    def test_sync_factory_is_blocking(self, probe_module):
        config = _settings({"name": "disk", "factory": "acme_probes:disk_probe"}).probes[0]
        plugin = build_plugin(config)

        assert plugin.blocking is True
        assert plugin.check_blocking().status == HealthStatus.HEALTHY

    def test_unknown_kind(self):
        config = _settings({"name": "redis", "kind": "redis"}).probes[0]
        with pytest.raises(ProbeLoadError, match="unknown kind 'redis'"):
            build_plugin(config)

    def test_unimportable_factory(self):
        config = _settings({"name": "x", "factory": "no_such_module_xyz:probe"}).probes[0]
        with pytest.raises(ProbeLoadError, match="cannot import"):
            build_plugin(config)

    def test_bad_options(self, probe_module):
        config = _settings({
            "name": "sql", "factory": "acme_probes:sqlserver_probe", "options": {"dsn": "x"},
        }).probes[0]
        with pytest.raises(ProbeLoadError, match="bad options"):
            build_plugin(config)

    def test_factory_returning_non_callable(self, probe_module):
        config = _settings({"name": "x", "factory": "acme_probes:not_a_probe"}).probes[0]
        with pytest.raises(ProbeLoadError, match="expected a plugin or a callable"):
            build_plugin(config)

    def test_unset_env_variable(self, probe_module, monkeypatch):
        monkeypatch.delenv("MISSING_DSN", raising=False)
        config = _settings({
            "name": "sql",
            "factory": "acme_probes:sqlserver_probe",
            "options": {"connection_string": "${MISSING_DSN}"},
        }).probes[0]
        with pytest.raises(ConfigurationError):
            build_plugin(config)

    def test_import_object(self):
        assert import_object("health.checks:ProcessCheck") is ProcessCheck
        assert import_object("health.core:HealthStatus.HEALTHY") is HealthStatus.HEALTHY

    def test_duplicate_kind_rejected(self):
        with pytest.raises(DuplicateNameError):
            register_probe_kind("process")(ProcessCheck)


class TestBuildRegistry:

    def test_registry_order_tags_and_timeouts(self, probe_module):
        settings = _settings(
            {"name": "process", "kind": "process"},
            {"name": "disk", "factory": "acme_probes:disk_probe", "tags": ["liveness"]},
            {"name": "disk-slow", "factory": "acme_probes:disk_probe", "timeout_seconds": 3},
            {"name": "disabled", "kind": "process", "enabled": False},
            default_probe_timeout_seconds=7,
        )
        registry = build_registry(settings)

        assert registry.names() == ["process", "disk", "disk-slow"]
        # Class defaults apply when configuration is silent
        assert registry.get("process").tags == frozenset({"liveness"})
        assert registry.get("process").timeout_seconds == 1.0
        assert registry.get("disk").timeout_seconds == 7
        assert registry.get("disk-slow").timeout_seconds == 3

    def test_duplicate_probe_names(self):
        settings = _settings(
            {"name": "process", "kind": "process"},
            {"name": "process", "kind": "environment"},
        )
        with pytest.raises(DuplicateNameError):
            build_registry(settings)

    def test_executor_settings(self):
        settings = _settings({"name": "process", "kind": "process"}, max_parallel=2)
        registry = build_registry(settings)
        executor = build_executor(settings, registry)
        try:
            assert executor.max_parallel == 2
            assert executor.registry is registry
        finally:
            executor.close()


class TestBuildComponents:

    def test_default_routes(self):
        components = build_components(HealthSettings())
        try:
            routes = {r.path: r for r in components.dispatcher.routes}
            assert list(routes) == ["/healthz", "/livez", "/readyz"]
            assert isinstance(routes["/healthz"].reporter, UIJsonReporter)
            assert isinstance(routes["/livez"].reporter, JsonReporter)
            assert routes["/livez"].status_codes.unhealthy == 503
        finally:
            components.executor.close()

    def test_route_status_code_override(self):
        settings = HealthSettings.from_dict({
            "routes": [{"path": "/readyz", "status_codes": {"degraded": 503}}],
        })
        components = build_components(settings)
        try:
            assert components.dispatcher.get_route("/readyz").status_codes.degraded == 503
        finally:
            components.executor.close()

    def test_dashboard_defaults_to_local_endpoint(self):
        settings = HealthSettings(service_name="orders")
        components = build_components(settings)
        try:
            dashboard = components.dashboard
            assert [e.name for e in dashboard.endpoints] == ["orders"]
            assert not dashboard.endpoints[0].is_remote
            assert dashboard.interval_seconds == 300
            assert dashboard.history.max_size == 50
        finally:
            components.executor.close()

    def test_dashboard_remote_endpoints(self):
        settings = HealthSettings.from_dict({
            "dashboard": {
                "evaluation_interval_seconds": 60,
                "history_size": 5,
                "endpoints": [
                    {"name": "S3HealthEndpoint", "url": "https://localhost:44376/healthz"},
                    {"name": "local-readiness", "tags": ["readiness"]},
                ],
            },
        })
        components = build_components(settings)
        try:
            endpoints = components.dashboard.endpoints
            assert [e.name for e in endpoints] == ["S3HealthEndpoint", "local-readiness"]
            assert endpoints[0].is_remote
            assert not endpoints[1].is_remote
            assert components.dashboard.history.max_size == 5
        finally:
            components.executor.close()

    def test_dashboard_disabled(self):
        settings = HealthSettings.from_dict({"dashboard": {"enabled": False}})
        components = build_components(settings)
        try:
            assert build_dashboard(settings, components.executor) is None
            assert components.dashboard is None
        finally:
            components.executor.close()
