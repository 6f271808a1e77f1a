# ============================================================================
# EXECUTOR TESTS
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Tests - Parallel execution, timeouts, failure isolation
# PURPOSE: Verify that every evaluation yields a complete, ordered report
# CREATED: 19 OCT 2026
# ============================================================================
"""
Executor Tests

Covers:
1. Entry count and order match the selected probes
2. Per-probe timeout -> unhealthy "timeout", evaluation not held up
3. Probe exceptions -> unhealthy with the error message
4. Blocking probes run on the thread pool, concurrently
5. Overall timeout guard and the synthetic aggregator entry
6. Worst-wins overall status

Run with:
    pytest tests/test_executor.py -v
"""

import asyncio
import time
from unittest.mock import patch

import pytest

from conftest import BlockingCheck, FailingCheck, HangingCheck, StaticCheck, make_registry
from health.core import HealthCheckPlugin, HealthCheckResult, HealthStatus
from health.executor import AGGREGATOR_ENTRY, HealthCheckExecutor
from health.predicates import EvaluationPolicy, has_tag, never


@pytest.fixture
def executor_for():
    """Factory fixture; closes every executor it built."""
    created = []

    def build(registry, **kwargs):
        executor = HealthCheckExecutor(registry=registry, **kwargs)
        created.append(executor)
        return executor

    yield build
    for executor in created:
        executor.close()


# ============================================================================
# SELECTION AND ORDER
# ============================================================================

class TestSelection:

    def test_all_probes_in_registration_order(self, mixed_registry, executor_for):
        report = asyncio.run(executor_for(mixed_registry).execute_all())

        assert report.names == ["process", "sqlserver", "postgres", "kafka"]
        assert report.status == HealthStatus.DEGRADED

    def test_predicate_selects_subset(self, mixed_registry, executor_for):
        report = asyncio.run(executor_for(mixed_registry).execute_all(has_tag("liveness")))

        assert report.names == ["process"]
        assert report.status == HealthStatus.HEALTHY

    def test_empty_selection_is_healthy(self, mixed_registry, executor_for):
        report = asyncio.run(executor_for(mixed_registry).execute_all(never))

        assert report.entries == ()
        assert report.status == HealthStatus.HEALTHY

    def test_order_independent_of_completion(self, executor_for):
        registry = make_registry(
            ("slow", StaticCheck(delay=0.2)),
            ("fast", StaticCheck()),
        )
        report = asyncio.run(executor_for(registry).execute_all())

        assert report.names == ["slow", "fast"]

    def test_evaluate_policy(self, mixed_registry, executor_for):
        policy = EvaluationPolicy(predicate=has_tag("database"), interval_seconds=30)
        report = asyncio.run(executor_for(mixed_registry).evaluate_policy(policy))

        assert report.names == ["sqlserver", "postgres"]

    def test_tags_carried_into_entries(self, mixed_registry, executor_for):
        report = asyncio.run(executor_for(mixed_registry).execute_all())

        assert report.entry("kafka").tags == frozenset({"readiness", "external"})

    def test_repeated_evaluations_are_independent(self, mixed_registry, executor_for):
        executor = executor_for(mixed_registry)

        async def twice():
            return await executor.execute_all(), await executor.execute_all()

        first, second = asyncio.run(twice())

        assert first.names == second.names
        assert first.status == second.status
        assert mixed_registry.get("kafka").check.calls == 2


# ============================================================================
# STATUS AGGREGATION
# ============================================================================

class TestAggregation:

    @pytest.mark.parametrize("statuses, expected", [
        ([HealthStatus.HEALTHY, HealthStatus.DEGRADED, HealthStatus.HEALTHY], HealthStatus.DEGRADED),
        ([HealthStatus.HEALTHY, HealthStatus.UNHEALTHY, HealthStatus.DEGRADED], HealthStatus.UNHEALTHY),
        ([HealthStatus.HEALTHY, HealthStatus.HEALTHY], HealthStatus.HEALTHY),
    ])
    def test_worst_wins(self, statuses, expected, executor_for):
        registry = make_registry(*[
            (f"check{i}", StaticCheck(status)) for i, status in enumerate(statuses)
        ])
        report = asyncio.run(executor_for(registry).execute_all())

        assert report.status == expected
        assert [e.status for e in report.entries] == statuses


# ============================================================================
# FAILURE ISOLATION
# ============================================================================

class TestFailureIsolation:

    def test_hanging_probe_times_out(self, executor_for):
        hanging = HangingCheck()
        registry = make_registry(
            ("healthy", StaticCheck()),
            ("hanging", hanging, (), 0.2),
        )

        start = time.monotonic()
        report = asyncio.run(executor_for(registry).execute_all())
        elapsed = time.monotonic() - start

        entry = report.entry("hanging")
        assert entry.status == HealthStatus.UNHEALTHY
        assert entry.result.message == "timeout"
        assert entry.result.duration_ms >= 150
        assert report.entry("healthy").status == HealthStatus.HEALTHY
        assert report.status == HealthStatus.UNHEALTHY
        assert hanging.cancelled is True
        assert elapsed < 1.0

    def test_check_ignoring_cancellation_still_times_out(self, executor_for):
        class StubbornCheck(HealthCheckPlugin):
            async def check(self):
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    await asyncio.sleep(0.5)
                return HealthCheckResult.healthy()

        registry = make_registry(
            ("healthy", StaticCheck()),
            ("stubborn", StubbornCheck(), (), 0.2),
        )

        async def evaluate():
            start = time.monotonic()
            report = await executor_for(registry, overall_timeout=3.0).execute_all()
            return report, time.monotonic() - start

        report, elapsed = asyncio.run(evaluate())

        entry = report.entry("stubborn")
        assert entry.result.message == "timeout"
        assert entry.result.duration_ms < 400
        assert report.entry("healthy").status == HealthStatus.HEALTHY
        assert elapsed < 0.4

    def test_probes_run_concurrently(self, executor_for):
        registry = make_registry(*[
            (f"hang{i}", HangingCheck(), (), 0.3) for i in range(5)
        ])

        start = time.monotonic()
        report = asyncio.run(executor_for(registry).execute_all())
        elapsed = time.monotonic() - start

        assert all(e.result.message == "timeout" for e in report.entries)
        assert elapsed < 1.0

    def test_exception_becomes_unhealthy(self, executor_for):
        registry = make_registry(
            ("sql", FailingCheck(ConnectionError("Login failed for user 'sa'"))),
            ("ok", StaticCheck()),
        )
        report = asyncio.run(executor_for(registry).execute_all())

        entry = report.entry("sql")
        assert entry.status == HealthStatus.UNHEALTHY
        assert entry.result.message == "Login failed for user 'sa'"
        assert entry.result.details["exception_type"] == "ConnectionError"
        assert report.entry("ok").status == HealthStatus.HEALTHY

    def test_duration_recorded(self, executor_for):
        registry = make_registry(("slowish", StaticCheck(delay=0.05)))
        report = asyncio.run(executor_for(registry).execute_all())

        assert report.entry("slowish").result.duration_ms >= 40
        assert report.total_duration_ms >= 40

    def test_bad_return_type_is_fault(self, executor_for):
        class WeirdCheck(StaticCheck):
            async def check(self):
                return 42

        registry = make_registry(("weird", WeirdCheck()))
        report = asyncio.run(executor_for(registry).execute_all())

        assert report.entry("weird").status == HealthStatus.UNHEALTHY
        assert report.entry("weird").result.details["exception_type"] == "TypeError"


# ============================================================================
# BLOCKING PROBES
# ============================================================================

class TestBlockingProbes:

    def test_blocking_probe_runs_on_thread_pool(self, executor_for):
        registry = make_registry(("disk", BlockingCheck(0.01, HealthStatus.DEGRADED)))
        report = asyncio.run(executor_for(registry).execute_all())

        assert report.entry("disk").status == HealthStatus.DEGRADED

    def test_blocking_probes_do_not_serialize(self, executor_for):
        registry = make_registry(*[
            (f"disk{i}", BlockingCheck(0.2)) for i in range(4)
        ])

        start = time.monotonic()
        report = asyncio.run(executor_for(registry, thread_pool_size=4).execute_all())
        elapsed = time.monotonic() - start

        assert report.status == HealthStatus.HEALTHY
        assert elapsed < 0.7

    def test_blocking_probe_timeout(self, executor_for):
        registry = make_registry(("stuck", BlockingCheck(1.0), (), 0.1))

        start = time.monotonic()
        report = asyncio.run(executor_for(registry).execute_all())
        elapsed = time.monotonic() - start

        assert report.entry("stuck").result.message == "timeout"
        assert elapsed < 0.9


# ============================================================================
# OUTER GUARDS
# ============================================================================

class TestOuterGuards:

    def test_overall_timeout_reports_pending_as_timeout(self, executor_for):
        registry = make_registry(
            ("fast", StaticCheck()),
            ("hanging", HangingCheck(), (), 30),
        )
        executor = executor_for(registry, overall_timeout=0.2)

        start = time.monotonic()
        report = asyncio.run(executor.execute_all())
        elapsed = time.monotonic() - start

        assert report.names == ["fast", "hanging"]
        assert report.entry("fast").status == HealthStatus.HEALTHY
        assert report.entry("hanging").result.message == "timeout"
        assert elapsed < 1.0

    def test_max_parallel_limits_concurrency(self, executor_for):
        registry = make_registry(*[
            (f"check{i}", StaticCheck(delay=0.1)) for i in range(4)
        ])

        start = time.monotonic()
        report = asyncio.run(executor_for(registry, max_parallel=2).execute_all())
        elapsed = time.monotonic() - start

        assert len(report.entries) == 4
        assert elapsed >= 0.18

    def test_internal_error_becomes_aggregator_entry(self, mixed_registry, executor_for):
        executor = executor_for(mixed_registry)

        with patch.object(executor, "_run_all", side_effect=RuntimeError("scheduler broke")):
            report = asyncio.run(executor.execute_all())

        assert report.names == [AGGREGATOR_ENTRY]
        assert report.status == HealthStatus.UNHEALTHY
        assert report.entries[0].result.message == "scheduler broke"

    def test_invalid_overall_timeout(self):
        with pytest.raises(ValueError):
            HealthCheckExecutor(overall_timeout=0)


# ============================================================================
# SINGLE CHECK
# ============================================================================

class TestExecuteSingle:

    def test_known_probe(self, mixed_registry, executor_for):
        result = asyncio.run(executor_for(mixed_registry).execute_single("postgres"))

        assert result.status == HealthStatus.DEGRADED
        assert result.message == "slow"

    def test_unknown_probe(self, mixed_registry, executor_for):
        assert asyncio.run(executor_for(mixed_registry).execute_single("redis")) is None
