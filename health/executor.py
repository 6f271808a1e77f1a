# ============================================================================
# HEALTH CHECK EXECUTOR
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - Parallel health check execution
# PURPOSE: Execute probes with timeouts, isolation and aggregation
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Executor

Executes probes with:
- One asyncio task per probe (optionally capped by max_parallel)
- Per-probe timeouts (asyncio.wait on a probe task, cancelled on expiry)
- Blocking probes on a thread pool so they never stall the event loop
- An overall timeout guard around the whole evaluation
- Result aggregation with 'worst wins' semantics

Failure isolation:
- A probe that raises becomes an unhealthy entry with the error message
- A probe that exceeds its timeout becomes unhealthy with message "timeout"
- An error inside the executor itself becomes a synthetic unhealthy
  "aggregator" entry; evaluate() always returns a complete report

Entries are reported in descriptor order, whatever the completion order.
"""

import asyncio
import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence

from core.logging import ComponentType, log_context
from health.core import (
    HealthCheckResult,
    HealthReport,
    ProbeDescriptor,
    ReportEntry,
    coerce_result,
)
from health.errors import AggregationTimeoutError, ProbeFaultError, ProbeTimeoutError
from health.predicates import EvaluationPolicy, Predicate
from health.registry import HealthCheckRegistry

logger = logging.getLogger(__name__)

# Name of the synthetic entry reported when the executor itself fails
AGGREGATOR_ENTRY = "aggregator"


class HealthCheckExecutor:
    """
    Executes probe descriptors concurrently and aggregates the results.

    One executor is shared by request handlers and the dashboard poller;
    it holds no per-evaluation state.
    """

    def __init__(
        self,
        registry: Optional[HealthCheckRegistry] = None,
        overall_timeout: float = 60.0,
        max_parallel: Optional[int] = None,
        thread_pool_size: int = 16,
    ):
        """
        Initialize executor.

        Args:
            registry: Probe registry used by execute_all/execute_single
            overall_timeout: Max total execution time of one evaluation
            max_parallel: Max concurrently running probes (None = unbounded)
            thread_pool_size: Worker threads for blocking probes
        """
        if overall_timeout <= 0:
            raise ValueError("overall_timeout must be > 0")
        self.registry = registry if registry is not None else HealthCheckRegistry()
        self.overall_timeout = overall_timeout
        self.max_parallel = max_parallel
        self._thread_pool = ThreadPoolExecutor(
            max_workers=thread_pool_size,
            thread_name_prefix="health-probe",
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def evaluate(self, descriptors: Iterable[ProbeDescriptor]) -> HealthReport:
        """
        Run the given probes and aggregate them into a report.

        Args:
            descriptors: Probes to run, in report order

        Returns:
            Complete report; never raises for probe or executor failures
        """
        descriptors = tuple(descriptors)
        evaluation_id = uuid.uuid4().hex[:12]
        start_time = time.monotonic()

        with log_context(evaluation_id=evaluation_id, component=ComponentType.EXECUTOR.value):
            logger.debug(f"Evaluating {len(descriptors)} health checks")
            try:
                results = await self._run_all(descriptors)
                entries = [
                    ReportEntry(name=d.name, result=r, tags=d.tags)
                    for d, r in zip(descriptors, results)
                ]
            except Exception as e:
                logger.exception(f"Health check evaluation failed: {e}")
                entries = [
                    ReportEntry(
                        name=AGGREGATOR_ENTRY,
                        result=HealthCheckResult.from_exception(e),
                    )
                ]

            total_duration_ms = (time.monotonic() - start_time) * 1000
            report = HealthReport.from_entries(entries, total_duration_ms=total_duration_ms)

            logger.info(
                f"Health evaluation {report.status.value}: "
                f"{len(report.entries)} checks in {total_duration_ms:.1f}ms"
            )
            return report

    async def execute_all(self, predicate: Optional[Predicate] = None) -> HealthReport:
        """Evaluate every registered probe matching the predicate."""
        return await self.evaluate(self.registry.list(predicate))

    async def evaluate_policy(self, policy: EvaluationPolicy) -> HealthReport:
        """Evaluate the probes selected by a policy."""
        return await self.execute_all(policy.predicate)

    async def execute_single(self, name: str) -> Optional[HealthCheckResult]:
        """Execute a single check by name (None if not registered)."""
        descriptor = self.registry.get(name)
        if descriptor is None:
            return None
        return await self._execute_check(descriptor)

    def close(self) -> None:
        """Release the thread pool; running blocking probes are abandoned."""
        self._thread_pool.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run_all(
        self,
        descriptors: Sequence[ProbeDescriptor],
    ) -> List[HealthCheckResult]:
        """Run probes in parallel; results align with descriptors."""
        if not descriptors:
            return []

        semaphore = asyncio.Semaphore(self.max_parallel) if self.max_parallel else None

        async def run(descriptor: ProbeDescriptor) -> HealthCheckResult:
            if semaphore is None:
                return await self._execute_check(descriptor)
            async with semaphore:
                return await self._execute_check(descriptor)

        tasks = [
            asyncio.create_task(run(d), name=f"health-check-{d.name}")
            for d in descriptors
        ]

        done, pending = await asyncio.wait(tasks, timeout=self.overall_timeout)

        if pending:
            pending_names = [d.name for d, t in zip(descriptors, tasks) if t in pending]
            error = AggregationTimeoutError(self.overall_timeout, pending_names)
            logger.warning(str(error))
            for task in pending:
                task.cancel()

        results: List[HealthCheckResult] = []
        for descriptor, task in zip(descriptors, tasks):
            if task in pending:
                results.append(HealthCheckResult.timeout(descriptor.timeout_seconds).with_duration(
                    self.overall_timeout * 1000
                ))
            elif task.cancelled():
                results.append(HealthCheckResult.unhealthy("cancelled"))
            else:
                results.append(task.result())
        return results

    async def _invoke(self, descriptor: ProbeDescriptor) -> HealthCheckResult:
        """Call the probe, on the thread pool when it blocks."""
        plugin = descriptor.check
        if plugin.blocking:
            loop = asyncio.get_running_loop()
            value = await loop.run_in_executor(self._thread_pool, plugin.check_blocking)
        else:
            value = await plugin.check()
        return coerce_result(value)

    async def _execute_check(self, descriptor: ProbeDescriptor) -> HealthCheckResult:
        """
        Execute a single check with timeout and failure isolation.

        The probe runs as its own task. On timeout the task is cancelled
        but not awaited, so a probe that ignores cancellation cannot hold
        its entry past the configured timeout.
        """
        start_time = time.monotonic()

        with log_context(probe=descriptor.name):
            task = asyncio.ensure_future(self._invoke(descriptor))
            try:
                done, _ = await asyncio.wait({task}, timeout=descriptor.timeout_seconds)
            except asyncio.CancelledError:
                task.cancel()
                raise
            duration_ms = (time.monotonic() - start_time) * 1000

            if not done:
                task.cancel()
                task.add_done_callback(_discard_outcome)
                logger.warning(str(ProbeTimeoutError(descriptor.name, descriptor.timeout_seconds)))
                return HealthCheckResult.timeout(descriptor.timeout_seconds).with_duration(duration_ms)

            try:
                result = task.result()
            except asyncio.CancelledError:
                logger.warning(f"Health check {descriptor.name} cancelled itself")
                return HealthCheckResult.unhealthy("cancelled").with_duration(duration_ms)
            except Exception as e:
                fault = ProbeFaultError(descriptor.name, e)
                logger.error(f"Health check {descriptor.name} failed: {fault}")
                return HealthCheckResult.from_exception(e).with_duration(duration_ms)

            logger.debug(
                f"Health check {descriptor.name}: {result.status.value} "
                f"({duration_ms:.1f}ms)"
            )
            return result.with_duration(duration_ms)


def _discard_outcome(task: "asyncio.Future") -> None:
    """Retrieve the outcome of an abandoned probe so asyncio does not warn."""
    if not task.cancelled():
        error = task.exception()
        if error is not None:
            logger.debug(f"Abandoned health check finished with {error!r}")


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "HealthCheckExecutor",
    "AGGREGATOR_ENTRY",
]
