# ============================================================================
# HEALTH DASHBOARD POLLER
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - Background evaluation for the dashboard
# PURPOSE: Pull reports from configured endpoints on a fixed interval
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Dashboard Poller

Background loop that keeps the dashboard history current:
1. Every interval, evaluate each configured endpoint concurrently
2. Remote endpoints: GET the /healthz-style URL and parse the payload
3. Local endpoints: evaluate the local registry through the shared executor
4. Append each report to the bounded history

A failed poll is stored as a synthetic unhealthy report, so the history
shows outages rather than gaps. The loop runs independently of
request-triggered evaluations.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import httpx

from core.logging import ComponentType, log_context
from health.core import HealthCheckResult, HealthReport, ReportEntry
from health.executor import HealthCheckExecutor
from health.history import ReportHistory
from health.predicates import Predicate, always
from health.reporters import parse_report

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardEndpoint:
    """
    An endpoint shown on the dashboard.

    With a url the report is pulled over HTTP; otherwise the local
    registry is evaluated with the predicate.
    """
    name: str
    url: Optional[str] = None
    predicate: Predicate = field(default=always)

    @property
    def is_remote(self) -> bool:
        return self.url is not None


class HealthDashboard:
    """
    Polls dashboard endpoints and stores their reports.

    Shares the executor with the HTTP routes; owns only its history.
    """

    def __init__(
        self,
        endpoints: Iterable[DashboardEndpoint],
        executor: Optional[HealthCheckExecutor] = None,
        history: Optional[ReportHistory] = None,
        interval_seconds: float = 300.0,
        poll_timeout: float = 10.0,
        verify_tls: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize dashboard.

        Args:
            endpoints: Endpoints to poll (names must be unique)
            executor: Shared executor for local endpoints
            history: Report storage (a 50-deep history if None)
            interval_seconds: Seconds between polls
            poll_timeout: HTTP timeout for remote endpoints
            verify_tls: Verify TLS certificates of remote endpoints
            transport: Optional httpx transport (tests, proxies)
        """
        self.endpoints: List[DashboardEndpoint] = list(endpoints)
        names = [e.name for e in self.endpoints]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate dashboard endpoint names: {names}")
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        if executor is None and any(not e.is_remote for e in self.endpoints):
            raise ValueError("Local dashboard endpoints need an executor")

        self.executor = executor
        self.history = history if history is not None else ReportHistory()
        self.interval_seconds = interval_seconds
        self.poll_timeout = poll_timeout
        self.verify_tls = verify_tls
        self._transport = transport

        # State (the event is created in start(), inside the running loop)
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

        # Metrics
        self._polls = 0
        self._errors = 0
        self._last_poll_at: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background poll loop."""
        if self.is_running:
            logger.warning("Health dashboard already running")
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run_loop(), name="health-dashboard")
        logger.info(
            f"Health dashboard started ({len(self.endpoints)} endpoints, "
            f"interval={self.interval_seconds}s)"
        )

    async def stop(self) -> None:
        """Stop the loop, waiting for an in-flight poll to finish."""
        if self._task is None:
            return

        self._stop_event.set()
        try:
            await asyncio.wait_for(self._task, timeout=self.poll_timeout + 5)
        except asyncio.TimeoutError:
            self._task.cancel()
            logger.warning("Health dashboard poll did not finish; cancelled")
        self._task = None
        logger.info("Health dashboard stopped")

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "endpoints": len(self.endpoints),
            "interval_seconds": self.interval_seconds,
            "polls": self._polls,
            "errors": self._errors,
            "last_poll_at": self._last_poll_at.isoformat() if self._last_poll_at else None,
        }

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def poll_once(self) -> Dict[str, HealthReport]:
        """Evaluate every endpoint once and store the reports."""
        start_time = time.monotonic()
        async with httpx.AsyncClient(
            timeout=self.poll_timeout,
            verify=self.verify_tls,
            transport=self._transport,
        ) as client:
            outcomes = await asyncio.gather(
                *(self._evaluate_endpoint(endpoint, client) for endpoint in self.endpoints),
                return_exceptions=True,
            )

        results = {}
        for endpoint, report in zip(self.endpoints, outcomes):
            if isinstance(report, asyncio.CancelledError):
                raise report
            if isinstance(report, Exception):
                self._errors += 1
                logger.error(f"Health endpoint {endpoint.name} evaluation failed: {report!r}")
                report = self._failure_report(
                    endpoint,
                    f"Evaluation failed: {report}",
                    start_time,
                    exception_type=type(report).__name__,
                )
            self.history.append(endpoint.name, report)
            results[endpoint.name] = report

        self._polls += 1
        self._last_poll_at = datetime.now(timezone.utc)
        return results

    async def _run_loop(self) -> None:
        """Poll until stopped."""
        while not self._stop_event.is_set():
            try:
                await self.poll_once()
            except Exception as e:
                self._errors += 1
                logger.exception(f"Health dashboard poll failed: {e}")

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass

    async def _evaluate_endpoint(
        self,
        endpoint: DashboardEndpoint,
        client: httpx.AsyncClient,
    ) -> HealthReport:
        with log_context(endpoint=endpoint.name, component=ComponentType.DASHBOARD.value):
            if endpoint.is_remote:
                return await self._fetch_remote(endpoint, client)
            return await self.executor.execute_all(endpoint.predicate)

    async def _fetch_remote(
        self,
        endpoint: DashboardEndpoint,
        client: httpx.AsyncClient,
    ) -> HealthReport:
        """GET a remote health endpoint; failures become unhealthy reports."""
        start_time = time.monotonic()

        try:
            response = await client.get(endpoint.url)
        except httpx.TimeoutException:
            self._errors += 1
            logger.warning(f"Health endpoint {endpoint.name} timed out ({endpoint.url})")
            return self._failure_report(endpoint, "timeout", start_time)
        except httpx.HTTPError as e:
            self._errors += 1
            logger.warning(f"Cannot reach health endpoint {endpoint.name}: {e}")
            return self._failure_report(
                endpoint,
                f"Cannot connect to {endpoint.url}: {e}",
                start_time,
                exception_type=type(e).__name__,
            )

        # 503 responses still carry a report
        try:
            return parse_report(response.json())
        except ValueError as e:
            self._errors += 1
            logger.warning(
                f"Health endpoint {endpoint.name} returned an unreadable payload "
                f"(HTTP {response.status_code}): {e}"
            )
            return self._failure_report(
                endpoint,
                f"HTTP {response.status_code}: unreadable health payload",
                start_time,
                status_code=response.status_code,
            )

    def _failure_report(
        self,
        endpoint: DashboardEndpoint,
        message: str,
        start_time: float,
        **details,
    ) -> HealthReport:
        duration_ms = (time.monotonic() - start_time) * 1000
        result = HealthCheckResult.unhealthy(message, url=endpoint.url, **details)
        entry = ReportEntry(name=endpoint.name, result=result.with_duration(duration_ms))
        return HealthReport.from_entries([entry], total_duration_ms=duration_ms)


__all__ = [
    "DashboardEndpoint",
    "HealthDashboard",
]
