# ============================================================================
# HEALTH ENDPOINT DISPATCHER
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - FastAPI health check endpoints
# PURPOSE: Map routes to (predicate, reporter, status code policy)
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Endpoint Dispatcher

Maps each health route to the probes it evaluates, the reporter that
renders the result and the HTTP status code policy.

Typical routes:
    GET /healthz         - Full report (every probe)
    GET /livez           - Probes tagged "liveness"
    GET /readyz          - Probes tagged "readiness"
    GET /healthz/{name}  - Single probe, for debugging

Response Codes (defaults, configurable per route):
    200 - Healthy
    200 - Degraded
    503 - Unhealthy

A route never fails because of a probe or executor error; those show up
as unhealthy entries in a well-formed report.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse

from core.config.defaults import StatusCodeDefaults
from core.logging import ComponentType, log_context
from health.core import HealthReport, HealthStatus
from health.errors import DuplicateNameError, RouteNotFoundError
from health.executor import HealthCheckExecutor
from health.predicates import Predicate, always
from health.reporters import JsonReporter, Reporter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusCodeMap:
    """Map health status to HTTP status code."""
    healthy: int = StatusCodeDefaults.healthy
    degraded: int = StatusCodeDefaults.degraded
    unhealthy: int = StatusCodeDefaults.unhealthy

    def for_status(self, status: HealthStatus) -> int:
        return {
            HealthStatus.HEALTHY: self.healthy,
            HealthStatus.DEGRADED: self.degraded,
            HealthStatus.UNHEALTHY: self.unhealthy,
        }[status]


@dataclass(frozen=True)
class HealthRoute:
    """One mapped route."""
    path: str
    predicate: Predicate = field(default=always)
    reporter: Reporter = field(default_factory=JsonReporter)
    status_codes: StatusCodeMap = field(default_factory=StatusCodeMap)


@dataclass(frozen=True)
class DispatchResult:
    """What a route handler sends back."""
    status_code: int
    body: str
    media_type: str
    report: Optional[HealthReport] = None


class EndpointDispatcher:
    """
    Routes health requests to the executor and a reporter.

    Routes are mapped at startup; the registry is shared read-only.
    """

    def __init__(
        self,
        executor: HealthCheckExecutor,
        status_codes: Optional[StatusCodeMap] = None,
    ):
        """
        Args:
            executor: Shared executor (holds the registry)
            status_codes: Default status code policy for new routes
        """
        self.executor = executor
        self.status_codes = status_codes or StatusCodeMap()
        self._routes: Dict[str, HealthRoute] = {}

    def map_route(
        self,
        path: str,
        predicate: Predicate = always,
        reporter: Optional[Reporter] = None,
        status_codes: Optional[StatusCodeMap] = None,
    ) -> HealthRoute:
        """
        Map a route.

        Raises:
            DuplicateNameError: If the path is already mapped
        """
        if not path.startswith("/"):
            raise ValueError(f"Route path must start with '/': {path}")
        if path in self._routes:
            raise DuplicateNameError(path, kind="route")

        route = HealthRoute(
            path=path,
            predicate=predicate,
            reporter=reporter or JsonReporter(),
            status_codes=status_codes or self.status_codes,
        )
        self._routes[path] = route
        logger.debug(f"Mapped health route {path} ({route.reporter.name} reporter)")
        return route

    @property
    def routes(self) -> List[HealthRoute]:
        return list(self._routes.values())

    def get_route(self, path: str) -> Optional[HealthRoute]:
        return self._routes.get(path)

    async def handle(self, path: str) -> DispatchResult:
        """
        Evaluate the probes of a route and render the response.

        Raises:
            RouteNotFoundError: If the path is not mapped
        """
        route = self._routes.get(path)
        if route is None:
            raise RouteNotFoundError(path)

        with log_context(route=path, component=ComponentType.DISPATCHER.value):
            report = await self.executor.execute_all(route.predicate)
            reporter = route.reporter
            try:
                body = reporter.render(report)
            except Exception as e:
                logger.exception(f"{reporter.name} reporter failed on {path}: {e}")
                reporter = JsonReporter()
                body = reporter.render(report)

            return DispatchResult(
                status_code=route.status_codes.for_status(report.status),
                body=body,
                media_type=reporter.media_type,
                report=report,
            )

    async def handle_single(self, name: str) -> Optional[DispatchResult]:
        """Run one probe by name (None if unknown)."""
        result = await self.executor.execute_single(name)
        if result is None:
            return None

        return DispatchResult(
            status_code=self.status_codes.for_status(result.status),
            body=json.dumps({"name": name, **result.to_dict()}, default=str),
            media_type="application/json",
        )

    def build_router(self, single_check_prefix: Optional[str] = "/healthz") -> APIRouter:
        """
        Build a FastAPI router exposing every mapped route.

        Args:
            single_check_prefix: Prefix of the single-probe route
                ("{prefix}/{name}"); None disables it
        """
        router = APIRouter(tags=["Health"])

        for route in self.routes:
            router.add_api_route(
                route.path,
                self._make_endpoint(route.path),
                methods=["GET"],
                name=f"health:{route.path}",
                summary=f"Health report ({route.reporter.name})",
            )

        if single_check_prefix is not None:
            router.add_api_route(
                f"{single_check_prefix}/{{check_name}}",
                self._single_endpoint,
                methods=["GET"],
                name="health:single",
                summary="Run a single health check",
            )

        return router

    def _make_endpoint(self, path: str):
        async def endpoint() -> Response:
            result = await self.handle(path)
            return Response(
                content=result.body,
                status_code=result.status_code,
                media_type=result.media_type,
                headers={"Cache-Control": "no-store"},
            )
        return endpoint

    async def _single_endpoint(self, check_name: str) -> Response:
        result = await self.handle_single(check_name)
        if result is None:
            return JSONResponse(
                status_code=404,
                content={"error": f"Health check not found: {check_name}"},
            )
        return Response(
            content=result.body,
            status_code=result.status_code,
            media_type=result.media_type,
            headers={"Cache-Control": "no-store"},
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "StatusCodeMap",
    "HealthRoute",
    "DispatchResult",
    "EndpointDispatcher",
]
