"""
UI Routes - dashboard page and history API.
"""
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import psutil
from fastapi import APIRouter, Query
from fastapi.responses import HTMLResponse, JSONResponse

from core.logging import ComponentType, get_logger
from health.dashboard import HealthDashboard
from health.reporters import DashboardReporter

logger = get_logger(__name__, ComponentType.API)

_start_time = datetime.now(timezone.utc)


# ============================================================================
# HELPERS
# ============================================================================

def format_uptime(start: datetime) -> str:
    """Format uptime as human-readable string."""
    delta = datetime.now(timezone.utc) - start
    hours, remainder = divmod(int(delta.total_seconds()), 3600)
    minutes, _ = divmod(remainder, 60)
    return f"{hours}h {minutes}m"


def host_snapshot() -> Dict[str, Any]:
    """CPU, memory and process RSS of the host running the dashboard."""
    try:
        memory = psutil.virtual_memory()
        process = psutil.Process(os.getpid())
        return {
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory_percent": memory.percent,
            "process_rss_mb": round(process.memory_info().rss / (1024 * 1024), 1),
            "uptime": format_uptime(_start_time),
        }
    except psutil.Error as e:
        logger.warning(f"Host snapshot failed: {e}")
        return {}


# ============================================================================
# ROUTES
# ============================================================================

def create_ui_router(
    dashboard: HealthDashboard,
    title: str = "Health Checks",
    ui_path: str = "/healthchecks-ui",
    api_path: str = "/healthchecks-api",
) -> APIRouter:
    """Build the dashboard router for one dashboard instance."""
    router = APIRouter(tags=["ui"])
    reporter = DashboardReporter(title=title)

    def _history() -> Dict[str, list]:
        # Configured endpoints first, even before their first poll
        snapshot = dashboard.history.snapshot()
        ordered = {e.name: snapshot.pop(e.name, []) for e in dashboard.endpoints}
        ordered.update(snapshot)
        return ordered

    @router.get(ui_path, response_class=HTMLResponse)
    async def dashboard_page():
        """Render the dashboard."""
        return HTMLResponse(
            reporter.render(
                _history(),
                host=host_snapshot(),
                interval_seconds=dashboard.interval_seconds,
            )
        )

    @router.get(api_path)
    async def dashboard_api(
        endpoint: Optional[str] = Query(None, description="Only this endpoint"),
        limit: int = Query(0, ge=0, description="Most recent N reports (0 = all)"),
    ):
        """Stored history as JSON, newest report first."""
        history = _history()
        if endpoint is not None:
            if endpoint not in history:
                return JSONResponse(
                    status_code=404,
                    content={"error": f"Dashboard endpoint not found: {endpoint}"},
                )
            history = {endpoint: history[endpoint]}

        items = []
        for name, reports in history.items():
            reports = list(reversed(reports))
            if limit:
                reports = reports[:limit]
            items.append({
                "name": name,
                "status": reports[0].status.value if reports else None,
                "history": [r.to_dict() for r in reports],
            })

        return {"endpoints": items, "dashboard": dashboard.stats}

    return router


__all__ = [
    "create_ui_router",
    "format_uptime",
    "host_snapshot",
]
