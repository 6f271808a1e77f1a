# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Core - FastAPI routes
# PURPOSE: Dashboard UI and history API
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the health dashboard. Health routes themselves are
built by health.router.EndpointDispatcher.
"""

from .ui_routes import create_ui_router

__all__ = [
    "create_ui_router",
]
