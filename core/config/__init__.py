# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the health monitor.
"""

from core.config.defaults import (
    TimeoutDefaults,
    StatusCodeDefaults,
    DashboardDefaults,
)
from core.config.settings import (
    StatusCodeConfig,
    ProbeConfig,
    RouteConfig,
    DashboardEndpointConfig,
    DashboardConfig,
    HealthSettings,
    expand_env,
    parse_endpoint_list,
)

__all__ = [
    # Defaults
    "TimeoutDefaults",
    "StatusCodeDefaults",
    "DashboardDefaults",
    # Settings
    "StatusCodeConfig",
    "ProbeConfig",
    "RouteConfig",
    "DashboardEndpointConfig",
    "DashboardConfig",
    "HealthSettings",
    "expand_env",
    "parse_endpoint_list",
]
