# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Core module initialization
# PURPOSE: Logging and configuration shared by every component
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================

from core.logging import configure_logging, get_logger, log_context
from core.config import HealthSettings

__all__ = [
    "configure_logging",
    "get_logger",
    "log_context",
    "HealthSettings",
]
