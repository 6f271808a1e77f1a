# ============================================================================
# PROBE KIND CATALOG
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - Probe kind lookup
# PURPOSE: Name -> plugin class mapping for configuration-driven probes
# CREATED: 19 OCT 2026
# ============================================================================
"""
Probe Kind Catalog

Maps the `kind` used in configuration to a plugin class. The catalog
holds classes only; probe instances live in a HealthCheckRegistry.

Design:
- Kinds are registered at import time via decorator
- Fail-fast on duplicate kind names

Example:
    @register_probe_kind("process")
    class ProcessCheck(HealthCheckPlugin):
        ...
"""

import logging
from typing import Callable, Dict, List, Optional, Type

from health.core import HealthCheckPlugin
from health.errors import DuplicateNameError

logger = logging.getLogger(__name__)

_kinds: Dict[str, Type[HealthCheckPlugin]] = {}


def register_probe_kind(
    kind: str,
) -> Callable[[Type[HealthCheckPlugin]], Type[HealthCheckPlugin]]:
    """
    Decorator to register a plugin class under a kind name.

    Raises:
        DuplicateNameError: If the kind is already registered
    """
    def decorator(cls: Type[HealthCheckPlugin]) -> Type[HealthCheckPlugin]:
        if kind in _kinds:
            raise DuplicateNameError(kind, kind="probe kind")
        _kinds[kind] = cls
        logger.debug(f"Registered probe kind: {kind} ({cls.__module__}.{cls.__name__})")
        return cls

    return decorator


def get_probe_kind(kind: str) -> Optional[Type[HealthCheckPlugin]]:
    """Get a plugin class by kind name."""
    return _kinds.get(kind)


def list_probe_kinds() -> List[str]:
    """All registered kind names."""
    return sorted(_kinds)


__all__ = [
    "register_probe_kind",
    "get_probe_kind",
    "list_probe_kinds",
]
