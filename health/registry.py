# ============================================================================
# HEALTH CHECK REGISTRY
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - Probe registration
# PURPOSE: Hold the configured set of named probes and their metadata
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Registry

Holds probe descriptors in registration order.

Design:
- Explicitly constructed and passed to the executor and dispatcher
  (no process-wide singleton)
- Fail-fast on duplicate names; a rejected registration leaves the
  registry untouched
- Copy-on-write: readers take a snapshot of an immutable tuple, writers
  swap in a new tuple under a lock, so concurrent evaluations never see
  a half-applied change

Usage:
    registry = HealthCheckRegistry()
    registry.register_plugin(ProcessCheck(), tags=["liveness"])
    registry.register(ProbeDescriptor(name="disk", check=disk_probe, timeout_seconds=5))

    readiness = registry.list(has_tag("readiness"))
"""

import logging
import threading
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from health.core import HealthCheckPlugin, ProbeDescriptor
from health.errors import DuplicateNameError
from health.predicates import Predicate

logger = logging.getLogger(__name__)


class HealthCheckRegistry:
    """
    Registry of probe descriptors.

    Registration normally happens once at startup; late registration is
    supported through the same copy-on-write path.
    """

    def __init__(self, descriptors: Iterable[ProbeDescriptor] = ()):
        self._lock = threading.Lock()
        self._descriptors: Tuple[ProbeDescriptor, ...] = ()
        self._by_name: Dict[str, ProbeDescriptor] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: ProbeDescriptor) -> ProbeDescriptor:
        """
        Register a probe descriptor.

        Args:
            descriptor: Descriptor to add

        Returns:
            The registered descriptor

        Raises:
            DuplicateNameError: If a probe with the same name is registered
        """
        with self._lock:
            if descriptor.name in self._by_name:
                raise DuplicateNameError(descriptor.name)

            by_name = dict(self._by_name)
            by_name[descriptor.name] = descriptor
            self._descriptors = self._descriptors + (descriptor,)
            self._by_name = by_name

        logger.debug(
            f"Registered health check: {descriptor.name} "
            f"(tags={sorted(descriptor.tags)}, timeout={descriptor.timeout_seconds}s)"
        )
        return descriptor

    def register_plugin(
        self,
        plugin: HealthCheckPlugin,
        name: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> ProbeDescriptor:
        """Wrap a plugin in a descriptor and register it."""
        descriptor = ProbeDescriptor.from_plugin(
            plugin,
            name=name,
            tags=tags,
            timeout_seconds=timeout_seconds,
        )
        return self.register(descriptor)

    def list(self, predicate: Optional[Predicate] = None) -> Tuple[ProbeDescriptor, ...]:
        """
        Get descriptors matching a predicate, in registration order.

        Args:
            predicate: Filter (all descriptors if None)
        """
        snapshot = self._descriptors
        if predicate is None:
            return snapshot
        return tuple(d for d in snapshot if predicate(d))

    def get(self, name: str) -> Optional[ProbeDescriptor]:
        """Get descriptor by name."""
        return self._by_name.get(name)

    def names(self) -> List[str]:
        """Registered names in registration order."""
        return [d.name for d in self._descriptors]

    def tags(self) -> List[str]:
        """Every tag used by at least one probe."""
        found = set()
        for d in self._descriptors:
            found.update(d.tags)
        return sorted(found)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[ProbeDescriptor]:
        return iter(self._descriptors)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "HealthCheckRegistry",
]
