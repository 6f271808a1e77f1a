# ============================================================================
# HEALTH CHECK PLUGINS
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - Built-in probe kinds
# PURPOSE: Probe kinds available to configuration by name
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Plugins

Built-in probe kinds:
- process: Basic process health (always healthy if running)
- environment: Required environment variables present

Infrastructure probes (databases, disks, OS services, brokers) are not
built in; configuration references them by import path instead:

    factory: acme_probes.kafka:broker_probe

Import this module to register the built-in kinds:
    import health.checks
"""

from health.checks.catalog import register_probe_kind, get_probe_kind, list_probe_kinds
from health.checks.startup import ProcessCheck, EnvironmentCheck

__all__ = [
    # Catalog
    "register_probe_kind",
    "get_probe_kind",
    "list_probe_kinds",
    # Built-in kinds
    "ProcessCheck",
    "EnvironmentCheck",
]
