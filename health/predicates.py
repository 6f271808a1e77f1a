# ============================================================================
# HEALTH CHECK PREDICATES
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - Probe selection
# PURPOSE: Filters over probe descriptors and evaluation policies
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Predicates

A predicate decides whether a probe descriptor takes part in an
evaluation. Routes and dashboard endpoints each carry one.

    readiness = has_tag("readiness")
    no_external = exclude_tags("external")
    both = all_of(readiness, no_external)
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from health.core import ProbeDescriptor

Predicate = Callable[[ProbeDescriptor], bool]


def always(descriptor: ProbeDescriptor) -> bool:
    """Select every probe."""
    return True


def never(descriptor: ProbeDescriptor) -> bool:
    """Select no probe (useful for a bare liveness route)."""
    return False


def has_tag(tag: str) -> Predicate:
    """Select probes carrying the tag."""
    def predicate(descriptor: ProbeDescriptor) -> bool:
        return tag in descriptor.tags
    predicate.__name__ = f"has_tag({tag})"
    return predicate


def has_any_tag(tags: Iterable[str]) -> Predicate:
    """Select probes carrying at least one of the tags."""
    wanted = frozenset(tags)

    def predicate(descriptor: ProbeDescriptor) -> bool:
        return bool(wanted & descriptor.tags)
    predicate.__name__ = f"has_any_tag({sorted(wanted)})"
    return predicate


def has_all_tags(tags: Iterable[str]) -> Predicate:
    """Select probes carrying every one of the tags."""
    wanted = frozenset(tags)

    def predicate(descriptor: ProbeDescriptor) -> bool:
        return wanted <= descriptor.tags
    predicate.__name__ = f"has_all_tags({sorted(wanted)})"
    return predicate


def exclude_tags(tags: Iterable[str]) -> Predicate:
    """Select probes carrying none of the tags."""
    unwanted = frozenset(tags)

    def predicate(descriptor: ProbeDescriptor) -> bool:
        return not (unwanted & descriptor.tags)
    predicate.__name__ = f"exclude_tags({sorted(unwanted)})"
    return predicate


def name_in(names: Iterable[str]) -> Predicate:
    """Select probes by name."""
    wanted = frozenset(names)

    def predicate(descriptor: ProbeDescriptor) -> bool:
        return descriptor.name in wanted
    predicate.__name__ = f"name_in({sorted(wanted)})"
    return predicate


def _describe(predicates: Iterable[Predicate]) -> str:
    return ", ".join(getattr(p, "__name__", repr(p)) for p in predicates)


def all_of(*predicates: Predicate) -> Predicate:
    """Logical AND of predicates."""
    def predicate(descriptor: ProbeDescriptor) -> bool:
        return all(p(descriptor) for p in predicates)
    predicate.__name__ = f"all_of({_describe(predicates)})"
    return predicate


def any_of(*predicates: Predicate) -> Predicate:
    """Logical OR of predicates."""
    def predicate(descriptor: ProbeDescriptor) -> bool:
        return any(p(descriptor) for p in predicates)
    predicate.__name__ = f"any_of({_describe(predicates)})"
    return predicate


def build_predicate(
    tags: Optional[Iterable[str]] = None,
    names: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None,
    match_all_tags: bool = False,
) -> Predicate:
    """
    Build a predicate from configuration fields.

    Args:
        tags: Required tags (any of them, or all with match_all_tags)
        names: Explicit probe names
        exclude: Tags that disqualify a probe
        match_all_tags: Require every tag instead of any

    Returns:
        always when nothing is specified
    """
    parts = []
    if tags:
        parts.append(has_all_tags(tags) if match_all_tags else has_any_tag(tags))
    if names:
        parts.append(name_in(names))
    if exclude:
        parts.append(exclude_tags(exclude))

    if not parts:
        return always
    if len(parts) == 1:
        return parts[0]
    return all_of(*parts)


@dataclass(frozen=True)
class EvaluationPolicy:
    """Which probes to run, and how often when evaluated in the background."""
    predicate: Predicate = field(default=always)
    interval_seconds: float = 300.0

    def __post_init__(self):
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")


__all__ = [
    "Predicate",
    "always",
    "never",
    "has_tag",
    "has_any_tag",
    "has_all_tags",
    "exclude_tags",
    "name_in",
    "all_of",
    "any_of",
    "build_predicate",
    "EvaluationPolicy",
]
