"""Read-only resolution of feature state for a context.

Resolution order for ``active``/``value``::

    dependencies met? ── no ──> inactive
         │ yes
    expired? ────────── yes ──> inactive
         │ no
    per-context override -> global override -> resolver -> undefined (inactive)

Dependency checks recurse through ``active`` with an in-flight set that
lives for one top-level call only. A feature met again while its own
dependencies are still being checked closes a cycle and resolves inactive,
which makes every member of a cycle inactive for every context.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from .models import FeatureContext, as_utc
from .registry import FeatureRegistry
from .store import MISSING, ContextStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_active_value(value: Any) -> bool:
    """Only ``False`` and ``None`` are inactive; ``0`` and ``""`` are payloads."""
    return value is not False and value is not None


class Evaluator:
    def __init__(
        self,
        registry: FeatureRegistry,
        store: ContextStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._clock = clock or utc_now

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def active(self, feature: str, context: FeatureContext) -> bool:
        return self._active(feature, context, set())

    def value(self, feature: str, context: FeatureContext) -> Any:
        """Return the resolved payload, or ``False`` when gated off."""
        if not self._gates_open(feature, context, set()):
            return False
        return self._resolve(feature, context)

    def dependencies_met(
        self,
        feature: str,
        context: FeatureContext,
        _in_flight: set[str] | None = None,
    ) -> bool:
        in_flight = set() if _in_flight is None else _in_flight
        if feature in in_flight:
            logger.debug("Dependency cycle through '%s' for %s", feature, context)
            return False

        dependencies = self._registry.get_dependencies(feature)
        if not dependencies:
            return True

        in_flight.add(feature)
        try:
            for dependency in dependencies:
                if not self._active(dependency, context, in_flight):
                    return False
            return True
        finally:
            in_flight.discard(feature)

    def is_expired(self, feature: str) -> bool:
        definition = self._registry.get(feature)
        return definition is not None and definition.is_expired(self.now())

    def now(self) -> datetime:
        return as_utc(self._clock())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _active(self, feature: str, context: FeatureContext, in_flight: set[str]) -> bool:
        if not self._gates_open(feature, context, in_flight):
            return False
        return is_active_value(self._resolve(feature, context))

    def _gates_open(self, feature: str, context: FeatureContext, in_flight: set[str]) -> bool:
        if not self.dependencies_met(feature, context, in_flight):
            return False
        return not self.is_expired(feature)

    def _resolve(self, feature: str, context: FeatureContext) -> Any:
        stored = self._store.lookup(feature, context)
        if stored is not MISSING:
            return stored

        definition = self._registry.get(feature)
        if definition is None:
            logger.debug("Unknown feature '%s' resolved as inactive for %s", feature, context)
            return False
        return definition.resolver.resolve(context)
