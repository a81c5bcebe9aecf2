"""Override storage: per-context and global feature values."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from typing import Any

from .models import FeatureContext

# Distinguishes "nothing stored" from a stored ``None``
MISSING: Any = object()


class ContextStore:
    """In-memory override store shared by the evaluator and the conductors.

    Every public method holds one re-entrant lock for its whole duration, so
    a multi-key write (``write_many``/``replace_context``) is never observed
    half-applied by a concurrent reader.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._overrides: dict[FeatureContext, dict[str, Any]] = {}
        self._global: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def lookup(self, feature: str, context: FeatureContext) -> Any:
        """Return the winning override for *feature*, or ``MISSING``."""
        with self._lock:
            scoped = self._overrides.get(context)
            if scoped is not None and feature in scoped:
                return scoped[feature]
            return self._global.get(feature, MISSING)

    def get(self, feature: str, context: FeatureContext) -> Any:
        with self._lock:
            return self._overrides.get(context, {}).get(feature, MISSING)

    def get_global(self, feature: str) -> Any:
        with self._lock:
            return self._global.get(feature, MISSING)

    def has(self, feature: str, context: FeatureContext) -> bool:
        with self._lock:
            return feature in self._overrides.get(context, {})

    def overrides_for(self, context: FeatureContext) -> dict[str, Any]:
        with self._lock:
            return dict(self._overrides.get(context, {}))

    def global_overrides(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._global)

    def stored_features(self) -> list[str]:
        """Names with at least one override in any scope, in first-seen order."""
        with self._lock:
            names: dict[str, None] = dict.fromkeys(self._global)
            for scoped in self._overrides.values():
                names.update(dict.fromkeys(scoped))
            return list(names)

    def contexts(self) -> list[FeatureContext]:
        with self._lock:
            return [ctx for ctx, scoped in self._overrides.items() if scoped]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set(self, feature: str, context: FeatureContext, value: Any) -> None:
        with self._lock:
            self._overrides.setdefault(context, {})[feature] = value

    def set_global(self, feature: str, value: Any) -> None:
        with self._lock:
            self._global[feature] = value

    def clear(self, feature: str, context: FeatureContext) -> None:
        with self._lock:
            self._overrides.get(context, {}).pop(feature, None)

    def clear_global(self, feature: str) -> None:
        with self._lock:
            self._global.pop(feature, None)

    def write_many(self, writes: Iterable[tuple[str, FeatureContext, Any]]) -> int:
        """Apply every ``(feature, context, value)`` write as one unit."""
        pending = list(writes)
        with self._lock:
            for feature, context, value in pending:
                self._overrides.setdefault(context, {})[feature] = value
        return len(pending)

    def write_many_global(self, writes: Mapping[str, Any]) -> None:
        with self._lock:
            self._global.update(writes)

    def replace_context(self, context: FeatureContext, values: Mapping[str, Any]) -> None:
        """Make *values* the complete override set of *context*."""
        with self._lock:
            self._overrides[context] = dict(values)

    def purge(self, features: Iterable[str] | None = None) -> None:
        """Drop overrides of *features* in every scope, or everything if ``None``."""
        with self._lock:
            if features is None:
                self._overrides.clear()
                self._global.clear()
                return
            names = set(features)
            for scoped in self._overrides.values():
                for name in names:
                    scoped.pop(name, None)
            for name in names:
                self._global.pop(name, None)
