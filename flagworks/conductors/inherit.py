"""Copy a parent context's active features onto a child context."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from ..core.models import FeatureContext, to_context
from ..core.registry import normalize_names

if TYPE_CHECKING:
    from ..core.engine import FlagEngine

logger = logging.getLogger(__name__)


class InheritConductor:
    """Immutable builder for ``engine.inherit(child).only([...]).from_(parent)``.

    ``only`` and ``except_`` each return a new conductor; the receiver is
    left untouched and stays usable. When both filters are set, ``only``
    narrows first and ``except_`` removes from what is left.

    Any feature the child already overrides, whatever the stored value,
    is never inherited.
    """

    def __init__(
        self,
        engine: "FlagEngine",
        child_context: Any,
        only_features: Iterable[str] | None = None,
        except_features: Iterable[str] | None = None,
    ) -> None:
        self._engine = engine
        self._child_context = to_context(child_context)
        self._only = tuple(only_features) if only_features is not None else None
        self._except = tuple(except_features) if except_features is not None else None

    def only(self, features: str | Iterable[str]) -> "InheritConductor":
        return InheritConductor(self._engine, self._child_context, normalize_names(features), self._except)

    def except_(self, features: str | Iterable[str]) -> "InheritConductor":
        return InheritConductor(self._engine, self._child_context, self._only, normalize_names(features))

    def from_(self, parent_context: Any) -> list[str]:
        """Execute the inheritance and return the names copied onto the child."""
        engine = self._engine
        parent = to_context(parent_context)
        child = self._child_context

        candidates = [name for name in engine.known_features() if engine.evaluator.active(name, parent)]
        if self._only is not None:
            candidates = [name for name in candidates if name in self._only]
        if self._except is not None:
            candidates = [name for name in candidates if name not in self._except]
        candidates = [name for name in candidates if not engine.store.has(name, child)]

        writes = [(name, child, engine.evaluator.value(name, parent)) for name in candidates]
        engine.store.write_many(writes)
        logger.debug("Inherited %d feature(s) from %s into %s", len(writes), parent, child)
        return candidates

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def child_context(self) -> FeatureContext:
        return self._child_context

    @property
    def only_features(self) -> tuple[str, ...] | None:
        return self._only

    @property
    def except_features(self) -> tuple[str, ...] | None:
        return self._except
