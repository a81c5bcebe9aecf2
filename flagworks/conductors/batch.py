"""Cartesian batch activation: every feature x every context."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Literal

from ..core.models import to_contexts
from ..core.registry import normalize_names

if TYPE_CHECKING:
    from ..core.engine import FlagEngine

logger = logging.getLogger(__name__)

Operation = Literal["activate", "deactivate"]


class BatchConductor:
    """Staged bulk write applied across ``features x contexts``.

    ``activate``/``deactivate`` return a new conductor; the receiver keeps
    its staged state. ``for_`` executes and can be re-run safely: writing
    the same values again leaves the store unchanged.

    Example::

        engine.batch().activate(["api", "webhooks"]).for_([org1, org2])
    """

    def __init__(
        self,
        engine: "FlagEngine",
        operation: Operation = "activate",
        features: Iterable[str] = (),
        value: Any = True,
    ) -> None:
        self._engine = engine
        self._operation: Operation = operation
        self._features: tuple[str, ...] = tuple(features)
        self._value = value if operation == "activate" else False

    def activate(self, features: str | Iterable[str], value: Any = True) -> "BatchConductor":
        return BatchConductor(self._engine, "activate", normalize_names(features), value)

    def deactivate(self, features: str | Iterable[str]) -> "BatchConductor":
        return BatchConductor(self._engine, "deactivate", normalize_names(features))

    def for_(self, contexts: Any) -> None:
        targets = to_contexts(contexts)
        if not self._features or not targets:
            logger.debug("Batch %s skipped: nothing to write", self._operation)
            return

        writes = [
            (feature, context, self._value)
            for context in targets
            for feature in self._features
        ]
        self._engine.store.write_many(writes)
        logger.debug(
            "Batch %s applied %d feature(s) to %d context(s)",
            self._operation, len(self._features), len(targets),
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def features(self) -> tuple[str, ...]:
        return self._features

    @property
    def value(self) -> Any:
        return self._value

    @property
    def operation(self) -> Operation:
        return self._operation
