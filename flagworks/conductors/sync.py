"""Full-replace synchronisation of one context's overrides or group memberships.

Example::

    engine.sync(user).features(["premium", "analytics"])
    engine.sync(user).with_values({"theme": "dark", "language": "en"})
    engine.sync(org).groups(["beta-testers"])

``features`` and ``with_values`` share one override collection, so the
later call fully supersedes the earlier one. ``groups`` writes the separate
membership store. Only the synced context is touched.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from ..core.models import FeatureContext, to_context
from ..core.registry import normalize_names

if TYPE_CHECKING:
    from ..core.engine import FlagEngine

logger = logging.getLogger(__name__)


class SyncConductor:
    def __init__(self, engine: "FlagEngine", context: Any) -> None:
        self._engine = engine
        self._context = to_context(context)

    def features(self, features: str | Iterable[str]) -> None:
        self._replace({name: True for name in normalize_names(features)})

    def with_values(self, values: Mapping[str, Any]) -> None:
        self._replace(dict(values))

    def groups(self, groups: str | Iterable[str]) -> None:
        names = normalize_names(groups)
        self._engine.memberships.replace(self._context, names)
        logger.debug("Synced %s into %d group(s)", self._context, len(names))

    def _replace(self, values: dict[str, Any]) -> None:
        self._engine.store.replace_context(self._context, values)
        logger.debug("Synced %s to %d override(s)", self._context, len(values))

    @property
    def context(self) -> FeatureContext:
        return self._context
