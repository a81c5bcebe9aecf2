"""Flag engine facade.

One explicitly constructed ``FlagEngine`` owns its registry, group
registry, override store and membership store. Separate engines never
share state.

Example::

    engine = FlagEngine()
    engine.define("new-checkout", True)
    engine.define("one-click").requires("new-checkout").resolver(lambda ctx: ctx.kind == "user")

    user = FeatureContext(id=42, kind="user")
    engine.for_(user).active("one-click")
    engine.batch().activate(["beta-ui", "webhooks"]).for_([user, team])
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any, Callable

from pydantic import ValidationError

from ..conductors.batch import BatchConductor
from ..conductors.group import GroupConductor
from ..conductors.inherit import InheritConductor
from ..conductors.sync import SyncConductor
from .evaluator import Evaluator, utc_now
from .groups import GroupRegistry, InMemoryGroupMembershipRepository, InMemoryGroupRegistry
from .models import EngineConfig, FeatureContext, FeatureDefinition, GroupConfig, as_utc, to_context
from .registry import FeatureRegistry, normalize_names
from .store import ContextStore

logger = logging.getLogger(__name__)


class DefinitionHandle:
    """Chainable refinement of one feature definition."""

    def __init__(self, engine: "FlagEngine", name: str) -> None:
        self._engine = engine
        self._name = name

    def requires(self, features: str | Iterable[str]) -> "DefinitionHandle":
        self._engine.registry.requires(self._name, features)
        return self

    def resolver(self, resolver: Any) -> "DefinitionHandle":
        self._engine.registry.set_resolver(self._name, resolver)
        return self

    def expires_at(self, when: datetime) -> "DefinitionHandle":
        self._engine.registry.set_expiry(self._name, as_utc(when))
        return self

    def expires_after(self, days: int = 0, hours: int = 0, minutes: int = 0) -> "DefinitionHandle":
        now = self._engine.evaluator.now()
        return self.expires_at(now + timedelta(days=days, hours=hours, minutes=minutes))

    @property
    def name(self) -> str:
        return self._name

    @property
    def definition(self) -> FeatureDefinition | None:
        return self._engine.registry.get(self._name)


class ContextHandle:
    """All feature reads and writes bound to a single context."""

    def __init__(self, engine: "FlagEngine", context: Any) -> None:
        self._engine = engine
        self._context = to_context(context)

    @property
    def context(self) -> FeatureContext:
        return self._context

    # -- reads -------------------------------------------------------------

    def active(self, feature: str) -> bool:
        return self._engine.evaluator.active(feature, self._context)

    def inactive(self, feature: str) -> bool:
        return not self.active(feature)

    def value(self, feature: str) -> Any:
        return self._engine.evaluator.value(feature, self._context)

    def values(self, features: Iterable[str]) -> dict[str, Any]:
        return {name: self.value(name) for name in features}

    def all_are_active(self, features: Iterable[str]) -> bool:
        return all(self.active(name) for name in features)

    def some_are_active(self, features: Iterable[str]) -> bool:
        return any(self.active(name) for name in features)

    def all_are_inactive(self, features: Iterable[str]) -> bool:
        return all(self.inactive(name) for name in features)

    def some_are_inactive(self, features: Iterable[str]) -> bool:
        return any(self.inactive(name) for name in features)

    def stored(self) -> dict[str, Any]:
        return self._engine.store.overrides_for(self._context)

    # -- writes ------------------------------------------------------------

    def activate(self, features: str | Iterable[str], value: Any = True) -> None:
        self._engine.batch().activate(features, value).for_(self._context)

    def deactivate(self, features: str | Iterable[str]) -> None:
        self._engine.batch().deactivate(features).for_(self._context)

    def forget(self, features: str | Iterable[str]) -> None:
        for name in normalize_names(features):
            self._engine.store.clear(name, self._context)

    # -- groups ------------------------------------------------------------

    def activate_group(self, group: str) -> None:
        self._engine.activate_group_conductor(group).for_(self._context)

    def deactivate_group(self, group: str) -> None:
        self._engine.deactivate_group_conductor(group).for_(self._context)

    def active_in_group(self, group: str) -> bool:
        return self._engine.active_in_group(self._context, group)

    def some_active_in_group(self, group: str) -> bool:
        return self._engine.some_active_in_group(self._context, group)

    def assign_to_group(self, group: str) -> None:
        self._engine.memberships.assign(self._context, group)

    def unassign_from_group(self, group: str) -> None:
        self._engine.memberships.unassign(self._context, group)

    def in_group(self, group: str) -> bool:
        return self._engine.memberships.is_in(self._context, group)

    def groups(self) -> list[str]:
        return self._engine.memberships.groups_for(self._context)


class FlagEngine:
    def __init__(
        self,
        config: EngineConfig | None = None,
        registry: FeatureRegistry | None = None,
        groups: GroupRegistry | None = None,
        store: ContextStore | None = None,
        memberships: InMemoryGroupMembershipRepository | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.registry = registry if registry is not None else FeatureRegistry()
        self.groups = groups if groups is not None else InMemoryGroupRegistry()
        self.store = store if store is not None else ContextStore()
        self.memberships = memberships if memberships is not None else InMemoryGroupMembershipRepository()
        self.evaluator = Evaluator(self.registry, self.store, clock=clock or utc_now)
        self.global_context = FeatureContext.global_scope(self.config)

        if self.config.groups:
            self.load_groups_from_config(self.config.groups)

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def define(self, name: str, resolver: Any = False) -> DefinitionHandle:
        self.registry.define(name, resolver)
        return DefinitionHandle(self, name)

    def defined(self) -> list[str]:
        return self.registry.names()

    def stored(self) -> list[str]:
        return self.store.stored_features()

    def known_features(self) -> list[str]:
        """Defined features followed by any stored-only names."""
        return list(dict.fromkeys(self.registry.names() + self.store.stored_features()))

    def get_dependencies(self, name: str) -> list[str]:
        return self.registry.get_dependencies(name)

    def dependencies_met(self, name: str, context: Any = None) -> bool:
        target = self.global_context if context is None else to_context(context)
        return self.evaluator.dependencies_met(name, target)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def for_(self, context: Any) -> ContextHandle:
        return ContextHandle(self, context)

    def active(self, name: str, context: Any) -> bool:
        return self.evaluator.active(name, to_context(context))

    def inactive(self, name: str, context: Any) -> bool:
        return not self.active(name, context)

    def value(self, name: str, context: Any) -> Any:
        return self.evaluator.value(name, to_context(context))

    def has_override(self, name: str, context: Any) -> bool:
        return self.store.has(name, to_context(context))

    # ------------------------------------------------------------------
    # Global scope
    # ------------------------------------------------------------------

    def activate_for_everyone(self, features: str | Iterable[str], value: Any = True) -> None:
        names = normalize_names(features)
        self.store.write_many_global({name: value for name in names})
        logger.info("Activated %s for everyone", ", ".join(names) or "nothing")

    def deactivate_for_everyone(self, features: str | Iterable[str]) -> None:
        names = normalize_names(features)
        self.store.write_many_global({name: False for name in names})
        logger.info("Deactivated %s for everyone", ", ".join(names) or "nothing")

    def purge(self, features: str | Iterable[str] | None = None) -> None:
        """Drop overrides for *features* in every scope, or all overrides."""
        self.store.purge(None if features is None else normalize_names(features))

    def forget_everywhere(self, features: str | Iterable[str]) -> None:
        """Drop overrides for *features* in every context and the global scope."""
        self.store.purge(normalize_names(features))

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    def is_expired(self, name: str) -> bool:
        return self.evaluator.is_expired(name)

    def expires_at(self, name: str) -> datetime | None:
        definition = self.registry.get(name)
        return definition.expires_at if definition else None

    def is_expiring_soon(self, name: str, days: int | None = None) -> bool:
        definition = self.registry.get(name)
        if definition is None:
            return False
        window = self.config.expiring_soon_days if days is None else days
        return definition.is_expiring_soon(self.evaluator.now(), window)

    def expiring_soon(self, days: int | None = None) -> list[str]:
        return [name for name in self.registry.names() if self.is_expiring_soon(name, days)]

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def define_group(self, name: str, features: str | Iterable[str], description: str = "") -> None:
        self.groups.define(name, features, description)

    def delete_group(self, name: str) -> None:
        self.groups.delete(name)

    def get_group(self, name: str) -> list[str]:
        return self.groups.get(name)

    def all_groups(self) -> dict[str, list[str]]:
        return self.groups.all()

    def group_description(self, name: str) -> str:
        return self.groups.description(name)

    def load_groups_from_config(self, source: Mapping[Any, Any]) -> list[str]:
        """Define every well-formed group in *source* and return their names.

        *source* maps group name -> ``{"features": [...], "description": ...}``
        (or a ``GroupConfig``). Malformed entries are skipped with a warning;
        non-string members are dropped.
        """
        loaded: list[str] = []
        for name, data in source.items():
            if not isinstance(name, str) or not name:
                logger.warning("Skipping group with non-string name %r", name)
                continue
            if isinstance(data, GroupConfig):
                entry = data
            elif isinstance(data, Mapping) and isinstance(data.get("features"), list):
                try:
                    entry = GroupConfig(
                        features=[f for f in data["features"] if isinstance(f, str)],
                        description=str(data.get("description", "") or ""),
                    )
                except ValidationError as exc:
                    logger.warning("Skipping group '%s': %s", name, exc)
                    continue
            else:
                logger.warning("Skipping group '%s': expected a mapping with a 'features' list", name)
                continue

            self.define_group(name, entry.features, entry.description)
            loaded.append(name)

        logger.info("Loaded %d group(s) from config", len(loaded))
        return loaded

    def activate_group_for_everyone(self, name: str) -> None:
        self.activate_for_everyone(self.groups.get(name))

    def deactivate_group_for_everyone(self, name: str) -> None:
        self.deactivate_for_everyone(self.groups.get(name))

    def active_in_group(self, context: Any, name: str) -> bool:
        members = self.groups.get(name)
        target = to_context(context)
        return all(self.evaluator.active(member, target) for member in members)

    def some_active_in_group(self, context: Any, name: str) -> bool:
        members = self.groups.get(name)
        target = to_context(context)
        return any(self.evaluator.active(member, target) for member in members)

    # ------------------------------------------------------------------
    # Conductors
    # ------------------------------------------------------------------

    def batch(self) -> BatchConductor:
        return BatchConductor(self)

    def activate_group_conductor(self, name: str) -> GroupConductor:
        return GroupConductor(self, name, "activate")

    def deactivate_group_conductor(self, name: str) -> GroupConductor:
        return GroupConductor(self, name, "deactivate")

    def inherit(self, child_context: Any) -> InheritConductor:
        return InheritConductor(self, child_context)

    def sync(self, context: Any) -> SyncConductor:
        return SyncConductor(self, context)
