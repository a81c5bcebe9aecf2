"""Feature definition registry."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from .models import FeatureDefinition, as_resolver, as_utc


def normalize_names(names: str | Iterable[str]) -> list[str]:
    """Accept a single feature name or any iterable of names."""
    if isinstance(names, str):
        return [names]
    return list(names)


class FeatureRegistry:
    """Mutable in-memory store of ``FeatureDefinition`` keyed by name.

    Redefining a name replaces its definition; nothing is ever removed. Dependency
    cycles are accepted here; they only matter at evaluation time.
    """

    def __init__(self) -> None:
        self._definitions: dict[str, FeatureDefinition] = {}

    def define(self, name: str, resolver: Any = False) -> FeatureDefinition:
        if not name:
            raise ValueError("Feature name must be a non-empty string.")
        # Redefinition replaces resolver, dependencies and expiry together
        definition = FeatureDefinition(name=name, resolver=as_resolver(resolver))
        self._definitions[name] = definition
        return definition

    def set_resolver(self, name: str, resolver: Any) -> FeatureDefinition:
        definition = self._definitions.get(name) or self.define(name, False)
        definition.resolver = as_resolver(resolver)
        return definition

    def requires(self, name: str, dependencies: str | Iterable[str]) -> FeatureDefinition:
        """Append *dependencies* to *name*, defining it as inactive if needed."""
        definition = self._definitions.get(name) or self.define(name, False)
        definition.dependencies.extend(normalize_names(dependencies))
        return definition

    def set_expiry(self, name: str, expires_at: datetime | None) -> FeatureDefinition:
        definition = self._definitions.get(name) or self.define(name, False)
        definition.expires_at = None if expires_at is None else as_utc(expires_at)
        return definition

    def get(self, name: str) -> FeatureDefinition | None:
        return self._definitions.get(name)

    def get_dependencies(self, name: str) -> list[str]:
        definition = self._definitions.get(name)
        if definition is None:
            return []
        return list(definition.dependencies)

    def names(self) -> list[str]:
        return list(self._definitions)

    def has(self, name: str) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)
