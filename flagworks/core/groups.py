"""Group registry and group-membership repository."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable

from ..errors import NotDefinedError
from .models import FeatureContext
from .registry import normalize_names


class GroupRegistry(ABC):
    """Abstract contract for named, ordered collections of feature names.

    ``InMemoryGroupRegistry`` is the default; a config- or database-backed
    implementation can be injected into ``FlagEngine`` instead.
    """

    @abstractmethod
    def define(self, name: str, features: str | Iterable[str], description: str | None = None) -> None:
        """Register or overwrite *name* with *features*.

        A *description* of ``None`` keeps the one already stored for *name*.
        """
        ...

    @abstractmethod
    def get(self, name: str) -> list[str]:
        """Return the members of *name*.

        Raises
        ------
        NotDefinedError
            If *name* is not registered.
        """
        ...

    @abstractmethod
    def all(self) -> dict[str, list[str]]:
        ...

    @abstractmethod
    def description(self, name: str) -> str:
        ...

    @abstractmethod
    def delete(self, name: str) -> None:
        ...

    def exists(self, name: str) -> bool:
        try:
            self.get(name)
            return True
        except NotDefinedError:
            return False

    def update(self, name: str, features: str | Iterable[str]) -> None:
        """Replace members of an existing group."""
        self.get(name)
        self.define(name, features)

    def add(self, name: str, features: str | Iterable[str]) -> None:
        members = self.get(name)
        extra = [f for f in normalize_names(features) if f not in members]
        self.define(name, members + extra)

    def remove(self, name: str, features: str | Iterable[str]) -> None:
        dropped = set(normalize_names(features))
        self.define(name, [f for f in self.get(name) if f not in dropped])


class InMemoryGroupRegistry(GroupRegistry):
    """Mutable in-memory implementation - suitable for tests and local dev."""

    def __init__(self, groups: dict[str, list[str]] | None = None) -> None:
        self._groups: dict[str, list[str]] = {
            name: normalize_names(members) for name, members in (groups or {}).items()
        }
        self._descriptions: dict[str, str] = {}

    def define(self, name: str, features: str | Iterable[str], description: str | None = None) -> None:
        if not name:
            raise ValueError("Group name must be a non-empty string.")
        self._groups[name] = normalize_names(features)
        if description is not None:
            self._descriptions[name] = description

    def get(self, name: str) -> list[str]:
        if name not in self._groups:
            raise NotDefinedError(name)
        return list(self._groups[name])

    def all(self) -> dict[str, list[str]]:
        return {name: list(members) for name, members in self._groups.items()}

    def description(self, name: str) -> str:
        if name not in self._groups:
            raise NotDefinedError(name)
        return self._descriptions.get(name, "")

    def delete(self, name: str) -> None:
        if name not in self._groups:
            raise NotDefinedError(name)
        del self._groups[name]
        self._descriptions.pop(name, None)

    def __len__(self) -> int:
        return len(self._groups)


class InMemoryGroupMembershipRepository:
    """Per-context set of assigned group names.

    Kept apart from feature overrides: syncing features never touches
    memberships and vice versa.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._memberships: dict[FeatureContext, list[str]] = {}

    def assign(self, context: FeatureContext, group: str) -> None:
        with self._lock:
            groups = self._memberships.setdefault(context, [])
            if group not in groups:
                groups.append(group)

    def unassign(self, context: FeatureContext, group: str) -> None:
        with self._lock:
            groups = self._memberships.get(context)
            if groups and group in groups:
                groups.remove(group)

    def groups_for(self, context: FeatureContext) -> list[str]:
        with self._lock:
            return list(self._memberships.get(context, []))

    def is_in(self, context: FeatureContext, group: str) -> bool:
        with self._lock:
            return group in self._memberships.get(context, [])

    def replace(self, context: FeatureContext, groups: str | Iterable[str]) -> None:
        names = normalize_names(groups)
        with self._lock:
            self._memberships[context] = list(dict.fromkeys(names))

    def members_of(self, group: str) -> list[FeatureContext]:
        with self._lock:
            return [ctx for ctx, groups in self._memberships.items() if group in groups]
