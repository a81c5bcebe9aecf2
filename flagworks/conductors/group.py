"""Group-first activation: ``engine.activate_group_conductor("premium").for_(user)``."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..core.models import to_contexts
from .batch import BatchConductor, Operation

if TYPE_CHECKING:
    from ..core.engine import FlagEngine


class GroupConductor:
    """Staged activation or deactivation of every member of one group.

    Members are read when ``for_`` runs, so redefining the group between
    staging and execution is honoured. An unknown group raises
    ``NotDefinedError`` before anything is written.
    """

    def __init__(self, engine: "FlagEngine", group_name: str, operation: Operation = "activate") -> None:
        self._engine = engine
        self._group_name = group_name
        self._operation: Operation = operation

    def for_(self, contexts: Any) -> None:
        members = self._engine.groups.get(self._group_name)
        targets = to_contexts(contexts)
        batch = BatchConductor(self._engine)
        if self._operation == "activate":
            batch = batch.activate(members)
        else:
            batch = batch.deactivate(members)
        batch.for_(targets)

    @property
    def group_name(self) -> str:
        return self._group_name

    @property
    def operation(self) -> Operation:
        return self._operation
