"""Staged bulk mutations: batch, group, inherit and sync."""

from .batch import BatchConductor
from .group import GroupConductor
from .inherit import InheritConductor
from .sync import SyncConductor

__all__ = [
    "BatchConductor",
    "GroupConductor",
    "InheritConductor",
    "SyncConductor",
]
