"""Per-context feature flag evaluation and bulk mutation engine."""

from .core import (
    ContextHandle,
    DefinitionHandle,
    EngineConfig,
    FeatureContext,
    FlagEngine,
    GroupConfig,
)
from .conductors import BatchConductor, GroupConductor, InheritConductor, SyncConductor
from .errors import FlagworksError, InvalidContextError, NotDefinedError

__all__ = [
    "BatchConductor",
    "ContextHandle",
    "DefinitionHandle",
    "EngineConfig",
    "FeatureContext",
    "FlagEngine",
    "FlagworksError",
    "GroupConductor",
    "GroupConfig",
    "InheritConductor",
    "InvalidContextError",
    "NotDefinedError",
    "SyncConductor",
]
