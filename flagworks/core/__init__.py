"""Definitions, stores and evaluation."""

from .engine import ContextHandle, DefinitionHandle, FlagEngine
from .evaluator import Evaluator, is_active_value
from .groups import GroupRegistry, InMemoryGroupMembershipRepository, InMemoryGroupRegistry
from .models import (
    Constant,
    EngineConfig,
    FeatureContext,
    FeatureContextable,
    FeatureDefinition,
    GroupConfig,
    Resolver,
    to_context,
    to_contexts,
)
from .registry import FeatureRegistry
from .store import ContextStore

__all__ = [
    "Constant",
    "ContextHandle",
    "ContextStore",
    "DefinitionHandle",
    "EngineConfig",
    "Evaluator",
    "FeatureContext",
    "FeatureContextable",
    "FeatureDefinition",
    "FeatureRegistry",
    "FlagEngine",
    "GroupConfig",
    "GroupRegistry",
    "InMemoryGroupMembershipRepository",
    "InMemoryGroupRegistry",
    "Resolver",
    "is_active_value",
    "to_context",
    "to_contexts",
]
