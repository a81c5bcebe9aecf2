"""Typed models for feature definitions, contexts and engine configuration."""

from __future__ import annotations

import inspect
import os
from dataclasses import dataclass, field
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from ..errors import InvalidContextError


# ---------------------------------------------------------------------------
# Context identity
# ---------------------------------------------------------------------------

class FeatureContext(BaseModel):
    """Stable identity of the subject a feature is evaluated against.

    ``kind`` disambiguates identical identifiers across subject types, so
    ``user:1`` and ``team:1`` never share overrides.
    """

    model_config = ConfigDict(frozen=True)

    id: str | int
    kind: str = Field(min_length=1)

    @property
    def key(self) -> str:
        return f"{self.kind}:{self.id}"

    @classmethod
    def global_scope(cls, config: "EngineConfig | None" = None) -> "FeatureContext":
        config = config or EngineConfig()
        return cls(id=config.global_context_id, kind=config.global_context_kind)

    def __str__(self) -> str:
        return self.key


@runtime_checkable
class FeatureContextable(Protocol):
    """Application entity that knows how to describe itself as a context."""

    def to_feature_context(self) -> FeatureContext:
        ...


def to_context(value: Any) -> FeatureContext:
    """Convert *value* into a ``FeatureContext`` or raise ``InvalidContextError``."""
    if isinstance(value, FeatureContext):
        return value
    if isinstance(value, FeatureContextable):
        return value.to_feature_context()
    # bool is an int subclass but is never a meaningful identity
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return FeatureContext(id=value, kind=type(value).__name__)
    raise InvalidContextError(value)


def to_contexts(value: Any) -> list[FeatureContext]:
    """Accept one context or any iterable of them."""
    if isinstance(value, (str, bytes, FeatureContext)) or isinstance(value, FeatureContextable):
        return [to_context(value)]
    if isinstance(value, Iterable):
        return [to_context(item) for item in value]
    return [to_context(value)]


def as_utc(moment: datetime) -> datetime:
    """Naive timestamps are taken as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


# ---------------------------------------------------------------------------
# Resolvers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Constant:
    """Resolver variant that ignores the context and returns a fixed value."""

    value: Any

    def resolve(self, context: FeatureContext) -> Any:
        return self.value


@dataclass(frozen=True)
class Resolver:
    """Resolver variant wrapping a ``context -> value`` function.

    Zero-argument callables are accepted and called without the context.
    """

    fn: Callable[..., Any]
    takes_context: bool = True

    def resolve(self, context: FeatureContext) -> Any:
        if self.takes_context:
            return self.fn(context)
        return self.fn()


def _accepts_argument(fn: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return True
    for parameter in signature.parameters.values():
        if parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD, parameter.VAR_POSITIONAL):
            return True
    return False


def as_resolver(value: Any) -> Constant | Resolver:
    if isinstance(value, (Constant, Resolver)):
        return value
    if callable(value):
        return Resolver(value, takes_context=_accepts_argument(value))
    return Constant(value)


@dataclass
class FeatureDefinition:
    """A registered feature: how to resolve it, what it needs, when it dies."""

    name: str
    resolver: Constant | Resolver = field(default_factory=lambda: Constant(False))
    dependencies: list[str] = field(default_factory=list)
    expires_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= now

    def is_expiring_soon(self, now: datetime, days: int) -> bool:
        """True when the expiry falls inside ``[now, now + days]``."""
        if self.expires_at is None:
            return False
        return now <= self.expires_at <= now + timedelta(days=days)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class GroupConfig(BaseModel):
    """One group entry as supplied by an external config source."""

    features: list[str] = Field(default_factory=list)
    description: str = ""


class EngineConfig(BaseModel):
    global_context_id: str = Field(default="__all__", min_length=1)
    global_context_kind: str = Field(default="__global__", min_length=1)
    expiring_soon_days: int = Field(default=7, gt=0)
    groups: dict[str, GroupConfig] = Field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        return cls(
            global_context_id=os.environ.get("FLAGWORKS_GLOBAL_ID", "__all__"),
            global_context_kind=os.environ.get("FLAGWORKS_GLOBAL_KIND", "__global__"),
            expiring_soon_days=int(os.environ.get("FLAGWORKS_EXPIRING_SOON_DAYS", "7")),
        )
