"""Exception taxonomy for the flag engine."""

from __future__ import annotations


class FlagworksError(Exception):
    """Base class for every error raised by ``flagworks``."""


class NotDefinedError(FlagworksError, KeyError):
    """Raised when an operation references a group that was never registered.

    Unknown *features* and *dependencies* never raise; they resolve as
    inactive. Only group lookups are strict.
    """

    def __init__(self, name: str, kind: str = "Group") -> None:
        self.name = name
        self.kind = kind
        self.message = (
            f"{kind} '{name}' is not defined. "
            "Register it via FlagEngine.define_group() before using it."
        )
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class InvalidContextError(FlagworksError, TypeError):
    """Raised when a value cannot be converted into a ``FeatureContext``."""

    def __init__(self, value: object) -> None:
        self.value = value
        self.message = (
            f"Cannot use {type(value).__name__} as a feature context. "
            "Pass a FeatureContext, a str/int identifier, or an object "
            "implementing to_feature_context()."
        )
        super().__init__(self.message)
