"""Unit tests for the Evaluator: overrides, dependencies, cycles and expiry."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from flagworks.core.evaluator import Evaluator, is_active_value
from flagworks.core.models import FeatureContext
from flagworks.core.registry import FeatureRegistry
from flagworks.core.store import ContextStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
USER = FeatureContext(id=1, kind="user")
OTHER = FeatureContext(id=2, kind="user")


def make_evaluator() -> tuple[Evaluator, FeatureRegistry, ContextStore]:
    registry = FeatureRegistry()
    store = ContextStore()
    return Evaluator(registry, store, clock=lambda: NOW), registry, store


class TestResolution:
    def test_undefined_feature_is_inactive(self):
        evaluator, _, _ = make_evaluator()
        assert evaluator.active("ghost", USER) is False
        assert evaluator.value("ghost", USER) is False

    def test_resolver_used_without_overrides(self):
        evaluator, registry, _ = make_evaluator()
        registry.define("vip", lambda ctx: ctx.id == 1)
        assert evaluator.active("vip", USER) is True
        assert evaluator.active("vip", OTHER) is False

    def test_context_override_beats_global_and_resolver(self):
        evaluator, registry, store = make_evaluator()
        registry.define("f", True)
        store.set_global("f", True)
        store.set("f", USER, False)
        assert evaluator.active("f", USER) is False
        assert evaluator.active("f", OTHER) is True

    def test_global_override_beats_resolver(self):
        evaluator, registry, store = make_evaluator()
        registry.define("f", False)
        store.set_global("f", "on")
        assert evaluator.value("f", USER) == "on"

    def test_value_returns_raw_payload(self):
        evaluator, registry, store = make_evaluator()
        registry.define("limits", {"max": 5})
        store.set("theme", USER, "dark")
        assert evaluator.value("limits", USER) == {"max": 5}
        assert evaluator.value("theme", USER) == "dark"
        assert evaluator.active("theme", USER) is True

    @pytest.mark.parametrize("payload, expected", [
        (False, False),
        (None, False),
        (True, True),
        (0, True),
        ("", True),
        ("dark", True),
        ({}, True),
    ])
    def test_truthiness(self, payload, expected):
        evaluator, _, store = make_evaluator()
        store.set("f", USER, payload)
        assert evaluator.active("f", USER) is expected
        assert is_active_value(payload) is expected


class TestDependencies:
    def test_met_when_all_dependencies_active(self):
        evaluator, registry, _ = make_evaluator()
        registry.define("base", True)
        registry.define("addon", True)
        registry.requires("addon", "base")
        assert evaluator.dependencies_met("addon", USER) is True
        assert evaluator.active("addon", USER) is True

    def test_no_dependencies_is_trivially_met(self):
        evaluator, registry, _ = make_evaluator()
        registry.define("solo", False)
        assert evaluator.dependencies_met("solo", USER) is True
        assert evaluator.dependencies_met("ghost", USER) is True

    def test_inactive_dependency_blocks_override(self):
        evaluator, registry, store = make_evaluator()
        registry.define("base", False)
        registry.define("addon", True)
        registry.requires("addon", "base")
        store.set("addon", USER, True)
        store.set_global("addon", True)
        assert evaluator.active("addon", USER) is False
        assert evaluator.value("addon", USER) is False

    def test_undefined_dependency_is_unmet(self):
        evaluator, registry, _ = make_evaluator()
        registry.define("addon", True)
        registry.requires("addon", "never-defined")
        assert evaluator.dependencies_met("addon", USER) is False
        assert evaluator.active("addon", USER) is False

    def test_dependencies_are_per_context(self):
        evaluator, registry, store = make_evaluator()
        registry.define("base", False)
        registry.define("addon", True)
        registry.requires("addon", "base")
        store.set("base", USER, True)
        assert evaluator.active("addon", USER) is True
        assert evaluator.active("addon", OTHER) is False

    def test_transitive_chain(self):
        evaluator, registry, store = make_evaluator()
        for name in ("a", "b", "c"):
            registry.define(name, True)
        registry.requires("a", "b")
        registry.requires("b", "c")
        assert evaluator.active("a", USER) is True
        store.set("c", USER, False)
        assert evaluator.active("a", USER) is False

    def test_diamond_is_not_a_cycle(self):
        evaluator, registry, _ = make_evaluator()
        for name in ("top", "left", "right", "bottom"):
            registry.define(name, True)
        registry.requires("top", ["left", "right"])
        registry.requires("left", "bottom")
        registry.requires("right", "bottom")
        assert evaluator.active("top", USER) is True

    def test_duplicate_dependencies_are_inert(self):
        evaluator, registry, _ = make_evaluator()
        registry.define("base", True)
        registry.define("addon", True)
        registry.requires("addon", ["base", "base"])
        assert evaluator.active("addon", USER) is True


class TestCycles:
    def test_two_cycle_is_inactive(self):
        evaluator, registry, store = make_evaluator()
        registry.define("a", True)
        registry.define("b", True)
        registry.requires("a", "b")
        registry.requires("b", "a")
        store.set("a", USER, True)
        assert evaluator.active("a", USER) is False
        assert evaluator.active("b", USER) is False

    def test_self_cycle_is_inactive(self):
        evaluator, registry, _ = make_evaluator()
        registry.define("loop", True)
        registry.requires("loop", "loop")
        assert evaluator.active("loop", USER) is False

    def test_long_cycle_members_all_inactive(self):
        evaluator, registry, _ = make_evaluator()
        names = ["f1", "f2", "f3", "f4"]
        for name in names:
            registry.define(name, True)
        for current, nxt in zip(names, names[1:] + names[:1]):
            registry.requires(current, nxt)
        for name in names:
            for ctx in (USER, OTHER):
                assert evaluator.active(name, ctx) is False

    def test_feature_depending_on_cycle_is_inactive(self):
        evaluator, registry, _ = make_evaluator()
        for name in ("a", "b", "outside"):
            registry.define(name, True)
        registry.requires("a", "b")
        registry.requires("b", "a")
        registry.requires("outside", "a")
        assert evaluator.active("outside", USER) is False

    def test_repeated_calls_are_deterministic(self):
        evaluator, registry, _ = make_evaluator()
        registry.define("a", True)
        registry.define("b", True)
        registry.requires("a", "b")
        registry.requires("b", "a")
        results = {evaluator.active("a", USER) for _ in range(5)}
        assert results == {False}


class TestExpiry:
    def test_expired_feature_is_inactive_despite_override(self):
        evaluator, registry, store = make_evaluator()
        registry.define("promo", True)
        registry.set_expiry("promo", NOW - timedelta(minutes=1))
        store.set("promo", USER, True)
        assert evaluator.is_expired("promo") is True
        assert evaluator.active("promo", USER) is False

    def test_future_expiry_still_active(self):
        evaluator, registry, _ = make_evaluator()
        registry.define("promo", True)
        registry.set_expiry("promo", NOW + timedelta(days=1))
        assert evaluator.active("promo", USER) is True

    def test_expired_dependency_blocks_dependent(self):
        evaluator, registry, _ = make_evaluator()
        registry.define("base", True)
        registry.define("addon", True)
        registry.requires("addon", "base")
        registry.set_expiry("base", NOW)
        assert evaluator.active("addon", USER) is False

    def test_naive_clock_compares_with_aware_expiry(self):
        registry = FeatureRegistry()
        evaluator = Evaluator(registry, ContextStore(), clock=lambda: NOW.replace(tzinfo=None))
        registry.define("promo", True)
        registry.set_expiry("promo", NOW + timedelta(hours=1))
        assert evaluator.now() == NOW
        assert evaluator.active("promo", USER) is True

    def test_undefined_feature_never_expired(self):
        evaluator, _, _ = make_evaluator()
        assert evaluator.is_expired("ghost") is False
