"""End-to-end scenarios exercising the engine through its public surface."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from flagworks import FeatureContext, FlagEngine

USERS = [FeatureContext(id=i, kind="user") for i in range(1, 6)]
TEAM = FeatureContext(id=1, kind="team")


def test_activate_then_deactivate_leaves_feature_inactive() -> None:
    engine = FlagEngine()
    engine.define("a", True)
    engine.for_("c1").activate("a")
    engine.for_("c1").deactivate("a")
    assert engine.active("a", "c1") is False


def test_dependency_overrides_global_activation() -> None:
    engine = FlagEngine()
    engine.define("dep", False)
    engine.define("dependent").requires("dep").resolver(lambda: False)
    engine.activate_for_everyone("dependent")
    for ctx in USERS + [TEAM]:
        assert engine.active("dependent", ctx) is False


def test_with_values_supersedes_prior_feature_sync() -> None:
    engine = FlagEngine()
    user = USERS[0]
    engine.sync(user).features(["f1"])
    engine.sync(user).with_values({"theme": "dark"})
    assert engine.active("f1", user) is False
    assert engine.value("theme", user) == "dark"


def test_active_feature_implies_active_dependencies() -> None:
    engine = FlagEngine()
    engine.define("base", lambda ctx: ctx.id % 2 == 0)
    engine.define("middle", True).requires("base")
    engine.define("top", True).requires(["middle", "base"])
    engine.for_(USERS[0]).activate(["top", "middle"])
    for ctx in USERS:
        for feature in ("top", "middle"):
            if engine.active(feature, ctx):
                assert all(engine.active(dep, ctx) for dep in engine.get_dependencies(feature))


@pytest.mark.parametrize("size", [1, 2, 3, 6])
def test_every_cycle_member_is_inactive(size: int) -> None:
    engine = FlagEngine()
    names = [f"f{i}" for i in range(size)]
    for current, nxt in zip(names, names[1:] + names[:1]):
        engine.define(current, True).requires(nxt)
    engine.batch().activate(names).for_(USERS)
    engine.activate_for_everyone(names)
    for name in names:
        for ctx in USERS:
            assert engine.active(name, ctx) is False


def test_batch_activates_full_cartesian_product() -> None:
    engine = FlagEngine()
    features = ["a", "b", "c"]
    engine.batch().activate(features).for_(USERS)
    assert all(engine.active(f, ctx) for f in features for ctx in USERS)
    assert engine.active("a", TEAM) is False


def test_empty_group_is_vacuously_all_active() -> None:
    engine = FlagEngine()
    engine.define_group("g", [])
    for ctx in USERS:
        assert engine.active_in_group(ctx, "g") is True
        assert engine.some_active_in_group(ctx, "g") is False


def test_inherit_only_and_except_properties() -> None:
    engine = FlagEngine()
    parent, child = TEAM, USERS[0]
    engine.for_(parent).activate(["a", "b", "c", "d"])
    engine.for_(child).deactivate("d")

    narrowed = engine.inherit(child).only(["a", "x"]).from_(parent)
    assert set(narrowed) <= {"a", "x"}

    fresh = USERS[1]
    engine.for_(fresh).activate("b", "mine")
    inherited = engine.inherit(fresh).except_(["c"]).from_(parent)
    assert set(inherited) == {"a", "b", "c", "d"} - {"c"} - {"b"}
    assert engine.value("b", fresh) == "mine"


def test_group_first_then_inherit_then_sync_groups() -> None:
    engine = FlagEngine()
    engine.load_groups_from_config({
        "premium": {"features": ["exports", "sso"], "description": "Paid plan"},
    })
    engine.activate_group_conductor("premium").for_(TEAM)
    engine.inherit(USERS[0]).from_(TEAM)
    engine.sync(USERS[0]).groups(["premium"])
    assert engine.for_(USERS[0]).active_in_group("premium") is True
    assert engine.for_(USERS[0]).groups() == ["premium"]


def test_concurrent_evaluation_is_consistent() -> None:
    engine = FlagEngine()
    engine.define("a", True).requires("b")
    engine.define("b", True).requires("a")
    engine.define("base", lambda ctx: ctx.kind == "user")
    engine.define("addon", True).requires("base")

    def evaluate(ctx: FeatureContext) -> tuple[bool, bool, bool]:
        return engine.active("a", ctx), engine.active("b", ctx), engine.active("addon", ctx)

    contexts = (USERS + [TEAM]) * 40
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(evaluate, contexts))

    for ctx, (a, b, addon) in zip(contexts, results):
        assert a is False and b is False
        assert addon is (ctx.kind == "user")


def test_batch_writes_are_never_observed_partially() -> None:
    engine = FlagEngine()
    features = [f"f{i}" for i in range(50)]
    contexts = [FeatureContext(id=i, kind="user") for i in range(20)]
    seen_partial: list[int] = []
    done = threading.Event()

    def watch() -> None:
        while not done.is_set():
            count = sum(len(engine.store.overrides_for(ctx)) for ctx in contexts)
            snapshot = len(engine.stored())
            if snapshot not in (0, len(features)):
                seen_partial.append(snapshot)
            if count == len(features) * len(contexts):
                return

    watcher = threading.Thread(target=watch)
    watcher.start()
    engine.batch().activate(features).for_(contexts)
    done.set()
    watcher.join(timeout=5)

    assert seen_partial == []
    assert all(engine.active(f, ctx) for f in features for ctx in contexts)
