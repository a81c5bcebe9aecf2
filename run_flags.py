#!/usr/bin/env python
"""Load feature groups from a JSON file and print feature state for one context.

Usage:
    python run_flags.py --groups groups.json --context user:42 [--activate-group beta] [feature ...]

groups.json maps group name -> {"features": [...], "description": "..."}::

    {
      "beta":    {"features": ["new-checkout", "dark-mode"], "description": "Beta testers"},
      "premium": {"features": ["exports", "priority-support"]}
    }

Environment (.env is loaded first):
    FLAGWORKS_EXPIRING_SOON_DAYS   window used by the expiry report (default 7)
    FLAGWORKS_LOG_LEVEL            logging level for the engine (default WARNING)
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from flagworks import EngineConfig, FeatureContext, FlagEngine, NotDefinedError

SEP = "─" * 72


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------

def parse_context(raw: str) -> FeatureContext:
    """``kind:id`` -> FeatureContext; a bare value is treated as a user id."""
    kind, sep, ident = raw.partition(":")
    if not sep:
        kind, ident = "user", raw
    return FeatureContext(id=int(ident) if ident.isdigit() else ident, kind=kind)


def load_groups(path: Path) -> dict:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"{path} must contain a JSON object of groups")
    return payload


def print_report(engine: FlagEngine, context: FeatureContext, features: list[str]) -> None:
    handle = engine.for_(context)
    print(f"\n{SEP}")
    print(f"  Context : {context}")
    print(SEP)
    print(f"  {'FEATURE':<32}  {'ACTIVE':<8}  VALUE")
    print(f"  {'─'*32}  {'─'*8}  {'─'*24}")
    for name in features:
        print(f"  {name[:32]:<32}  {str(handle.active(name)):<8}  {handle.value(name)!r}")

    groups = engine.all_groups()
    if groups:
        print(f"\n  GROUPS ({len(groups)})")
        for name in groups:
            status = "all" if handle.active_in_group(name) else (
                "some" if handle.some_active_in_group(name) else "none"
            )
            print(f"    {name:<30}  active: {status}")

    expiring = engine.expiring_soon()
    if expiring:
        print(f"\n  EXPIRING WITHIN {engine.config.expiring_soon_days} DAYS: {', '.join(expiring)}")
    print(SEP + "\n")


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("features", nargs="*", help="Feature names to report (default: all grouped features)")
    parser.add_argument("--groups", type=Path, help="JSON file with group definitions")
    parser.add_argument("--context", default="user:1", help="Context as kind:id (default user:1)")
    parser.add_argument("--activate-group", action="append", default=[], help="Group to activate for the context")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=os.getenv("FLAGWORKS_LOG_LEVEL", "WARNING").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    engine = FlagEngine(config=EngineConfig.from_env())
    if args.groups is not None:
        if not args.groups.exists():
            print(f"Groups file not found: {args.groups}")
            return 1
        engine.load_groups_from_config(load_groups(args.groups))

    context = parse_context(args.context)
    for group in args.activate_group:
        try:
            engine.activate_group_conductor(group).for_(context)
        except NotDefinedError as exc:
            print(f"  [ERROR] {exc}")
            return 1

    features = args.features or list(dict.fromkeys(
        member for members in engine.all_groups().values() for member in members
    ))
    print_report(engine, context, features)
    return 0


if __name__ == "__main__":
    sys.exit(main())
