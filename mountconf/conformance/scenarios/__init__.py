# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""The scenario table.

Earlier revisions of the harness kept each generation of scenarios in its own
file. They are consolidated here; bump `SCENARIO_TABLE_VERSION` whenever a
scenario is added, removed or changes what it asserts.
"""

from typing import Iterable, List

from mountconf.conformance.scenarios import (  # noqa: F401
    lifecycle,
    pending,
    read_only,
    round_trip,
    tree,
    volume_info,
)
from mountconf.conformance.scenarios.base import registry, Scenario

SCENARIO_TABLE_VERSION = 3

# pending scenarios go last
SCENARIOS: List[Scenario] = sorted(registry.values(), key=lambda s: s.pending)


def select(names: Iterable[str]) -> List[Scenario]:
    """Scenarios with the given names in table order; all of them if none are given."""
    wanted = set(names)
    if not wanted:
        return list(SCENARIOS)
    unknown = wanted - registry.keys()
    if unknown:
        raise KeyError(f"Unknown scenarios: {sorted(unknown)}")
    return [s for s in SCENARIOS if s.name in wanted]


__all__ = ["SCENARIO_TABLE_VERSION", "SCENARIOS", "Scenario", "select"]
