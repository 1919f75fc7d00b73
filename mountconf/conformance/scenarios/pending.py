# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Scenarios whose expected behavior has not been defined yet.

They are listed so that reports show the coverage gap, and always end up pending.
"""

from mountconf.conformance.errors import PendingScenario
from mountconf.conformance.scenarios.base import (
    scenario,
    ScenarioContext,
    SessionNeed,
)

PENDING_SCENARIOS = {
    "flush_file_buffers": "Flushing file buffers",
    "set_end_of_file": "Setting the end of file",
    "set_allocation_size": "Setting the allocation size",
    "file_attributes": "Getting and setting file attributes",
    "file_timestamps": "Getting and setting file timestamps",
    "file_security": "Getting and setting security descriptors",
    "find_files_with_pattern": "Listing a directory with a search pattern",
}


def _pending(name: str, title: str) -> None:
    def run(ctx: ScenarioContext) -> None:
        raise PendingScenario(f"{title}: expected behavior is not defined")

    run.__doc__ = f"{title} (no expected behavior defined)."
    scenario(name, needs=SessionNeed.NONE, pending=True)(run)


for _name, _title in PENDING_SCENARIOS.items():
    _pending(_name, _title)
