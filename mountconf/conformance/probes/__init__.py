# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from mountconf.conformance.probes.list_scenarios import list_scenarios
from mountconf.conformance.probes.run_scenarios import run_scenarios
from mountconf.conformance.probes.volume_identity import volume_identity
from mountconf.conformance.probes.wait_for_mount import wait_for_mount

__all__ = [
    "run_scenarios",
    "wait_for_mount",
    "volume_identity",
    "list_scenarios",
]
