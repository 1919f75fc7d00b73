# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from pathlib import Path

import pytest

from mountconf.conformance.fsops import MountFilesystemImpl
from mountconf.conformance.runner import ScenarioRunner
from mountconf.conformance.scenarios import SCENARIOS
from mountconf.conformance.session import (
    MountHelper,
    MountpointAllocator,
    SessionOrchestrator,
)
from mountconf.conformance.types import ScenarioOutcome
from mountconf.tests.config import Config


@pytest.mark.live
def test_helper_conformance(config: Config, tmp_path: Path) -> None:
    runner = ScenarioRunner(
        orchestrator=SessionOrchestrator(MountHelper(config.helper)),
        fs=MountFilesystemImpl(),
        allocator=MountpointAllocator(mount_root=str(tmp_path)),
        mountpoint=config.mountpoint,
    )

    report = runner.run(SCENARIOS)

    failures = [
        r
        for r in report.results
        if r.outcome in (ScenarioOutcome.FAILED, ScenarioOutcome.ERROR)
    ]
    assert failures == [], report.summary()
    assert report.teardown_error is None
