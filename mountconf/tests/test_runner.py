# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from typing import Optional

from mountconf.conformance.runner import ScenarioRunner
from mountconf.conformance.scenarios import SCENARIOS, select
from mountconf.conformance.session import MountpointAllocator
from mountconf.conformance.types import ExitCode, ScenarioOutcome
from mountconf.tests.fakes import (
    FakeMountFilesystem,
    FakeMountService,
    sequential_suffix,
)


def _runner(
    service: FakeMountService, enforce_read_only: bool = True
) -> ScenarioRunner:
    return ScenarioRunner(
        orchestrator=service.orchestrator(),
        fs=FakeMountFilesystem(service, enforce_read_only),
        allocator=MountpointAllocator(candidates=("/mnt/y", "/mnt/z")),
        mountpoint="/mnt/x",
        suffix=sequential_suffix(),
    )


def _outcome(report_results: list, name: str) -> Optional[ScenarioOutcome]:
    for r in report_results:
        if r.name == name:
            return r.outcome
    return None


def test_conformant_helper() -> None:
    service = FakeMountService()

    report = _runner(service).run(SCENARIOS)

    assert report.exit_code is ExitCode.OK
    assert report.teardown_error is None
    assert report.count(ScenarioOutcome.FAILED) == 0
    assert report.count(ScenarioOutcome.ERROR) == 0
    assert report.count(ScenarioOutcome.PENDING) == sum(s.pending for s in SCENARIOS)
    assert report.count(ScenarioOutcome.PASSED) == sum(
        not s.pending for s in SCENARIOS
    )
    # the shared session is mapped once and released at the end
    assert [cmd[3] for cmd in service.spawned].count("/mnt/x") == 1
    assert service.unmapped[-1] == "/mnt/x"
    assert service.mounted == {}


def test_pending_only_run_does_not_map() -> None:
    service = FakeMountService()

    report = _runner(service).run([s for s in SCENARIOS if s.pending])

    assert report.exit_code is ExitCode.OK
    assert service.spawned == []


def test_read_only_violation_is_critical() -> None:
    service = FakeMountService()

    report = _runner(service, enforce_read_only=False).run(SCENARIOS)

    assert report.exit_code is ExitCode.CRITICAL
    assert _outcome(report.results, "read_only") is ScenarioOutcome.FAILED
    assert _outcome(report.results, "io_round_trip") is ScenarioOutcome.PASSED
    assert "read_only: failed:" in report.summary()


def test_shared_mount_timeout_errors_shared_scenarios() -> None:
    service = FakeMountService(never_ready={"/mnt/x"})

    report = _runner(service).run(select(["io_round_trip", "move_file", "mount"]))

    assert _outcome(report.results, "io_round_trip") is ScenarioOutcome.ERROR
    assert _outcome(report.results, "move_file") is ScenarioOutcome.ERROR
    assert _outcome(report.results, "mount") is ScenarioOutcome.PASSED
    shared_error = next(r.message for r in report.results if r.name == "io_round_trip")
    assert "Timed out waiting for mount: /mnt/x" in shared_error
    # the shared session is only attempted once
    assert [cmd[3] for cmd in service.spawned].count("/mnt/x") == 1
    assert report.exit_code is ExitCode.CRITICAL


def test_spawn_failure_errors_scenarios() -> None:
    report = _runner(FakeMountService(fail_spawn=True)).run(select(["mount"]))

    assert report.results[0].outcome is ScenarioOutcome.ERROR
    assert "Could not spawn" in report.results[0].message


def test_shared_teardown_failure_is_a_warning() -> None:
    service = FakeMountService(noisy_unmap={"/mnt/x"})

    report = _runner(service).run(select(["io_round_trip"]))

    assert report.results[0].outcome is ScenarioOutcome.PASSED
    assert report.teardown_error is not None
    assert report.exit_code is ExitCode.WARN


def test_scenario_unmap_failure_is_a_failure() -> None:
    service = FakeMountService(noisy_unmap={"/mnt/y"})

    report = _runner(service).run(select(["mount"]))

    assert report.results[0].outcome is ScenarioOutcome.FAILED
    assert "unmap reported" in report.results[0].message
