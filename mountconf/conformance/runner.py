# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Runs scenarios from the table and collects their outcomes.

The runner owns the shared session: it is mapped on the default mount point the
first time a scenario needs it and released once, after the last scenario.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from mountconf.conformance.errors import (
    FilesystemAssertionFailure,
    HarnessError,
    PendingScenario,
    UnmapFailure,
)
from mountconf.conformance.fsops import MountFilesystem
from mountconf.conformance.scenarios import SCENARIO_TABLE_VERSION
from mountconf.conformance.scenarios.base import (
    Scenario,
    ScenarioContext,
    SessionNeed,
)
from mountconf.conformance.session import (
    MountpointAllocator,
    MountSession,
    new_suffix,
    SessionOrchestrator,
)
from mountconf.conformance.types import ExitCode, ScenarioOutcome, SessionState
from mountconf.conformance.volume import ExpectedIdentity

logger = logging.getLogger(__name__)

DEFAULT_MOUNTPOINT = "X:\\"


@dataclass
class ScenarioResult:
    name: str
    outcome: ScenarioOutcome
    message: str = ""
    start_time: float = 0.0
    end_time: float = 0.0


@dataclass
class RunReport:
    mountpoint: str
    table_version: int = SCENARIO_TABLE_VERSION
    results: List[ScenarioResult] = field(default_factory=list)
    teardown_error: Optional[str] = None

    def count(self, outcome: ScenarioOutcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    @property
    def exit_code(self) -> ExitCode:
        if any(
            r.outcome in (ScenarioOutcome.FAILED, ScenarioOutcome.ERROR)
            for r in self.results
        ):
            return ExitCode.CRITICAL
        if self.teardown_error is not None:
            return ExitCode.WARN
        return ExitCode.OK

    def summary(self) -> str:
        msg = ", ".join(
            f"{self.count(outcome)} {outcome.value}" for outcome in ScenarioOutcome
        )
        msg += f" (scenario table v{self.table_version})\n"
        for r in self.results:
            if r.outcome in (ScenarioOutcome.FAILED, ScenarioOutcome.ERROR):
                msg += f"{r.name}: {r.outcome.value}: {r.message}\n"
        if self.teardown_error is not None:
            msg += f"shared session teardown: {self.teardown_error}\n"
        return msg


class ScenarioRunner:
    def __init__(
        self,
        orchestrator: SessionOrchestrator,
        fs: MountFilesystem,
        allocator: MountpointAllocator,
        mountpoint: str = DEFAULT_MOUNTPOINT,
        expected_identity: Optional[ExpectedIdentity] = None,
        suffix: Callable[[], str] = new_suffix,
        now: Callable[[], float] = time.time,
    ):
        self.orchestrator = orchestrator
        self.fs = fs
        self.allocator = allocator
        self.mountpoint = mountpoint
        self.expected_identity = expected_identity or ExpectedIdentity()
        self.suffix = suffix
        self.now = now
        self._shared: Optional[MountSession] = None
        self._shared_error: Optional[str] = None

    def run(self, scenarios: Iterable[Scenario]) -> RunReport:
        report = RunReport(mountpoint=self.mountpoint)
        try:
            for s in scenarios:
                result = self.run_one(s)
                logger.info(
                    f"Scenario {result.name}: {result.outcome.value}"
                    + (f": {result.message}" if result.message else "")
                )
                report.results.append(result)
        finally:
            report.teardown_error = self._release_shared()
        return report

    def run_one(self, scenario: Scenario) -> ScenarioResult:
        start_time = self.now()
        outcome, message = self._run(scenario)
        return ScenarioResult(
            name=scenario.name,
            outcome=outcome,
            message=message,
            start_time=start_time,
            end_time=self.now(),
        )

    def _run(self, scenario: Scenario) -> Tuple[ScenarioOutcome, str]:
        ctx = ScenarioContext(
            fs=self.fs,
            orchestrator=self.orchestrator,
            allocator=self.allocator,
            expected_identity=self.expected_identity,
            suffix=self.suffix,
        )
        if scenario.needs is SessionNeed.SHARED and not scenario.pending:
            ctx.shared = self._acquire_shared()
            if ctx.shared is None:
                return (
                    ScenarioOutcome.ERROR,
                    f"shared session is unavailable: {self._shared_error}",
                )

        logger.info(f"Running scenario {scenario.name}")
        try:
            scenario.run(ctx)
        except PendingScenario as e:
            return ScenarioOutcome.PENDING, str(e)
        except (FilesystemAssertionFailure, UnmapFailure) as e:
            logger.error(f"Scenario {scenario.name} failed: {e}")
            return ScenarioOutcome.FAILED, str(e)
        except (HarnessError, OSError) as e:
            logger.exception(f"Scenario {scenario.name} errored")
            return ScenarioOutcome.ERROR, str(e)
        if scenario.pending:
            return ScenarioOutcome.PENDING, ""
        return ScenarioOutcome.PASSED, ""

    def _acquire_shared(self) -> Optional[MountSession]:
        if self._shared is None and self._shared_error is None:
            try:
                self._shared = self.orchestrator.map(self.mountpoint, shared=True)
            except HarnessError as e:
                logger.error(f"Could not map the shared session: {e}")
                self._shared_error = str(e)
        return self._shared

    def _release_shared(self) -> Optional[str]:
        """Unmap the shared session. Failures are reported, not raised."""
        shared, self._shared = self._shared, None
        self._shared_error = None
        if shared is None or shared.state is not SessionState.MOUNTED:
            return None
        try:
            self.orchestrator.release_shared(shared)
        except HarnessError as e:
            logger.error(f"Shared session teardown failed: {e}")
            return str(e)
        return None
