# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
import os
import socket
import sys
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Collection, Optional, Protocol, Tuple

import click

from mountconf.conformance.check_utils.output_context_manager import OutputContext
from mountconf.conformance.check_utils.telem import TelemetryContext
from mountconf.conformance.click import (
    common_arguments,
    poll_arguments,
    telemetry_argument,
)
from mountconf.conformance.fsops import MountFilesystem, MountFilesystemImpl
from mountconf.conformance.runner import DEFAULT_MOUNTPOINT, RunReport, ScenarioRunner
from mountconf.conformance.scenarios import select
from mountconf.conformance.session import (
    DEFAULT_HELPER,
    DEFAULT_UNMAP_TIMEOUT_SECS,
    MountHelper,
    MountpointAllocator,
    SessionOrchestrator,
)
from mountconf.conformance.types import ExitCode, LOG_LEVEL
from mountconf.conformance.volume import (
    DEFAULT_FILESYSTEM_TYPE_NAME,
    DEFAULT_VOLUME_LABEL,
    DEFAULT_VOLUME_SERIAL,
    ExpectedIdentity,
)
from mountconf.monitoring.utils.monitor import init_logger
from typeguard import typechecked

DEFAULT_CANDIDATES = ("Y:\\", "Z:\\")


class ScenarioRunEnv(Protocol):
    def get_orchestrator(
        self,
        helper: str,
        poll_attempts: int,
        poll_interval_ms: int,
        unmap_timeout_secs: float,
    ) -> SessionOrchestrator: ...

    def get_filesystem(self) -> MountFilesystem: ...

    def get_allocator(
        self, mount_root: Optional[str], candidates: Tuple[str, ...]
    ) -> MountpointAllocator: ...


@dataclass
class ScenarioRunEnvImpl:
    log_level: str
    log_folder: str

    def get_orchestrator(
        self,
        helper: str,
        poll_attempts: int,
        poll_interval_ms: int,
        unmap_timeout_secs: float,
    ) -> SessionOrchestrator:
        return SessionOrchestrator(
            MountHelper(helper),
            poll_attempts=poll_attempts,
            poll_interval_ms=poll_interval_ms,
            unmap_timeout_secs=unmap_timeout_secs,
        )

    def get_filesystem(self) -> MountFilesystem:
        return MountFilesystemImpl()

    def get_allocator(
        self, mount_root: Optional[str], candidates: Tuple[str, ...]
    ) -> MountpointAllocator:
        if mount_root is not None:
            return MountpointAllocator(mount_root=mount_root)
        return MountpointAllocator(candidates=candidates)


@click.command(name="run")
@common_arguments
@telemetry_argument
@poll_arguments
@click.argument("helper", type=click.STRING, default=DEFAULT_HELPER, required=False)
@click.option(
    "--mountpoint",
    type=click.STRING,
    default=DEFAULT_MOUNTPOINT,
    show_default=True,
    help="Mount point of the session shared by the scenarios that do not map their own.",
)
@click.option(
    "--mount-root",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory under which fresh mount points are created for scenarios that map their own sessions.",
)
@click.option(
    "--candidate",
    "candidates",
    type=click.STRING,
    multiple=True,
    default=DEFAULT_CANDIDATES,
    show_default=True,
    help="Mount points handed out to scenarios that map their own sessions when --mount-root is not set.",
)
@click.option(
    "--scenario",
    "scenario_names",
    type=click.STRING,
    multiple=True,
    help="Scenarios to run. All of them if omitted, see the `list` command.",
)
@click.option(
    "--unmap-timeout",
    type=click.FLOAT,
    default=DEFAULT_UNMAP_TIMEOUT_SECS,
    show_default=True,
    help="Seconds until the unmap command times out",
)
@click.option(
    "--expected-label",
    type=click.STRING,
    default=DEFAULT_VOLUME_LABEL,
    show_default=True,
    help="Volume label passed to the helper and expected back from the volume.",
)
@click.option(
    "--expected-serial",
    type=click.IntRange(min=0, max=0xFFFFFFFF),
    default=DEFAULT_VOLUME_SERIAL,
    show_default=True,
    help="Volume serial number passed to the helper and expected back from the volume.",
)
@click.option(
    "--expected-fs-name",
    type=click.STRING,
    default=DEFAULT_FILESYSTEM_TYPE_NAME,
    show_default=True,
    help="Filesystem type name the volume is expected to report.",
)
@click.pass_obj
@typechecked
def run_scenarios(
    obj: Optional[ScenarioRunEnv],
    log_level: LOG_LEVEL,
    log_folder: str,
    sink: str,
    sink_opts: Collection[str],
    verbose_out: bool,
    poll_attempts: int,
    poll_interval_ms: int,
    helper: str,
    mountpoint: str,
    mount_root: Optional[str],
    candidates: Tuple[str, ...],
    scenario_names: Tuple[str, ...],
    unmap_timeout: float,
    expected_label: str,
    expected_serial: int,
    expected_fs_name: str,
) -> None:
    """Map the helper and run the conformance scenarios against it."""
    node: str = socket.gethostname()
    logger, _ = init_logger(
        logger_name="mountconf",
        log_dir=os.path.join(log_folder, "run_logs"),
        log_name=node + ".log",
        log_level=getattr(logging, log_level),
    )
    logger.info(
        f"mountconf run: node: {node}, helper: {helper}, mountpoint: {mountpoint}, mount root: {mount_root}, candidates: {candidates}, scenarios: {scenario_names or 'all'}, poll: {poll_attempts}x{poll_interval_ms}ms."
    )
    try:
        scenarios = select(scenario_names)
    except KeyError as e:
        raise click.BadParameter(str(e.args[0]), param_hint="--scenario") from e

    if obj is None:
        obj = ScenarioRunEnvImpl(log_level, log_folder)

    report: Optional[RunReport] = None
    overall_exit_code = ExitCode.UNKNOWN
    overall_msg = ""
    with ExitStack() as s:
        s.enter_context(
            TelemetryContext(
                sink=sink,
                sink_opts=sink_opts,
                logger=logger,
                node=node,
                helper=helper,
                get_report=lambda: report,
            )
        )
        s.enter_context(
            OutputContext(
                "mount conformance",
                lambda: (overall_exit_code, overall_msg),
                verbose_out,
            )
        )
        runner = ScenarioRunner(
            orchestrator=obj.get_orchestrator(
                helper, poll_attempts, poll_interval_ms, unmap_timeout
            ),
            fs=obj.get_filesystem(),
            allocator=obj.get_allocator(mount_root, candidates),
            mountpoint=mountpoint,
            expected_identity=ExpectedIdentity(
                label=expected_label,
                filesystem_type_name=expected_fs_name,
                serial_number=expected_serial,
            ),
        )
        report = runner.run(scenarios)
        overall_exit_code = report.exit_code
        overall_msg = report.summary()

        logger.info(f"exit code {overall_exit_code}: {overall_msg}")
        sys.exit(overall_exit_code.value)
