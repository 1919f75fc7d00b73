# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
import os
import socket
import sys
from contextlib import ExitStack
from typing import Optional, Protocol

import click

from mountconf.conformance.check_utils.output_context_manager import OutputContext
from mountconf.conformance.click import common_arguments, poll_arguments
from mountconf.conformance.readiness import MountReadinessPoller, PollResult
from mountconf.conformance.types import ExitCode, LOG_LEVEL
from mountconf.monitoring.utils.monitor import init_logger
from typeguard import typechecked


class MountWait(Protocol):
    def wait(self, path: str, max_attempts: int, interval_ms: int) -> PollResult: ...


class MountWaitImpl:
    def __init__(self, poller: Optional[MountReadinessPoller] = None):
        self.poller = poller or MountReadinessPoller()

    def wait(self, path: str, max_attempts: int, interval_ms: int) -> PollResult:
        return self.poller.wait_for_mount(path, max_attempts, interval_ms)


@click.command(name="wait")
@common_arguments
@poll_arguments
@click.argument("path", type=click.STRING)
@click.option(
    "--verbose-out",
    is_flag=True,
    help="Flag for printing verbose output on stdout",
)
@click.pass_obj
@typechecked
def wait_for_mount(
    obj: Optional[MountWait],
    log_level: LOG_LEVEL,
    log_folder: str,
    poll_attempts: int,
    poll_interval_ms: int,
    path: str,
    verbose_out: bool,
) -> None:
    """Wait until PATH is accessible as a mount point, e.g. after mapping it by hand."""
    node: str = socket.gethostname()
    logger, _ = init_logger(
        logger_name="mountconf",
        log_dir=os.path.join(log_folder, "wait_logs"),
        log_name=node + ".log",
        log_level=getattr(logging, log_level),
    )
    if obj is None:
        obj = MountWaitImpl()

    exit_code = ExitCode.UNKNOWN
    msg = ""
    with ExitStack() as s:
        s.enter_context(
            OutputContext("mount readiness", lambda: (exit_code, msg), verbose_out)
        )
        result = obj.wait(path, poll_attempts, poll_interval_ms)
        if result is PollResult.READY:
            exit_code = ExitCode.OK
            msg = f"{path} is mounted."
        else:
            exit_code = ExitCode.CRITICAL
            msg = f"{path} did not become accessible after {poll_attempts} attempts."
        logger.info(f"exit code {exit_code}: {msg}")
        sys.exit(exit_code.value)
