# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
import shlex
import subprocess
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, IO, Iterator, List, Optional, Protocol, Sequence

import psutil

from mountconf.conformance.errors import JoinError, SpawnError

logger = logging.getLogger(__name__)

# how long a reaped helper's remaining output may take to reach the log
OUTPUT_DRAIN_TIMEOUT_SECS = 5.0


class ShellCommandOut(Protocol):
    args: List[str]
    returncode: int
    stdout: str
    stderr: str

    def check_returncode(self) -> None: ...


@dataclass
class ProcessRecord:
    """A spawned helper process. `exit_code` is only meaningful once joined."""

    args: List[str]
    process: subprocess.Popen
    exit_code: Optional[int] = None
    output: Optional[threading.Thread] = None

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def joined(self) -> bool:
        return self.exit_code is not None


def _forward_output(name: str, stream: IO[str]) -> None:
    # helper chatter goes to the log, stdout belongs to the status line
    with stream:
        for line in stream:
            logger.info(f"{name}: {line.rstrip()}")


def _children_of(pid: int) -> List[psutil.Process]:
    try:
        return psutil.Process(pid).children(recursive=True)
    except psutil.NoSuchProcess:
        return []


class SubprocessController:
    """Spawns, tracks and joins long running helper processes.

    Every successful `spawn` leaves exactly one live process until `join` or `kill`
    is called for its record.
    """

    def __init__(
        self,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
        children_of: Callable[[int], List[psutil.Process]] = _children_of,
    ):
        self._popen = popen
        self._children_of = children_of

    def spawn(self, command: str, args: Sequence[str]) -> ProcessRecord:
        cmd = [command, *args]
        logger.info(f"Spawning `{shlex.join(cmd)}`")
        try:
            process = self._popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
            )
        except (OSError, ValueError) as e:
            raise SpawnError(f"Could not spawn `{shlex.join(cmd)}`: {e}") from e
        logger.debug(f"Spawned {command} with pid {process.pid}")
        record = ProcessRecord(args=cmd, process=process)
        if process.stdout is not None:
            record.output = threading.Thread(
                target=_forward_output,
                args=(f"{command}[{process.pid}]", process.stdout),
                daemon=True,
            )
            record.output.start()
        return record

    def _drain(self, record: ProcessRecord) -> None:
        if record.output is not None:
            record.output.join(OUTPUT_DRAIN_TIMEOUT_SECS)

    def join(self, record: ProcessRecord, timeout_secs: Optional[float] = None) -> int:
        """Block until the process exits and return its exit code.

        If `timeout_secs` elapses first, the process tree is killed and `JoinError`
        is raised.
        """
        if record.exit_code is not None:
            return record.exit_code
        try:
            record.exit_code = record.process.wait(timeout=timeout_secs)
        except subprocess.TimeoutExpired as e:
            self.kill(record)
            raise JoinError(
                f"{record.args[0]} (pid {record.pid}) did not exit within {timeout_secs} seconds"
            ) from e
        self._drain(record)
        logger.info(f"{record.args[0]} (pid {record.pid}) exited with {record.exit_code}")
        return record.exit_code

    def kill(self, record: ProcessRecord) -> int:
        """Kill the process and its descendants, then reap it."""
        if record.exit_code is not None:
            return record.exit_code
        for child in self._children_of(record.pid):
            try:
                child.kill()
            except psutil.NoSuchProcess:
                pass
        logger.warning(f"Killing {record.args[0]} (pid {record.pid})")
        record.process.kill()
        record.exit_code = record.process.wait()
        self._drain(record)
        return record.exit_code

    @contextmanager
    def spawned(self, command: str, args: Sequence[str]) -> Iterator[ProcessRecord]:
        """Spawn a process which is guaranteed to be reaped when the block exits."""
        record = self.spawn(command, args)
        try:
            yield record
        finally:
            if not record.joined:
                self.kill(record)


def run_command(
    cmd: Sequence[str],
    timeout_secs: Optional[float] = None,
) -> subprocess.CompletedProcess:
    """
    Run a short lived command and return its combined stdout and stderr.
    """
    logger.info(f"Running command `{shlex.join(cmd)}`")
    try:
        return subprocess.run(
            list(cmd),
            encoding="utf-8",
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout_secs,
        )
    except subprocess.TimeoutExpired as e:
        raise subprocess.TimeoutExpired(e.cmd, e.timeout, e.output, e.stderr)
