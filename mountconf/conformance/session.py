# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Mount session lifecycle: map, wait for readiness, unmap and join the helper.

    UNMOUNTED -> MAPPING -> MOUNTED -> UNMAPPING -> UNMOUNTED
                    |                      |
                    +-------> FAILED <-----+
"""

import logging
import os
import subprocess
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterator, List, Optional, Sequence

from mountconf.conformance.errors import (
    HarnessError,
    PollTimeout,
    SessionStateError,
    UnmapFailure,
)
from mountconf.conformance.readiness import (
    MOUNT_POLL_ATTEMPTS,
    MOUNT_POLL_INTERVAL_MS,
    MountReadinessPoller,
    PollResult,
)
from mountconf.conformance.subprocess import (
    ProcessRecord,
    run_command,
    ShellCommandOut,
    SubprocessController,
)
from mountconf.conformance.types import MountMode, SessionState

logger = logging.getLogger(__name__)

DEFAULT_HELPER = "ceph-dokan"
DEFAULT_UNMAP_TIMEOUT_SECS = 60.0
DEFAULT_JOIN_TIMEOUT_SECS = 60.0

_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.UNMOUNTED: frozenset({SessionState.MAPPING}),
    SessionState.MAPPING: frozenset({SessionState.MOUNTED, SessionState.FAILED}),
    SessionState.MOUNTED: frozenset({SessionState.UNMAPPING}),
    SessionState.UNMAPPING: frozenset({SessionState.UNMOUNTED, SessionState.FAILED}),
    SessionState.FAILED: frozenset(),
}

RunCommand = Callable[[Sequence[str], Optional[float]], ShellCommandOut]


def new_suffix() -> str:
    return str(uuid.uuid4())


@dataclass
class MountSession:
    mount_path: str
    mode: MountMode = MountMode.READ_WRITE
    expected_label: Optional[str] = None
    expected_serial: Optional[int] = None
    shared: bool = False
    state: SessionState = SessionState.UNMOUNTED
    process: Optional[ProcessRecord] = field(default=None, repr=False)

    def transition(self, new_state: SessionState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise SessionStateError(
                f"Mount session {self.mount_path} cannot go from {self.state.value} to {new_state.value}"
            )
        logger.debug(
            f"Mount session {self.mount_path}: {self.state.value} -> {new_state.value}"
        )
        self.state = new_state

    @property
    def read_only(self) -> bool:
        return self.mode is MountMode.READ_ONLY


@dataclass(frozen=True)
class MountHelper:
    """Command line of the external mount helper."""

    binary: str = DEFAULT_HELPER

    def map_args(self, session: MountSession) -> List[str]:
        args = ["map", "-l", session.mount_path]
        if session.read_only:
            args.append("--read-only")
        if session.expected_label is not None:
            args.extend(["--win-vol-name", session.expected_label])
        if session.expected_serial is not None:
            args.extend(["--win-vol-serial", str(session.expected_serial)])
        return args

    def unmap_args(self, mount_path: str) -> List[str]:
        return [self.binary, "unmap", "-l", mount_path]


class SessionOrchestrator:
    def __init__(
        self,
        helper: MountHelper,
        controller: Optional[SubprocessController] = None,
        poller: Optional[MountReadinessPoller] = None,
        run: RunCommand = run_command,
        poll_attempts: int = MOUNT_POLL_ATTEMPTS,
        poll_interval_ms: int = MOUNT_POLL_INTERVAL_MS,
        unmap_timeout_secs: Optional[float] = DEFAULT_UNMAP_TIMEOUT_SECS,
        join_timeout_secs: Optional[float] = DEFAULT_JOIN_TIMEOUT_SECS,
    ):
        self.helper = helper
        self.controller = controller or SubprocessController()
        self.poller = poller or MountReadinessPoller()
        self.run = run
        self.poll_attempts = poll_attempts
        self.poll_interval_ms = poll_interval_ms
        self.unmap_timeout_secs = unmap_timeout_secs
        self.join_timeout_secs = join_timeout_secs

    @property
    def poll_attempts(self) -> int:
        return self._poll_attempts

    @poll_attempts.setter
    def poll_attempts(self, value: int) -> None:
        # checked here so that a bad budget is rejected before anything is spawned
        if value < 1:
            raise ValueError(f"poll_attempts must be positive, got {value}")
        self._poll_attempts = value

    def _abandon(self, session: MountSession) -> None:
        """Kill the helper of a session that cannot complete its transition."""
        if session.process is not None:
            self.controller.kill(session.process)
        if SessionState.FAILED in _TRANSITIONS[session.state]:
            session.transition(SessionState.FAILED)

    def map(
        self,
        mount_path: str,
        mode: MountMode = MountMode.READ_WRITE,
        label: Optional[str] = None,
        serial: Optional[int] = None,
        shared: bool = False,
    ) -> MountSession:
        """Spawn the helper for `mount_path` and block until the mount is usable.

        Raises:
            SpawnError: the helper could not be launched.
            PollTimeout: the mount never became accessible.

        Whatever is raised, the helper has been killed and the session is FAILED.
        """
        session = MountSession(
            mount_path=mount_path,
            mode=mode,
            expected_label=label,
            expected_serial=serial,
            shared=shared,
        )
        session.transition(SessionState.MAPPING)
        try:
            session.process = self.controller.spawn(
                self.helper.binary, self.helper.map_args(session)
            )
            result = self.poller.wait_for_mount(
                mount_path, self.poll_attempts, self.poll_interval_ms
            )
        except BaseException:
            self._abandon(session)
            raise
        if result is PollResult.TIMEOUT:
            self._abandon(session)
            attempt = self.poller.last_attempt
            raise PollTimeout(
                mount_path,
                attempt.attempts_made if attempt else self.poll_attempts,
                attempt.last_error if attempt else None,
            )
        session.transition(SessionState.MOUNTED)
        return session

    def unmap(self, session: MountSession) -> None:
        """Unmap a scenario owned session. The shared session is only released by
        its owner through `release_shared`."""
        if session.shared:
            raise SessionStateError(
                f"{session.mount_path} is the shared session and cannot be unmapped by a scenario"
            )
        self._unmap(session)

    def release_shared(self, session: MountSession) -> None:
        self._unmap(session)

    def _unmap(self, session: MountSession) -> None:
        session.transition(SessionState.UNMAPPING)
        assert session.process is not None
        try:
            out = self.run(
                self.helper.unmap_args(session.mount_path), self.unmap_timeout_secs
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            self._abandon(session)
            raise UnmapFailure(
                f"unmap of {session.mount_path} could not be run: {e}"
            ) from e
        except BaseException:
            self._abandon(session)
            raise

        try:
            exit_code = self.controller.join(session.process, self.join_timeout_secs)
        except BaseException:
            # a join timeout has already killed the process tree
            self._abandon(session)
            raise

        problems = []
        if out.stdout:
            problems.append(f"unmap reported: {out.stdout.strip()}")
        if out.returncode != 0:
            problems.append(f"unmap exited with {out.returncode}")
        if exit_code != 0:
            problems.append(f"{self.helper.binary} exited with {exit_code}")
        if problems:
            session.transition(SessionState.FAILED)
            raise UnmapFailure(f"{session.mount_path}: " + "; ".join(problems))

        session.transition(SessionState.UNMOUNTED)
        logger.info(f"Unmounted: {session.mount_path}")

    @contextmanager
    def ephemeral(
        self,
        mount_path: str,
        mode: MountMode = MountMode.READ_WRITE,
        label: Optional[str] = None,
        serial: Optional[int] = None,
    ) -> Iterator[MountSession]:
        """A scenario owned session which is unmapped and joined on every exit path."""
        session = self.map(mount_path, mode=mode, label=label, serial=serial)
        try:
            yield session
        except BaseException:
            try:
                # a session that failed while unmapping has no helper left
                if session.state is SessionState.MOUNTED:
                    self.unmap(session)
            except HarnessError:
                logger.exception(f"Could not unmap {mount_path} after a failure")
            raise
        else:
            self.unmap(session)


class MountpointAllocator:
    """Hands out mount paths that no other live session uses.

    With `candidates` (e.g. drive letters) paths come from that pool. Otherwise a
    fresh directory `<mount_root>/<prefix>_<suffix>` is created per request.
    """

    def __init__(
        self,
        mount_root: Optional[str] = None,
        candidates: Sequence[str] = (),
        suffix: Callable[[], str] = new_suffix,
    ):
        self.mount_root = mount_root
        self.suffix = suffix
        self._free = list(candidates)
        self._candidates = frozenset(candidates)
        self._created: List[str] = []
        if not self._free and self.mount_root is None:
            raise ValueError("Either a mount root or candidate mount points are needed")

    def allocate(self, prefix: str = "mnt") -> str:
        if self._free:
            return self._free.pop(0)
        if self._candidates:
            raise SessionStateError("All candidate mount points are in use")
        assert self.mount_root is not None
        path = os.path.join(self.mount_root, f"{prefix}_{self.suffix()}")
        os.makedirs(path)
        self._created.append(path)
        return path

    def release(self, path: str) -> None:
        if path in self._candidates:
            if path not in self._free:
                self._free.append(path)
            return
        if path in self._created:
            self._created.remove(path)
            try:
                os.rmdir(path)
            except OSError:
                logger.warning(f"Could not remove mount directory {path}", exc_info=True)

    @contextmanager
    def fresh(self, prefix: str = "mnt") -> Iterator[str]:
        path = self.allocate(prefix)
        try:
            yield path
        finally:
            self.release(path)
