# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Bounded, fixed interval polling for a mount path to become accessible."""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from mountconf.monitoring.clock import Clock, ClockImpl

logger = logging.getLogger(__name__)

MOUNT_POLL_ATTEMPTS = 10
MOUNT_POLL_INTERVAL_MS = 1000


class PollResult(Enum):
    READY = "ready"
    TIMEOUT = "timeout"


@dataclass
class PollAttempt:
    """Bookkeeping for a single `wait_for_mount` call."""

    max_attempts: int
    interval_sec: float
    deadline: float
    attempts_made: int = 0
    last_error: Optional[str] = field(default=None)

    def deadline_reached(self, now: float) -> bool:
        return now >= self.deadline

    @property
    def exhausted(self) -> bool:
        return self.attempts_made >= self.max_attempts


# Returns None when the path is accessible, otherwise a description of why not.
AccessCheck = Callable[[str], Optional[str]]


def check_mount_accessible(path: str) -> Optional[str]:
    """Open the mount root for reading. The path must also be a mount point, since a
    folder mount point usually exists before the helper attaches to it. Drive roots
    always count as mount points."""
    try:
        with os.scandir(path):
            pass
    except OSError as e:
        return str(e)
    if not os.path.ismount(path):
        return f"{path} is not a mount point"
    return None


class MountReadinessPoller:
    def __init__(
        self,
        clock: Clock = ClockImpl(),
        check: AccessCheck = check_mount_accessible,
    ):
        self.clock = clock
        self.check = check
        self.last_attempt: Optional[PollAttempt] = None

    def wait_for_mount(
        self,
        path: str,
        max_attempts: int = MOUNT_POLL_ATTEMPTS,
        interval_ms: int = MOUNT_POLL_INTERVAL_MS,
    ) -> PollResult:
        """Check `path` up to `max_attempts` times, sleeping `interval_ms` between
        failed checks. There is no sleep after the final attempt, so the total wait
        is bounded by (max_attempts - 1) * interval_ms plus the time spent checking.
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {max_attempts}")
        logger.info(f"Waiting for mount: {path}")
        interval_sec = interval_ms / 1000
        attempt = PollAttempt(
            max_attempts=max_attempts,
            interval_sec=interval_sec,
            deadline=self.clock.monotonic() + max_attempts * interval_sec,
        )
        self.last_attempt = attempt
        while True:
            attempt.last_error = self.check(path)
            attempt.attempts_made += 1
            if attempt.last_error is None:
                logger.info(
                    f"Successfully mounted: {path} (attempt {attempt.attempts_made})"
                )
                return PollResult.READY
            logger.debug(
                f"Mount {path} not ready on attempt {attempt.attempts_made}: {attempt.last_error}"
            )
            if attempt.exhausted or attempt.deadline_reached(self.clock.monotonic()):
                break
            self.clock.sleep(attempt.interval_sec)

        logger.error(
            f"Timed out waiting for mount: {path}, err: {attempt.last_error}"
        )
        return PollResult.TIMEOUT
