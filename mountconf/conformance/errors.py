# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Failure taxonomy of the conformance harness."""

from typing import Optional


class HarnessError(Exception):
    """Base class for every error raised by the harness."""


class SpawnError(HarnessError):
    """The mount helper process could not be launched."""


class JoinError(HarnessError):
    """The mount helper did not exit within the allotted time."""


class PollTimeout(HarnessError):
    """The mount never became accessible within the readiness budget."""

    def __init__(self, mount_path: str, attempts: int, last_error: Optional[str]):
        self.mount_path = mount_path
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Timed out waiting for mount: {mount_path} after {attempts} attempts, err: {last_error}"
        )


class UnmapFailure(HarnessError):
    """The unmap command reported output or the helper exited with a nonzero status."""


class SessionStateError(HarnessError):
    """A mount session was asked to perform an illegal transition."""


class FilesystemAssertionFailure(HarnessError, AssertionError):
    """A probe's expected content, existence or error condition did not hold."""


class FilesystemOperationError(HarnessError):
    """A filesystem operation under the mount failed.

    The message has the stable form ``cannot <operation>: <reason> [<path>]``.
    """

    def __init__(self, operation: str, path: str, reason: str):
        self.operation = operation
        self.path = path
        self.reason = reason
        super().__init__(f"cannot {operation}: {reason} [{path}]")


class ReadOnlyViolationError(FilesystemOperationError):
    """A create or delete was refused because the volume is mounted read-only."""


class PendingScenario(HarnessError):
    """The scenario has no defined expected behavior yet."""
