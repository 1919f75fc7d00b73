# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional

from mountconf.conformance.errors import (
    FilesystemAssertionFailure,
    FilesystemOperationError,
    PendingScenario,
    SessionStateError,
)
from mountconf.conformance.fsops import MountFilesystem
from mountconf.conformance.session import (
    MountpointAllocator,
    MountSession,
    new_suffix,
    SessionOrchestrator,
)
from mountconf.conformance.volume import ExpectedIdentity

logger = logging.getLogger(__name__)


class SessionNeed(Enum):
    # runs against the suite wide session on the default mount point
    SHARED = "shared"
    # maps and unmaps its own sessions on fresh mount points
    EPHEMERAL = "ephemeral"
    NONE = "none"


@dataclass
class ScenarioContext:
    fs: MountFilesystem
    orchestrator: SessionOrchestrator
    allocator: MountpointAllocator
    expected_identity: ExpectedIdentity = field(default_factory=ExpectedIdentity)
    shared: Optional[MountSession] = None
    suffix: Callable[[], str] = new_suffix

    @property
    def shared_root(self) -> str:
        if self.shared is None:
            raise SessionStateError("No shared mount session is available")
        return self.shared.mount_path

    def artifact(self, root: str, prefix: str) -> str:
        return os.path.join(root, f"{prefix}_{self.suffix()}")

    def discard(self, files: Iterable[str] = (), dirs: Iterable[str] = ()) -> None:
        """Remove whatever is left of a scenario's artifacts, files first, then
        directories in the given order. Failures are logged, not raised."""
        for f in files:
            self._discard(f, self.fs.remove)
        for d in dirs:
            self._discard(d, self.fs.remove_dir)

    def _discard(self, path: str, remove: Callable[[str], None]) -> None:
        if not self.fs.exists(path):
            return
        try:
            remove(path)
        except FilesystemOperationError as e:
            logger.warning(f"Could not clean up {path}: {e}")

    def require_delete_on_close(self) -> None:
        if not self.fs.supports_delete_on_close:
            raise PendingScenario(
                "delete-on-close cannot be requested from the filesystem on this platform"
            )


ScenarioFn = Callable[[ScenarioContext], None]


@dataclass(frozen=True)
class Scenario:
    name: str
    run: ScenarioFn
    needs: SessionNeed
    pending: bool = False

    @property
    def description(self) -> str:
        doc = self.run.__doc__ or ""
        return doc.strip().splitlines()[0] if doc.strip() else ""


registry: Dict[str, Scenario] = {}


def scenario(
    name: str, needs: SessionNeed = SessionNeed.SHARED, pending: bool = False
) -> Callable[[ScenarioFn], ScenarioFn]:
    def decorator(f: ScenarioFn) -> ScenarioFn:
        if (existing := registry.get(name)) is not None:
            raise RuntimeError(f"'{name}' is already registered to {existing.run}")
        registry[name] = Scenario(name=name, run=f, needs=needs, pending=pending)
        return f

    return decorator


def expect(condition: bool, msg: str) -> None:
    if not condition:
        raise FilesystemAssertionFailure(msg)


def expect_equal(actual: Any, expected: Any, what: str) -> None:
    if actual != expected:
        raise FilesystemAssertionFailure(
            f"{what}: expected {expected!r}, got {actual!r}"
        )
