# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
import os
from typing import List

from mountconf.conformance.errors import FilesystemOperationError, HarnessError
from mountconf.conformance.fsops import read_only_error_message
from mountconf.conformance.scenarios.base import (
    expect,
    expect_equal,
    scenario,
    ScenarioContext,
    SessionNeed,
)
from mountconf.conformance.types import MountMode

logger = logging.getLogger(__name__)


def _clean_up(ctx: ScenarioContext, root: str, files: List[str]) -> None:
    # the leftovers are only reachable through another read-write session
    try:
        with ctx.orchestrator.ephemeral(root):
            ctx.discard(files=files)
    except HarnessError:
        logger.exception(f"Could not clean up {files}")


@scenario("read_only", needs=SessionNeed.EPHEMERAL)
def read_only(ctx: ScenarioContext) -> None:
    """A read-only mount serves existing files and refuses creates and deletes.

    The file is seeded through a read-write session on the same mount point and
    removed through another one once the read-only session is gone.
    """
    data = b"abc123"
    suffix = ctx.suffix()
    with ctx.allocator.fresh("ro") as root:
        success_path = os.path.join(root, f"ro_success_{suffix}")
        fail_path = os.path.join(root, f"ro_fail_{suffix}")

        with ctx.orchestrator.ephemeral(root):
            ctx.fs.create_new(success_path, data)

        try:
            with ctx.orchestrator.ephemeral(root, mode=MountMode.READ_ONLY):
                try:
                    ctx.fs.create_new(fail_path, data)
                except FilesystemOperationError:
                    pass
                else:
                    expect(False, f"created {fail_path} on a read-only mount")
                expect(
                    not ctx.fs.exists(fail_path),
                    f"{fail_path} exists after a refused create",
                )

                expect_equal(
                    ctx.fs.read(success_path), data, f"content of {success_path}"
                )

                try:
                    ctx.fs.remove(success_path)
                except FilesystemOperationError as e:
                    expect_equal(
                        str(e),
                        read_only_error_message("remove", success_path),
                        "read-only delete error",
                    )
                else:
                    expect(False, f"removed {success_path} on a read-only mount")

            with ctx.orchestrator.ephemeral(root):
                expect_equal(
                    ctx.fs.read(success_path), data, f"content of {success_path}"
                )
                ctx.fs.remove(success_path)
                expect(
                    not ctx.fs.exists(success_path),
                    f"{success_path} still exists after removal",
                )
        except (HarnessError, OSError):
            _clean_up(ctx, root, [success_path, fail_path])
            raise
