# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Mapping and unmapping the helper on fresh mount points."""

import os

from mountconf.conformance.scenarios.base import (
    expect,
    expect_equal,
    scenario,
    ScenarioContext,
    SessionNeed,
)
from mountconf.conformance.types import SessionState


@scenario("mount", needs=SessionNeed.EPHEMERAL)
def mount(ctx: ScenarioContext) -> None:
    """Map on a fresh mount point, wait for it and unmap it again."""
    with ctx.allocator.fresh("mount") as path:
        with ctx.orchestrator.ephemeral(path) as session:
            expect(ctx.fs.exists(path), f"{path} is not accessible while mapped")
        expect_equal(session.state, SessionState.UNMOUNTED, "session state")
        expect_equal(session.process.exit_code if session.process else None, 0, "helper exit code")


@scenario("io_remount", needs=SessionNeed.EPHEMERAL)
def io_remount(ctx: ScenarioContext) -> None:
    """Data written through one mount point is visible through another after remount."""
    data = b"abcdef"
    name = f"test_io_{ctx.suffix()}"
    with ctx.allocator.fresh("io") as first, ctx.allocator.fresh("io") as second:
        with ctx.orchestrator.ephemeral(first):
            written = ctx.fs.create_new(os.path.join(first, name), data)
            expect_equal(written, len(data), "bytes written")

        with ctx.orchestrator.ephemeral(second):
            path = os.path.join(second, name)
            expect_equal(ctx.fs.read(path), data, f"content of {path} after remount")
            ctx.fs.remove(path)
            expect(not ctx.fs.exists(path), f"{path} still exists after removal")
