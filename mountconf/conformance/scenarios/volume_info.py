# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from mountconf.conformance.scenarios.base import (
    expect,
    expect_equal,
    scenario,
    ScenarioContext,
    SessionNeed,
)
from mountconf.conformance.volume import validate_identity
from mountconf.schemas.volume import NO_ERROR


@scenario("volume_identity", needs=SessionNeed.EPHEMERAL)
def volume_identity(ctx: ScenarioContext) -> None:
    """A volume mapped with a label and serial reports exactly those."""
    expected = ctx.expected_identity
    with ctx.allocator.fresh("vol") as root:
        with ctx.orchestrator.ephemeral(
            root, label=expected.label, serial=expected.serial_number
        ):
            identity = ctx.fs.volume_identity(root)
    mismatches = validate_identity(identity, expected)
    expect(not mismatches, "; ".join(mismatches))


@scenario("free_space")
def free_space(ctx: ScenarioContext) -> None:
    """The volume reports positive capacity, free and available space."""
    root = ctx.shared_root
    info = ctx.fs.space(root)
    expect_equal(info.error_message, NO_ERROR, f"space query error for {root}")
    expect(info.capacity > 0, f"capacity of {root} is {info.capacity}")
    expect(info.free > 0, f"free space of {root} is {info.free}")
    expect(info.available > 0, f"available space of {root} is {info.available}")
