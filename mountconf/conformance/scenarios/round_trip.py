# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from mountconf.conformance.scenarios.base import (
    expect,
    expect_equal,
    scenario,
    ScenarioContext,
)

# text followed by every byte value
IO_PAYLOAD = b"abcdef" + bytes(range(256))


@scenario("create_delete_on_close")
def create_delete_on_close(ctx: ScenarioContext) -> None:
    """A file opened with delete-on-close is gone once the handle is released."""
    ctx.require_delete_on_close()
    path = ctx.artifact(ctx.shared_root, "test_create")
    try:
        with ctx.fs.open_delete_on_close(path):
            pass
        expect(
            not ctx.fs.exists(path), f"{path} survived closing its delete-on-close handle"
        )
    finally:
        ctx.discard(files=[path])


@scenario("write_delete_on_close")
def write_delete_on_close(ctx: ScenarioContext) -> None:
    """Writes through a delete-on-close handle complete and the file is gone afterwards."""
    ctx.require_delete_on_close()
    data = b"abcdef"
    path = ctx.artifact(ctx.shared_root, "test_write")
    try:
        with ctx.fs.open_delete_on_close(path) as f:
            written = f.write(data)
        expect_equal(written, len(data), f"bytes written to {path}")
        expect(
            not ctx.fs.exists(path), f"{path} survived closing its delete-on-close handle"
        )
    finally:
        ctx.discard(files=[path])


@scenario("io_round_trip")
def io_round_trip(ctx: ScenarioContext) -> None:
    """Bytes written to a fresh file read back unchanged; removal makes it disappear."""
    path = ctx.artifact(ctx.shared_root, "test_io")
    expect(not ctx.fs.exists(path), f"{path} exists before it was created")

    try:
        written = ctx.fs.create_new(path, IO_PAYLOAD)
        expect_equal(written, len(IO_PAYLOAD), f"bytes written to {path}")
        expect(ctx.fs.exists(path), f"{path} does not exist after writing it")
        expect_equal(ctx.fs.read(path), IO_PAYLOAD, f"content of {path}")

        ctx.fs.remove(path)
        expect(not ctx.fs.exists(path), f"{path} still exists after removal")
    finally:
        ctx.discard(files=[path])
