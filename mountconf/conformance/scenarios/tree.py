# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import os

from mountconf.conformance.scenarios.base import (
    expect,
    expect_equal,
    scenario,
    ScenarioContext,
)


@scenario("recursive_listing")
def recursive_listing(ctx: ScenarioContext) -> None:
    """A recursive listing reports every nested entry exactly once."""
    base = ctx.artifact(ctx.shared_root, "test_find")
    sub = os.path.join(base, "subfolder")
    files = [
        os.path.join(base, "file_1"),
        os.path.join(base, "file_2"),
        os.path.join(sub, "file_3"),
        os.path.join(sub, "file_4"),
    ]

    try:
        ctx.fs.make_dirs(sub)
        for f in files:
            ctx.fs.create_new(f, os.path.basename(f).encode())

        listing = ctx.fs.list_recursive(base)
        expect_equal(len(listing), len(set(listing)), f"entries listed under {base}")
        expect_equal(sorted(listing), sorted([sub, *files]), f"listing of {base}")

        for f in files:
            ctx.fs.remove(f)
        ctx.fs.remove_dir(sub)
        ctx.fs.remove_dir(base)
        expect(not ctx.fs.exists(base), f"{base} still exists after removal")
    finally:
        ctx.discard(files=files, dirs=[sub, base])


@scenario("move_file")
def move_file(ctx: ScenarioContext) -> None:
    """A file copied to another directory and deleted at its source has moved."""
    data = b"move me"
    src_dir = ctx.artifact(ctx.shared_root, "test_move_src")
    dst_dir = ctx.artifact(ctx.shared_root, "test_move_dst")
    src = os.path.join(src_dir, "file")
    dst = os.path.join(dst_dir, "file")

    try:
        ctx.fs.make_dirs(src_dir)
        ctx.fs.make_dirs(dst_dir)
        ctx.fs.create_new(src, data)
        ctx.fs.copy(src, dst)
        ctx.fs.remove(src)

        expect_equal(ctx.fs.read(dst), data, f"content of {dst}")
        expect(not ctx.fs.exists(src), f"{src} still exists after the move")

        ctx.fs.remove(dst)
        ctx.fs.remove_dir(src_dir)
        ctx.fs.remove_dir(dst_dir)
    finally:
        ctx.discard(files=[src, dst], dirs=[src_dir, dst_dir])
