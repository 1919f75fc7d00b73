# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Reads the POSIX mount table, which is where a FUSE mount's identity lives."""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

MOUNTINFO_PATH = "/proc/self/mountinfo"


@dataclass
class MountInfo:
    """The parts of a mountinfo line the harness uses, see proc(5)."""

    mount_point: Path
    mount_options: List[str]
    filesystem_type: str
    mount_source: str


class StorageClient(Protocol):
    def get_all_mount_info(self) -> Iterable[MountInfo]: ...


def unescape_mountinfo(field: str) -> str:
    # the kernel octal-escapes space, tab, newline and backslash
    return (
        field.replace("\\040", " ")
        .replace("\\011", "\t")
        .replace("\\012", "\n")
        .replace("\\134", "\\")
    )


def as_mount_info(line: str) -> MountInfo:
    # optional fields vary in number and are terminated by a lone "-"
    fields = line.split()
    post = fields[fields.index("-") + 1 :]
    return MountInfo(
        mount_point=Path(unescape_mountinfo(fields[4])),
        mount_options=fields[5].split(","),
        filesystem_type=post[0],
        mount_source=unescape_mountinfo(post[1]),
    )


def closest_mount(mounts: Iterable[MountInfo], path: Path) -> Optional[MountInfo]:
    """The innermost mount containing `path`. Later entries shadow earlier ones."""
    best: Optional[MountInfo] = None
    for info in mounts:
        if path != info.mount_point and info.mount_point not in path.parents:
            continue
        if best is None or len(info.mount_point.parts) >= len(best.mount_point.parts):
            best = info
    return best


class StorageCliClient(StorageClient):
    def get_all_mount_info(self) -> Iterable[MountInfo]:
        with open(MOUNTINFO_PATH, "r") as file:
            for line in file:
                yield as_mount_info(line)
