# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import errno
import os
from pathlib import Path
from typing import Iterable, List

import pytest

from mountconf.conformance.volume import (
    ExpectedIdentity,
    PosixVolumeInfoClient,
    validate_identity,
)
from mountconf.monitoring.storage import as_mount_info, closest_mount, MountInfo
from mountconf.schemas.volume import NO_ERROR, SpaceInfo, VolumeIdentity

posix_only = pytest.mark.skipif(os.name == "nt", reason="statvfs is POSIX only")


def _identity(**overrides: object) -> VolumeIdentity:
    values: dict = {
        "label": "TestCeph",
        "filesystem_type_name": "Ceph",
        "serial_number": 1234567890,
        "max_component_length": 256,
        "flags": 0,
    }
    values.update(overrides)
    return VolumeIdentity(**values)


def test_conformant_identity() -> None:
    assert validate_identity(_identity(), ExpectedIdentity()) == []


@pytest.mark.parametrize(
    "overrides, expected",
    [
        ({"label": "Other"}, ["volume label is 'Other', expected 'TestCeph'"]),
        (
            {"serial_number": 1},
            ["serial number is 1, expected 1234567890"],
        ),
        (
            {"max_component_length": 255, "filesystem_type_name": "NTFS"},
            [
                "filesystem type is 'NTFS', expected 'Ceph'",
                "max component length is 255, expected 256",
            ],
        ),
    ],
)
def test_identity_mismatches(overrides: dict, expected: List[str]) -> None:
    assert validate_identity(_identity(**overrides), ExpectedIdentity()) == expected


def test_space_error_message() -> None:
    assert SpaceInfo(1, 1, 1).error_message == NO_ERROR
    assert SpaceInfo(0, 0, 0, error_code=errno.ENOENT).error_message == os.strerror(
        errno.ENOENT
    )


def test_as_mount_info_unescapes() -> None:
    info = as_mount_info(
        "36 35 98:0 / /mnt/ceph\\040fs rw,noatime master:1 - fuse.ceph-fuse ceph\\040src rw"
    )

    assert info.mount_point == Path("/mnt/ceph fs")
    assert info.mount_source == "ceph src"
    assert info.filesystem_type == "fuse.ceph-fuse"
    assert info.mount_options == ["rw", "noatime"]


def test_closest_mount_prefers_innermost() -> None:
    mounts = [
        as_mount_info("1 0 8:1 / / rw - ext4 /dev/root rw"),
        as_mount_info("2 1 0:50 / /mnt/ceph rw - fuse.ceph-fuse ceph rw"),
        as_mount_info("3 1 0:51 / /mnt/cephx rw - tmpfs tmp rw"),
    ]

    assert closest_mount(mounts, Path("/mnt/ceph/dir")) is mounts[1]
    assert closest_mount(mounts, Path("/mnt/cephx")) is mounts[2]
    assert closest_mount(mounts, Path("/home")) is mounts[0]
    assert closest_mount(mounts[1:], Path("/home")) is None


class FakeStorageClient:
    def __init__(self, lines: Iterable[str]):
        self.lines = list(lines)

    def get_all_mount_info(self) -> Iterable[MountInfo]:
        return [as_mount_info(line) for line in self.lines]


@posix_only
class TestPosixVolumeInfoClient:
    @staticmethod
    def test_identity_uses_closest_mount(tmp_path: Path) -> None:
        root = os.path.realpath(tmp_path)
        client = PosixVolumeInfoClient(
            FakeStorageClient(
                [
                    "1 0 8:1 / / rw - ext4 /dev/root rw",
                    f"2 1 0:50 / {root} rw - fuse.ceph-fuse TestCeph rw",
                ]
            )
        )

        identity = client.read_identity(str(tmp_path))

        assert identity.label == "TestCeph"
        assert identity.filesystem_type_name == "fuse.ceph-fuse"
        assert identity.max_component_length == os.statvfs(tmp_path).f_namemax

    @staticmethod
    def test_space(tmp_path: Path) -> None:
        space = PosixVolumeInfoClient(FakeStorageClient([])).read_space(str(tmp_path))

        assert space.error_message == NO_ERROR
        assert space.capacity > 0
        assert space.capacity >= space.free >= space.available

    @staticmethod
    def test_space_reports_errors(tmp_path: Path) -> None:
        space = PosixVolumeInfoClient(FakeStorageClient([])).read_space(
            str(tmp_path / "missing")
        )

        assert space.error_code == errno.ENOENT
        assert space.error_message != NO_ERROR
