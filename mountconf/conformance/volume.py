# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Volume identity and capacity queries against a mounted volume."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol

from mountconf.monitoring.storage import (
    closest_mount,
    StorageCliClient,
    StorageClient,
)
from mountconf.schemas.volume import SpaceInfo, VolumeIdentity

logger = logging.getLogger(__name__)

# Longest file name component the mounted filesystem family supports.
EXPECTED_MAX_COMPONENT_LENGTH = 256
DEFAULT_VOLUME_LABEL = "TestCeph"
DEFAULT_FILESYSTEM_TYPE_NAME = "Ceph"
DEFAULT_VOLUME_SERIAL = 1234567890

MAX_PATH = 260


@dataclass(frozen=True)
class ExpectedIdentity:
    label: str = DEFAULT_VOLUME_LABEL
    filesystem_type_name: str = DEFAULT_FILESYSTEM_TYPE_NAME
    serial_number: int = DEFAULT_VOLUME_SERIAL
    max_component_length: int = EXPECTED_MAX_COMPONENT_LENGTH


class VolumeInfoClient(Protocol):
    def read_identity(self, mount_root: str) -> VolumeIdentity:
        """Query label, filesystem type, serial, limits and flags of the volume."""

    def read_space(self, mount_root: str) -> SpaceInfo:
        """Query capacity, free and available bytes. Errors are reported in the
        result, not raised."""


def validate_identity(
    identity: VolumeIdentity, expected: ExpectedIdentity
) -> List[str]:
    """Compare a volume identity with the expected values.

    Returns a description of every mismatch; an empty list means the volume is
    conformant.
    """
    mismatches = []
    if identity.label != expected.label:
        mismatches.append(
            f"volume label is {identity.label!r}, expected {expected.label!r}"
        )
    if identity.filesystem_type_name != expected.filesystem_type_name:
        mismatches.append(
            f"filesystem type is {identity.filesystem_type_name!r}, expected {expected.filesystem_type_name!r}"
        )
    if identity.serial_number != expected.serial_number:
        mismatches.append(
            f"serial number is {identity.serial_number}, expected {expected.serial_number}"
        )
    if identity.max_component_length != expected.max_component_length:
        mismatches.append(
            f"max component length is {identity.max_component_length}, expected {expected.max_component_length}"
        )
    return mismatches


def _volume_root(mount_root: str) -> str:
    # GetVolumeInformationW and friends insist on a trailing backslash
    return mount_root if mount_root.endswith("\\") else mount_root + "\\"


class WindowsVolumeInfoClient:
    def read_identity(self, mount_root: str) -> VolumeIdentity:
        import ctypes
        from ctypes import wintypes

        kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)  # type: ignore[attr-defined]
        label = ctypes.create_unicode_buffer(MAX_PATH + 1)
        fs_name = ctypes.create_unicode_buffer(MAX_PATH + 1)
        serial = wintypes.DWORD()
        max_component_length = wintypes.DWORD()
        flags = wintypes.DWORD()
        ok = kernel32.GetVolumeInformationW(
            ctypes.c_wchar_p(_volume_root(mount_root)),
            label,
            len(label),
            ctypes.byref(serial),
            ctypes.byref(max_component_length),
            ctypes.byref(flags),
            fs_name,
            len(fs_name),
        )
        if not ok:
            raise ctypes.WinError(ctypes.get_last_error())  # type: ignore[attr-defined]
        return VolumeIdentity(
            label=label.value,
            filesystem_type_name=fs_name.value,
            serial_number=serial.value,
            max_component_length=max_component_length.value,
            flags=flags.value,
        )

    def read_space(self, mount_root: str) -> SpaceInfo:
        import ctypes

        kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)  # type: ignore[attr-defined]
        available = ctypes.c_ulonglong()
        capacity = ctypes.c_ulonglong()
        free = ctypes.c_ulonglong()
        ok = kernel32.GetDiskFreeSpaceExW(
            ctypes.c_wchar_p(_volume_root(mount_root)),
            ctypes.byref(available),
            ctypes.byref(capacity),
            ctypes.byref(free),
        )
        if not ok:
            err = ctypes.WinError(ctypes.get_last_error())  # type: ignore[attr-defined]
            logger.error(f"Space query for {mount_root} failed: {err}")
            return SpaceInfo(0, 0, 0, error_code=err.errno or -1)
        return SpaceInfo(
            capacity=capacity.value, free=free.value, available=available.value
        )


class PosixVolumeInfoClient:
    """Identity of a POSIX mount: the filesystem type and source come from the
    mount table, the serial is the statvfs filesystem id."""

    def __init__(self, storage_client: Optional[StorageClient] = None):
        self.storage_client = storage_client or StorageCliClient()

    def read_identity(self, mount_root: str) -> VolumeIdentity:
        st = os.statvfs(mount_root)
        best = closest_mount(
            self.storage_client.get_all_mount_info(),
            Path(os.path.realpath(mount_root)),
        )
        if best is None:
            raise FileNotFoundError(f"{mount_root} is not in the mount table")
        return VolumeIdentity(
            label=best.mount_source,
            filesystem_type_name=best.filesystem_type,
            serial_number=st.f_fsid,
            max_component_length=st.f_namemax,
            flags=st.f_flag,
        )

    def read_space(self, mount_root: str) -> SpaceInfo:
        try:
            st = os.statvfs(mount_root)
        except OSError as e:
            logger.error(f"Space query for {mount_root} failed: {e}")
            return SpaceInfo(0, 0, 0, error_code=e.errno or -1)
        return SpaceInfo(
            capacity=st.f_blocks * st.f_frsize,
            free=st.f_bfree * st.f_frsize,
            available=st.f_bavail * st.f_frsize,
        )


def default_volume_client() -> VolumeInfoClient:
    if os.name == "nt":
        return WindowsVolumeInfoClient()
    return PosixVolumeInfoClient()
