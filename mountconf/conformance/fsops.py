# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Filesystem primitives the scenarios drive against a mounted volume.

Failures are reported as `FilesystemOperationError` with the stable message
``cannot <operation>: <reason> [<path>]``.
"""

import errno
import logging
import os
import shutil
from contextlib import contextmanager
from typing import BinaryIO, ContextManager, Iterator, List, Optional, Protocol

from mountconf.conformance.errors import (
    FilesystemOperationError,
    ReadOnlyViolationError,
)
from mountconf.conformance.volume import default_volume_client, VolumeInfoClient
from mountconf.schemas.volume import SpaceInfo, VolumeIdentity

logger = logging.getLogger(__name__)

NO_SUCH_DEVICE = "No such device"
READ_ONLY_ERRNOS = frozenset({errno.ENODEV, errno.EROFS})
# ERROR_WRITE_PROTECT, ERROR_NOT_READY
READ_ONLY_WINERRORS = frozenset({19, 21})

_CREATE_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)


def operation_error(
    operation: str, path: str, exc: OSError
) -> FilesystemOperationError:
    if (
        exc.errno in READ_ONLY_ERRNOS
        or getattr(exc, "winerror", None) in READ_ONLY_WINERRORS
    ):
        return ReadOnlyViolationError(operation, path, NO_SUCH_DEVICE)
    return FilesystemOperationError(operation, path, exc.strerror or str(exc))


def read_only_error_message(operation: str, path: str) -> str:
    """The exact message a refused operation on a read-only mount produces."""
    return str(ReadOnlyViolationError(operation, path, NO_SUCH_DEVICE))


class MountFilesystem(Protocol):
    # whether the platform can ask the filesystem to delete a file on close
    supports_delete_on_close: bool

    def exists(self, path: str) -> bool: ...

    def create_new(self, path: str, data: bytes) -> int:
        """Create `path`, which must not exist, and write `data` to it. Returns the
        number of bytes written."""

    def read(self, path: str) -> bytes: ...

    def remove(self, path: str) -> None: ...

    def make_dirs(self, path: str) -> None: ...

    def remove_dir(self, path: str) -> None: ...

    def list_recursive(self, base: str) -> List[str]:
        """Every file and directory below `base`, as paths joined onto `base`."""

    def copy(self, src: str, dst: str) -> None: ...

    def open_delete_on_close(self, path: str) -> ContextManager[BinaryIO]:
        """Create `path` for writing and ask the filesystem to delete it once the
        handle is closed. Only available where `supports_delete_on_close`."""

    def volume_identity(self, mount_root: str) -> VolumeIdentity: ...

    def space(self, mount_root: str) -> SpaceInfo: ...


class MountFilesystemImpl:
    # POSIX has no delete-on-close open flag
    supports_delete_on_close = os.name == "nt"

    def __init__(self, volume_client: Optional[VolumeInfoClient] = None):
        self.volume_client = volume_client or default_volume_client()

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def create_new(self, path: str, data: bytes) -> int:
        try:
            fd = os.open(path, _CREATE_FLAGS)
        except OSError as e:
            raise operation_error("create", path, e) from e
        written = 0
        try:
            with os.fdopen(fd, "wb", buffering=0) as f:
                while written < len(data):
                    n = f.write(data[written:])
                    if not n:
                        break
                    written += n
        except OSError as e:
            raise operation_error("write", path, e) from e
        return written

    def read(self, path: str) -> bytes:
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise operation_error("read", path, e) from e

    def remove(self, path: str) -> None:
        try:
            os.remove(path)
        except OSError as e:
            raise operation_error("remove", path, e) from e

    def make_dirs(self, path: str) -> None:
        try:
            os.makedirs(path)
        except OSError as e:
            raise operation_error("create directory", path, e) from e

    def remove_dir(self, path: str) -> None:
        try:
            os.rmdir(path)
        except OSError as e:
            raise operation_error("remove directory", path, e) from e

    def list_recursive(self, base: str) -> List[str]:
        entries = []

        def on_error(e: OSError) -> None:
            raise operation_error("list", e.filename or base, e) from e

        for dirpath, dirnames, filenames in os.walk(base, onerror=on_error):
            entries.extend(os.path.join(dirpath, d) for d in dirnames)
            entries.extend(os.path.join(dirpath, f) for f in filenames)
        return entries

    def copy(self, src: str, dst: str) -> None:
        try:
            shutil.copyfile(src, dst)
        except OSError as e:
            raise operation_error("copy", src, e) from e

    @contextmanager
    def open_delete_on_close(self, path: str) -> Iterator[BinaryIO]:
        if not self.supports_delete_on_close:
            raise FilesystemOperationError(
                "create", path, "delete-on-close is not supported on this platform"
            )
        try:
            fd = os.open(path, _CREATE_FLAGS | os.O_TEMPORARY)  # type: ignore[attr-defined]
        except OSError as e:
            raise operation_error("create", path, e) from e
        with os.fdopen(fd, "wb", buffering=0) as f:
            yield f  # type: ignore[misc]

    def volume_identity(self, mount_root: str) -> VolumeIdentity:
        return self.volume_client.read_identity(mount_root)

    def space(self, mount_root: str) -> SpaceInfo:
        return self.volume_client.read_space(mount_root)
