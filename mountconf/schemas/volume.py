# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import os
from dataclasses import dataclass

NO_ERROR = "no error"


@dataclass(frozen=True)
class VolumeIdentity:
    label: str
    filesystem_type_name: str
    serial_number: int
    max_component_length: int
    flags: int


@dataclass(frozen=True)
class SpaceInfo:
    capacity: int
    free: int
    available: int
    error_code: int = 0

    @property
    def error_message(self) -> str:
        if self.error_code == 0:
            return NO_ERROR
        return os.strerror(self.error_code)
