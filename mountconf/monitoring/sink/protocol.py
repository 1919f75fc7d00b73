# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from dataclasses import dataclass
from enum import auto, Enum
from typing import Optional, Protocol, runtime_checkable

from mountconf.schemas.log import Log


class DataType(Enum):
    LOG = auto()


@dataclass
class SinkAdditionalParams:
    """Describes the batch being written. Sinks may ignore it."""

    data_type: Optional[DataType] = None


@runtime_checkable
class SinkImpl(Protocol):
    """Where scenario outcomes are published. Implementations live in `mountconf.exporters`."""

    def write(
        self,
        data: Log,
        additional_params: SinkAdditionalParams,
    ) -> None: ...
