# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import time
from typing import Protocol


class Clock(Protocol):
    """Time as seen by the readiness poller and the telemetry publisher.

    `monotonic` is only meaningful as a difference between two readings; successive
    readings never decrease.
    """

    def unixtime(self) -> int: ...

    def monotonic(self) -> float: ...

    def sleep(self, duration_sec: float) -> None: ...


class ClockImpl:
    def unixtime(self) -> int:
        return int(time.time())

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, duration_sec: float) -> None:
        time.sleep(duration_sec)
