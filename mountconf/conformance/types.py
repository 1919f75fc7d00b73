# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from enum import Enum
from typing import Literal

LOG_LEVEL = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class MountMode(Enum):
    READ_WRITE = "read-write"
    READ_ONLY = "read-only"


class SessionState(Enum):
    UNMOUNTED = "unmounted"
    MAPPING = "mapping"
    MOUNTED = "mounted"
    UNMAPPING = "unmapping"
    FAILED = "failed"


class ScenarioOutcome(Enum):
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"
    PENDING = "pending"


class ExitCode(Enum):
    """Process exit codes, following the Nagios plugin convention
    https://assets.nagios.com/downloads/nagioscore/docs/nagioscore/3/en/pluginapi.html"""

    OK = 0
    WARN = 1
    CRITICAL = 2
    # the command died before it could decide
    UNKNOWN = 3

    @property
    def label(self) -> str:
        return "WARNING" if self is ExitCode.WARN else self.name
