# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from dataclasses import dataclass
from typing import Optional


@dataclass
class ScenarioLog:
    """One scenario outcome as published to sinks."""

    node: Optional[str]
    helper: Optional[str]
    mountpoint: Optional[str]
    scenario: Optional[str]
    outcome: Optional[str]
    table_version: Optional[int]
    # msg is a reserved word in cpython's logging module for LogRecord class:
    # KeyError: "Attempt to overwrite 'msg' in LogRecord"
    _msg: Optional[str]
    start_time: Optional[float]
    end_time: Optional[float]
