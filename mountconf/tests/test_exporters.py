# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import json
import logging
from pathlib import Path
from typing import List

import click
import pytest

from mountconf.conformance.check_utils.telem import get_telemetry_record, TelemetryContext
from mountconf.conformance.runner import RunReport, ScenarioResult
from mountconf.conformance.types import ScenarioOutcome
from mountconf.exporters import registry
from mountconf.exporters.file import File
from mountconf.exporters.stdout import Stdout
from mountconf.monitoring.sink.protocol import DataType, SinkAdditionalParams
from mountconf.monitoring.sink.utils import make_sink
from mountconf.schemas.log import Log
from mountconf.schemas.scenario_result import ScenarioLog

RESULT = ScenarioResult(
    name="io_round_trip",
    outcome=ScenarioOutcome.PASSED,
    start_time=1.0,
    end_time=2.0,
)


def _record() -> ScenarioLog:
    return get_telemetry_record(
        node="node1",
        helper="ceph-dokan",
        mountpoint="X:\\",
        table_version=3,
        result=RESULT,
    )


def test_registry() -> None:
    assert {"do_nothing", "stdout", "file"} <= set(registry)


def test_stdout(capsys: pytest.CaptureFixture) -> None:
    Stdout().write(
        Log(ts=0, message=[_record()]),
        SinkAdditionalParams(data_type=DataType.LOG),
    )

    [payload] = json.loads(capsys.readouterr().out)
    assert payload["scenario"] == "io_round_trip"
    assert payload["outcome"] == "passed"
    assert payload["_msg"] == ""


def test_file(tmp_path: Path) -> None:
    path = tmp_path / "out" / "results.json"
    sink = File(file_path=str(path))

    sink.write(
        Log(ts=42, message=[_record(), _record()]),
        SinkAdditionalParams(data_type=DataType.LOG),
    )

    lines = path.read_text().splitlines()
    assert len(lines) == 2
    assert json.loads(lines[0])["ts"] == 42
    assert json.loads(lines[0])["mountpoint"] == "X:\\"


def test_make_sink_errors() -> None:
    with pytest.raises(click.UsageError, match="could not be found"):
        make_sink("nope", [], registry)
    with pytest.raises(click.UsageError):
        make_sink("file", [], registry)
    with pytest.raises(click.UsageError):
        make_sink("file", ["file_path=results.json", "unexpected=1"], registry)


class RecordingSink:
    def __init__(self, failures: int = 0):
        self.failures = failures
        self.logs: List[Log] = []

    def write(self, data: Log, additional_params: SinkAdditionalParams) -> None:
        if self.failures:
            self.failures -= 1
            raise OSError("sink unavailable")
        self.logs.append(data)


def _report() -> RunReport:
    return RunReport(mountpoint="X:\\", results=[RESULT])


def test_telemetry_context_publishes_report() -> None:
    sink = RecordingSink()

    with TelemetryContext(
        sink="recording",
        sink_opts=[],
        logger=logging.getLogger("test"),
        node="node1",
        helper="ceph-dokan",
        get_report=_report,
        telem_registry={"recording": lambda: sink},
    ):
        pass

    [log] = sink.logs
    [record] = list(log.message)
    assert record == _record()


def test_telemetry_context_retries(caplog: pytest.LogCaptureFixture) -> None:
    sink = RecordingSink(failures=1)
    sleeps: List[float] = []

    with TelemetryContext(
        sink="recording",
        sink_opts=[],
        logger=logging.getLogger("test"),
        node="node1",
        helper="ceph-dokan",
        get_report=_report,
        telem_registry={"recording": lambda: sink},
        sleep=sleeps.append,
    ):
        pass

    assert len(sink.logs) == 1
    assert sleeps == [1]


def test_telemetry_failure_does_not_raise(caplog: pytest.LogCaptureFixture) -> None:
    sink = RecordingSink(failures=100)

    with caplog.at_level(logging.WARNING):
        with TelemetryContext(
            sink="recording",
            sink_opts=[],
            logger=logging.getLogger("test"),
            node="node1",
            helper="ceph-dokan",
            get_report=_report,
            telem_registry={"recording": lambda: sink},
            sleep=lambda _: None,
        ):
            pass

    assert sink.logs == []
    assert [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR] == [
        "write failed"
    ]


def test_telemetry_without_report() -> None:
    sink = RecordingSink()

    with TelemetryContext(
        sink="recording",
        sink_opts=[],
        logger=logging.getLogger("test"),
        node="node1",
        helper="ceph-dokan",
        get_report=lambda: None,
        telem_registry={"recording": lambda: sink},
    ):
        pass

    assert sink.logs == []
