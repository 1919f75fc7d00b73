# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
import time
import types
from dataclasses import dataclass, field
from itertools import repeat
from typing import (
    Callable,
    Collection,
    ContextManager,
    Dict,
    List,
    Literal,
    Optional,
    Type,
    Union,
)

from mountconf.conformance.runner import RunReport, ScenarioResult
from mountconf.exporters import registry

from mountconf.monitoring.clock import ClockImpl
from mountconf.monitoring.decorators import log_error, retry, Retry
from mountconf.monitoring.sink.protocol import DataType, SinkAdditionalParams, SinkImpl
from mountconf.monitoring.sink.utils import Factory, make_sink
from mountconf.schemas.log import Log
from mountconf.schemas.scenario_result import ScenarioLog

# one try plus two retries, one second apart
SINK_WRITE_RETRIES = 2


def get_telemetry_record(
    node: str,
    helper: str,
    mountpoint: str,
    table_version: int,
    result: ScenarioResult,
) -> ScenarioLog:
    return ScenarioLog(
        node=node,
        helper=helper,
        mountpoint=mountpoint,
        scenario=result.name,
        outcome=result.outcome.value,
        table_version=table_version,
        _msg=result.message,
        start_time=result.start_time,
        end_time=result.end_time,
    )


@dataclass
class TelemetryContext(ContextManager["TelemetryContext"]):
    """Publishes one record per scenario of the run report to a sink on exit.

    The sink is created on entry so that bad sink options are reported before any
    mount is attempted.
    """

    sink: str
    sink_opts: Collection[str]
    logger: logging.Logger
    node: str
    helper: str
    get_report: Callable[[], Optional[RunReport]]
    telem_registry: Dict[str, Factory[SinkImpl]] = field(
        default_factory=lambda: registry
    )
    sleep: Callable[[Union[float, int]], None] = time.sleep

    def __enter__(self) -> "TelemetryContext":
        self.sink_impl = make_sink(self.sink, self.sink_opts, self.telem_registry)
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        exc_tb: Optional[types.TracebackType],
    ) -> Literal[False]:
        report = self.get_report()
        if report is None:
            return False
        records = [
            get_telemetry_record(
                node=self.node,
                helper=self.helper,
                mountpoint=report.mountpoint,
                table_version=report.table_version,
                result=result,
            )
            for result in report.results
        ]
        self.publish(records)
        return False

    def publish(self, records: List[ScenarioLog]) -> None:
        @log_error(self.logger.name)
        @retry(
            delays=lambda: repeat(1, SINK_WRITE_RETRIES),
            sleep=self.sleep,
        )
        def write() -> None:
            try:
                self.sink_impl.write(
                    data=Log(ts=ClockImpl().unixtime(), message=records),
                    additional_params=SinkAdditionalParams(data_type=DataType.LOG),
                )
            except OSError as e:
                self.logger.warning(f"Telemetry write failed, retrying: {e}")
                raise Retry() from e

        write()
