# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from mountconf.exporters import register
from mountconf.monitoring.sink.protocol import SinkAdditionalParams
from mountconf.schemas.log import Log


@register("do_nothing")
class DoNothing:
    """Discard scenario records. The report printed on stdout is the only output."""

    def write(self, data: Log, additional_params: SinkAdditionalParams) -> None:
        pass
