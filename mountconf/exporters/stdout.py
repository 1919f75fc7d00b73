# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import json
import logging

from mountconf.exporters import register
from mountconf.monitoring.sink.protocol import DataType, SinkAdditionalParams
from mountconf.schemas.log import Log

logger = logging.getLogger(__name__)


@register("stdout")
class Stdout:
    """Print each batch of scenario records to stdout as a JSON array."""

    def write(
        self,
        data: Log,
        additional_params: SinkAdditionalParams,
    ) -> None:
        if additional_params.data_type is not DataType.LOG:
            logger.error(f"Only scenario logs can be printed, got {additional_params}")
            return
        print(json.dumps(data.records()))
