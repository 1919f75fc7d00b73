# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import json
import os

from mountconf.exporters import register
from mountconf.monitoring.sink.protocol import SinkAdditionalParams
from mountconf.monitoring.utils.monitor import init_logger
from mountconf.schemas.log import Log


@register("file")
class File:
    """Append scenario records to a file, one JSON object per line.

    The file is rotated like the harness logs are.
    """

    def __init__(self, *, file_path: str):
        self.logger, _ = init_logger(
            logger_name=f"{__name__}.{file_path}",
            log_dir=os.path.dirname(file_path) or os.curdir,
            log_name=os.path.basename(file_path),
            log_formatter=None,
        )
        # records must not leak into the root logger's handlers
        self.logger.propagate = False

    def write(
        self,
        data: Log,
        additional_params: SinkAdditionalParams,
    ) -> None:
        for record in data.records():
            self.logger.info(json.dumps({"ts": data.ts, **record}))
