# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional, Tuple

LOG_FORMAT = "[%(asctime)s] - [%(levelname)s] - [%(name)s] - %(message)s"
LOG_MAX_BYTES = 1024 * 1024
LOG_BACKUP_COUNT = 2


def init_logger(
    logger_name: str,
    log_dir: str,
    log_name: str,
    log_formatter: Optional[logging.Formatter] = logging.Formatter(LOG_FORMAT),
    log_level: int = logging.INFO,
) -> Tuple[logging.Logger, logging.Handler]:
    """Attach a rotating file handler writing to `{log_dir}/{log_name}` to the named
    logger. The directory is created if needed."""
    os.makedirs(log_dir, exist_ok=True)
    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)
    handler = RotatingFileHandler(
        os.path.join(log_dir, log_name),
        mode="a",
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
    )
    if log_formatter is not None:
        handler.setFormatter(log_formatter)
    logger.addHandler(handler)
    return logger, handler
