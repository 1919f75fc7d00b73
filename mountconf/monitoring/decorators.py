# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Retry and error logging decorators for best-effort side effects such as
publishing telemetry."""

import logging
import time
from functools import wraps
from itertools import repeat
from typing import Callable, Iterable, Optional, TypeVar, Union

from typing_extensions import ParamSpec

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")
T = TypeVar("T")


class Retry(Exception):
    """Raised by a decorated function to ask for another try."""


class OutOfRetries(Exception):
    """Every try asked for a retry."""


def retry(
    *,
    delays: Callable[[], Iterable[float]] = lambda: repeat(1, 2),
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Call the function again, after the next delay, each time it raises `Retry`.

    `delays` is called once per invocation; the function is tried at most one more
    time than the number of delays it yields. Any other exception propagates
    immediately.

    >>> @retry(delays=lambda: [1, 5])
    ... def publish():
    ...   try:
    ...     sink.write(...)
    ...   except OSError as e:
    ...     raise Retry() from e
    """

    def decorator(f: Callable[P, R]) -> Callable[P, R]:
        @wraps(f)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            pending = iter(delays())
            attempt = 0
            while True:
                try:
                    return f(*args, **kwargs)
                except Retry as e:
                    delay = next(pending, None)
                    if delay is None:
                        raise OutOfRetries(
                            f"{f.__name__} gave up after {attempt + 1} tries"
                        ) from e
                    logger.debug(
                        f"{f.__name__} try {attempt} asked for a retry in {delay}s",
                        exc_info=True,
                    )
                    sleep(delay)
                    attempt += 1

        return wrapper

    return decorator


def log_error(
    logger_name: str, return_on_error: Optional[T] = None
) -> Callable[[Callable[P, R]], Callable[P, Union[R, Optional[T]]]]:
    """Log any exception raised by the function to the named logger and return
    `return_on_error` instead."""

    def decorator(f: Callable[P, R]) -> Callable[P, Union[R, Optional[T]]]:
        @wraps(f)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> Union[R, Optional[T]]:
            try:
                return f(*args, **kwargs)
            except Exception:
                logging.getLogger(logger_name).exception(f"{f.__name__} failed")
                return return_on_error

        return wrapper

    return decorator
