# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Helper functionality for click commands"""

import textwrap
from functools import wraps
from typing import Callable, get_args, TypeVar

import click
from mountconf.conformance.readiness import MOUNT_POLL_ATTEMPTS, MOUNT_POLL_INTERVAL_MS
from mountconf.conformance.types import LOG_LEVEL
from mountconf.exporters import registry

from mountconf.monitoring.click import references_help
from mountconf.monitoring.sink.utils import describe_sinks
from typing_extensions import ParamSpec

P = ParamSpec("P")
R = TypeVar("R")


DEFAULT_CONFIG_PATH = "/etc/mountconf/config.toml"


def common_arguments(f: Callable[P, R]) -> Callable[P, R]:
    @click.option(
        "--log-level",
        type=click.Choice(get_args(LOG_LEVEL)),
        default="INFO",
        show_default=True,
        help="Logging verbosity level.",
    )
    @click.option(
        "--log-folder",
        type=click.Path(file_okay=False),
        default="mountconf",
        help="The folder where logs will be stored.",
    )
    @wraps(f)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return f(*args, **kwargs)

    return wrapper


def poll_arguments(f: Callable[P, R]) -> Callable[P, R]:
    @click.option(
        "--poll-attempts",
        type=click.IntRange(min=1),
        default=MOUNT_POLL_ATTEMPTS,
        show_default=True,
        help="How many times the mount point is checked before giving up.",
    )
    @click.option(
        "--poll-interval-ms",
        type=click.IntRange(min=0),
        default=MOUNT_POLL_INTERVAL_MS,
        show_default=True,
        help="Milliseconds to wait between two readiness checks.",
    )
    @wraps(f)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return f(*args, **kwargs)

    return wrapper


def telemetry_argument(f: Callable[P, R]) -> Callable[P, R]:
    @click.option(
        "--sink",
        type=click.Choice(list(registry)),
        default="do_nothing",
        show_default=True,
        help="The sink where scenario outcomes should be published."
        + "\n\n"
        + "Sink documentation:\n\n\n\b\n"
        + textwrap.indent(
            describe_sinks(registry),
            prefix=" " * 2,
            predicate=lambda _: True,
        )
        + references_help(
            [
                "https://omegaconf.readthedocs.io/en/2.2_branch/usage.html#from-a-dot-list",
            ]
        ),
    )
    @click.option(
        "--sink-opt",
        "-o",
        "sink_opts",
        multiple=True,
        help="Sink initialization options in OmegaConf dot-list syntax (see [1]).",
    )
    @click.option(
        "--verbose-out",
        is_flag=True,
        help="Flag for printing verbose output on stdout",
    )
    @wraps(f)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return f(*args, **kwargs)

    return wrapper
