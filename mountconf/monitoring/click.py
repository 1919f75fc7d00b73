# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Click plumbing shared by the harness commands."""

import logging
import textwrap
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, TypeVar, Union

import click
import tomli
from typeguard import typechecked
from typing_extensions import ParamSpec

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

IGNORED_CONFIG_PATHS = (Path("/dev/null"),)


def references_help(refs: Iterable[str]) -> str:
    """A numbered list of links for an option's help text. Click keeps paragraphs
    starting with \\b as they are.

    >>> references_help(["r1", "r2"])
    '\\x08\\nReferences:\\n  [1]: r1\\n  [2]: r2'
    """
    numbered = "\n".join(f"[{i}]: {ref}" for i, ref in enumerate(refs, start=1))
    return "\b\nReferences:\n" + textwrap.indent(numbered, " " * 2)


def read_config_table(path: Path, table: str) -> Dict[str, Any]:
    """Read one top-level table of a TOML file.

    Raises:
        ValueError if the file is not TOML or has no such table.
    """
    with path.open("rb") as f:
        try:
            conf = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ValueError(f"{path} does not contain valid TOML.") from e
    if not isinstance(conf.get(table), dict):
        raise ValueError(
            f"'{table}' is not a top-level table name in {path}. Valid names: {list(conf)}"
        )
    return conf[table]


def _config_callback(
    table: str,
) -> Callable[[click.Context, click.Parameter, Path], None]:
    @typechecked
    def callback(ctx: click.Context, param: click.Parameter, path: Path) -> None:
        if path in IGNORED_CONFIG_PATHS or not path.exists():
            return
        logger.info(f"Reading table '{table}' from {path}")
        try:
            defaults = read_config_table(path, table)
        except ValueError as e:
            raise click.BadParameter(str(e), ctx=ctx, param=param) from e
        # nested tables become the default maps of subcommands
        ctx.default_map = {**(ctx.default_map or {}), **defaults}

    return callback


def toml_config_option(
    table: str,
    *,
    default_config_path: Union[str, Path],
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Add a `--config PATH` option which fills in option defaults from `table` in a
    TOML file.

    Values given on the command line win over the file, which wins over the
    `default` of each option. On a group, `[table.<subcommand>]` configures the
    subcommand. A missing file, or /dev/null, configures nothing.
    """
    return click.option(
        "--config",
        type=click.Path(dir_okay=False, path_type=Path),
        callback=_config_callback(table),
        default=default_config_path,
        show_default=True,
        expose_value=False,
        is_eager=True,
        help=f"TOML file whose '{table}' table provides option defaults.",
    )
