# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import json
from dataclasses import asdict
from typing import Optional

import click

from mountconf.conformance.volume import default_volume_client, VolumeInfoClient
from typeguard import typechecked


@click.command(name="identity")
@click.argument("path", type=click.STRING)
@click.pass_obj
@typechecked
def volume_identity(obj: Optional[VolumeInfoClient], path: str) -> None:
    """Print the identity and space information of the volume mounted at PATH as JSON."""
    if obj is None:
        obj = default_volume_client()
    try:
        identity = obj.read_identity(path)
    except OSError as e:
        raise click.ClickException(f"Could not query the volume at {path}: {e}") from e
    space = obj.read_space(path)
    click.echo(
        json.dumps(
            {
                "identity": asdict(identity),
                "space": {**asdict(space), "error_message": space.error_message},
            }
        )
    )
