# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import click

from mountconf.conformance.scenarios import SCENARIO_TABLE_VERSION, SCENARIOS


@click.command(name="list")
def list_scenarios() -> None:
    """Print the scenario table."""
    click.echo(f"scenario table v{SCENARIO_TABLE_VERSION}")
    width = max(len(s.name) for s in SCENARIOS)
    for s in SCENARIOS:
        status = "pending" if s.pending else s.needs.value
        click.echo(f"{s.name:<{width}}  {status:<9}  {s.description}")
