# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""A single entrypoint into the mount conformance probes.

This file is intentionally lightweight and should not include any complex logic.
"""

from typing import List

import click
from mountconf._version import __version__
from mountconf.conformance import probes
from mountconf.conformance.click import DEFAULT_CONFIG_PATH

from mountconf.monitoring.click import toml_config_option


@click.group(epilog=f"mountconf version: {__version__}")
@toml_config_option("mountconf", default_config_path=DEFAULT_CONFIG_PATH)
@click.version_option(__version__)
def mount_probes() -> None:
    """Conformance probes for user space mount helpers."""


list_of_probes: List[click.core.Command] = [
    probes.run_scenarios,
    probes.wait_for_mount,
    probes.volume_identity,
    probes.list_scenarios,
]

for probe in list_of_probes:
    mount_probes.add_command(probe)

if __name__ == "__main__":
    mount_probes()
