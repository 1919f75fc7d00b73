# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import os
import socket

import pytest
from dotenv import load_dotenv

from mountconf.tests.config import Config


@pytest.fixture
def config() -> Config:
    # loads .env file if any
    load_dotenv()
    try:
        return Config.from_env(os.environ)
    except KeyError:
        # in CI the helper is configured, so a missing value is a real error
        hostname = socket.gethostname()
        if "CI" in os.environ and "MOUNTCONF_TEST_HELPER" in os.environ:
            raise
        pytest.skip(
            f"No mount helper configured for live tests. Hostname: {hostname}"
        )


def pytest_configure(config: "pytest.Config") -> None:
    config.addinivalue_line(
        "markers", "live: the test maps a real volume through the mount helper"
    )
