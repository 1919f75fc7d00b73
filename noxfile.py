# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from typing import Dict, Optional

import nox

SRC_DIRS = [
    "mountconf",
]


def _install(session: nox.Session) -> None:
    session.install("-r", "dev-requirements.txt")
    session.install("--no-deps", "-e", ".")


def _env(session: nox.Session) -> Optional[Dict[str, str]]:
    env_fname = ".env"
    try:
        return _env_from_file(env_fname)
    except FileNotFoundError:
        session.debug(
            f"File '{env_fname}' does not exist. Not running with modified environment."
        )
        return None


@nox.session
def tests(session: nox.Session) -> None:
    _install(session)
    session.run(
        "pytest",
        "-m",
        "not live",
        "-n",
        "auto",
        *session.posargs,
        env=_env(session),
    )


@nox.session
def live_tests(session: nox.Session) -> None:
    """Map a real volume; needs MOUNTCONF_TEST_HELPER and MOUNTCONF_TEST_MOUNTPOINT."""
    _install(session)
    session.run("pytest", "-m", "live", *session.posargs, env=_env(session))


def _env_from_file(fname: str) -> Dict[str, str]:
    with open(fname) as f:
        env = {}
        for line in f:
            k, v = line.rstrip().split("=", maxsplit=1)
            env[k] = v
        return env


@nox.session
def lint(session: nox.Session) -> None:
    _install(session)
    session.run(
        "flake8",
        "--per-file-ignores=mountconf/_version.py:F401",
        *SRC_DIRS,
    )


@nox.session
def format(session: nox.Session) -> None:
    _install(session)
    session.run(
        "ufmt",
        "check",
        *SRC_DIRS,
    )


@nox.session
def typecheck(session: nox.Session) -> None:
    _install(session)
    session.run("mypy", *SRC_DIRS)
