# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import contextlib
from contextlib import ExitStack

import pytest
from pytest import CaptureFixture

from mountconf.conformance.check_utils.output_context_manager import OutputContext
from mountconf.conformance.types import ExitCode

exit_codes = [
    (ExitCode.OK, "OK"),
    (ExitCode.WARN, "WARNING"),
    (ExitCode.CRITICAL, "CRITICAL"),
    (ExitCode.UNKNOWN, "UNKNOWN"),
]


@pytest.mark.parametrize("exit_code, expected", exit_codes)
def test_output_context_manager(
    capsys: CaptureFixture, exit_code: ExitCode, expected: str
) -> None:
    with ExitStack() as s:
        s.enter_context(
            OutputContext(
                "mount conformance",
                lambda: (exit_code, "random msg"),
                False,
            )
        )

    captured = capsys.readouterr()
    assert captured.out == f"{expected} - mount conformance\n"


def test_output_context_manager_verbose(capsys: CaptureFixture) -> None:
    with OutputContext(
        "mount conformance", lambda: (ExitCode.CRITICAL, "read_only: failed"), True
    ):
        pass

    captured = capsys.readouterr()
    assert captured.out == "CRITICAL - mount conformance. read_only: failed\n"


def test_output_context_manager_exception(capsys: CaptureFixture) -> None:
    with (
        contextlib.suppress(RuntimeError),
        OutputContext(
            "mount conformance",
            lambda: (ExitCode.OK, "random msg"),
            False,
        ),
    ):
        raise RuntimeError("boom")

    captured = capsys.readouterr()
    assert "WARNING - command did not exit normally" in captured.out


def test_output_context_manager_on_exit(capsys: CaptureFixture) -> None:
    with pytest.raises(SystemExit):
        with OutputContext("mount conformance", lambda: (ExitCode.WARN, ""), False):
            raise SystemExit(ExitCode.WARN.value)

    assert capsys.readouterr().out == "WARNING - mount conformance\n"
