# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
import subprocess
import sys
from typing import List, Sequence
from unittest.mock import MagicMock

import pytest

from mountconf.conformance.errors import JoinError, SpawnError
from mountconf.conformance.subprocess import run_command, SubprocessController
from mountconf.tests.fakes import FakePopen


class RecordingPopen:
    def __init__(self) -> None:
        self.processes: List[FakePopen] = []

    def __call__(self, cmd: Sequence[str], **kwargs: object) -> FakePopen:
        assert kwargs["stdin"] == subprocess.DEVNULL
        assert kwargs["stdout"] == subprocess.PIPE
        p = FakePopen(cmd)
        self.processes.append(p)
        return p


class TestSubprocessController:
    @staticmethod
    def test_spawn_and_join() -> None:
        popen = RecordingPopen()
        controller = SubprocessController(popen=popen, children_of=lambda pid: [])

        record = controller.spawn("ceph-dokan", ["map", "-l", "X:\\"])
        assert record.args == ["ceph-dokan", "map", "-l", "X:\\"]
        assert not record.joined

        popen.processes[0].exit(0)
        assert controller.join(record, timeout_secs=1) == 0
        assert record.joined
        # joining again returns the recorded exit code
        assert controller.join(record) == 0

    @staticmethod
    def test_nonzero_exit_is_surfaced() -> None:
        popen = RecordingPopen()
        controller = SubprocessController(popen=popen, children_of=lambda pid: [])
        record = controller.spawn("ceph-dokan", [])

        popen.processes[0].exit(3)

        assert controller.join(record, timeout_secs=1) == 3

    @staticmethod
    def test_spawn_failure() -> None:
        def popen(cmd: Sequence[str], **kwargs: object) -> FakePopen:
            raise FileNotFoundError(2, "No such file or directory", cmd[0])

        controller = SubprocessController(popen=popen)

        with pytest.raises(SpawnError, match="missing-helper"):
            controller.spawn("missing-helper", ["map"])

    @staticmethod
    def test_join_timeout_kills_process_tree() -> None:
        popen = RecordingPopen()
        child = MagicMock()
        controller = SubprocessController(popen=popen, children_of=lambda pid: [child])
        record = controller.spawn("ceph-dokan", [])

        with pytest.raises(JoinError):
            controller.join(record, timeout_secs=5)

        child.kill.assert_called_once_with()
        assert popen.processes[0].killed
        assert record.exit_code == -9

    @staticmethod
    def test_spawned_reaps_on_error() -> None:
        popen = RecordingPopen()
        controller = SubprocessController(popen=popen, children_of=lambda pid: [])

        with pytest.raises(RuntimeError):
            with controller.spawned("ceph-dokan", []) as record:
                raise RuntimeError("boom")

        assert popen.processes[0].killed
        assert record.joined


    @staticmethod
    def test_helper_output_is_logged(
        caplog: pytest.LogCaptureFixture, capfd: pytest.CaptureFixture
    ) -> None:
        controller = SubprocessController()

        with caplog.at_level(logging.INFO, logger="mountconf.conformance.subprocess"):
            record = controller.spawn(
                sys.executable,
                [
                    "-c",
                    "import sys; print('mapped X:'); print('warn', file=sys.stderr)",
                ],
            )
            assert controller.join(record, timeout_secs=60) == 0

        assert "mapped X:" in caplog.text
        assert "warn" in caplog.text
        assert capfd.readouterr().out == ""


class TestRunCommand:
    @staticmethod
    def test_captures_combined_output() -> None:
        out = run_command(
            [
                sys.executable,
                "-c",
                "import sys; print('out'); sys.stdout.flush(); print('err', file=sys.stderr)",
            ],
            timeout_secs=60,
        )

        assert out.returncode == 0
        assert out.stdout.split() == ["out", "err"]

    @staticmethod
    def test_timeout() -> None:
        with pytest.raises(subprocess.TimeoutExpired):
            run_command(
                [sys.executable, "-c", "import time; time.sleep(30)"], timeout_secs=0.5
            )
