# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import types
from dataclasses import dataclass
from typing import Callable, ContextManager, Literal, Optional, Tuple, Type

from mountconf.conformance.types import ExitCode


@dataclass
class OutputContext(ContextManager["OutputContext"]):
    """Prints the one line status, e.g. `CRITICAL - mount conformance`, when the
    command exits. With `verbose_out` the message is appended after a period."""

    name: str
    get_exit_code_msg: Callable[[], Tuple[ExitCode, str]]
    verbose_out: bool

    def __enter__(self) -> "OutputContext":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        exc_tb: Optional[types.TracebackType],
    ) -> Literal[False]:
        if exc_type is not None and not issubclass(exc_type, SystemExit):
            print("WARNING - command did not exit normally")
            return False

        exit_code, msg = self.get_exit_code_msg()
        line = f"{exit_code.label} - {self.name}"
        if self.verbose_out and msg:
            line += f". {msg}"
        print(line)
        return False
