"""Subprocess-backed :class:`common.interfaces.CommandRunner`."""

from __future__ import annotations

import subprocess
from typing import Sequence

from common.interfaces import CommandResult, CommandRunner


class SubprocessRunner(CommandRunner):
    """
    Run external tools with :func:`subprocess.run` and capture their output.

    No timeout is applied; the viewer only shells out during setup.
    """

    def run(self, args: Sequence[str]) -> CommandResult:
        completed = subprocess.run(
            [str(a) for a in args],
            capture_output=True,
            text=True,
            check=False,
        )
        return CommandResult(completed.returncode, completed.stdout, completed.stderr)
