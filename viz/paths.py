"""
Resolve mesh references from a URDF into filesystem paths.

Two forms are understood:
- ``package://<pkg>/<rest>``: ``<pkg>`` is looked up with ``rospack find`` (or
  the configured locator command) and replaced by the returned directory.
- anything else: joined onto the directory that holds the URDF file.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Sequence

from common.interfaces import CommandRunner
from viz.config import DEFAULT_CONFIG
from viz.process import SubprocessRunner

PACKAGE_PREFIX = "package://"
PACKAGE_PATTERN = re.compile(r"^package://(\w+)/")


class PackageLocator:
    """Find the install directory of a ROS package through an external command."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        command: Sequence[str] = DEFAULT_CONFIG.package_locator_command,
    ) -> None:
        self.runner = runner or SubprocessRunner()
        self.command = tuple(command)
        self._found: dict[str, str | None] = {}

    def find(self, package: str) -> str | None:
        """Return the package directory, or None when the locator exits non-zero."""
        if package in self._found:
            return self._found[package]
        try:
            result = self.runner.run([*self.command, package])
        except FileNotFoundError as exc:
            raise SystemExit(
                f"failed to execute {self.command[0]} while looking up '{package}'. "
                "Source your ROS environment or install rospack."
            ) from exc
        found = result.stdout.strip() if result.ok else None
        self._found[package] = found or None
        return self._found[package]


def expand_package_path(filename: str, base_dir: str | Path, locator: PackageLocator | None = None) -> str:
    """
    Turn a URDF mesh ``filename`` into a path string.

    No existence check happens here; callers decide what to do with a path that
    does not exist. An unknown package is fatal.
    """
    if filename.startswith(PACKAGE_PREFIX):
        locator = locator or PackageLocator()

        def _replace(match: re.Match) -> str:
            package = match.group(1)
            found = locator.find(package)
            if found is None:
                raise SystemExit(f"failed to find ros package {package}")
            return found.rstrip("/") + "/"

        return PACKAGE_PATTERN.sub(_replace, filename, count=1)
    return str(Path(base_dir) / filename)
