"""
Expand ``.xacro`` robot descriptions into plain URDF files.

The expanded file is written under a cache directory that mirrors the source
path, e.g. ``/home/me/robot.xacro`` becomes
``/tmp/urdf_viz/home/me/robot.urdf``. Every call reconverts; nothing checks
whether the cached file is still fresh.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from common.interfaces import CommandRunner
from viz.config import DEFAULT_CONFIG
from viz.process import SubprocessRunner

XACRO_SUFFIX = ".xacro"
URDF_SUFFIX = ".urdf"


class XacroConversionError(RuntimeError):
    """The xacro tool exited with a failure status."""


def is_xacro(path: str | Path) -> bool:
    return Path(path).suffix == XACRO_SUFFIX


def create_parent_dir(path: str | Path) -> None:
    """Create the parent directory of ``path`` (recursively) when it is missing."""
    parent = Path(path).parent
    if not parent.is_dir():
        print(f"[Xacro] creating dir {parent}")
        parent.mkdir(parents=True, exist_ok=True)


class XacroBridge:
    """Run the xacro tool to materialize plain URDF files in a cache directory."""

    def __init__(
        self,
        cache_dir: str | Path = DEFAULT_CONFIG.cache_dir,
        runner: CommandRunner | None = None,
        command: Sequence[str] = DEFAULT_CONFIG.xacro_command,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.runner = runner or SubprocessRunner()
        self.command = tuple(command)

    def cache_path_for(self, path: str | Path) -> Path:
        """Where the URDF expanded from ``path`` is written."""
        source = Path(path).expanduser().resolve()
        # Only the last suffix is swapped, so arm.xacro and arm.urdf.xacro stay apart.
        name = source.with_suffix(URDF_SUFFIX).name
        relative = source.parent.relative_to(source.anchor)
        return self.cache_dir / relative / name

    def convert(self, source: str | Path, target: str | Path) -> Path:
        """Expand ``source`` into ``target``; raises XacroConversionError on failure."""
        target = Path(target)
        create_parent_dir(target)
        args = [*self.command, str(source), "-o", str(target)]
        try:
            result = self.runner.run(args)
        except FileNotFoundError as exc:
            raise SystemExit(
                f"failed to execute {self.command[0]}. Install xacro (apt-get install ros-<distro>-xacro)."
            ) from exc
        if not result.ok:
            print(f"[Xacro] {result.stderr.strip()}")
            raise XacroConversionError("failed to convert xacro")
        return target

    def convert_if_needed(self, path: str | Path) -> Path:
        """Return a plain URDF path for ``path``, expanding xacro input into the cache."""
        path = Path(path)
        if not is_xacro(path):
            return path
        target = self.cache_path_for(path)
        print(f"[Xacro] expanding {path} -> {target}")
        return self.convert(path, target)
