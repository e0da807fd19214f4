"""Shared fakes and URDF fixtures for the viewer tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

import numpy as np
import pytest

from common.interfaces import CommandResult, CommandRunner, MeshImporter
from viz.mesh_loader import ImportedMesh


class FakeRunner(CommandRunner):
    """Record commands and answer them from a handler instead of spawning processes."""

    def __init__(self, handler: Callable[[list[str]], CommandResult] | None = None) -> None:
        self.calls: list[list[str]] = []
        self.handler = handler or (lambda args: CommandResult(0, "", ""))

    def run(self, args: Sequence[str]) -> CommandResult:
        args = [str(a) for a in args]
        self.calls.append(args)
        return self.handler(args)


def rospack(packages: dict[str, str]) -> FakeRunner:
    """A runner that behaves like ``rospack find`` for the given packages."""

    def handler(args: list[str]) -> CommandResult:
        package = args[-1]
        if package in packages:
            return CommandResult(0, packages[package] + "\n", "")
        return CommandResult(1, "", f"[rospack] Error: package '{package}' not found\n")

    return FakeRunner(handler)


class FakeImporter(MeshImporter):
    """Return canned sub-meshes for any path, counting reads."""

    def __init__(self, meshes: list[ImportedMesh] | None = None) -> None:
        self.meshes = meshes if meshes is not None else [triangle_mesh()]
        self.reads: list[Path] = []

    def read(self, path: Path) -> list[ImportedMesh]:
        self.reads.append(Path(path))
        return self.meshes


def triangle_mesh() -> ImportedMesh:
    return ImportedMesh(
        vertices=np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]),
        faces=[[0, 1, 2]],
    )


ROBOT_URDF = """<?xml version="1.0"?>
<robot name="two_link">
  <material name="blue">
    <color rgba="0 0 1 1"/>
  </material>
  <link name="base_link">
    <visual>
      <geometry><box size="0.2 0.2 0.1"/></geometry>
      <material name="blue"/>
    </visual>
  </link>
  <link name="arm">
    <visual>
      <origin xyz="0 0 0.25" rpy="0 0 0"/>
      <geometry><cylinder radius="0.05" length="0.5"/></geometry>
      <material name="red"><color rgba="1 0 0 1"/></material>
    </visual>
  </link>
  <link name="tip">
    <visual>
      <geometry><sphere radius="0.04"/></geometry>
    </visual>
  </link>
  <joint name="shoulder" type="revolute">
    <parent link="base_link"/>
    <child link="arm"/>
    <origin xyz="0 0 0.05"/>
    <axis xyz="0 1 0"/>
    <limit lower="-1.0" upper="1.0" effort="1" velocity="1"/>
  </joint>
  <joint name="tip_joint" type="fixed">
    <parent link="arm"/>
    <child link="tip"/>
    <origin xyz="0 0 0.5"/>
  </joint>
</robot>
"""


@pytest.fixture
def robot_urdf(tmp_path: Path) -> Path:
    path = tmp_path / "two_link.urdf"
    path.write_text(ROBOT_URDF)
    return path


@pytest.fixture
def write_urdf(tmp_path: Path) -> Callable[[str, str], Path]:
    def _write(body: str, name: str = "robot.urdf") -> Path:
        path = tmp_path / name
        path.write_text(f'<?xml version="1.0"?>\n<robot name="test">\n{body}\n</robot>\n')
        return path

    return _write
