"""
Interfaces for the collaborators the viewer core talks to.

Conventions:
- External programs (``rospack``, ``xacro``) are only reached through a
  :class:`CommandRunner` so tests can substitute a fake without spawning
  processes.
- A :class:`KinematicSolver` reports link names and link transforms in the same
  order; the viewer joins the two by name, never by index.
- Transforms are 4x4 homogeneous matrices (numpy, column-vector convention).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple, Sequence

if TYPE_CHECKING:
    import numpy as np

    from viz.mesh_loader import ImportedMesh


class CommandResult(NamedTuple):
    """Outcome of one external command."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(ABC):
    """Run an external program synchronously and capture its output."""

    @abstractmethod
    def run(self, args: Sequence[str]) -> CommandResult:
        """
        Execute ``args`` (program first) and wait for it to finish.

        Raises FileNotFoundError when the program itself cannot be found.
        """
        raise NotImplementedError


class MeshImporter(ABC):
    """Parse a mesh file into sub-meshes with vertex positions and faces."""

    @abstractmethod
    def read(self, path: Path) -> list["ImportedMesh"]:
        """
        Return every sub-mesh in ``path`` with vertices already expressed in
        one common frame. Raise on unreadable or unsupported files.
        """
        raise NotImplementedError


class KinematicSolver(ABC):
    """Source of per-link transforms for the frame loop."""

    @abstractmethod
    def link_names(self) -> list[str]:
        """Names of the links, in the same order as :meth:`link_transforms`."""
        raise NotImplementedError

    @abstractmethod
    def link_transforms(self) -> list["np.ndarray"]:
        """World transform (4x4) of every link for the current joint state."""
        raise NotImplementedError

    @abstractmethod
    def set_joint_positions(self, q: Sequence[float]) -> None:
        """Set the movable joints (radians / meters) in the solver's joint order."""
        raise NotImplementedError

    @abstractmethod
    def get_joint_positions(self) -> list[float]:
        """Return the movable joint values in the same order as set_joint_positions."""
        raise NotImplementedError

    def step(self) -> None:
        """
        Optional hook: advance the joint state by one frame.

        Default implementation keeps the current state.
        """
