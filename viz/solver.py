"""
PyBullet-backed kinematic solver for the viewer.

PyBullet runs headless (DIRECT) and is used purely kinematically: joints are
placed with ``resetJointState`` and link frames are read back with forward
kinematics. Link order follows PyBullet's joint order:
- 0: the base link
- i + 1: child link of joint i
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Sequence

import numpy as np

try:
    import pybullet as p
except ImportError as exc:  # pragma: no cover - runtime guard
    raise SystemExit("pybullet is not installed. Run `pip install -e .` first.") from exc

from common.interfaces import KinematicSolver
from viz.config import DEFAULT_CONFIG
from viz.transforms import pose_to_matrix


class BulletSolver(KinematicSolver):
    """
    Load a URDF into PyBullet and report URDF link frames.

    ``dof`` limits how many movable joints :meth:`step` sweeps; joints past it
    keep their value.
    """

    def __init__(
        self,
        urdf_path: str | Path,
        *,
        dof: int = DEFAULT_CONFIG.dof,
        joint_step: float = DEFAULT_CONFIG.joint_step,
    ) -> None:
        urdf_path = Path(urdf_path)
        if not urdf_path.exists():
            raise FileNotFoundError(f"URDF not found at {urdf_path}")
        self.client = p.connect(p.DIRECT)
        self.robot_id = p.loadURDF(str(urdf_path), useFixedBase=True, physicsClientId=self.client)
        self.dof = max(0, int(dof))
        self.joint_step = float(joint_step)

        self.base_name = p.getBodyInfo(self.robot_id, physicsClientId=self.client)[0].decode("utf-8")
        num_joints = p.getNumJoints(self.robot_id, physicsClientId=self.client)
        self.joint_indices: list[int] = list(range(num_joints))
        self.joint_names: list[str] = []
        self._link_names: list[str] = [self.base_name]
        self.movable_joint_indices: list[int] = []
        self.joint_limits: list[tuple[float, float]] = []
        for j in self.joint_indices:
            info = p.getJointInfo(self.robot_id, j, physicsClientId=self.client)
            self.joint_names.append(info[1].decode("utf-8"))
            self._link_names.append(info[12].decode("utf-8"))
            if info[2] == p.JOINT_FIXED:
                continue
            lower, upper = info[8], info[9]
            # Continuous joints and missing limits report lower >= upper.
            if lower >= upper:
                lower, upper = -math.pi, math.pi
            self.movable_joint_indices.append(j)
            self.joint_limits.append((lower, upper))
        self._directions = np.ones(len(self.movable_joint_indices))

        # Base pose is reported at the inertial frame; keep the offset to recover the link frame.
        dynamics = p.getDynamicsInfo(self.robot_id, -1, physicsClientId=self.client)
        self._base_inertial_inv = p.invertTransform(dynamics[3], dynamics[4])
        print(
            f"[Solver] loaded {urdf_path.name}: {len(self._link_names)} links, "
            f"{len(self.movable_joint_indices)} movable joints (sweeping {min(self.dof, len(self.movable_joint_indices))})"
        )

    def link_names(self) -> list[str]:
        return list(self._link_names)

    def link_transforms(self) -> list[np.ndarray]:
        base_pos, base_orn = p.getBasePositionAndOrientation(self.robot_id, physicsClientId=self.client)
        pos, orn = p.multiplyTransforms(base_pos, base_orn, *self._base_inertial_inv)
        transforms = [pose_to_matrix(pos, orn)]
        if self.joint_indices:
            states = p.getLinkStates(
                self.robot_id,
                self.joint_indices,
                computeForwardKinematics=True,
                physicsClientId=self.client,
            )
            # Entries 4/5 are the URDF link frame in world coordinates.
            transforms.extend(pose_to_matrix(state[4], state[5]) for state in states)
        return transforms

    def set_joint_positions(self, q: Sequence[float]) -> None:
        values = list(q)
        if len(values) != len(self.movable_joint_indices):
            raise ValueError(f"Expected {len(self.movable_joint_indices)} joint values, got {len(values)}")
        for idx, value in zip(self.movable_joint_indices, values):
            p.resetJointState(self.robot_id, idx, float(value), physicsClientId=self.client)

    def get_joint_positions(self) -> list[float]:
        if not self.movable_joint_indices:
            return []
        states = p.getJointStates(self.robot_id, self.movable_joint_indices, physicsClientId=self.client)
        return [float(s[0]) for s in states]

    def home(self) -> None:
        """Put every movable joint at zero, clamped into its limits."""
        self.set_joint_positions([min(max(0.0, lo), hi) for lo, hi in self.joint_limits])

    def step(self) -> None:
        """Advance the swept joints by one increment, bouncing off their limits."""
        count = min(self.dof, len(self.movable_joint_indices))
        if count == 0:
            return
        positions = np.array(self.get_joint_positions())
        limits = np.array(self.joint_limits)
        swept = slice(0, count)
        positions[swept] += self.joint_step * self._directions[swept]
        reverse = (positions <= limits[:, 0]) | (positions >= limits[:, 1])
        reverse[count:] = False
        self._directions[reverse] *= -1
        positions = np.clip(positions, limits[:, 0], limits[:, 1])
        self.set_joint_positions(positions.tolist())

    def disconnect(self) -> None:
        if p.isConnected(self.client):
            p.disconnect(self.client)
