"""Homogeneous transform helpers shared by the solver, builder and registry."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

try:
    from panda3d.core import LMatrix4f
except ImportError as exc:  # pragma: no cover - runtime guard
    raise SystemExit("Panda3D is not installed. Try `pip install panda3d`.") from exc


def rpy_to_matrix(rpy: Sequence[float]) -> np.ndarray:
    """Roll-pitch-yaw (radians) to a 3x3 rotation, R = Rz @ Ry @ Rx as URDF defines it."""
    roll, pitch, yaw = (float(v) for v in rpy)
    cr, sr = math.cos(roll), math.sin(roll)
    cp, sp = math.cos(pitch), math.sin(pitch)
    cy, sy = math.cos(yaw), math.sin(yaw)
    r_x = np.array([[1.0, 0.0, 0.0], [0.0, cr, -sr], [0.0, sr, cr]])
    r_y = np.array([[cp, 0.0, sp], [0.0, 1.0, 0.0], [-sp, 0.0, cp]])
    r_z = np.array([[cy, -sy, 0.0], [sy, cy, 0.0], [0.0, 0.0, 1.0]])
    return r_z @ r_y @ r_x


def axis_angle_to_matrix(axis: Sequence[float], angle: float) -> np.ndarray:
    """Rotation of ``angle`` radians about ``axis`` (Rodrigues), as a 3x3 matrix."""
    a = np.asarray(axis, dtype=float)
    a = a / np.linalg.norm(a)
    k = np.array([[0.0, -a[2], a[1]], [a[2], 0.0, -a[0]], [-a[1], a[0], 0.0]])
    return np.eye(3) + math.sin(angle) * k + (1.0 - math.cos(angle)) * (k @ k)


def quat_xyzw_to_matrix(quat: Sequence[float]) -> np.ndarray:
    """Unit quaternion in (x, y, z, w) order, as PyBullet reports it, to a 3x3 rotation."""
    x, y, z, w = (float(v) for v in quat)
    return np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
            [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
            [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
        ]
    )


def make_transform(rotation: np.ndarray | None = None, translation: Sequence[float] | None = None) -> np.ndarray:
    """Assemble a 4x4 homogeneous matrix from a 3x3 rotation and a translation."""
    transform = np.eye(4)
    if rotation is not None:
        transform[:3, :3] = rotation
    if translation is not None:
        transform[:3, 3] = np.asarray(translation, dtype=float)
    return transform


def pose_to_matrix(position: Sequence[float], quat_xyzw: Sequence[float]) -> np.ndarray:
    return make_transform(quat_xyzw_to_matrix(quat_xyzw), position)


def origin_to_matrix(xyz: Sequence[float], rpy: Sequence[float]) -> np.ndarray:
    return make_transform(rpy_to_matrix(rpy), xyz)


def to_panda_mat(transform) -> LMatrix4f:
    """
    Convert a 4x4 column-vector transform into Panda3D's row-vector LMatrix4f.

    LMatrix4f instances pass through untouched.
    """
    if isinstance(transform, LMatrix4f):
        return transform
    arr = np.asarray(transform, dtype=float)
    if arr.shape != (4, 4):
        raise ValueError(f"Expected a 4x4 transform, got shape {arr.shape}")
    return LMatrix4f(*(float(v) for v in arr.T.ravel()))
