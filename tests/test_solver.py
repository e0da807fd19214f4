"""Tests for the PyBullet-backed kinematic solver."""

import math

import numpy as np
import pytest

from viz.solver import BulletSolver


@pytest.fixture
def solver(robot_urdf):
    s = BulletSolver(robot_urdf, dof=6, joint_step=0.01)
    yield s
    s.disconnect()


def test_link_names_follow_joint_order(solver):
    assert solver.link_names() == ["base_link", "arm", "tip"]
    assert solver.joint_names == ["shoulder", "tip_joint"]
    assert len(solver.movable_joint_indices) == 1
    assert solver.joint_limits == [pytest.approx((-1.0, 1.0))]


def test_zero_pose_transforms(solver):
    transforms = solver.link_transforms()
    assert len(transforms) == 3
    for t in transforms:
        assert t.shape == (4, 4)
        np.testing.assert_allclose(t[3], [0, 0, 0, 1])
    np.testing.assert_allclose(transforms[0][:3, 3], [0.0, 0.0, 0.0], atol=1e-6)
    np.testing.assert_allclose(transforms[1][:3, 3], [0.0, 0.0, 0.05], atol=1e-6)
    np.testing.assert_allclose(transforms[2][:3, 3], [0.0, 0.0, 0.55], atol=1e-6)


def test_joint_motion_moves_child_links(solver):
    solver.set_joint_positions([0.5])
    assert solver.get_joint_positions() == pytest.approx([0.5])
    tip = solver.link_transforms()[2]
    np.testing.assert_allclose(tip[:3, 3], [0.5 * math.sin(0.5), 0.0, 0.05 + 0.5 * math.cos(0.5)], atol=1e-6)


def test_step_bounces_off_limits(solver):
    solver.set_joint_positions([0.995])
    solver.step()
    assert solver.get_joint_positions() == pytest.approx([1.0])
    solver.step()
    assert solver.get_joint_positions() == pytest.approx([0.99])


def test_dof_limit_freezes_joints(robot_urdf):
    frozen = BulletSolver(robot_urdf, dof=0)
    try:
        frozen.step()
        assert frozen.get_joint_positions() == pytest.approx([0.0])
    finally:
        frozen.disconnect()


def test_wrong_joint_count(solver):
    with pytest.raises(ValueError):
        solver.set_joint_positions([0.1, 0.2])


def test_missing_urdf(tmp_path):
    with pytest.raises(FileNotFoundError):
        BulletSolver(tmp_path / "missing.urdf")
