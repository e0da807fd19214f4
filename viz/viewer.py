"""
Scene registry: map robot link names to Panda3D nodes and keep them posed.

The registry is usable without a window (pass no ``root`` and a detached
``NodePath`` is created), which is how scripts and tests drive it; the Panda3D
window in :mod:`viz.app` passes its ``render`` node instead.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Mapping

try:
    from panda3d.core import LColor, NodePath
except ImportError as exc:  # pragma: no cover - runtime guard
    raise SystemExit("Panda3D is not installed. Try `pip install panda3d`.") from exc

from viz.config import DEFAULT_CONFIG, ViewerConfig
from viz.description import RobotDescription
from viz.geometry import GeometryBuilder
from viz.primitives import unit_cylinder
from viz.transforms import axis_angle_to_matrix, make_transform, to_panda_mat

# Beats the priority-0 colors that geometry and axis markers carry.
HIGHLIGHT_PRIORITY = 1


class RobotViewer:
    """Own the link-name -> node map, per-frame posing and temporary link colors."""

    def __init__(
        self,
        robot: RobotDescription,
        root: NodePath | None = None,
        builder: GeometryBuilder | None = None,
        config: ViewerConfig = DEFAULT_CONFIG,
    ) -> None:
        self.robot = robot
        self.root = root if root is not None else NodePath("robot")
        self.builder = builder or GeometryBuilder()
        self.config = config
        self.scenes: dict[str, NodePath] = {}
        self._original_colors: dict[str, LColor | None] = {}
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    def setup(self, base_dir: str | Path) -> None:
        """Build every link's geometry once; links that fail are logged and left out."""
        if self._ready:
            print("[RobotViewer] setup() already done; ignoring.")
            return
        for link in self.robot.links:
            if link.visual is None:
                print(f"[RobotViewer] {link.name} has no visual; skipping.")
                continue
            node = self.builder.build(link.visual, base_dir, name=link.name)
            if node is None:
                print(f"[RobotViewer] failed to create for {link.name}: {link.visual}")
                continue
            self._insert(link.name, node)
        self._ready = True
        print(f"[RobotViewer] {len(self.scenes)}/{len(self.robot.links)} links visualized.")

    def add_axis_cylinders(self, name: str, size: float) -> NodePath:
        """Add an XYZ axis marker (red, green, blue) registered under ``name``."""
        group = NodePath(name)
        radius = float(self.config.axis_radius)
        half = float(size) * 0.5
        quarter_turn = math.pi / 2
        axes = (
            ((1.0, 0.0, 0.0), axis_angle_to_matrix((0.0, 1.0, 0.0), quarter_turn), (half, 0.0, 0.0)),
            ((0.0, 1.0, 0.0), axis_angle_to_matrix((1.0, 0.0, 0.0), -quarter_turn), (0.0, half, 0.0)),
            ((0.0, 0.0, 1.0), None, (0.0, 0.0, half)),
        )
        for color, rotation, translation in axes:
            cylinder = group.attachNewNode(unit_cylinder().make_node("axis"))
            cylinder.setMat(to_panda_mat(make_transform(rotation, translation)))
            # Scale is applied in the cylinder's own frame, before the rotation.
            cylinder.setScale(radius, radius, float(size))
            cylinder.setColor(*color, 1.0)
        self._insert(name, group, replace=True)
        return group

    def update(self, transforms_by_link: Mapping[str, object]) -> None:
        """Pose nodes by link name; names without a node are reported and skipped."""
        for link_name, transform in transforms_by_link.items():
            node = self.scenes.get(link_name)
            if node is None:
                print(f"[RobotViewer] {link_name} not found")
                continue
            node.setMat(to_panda_mat(transform))

    def node(self, link_name: str) -> NodePath | None:
        return self.scenes.get(link_name)

    def set_temporal_color(self, link_name: str, r: float, g: float, b: float) -> None:
        """
        Recolor a link until :meth:`reset_temporal_color`.

        The highlight overrides colors set further down the node (e.g. the
        per-axis colors of an axis marker). The color the node itself held
        before the first highlight is remembered; highlighting an already
        highlighted link keeps that first record.
        """
        node = self.scenes.get(link_name)
        if node is None:
            return
        if link_name not in self._original_colors:
            self._original_colors[link_name] = LColor(node.getColor()) if node.hasColor() else None
        node.setColor(float(r), float(g), float(b), 1.0, HIGHLIGHT_PRIORITY)

    def reset_temporal_color(self, link_name: str) -> None:
        node = self.scenes.get(link_name)
        if node is None or link_name not in self._original_colors:
            return
        original = self._original_colors[link_name]
        if original is None:
            node.clearColor()
        else:
            node.setColor(original)

    def _insert(self, name: str, node: NodePath, replace: bool = False) -> None:
        if name in self.scenes:
            if not replace:
                node.removeNode()
                raise ValueError(f"A scene node named '{name}' is already registered")
            print(f"[RobotViewer] replacing scene node for {name}")
        node.reparentTo(self.root)
        self.scenes[name] = node
