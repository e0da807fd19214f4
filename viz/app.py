"""
Panda3D window for a URDF robot posed by the PyBullet solver.

Run with:
    python -m viz.app path/to/robot.urdf
    python -m viz.app path/to/robot.urdf.xacro --dof 4

Controls:
    - Mouse1 drag or arrow keys: orbit camera (yaw/pitch)
    - Mouse3 drag or WASD: pan target
    - Mouse wheel or +/- : zoom
    - [ / ]: highlight previous / next link
    - Space: pause/resume the joint sweep
    - R: put all joints back to zero
    - Escape: quit
"""

from __future__ import annotations

import argparse
import dataclasses
import math
import threading
from pathlib import Path
from typing import Sequence

try:
    from direct.gui.OnscreenText import OnscreenText
    from direct.showbase.ShowBase import ShowBase
    from panda3d.core import (
        AmbientLight,
        AntialiasAttrib,
        DirectionalLight,
        LineSegs,
        TextNode,
        Vec3,
        Vec4,
        loadPrcFileData,
    )
except ImportError as exc:  # pragma: no cover - runtime guard
    raise SystemExit("Panda3D is not installed. Try `pip install panda3d`.") from exc

from api.factory import load_robot
from common.interfaces import KinematicSolver
from viz.config import DEFAULT_CONFIG, Vec3Tuple, ViewerConfig
from viz.frame_driver import FrameDriver
from viz.viewer import RobotViewer
from viz.xacro import XacroConversionError

TEXT_SCALE = 0.0025  # aspect2d units per text "point"


class ViewerWindow(ShowBase):
    """Window, lights, grid and orbit camera; draws one frame per :meth:`render_frame`."""

    def __init__(self, config: ViewerConfig = DEFAULT_CONFIG) -> None:
        width, height = config.window_size
        loadPrcFileData("", f"window-title {config.window_title}\nwin-size {width} {height}")
        super().__init__()
        self.config = config
        self.closed = False
        self.disableMouse()
        self.render.setShaderAuto()
        self.render.setAntialias(AntialiasAttrib.MMultisample)

        self.cam_target = Vec3(*config.camera_target)
        self.cam_distance = config.camera_distance
        self.cam_yaw = config.camera_yaw
        self.cam_pitch = config.camera_pitch
        self._orbit_drag = False
        self._pan_drag = False
        self._last_mouse: tuple[float, float] | None = None
        self._texts: dict[tuple[float, float], OnscreenText] = {}

        self._setup_scene()
        self._bind_camera_controls()
        self.taskMgr.add(self._camera_task, "camera-task")

    def render_frame(self) -> bool:
        """Draw one frame; False once the window has been closed."""
        if self.closed:
            return False
        self.taskMgr.step()
        return not self.closed

    def userExit(self) -> None:
        # ShowBase exits the interpreter here; the frame loop owns shutdown instead.
        self.closed = True

    def draw_text(self, text: str, size: int, pos: tuple[float, float], color: Vec3Tuple) -> None:
        """Show ``text`` at ``pos`` (top-left relative); one text slot per position."""
        fg = (color[0], color[1], color[2], 1.0)
        scale = size * TEXT_SCALE
        label = self._texts.get(pos)
        if label is None:
            self._texts[pos] = OnscreenText(
                text=text,
                pos=pos,
                scale=scale,
                fg=fg,
                align=TextNode.ALeft,
                parent=self.a2dTopLeft,
                mayChange=True,
            )
            return
        label.setText(text)
        label.setFg(fg)
        label.setScale(scale)

    def _setup_scene(self) -> None:
        self.setBackgroundColor(*self.config.background_color, 1)
        self.camLens.setNearFar(0.01, 100.0)
        amb = AmbientLight("ambient")
        amb.setColor(Vec4(0.3, 0.3, 0.3, 1))
        self.render.setLight(self.render.attachNewNode(amb))

        # Headlight: parented to the camera so the lit side always faces the viewer.
        head = DirectionalLight("headlight")
        head.setColor(Vec4(0.9, 0.9, 0.9, 1))
        head_np = self.camera.attachNewNode(head)
        self.render.setLight(head_np)

        self._create_grid()
        self._update_camera()

    def _create_grid(self, half_size: float = 1.0, step: float = 0.1) -> None:
        ls = LineSegs()
        ls.setColor(0.65, 0.65, 0.7, 0.8)
        for v in frange(-half_size, half_size + 1e-6, step):
            ls.moveTo(v, -half_size, 0)
            ls.drawTo(v, half_size, 0)
            ls.moveTo(-half_size, v, 0)
            ls.drawTo(half_size, v, 0)
        grid = self.render.attachNewNode(ls.create())
        grid.setTransparency(True)
        grid.setLightOff()
        grid.setBin("background", 5)
        grid.setDepthOffset(1)

    def _bind_camera_controls(self) -> None:
        self.accept("escape", self.userExit)
        self.accept("+", self._zoom, [-0.1])
        self.accept("=", self._zoom, [-0.1])
        self.accept("-", self._zoom, [0.1])
        self.accept("arrow_left", self._orbit, [-5, 0])
        self.accept("arrow_right", self._orbit, [5, 0])
        self.accept("arrow_up", self._orbit, [0, 5])
        self.accept("arrow_down", self._orbit, [0, -5])
        self.accept("mouse1", self._start_drag, [True])
        self.accept("mouse1-up", self._stop_drag)
        self.accept("mouse3", self._start_drag, [False])
        self.accept("mouse3-up", self._stop_drag)
        self.accept("wheel_up", self._zoom, [-0.1])
        self.accept("wheel_down", self._zoom, [0.1])
        pan_step = 0.02
        for key, delta in (("w", (0, pan_step)), ("s", (0, -pan_step)), ("a", (-pan_step, 0)), ("d", (pan_step, 0))):
            self.accept(key, self._pan_target, list(delta))
            self.accept(f"{key}-repeat", self._pan_target, list(delta))

    def _camera_task(self, task):
        self._handle_mouse()
        self._update_camera()
        return task.cont

    def _update_camera(self) -> None:
        cam_pos = self._spherical_to_cartesian(
            self.cam_distance, math.radians(self.cam_yaw), math.radians(self.cam_pitch)
        )
        self.camera.setPos(self.cam_target + cam_pos)
        self.camera.lookAt(self.cam_target)

    def _zoom(self, delta: float) -> None:
        self.cam_distance = max(0.1, self.cam_distance + delta)

    def _orbit(self, dyaw: float, dpitch: float) -> None:
        self.cam_yaw = (self.cam_yaw + dyaw) % 360
        self.cam_pitch = max(-89.0, min(89.0, self.cam_pitch + dpitch))

    def _pan_target(self, dx: float, dy: float) -> None:
        self.cam_target += Vec3(dx, dy, 0)

    def _start_drag(self, orbit: bool) -> None:
        self._orbit_drag = orbit
        self._pan_drag = not orbit
        if self.mouseWatcherNode.hasMouse():
            m = self.mouseWatcherNode.getMouse()
            self._last_mouse = (m.getX(), m.getY())

    def _stop_drag(self) -> None:
        self._orbit_drag = False
        self._pan_drag = False
        self._last_mouse = None

    def _handle_mouse(self) -> None:
        if not self.mouseWatcherNode.hasMouse():
            return
        current = self.mouseWatcherNode.getMouse()
        x, y = current.getX(), current.getY()
        if self._last_mouse is None:
            self._last_mouse = (x, y)
            return
        dx = x - self._last_mouse[0]
        dy = y - self._last_mouse[1]
        self._last_mouse = (x, y)
        if self._orbit_drag:
            self._orbit(dx * -200, dy * -200)
        elif self._pan_drag:
            cam_quat = self.camera.getQuat(self.render)
            pan_scale = self.cam_distance * 0.5
            self.cam_target += (cam_quat.getRight() * dx * -pan_scale) + (cam_quat.getUp() * dy * -pan_scale)

    @staticmethod
    def _spherical_to_cartesian(radius: float, yaw: float, pitch: float) -> Vec3:
        x = radius * math.cos(pitch) * math.cos(yaw)
        y = radius * math.cos(pitch) * math.sin(yaw)
        z = radius * math.sin(pitch)
        return Vec3(x, y, z)


class LinkHighlighter:
    """Move a temporary highlight color through the registered links."""

    def __init__(self, viewer: RobotViewer, color: Vec3Tuple = DEFAULT_CONFIG.highlight_color) -> None:
        self.viewer = viewer
        self.color = color
        self.index: int | None = None

    @property
    def names(self) -> list[str]:
        return [name for name in self.viewer.robot.link_names if name in self.viewer.scenes]

    @property
    def selected(self) -> str | None:
        names = self.names
        if self.index is None or not names:
            return None
        return names[self.index % len(names)]

    def select(self, offset: int) -> str | None:
        names = self.names
        if not names:
            return None
        previous = self.selected
        if previous is not None:
            self.viewer.reset_temporal_color(previous)
        if self.index is None:
            self.index = 0 if offset > 0 else len(names) - 1
        else:
            self.index = (self.index + offset) % len(names)
        name = names[self.index]
        self.viewer.set_temporal_color(name, *self.color)
        return name


class RobotApp:
    """Wire the window's keys to the frame driver and link highlighter."""

    def __init__(
        self,
        window: ViewerWindow,
        viewer: RobotViewer,
        solver: KinematicSolver,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.window = window
        self.viewer = viewer
        self.solver = solver
        self.driver = FrameDriver(solver, viewer, window.render_frame, stop_event)
        self.highlighter = LinkHighlighter(viewer, window.config.highlight_color)
        window.accept("[", self._select, [-1])
        window.accept("]", self._select, [1])
        window.accept("space", self._toggle_pause)
        window.accept("r", self._reset_joints)

    def run(self) -> int:
        self._show_status()
        return self.driver.run()

    def _select(self, offset: int) -> None:
        self.highlighter.select(offset)
        self._show_status()

    def _toggle_pause(self) -> None:
        self.driver.paused = not self.driver.paused
        self._show_status()

    def _reset_joints(self) -> None:
        self.solver.set_joint_positions([0.0] * len(self.solver.get_joint_positions()))

    def _show_status(self) -> None:
        selected = self.highlighter.selected or "-"
        state = "paused" if self.driver.paused else "running"
        self.window.draw_text(f"{self.viewer.robot.name}  [{state}]", 20, (0.05, -0.08), (1.0, 1.0, 1.0))
        self.window.draw_text(f"link: {selected}", 16, (0.05, -0.15), (1.0, 1.0, 0.6))


def frange(start: float, stop: float, step: float):
    val = start
    while val <= stop + 1e-9:
        yield round(val, 6)
        val += step


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="urdf_viz", description="Option for visualizing urdf")
    parser.add_argument("input_urdf_or_xacro", type=Path, help="Input urdf or xacro")
    parser.add_argument(
        "-d",
        "--dof",
        type=int,
        default=DEFAULT_CONFIG.dof,
        help="Limit the number of movable joints that are swept (e.g. to leave fingers alone).",
    )
    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=DEFAULT_CONFIG.cache_dir,
        help="Directory where expanded xacro files are written.",
    )
    parser.add_argument(
        "--joint-step",
        type=float,
        default=DEFAULT_CONFIG.joint_step,
        help="Joint increment per frame (radians or meters).",
    )
    parser.add_argument(
        "--origin-axis",
        type=float,
        default=0.3,
        help="Length of the XYZ axis marker drawn at the world origin (0 to hide).",
    )
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace, base: ViewerConfig = DEFAULT_CONFIG) -> ViewerConfig:
    return dataclasses.replace(base, cache_dir=args.cache_dir, dof=args.dof, joint_step=args.joint_step)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    config = config_from_args(args)
    try:
        robot, urdf_path = load_robot(args.input_urdf_or_xacro, config=config)
    except (FileNotFoundError, XacroConversionError) as exc:
        raise SystemExit(f"{exc}: {args.input_urdf_or_xacro}") from exc

    from viz.solver import BulletSolver

    solver = BulletSolver(urdf_path, dof=config.dof, joint_step=config.joint_step)
    window = ViewerWindow(config)
    viewer = RobotViewer(robot, root=window.render, config=config)
    viewer.setup(urdf_path.parent)
    if args.origin_axis > 0:
        viewer.add_axis_cylinders("origin_axis", args.origin_axis)

    app = RobotApp(window, viewer, solver)
    try:
        frames = app.run()
        print(f"[Viewer] window closed after {frames} frames.")
    except KeyboardInterrupt:
        print("Stopping viewer...")
    finally:
        solver.disconnect()
        window.destroy()


if __name__ == "__main__":
    main()
