"""Factory for loading a robot description and creating a headless or windowed viewer."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from common.interfaces import CommandRunner, MeshImporter
from viz.config import DEFAULT_CONFIG, ViewerConfig
from viz.description import RobotDescription, load_robot_description
from viz.geometry import GeometryBuilder
from viz.paths import PackageLocator
from viz.viewer import RobotViewer
from viz.xacro import XacroBridge

if TYPE_CHECKING:
    # Import for type checking only; the window stays unloaded unless requested.
    from viz.app import ViewerWindow


def load_robot(
    path: str | Path,
    *,
    config: ViewerConfig = DEFAULT_CONFIG,
    runner: CommandRunner | None = None,
) -> tuple[RobotDescription, Path]:
    """
    Read a URDF, expanding xacro input into ``config.cache_dir`` first.

    Returns the description and the plain URDF path; mesh paths in the
    description are relative to that file's directory.
    """
    bridge = XacroBridge(config.cache_dir, runner=runner, command=config.xacro_command)
    urdf_path = bridge.convert_if_needed(Path(path))
    robot = load_robot_description(urdf_path, default_color=config.default_color)
    return robot, urdf_path


def make_viewer(
    path: str | Path,
    mode: str = "headless",
    *,
    config: ViewerConfig = DEFAULT_CONFIG,
    runner: CommandRunner | None = None,
    importer: MeshImporter | None = None,
    window: "ViewerWindow | None" = None,
) -> RobotViewer:
    """
    Create a :class:`RobotViewer` whose scene is already built.

    mode:
        - "headless" (default): nodes live under a detached root; nothing is drawn.
        - "window": nodes are attached to a Panda3D window (``window`` or a new
          :class:`viz.app.ViewerWindow`), reachable as ``viewer.root``.

    ``runner`` is used for both xacro expansion and ``package://`` lookups.
    """
    mode_norm = mode.strip().lower()
    if mode_norm not in {"headless", "window"}:
        raise ValueError(f"Unknown viewer mode '{mode}'. Use 'headless' (default) or 'window'.")

    robot, urdf_path = load_robot(path, config=config, runner=runner)
    locator = PackageLocator(runner=runner, command=config.package_locator_command)
    builder = GeometryBuilder(locator=locator, importer=importer)

    root = None
    if mode_norm == "window":
        if window is None:
            from viz.app import ViewerWindow

            window = ViewerWindow(config)
        root = window.render

    viewer = RobotViewer(robot, root=root, builder=builder, config=config)
    viewer.setup(urdf_path.parent)
    return viewer
