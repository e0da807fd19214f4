"""Shared defaults for the URDF viewer (cache location, window, camera, colors)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

Vec3Tuple = tuple[float, float, float]
RGBATuple = tuple[float, float, float, float]


@dataclass(frozen=True)
class ViewerConfig:
    """Bundle of settings threaded through the loader, registry and window."""

    # Expanded xacro files are written below this directory, mirroring their source path.
    cache_dir: Path = Path("/tmp/urdf_viz")
    window_title: str = "urdf_viewer"
    window_size: tuple[int, int] = (1400, 1000)
    background_color: Vec3Tuple = (0.0, 0.0, 0.3)
    # Used for visuals that carry no material color at all.
    default_color: RGBATuple = (0.8, 0.8, 0.8, 1.0)
    highlight_color: Vec3Tuple = (1.0, 0.2, 0.2)
    axis_radius: float = 0.01
    camera_target: Vec3Tuple = (0.0, 0.0, 0.25)
    camera_distance: float = 3.0
    camera_yaw: float = -65.0
    camera_pitch: float = 20.0
    package_locator_command: tuple[str, ...] = ("rospack", "find")
    xacro_command: tuple[str, ...] = ("rosrun", "xacro", "xacro")
    joint_step: float = 0.01  # radians per frame when sweeping joints
    dof: int = 6


DEFAULT_CONFIG = ViewerConfig()
