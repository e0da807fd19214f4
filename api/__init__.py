"""Public factory helpers for loading robots and creating viewers."""

from .factory import load_robot, make_viewer

__all__ = ["load_robot", "make_viewer"]
