"""
Frame loop: advance the solver, pose the scene by link name, draw one frame.

The renderer is only seen as a ``render_frame()`` callable that draws once and
returns False when the window was closed, so the loop also runs against a fake
in tests or a no-op for headless stepping.
"""

from __future__ import annotations

import threading
from typing import Callable

from common.interfaces import KinematicSolver
from viz.viewer import RobotViewer


class FrameDriver:
    """Drive :class:`RobotViewer` from a :class:`KinematicSolver`, one frame per step."""

    def __init__(
        self,
        solver: KinematicSolver,
        viewer: RobotViewer,
        render_frame: Callable[[], bool],
        stop_event: threading.Event | None = None,
    ) -> None:
        self.solver = solver
        self.viewer = viewer
        self.render_frame = render_frame
        self.stop_event = stop_event or threading.Event()
        self.paused = False
        self.frames = 0

    def step(self) -> bool:
        """Run one iteration; returns whether the renderer is still open."""
        if not self.paused:
            self.solver.step()
        # The solver reports names and transforms in the same traversal order.
        transforms = dict(zip(self.solver.link_names(), self.solver.link_transforms()))
        self.viewer.update(transforms)
        keep_going = bool(self.render_frame())
        self.frames += 1
        return keep_going

    def run(self, max_frames: int | None = None) -> int:
        """Loop until the window closes, ``stop_event`` is set or ``max_frames`` ran."""
        start = self.frames
        while not self.stop_event.is_set():
            if max_frames is not None and self.frames - start >= max_frames:
                break
            if not self.step():
                break
        return self.frames - start

    def stop(self) -> None:
        self.stop_event.set()
