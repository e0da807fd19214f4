"""Collaborator interfaces shared by the viewer core and its backends."""

from .interfaces import CommandResult, CommandRunner, KinematicSolver, MeshImporter

__all__ = ["CommandResult", "CommandRunner", "KinematicSolver", "MeshImporter"]
