"""URDF viewer core: path resolution, mesh loading, scene registry and frame loop."""
