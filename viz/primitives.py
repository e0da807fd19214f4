"""
Unit primitive meshes (box, cylinder, sphere) for URDF shape geometry.

Each primitive is generated once and shared; nodes size it with a scale:
- box: 1 x 1 x 1, centered on the origin,
- cylinder: radius 1, length 1 along +Z, centered on the origin,
- sphere: radius 1.
Faces wind counter-clockwise seen from outside.
"""

from __future__ import annotations

import math
from functools import lru_cache

import numpy as np

from viz.mesh_loader import MeshResource

CYLINDER_SEGMENTS = 32
SPHERE_RINGS = 16
SPHERE_SEGMENTS = 32


@lru_cache(maxsize=None)
def unit_box() -> MeshResource:
    vertices: list[np.ndarray] = []
    triangles: list[tuple[int, int, int]] = []
    basis = np.eye(3)
    for axis in range(3):
        for sign in (1.0, -1.0):
            normal = basis[axis] * sign
            u = basis[(axis + 1) % 3] * 0.5
            v = basis[(axis + 2) % 3] * 0.5
            if sign < 0:
                u, v = v, u
            center = normal * 0.5
            start = len(vertices)
            vertices.extend([center - u - v, center + u - v, center + u + v, center - u + v])
            triangles.extend([(start, start + 1, start + 2), (start, start + 2, start + 3)])
    return MeshResource.from_arrays(vertices, triangles, name="box")


@lru_cache(maxsize=None)
def unit_cylinder(segments: int = CYLINDER_SEGMENTS) -> MeshResource:
    vertices: list[tuple[float, float, float]] = []
    triangles: list[tuple[int, int, int]] = []
    ring = [(math.cos(2 * math.pi * i / segments), math.sin(2 * math.pi * i / segments)) for i in range(segments)]

    # Side: own ring of vertices so its normals stay radial.
    for x, y in ring:
        vertices.append((x, y, -0.5))
        vertices.append((x, y, 0.5))
    for i in range(segments):
        j = (i + 1) % segments
        b_i, t_i, b_j, t_j = 2 * i, 2 * i + 1, 2 * j, 2 * j + 1
        triangles.append((b_i, b_j, t_j))
        triangles.append((b_i, t_j, t_i))

    for z, up in ((0.5, True), (-0.5, False)):
        center = len(vertices)
        vertices.append((0.0, 0.0, z))
        first = len(vertices)
        vertices.extend((x, y, z) for x, y in ring)
        for i in range(segments):
            a = first + i
            b = first + (i + 1) % segments
            triangles.append((center, a, b) if up else (center, b, a))

    return MeshResource.from_arrays(vertices, triangles, name="cylinder")


@lru_cache(maxsize=None)
def unit_sphere(rings: int = SPHERE_RINGS, segments: int = SPHERE_SEGMENTS) -> MeshResource:
    vertices: list[tuple[float, float, float]] = []
    triangles: list[tuple[int, int, int]] = []
    for j in range(rings + 1):
        phi = math.pi * j / rings
        for i in range(segments + 1):
            theta = 2 * math.pi * i / segments
            vertices.append((math.sin(phi) * math.cos(theta), math.sin(phi) * math.sin(theta), math.cos(phi)))
    stride = segments + 1
    for j in range(rings):
        for i in range(segments):
            a = j * stride + i
            b = (j + 1) * stride + i
            c = b + 1
            d = a + 1
            triangles.append((a, b, c))
            triangles.append((a, c, d))
    return MeshResource.from_arrays(vertices, triangles, name="sphere")
