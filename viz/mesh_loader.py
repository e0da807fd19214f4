"""
Load mesh files into immutable, shareable render resources.

trimesh parses the file; every sub-mesh is pre-transformed into the file's root
frame (``Scene.dump``) and no up-axis conversion is applied, so all formats end
up in the same orientation convention. Only triangle faces are kept: faces
with any other vertex count are dropped rather than triangulated.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np

try:
    import trimesh
except ImportError as exc:  # pragma: no cover - runtime guard
    raise SystemExit("trimesh is not installed. Run `pip install -e .` first.") from exc

try:
    from panda3d.core import Geom, GeomNode, GeomTriangles, GeomVertexData, GeomVertexFormat, GeomVertexWriter
except ImportError as exc:  # pragma: no cover - runtime guard
    raise SystemExit("Panda3D is not installed. Try `pip install panda3d`.") from exc

from common.interfaces import MeshImporter


class MeshLoadError(RuntimeError):
    """A mesh file could not be read or held no usable geometry."""


@dataclass(frozen=True)
class ImportedMesh:
    """One sub-mesh as reported by an importer. ``faces`` may be ragged."""

    vertices: Sequence[Sequence[float]]
    faces: Sequence[Sequence[int]]


def compute_vertex_normals(vertices: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    """Area-weighted per-vertex normals; isolated vertices get +Z."""
    normals = np.zeros((len(vertices), 3), dtype=np.float32)
    if len(triangles):
        corners = vertices[triangles]
        face_normals = np.cross(corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0])
        for i in range(3):
            np.add.at(normals, triangles[:, i], face_normals)
    lengths = np.linalg.norm(normals, axis=1)
    missing = lengths < 1e-12
    normals[missing] = (0.0, 0.0, 1.0)
    lengths[missing] = 1.0
    return (normals / lengths[:, None]).astype(np.float32)


@dataclass(frozen=True, eq=False)
class MeshResource:
    """
    Vertex and triangle buffers plus the Panda3D Geom built from them.

    The arrays are read-only and the Geom is built once, so any number of
    scene nodes can show the same resource without copying it.
    """

    name: str
    vertices: np.ndarray
    triangles: np.ndarray
    normals: np.ndarray

    @classmethod
    def from_arrays(cls, vertices, triangles, name: str = "mesh") -> "MeshResource":
        verts = np.array(vertices, dtype=np.float32).reshape(-1, 3)
        tris = np.array(triangles, dtype=np.int32).reshape(-1, 3)
        normals = compute_vertex_normals(verts, tris)
        for arr in (verts, tris, normals):
            arr.setflags(write=False)
        return cls(name=name, vertices=verts, triangles=tris, normals=normals)

    @property
    def num_triangles(self) -> int:
        return len(self.triangles)

    @cached_property
    def geom(self) -> Geom:
        vdata = GeomVertexData(self.name, GeomVertexFormat.getV3n3(), Geom.UHStatic)
        vdata.setNumRows(len(self.vertices))
        vertex = GeomVertexWriter(vdata, "vertex")
        normal = GeomVertexWriter(vdata, "normal")
        for (x, y, z), (nx, ny, nz) in zip(self.vertices.tolist(), self.normals.tolist()):
            vertex.addData3(x, y, z)
            normal.addData3(nx, ny, nz)

        prim = GeomTriangles(Geom.UHStatic)
        if len(self.vertices) > 0xFFFF:
            prim.setIndexType(Geom.NT_uint32)
        for a, b, c in self.triangles.tolist():
            prim.addVertices(a, b, c)
        prim.closePrimitive()

        geom = Geom(vdata)
        geom.addPrimitive(prim)
        return geom

    def make_node(self, name: str | None = None) -> GeomNode:
        """A new GeomNode referencing the shared Geom."""
        node = GeomNode(name or self.name)
        node.addGeom(self.geom)
        return node


def convert_imported_meshes(meshes: Iterable[ImportedMesh], name: str = "mesh") -> list[MeshResource]:
    """Copy importer output into MeshResources, keeping triangle faces only.

    Faces that reference a vertex the sub-mesh does not have are dropped too.
    """
    resources: list[MeshResource] = []
    for i, mesh in enumerate(meshes):
        count = len(mesh.vertices)
        triangles = [
            tuple(face) for face in mesh.faces if len(face) == 3 and all(0 <= int(v) < count for v in face)
        ]
        resources.append(MeshResource.from_arrays(mesh.vertices, triangles, name=f"{name}_{i}"))
    return resources


class TrimeshImporter(MeshImporter):
    """Read any format trimesh understands (STL, OBJ, PLY, DAE with pycollada, ...)."""

    def read(self, path: Path) -> list[ImportedMesh]:
        scene = trimesh.load(str(path), force="scene", process=False)
        meshes: list[ImportedMesh] = []
        for geometry in scene.dump():
            # Paths and point clouds carry no faces to draw.
            if not isinstance(geometry, trimesh.Trimesh):
                continue
            meshes.append(ImportedMesh(vertices=np.asarray(geometry.vertices), faces=np.asarray(geometry.faces)))
        return meshes


def load_mesh(path: str | Path, importer: MeshImporter | None = None) -> list[MeshResource]:
    """Load every sub-mesh of ``path``; raises MeshLoadError naming the file on failure."""
    path = Path(path)
    importer = importer or TrimeshImporter()
    try:
        imported = importer.read(path)
    except Exception as exc:
        raise MeshLoadError(f"failed to read file {path}: {exc}") from exc
    if not imported:
        raise MeshLoadError(f"failed to read file {path}: no meshes found")
    try:
        return convert_imported_meshes(imported, name=path.stem)
    except (ValueError, TypeError) as exc:
        raise MeshLoadError(f"failed to read file {path}: {exc}") from exc
