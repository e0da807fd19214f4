"""
Turn one URDF visual into a Panda3D node.

Node layout for a link::

    <link name>            color, receives the link transform
      visual_origin        URDF <visual><origin> offset
        shape / mesh_*     unit primitive or mesh parts, scaled

A visual that cannot be built (missing or unreadable mesh) yields ``None`` so
the rest of the robot can still be shown.
"""

from __future__ import annotations

from pathlib import Path

try:
    from panda3d.core import NodePath
except ImportError as exc:  # pragma: no cover - runtime guard
    raise SystemExit("Panda3D is not installed. Try `pip install panda3d`.") from exc

from common.interfaces import MeshImporter
from viz.description import Box, Cylinder, Mesh, Sphere, Visual
from viz.mesh_loader import MeshLoadError, MeshResource, load_mesh
from viz.paths import PackageLocator, expand_package_path
from viz.primitives import unit_box, unit_cylinder, unit_sphere
from viz.transforms import origin_to_matrix, to_panda_mat


class GeometryBuilder:
    """
    Build link nodes from visuals.

    Meshes are cached per resolved path, so links that reference the same file
    share one set of buffers.
    """

    def __init__(self, locator: PackageLocator | None = None, importer: MeshImporter | None = None) -> None:
        self.locator = locator or PackageLocator()
        self.importer = importer
        self._mesh_cache: dict[str, list[MeshResource]] = {}

    def build(self, visual: Visual, base_dir: str | Path, name: str = "geometry") -> NodePath | None:
        """Return a detached node for ``visual`` or None when it cannot be visualized."""
        root = NodePath(name)
        offset = root.attachNewNode("visual_origin")
        if not visual.origin.is_identity:
            offset.setMat(to_panda_mat(origin_to_matrix(visual.origin.xyz, visual.origin.rpy)))

        geometry = visual.geometry
        if isinstance(geometry, Box):
            self._add_shape(offset, unit_box(), geometry.size)
        elif isinstance(geometry, Cylinder):
            radius, length = float(geometry.radius), float(geometry.length)
            self._add_shape(offset, unit_cylinder(), (radius, radius, length))
        elif isinstance(geometry, Sphere):
            radius = float(geometry.radius)
            self._add_shape(offset, unit_sphere(), (radius, radius, radius))
        elif isinstance(geometry, Mesh):
            if not self._add_mesh(offset, geometry, base_dir):
                root.removeNode()
                return None
        else:
            root.removeNode()
            print(f"[Geometry] unknown geometry {geometry!r} for link {name}")
            return None

        r, g, b, _alpha = visual.color
        root.setColor(float(r), float(g), float(b), 1.0)
        return root

    @staticmethod
    def _add_shape(parent: NodePath, resource: MeshResource, scale) -> NodePath:
        node = parent.attachNewNode(resource.make_node())
        node.setScale(float(scale[0]), float(scale[1]), float(scale[2]))
        return node

    def _add_mesh(self, parent: NodePath, mesh: Mesh, base_dir: str | Path) -> bool:
        filename = expand_package_path(mesh.filename, base_dir, self.locator)
        if not Path(filename).exists():
            print(f"[Geometry] {filename} not found")
            return False
        try:
            resources = self._load(filename)
        except MeshLoadError as exc:
            print(f"[Geometry] {exc}")
            return False
        group = parent.attachNewNode("mesh")
        for resource in resources:
            self._add_shape(group, resource, mesh.scale)
        return True

    def _load(self, filename: str) -> list[MeshResource]:
        if filename not in self._mesh_cache:
            self._mesh_cache[filename] = load_mesh(filename, self.importer)
        return self._mesh_cache[filename]
