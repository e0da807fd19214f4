"""Tests for mesh import and shared mesh resources."""

import numpy as np
import pytest

from conftest import FakeImporter, triangle_mesh
from viz.mesh_loader import (
    ImportedMesh,
    MeshLoadError,
    MeshResource,
    TrimeshImporter,
    convert_imported_meshes,
    load_mesh,
)

QUAD_OBJ = """\
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
f 1 2 3 4
"""


def test_non_triangle_faces_are_dropped():
    mesh = ImportedMesh(
        vertices=[[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0], [0, 0, 1]],
        faces=[[0, 1, 2], [0, 1, 2, 3], [0, 3, 4]],
    )
    (resource,) = convert_imported_meshes([mesh])
    assert resource.num_triangles == 2
    np.testing.assert_array_equal(resource.triangles, [[0, 1, 2], [0, 3, 4]])
    assert resource.vertices.shape == (5, 3)


def test_faces_with_out_of_range_indices_are_dropped():
    mesh = ImportedMesh(
        vertices=[[0, 0, 0], [1, 0, 0], [0, 1, 0]],
        faces=[[0, 1, 7], [0, 1, 2], [-1, 0, 1]],
    )
    (resource,) = convert_imported_meshes([mesh])
    np.testing.assert_array_equal(resource.triangles, [[0, 1, 2]])


def test_malformed_vertices_raise_mesh_load_error(tmp_path):
    path = tmp_path / "flat.stl"
    importer = FakeImporter([ImportedMesh(vertices=[[0.0, 0.0]], faces=[])])
    with pytest.raises(MeshLoadError, match="flat.stl"):
        load_mesh(path, importer)


def test_one_resource_per_sub_mesh(tmp_path):
    path = tmp_path / "parts.stl"
    path.write_text("unused")
    importer = FakeImporter([triangle_mesh(), triangle_mesh()])
    resources = load_mesh(path, importer)
    assert len(resources) == 2
    assert importer.reads == [path]


def test_resource_buffers_are_read_only():
    resource = MeshResource.from_arrays([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [[0, 1, 2]])
    for arr in (resource.vertices, resource.triangles, resource.normals):
        with pytest.raises(ValueError):
            arr[0, 0] = 5


def test_normals_point_out_of_counter_clockwise_face():
    resource = MeshResource.from_arrays([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [[0, 1, 2]])
    np.testing.assert_allclose(resource.normals, np.tile([0.0, 0.0, 1.0], (3, 1)), atol=1e-6)


def test_geom_is_built_once_and_shared():
    resource = MeshResource.from_arrays([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [[0, 1, 2]])
    node_a = resource.make_node("a")
    node_b = resource.make_node("b")
    assert resource.geom is resource.geom
    assert node_a.getNumGeoms() == node_b.getNumGeoms() == 1
    assert resource.geom.getNumPrimitives() == 1
    assert resource.geom.getVertexData().getNumRows() == 3


def test_importer_failure_names_the_path(tmp_path):
    class BrokenImporter(FakeImporter):
        def read(self, path):
            raise ValueError("unsupported format")

    path = tmp_path / "broken.xyz"
    with pytest.raises(MeshLoadError) as excinfo:
        load_mesh(path, BrokenImporter())
    assert str(path) in str(excinfo.value)


def test_empty_import_is_an_error(tmp_path):
    path = tmp_path / "empty.stl"
    with pytest.raises(MeshLoadError, match="empty.stl"):
        load_mesh(path, FakeImporter([]))


def test_trimesh_importer_reads_obj(tmp_path):
    path = tmp_path / "quad.obj"
    path.write_text(QUAD_OBJ)
    resources = load_mesh(path, TrimeshImporter())
    assert len(resources) == 1
    assert resources[0].num_triangles >= 1
    assert resources[0].vertices.shape[1] == 3


def test_trimesh_importer_missing_file(tmp_path):
    path = tmp_path / "nope.stl"
    with pytest.raises(MeshLoadError, match="nope.stl"):
        load_mesh(path)
