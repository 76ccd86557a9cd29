import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from meshwork.core.constants import NONE
from meshwork.core.errors import StructureError
from meshwork.core.face_vertex import FaceVertexMesh
from meshwork.core.mesh import HalfEdgeMesh
from meshwork.core.operations import (append_path, as_transform, extrude_boundary, extrude_face, fill_hole,
                                      fill_hole_apex, insert_polygon, loft, rotate_mesh, scale_mesh,
                                      transform_mesh, translate_mesh)
from meshwork.core.payload import VertexPayload

SQUARE3D = [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]]


def closed_square():
    mesh = HalfEdgeMesh()
    top, first = insert_polygon(mesh, SQUARE3D)
    bottom = fill_hole(mesh, mesh.twin(first))
    return mesh, top, bottom


def test_insert_polygon_rejects_short_input():
    mesh = HalfEdgeMesh()
    with pytest.raises(StructureError):
        insert_polygon(mesh, [[0, 0], [1, 0]])
    assert mesh.num_vertices() == 0


def test_insert_polygon_payloads():
    mesh = HalfEdgeMesh()
    f, first = insert_polygon(mesh, [[0, 0], [2, 0], [0, 2]], face_payload='tri')
    assert mesh.face_payload(f) == 'tri'
    assert isinstance(mesh.vertex_payload(0), VertexPayload)
    ids, coords = mesh.face_polygon(f)
    assert ids == [0, 1, 2]
    np.testing.assert_allclose(coords, [[0, 0], [2, 0], [0, 2]])


def test_extrude_face_builds_closed_cube():
    mesh, top, bottom = closed_square()
    cap = extrude_face(mesh, top, [0.0, 0.0, 1.0])
    assert mesh.num_vertices() == 8
    assert mesh.num_edges() == 12
    assert mesh.num_faces() == 6
    assert mesh.euler_characteristic() == 2
    assert mesh.is_closed()
    assert mesh.is_manifold()
    assert all(mesh.face_size(f) == 4 for f in mesh.face_ids())
    for v in mesh.face_vertices(cap):
        assert mesh.position(v)[2] == pytest.approx(1.0)
    assert mesh.has_face(bottom)
    mesh.check()


def test_extrude_face_sides_face_outward():
    mesh, top, _ = closed_square()
    extrude_face(mesh, top, [0.0, 0.0, 1.0])
    centre = np.array([0.5, 0.5, 0.5])
    for f in mesh.face_ids():
        pts = np.array([mesh.position(v) for v in mesh.face_vertices(f)])
        a, b, c = pts[0], pts[1], pts[2]
        normal = np.cross(b - a, c - a)
        assert np.dot(normal, pts.mean(axis=0) - centre) > 0.0


def test_extrude_face_keeps_payload_on_cap():
    mesh = HalfEdgeMesh()
    f, _ = insert_polygon(mesh, SQUARE3D, face_payload={'id': 'lid'})
    cap = extrude_face(mesh, f, [0.0, 0.0, 2.0])
    assert mesh.face_payload(cap) == {'id': 'lid'}
    # the base loop was never filled, so the prism stays open at the bottom
    assert not mesh.is_closed()
    assert len(list(mesh.boundary_loops())) == 1


def test_extrude_boundary_with_matrix():
    mesh = HalfEdgeMesh()
    _, first = insert_polygon(mesh, SQUARE3D)
    scale = np.diag([2.0, 2.0, 2.0, 1.0])
    scale[2, 3] = -1.0
    cap = extrude_boundary(mesh, mesh.twin(first), scale)
    assert mesh.num_faces() == 1 + 4 + 1
    assert mesh.is_closed()
    zs = {round(float(mesh.position(v)[2]), 6) for v in mesh.face_vertices(cap)}
    assert zs == {-1.0}
    mesh.check()


def test_loft_adds_ring_of_quads():
    mesh = HalfEdgeMesh()
    f, first = insert_polygon(mesh, [[0, 0], [1, 0], [0, 1]])
    edge = mesh.twin(first)
    ring = loft(mesh, edge, [[-1, -1], [-1, 3], [3, -1]])
    assert mesh.num_vertices() == 6
    assert mesh.num_edges() == 9
    assert mesh.num_faces() == 4
    assert mesh.face_of(ring) == NONE
    assert len(list(mesh.loop_edges(ring))) == 3
    assert all(mesh.face_size(g) == 4 for g in mesh.face_ids() if g != f)
    mesh.check()


def test_loft_payload_count_must_match():
    mesh = HalfEdgeMesh()
    _, first = insert_polygon(mesh, [[0, 0], [1, 0], [0, 1]])
    with pytest.raises(StructureError):
        loft(mesh, mesh.twin(first), [[0, 0], [1, 1]])
    with pytest.raises(StructureError):
        loft(mesh, first, [[0, 0], [1, 1], [2, 2]])
    assert mesh.num_vertices() == 3


def test_fill_hole_apex_closes_pyramid():
    mesh = HalfEdgeMesh()
    f, first = insert_polygon(mesh, SQUARE3D)
    apex = fill_hole_apex(mesh, mesh.twin(first), [0.5, 0.5, -1.0])
    assert mesh.degree(apex) == 4
    assert mesh.num_faces() == 5
    assert all(mesh.face_size(g) == 3 for g in mesh.face_ids() if g != f)
    assert mesh.euler_characteristic() == 2
    assert mesh.is_closed()
    mesh.check()


def test_append_path_grows_chain():
    mesh = HalfEdgeMesh()
    start = mesh.insert_vertex([0, 0])
    last = append_path(mesh, start, [[1, 0], [2, 0], [3, 0]])
    assert mesh.num_vertices() == 4
    assert mesh.num_edges() == 3
    np.testing.assert_allclose(mesh.position(mesh.target(last)), [3, 0])
    more = append_path(mesh, last, [[4, 0]], from_edge=True)
    assert mesh.source(more) == mesh.target(last)
    with pytest.raises(StructureError):
        append_path(mesh, start, [])
    mesh.check()


def test_operations_reject_face_vertex_mesh():
    fv = FaceVertexMesh([[0, 0], [1, 0], [0, 1]], [[0, 1, 2]])
    with pytest.raises(TypeError):
        insert_polygon(fv, [[0, 0], [1, 0], [0, 1]])
    with pytest.raises(TypeError):
        fill_hole(fv, 0)
    with pytest.raises(TypeError):
        extrude_face(fv, 0, [0, 0, 1])


def test_as_transform_variants():
    p = VertexPayload([1.0, 2.0])
    np.testing.assert_allclose(as_transform([1, 1])(p).position, [2, 3])
    np.testing.assert_allclose(as_transform(np.eye(2) * 3)(p).position, [3, 6])
    np.testing.assert_allclose(as_transform(lambda q: q.translated([0, 1]))(p).position, [1, 3])
    with pytest.raises(ValueError):
        as_transform(np.zeros((2, 3)))


def test_cursor_chain_builds_cube():
    mesh = HalfEdgeMesh()
    f, first = insert_polygon(mesh, SQUARE3D)
    with mesh.edge_mut(mesh.twin(first)) as rim:
        cap = rim.extrude([0.0, 0.0, -1.0])
        assert cap.size() == 4
    lid = mesh.face_mut(f).remove().close_face()
    assert lid.size() == 4
    lid.release()
    assert not mesh.is_borrowed
    assert mesh.num_faces() == 6
    assert mesh.is_closed()
    mesh.check()


def test_translate_and_scale_mesh():
    mesh, _, _ = closed_square()
    assert translate_mesh(mesh, [1, 2, 3]) == 4
    np.testing.assert_allclose(mesh.position(0), [1, 2, 3])
    assert scale_mesh(mesh, 2.0, center=[1, 2, 3]) == 4
    np.testing.assert_allclose(mesh.position(0), [1, 2, 3])
    np.testing.assert_allclose(mesh.position(2), [3, 4, 3])
    scale_mesh(mesh, [1.0, 0.5, 1.0])
    np.testing.assert_allclose(mesh.position(2), [3, 2, 3])
    mesh.check()


def test_rotate_mesh_about_center():
    mesh = HalfEdgeMesh()
    insert_polygon(mesh, [[0, 0], [2, 0], [2, 2], [0, 2]])
    rotate_mesh(mesh, np.pi / 2, center=[1, 1])
    np.testing.assert_allclose(mesh.position(0), [2, 0], atol=1e-12)
    np.testing.assert_allclose(mesh.position(1), [2, 2], atol=1e-12)


def test_rotate_mesh_with_scipy_rotation_turns_normals():
    mesh = HalfEdgeMesh()
    up = [0.0, 1.0, 0.0]
    insert_polygon(mesh, [VertexPayload([0, 1, 0], up), VertexPayload([1, 1, 0], up),
                          VertexPayload([0, 1, 1], up)])
    rotate_mesh(mesh, Rotation.from_euler('x', 90, degrees=True))
    np.testing.assert_allclose(mesh.position(0), [0, 0, 1], atol=1e-12)
    np.testing.assert_allclose(mesh.vertex_payload(0).normal, [0, 0, 1], atol=1e-12)


def test_failed_mesh_transform_changes_nothing():
    mesh = HalfEdgeMesh()
    insert_polygon(mesh, [[0, 0], [1, 0], [0, 1]])
    before = [mesh.position(v).copy() for v in range(3)]
    with pytest.raises(ValueError):
        translate_mesh(mesh, [1, 1, 1])
    with pytest.raises(ValueError):
        rotate_mesh(mesh, np.eye(3))
    with pytest.raises(ValueError):
        scale_mesh(mesh, 0.0)
    for v in range(3):
        np.testing.assert_allclose(mesh.position(v), before[v])


def test_transform_mesh_skips_bare_vertices():
    mesh = HalfEdgeMesh()
    insert_polygon(mesh, [[1, 1], [2, 1], [1, 2]])
    bare = mesh.insert_vertex()
    assert transform_mesh(mesh, np.diag([2.0, 3.0])) == 3
    np.testing.assert_allclose(mesh.position(1), [4, 3])
    assert mesh.vertex_payload(bare) is None
