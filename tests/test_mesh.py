import unittest

import numpy as np

from jellystar.errors import MeshError
from jellystar.mesh.obj import ObjMesh, fan_triangulate
from jellystar.mesh.star import generate_star, star_mesh
from jellystar.mesh.topology import build_springs

QUAD_OBJ = """\
# unit quad in the xy plane
o quad
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
vn 0 0 -1
vt 0 0
usemtl paper
f 1/1/1 2//1 3 4
f 1 2
s off
"""


class TestObjParsing(unittest.TestCase):
    def test_parse_records(self):
        mesh = ObjMesh.parse(QUAD_OBJ)

        np.testing.assert_array_equal(mesh.vertices, [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]])
        self.assertEqual(mesh.faces, ((0, 1, 2, 3),))
        self.assertEqual(mesh.normals, [[0.0, 0.0, -1.0]])

    def test_missing_slash_fields_are_omitted(self):
        mesh = ObjMesh.parse(QUAD_OBJ)

        self.assertEqual(mesh.normal_faces, [[0, 0]])
        self.assertEqual(mesh.tex_faces, [[0]])

    def test_faces_without_extra_indices_record_nothing(self):
        mesh = ObjMesh.parse("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n")
        self.assertEqual(mesh.normal_faces, [])
        self.assertEqual(mesh.tex_faces, [])

    def test_negative_indices_are_relative(self):
        mesh = ObjMesh.parse("v 0 0 0\nv 1 0 0\nv 0 1 0\nf -3 -2 -1\n")
        self.assertEqual(mesh.faces, ((0, 1, 2),))

    def test_vertices_are_read_only(self):
        mesh = ObjMesh.parse(QUAD_OBJ)
        with self.assertRaises(ValueError):
            mesh.vertices[0, 0] = 5.0

    def test_short_vertex_record_rejected(self):
        with self.assertRaises(MeshError) as ctx:
            ObjMesh.parse("v 0 0 0\nv 1 2\n")
        self.assertEqual(ctx.exception.line, 2)

    def test_non_numeric_coordinate_rejected(self):
        with self.assertRaises(MeshError):
            ObjMesh.parse("v 0 zero 0\n")

    def test_face_index_out_of_range_rejected(self):
        with self.assertRaises(MeshError) as ctx:
            ObjMesh.parse("v 0 0 0\nv 1 0 0\nv 0 1 0\n# comment\nf 1 2 9\n")
        self.assertEqual(ctx.exception.line, 5)
        self.assertIn("[9]", str(ctx.exception))

    def test_face_may_precede_its_vertices(self):
        mesh = ObjMesh.parse("f 1 2 3\nv 0 0 0\nv 1 0 0\nv 0 1 0\n")
        self.assertEqual(mesh.faces, ((0, 1, 2),))

    def test_zero_face_index_rejected(self):
        with self.assertRaises(MeshError):
            ObjMesh.parse("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 0 1 2\n")

    def test_empty_description(self):
        mesh = ObjMesh.parse("")
        self.assertEqual(mesh.vertices.shape, (0, 3))
        self.assertEqual(mesh.faces, ())


class TestTriangulation(unittest.TestCase):
    def test_fan_order(self):
        tris = fan_triangulate(((0, 1, 2, 3, 4),))
        np.testing.assert_array_equal(tris, [[0, 1, 2], [0, 2, 3], [0, 3, 4]])

    def test_triangle_count_per_face(self):
        tris = fan_triangulate(((0, 1, 2), (3, 4, 5, 6), (7, 8, 9, 10, 11, 12)))
        self.assertEqual(len(tris), 1 + 2 + 4)
        np.testing.assert_array_equal(tris[1], [3, 4, 5])
        np.testing.assert_array_equal(tris[3], [7, 8, 9])


class TestNormalsAndBuffers(unittest.TestCase):
    def setUp(self):
        self.mesh = ObjMesh.parse(QUAD_OBJ)
        self.positions = np.array(self.mesh.vertices)

    def test_normals_recomputed_not_loaded(self):
        normals = self.mesh.compute_normals(self.positions)
        np.testing.assert_allclose(normals, np.tile([0.0, 0.0, 1.0], (4, 1)))

    def test_normals_follow_positions(self):
        # Fold the quad: vertex 2 and 3 lift out of plane
        self.positions[2:, 2] = 1.0
        normals = self.mesh.compute_normals(self.positions)
        np.testing.assert_allclose(np.linalg.norm(normals, axis=1), 1.0)
        self.assertLess(normals[0, 2], 1.0)

    def test_smooth_normals_average_faces(self):
        mesh = ObjMesh.parse(
            "v 0 0 0\nv 1 0 0\nv 0 1 0\nv 0 0 1\n"
            "f 1 2 3\n"  # normal +z
            "f 1 4 2\n"  # normal +y
        )
        normals = mesh.compute_normals(np.array(mesh.vertices))
        s = 1.0 / np.sqrt(2.0)
        np.testing.assert_allclose(normals[0], [0.0, s, s], atol=1e-12)
        np.testing.assert_allclose(normals[2], [0.0, 0.0, 1.0], atol=1e-12)

    def test_degenerate_face_gives_zero_normal(self):
        mesh = ObjMesh.parse("v 0 0 0\nv 0 0 0\nv 0 0 0\nf 1 2 3\n")
        normals = mesh.compute_normals(np.array(mesh.vertices))
        np.testing.assert_array_equal(normals, np.zeros((3, 3)))

    def test_vertex_buffers_layout(self):
        normals = self.mesh.compute_normals(self.positions)
        buffers = self.mesh.vertex_buffers(self.positions, normals)

        self.assertEqual(buffers.positions.dtype, np.float32)
        self.assertEqual(len(buffers.positions), 2 * 3 * 3)
        self.assertEqual(len(buffers.normals), 2 * 3 * 3)
        self.assertEqual(len(buffers.tex_coords), 0)
        self.assertEqual(buffers.vertex_count, 6)
        # second triangle is (0, 2, 3)
        np.testing.assert_array_equal(buffers.positions[9:18], [0, 0, 0, 1, 1, 0, 0, 1, 0])

    def test_vertex_buffers_are_snapshots(self):
        normals = self.mesh.compute_normals(self.positions)
        buffers = self.mesh.vertex_buffers(self.positions, normals)
        self.positions[0] = [9.0, 9.0, 9.0]
        self.assertEqual(buffers.positions[0], 0.0)


class TestStarMesh(unittest.TestCase):
    def test_counts(self):
        mesh = star_mesh()
        self.assertEqual(len(mesh.vertices), 20)
        self.assertEqual(len(mesh.faces), 22)
        self.assertEqual(len(mesh.triangles), 36)
        self.assertEqual(len(build_springs(mesh.faces, mesh.vertices)), 40)

    def test_centered_at_origin(self):
        mesh = star_mesh()
        np.testing.assert_allclose(mesh.vertices.mean(axis=0), 0.0, atol=1e-6)

    def test_closed_surface(self):
        mesh = star_mesh(points=6)
        edges = len(build_springs(mesh.faces, mesh.vertices))
        self.assertEqual(len(mesh.vertices) - edges + len(mesh.faces), 2)

    def test_rejects_bad_shape(self):
        with self.assertRaises(ValueError):
            generate_star(points=2)
        with self.assertRaises(ValueError):
            generate_star(inner_radius=0.6, outer_radius=0.5)


if __name__ == "__main__":
    unittest.main()
