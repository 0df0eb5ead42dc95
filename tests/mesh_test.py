"""
Тесты FlatMesh.
"""

import unittest
import numpy as np

from skypath.errors import InputError, MeshInputError
from skypath.mesh import FlatMesh


class FlatMeshTest(unittest.TestCase):
    """Тесты построения меша из плоских массивов."""

    def test_indexed_square(self):
        """Квадрат 2x2 из двух треугольников."""
        mesh = FlatMesh.from_flat(
            [0, 0, 0, 2, 0, 0, 2, 0, 2, 0, 0, 2],
            [0, 2, 1, 0, 3, 2],
        )
        self.assertEqual(mesh.vertex_count, 4)
        self.assertEqual(mesh.triangle_count, 2)
        self.assertAlmostEqual(mesh.total_area, 4.0)
        np.testing.assert_allclose(mesh.normals, [[0, 1, 0], [0, 1, 0]])
        np.testing.assert_allclose(mesh.center, [1, 0, 1])

    def test_non_indexed(self):
        """Без индексов каждые три вершины образуют треугольник."""
        mesh = FlatMesh.from_flat([0, 0, 0, 1, 0, 0, 0, 1, 0])
        self.assertEqual(mesh.triangle_count, 1)
        self.assertAlmostEqual(mesh.total_area, 0.5)
        np.testing.assert_allclose(mesh.centroids[0], [1 / 3, 1 / 3, 0])

    def test_vertex_length_not_multiple_of_three(self):
        with self.assertRaises(MeshInputError):
            FlatMesh.from_flat([0, 0, 0, 1])

    def test_index_length_not_multiple_of_three(self):
        with self.assertRaises(MeshInputError):
            FlatMesh.from_flat([0, 0, 0, 1, 0, 0, 0, 1, 0], [0, 1])

    def test_index_out_of_range(self):
        with self.assertRaises(MeshInputError):
            FlatMesh.from_flat([0, 0, 0, 1, 0, 0, 0, 1, 0], [0, 1, 3])

    def test_negative_index(self):
        with self.assertRaises(MeshInputError):
            FlatMesh.from_flat([0, 0, 0, 1, 0, 0, 0, 1, 0], [0, 1, -1])

    def test_non_indexed_bad_vertex_count(self):
        with self.assertRaises(MeshInputError):
            FlatMesh.from_flat([0, 0, 0, 1, 0, 0])

    def test_input_error_is_value_error(self):
        """MeshInputError ловится как InputError и ValueError."""
        with self.assertRaises(InputError):
            FlatMesh.from_flat([0])
        with self.assertRaises(ValueError):
            FlatMesh.from_flat([0])

    def test_degenerate_triangle_skipped(self):
        """Вырожденный треугольник: нулевая площадь и нулевая нормаль."""
        mesh = FlatMesh.from_flat(
            [0, 0, 0, 1, 0, 0, 0, 0, 1, 2, 0, 0],
            [0, 2, 1, 0, 1, 3],
        )
        self.assertAlmostEqual(mesh.areas[1], 0.0)
        np.testing.assert_array_equal(mesh.normals[1], [0, 0, 0])
        self.assertAlmostEqual(mesh.total_area, 0.5)

    def test_bounds_and_area_of(self):
        mesh = FlatMesh.from_flat([0, 0, 0, 1, 0, 0, 0, 1, 0, 5, 5, 5, 6, 5, 5, 5, 6, 5])
        box = mesh.bounds()
        np.testing.assert_array_equal(box.max_point, [6, 6, 5])
        self.assertAlmostEqual(mesh.area_of({1}), 0.5)
        self.assertAlmostEqual(mesh.area_of(set()), 0.0)

    def test_empty_mesh(self):
        mesh = FlatMesh.from_flat([])
        self.assertTrue(mesh.is_empty)
        self.assertIsNone(mesh.bounds())

    def test_to_flat(self):
        mesh = FlatMesh.from_flat([0, 0, 0, 1, 0, 0, 0, 1, 0])
        data = mesh.to_flat()
        self.assertEqual(data["indices"], [0, 1, 2])
        self.assertEqual(len(data["vertices"]), 9)


if __name__ == "__main__":
    unittest.main()
