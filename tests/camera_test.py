"""
Тесты камеры: поза, пирамида видимости, динамическая высота, углы.
"""

import math
import unittest
import numpy as np

from skypath.camera import (
    CameraPose,
    build_pyramid,
    camera_angles,
    camera_up,
    dynamic_height,
    frustum_corners,
    pose_for_waypoint,
    pyramid_for_pose,
    resolve_direction,
    vfov_to_hfov,
    MIN_PYRAMID_HEIGHT,
)
from skypath.config import CameraConfig
from skypath.mesh import FlatMesh


def ground_square(y=-10.0, half=20.0):
    """Квадрат в плоскости y, нормаль вверх (+Y)."""
    return FlatMesh.from_flat(
        [-half, y, -half, half, y, -half, half, y, half, -half, y, half],
        [0, 2, 1, 0, 3, 2],
    )


class CameraPoseTest(unittest.TestCase):
    """Тесты выбора направления и up."""

    def test_direction_from_normal(self):
        d = resolve_direction((0, 0, 5), np.zeros(3))
        np.testing.assert_allclose(d, [0, 0, 1])

    def test_zero_normal_looks_at_mesh_center(self):
        """Нулевая нормаль: камера смотрит в центр меша."""
        d = resolve_direction((0, 0, 0), np.array([10.0, 0.0, 0.0]), mesh_center=np.zeros(3))
        np.testing.assert_allclose(d, [-1, 0, 0])

    def test_zero_normal_without_mesh(self):
        d = resolve_direction((0, 0, 0), np.zeros(3))
        np.testing.assert_allclose(d, [0, -1, 0])

    def test_camera_at_mesh_center(self):
        """Камера в центре меша: направление по умолчанию."""
        d = resolve_direction(None, np.zeros(3), mesh_center=np.zeros(3))
        np.testing.assert_allclose(d, [0, -1, 0])

    def test_up_is_perpendicular(self):
        for direction in ([1, 0, 0], [0, 0, -1], [0.3, -0.5, 0.8]):
            d = np.array(direction, dtype=float)
            d /= np.linalg.norm(d)
            up = camera_up(d)
            self.assertAlmostEqual(float(np.dot(up, d)), 0.0, places=9)
            self.assertAlmostEqual(float(np.linalg.norm(up)), 1.0, places=9)

    def test_vertical_view_uses_forward_axis(self):
        """Взгляд вниз: опорный up переключается на +Z."""
        up = camera_up(np.array([0.0, -1.0, 0.0]))
        np.testing.assert_allclose(up, [0, 0, 1], atol=1e-12)

    def test_pose_uses_config(self):
        config = CameraConfig(fov=60.0, aspect=1.0, far=50.0)
        pose = pose_for_waypoint((1, 2, 3), (0, -1, 0), config=config)
        self.assertEqual(pose.fov, 60.0)
        self.assertEqual(pose.far, 50.0)
        np.testing.assert_allclose(pose.right, [-1, 0, 0], atol=1e-12)

    def test_hfov(self):
        """tan(hfov/2) = tan(vfov/2) * aspect."""
        hfov = vfov_to_hfov(53.1, 16.0 / 9.0)
        self.assertAlmostEqual(
            math.tan(math.radians(hfov) / 2.0),
            math.tan(math.radians(53.1) / 2.0) * 16.0 / 9.0,
        )
        self.assertGreater(hfov, 53.1)


class PyramidTest(unittest.TestCase):
    """Тесты построения пирамиды."""

    def setUp(self):
        self.pyramid = build_pyramid((0, 0, 0), (0, -1, 0), height=10.0)

    def test_base_center(self):
        np.testing.assert_allclose(self.pyramid.base_center, [0, -10, 0])

    def test_base_extents(self):
        """Полуразмеры основания: h·tan(fov/2) по высоте, умноженные на aspect по ширине."""
        half_h = 10.0 * math.tan(math.radians(53.1) / 2.0)
        half_w = half_h * 16.0 / 9.0
        corners = self.pyramid.corners
        np.testing.assert_allclose(corners[:, 1], [-10, -10, -10, -10])
        np.testing.assert_allclose(np.abs(corners[:, 0]), [half_w] * 4)
        np.testing.assert_allclose(np.abs(corners[:, 2]), [half_h] * 4)

    def test_contains(self):
        self.assertTrue(self.pyramid.contains([0, -5, 0]))
        self.assertTrue(self.pyramid.contains([3, -9, 2]))
        self.assertFalse(self.pyramid.contains([0, 5, 0]))
        self.assertFalse(self.pyramid.contains([0, -11, 0]))
        self.assertFalse(self.pyramid.contains([9, -5, 0]))

    def test_planes_orientation(self):
        """Внутренняя точка по положительную сторону всех пяти плоскостей."""
        normals, offsets = self.pyramid.plane_arrays()
        self.assertEqual(len(offsets), 5)
        inside = normals @ self.pyramid.interior_point + offsets
        self.assertTrue(np.all(inside > 0))

    def test_min_height(self):
        pyramid = build_pyramid((0, 0, 0), (0, -1, 0), height=0.0)
        self.assertEqual(pyramid.height, MIN_PYRAMID_HEIGHT)

    def test_bounds(self):
        box = self.pyramid.bounds()
        self.assertAlmostEqual(box.max_point[1], 0.0)
        self.assertAlmostEqual(box.min_point[1], -10.0)


class DynamicHeightTest(unittest.TestCase):
    """Тесты высоты пирамиды по лучу взгляда."""

    def setUp(self):
        self.mesh = ground_square()

    def test_hit(self):
        self.assertAlmostEqual(dynamic_height((0, 0, 0), (0, -1, 0), self.mesh), 10.0)

    def test_miss_gives_fallback(self):
        self.assertAlmostEqual(dynamic_height((0, 0, 0), (0, 1, 0), self.mesh, fallback=300.0), 300.0)

    def test_no_mesh(self):
        self.assertAlmostEqual(dynamic_height((0, 0, 0), (0, -1, 0), None, fallback=42.0), 42.0)

    def test_clamped(self):
        h = dynamic_height((0, 0, 0), (0, -1, 0), self.mesh, min_height=0.1, max_height=5.0)
        self.assertAlmostEqual(h, 5.0)

    def test_pyramid_for_pose(self):
        pose = pose_for_waypoint((0, 0, 0), (0, -1, 0))
        pyramid = pyramid_for_pose(pose, self.mesh)
        self.assertAlmostEqual(pyramid.height, 10.0)


class CameraAnglesTest(unittest.TestCase):
    """Тесты pitch/yaw/roll."""

    def test_looking_down(self):
        pitch, yaw, roll = camera_angles((0, -1, 0))
        self.assertAlmostEqual(pitch, 90.0)
        self.assertEqual(roll, 0.0)

    def test_yaw_quadrants(self):
        self.assertAlmostEqual(camera_angles((0, 0, 1))[1], 0.0)
        self.assertAlmostEqual(camera_angles((1, 0, 0))[1], 90.0)
        self.assertAlmostEqual(camera_angles((0, 0, -1))[1], 180.0)
        self.assertAlmostEqual(camera_angles((-1, 0, 0))[1], 270.0)

    def test_horizontal_pitch(self):
        self.assertAlmostEqual(camera_angles((1, 0, 0))[0], 0.0)

    def test_looking_up(self):
        self.assertAlmostEqual(camera_angles((0, 2, 0))[0], -90.0)


class FrustumTest(unittest.TestCase):
    def test_corners(self):
        pose = CameraPose(
            position=np.zeros(3),
            direction=np.array([0.0, 0.0, 1.0]),
            up=np.array([0.0, 1.0, 0.0]),
            fov=90.0,
            aspect=1.0,
            near=1.0,
            far=10.0,
        )
        corners = frustum_corners(pose)
        np.testing.assert_allclose(np.abs(corners.near[:, :2]), np.ones((4, 2)))
        np.testing.assert_allclose(corners.far[:, 2], [10, 10, 10, 10])
        box = corners.bounds()
        np.testing.assert_allclose(box.min_point, [-10, -10, 1])
        np.testing.assert_allclose(box.max_point, [10, 10, 10])


if __name__ == "__main__":
    unittest.main()
