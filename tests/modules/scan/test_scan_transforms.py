"""
Tests for rigid transform helpers
"""
import math

import numpy as np
import pytest

from cloudscan.modules.scan.transforms import (
    RigidTransform, StampedTransform, transform_points, yaw_of_axis
)

# Optical frame convention: z forward, x right, y down
OPTICAL_TO_BODY = np.array([
    [0.0, 0.0, 1.0, 0.0],
    [-1.0, 0.0, 0.0, 0.0],
    [0.0, -1.0, 0.0, 0.0],
    [0.0, 0.0, 0.0, 1.0],
])


class TestTransformPoints:
    def test_identity_matrix_keeps_points(self):
        points = np.array([[1.0, 2.0, 3.0], [-1.0, 0.5, 0.0]])
        result = transform_points(points, np.eye(4))
        np.testing.assert_array_almost_equal(result, points)

    def test_translation(self):
        T = np.eye(4)
        T[:3, 3] = [1.0, -2.0, 0.5]
        result = transform_points(np.array([[0.0, 0.0, 0.0]]), T)
        np.testing.assert_array_almost_equal(result, [[1.0, -2.0, 0.5]])

    def test_extra_columns_are_dropped(self):
        """Test (N, 4) input yields (N, 3) output"""
        points = np.array([[1.0, 2.0, 3.0, 99.0]])
        result = transform_points(points, np.eye(4))
        assert result.shape == (1, 3)

    def test_empty_points(self):
        result = transform_points(np.zeros((0, 3)), np.eye(4))
        assert result.shape == (0, 3)


class TestRigidTransform:
    def test_identity_apply(self):
        points = np.array([[1.0, 2.0, 3.0]])
        np.testing.assert_array_almost_equal(RigidTransform.identity().apply(points), points)

    def test_from_yaw_rotates_x_onto_y(self):
        t = RigidTransform.from_yaw(math.pi / 2, (0.0, 0.0, 0.0))
        np.testing.assert_array_almost_equal(t.apply(np.array([[1.0, 0.0, 0.0]])), [[0.0, 1.0, 0.0]])

    def test_from_euler_uses_degrees(self):
        t = RigidTransform.from_euler(1.0, 0.0, 0.0, yaw=90.0)
        np.testing.assert_array_almost_equal(t.apply(np.array([[1.0, 0.0, 0.0]])), [[1.0, 1.0, 0.0]])

    def test_from_quaternion_normalizes(self):
        t = RigidTransform.from_quaternion((0.0, 0.0, 2.0, 2.0))
        np.testing.assert_allclose(np.linalg.norm(t.quaternion), 1.0)
        np.testing.assert_array_almost_equal(t.apply(np.array([[1.0, 0.0, 0.0]])), [[0.0, 1.0, 0.0]])

    def test_matrix_roundtrip(self):
        t = RigidTransform.from_matrix(OPTICAL_TO_BODY)
        np.testing.assert_array_almost_equal(t.as_matrix(), OPTICAL_TO_BODY)

    def test_compose_applies_right_operand_first(self):
        """Test a.compose(b) maps p to a(b(p))"""
        a = RigidTransform.from_yaw(math.pi / 2, (1.0, 0.0, 0.0))
        b = RigidTransform.from_euler(0.0, 2.0, 0.0)
        p = np.array([[1.0, 0.0, 0.0]])

        np.testing.assert_array_almost_equal(a.compose(b).apply(p), a.apply(b.apply(p)))

    def test_inverse_undoes_transform(self):
        t = RigidTransform.from_euler(0.3, -1.2, 0.7, roll=10.0, pitch=-25.0, yaw=140.0)
        p = np.array([[0.5, 0.25, -3.0]])

        np.testing.assert_array_almost_equal(t.inverse().apply(t.apply(p)), p)
        np.testing.assert_array_almost_equal(t.compose(t.inverse()).as_matrix(), np.eye(4))

    def test_apply_vector_ignores_translation(self):
        t = RigidTransform.from_yaw(0.0, (5.0, 5.0, 5.0))
        np.testing.assert_array_almost_equal(t.apply_vector((1.0, 0.0, 0.0)), [1.0, 0.0, 0.0])

    def test_translation_is_read_only(self):
        t = RigidTransform.from_euler(1.0, 2.0, 3.0)
        with pytest.raises(ValueError):
            t.translation[0] = 5.0

    def test_compose_and_inverse_with_translation(self):
        """Test read-only translations can still be rotated by compose and inverse"""
        a = RigidTransform.from_yaw(math.pi / 2, (1.0, 2.0, 0.5))
        b = RigidTransform.from_euler(3.0, -1.0, 0.25, roll=15.0)
        assert not a.translation.flags.writeable

        composed = a.compose(b)
        np.testing.assert_array_almost_equal(composed.translation, [2.0, 5.0, 0.75])

        inverse = a.inverse()
        np.testing.assert_array_almost_equal(inverse.translation, [-2.0, 1.0, -0.5])
        np.testing.assert_array_almost_equal(a.translation, [1.0, 2.0, 0.5])

    def test_apply_vector_accepts_translation(self):
        t = RigidTransform.from_yaw(math.pi / 2, (1.0, 0.0, 0.0))
        np.testing.assert_array_almost_equal(t.apply_vector(t.translation), [0.0, 1.0, 0.0])

    def test_to_dict(self):
        data = RigidTransform.from_euler(1.0, 2.0, 3.0, yaw=45.0).to_dict()

        assert data["x"] == pytest.approx(1.0)
        assert data["z"] == pytest.approx(3.0)
        assert data["yaw"] == pytest.approx(45.0)
        assert set(data) == {"x", "y", "z", "qx", "qy", "qz", "qw", "roll", "pitch", "yaw"}


class TestStampedTransform:
    def test_to_dict_includes_frames(self):
        stamped = StampedTransform("base", "sensor", 12.5, RigidTransform.from_euler(0.0, 0.0, 1.0))
        data = stamped.to_dict()

        assert data["parent_frame"] == "base"
        assert data["child_frame"] == "sensor"
        assert data["stamp"] == 12.5
        assert data["z"] == pytest.approx(1.0)


class TestYawOfAxis:
    def test_level_optical_frame_faces_forward(self):
        """Test an untilted optical frame looks along the parent's x axis"""
        t = RigidTransform.from_matrix(OPTICAL_TO_BODY)
        assert yaw_of_axis(t) == pytest.approx(0.0)

    def test_yawed_sensor(self):
        t = RigidTransform.from_yaw(math.pi / 2, (0.0, 0.0, 0.0)).compose(RigidTransform.from_matrix(OPTICAL_TO_BODY))
        assert yaw_of_axis(t) == pytest.approx(math.pi / 2)

    def test_pitch_does_not_change_yaw(self):
        pitched = RigidTransform.from_euler(0.0, 0.0, 0.0, pitch=20.0)
        t = pitched.compose(RigidTransform.from_matrix(OPTICAL_TO_BODY))
        assert yaw_of_axis(t) == pytest.approx(0.0)
