import pytest
import numpy as np

from cco_lib.core import geometry


def test_angle_of_short_vector_is_zero():
    """Test that vectors shorter than the tolerance give an angle of exactly 0."""
    assert geometry.angle(np.array([1e-9, 0.0]), np.array([0.0, 1.0])) == 0.0


def test_angle_orthogonal():
    """Test the angle between orthogonal vectors."""
    assert geometry.angle(np.array([1.0, 0.0, 0.0]), np.array([0.0, 2.0, 0.0])) == pytest.approx(np.pi / 2)


def test_angle_opposite_is_clipped():
    """Test that antiparallel vectors give pi without NaN."""
    assert geometry.angle(np.array([1.0, 1.0]), np.array([-1.0, -1.0])) == pytest.approx(np.pi)


def test_distance_from_segment_orthogonal():
    """Test the orthogonal distance when the projection falls on the segment."""
    d = geometry.distance_from_segment(np.array([0.5, 1.0]), np.array([0.0, 0.0]), np.array([1.0, 0.0]))
    assert d == pytest.approx(1.0)


def test_distance_from_segment_endpoint():
    """Test the endpoint distance when the projection falls outside the segment."""
    d = geometry.distance_from_segment(
        np.array([2.0, 0.0, 0.0]), np.array([0.0, 0.0, 0.0]), np.array([1.0, 0.0, 0.0])
    )
    assert d == pytest.approx(1.0)


def test_distances_from_segments_vectorized():
    """Test that the stacked variant agrees with the scalar one."""
    point = np.array([0.3, 0.7])
    proximal = np.array([[0.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
    distal = np.array([[1.0, 0.0], [2.0, 1.0], [0.0, 2.0]])
    stacked = geometry.distances_from_segments(point, proximal, distal)
    for i in range(3):
        assert stacked[i] == pytest.approx(
            geometry.distance_from_segment(point, proximal[i], distal[i])
        )


def test_intersection_2d_crossing():
    """Test that crossing diagonals intersect."""
    assert geometry.has_intersection(
        np.array([0.0, 0.0]), np.array([1.0, 1.0]),
        np.array([0.0, 1.0]), np.array([1.0, 0.0]), 0.0,
    )


def test_intersection_2d_parallel():
    """Test that parallel segments never intersect."""
    assert not geometry.has_intersection(
        np.array([0.0, 0.0]), np.array([1.0, 0.0]),
        np.array([0.0, 0.1]), np.array([1.0, 0.1]), 0.5,
    )


def test_intersection_3d_uses_tolerance():
    """Test that skew 3D segments intersect only within the radius tolerance."""
    a, b = np.array([0.0, 0.0, 0.0]), np.array([1.0, 1.0, 0.0])
    c, d = np.array([0.0, 1.0, 1.0]), np.array([1.0, 0.0, 1.0])
    assert not geometry.has_intersection(a, b, c, d, 0.1)
    assert geometry.has_intersection(a, b, c, d, 2.0)


def test_cross_embeds_2d():
    """Test that the 2D cross product is returned as a 3-vector."""
    np.testing.assert_allclose(geometry.cross(np.array([1.0, 0.0]), np.array([0.0, 1.0])), [0.0, 0.0, 1.0])
