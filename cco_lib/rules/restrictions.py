"""
Geometric restrictions checked on a bifurcation during optimization.

Every restriction is evaluated on a segment id of a tree that is passed in
explicitly; none of them keeps a reference to a tree between calls.
"""

from abc import ABC, abstractmethod
import numpy as np

from ..core.geometry import angle, intersections


class GeometricRestriction(ABC):
    """Admissibility test of a (bifurcation) segment."""

    @abstractmethod
    def passes(self, tree, segment_id: int) -> bool:
        pass


class ValidSegment(GeometricRestriction):
    """
    Segments must be at least twice as long as they are wide.

    The parent must satisfy ``l >= 2 r`` and each child
    ``l_child >= 2 r * ratio_child``.
    """

    def passes(self, tree, segment_id: int) -> bool:
        radius = tree.radius(segment_id)
        if tree.length(segment_id) < 2.0 * radius:
            return False
        if tree.is_terminal(segment_id):
            return True
        left = tree.left(segment_id)
        right = tree.right(segment_id)
        return (
            tree.length(left) >= 2.0 * radius * tree.bifurcation_ratio_left(segment_id)
            and tree.length(right) >= 2.0 * radius * tree.bifurcation_ratio_right(segment_id)
        )


class BifurcationSymmetry(GeometricRestriction):
    """Ratio of the smaller to the larger child radius must reach ``threshold``."""

    def __init__(self, threshold: float = 0.0):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"Symmetry threshold must be in [0, 1], got {threshold}")
        self.threshold = threshold

    def passes(self, tree, segment_id: int) -> bool:
        if tree.is_terminal(segment_id):
            return True
        left_radius = tree.radius(tree.left(segment_id))
        right_radius = tree.radius(tree.right(segment_id))
        if left_radius <= right_radius:
            symmetry = left_radius / right_radius
        else:
            symmetry = right_radius / left_radius
        return symmetry >= self.threshold


class ValidAngle(GeometricRestriction):
    """Angle between the two children must lie strictly inside (min, max) radians."""

    def __init__(self, minimum_angle: float = 0.0, maximum_angle: float = np.pi):
        if minimum_angle >= maximum_angle:
            raise ValueError(
                f"minimum_angle ({minimum_angle}) must be less than maximum_angle ({maximum_angle})"
            )
        self.minimum_angle = minimum_angle
        self.maximum_angle = maximum_angle

    def passes(self, tree, segment_id: int) -> bool:
        if tree.is_terminal(segment_id):
            return True
        point = tree.distal_point(segment_id)
        left_vector = tree.distal_point(tree.left(segment_id)) - point
        right_vector = tree.distal_point(tree.right(segment_id)) - point
        theta = angle(left_vector, right_vector)
        return self.minimum_angle < theta < self.maximum_angle


def is_relative(tree, segment_a: int, segment_b: int) -> bool:
    """Check if two segments are the same, or parent and child of each other."""
    if segment_a == segment_b:
        return True
    return segment_a in (tree.left(segment_b), tree.right(segment_b), tree.up(segment_b)) or (
        segment_b in (tree.left(segment_a), tree.right(segment_a), tree.up(segment_a))
    )


class WithoutIntersection(GeometricRestriction):
    """
    A bifurcation and its two children must not cross any other segment.

    Segments are tested with the combined radii as tolerance; a segment's
    parent, children and itself are exempt since they share endpoints.
    """

    def passes(self, tree, segment_id: int) -> bool:
        n = tree.current_number_of_segments
        ids = np.arange(n)
        proximal = tree.proximal_points()
        distal = tree.distal_points()
        radii = tree.radii()
        up, left, right = tree.links()

        checks = [segment_id]
        if not tree.is_terminal(segment_id):
            checks.extend([tree.left(segment_id), tree.right(segment_id)])

        for check in checks:
            relative = (
                (ids == check)
                | (ids == left[check])
                | (ids == right[check])
                | (ids == up[check])
                | (left == check)
                | (right == check)
                | (up == check)
            )
            others = ~relative
            if not others.any():
                continue
            hits = intersections(
                proximal[check],
                distal[check],
                proximal[others],
                distal[others],
                radii[others] + radii[check],
            )
            if hits.any():
                return False
        return True
