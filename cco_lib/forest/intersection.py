"""
Cross-tree intersection check for forests.
"""

from typing import Sequence

from ..core.geometry import intersections
from ..rules.restrictions import GeometricRestriction


class ForestIntersection(GeometricRestriction):
    """
    A bifurcation and its two children must not cross any other tree.

    Segments of the tree being tested are ignored; use
    ``WithoutIntersection`` for those.

    Parameters
    ----------
    trees : sequence of Tree
        The forest; the tested tree is recognized by identity
    """

    def __init__(self, trees: Sequence):
        self.trees = list(trees)

    def passes(self, tree, segment_id: int) -> bool:
        checks = [segment_id]
        if not tree.is_terminal(segment_id):
            checks.extend([tree.left(segment_id), tree.right(segment_id)])

        for other in self.trees:
            if other is tree or other.current_number_of_segments == 0:
                continue
            proximal = other.proximal_points()
            distal = other.distal_points()
            radii = other.radii()
            for check in checks:
                hits = intersections(
                    tree.proximal_point(check),
                    tree.distal_point(check),
                    proximal,
                    distal,
                    radii + tree.radius(check),
                )
                if hits.any():
                    return False
        return True
