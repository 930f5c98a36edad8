"""
Trial bifurcation-geometry optimization.

After a trial terminal is attached to a segment, the optimizer scans
positions of the new bifurcation point and keeps the one with the lowest
target function value that satisfies every geometric restriction.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
import numpy as np

from ..core.types import Connection
from ..rules.restrictions import GeometricRestriction, ValidSegment, BifurcationSymmetry
from ..rules.targets import TargetFunction

DEFAULT_INTERVAL_DIVISION = 5
DEFAULT_GRID_OFFSET = 0.3


class GeometricOptimization(ABC):
    """
    Chooses the bifurcation point of a freshly attached terminal.

    Parameters
    ----------
    domain : Domain
        Segment membership is checked for the bifurcation and both children
    target_function : TargetFunction
        Cost to minimize
    restrictions : sequence of GeometricRestriction
        Checked in order after the domain test
    """

    def __init__(
        self,
        domain,
        target_function: TargetFunction,
        restrictions: Sequence[GeometricRestriction],
    ):
        self.domain = domain
        self.target_function = target_function
        self.restrictions: List[GeometricRestriction] = list(restrictions)

    @abstractmethod
    def bifurcation(self, tree, segment_id: int) -> Connection:
        """
        Optimize the bifurcation at ``segment_id``.

        ``segment_id`` must be a bifurcation whose right child is the trial
        terminal. The tree is left as it was found.
        """
        pass

    def pass_restrictions(self, tree, segment_id: int) -> bool:
        """Domain membership of the three segments, then every restriction."""
        for sid in (segment_id, tree.right(segment_id), tree.left(segment_id)):
            if not self.domain.is_in(tree.proximal_point(sid), tree.distal_point(sid)):
                return False
        for restriction in self.restrictions:
            if not restriction.passes(tree, segment_id):
                return False
        return True


class SimpleOptimization(GeometricOptimization):
    """
    Exhaustive search over a triangular barycentric grid.

    The triangle spans three reference points pulled inward by ``offset``:
    two on the old segment (near its proximal and distal ends) and one on
    the new terminal near the old bifurcation. With ``n`` interval divisions
    the grid has ``(n + 1)(n + 2) / 2`` points.

    Parameters
    ----------
    domain : Domain
    target_function : TargetFunction
    interval_division : int
        Grid subdivisions per triangle edge (default 5)
    offset : float
        Inward offset of the reference points in (0, 0.5) (default 0.3)
    symmetry_threshold : float
        Threshold of the default ``BifurcationSymmetry`` restriction
    restrictions : sequence of GeometricRestriction, optional
        Replaces the default ``[ValidSegment(), BifurcationSymmetry(...)]``
    """

    def __init__(
        self,
        domain,
        target_function: TargetFunction,
        interval_division: int = DEFAULT_INTERVAL_DIVISION,
        offset: float = DEFAULT_GRID_OFFSET,
        symmetry_threshold: float = 0.0,
        restrictions: Optional[Sequence[GeometricRestriction]] = None,
    ):
        if interval_division < 1:
            raise ValueError(f"interval_division must be >= 1, got {interval_division}")
        if not 0.0 < offset < 0.5:
            raise ValueError(f"offset must be in (0, 0.5), got {offset}")
        if restrictions is None:
            restrictions = [ValidSegment(), BifurcationSymmetry(symmetry_threshold)]
        super().__init__(domain, target_function, restrictions)
        self.interval_division = interval_division
        self.offset = offset
        self._weights = self._barycentric_weights(interval_division)

    @staticmethod
    def _barycentric_weights(interval_division: int) -> np.ndarray:
        # Rows of (w_i, w_new, w_j), scanned line by line from the Xi-Xnew edge
        step = 1.0 / interval_division
        points = interval_division + 1
        weights = []
        for line in range(points, 0, -1):
            for column in range(1, line + 1):
                a = (column - 1) * step
                b = (points - line) * step
                weights.append((1.0 - a - b, a, b))
        return np.array(weights)

    def grid(self, tree, segment_id: int) -> np.ndarray:
        """Candidate bifurcation points for ``segment_id``, shape (m, d)."""
        proximal = tree.proximal_point(segment_id)
        old_bifurcation = tree.distal_point(segment_id)
        new_distal = tree.distal_point(tree.right(segment_id))
        connection_distal = tree.distal_point(tree.left(segment_id))

        x_i = proximal + self.offset * (connection_distal - proximal)
        x_j = proximal + (1.0 - self.offset) * (connection_distal - proximal)
        x_new = new_distal + self.offset * (old_bifurcation - new_distal)
        return self._weights @ np.vstack([x_i, x_new, x_j])

    def bifurcation(self, tree, segment_id: int) -> Connection:
        old_bifurcation = tree.distal_point(segment_id)
        best_value = np.inf
        best_point = None

        for candidate in self.grid(tree, segment_id):
            tree.move_distal_point(segment_id, candidate)
            if not self.pass_restrictions(tree, segment_id):
                continue
            value = self.target_function.eval(tree)
            if value < best_value:
                best_value = value
                best_point = candidate.copy()

        if best_point is None:
            connection = Connection.empty_connection()
        else:
            connection = Connection(
                segment_id=int(segment_id),
                bifurcation_point=best_point,
                new_segment=tree.segment(tree.right(segment_id)),
                target_value=float(best_value),
            )

        tree.move_distal_point(segment_id, old_bifurcation)
        return connection
