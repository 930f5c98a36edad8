"""
Vicinity search across the trees of a forest.
"""

from typing import Optional, Sequence
import numpy as np

from ..core.geometry import distances_from_segments


class ForestConnectionSearch:
    """
    Nearest segments to a point over several trees.

    Candidates are ``(tree_id, segment_id)`` pairs. Distance ties keep tree
    order, then segment order.

    Parameters
    ----------
    number_of_connections : int
        Maximum number of candidates returned
    trees : sequence of Tree
        Sizes the distance buffer once from the trees' capacities
    """

    def __init__(self, number_of_connections: int, trees: Sequence):
        if number_of_connections < 1:
            raise ValueError(
                f"number_of_connections must be >= 1, got {number_of_connections}"
            )
        self.number_of_connections = number_of_connections
        capacity = sum(tree.total_number_of_segments for tree in trees)
        self._distance = np.zeros(capacity)
        self._tree_id = np.zeros(capacity, dtype=np.int64)
        self._segment_id = np.zeros(capacity, dtype=np.int64)
        self.current_number_of_connections = 0

    def at_point(
        self,
        trees: Sequence,
        point: np.ndarray,
        active: Optional[Sequence[bool]] = None,
        tree_id: Optional[int] = None,
    ) -> np.ndarray:
        """
        Closest segments of the active trees, nearest first.

        Parameters
        ----------
        trees : sequence of Tree
        point : ndarray
        active : sequence of bool, optional
            Trees flagged False are skipped; all trees when omitted
        tree_id : int, optional
            Search this tree only, ignoring ``active``

        Returns
        -------
        ndarray of int, shape (k, 2)
            Rows of ``(tree_id, segment_id)``
        """
        if tree_id is not None:
            selected = [tree_id]
        elif active is None:
            selected = range(len(trees))
        else:
            selected = [t for t in range(len(trees)) if active[t]]

        n = 0
        for t in selected:
            tree = trees[t]
            m = tree.current_number_of_segments
            if m == 0:
                continue
            self._distance[n:n + m] = distances_from_segments(
                point, tree.proximal_points(), tree.distal_points()
            )
            self._tree_id[n:n + m] = t
            self._segment_id[n:n + m] = np.arange(m)
            n += m

        order = np.argsort(self._distance[:n], kind="stable")
        k = min(n, self.number_of_connections)
        closest = order[:k]
        self.current_number_of_connections = k
        return np.column_stack([self._tree_id[closest], self._segment_id[closest]])
