"""
Vicinity search: the segments closest to a candidate terminal point.
"""

import numpy as np

from ..core.geometry import distances_from_segments


class TreeConnectionSearch:
    """
    Finds the ``number_of_connections`` segments nearest to a point.

    Buffers are sized once for the final segment count of the tree. Ties in
    distance are broken by segment id so results are reproducible.

    Parameters
    ----------
    number_of_connections : int
        Maximum number of candidate segments returned
    total_number_of_segments : int
        Capacity of the tree being searched
    """

    def __init__(self, number_of_connections: int, total_number_of_segments: int):
        if number_of_connections < 1:
            raise ValueError(
                f"number_of_connections must be >= 1, got {number_of_connections}"
            )
        self.number_of_connections = number_of_connections
        self._distance = np.zeros(total_number_of_segments)
        self._closest = np.zeros(number_of_connections, dtype=np.int64)
        self.current_number_of_connections = 0

    def at_point(self, tree, point: np.ndarray) -> np.ndarray:
        """
        Ids of the closest live segments, nearest first.

        Returns
        -------
        ndarray of int
            At most ``number_of_connections`` segment ids
        """
        n = tree.current_number_of_segments
        self._distance[:n] = distances_from_segments(
            point, tree.proximal_points(), tree.distal_points()
        )
        order = np.argsort(self._distance[:n], kind="stable")
        k = min(n, self.number_of_connections)
        self._closest[:k] = order[:k]
        self.current_number_of_connections = k
        return self._closest[:k].copy()
