"""
Connection evaluation table.

Collects the optimized candidate connections for one candidate point,
re-checks each of them for intersections against the whole tree and picks
the cheapest one that survives.
"""

from typing import List, Optional
import numpy as np

from ..core.types import Connection
from ..rules.restrictions import WithoutIntersection


class ConnectionEvaluationTable:
    """
    Fixed-capacity table of trial connections.

    Parameters
    ----------
    number_of_connections : int
        Capacity; extra ``add`` calls are ignored
    """

    def __init__(self, number_of_connections: int):
        if number_of_connections < 1:
            raise ValueError(
                f"number_of_connections must be >= 1, got {number_of_connections}"
            )
        self.number_of_connections = number_of_connections
        self._connections: List[Optional[Connection]] = [None] * number_of_connections
        self._reasonable = np.zeros(number_of_connections, dtype=np.int64)
        self.current_number_of_connections = 0
        self.current_number_of_reasonable_connections = 0
        self.without_intersection = WithoutIntersection()

    @property
    def connections(self) -> List[Connection]:
        return self._connections[: self.current_number_of_connections]

    @property
    def reasonable_connections(self) -> List[Connection]:
        return [
            self._connections[i]
            for i in self._reasonable[: self.current_number_of_reasonable_connections]
        ]

    def add(self, connection: Connection) -> bool:
        """Store a connection if capacity remains; return whether it was stored."""
        if self.current_number_of_connections >= self.number_of_connections:
            return False
        self._connections[self.current_number_of_connections] = connection
        self.current_number_of_connections += 1
        return True

    def reduce(self, tree) -> int:
        """
        Keep the connections that do not intersect the tree.

        Each connection is grown, tested and undone, so the tree is left
        unchanged.

        Returns
        -------
        int
            Number of reasonable connections
        """
        count = 0
        for i in range(self.current_number_of_connections):
            connection = self._connections[i]
            bifurcation = tree.grow_segment(
                connection.bifurcation_point, connection.segment_id, connection.new_segment
            )
            passed = self.without_intersection.passes(tree, bifurcation)
            tree.remove(tree.right(bifurcation))
            if passed:
                self._reasonable[count] = i
                count += 1
        self.current_number_of_reasonable_connections = count
        return count

    def optimal_reasonable_connection(self) -> Connection:
        """Reasonable connection with the lowest target value (first wins ties)."""
        best = None
        best_value = np.inf
        for i in self._reasonable[: self.current_number_of_reasonable_connections]:
            connection = self._connections[i]
            if connection.target_value < best_value:
                best = connection
                best_value = connection.target_value
        if best is None:
            return Connection.empty_connection()
        return best

    def reset(self) -> None:
        """Forget all connections, keeping the buffers."""
        for i in range(self.current_number_of_connections):
            self._connections[i] = None
        self.current_number_of_connections = 0
        self.current_number_of_reasonable_connections = 0
