"""
Weighted nearest-tree partition of a domain.

Each tree is represented by the distal points of its segments at the time
the partition is built. A point belongs to the tree minimizing
``distance / target ** weight``, so trees with a larger flow share claim a
larger territory.
"""

from typing import List, Sequence, Tuple
import numpy as np
from scipy.spatial import cKDTree


class DomainVoronoi:
    """
    Domain subsets assigned to the trees of a forest.

    Parameters
    ----------
    domain : Domain
        Region to partition; ``territory`` and ``diagram`` need a domain
        exposing its ``points``
    trees : sequence of Tree
        Grown trees, each with at least one segment
    targets : sequence of float
        Flow share of each tree
    weight : float
        Territory weight applied to the targets (default 0.5)
    """

    def __init__(self, domain, trees: Sequence, targets: Sequence[float], weight: float = 0.5):
        if len(trees) != len(targets):
            raise ValueError(
                f"Got {len(trees)} trees but {len(targets)} target flows"
            )
        if any(tree.current_number_of_segments == 0 for tree in trees):
            raise ValueError("Every tree needs at least one segment")
        self.domain = domain
        self.trees = list(trees)
        self.targets = np.asarray(targets, dtype=np.float64)
        self.weight = float(weight)
        self._reference = [tree.distal_points() for tree in self.trees]
        self._kdtrees = [cKDTree(points) for points in self._reference]

    @property
    def number_of_subsets(self) -> int:
        return len(self.trees)

    def _scaled_distances(self, points: np.ndarray) -> np.ndarray:
        scale = self.targets ** self.weight
        columns = []
        for t, kdtree in enumerate(self._kdtrees):
            d, _ = kdtree.query(points)
            columns.append(d / scale[t])
        return np.column_stack(columns)

    def in_subset(self, point) -> int:
        """Id of the tree whose territory contains ``point``."""
        point = np.asarray(point, dtype=np.float64)
        return int(np.argmin(self._scaled_distances(point[None, :])[0]))

    def diagram(self) -> np.ndarray:
        """Tree id of every domain point."""
        points = np.asarray(self.domain.points)
        return np.argmin(self._scaled_distances(points), axis=1)

    def territory(self) -> np.ndarray:
        """Fraction of the domain points in each tree's territory."""
        labels = self.diagram()
        counts = np.bincount(labels, minlength=self.number_of_subsets)
        return counts / max(len(labels), 1)

    def reference_points(self) -> Tuple[np.ndarray, np.ndarray]:
        """Stacked reference points and the tree id of each."""
        points: List[np.ndarray] = []
        ids: List[np.ndarray] = []
        for t, reference in enumerate(self._reference):
            points.append(reference)
            ids.append(np.full(len(reference), t, dtype=np.int64))
        return np.vstack(points), np.concatenate(ids)
