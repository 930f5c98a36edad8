"""
Distance criteria: minimum spacing between a candidate point and a tree.
"""

from abc import ABC, abstractmethod
import numpy as np

from ..core.geometry import distances_from_segments

DEFAULT_RELAXATION_FACTOR = 0.9


class DistanceCriterion(ABC):
    """
    Minimum allowed distance between a new terminal point and a tree.

    The tree is passed on every evaluation, so one criterion instance can be
    shared between the trees of a forest.
    """

    @abstractmethod
    def eval(self, tree, point: np.ndarray) -> bool:
        """Check that ``point`` is far enough from every segment of ``tree``."""
        pass

    @abstractmethod
    def relax(self, factor: float = DEFAULT_RELAXATION_FACTOR) -> float:
        """Shrink the minimum distance and return the new value."""
        pass

    @abstractmethod
    def update(self, current_number_of_terminals: int) -> float:
        """Recompute the minimum distance for a terminal count."""
        pass

    @property
    @abstractmethod
    def minimum_distance(self) -> float:
        pass


class ClassicDistanceCriterion(DistanceCriterion):
    """
    Classic CCO spacing ``(V / n) ** (1 / d)``.

    Parameters
    ----------
    perfusion_volume : float
        Perfused volume (area in 2D)
    dimension : int
        2 or 3
    """

    def __init__(self, perfusion_volume: float, dimension: int):
        if dimension not in (2, 3):
            raise ValueError(f"dimension must be 2 or 3, got {dimension}")
        if perfusion_volume <= 0.0:
            raise ValueError(f"perfusion_volume must be positive, got {perfusion_volume}")
        self.perfusion_volume = float(perfusion_volume)
        self.dimension = int(dimension)
        self._minimum_distance = self.perfusion_volume ** (1.0 / self.dimension)

    @classmethod
    def for_tree(cls, tree) -> "ClassicDistanceCriterion":
        return cls(tree.perfusion_volume, tree.dimension)

    @property
    def minimum_distance(self) -> float:
        return self._minimum_distance

    def eval(self, tree, point: np.ndarray) -> bool:
        if tree.current_number_of_segments == 0:
            return True
        d = distances_from_segments(point, tree.proximal_points(), tree.distal_points())
        return bool(np.all(d >= self._minimum_distance))

    def relax(self, factor: float = DEFAULT_RELAXATION_FACTOR) -> float:
        if not 0.0 < factor < 1.0:
            raise ValueError(f"Relaxation factor must be in (0, 1), got {factor}")
        self._minimum_distance *= factor
        return self._minimum_distance

    def update(self, current_number_of_terminals: int) -> float:
        if current_number_of_terminals < 1:
            raise ValueError(
                f"current_number_of_terminals must be >= 1, got {current_number_of_terminals}"
            )
        self._minimum_distance = (
            self.perfusion_volume / current_number_of_terminals
        ) ** (1.0 / self.dimension)
        return self._minimum_distance
