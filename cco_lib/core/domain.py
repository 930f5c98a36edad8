"""
Perfusion domains for tree growth.

A domain hands out candidate terminal points one at a time from a preloaded
point set, provides seed points for the roots, and decides whether a segment
lies inside the perfused region. Membership is delegated to a
``DomainFunction`` so the same point cloud can be paired with different
analytic shapes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple
import numpy as np

from .errors import DomainExhaustedError
from .geometry import distance_from_segment


class DomainFunction(ABC):
    """Segment membership predicate of a perfusion region."""

    @abstractmethod
    def is_in(self, point_a: np.ndarray, point_b: np.ndarray) -> bool:
        """Check if segment AB lies in the region."""
        pass

    @abstractmethod
    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        pass


class TautologyFunction(DomainFunction):
    """Every segment is inside."""

    def is_in(self, point_a: np.ndarray, point_b: np.ndarray) -> bool:
        return True

    def to_dict(self) -> dict:
        return {"type": "tautology"}


@dataclass
class CircleFunction(DomainFunction):
    """Circle (2D) or sphere (3D): both endpoints within ``radius`` of the center."""

    radius: float = 1.0
    center: Optional[Sequence[float]] = None

    def __post_init__(self):
        if self.radius <= 0.0:
            raise ValueError(f"radius must be positive, got {self.radius}")

    def _center(self, dim: int) -> np.ndarray:
        if self.center is None:
            return np.zeros(dim)
        return np.asarray(self.center, dtype=np.float64)

    def is_in(self, point_a: np.ndarray, point_b: np.ndarray) -> bool:
        c = self._center(len(point_a))
        return bool(
            np.linalg.norm(np.asarray(point_a) - c) <= self.radius
            and np.linalg.norm(np.asarray(point_b) - c) <= self.radius
        )

    def to_dict(self) -> dict:
        return {
            "type": "circle",
            "radius": self.radius,
            "center": None if self.center is None else list(self.center),
        }


@dataclass
class CubeFunction(DomainFunction):
    """Square (2D) or cube (3D) ``[0, length]^d``."""

    length: float = 1.0

    def __post_init__(self):
        if self.length <= 0.0:
            raise ValueError(f"length must be positive, got {self.length}")

    def is_in(self, point_a: np.ndarray, point_b: np.ndarray) -> bool:
        pts = np.array([point_a, point_b], dtype=np.float64)
        return bool(np.all((pts >= 0.0) & (pts <= self.length)))

    def to_dict(self) -> dict:
        return {"type": "cube", "length": self.length}


@dataclass
class DiscFunction(DomainFunction):
    """
    Annulus (2D) or spherical shell (3D) centered at the origin.

    Both endpoints must lie between the radii and the segment must not cut
    through the inner hole.
    """

    inner_radius: float = 0.5
    outer_radius: float = 1.0

    def __post_init__(self):
        if not 0.0 <= self.inner_radius < self.outer_radius:
            raise ValueError(
                f"inner_radius ({self.inner_radius}) must be in [0, outer_radius "
                f"({self.outer_radius}))"
            )

    def is_in(self, point_a: np.ndarray, point_b: np.ndarray) -> bool:
        a = np.asarray(point_a, dtype=np.float64)
        b = np.asarray(point_b, dtype=np.float64)
        for p in (a, b):
            r = float(np.linalg.norm(p))
            if r < self.inner_radius or r > self.outer_radius:
                return False
        return distance_from_segment(np.zeros_like(a), a, b) >= self.inner_radius

    def to_dict(self) -> dict:
        return {
            "type": "disc",
            "inner_radius": self.inner_radius,
            "outer_radius": self.outer_radius,
        }


def domain_function_from_dict(d: dict) -> DomainFunction:
    """Create domain function from dictionary."""
    kind = d.get("type")
    if kind == "tautology":
        return TautologyFunction()
    if kind == "circle":
        return CircleFunction(radius=d["radius"], center=d.get("center"))
    if kind == "cube":
        return CubeFunction(length=d["length"])
    if kind == "disc":
        return DiscFunction(inner_radius=d["inner_radius"], outer_radius=d["outer_radius"])
    raise ValueError(f"Unknown domain function type: {kind}")


class Domain(ABC):
    """Source of candidate points, seeds and segment membership."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        pass

    @property
    @abstractmethod
    def volume(self) -> float:
        """Volume (area in 2D) of the perfused region."""
        pass

    @property
    @abstractmethod
    def number_of_seeds(self) -> int:
        pass

    @property
    @abstractmethod
    def total_number_of_points(self) -> int:
        pass

    @abstractmethod
    def point(self) -> np.ndarray:
        """
        Next candidate point.

        Raises
        ------
        DomainExhaustedError
            If every point has been handed out since the last ``reset``.
        """
        pass

    @abstractmethod
    def has_available_point(self) -> bool:
        pass

    @abstractmethod
    def reset(self) -> None:
        """Rewind the point cursor."""
        pass

    @abstractmethod
    def seed(self, seed_id: int) -> np.ndarray:
        pass

    @abstractmethod
    def is_in(self, point_a: np.ndarray, point_b: np.ndarray) -> bool:
        pass


class PointSetDomain(Domain):
    """
    Domain over an in-memory point cloud with a sequential cursor.

    Parameters
    ----------
    points : array_like, shape (n, d)
        Candidate terminal points, handed out in order
    seeds : array_like, shape (m, d)
        Root seed points
    volume : float
        Volume (area in 2D) of the region
    function : DomainFunction, optional
        Segment membership test; everything is inside when omitted
    total_number_of_points : int, optional
        Use only the first ``total_number_of_points`` points
    """

    def __init__(
        self,
        points,
        seeds,
        volume: float,
        function: Optional[DomainFunction] = None,
        total_number_of_points: Optional[int] = None,
    ):
        points = np.array(points, dtype=np.float64)
        seeds = np.array(seeds, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] not in (2, 3):
            raise ValueError(f"points must have shape (n, 2) or (n, 3), got {points.shape}")
        if seeds.ndim == 1:
            seeds = seeds[None, :]
        if seeds.ndim != 2 or seeds.shape[1] != points.shape[1]:
            raise ValueError(
                f"seeds must have shape (m, {points.shape[1]}), got {seeds.shape}"
            )
        if volume < 0.0:
            raise ValueError(f"volume must be non-negative, got {volume}")
        if total_number_of_points is not None:
            if total_number_of_points < 0:
                raise ValueError("total_number_of_points must be non-negative")
            points = points[:total_number_of_points]

        self._points = points
        self._seeds = seeds
        self._volume = float(volume)
        self.function = function or TautologyFunction()
        self._cursor = 0

    @property
    def dimension(self) -> int:
        return int(self._points.shape[1])

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def number_of_seeds(self) -> int:
        return int(self._seeds.shape[0])

    @property
    def total_number_of_points(self) -> int:
        return int(self._points.shape[0])

    @property
    def points(self) -> np.ndarray:
        return self._points

    @property
    def seeds(self) -> np.ndarray:
        return self._seeds

    def point(self) -> np.ndarray:
        if self._cursor >= self._points.shape[0]:
            raise DomainExhaustedError("No more points in domain")
        p = self._points[self._cursor].copy()
        self._cursor += 1
        return p

    def has_available_point(self) -> bool:
        return self._cursor < self._points.shape[0]

    def reset(self) -> None:
        self._cursor = 0

    def seed(self, seed_id: int) -> np.ndarray:
        if not 0 <= seed_id < self._seeds.shape[0]:
            raise IndexError(
                f"Seed {seed_id} out of range (domain has {self._seeds.shape[0]} seeds)"
            )
        return self._seeds[seed_id].copy()

    def is_in(self, point_a: np.ndarray, point_b: np.ndarray) -> bool:
        return self.function.is_in(point_a, point_b)

    def get_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Axis-aligned bounding box of the point cloud."""
        return self._points.min(axis=0), self._points.max(axis=0)

    @classmethod
    def sample(
        cls,
        function: DomainFunction,
        lower,
        upper,
        n_points: int,
        seeds,
        volume: Optional[float] = None,
        seed: Optional[int] = None,
    ) -> "PointSetDomain":
        """
        Build a domain by rejection sampling inside a bounding box.

        A point ``p`` is kept when ``function.is_in(p, p)``. When ``volume``
        is omitted it is estimated from the acceptance rate.

        Parameters
        ----------
        function : DomainFunction
            Region membership
        lower, upper : array_like
            Bounding box corners; their length sets the dimension
        n_points : int
            Number of points to keep
        seeds : array_like
            Root seed points
        volume : float, optional
            Exact region volume (area in 2D)
        seed : int, optional
            Random seed
        """
        lower = np.asarray(lower, dtype=np.float64)
        upper = np.asarray(upper, dtype=np.float64)
        if lower.shape != upper.shape or lower.shape[0] not in (2, 3):
            raise ValueError("lower and upper must be matching 2D or 3D corners")
        if np.any(lower >= upper):
            raise ValueError(f"lower ({lower}) must be less than upper ({upper})")
        if n_points < 1:
            raise ValueError(f"n_points must be >= 1, got {n_points}")

        rng = np.random.default_rng(seed)
        points = []
        drawn = 0
        max_draws = 1000 * n_points
        while len(points) < n_points:
            if drawn >= max_draws:
                raise ValueError(
                    f"Could not sample {n_points} points inside the domain after {drawn} draws"
                )
            candidate = rng.uniform(lower, upper)
            drawn += 1
            if function.is_in(candidate, candidate):
                points.append(candidate)

        if volume is None:
            volume = float(np.prod(upper - lower)) * len(points) / drawn
        return cls(points, seeds, volume, function=function)


@dataclass
class DomainSummary:
    """Plain description of a domain for reports."""

    dimension: int
    volume: float
    number_of_seeds: int
    total_number_of_points: int
    function: dict = field(default_factory=dict)

    @classmethod
    def of(cls, domain: Domain) -> "DomainSummary":
        function = getattr(domain, "function", None)
        return cls(
            dimension=domain.dimension,
            volume=domain.volume,
            number_of_seeds=domain.number_of_seeds,
            total_number_of_points=domain.total_number_of_points,
            function=function.to_dict() if function is not None else {},
        )

    def to_dict(self) -> dict:
        return {
            "dimension": self.dimension,
            "volume": self.volume,
            "number_of_seeds": self.number_of_seeds,
            "total_number_of_points": self.total_number_of_points,
            "function": self.function,
        }
