"""Forests: several trees competing for the flow of one domain."""

from .base import Forest, build_forest_trees
from .search import ForestConnectionSearch
from .intersection import ForestIntersection
from .voronoi import DomainVoronoi
from .coat import CompetingOptimizedArterialTrees
from .invasion import ForestCcoInvasion

__all__ = [
    "Forest",
    "build_forest_trees",
    "ForestConnectionSearch",
    "ForestIntersection",
    "DomainVoronoi",
    "CompetingOptimizedArterialTrees",
    "ForestCcoInvasion",
]
