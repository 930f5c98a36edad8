"""Core data structures: geometry kernel, segment arena and domains."""

from . import geometry
from .types import Segment, Connection, ROOT_ID, TERMINAL_END, POISEUILLE_CONSTANT
from .errors import DomainExhaustedError, RootPlacementError, GrowthStalledError, DomainFileError
from .result import GrowthStatus, GrowthResult
from .tree import Tree
from .domain import (
    Domain,
    PointSetDomain,
    DomainFunction,
    TautologyFunction,
    CircleFunction,
    CubeFunction,
    DiscFunction,
    domain_function_from_dict,
)

__all__ = [
    "geometry",
    "Segment",
    "Connection",
    "ROOT_ID",
    "TERMINAL_END",
    "POISEUILLE_CONSTANT",
    "DomainExhaustedError",
    "RootPlacementError",
    "GrowthStalledError",
    "DomainFileError",
    "GrowthStatus",
    "GrowthResult",
    "Tree",
    "Domain",
    "PointSetDomain",
    "DomainFunction",
    "TautologyFunction",
    "CircleFunction",
    "CubeFunction",
    "DiscFunction",
    "domain_function_from_dict",
]
