"""
CCO Library - Constrained Constructive Optimization of Vascular Trees

Grows synthetic arterial trees inside a perfusion domain by adding one
terminal segment at a time, each connection chosen to minimise a global
cost (tree volume by default) under geometric and physiological
restrictions. Forests of competing trees share one domain.

Key Features:
- Segment arena with Poiseuille resistances and Murray-law radius ratios
- Pluggable policies: distance criterion, restrictions, target, terminal flow
- Single-tree growth plus staged (COAT) and invasion forest growth
- Structured results with status, counters and warnings
- VTK/CSV/JSON export, morphometry and forest reports

Example Usage:
    from cco_lib import ConstrainedConstructiveOptimization, PointSetDomain
    from cco_lib.core import CircleFunction
    from cco_lib.params import TreeParameters

    domain = PointSetDomain.sample(
        CircleFunction(0.0287941), [-0.03] * 3, [0.03] * 3, 5000,
        seeds=[[0.0, 0.0, 0.0287941]], seed=42,
    )
    cco = ConstrainedConstructiveOptimization.from_parameters(
        domain, TreeParameters(number_of_terminals=100)
    )
    result = cco.grow()
    print(result.status, cco.tree.root_radius())
"""

__version__ = "0.1.0"

from .core.types import Segment, Connection, ROOT_ID, TERMINAL_END
from .core.tree import Tree
from .core.domain import PointSetDomain, CircleFunction, CubeFunction, DiscFunction
from .core.result import GrowthResult, GrowthStatus
from .core.errors import (
    DomainExhaustedError,
    RootPlacementError,
    GrowthStalledError,
    DomainFileError,
)

from .ops.cco import ConstrainedConstructiveOptimization

from .forest.coat import CompetingOptimizedArterialTrees
from .forest.invasion import ForestCcoInvasion

from .params.config import TreeParameters, GrowthParameters, ForestParameters
from .params.presets import get_preset, list_presets

from .analysis.morphometry import TreeMorphometry

from .io.domain_file import read_domain_file, write_domain_file
from .io.vtk import save_vtk, save_csv
from .io.serialize import save_json, load_json

__all__ = [
    "Segment",
    "Connection",
    "ROOT_ID",
    "TERMINAL_END",
    "Tree",
    "PointSetDomain",
    "CircleFunction",
    "CubeFunction",
    "DiscFunction",
    "GrowthResult",
    "GrowthStatus",
    "DomainExhaustedError",
    "RootPlacementError",
    "GrowthStalledError",
    "DomainFileError",
    "ConstrainedConstructiveOptimization",
    "CompetingOptimizedArterialTrees",
    "ForestCcoInvasion",
    "TreeParameters",
    "GrowthParameters",
    "ForestParameters",
    "get_preset",
    "list_presets",
    "TreeMorphometry",
    "read_domain_file",
    "write_domain_file",
    "save_vtk",
    "save_csv",
    "save_json",
    "load_json",
]
