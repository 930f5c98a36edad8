"""Growth operations: vicinity search, bifurcation optimization and the CCO driver."""

from .search import TreeConnectionSearch
from .optimization import GeometricOptimization, SimpleOptimization
from .evaluation import ConnectionEvaluationTable
from .cco import ConstrainedConstructiveOptimization, supporting_radius

__all__ = [
    "TreeConnectionSearch",
    "GeometricOptimization",
    "SimpleOptimization",
    "ConnectionEvaluationTable",
    "ConstrainedConstructiveOptimization",
    "supporting_radius",
]
