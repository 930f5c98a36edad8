"""Pluggable growth policies: physiology, spacing, admissibility, cost and flow."""

from .physiology import (
    BloodViscosity,
    BifurcationExponentLaw,
    ConstantBloodViscosity,
    ConstantBifurcationExponent,
)
from .criteria import DistanceCriterion, ClassicDistanceCriterion
from .restrictions import (
    GeometricRestriction,
    ValidSegment,
    BifurcationSymmetry,
    ValidAngle,
    WithoutIntersection,
    is_relative,
)
from .targets import TargetFunction, TargetVolume
from .flows import TerminalFlowFunction, ConstantTerminalFlow, ForestConstantTerminalFlow

__all__ = [
    "BloodViscosity",
    "BifurcationExponentLaw",
    "ConstantBloodViscosity",
    "ConstantBifurcationExponent",
    "DistanceCriterion",
    "ClassicDistanceCriterion",
    "GeometricRestriction",
    "ValidSegment",
    "BifurcationSymmetry",
    "ValidAngle",
    "WithoutIntersection",
    "is_relative",
    "TargetFunction",
    "TargetVolume",
    "TerminalFlowFunction",
    "ConstantTerminalFlow",
    "ForestConstantTerminalFlow",
]
