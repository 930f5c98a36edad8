"""
Parameter dataclasses for tree and forest growth.

Units: SI throughout (meters, m^3, Pa, m^3/s, Pa.s). Export units are chosen
at write time, see ``cco_lib.utils.units``.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..core.tree import (
    Tree,
    DEFAULT_PERFUSION_PRESSURE,
    DEFAULT_TERMINAL_PRESSURE,
    DEFAULT_PERFUSION_FLOW,
)
from ..rules.physiology import (
    ConstantBloodViscosity,
    ConstantBifurcationExponent,
    DEFAULT_BLOOD_VISCOSITY,
    DEFAULT_BIFURCATION_EXPONENT,
)


@dataclass
class TreeParameters:
    """Physiological parameters of one tree."""

    number_of_terminals: int = 250
    perfusion_volume: Optional[float] = None  # None = 1e-4 m^3 (2.5e-3 m^2 in 2D)
    perfusion_pressure: float = DEFAULT_PERFUSION_PRESSURE  # 100 mmHg
    terminal_pressure: float = DEFAULT_TERMINAL_PRESSURE  # 60 mmHg
    perfusion_flow: float = DEFAULT_PERFUSION_FLOW  # 500 ml/min
    viscosity: float = DEFAULT_BLOOD_VISCOSITY
    bifurcation_exponent: float = DEFAULT_BIFURCATION_EXPONENT
    radius_unit: float = 1.0
    length_unit: float = 1.0

    def build_tree(self, seed, perfusion_volume: Optional[float] = None,
                   perfusion_flow: Optional[float] = None) -> Tree:
        """
        Create an empty tree rooted at ``seed``.

        ``perfusion_volume`` is used only when this object does not set one
        (typically the domain volume). ``perfusion_flow`` overrides the
        configured flow, as forests do with each tree's share.
        """
        if self.perfusion_volume is not None:
            perfusion_volume = self.perfusion_volume
        return Tree(
            seed=seed,
            number_of_terminals=self.number_of_terminals,
            perfusion_volume=perfusion_volume,
            perfusion_pressure=self.perfusion_pressure,
            terminal_pressure=self.terminal_pressure,
            perfusion_flow=self.perfusion_flow if perfusion_flow is None else perfusion_flow,
            blood_viscosity=ConstantBloodViscosity(self.viscosity),
            bifurcation_exponent=ConstantBifurcationExponent(self.bifurcation_exponent),
            radius_unit=self.radius_unit,
            length_unit=self.length_unit,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "number_of_terminals": self.number_of_terminals,
            "perfusion_volume": self.perfusion_volume,
            "perfusion_pressure": self.perfusion_pressure,
            "terminal_pressure": self.terminal_pressure,
            "perfusion_flow": self.perfusion_flow,
            "viscosity": self.viscosity,
            "bifurcation_exponent": self.bifurcation_exponent,
            "radius_unit": self.radius_unit,
            "length_unit": self.length_unit,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "TreeParameters":
        """Create from dictionary."""
        return cls(
            number_of_terminals=d.get("number_of_terminals", 250),
            perfusion_volume=d.get("perfusion_volume"),
            perfusion_pressure=d.get("perfusion_pressure", DEFAULT_PERFUSION_PRESSURE),
            terminal_pressure=d.get("terminal_pressure", DEFAULT_TERMINAL_PRESSURE),
            perfusion_flow=d.get("perfusion_flow", DEFAULT_PERFUSION_FLOW),
            viscosity=d.get("viscosity", DEFAULT_BLOOD_VISCOSITY),
            bifurcation_exponent=d.get("bifurcation_exponent", DEFAULT_BIFURCATION_EXPONENT),
            radius_unit=d.get("radius_unit", 1.0),
            length_unit=d.get("length_unit", 1.0),
        )


@dataclass
class GrowthParameters:
    """Control parameters of the constructive optimization loop."""

    number_of_connections: int = 20  # Candidate segments per point
    maximum_attempts: int = 10  # Rejections before relaxing the criterion
    relaxation_factor: float = 0.9
    radius_exponent: float = 2.0
    length_exponent: float = 1.0
    interval_division: int = 5  # Bifurcation grid subdivisions
    grid_offset: float = 0.3
    symmetry_threshold: float = 0.0  # 0 = no symmetry constraint
    minimum_angle: Optional[float] = None  # Radians; both None = no angle restriction
    maximum_angle: Optional[float] = None
    max_relaxations: Optional[int] = None  # None = relax indefinitely
    max_failed_rounds: Optional[int] = None  # Consecutive rounds without a commit
    relaxation_warning: int = 100  # Warn once past this many relaxations
    show_progress: bool = True

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "number_of_connections": self.number_of_connections,
            "maximum_attempts": self.maximum_attempts,
            "relaxation_factor": self.relaxation_factor,
            "radius_exponent": self.radius_exponent,
            "length_exponent": self.length_exponent,
            "interval_division": self.interval_division,
            "grid_offset": self.grid_offset,
            "symmetry_threshold": self.symmetry_threshold,
            "minimum_angle": self.minimum_angle,
            "maximum_angle": self.maximum_angle,
            "max_relaxations": self.max_relaxations,
            "max_failed_rounds": self.max_failed_rounds,
            "relaxation_warning": self.relaxation_warning,
            "show_progress": self.show_progress,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "GrowthParameters":
        """Create from dictionary."""
        return cls(
            number_of_connections=d.get("number_of_connections", 20),
            maximum_attempts=d.get("maximum_attempts", 10),
            relaxation_factor=d.get("relaxation_factor", 0.9),
            radius_exponent=d.get("radius_exponent", 2.0),
            length_exponent=d.get("length_exponent", 1.0),
            interval_division=d.get("interval_division", 5),
            grid_offset=d.get("grid_offset", 0.3),
            symmetry_threshold=d.get("symmetry_threshold", 0.0),
            minimum_angle=d.get("minimum_angle"),
            maximum_angle=d.get("maximum_angle"),
            max_relaxations=d.get("max_relaxations"),
            max_failed_rounds=d.get("max_failed_rounds"),
            relaxation_warning=d.get("relaxation_warning", 100),
            show_progress=d.get("show_progress", True),
        )


@dataclass
class ForestParameters:
    """
    Parameters of a forest of competing trees.

    ``target_flow_fractions`` are the shares of the total perfusion flow, one
    per tree (they should sum to 1).
    """

    target_flow_fractions: List[float] = field(default_factory=lambda: [1.0])
    first_stage: float = 0.2  # COAT: fraction of its share each tree reaches in stage 1
    first_stage_relaxation_factor: float = 0.99
    invasion_coefficient: float = 0.75
    territory_weight: float = 0.5

    def __post_init__(self):
        if not self.target_flow_fractions:
            raise ValueError("target_flow_fractions must not be empty")
        if any(f <= 0.0 for f in self.target_flow_fractions):
            raise ValueError(
                f"target_flow_fractions must be positive, got {self.target_flow_fractions}"
            )

    @property
    def number_of_trees(self) -> int:
        return len(self.target_flow_fractions)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "target_flow_fractions": list(self.target_flow_fractions),
            "first_stage": self.first_stage,
            "first_stage_relaxation_factor": self.first_stage_relaxation_factor,
            "invasion_coefficient": self.invasion_coefficient,
            "territory_weight": self.territory_weight,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ForestParameters":
        """Create from dictionary."""
        return cls(
            target_flow_fractions=d.get("target_flow_fractions", [1.0]),
            first_stage=d.get("first_stage", 0.2),
            first_stage_relaxation_factor=d.get("first_stage_relaxation_factor", 0.99),
            invasion_coefficient=d.get("invasion_coefficient", 0.75),
            territory_weight=d.get("territory_weight", 0.5),
        )
