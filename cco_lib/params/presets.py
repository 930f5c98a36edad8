"""Named configurations reproducing the reference growth runs.

Every preset describes the domain to sample (region, bounding box, seeds),
the tree, growth and forest parameters, and the units used when exporting.

Units: SI throughout (meters). Exports use centimeters for lengths and
millimeters for radii, as the reference runs do.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from ..core.domain import CircleFunction, CubeFunction, DomainFunction, PointSetDomain
from .config import ForestParameters, GrowthParameters, TreeParameters

SPHERE_RADIUS = 0.0287941  # m, encloses 1e-4 m^3
REFERENCE_TERMINAL_PRESSURE = 9.59921e3  # Pa (72 mmHg)
TOTAL_PERFUSION_FLOW = 8.33e-6  # m^3/s (500 ml/min)


@dataclass
class Preset:
    """A complete growth configuration."""

    name: str
    description: str
    function: DomainFunction
    lower: List[float]
    upper: List[float]
    seeds: List[List[float]]
    tree: TreeParameters
    growth: GrowthParameters
    forest: Optional[ForestParameters] = None
    volume: Optional[float] = None
    number_of_points: int = 10000
    export_length_unit: str = "cm"
    export_radius_unit: str = "mm"
    metadata: Dict = field(default_factory=dict)

    @property
    def dimension(self) -> int:
        return len(self.lower)

    def build_domain(self, seed: Optional[int] = None,
                     number_of_points: Optional[int] = None) -> PointSetDomain:
        """Sample the preset's region into a point-set domain."""
        return PointSetDomain.sample(
            self.function,
            self.lower,
            self.upper,
            number_of_points or self.number_of_points,
            self.seeds,
            volume=self.volume,
            seed=seed,
        )


def _sphere(description: str) -> dict:
    r = SPHERE_RADIUS
    return dict(
        description=description,
        function=CircleFunction(r),
        lower=[-r, -r, -r],
        upper=[r, r, r],
        volume=4.0 / 3.0 * np.pi * r ** 3,
    )


def sphere_cco() -> Preset:
    """
    Single tree perfusing a 100 cm^3 sphere.

    250 terminals, 20 candidate connections, terminal pressure 72 mmHg.
    The seed sits on the top of the sphere.
    """
    return Preset(
        name="sphere_cco",
        seeds=[[0.0, 0.0, SPHERE_RADIUS]],
        tree=TreeParameters(
            number_of_terminals=250,
            terminal_pressure=REFERENCE_TERMINAL_PRESSURE,
            perfusion_flow=TOTAL_PERFUSION_FLOW,
        ),
        growth=GrowthParameters(number_of_connections=20, maximum_attempts=10),
        **_sphere("Single CCO tree in a sphere"),
    )


def coat_two_trees() -> Preset:
    """
    Two competing trees in the sphere with flow shares 0.667 / 0.333.

    The first stage lasts until each tree carries 20% of its share.
    """
    return Preset(
        name="coat_two_trees",
        seeds=[[0.0, 0.0, SPHERE_RADIUS], [0.0, 0.0, -SPHERE_RADIUS]],
        tree=TreeParameters(
            number_of_terminals=250,
            terminal_pressure=REFERENCE_TERMINAL_PRESSURE,
            perfusion_flow=TOTAL_PERFUSION_FLOW,
        ),
        growth=GrowthParameters(number_of_connections=20, maximum_attempts=10,
                                interval_division=5),
        forest=ForestParameters(target_flow_fractions=[0.667, 0.333], first_stage=0.2),
        **_sphere("Competing optimized arterial trees (two trees)"),
    )


def invasion_two_trees() -> Preset:
    """
    Two trees invading each other's territory, flow shares 0.667 / 0.333.

    A tree below 75% of its share may only connect near its own seed.
    """
    return Preset(
        name="invasion_two_trees",
        seeds=[[0.0, 0.0, SPHERE_RADIUS], [0.0, 0.0, -SPHERE_RADIUS]],
        tree=TreeParameters(
            number_of_terminals=250,
            terminal_pressure=REFERENCE_TERMINAL_PRESSURE,
            perfusion_flow=TOTAL_PERFUSION_FLOW,
        ),
        growth=GrowthParameters(number_of_connections=20, maximum_attempts=10,
                                interval_division=10),
        forest=ForestParameters(target_flow_fractions=[0.667, 0.333],
                                invasion_coefficient=0.75),
        **_sphere("Forest growth by invasion (two trees)"),
    )


def square_2d_debug() -> Preset:
    """
    Small 2D tree in a 5 cm square for quick checks.

    Few terminals and no progress bar.
    """
    side = 0.05
    return Preset(
        name="square_2d_debug",
        description="Small 2D tree in a square",
        function=CubeFunction(side),
        lower=[0.0, 0.0],
        upper=[side, side],
        seeds=[[side / 2.0, 0.0]],
        volume=side * side,
        number_of_points=2000,
        tree=TreeParameters(number_of_terminals=20, perfusion_flow=TOTAL_PERFUSION_FLOW),
        growth=GrowthParameters(number_of_connections=10, maximum_attempts=10,
                                show_progress=False),
    )


PRESETS = {
    "sphere_cco": sphere_cco,
    "coat_two_trees": coat_two_trees,
    "invasion_two_trees": invasion_two_trees,
    "square_2d_debug": square_2d_debug,
}


def get_preset(name: str) -> Preset:
    """
    Get a preset by name.

    Parameters
    ----------
    name : str
        Preset name (see list_presets())

    Returns
    -------
    preset : Preset
        Fresh configuration

    Raises
    ------
    ValueError
        If preset name is not recognized
    """
    if name not in PRESETS:
        available = ", ".join(PRESETS.keys())
        raise ValueError(f"Unknown preset '{name}'. Available: {available}")

    return PRESETS[name]()


def list_presets() -> List[str]:
    """List the available preset names."""
    return list(PRESETS.keys())
