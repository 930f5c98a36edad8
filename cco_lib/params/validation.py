"""Parameter validation with bounds checking.

Checks tree, growth and forest parameters against physiologically and
numerically reasonable ranges.

Units: SI (Pa, m^3/s, Pa.s), angles in radians.
"""

import logging
from typing import List, Tuple, Union

import numpy as np

from .config import ForestParameters, GrowthParameters, TreeParameters

logger = logging.getLogger(__name__)

Parameters = Union[TreeParameters, GrowthParameters, ForestParameters]

PARAM_BOUNDS = {
    # TreeParameters
    "number_of_terminals": (1, 100000, "terminals"),
    "perfusion_volume": (1e-12, 1.0, "m^3"),
    "perfusion_pressure": (1e3, 5e4, "Pa"),
    "terminal_pressure": (0.0, 5e4, "Pa"),
    "perfusion_flow": (1e-12, 1e-2, "m^3/s"),
    "viscosity": (1e-4, 1e-1, "Pa.s"),
    "bifurcation_exponent": (2.0, 3.0, "exponent"),
    "radius_unit": (1e-6, 1e9, "multiplier"),
    "length_unit": (1e-6, 1e9, "multiplier"),
    # GrowthParameters
    "number_of_connections": (1, 200, "segments"),
    "maximum_attempts": (1, 1000, "attempts"),
    "relaxation_factor": (0.5, 1.0, "ratio"),
    "radius_exponent": (0.0, 4.0, "exponent"),
    "length_exponent": (0.0, 4.0, "exponent"),
    "interval_division": (1, 50, "divisions"),
    "grid_offset": (0.0, 1.0, "ratio"),
    "symmetry_threshold": (0.0, 1.0, "ratio"),
    "minimum_angle": (0.0, np.pi, "rad"),
    "maximum_angle": (0.0, np.pi, "rad"),
    # ForestParameters
    "first_stage": (0.0, 1.0, "ratio"),
    "first_stage_relaxation_factor": (0.5, 1.0, "ratio"),
    "invasion_coefficient": (0.0, 1.0, "ratio"),
    "territory_weight": (0.0, 2.0, "exponent"),
}


def validate_params(params: Parameters) -> Tuple[bool, List[str]]:
    """
    Validate a parameter object against bounds.

    Parameters
    ----------
    params : TreeParameters, GrowthParameters or ForestParameters
        Parameters to validate

    Returns
    -------
    is_valid : bool
        True if all parameters are valid
    warnings : list of str
        List of validation warnings/errors
    """
    warnings = []

    for param_name, (min_val, max_val, unit) in PARAM_BOUNDS.items():
        value = getattr(params, param_name, None)

        if value is None:
            continue

        if value < min_val:
            warnings.append(
                f"{param_name} = {value} {unit} is below minimum {min_val} {unit}"
            )
        elif value > max_val:
            warnings.append(
                f"{param_name} = {value} {unit} exceeds maximum {max_val} {unit}"
            )

    if isinstance(params, TreeParameters):
        if params.terminal_pressure >= params.perfusion_pressure:
            warnings.append(
                f"terminal_pressure ({params.terminal_pressure} Pa) should be < "
                f"perfusion_pressure ({params.perfusion_pressure} Pa)"
            )

    if isinstance(params, GrowthParameters):
        if (params.minimum_angle is not None and params.maximum_angle is not None
                and params.minimum_angle >= params.maximum_angle):
            warnings.append(
                f"minimum_angle ({params.minimum_angle}) should be < "
                f"maximum_angle ({params.maximum_angle}), no bifurcation can pass"
            )
        if params.relaxation_factor >= 1.0:
            warnings.append(
                f"relaxation_factor = {params.relaxation_factor} never relaxes the "
                "distance criterion, growth may stall"
            )

    if isinstance(params, ForestParameters):
        total = sum(params.target_flow_fractions)
        if abs(total - 1.0) > 1e-2:
            warnings.append(
                f"target_flow_fractions sum to {total}, expected 1.0"
            )

    is_valid = len(warnings) == 0
    return is_valid, warnings


def validate_and_warn(params: Parameters) -> Parameters:
    """
    Validate parameters and log warnings.

    Returns
    -------
    params
        Same parameters (for chaining)
    """
    is_valid, warnings = validate_params(params)

    if not is_valid:
        logger.warning("Parameter validation warnings (%d):", len(warnings))
        for warning in warnings:
            logger.warning("  - %s", warning)

    return params
