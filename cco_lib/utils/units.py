"""
Unit handling for exports.

Trees are grown in SI units (meters). Exporters scale lengths and radii by a
multiplier that is either given directly or looked up by unit name.
"""

from typing import Union
import numpy as np

CANONICAL_UNIT = "m"

_FROM_METERS = {
    "m": 1.0,
    "cm": 100.0,
    "mm": 1000.0,
    "um": 1e6,
}


def unit_multiplier(unit: Union[str, float, int]) -> float:
    """
    Multiplier converting meters to ``unit``.

    Parameters
    ----------
    unit : str or float
        Unit name ('m', 'cm', 'mm', 'um') or the multiplier itself

    Returns
    -------
    float

    Examples
    --------
    >>> unit_multiplier("cm")
    100.0
    >>> unit_multiplier(1000.0)
    1000.0
    """
    if isinstance(unit, str):
        if unit not in _FROM_METERS:
            raise ValueError(f"Unknown unit '{unit}'. Supported: {list(_FROM_METERS.keys())}")
        return _FROM_METERS[unit]
    value = float(unit)
    if value <= 0.0:
        raise ValueError(f"Unit multiplier must be positive, got {value}")
    return value


def from_si_length(value: Union[float, np.ndarray], to_unit: Union[str, float] = CANONICAL_UNIT):
    """Convert a length (or array of lengths) in meters to ``to_unit``."""
    return value * unit_multiplier(to_unit)
