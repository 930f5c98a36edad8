"""Utility functions for cco_lib."""

from .units import (
    CANONICAL_UNIT,
    unit_multiplier,
    from_si_length,
)

__all__ = [
    'CANONICAL_UNIT',
    'unit_multiplier',
    'from_si_length',
]
