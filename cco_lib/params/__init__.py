"""Parameters, presets and validation for tree and forest growth."""

from .config import (
    TreeParameters,
    GrowthParameters,
    ForestParameters,
)

from .presets import (
    Preset,
    sphere_cco,
    coat_two_trees,
    invasion_two_trees,
    square_2d_debug,
    get_preset,
    list_presets,
    PRESETS,
)

from .validation import (
    validate_params,
    validate_and_warn,
    PARAM_BOUNDS,
)

__all__ = [
    # Configuration
    "TreeParameters",
    "GrowthParameters",
    "ForestParameters",
    # Presets
    "Preset",
    "sphere_cco",
    "coat_two_trees",
    "invasion_two_trees",
    "square_2d_debug",
    "get_preset",
    "list_presets",
    "PRESETS",
    # Validation
    "validate_params",
    "validate_and_warn",
    "PARAM_BOUNDS",
]
