"""Per-segment morphometry of a tree."""

from pathlib import Path
from typing import Dict, Union

import numpy as np

from ..utils.units import unit_multiplier

COLUMNS = ("LENGTH", "RADIUS", "LEVEL", "STRAHLER_ORDER")


class TreeMorphometry:
    """
    Length, radius, bifurcation level and Strahler order of every segment.

    Values are computed when the object is created; build a new one after
    growing the tree further.

    Parameters
    ----------
    tree : Tree
        Tree to analyze
    """

    def __init__(self, tree):
        self.tree = tree
        self.length = tree.lengths()
        self.radius = tree.radii()
        self.level = tree.levels()
        self.strahler_order = tree.strahler_orders()

    def table(self, length_unit: Union[str, float, None] = None,
              radius_unit: Union[str, float, None] = None) -> np.ndarray:
        """
        Rows of ``LENGTH RADIUS LEVEL STRAHLER_ORDER``, shape (n, 4).

        Units rescale from the tree's own, as in the tree exporters.
        """
        length_scale = 1.0 if length_unit is None else unit_multiplier(length_unit) / self.tree.length_unit
        radius_scale = 1.0 if radius_unit is None else unit_multiplier(radius_unit) / self.tree.radius_unit
        return np.column_stack([
            self.length * length_scale,
            self.radius * radius_scale,
            self.level,
            self.strahler_order,
        ])

    def save(self, filepath: Union[str, Path], length_unit=None, radius_unit=None,
             delimiter: str = " ") -> None:
        """Write the table with one header row."""
        rows = [delimiter.join(COLUMNS)]
        for length, radius, level, order in self.table(length_unit, radius_unit):
            rows.append(delimiter.join([
                repr(float(length)), repr(float(radius)), str(int(level)), str(int(order)),
            ]))
        with open(Path(filepath), "w") as f:
            f.write("\n".join(rows) + "\n")

    def summary(self) -> Dict:
        """
        Summary statistics of the table.

        Returns
        -------
        stats : dict
            count/mean/min/max for each column, plus ``num_terminals`` and
            ``max_strahler_order``
        """
        stats = {
            "num_segments": int(self.length.size),
            "num_terminals": self.tree.current_number_of_terminals,
            "max_strahler_order": int(self.strahler_order.max()) if self.length.size else 0,
        }
        columns = {
            "length": self.length,
            "radius": self.radius,
            "level": self.level,
            "strahler_order": self.strahler_order,
        }
        for name, values in columns.items():
            if values.size == 0:
                stats[name] = {"count": 0, "mean": 0.0, "min": 0.0, "max": 0.0}
                continue
            stats[name] = {
                "count": int(values.size),
                "mean": float(np.mean(values)),
                "min": float(np.min(values)),
                "max": float(np.max(values)),
            }
        return stats
