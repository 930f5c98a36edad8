"""
Tree export to legacy VTK polydata and delimited text.

Coordinates and lengths are scaled by the length unit and radii by the
radius unit. Units default to the ones configured on the tree and may be
given as a name ('m', 'cm', 'mm', 'um') or a multiplier.
"""

from pathlib import Path
from typing import Union

import numpy as np

from ..utils.units import unit_multiplier

Unit = Union[str, float, None]


def _scales(tree, length_unit: Unit, radius_unit: Unit):
    length_scale = 1.0 if length_unit is None else unit_multiplier(length_unit) / tree.length_unit
    radius_scale = 1.0 if radius_unit is None else unit_multiplier(radius_unit) / tree.radius_unit
    point_scale = tree.length_unit * length_scale
    return point_scale, length_scale, radius_scale


def save_vtk(
    tree,
    filepath: Union[str, Path],
    length_unit: Unit = None,
    radius_unit: Unit = None,
    title: str = "Vascular tree",
) -> None:
    """
    Save a tree as VTK legacy POLYDATA.

    Point 0 is the seed and point ``i + 1`` the distal point of segment
    ``i``; each segment is one line cell carrying radius, flow, length,
    level and Strahler order.

    Parameters
    ----------
    tree : Tree
    filepath : str or Path
    length_unit, radius_unit : str or float, optional
        Export units, the tree's own when omitted
    title : str
        Second header line
    """
    filepath = Path(filepath)
    point_scale, length_scale, radius_scale = _scales(tree, length_unit, radius_unit)
    n = tree.current_number_of_segments
    up, _, _ = tree.links()

    points = np.vstack([tree.seed[None, :], tree.distal_points()]) * point_scale
    if tree.dimension == 2:
        points = np.column_stack([points, np.zeros(len(points))])
    proximal = np.where(up >= 0, up + 1, 0)

    lines = [
        "# vtk DataFile Version 3.0",
        title,
        "ASCII",
        "DATASET POLYDATA",
        f"POINTS {n + 1} double",
    ]
    lines.extend(" ".join(repr(float(c)) for c in p) for p in points)
    lines.append(f"LINES {n} {3 * n}")
    lines.extend(f"2 {proximal[i]} {i + 1}" for i in range(n))
    lines.append(f"CELL_DATA {n}")

    scalars = [
        ("radius", "double", tree.radii() * radius_scale),
        ("flow", "double", tree.flows()),
        ("length", "double", tree.lengths() * length_scale),
        ("level", "int", tree.levels()),
        ("strahler_order", "int", tree.strahler_orders()),
    ]
    for name, kind, values in scalars:
        lines.append(f"SCALARS {name} {kind} 1")
        lines.append("LOOKUP_TABLE default")
        if kind == "int":
            lines.extend(str(int(v)) for v in values)
        else:
            lines.extend(repr(float(v)) for v in values)

    with open(filepath, "w") as f:
        f.write("\n".join(lines) + "\n")


def save_csv(
    tree,
    filepath: Union[str, Path],
    length_unit: Unit = None,
    radius_unit: Unit = None,
    delimiter: str = " ",
) -> None:
    """
    Save one row per segment: ``ID X Y Z UP LEFT RIGHT FLOW RADIUS LENGTH``.

    ``Z`` is 0 for 2D trees.
    """
    filepath = Path(filepath)
    point_scale, length_scale, radius_scale = _scales(tree, length_unit, radius_unit)
    points = tree.distal_points() * point_scale
    up, left, right = tree.links()
    flows = tree.flows()
    radii = tree.radii() * radius_scale
    lengths = tree.lengths() * length_scale

    header = ["ID", "X", "Y", "Z", "UP", "LEFT", "RIGHT", "FLOW", "RADIUS", "LENGTH"]
    rows = [delimiter.join(header)]
    for i in range(tree.current_number_of_segments):
        z = points[i, 2] if tree.dimension == 3 else 0.0
        rows.append(delimiter.join([
            str(i),
            repr(float(points[i, 0])),
            repr(float(points[i, 1])),
            repr(float(z)),
            str(int(up[i])),
            str(int(left[i])),
            str(int(right[i])),
            repr(float(flows[i])),
            repr(float(radii[i])),
            repr(float(lengths[i])),
        ]))

    with open(filepath, "w") as f:
        f.write("\n".join(rows) + "\n")
