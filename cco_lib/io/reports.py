"""
Delimited text reports for forests.

Each report has one header row followed by one row per tree.
"""

from pathlib import Path
from typing import List, Union

from ..utils.units import from_si_length


def attained_flow_rows(forest) -> List[tuple]:
    """``(tree, target %, attained %)`` for each tree of a forest."""
    total = sum(tree.perfusion_flow for tree in forest.trees)
    return [
        (t, 100.0 * float(forest.targets[t]), 100.0 * tree.flow() / total)
        for t, tree in enumerate(forest.trees)
    ]


def volume_rows(forest, radius_unit: Union[str, float] = 1.0) -> List[tuple]:
    """``(tree, volume, root radius)`` for each tree of a forest."""
    return [
        (t, tree.volume(), from_si_length(tree.radius(0), radius_unit))
        for t, tree in enumerate(forest.trees)
    ]


def _write(filepath, header, rows, delimiter: str) -> None:
    lines = [delimiter.join(header)]
    for row in rows:
        lines.append(delimiter.join(
            str(value) if isinstance(value, int) else repr(float(value)) for value in row
        ))
    with open(Path(filepath), "w") as f:
        f.write("\n".join(lines) + "\n")


def save_attained_flow(forest, filepath: Union[str, Path], delimiter: str = " ") -> None:
    """Write ``TREE TARGET_FLOW ATTAINED_FLOW`` in percent of the forest flow."""
    _write(filepath, ["TREE", "TARGET_FLOW", "ATTAINED_FLOW"], attained_flow_rows(forest), delimiter)


def save_volumes(forest, filepath: Union[str, Path], radius_unit: Union[str, float] = 1.0,
                 delimiter: str = " ") -> None:
    """Write ``TREE VOLUME RADIUS_ROOT``; the root radius is scaled by ``radius_unit``."""
    _write(filepath, ["TREE", "VOLUME", "RADIUS_ROOT"], volume_rows(forest, radius_unit), delimiter)
