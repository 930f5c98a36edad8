"""
Value types shared by the tree, the strategies and the growth drivers.
"""

from dataclasses import dataclass, field
from typing import Optional
import numpy as np

ROOT_ID = 0
TERMINAL_END = -1
POISEUILLE_CONSTANT = 8.0 / np.pi


@dataclass
class Segment:
    """
    Snapshot of one tree segment.

    The tree arena is the source of truth; a Segment is what callers build to
    describe a new terminal (point and flow) and what ``Tree.segment`` returns
    when a full record is needed.
    """

    point: np.ndarray
    flow: float = 0.0
    segment_id: int = TERMINAL_END
    up: int = TERMINAL_END
    left: int = TERMINAL_END
    right: int = TERMINAL_END
    bifurcation_ratio_left: float = 1.0
    bifurcation_ratio_right: float = 1.0

    def __post_init__(self):
        self.point = np.array(self.point, dtype=np.float64)
        self.point.flags.writeable = False

    @property
    def dimension(self) -> int:
        return int(self.point.shape[0])

    def is_terminal(self) -> bool:
        """Check whether the segment has no children."""
        return self.left == TERMINAL_END and self.right == TERMINAL_END

    def is_root(self) -> bool:
        return self.up == TERMINAL_END

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "segment_id": self.segment_id,
            "point": self.point.tolist(),
            "flow": self.flow,
            "up": self.up,
            "left": self.left,
            "right": self.right,
            "bifurcation_ratio_left": self.bifurcation_ratio_left,
            "bifurcation_ratio_right": self.bifurcation_ratio_right,
        }


@dataclass
class Connection:
    """
    Candidate structural edit found by the bifurcation optimizer.

    A connection with ``segment_id < 0`` is empty: no grid position passed the
    geometric restrictions.
    """

    segment_id: int = TERMINAL_END
    bifurcation_point: Optional[np.ndarray] = None
    new_segment: Optional[Segment] = None
    target_value: float = field(default=float("inf"))

    @property
    def empty(self) -> bool:
        return self.segment_id < 0

    @classmethod
    def empty_connection(cls) -> "Connection":
        return cls()
