"""
Array-backed binary tree of vessel segments.

The tree is an arena of ``2 * number_of_terminals - 1`` preallocated slots.
Slot ``ROOT_ID`` holds the root; every bifurcation appends exactly two slots
at the tail and every ``remove`` retracts the last two, so the live segments
are always ``range(current_number_of_segments)``.

Each slot stores the distal point of the segment, its flow, the radius
ratios toward its two children and the parent/left/right links (sentinel
``TERMINAL_END``). Reduced hydrodynamic resistance and length live in
parallel arrays. Radii are never stored: a radius is the root radius times
the product of bifurcation ratios on the path to the root.
"""

import copy
from typing import List, Optional
import numpy as np

from .geometry import distance
from .types import Segment, ROOT_ID, TERMINAL_END, POISEUILLE_CONSTANT
from ..rules.physiology import (
    BloodViscosity,
    BifurcationExponentLaw,
    ConstantBloodViscosity,
    ConstantBifurcationExponent,
    law_from_dict,
)

DEFAULT_PERFUSION_VOLUME_3D = 1.0e-4  # m^3
DEFAULT_PERFUSION_VOLUME_2D = 2.5e-3  # m^2
DEFAULT_PERFUSION_PRESSURE = 13332.236535  # Pa (100 mmHg)
DEFAULT_TERMINAL_PRESSURE = 7999.341921  # Pa (60 mmHg)
DEFAULT_PERFUSION_FLOW = 8.33e-6  # m^3/s (500 ml/min)


class Tree:
    """
    Bifurcating vascular tree with Poiseuille hemodynamics.

    Parameters
    ----------
    seed : array_like
        Proximal point of the root segment (2D or 3D)
    number_of_terminals : int
        Final number of terminal segments; fixes the arena capacity
    perfusion_volume : float, optional
        Volume (area in 2D) perfused by the tree. Defaults to 1e-4 m^3,
        or 2.5e-3 m^2 in 2D.
    perfusion_pressure, terminal_pressure : float
        Pressure at the root inlet and at every terminal (Pa)
    perfusion_flow : float
        Flow through the root (m^3/s)
    blood_viscosity : BloodViscosity, optional
        Viscosity law, default constant 0.0036 Pa.s
    bifurcation_exponent : BifurcationExponentLaw, optional
        Murray exponent law, default constant 3.0
    radius_unit, length_unit : float
        Multipliers applied to radius and length values
    """

    def __init__(
        self,
        seed,
        number_of_terminals: int,
        perfusion_volume: Optional[float] = None,
        perfusion_pressure: float = DEFAULT_PERFUSION_PRESSURE,
        terminal_pressure: float = DEFAULT_TERMINAL_PRESSURE,
        perfusion_flow: float = DEFAULT_PERFUSION_FLOW,
        blood_viscosity: Optional[BloodViscosity] = None,
        bifurcation_exponent: Optional[BifurcationExponentLaw] = None,
        radius_unit: float = 1.0,
        length_unit: float = 1.0,
    ):
        seed = np.array(seed, dtype=np.float64)
        if seed.ndim != 1 or seed.shape[0] not in (2, 3):
            raise ValueError(f"Seed must be a 2D or 3D point, got shape {seed.shape}")
        if number_of_terminals < 1:
            raise ValueError(f"number_of_terminals must be >= 1, got {number_of_terminals}")
        if perfusion_pressure <= terminal_pressure:
            raise ValueError(
                f"perfusion_pressure ({perfusion_pressure}) must be greater than "
                f"terminal_pressure ({terminal_pressure})"
            )
        if perfusion_volume is None:
            perfusion_volume = (
                DEFAULT_PERFUSION_VOLUME_2D if seed.shape[0] == 2 else DEFAULT_PERFUSION_VOLUME_3D
            )
        if perfusion_volume <= 0.0:
            raise ValueError(f"perfusion_volume must be positive, got {perfusion_volume}")
        if perfusion_flow <= 0.0:
            raise ValueError(f"perfusion_flow must be positive, got {perfusion_flow}")

        seed.flags.writeable = False
        self._seed = seed
        self._number_of_terminals = int(number_of_terminals)
        self.perfusion_volume = float(perfusion_volume)
        self.perfusion_pressure = float(perfusion_pressure)
        self.terminal_pressure = float(terminal_pressure)
        self.perfusion_flow = float(perfusion_flow)
        self.blood_viscosity_law = blood_viscosity or ConstantBloodViscosity()
        self.bifurcation_exponent_law = bifurcation_exponent or ConstantBifurcationExponent()
        self.radius_unit = float(radius_unit)
        self.length_unit = float(length_unit)

        capacity = 2 * self._number_of_terminals - 1
        dim = seed.shape[0]
        self._points = np.zeros((capacity, dim))
        self._flow = np.zeros(capacity)
        self._ratio_left = np.ones(capacity)
        self._ratio_right = np.ones(capacity)
        self._up = np.full(capacity, TERMINAL_END, dtype=np.int64)
        self._left = np.full(capacity, TERMINAL_END, dtype=np.int64)
        self._right = np.full(capacity, TERMINAL_END, dtype=np.int64)
        self._resistance = np.zeros(capacity)
        self._length = np.zeros(capacity)
        self._current_number_of_segments = 0
        self._current_number_of_terminals = 0

    # ------------------------------------------------------------------
    # Sizes and constants
    # ------------------------------------------------------------------

    @property
    def dimension(self) -> int:
        return int(self._seed.shape[0])

    @property
    def seed(self) -> np.ndarray:
        return self._seed

    @property
    def number_of_terminals(self) -> int:
        return self._number_of_terminals

    @property
    def total_number_of_segments(self) -> int:
        return 2 * self._number_of_terminals - 1

    @property
    def current_number_of_segments(self) -> int:
        return self._current_number_of_segments

    @property
    def current_number_of_terminals(self) -> int:
        return self._current_number_of_terminals

    def live_segments(self) -> range:
        """Indices of the segments currently in use."""
        return range(self._current_number_of_segments)

    def blood_viscosity(self, segment_id: int) -> float:
        return self.blood_viscosity_law.eval(segment_id)

    def bifurcation_exponent(self, segment_id: int) -> float:
        return self.bifurcation_exponent_law.eval(segment_id)

    # ------------------------------------------------------------------
    # Per-segment queries
    # ------------------------------------------------------------------

    def is_root(self, segment_id: int) -> bool:
        return self._up[segment_id] == TERMINAL_END

    def is_terminal(self, segment_id: int) -> bool:
        return self._left[segment_id] == TERMINAL_END and self._right[segment_id] == TERMINAL_END

    def up(self, segment_id: int) -> int:
        return int(self._up[segment_id])

    def left(self, segment_id: int) -> int:
        return int(self._left[segment_id])

    def right(self, segment_id: int) -> int:
        return int(self._right[segment_id])

    def distal_point(self, segment_id: int) -> np.ndarray:
        return self._points[segment_id].copy()

    def proximal_point(self, segment_id: int) -> np.ndarray:
        parent = self._up[segment_id]
        if parent == TERMINAL_END:
            return self._seed.copy()
        return self._points[parent].copy()

    def flow(self, segment_id: int = ROOT_ID) -> float:
        """Flow through a segment; the root flow when no id is given."""
        if self._current_number_of_segments == 0:
            return 0.0
        return float(self._flow[segment_id])

    def total_flow(self) -> float:
        """Flow delivered by the tree so far (sum over its terminals)."""
        return self.flow(ROOT_ID)

    def length(self, segment_id: int) -> float:
        """Segment length scaled by ``length_unit``."""
        return float(self.length_unit * self._length[segment_id])

    def resistance(self, segment_id: int) -> float:
        """Reduced hydrodynamic resistance of the subtree rooted at a segment."""
        return float(self._resistance[segment_id])

    def bifurcation_ratio_left(self, segment_id: int) -> float:
        return float(self._ratio_left[segment_id])

    def bifurcation_ratio_right(self, segment_id: int) -> float:
        return float(self._ratio_right[segment_id])

    def segment(self, segment_id: int) -> Segment:
        """Snapshot of a live segment."""
        if not 0 <= segment_id < self._current_number_of_segments:
            raise IndexError(
                f"Segment {segment_id} is not live (0..{self._current_number_of_segments - 1})"
            )
        return Segment(
            point=self._points[segment_id],
            flow=float(self._flow[segment_id]),
            segment_id=int(segment_id),
            up=int(self._up[segment_id]),
            left=int(self._left[segment_id]),
            right=int(self._right[segment_id]),
            bifurcation_ratio_left=float(self._ratio_left[segment_id]),
            bifurcation_ratio_right=float(self._ratio_right[segment_id]),
        )

    def root(self) -> Segment:
        return self.segment(ROOT_ID)

    def terminals(self) -> List[int]:
        """Ids of the live terminal segments."""
        n = self._current_number_of_segments
        mask = (self._left[:n] == TERMINAL_END) & (self._right[:n] == TERMINAL_END)
        return [int(i) for i in np.nonzero(mask)[0]]

    def distal_points(self) -> np.ndarray:
        """Distal points of all live segments, shape (n, d)."""
        return self._points[: self._current_number_of_segments].copy()

    def proximal_points(self) -> np.ndarray:
        """Proximal points of all live segments, shape (n, d)."""
        n = self._current_number_of_segments
        up = self._up[:n]
        proximal = self._points[np.where(up >= 0, up, 0)].copy()
        proximal[up < 0] = self._seed
        return proximal

    def lengths(self) -> np.ndarray:
        return self.length_unit * self._length[: self._current_number_of_segments]

    def flows(self) -> np.ndarray:
        return self._flow[: self._current_number_of_segments].copy()

    def links(self):
        """Parent, left and right links of all live segments."""
        n = self._current_number_of_segments
        return self._up[:n].copy(), self._left[:n].copy(), self._right[:n].copy()

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------

    def grow_root(self, root: Segment) -> int:
        """
        Place the root segment from the seed to ``root.point``.

        Returns
        -------
        int
            ``ROOT_ID``
        """
        if self._current_number_of_segments != 0:
            raise ValueError("Tree already has a root segment")
        self._check_point(root.point)

        self._points[ROOT_ID] = root.point
        self._flow[ROOT_ID] = root.flow
        self._ratio_left[ROOT_ID] = 1.0
        self._ratio_right[ROOT_ID] = 1.0
        self._up[ROOT_ID] = TERMINAL_END
        self._left[ROOT_ID] = TERMINAL_END
        self._right[ROOT_ID] = TERMINAL_END
        self._length[ROOT_ID] = distance(self._seed, root.point)
        self._resistance[ROOT_ID] = (
            POISEUILLE_CONSTANT * self.blood_viscosity(ROOT_ID) * self._length[ROOT_ID]
        )
        self._current_number_of_segments = 1
        self._current_number_of_terminals = 1
        return ROOT_ID

    def grow_segment(self, bifurcation_point, parent_id: int, child: Segment) -> int:
        """
        Split ``parent_id`` at ``bifurcation_point`` and attach a new terminal.

        The parent slot becomes the bifurcation node. Slot ``n`` receives a
        clone of the old parent (its point, flow, ratios and children) and
        slot ``n + 1`` receives the new terminal with ``child``'s point and
        flow.

        Returns
        -------
        int
            Id of the bifurcation segment (equal to ``parent_id``)
        """
        n = self._current_number_of_segments
        if n + 2 > self.total_number_of_segments:
            raise IndexError(
                f"Tree capacity of {self.total_number_of_segments} segments exceeded"
            )
        if not 0 <= parent_id < n:
            raise IndexError(f"Segment {parent_id} is not live")
        bifurcation_point = np.asarray(bifurcation_point, dtype=np.float64)
        self._check_point(bifurcation_point)
        self._check_point(child.point)

        connection = n
        terminal = n + 1
        parent_point = self._points[parent_id].copy()
        old_left = self._left[parent_id]
        old_right = self._right[parent_id]

        # Connection: clone of the parent below the bifurcation point
        self._points[connection] = parent_point
        self._flow[connection] = self._flow[parent_id]
        self._ratio_left[connection] = self._ratio_left[parent_id]
        self._ratio_right[connection] = self._ratio_right[parent_id]
        self._left[connection] = old_left
        self._right[connection] = old_right
        if old_left != TERMINAL_END:
            self._up[old_left] = connection
        if old_right != TERMINAL_END:
            self._up[old_right] = connection
        self._up[connection] = parent_id
        self._length[connection] = distance(bifurcation_point, parent_point)
        self._recompute(connection)

        # New terminal
        self._points[terminal] = child.point
        self._flow[terminal] = child.flow
        self._ratio_left[terminal] = 1.0
        self._ratio_right[terminal] = 1.0
        self._up[terminal] = parent_id
        self._left[terminal] = TERMINAL_END
        self._right[terminal] = TERMINAL_END
        self._length[terminal] = distance(bifurcation_point, child.point)
        self._recompute(terminal)

        self._current_number_of_segments = n + 2

        # Parent becomes the bifurcation
        self._points[parent_id] = bifurcation_point
        self._left[parent_id] = connection
        self._right[parent_id] = terminal
        self._length[parent_id] = distance(self.proximal_point(parent_id), bifurcation_point)

        self.update(parent_id)
        self._current_number_of_terminals += 1
        return int(parent_id)

    def remove(self, terminal_id: int) -> int:
        """
        Undo the last ``grow_segment``.

        ``terminal_id`` must be the terminal appended by that call (the right
        child of its bifurcation). The bifurcation slot takes back the point
        and children of its left child and the last two slots are cleared.

        Returns
        -------
        int
            Id of the restored segment
        """
        n = self._current_number_of_segments
        if terminal_id != n - 1 or not self.is_terminal(terminal_id):
            raise IndexError(
                f"Only the last appended terminal ({n - 1}) can be removed, got {terminal_id}"
            )

        parent_id = int(self._up[terminal_id])
        connection = int(self._left[parent_id])

        self._points[parent_id] = self._points[connection]
        self._left[parent_id] = self._left[connection]
        self._right[parent_id] = self._right[connection]
        if self.is_terminal(connection):
            self._flow[parent_id] = self._flow[connection]
        else:
            self._up[self._left[connection]] = parent_id
            self._up[self._right[connection]] = parent_id
        self._length[parent_id] = distance(
            self.proximal_point(parent_id), self._points[parent_id]
        )

        self._clear_slot(n - 1)
        self._clear_slot(n - 2)
        self._current_number_of_segments = n - 2

        self.update(parent_id)
        self._current_number_of_terminals -= 1
        return parent_id

    def update(self, segment_id: int) -> None:
        """
        Recompute flow, bifurcation ratios and resistance up to the root.

        Terminals get resistance ``k * mu * l`` and unit ratios. At each
        bifurcation the children's flow and resistance ratios set the radius
        ratio ``(Q_l R_l / (Q_r R_r))^(1/4)``, from which the bifurcation
        exponent law yields the left and right ratios.
        """
        while segment_id != TERMINAL_END:
            self._recompute(segment_id)
            segment_id = self._up[segment_id]

    def move_distal_point(self, segment_id: int, point) -> None:
        """
        Move the distal point of a segment without changing the topology.

        Lengths of the segment and of its children change, so the children's
        own Poiseuille terms are recomputed before the upward ``update``.
        """
        point = np.asarray(point, dtype=np.float64)
        self._points[segment_id] = point
        self._length[segment_id] = distance(self.proximal_point(segment_id), point)
        if not self.is_terminal(segment_id):
            for child in (self._left[segment_id], self._right[segment_id]):
                self._length[child] = distance(point, self._points[child])
                self._recompute(child)
        self.update(segment_id)

    def _recompute(self, segment_id: int) -> None:
        # Resistance and ratios are a pure function of the node's length and
        # its children's flow and resistance, so undoing an edit restores
        # them bit for bit.
        mu = self.blood_viscosity(segment_id)
        connection = self._left[segment_id]
        new = self._right[segment_id]
        if connection == TERMINAL_END and new == TERMINAL_END:
            self._resistance[segment_id] = POISEUILLE_CONSTANT * mu * self._length[segment_id]
            self._ratio_left[segment_id] = 1.0
            self._ratio_right[segment_id] = 1.0
            return

        connection_flow = self._flow[connection]
        new_flow = self._flow[new]
        self._flow[segment_id] = connection_flow + new_flow

        left_resistance = self._resistance[connection]
        right_resistance = self._resistance[new]
        radius_ratio = (
            (connection_flow / new_flow) * (left_resistance / right_resistance)
        ) ** 0.25
        gamma = self.bifurcation_exponent(segment_id)
        powered = radius_ratio ** gamma
        ratio_left = (1.0 + 1.0 / powered) ** (-1.0 / gamma)
        ratio_right = (1.0 + powered) ** (-1.0 / gamma)
        self._ratio_left[segment_id] = ratio_left
        self._ratio_right[segment_id] = ratio_right

        conductance = ratio_left ** 4 / left_resistance + ratio_right ** 4 / right_resistance
        self._resistance[segment_id] = (
            POISEUILLE_CONSTANT * mu * self._length[segment_id] + 1.0 / conductance
        )

    # ------------------------------------------------------------------
    # Derived quantities
    # ------------------------------------------------------------------

    def root_radius(self) -> float:
        """Root radius from root resistance and the target pressure drop."""
        pressure_drop = self.perfusion_pressure - self.terminal_pressure
        return self.radius_unit * (
            self._resistance[ROOT_ID] * self.perfusion_flow / pressure_drop
        ) ** 0.25

    def radius(self, segment_id: int) -> float:
        """Radius of a segment: root radius times the ratios up to the root."""
        ratio = 1.0
        while self._up[segment_id] != TERMINAL_END:
            parent = self._up[segment_id]
            if self._left[parent] == segment_id:
                ratio *= self._ratio_left[parent]
            else:
                ratio *= self._ratio_right[parent]
            segment_id = parent
        return float(ratio * self.root_radius())

    def radii(self) -> np.ndarray:
        """Radii of all live segments, shape (n,)."""
        n = self._current_number_of_segments
        if n == 0:
            return np.zeros(0)
        up = self._up[:n]
        ids = np.arange(n)
        has_parent = up >= 0
        parents = up[has_parent]
        factor = np.ones(n)
        factor[has_parent] = np.where(
            self._left[parents] == ids[has_parent],
            self._ratio_left[parents],
            self._ratio_right[parents],
        )

        ratio = factor.copy()
        ancestor = up.copy()
        mask = ancestor >= 0
        while mask.any():
            ratio[mask] *= factor[ancestor[mask]]
            ancestor[mask] = up[ancestor[mask]]
            mask = ancestor >= 0
        return ratio * self.root_radius()

    def volume(self) -> float:
        """Total vessel volume, pi * sum(r^2 * l)."""
        r = self.radii()
        return float(np.pi * np.sum(r * r * self.lengths()))

    def level(self, segment_id: int) -> int:
        """Number of segments between this one and the root."""
        depth = 0
        while self._up[segment_id] != TERMINAL_END:
            depth += 1
            segment_id = self._up[segment_id]
        return depth

    def levels(self) -> np.ndarray:
        """Levels of all live segments."""
        n = self._current_number_of_segments
        result = np.zeros(n, dtype=np.int64)
        up = self._up[:n]
        ancestor = up.copy()
        mask = ancestor >= 0
        while mask.any():
            result[mask] += 1
            ancestor[mask] = up[ancestor[mask]]
            mask = ancestor >= 0
        return result

    def strahler_order(self, segment_id: int) -> int:
        """Strahler order of the subtree rooted at a segment."""
        return int(self._strahler_orders(segment_id)[segment_id])

    def strahler_orders(self) -> np.ndarray:
        """Strahler orders of all live segments."""
        n = self._current_number_of_segments
        result = np.zeros(n, dtype=np.int64)
        if n == 0:
            return result
        for segment_id, order in self._strahler_orders(ROOT_ID).items():
            result[segment_id] = order
        return result

    def _strahler_orders(self, start: int) -> dict:
        orders = {}
        stack = [(int(start), False)]
        while stack:
            segment_id, expanded = stack.pop()
            if self.is_terminal(segment_id):
                orders[segment_id] = 1
            elif not expanded:
                stack.append((segment_id, True))
                stack.append((int(self._left[segment_id]), False))
                stack.append((int(self._right[segment_id]), False))
            else:
                left_order = orders[int(self._left[segment_id])]
                right_order = orders[int(self._right[segment_id])]
                if left_order == right_order:
                    orders[segment_id] = left_order + 1
                else:
                    orders[segment_id] = max(left_order, right_order)
        return orders

    # ------------------------------------------------------------------
    # Copy and serialization
    # ------------------------------------------------------------------

    def copy(self) -> "Tree":
        """Deep copy of the tree, arena included."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        n = self._current_number_of_segments
        return {
            "seed": self._seed.tolist(),
            "number_of_terminals": self._number_of_terminals,
            "perfusion_volume": self.perfusion_volume,
            "perfusion_pressure": self.perfusion_pressure,
            "terminal_pressure": self.terminal_pressure,
            "perfusion_flow": self.perfusion_flow,
            "blood_viscosity": self.blood_viscosity_law.to_dict(),
            "bifurcation_exponent": self.bifurcation_exponent_law.to_dict(),
            "radius_unit": self.radius_unit,
            "length_unit": self.length_unit,
            "current_number_of_terminals": self._current_number_of_terminals,
            "segments": [self.segment(i).to_dict() for i in range(n)],
            "resistance": self._resistance[:n].tolist(),
            "length": self._length[:n].tolist(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Tree":
        """Create from dictionary."""
        tree = cls(
            seed=d["seed"],
            number_of_terminals=d["number_of_terminals"],
            perfusion_volume=d["perfusion_volume"],
            perfusion_pressure=d["perfusion_pressure"],
            terminal_pressure=d["terminal_pressure"],
            perfusion_flow=d["perfusion_flow"],
            blood_viscosity=law_from_dict(d["blood_viscosity"]),
            bifurcation_exponent=law_from_dict(d["bifurcation_exponent"]),
            radius_unit=d.get("radius_unit", 1.0),
            length_unit=d.get("length_unit", 1.0),
        )
        segments = d.get("segments", [])
        if len(segments) > tree.total_number_of_segments:
            raise ValueError(
                f"{len(segments)} segments do not fit a tree of "
                f"{tree.number_of_terminals} terminals"
            )
        for s in segments:
            i = s["segment_id"]
            tree._points[i] = s["point"]
            tree._flow[i] = s["flow"]
            tree._up[i] = s["up"]
            tree._left[i] = s["left"]
            tree._right[i] = s["right"]
            tree._ratio_left[i] = s["bifurcation_ratio_left"]
            tree._ratio_right[i] = s["bifurcation_ratio_right"]
        n = len(segments)
        tree._resistance[:n] = d["resistance"]
        tree._length[:n] = d["length"]
        tree._current_number_of_segments = n
        tree._current_number_of_terminals = d["current_number_of_terminals"]
        return tree

    def __repr__(self) -> str:
        return (
            f"Tree(dimension={self.dimension}, terminals="
            f"{self._current_number_of_terminals}/{self._number_of_terminals}, "
            f"segments={self._current_number_of_segments})"
        )

    def _check_point(self, point) -> None:
        if np.shape(point) != (self.dimension,):
            raise ValueError(
                f"Point dimension {np.shape(point)} does not match tree dimension {self.dimension}"
            )

    def _clear_slot(self, i: int) -> None:
        self._points[i] = 0.0
        self._flow[i] = 0.0
        self._ratio_left[i] = 1.0
        self._ratio_right[i] = 1.0
        self._up[i] = TERMINAL_END
        self._left[i] = TERMINAL_END
        self._right[i] = TERMINAL_END
        self._resistance[i] = 0.0
        self._length[i] = 0.0
