"""
Shared state of a forest of trees competing for one domain.

Every tree keeps its own arena. The forest owns the strategies the trees
share: one distance criterion (evaluated against whichever tree is being
tested), one terminal flow function over the summed perfusion flow, a
vicinity search over all trees and a cross-tree intersection check.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence

import numpy as np
from tqdm import tqdm

from ..core import geometry
from ..core.domain import Domain, DomainSummary
from ..core.errors import RootPlacementError
from ..core.result import GrowthCounters, GrowthResult
from ..core.tree import Tree
from ..core.types import Segment
from ..io.reports import save_attained_flow, save_volumes
from ..ops.cco import build_optimizer, check_failed_rounds, supporting_radius
from ..ops.evaluation import ConnectionEvaluationTable
from ..params.config import ForestParameters, GrowthParameters, TreeParameters
from ..params.validation import validate_and_warn
from ..rules.criteria import ClassicDistanceCriterion
from ..rules.flows import ForestConstantTerminalFlow
from ..rules.targets import TargetVolume
from .intersection import ForestIntersection
from .search import ForestConnectionSearch

logger = logging.getLogger(__name__)


def build_forest_trees(domain: Domain, tree_params: TreeParameters,
                       forest_params: ForestParameters) -> List[Tree]:
    """
    One empty tree per domain seed, each with its share of the perfusion flow.

    Every tree can hold ``tree_params.number_of_terminals`` terminals, the
    terminal goal of the whole forest.
    """
    if domain.number_of_seeds < forest_params.number_of_trees:
        raise ValueError(
            f"Domain has {domain.number_of_seeds} seeds but the forest needs "
            f"{forest_params.number_of_trees}"
        )
    return [
        tree_params.build_tree(
            domain.seed(t),
            perfusion_volume=domain.volume,
            perfusion_flow=fraction * tree_params.perfusion_flow,
        )
        for t, fraction in enumerate(forest_params.target_flow_fractions)
    ]


class Forest(ABC):
    """
    Base class of the forest growth drivers.

    Parameters
    ----------
    domain : Domain
        Shared source of candidate points
    trees : sequence of Tree
        Empty trees, one per seed
    number_of_terminals : int, optional
        Terminal goal of the whole forest; defaults to the capacity of the
        first tree
    params : GrowthParameters, optional
    forest_params : ForestParameters, optional
        Must list one target flow fraction per tree
    """

    description = "Growing forest"

    def __init__(
        self,
        domain: Domain,
        trees: Sequence[Tree],
        number_of_terminals: Optional[int] = None,
        params: Optional[GrowthParameters] = None,
        forest_params: Optional[ForestParameters] = None,
    ):
        trees = list(trees)
        if not trees:
            raise ValueError("A forest needs at least one tree")
        for tree in trees:
            if tree.dimension != domain.dimension:
                raise ValueError(
                    f"Tree dimension ({tree.dimension}) does not match "
                    f"domain dimension ({domain.dimension})"
                )
        forest_params = forest_params or ForestParameters(
            target_flow_fractions=[1.0 / len(trees)] * len(trees)
        )
        if forest_params.number_of_trees != len(trees):
            raise ValueError(
                f"Got {len(trees)} trees but {forest_params.number_of_trees} target flows"
            )
        if number_of_terminals is None:
            number_of_terminals = trees[0].number_of_terminals
        if number_of_terminals < len(trees):
            raise ValueError(
                f"number_of_terminals ({number_of_terminals}) must be at least "
                f"the number of trees ({len(trees)})"
            )

        self.domain = domain
        self.trees = trees
        self.number_of_terminals = int(number_of_terminals)
        self.params = params or GrowthParameters()
        self.forest_params = forest_params
        self.targets = np.asarray(forest_params.target_flow_fractions, dtype=np.float64)

        self.distance_criterion = ClassicDistanceCriterion.for_tree(trees[0])
        self.terminal_flow = ForestConstantTerminalFlow(trees, self.number_of_terminals)
        self.target_function = TargetVolume(
            self.params.radius_exponent, self.params.length_exponent
        )
        self.optimizer = build_optimizer(domain, self.target_function, self.params)
        self.vicinity = ForestConnectionSearch(self.params.number_of_connections, trees)
        self.tables = [
            ConnectionEvaluationTable(self.params.number_of_connections) for _ in trees
        ]
        self.intersection = ForestIntersection(trees)
        self.active = np.ones(len(trees), dtype=bool)
        self.counters = GrowthCounters()

        self.largest_tree = int(np.argmax(self.targets))
        self.target_relative_flow = self.targets / self.targets[self.largest_tree]
        self._maximum_root_length = self._root_lengths()

    @classmethod
    def from_parameters(cls, domain: Domain, tree_params: TreeParameters,
                        growth_params: Optional[GrowthParameters] = None,
                        forest_params: Optional[ForestParameters] = None) -> "Forest":
        """
        Build one tree per seed with ``build_forest_trees`` and wrap them.

        Parameters outside ``PARAM_BOUNDS`` are logged as warnings.
        """
        forest_params = forest_params or ForestParameters()
        for params in (tree_params, growth_params, forest_params):
            if params is not None:
                validate_and_warn(params)
        trees = build_forest_trees(domain, tree_params, forest_params)
        return cls(domain, trees, tree_params.number_of_terminals, growth_params, forest_params)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def number_of_trees(self) -> int:
        return len(self.trees)

    def tree(self, tree_id: int) -> Tree:
        return self.trees[tree_id]

    @property
    def current_number_of_terminals(self) -> int:
        return sum(tree.current_number_of_terminals for tree in self.trees)

    @property
    def current_number_of_segments(self) -> int:
        return sum(tree.current_number_of_segments for tree in self.trees)

    def flows(self) -> np.ndarray:
        """Current root flow of every tree."""
        return np.array([tree.flow() for tree in self.trees])

    def current_relative_flow(self) -> np.ndarray:
        """Tree flows relative to the largest current flow."""
        flows = self.flows()
        largest = flows.max()
        if largest <= 0.0:
            return np.zeros_like(flows)
        return flows / largest

    def maximum_root_length(self, tree_id: int) -> float:
        """Farthest distance from the seed at which the tree may take a point early on."""
        return float(self._maximum_root_length[tree_id])

    def _root_lengths(self) -> np.ndarray:
        if self.number_of_trees == 1:
            tree = self.trees[0]
            return np.array([
                supporting_radius(tree.perfusion_volume, tree.number_of_terminals, tree.dimension)
            ])

        lengths = np.zeros(self.number_of_trees)
        for t, tree in enumerate(self.trees):
            # Nearest other seed; equal distances prefer the smaller target
            neighbor = t + 1 if t + 1 < self.number_of_trees else 0
            nearest = geometry.distance(tree.seed, self.trees[neighbor].seed)
            for i, other in enumerate(self.trees):
                if i == t:
                    continue
                d = geometry.distance(tree.seed, other.seed)
                if d < nearest or (d == nearest and self.targets[i] < self.targets[neighbor]):
                    neighbor = i
                    nearest = d
            lengths[t] = nearest * self.targets[t] / (self.targets[neighbor] + self.targets[t])
        return lengths

    def set_active(self) -> None:
        """
        Flag the trees still competing for points.

        The tree with the largest target stays active until it reaches its
        perfusion flow; the others while their relative flow is below their
        relative target.
        """
        relative = self.current_relative_flow()
        for t, tree in enumerate(self.trees):
            if t == self.largest_tree:
                self.active[t] = tree.perfusion_flow >= tree.flow()
            else:
                self.active[t] = self.target_relative_flow[t] >= relative[t]

    # ------------------------------------------------------------------
    # Growth steps
    # ------------------------------------------------------------------

    def grow_root(self) -> None:
        """
        Root every tree at the first domain point near enough to its seed.

        Raises
        ------
        RootPlacementError
            If the domain runs out before a tree finds a point.
        """
        for t, tree in enumerate(self.trees):
            seed = tree.seed
            limit = self._maximum_root_length[t]
            while self.domain.has_available_point():
                point = self.domain.point()
                if geometry.distance(point, seed) < limit and self.domain.is_in(seed, point):
                    break
            else:
                raise RootPlacementError(
                    f"No domain point within {limit:.6g} of the seed of tree {t}"
                )
            tree.grow_root(Segment(point, flow=self.terminal_flow.eval(Segment(point))))
            logger.debug("Tree %d rooted at %s", t, point.tolist())
        self.distance_criterion.update(self.number_of_trees)

    def try_connections(self, point: np.ndarray, candidates: np.ndarray,
                        skip: Optional[Callable[[int], bool]] = None) -> None:
        """Optimize a trial bifurcation at each ``(tree_id, segment_id)`` candidate."""
        new_segment = Segment(point, flow=self.terminal_flow.eval(Segment(point)))
        for tree_id, segment_id in candidates:
            tree_id = int(tree_id)
            segment_id = int(segment_id)
            if skip is not None and skip(tree_id):
                continue
            tree = self.trees[tree_id]
            middle = geometry.middle(tree.proximal_point(segment_id), tree.distal_point(segment_id))
            bifurcation = tree.grow_segment(middle, segment_id, new_segment)
            connection = self.optimizer.bifurcation(tree, bifurcation)
            if not connection.empty:
                self.tables[tree_id].add(connection)
            tree.remove(tree.right(bifurcation))

    def select_tree(self, tree_ids: Optional[Sequence[int]] = None) -> int:
        """
        Reduce the tables and pick the tree with the lowest combined cost.

        The combined cost is the optimal connection of a tree plus the
        current target value of every other tree.

        Returns
        -------
        int
            Tree id, or -1 when no tree has a reasonable connection
        """
        if tree_ids is None:
            tree_ids = range(self.number_of_trees)
        values = [self.target_function.eval(tree) for tree in self.trees]
        total = sum(values)
        best_tree = -1
        best_value = np.inf
        for t in tree_ids:
            if self.tables[t].reduce(self.trees[t]) == 0:
                continue
            optimal = self.tables[t].optimal_reasonable_connection()
            value = optimal.target_value + total - values[t]
            if value < best_value:
                best_tree = t
                best_value = value
        return best_tree

    def commit(self, tree_id: int) -> bool:
        """
        Grow the optimal connection of a tree, undoing it if it crosses another tree.
        """
        tree = self.trees[tree_id]
        optimal = self.tables[tree_id].optimal_reasonable_connection()
        bifurcation = tree.grow_segment(
            optimal.bifurcation_point, optimal.segment_id, optimal.new_segment
        )
        if self.intersection.passes(tree, bifurcation):
            return True
        tree.remove(tree.right(bifurcation))
        self.counters.rejected_commits += 1
        logger.debug("Connection to tree %d crosses another tree, undone", tree_id)
        return False

    def reset_tables(self) -> None:
        for table in self.tables:
            table.reset()

    def finish_round(self, committed: bool, round_attempts: int, factor: float) -> int:
        """
        Update counters after a round and return the new round-attempt count.

        The criterion is also relaxed when too many rounds pass without a
        commit.
        """
        params = self.params
        if committed:
            self.distance_criterion.update(self.current_number_of_terminals)
            self.counters.failed_rounds = 0
            round_attempts = 0
        else:
            self.counters.discarded_points += 1
            self.counters.failed_rounds += 1
            check_failed_rounds(params, self.counters)
        round_attempts += 1
        if round_attempts > params.maximum_attempts:
            value = self.distance_criterion.relax(factor)
            self.counters.relaxations += 1
            logger.debug("Relaxed distance criterion to %.6g after idle rounds", value)
            round_attempts = 0
        return round_attempts

    def progress_bar(self) -> tqdm:
        return tqdm(
            total=self.number_of_terminals,
            initial=self.current_number_of_terminals,
            desc=self.description,
            unit="terminal",
            disable=not self.params.show_progress,
        )

    def make_result(self, start: float, **metadata) -> GrowthResult:
        """Freeze the counters of a finished run."""
        elapsed = time.perf_counter() - start
        metadata.update(
            domain=DomainSummary.of(self.domain).to_dict(),
            terminals_per_tree=[tree.current_number_of_terminals for tree in self.trees],
            flows=self.flows().tolist(),
        )
        result = self.counters.to_result(
            message=f"Grew {self.current_number_of_terminals} terminals "
                    f"over {self.number_of_trees} trees",
            number_of_terminals=self.current_number_of_terminals,
            number_of_segments=self.current_number_of_segments,
            criterion_distance=self.distance_criterion.minimum_distance,
            elapsed_seconds=elapsed,
            metadata=metadata,
        )
        if self.counters.relaxations > self.params.relaxation_warning:
            logger.warning("Distance criterion relaxed %d times", self.counters.relaxations)
            result.add_warning(
                f"Distance criterion relaxed {self.counters.relaxations} times"
            )
        logger.info("Finished in %.2fs: %s", elapsed, result.message)
        return result

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def attained_flow(self, path, delimiter: str = " ") -> None:
        """Write target and attained flow share of each tree (percent)."""
        save_attained_flow(self, path, delimiter=delimiter)

    def volumes(self, path, radius_unit=1.0, delimiter: str = " ") -> None:
        """Write the volume and root radius of each tree."""
        save_volumes(self, path, radius_unit=radius_unit, delimiter=delimiter)

    @abstractmethod
    def grow(self) -> GrowthResult:
        """Grow the forest until it reaches ``number_of_terminals``."""
        pass
