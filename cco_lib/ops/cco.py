"""
Constrained constructive optimization (CCO) of a single tree.

The driver places the root inside the supporting circle (sphere) around the
seed, then adds one terminal per round:

1. sample a domain point that passes the distance criterion, relaxing the
   criterion after too many consecutive rejections
2. try a bifurcation on each of the nearest segments and optimize its
   position
3. drop candidates that intersect the tree and commit the cheapest one
"""

import logging
import time
from typing import Callable, Optional

import numpy as np
from tqdm import tqdm

from ..core import geometry
from ..core.domain import Domain, DomainSummary
from ..core.errors import DomainExhaustedError, GrowthStalledError, RootPlacementError
from ..core.result import GrowthCounters, GrowthResult
from ..core.tree import Tree
from ..core.types import Segment
from ..params.config import GrowthParameters
from ..params.validation import validate_and_warn
from ..rules.criteria import ClassicDistanceCriterion, DistanceCriterion
from ..rules.flows import ConstantTerminalFlow, TerminalFlowFunction
from ..rules.restrictions import BifurcationSymmetry, ValidAngle, ValidSegment
from ..rules.targets import TargetFunction, TargetVolume
from .evaluation import ConnectionEvaluationTable
from .optimization import GeometricOptimization, SimpleOptimization
from .search import TreeConnectionSearch

logger = logging.getLogger(__name__)


def supporting_radius(perfusion_volume: float, number_of_terminals: int, dimension: int) -> float:
    """Radius of the circle (sphere) perfused by one terminal."""
    if dimension == 2:
        return float(np.sqrt(perfusion_volume / (np.pi * number_of_terminals)))
    return float(np.cbrt(3.0 * perfusion_volume / (4.0 * np.pi * number_of_terminals)))


def default_restrictions(params: GrowthParameters) -> list:
    """Restrictions checked by the bifurcation optimizer for ``params``."""
    restrictions = [ValidSegment(), BifurcationSymmetry(params.symmetry_threshold)]
    if params.minimum_angle is not None or params.maximum_angle is not None:
        restrictions.append(
            ValidAngle(
                0.0 if params.minimum_angle is None else params.minimum_angle,
                np.pi if params.maximum_angle is None else params.maximum_angle,
            )
        )
    return restrictions


def build_optimizer(domain: Domain, target_function: TargetFunction,
                    params: GrowthParameters) -> SimpleOptimization:
    return SimpleOptimization(
        domain,
        target_function,
        interval_division=params.interval_division,
        offset=params.grid_offset,
        restrictions=default_restrictions(params),
    )


def sample_point(
    domain: Domain,
    accepts: Callable[[np.ndarray], bool],
    criterion: DistanceCriterion,
    params: GrowthParameters,
    counters: GrowthCounters,
    relaxation_factor: Optional[float] = None,
    eligible: Optional[Callable[[np.ndarray], bool]] = None,
) -> np.ndarray:
    """
    Draw domain points until ``accepts`` returns True.

    An exhausted domain is reset and sampling continues. After more than
    ``params.maximum_attempts`` consecutive rejections the criterion is
    relaxed. Points failing ``eligible`` are skipped without counting as
    rejections.

    Raises
    ------
    ValueError
        If the domain holds no points at all.
    GrowthStalledError
        If more than ``params.max_relaxations`` relaxations were needed, or
        a whole pass over the domain found no eligible point.
    """
    factor = params.relaxation_factor if relaxation_factor is None else relaxation_factor
    attempt = 0
    barren_resets = 0
    while True:
        try:
            point = domain.point()
        except DomainExhaustedError:
            domain.reset()
            counters.domain_resets += 1
            barren_resets += 1
            logger.debug("Domain exhausted, reset #%d", counters.domain_resets)
            if not domain.has_available_point():
                raise ValueError("Domain has no candidate points")
            if barren_resets > 1:
                raise GrowthStalledError("No eligible point left in the domain")
            continue

        if eligible is not None and not eligible(point):
            continue
        barren_resets = 0

        if accepts(point):
            return point

        counters.rejected_points += 1
        attempt += 1
        if attempt > params.maximum_attempts:
            value = criterion.relax(factor)
            counters.relaxations += 1
            attempt = 0
            logger.debug("Relaxed distance criterion to %.6g", value)
            if params.max_relaxations is not None and counters.relaxations > params.max_relaxations:
                raise GrowthStalledError(
                    f"Distance criterion relaxed {counters.relaxations} times "
                    f"(max_relaxations={params.max_relaxations})"
                )


def check_failed_rounds(params: GrowthParameters, counters: GrowthCounters) -> None:
    """Raise once more than ``params.max_failed_rounds`` rounds in a row had no commit."""
    if params.max_failed_rounds is not None and counters.failed_rounds > params.max_failed_rounds:
        raise GrowthStalledError(
            f"{counters.failed_rounds} consecutive rounds without a connection "
            f"(max_failed_rounds={params.max_failed_rounds})"
        )


class ConstrainedConstructiveOptimization:
    """
    Single-tree growth driver.

    Parameters
    ----------
    domain : Domain
        Source of candidate points
    tree : Tree
        Empty tree to grow; its ``number_of_terminals`` is the goal
    params : GrowthParameters, optional
        Loop controls, defaults when omitted
    distance_criterion : DistanceCriterion, optional
        Default ``ClassicDistanceCriterion`` over the tree's perfusion volume
    terminal_flow : TerminalFlowFunction, optional
        Default ``ConstantTerminalFlow`` for the tree
    target_function : TargetFunction, optional
        Default ``TargetVolume`` with the exponents of ``params``
    optimizer : GeometricOptimization, optional
        Default ``SimpleOptimization`` configured from ``params``

    Examples
    --------
    >>> domain = PointSetDomain.sample(CircleFunction(0.03), [-0.03] * 3, [0.03] * 3,
    ...                                2000, seeds=[[0.0, 0.0, 0.03]], seed=1)
    >>> tree = Tree(domain.seed(0), number_of_terminals=50,
    ...             perfusion_volume=domain.volume)
    >>> result = ConstrainedConstructiveOptimization(domain, tree).grow()
    >>> tree.current_number_of_terminals
    50
    """

    def __init__(
        self,
        domain: Domain,
        tree: Tree,
        params: Optional[GrowthParameters] = None,
        distance_criterion: Optional[DistanceCriterion] = None,
        terminal_flow: Optional[TerminalFlowFunction] = None,
        target_function: Optional[TargetFunction] = None,
        optimizer: Optional[GeometricOptimization] = None,
    ):
        if domain.dimension != tree.dimension:
            raise ValueError(
                f"Domain dimension ({domain.dimension}) does not match "
                f"tree dimension ({tree.dimension})"
            )
        self.domain = domain
        self.tree = tree
        self.params = params or GrowthParameters()
        self.distance_criterion = distance_criterion or ClassicDistanceCriterion.for_tree(tree)
        self.terminal_flow = terminal_flow or ConstantTerminalFlow.for_tree(tree)
        self.target_function = target_function or TargetVolume(
            self.params.radius_exponent, self.params.length_exponent
        )
        self.optimizer = optimizer or build_optimizer(domain, self.target_function, self.params)

        self.vicinity = TreeConnectionSearch(
            self.params.number_of_connections, tree.total_number_of_segments
        )
        self.table = ConnectionEvaluationTable(self.params.number_of_connections)
        self.counters = GrowthCounters()

    @classmethod
    def from_parameters(cls, domain: Domain, tree_params, growth_params=None,
                        seed_id: int = 0) -> "ConstrainedConstructiveOptimization":
        """
        Build the tree from ``TreeParameters`` at a domain seed and wrap it.

        The domain volume is the perfusion volume unless ``tree_params``
        sets one. Parameters outside ``PARAM_BOUNDS`` are logged as warnings.
        """
        validate_and_warn(tree_params)
        if growth_params is not None:
            validate_and_warn(growth_params)
        tree = tree_params.build_tree(domain.seed(seed_id), perfusion_volume=domain.volume)
        return cls(domain, tree, growth_params)

    def grow_root(self) -> int:
        """
        Connect the seed to the first domain point inside the supporting region.

        Raises
        ------
        RootPlacementError
            If no remaining domain point is close enough to the seed.
        """
        tree = self.tree
        radius = supporting_radius(tree.perfusion_volume, tree.number_of_terminals, tree.dimension)
        seed = tree.seed
        while self.domain.has_available_point():
            point = self.domain.point()
            if geometry.distance(point, seed) < radius:
                break
        else:
            raise RootPlacementError(
                f"No domain point within {radius:.6g} of seed {seed.tolist()}"
            )

        root = Segment(point, flow=self.terminal_flow.eval(Segment(point)))
        root_id = tree.grow_root(root)
        self.distance_criterion.update(1)
        logger.debug("Root placed at %s (supporting radius %.6g)", point.tolist(), radius)
        return root_id

    def connect(self, point: np.ndarray) -> bool:
        """
        Run one growth round for ``point``.

        Returns
        -------
        bool
            True when a connection was committed
        """
        tree = self.tree
        new_segment = Segment(point, flow=self.terminal_flow.eval(Segment(point)))

        for segment_id in self.vicinity.at_point(tree, point):
            segment_id = int(segment_id)
            middle = geometry.middle(tree.proximal_point(segment_id), tree.distal_point(segment_id))
            bifurcation = tree.grow_segment(middle, segment_id, new_segment)
            connection = self.optimizer.bifurcation(tree, bifurcation)
            if not connection.empty:
                self.table.add(connection)
            tree.remove(tree.right(bifurcation))

        committed = False
        if self.table.reduce(tree) > 0:
            optimal = self.table.optimal_reasonable_connection()
            tree.grow_segment(optimal.bifurcation_point, optimal.segment_id, optimal.new_segment)
            committed = True
        self.table.reset()
        return committed

    def grow(self) -> GrowthResult:
        """
        Grow the tree until it has ``number_of_terminals`` terminals.

        Returns
        -------
        GrowthResult
            Counters and timing of the run
        """
        tree = self.tree
        params = self.params
        start = time.perf_counter()
        goal = tree.number_of_terminals
        logger.info("Growing tree with %d terminals", goal)

        if tree.current_number_of_segments == 0:
            self.grow_root()

        pbar = tqdm(
            total=goal,
            initial=tree.current_number_of_terminals,
            desc="Growing tree",
            unit="terminal",
            disable=not params.show_progress,
        )
        warned = False
        try:
            while tree.current_number_of_terminals < goal:
                point = sample_point(
                    self.domain,
                    lambda p: self.distance_criterion.eval(tree, p),
                    self.distance_criterion,
                    params,
                    self.counters,
                )

                if self.connect(point):
                    self.distance_criterion.update(tree.current_number_of_terminals)
                    self.counters.failed_rounds = 0
                    pbar.update(1)
                else:
                    self.counters.discarded_points += 1
                    self.counters.failed_rounds += 1
                    check_failed_rounds(params, self.counters)

                if not warned and self.counters.relaxations > params.relaxation_warning:
                    logger.warning(
                        "Distance criterion relaxed %d times", self.counters.relaxations
                    )
                    warned = True
        finally:
            pbar.close()

        elapsed = time.perf_counter() - start
        result = self.counters.to_result(
            message=f"Grew {tree.current_number_of_terminals} terminals",
            number_of_terminals=tree.current_number_of_terminals,
            number_of_segments=tree.current_number_of_segments,
            criterion_distance=self.distance_criterion.minimum_distance,
            elapsed_seconds=elapsed,
            metadata={
                "domain": DomainSummary.of(self.domain).to_dict(),
                "volume": tree.volume(),
                "root_radius": tree.root_radius(),
            },
        )
        if warned:
            result.add_warning(
                f"Distance criterion relaxed {self.counters.relaxations} times"
            )
        logger.info("Finished in %.2fs: %s", elapsed, result.message)
        return result
