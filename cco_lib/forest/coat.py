"""
Competing optimized arterial trees (COAT).

Growth runs in two stages. In the first, every tree below
``first_stage`` of its perfusion flow competes for points near its seed and
each round commits the connection with the lowest combined cost over the
forest. The domain is then split into weighted nearest-tree territories and
each tree finishes growing on its own, using only points of its territory.
"""

import logging
import time
from typing import Optional

from ..core import geometry
from ..core.result import GrowthResult
from ..ops.cco import sample_point
from .base import Forest
from .voronoi import DomainVoronoi

logger = logging.getLogger(__name__)


class CompetingOptimizedArterialTrees(Forest):
    """
    Two-stage forest growth driver.

    Parameters are those of ``Forest``; ``forest_params.first_stage``,
    ``first_stage_relaxation_factor`` and ``territory_weight`` steer the
    stages.

    Attributes
    ----------
    voronoi : DomainVoronoi or None
        Territories built at the end of the first stage
    """

    description = "Growing COAT forest"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.voronoi: Optional[DomainVoronoi] = None

    def _below_first_stage(self, t: int) -> bool:
        tree = self.trees[t]
        return tree.flow() < self.forest_params.first_stage * tree.perfusion_flow

    def _near_seed(self, t: int, point) -> bool:
        return geometry.distance(point, self.trees[t].seed) <= self._maximum_root_length[t]

    def _first_stage_accepts(self, point) -> bool:
        for t, tree in enumerate(self.trees):
            if (self.active[t] and self._near_seed(t, point)
                    and not self.distance_criterion.eval(tree, point)):
                return False
        return True

    def grow_first_stage(self, pbar) -> None:
        """Grow competing trees until each reaches its first-stage flow."""
        factor = self.forest_params.first_stage_relaxation_factor
        round_attempts = 0
        while self.current_number_of_terminals < self.number_of_terminals:
            for t in range(self.number_of_trees):
                self.active[t] = self._below_first_stage(t)
            if not self.active.any():
                break

            point = sample_point(
                self.domain,
                self._first_stage_accepts,
                self.distance_criterion,
                self.params,
                self.counters,
                relaxation_factor=factor,
            )

            candidates = self.vicinity.at_point(self.trees, point, active=self.active)
            self.try_connections(
                point, candidates, skip=lambda t: not self._near_seed(t, point)
            )
            tree_id = self.select_tree()
            committed = tree_id >= 0 and self.commit(tree_id)
            if committed:
                pbar.update(1)
            round_attempts = self.finish_round(committed, round_attempts, factor)
            self.reset_tables()

    def grow_territory(self, tree_id: int, pbar) -> None:
        """Grow one tree with points of its own territory until it reaches its flow."""
        tree = self.trees[tree_id]
        factor = self.params.relaxation_factor
        round_attempts = 0
        self.domain.reset()
        while self.current_number_of_terminals < self.number_of_terminals:
            self.active[tree_id] = tree.perfusion_flow > tree.flow()
            if not self.active[tree_id]:
                break

            point = sample_point(
                self.domain,
                lambda p: self.distance_criterion.eval(tree, p),
                self.distance_criterion,
                self.params,
                self.counters,
                relaxation_factor=factor,
                eligible=lambda p: self.voronoi.in_subset(p) == tree_id,
            )

            candidates = self.vicinity.at_point(self.trees, point, tree_id=tree_id)
            self.try_connections(point, candidates)
            committed = self.select_tree([tree_id]) == tree_id and self.commit(tree_id)
            if committed:
                pbar.update(1)
            round_attempts = self.finish_round(committed, round_attempts, factor)
            self.reset_tables()

    def grow(self) -> GrowthResult:
        start = time.perf_counter()
        logger.info(
            "Growing COAT forest: %d trees, %d terminals",
            self.number_of_trees, self.number_of_terminals,
        )
        if self.current_number_of_segments == 0:
            self.grow_root()

        pbar = self.progress_bar()
        try:
            self.grow_first_stage(pbar)
            first_stage_terminals = self.current_number_of_terminals
            logger.info("First stage finished with %d terminals", first_stage_terminals)

            self.voronoi = DomainVoronoi(
                self.domain, self.trees, self.targets, self.forest_params.territory_weight
            )
            for tree_id in range(self.number_of_trees):
                self.grow_territory(tree_id, pbar)
        finally:
            pbar.close()

        return self.make_result(start, first_stage_terminals=first_stage_terminals)
