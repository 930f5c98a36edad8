"""
Forest growth by territory invasion.

All trees compete over the whole domain for the whole run. A tree stops
competing once it exceeds its flow share relative to the others, and a tree
still below ``invasion_coefficient`` of its perfusion flow may only take
points within its maximum root length.
"""

import logging
import time

from ..core import geometry
from ..core.result import GrowthResult
from ..ops.cco import sample_point
from .base import Forest

logger = logging.getLogger(__name__)


class ForestCcoInvasion(Forest):
    """Single-stage forest growth driver with invasion limits."""

    description = "Growing forest"

    def _restricted(self, tree_id: int, point) -> bool:
        tree = self.trees[tree_id]
        return (
            tree.flow() < self.forest_params.invasion_coefficient * tree.perfusion_flow
            and geometry.distance(point, tree.seed) > self._maximum_root_length[tree_id]
        )

    def _accepts(self, point) -> bool:
        for t, tree in enumerate(self.trees):
            if self.active[t] and not self.distance_criterion.eval(tree, point):
                return False
        return True

    def grow(self) -> GrowthResult:
        start = time.perf_counter()
        logger.info(
            "Growing forest by invasion: %d trees, %d terminals",
            self.number_of_trees, self.number_of_terminals,
        )
        if self.current_number_of_segments == 0:
            self.grow_root()

        factor = self.params.relaxation_factor
        round_attempts = 0
        pbar = self.progress_bar()
        try:
            while self.current_number_of_terminals < self.number_of_terminals:
                self.set_active()
                point = sample_point(
                    self.domain,
                    self._accepts,
                    self.distance_criterion,
                    self.params,
                    self.counters,
                    relaxation_factor=factor,
                )

                candidates = self.vicinity.at_point(self.trees, point, active=self.active)
                self.try_connections(
                    point, candidates, skip=lambda t: self._restricted(t, point)
                )
                tree_id = self.select_tree()
                committed = tree_id >= 0 and self.commit(tree_id)
                if committed:
                    pbar.update(1)
                round_attempts = self.finish_round(committed, round_attempts, factor)
                self.reset_tables()
        finally:
            pbar.close()

        return self.make_result(start)
