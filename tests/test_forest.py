import pytest
import logging
import numpy as np

from cco_lib.core import PointSetDomain, RootPlacementError, Segment, Tree
from cco_lib.forest import (
    CompetingOptimizedArterialTrees,
    DomainVoronoi,
    ForestCcoInvasion,
    ForestConnectionSearch,
    ForestIntersection,
    build_forest_trees,
)
from cco_lib.params import ForestParameters, GrowthParameters, TreeParameters

from conftest import SIDE, TERMINAL_FLOW


def _forest_params(fractions=(0.5, 0.5), **kwargs):
    return ForestParameters(target_flow_fractions=list(fractions), **kwargs)


def _rooted(seed, point, terminals=4) -> Tree:
    tree = Tree(seed, number_of_terminals=terminals)
    tree.grow_root(Segment(point, flow=TERMINAL_FLOW))
    return tree


def test_build_forest_trees(two_seed_domain):
    """Test that each tree gets its seed and share of the flow."""
    trees = build_forest_trees(
        two_seed_domain, TreeParameters(number_of_terminals=8), _forest_params((0.667, 0.333))
    )
    assert len(trees) == 2
    np.testing.assert_allclose(trees[1].seed, [SIDE, SIDE / 2.0])
    assert trees[0].perfusion_flow == pytest.approx(0.667 * 8.33e-6)
    assert trees[1].perfusion_flow == pytest.approx(0.333 * 8.33e-6)
    assert trees[0].perfusion_volume == pytest.approx(two_seed_domain.volume)


def test_build_forest_trees_needs_seeds(square_domain):
    """Test that the domain must provide one seed per tree."""
    with pytest.raises(ValueError, match="seeds"):
        build_forest_trees(square_domain, TreeParameters(), _forest_params())


def test_forest_parameters_validation():
    """Test that target flow fractions must be positive and non-empty."""
    with pytest.raises(ValueError, match="must not be empty"):
        ForestParameters(target_flow_fractions=[])
    with pytest.raises(ValueError, match="positive"):
        ForestParameters(target_flow_fractions=[0.5, 0.0])


def test_forest_target_count_mismatch(two_seed_domain):
    """Test that the forest needs one target flow per tree."""
    trees = build_forest_trees(two_seed_domain, TreeParameters(number_of_terminals=8), _forest_params())
    with pytest.raises(ValueError, match="target flows"):
        ForestCcoInvasion(two_seed_domain, trees, forest_params=_forest_params((1.0,)))


def test_maximum_root_length(two_seed_domain):
    """Test that the distance to the nearest seed is split by target flow."""
    forest = ForestCcoInvasion.from_parameters(
        two_seed_domain, TreeParameters(number_of_terminals=8),
        GrowthParameters(show_progress=False), _forest_params((0.75, 0.25)),
    )
    assert forest.maximum_root_length(0) == pytest.approx(0.75 * SIDE)
    assert forest.maximum_root_length(1) == pytest.approx(0.25 * SIDE)


def test_grow_root_places_every_tree(two_seed_domain):
    """Test that every tree is rooted near its own seed."""
    forest = ForestCcoInvasion.from_parameters(
        two_seed_domain, TreeParameters(number_of_terminals=8),
        GrowthParameters(show_progress=False), _forest_params(),
    )
    forest.grow_root()
    for t, tree in enumerate(forest.trees):
        assert tree.current_number_of_segments == 1
        assert np.linalg.norm(tree.distal_point(0) - tree.seed) < forest.maximum_root_length(t)
    assert forest.distance_criterion.minimum_distance == pytest.approx(np.sqrt(SIDE * SIDE / 2))


def test_grow_root_error():
    """Test that a forest without points near a seed cannot be rooted."""
    domain = PointSetDomain([[0.0, 0.001]], [[0.0, 0.0], [SIDE, 0.0]], SIDE * SIDE)
    forest = ForestCcoInvasion.from_parameters(
        domain, TreeParameters(number_of_terminals=4), GrowthParameters(show_progress=False),
        _forest_params(),
    )
    with pytest.raises(RootPlacementError, match="tree 1"):
        forest.grow_root()


def test_forest_search():
    """Test that candidates are (tree, segment) pairs nearest first."""
    trees = [_rooted([0.0, 0.0], [0.0, 0.01]), _rooted([0.05, 0.0], [0.05, 0.01])]
    search = ForestConnectionSearch(2, trees)
    candidates = search.at_point(trees, np.array([0.04, 0.005]))
    assert candidates.shape == (2, 2)
    assert candidates[0].tolist() == [1, 0]
    assert candidates[1].tolist() == [0, 0]
    only_first = search.at_point(trees, np.array([0.04, 0.005]), tree_id=0)
    assert only_first.tolist() == [[0, 0]]
    none = search.at_point(trees, np.array([0.04, 0.005]), active=[False, False])
    assert none.shape == (0, 2)


def test_forest_intersection():
    """Test that a segment crossing another tree is rejected."""
    a = _rooted([0.0, 0.0], [0.01, 0.01])
    b = _rooted([0.01, 0.0], [0.0, 0.01])
    c = _rooted([0.04, 0.0], [0.04, 0.01])
    assert not ForestIntersection([a, b]).passes(a, 0)
    assert ForestIntersection([a, c]).passes(a, 0)


def test_voronoi_territories():
    """Test the weighted nearest-tree partition."""
    trees = [_rooted([0.0, 0.0], [0.01, 0.0]), _rooted([0.05, 0.0], [0.04, 0.0])]
    points = np.array([[0.012, 0.0], [0.038, 0.0], [0.025, 0.0]])
    domain = PointSetDomain(points, [[0.0, 0.0], [0.05, 0.0]], 1.0)

    equal = DomainVoronoi(domain, trees, [0.5, 0.5])
    assert equal.in_subset(np.array([0.012, 0.0])) == 0
    assert equal.in_subset(np.array([0.038, 0.0])) == 1

    weighted = DomainVoronoi(domain, trees, [0.9, 0.1])
    assert weighted.in_subset(np.array([0.026, 0.0])) == 0
    assert weighted.territory().tolist() == pytest.approx([2.0 / 3.0, 1.0 / 3.0])

    reference, ids = weighted.reference_points()
    assert reference.shape == (2, 2)
    assert ids.tolist() == [0, 1]


def test_voronoi_needs_grown_trees():
    """Test that empty trees cannot be partitioned."""
    domain = PointSetDomain([[0.01, 0.0]], [[0.0, 0.0]], 1.0)
    with pytest.raises(ValueError, match="at least one segment"):
        DomainVoronoi(domain, [Tree([0.0, 0.0], number_of_terminals=2)], [1.0])


def test_coat_growth(two_seed_domain):
    """Test that COAT grows the forest to its terminal goal."""
    forest = CompetingOptimizedArterialTrees.from_parameters(
        two_seed_domain, TreeParameters(number_of_terminals=8),
        GrowthParameters(show_progress=False), _forest_params(first_stage=0.6),
    )
    result = forest.grow()
    assert forest.current_number_of_terminals == 8
    assert result.number_of_terminals == 8
    assert result.metadata["first_stage_terminals"] >= 2
    assert forest.voronoi is not None
    assert forest.flows().sum() == pytest.approx(8.33e-6)
    for tree in forest.trees:
        assert tree.current_number_of_terminals >= 1
        assert np.all(tree.radii() > 0.0)


def test_invasion_growth(two_seed_domain):
    """Test that invasion grows the forest to its terminal goal."""
    forest = ForestCcoInvasion.from_parameters(
        two_seed_domain, TreeParameters(number_of_terminals=8),
        GrowthParameters(show_progress=False, interval_division=10), _forest_params(),
    )
    result = forest.grow()
    assert forest.current_number_of_terminals == 8
    assert sum(result.metadata["terminals_per_tree"]) == 8
    assert forest.flows().sum() == pytest.approx(8.33e-6)


def test_forest_reports(two_seed_domain, temp_dir):
    """Test the attained flow and volume reports."""
    forest = ForestCcoInvasion.from_parameters(
        two_seed_domain, TreeParameters(number_of_terminals=6),
        GrowthParameters(show_progress=False), _forest_params((0.667, 0.333)),
    )
    forest.grow()

    forest.attained_flow(temp_dir / "flow.txt")
    lines = (temp_dir / "flow.txt").read_text().splitlines()
    assert lines[0] == "TREE TARGET_FLOW ATTAINED_FLOW"
    assert len(lines) == 3
    rows = [line.split() for line in lines[1:]]
    assert rows[0][0] == "0"
    assert float(rows[0][1]) == pytest.approx(66.7)
    assert sum(float(row[2]) for row in rows) == pytest.approx(100.0)

    forest.volumes(temp_dir / "volumes.txt", radius_unit="mm")
    lines = (temp_dir / "volumes.txt").read_text().splitlines()
    assert lines[0] == "TREE VOLUME RADIUS_ROOT"
    assert float(lines[1].split()[2]) == pytest.approx(forest.trees[0].root_radius() * 1000.0)


def test_from_parameters_logs_fraction_sum(two_seed_domain, caplog):
    """Test that target fractions not summing to one are logged when building a forest."""
    with caplog.at_level(logging.WARNING, logger="cco_lib.params.validation"):
        forest = CompetingOptimizedArterialTrees.from_parameters(
            two_seed_domain,
            TreeParameters(number_of_terminals=6),
            GrowthParameters(show_progress=False),
            _forest_params((0.5, 0.3)),
        )
    assert forest.number_of_trees == 2
    assert "target_flow_fractions sum to 0.8" in caplog.text
