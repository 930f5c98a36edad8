import pytest
import numpy as np

from cco_lib.core import Connection, Segment, Tree
from cco_lib.ops import ConnectionEvaluationTable, SimpleOptimization, TreeConnectionSearch
from cco_lib.rules import TargetFunction, TargetVolume

from conftest import TERMINAL_FLOW


def _trial_tree() -> Tree:
    # Root (0.025, 0) -> (0.025, 0.02) with a trial terminal attached at its middle
    tree = Tree([0.025, 0.0], number_of_terminals=4)
    tree.grow_root(Segment([0.025, 0.02], flow=TERMINAL_FLOW))
    return tree


class ConstantTarget(TargetFunction):
    """Same cost for every configuration."""

    def eval(self, tree) -> float:
        return 1.0


def test_search_nearest_first(small_tree):
    """Test that the nearest segment comes first."""
    search = TreeConnectionSearch(2, small_tree.total_number_of_segments)
    ids = search.at_point(small_tree, np.array([0.006, 0.016]))
    assert ids.tolist()[0] == 2
    assert len(ids) == 2


def test_search_limited_by_tree_size(small_tree):
    """Test that at most the live segments are returned."""
    search = TreeConnectionSearch(20, small_tree.total_number_of_segments)
    ids = search.at_point(small_tree, np.array([0.0, 0.0]))
    assert sorted(ids.tolist()) == [0, 1, 2]
    assert search.current_number_of_connections == 3


def test_search_invalid_count():
    """Test that the number of connections must be positive."""
    with pytest.raises(ValueError, match="number_of_connections"):
        TreeConnectionSearch(0, 5)


def test_grid_size(square_domain):
    """Test the triangular grid of (n + 1)(n + 2) / 2 points."""
    tree = _trial_tree()
    tree.grow_segment([0.025, 0.01], 0, Segment([0.035, 0.01], flow=TERMINAL_FLOW))
    for n in (1, 5, 10):
        optimizer = SimpleOptimization(square_domain, TargetVolume(), interval_division=n)
        assert optimizer.grid(tree, 0).shape == ((n + 1) * (n + 2) // 2, 2)


def test_bifurcation_leaves_tree_unchanged(square_domain):
    """Test that the optimizer finds a connection and restores the trial tree."""
    tree = _trial_tree()
    bifurcation = tree.grow_segment([0.025, 0.01], 0, Segment([0.035, 0.01], flow=TERMINAL_FLOW))
    before = tree.to_dict()

    connection = SimpleOptimization(square_domain, TargetVolume()).bifurcation(tree, bifurcation)

    assert not connection.empty
    assert connection.segment_id == 0
    assert np.isfinite(connection.target_value)
    np.testing.assert_allclose(connection.new_segment.point, [0.035, 0.01])
    np.testing.assert_allclose(tree.to_dict()["length"], before["length"], rtol=1e-12)
    np.testing.assert_allclose(tree.to_dict()["resistance"], before["resistance"], rtol=1e-12)


def test_bifurcation_target_value(square_domain):
    """Test that the reported cost is the target at the chosen bifurcation point."""
    tree = _trial_tree()
    bifurcation = tree.grow_segment([0.025, 0.01], 0, Segment([0.035, 0.01], flow=TERMINAL_FLOW))
    connection = SimpleOptimization(square_domain, TargetVolume()).bifurcation(tree, bifurcation)
    tree.move_distal_point(bifurcation, connection.bifurcation_point)
    assert TargetVolume().eval(tree) == pytest.approx(connection.target_value, rel=1e-9)


def test_invalid_offset(square_domain):
    """Test that the grid offset must be inside (0, 0.5)."""
    with pytest.raises(ValueError, match="offset"):
        SimpleOptimization(square_domain, TargetVolume(), offset=0.5)


def test_table_capacity():
    """Test that extra connections are ignored."""
    table = ConnectionEvaluationTable(1)
    assert table.add(Connection(segment_id=0, target_value=1.0))
    assert not table.add(Connection(segment_id=1, target_value=0.5))
    assert table.current_number_of_connections == 1


def test_table_reduce_and_optimal():
    """Test that the cheapest non-intersecting connection is chosen."""
    tree = _trial_tree()
    new = Segment([0.035, 0.01], flow=TERMINAL_FLOW)
    table = ConnectionEvaluationTable(3)
    table.add(Connection(0, np.array([0.025, 0.01]), new, 2.0))
    table.add(Connection(0, np.array([0.027, 0.01]), new, 1.0))
    before = tree.to_dict()

    assert table.reduce(tree) == 2
    assert tree.to_dict() == before
    optimal = table.optimal_reasonable_connection()
    np.testing.assert_allclose(optimal.bifurcation_point, [0.027, 0.01])

    table.reset()
    assert table.current_number_of_connections == 0
    assert table.optimal_reasonable_connection().empty


def test_search_ties_by_segment_id(small_tree):
    """Test that segments at equal distance come in id order."""
    search = TreeConnectionSearch(3, small_tree.total_number_of_segments)
    # The bifurcation point lies on all three segments
    ids = search.at_point(small_tree, np.array([0.0, 0.005]))
    assert ids.tolist() == [0, 1, 2]


def test_table_ties_keep_first():
    """Test that the first of two equally cheap connections is chosen."""
    tree = _trial_tree()
    new = Segment([0.035, 0.01], flow=TERMINAL_FLOW)
    table = ConnectionEvaluationTable(2)
    table.add(Connection(0, np.array([0.025, 0.01]), new, 1.0))
    table.add(Connection(0, np.array([0.027, 0.01]), new, 1.0))

    assert table.reduce(tree) == 2
    optimal = table.optimal_reasonable_connection()
    np.testing.assert_allclose(optimal.bifurcation_point, [0.025, 0.01])


def test_bifurcation_ties_keep_first_grid_point(square_domain):
    """Test that a constant target keeps the first grid point passing the restrictions."""
    tree = _trial_tree()
    bifurcation = tree.grow_segment([0.025, 0.01], 0, Segment([0.035, 0.01], flow=TERMINAL_FLOW))
    optimizer = SimpleOptimization(square_domain, ConstantTarget())

    original = tree.distal_point(bifurcation)
    expected = None
    for candidate in optimizer.grid(tree, bifurcation):
        tree.move_distal_point(bifurcation, candidate)
        if optimizer.pass_restrictions(tree, bifurcation):
            expected = candidate.copy()
            break
    tree.move_distal_point(bifurcation, original)
    assert expected is not None

    connection = optimizer.bifurcation(tree, bifurcation)
    np.testing.assert_allclose(connection.bifurcation_point, expected)
    assert connection.target_value == 1.0
