import pytest
import numpy as np

from cco_lib.core import POISEUILLE_CONSTANT, Segment, Tree
from cco_lib.rules import (
    BifurcationSymmetry,
    ClassicDistanceCriterion,
    ConstantBifurcationExponent,
    ConstantBloodViscosity,
    ConstantTerminalFlow,
    ForestConstantTerminalFlow,
    TargetVolume,
    ValidAngle,
    ValidSegment,
    WithoutIntersection,
    is_relative,
)
from cco_lib.rules.physiology import law_from_dict

from conftest import TERMINAL_FLOW


def _root_only(length: float) -> Tree:
    tree = Tree([0.0, 0.0], number_of_terminals=2)
    tree.grow_root(Segment([0.0, length], flow=TERMINAL_FLOW))
    return tree


def _crossing_tree() -> Tree:
    # Segment 2 runs right from (0, 0.01); terminal 4 comes down across it
    tree = Tree([0.0, 0.0], number_of_terminals=3)
    tree.grow_root(Segment([0.0, 0.02], flow=TERMINAL_FLOW))
    tree.grow_segment([0.0, 0.01], 0, Segment([0.01, 0.01], flow=TERMINAL_FLOW))
    tree.grow_segment([0.0, 0.015], 1, Segment([0.01, 0.005], flow=TERMINAL_FLOW))
    return tree


def test_physiology_defaults():
    """Test the default viscosity and Murray exponent."""
    assert ConstantBloodViscosity().eval(0) == pytest.approx(0.0036)
    assert ConstantBifurcationExponent().eval(5) == pytest.approx(3.0)
    assert law_from_dict(ConstantBloodViscosity(0.004).to_dict()).eval(0) == pytest.approx(0.004)


def test_valid_segment_rejects_short_root():
    """Test that a segment shorter than its diameter is rejected."""
    tree = _root_only(1e-5)
    assert tree.length(0) < 2.0 * tree.radius(0)
    assert not ValidSegment().passes(tree, 0)


def test_valid_segment_rejects_length_equal_to_radius():
    """Test that a root as long as its radius is rejected."""
    tree = Tree([0.0, 0.0], number_of_terminals=2)
    # Root radius is (C mu l Q / dP) ** 0.25, so it equals l at l = (C mu Q / dP) ** (1 / 3)
    pressure_drop = tree.perfusion_pressure - tree.terminal_pressure
    length = (
        POISEUILLE_CONSTANT * tree.blood_viscosity(0) * tree.perfusion_flow / pressure_drop
    ) ** (1.0 / 3.0)
    tree.grow_root(Segment([0.0, length], flow=TERMINAL_FLOW))
    assert tree.radius(0) == pytest.approx(tree.length(0), rel=1e-9)
    assert not ValidSegment().passes(tree, 0)


def test_valid_segment_accepts_long_root():
    """Test that a segment much longer than its diameter passes."""
    assert ValidSegment().passes(_root_only(0.01), 0)


def test_bifurcation_symmetry(small_tree):
    """Test the child radius ratio threshold."""
    assert BifurcationSymmetry(0.0).passes(small_tree, 0)
    assert not BifurcationSymmetry(1.0).passes(small_tree, 0)
    assert BifurcationSymmetry(1.0).passes(small_tree, 1)


def test_bifurcation_symmetry_invalid_threshold():
    """Test that thresholds outside [0, 1] are rejected."""
    with pytest.raises(ValueError, match="Symmetry threshold"):
        BifurcationSymmetry(1.5)


def test_valid_angle(small_tree):
    """Test that the child angle must be strictly inside the bounds."""
    theta = np.arctan(0.5)
    assert ValidAngle(0.1, 1.0).passes(small_tree, 0)
    assert not ValidAngle(theta + 0.01, np.pi).passes(small_tree, 0)
    assert ValidAngle(theta + 0.01, np.pi).passes(small_tree, 2)


def test_valid_angle_invalid_bounds():
    """Test that the minimum angle must be below the maximum."""
    with pytest.raises(ValueError, match="minimum_angle"):
        ValidAngle(1.0, 1.0)


def test_is_relative(small_tree):
    """Test parent, child and sibling relations."""
    assert is_relative(small_tree, 0, 0)
    assert is_relative(small_tree, 0, 1)
    assert is_relative(small_tree, 2, 0)
    assert not is_relative(small_tree, 1, 2)


def test_without_intersection_passes(small_tree):
    """Test that relatives sharing endpoints do not count as intersections."""
    assert WithoutIntersection().passes(small_tree, 0)


def test_without_intersection_detects_crossing():
    """Test that a terminal crossing a non-relative segment is rejected."""
    tree = _crossing_tree()
    assert not WithoutIntersection().passes(tree, 1)


def test_criterion_initial_and_update():
    """Test the classic spacing (V / n) ** (1 / d)."""
    criterion = ClassicDistanceCriterion(1e-4, 3)
    assert criterion.minimum_distance == pytest.approx(1e-4 ** (1.0 / 3.0), abs=1e-12)
    for n in (1, 2, 17, 250):
        assert criterion.update(n) == pytest.approx((1e-4 / n) ** (1.0 / 3.0), abs=1e-12)


def test_criterion_relax():
    """Test that relaxing multiplies the distance by the factor."""
    criterion = ClassicDistanceCriterion(2.5e-3, 2)
    before = criterion.minimum_distance
    assert criterion.relax(0.9) == pytest.approx(0.9 * before)
    with pytest.raises(ValueError, match="Relaxation factor"):
        criterion.relax(1.0)


def test_criterion_eval(small_tree):
    """Test that points too close to the tree are rejected."""
    criterion = ClassicDistanceCriterion(2.5e-3, 2)
    criterion.update(100)  # 0.005
    assert not criterion.eval(small_tree, np.array([0.001, 0.005]))
    assert criterion.eval(small_tree, np.array([0.04, 0.04]))
    assert criterion.eval(Tree([0.0, 0.0], number_of_terminals=2), np.array([0.0, 0.0]))


def test_criterion_invalid_dimension():
    """Test that only 2D and 3D are supported."""
    with pytest.raises(ValueError, match="dimension"):
        ClassicDistanceCriterion(1.0, 4)


def test_constant_terminal_flow():
    """Test the even split of the perfusion flow."""
    flow = ConstantTerminalFlow(8.33e-6, 250)
    assert flow.eval(Segment([0.0, 0.0])) == pytest.approx(8.33e-6 / 250)


def test_forest_terminal_flow():
    """Test that the forest flow splits the summed perfusion flow."""
    trees = [
        Tree([0.0, 0.0], number_of_terminals=10, perfusion_flow=0.667 * 8.33e-6),
        Tree([1.0, 0.0], number_of_terminals=10, perfusion_flow=0.333 * 8.33e-6),
    ]
    flow = ForestConstantTerminalFlow(trees, 10)
    assert flow.eval(Segment([0.0, 0.0])) == pytest.approx(8.33e-6 / 10)


def test_target_volume(small_tree):
    """Test that the default target is the vessel volume divided by pi."""
    assert TargetVolume().eval(small_tree) == pytest.approx(small_tree.volume() / np.pi)
    assert TargetVolume().eval(Tree([0.0, 0.0], number_of_terminals=2)) == 0.0


def test_target_volume_exponents(small_tree):
    """Test custom radius and length exponents."""
    expected = np.sum(small_tree.radii() ** 3 * small_tree.lengths() ** 2)
    assert TargetVolume(3.0, 2.0).eval(small_tree) == pytest.approx(expected)
