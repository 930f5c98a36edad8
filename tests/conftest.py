import pytest
import numpy as np
from pathlib import Path
import tempfile

from cco_lib.core import CubeFunction, PointSetDomain, Segment, Tree

SIDE = 0.05
TERMINAL_FLOW = 1e-6


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def square_domain():
    """2D square domain with one seed on the bottom edge."""
    return PointSetDomain.sample(
        CubeFunction(SIDE), [0.0, 0.0], [SIDE, SIDE], 600,
        seeds=[[SIDE / 2.0, 0.0]], volume=SIDE * SIDE, seed=7,
    )


@pytest.fixture
def two_seed_domain():
    """2D square domain with seeds on the left and right edges."""
    return PointSetDomain.sample(
        CubeFunction(SIDE), [0.0, 0.0], [SIDE, SIDE], 800,
        seeds=[[0.0, SIDE / 2.0], [SIDE, SIDE / 2.0]], volume=SIDE * SIDE, seed=11,
    )


@pytest.fixture
def small_tree():
    """
    Three-segment 2D tree.

    Root from (0, 0) to the bifurcation at (0, 0.005), then segment 1 to
    (0, 0.01) and the new terminal 2 to (0.005, 0.015).
    """
    tree = Tree([0.0, 0.0], number_of_terminals=3)
    tree.grow_root(Segment([0.0, 0.01], flow=TERMINAL_FLOW))
    tree.grow_segment([0.0, 0.005], 0, Segment([0.005, 0.015], flow=TERMINAL_FLOW))
    return tree
