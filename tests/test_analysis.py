import pytest
import numpy as np
import networkx as nx
import matplotlib

matplotlib.use("Agg")

from cco_lib.adapters import to_networkx_graph
from cco_lib.analysis import TreeMorphometry
from cco_lib.core import Tree
from cco_lib.visualization import plot_tree


def test_morphometry_table(small_tree):
    """Test the LENGTH RADIUS LEVEL STRAHLER_ORDER rows."""
    table = TreeMorphometry(small_tree).table()
    assert table.shape == (3, 4)
    assert table[:, 0] == pytest.approx(small_tree.lengths())
    assert table[:, 1] == pytest.approx(small_tree.radii())
    assert table[:, 2].tolist() == [0, 1, 1]
    assert table[:, 3].tolist() == [2, 1, 1]


def test_morphometry_units(small_tree):
    """Test that export units rescale lengths and radii."""
    table = TreeMorphometry(small_tree).table(length_unit="cm", radius_unit="mm")
    assert table[0, 0] == pytest.approx(small_tree.length(0) * 100.0)
    assert table[0, 1] == pytest.approx(small_tree.radius(0) * 1000.0)


def test_morphometry_summary(small_tree):
    """Test the summary statistics."""
    summary = TreeMorphometry(small_tree).summary()
    assert summary["num_segments"] == 3
    assert summary["num_terminals"] == 2
    assert summary["max_strahler_order"] == 2
    assert summary["length"]["count"] == 3
    assert summary["radius"]["max"] == pytest.approx(small_tree.root_radius())


def test_morphometry_empty_tree():
    """Test that an empty tree summarizes to zeros."""
    summary = TreeMorphometry(Tree([0.0, 0.0], number_of_terminals=2)).summary()
    assert summary["num_segments"] == 0
    assert summary["radius"]["count"] == 0


def test_morphometry_save(small_tree, temp_dir):
    """Test the saved table layout."""
    path = temp_dir / "morphometry.txt"
    TreeMorphometry(small_tree).save(path)
    lines = path.read_text().splitlines()
    assert lines[0] == "LENGTH RADIUS LEVEL STRAHLER_ORDER"
    assert len(lines) == 4
    assert lines[1].split()[2:] == ["0", "2"]


def test_networkx_graph(small_tree):
    """Test the directed graph representation of a tree."""
    G, segment_node_map = to_networkx_graph(small_tree)
    assert G.number_of_nodes() == 4
    assert G.number_of_edges() == 3
    assert nx.is_arborescence(G)
    assert segment_node_map == {0: 1, 1: 2, 2: 3}
    assert G.nodes[0]["coord"] == [0.0, 0.0]
    assert G.nodes[3]["terminal"]
    edge = G.edges[1, 3]
    assert edge["segment_id"] == 2
    assert edge["radius"] == pytest.approx(small_tree.radius(2))
    assert edge["flow"] == pytest.approx(small_tree.flow(2))
    assert edge["strahler_order"] == 1


def test_plot_tree(small_tree):
    """Test that plotting returns the axes."""
    ax = plot_tree(small_tree, title="Tree")
    assert ax.get_title() == "Tree"
    assert len(ax.collections) == 1


def test_plot_forest(small_tree):
    """Test that each tree of a forest is drawn."""
    other = small_tree.copy()
    ax = plot_tree([small_tree, other])
    assert len(ax.collections) == 2


def test_plot_empty_tree():
    """Test that empty trees cannot be plotted."""
    with pytest.raises(ValueError, match="Nothing to plot"):
        plot_tree(Tree([0.0, 0.0], number_of_terminals=2))
