"""
Adapter from the segment arena to NetworkX graphs.

Useful for graph algorithms (paths, subtree queries, drawing) that the
arena does not provide.
"""

import networkx as nx
from typing import Dict, Tuple

from ..core.tree import Tree

SEED_NODE = 0


def to_networkx_graph(tree: Tree) -> Tuple[nx.DiGraph, Dict[int, int]]:
    """
    Convert a tree to a directed NetworkX graph.

    Node ``SEED_NODE`` is the seed and node ``i + 1`` the distal point of
    segment ``i``. Edges run from proximal to distal point.

    The graph has node attributes:
    - 'coord': position as list
    - 'terminal': bool, True for distal points of terminal segments

    And edge attributes:
    - 'segment_id': int arena index
    - 'radius', 'length', 'flow': float
    - 'level', 'strahler_order': int

    Parameters
    ----------
    tree : Tree
        Tree to convert

    Returns
    -------
    G : nx.DiGraph
        Graph representation
    segment_node_map : dict
        Segment id to the graph node of its distal point
    """
    G = nx.DiGraph()
    G.graph["dimension"] = tree.dimension
    G.add_node(SEED_NODE, coord=tree.seed.tolist(), terminal=False)

    radii = tree.radii()
    lengths = tree.lengths()
    flows = tree.flows()
    levels = tree.levels()
    orders = tree.strahler_orders()
    points = tree.distal_points()
    up, _, _ = tree.links()

    segment_node_map = {}
    for i in tree.live_segments():
        segment_node_map[i] = i + 1
        G.add_node(i + 1, coord=points[i].tolist(), terminal=bool(tree.is_terminal(i)))

    for i in tree.live_segments():
        start = SEED_NODE if up[i] < 0 else segment_node_map[int(up[i])]
        G.add_edge(
            start,
            segment_node_map[i],
            segment_id=i,
            radius=float(radii[i]),
            length=float(lengths[i]),
            flow=float(flows[i]),
            level=int(levels[i]),
            strahler_order=int(orders[i]),
        )

    return G, segment_node_map
