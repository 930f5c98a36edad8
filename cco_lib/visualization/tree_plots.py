"""Tree and forest plotting for debugging and inspection."""

from typing import Optional, Sequence, Union

import matplotlib.pyplot as plt
import numpy as np
from mpl_toolkits.mplot3d.art3d import Line3DCollection
from matplotlib.collections import LineCollection

from ..core.tree import Tree

TREE_COLORS = ["tab:red", "tab:blue", "tab:green", "tab:orange", "tab:purple"]


def plot_tree(
    trees: Union[Tree, Sequence[Tree]],
    ax: Optional[plt.Axes] = None,
    show: bool = False,
    title: Optional[str] = None,
    max_linewidth: float = 6.0,
) -> plt.Axes:
    """
    Plot a tree, or the trees of a forest, with line width proportional to radius.

    Parameters
    ----------
    trees : Tree or sequence of Tree
        A single tree or the trees of a forest (colored per tree)
    ax : matplotlib Axes, optional
        Existing axes; created (3D for 3D trees) when omitted
    show : bool
        Whether to call plt.show()
    title : str, optional
        Plot title
    max_linewidth : float
        Line width of the widest segment

    Returns
    -------
    ax : matplotlib Axes
    """
    if isinstance(trees, Tree):
        trees = [trees]
    trees = [tree for tree in trees if tree.current_number_of_segments > 0]
    if not trees:
        raise ValueError("Nothing to plot: every tree is empty")

    dimension = trees[0].dimension
    if ax is None:
        fig = plt.figure(figsize=(10, 8))
        if dimension == 3:
            ax = fig.add_subplot(111, projection='3d')
        else:
            ax = fig.add_subplot(111)

    largest = max(float(tree.radii().max()) for tree in trees)
    scale = max_linewidth / largest if largest > 0.0 else 1.0

    for t, tree in enumerate(trees):
        segments = np.stack([tree.proximal_points(), tree.distal_points()], axis=1)
        widths = np.maximum(tree.radii() * scale, 0.2)
        color = TREE_COLORS[t % len(TREE_COLORS)]
        if dimension == 3:
            ax.add_collection3d(Line3DCollection(segments, linewidths=widths, colors=color))
        else:
            ax.add_collection(LineCollection(segments, linewidths=widths, colors=color))

    points = np.vstack([np.vstack([tree.seed[None, :], tree.distal_points()]) for tree in trees])
    lower, upper = points.min(axis=0), points.max(axis=0)
    ax.set_xlim(lower[0], upper[0])
    ax.set_ylim(lower[1], upper[1])
    ax.set_xlabel('X (m)')
    ax.set_ylabel('Y (m)')
    if dimension == 3:
        ax.set_zlim(lower[2], upper[2])
        ax.set_zlabel('Z (m)')
    else:
        ax.set_aspect('equal')

    if title:
        ax.set_title(title)

    if show:
        plt.show()

    return ax
