"""Plotting helpers."""

from .tree_plots import plot_tree

__all__ = ["plot_tree"]
