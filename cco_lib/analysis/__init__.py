"""Analysis of grown trees."""

from .morphometry import TreeMorphometry

__all__ = ["TreeMorphometry"]
