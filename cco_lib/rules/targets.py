"""Target functions minimized when choosing a connection."""

from abc import ABC, abstractmethod
import numpy as np


class TargetFunction(ABC):
    """Scalar cost of the current tree configuration."""

    @abstractmethod
    def eval(self, tree) -> float:
        pass


class TargetVolume(TargetFunction):
    """
    Generalized tree volume ``sum(r ** radius_exponent * l ** length_exponent)``.

    With the default exponents (2, 1) this is the vessel volume divided by pi.
    """

    def __init__(self, radius_exponent: float = 2.0, length_exponent: float = 1.0):
        self.radius_exponent = radius_exponent
        self.length_exponent = length_exponent

    def eval(self, tree) -> float:
        if tree.current_number_of_segments == 0:
            return 0.0
        r = tree.radii()
        l = tree.lengths()
        return float(np.sum(r ** self.radius_exponent * l ** self.length_exponent))
