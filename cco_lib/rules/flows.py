"""Terminal flow functions: the flow assigned to each new terminal."""

from abc import ABC, abstractmethod
from typing import Sequence

from ..core.types import Segment


class TerminalFlowFunction(ABC):

    @abstractmethod
    def eval(self, segment: Segment) -> float:
        pass


class ConstantTerminalFlow(TerminalFlowFunction):
    """Perfusion flow split evenly across the final number of terminals."""

    def __init__(self, perfusion_flow: float, number_of_terminals: int):
        if number_of_terminals < 1:
            raise ValueError(f"number_of_terminals must be >= 1, got {number_of_terminals}")
        self.perfusion_flow = perfusion_flow
        self.number_of_terminals = number_of_terminals

    @classmethod
    def for_tree(cls, tree) -> "ConstantTerminalFlow":
        return cls(tree.perfusion_flow, tree.number_of_terminals)

    def eval(self, segment: Segment) -> float:
        return self.perfusion_flow / self.number_of_terminals


class ForestConstantTerminalFlow(TerminalFlowFunction):
    """Summed perfusion flow of all trees split across the forest's terminals."""

    def __init__(self, trees: Sequence, number_of_terminals: int):
        if number_of_terminals < 1:
            raise ValueError(f"number_of_terminals must be >= 1, got {number_of_terminals}")
        self.trees = trees
        self.number_of_terminals = number_of_terminals

    def eval(self, segment: Segment) -> float:
        total = sum(tree.perfusion_flow for tree in self.trees)
        return total / self.number_of_terminals
