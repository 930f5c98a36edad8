"""
Physiological laws evaluated per segment.

Both laws are looked up by the tree whenever it recomputes resistances or
bifurcation ratios, so a spatially varying law only needs to override
``eval``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

DEFAULT_BLOOD_VISCOSITY = 0.0036  # Pa.s
DEFAULT_BIFURCATION_EXPONENT = 3.0  # Murray's cube law


class BloodViscosity(ABC):
    """Blood viscosity as a function of segment."""

    @abstractmethod
    def eval(self, segment_id: int) -> float:
        pass

    @abstractmethod
    def to_dict(self) -> dict:
        pass


class BifurcationExponentLaw(ABC):
    """Exponent gamma in r_parent^gamma = r_left^gamma + r_right^gamma."""

    @abstractmethod
    def eval(self, segment_id: int) -> float:
        pass

    @abstractmethod
    def to_dict(self) -> dict:
        pass


@dataclass
class ConstantBloodViscosity(BloodViscosity):
    value: float = DEFAULT_BLOOD_VISCOSITY

    def __post_init__(self):
        if self.value <= 0.0:
            raise ValueError(f"Blood viscosity must be positive, got {self.value}")

    def eval(self, segment_id: int) -> float:
        return self.value

    def to_dict(self) -> dict:
        return {"kind": "constant_viscosity", "value": self.value}


@dataclass
class ConstantBifurcationExponent(BifurcationExponentLaw):
    value: float = DEFAULT_BIFURCATION_EXPONENT

    def __post_init__(self):
        if self.value <= 0.0:
            raise ValueError(f"Bifurcation exponent must be positive, got {self.value}")

    def eval(self, segment_id: int) -> float:
        return self.value

    def to_dict(self) -> dict:
        return {"kind": "constant_exponent", "value": self.value}


def law_from_dict(d: dict):
    """Rebuild a viscosity or exponent law from ``to_dict`` output."""
    kind = d.get("kind")
    if kind == "constant_viscosity":
        return ConstantBloodViscosity(d["value"])
    if kind == "constant_exponent":
        return ConstantBifurcationExponent(d["value"])
    raise ValueError(f"Unknown law kind: {kind}")
