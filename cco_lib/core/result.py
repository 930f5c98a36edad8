"""
Growth result types for structured feedback.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any
from enum import Enum


class GrowthStatus(Enum):
    """Status of a growth run."""
    SUCCESS = "success"
    WARNING = "warning"


@dataclass
class GrowthResult:
    """
    Summary of a completed growth run.

    A run either reaches the requested terminal count or raises, so there is
    no failure status here. ``WARNING`` marks runs that needed an unusually
    large number of distance criterion relaxations.
    """

    status: GrowthStatus
    message: str = ""
    number_of_terminals: int = 0
    number_of_segments: int = 0
    relaxations: int = 0
    domain_resets: int = 0
    rejected_points: int = 0
    discarded_points: int = 0
    rejected_commits: int = 0
    criterion_distance: float = 0.0
    elapsed_seconds: float = 0.0
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def is_success(self) -> bool:
        """Check if the run finished without warnings."""
        return self.status == GrowthStatus.SUCCESS

    def add_warning(self, warning: str) -> None:
        """Add a warning message and downgrade the status."""
        self.warnings.append(warning)
        self.status = GrowthStatus.WARNING

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization (JSON-safe)."""
        return {
            "status": self.status.value,
            "message": self.message,
            "number_of_terminals": self.number_of_terminals,
            "number_of_segments": self.number_of_segments,
            "relaxations": self.relaxations,
            "domain_resets": self.domain_resets,
            "rejected_points": self.rejected_points,
            "discarded_points": self.discarded_points,
            "rejected_commits": self.rejected_commits,
            "criterion_distance": self.criterion_distance,
            "elapsed_seconds": self.elapsed_seconds,
            "warnings": self.warnings,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "GrowthResult":
        """Create from dictionary."""
        return cls(
            status=GrowthStatus(d["status"]),
            message=d.get("message", ""),
            number_of_terminals=d.get("number_of_terminals", 0),
            number_of_segments=d.get("number_of_segments", 0),
            relaxations=d.get("relaxations", 0),
            domain_resets=d.get("domain_resets", 0),
            rejected_points=d.get("rejected_points", 0),
            discarded_points=d.get("discarded_points", 0),
            rejected_commits=d.get("rejected_commits", 0),
            criterion_distance=d.get("criterion_distance", 0.0),
            elapsed_seconds=d.get("elapsed_seconds", 0.0),
            warnings=d.get("warnings", []),
            metadata=d.get("metadata", {}),
        )


@dataclass
class GrowthCounters:
    """Mutable counters a driver accumulates while growing."""

    relaxations: int = 0
    domain_resets: int = 0
    rejected_points: int = 0
    discarded_points: int = 0
    rejected_commits: int = 0
    failed_rounds: int = 0

    def to_result(self, message: str = "", **kwargs) -> GrowthResult:
        """Freeze the counters into a successful result."""
        return GrowthResult(
            status=GrowthStatus.SUCCESS,
            message=message,
            relaxations=self.relaxations,
            domain_resets=self.domain_resets,
            rejected_points=self.rejected_points,
            discarded_points=self.discarded_points,
            rejected_commits=self.rejected_commits,
            **kwargs,
        )
