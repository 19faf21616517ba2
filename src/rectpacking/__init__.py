"""
rectpacking — two-dimensional rectangle bin packing with maximal free spaces.

Public API:
    from rectpacking import Rect, PackingHeuristic, MaxSpaceBin, Solution
    from rectpacking.runner.dataset import read_instances, generate_items
    from rectpacking.runner.experiment import ExperimentRunner
"""

from rectpacking.algorithms.max_space_bin import MaxSpaceBin
from rectpacking.algorithms.solution import Solution
from rectpacking.core.errors import (
    InfeasibleInstanceError,
    InvariantViolationError,
    PackingError,
    PlacementError,
)
from rectpacking.core.models import PackingHeuristic, Rect, ScoredPlacement

__version__ = "0.1.0"

__all__ = [
    "MaxSpaceBin",
    "Solution",
    "Rect",
    "ScoredPlacement",
    "PackingHeuristic",
    "PackingError",
    "PlacementError",
    "InfeasibleInstanceError",
    "InvariantViolationError",
]
