"""
Placement heuristics — score a candidate position of an item in a bin.

Every heuristic maps (bin, free space, candidate) to a ``(score, tie_break)``
pair where LOWER is better on both keys, so a single "minimise" comparison
works for all of them.  Heuristics that maximise a quantity store it negated.

    best_area_fit              score = free.area - item.area
                               tie   = min(leftover width, leftover height)
    touching_perimeter         score = -(contact with bin walls + placed items)
    top_right_corner_distance  score = -distance(item top-right, bin top-right)

The candidate is the item already oriented and positioned at the free
space's bottom-left corner.

Creating a heuristic
~~~~~~~~~~~~~~~~~~~~
1. Write ``fn(bin, free, candidate) -> (score, tie_break)``
2. Decorate with ``@register_heuristic(PackingHeuristic.X)``
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Callable, Dict

from rectpacking.core.models import PackingHeuristic, Rect

if TYPE_CHECKING:
    from rectpacking.algorithms.base_bin import FreeSpaceBin


ScoreFn = Callable[["FreeSpaceBin", Rect, Rect], tuple[float, float]]

HEURISTIC_REGISTRY: Dict[PackingHeuristic, ScoreFn] = {}


def register_heuristic(heuristic: PackingHeuristic) -> Callable[[ScoreFn], ScoreFn]:
    """Function decorator — registers a scoring function for ``heuristic``."""

    def decorator(fn: ScoreFn) -> ScoreFn:
        HEURISTIC_REGISTRY[heuristic] = fn
        return fn

    return decorator


def get_heuristic(heuristic: PackingHeuristic | str) -> ScoreFn:
    """Look up the scoring function for a heuristic given by enum or name."""
    key = PackingHeuristic.parse(heuristic)
    if key not in HEURISTIC_REGISTRY:
        available = ", ".join(sorted(h.value for h in HEURISTIC_REGISTRY))
        raise ValueError(f"No scoring function for '{key.value}'.  Available: [{available}]")
    return HEURISTIC_REGISTRY[key]


# ─────────────────────────────────────────────────────────────────────────────
# Built-in heuristics
# ─────────────────────────────────────────────────────────────────────────────

@register_heuristic(PackingHeuristic.BEST_AREA_FIT)
def best_area_fit(bin: "FreeSpaceBin", free: Rect, candidate: Rect) -> tuple[float, float]:
    """Prefer the free space that leaves the least unused area, then the tightest side."""
    wasted_area = free.area - candidate.area
    short_side = min(free.width - candidate.width, free.height - candidate.height)
    return float(wasted_area), float(short_side)


@register_heuristic(PackingHeuristic.TOUCHING_PERIMETER)
def touching_perimeter(bin: "FreeSpaceBin", free: Rect, candidate: Rect) -> tuple[float, float]:
    """Prefer the position whose edges touch the most bin walls and placed items."""
    return -float(bin.contact_perimeter(candidate)), 0.0


@register_heuristic(PackingHeuristic.TOP_RIGHT_CORNER_DISTANCE)
def top_right_corner_distance(
    bin: "FreeSpaceBin", free: Rect, candidate: Rect
) -> tuple[float, float]:
    """Prefer the position whose top-right corner is farthest from the bin's."""
    distance = math.hypot(bin.width - candidate.x_max, bin.height - candidate.y_max)
    return -distance, 0.0
