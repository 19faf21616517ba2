"""
Maximal-space bin.

Algorithm overview:
    The bin keeps a list of maximal free rectangles: free areas that are
    not contained in any other free area.  An item is only ever placed at
    the bottom-left corner of one of them.

    1. evaluate: for each free rectangle (list order), try the item upright
       and, if allowed, rotated.  Score every feasible pair with the chosen
       heuristic and keep the first strictly better one.
    2. insert: commit the placement, then
       a. split — every free rectangle overlapping the item is replaced by
          its positive-area parts below, above, left and right of the item;
       b. prune — duplicates and rectangles contained in another are dropped.

    Both steps build new lists from a snapshot of the current one.

References:
    Jylänki, J. (2010). "A thousand ways to pack the bin - a practical
    approach to two-dimensional rectangle bin packing."
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional, Union

from rectpacking.algorithms.base_bin import FreeSpaceBin, register_bin_type
from rectpacking.algorithms.heuristics import get_heuristic
from rectpacking.core.models import PackingHeuristic, Rect, ScoredPlacement
from rectpacking.core.validator import check_free_spaces

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Free-space maintenance (pure functions)
# ─────────────────────────────────────────────────────────────────────────────

def split_free_spaces(spaces: Sequence[Rect], placed: Rect) -> list[Rect]:
    """
    Remove ``placed`` from a list of free rectangles.

    Free rectangles that do not overlap ``placed`` are kept in order.  Each
    overlapping one is replaced by up to four fragments, appended after the
    survivors.  Fragments may be non-maximal; call ``prune_free_spaces``.

    Example:
        >>> split_free_spaces([Rect(10, 10, 0, 0)], Rect(2, 3, 0, 0))
        [Rect(w=10, h=7, x=0, y=3), Rect(w=8, h=10, x=2, y=0)]
    """
    survivors: list[Rect] = []
    fragments: list[Rect] = []
    for free in spaces:
        if not free.overlaps(placed):
            survivors.append(free)
            continue
        # below
        if placed.y > free.y:
            fragments.append(Rect(free.width, placed.y - free.y, free.x, free.y))
        # above
        if placed.y_max < free.y_max:
            fragments.append(Rect(free.width, free.y_max - placed.y_max, free.x, placed.y_max))
        # left
        if placed.x > free.x:
            fragments.append(Rect(placed.x - free.x, free.height, free.x, free.y))
        # right
        if placed.x_max < free.x_max:
            fragments.append(Rect(free.x_max - placed.x_max, free.height, placed.x_max, free.y))
    return survivors + fragments


def prune_free_spaces(spaces: Sequence[Rect]) -> list[Rect]:
    """
    Drop duplicate free rectangles and those contained in another one.

    The first copy of a duplicate is kept.  Proper containment is transitive,
    so one sweep reaches the fixed point and the function is idempotent.
    """
    unique = list(dict.fromkeys(spaces))
    return [
        space for space in unique
        if not any(
            other is not space and space.contained_in(other) for other in unique
        )
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Bin implementation
# ─────────────────────────────────────────────────────────────────────────────

@register_bin_type
class MaxSpaceBin(FreeSpaceBin):
    """
    Bin that tracks its free area as a list of maximal free rectangles.

    Attributes:
        name: Bin type identifier for the registry ("max_space").
    """

    name: str = "max_space"

    def __init__(self, width: int, height: int) -> None:
        super().__init__(width, height)
        self._free_spaces: list[Rect] = [Rect(width, height, 0, 0)]

    @property
    def free_spaces(self) -> tuple[Rect, ...]:
        return tuple(self._free_spaces)

    def evaluate(
        self,
        item: Rect,
        heuristic: PackingHeuristic | str = PackingHeuristic.BEST_AREA_FIT,
        allow_rotation: bool = False,
    ) -> Optional[ScoredPlacement]:
        heuristic = PackingHeuristic.parse(heuristic)
        score_fn = get_heuristic(heuristic)

        orientations = [(item.width, item.height, False)]
        if allow_rotation and not item.is_square:
            orientations.append((item.height, item.width, True))

        best: Optional[ScoredPlacement] = None
        for free in self._free_spaces:
            for width, height, rotated in orientations:
                if width > free.width or height > free.height:
                    continue
                candidate = Rect(width, height, free.x, free.y)
                score, tie_break = score_fn(self, free, candidate)
                placement = ScoredPlacement(
                    x=free.x,
                    y=free.y,
                    width=width,
                    height=height,
                    rotated=rotated,
                    score=score,
                    tie_break=tie_break,
                    heuristic=heuristic,
                )
                if placement.is_better_than(best):
                    best = placement
        return best

    def insert(
        self,
        item: Union[Rect, ScoredPlacement],
        heuristic: PackingHeuristic | str = PackingHeuristic.BEST_AREA_FIT,
        allow_rotation: bool = False,
    ) -> bool:
        if isinstance(item, ScoredPlacement):
            placed = item.rect
        elif item.is_placed:
            placed = item
        else:
            placement = self.evaluate(item, heuristic, allow_rotation)
            if placement is None:
                return False
            placed = placement.rect

        self._pack(placed)
        self._free_spaces = prune_free_spaces(split_free_spaces(self._free_spaces, placed))
        logger.debug(
            "Placed %s; %d free spaces, occupancy %.1f%%",
            placed, len(self._free_spaces), self.occupancy * 100,
        )
        return True

    def validate(self) -> None:
        """
        Raise the first violated layout or free-space check.

        Raises:
            OutOfBoundsError:          an item lies outside the bin.
            OverlapError:              two items overlap.
            DuplicateFreeSpaceError:   a free rectangle is listed twice.
            NonMaximalFreeSpaceError:  a free rectangle is inside another.
        """
        super().validate()
        check_free_spaces(self._free_spaces)
