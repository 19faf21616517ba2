"""
Layout validator — pure-function feasibility checks.

All checks are stateless functions: they take bin dimensions, placed items
or free rectangles, and either return None or raise a PlacementError.

Checks:
  1. Bounds     — every item lies inside [0, width] x [0, height]
  2. Overlap    — no two items share a region of positive area
  3. Duplicates — no free rectangle appears twice
  4. Maximality — no free rectangle is contained in another
"""

from __future__ import annotations

from collections.abc import Sequence

from rectpacking.core.errors import (
    DuplicateFreeSpaceError,
    NonMaximalFreeSpaceError,
    OutOfBoundsError,
    OverlapError,
    PlacementError,
)
from rectpacking.core.models import Rect


def check_within_bounds(item: Rect, bin_width: int, bin_height: int) -> None:
    """
    Raise if ``item`` is unplaced or sticks out of the bin.

    Raises:
        OutOfBoundsError: item lies partially or fully outside the bin.
    """
    if not item.is_placed:
        raise OutOfBoundsError(f"{item} has no position in the bin")
    if item.x < 0 or item.y < 0:
        raise OutOfBoundsError(f"{item} starts before the bin origin")
    if item.x_max > bin_width:
        raise OutOfBoundsError(f"{item} exceeds bin width {bin_width}: x+w={item.x_max}")
    if item.y_max > bin_height:
        raise OutOfBoundsError(f"{item} exceeds bin height {bin_height}: y+h={item.y_max}")


def check_no_overlap(items: Sequence[Rect]) -> None:
    """
    Pairwise overlap check.

    Raises:
        OverlapError: two items share a region of positive area.
    """
    for i, first in enumerate(items):
        for second in items[i + 1:]:
            if first.overlaps(second):
                raise OverlapError(f"{first} overlaps {second}")


def check_items(items: Sequence[Rect], bin_width: int, bin_height: int) -> None:
    """Run the bounds check on every item, then the overlap check."""
    for item in items:
        check_within_bounds(item, bin_width, bin_height)
    check_no_overlap(items)


def check_free_spaces(spaces: Sequence[Rect]) -> None:
    """
    Check that a free-space list is duplicate-free and maximal.

    Raises:
        DuplicateFreeSpaceError:   the same rectangle appears twice.
        NonMaximalFreeSpaceError:  a rectangle is inside another one.
    """
    for i, first in enumerate(spaces):
        for second in spaces[i + 1:]:
            if first == second:
                raise DuplicateFreeSpaceError(f"Free space {first} is duplicated")
            if first.contained_in(second) or second.contained_in(first):
                raise NonMaximalFreeSpaceError(
                    f"Free spaces {first} and {second} are nested"
                )


def is_valid(check, *args) -> bool:
    """Run ``check(*args)`` and report a PlacementError as False."""
    try:
        check(*args)
    except PlacementError:
        return False
    return True
