"""
Error hierarchy for the packing engine.

A failed placement is a normal outcome (``evaluate`` returns ``None``,
``insert`` returns ``False``) and never raises.  Exceptions are reserved for:

    PlacementError          — a layout check failed (see core.validator)
    InfeasibleInstanceError — an item does not fit even an empty bin
    InvariantViolationError — a packing produced by the engine is invalid
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rectpacking.core.models import Rect


class PackingError(Exception):
    """Base class for all packing errors."""


# ─────────────────────────────────────────────────────────────────────────────
# Layout checks
# ─────────────────────────────────────────────────────────────────────────────

class PlacementError(PackingError):
    """Base class for layout validation errors."""


class OutOfBoundsError(PlacementError):
    """Item extends outside the bin boundary."""


class OverlapError(PlacementError):
    """Two placed items share a region of positive area."""


class FreeSpaceError(PlacementError):
    """The free-space list of a maximal-space bin is not minimal."""


class DuplicateFreeSpaceError(FreeSpaceError):
    """The same free rectangle appears twice."""


class NonMaximalFreeSpaceError(FreeSpaceError):
    """A free rectangle is contained in another free rectangle."""


# ─────────────────────────────────────────────────────────────────────────────
# Solution level
# ─────────────────────────────────────────────────────────────────────────────

class InfeasibleInstanceError(PackingError):
    """An item cannot be placed even into a freshly opened, empty bin."""

    def __init__(self, item: "Rect", bin_width: int, bin_height: int) -> None:
        self.item = item
        self.bin_width = bin_width
        self.bin_height = bin_height
        super().__init__(
            f"Item {item.width}x{item.height} does not fit an empty "
            f"{bin_width}x{bin_height} bin"
        )


class InvariantViolationError(PackingError):
    """A packing produced by the engine failed validation."""
