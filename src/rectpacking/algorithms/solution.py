"""Solution-level packing: distribute items over as few bins as possible."""

from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from typing import Optional

from rectpacking.algorithms.base_bin import FreeSpaceBin, get_bin_type
from rectpacking.core.errors import (
    InfeasibleInstanceError,
    InvariantViolationError,
    PlacementError,
)
from rectpacking.core.models import PackingHeuristic, Rect, ScoredPlacement

# Registers the built-in bin types.
import rectpacking.algorithms.max_space_bin  # noqa: F401

logger = logging.getLogger(__name__)


class Solution:
    """
    A packing of items into identical bins.

    Two strategies are available, each starting from scratch on every call:

    * ``pack``       — best fit across bins: open lower-bound many bins,
                       place every item in the bin that scores best.
    * ``pack_first`` — first fit: open one bin, place every item in the
                       first bin that admits it.

    In both, an item that no open bin admits goes into a newly opened bin.
    """

    def __init__(self, bin_width: int, bin_height: int, bin_type: str = "max_space"):
        if bin_width <= 0 or bin_height <= 0:
            raise ValueError(f"Bin dimensions must be positive, got {bin_width}x{bin_height}")
        self.bin_width = bin_width
        self.bin_height = bin_height
        self.bin_type = bin_type
        self._bin_cls = get_bin_type(bin_type)
        self._bins: list[FreeSpaceBin] = []

    @property
    def bins(self) -> tuple[FreeSpaceBin, ...]:
        """Read-only view of the bins, in opening order."""
        return tuple(self._bins)

    def number_of_bins(self) -> int:
        return len(self._bins)

    def lower_bound(self, items: Sequence[Rect]) -> int:
        """
        Area lower bound on the number of bins: floor(total area / bin area) + 1.

        Example:
            >>> Solution(10, 10).lower_bound([Rect(5, 5), Rect(5, 5)])
            1
        """
        total_area = sum(item.area for item in items)
        return total_area // (self.bin_width * self.bin_height) + 1

    def pack(
        self,
        items: Sequence[Rect],
        heuristic: PackingHeuristic | str = PackingHeuristic.BEST_AREA_FIT,
        allow_rotation: bool = False,
    ) -> int:
        """
        Pack ``items`` in order, each into the open bin with the best score.

        Ties between bins go to the earliest-opened bin.

        Args:
            items:          Items to pack, in packing order.
            heuristic:      Placement heuristic.
            allow_rotation: Allow 90 degree rotation of items.

        Returns:
            Number of bins used (including reserved bins left empty).

        Raises:
            InfeasibleInstanceError: An item does not fit an empty bin.
        """
        heuristic = PackingHeuristic.parse(heuristic)
        self._bins = [self._open_bin() for _ in range(self.lower_bound(items))]

        for item in items:
            item = item.unplaced()
            best_bin: Optional[FreeSpaceBin] = None
            best_placement: Optional[ScoredPlacement] = None
            for bin in self._bins:
                placement = bin.evaluate(item, heuristic, allow_rotation)
                if placement is not None and placement.is_better_than(best_placement):
                    best_bin = bin
                    best_placement = placement

            if best_bin is not None:
                best_bin.insert(best_placement)
            else:
                self._insert_into_new_bin(item, heuristic, allow_rotation)

        logger.info(
            "pack(%s): %d items -> %d bins", heuristic.value, len(items), len(self._bins)
        )
        return self.number_of_bins()

    def pack_first(
        self,
        items: Sequence[Rect],
        heuristic: PackingHeuristic | str = PackingHeuristic.BEST_AREA_FIT,
        allow_rotation: bool = False,
    ) -> int:
        """
        Pack ``items`` in order, each into the first bin that admits it.

        Args:
            items:          Items to pack, in packing order.
            heuristic:      Placement heuristic used inside a bin.
            allow_rotation: Allow 90 degree rotation of items.

        Returns:
            Number of bins used.

        Raises:
            InfeasibleInstanceError: An item does not fit an empty bin.
        """
        heuristic = PackingHeuristic.parse(heuristic)
        self._bins = [self._open_bin()]

        for item in items:
            item = item.unplaced()
            for bin in self._bins:
                placement = bin.evaluate(item, heuristic, allow_rotation)
                if placement is not None:
                    bin.insert(placement)
                    break
            else:
                self._insert_into_new_bin(item, heuristic, allow_rotation)

        logger.info(
            "pack_first(%s): %d items -> %d bins",
            heuristic.value, len(items), len(self._bins),
        )
        return self.number_of_bins()

    def is_feasible(self) -> bool:
        """True if every bin passes its layout checks."""
        return all(bin.is_feasible() for bin in self._bins)

    def validate(self) -> None:
        """
        Raise if any bin fails its layout checks.

        Raises:
            InvariantViolationError: wraps the first PlacementError found.
        """
        for index, bin in enumerate(self._bins):
            try:
                bin.validate()
            except PlacementError as e:
                raise InvariantViolationError(f"Bin {index} is infeasible: {e}") from e

    @property
    def occupied_area(self) -> int:
        return sum(bin.occupied_area for bin in self._bins)

    @property
    def average_occupancy(self) -> float:
        """Mean occupancy over all bins, 0.0 when no bins are open."""
        if not self._bins:
            return 0.0
        return sum(bin.occupancy for bin in self._bins) / len(self._bins)

    def copy(self) -> "Solution":
        """Deep copy; bins are never shared between solutions."""
        return copy.deepcopy(self)

    def _open_bin(self) -> FreeSpaceBin:
        return self._bin_cls(self.bin_width, self.bin_height)

    def _insert_into_new_bin(
        self, item: Rect, heuristic: PackingHeuristic, allow_rotation: bool
    ) -> None:
        new_bin = self._open_bin()
        if not new_bin.insert(item, heuristic, allow_rotation):
            raise InfeasibleInstanceError(item, self.bin_width, self.bin_height)
        self._bins.append(new_bin)
        logger.debug("Opened bin %d for %s", len(self._bins) - 1, item)

    def __repr__(self) -> str:
        return (
            f"Solution({self.bin_width}x{self.bin_height}, "
            f"bins={self.number_of_bins()}, occupancy={self.average_occupancy:.1%})"
        )
