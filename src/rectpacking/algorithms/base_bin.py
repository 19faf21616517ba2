"""
Bin interface — abstract base for free-space bookkeeping strategies.

A bin owns its placed items and whatever structure it uses to track free
space (maximal spaces, shelves, a skyline, ...).  Every strategy exposes
the same three operations:

    evaluate(item, heuristic)  -> ScoredPlacement | None   (read-only)
    insert(item, heuristic)    -> bool                     (mutates)
    is_feasible()              -> bool                     (read-only)

Creating a bin type
~~~~~~~~~~~~~~~~~~~
1. Subclass ``FreeSpaceBin``, set ``name``
2. Implement ``evaluate()``, ``insert()`` and, if the free-space structure
   has invariants of its own, extend ``validate()``
3. Decorate with ``@register_bin_type``
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type, Union

from rectpacking.core.models import PackingHeuristic, Rect, ScoredPlacement
from rectpacking.core.validator import check_items, is_valid


class FreeSpaceBin(ABC):
    """
    Abstract base for a fixed-size two-dimensional bin.

    Keeps the placed items in packing order and a cached occupied area.
    Items are only ever added, never removed.

    +------------------------------+----------------------------------------+
    | Attribute / Method           | Description                            |
    +==============================+========================================+
    | ``.occupied_items``          | placed items, insertion order          |
    | ``.occupied_area``           | sum of placed item areas               |
    | ``.occupancy``               | occupied area / bin area               |
    | ``.contact_perimeter(rect)`` | edge contact of a candidate position   |
    | ``.touching_perimeter_ratio``| contact of all items / their perimeter |
    | ``.copy()``                  | deep copy                              |
    +------------------------------+----------------------------------------+
    """

    name: str = "unnamed"

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Bin dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._occupied_items: list[Rect] = []
        self._occupied_area = 0

    # ── Read-only views ──────────────────────────────────────────────────

    @property
    def occupied_items(self) -> tuple[Rect, ...]:
        return tuple(self._occupied_items)

    @property
    def occupied_area(self) -> int:
        return self._occupied_area

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def occupancy(self) -> float:
        """Fraction of the bin area covered by items (0-1)."""
        return self._occupied_area / self.area

    @property
    def is_empty(self) -> bool:
        return not self._occupied_items

    def size(self) -> int:
        """Number of items packed in the bin."""
        return len(self._occupied_items)

    def __len__(self) -> int:
        return self.size()

    # ── Geometry helpers shared by the heuristics ────────────────────────

    def contact_perimeter(self, candidate: Rect) -> int:
        """
        Total edge length ``candidate`` would share with the bin walls and
        every placed item at its position.
        """
        total = candidate.touching_perimeter_against_frame(self.width, self.height)
        for item in self._occupied_items:
            total += candidate.touching_perimeter_against(item)
        return total

    @property
    def touching_perimeter_ratio(self) -> float:
        """
        Contact perimeter summed over all placed items, divided by the sum of
        their perimeters.  0 for an empty bin.
        """
        if not self._occupied_items:
            return 0.0
        touching = 0
        total = 0
        for i, item in enumerate(self._occupied_items):
            touching += item.touching_perimeter_against_frame(self.width, self.height)
            for j, other in enumerate(self._occupied_items):
                if i != j:
                    touching += item.touching_perimeter_against(other)
            total += item.perimeter
        return touching / total

    # ── Packing interface ────────────────────────────────────────────────

    @abstractmethod
    def evaluate(
        self,
        item: Rect,
        heuristic: PackingHeuristic | str = PackingHeuristic.BEST_AREA_FIT,
        allow_rotation: bool = False,
    ) -> Optional[ScoredPlacement]:
        """
        Find the best position for ``item`` under ``heuristic``.

        Args:
            item:           Item to place (position information is ignored).
            heuristic:      Scoring rule, lower score wins.
            allow_rotation: Also try the item turned by 90 degrees.

        Returns:
            The best ``ScoredPlacement`` or None if the item does not fit
            anywhere.  Never mutates the bin.
        """
        ...

    @abstractmethod
    def insert(
        self,
        item: Union[Rect, ScoredPlacement],
        heuristic: PackingHeuristic | str = PackingHeuristic.BEST_AREA_FIT,
        allow_rotation: bool = False,
    ) -> bool:
        """
        Place ``item`` in the bin.

        ``item`` may be a ``ScoredPlacement`` from ``evaluate()`` or a placed
        ``Rect``; both are committed as given.  An unplaced ``Rect`` is
        evaluated first.

        Returns:
            True if the item was placed, False (bin unchanged) otherwise.
        """
        ...

    def _pack(self, rect: Rect) -> None:
        """Record a placed rectangle."""
        self._occupied_items.append(rect)
        self._occupied_area += rect.area

    def validate(self) -> None:
        """
        Raise the first violated layout check.

        Raises:
            OutOfBoundsError: an item lies outside the bin.
            OverlapError:     two items overlap.
        """
        check_items(self._occupied_items, self.width, self.height)

    def is_feasible(self) -> bool:
        """True if every layout check in ``validate()`` passes."""
        return is_valid(self.validate)

    def copy(self) -> "FreeSpaceBin":
        """Deep copy for what-if packing."""
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.width}x{self.height}, "
            f"items={self.size()}, occupancy={self.occupancy:.1%})"
        )


# ─────────────────────────────────────────────────────────────────────────────
# Bin type registry
# ─────────────────────────────────────────────────────────────────────────────

BIN_REGISTRY: Dict[str, Type[FreeSpaceBin]] = {}


def register_bin_type(cls: Type[FreeSpaceBin]) -> Type[FreeSpaceBin]:
    """Class decorator — registers a bin type in the global registry."""
    BIN_REGISTRY[cls.name] = cls
    return cls


def get_bin_type(name: str) -> Type[FreeSpaceBin]:
    """Look up a bin class by name."""
    if name not in BIN_REGISTRY:
        available = ", ".join(sorted(BIN_REGISTRY.keys()))
        raise ValueError(f"Unknown bin type '{name}'.  Available: [{available}]")
    return BIN_REGISTRY[name]
