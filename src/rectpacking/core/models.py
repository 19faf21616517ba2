"""Core data models for rectangle packing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class PackingHeuristic(str, Enum):
    """Scoring rule used to choose among feasible placements."""

    BEST_AREA_FIT = "best_area_fit"
    TOUCHING_PERIMETER = "touching_perimeter"
    TOP_RIGHT_CORNER_DISTANCE = "top_right_corner_distance"

    @classmethod
    def parse(cls, value: "PackingHeuristic | str") -> "PackingHeuristic":
        """
        Resolve a heuristic from its value or its CamelCase name.

        Accepts ``"best_area_fit"``, ``"BEST_AREA_FIT"`` and ``"BestAreaFit"``.

        Raises:
            ValueError: If the name matches no heuristic.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip()
        folded = key.replace("_", "").replace("-", "").lower()
        for member in cls:
            if key == member.value or folded == member.value.replace("_", ""):
                return member
        available = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown packing heuristic '{value}'.  Available: [{available}]")


def _common_length(start1: int, end1: int, start2: int, end2: int) -> int:
    """Length shared by two closed intervals, 0 if they only touch or are disjoint."""
    if start2 >= end1 or end2 <= start1:
        return 0
    return min(end1, end2) - max(start1, start2)


@dataclass(frozen=True)
class Rect:
    """
    An axis-aligned rectangle: an item to pack or a free space in a bin.

    ``width`` runs along the x-axis and ``height`` along the y-axis.
    ``x``/``y`` locate the bottom-left corner inside a bin and stay
    ``None`` until the rectangle is placed.

    Frozen, so a placed rectangle can never be moved or resized; use
    ``placed_at()``, ``rotated()`` and ``unplaced()`` to derive new values.
    """

    width: int
    height: int
    x: Optional[int] = None
    y: Optional[int] = None

    def __post_init__(self) -> None:
        for label, value in (("width", self.width), ("height", self.height)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Rect {label} must be an int, got {value!r}")
            if value <= 0:
                raise ValueError(f"Rect {label} must be positive, got {value}")
        if (self.x is None) != (self.y is None):
            raise ValueError("Rect x and y must be set together")

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def perimeter(self) -> int:
        return 2 * (self.width + self.height)

    @property
    def is_placed(self) -> bool:
        """True once the rectangle has a position inside a bin."""
        return self.x is not None

    @property
    def is_square(self) -> bool:
        return self.width == self.height

    @property
    def x_max(self) -> int:
        self._require_placed()
        return self.x + self.width

    @property
    def y_max(self) -> int:
        self._require_placed()
        return self.y + self.height

    def placed_at(self, x: int, y: int) -> "Rect":
        """Return a copy of this rectangle with its bottom-left corner at (x, y)."""
        return Rect(self.width, self.height, x, y)

    def unplaced(self) -> "Rect":
        """Return a copy with the position information removed."""
        return Rect(self.width, self.height)

    def rotated(self) -> "Rect":
        """
        Return the rectangle turned by 90 degrees (width and height swapped).

        Raises:
            ValueError: If the rectangle is already placed.
        """
        if self.is_placed:
            raise ValueError(f"Cannot rotate a placed rectangle: {self}")
        return Rect(self.height, self.width)

    def fits_in(self, width: int, height: int) -> bool:
        """True if this rectangle fits upright into a ``width`` x ``height`` area."""
        return self.width <= width and self.height <= height

    # ── Geometry between two placed rectangles ───────────────────────────

    def common_horizontal_length(self, other: "Rect") -> int:
        """Length of the overlap of the two x-projections."""
        self._require_placed()
        other._require_placed()
        return _common_length(self.x, self.x_max, other.x, other.x_max)

    def common_vertical_length(self, other: "Rect") -> int:
        """Length of the overlap of the two y-projections."""
        self._require_placed()
        other._require_placed()
        return _common_length(self.y, self.y_max, other.y, other.y_max)

    def overlaps(self, other: "Rect") -> bool:
        """
        True if the two rectangles share a region of positive area.

        Rectangles that only touch along an edge or at a corner do not overlap.
        """
        return (
            self.common_horizontal_length(other) > 0
            and self.common_vertical_length(other) > 0
        )

    def contained_in(self, other: "Rect") -> bool:
        """True if this rectangle lies fully inside ``other`` (equality counts)."""
        self._require_placed()
        other._require_placed()
        return (
            self.x >= other.x
            and self.y >= other.y
            and self.x_max <= other.x_max
            and self.y_max <= other.y_max
        )

    def touching_perimeter_against(self, other: "Rect") -> int:
        """
        Length of boundary where the edges of the two rectangles coincide.

        Example:
            >>> Rect(2, 3, 0, 0).touching_perimeter_against(Rect(3, 2, 2, 0))
            2
        """
        length = 0
        if self.x_max == other.x or other.x_max == self.x:
            length += self.common_vertical_length(other)
        if self.y_max == other.y or other.y_max == self.y:
            length += self.common_horizontal_length(other)
        return length

    def touching_perimeter_against_frame(self, width: int, height: int) -> int:
        """
        Length of boundary shared with the walls of a ``width`` x ``height`` bin.

        Each wall is counted on its own, so an item spanning the full bin
        width touches both side walls.
        """
        self._require_placed()
        length = 0
        if self.x == 0:
            length += self.height
        if self.x_max == width:
            length += self.height
        if self.y == 0:
            length += self.width
        if self.y_max == height:
            length += self.width
        return length

    def _require_placed(self) -> None:
        if self.x is None:
            raise ValueError(f"Rectangle is not placed: {self}")

    # ── Serialisation ────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"width": self.width, "height": self.height}
        if self.is_placed:
            d["x"] = self.x
            d["y"] = self.y
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Rect":
        return cls(int(d["width"]), int(d["height"]), d.get("x"), d.get("y"))

    def __repr__(self) -> str:
        if self.is_placed:
            return f"Rect(w={self.width}, h={self.height}, x={self.x}, y={self.y})"
        return f"Rect(w={self.width}, h={self.height})"


@dataclass(frozen=True)
class ScoredPlacement:
    """
    A candidate position for an item in one bin, with its heuristic cost.

    Returned by ``evaluate()`` and consumed by ``insert()``.  Both keys are
    minimised: ``score`` first, ``tie_break`` second.

    Attributes:
        x, y:          Bottom-left corner of the item in the bin.
        width, height: Item dimensions after orientation is applied.
        rotated:       True if the item is turned 90 degrees.
        score:         Primary heuristic cost (lower is better).
        tie_break:     Secondary cost for equal scores (lower is better).
        heuristic:     Heuristic that produced the score.
    """

    x: int
    y: int
    width: int
    height: int
    rotated: bool
    score: float
    tie_break: float = 0.0
    heuristic: PackingHeuristic = PackingHeuristic.BEST_AREA_FIT

    @property
    def rect(self) -> Rect:
        """The placed rectangle this placement describes."""
        return Rect(self.width, self.height, self.x, self.y)

    @property
    def sort_key(self) -> tuple[float, float]:
        return (self.score, self.tie_break)

    def is_better_than(self, other: Optional["ScoredPlacement"]) -> bool:
        """Strict comparison; earlier candidates win ties."""
        return other is None or self.sort_key < other.sort_key

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": [self.x, self.y],
            "dims": [self.width, self.height],
            "rotated": self.rotated,
            "score": self.score,
            "tie_break": self.tie_break,
            "heuristic": self.heuristic.value,
        }
