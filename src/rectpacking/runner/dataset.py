"""
Instances for rectangle packing experiments.

Sources:
    read_instances  — plain-text ``.2bp`` class files (many instances per file)
    load_dataset    — single instance stored as JSON (see save_dataset)
    generate_items  — random items that fit the bin

Orderings decide the packing sequence of an instance's items:
    given        — as read
    random       — seeded shuffle
    area_sorted  — largest area first (stable)

Usage:
    from rectpacking.runner.dataset import read_instances
    instances = read_instances("data/Class_01.2bp")
"""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from rectpacking.core.models import Rect

logger = logging.getLogger(__name__)


@dataclass
class Instance:
    """
    A bin size and the ordered list of items to pack into such bins.

    Attributes:
        bin_width:  Bin extent along the x-axis.
        bin_height: Bin extent along the y-axis.
        items:      Items in their original order.
        name:       Label used in metrics and result files.
    """

    bin_width: int
    bin_height: int
    items: list[Rect] = field(default_factory=list)
    name: str = "instance"

    @property
    def total_area(self) -> int:
        return sum(item.area for item in self.items)

    def size(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "bin_width": self.bin_width,
            "bin_height": self.bin_height,
            "item_count": len(self.items),
            "items": [{"width": r.width, "height": r.height} for r in self.items],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Instance":
        return cls(
            bin_width=int(d["bin_width"]),
            bin_height=int(d["bin_height"]),
            items=[Rect(int(r["width"]), int(r["height"])) for r in d["items"]],
            name=d.get("name", "instance"),
        )


# ─────────────────────────────────────────────────────────────────────────────
# .2bp class files
# ─────────────────────────────────────────────────────────────────────────────

def _int_tokens(line: str, count: int, path: Path, line_no: int) -> list[int]:
    tokens = line.split()[:count]
    message = f"{path}:{line_no}: expected {count} integers, got {line.strip()!r}"
    if len(tokens) < count:
        raise ValueError(message)
    try:
        return [int(tok) for tok in tokens]
    except ValueError as e:
        raise ValueError(message) from e


def read_instances(path: str | Path) -> list[Instance]:
    """
    Read every instance from a ``.2bp`` class file.

    Each instance is a block::

         1   PROBLEM CLASS
         20  N. OF ITEMS
         1 1 RELATIVE AND ABSOLUTE N. OF INSTANCE
         10 10  HBIN,WBIN
         3 7    H(I),W(I),I=1,...,N
         ...

    Only the leading integers of a line are read.  The first header gives
    the item count, the second is ignored, the third gives the bin width and
    height.  A blank line or the end of the file closes the block.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError:        If a header or item line is malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Instance file not found: {path}")

    instances: list[Instance] = []
    current: Optional[Instance] = None
    expected_items = 0
    header_line = 0  # 0 = reading items, 1..3 = next header to read

    def close_block() -> None:
        nonlocal current
        if current is None:
            return
        if len(current.items) != expected_items:
            logger.warning(
                "%s: instance %s declares %d items, read %d",
                path, current.name, expected_items, len(current.items),
            )
        instances.append(current)
        current = None

    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                close_block()
                continue
            if "PROBLEM" in line:
                close_block()
                current = Instance(bin_width=0, bin_height=0,
                                   name=f"{path.stem}_{len(instances)}")
                header_line = 1
                continue
            if current is None:
                raise ValueError(f"{path}:{line_no}: data outside of a PROBLEM block")

            if header_line == 1:
                expected_items = _int_tokens(line, 1, path, line_no)[0]
                header_line = 2
            elif header_line == 2:
                header_line = 3
            elif header_line == 3:
                current.bin_width, current.bin_height = _int_tokens(line, 2, path, line_no)
                header_line = 0
            else:
                width, height = _int_tokens(line, 2, path, line_no)
                current.items.append(Rect(width, height))
    close_block()

    logger.info("Read %d instances from %s", len(instances), path)
    return instances


# ─────────────────────────────────────────────────────────────────────────────
# JSON datasets
# ─────────────────────────────────────────────────────────────────────────────

def load_dataset(path: str | Path) -> Instance:
    """
    Load an instance from JSON.

    Expected JSON schema::

        {"name": "u50", "bin_width": 10, "bin_height": 10,
         "items": [{"width": 3, "height": 2}, ...]}
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return Instance.from_dict(data)


def save_dataset(instance: Instance, path: str | Path) -> None:
    """Save an instance as JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(instance.to_dict(), f, indent=2)


def load_instances(path: str | Path) -> list[Instance]:
    """Load instances from a ``.json`` dataset or any ``.2bp``-style text file."""
    path = Path(path)
    if path.suffix.lower() == ".json":
        return [load_dataset(path)]
    return read_instances(path)


# ─────────────────────────────────────────────────────────────────────────────
# Generation
# ─────────────────────────────────────────────────────────────────────────────

def generate_items(
    count: int,
    bin_width: int,
    bin_height: int,
    seed: Optional[int] = None,
    min_fraction: float = 0.1,
    max_fraction: float = 0.5,
) -> list[Rect]:
    """
    Generate random items sized relative to the bin.

    Each side is drawn uniformly from [min_fraction, max_fraction] of the
    matching bin side (at least 1), so every item fits an empty bin.

    Args:
        count:        Number of items.
        bin_width:    Bin width.
        bin_height:   Bin height.
        seed:         Random seed for reproducibility.
        min_fraction: Smallest side as a fraction of the bin side.
        max_fraction: Largest side as a fraction of the bin side.

    Returns:
        List of unplaced Rect items.
    """
    if not 0 < min_fraction <= max_fraction <= 1:
        raise ValueError(
            f"Need 0 < min_fraction <= max_fraction <= 1, got {min_fraction}, {max_fraction}"
        )
    rng = random.Random(seed)

    def side(length: int) -> int:
        low = max(1, int(length * min_fraction))
        high = max(low, int(length * max_fraction))
        return rng.randint(low, high)

    return [Rect(side(bin_width), side(bin_height)) for _ in range(count)]


def generate_instance(
    count: int,
    bin_width: int,
    bin_height: int,
    seed: Optional[int] = None,
    name: Optional[str] = None,
) -> Instance:
    """Random instance wrapping ``generate_items``."""
    return Instance(
        bin_width=bin_width,
        bin_height=bin_height,
        items=generate_items(count, bin_width, bin_height, seed=seed),
        name=name or f"random_{count}_{seed}",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Orderings
# ─────────────────────────────────────────────────────────────────────────────

def given_order(items: list[Rect], rng: random.Random) -> list[Rect]:
    """Return a copy of the items in their original order."""
    return list(items)


def random_order(items: list[Rect], rng: random.Random) -> list[Rect]:
    """
    Return items in random order.

    Args:
        items: List of items
        rng:   Random source, seeded by the caller

    Returns:
        Shuffled copy of items
    """
    shuffled = list(items)
    rng.shuffle(shuffled)
    return shuffled


def area_sorted_order(items: list[Rect], rng: random.Random) -> list[Rect]:
    """Sort items by area, largest first; equal areas keep their order."""
    return sorted(items, key=lambda r: r.area, reverse=True)


# Map of ordering strategy names to functions
ORDERING_STRATEGIES: dict[str, Callable[[list[Rect], random.Random], list[Rect]]] = {
    "given": given_order,
    "random": random_order,
    "area_sorted": area_sorted_order,
}


def get_ordering_strategy(name: str) -> Callable[[list[Rect], random.Random], list[Rect]]:
    """
    Get an ordering strategy function by name.

    Raises:
        ValueError: If strategy name is not recognized
    """
    if name not in ORDERING_STRATEGIES:
        raise ValueError(
            f"Unknown ordering strategy: {name}. "
            f"Available: {list(ORDERING_STRATEGIES.keys())}"
        )
    return ORDERING_STRATEGIES[name]
