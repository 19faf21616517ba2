"""
Tests for the placement heuristics and MaxSpaceBin.evaluate().

Run with:
    python -m pytest tests/test_heuristics.py -v

Tests cover:
- Registry lookup (all three heuristics registered, names parsed)
- Scores for the second item in a 10x10 bin (one per heuristic)
- Each heuristic's preferred free space
- Rotation: off by default, finds rotated-only fits, tie-breaks, square items
- evaluate() never mutates the bin
"""

import math

import pytest

from rectpacking.algorithms.heuristics import HEURISTIC_REGISTRY, get_heuristic
from rectpacking.algorithms.max_space_bin import MaxSpaceBin
from rectpacking.core.models import PackingHeuristic, Rect

ALL_HEURISTICS = list(PackingHeuristic)


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def empty_bin():
    """Fresh empty 10x10 bin."""
    return MaxSpaceBin(10, 10)


@pytest.fixture
def bin_with_corner_item(empty_bin):
    """10x10 bin holding a 2x3 item at the origin."""
    assert empty_bin.insert(Rect(2, 3, 0, 0))
    return empty_bin


# ---------------------------------------------------------------------------
# 1. Registry
# ---------------------------------------------------------------------------

class TestRegistry:
    def test_all_heuristics_registered(self):
        for heuristic in ALL_HEURISTICS:
            assert heuristic in HEURISTIC_REGISTRY

    def test_lookup_by_name(self):
        assert get_heuristic("TouchingPerimeter") is HEURISTIC_REGISTRY[
            PackingHeuristic.TOUCHING_PERIMETER
        ]

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            get_heuristic("bottom_left")


# ---------------------------------------------------------------------------
# 2. Scores for the second item
# ---------------------------------------------------------------------------

EXPECTED_SECOND_ITEM_SCORE = {
    PackingHeuristic.BEST_AREA_FIT: 64.0,
    PackingHeuristic.TOUCHING_PERIMETER: -5.0,
    PackingHeuristic.TOP_RIGHT_CORNER_DISTANCE: -9.433,
}


class TestSecondItemScore:
    @pytest.mark.parametrize("heuristic", ALL_HEURISTICS)
    def test_score(self, heuristic, bin_with_corner_item):
        placement = bin_with_corner_item.evaluate(Rect(3, 2), heuristic)
        assert placement is not None
        assert placement.score == pytest.approx(EXPECTED_SECOND_ITEM_SCORE[heuristic], abs=0.01)
        assert placement.heuristic is heuristic

    def test_best_area_fit_picks_smaller_space(self, bin_with_corner_item):
        # free spaces: 10x7 at (0,3) and 8x10 at (2,0); 70-6 beats 80-6
        placement = bin_with_corner_item.evaluate(Rect(3, 2), PackingHeuristic.BEST_AREA_FIT)
        assert (placement.x, placement.y) == (0, 3)
        assert placement.tie_break == 5.0

    def test_touching_perimeter_picks_floor_next_to_item(self, bin_with_corner_item):
        placement = bin_with_corner_item.evaluate(Rect(3, 2), PackingHeuristic.TOUCHING_PERIMETER)
        assert (placement.x, placement.y) == (2, 0)

    def test_top_right_distance_picks_farthest_corner(self, bin_with_corner_item):
        placement = bin_with_corner_item.evaluate(
            Rect(3, 2), PackingHeuristic.TOP_RIGHT_CORNER_DISTANCE
        )
        assert (placement.x, placement.y) == (2, 0)
        assert placement.score == pytest.approx(-math.sqrt(89))

    def test_touching_perimeter_full_width_item(self, empty_bin):
        placement = empty_bin.evaluate(Rect(10, 2), PackingHeuristic.TOUCHING_PERIMETER)
        assert placement.score == -14.0

    @pytest.mark.parametrize("heuristic", ALL_HEURISTICS)
    def test_empty_bin_places_at_origin(self, heuristic, empty_bin):
        placement = empty_bin.evaluate(Rect(4, 5), heuristic)
        assert (placement.x, placement.y, placement.rotated) == (0, 0, False)


# ---------------------------------------------------------------------------
# 3. Rotation
# ---------------------------------------------------------------------------

class TestRotation:
    @pytest.mark.parametrize("heuristic", ALL_HEURISTICS)
    def test_rotated_only_fit_needs_rotation(self, heuristic):
        bin = MaxSpaceBin(10, 5)
        assert bin.evaluate(Rect(3, 8), heuristic) is None
        placement = bin.evaluate(Rect(3, 8), heuristic, allow_rotation=True)
        assert placement is not None
        assert placement.rotated
        assert (placement.width, placement.height) == (8, 3)

    def test_rotation_fills_remaining_strip(self):
        bin = MaxSpaceBin(10, 10)
        bin.insert(Rect(10, 4, 0, 0))
        placement = bin.evaluate(Rect(6, 10), PackingHeuristic.BEST_AREA_FIT, allow_rotation=True)
        assert placement.rotated
        assert placement.score == 0.0
        assert placement.rect == Rect(10, 6, 0, 4)

    def test_rotation_wins_on_tie_break(self):
        bin = MaxSpaceBin(10, 10)
        bin.insert(Rect(10, 7, 0, 0))
        # 10x3 strip left: same wasted area, rotated 2x3 leaves no vertical gap
        upright = bin.evaluate(Rect(3, 2), PackingHeuristic.BEST_AREA_FIT)
        either = bin.evaluate(Rect(3, 2), PackingHeuristic.BEST_AREA_FIT, allow_rotation=True)
        assert not upright.rotated and upright.tie_break == 1.0
        assert either.rotated and either.tie_break == 0.0
        assert either.score == upright.score

    def test_ties_go_to_first_candidate(self, bin_with_corner_item):
        placement = bin_with_corner_item.evaluate(
            Rect(3, 2), PackingHeuristic.TOUCHING_PERIMETER, allow_rotation=True
        )
        # rotated at (0, 3) is the first candidate reaching contact 5;
        # upright and rotated at (2, 0) only tie with it
        assert placement.rect == Rect(2, 3, 0, 3)
        assert placement.rotated
        assert placement.score == -5.0

    def test_square_item_never_rotated(self, empty_bin):
        placement = empty_bin.evaluate(Rect(4, 4), PackingHeuristic.BEST_AREA_FIT, allow_rotation=True)
        assert not placement.rotated

    @pytest.mark.parametrize("heuristic", ALL_HEURISTICS)
    def test_rotating_twice_restores_score(self, heuristic, bin_with_corner_item):
        item = Rect(3, 2)
        original = bin_with_corner_item.evaluate(item, heuristic)
        twice = bin_with_corner_item.evaluate(item.rotated().rotated(), heuristic)
        assert twice == original


# ---------------------------------------------------------------------------
# 4. evaluate() is read-only
# ---------------------------------------------------------------------------

class TestEvaluateReadOnly:
    @pytest.mark.parametrize("heuristic", ALL_HEURISTICS)
    def test_no_mutation(self, heuristic, bin_with_corner_item):
        free_before = bin_with_corner_item.free_spaces
        items_before = bin_with_corner_item.occupied_items
        bin_with_corner_item.evaluate(Rect(3, 2), heuristic, allow_rotation=True)
        bin_with_corner_item.evaluate(Rect(30, 2), heuristic)
        assert bin_with_corner_item.free_spaces == free_before
        assert bin_with_corner_item.occupied_items == items_before
        assert bin_with_corner_item.occupied_area == 6

    def test_no_fit_returns_none(self, empty_bin):
        assert empty_bin.evaluate(Rect(11, 1), PackingHeuristic.BEST_AREA_FIT) is None
