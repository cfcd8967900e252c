"""Tests for rotation-aware overlap detection."""

import pytest

from matchpack.types import Chip, OutputLayout, Placement, Point
from matchpack.validation import (
    Bounds,
    ChipOverlap,
    calculate_overlap_area,
    check_for_overlaps,
    get_rotated_bounds,
    get_rotated_half_extents,
)


def _chip(chip_id, width, height):
    return Chip(chip_id=chip_id, pins=(), size=Point(width, height))


class TestRotatedExtents:
    """Test rotated half extents."""

    @pytest.mark.parametrize("angle", [0, 180, 360, -180])
    def test_half_turns_keep_extents(self, angle):
        """At 0 and 180 degrees the extents are unchanged."""
        hw, hh = get_rotated_half_extents(2.0, 1.0, angle)
        assert hw == pytest.approx(2.0)
        assert hh == pytest.approx(1.0)

    @pytest.mark.parametrize("angle", [90, 270, -90])
    def test_quarter_turns_swap_extents(self, angle):
        """At 90 and 270 degrees width and height swap."""
        hw, hh = get_rotated_half_extents(2.0, 1.0, angle)
        assert hw == pytest.approx(1.0)
        assert hh == pytest.approx(2.0)

    def test_45_degrees_over_approximates(self):
        """Diagonal rotations give the conservative enclosing box."""
        hw, hh = get_rotated_half_extents(1.0, 1.0, 45)
        assert hw == pytest.approx(2**0.5)
        assert hh == pytest.approx(2**0.5)

    def test_rotated_bounds_4x2_at_90(self):
        """A 4x2 chip rotated 90 degrees has a 2x4 bound."""
        bounds = get_rotated_bounds(Placement(0, 0, 90), Point(4, 2))
        assert bounds.width == pytest.approx(2.0)
        assert bounds.height == pytest.approx(4.0)
        assert bounds.center.x == pytest.approx(0.0)
        assert bounds.center.y == pytest.approx(0.0)


class TestOverlapArea:
    """Test AABB intersection area."""

    def test_partial_overlap(self):
        a = Bounds(0, 2, 0, 2)
        b = Bounds(1, 3, 1, 3)
        assert calculate_overlap_area(a, b) == pytest.approx(1.0)

    def test_edge_touching_is_not_overlap(self):
        """Boxes that share an edge do not overlap."""
        a = Bounds(0, 2, 0, 2)
        b = Bounds(2, 4, 0, 2)
        assert calculate_overlap_area(a, b) == 0.0
        assert calculate_overlap_area(b, a) == 0.0

    def test_disjoint_on_y(self):
        a = Bounds(0, 2, 0, 2)
        b = Bounds(0, 2, 5, 6)
        assert calculate_overlap_area(a, b) == 0.0

    def test_containment(self):
        outer = Bounds(0, 10, 0, 10)
        inner = Bounds(2, 3, 2, 4)
        assert calculate_overlap_area(outer, inner) == pytest.approx(2.0)


class TestCheckForOverlaps:
    """Test pairwise layout validation."""

    def test_two_2x2_chips_offset_by_one(self):
        """Two 2x2 chips at x=0 and x=1 overlap by 2.0."""
        chip_map = {"A": _chip("A", 2, 2), "B": _chip("B", 2, 2)}
        layout = OutputLayout({"A": Placement(0, 0, 0), "B": Placement(1, 0, 0)})

        overlaps = check_for_overlaps(layout, chip_map)

        assert len(overlaps) == 1
        assert overlaps[0].chip1 == "A"
        assert overlaps[0].chip2 == "B"
        assert overlaps[0].overlap_area == pytest.approx(2.0)

    def test_coincident_unrotated_4x2_chips(self):
        """Fully coincident 4x2 chips overlap by their full area."""
        chip_map = {"A": _chip("A", 4, 2), "B": _chip("B", 4, 2)}
        layout = OutputLayout({"A": Placement(0, 0, 0), "B": Placement(0, 0, 0)})

        overlaps = check_for_overlaps(layout, chip_map)
        assert overlaps[0].overlap_area == pytest.approx(8.0)

    def test_4x2_against_rotated_copy(self):
        """A 4x2 chip against a 90-degree copy at the same centre intersects in 2x2."""
        chip_map = {"A": _chip("A", 4, 2), "B": _chip("B", 4, 2)}
        layout = OutputLayout({"A": Placement(0, 0, 0), "B": Placement(0, 0, 90)})

        overlaps = check_for_overlaps(layout, chip_map)
        assert len(overlaps) == 1
        assert overlaps[0].overlap_area == pytest.approx(4.0)

    def test_rotation_removes_overlap(self):
        """Rotating a chip can clear an overlap its unrotated bound would cause."""
        chip_map = {"A": _chip("A", 4, 1), "B": _chip("B", 4, 1)}
        unrotated = OutputLayout({"A": Placement(0, 0, 0), "B": Placement(3, 0, 0)})
        rotated = OutputLayout({"A": Placement(0, 0, 0), "B": Placement(3, 0, 90)})

        assert len(check_for_overlaps(unrotated, chip_map)) == 1
        assert check_for_overlaps(rotated, chip_map) == []

    def test_edge_touching_chips_are_valid(self):
        chip_map = {"A": _chip("A", 2, 2), "B": _chip("B", 2, 2)}
        layout = OutputLayout({"A": Placement(0, 0), "B": Placement(2, 0)})
        assert check_for_overlaps(layout, chip_map) == []

    def test_each_pair_reported_once_in_layout_order(self):
        """Three stacked chips give three pairs, each once, earlier chip first."""
        chip_map = {cid: _chip(cid, 2, 2) for cid in ("C", "A", "B")}
        layout = OutputLayout(
            {"C": Placement(0, 0), "A": Placement(0.5, 0), "B": Placement(1, 0)}
        )

        overlaps = check_for_overlaps(layout, chip_map)

        pairs = [(o.chip1, o.chip2) for o in overlaps]
        assert pairs == [("C", "A"), ("C", "B"), ("A", "B")]
        assert len({frozenset(p) for p in pairs}) == len(pairs)

    def test_chips_missing_from_chip_map_are_skipped(self):
        chip_map = {"A": _chip("A", 2, 2)}
        layout = OutputLayout({"A": Placement(0, 0), "GHOST": Placement(0, 0)})
        assert check_for_overlaps(layout, chip_map) == []

    def test_empty_and_single_layouts(self):
        chip_map = {"A": _chip("A", 2, 2)}
        assert check_for_overlaps(OutputLayout(), chip_map) == []
        assert check_for_overlaps(OutputLayout({"A": Placement(0, 0)}), chip_map) == []


class TestChipOverlap:
    def test_to_dict(self):
        overlap = ChipOverlap("U1", "U2", 1.5)
        assert overlap.to_dict() == {"chip1": "U1", "chip2": "U2", "overlap_area": 1.5}
