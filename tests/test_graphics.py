"""Tests for debug graphics and the basic layout."""

import pytest

from matchpack.basic_layout import (
    do_basic_input_problem_layout,
    get_pin_position,
    visualize_input_problem,
)
from matchpack.graphics import (
    GraphicsCircle,
    GraphicsObject,
    GraphicsPoint,
    GraphicsRect,
    GraphicsText,
    merge_graphics,
)
from matchpack.types import OutputLayout, Placement, Point


class TestGraphicsObject:
    def test_empty(self):
        assert GraphicsObject().is_empty
        assert not GraphicsObject(points=[GraphicsPoint(0, 0)]).is_empty

    def test_tag_step_marks_every_primitive(self):
        graphics = GraphicsObject(
            points=[GraphicsPoint(0, 0)],
            rects=[GraphicsRect(Point(0, 0), 1, 1)],
            circles=[GraphicsCircle(Point(0, 0), 1)],
            texts=[GraphicsText(0, 0, "hi")],
        )

        result = graphics.tag_step(3)

        assert result is graphics
        assert {p.step for p in graphics.primitives()} == {3}

    def test_merge_preserves_order(self):
        a = GraphicsObject(points=[GraphicsPoint(0, 0, label="a")])
        b = GraphicsObject(points=[GraphicsPoint(1, 1, label="b")], title="ignored")

        merged = merge_graphics([a, b], title="both")

        assert [p.label for p in merged.points] == ["a", "b"]
        assert merged.title == "both"

    def test_to_dict(self):
        graphics = GraphicsObject(rects=[GraphicsRect(Point(1, 2), 3, 4, label="U1")], title="t")
        data = graphics.to_dict()
        assert data["title"] == "t"
        assert data["rects"][0]["center"] == {"x": 1, "y": 2}
        assert data["rects"][0]["label"] == "U1"
        assert data["rects"][0]["step"] is None


class TestBasicLayout:
    """Test the fallback grid layout."""

    def test_grid_has_no_overlaps(self, decoupled_problem):
        from matchpack.validation import check_for_overlaps

        layout = do_basic_input_problem_layout(decoupled_problem)

        assert set(layout.chip_placements) == set(decoupled_problem.chip_map)
        assert check_for_overlaps(layout, decoupled_problem.chip_map) == []

    def test_square_grid(self, decoupled_problem):
        """Five chips fill a 3-column grid, rows going down."""
        layout = do_basic_input_problem_layout(decoupled_problem)
        placements = list(layout.chip_placements.values())

        assert placements[0].y == placements[1].y == placements[2].y == 0
        assert placements[3].y < 0
        assert placements[3].x == placements[0].x

    def test_empty_problem(self, empty_problem):
        assert len(do_basic_input_problem_layout(empty_problem)) == 0

    def test_pin_position_follows_rotation(self, two_chip_problem):
        layout = OutputLayout({"U1": Placement(10, 0, 90)})
        position = get_pin_position(two_chip_problem, layout, "U1.2")
        assert position.x == pytest.approx(10)
        assert position.y == pytest.approx(2)
        assert get_pin_position(two_chip_problem, layout, "R1.1") is None

    def test_visualize_input_problem(self, two_chip_problem):
        layout = OutputLayout({"U1": Placement(0, 0), "R1": Placement(5, 0)})

        graphics = visualize_input_problem(two_chip_problem, layout, title="input")

        assert graphics.title == "input"
        assert [r.label for r in graphics.rects] == ["U1", "R1"]
        assert len(graphics.points) == 4
        assert len(graphics.lines) == 1
        assert graphics.lines[0].points == [Point(2, 0), Point(4.5, 0)]
