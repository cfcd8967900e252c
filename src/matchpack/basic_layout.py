"""Fallback layout and input-problem drawing used for debug views.

The basic layout puts every chip on a square grid so that an input problem
can be drawn before any phase has produced positions (otherwise every chip
would sit on top of each other at the origin).
"""

from __future__ import annotations

import math

from .graphics import GraphicsLine, GraphicsObject, GraphicsPoint, GraphicsRect
from .types import InputProblem, OutputLayout, PinId, Placement, Point
from .validation import get_rotated_half_extents

CHIP_FILL = "rgba(0,0,255,0.1)"
PIN_COLOR = "red"
CONNECTION_COLOR = "rgba(0,128,0,0.5)"


def do_basic_input_problem_layout(problem: InputProblem) -> OutputLayout:
    """Place chips row by row on a square grid, in ``chip_map`` order.

    Each grid cell is as large as the largest chip plus ``chip_gap``.
    """
    chips = list(problem.chip_map.values())
    if not chips:
        return OutputLayout()

    columns = math.ceil(math.sqrt(len(chips)))
    cell_w = max(c.size.x for c in chips) + problem.chip_gap
    cell_h = max(c.size.y for c in chips) + problem.chip_gap

    placements: dict[str, Placement] = {}
    for index, chip in enumerate(chips):
        row, col = divmod(index, columns)
        placements[chip.chip_id] = Placement(x=col * cell_w, y=-row * cell_h)
    return OutputLayout(placements)


def get_pin_position(problem: InputProblem, layout: OutputLayout, pin_id: PinId) -> Point | None:
    """Absolute position of a pin under ``layout``, or None if its chip is unplaced."""
    chip_id = problem.chip_for_pin(pin_id)
    pin = problem.chip_pin_map.get(pin_id)
    if chip_id is None or pin is None:
        return None
    placement = layout.chip_placements.get(chip_id)
    if placement is None:
        return None
    return Point(placement.x, placement.y) + pin.offset.rotated(placement.ccw_rotation_degrees)


def visualize_input_problem(
    problem: InputProblem, layout: OutputLayout, title: str | None = None
) -> GraphicsObject:
    """Draw chips, pins and strong connections of ``problem`` at ``layout`` positions."""
    graphics = GraphicsObject(title=title)

    for chip_id, placement in layout.chip_placements.items():
        chip = problem.chip_map.get(chip_id)
        if chip is None:
            continue
        half_w, half_h = get_rotated_half_extents(
            chip.size.x / 2, chip.size.y / 2, placement.ccw_rotation_degrees
        )
        graphics.rects.append(
            GraphicsRect(
                center=Point(placement.x, placement.y),
                width=half_w * 2,
                height=half_h * 2,
                fill=CHIP_FILL,
                label=chip_id,
            )
        )
        for pin_id in chip.pins:
            position = get_pin_position(problem, layout, pin_id)
            if position is not None:
                graphics.points.append(
                    GraphicsPoint(x=position.x, y=position.y, label=pin_id, color=PIN_COLOR)
                )

    for a, b in problem.pin_strong_connections:
        pos_a = get_pin_position(problem, layout, a)
        pos_b = get_pin_position(problem, layout, b)
        if pos_a is not None and pos_b is not None:
            graphics.lines.append(
                GraphicsLine(points=[pos_a, pos_b], stroke_color=CONNECTION_COLOR, label=f"{a}-{b}")
            )

    return graphics
