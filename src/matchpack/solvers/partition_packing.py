"""
Global partition placement.

Places packed partitions as rigid rectangles on shelves, left to right and
top to bottom, one partition per step. Larger partitions go first and every
decoupling capacitor partition follows the partition holding its main chip,
so capacitor rows land next to the chip they serve. A last step merges the
partition layouts into ``final_layout``, centred on the origin.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from ..basic_layout import visualize_input_problem
from ..graphics import GraphicsObject, GraphicsRect
from ..types import InputProblem, OutputLayout, Placement, Point
from ..validation import Bounds
from .base import BaseSolver
from .inner_packing import PackedPartition, layout_bounds

__all__ = ["PlacedPartition", "PartitionPackingSolver", "order_packed_partitions"]

# Shelf width relative to the side of a square holding every partition
ROW_WIDTH_FACTOR = 1.5


@dataclass(frozen=True)
class PlacedPartition:
    """A packed partition and the position of its centre."""

    packed: PackedPartition
    center: Point

    @property
    def bounds(self) -> Bounds:
        half_w = self.packed.width / 2
        half_h = self.packed.height / 2
        return Bounds(
            min_x=self.center.x - half_w,
            max_x=self.center.x + half_w,
            min_y=self.center.y - half_h,
            max_y=self.center.y + half_h,
        )

    def layout(self) -> OutputLayout:
        offset = self.center - self.packed.bounds.center
        return self.packed.layout.translated(offset.x, offset.y)


def order_packed_partitions(packed_partitions: Sequence[PackedPartition]) -> list[PackedPartition]:
    """Largest partitions first, each followed by the decoupling partitions of its chips.

    Decoupling partitions whose main chip is in no other partition go last.
    """
    regular = sorted(
        (p for p in packed_partitions if not p.partition.is_decoupling_cap_partition),
        key=lambda p: -p.area,
    )
    pending = [p for p in packed_partitions if p.partition.is_decoupling_cap_partition]

    ordered: list[PackedPartition] = []
    for packed in regular:
        ordered.append(packed)
        members = set(packed.partition.chip_ids)
        attached = [
            p for p in pending if p.partition.decoupling_cap_group.main_chip_id in members
        ]
        ordered.extend(attached)
        pending = [p for p in pending if p not in attached]

    ordered.extend(pending)
    return ordered


class PartitionPackingSolver(BaseSolver):
    """Shelf-pack packed partitions, then assemble the final layout.

    Attributes:
        placed_partitions: Partitions placed so far, in placement order
        final_layout: Complete layout once solved, otherwise None
    """

    def __init__(
        self,
        input_problem: InputProblem,
        packed_partitions: Sequence[PackedPartition],
        max_iterations: int | None = None,
    ):
        super().__init__(max_iterations=max_iterations)
        self.input_problem = input_problem
        self.packed_partitions = order_packed_partitions(packed_partitions)
        self.placed_partitions: list[PlacedPartition] = []
        self.final_layout: OutputLayout | None = None

        total_area = sum(p.area for p in self.packed_partitions)
        widest = max((p.width for p in self.packed_partitions), default=0.0)
        self.row_width_limit = max(widest, math.sqrt(total_area) * ROW_WIDTH_FACTOR)

        self._cursor_x = 0.0
        self._row_top = 0.0
        self._row_height = 0.0

    def _step(self) -> None:
        index = len(self.placed_partitions)
        if index < len(self.packed_partitions):
            self._place(self.packed_partitions[index])
            return

        self.final_layout = self._assemble()
        self.stats["placed_partitions"] = len(self.placed_partitions)
        self.solved = True

    def _place(self, packed: PackedPartition) -> None:
        gap = self.input_problem.partition_gap
        if self._cursor_x > 0 and self._cursor_x + packed.width > self.row_width_limit:
            self._row_top -= self._row_height + gap
            self._cursor_x = 0.0
            self._row_height = 0.0

        center = Point(self._cursor_x + packed.width / 2, self._row_top - packed.height / 2)
        self.placed_partitions.append(PlacedPartition(packed=packed, center=center))
        self._cursor_x += packed.width + gap
        self._row_height = max(self._row_height, packed.height)

    def _assemble(self) -> OutputLayout:
        placements: dict[str, Placement] = {}
        for placed in self.placed_partitions:
            placements.update(placed.layout().chip_placements)
        layout = OutputLayout(placements)
        if not placements:
            return layout

        center = layout_bounds(layout, self.input_problem.chip_map).center
        return layout.translated(-center.x, -center.y)

    def compute_progress(self) -> float:
        if self.solved:
            return 1.0
        total = len(self.packed_partitions) + 1
        return len(self.placed_partitions) / total

    def visualize(self) -> GraphicsObject:
        problem = self.input_problem
        if self.final_layout is not None:
            return visualize_input_problem(problem, self.final_layout, title="Final layout")

        placements: dict[str, Placement] = {}
        for placed in self.placed_partitions:
            placements.update(placed.layout().chip_placements)
        graphics = visualize_input_problem(
            problem,
            OutputLayout(placements),
            title=f"Placed {len(self.placed_partitions)}/{len(self.packed_partitions)} partitions",
        )
        for placed in self.placed_partitions:
            bounds = placed.bounds
            graphics.rects.append(
                GraphicsRect(
                    center=bounds.center,
                    width=bounds.width,
                    height=bounds.height,
                    stroke="black",
                    label=placed.packed.partition.partition_id,
                )
            )
        return graphics

    def preview(self) -> GraphicsObject:
        """Partition outlines only."""
        graphics = GraphicsObject(title="Partition placement")
        for placed in self.placed_partitions:
            bounds = placed.bounds
            graphics.rects.append(
                GraphicsRect(
                    center=bounds.center,
                    width=bounds.width,
                    height=bounds.height,
                    stroke="black",
                    label=placed.packed.partition.partition_id,
                )
            )
        return graphics
