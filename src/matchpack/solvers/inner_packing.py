"""
Inner-partition packing.

Computes relative chip positions inside each partition, one partition per
step. Decoupling capacitor partitions become a centred row. Other partitions
grow greedily from their largest chip: the next chip is the one with the most
strong pin connections to chips already placed, and it goes into whichever
free slot beside a placed chip keeps its connected pins closest.

Packed partitions are centred on their own bounding box so the global
placement phase can treat them as rigid rectangles.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from ..basic_layout import visualize_input_problem
from ..graphics import GraphicsObject, GraphicsRect, GraphicsText, merge_graphics
from ..types import Chip, ChipId, InputProblem, OutputLayout, PinId, Placement, Point
from ..validation import (
    Bounds,
    calculate_overlap_area,
    get_rotated_bounds,
    get_rotated_half_extents,
)
from .base import BaseSolver
from .partitions import ChipPartition

__all__ = ["PackedPartition", "PackInnerPartitionsSolver", "layout_bounds"]

# Overlap below this area is treated as touching
_OVERLAP_TOLERANCE = 1e-9


@dataclass
class PackedPartition:
    """A partition with chip positions relative to its own centre.

    Attributes:
        partition: The partition that was packed
        layout: Chip placements, centred on the partition bounds
        bounds: Union of the rotated chip bounds under ``layout``
    """

    partition: ChipPartition
    layout: OutputLayout
    bounds: Bounds

    @property
    def width(self) -> float:
        return self.bounds.width

    @property
    def height(self) -> float:
        return self.bounds.height

    @property
    def area(self) -> float:
        return self.bounds.width * self.bounds.height


def layout_bounds(layout: OutputLayout, chip_map: Mapping[ChipId, Chip]) -> Bounds:
    """Union of the rotated bounds of every placed chip; a zero box for empty layouts."""
    bounds: Bounds | None = None
    for chip_id, placement in layout.chip_placements.items():
        chip_bounds = get_rotated_bounds(placement, chip_map[chip_id].size)
        bounds = chip_bounds if bounds is None else bounds.union(chip_bounds)
    return bounds or Bounds(0.0, 0.0, 0.0, 0.0)


class PackInnerPartitionsSolver(BaseSolver):
    """Pack one partition per step."""

    def __init__(
        self,
        input_problem: InputProblem,
        partitions: Sequence[ChipPartition],
        pin_id_to_strongly_connected_pins: Mapping[PinId, frozenset[PinId]],
        max_iterations: int | None = None,
    ):
        super().__init__(max_iterations=max_iterations)
        self.input_problem = input_problem
        self.partitions = list(partitions)
        self.pin_id_to_strongly_connected_pins = pin_id_to_strongly_connected_pins
        self.packed_partitions: list[PackedPartition] = []

    def _step(self) -> None:
        index = len(self.packed_partitions)
        if index >= len(self.partitions):
            self.stats["packed_partitions"] = len(self.packed_partitions)
            self.solved = True
            return

        partition = self.partitions[index]
        problem = self.input_problem.subproblem(partition.chip_ids)
        if partition.is_decoupling_cap_partition:
            layout = self._pack_row(partition, problem)
        else:
            layout = self._pack_by_affinity(partition, problem)

        chip_map = problem.chip_map
        bounds = layout_bounds(layout, chip_map)
        center = bounds.center
        layout = layout.translated(-center.x, -center.y)
        self.packed_partitions.append(
            PackedPartition(
                partition=partition,
                layout=layout,
                bounds=layout_bounds(layout, chip_map),
            )
        )

    def _pack_row(self, partition: ChipPartition, problem: InputProblem) -> OutputLayout:
        gap = (
            problem.decoupling_caps_gap
            if problem.decoupling_caps_gap is not None
            else problem.chip_gap
        )

        placements: dict[ChipId, Placement] = {}
        cursor = 0.0
        for chip_id in partition.chip_ids:
            width = problem.chip_map[chip_id].size.x
            placements[chip_id] = Placement(x=cursor + width / 2, y=0.0)
            cursor += width + gap
        return OutputLayout(placements)

    def _connection_count(
        self, chip: Chip, placed: Mapping[ChipId, Placement], problem: InputProblem
    ) -> int:
        count = 0
        for pin_id in chip.pins:
            for other in self.pin_id_to_strongly_connected_pins.get(pin_id, ()):
                if problem.chip_for_pin(other) in placed:
                    count += 1
        return count

    def _wire_cost(
        self,
        chip: Chip,
        candidate: Placement,
        placed: Mapping[ChipId, Placement],
        problem: InputProblem,
    ) -> float:
        """Total distance from ``chip``'s pins to their strongly connected, already placed pins."""
        cost = 0.0
        for pin_id in chip.pins:
            pin = problem.chip_pin_map.get(pin_id)
            if pin is None:
                continue
            pin_pos = Point(candidate.x, candidate.y) + pin.offset.rotated(
                candidate.ccw_rotation_degrees
            )
            for other in self.pin_id_to_strongly_connected_pins.get(pin_id, ()):
                other_chip = problem.chip_for_pin(other)
                other_pin = problem.chip_pin_map.get(other)
                if other_chip not in placed or other_pin is None:
                    continue
                anchor = placed[other_chip]
                other_pos = Point(anchor.x, anchor.y) + other_pin.offset.rotated(
                    anchor.ccw_rotation_degrees
                )
                cost += pin_pos.distance_to(other_pos)
        return cost

    def _pack_by_affinity(self, partition: ChipPartition, problem: InputProblem) -> OutputLayout:
        gap = problem.chip_gap
        chips = [problem.chip_map[chip_id] for chip_id in partition.chip_ids]
        if not chips:
            return OutputLayout()

        first = min(chips, key=lambda c: (-len(c.pins), -c.area, c.chip_id))
        first_rotation = first.available_rotations[0] if first.available_rotations else 0
        placed: dict[ChipId, Placement] = {first.chip_id: Placement(0.0, 0.0, first_rotation)}
        placed_bounds: dict[ChipId, Bounds] = {
            first.chip_id: get_rotated_bounds(placed[first.chip_id], first.size)
        }
        remaining = [c for c in chips if c.chip_id != first.chip_id]

        while remaining:
            chip = min(
                remaining,
                key=lambda c: (
                    -self._connection_count(c, placed, problem),
                    -len(c.pins),
                    -c.area,
                    c.chip_id,
                ),
            )
            remaining.remove(chip)

            best: tuple[tuple[float, float, float], Placement] | None = None
            for rotation in chip.available_rotations or (0,):
                half_w, half_h = get_rotated_half_extents(chip.size.x / 2, chip.size.y / 2, rotation)
                for neighbor_bounds in placed_bounds.values():
                    for candidate in self._candidate_slots(neighbor_bounds, half_w, half_h, gap, rotation):
                        candidate_bounds = get_rotated_bounds(candidate, chip.size)
                        if any(
                            calculate_overlap_area(candidate_bounds, other.expanded(gap))
                            > _OVERLAP_TOLERANCE
                            for other in placed_bounds.values()
                        ):
                            continue
                        union = candidate_bounds
                        for other in placed_bounds.values():
                            union = union.union(other)
                        score = (
                            round(self._wire_cost(chip, candidate, placed, problem), 9),
                            round(union.width * union.height, 9),
                            abs(candidate.x) + abs(candidate.y),
                        )
                        if best is None or score < best[0]:
                            best = (score, candidate)

            if best is None:
                raise RuntimeError(f"No free slot found for chip {chip.chip_id}")
            placed[chip.chip_id] = best[1]
            placed_bounds[chip.chip_id] = get_rotated_bounds(best[1], chip.size)

        return OutputLayout({chip_id: placed[chip_id] for chip_id in partition.chip_ids})

    @staticmethod
    def _candidate_slots(
        neighbor: Bounds, half_w: float, half_h: float, gap: float, rotation: float
    ) -> list[Placement]:
        """Slots directly right, left, above and below ``neighbor``, centre-aligned."""
        center = neighbor.center
        return [
            Placement(neighbor.max_x + gap + half_w, center.y, rotation),
            Placement(neighbor.min_x - gap - half_w, center.y, rotation),
            Placement(center.x, neighbor.max_y + gap + half_h, rotation),
            Placement(center.x, neighbor.min_y - gap - half_h, rotation),
        ]

    def compute_progress(self) -> float:
        if self.solved:
            return 1.0
        if not self.partitions:
            return 0.0
        return len(self.packed_partitions) / len(self.partitions)

    def visualize(self) -> GraphicsObject:
        """Draw packed partitions side by side, each with its outline."""
        problem = self.input_problem
        views: list[GraphicsObject] = []
        cursor = 0.0
        for packed in self.packed_partitions:
            dx = cursor - packed.bounds.min_x
            layout = packed.layout.translated(dx, 0.0)
            view = visualize_input_problem(problem, layout)
            view.rects.append(
                GraphicsRect(
                    center=Point(packed.bounds.center.x + dx, packed.bounds.center.y),
                    width=packed.width,
                    height=packed.height,
                    stroke="black",
                    label=packed.partition.partition_id,
                )
            )
            view.texts.append(
                GraphicsText(
                    x=cursor,
                    y=packed.bounds.max_y,
                    text=packed.partition.partition_id,
                )
            )
            views.append(view)
            cursor += packed.width + problem.partition_gap

        return merge_graphics(
            views,
            title=f"Packed {len(self.packed_partitions)}/{len(self.partitions)} partitions",
        )
