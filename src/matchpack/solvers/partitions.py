"""
Chip partitioning.

Splits the problem into groups of chips that are packed together:

- one partition per decoupling capacitor group (capacitors only), and
- one partition per connected component of the chip graph, where two chips
  are adjacent when any of their pins are strongly connected.

Grouped decoupling capacitors are excluded from the chip graph so that they
do not pull unrelated chips into the same component.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass

from ..basic_layout import do_basic_input_problem_layout, visualize_input_problem
from ..graphics import GraphicsObject, GraphicsRect, GraphicsText
from ..types import ChipId, InputProblem
from ..validation import get_rotated_bounds
from .base import BaseSolver
from .decoupling import DecouplingCapGroup

__all__ = ["ChipPartition", "ChipPartitionsSolver"]


@dataclass(frozen=True)
class ChipPartition:
    """A group of chips packed together.

    Attributes:
        partition_id: Stable partition identifier
        chip_ids: Member chips
        decoupling_cap_group: Set when the partition holds a decoupling group
    """

    partition_id: str
    chip_ids: tuple[ChipId, ...]
    decoupling_cap_group: DecouplingCapGroup | None = None

    @property
    def is_decoupling_cap_partition(self) -> bool:
        return self.decoupling_cap_group is not None


class ChipPartitionsSolver(BaseSolver):
    """Emit decoupling partitions first, then one connected component per step."""

    def __init__(
        self,
        input_problem: InputProblem,
        decoupling_cap_groups: Sequence[DecouplingCapGroup] | None = None,
        max_iterations: int | None = None,
    ):
        super().__init__(max_iterations=max_iterations)
        self.input_problem = input_problem
        self.decoupling_cap_groups = list(decoupling_cap_groups or [])
        self.partitions: list[ChipPartition] = []

        self._grouped_caps: set[ChipId] = {
            cap_id for group in self.decoupling_cap_groups for cap_id in group.decoupling_cap_chip_ids
        }
        self._emitted_decoupling_partitions = False
        self._assigned: set[ChipId] = set(self._grouped_caps)
        self._chip_adjacency = self._build_chip_adjacency()

    def _build_chip_adjacency(self) -> dict[ChipId, set[ChipId]]:
        problem = self.input_problem
        adjacency: dict[ChipId, set[ChipId]] = {
            chip_id: set() for chip_id in problem.chip_map if chip_id not in self._grouped_caps
        }
        for a, b in problem.pin_strong_connections:
            chip_a = problem.chip_for_pin(a)
            chip_b = problem.chip_for_pin(b)
            if chip_a is None or chip_b is None or chip_a == chip_b:
                continue
            if chip_a in self._grouped_caps or chip_b in self._grouped_caps:
                continue
            adjacency[chip_a].add(chip_b)
            adjacency[chip_b].add(chip_a)
        return adjacency

    def _step(self) -> None:
        if not self._emitted_decoupling_partitions:
            for group in self.decoupling_cap_groups:
                self.partitions.append(
                    ChipPartition(
                        partition_id=f"partition_{len(self.partitions)}",
                        chip_ids=group.decoupling_cap_chip_ids,
                        decoupling_cap_group=group,
                    )
                )
            self._emitted_decoupling_partitions = True
            return

        seed = next((c for c in self._chip_adjacency if c not in self._assigned), None)
        if seed is None:
            self.stats["partitions"] = len(self.partitions)
            self.solved = True
            return

        component = [seed]
        self._assigned.add(seed)
        queue = deque([seed])
        while queue:
            chip_id = queue.popleft()
            for neighbor in sorted(self._chip_adjacency[chip_id]):
                if neighbor not in self._assigned:
                    self._assigned.add(neighbor)
                    component.append(neighbor)
                    queue.append(neighbor)

        self.partitions.append(
            ChipPartition(partition_id=f"partition_{len(self.partitions)}", chip_ids=tuple(component))
        )

    def compute_progress(self) -> float:
        if self.solved:
            return 1.0
        total = len(self.input_problem.chip_map)
        if total == 0:
            return 0.0
        return len(self._assigned) / total

    def visualize(self) -> GraphicsObject:
        problem = self.input_problem
        layout = do_basic_input_problem_layout(problem)
        graphics = visualize_input_problem(problem, layout, title="Chip partitions")

        for partition in self.partitions:
            bounds = None
            for chip_id in partition.chip_ids:
                chip_bounds = get_rotated_bounds(
                    layout.chip_placements[chip_id], problem.chip_map[chip_id].size
                )
                bounds = chip_bounds if bounds is None else bounds.union(chip_bounds)
            if bounds is None:
                continue
            bounds = bounds.expanded(problem.chip_gap / 2)
            graphics.rects.append(
                GraphicsRect(
                    center=bounds.center,
                    width=bounds.width,
                    height=bounds.height,
                    stroke="black",
                    label=partition.partition_id,
                )
            )
            graphics.texts.append(
                GraphicsText(x=bounds.min_x, y=bounds.max_y, text=partition.partition_id)
            )
        return graphics
