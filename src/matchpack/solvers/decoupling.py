"""
Decoupling capacitor identification.

Finds two-pin chips bridging a positive supply net and a ground net and
groups them by the chip they decouple, so the packer can keep each group in
a tidy row next to its main chip.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..basic_layout import do_basic_input_problem_layout, visualize_input_problem
from ..graphics import GraphicsObject, GraphicsText
from ..types import Chip, ChipId, InputProblem, NetId, PinId
from .base import BaseSolver

__all__ = ["DecouplingCapGroup", "IdentifyDecouplingCapsSolver"]

GROUP_COLORS = ["orange", "purple", "teal", "brown", "magenta", "olive"]


@dataclass(frozen=True)
class DecouplingCapGroup:
    """Capacitors decoupling one supply of one chip.

    Attributes:
        decoupling_cap_group_id: Stable group identifier
        main_chip_id: Chip whose supply the capacitors decouple
        net_pair: ``(positive_net_id, ground_net_id)``
        decoupling_cap_chip_ids: Capacitor chip ids, in discovery order
    """

    decoupling_cap_group_id: str
    main_chip_id: ChipId
    net_pair: tuple[NetId, NetId]
    decoupling_cap_chip_ids: tuple[ChipId, ...]


class IdentifyDecouplingCapsSolver(BaseSolver):
    """Examine one chip per step and group the decoupling capacitors found.

    A chip is a decoupling capacitor when it has exactly two pins, one on a
    ground net and the other on a positive voltage net. Its main chip is the
    first non-capacitor chip strongly connected to the supply pin; failing
    that, the non-capacitor chip with the most pins on the supply net.
    Capacitors without a main chip are left ungrouped.
    """

    def __init__(self, input_problem: InputProblem, max_iterations: int | None = None):
        super().__init__(max_iterations=max_iterations)
        self.input_problem = input_problem
        self.queued_chip_ids: list[ChipId] = list(input_problem.chip_map)
        self.output_decoupling_cap_groups: list[DecouplingCapGroup] = []

        self._strong_neighbors: dict[PinId, list[PinId]] = {}
        for a, b in input_problem.pin_strong_connections:
            self._strong_neighbors.setdefault(a, []).append(b)
            self._strong_neighbors.setdefault(b, []).append(a)

        # Resolved (power_pin, power_net, ground_net) for every candidate capacitor
        self._candidates: dict[ChipId, tuple[PinId, NetId, NetId]] = {}
        for chip in input_problem.chip_map.values():
            supply = self._classify(chip)
            if supply is not None:
                self._candidates[chip.chip_id] = supply

        self._groups: dict[tuple[ChipId, NetId, NetId], list[ChipId]] = {}

    def _classify(self, chip: Chip) -> tuple[PinId, NetId, NetId] | None:
        """Return ``(power_pin, power_net, ground_net)`` if ``chip`` looks like a decoupling cap."""
        if len(chip.pins) != 2:
            return None

        problem = self.input_problem
        for power_pin, ground_pin in (chip.pins, tuple(reversed(chip.pins))):
            power_nets = [
                n
                for n in problem.nets_for_pin(power_pin)
                if n in problem.net_map and problem.net_map[n].is_positive_voltage_source
            ]
            ground_nets = [
                n
                for n in problem.nets_for_pin(ground_pin)
                if n in problem.net_map and problem.net_map[n].is_ground
            ]
            if power_nets and ground_nets:
                return power_pin, power_nets[0], ground_nets[0]
        return None

    def _find_main_chip(self, cap_id: ChipId, power_pin: PinId, power_net: NetId) -> ChipId | None:
        problem = self.input_problem

        for other_pin in self._strong_neighbors.get(power_pin, []):
            other_chip = problem.chip_for_pin(other_pin)
            if other_chip and other_chip != cap_id and other_chip not in self._candidates:
                return other_chip

        pins_per_chip: dict[ChipId, int] = {}
        for pin_id in problem.pins_on_net(power_net):
            chip_id = problem.chip_for_pin(pin_id)
            if chip_id is None or chip_id == cap_id or chip_id in self._candidates:
                continue
            pins_per_chip[chip_id] = pins_per_chip.get(chip_id, 0) + 1

        if not pins_per_chip:
            return None
        return min(
            pins_per_chip,
            key=lambda c: (-len(problem.chip_map[c].pins), -pins_per_chip[c], c),
        )

    def _step(self) -> None:
        if not self.queued_chip_ids:
            self.output_decoupling_cap_groups = [
                DecouplingCapGroup(
                    decoupling_cap_group_id=f"decap_group_{index}",
                    main_chip_id=main_chip_id,
                    net_pair=(power_net, ground_net),
                    decoupling_cap_chip_ids=tuple(cap_ids),
                )
                for index, ((main_chip_id, power_net, ground_net), cap_ids) in enumerate(
                    self._groups.items()
                )
            ]
            self.stats["decoupling_cap_groups"] = len(self.output_decoupling_cap_groups)
            self.solved = True
            return

        chip_id = self.queued_chip_ids.pop(0)
        supply = self._candidates.get(chip_id)
        if supply is None:
            return

        power_pin, power_net, ground_net = supply
        main_chip_id = self._find_main_chip(chip_id, power_pin, power_net)
        if main_chip_id is None:
            return

        self._groups.setdefault((main_chip_id, power_net, ground_net), []).append(chip_id)

    def compute_progress(self) -> float:
        if self.solved:
            return 1.0
        total = len(self.input_problem.chip_map)
        if total == 0:
            return 0.0
        return (total - len(self.queued_chip_ids)) / total

    def visualize(self) -> GraphicsObject:
        layout = do_basic_input_problem_layout(self.input_problem)
        graphics = visualize_input_problem(
            self.input_problem, layout, title="Identify decoupling capacitors"
        )

        rects_by_chip = {rect.label: rect for rect in graphics.rects}
        for index, ((main_chip_id, power_net, _), cap_ids) in enumerate(self._groups.items()):
            color = GROUP_COLORS[index % len(GROUP_COLORS)]
            for chip_id in (main_chip_id, *cap_ids):
                rect = rects_by_chip.get(chip_id)
                if rect is not None:
                    rect.stroke = color
            main_rect = rects_by_chip.get(main_chip_id)
            if main_rect is not None:
                graphics.texts.append(
                    GraphicsText(
                        x=main_rect.center.x,
                        y=main_rect.center.y + main_rect.height / 2,
                        text=f"{power_net}: {', '.join(cap_ids)}",
                        color=color,
                    )
                )
        return graphics
