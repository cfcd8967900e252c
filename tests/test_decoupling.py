"""Tests for decoupling capacitor identification."""

from conftest import build_problem, make_chip, two_pin

from matchpack.solvers.decoupling import DecouplingCapGroup, IdentifyDecouplingCapsSolver
from matchpack.types import Net

SUPPLY_NETS = [Net("VCC", is_positive_voltage_source=True), Net("GND", is_ground=True)]


class TestIdentifyDecouplingCaps:
    """Test IdentifyDecouplingCapsSolver."""

    def test_groups_caps_by_main_chip(self, decoupled_problem):
        solver = IdentifyDecouplingCapsSolver(decoupled_problem)
        solver.solve()

        assert solver.solved
        assert solver.output_decoupling_cap_groups == [
            DecouplingCapGroup(
                decoupling_cap_group_id="decap_group_0",
                main_chip_id="U1",
                net_pair=("VCC", "GND"),
                decoupling_cap_chip_ids=("C1", "C2"),
            )
        ]
        assert solver.stats["decoupling_cap_groups"] == 1

    def test_one_chip_per_step(self, decoupled_problem):
        """Five chips take five steps plus one to publish the groups."""
        solver = IdentifyDecouplingCapsSolver(decoupled_problem)
        for _ in range(5):
            solver.step()
        assert not solver.solved
        assert solver.queued_chip_ids == []
        assert solver.progress == 1.0

        solver.step()
        assert solver.solved
        assert solver.iterations == 6

    def test_reversed_pin_order(self):
        """Ground on pin 1 and supply on pin 2 still counts."""
        problem = build_problem(
            [make_chip("U1", 2, 2, [("VCC", (-1, 0), "x-")]), two_pin("C1", 0.5, 1)],
            strong=[("C1.2", "U1.VCC")],
            nets=SUPPLY_NETS,
            net_connections=[("C1.1", "GND"), ("C1.2", "VCC"), ("U1.VCC", "VCC")],
        )

        solver = IdentifyDecouplingCapsSolver(problem)
        solver.solve()

        group = solver.output_decoupling_cap_groups[0]
        assert group.main_chip_id == "U1"
        assert group.decoupling_cap_chip_ids == ("C1",)

    def test_main_chip_from_supply_net(self):
        """Without a strong connection the chip with the most pins on the net wins."""
        problem = build_problem(
            [
                make_chip("U1", 2, 2, [("VCC", (-1, 0), "x-")]),
                make_chip(
                    "U2", 4, 4, [("VCC", (-2, 0), "x-"), ("A", (2, 0), "x+"), ("B", (2, 1), "x+")]
                ),
                two_pin("C1", 0.5, 1),
            ],
            nets=SUPPLY_NETS,
            net_connections=[
                ("U1.VCC", "VCC"),
                ("U2.VCC", "VCC"),
                ("C1.1", "VCC"),
                ("C1.2", "GND"),
            ],
        )

        solver = IdentifyDecouplingCapsSolver(problem)
        solver.solve()

        assert solver.output_decoupling_cap_groups[0].main_chip_id == "U2"

    def test_cap_without_main_chip_is_ignored(self):
        problem = build_problem(
            [two_pin("C1", 0.5, 1)],
            nets=SUPPLY_NETS,
            net_connections=[("C1.1", "VCC"), ("C1.2", "GND")],
        )

        solver = IdentifyDecouplingCapsSolver(problem)
        solver.solve()

        assert solver.solved
        assert solver.output_decoupling_cap_groups == []

    def test_two_pin_chip_without_supply_nets_is_not_a_cap(self, two_chip_problem):
        solver = IdentifyDecouplingCapsSolver(two_chip_problem)
        solver.solve()
        assert solver.output_decoupling_cap_groups == []

    def test_caps_on_different_supplies_form_separate_groups(self):
        problem = build_problem(
            [
                make_chip("U1", 2, 2, [("VCC", (-1, 0), "x-"), ("VIO", (1, 0), "x+")]),
                two_pin("C1", 0.5, 1),
                two_pin("C2", 0.5, 1),
            ],
            strong=[("U1.VCC", "C1.1"), ("U1.VIO", "C2.1")],
            nets=SUPPLY_NETS + [Net("VIO", is_positive_voltage_source=True)],
            net_connections=[
                ("C1.1", "VCC"),
                ("C1.2", "GND"),
                ("C2.1", "VIO"),
                ("C2.2", "GND"),
            ],
        )

        solver = IdentifyDecouplingCapsSolver(problem)
        solver.solve()

        groups = solver.output_decoupling_cap_groups
        assert [g.net_pair for g in groups] == [("VCC", "GND"), ("VIO", "GND")]
        assert [g.decoupling_cap_group_id for g in groups] == ["decap_group_0", "decap_group_1"]

    def test_empty_problem(self, empty_problem):
        solver = IdentifyDecouplingCapsSolver(empty_problem)
        solver.step()
        assert solver.solved
        assert solver.output_decoupling_cap_groups == []

    def test_visualize_colors_groups(self, decoupled_problem):
        solver = IdentifyDecouplingCapsSolver(decoupled_problem)
        solver.solve()

        graphics = solver.visualize()

        strokes = {r.label: r.stroke for r in graphics.rects}
        assert strokes["U1"] == strokes["C1"] == strokes["C2"] is not None
        assert strokes["R1"] is None
        assert graphics.texts[0].text == "VCC: C1, C2"
