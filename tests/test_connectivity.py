"""Tests for strong pin connectivity precomputation."""

import pytest

from conftest import build_problem, two_pin

from matchpack.connectivity import get_pin_id_to_strongly_connected_pins


class TestStronglyConnectedPins:
    """Test the pin -> reachable pins mapping."""

    def test_transitive_chain(self):
        """A-B and B-C make A, B and C mutually reachable."""
        problem = build_problem(
            [two_pin("R1"), two_pin("R2"), two_pin("R3")],
            strong=[("R1.2", "R2.1"), ("R2.1", "R3.1")],
        )

        result = get_pin_id_to_strongly_connected_pins(problem)

        assert result["R1.2"] == frozenset({"R2.1", "R3.1"})
        assert result["R2.1"] == frozenset({"R1.2", "R3.1"})
        assert result["R3.1"] == frozenset({"R1.2", "R2.1"})

    def test_pin_excludes_itself(self, two_chip_problem):
        result = get_pin_id_to_strongly_connected_pins(two_chip_problem)
        for pin_id, connected in result.items():
            assert pin_id not in connected

    def test_isolated_pins_map_to_empty_set(self, two_chip_problem):
        result = get_pin_id_to_strongly_connected_pins(two_chip_problem)
        assert result["U1.1"] == frozenset()
        assert result["R1.2"] == frozenset()

    def test_separate_components_stay_separate(self):
        problem = build_problem(
            [two_pin("R1"), two_pin("R2")],
            strong=[("R1.1", "R1.2"), ("R2.1", "R2.2")],
        )

        result = get_pin_id_to_strongly_connected_pins(problem)

        assert result["R1.1"] == frozenset({"R1.2"})
        assert result["R2.1"] == frozenset({"R2.2"})

    def test_self_loop_ignored(self):
        problem = build_problem([two_pin("R1")], strong=[("R1.1", "R1.1")])
        result = get_pin_id_to_strongly_connected_pins(problem)
        assert result["R1.1"] == frozenset()

    def test_result_is_read_only(self, two_chip_problem):
        result = get_pin_id_to_strongly_connected_pins(two_chip_problem)
        with pytest.raises(TypeError):
            result["U1.1"] = frozenset({"X"})

    def test_covers_every_pin(self, decoupled_problem):
        result = get_pin_id_to_strongly_connected_pins(decoupled_problem)
        assert set(result) == set(decoupled_problem.chip_pin_map)

    def test_empty_problem(self, empty_problem):
        assert dict(get_pin_id_to_strongly_connected_pins(empty_problem)) == {}
