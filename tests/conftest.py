"""Pytest fixtures for matchpack tests."""

from itertools import count

import pytest

from matchpack.types import Chip, ChipPin, InputProblem, Net, Point


def make_chip(chip_id, width, height, pins, rotations=(0,)):
    """Build a chip plus its pins; ``pins`` is a list of ``(suffix, (dx, dy), side)``."""
    pin_map = {
        f"{chip_id}.{suffix}": ChipPin(f"{chip_id}.{suffix}", Point(*offset), side)
        for suffix, offset, side in pins
    }
    chip = Chip(
        chip_id=chip_id,
        pins=tuple(pin_map),
        size=Point(width, height),
        available_rotations=tuple(rotations),
    )
    return chip, pin_map


def two_pin(chip_id, width=1.0, height=0.5):
    return make_chip(
        chip_id,
        width,
        height,
        [("1", (-width / 2, 0), "x-"), ("2", (width / 2, 0), "x+")],
    )


def build_problem(chips, strong=(), nets=(), net_connections=(), **kwargs):
    chip_map = {}
    pin_map = {}
    for chip, pins in chips:
        chip_map[chip.chip_id] = chip
        pin_map.update(pins)
    return InputProblem(
        chip_map=chip_map,
        chip_pin_map=pin_map,
        net_map={net.net_id: net for net in nets},
        pin_strong_connections=tuple(strong),
        net_connections=tuple(net_connections),
        **kwargs,
    )


@pytest.fixture
def empty_problem() -> InputProblem:
    """Problem with no chips at all."""
    return InputProblem()


@pytest.fixture
def two_chip_problem() -> InputProblem:
    """A 4x2 chip with a resistor wired to its right-hand pin."""
    return build_problem(
        [
            make_chip("U1", 4, 2, [("1", (-2, 0), "x-"), ("2", (2, 0), "x+")]),
            two_pin("R1"),
        ],
        strong=[("U1.2", "R1.1")],
    )


@pytest.fixture
def decoupled_problem() -> InputProblem:
    """A microcontroller with two decoupling caps, a pull-up and a lone chip.

    Chip order: U1, C1, C2, R1, U2.
    """
    return build_problem(
        [
            make_chip(
                "U1",
                4,
                3,
                [("VCC", (-2, 1), "x-"), ("GND", (-2, -1), "x-"), ("IO", (2, 0), "x+")],
            ),
            two_pin("C1", 0.5, 1.0),
            two_pin("C2", 0.5, 1.0),
            two_pin("R1"),
            make_chip("U2", 2, 2, [("1", (-1, 0), "x-")]),
        ],
        strong=[("U1.VCC", "C1.1"), ("U1.VCC", "C2.1"), ("U1.IO", "R1.1")],
        nets=[
            Net("VCC", is_positive_voltage_source=True),
            Net("GND", is_ground=True),
        ],
        net_connections=[
            ("U1.VCC", "VCC"),
            ("C1.1", "VCC"),
            ("C2.1", "VCC"),
            ("U1.GND", "GND"),
            ("C1.2", "GND"),
            ("C2.2", "GND"),
        ],
    )


@pytest.fixture
def fake_clock():
    """Clock returning 0.0, 1.0, 2.0, ... on successive calls."""
    ticks = count()
    return lambda: float(next(ticks))


@pytest.fixture
def problem_yaml(tmp_path):
    """The decoupled problem written as a YAML file."""
    path = tmp_path / "problem.yaml"
    path.write_text(
        """
chips:
  - chip_id: U1
    size: {x: 4, y: 3}
    pins: [U1.VCC, U1.GND, U1.IO]
  - chip_id: C1
    size: {x: 0.5, y: 1}
    pins: [C1.1, C1.2]
  - chip_id: R1
    size: {x: 1, y: 0.5}
    pins: [R1.1, R1.2]
pins:
  - {pin_id: U1.VCC, offset: {x: -2, y: 1}, side: x-}
  - {pin_id: U1.GND, offset: {x: -2, y: -1}, side: x-}
  - {pin_id: U1.IO, offset: {x: 2, y: 0}, side: x+}
  - {pin_id: C1.1, offset: {x: -0.25, y: 0}}
  - {pin_id: C1.2, offset: {x: 0.25, y: 0}, side: x+}
  - {pin_id: R1.1, offset: {x: -0.5, y: 0}}
  - {pin_id: R1.2, offset: {x: 0.5, y: 0}, side: x+}
nets:
  - {net_id: VCC, is_positive_voltage_source: true}
  - {net_id: GND, is_ground: true}
strong_connections:
  - [U1.VCC, C1.1]
  - [U1.IO, R1.1]
net_connections:
  - [U1.VCC, VCC]
  - [C1.1, VCC]
  - [U1.GND, GND]
  - [C1.2, GND]
chip_gap: 0.25
"""
    )
    return path
