"""Core data model: input problems and output layouts.

An :class:`InputProblem` describes chips (size and pins), how pins connect to
each other and to nets, and the spacing the packer should respect. It is
owned by the caller and never modified by the pipeline. An
:class:`OutputLayout` maps each chip to a centre position and a
counter-clockwise rotation.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Any, Literal

ChipId = str
PinId = str
NetId = str

Side = Literal["x-", "x+", "y-", "y+"]


@dataclass(frozen=True)
class Point:
    """2D point or vector in schematic units."""

    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def distance_to(self, other: Point) -> float:
        """Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def rotated(self, ccw_degrees: float) -> Point:
        """Rotate about the origin, counter-clockwise.

        Quarter turns are computed exactly so that pin offsets stay on the
        chip outline without floating point drift.
        """
        quarter = ccw_degrees / 90.0
        if quarter == int(quarter):
            turns = int(quarter) % 4
            if turns == 0:
                return Point(self.x, self.y)
            if turns == 1:
                return Point(-self.y, self.x)
            if turns == 2:
                return Point(-self.x, -self.y)
            return Point(self.y, -self.x)

        rad = math.radians(ccw_degrees)
        cos, sin = math.cos(rad), math.sin(rad)
        return Point(self.x * cos - self.y * sin, self.x * sin + self.y * cos)


@dataclass(frozen=True)
class ChipPin:
    """A pin on a chip.

    Attributes:
        pin_id: Globally unique pin identifier (conventionally ``"U1.3"``)
        offset: Position relative to the chip centre, unrotated
        side: Which edge of the chip the pin sits on
    """

    pin_id: PinId
    offset: Point
    side: Side = "x-"


@dataclass(frozen=True)
class Chip:
    """A placeable chip with a rectangular footprint.

    Attributes:
        chip_id: Unique chip identifier (e.g. ``"U1"``, ``"C3"``)
        pins: Identifiers of the pins belonging to this chip
        size: Footprint width (``x``) and height (``y``)
        available_rotations: Counter-clockwise rotations the packer may use
    """

    chip_id: ChipId
    pins: tuple[PinId, ...]
    size: Point
    available_rotations: tuple[int, ...] = (0,)

    @property
    def area(self) -> float:
        return self.size.x * self.size.y


@dataclass(frozen=True)
class Net:
    """A net, with the annotations used to recognise decoupling capacitors."""

    net_id: NetId
    is_ground: bool = False
    is_positive_voltage_source: bool = False


@dataclass(frozen=True)
class InputProblem:
    """Immutable description of what to lay out.

    Attributes:
        chip_map: Chips by id
        chip_pin_map: Pins by id
        net_map: Nets by id
        pin_strong_connections: Pairs of pins that are directly wired together
        net_connections: ``(pin_id, net_id)`` memberships
        chip_gap: Minimum spacing between chips inside a partition
        partition_gap: Minimum spacing between packed partitions
        decoupling_caps_gap: Spacing between decoupling capacitors in a group;
            ``chip_gap`` is used when unset
    """

    chip_map: Mapping[ChipId, Chip] = field(default_factory=dict)
    chip_pin_map: Mapping[PinId, ChipPin] = field(default_factory=dict)
    net_map: Mapping[NetId, Net] = field(default_factory=dict)
    pin_strong_connections: tuple[tuple[PinId, PinId], ...] = ()
    net_connections: tuple[tuple[PinId, NetId], ...] = ()
    chip_gap: float = 0.2
    partition_gap: float = 2.0
    decoupling_caps_gap: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "chip_map", MappingProxyType(dict(self.chip_map)))
        object.__setattr__(self, "chip_pin_map", MappingProxyType(dict(self.chip_pin_map)))
        object.__setattr__(self, "net_map", MappingProxyType(dict(self.net_map)))
        object.__setattr__(
            self, "pin_strong_connections", tuple(tuple(p) for p in self.pin_strong_connections)
        )
        object.__setattr__(self, "net_connections", tuple(tuple(p) for p in self.net_connections))

    @cached_property
    def _pin_to_chip(self) -> Mapping[PinId, ChipId]:
        return MappingProxyType(
            {pin_id: chip.chip_id for chip in self.chip_map.values() for pin_id in chip.pins}
        )

    @cached_property
    def _pin_to_nets(self) -> Mapping[PinId, tuple[NetId, ...]]:
        index: dict[PinId, list[NetId]] = {}
        for pin_id, net_id in self.net_connections:
            nets = index.setdefault(pin_id, [])
            if net_id not in nets:
                nets.append(net_id)
        return MappingProxyType({k: tuple(v) for k, v in index.items()})

    @cached_property
    def _net_to_pins(self) -> Mapping[NetId, tuple[PinId, ...]]:
        index: dict[NetId, list[PinId]] = {}
        for pin_id, net_id in self.net_connections:
            pins = index.setdefault(net_id, [])
            if pin_id not in pins:
                pins.append(pin_id)
        return MappingProxyType({k: tuple(v) for k, v in index.items()})

    def chip_for_pin(self, pin_id: PinId) -> ChipId | None:
        """Return the id of the chip owning ``pin_id``, if any."""
        return self._pin_to_chip.get(pin_id)

    def nets_for_pin(self, pin_id: PinId) -> tuple[NetId, ...]:
        """Return the nets ``pin_id`` is connected to."""
        return self._pin_to_nets.get(pin_id, ())

    def pins_on_net(self, net_id: NetId) -> tuple[PinId, ...]:
        """Return the pins connected to ``net_id``."""
        return self._net_to_pins.get(net_id, ())

    def subproblem(self, chip_ids: Iterable[ChipId]) -> InputProblem:
        """Restrict the problem to ``chip_ids``, keeping only their pins and connections."""
        keep = [cid for cid in chip_ids if cid in self.chip_map]
        chips = {cid: self.chip_map[cid] for cid in keep}
        pins = {
            pin_id: self.chip_pin_map[pin_id]
            for chip in chips.values()
            for pin_id in chip.pins
            if pin_id in self.chip_pin_map
        }
        strong = tuple((a, b) for a, b in self.pin_strong_connections if a in pins and b in pins)
        net_conns = tuple((p, n) for p, n in self.net_connections if p in pins)
        nets = {n: self.net_map[n] for _, n in net_conns if n in self.net_map}
        return InputProblem(
            chip_map=chips,
            chip_pin_map=pins,
            net_map=nets,
            pin_strong_connections=strong,
            net_connections=net_conns,
            chip_gap=self.chip_gap,
            partition_gap=self.partition_gap,
            decoupling_caps_gap=self.decoupling_caps_gap,
        )


@dataclass(frozen=True)
class Placement:
    """Centre position and counter-clockwise rotation of a placed chip."""

    x: float
    y: float
    ccw_rotation_degrees: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "ccw_rotation_degrees": self.ccw_rotation_degrees}


@dataclass
class OutputLayout:
    """Final (or partial) chip placements keyed by chip id."""

    chip_placements: dict[ChipId, Placement] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.chip_placements)

    def translated(self, dx: float, dy: float) -> OutputLayout:
        """Return a copy with every placement shifted by ``(dx, dy)``."""
        return OutputLayout(
            {
                chip_id: Placement(p.x + dx, p.y + dy, p.ccw_rotation_degrees)
                for chip_id, p in self.chip_placements.items()
            }
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "chip_placements": {
                chip_id: placement.to_dict() for chip_id, placement in self.chip_placements.items()
            }
        }
