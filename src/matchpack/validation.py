"""Rotation-aware overlap detection for completed layouts.

Each placed chip is enclosed in an axis-aligned bounding box (AABB) derived
from its footprint, centre and counter-clockwise rotation. For a rectangle
with half extents ``(hw, hh)`` rotated by ``theta``::

    rotated_hw = hw * |cos(theta)| + hh * |sin(theta)|
    rotated_hh = hw * |sin(theta)| + hh * |cos(theta)|

This over-approximates the rotated rectangle for angles that are not
multiples of 90 degrees. Two boxes that only share an edge do not overlap.

Complexity is O(N^2) pairwise, which is acceptable for schematic-sized
problems. Validation is advisory: callers decide what to do with the report.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .types import Chip, ChipId, OutputLayout, Placement, Point

__all__ = [
    "Bounds",
    "ChipOverlap",
    "get_rotated_half_extents",
    "get_rotated_bounds",
    "calculate_overlap_area",
    "check_for_overlaps",
]


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned bounding box."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Point:
        return Point((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)

    def expanded(self, margin: float) -> Bounds:
        """Grow the box by ``margin`` on every side."""
        return Bounds(
            self.min_x - margin,
            self.max_x + margin,
            self.min_y - margin,
            self.max_y + margin,
        )

    def union(self, other: Bounds) -> Bounds:
        return Bounds(
            min(self.min_x, other.min_x),
            max(self.max_x, other.max_x),
            min(self.min_y, other.min_y),
            max(self.max_y, other.max_y),
        )


@dataclass(frozen=True)
class ChipOverlap:
    """A pair of chips whose rotated bounding boxes intersect.

    Attributes:
        chip1: Chip that comes first in layout order
        chip2: Chip that comes second in layout order
        overlap_area: Intersection area of the two boxes (always > 0)
    """

    chip1: ChipId
    chip2: ChipId
    overlap_area: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"chip1": self.chip1, "chip2": self.chip2, "overlap_area": self.overlap_area}


def get_rotated_half_extents(
    half_width: float, half_height: float, ccw_rotation_degrees: float
) -> tuple[float, float]:
    """Half extents of the AABB enclosing a rotated rectangle.

    At 0 and 180 degrees the extents are unchanged; at 90 and 270 degrees
    width and height swap.
    """
    rad = math.radians(ccw_rotation_degrees)
    cos = abs(math.cos(rad))
    sin = abs(math.sin(rad))
    return (
        half_width * cos + half_height * sin,
        half_width * sin + half_height * cos,
    )


def get_rotated_bounds(placement: Placement, size: Point) -> Bounds:
    """Compute the AABB of a chip of ``size`` placed at ``placement``."""
    rotated_hw, rotated_hh = get_rotated_half_extents(
        size.x / 2, size.y / 2, placement.ccw_rotation_degrees
    )
    return Bounds(
        min_x=placement.x - rotated_hw,
        max_x=placement.x + rotated_hw,
        min_y=placement.y - rotated_hh,
        max_y=placement.y + rotated_hh,
    )


def calculate_overlap_area(bounds1: Bounds, bounds2: Bounds) -> float:
    """Intersection area of two AABBs; zero when they are disjoint or only touch."""
    if (
        bounds1.max_x <= bounds2.min_x
        or bounds1.min_x >= bounds2.max_x
        or bounds1.max_y <= bounds2.min_y
        or bounds1.min_y >= bounds2.max_y
    ):
        return 0.0

    overlap_width = min(bounds1.max_x, bounds2.max_x) - max(bounds1.min_x, bounds2.min_x)
    overlap_height = min(bounds1.max_y, bounds2.max_y) - max(bounds1.min_y, bounds2.min_y)
    return overlap_width * overlap_height


def _rotated_boxes(
    placements: list[Placement], sizes: list[Point]
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
    """Vectorised :func:`get_rotated_bounds` returning ``(min_x, max_x, min_y, max_y)`` arrays."""
    xs = np.array([p.x for p in placements], dtype=np.float64)
    ys = np.array([p.y for p in placements], dtype=np.float64)
    rad = np.deg2rad(np.array([p.ccw_rotation_degrees for p in placements], dtype=np.float64))
    half_w = np.array([s.x / 2 for s in sizes], dtype=np.float64)
    half_h = np.array([s.y / 2 for s in sizes], dtype=np.float64)

    cos = np.abs(np.cos(rad))
    sin = np.abs(np.sin(rad))
    rotated_hw = half_w * cos + half_h * sin
    rotated_hh = half_w * sin + half_h * cos

    return xs - rotated_hw, xs + rotated_hw, ys - rotated_hh, ys + rotated_hh


def check_for_overlaps(layout: OutputLayout, chip_map: Mapping[ChipId, Chip]) -> list[ChipOverlap]:
    """Find every pair of placed chips whose rotated bounding boxes overlap.

    Each violating pair is reported once, as ``(earlier, later)`` in layout
    insertion order, and only when the overlap area is strictly positive.
    Chips that are placed but missing from ``chip_map`` are ignored.

    Args:
        layout: Layout to check
        chip_map: Chip footprints by id

    Returns:
        List of :class:`ChipOverlap` records, in canonical pair order.
    """
    chip_ids = [chip_id for chip_id in layout.chip_placements if chip_id in chip_map]
    n = len(chip_ids)
    if n < 2:
        return []

    placements = [layout.chip_placements[chip_id] for chip_id in chip_ids]
    sizes = [chip_map[chip_id].size for chip_id in chip_ids]
    min_x, max_x, min_y, max_y = _rotated_boxes(placements, sizes)

    # Pairwise intersection extents; non-positive means disjoint or touching
    x_overlap = np.minimum(max_x[:, None], max_x[None, :]) - np.maximum(
        min_x[:, None], min_x[None, :]
    )
    y_overlap = np.minimum(max_y[:, None], max_y[None, :]) - np.maximum(
        min_y[:, None], min_y[None, :]
    )
    areas = np.where((x_overlap > 0) & (y_overlap > 0), x_overlap * y_overlap, 0.0)
    areas = np.triu(areas, k=1)

    overlaps: list[ChipOverlap] = []
    for i, j in np.argwhere(areas > 0):
        overlaps.append(
            ChipOverlap(
                chip1=chip_ids[int(i)],
                chip2=chip_ids[int(j)],
                overlap_area=float(areas[i, j]),
            )
        )
    return overlaps
