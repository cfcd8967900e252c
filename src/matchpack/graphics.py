"""Structured debug graphics produced by solvers.

Solvers describe their state as a :class:`GraphicsObject`: plain lists of
points, rectangles, lines, circles and text labels. Nothing here renders;
viewers consume :meth:`GraphicsObject.to_dict` output. Every primitive has an
optional ``step`` tag so a viewer can show or hide the layers contributed by
individual pipeline phases.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from typing import Any

from .types import Point

__all__ = [
    "GraphicsPoint",
    "GraphicsRect",
    "GraphicsLine",
    "GraphicsCircle",
    "GraphicsText",
    "GraphicsObject",
    "merge_graphics",
]


@dataclass
class GraphicsPoint:
    x: float
    y: float
    label: str | None = None
    color: str | None = None
    step: int | None = None


@dataclass
class GraphicsRect:
    center: Point
    width: float
    height: float
    fill: str | None = None
    stroke: str | None = None
    label: str | None = None
    step: int | None = None


@dataclass
class GraphicsLine:
    points: list[Point]
    stroke_color: str | None = None
    stroke_width: float | None = None
    label: str | None = None
    step: int | None = None


@dataclass
class GraphicsCircle:
    center: Point
    radius: float
    fill: str | None = None
    label: str | None = None
    step: int | None = None


@dataclass
class GraphicsText:
    x: float
    y: float
    text: str
    color: str | None = None
    font_size: float | None = None
    step: int | None = None


@dataclass
class GraphicsObject:
    """A bag of debug primitives.

    Attributes:
        points: Point markers (pins, anchors)
        rects: Rectangles (chip bodies, partition outlines)
        lines: Polylines (connections)
        circles: Circles
        texts: Free-standing labels
        title: Optional caption for the whole view
    """

    points: list[GraphicsPoint] = field(default_factory=list)
    rects: list[GraphicsRect] = field(default_factory=list)
    lines: list[GraphicsLine] = field(default_factory=list)
    circles: list[GraphicsCircle] = field(default_factory=list)
    texts: list[GraphicsText] = field(default_factory=list)
    title: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.points or self.rects or self.lines or self.circles or self.texts)

    def primitives(self) -> Iterable[Any]:
        """Iterate over every primitive regardless of kind."""
        yield from self.points
        yield from self.rects
        yield from self.lines
        yield from self.circles
        yield from self.texts

    def tag_step(self, step: int) -> GraphicsObject:
        """Set ``step`` on every primitive in place and return ``self``."""
        for primitive in self.primitives():
            primitive.step = step
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "title": self.title,
            "points": [asdict(p) for p in self.points],
            "rects": [asdict(r) for r in self.rects],
            "lines": [asdict(line) for line in self.lines],
            "circles": [asdict(c) for c in self.circles],
            "texts": [asdict(t) for t in self.texts],
        }


def merge_graphics(graphics: Iterable[GraphicsObject], title: str | None = None) -> GraphicsObject:
    """Concatenate the primitives of several graphics objects, preserving order."""
    merged = GraphicsObject(title=title)
    for g in graphics:
        merged.points.extend(g.points)
        merged.rects.extend(g.rects)
        merged.lines.extend(g.lines)
        merged.circles.extend(g.circles)
        merged.texts.extend(g.texts)
    return merged
