"""
Reading and writing problem and layout files.

Problems and layouts are JSON or YAML documents, chosen by file suffix
(``.yaml``/``.yml`` for YAML, anything else is JSON). Documents are validated
with pydantic models before being converted to the immutable
:class:`~matchpack.types.InputProblem`.

Problem document::

    chips:
      - chip_id: U1
        size: {x: 4, y: 2}
        pins: [U1.1, U1.2]
        available_rotations: [0, 90]
    pins:
      - {pin_id: U1.1, offset: {x: -2, y: 0}, side: x-}
    nets:
      - {net_id: VCC, is_positive_voltage_source: true}
    strong_connections: [[U1.1, C1.1]]
    net_connections: [[U1.1, VCC]]
    chip_gap: 0.2
    partition_gap: 2.0
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from .exceptions import ProblemFormatError
from .types import Chip, ChipPin, InputProblem, Net, OutputLayout, Placement, Point

__all__ = [
    "ProblemDocument",
    "LayoutDocument",
    "load_problem",
    "save_problem",
    "problem_from_dict",
    "problem_to_dict",
    "load_layout",
    "save_layout",
    "layout_from_dict",
]

YAML_SUFFIXES = {".yaml", ".yml"}


class PointModel(BaseModel):
    x: float
    y: float


class SizeModel(BaseModel):
    """Chip footprint; both dimensions finite and non-negative."""

    x: float = Field(ge=0, allow_inf_nan=False)
    y: float = Field(ge=0, allow_inf_nan=False)


class ChipModel(BaseModel):
    """Chip entry."""

    chip_id: str
    size: SizeModel
    pins: list[str] = Field(default_factory=list)
    available_rotations: list[float] = Field(default_factory=lambda: [0.0])


class PinModel(BaseModel):
    """Pin entry; ``offset`` is relative to the chip centre."""

    pin_id: str
    offset: PointModel = Field(default_factory=lambda: PointModel(x=0.0, y=0.0))
    side: Literal["x-", "x+", "y-", "y+"] = "x-"


class NetModel(BaseModel):
    net_id: str
    is_ground: bool = False
    is_positive_voltage_source: bool = False


class ProblemDocument(BaseModel):
    """Top-level problem document."""

    chips: list[ChipModel] = Field(default_factory=list)
    pins: list[PinModel] = Field(default_factory=list)
    nets: list[NetModel] = Field(default_factory=list)
    strong_connections: list[tuple[str, str]] = Field(default_factory=list)
    net_connections: list[tuple[str, str]] = Field(default_factory=list)
    chip_gap: float = Field(default=0.2, ge=0)
    partition_gap: float = Field(default=2.0, ge=0)
    decoupling_caps_gap: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_references(self) -> ProblemDocument:
        chip_ids = [c.chip_id for c in self.chips]
        if len(set(chip_ids)) != len(chip_ids):
            raise ValueError("duplicate chip_id")

        owners: dict[str, str] = {}
        for chip in self.chips:
            for pin_id in chip.pins:
                if pin_id in owners:
                    raise ValueError(f"pin {pin_id} belongs to both {owners[pin_id]} and {chip.chip_id}")
                owners[pin_id] = chip.chip_id

        net_ids = {n.net_id for n in self.nets}
        for a, b in self.strong_connections:
            for pin_id in (a, b):
                if pin_id not in owners:
                    raise ValueError(f"strong connection references unknown pin {pin_id}")
        for pin_id, net_id in self.net_connections:
            if pin_id not in owners:
                raise ValueError(f"net connection references unknown pin {pin_id}")
            if net_id not in net_ids:
                raise ValueError(f"net connection references unknown net {net_id}")
        return self


class PlacementModel(BaseModel):
    x: float
    y: float
    ccw_rotation_degrees: float = 0.0


class LayoutDocument(BaseModel):
    """Layout document as written by ``matchpack solve -o``."""

    chip_placements: dict[str, PlacementModel] = Field(default_factory=dict)


def _read_document(path: Path | str) -> dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise ProblemFormatError(f"File not found: {path}", file_path=path)

    content = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ProblemFormatError(f"Cannot parse {path.name}: {e}", file_path=path) from e

    if not isinstance(data, dict):
        raise ProblemFormatError("Document must contain a mapping", file_path=path)
    return data


def _write_document(data: dict[str, Any], path: Path | str) -> None:
    path = Path(path)
    if path.suffix.lower() in YAML_SUFFIXES:
        content = yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
    else:
        content = json.dumps(data, indent=2) + "\n"
    path.write_text(content, encoding="utf-8")


def problem_from_dict(data: dict[str, Any]) -> InputProblem:
    """Validate a problem document and build the InputProblem.

    Raises:
        ProblemFormatError: If the document does not match the problem schema
    """
    try:
        doc = ProblemDocument.model_validate(data)
    except ValidationError as e:
        raise ProblemFormatError(
            "Invalid problem document",
            context={"errors": e.error_count(), "first_error": e.errors()[0]["msg"]},
        ) from e

    # Pins listed by a chip but not described get a centred default
    pin_models = {p.pin_id: p for p in doc.pins}
    pins: dict[str, ChipPin] = {}
    for chip in doc.chips:
        for pin_id in chip.pins:
            model = pin_models.get(pin_id) or PinModel(pin_id=pin_id)
            pins[pin_id] = ChipPin(
                pin_id=pin_id,
                offset=Point(model.offset.x, model.offset.y),
                side=model.side,
            )

    return InputProblem(
        chip_map={
            c.chip_id: Chip(
                chip_id=c.chip_id,
                pins=tuple(c.pins),
                size=Point(c.size.x, c.size.y),
                available_rotations=tuple(c.available_rotations),
            )
            for c in doc.chips
        },
        chip_pin_map=pins,
        net_map={
            n.net_id: Net(
                net_id=n.net_id,
                is_ground=n.is_ground,
                is_positive_voltage_source=n.is_positive_voltage_source,
            )
            for n in doc.nets
        },
        pin_strong_connections=tuple(doc.strong_connections),
        net_connections=tuple(doc.net_connections),
        chip_gap=doc.chip_gap,
        partition_gap=doc.partition_gap,
        decoupling_caps_gap=doc.decoupling_caps_gap,
    )


def problem_to_dict(problem: InputProblem) -> dict[str, Any]:
    """Inverse of :func:`problem_from_dict`."""
    data: dict[str, Any] = {
        "chips": [
            {
                "chip_id": chip.chip_id,
                "size": {"x": chip.size.x, "y": chip.size.y},
                "pins": list(chip.pins),
                "available_rotations": list(chip.available_rotations),
            }
            for chip in problem.chip_map.values()
        ],
        "pins": [
            {
                "pin_id": pin.pin_id,
                "offset": {"x": pin.offset.x, "y": pin.offset.y},
                "side": pin.side,
            }
            for pin in problem.chip_pin_map.values()
        ],
        "nets": [
            {
                "net_id": net.net_id,
                "is_ground": net.is_ground,
                "is_positive_voltage_source": net.is_positive_voltage_source,
            }
            for net in problem.net_map.values()
        ],
        "strong_connections": [list(pair) for pair in problem.pin_strong_connections],
        "net_connections": [list(pair) for pair in problem.net_connections],
        "chip_gap": problem.chip_gap,
        "partition_gap": problem.partition_gap,
    }
    if problem.decoupling_caps_gap is not None:
        data["decoupling_caps_gap"] = problem.decoupling_caps_gap
    return data


def load_problem(path: Path | str) -> InputProblem:
    """Load a problem file.

    Raises:
        ProblemFormatError: If the file is missing, unparsable or invalid
    """
    data = _read_document(path)
    try:
        return problem_from_dict(data)
    except ProblemFormatError as e:
        raise ProblemFormatError(e.message, context=e.context, file_path=path) from e.__cause__


def save_problem(problem: InputProblem, path: Path | str) -> None:
    _write_document(problem_to_dict(problem), path)


def layout_from_dict(data: dict[str, Any]) -> OutputLayout:
    try:
        doc = LayoutDocument.model_validate(data)
    except ValidationError as e:
        raise ProblemFormatError(
            "Invalid layout document",
            context={"errors": e.error_count(), "first_error": e.errors()[0]["msg"]},
        ) from e
    return OutputLayout(
        {
            chip_id: Placement(p.x, p.y, p.ccw_rotation_degrees)
            for chip_id, p in doc.chip_placements.items()
        }
    )


def load_layout(path: Path | str) -> OutputLayout:
    """Load a layout file written by :func:`save_layout`."""
    data = _read_document(path)
    try:
        return layout_from_dict(data)
    except ProblemFormatError as e:
        raise ProblemFormatError(e.message, context=e.context, file_path=path) from e.__cause__


def save_layout(layout: OutputLayout, path: Path | str) -> None:
    _write_document(layout.to_dict(), path)
