"""Projection of logical canvas geometry into export target units."""
from __future__ import annotations

from dataclasses import dataclass

from .schemas import Position, Size

LOGICAL_CANVAS_WIDTH = 800.0
LOGICAL_CANVAS_HEIGHT = 450.0

# Slide deck layout, in inches (16:9).
SLIDE_WIDTH_IN = 10.0
SLIDE_HEIGHT_IN = 5.625
SLIDE_CONTENT_TOP_IN = 1.0
SLIDE_CONTENT_HEIGHT_IN = 5.6


@dataclass(frozen=True, slots=True)
class ScaleDescriptor:
    """Drawing area of an export target and where its origin sits."""

    width: float
    height: float
    offset_x: float = 0.0
    offset_y: float = 0.0
    unit: str = "%"


@dataclass(frozen=True, slots=True)
class Geometry:
    x: float
    y: float
    width: float
    height: float
    unit: str


PERCENT_TARGET = ScaleDescriptor(width=100.0, height=100.0, unit="%")
SLIDE_CONTENT_TARGET = ScaleDescriptor(
    width=SLIDE_WIDTH_IN,
    height=SLIDE_CONTENT_HEIGHT_IN,
    offset_y=SLIDE_CONTENT_TOP_IN,
    unit="in",
)


def map_geometry(position: Position, size: Size, target: ScaleDescriptor) -> Geometry:
    return Geometry(
        x=position.x / LOGICAL_CANVAS_WIDTH * target.width + target.offset_x,
        y=position.y / LOGICAL_CANVAS_HEIGHT * target.height + target.offset_y,
        width=size.width / LOGICAL_CANVAS_WIDTH * target.width,
        height=size.height / LOGICAL_CANVAS_HEIGHT * target.height,
        unit=target.unit,
    )


def canvas_aspect_ratio() -> float:
    """Height over width of the logical canvas."""

    return LOGICAL_CANVAS_HEIGHT / LOGICAL_CANVAS_WIDTH
