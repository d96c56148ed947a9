"""Area-of-effect geometry for effect targeting.

Pure functions that decide whether map positions fall inside an effect's
footprint and compute the footprint's axis-aligned bounding box. Shapes are
immutable values in map coordinates; angles are in degrees with 0 pointing
along +x and 90 along +y.

The hit-tests are implemented once, vectorised over a VectorArray, and the
single-point form delegates to the vectorised one so both always agree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

import numpy as np
from numpy.typing import NDArray

from .data import ShapeType, Vector2, VectorArray, coerce_position


@dataclass(frozen=True)
class CircleArea:
    """Circle defined by its center and radius."""
    center: Vector2
    radius: float

    shape_type = ShapeType.CIRCLE

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.shape_type.value, "center": self.center.to_dict(), "radius": self.radius}


@dataclass(frozen=True)
class SquareArea:
    """Axis-aligned square defined by its center and side length."""
    center: Vector2
    size: float

    shape_type = ShapeType.SQUARE

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.shape_type.value, "center": self.center.to_dict(), "size": self.size}


@dataclass(frozen=True)
class ConeArea:
    """Cone from an origin, facing a direction, with a total opening angle."""
    origin: Vector2
    direction: float
    angle: float
    range: float

    shape_type = ShapeType.CONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.shape_type.value,
            "origin": self.origin.to_dict(),
            "direction": self.direction,
            "angle": self.angle,
            "range": self.range,
        }


@dataclass(frozen=True)
class LineArea:
    """Segment between two points, thickened to a width."""
    start: Vector2
    end: Vector2
    width: float

    shape_type = ShapeType.LINE

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.shape_type.value,
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "width": self.width,
        }


AreaShape = Union[CircleArea, SquareArea, ConeArea, LineArea]


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding rectangle."""
    min: Vector2
    max: Vector2

    @property
    def width(self) -> float:
        return self.max.x - self.min.x

    @property
    def height(self) -> float:
        return self.max.y - self.min.y

    def contains(self, point: Vector2) -> bool:
        return self.min.x <= point.x <= self.max.x and self.min.y <= point.y <= self.max.y


def contains_points(shape: AreaShape, points: VectorArray) -> NDArray[np.bool_]:
    """Test many positions against a shape at once.

    Args:
        shape: The area footprint
        points: Positions to test

    Returns:
        Boolean array, True where the position is inside the shape
    """
    data = points.data
    if len(data) == 0:
        return np.zeros(0, dtype=bool)

    if isinstance(shape, CircleArea):
        return points.distance_to_point(shape.center) <= shape.radius

    elif isinstance(shape, SquareArea):
        half = shape.size / 2.0
        offsets = np.abs(data - shape.center.to_numpy())
        return (offsets[:, 0] <= half) & (offsets[:, 1] <= half)

    elif isinstance(shape, ConeArea):
        diff = data - shape.origin.to_numpy()
        distances = np.hypot(diff[:, 0], diff[:, 1])
        bearings = np.degrees(np.arctan2(diff[:, 1], diff[:, 0]))
        # Fold the difference into [0, 180]
        delta = np.abs((bearings - shape.direction + 180.0) % 360.0 - 180.0)
        in_arc = delta <= shape.angle / 2.0
        # The origin has no bearing; it is inside any cone
        return (distances <= shape.range) & (in_arc | (distances == 0.0))

    elif isinstance(shape, LineArea):
        start = shape.start.to_numpy()
        segment = shape.end.to_numpy() - start
        length_sq = float(np.dot(segment, segment))
        rel = data - start
        if length_sq == 0.0:
            t = np.zeros(len(data))
        else:
            t = np.clip(rel @ segment / length_sq, 0.0, 1.0)
        closest = start + np.outer(t, segment)
        gap = data - closest
        return np.hypot(gap[:, 0], gap[:, 1]) <= shape.width / 2.0

    raise TypeError(f"Unsupported area shape: {type(shape).__name__}")


def contains_point(shape: AreaShape, point: Vector2) -> bool:
    """Check whether a single position lies inside a shape."""
    return bool(contains_points(shape, VectorArray([point]))[0])


def bounds_of(shape: AreaShape) -> BoundingBox:
    """Axis-aligned bounding box of a shape.

    Exact for circles, squares and lines. Cones get the conservative square
    around the origin with the cone's range as half-extent.
    """
    if isinstance(shape, CircleArea):
        r = shape.radius
        return BoundingBox(shape.center - Vector2(r, r), shape.center + Vector2(r, r))

    elif isinstance(shape, SquareArea):
        h = shape.size / 2.0
        return BoundingBox(shape.center - Vector2(h, h), shape.center + Vector2(h, h))

    elif isinstance(shape, ConeArea):
        r = shape.range
        return BoundingBox(shape.origin - Vector2(r, r), shape.origin + Vector2(r, r))

    elif isinstance(shape, LineArea):
        h = shape.width / 2.0
        return BoundingBox(
            Vector2(min(shape.start.x, shape.end.x) - h, min(shape.start.y, shape.end.y) - h),
            Vector2(max(shape.start.x, shape.end.x) + h, max(shape.start.y, shape.end.y) + h),
        )

    raise TypeError(f"Unsupported area shape: {type(shape).__name__}")


def shape_from_dict(data: dict[str, Any]) -> AreaShape:
    """Build an area shape from its plain-dict form.

    Raises:
        ValueError: If the shape type is unknown or a field is missing
    """
    try:
        shape_type = ShapeType(str(data["type"]).lower())
        if shape_type == ShapeType.CIRCLE:
            return CircleArea(coerce_position(data["center"]), float(data["radius"]))
        if shape_type == ShapeType.SQUARE:
            return SquareArea(coerce_position(data["center"]), float(data["size"]))
        if shape_type == ShapeType.CONE:
            return ConeArea(
                coerce_position(data["origin"]),
                float(data.get("direction", 0.0)),
                float(data["angle"]),
                float(data["range"]),
            )
        return LineArea(
            coerce_position(data["start"]),
            coerce_position(data["end"]),
            float(data["width"]),
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid area shape data: {data!r}") from e
