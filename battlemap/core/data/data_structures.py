"""Spatial data structures for map coordinates.

Token and effect positions on a battle map are continuous pixel coordinates,
so both structures here store floats in (x, y) order, matching the canvas
coordinate system the editor uses.

- Vector2: a single map position with the arithmetic the engine needs
- VectorArray: numpy-backed batch of positions for vectorised hit-tests
"""

from dataclasses import dataclass
from typing import Any, Optional, Union
import math
import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class Vector2:
    """2D vector for map coordinates and positions.

    Uses (x, y) ordering like the map canvas: x grows to the right and y grows
    downward. Instances are immutable so they can be shared between snapshots,
    payloads and the object store without defensive copies.
    """
    x: float
    y: float

    def __add__(self, other: "Vector2") -> "Vector2":
        """Vector addition."""
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2") -> "Vector2":
        """Vector subtraction."""
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> "Vector2":
        """Scalar multiplication."""
        return Vector2(self.x * scalar, self.y * scalar)

    def __iter__(self):
        """Make Vector2 iterable for unpacking (x, y order)."""
        yield self.x
        yield self.y

    def __getitem__(self, key: int) -> float:
        """Enable indexed access like Vector2[0] for x, Vector2[1] for y."""
        if key == 0:
            return self.x
        elif key == 1:
            return self.y
        else:
            raise IndexError("Vector2 index out of range (must be 0 or 1)")

    def __repr__(self) -> str:
        """String representation."""
        return f"Vector2({self.x:g}, {self.y:g})"

    def distance_to(self, other: "Vector2") -> float:
        """Calculate Euclidean distance to another vector."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def magnitude(self) -> float:
        """Calculate vector magnitude (distance from origin)."""
        return math.hypot(self.x, self.y)

    def bearing_to(self, other: "Vector2") -> float:
        """Bearing from this point to another, in degrees within [0, 360).

        0 degrees points along +x and 90 degrees along +y.
        """
        angle = math.degrees(math.atan2(other.y - self.y, other.x - self.x))
        return angle % 360.0

    def lerp(self, other: "Vector2", t: float) -> "Vector2":
        """Linear interpolation towards another vector (t in [0, 1])."""
        return Vector2(
            self.x + (other.x - self.x) * t,
            self.y + (other.y - self.y) * t,
        )

    @classmethod
    def from_tuple(cls, coords: tuple[float, float]) -> "Vector2":
        """Create Vector2 from coordinate tuple (x, y order)."""
        return cls(float(coords[0]), float(coords[1]))

    def to_tuple(self) -> tuple[float, float]:
        """Convert to coordinate tuple (x, y order)."""
        return (self.x, self.y)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Vector2":
        """Create Vector2 from a {'x': .., 'y': ..} mapping."""
        try:
            return cls(float(data["x"]), float(data["y"]))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid position data: {data!r}") from e

    def to_dict(self) -> dict[str, float]:
        """Convert to a plain {'x': .., 'y': ..} mapping for persistence."""
        return {"x": self.x, "y": self.y}

    def to_numpy(self) -> NDArray[np.float64]:
        """Convert to numpy array (x, y order)."""
        return np.array([self.x, self.y], dtype=np.float64)

    @classmethod
    def from_numpy(cls, arr: NDArray[np.float64]) -> "Vector2":
        """Create Vector2 from numpy array (x, y order)."""
        if arr.shape != (2,):
            raise ValueError("Array must have shape (2,) for Vector2 conversion")
        return cls(float(arr[0]), float(arr[1]))


def coerce_position(value: Union["Vector2", dict, tuple, list, None]) -> Optional[Vector2]:
    """Accept the position spellings found in payloads and encounter files."""
    if value is None or isinstance(value, Vector2):
        return value
    if isinstance(value, dict):
        return Vector2.from_dict(value)
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return Vector2(float(value[0]), float(value[1]))
    raise ValueError(f"Cannot interpret {value!r} as a position")


class VectorArray:
    """Efficient collection of positions using numpy arrays for batch operations.

    Provides numpy-accelerated operations on collections of map positions while
    maintaining compatibility with Vector2 objects. Used by the geometry module
    to hit-test many token positions against one area shape.
    """

    def __init__(self, vectors: Optional[Union[list[Vector2], NDArray[np.float64]]] = None):
        """Initialize VectorArray from list of Vector2 objects or numpy array.

        Args:
            vectors: List of Vector2 objects or numpy array of shape (N, 2).
                    If None, creates an empty VectorArray.
        """
        if vectors is None:
            self._data = np.empty((0, 2), dtype=np.float64)
        elif isinstance(vectors, list):
            if not vectors:
                self._data = np.empty((0, 2), dtype=np.float64)
            else:
                self._data = np.array([[v.x, v.y] for v in vectors], dtype=np.float64)
        else:
            if vectors.ndim != 2 or vectors.shape[-1] != 2:
                raise ValueError("Numpy array must have shape (N, 2)")
            self._data = vectors.astype(np.float64)

    @property
    def data(self) -> NDArray[np.float64]:
        """Get the underlying numpy array (N, 2) shape."""
        return self._data

    @property
    def x_coords(self) -> NDArray[np.float64]:
        """Get all x coordinates."""
        return self._data[:, 0]

    @property
    def y_coords(self) -> NDArray[np.float64]:
        """Get all y coordinates."""
        return self._data[:, 1]

    def __len__(self) -> int:
        """Get number of vectors."""
        return len(self._data)

    def __getitem__(self, index: int) -> Vector2:
        """Get Vector2 at index."""
        if index >= len(self._data) or index < -len(self._data):
            raise IndexError("VectorArray index out of range")
        row = self._data[index]
        return Vector2(float(row[0]), float(row[1]))

    def __iter__(self):
        """Make VectorArray iterable."""
        for row in self._data:
            yield Vector2(float(row[0]), float(row[1]))

    def to_vector_list(self) -> list[Vector2]:
        """Convert to list of Vector2 objects."""
        return [Vector2(float(row[0]), float(row[1])) for row in self._data]

    def distance_to_point(self, target: Vector2) -> NDArray[np.float64]:
        """Calculate Euclidean distances from all vectors to a target point.

        Args:
            target: Target Vector2 position

        Returns:
            Array of distances from each vector to target
        """
        diff = self._data - target.to_numpy()
        return np.hypot(diff[:, 0], diff[:, 1])

    def bounds_mask(self, min_x: float, max_x: float, min_y: float, max_y: float) -> NDArray[np.bool_]:
        """Boolean mask of vectors inside rectangular bounds (inclusive)."""
        return ((self._data[:, 0] >= min_x) & (self._data[:, 0] <= max_x) &
                (self._data[:, 1] >= min_y) & (self._data[:, 1] <= max_y))

    def filter_by_bounds(self, min_x: float, max_x: float, min_y: float, max_y: float) -> "VectorArray":
        """Filter vectors by rectangular bounds.

        Args:
            min_x, max_x: X coordinate bounds (inclusive)
            min_y, max_y: Y coordinate bounds (inclusive)

        Returns:
            New VectorArray containing vectors within bounds
        """
        return VectorArray(self._data[self.bounds_mask(min_x, max_x, min_y, max_y)])
