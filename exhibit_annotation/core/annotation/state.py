"""
State management for annotation sessions.

Contains data classes representing shapes, the selection and the
in-progress drawing session.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union
import numpy as np

Point = Tuple[float, float]


class ShapeType(Enum):
    """Shape variants; the value is the export type tag."""

    RECT = "rect"
    CIRCLE = "circle"
    POLYGON = "poly"


class Tool(Enum):
    """Active drawing tool."""

    RECT = "rect"
    CIRCLE = "circle"
    POLYGON = "poly"

    @classmethod
    def parse(cls, value: Union[str, "Tool"]) -> "Tool":
        if isinstance(value, Tool):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown tool: {value!r}") from None


@dataclass
class RectGeometry:
    """Axis-aligned box, optionally rotated (degrees) about its top-left corner."""

    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0

    def to_dict(self):
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "rotation": self.rotation,
        }


@dataclass
class CircleGeometry:
    cx: float
    cy: float
    r: float

    def to_dict(self):
        return {"cx": self.cx, "cy": self.cy, "r": self.r}


@dataclass
class PolygonGeometry:
    """Polygon vertices as an (N, 2) float array."""

    points: np.ndarray

    def __post_init__(self):
        self.points = np.asarray(self.points, dtype=np.float64).reshape(-1, 2)

    @property
    def num_vertices(self) -> int:
        return len(self.points)

    def flat_points(self) -> List[float]:
        """Vertices as ``[x1, y1, x2, y2, ...]``."""
        return [float(v) for v in self.points.reshape(-1)]

    def to_dict(self):
        return {"points": self.flat_points()}

    def __eq__(self, other):
        if not isinstance(other, PolygonGeometry):
            return NotImplemented
        return np.array_equal(self.points, other.points)


Geometry = Union[RectGeometry, CircleGeometry, PolygonGeometry]


@dataclass
class Shape:
    """A committed annotation."""

    id: int
    type: ShapeType
    geometry: Geometry
    name: str = ""
    booth_no: str = ""

    def to_dict(self):
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "booth_no": self.booth_no,
            "type": self.type.value,
            "geometry": self.geometry.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict):
        """Create from dictionary."""
        shape_type = ShapeType(data["type"])
        geo = data["geometry"]
        if shape_type is ShapeType.RECT:
            geometry = RectGeometry(
                x=geo["x"],
                y=geo["y"],
                width=geo["width"],
                height=geo["height"],
                rotation=geo.get("rotation", 0.0),
            )
        elif shape_type is ShapeType.CIRCLE:
            geometry = CircleGeometry(cx=geo["cx"], cy=geo["cy"], r=geo["r"])
        else:
            geometry = PolygonGeometry(geo["points"])
        return cls(
            id=data["id"],
            type=shape_type,
            geometry=geometry,
            name=data.get("name", ""),
            booth_no=data.get("booth_no", ""),
        )


@dataclass
class Transform:
    """
    Live state of the transformer attached to the selected shape.

    ``width``/``height`` are set instead of a scale factor when the stored
    size on that axis is zero.
    """

    scale_x: float = 1.0
    scale_y: float = 1.0
    rotation: float = 0.0
    x: float = 0.0
    y: float = 0.0
    width: Optional[float] = None
    height: Optional[float] = None


@dataclass
class Selection:
    shape_id: int
    transform: Transform = field(default_factory=Transform)


@dataclass
class Handle:
    """
    Draggable control point of a selected shape.

    ``kind`` is ``"anchor"`` (resize), ``"rotater"`` or ``"vertex"``;
    ``name`` identifies the anchor position and ``index`` the vertex.
    """

    kind: str
    x: float
    y: float
    name: str = ""
    index: Optional[int] = None


@dataclass
class DrawingSession:
    """
    In-progress shape, not part of the annotation set.

    Rect/circle sessions keep the anchor point and the live end point;
    polygon sessions collect vertices.
    """

    tool: Tool
    start: Optional[Point] = None
    end: Optional[Point] = None
    radius: float = 0.0
    points: List[Point] = field(default_factory=list)

    def preview_geometry(self) -> Optional[Geometry]:
        """Geometry to draw as live preview."""
        from .geometry import normalize_rect

        if self.tool is Tool.RECT and self.start is not None:
            return normalize_rect(*self.start, *self.end)
        if self.tool is Tool.CIRCLE and self.start is not None:
            return CircleGeometry(cx=self.start[0], cy=self.start[1], r=self.radius)
        if self.tool is Tool.POLYGON and self.points:
            return PolygonGeometry(self.points)
        return None
