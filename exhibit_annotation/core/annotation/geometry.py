"""
Pure geometry functions for annotation shapes.

These functions have no side effects and can be tested in isolation.
"""

import math
from typing import Iterable, List, Optional, Tuple

import cv2
import numpy as np

from .state import (
    CircleGeometry,
    Geometry,
    Handle,
    PolygonGeometry,
    RectGeometry,
    Shape,
    Transform,
)

ANCHOR_NAMES = (
    "top-left",
    "top-center",
    "top-right",
    "middle-left",
    "middle-right",
    "bottom-left",
    "bottom-center",
    "bottom-right",
)

ROTATER_OFFSET = 30.0


class InvalidIndex(IndexError):
    """Raised when a vertex index does not address an existing vertex."""


def normalize_rect(x1: float, y1: float, x2: float, y2: float) -> RectGeometry:
    """
    Build a rectangle from two opposite corners.

    Args:
        x1, y1: Drag start
        x2, y2: Drag end

    Returns:
        Rectangle with top-left origin and non-negative size
    """
    return RectGeometry(
        x=min(x1, x2),
        y=min(y1, y2),
        width=abs(x2 - x1),
        height=abs(y2 - y1),
    )


def circle_from_center_and_point(cx: float, cy: float, px: float, py: float) -> float:
    """Radius of the circle centered at (cx, cy) passing through (px, py)."""
    return math.hypot(px - cx, py - cy)


def translate_polygon(points: np.ndarray, dx: float, dy: float) -> np.ndarray:
    """Shift every vertex by (dx, dy)."""
    return np.asarray(points, dtype=np.float64) + np.array([dx, dy], dtype=np.float64)


def set_vertex(points: np.ndarray, index: int, x: float, y: float) -> np.ndarray:
    """
    Replace one vertex.

    Raises:
        InvalidIndex: If index is outside [0, number of vertices)
    """
    points = np.array(points, dtype=np.float64)
    if not 0 <= index < len(points):
        raise InvalidIndex(
            f"Vertex index {index} out of range for {len(points)} vertices"
        )
    points[index] = (x, y)
    return points


def _rotate(x: float, y: float, degrees: float) -> Tuple[float, float]:
    theta = math.radians(degrees)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    return x * cos_t - y * sin_t, x * sin_t + y * cos_t


def apply_affine_to_rect(
    rect: RectGeometry,
    scale_x: float,
    scale_y: float,
    translated_x: float,
    translated_y: float,
    rotation: Optional[float] = None,
    width: Optional[float] = None,
    height: Optional[float] = None,
) -> RectGeometry:
    """
    Rebuild a rectangle from a finished transform.

    Size is multiplied by the scale factors and the origin moves to the
    translated position. A negative scale (flip) is folded back into a
    positive size by moving the origin to the opposite edge. An explicit
    width or height replaces the scaled one; a zero-size axis can only
    grow that way.
    """
    if rotation is None:
        rotation = rect.rotation
    if width is None:
        width = rect.width * scale_x
    if height is None:
        height = rect.height * scale_y
    x, y = translated_x, translated_y
    if width < 0:
        ox, oy = _rotate(width, 0.0, rotation)
        x, y = x + ox, y + oy
        width = -width
    if height < 0:
        ox, oy = _rotate(0.0, height, rotation)
        x, y = x + ox, y + oy
        height = -height
    return RectGeometry(x=x, y=y, width=width, height=height, rotation=rotation)


def apply_affine_to_circle(
    circle: CircleGeometry,
    scale_x: float,
    scale_y: float,
    translated_x: float,
    translated_y: float,
    width: Optional[float] = None,
    height: Optional[float] = None,
) -> CircleGeometry:
    """
    Rebuild a circle from a finished transform; the scale is averaged.

    An explicit bounding box width or height replaces the scaled diameter
    on that axis.
    """
    diameter_x = 2 * circle.r * scale_x if width is None else width
    diameter_y = 2 * circle.r * scale_y if height is None else height
    r = abs((diameter_x + diameter_y) / 4)
    return CircleGeometry(cx=translated_x, cy=translated_y, r=r)


def shape_position(geometry: Geometry) -> Tuple[float, float]:
    """Origin used by the transformer: top-left for rects, center for circles."""
    if isinstance(geometry, RectGeometry):
        return geometry.x, geometry.y
    if isinstance(geometry, CircleGeometry):
        return geometry.cx, geometry.cy
    first = geometry.points[0]
    return float(first[0]), float(first[1])


def rect_corners(rect: RectGeometry) -> np.ndarray:
    """Corners (tl, tr, br, bl) of a possibly rotated rectangle, shape (4, 2)."""
    local = [(0.0, 0.0), (rect.width, 0.0), (rect.width, rect.height), (0.0, rect.height)]
    corners = []
    for lx, ly in local:
        rx, ry = _rotate(lx, ly, rect.rotation)
        corners.append((rect.x + rx, rect.y + ry))
    return np.array(corners, dtype=np.float64)


def contains_point(geometry: Geometry, x: float, y: float, tolerance: float = 0.0) -> bool:
    """Whether (x, y) lies inside or on the outline of the geometry."""
    if isinstance(geometry, CircleGeometry):
        return math.hypot(x - geometry.cx, y - geometry.cy) <= geometry.r + tolerance

    if isinstance(geometry, RectGeometry):
        contour = rect_corners(geometry)
    else:
        contour = geometry.points
    contour = contour.astype(np.float32).reshape(-1, 1, 2)
    distance = cv2.pointPolygonTest(contour, (float(x), float(y)), True)
    return distance >= -tolerance


def hit_test(
    shapes: Iterable[Shape], x: float, y: float, tolerance: float = 0.0
) -> Optional[int]:
    """
    Find the topmost shape under a point.

    Shapes later in the sequence are drawn on top, so they win.

    Returns:
        Shape id, or None if nothing is hit
    """
    hit = None
    for shape in shapes:
        if contains_point(shape.geometry, x, y, tolerance):
            hit = shape.id
    return hit


def _box_handles(
    origin: Tuple[float, float],
    left: float,
    top: float,
    width: float,
    height: float,
    rotation: float,
) -> List[Handle]:
    offsets = {
        "top-left": (0.0, 0.0),
        "top-center": (width / 2, 0.0),
        "top-right": (width, 0.0),
        "middle-left": (0.0, height / 2),
        "middle-right": (width, height / 2),
        "bottom-left": (0.0, height),
        "bottom-center": (width / 2, height),
        "bottom-right": (width, height),
    }
    handles = []
    for name in ANCHOR_NAMES:
        lx, ly = offsets[name]
        rx, ry = _rotate(left + lx, top + ly, rotation)
        handles.append(Handle(kind="anchor", x=origin[0] + rx, y=origin[1] + ry, name=name))
    rx, ry = _rotate(left + width / 2, top - ROTATER_OFFSET, rotation)
    handles.append(Handle(kind="rotater", x=origin[0] + rx, y=origin[1] + ry, name="rotater"))
    return handles


def handles_for(shape: Shape) -> List[Handle]:
    """
    Compute the control points of a selected shape.

    Rectangles and circles get the eight resize anchors plus a rotater;
    polygons get one vertex handle per vertex.
    """
    geometry = shape.geometry
    if isinstance(geometry, RectGeometry):
        return _box_handles(
            (geometry.x, geometry.y),
            0.0,
            0.0,
            geometry.width,
            geometry.height,
            geometry.rotation,
        )
    if isinstance(geometry, CircleGeometry):
        r = geometry.r
        return _box_handles((geometry.cx, geometry.cy), -r, -r, 2 * r, 2 * r, 0.0)
    return [
        Handle(kind="vertex", x=float(px), y=float(py), name="vertex", index=i)
        for i, (px, py) in enumerate(geometry.points)
    ]


def find_handle(
    handles: Iterable[Handle], x: float, y: float, radius: float
) -> Optional[Handle]:
    """Return the last handle within ``radius`` of (x, y)."""
    found = None
    for handle in handles:
        if math.hypot(handle.x - x, handle.y - y) <= radius:
            found = handle
    return found


def _resize(new_size: float, old_size: float) -> Tuple[float, Optional[float]]:
    """Scale factor for an axis, or (1, new_size) when the axis has no size."""
    if old_size == 0:
        return 1.0, new_size
    return new_size / old_size, None


def transform_from_anchor(geometry: Geometry, anchor: str, px: float, py: float) -> Transform:
    """
    Transform produced by dragging a resize anchor to (px, py).

    The edges named by the anchor follow the pointer, the opposite edges
    stay put.
    """
    if isinstance(geometry, RectGeometry):
        rotation = geometry.rotation
        lx, ly = _rotate(px - geometry.x, py - geometry.y, -rotation)
        left, top, right, bottom = 0.0, 0.0, geometry.width, geometry.height
    elif isinstance(geometry, CircleGeometry):
        rotation = 0.0
        lx, ly = px - geometry.cx, py - geometry.cy
        r = geometry.r
        left, top, right, bottom = -r, -r, r, r
    else:
        raise ValueError("Polygons are edited through their vertices")

    if "left" in anchor:
        left = lx
    if "right" in anchor:
        right = lx
    if anchor.startswith("top"):
        top = ly
    if anchor.startswith("bottom"):
        bottom = ly

    if isinstance(geometry, RectGeometry):
        scale_x, width = _resize(right - left, geometry.width)
        scale_y, height = _resize(bottom - top, geometry.height)
        ox, oy = _rotate(left, top, rotation)
        return Transform(
            scale_x=scale_x,
            scale_y=scale_y,
            rotation=rotation,
            x=geometry.x + ox,
            y=geometry.y + oy,
            width=width,
            height=height,
        )
    scale_x, width = _resize(right - left, 2 * geometry.r)
    scale_y, height = _resize(bottom - top, 2 * geometry.r)
    return Transform(
        scale_x=scale_x,
        scale_y=scale_y,
        width=width,
        height=height,
        rotation=0.0,
        x=geometry.cx + (left + right) / 2,
        y=geometry.cy + (top + bottom) / 2,
    )


def transform_from_rotater(geometry: Geometry, px: float, py: float) -> Transform:
    """
    Transform produced by dragging the rotater to (px, py).

    Rectangles turn about their center. Circles keep their geometry.
    """
    if isinstance(geometry, CircleGeometry):
        return Transform(x=geometry.cx, y=geometry.cy)
    if not isinstance(geometry, RectGeometry):
        raise ValueError("Polygons cannot be rotated")

    hx, hy = _rotate(geometry.width / 2, geometry.height / 2, geometry.rotation)
    center_x, center_y = geometry.x + hx, geometry.y + hy
    rotation = math.degrees(math.atan2(py - center_y, px - center_x)) + 90.0
    ox, oy = _rotate(geometry.width / 2, geometry.height / 2, rotation)
    return Transform(rotation=rotation, x=center_x - ox, y=center_y - oy)
