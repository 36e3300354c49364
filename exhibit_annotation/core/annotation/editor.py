"""
Selection and edit controller.

Owns the annotation set (the ordered list of committed shapes) and the
single selection. Every change to a committed shape goes through here.
"""

import logging
from typing import Iterator, List, Optional, Tuple

from .events import AnnotationEvent, EventEmitter, EventType
from .geometry import (
    InvalidIndex,
    apply_affine_to_circle,
    apply_affine_to_rect,
    set_vertex,
    shape_position,
    translate_polygon,
)
from .state import (
    CircleGeometry,
    Geometry,
    PolygonGeometry,
    RectGeometry,
    Selection,
    Shape,
    ShapeType,
    Transform,
)
from ...utils.misc import incrf

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "booth_no")


class ShapeEditor:
    """
    Manages committed shapes and the selection.

    Operations taking a shape id treat unknown ids as stale references:
    they change nothing and return False.
    """

    def __init__(self, events: Optional[EventEmitter] = None):
        self.events = events if events is not None else EventEmitter()
        self._shapes: List[Shape] = []
        self._selection: Optional[Selection] = None
        self._ids = incrf()

    # Queries

    @property
    def shapes(self) -> Tuple[Shape, ...]:
        """Committed shapes in creation order."""
        return tuple(self._shapes)

    def __len__(self) -> int:
        return len(self._shapes)

    def __iter__(self) -> Iterator[Shape]:
        return iter(self.shapes)

    def get(self, shape_id) -> Optional[Shape]:
        for shape in self._shapes:
            if shape.id == shape_id:
                return shape
        return None

    @property
    def selection(self) -> Optional[Selection]:
        if self._selection is not None and self.get(self._selection.shape_id) is None:
            self._selection = None
        return self._selection

    @property
    def selected_id(self):
        selection = self.selection
        return selection.shape_id if selection is not None else None

    @property
    def selected_shape(self) -> Optional[Shape]:
        selection = self.selection
        return self.get(selection.shape_id) if selection is not None else None

    # Creation

    def add(
        self, shape_type: ShapeType, geometry: Geometry, name: str = "", booth_no: str = ""
    ) -> Shape:
        """Append a newly committed shape with a fresh id."""
        shape = Shape(
            id=next(self._ids),
            type=shape_type,
            geometry=geometry,
            name=name,
            booth_no=booth_no,
        )
        self._shapes.append(shape)
        logger.debug("Committed %s shape %s", shape_type.value, shape.id)
        self.events.emit(
            AnnotationEvent(
                EventType.SHAPE_ADDED, {"shape_id": shape.id, "type": shape_type.value}
            )
        )
        return shape

    # Selection

    def select(self, shape_id) -> bool:
        """Select a shape; stale ids are ignored."""
        shape = self.get(shape_id)
        if shape is None:
            return False
        rotation = getattr(shape.geometry, "rotation", 0.0)
        x, y = shape_position(shape.geometry)
        self._selection = Selection(
            shape_id=shape_id, transform=Transform(rotation=rotation, x=x, y=y)
        )
        self._emit_selection()
        return True

    def deselect(self) -> bool:
        if self._selection is None:
            return False
        self._selection = None
        self._emit_selection()
        return True

    def _emit_selection(self):
        self.events.emit(
            AnnotationEvent(EventType.SELECTION_CHANGED, {"shape_id": self.selected_id})
        )

    # Edits

    def _replace_geometry(self, shape: Shape, geometry: Geometry):
        shape.geometry = geometry
        self.events.emit(AnnotationEvent(EventType.SHAPE_UPDATED, {"shape_id": shape.id}))

    def drag_whole_shape(self, shape_id, dx: float, dy: float) -> bool:
        """Move a committed shape by (dx, dy)."""
        shape = self.get(shape_id)
        if shape is None:
            return False
        geometry = shape.geometry
        if isinstance(geometry, RectGeometry):
            moved = RectGeometry(
                x=geometry.x + dx,
                y=geometry.y + dy,
                width=geometry.width,
                height=geometry.height,
                rotation=geometry.rotation,
            )
        elif isinstance(geometry, CircleGeometry):
            moved = CircleGeometry(cx=geometry.cx + dx, cy=geometry.cy + dy, r=geometry.r)
        else:
            moved = PolygonGeometry(translate_polygon(geometry.points, dx, dy))
        self._replace_geometry(shape, moved)
        self._sync_selection_position(shape)
        return True

    def drag_vertex(self, shape_id, vertex_index: int, x: float, y: float) -> bool:
        """
        Move one polygon vertex.

        Raises:
            InvalidIndex: If the shape is not a polygon or the index is invalid
        """
        shape = self.get(shape_id)
        if shape is None:
            return False
        if not isinstance(shape.geometry, PolygonGeometry):
            raise InvalidIndex(f"Shape {shape_id} has no vertices")
        points = set_vertex(shape.geometry.points, vertex_index, x, y)
        self._replace_geometry(shape, PolygonGeometry(points))
        return True

    def update_transform(
        self,
        scale_x: float,
        scale_y: float,
        rotation: float,
        x: float,
        y: float,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ) -> bool:
        """Record the live transformer state of the selected shape."""
        selection = self.selection
        if selection is None:
            return False
        selection.transform = Transform(scale_x, scale_y, rotation, x, y, width, height)
        return True

    def transform_end(
        self,
        shape_id,
        scale_x: float,
        scale_y: float,
        rotation: float,
        x: float,
        y: float,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ) -> bool:
        """
        Apply a finished transform to a rectangle or circle.

        The stored geometry absorbs the scale; afterwards the selection's
        transform is back at scale (1, 1) so the next transform starts from
        the stored size. ``width``/``height`` set the size of an axis that
        was zero, where no scale factor applies.
        """
        shape = self.get(shape_id)
        if shape is None:
            return False
        geometry = shape.geometry
        if isinstance(geometry, RectGeometry):
            new_geometry = apply_affine_to_rect(
                geometry, scale_x, scale_y, x, y, rotation, width=width, height=height
            )
        elif isinstance(geometry, CircleGeometry):
            new_geometry = apply_affine_to_circle(
                geometry, scale_x, scale_y, x, y, width=width, height=height
            )
        else:
            logger.debug("Ignoring transform on polygon %s", shape_id)
            return False
        self._replace_geometry(shape, new_geometry)
        self._sync_selection_position(shape)
        return True

    def _sync_selection_position(self, shape: Shape):
        selection = self.selection
        if selection is None or selection.shape_id != shape.id:
            return
        if isinstance(shape.geometry, PolygonGeometry):
            return
        x, y = shape_position(shape.geometry)
        rotation = getattr(shape.geometry, "rotation", 0.0)
        selection.transform = Transform(rotation=rotation, x=x, y=y)

    def rename(self, shape_id, name: str) -> bool:
        return self.field_edit(shape_id, "name", name)

    def set_booth_no(self, shape_id, booth_no: str) -> bool:
        return self.field_edit(shape_id, "booth_no", booth_no)

    def field_edit(self, shape_id, field: str, value: str) -> bool:
        """
        Replace a text field of a shape.

        Raises:
            ValueError: If field is not an editable field
        """
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Field {field!r} is not editable")
        shape = self.get(shape_id)
        if shape is None:
            return False
        setattr(shape, field, value)
        self.events.emit(
            AnnotationEvent(EventType.SHAPE_UPDATED, {"shape_id": shape_id, "field": field})
        )
        return True

    def remove(self, shape_id) -> bool:
        """Delete a shape; removing an unknown id does nothing."""
        shape = self.get(shape_id)
        if shape is None:
            return False
        was_selected = self._selection is not None and self._selection.shape_id == shape_id
        self._shapes = [s for s in self._shapes if s.id != shape_id]
        self.events.emit(AnnotationEvent(EventType.SHAPE_REMOVED, {"shape_id": shape_id}))
        if was_selected:
            self._selection = None
            self._emit_selection()
        return True

    def clear(self):
        """Discard every shape and the selection."""
        for shape in list(self._shapes):
            self.remove(shape.id)
