"""
Drawing state machine.

Turns pointer and keyboard input into new shapes: rectangles and circles
are drawn by dragging, polygons are built click by click and finished by
double-click, Escape or switching tools.
"""

import logging
from enum import Enum
from typing import Optional, Union

from .editor import ShapeEditor
from .events import AnnotationEvent, EventType
from .geometry import circle_from_center_and_point, normalize_rect
from .state import CircleGeometry, DrawingSession, PolygonGeometry, Shape, ShapeType, Tool

logger = logging.getLogger(__name__)

MIN_POLYGON_VERTICES = 2


class DrawState(Enum):
    IDLE = "idle"
    DRAWING_BOX = "drawing_box"
    CREATING_POLYGON = "creating_polygon"


class DrawingStateMachine:
    """
    Drives shape creation.

    Committed shapes are handed to the ShapeEditor; the in-progress shape
    lives in ``draft`` until it is committed or discarded.
    """

    def __init__(self, editor: ShapeEditor, tool: Tool = Tool.RECT):
        self.editor = editor
        self.events = editor.events
        self.tool = tool
        self.state = DrawState.IDLE
        self.draft: Optional[DrawingSession] = None
        # Pointer input is ignored until an image is available
        self.enabled = False

    def _emit(self, event_type: EventType, **data):
        self.events.emit(AnnotationEvent(event_type, data))

    def _transition(self, state: DrawState):
        logger.debug("Drawing state %s -> %s", self.state.value, state.value)
        self.state = state

    def pointer_down(self, x: float, y: float) -> bool:
        """
        Handle a pointer press on empty canvas.

        Returns:
            True if the press started or extended a drawing
        """
        if not self.enabled:
            return False

        if self.tool is Tool.POLYGON:
            if self.state is DrawState.IDLE:
                self.draft = DrawingSession(tool=Tool.POLYGON)
                self._transition(DrawState.CREATING_POLYGON)
                self.draft.points.append((x, y))
                self._emit(EventType.DRAFT_STARTED, tool=self.tool.value)
                return True
            if self.state is DrawState.CREATING_POLYGON:
                self.draft.points.append((x, y))
                self._emit(
                    EventType.DRAFT_UPDATED,
                    tool=self.tool.value,
                    num_vertices=len(self.draft.points),
                )
                return True
            return False

        if self.state is not DrawState.IDLE:
            return False
        self.editor.deselect()
        self.draft = DrawingSession(tool=self.tool, start=(x, y), end=(x, y))
        self._transition(DrawState.DRAWING_BOX)
        self._emit(EventType.DRAFT_STARTED, tool=self.tool.value)
        return True

    def pointer_move(self, x: float, y: float) -> bool:
        """Update the live end point of a rectangle or circle being drawn."""
        if self.state is not DrawState.DRAWING_BOX:
            return False
        self.draft.end = (x, y)
        if self.draft.tool is Tool.CIRCLE:
            cx, cy = self.draft.start
            self.draft.radius = circle_from_center_and_point(cx, cy, x, y)
        self._emit(EventType.DRAFT_UPDATED, tool=self.draft.tool.value)
        return True

    def pointer_up(self) -> Optional[Shape]:
        """Commit the rectangle or circle being drawn."""
        if self.state is not DrawState.DRAWING_BOX:
            return None
        draft = self.draft
        self.draft = None
        self._transition(DrawState.IDLE)

        if draft.tool is Tool.RECT:
            geometry = normalize_rect(*draft.start, *draft.end)
            return self.editor.add(ShapeType.RECT, geometry)
        cx, cy = draft.start
        return self.editor.add(ShapeType.CIRCLE, CircleGeometry(cx=cx, cy=cy, r=draft.radius))

    def finish_polygon(self) -> Optional[Shape]:
        """
        End polygon construction.

        A polygon with fewer than two vertices is dropped without error.
        """
        if self.state is not DrawState.CREATING_POLYGON:
            return None
        points = list(self.draft.points)
        self.draft = None
        self._transition(DrawState.IDLE)

        if len(points) < MIN_POLYGON_VERTICES:
            logger.debug("Discarding polygon with %d vertices", len(points))
            self._emit(EventType.DRAFT_DISCARDED, tool=Tool.POLYGON.value, num_vertices=len(points))
            return None
        return self.editor.add(ShapeType.POLYGON, PolygonGeometry(points))

    def double_click(self) -> Optional[Shape]:
        return self.finish_polygon()

    def key_escape(self) -> Optional[Shape]:
        return self.finish_polygon()

    def set_tool(self, tool: Union[str, Tool]) -> Optional[Shape]:
        """
        Switch the active tool.

        A polygon under construction is finished first, so nothing partial
        survives the switch.

        Returns:
            The polygon committed by the forced finish, if any
        """
        tool = Tool.parse(tool)
        if tool is self.tool:
            return None
        committed = self.finish_polygon()
        self.tool = tool
        self._emit(EventType.TOOL_CHANGED, tool=tool.value)
        return committed
