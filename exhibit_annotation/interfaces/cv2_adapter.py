"""
OpenCV adapter for annotation session.

Bridges the AnnotationSession with an OpenCV window: mouse and keyboard
callbacks become core events, and the session state is rendered onto the
image.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import cv2
import numpy as np

from ..config import load_config
from ..core.annotation import AnnotationEvent, AnnotationSession, EventType
from ..core.annotation.drawing import DrawState
from ..core.annotation.geometry import (
    apply_affine_to_circle,
    apply_affine_to_rect,
    find_handle,
    handles_for,
    hit_test,
    rect_corners,
    transform_from_anchor,
    transform_from_rotater,
)
from ..core.annotation.state import (
    CircleGeometry,
    Geometry,
    PolygonGeometry,
    RectGeometry,
    Shape,
    Tool,
)
from .image_source import read_image

logger = logging.getLogger(__name__)

ESCAPE_KEYS = {27}
# Backspace, DEL, then the Delete key as reported by cv2.waitKeyEx on
# GTK, Windows and Cocoa
DELETE_KEYS = {8, 127, 0xFFFF, 0x2E0000, 0xF728}
TOOL_KEYS = {ord("r"): Tool.RECT, ord("c"): Tool.CIRCLE, ord("p"): Tool.POLYGON}
EXPORT_KEY = ord("e")
QUIT_KEY = ord("q")


@dataclass
class DragContext:
    """
    Pointer drag in progress on a committed shape.

    operation is one of 'move', 'vertex', 'anchor', 'rotate'.
    """

    operation: str
    shape_id: int
    last: Tuple[float, float]
    handle_name: str = ""
    vertex_index: Optional[int] = None


def _color(value) -> Tuple[int, int, int]:
    return tuple(int(c) for c in value)


class CV2AnnotationAdapter:
    """
    Adapter connecting AnnotationSession to an OpenCV window.

    Provides a view layer that:
    - Routes mouse presses to handle drags, shape drags or drawing
    - Translates key presses to session events
    - Renders shapes, handles and drawing previews
    """

    def __init__(
        self,
        session: AnnotationSession,
        update_image_callback: Optional[Callable] = None,
        config=None,
    ):
        """
        Initialize adapter.

        Args:
            session: Core annotation session
            update_image_callback: Callback to refresh the displayed image
            config: EasyDict configuration; defaults to the session's
        """
        self.session = session
        self.update_image_callback = update_image_callback
        self.config = config if config is not None else getattr(session, "config", None)
        if self.config is None:
            self.config = load_config()
        self.drag: Optional[DragContext] = None

        # Subscribe to session events
        self._setup_event_handlers()

    def _setup_event_handlers(self):
        """Setup event handlers for session events."""
        for event_type in (
            EventType.IMAGE_LOADED,
            EventType.SHAPE_ADDED,
            EventType.SHAPE_UPDATED,
            EventType.SHAPE_REMOVED,
            EventType.SELECTION_CHANGED,
            EventType.DRAFT_STARTED,
            EventType.DRAFT_UPDATED,
            EventType.DRAFT_DISCARDED,
        ):
            self.session.events.on(event_type, self._on_state_changed)

    def _on_state_changed(self, event: AnnotationEvent):
        if self.update_image_callback:
            self.update_image_callback()

    @property
    def anchor_radius(self) -> float:
        return float(self.config.render.anchor_radius)

    def open_image(self, path) -> bool:
        """Request an image and deliver the decoded result to the session."""
        request_id = self.session.request_image(str(path))
        image = read_image(path)
        return self.session.image_loaded(request_id, image)

    # Mouse handling

    def on_mouse(self, event, x, y, flags=0, param=None):
        """OpenCV mouse callback."""
        if event == cv2.EVENT_LBUTTONDOWN:
            self._on_press(x, y)
        elif event == cv2.EVENT_MOUSEMOVE:
            self._on_move(x, y)
        elif event == cv2.EVENT_LBUTTONUP:
            self._on_release()
        elif event == cv2.EVENT_LBUTTONDBLCLK:
            self.drag = None
            self.session.double_click()

    def _on_press(self, x, y):
        if self.session.image is None:
            return
        idle = self.session.draw_state is DrawState.IDLE

        selected = self.session.editor.selected_shape
        if selected is not None and idle:
            handle = find_handle(handles_for(selected), x, y, self.anchor_radius)
            if handle is not None:
                operation = {"vertex": "vertex", "anchor": "anchor", "rotater": "rotate"}[handle.kind]
                self.drag = DragContext(
                    operation=operation,
                    shape_id=selected.id,
                    last=(x, y),
                    handle_name=handle.name,
                    vertex_index=handle.index,
                )
                return

        if idle and self.session.tool is not Tool.POLYGON:
            shape_id = hit_test(self.session.shapes, x, y)
            if shape_id is not None:
                self.session.select(shape_id)
                self.drag = DragContext(operation="move", shape_id=shape_id, last=(x, y))
                return

        self.session.pointer_down(x, y)

    def _on_move(self, x, y):
        drag = self.drag
        if drag is None:
            self.session.pointer_move(x, y)
            return

        if drag.operation == "move":
            dx, dy = x - drag.last[0], y - drag.last[1]
            drag.last = (x, y)
            self.session.drag_whole_shape(drag.shape_id, dx, dy)
        elif drag.operation == "vertex":
            self.session.drag_vertex(drag.shape_id, drag.vertex_index, x, y)
        else:
            shape = self.session.editor.get(drag.shape_id)
            if shape is None:
                self.drag = None
                return
            if drag.operation == "anchor":
                transform = transform_from_anchor(shape.geometry, drag.handle_name, x, y)
            else:
                transform = transform_from_rotater(shape.geometry, x, y)
            self.session.editor.update_transform(
                transform.scale_x,
                transform.scale_y,
                transform.rotation,
                transform.x,
                transform.y,
                width=transform.width,
                height=transform.height,
            )
            self._on_state_changed(None)

    def _on_release(self):
        drag = self.drag
        self.drag = None
        if drag is None:
            self.session.pointer_up()
            return
        if drag.operation in ("anchor", "rotate"):
            selection = self.session.selection
            if selection is None or selection.shape_id != drag.shape_id:
                return
            t = selection.transform
            self.session.transform_end(
                drag.shape_id,
                t.scale_x,
                t.scale_y,
                t.rotation,
                t.x,
                t.y,
                width=t.width,
                height=t.height,
            )

    # Keyboard handling

    def on_key(self, key: int) -> bool:
        """
        Handle a key code as returned by ``cv2.waitKeyEx``.

        Returns:
            True if the key was consumed
        """
        if key < 0:
            return False
        if key in DELETE_KEYS:
            self.session.key_delete()
            return True
        if key > 0xFF:
            # Other special keys (arrows, function keys)
            return False
        if key in ESCAPE_KEYS:
            self.session.key_escape()
            return True
        if key in TOOL_KEYS:
            self.session.tool_changed(TOOL_KEYS[key])
            return True
        if key == EXPORT_KEY:
            self.session.request_export()
            return True
        return False

    # Rendering

    def _display_geometry(self, shape: Shape) -> Geometry:
        """Stored geometry, or its live transform while a handle is dragged."""
        drag = self.drag
        selection = self.session.selection
        if (
            drag is None
            or drag.operation not in ("anchor", "rotate")
            or drag.shape_id != shape.id
            or selection is None
        ):
            return shape.geometry
        t = selection.transform
        if isinstance(shape.geometry, RectGeometry):
            return apply_affine_to_rect(
                shape.geometry,
                t.scale_x,
                t.scale_y,
                t.x,
                t.y,
                t.rotation,
                width=t.width,
                height=t.height,
            )
        if isinstance(shape.geometry, CircleGeometry):
            return apply_affine_to_circle(
                shape.geometry, t.scale_x, t.scale_y, t.x, t.y, width=t.width, height=t.height
            )
        return shape.geometry

    @staticmethod
    def _draw_geometry(canvas, geometry: Geometry, color, thickness: int, closed: bool = True):
        if isinstance(geometry, CircleGeometry):
            center = (int(round(geometry.cx)), int(round(geometry.cy)))
            cv2.circle(canvas, center, int(round(geometry.r)), color, thickness, cv2.LINE_AA)
            return
        if isinstance(geometry, RectGeometry):
            points = rect_corners(geometry)
        else:
            points = geometry.points
        contour = np.round(points).astype(np.int32).reshape(-1, 1, 2)
        if thickness < 0:
            cv2.fillPoly(canvas, [contour], color, cv2.LINE_AA)
        else:
            cv2.polylines(canvas, [contour], closed, color, thickness, cv2.LINE_AA)

    def render(self) -> Optional[np.ndarray]:
        """
        Get visualization for display.

        Returns:
            RGB image with annotations drawn, or None if no image is loaded
        """
        viz_data = self.session.get_visualization_data()
        image = viz_data["image"]
        if image is None:
            return None

        render_cfg = self.config.render
        colors = render_cfg.colors
        stroke = int(render_cfg.stroke_width)
        alpha = float(render_cfg.fill_alpha)

        shapes = viz_data["shapes"]
        geometries = [self._display_geometry(shape) for shape in shapes]

        # Semi-transparent fills
        overlay = image.copy()
        for shape, geometry in zip(shapes, geometries):
            self._draw_geometry(overlay, geometry, _color(colors[shape.type.value]), -1)
        vis = cv2.addWeighted(overlay, alpha, image, 1 - alpha, 0)

        # Outlines
        for shape, geometry in zip(shapes, geometries):
            color = _color(colors[shape.type.value])
            if shape.id == viz_data["selected_id"]:
                color = _color(colors.selected)
            self._draw_geometry(vis, geometry, color, stroke)

        self._draw_handles(vis)
        self._draw_draft(vis, viz_data["draft"], colors, stroke)
        return vis

    def _draw_handles(self, vis):
        shape = self.session.editor.selected_shape
        if shape is None:
            return
        radius = int(self.anchor_radius)
        display = Shape(
            id=shape.id,
            type=shape.type,
            geometry=self._display_geometry(shape),
            name=shape.name,
            booth_no=shape.booth_no,
        )
        for handle in handles_for(display):
            center = (int(round(handle.x)), int(round(handle.y)))
            cv2.circle(vis, center, radius, (255, 255, 255), -1, cv2.LINE_AA)
            cv2.circle(vis, center, radius, (0, 0, 0), 1, cv2.LINE_AA)

    def _draw_draft(self, vis, draft, colors, stroke: int):
        if draft is None:
            return
        geometry = draft.preview_geometry()
        if geometry is None:
            return
        if isinstance(geometry, PolygonGeometry):
            color = _color(colors.temp_poly)
            if geometry.num_vertices == 1:
                x, y = geometry.points[0]
                cv2.circle(vis, (int(round(x)), int(round(y))), stroke + 1, color, -1)
                return
            self._draw_geometry(vis, geometry, color, stroke, closed=False)
            return
        self._draw_geometry(vis, geometry, _color(colors.preview), stroke)

    def run(self, window_name: str = "exhibit_annotation"):  # pragma: no cover
        """Show an interactive window until 'q' is pressed."""
        cv2.namedWindow(window_name)
        cv2.setMouseCallback(window_name, self.on_mouse)
        try:
            while True:
                vis = self.render()
                if vis is not None:
                    cv2.imshow(window_name, cv2.cvtColor(vis, cv2.COLOR_RGB2BGR))
                key = cv2.waitKeyEx(20)
                if key == QUIT_KEY:
                    break
                self.on_key(key)
        finally:
            cv2.destroyWindow(window_name)
        return self.session.last_export
