"""
Annotation session management.

Core logic for managing an interactive shape annotation session.
UI-agnostic - can be used with any interface (GUI, Web, CLI).
"""

import logging
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import numpy as np

from .drawing import DrawingStateMachine, DrawState
from .editor import ShapeEditor
from .events import AnnotationEvent, EventEmitter, EventType
from .state import DrawingSession, Selection, Shape, Tool
from ...config import load_config

logger = logging.getLogger(__name__)


class AnnotationSession:
    """
    Manages the state and logic of an annotation session.

    This class handles:
    - Image requests (a newer request supersedes a pending one)
    - Drawing input (pointer, double-click, Escape, tool changes)
    - Shape edits and selection through the ShapeEditor
    - Export of the annotation set
    - Event emission for UI updates

    The session is UI-agnostic - it emits events that view components
    can listen to, rather than directly manipulating UI elements.
    """

    def __init__(self, config=None, tool: Union[str, Tool] = Tool.RECT):
        """
        Initialize annotation session.

        Args:
            config: EasyDict configuration (see ``config.load_config``)
            tool: Initial drawing tool
        """
        self.config = config if config is not None else load_config()

        # Event emitter for UI notifications
        self.events = EventEmitter()

        self.editor = ShapeEditor(self.events)
        self.drawing = DrawingStateMachine(self.editor, Tool.parse(tool))

        # Current image
        self._image: Optional[np.ndarray] = None
        self.image_source: Optional[Any] = None
        self.image_size: Optional[Tuple[int, int]] = None

        # Image request bookkeeping
        self._request_counter = 0
        self._pending_request: Optional[int] = None
        self._pending_source: Optional[Any] = None

        self.last_export: str = ""

    # Outbound state

    @property
    def image(self) -> Optional[np.ndarray]:
        return self._image

    @property
    def shapes(self) -> Tuple[Shape, ...]:
        return self.editor.shapes

    @property
    def selected_id(self):
        return self.editor.selected_id

    @property
    def selection(self) -> Optional[Selection]:
        return self.editor.selection

    @property
    def draft(self) -> Optional[DrawingSession]:
        return self.drawing.draft

    @property
    def draw_state(self) -> DrawState:
        return self.drawing.state

    @property
    def tool(self) -> Tool:
        return self.drawing.tool

    # Image loading

    def request_image(self, source) -> int:
        """
        Start loading a new image.

        Returns immediately; the decoded image is delivered later through
        ``image_loaded`` with the returned token. A newer request makes
        older tokens stale.
        """
        self._request_counter += 1
        self._pending_request = self._request_counter
        self._pending_source = source
        self.events.emit(
            AnnotationEvent(
                EventType.IMAGE_REQUESTED,
                {"request_id": self._request_counter, "source": source},
            )
        )
        return self._request_counter

    def image_loaded(self, request_id: int, image: np.ndarray) -> bool:
        """
        Completion callback for ``request_image``.

        Returns:
            True if the image was applied, False if the request was superseded
        """
        if request_id != self._pending_request:
            logger.warning(
                "Discarding image for superseded request %s (latest is %s)",
                request_id,
                self._pending_request,
            )
            self.events.emit(
                AnnotationEvent(EventType.IMAGE_DISCARDED, {"request_id": request_id})
            )
            return False

        height, width = image.shape[:2]
        self._image = image
        self.image_source = self._pending_source
        self.image_size = (width, height)
        self._pending_request = None
        self._pending_source = None
        self.drawing.enabled = True

        self.events.emit(
            AnnotationEvent(
                EventType.IMAGE_LOADED,
                {"image_size": self.image_size, "source": self.image_source},
            )
        )
        return True

    def load_image(self, image: np.ndarray, source=None) -> bool:
        """Request and immediately complete an image load."""
        return self.image_loaded(self.request_image(source), image)

    # Inbound events

    def pointer_down(self, x: float, y: float) -> bool:
        return self.drawing.pointer_down(x, y)

    def pointer_move(self, x: float, y: float) -> bool:
        return self.drawing.pointer_move(x, y)

    def pointer_up(self) -> Optional[Shape]:
        return self.drawing.pointer_up()

    def double_click(self) -> Optional[Shape]:
        return self.drawing.double_click()

    def key_escape(self) -> Optional[Shape]:
        return self.drawing.key_escape()

    def key_delete(self) -> bool:
        """Remove the selected shape, if any."""
        selected = self.editor.selected_id
        if selected is None:
            return False
        return self.editor.remove(selected)

    def tool_changed(self, tool: Union[str, Tool]) -> Optional[Shape]:
        return self.drawing.set_tool(tool)

    def field_edit(self, shape_id, field: str, value: str) -> bool:
        return self.editor.field_edit(shape_id, field, value)

    def request_export(
        self, target_ids: Optional[Sequence[int]] = None, fmt: Optional[str] = None
    ) -> str:
        """
        Export all shapes.

        Args:
            target_ids: Destination ids (defaults to the configured set)
            fmt: Export format (defaults to the configured format)

        Returns:
            Export text, also kept as ``last_export``
        """
        from ..export import export_all

        export_cfg = self.config.export
        if target_ids is None:
            target_ids = export_cfg.target_ids
        text = export_all(
            self.editor.shapes,
            list(target_ids),
            fmt=fmt or export_cfg.format,
            table=export_cfg.table,
            columns=export_cfg.columns,
        )
        self.last_export = text
        self.events.emit(
            AnnotationEvent(
                EventType.EXPORT_COMPLETED,
                {"num_shapes": len(self.editor), "target_ids": list(target_ids)},
            )
        )
        return text

    # Edit operations

    def select(self, shape_id) -> bool:
        return self.editor.select(shape_id)

    def deselect(self) -> bool:
        return self.editor.deselect()

    def drag_whole_shape(self, shape_id, dx: float, dy: float) -> bool:
        return self.editor.drag_whole_shape(shape_id, dx, dy)

    def drag_vertex(self, shape_id, vertex_index: int, x: float, y: float) -> bool:
        return self.editor.drag_vertex(shape_id, vertex_index, x, y)

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
        return self.editor.transform_end(
            shape_id, scale_x, scale_y, rotation, x, y, width=width, height=height
        )

    def rename(self, shape_id, name: str) -> bool:
        return self.editor.rename(shape_id, name)

    def set_booth_no(self, shape_id, booth_no: str) -> bool:
        return self.editor.set_booth_no(shape_id, booth_no)

    def remove(self, shape_id) -> bool:
        return self.editor.remove(shape_id)

    def get_visualization_data(self) -> Dict[str, Any]:
        """
        Get data needed for visualization.

        Returns:
            Dictionary with visualization data
        """
        return {
            "image": self._image,
            "image_size": self.image_size,
            "shapes": self.editor.shapes,
            "selected_id": self.editor.selected_id,
            "draft": self.drawing.draft,
            "draw_state": self.drawing.state,
            "tool": self.drawing.tool,
        }
