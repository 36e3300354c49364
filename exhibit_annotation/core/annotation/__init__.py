"""
Core annotation module - UI-agnostic shape annotation logic.

This module provides the shape model, the drawing state machine and the
selection/edit controller that any UI framework (OpenCV, Tkinter, Web)
can drive.
"""

from .session import AnnotationSession
from .drawing import DrawingStateMachine, DrawState
from .editor import ShapeEditor
from .events import AnnotationEvent, EventType, EventEmitter
from .geometry import InvalidIndex, handles_for
from .state import (
    CircleGeometry,
    DrawingSession,
    Handle,
    PolygonGeometry,
    RectGeometry,
    Selection,
    Shape,
    ShapeType,
    Tool,
    Transform,
)

__all__ = [
    "AnnotationSession",
    "DrawingStateMachine",
    "DrawState",
    "ShapeEditor",
    "AnnotationEvent",
    "EventType",
    "EventEmitter",
    "InvalidIndex",
    "handles_for",
    "CircleGeometry",
    "DrawingSession",
    "Handle",
    "PolygonGeometry",
    "RectGeometry",
    "Selection",
    "Shape",
    "ShapeType",
    "Tool",
    "Transform",
]
