"""
Tests for AnnotationSession.

These tests drive the session the way a view adapter would, without any
GUI dependencies.
"""

import pytest
import numpy as np
from unittest.mock import Mock

from exhibit_annotation.core.annotation import EventType, Tool
from exhibit_annotation.tests.conftest import draw_circle, draw_polygon, draw_rect


class TestAnnotationSession:
    """Test suite for AnnotationSession."""

    def test_initialization(self, session):
        assert session.image is None
        assert session.shapes == ()
        assert session.selected_id is None
        assert session.tool is Tool.RECT
        assert session.last_export == ""

    def test_load_image(self, session, test_image):
        assert session.load_image(test_image, "map.png")
        assert session.image is test_image
        assert session.image_source == "map.png"
        assert session.image_size == (120, 100)

    def test_superseded_image_is_discarded(self, session, test_image, blank_image):
        first = session.request_image("first.png")
        second = session.request_image("second.png")

        assert session.image_loaded(first, test_image) is False
        assert session.image is None

        assert session.image_loaded(second, blank_image) is True
        assert session.image_source == "second.png"
        assert session.image_size == (100, 100)

    def test_late_result_after_newer_load(self, session, test_image, blank_image):
        first = session.request_image("first.png")
        second = session.request_image("second.png")
        session.image_loaded(second, blank_image)

        assert session.image_loaded(first, test_image) is False
        assert session.image is blank_image

    def test_image_events(self, session, blank_image):
        events = []
        session.events.on_any(lambda event: events.append(event.event_type))
        stale = session.request_image("a")
        current = session.request_image("b")
        session.image_loaded(stale, blank_image)
        session.image_loaded(current, blank_image)
        assert events == [
            EventType.IMAGE_REQUESTED,
            EventType.IMAGE_REQUESTED,
            EventType.IMAGE_DISCARDED,
            EventType.IMAGE_LOADED,
        ]

    def test_new_image_keeps_shapes(self, loaded_session, test_image):
        draw_rect(loaded_session, 0, 0, 10, 10)
        loaded_session.load_image(test_image)
        assert len(loaded_session.shapes) == 1

    def test_key_delete_removes_selected(self, loaded_session):
        shape = draw_rect(loaded_session, 0, 0, 10, 10)
        other = draw_circle(loaded_session, 50, 50, 60, 50)
        loaded_session.select(shape.id)

        assert loaded_session.key_delete()
        assert [s.id for s in loaded_session.shapes] == [other.id]
        assert loaded_session.selected_id is None

    def test_key_delete_without_selection(self, loaded_session):
        draw_rect(loaded_session, 0, 0, 10, 10)
        assert loaded_session.key_delete() is False
        assert len(loaded_session.shapes) == 1

    def test_field_edit(self, loaded_session):
        shape = draw_rect(loaded_session, 0, 0, 10, 10)
        loaded_session.field_edit(shape.id, "name", "Entrance")
        loaded_session.field_edit(shape.id, "booth_no", "E1")
        assert (shape.name, shape.booth_no) == ("Entrance", "E1")

    def test_edit_operations(self, loaded_session):
        poly = draw_polygon(loaded_session, [(0, 0), (10, 0), (5, 10)])
        loaded_session.drag_whole_shape(poly.id, 1, 1)
        loaded_session.drag_vertex(poly.id, 0, 0, 0)
        assert poly.geometry.flat_points() == [0, 0, 11, 1, 6, 11]

    def test_visualization_data(self, loaded_session):
        draw_rect(loaded_session, 0, 0, 10, 10)
        loaded_session.pointer_down(20, 20)

        viz_data = loaded_session.get_visualization_data()

        assert viz_data["image"] is not None
        assert len(viz_data["shapes"]) == 1
        assert viz_data["draft"] is not None
        assert viz_data["tool"] is Tool.RECT


class TestExportRequest:
    def test_two_records_per_shape(self, loaded_session):
        draw_rect(loaded_session, 10, 10, 50, 80)
        draw_circle(loaded_session, 100, 100, 130, 100)
        draw_polygon(loaded_session, [(0, 0), (10, 0), (5, 10)])

        text = loaded_session.request_export([17, 18])

        lines = text.split("\n")
        assert len(lines) == 6
        assert loaded_session.last_export == text

    def test_default_target_ids_come_from_config(self, loaded_session):
        draw_rect(loaded_session, 10, 10, 50, 80)
        text = loaded_session.request_export()
        lines = text.split("\n")
        assert "VALUES (17," in lines[0]
        assert "VALUES (18," in lines[1]

    def test_configured_target_ids(self, blank_image):
        from exhibit_annotation.config import load_config
        from exhibit_annotation.core.annotation import AnnotationSession

        cfg = load_config(env={"EXHIBIT_export__target_ids": "3,4,5"})
        session = AnnotationSession(cfg)
        session.load_image(blank_image)
        draw_rect(session, 0, 0, 1, 1)
        assert len(session.request_export().split("\n")) == 3

    def test_jsonl_export(self, loaded_session):
        draw_circle(loaded_session, 100, 100, 130, 100)
        text = loaded_session.request_export([1], fmt="jsonl")
        assert '"coordinates": {"cx": 100, "cy": 100, "r": 30}' in text

    def test_empty_export(self, loaded_session):
        assert loaded_session.request_export() == ""

    def test_export_event(self, loaded_session):
        listener = Mock()
        loaded_session.events.on(EventType.EXPORT_COMPLETED, listener)
        draw_rect(loaded_session, 0, 0, 1, 1)
        loaded_session.request_export([9])
        assert listener.call_args[0][0].data == {"num_shapes": 1, "target_ids": [9]}


class TestEventSystem:
    """Test suite for event system."""

    def test_event_subscription(self):
        from exhibit_annotation.core.annotation import (
            EventEmitter,
            EventType,
            AnnotationEvent,
        )

        emitter = EventEmitter()
        events_received = []

        def callback(event):
            events_received.append(event)

        emitter.on(EventType.SHAPE_ADDED, callback)
        emitter.emit(AnnotationEvent(EventType.SHAPE_ADDED, {"shape_id": 1}))

        assert len(events_received) == 1
        assert events_received[0].event_type == EventType.SHAPE_ADDED

    def test_event_unsubscription(self):
        from exhibit_annotation.core.annotation import (
            EventEmitter,
            EventType,
            AnnotationEvent,
        )

        emitter = EventEmitter()
        events_received = []

        def callback(event):
            events_received.append(event)

        emitter.on(EventType.SHAPE_ADDED, callback)
        emitter.emit(AnnotationEvent(EventType.SHAPE_ADDED))
        assert len(events_received) == 1

        # Unsubscribe
        emitter.off(EventType.SHAPE_ADDED, callback)
        emitter.emit(AnnotationEvent(EventType.SHAPE_ADDED))
        assert len(events_received) == 1  # No new event

    def test_failing_listener_does_not_stop_others(self):
        from exhibit_annotation.core.annotation import (
            EventEmitter,
            EventType,
            AnnotationEvent,
        )

        emitter = EventEmitter()
        good = Mock()
        emitter.on(EventType.SHAPE_REMOVED, Mock(side_effect=RuntimeError("boom")))
        emitter.on(EventType.SHAPE_REMOVED, good)

        emitter.emit(AnnotationEvent(EventType.SHAPE_REMOVED))

        good.assert_called_once()

    def test_event_data_defaults_to_dict(self):
        from exhibit_annotation.core.annotation import AnnotationEvent, EventType

        assert AnnotationEvent(EventType.TOOL_CHANGED).data == {}

    def test_session_emits_shape_events(self, loaded_session):
        events = []
        loaded_session.events.on_any(lambda event: events.append(event.event_type))

        shape = draw_rect(loaded_session, 0, 0, 10, 10)
        loaded_session.select(shape.id)
        loaded_session.remove(shape.id)

        assert EventType.DRAFT_STARTED in events
        assert EventType.SHAPE_ADDED in events
        assert EventType.SHAPE_REMOVED in events
        assert events[-1] is EventType.SELECTION_CHANGED


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
