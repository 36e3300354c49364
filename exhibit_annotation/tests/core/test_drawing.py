"""
Tests for the drawing state machine.

Drawing is driven through AnnotationSession, the same way a view would.
"""

import pytest
import numpy as np

from exhibit_annotation.core.annotation import (
    CircleGeometry,
    DrawState,
    EventType,
    RectGeometry,
    ShapeType,
    Tool,
)
from exhibit_annotation.tests.conftest import draw_circle, draw_polygon, draw_rect


class TestBoxDrawing:
    def test_rect_commit_is_normalized(self, loaded_session):
        shape = draw_rect(loaded_session, 10, 10, 50, 80)

        assert shape.type is ShapeType.RECT
        assert shape.geometry == RectGeometry(x=10, y=10, width=40, height=70)
        assert loaded_session.shapes == (shape,)
        assert loaded_session.draw_state is DrawState.IDLE
        assert loaded_session.draft is None

    def test_rect_drawn_backwards(self, loaded_session):
        shape = draw_rect(loaded_session, 50, 80, 10, 10)
        assert shape.geometry == RectGeometry(x=10, y=10, width=40, height=70)

    def test_new_shape_defaults(self, loaded_session):
        shape = draw_rect(loaded_session, 0, 0, 5, 5)
        assert shape.name == ""
        assert shape.booth_no == ""

    def test_ids_are_unique(self, loaded_session):
        first = draw_rect(loaded_session, 0, 0, 5, 5)
        second = draw_circle(loaded_session, 10, 10, 12, 10)
        loaded_session.remove(first.id)
        third = draw_rect(loaded_session, 1, 1, 2, 2)
        assert len({first.id, second.id, third.id}) == 3

    def test_circle_radius(self, loaded_session):
        shape = draw_circle(loaded_session, 100, 100, 130, 100)
        assert shape.type is ShapeType.CIRCLE
        assert shape.geometry == CircleGeometry(cx=100, cy=100, r=30)

    def test_circle_without_move_has_zero_radius(self, loaded_session):
        loaded_session.tool_changed(Tool.CIRCLE)
        loaded_session.pointer_down(5, 5)
        shape = loaded_session.pointer_up()
        assert shape.geometry.r == 0

    def test_preview_during_drag(self, loaded_session):
        loaded_session.pointer_down(50, 80)
        loaded_session.pointer_move(10, 10)

        assert loaded_session.draw_state is DrawState.DRAWING_BOX
        assert loaded_session.draft.preview_geometry() == RectGeometry(10, 10, 40, 70)
        assert loaded_session.shapes == ()

    def test_starting_box_clears_selection(self, loaded_session):
        shape = draw_rect(loaded_session, 0, 0, 5, 5)
        loaded_session.select(shape.id)
        loaded_session.pointer_down(20, 20)
        assert loaded_session.selected_id is None

    def test_pointer_up_without_drawing(self, loaded_session):
        assert loaded_session.pointer_up() is None
        assert loaded_session.pointer_move(3, 3) is False


class TestPolygonDrawing:
    def test_polygon_commit(self, loaded_session):
        shape = draw_polygon(loaded_session, [(0, 0), (10, 0), (5, 10)])

        assert shape.type is ShapeType.POLYGON
        assert shape.geometry.flat_points() == [0, 0, 10, 0, 5, 10]
        assert loaded_session.draw_state is DrawState.IDLE

    def test_single_point_is_discarded(self, loaded_session, listener):
        draw_rect(loaded_session, 0, 0, 5, 5)
        loaded_session.events.on(EventType.DRAFT_DISCARDED, listener)

        result = draw_polygon(loaded_session, [(3, 3)])

        assert result is None
        assert len(loaded_session.shapes) == 1
        assert loaded_session.draft is None
        listener.assert_called_once()

    def test_two_points_are_enough(self, loaded_session):
        shape = draw_polygon(loaded_session, [(0, 0), (4, 4)])
        assert shape.geometry.num_vertices == 2

    def test_many_vertices(self, loaded_session):
        points = [(i, i * 2) for i in range(50)]
        shape = draw_polygon(loaded_session, points)
        np.testing.assert_array_equal(shape.geometry.points, points)

    def test_escape_finishes(self, loaded_session):
        loaded_session.tool_changed("poly")
        loaded_session.pointer_down(0, 0)
        loaded_session.pointer_down(10, 0)
        assert loaded_session.draw_state is DrawState.CREATING_POLYGON

        shape = loaded_session.key_escape()
        assert shape.geometry.flat_points() == [0, 0, 10, 0]

    def test_tool_switch_finishes(self, loaded_session):
        loaded_session.tool_changed(Tool.POLYGON)
        loaded_session.pointer_down(0, 0)
        loaded_session.pointer_down(10, 0)
        loaded_session.pointer_down(10, 10)

        committed = loaded_session.tool_changed(Tool.RECT)

        assert committed is not None
        assert committed.geometry.num_vertices == 3
        assert loaded_session.tool is Tool.RECT
        assert loaded_session.draw_state is DrawState.IDLE

    def test_tool_switch_discards_single_vertex(self, loaded_session):
        loaded_session.tool_changed(Tool.POLYGON)
        loaded_session.pointer_down(0, 0)
        assert loaded_session.tool_changed(Tool.CIRCLE) is None
        assert loaded_session.shapes == ()
        assert loaded_session.draft is None

    def test_selecting_same_tool_keeps_polygon(self, loaded_session):
        loaded_session.tool_changed(Tool.POLYGON)
        loaded_session.pointer_down(0, 0)
        loaded_session.tool_changed("poly")
        assert loaded_session.draw_state is DrawState.CREATING_POLYGON

    def test_double_click_when_idle(self, loaded_session):
        assert loaded_session.double_click() is None
        assert loaded_session.shapes == ()

    def test_preview_points(self, loaded_session):
        loaded_session.tool_changed(Tool.POLYGON)
        loaded_session.pointer_down(1, 2)
        loaded_session.pointer_down(3, 4)
        preview = loaded_session.draft.preview_geometry()
        assert preview.flat_points() == [1, 2, 3, 4]


class TestDrawingDisabled:
    def test_no_image_no_drawing(self, session):
        assert session.pointer_down(10, 10) is False
        assert session.pointer_up() is None
        assert session.shapes == ()

    def test_no_image_no_polygon(self, session):
        session.tool_changed(Tool.POLYGON)
        session.pointer_down(0, 0)
        assert session.draw_state is DrawState.IDLE

    def test_unknown_tool(self, session):
        with pytest.raises(ValueError):
            session.tool_changed("ellipse")
