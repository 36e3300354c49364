"""
Test fixtures and utilities for exhibit annotation tests.

Provides reusable fixtures for sessions, images and configuration.
"""

import pytest
import numpy as np
from unittest.mock import Mock


@pytest.fixture
def config():
    """Default configuration, unaffected by the environment."""
    from exhibit_annotation.config import load_config

    return load_config(env={})


@pytest.fixture
def test_image():
    """Create a test RGB image."""
    return np.random.randint(0, 255, (100, 120, 3), dtype=np.uint8)


@pytest.fixture
def blank_image():
    """Create a black RGB image."""
    return np.zeros((100, 100, 3), dtype=np.uint8)


@pytest.fixture
def session(config):
    """AnnotationSession without an image."""
    from exhibit_annotation.core.annotation import AnnotationSession

    return AnnotationSession(config)


@pytest.fixture
def loaded_session(session, blank_image):
    """AnnotationSession with an image loaded, so drawing is enabled."""
    session.load_image(blank_image, "blank.png")
    return session


@pytest.fixture
def listener():
    """Mock event listener."""
    return Mock()


def draw_rect(session, x1, y1, x2, y2):
    """Drag out a rectangle and return the committed shape."""
    from exhibit_annotation.core.annotation import Tool

    session.tool_changed(Tool.RECT)
    session.pointer_down(x1, y1)
    session.pointer_move(x2, y2)
    return session.pointer_up()


def draw_circle(session, cx, cy, px, py):
    """Drag out a circle and return the committed shape."""
    from exhibit_annotation.core.annotation import Tool

    session.tool_changed(Tool.CIRCLE)
    session.pointer_down(cx, cy)
    session.pointer_move(px, py)
    return session.pointer_up()


def draw_polygon(session, points):
    """Click each point in polygon mode and finish with a double-click."""
    from exhibit_annotation.core.annotation import Tool

    session.tool_changed(Tool.POLYGON)
    for x, y in points:
        session.pointer_down(x, y)
    return session.double_click()
