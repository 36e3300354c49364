"""
Interfaces module - view adapters for the annotation core.

Provides adapters to connect the core annotation logic
with concrete UI toolkits (OpenCV windows).
"""

from .cv2_adapter import CV2AnnotationAdapter
from .image_source import decode_image, read_image

__all__ = ['CV2AnnotationAdapter', 'decode_image', 'read_image']
