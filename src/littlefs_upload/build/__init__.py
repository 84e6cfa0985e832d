"""
Image build components for littlefs-upload.

This module provides:
- Streaming execution of external tools
- LittleFS image generation with mklittlefs
"""

from .image_builder import IMAGE_SUFFIX, ImageBuilder
from .process_runner import ProcessRunner, normalize_newlines

__all__ = [
    "IMAGE_SUFFIX",
    "ImageBuilder",
    "ProcessRunner",
    "normalize_newlines",
]
