"""
Tool discovery for littlefs-upload.

This module locates the executables shipped with installed board packages.
"""

from .tool_locator import ToolLocator, ToolReference, executable_suffix

__all__ = [
    "ToolLocator",
    "ToolReference",
    "executable_suffix",
]
