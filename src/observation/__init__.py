"""
Frame sources for the pipeline.
"""

from .base import FrameSource
from .opencv_source import OpenCVSource

__all__ = [
    "FrameSource",
    "OpenCVSource",
]
