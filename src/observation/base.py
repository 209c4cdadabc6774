"""
FrameSource interface.

The pipeline only needs `open()`, `read()` and `close()`; anything that can
produce BGR frames (camera, video file, test fixture) implements this.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from models.frame import FrameData


class FrameSource(ABC):
    """
    Abstract base class for frame sources.

    Can be used as a context manager:
        with OpenCVSource(config) as source:
            frame_data = source.read()
    """

    def __init__(self, source_id: str = "camera"):
        self._source_id = source_id
        self._is_open = False
        self._sequence = 0

    @property
    def source_id(self) -> str:
        return self._source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    def next_sequence(self) -> int:
        """Advance and return the frame sequence number."""
        self._sequence += 1
        return self._sequence

    @abstractmethod
    def open(self) -> None:
        """
        Open the source.

        Raises:
            RuntimeError: If the source cannot be opened.
        """

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Return the next frame, or None if none is available."""

    @abstractmethod
    def close(self) -> None:
        """Release the source. Safe to call multiple times."""

    def __enter__(self) -> "FrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
