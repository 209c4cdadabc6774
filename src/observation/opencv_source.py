"""
OpenCV frame source.

Supports:
- USB webcams (device_id as int, e.g., 0)
- stream URLs (device_id as str URL)
- video files (device_id as file path)
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

import cv2
import numpy as np

from models.config import CameraConfig
from models.frame import FrameData
from .base import FrameSource


class OpenCVSource(FrameSource):
    """
    Wraps cv2.VideoCapture and applies the configured orientation transforms.

    Example:
        with OpenCVSource(CameraConfig(device_id=0)) as source:
            frame_data = source.read()
    """

    def __init__(self, config: CameraConfig, source_id: str = "camera", max_retries: int = 3):
        super().__init__(source_id)
        self.config = config
        self.max_retries = max_retries
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def is_file(self) -> bool:
        device = self.config.device_id
        return isinstance(device, str) and os.path.exists(device)

    def open(self) -> None:
        if self._is_open:
            return

        for attempt in range(1, self.max_retries + 1):
            self._cap = cv2.VideoCapture(self.config.device_id)
            if self._cap.isOpened():
                break
            self._cap.release()
            self._cap = None
            if attempt < self.max_retries:
                wait_time = min(2 ** attempt, 10)
                logging.warning(
                    f"Failed to open device {self.config.device_id} "
                    f"(attempt {attempt}/{self.max_retries}), retrying in {wait_time}s"
                )
                time.sleep(wait_time)
        else:
            raise RuntimeError(
                f"Failed to open device {self.config.device_id} after {self.max_retries} attempts"
            )

        if isinstance(self.config.device_id, int) and self.config.resolution:
            w, h = self.config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            if self.config.fps:
                self._cap.set(cv2.CAP_PROP_FPS, self.config.fps)
            self._cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        self._is_open = True
        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, device={self.config.device_id}, "
            f"resolution=({self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)}x"
            f"{self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)})"
        )

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._cap is None:
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            if self.is_file:
                logging.info("End of video file reached")
            return None

        return FrameData(
            frame=self._apply_transforms(frame),
            timestamp=time.time(),
            sequence=self.next_sequence(),
            source=self.source_id,
        )

    def _apply_transforms(self, frame: np.ndarray) -> np.ndarray:
        """Apply configured rotation, flips and R/B swap."""
        cfg = self.config

        if cfg.rotate == 90:
            frame = cv2.rotate(frame, cv2.ROTATE_90_CLOCKWISE)
        elif cfg.rotate == 180:
            frame = cv2.rotate(frame, cv2.ROTATE_180)
        elif cfg.rotate == 270:
            frame = cv2.rotate(frame, cv2.ROTATE_90_COUNTERCLOCKWISE)

        if cfg.flip_horizontal and cfg.flip_vertical:
            frame = cv2.flip(frame, -1)
        elif cfg.flip_horizontal:
            frame = cv2.flip(frame, 1)
        elif cfg.flip_vertical:
            frame = cv2.flip(frame, 0)

        if cfg.swap_rb:
            frame = frame[..., ::-1].copy()

        return frame

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        if self._is_open:
            logging.info(f"OpenCVSource closed: source_id={self.source_id}")
        self._is_open = False
