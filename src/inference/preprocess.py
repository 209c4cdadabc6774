"""
Frame preprocessing for the detection model.

The model takes a square RGB tensor, channel-first, values in [0, 1]. Frames
are stretched to the input size (no letterboxing), which is why decoded boxes
map back to the display by scaling each axis independently.
"""

from __future__ import annotations

import cv2
import numpy as np


def preprocess_frame(frame: np.ndarray, input_size: int = 640, swap_rb: bool = True) -> np.ndarray:
    """
    Convert a BGR frame into a (1, 3, input_size, input_size) float32 tensor.

    Args:
        frame: HxWx3 uint8 image (BGR, as delivered by OpenCV).
        input_size: Model input resolution.
        swap_rb: Convert BGR to RGB. Disable for sources that already yield RGB.

    Raises:
        ValueError: If the frame is not a 3-channel image.
    """
    if frame is None or frame.ndim != 3 or frame.shape[2] != 3:
        shape = None if frame is None else frame.shape
        raise ValueError(f"Expected an HxWx3 frame, got shape {shape}")

    resized = cv2.resize(frame, (input_size, input_size), interpolation=cv2.INTER_NEAREST)
    if swap_rb:
        resized = cv2.cvtColor(resized, cv2.COLOR_BGR2RGB)

    tensor = resized.astype(np.float32) / 255.0
    tensor = np.transpose(tensor, (2, 0, 1))
    return np.ascontiguousarray(tensor[np.newaxis, ...])
