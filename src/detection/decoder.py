"""
YOLOv5-style output decoder.

The model emits one row per candidate box:

    [cx, cy, w, h, objectness, class_score_0, ..., class_score_N-1]

with coordinates normalized to the square model input. Rows are decoded into
`Detection` objects and filtered on objectness * best class score.
"""

from __future__ import annotations

import logging
import operator
from typing import Any, List, Sequence, Union

import numpy as np

from models.detection import CLASS_NAMES, Detection


DEFAULT_CONFIDENCE_THRESHOLD = 0.4
NUM_BOX_ATTRS = 5  # cx, cy, w, h, objectness

TensorData = Union[bytes, bytearray, memoryview, np.ndarray, Sequence[float]]


class DecodeError(ValueError):
    """Raised when the output tensor does not match the expected layout."""


def _as_array(data: TensorData) -> np.ndarray:
    # Raw buffers are float32 as delivered by the runtime; everything is
    # widened to float64 before arithmetic.
    if isinstance(data, (bytes, bytearray, memoryview)):
        if len(data) % 4 != 0:
            raise DecodeError(f"Buffer length {len(data)} is not a multiple of 4 bytes")
        return np.frombuffer(data, dtype=np.float32).astype(np.float64)
    try:
        return np.asarray(data, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Tensor data is not numeric: {e}") from e


def _as_dim(value: Any) -> int:
    """Coerce one shape entry to int, rejecting bools and fractional values."""
    if isinstance(value, (bool, np.bool_)):
        raise DecodeError(f"Dims must be integers, got {value!r}")
    try:
        return operator.index(value)
    except TypeError:
        pass
    try:
        as_float = float(value)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Dims must be integers, got {value!r}") from e
    if not as_float.is_integer():
        raise DecodeError(f"Dims must be integers, got {value!r}")
    return int(as_float)


def validate_dims(dims: Sequence[Any], num_classes: int, size: int) -> tuple[int, int]:
    """
    Check a (batch, num_boxes, num_attrs) shape against the data size.

    Returns:
        (num_boxes, num_attrs)

    Raises:
        DecodeError: If the shape is malformed.
    """
    if dims is None or len(dims) != 3:
        raise DecodeError(f"Expected 3 dims (batch, boxes, attrs), got {dims!r}")
    batch, num_boxes, num_attrs = (_as_dim(d) for d in dims)

    if batch != 1:
        raise DecodeError(f"Only batch size 1 is supported, got {batch}")
    if num_boxes < 0:
        raise DecodeError(f"Negative box count: {num_boxes}")
    expected_attrs = NUM_BOX_ATTRS + num_classes
    if num_attrs != expected_attrs:
        raise DecodeError(
            f"Expected {expected_attrs} attributes per box "
            f"({num_classes} classes), got {num_attrs}"
        )
    if size != num_boxes * num_attrs:
        raise DecodeError(
            f"Tensor has {size} values, shape {tuple(dims)} needs {num_boxes * num_attrs}"
        )
    return num_boxes, num_attrs


def decode_output(
    data: TensorData,
    dims: Sequence[Any],
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    class_names: Sequence[str] = CLASS_NAMES,
) -> List[Detection]:
    """
    Decode a flat output tensor into detections.

    Args:
        data: Flat float tensor (numpy array, sequence, or raw float32 buffer).
        dims: Shape descriptor (1, num_boxes, 5 + num_classes).
        confidence_threshold: Rows must score strictly above this value.
        class_names: Class list in model output order.

    Returns:
        Detections in row order.

    Raises:
        DecodeError: On a malformed shape or size mismatch.
    """
    values = _as_array(data)
    num_boxes, num_attrs = validate_dims(dims, len(class_names), values.size)
    if num_boxes == 0:
        return []

    rows = values.reshape(num_boxes, num_attrs)
    finite = np.isfinite(rows).all(axis=1)

    class_scores = rows[:, NUM_BOX_ATTRS:]
    # argmax returns the first index on ties
    class_ids = np.argmax(class_scores, axis=1)
    best_scores = class_scores[np.arange(num_boxes), class_ids]
    confidences = rows[:, 4] * best_scores

    keep = finite & (confidences > confidence_threshold)
    skipped = int((~finite).sum())
    if skipped:
        logging.debug(f"Decoder skipped {skipped} non-finite rows")

    detections: List[Detection] = []
    for i in np.flatnonzero(keep):
        cx, cy, w, h = (float(v) for v in rows[i, :4])
        detections.append(
            Detection.from_center(
                cx, cy, w, h,
                class_id=int(class_ids[i]),
                confidence=float(confidences[i]),
                class_names=class_names,
            )
        )

    logging.debug(f"Decoded {len(detections)}/{num_boxes} rows above {confidence_threshold}")
    return detections
