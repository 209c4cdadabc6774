"""
Inference backend interface.

Backends run the detection model on a preprocessed (1, 3, S, S) tensor and
return the raw output tensor untouched; decoding happens in `detection`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple

import numpy as np


@dataclass(frozen=True)
class RawOutput:
    """Flat output buffer plus its (batch, num_boxes, num_attrs) shape."""
    data: np.ndarray
    dims: Tuple[int, ...]


class InferenceBackend(Protocol):
    def infer(self, tensor: np.ndarray) -> RawOutput:
        ...
