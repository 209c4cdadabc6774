"""
Model preprocessing and inference backends.
"""

from .backend import InferenceBackend, RawOutput
from .preprocess import preprocess_frame

__all__ = ["InferenceBackend", "RawOutput", "preprocess_frame"]
