"""
Typed models for the O-ring gauge.

Detections are immutable value objects; configuration mirrors the YAML file.
"""

from .detection import CLASS_NAMES, UNKNOWN_LABEL, BoundingBox, Detection, label_for
from .frame import FrameData, FrameResult
from .config import (
    Config,
    CameraConfig,
    DetectionConfig,
    InferenceConfig,
    PipelineSettings,
    CalibrationConfig,
    WebConfig,
)

__all__ = [
    # Detection
    "CLASS_NAMES",
    "UNKNOWN_LABEL",
    "BoundingBox",
    "Detection",
    "label_for",
    # Frames
    "FrameData",
    "FrameResult",
    # Config
    "Config",
    "CameraConfig",
    "DetectionConfig",
    "InferenceConfig",
    "PipelineSettings",
    "CalibrationConfig",
    "WebConfig",
]
