"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.detection import Detection  # noqa: E402


@pytest.fixture
def make_detection():
    """Factory for detections from center-form values."""
    def _make(cx=0.5, cy=0.5, w=0.1, h=0.1, class_id=2, confidence=0.9):
        return Detection.from_center(cx, cy, w, h, class_id=class_id, confidence=confidence)
    return _make


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  device_id: 0
  resolution: [640, 480]
  fps: 15

detection:
  input_size: 640
  confidence_threshold: 0.4
  iou_threshold: 0.5

calibration:
  path: "data/test_calibration.yaml"
  persist: false

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 15,
        },
        "detection": {
            "input_size": 640,
            "confidence_threshold": 0.4,
            "iou_threshold": 0.5,
            "class_names": ["BLOCK", "INNER", "OK", "OUTER", "SCAR", "TEAR"],
        },
        "pipeline": {
            "inference_interval_s": 0.5,
            "max_consecutive_failures": 10,
        },
        "calibration": {
            "persist": False,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
