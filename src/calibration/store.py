"""
Persistence for completed calibrations.

A calibration is only valid for one camera placement, so it is stored in its
own YAML file next to the runtime data rather than in config.yaml.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

import yaml

from .errors import CalibrationError
from .state_machine import CalibrationSnapshot, Calibrator


DEFAULT_CALIBRATION_PATH = os.path.join("data", "calibration", "calibration.yaml")


class CalibrationStore:
    """
    Loads and saves the pixels-per-millimeter calibration.

    File layout:
        pixels_per_mm: 6.4
        reference_size_mm: 10.0
        input_size: 640
        reference: {x1: ..., label: OK, ...}
        _metadata: {created: ..., last_updated: ...}
    """

    def __init__(self, path: str = DEFAULT_CALIBRATION_PATH):
        self.path = path

    def exists(self) -> bool:
        """Check if a calibration file exists."""
        return os.path.exists(self.path)

    def load(self) -> Optional[Dict[str, Any]]:
        """
        Load calibration data.

        Returns:
            Calibration dict, or None if the file is missing or unreadable.
        """
        if not self.exists():
            logging.debug(f"No calibration file at {self.path}")
            return None

        try:
            with open(self.path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logging.error(f"Failed to load calibration: {e}")
            return None

        if not isinstance(data, dict):
            logging.error(f"Calibration file {self.path} is not a mapping")
            return None

        logging.info(f"Loaded calibration from {self.path}")
        return data

    def save(self, snapshot: CalibrationSnapshot) -> Dict[str, Any]:
        """
        Save a completed calibration.

        Raises:
            ValueError: If the snapshot is not calibrated.
            OSError: If the file cannot be written.
        """
        if not snapshot.is_calibrated:
            raise ValueError("Only a completed calibration can be saved")

        previous = self.load() or {}
        metadata = dict(previous.get("_metadata") or {})
        now = datetime.now().isoformat()
        metadata.setdefault("created", now)
        metadata["last_updated"] = now

        data: Dict[str, Any] = {
            "pixels_per_mm": float(snapshot.pixels_per_mm),
            "reference_size_mm": float(snapshot.reference_size_mm),
            "input_size": int(snapshot.input_size),
        }
        if snapshot.selected_reference is not None:
            data["reference"] = snapshot.selected_reference.to_dict()
        data["_metadata"] = metadata

        calib_dir = os.path.dirname(self.path)
        if calib_dir:
            os.makedirs(calib_dir, exist_ok=True)

        try:
            with open(self.path, "w") as f:
                f.write("# O-ring gauge calibration\n")
                f.write("# Valid only for the camera placement it was measured with.\n\n")
                yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False)
        except OSError as e:
            logging.error(f"Failed to save calibration: {e}")
            raise

        logging.info(f"Saved calibration to {self.path}")
        return data

    def clear(self) -> bool:
        """Delete the calibration file. Returns True if a file was removed."""
        if not self.exists():
            return False
        os.remove(self.path)
        logging.info(f"Removed calibration file {self.path}")
        return True

    def restore_into(self, calibrator: Calibrator) -> bool:
        """
        Restore a saved calibration into `calibrator`.

        A file measured at a different model input size is ignored.

        Returns:
            True if the calibrator is now calibrated from the file.
        """
        data = self.load()
        if not data:
            return False

        input_size = data.get("input_size", calibrator.input_size)
        if input_size != calibrator.input_size:
            logging.warning(
                f"Ignoring calibration for input size {input_size} "
                f"(model uses {calibrator.input_size})"
            )
            return False

        try:
            calibrator.restore(data.get("pixels_per_mm"), data.get("reference_size_mm"))
        except CalibrationError as e:
            logging.warning(f"Ignoring invalid calibration file: {e}")
            return False
        return True
