from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from calibration.state_machine import Calibrator
from calibration.store import CalibrationStore
from models.config import Config
from models.detection import Detection
from models.frame import FrameResult


@dataclass
class RuntimeContext:
    """Holds runtime state shared by the frame loop and the web API; avoids global singletons."""

    config: Config
    calibrator: Calibrator
    store: Optional[CalibrationStore] = None

    # Observability
    system_stats: Dict[str, Any] = field(default_factory=dict)

    _latest: Optional[FrameResult] = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @classmethod
    def from_config(cls, config: Config) -> "RuntimeContext":
        """Build a context, restoring a persisted calibration if enabled."""
        calibrator = Calibrator(input_size=config.detection.input_size)
        if config.calibration.default_reference_size_mm is not None:
            calibrator.set_reference_size(config.calibration.default_reference_size_mm)

        store = None
        if config.calibration.persist:
            store = CalibrationStore(config.calibration.path)
            store.restore_into(calibrator)

        ctx = cls(config=config, calibrator=calibrator, store=store)
        ctx.system_stats["start_time"] = time.time()
        return ctx

    def accept_result(self, result: FrameResult) -> bool:
        """
        Publish a result unless a newer frame's result is already published.

        Returns:
            False if the result was stale and dropped.
        """
        with self._lock:
            if self._latest is not None and result.sequence < self._latest.sequence:
                return False
            self._latest = result
            self.system_stats["last_result_ts"] = result.timestamp
            self.system_stats["last_inference_ms"] = result.inference_ms
            return True

    def get_latest_result(self) -> Optional[FrameResult]:
        with self._lock:
            return self._latest

    def latest_detections(self) -> List[Detection]:
        latest = self.get_latest_result()
        return list(latest.detections) if latest is not None else []

    def update_system_stats(self, stats: Dict[str, Any]) -> None:
        with self._lock:
            self.system_stats.update(stats)

    def get_system_stats_copy(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self.system_stats)
