"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .detection import CLASS_NAMES


@dataclass
class CameraConfig:
    """Camera configuration."""
    device_id: Union[int, str] = 0
    resolution: Optional[List[int]] = field(default_factory=lambda: [1280, 720])
    fps: int = 15
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 15),
            swap_rb=d.get("swap_rb", False),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "swap_rb": self.swap_rb,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
        }


@dataclass
class DetectionConfig:
    """Output decoding and suppression settings."""
    input_size: int = 640
    confidence_threshold: float = 0.4
    iou_threshold: float = 0.5
    class_names: List[str] = field(default_factory=lambda: list(CLASS_NAMES))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            input_size=d.get("input_size", 640),
            confidence_threshold=d.get("confidence_threshold", 0.4),
            iou_threshold=d.get("iou_threshold", 0.5),
            class_names=list(d.get("class_names") or CLASS_NAMES),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_size": self.input_size,
            "confidence_threshold": self.confidence_threshold,
            "iou_threshold": self.iou_threshold,
            "class_names": list(self.class_names),
        }


@dataclass
class InferenceConfig:
    """ONNX model settings."""
    model_path: str = "models/best_simplified.onnx"
    providers: List[str] = field(default_factory=lambda: ["CPUExecutionProvider"])
    intra_op_num_threads: int = 4

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "InferenceConfig":
        return cls(
            model_path=d.get("model_path", "models/best_simplified.onnx"),
            providers=list(d.get("providers") or ["CPUExecutionProvider"]),
            intra_op_num_threads=d.get("intra_op_num_threads", 4),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_path": self.model_path,
            "providers": list(self.providers),
            "intra_op_num_threads": self.intra_op_num_threads,
        }


@dataclass
class PipelineSettings:
    """Frame loop settings."""
    inference_interval_s: float = 0.5
    max_consecutive_failures: int = 10
    stats_log_interval: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PipelineSettings":
        return cls(
            inference_interval_s=d.get("inference_interval_s", 0.5),
            max_consecutive_failures=d.get("max_consecutive_failures", 10),
            stats_log_interval=d.get("stats_log_interval", 60.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "inference_interval_s": self.inference_interval_s,
            "max_consecutive_failures": self.max_consecutive_failures,
            "stats_log_interval": self.stats_log_interval,
        }


@dataclass
class CalibrationConfig:
    """Calibration persistence."""
    path: str = "data/calibration/calibration.yaml"
    persist: bool = True
    default_reference_size_mm: Optional[float] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CalibrationConfig":
        return cls(
            path=d.get("path", "data/calibration/calibration.yaml"),
            persist=d.get("persist", True),
            default_reference_size_mm=d.get("default_reference_size_mm"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "path": self.path,
            "persist": self.persist,
        }
        if self.default_reference_size_mm is not None:
            d["default_reference_size_mm"] = self.default_reference_size_mm
        return d


@dataclass
class WebConfig:
    """REST API server."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", True),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/oring_gauge.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera") or {}),
            detection=DetectionConfig.from_dict(d.get("detection") or {}),
            inference=InferenceConfig.from_dict(d.get("inference") or {}),
            pipeline=PipelineSettings.from_dict(d.get("pipeline") or {}),
            calibration=CalibrationConfig.from_dict(d.get("calibration") or {}),
            web=WebConfig.from_dict(d.get("web") or {}),
            log_path=d.get("log_path", "logs/oring_gauge.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or logging)."""
        return {
            "camera": self.camera.to_dict(),
            "detection": self.detection.to_dict(),
            "inference": self.inference.to_dict(),
            "pipeline": self.pipeline.to_dict(),
            "calibration": self.calibration.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
