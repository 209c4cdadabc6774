"""
O-ring gauge entry point.

Reads frames from a camera, runs the O-ring detection model, and serves the
latest detections and the calibration workflow over a REST API.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --no-web: Run the frame loop without the REST API
"""

import os
import sys
import argparse
import logging
import threading
import yaml
from typing import Dict, Any, Tuple, Optional

from models.config import Config
from ops.logging import setup_logging
from runtime.context import RuntimeContext

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    """Read one YAML layer; a missing file is an empty layer."""
    if not os.path.exists(path):
        return {}
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise yaml.YAMLError(f"{path} must contain a mapping at the top level")
    return data


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration in three layers, later ones winning:

    1. `default.yaml` next to `config_path` (checked in)
    2. `config.yaml` next to `config_path` (local, not checked in)
    3. `config_path` itself, unless it is that same `config.yaml`

    Exits the process if a layer cannot be read or parsed.
    """
    config_dir = os.path.dirname(config_path)
    layers = [
        os.path.join(config_dir, "default.yaml"),
        os.path.join(config_dir, "config.yaml"),
    ]
    if os.path.abspath(config_path) not in (os.path.abspath(p) for p in layers):
        layers.append(config_path)

    merged: Dict[str, Any] = {}
    try:
        for path in layers:
            merged = _deep_merge(merged, _read_yaml(path))
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)
    return merged


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    # Required top-level sections
    required_sections = ['camera', 'detection', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Validate camera settings
    camera = config.get('camera') or {}
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if not isinstance(camera['device_id'], (int, str)) or isinstance(camera['device_id'], bool):
        return False, "camera.device_id must be an integer (index) or string (URL/file)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"
    if camera.get('resolution') is not None:
        res = camera['resolution']
        if not isinstance(res, list) or len(res) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in res):
            return False, "camera.resolution values must be positive integers"
    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"
    if camera.get('rotate', 0) not in (0, 90, 180, 270, None):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    # Validate detection settings
    detection = config.get('detection') or {}
    input_size = detection.get('input_size', 640)
    if not isinstance(input_size, int) or isinstance(input_size, bool) or input_size <= 0:
        return False, "detection.input_size must be a positive integer"
    for key in ('confidence_threshold', 'iou_threshold'):
        if key in detection:
            value = detection[key]
            if not _is_number(value) or not (0 <= value <= 1):
                return False, f"detection.{key} must be a number between 0 and 1"
    class_names = detection.get('class_names')
    if class_names is not None:
        if not isinstance(class_names, list) or not class_names:
            return False, "detection.class_names must be a non-empty list"
        if not all(isinstance(n, str) for n in class_names):
            return False, "detection.class_names entries must be strings"

    # Optional pipeline settings
    pipeline = config.get('pipeline') or {}
    if 'inference_interval_s' in pipeline:
        if not _is_number(pipeline['inference_interval_s']) or pipeline['inference_interval_s'] < 0:
            return False, "pipeline.inference_interval_s must be a non-negative number"
    if 'max_consecutive_failures' in pipeline:
        mcf = pipeline['max_consecutive_failures']
        if not isinstance(mcf, int) or mcf <= 0:
            return False, "pipeline.max_consecutive_failures must be a positive integer"

    # Optional calibration settings
    calibration = config.get('calibration') or {}
    size = calibration.get('default_reference_size_mm')
    if size is not None and (not _is_number(size) or size <= 0):
        return False, "calibration.default_reference_size_mm must be a positive number"

    # Validate log settings
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='O-Ring Gauge')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--no-web', action='store_true',
                        help='Run without the REST API')
    args = parser.parse_args()

    raw_config = load_config(args.config)

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    config = Config.from_dict(raw_config)
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting O-Ring Gauge")

    ctx = RuntimeContext.from_config(config)
    logging.info(f"Calibration mode at startup: {ctx.calibrator.mode.value}")

    # Heavy imports deferred so config errors surface quickly
    from inference.onnx_backend import OnnxBackend, OnnxConfig
    from observation.opencv_source import OpenCVSource
    from pipeline.engine import PipelineEngine

    try:
        backend = OnnxBackend(
            OnnxConfig(
                model_path=config.inference.model_path,
                providers=tuple(config.inference.providers),
                intra_op_num_threads=config.inference.intra_op_num_threads,
            )
        )
    except Exception as e:
        logging.error(f"Failed to load model: {e}")
        sys.exit(1)

    if config.web.enabled and not args.no_web:
        import uvicorn
        from web.app import create_app

        def run_web_app():
            uvicorn.run(
                create_app(ctx),
                host=config.web.host,
                port=config.web.port,
                log_level="info",
            )

        web_thread = threading.Thread(target=run_web_app, daemon=True)
        web_thread.start()
        logging.info(f"REST API started on port {config.web.port}")

    engine = PipelineEngine(OpenCVSource(config.camera), backend, ctx)
    engine.run()
    logging.info("O-Ring Gauge stopped")


if __name__ == "__main__":
    main()
