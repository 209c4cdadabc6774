"""
Tests for the REST API: health, detections and the calibration workflow.
"""

import time
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from calibration import CalibrationMode, CalibrationStore, Calibrator
from models.config import Config
from models.frame import FrameResult
from runtime.context import RuntimeContext
from web.app import create_app
from web.routes.api import _derive_status


@pytest.fixture
def ctx():
    config = Config()
    config.calibration.persist = False
    return RuntimeContext(config=config, calibrator=Calibrator())


@pytest.fixture
def client(ctx):
    return TestClient(create_app(ctx))


@pytest.fixture
def published(ctx, make_detection):
    """Publish one result: an OK reference part and a torn part."""
    detections = [
        make_detection(cx=0.25, cy=0.5, w=0.1, h=0.1, class_id=2, confidence=0.9),
        make_detection(cx=0.75, cy=0.5, w=0.2, h=0.2, class_id=5, confidence=0.8),
    ]
    ctx.accept_result(FrameResult(sequence=1, timestamp=time.time(), detections=detections))
    return detections


def _calibrate(client):
    client.post("/api/calibration/reference-size", json={"size_mm": 10})
    client.post("/api/calibration/start")
    client.post("/api/calibration/select", json={"index": 0})
    return client.post("/api/calibration/complete")


class TestDeriveStatus:
    """Tests for health status classification."""

    def test_running_when_fresh(self):
        level, warnings = _derive_status(0.5, CalibrationMode.CALIBRATED)
        assert level == "running"
        assert warnings == []

    def test_degraded_when_stale(self):
        level, warnings = _derive_status(5.0, CalibrationMode.CALIBRATED)
        assert level == "degraded"
        assert "inference_stale" in warnings

    def test_offline_without_results(self):
        level, warnings = _derive_status(None, CalibrationMode.CALIBRATED)
        assert level == "offline"
        assert "inference_offline" in warnings

    def test_uncalibrated_warning(self):
        _, warnings = _derive_status(0.5, CalibrationMode.AWAITING_REFERENCE_SELECTION)
        assert warnings == ["uncalibrated"]


class TestHealthEndpoint:
    def test_offline_before_first_result(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "offline"
        assert data["calibration_mode"] == "uncalibrated"

    def test_running_after_result(self, client, published):
        data = client.get("/api/health").json()
        assert data["status"] == "running"
        assert "uncalibrated" in data["warnings"]


class TestDetectionsEndpoint:
    def test_empty_before_first_result(self, client):
        data = client.get("/api/detections").json()
        assert data["detections"] == []
        assert data["sequence"] is None
        assert data["calibrated"] is False

    def test_uncalibrated_detections_have_no_size(self, client, published):
        data = client.get("/api/detections").json()
        assert data["sequence"] == 1
        assert [d["label"] for d in data["detections"]] == ["OK", "TEAR"]
        assert all(d["diameter_mm"] is None for d in data["detections"])
        assert data["detections"][0]["annotation"] == "OK (90%)"

    def test_calibrated_detections_sized(self, client, published):
        _calibrate(client)
        data = client.get("/api/detections").json()

        ok, tear = data["detections"]
        assert data["calibrated"] is True
        assert ok["diameter_mm"] == pytest.approx(10.0)
        assert ok["annotation"] == "OK (90%) - Ø10.0mm"
        assert ok["selected"] is True
        assert tear["diameter_mm"] is None
        assert tear["selected"] is False


class TestCalibrationFlow:
    def test_full_flow(self, client, published):
        response = _calibrate(client)
        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "calibrated"
        assert data["pixels_per_mm"] == pytest.approx(6.4)
        assert data["reference_size_mm"] == 10.0

    def test_select_by_click(self, client, published):
        client.post("/api/calibration/reference-size", json={"size_mm": 10})
        client.post("/api/calibration/start")
        # Second detection centred at (0.75, 0.5) on a 1000x800 display
        response = client.post(
            "/api/calibration/select",
            json={"x": 750, "y": 400, "display_width": 1000, "display_height": 800},
        )
        assert response.status_code == 200
        assert response.json()["selected_reference"]["label"] == "TEAR"

    def test_reset(self, client, published):
        _calibrate(client)
        data = client.post("/api/calibration/reset").json()
        assert data["mode"] == "uncalibrated"
        assert data["pixels_per_mm"] is None
        assert data["reference_size_mm"] == 10.0


class TestCalibrationErrors:
    def test_invalid_reference_size(self, client):
        response = client.post("/api/calibration/reference-size", json={"size_mm": -5})
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidReferenceSize"

    def test_non_numeric_reference_size(self, client):
        response = client.post("/api/calibration/reference-size", json={"size_mm": "abc"})
        assert response.status_code == 422

    def test_start_without_reference_size(self, client):
        response = client.post("/api/calibration/start")
        assert response.status_code == 400
        assert response.json()["error"] == "MissingReferenceSize"

    def test_select_when_not_awaiting(self, client, published):
        response = client.post("/api/calibration/select", json={"index": 0})
        assert response.status_code == 409
        assert response.json()["error"] == "InvalidState"

    def test_complete_without_selection(self, client):
        client.post("/api/calibration/reference-size", json={"size_mm": 10})
        client.post("/api/calibration/start")
        response = client.post("/api/calibration/complete")
        assert response.status_code == 400
        assert response.json()["error"] == "IncompleteSelection"
        assert client.get("/api/calibration").json()["mode"] == "awaiting-reference-selection"

    def test_select_unknown_index(self, client, published):
        client.post("/api/calibration/reference-size", json={"size_mm": 10})
        client.post("/api/calibration/start")
        response = client.post("/api/calibration/select", json={"index": 7})
        assert response.status_code == 404

    def test_select_click_on_empty_area(self, client, published):
        client.post("/api/calibration/reference-size", json={"size_mm": 10})
        client.post("/api/calibration/start")
        response = client.post(
            "/api/calibration/select",
            json={"x": 500, "y": 50, "display_width": 1000, "display_height": 800},
        )
        assert response.status_code == 404

    def test_select_without_target(self, client, published):
        client.post("/api/calibration/reference-size", json={"size_mm": 10})
        client.post("/api/calibration/start")
        response = client.post("/api/calibration/select", json={})
        assert response.status_code == 422

    def test_error_model_documented(self, client):
        schema = client.get("/openapi.json").json()
        responses = schema["paths"]["/api/calibration/start"]["post"]["responses"]
        for code in ("400", "409"):
            ref = responses[code]["content"]["application/json"]["schema"]["$ref"]
            assert ref.endswith("/ErrorResponse")
        assert set(schema["components"]["schemas"]["ErrorResponse"]["required"]) == {"detail", "error"}


class TestCalibrationPersistence:
    def test_complete_saves_and_reset_clears(self, tmp_path, make_detection):
        config = Config()
        config.calibration.path = str(tmp_path / "calibration.yaml")
        ctx = RuntimeContext.from_config(config)
        ctx.accept_result(FrameResult(sequence=1, timestamp=time.time(), detections=[make_detection()]))
        client = TestClient(create_app(ctx))

        _calibrate(client)
        store = CalibrationStore(config.calibration.path)
        assert store.load()["pixels_per_mm"] == pytest.approx(6.4)

        # A fresh runtime starts calibrated from the saved file
        restored = RuntimeContext.from_config(config)
        assert restored.calibrator.mode == CalibrationMode.CALIBRATED

        client.post("/api/calibration/reset")
        assert not store.exists()

    def test_reset_succeeds_when_file_cannot_be_removed(self, tmp_path, make_detection):
        config = Config()
        config.calibration.path = str(tmp_path / "calibration.yaml")
        ctx = RuntimeContext.from_config(config)
        ctx.accept_result(FrameResult(sequence=1, timestamp=time.time(), detections=[make_detection()]))
        client = TestClient(create_app(ctx))
        _calibrate(client)

        with patch("calibration.store.os.remove", side_effect=PermissionError("read-only")):
            response = client.post("/api/calibration/reset")

        assert response.status_code == 200
        assert response.json()["mode"] == "uncalibrated"
        assert ctx.calibrator.mode == CalibrationMode.UNCALIBRATED

    def test_complete_succeeds_when_file_cannot_be_written(self, tmp_path, make_detection):
        config = Config()
        config.calibration.path = str(tmp_path / "calibration.yaml")
        ctx = RuntimeContext.from_config(config)
        ctx.accept_result(FrameResult(sequence=1, timestamp=time.time(), detections=[make_detection()]))
        client = TestClient(create_app(ctx))

        with patch("calibration.store.open", side_effect=PermissionError("read-only"), create=True):
            response = _calibrate(client)

        assert response.status_code == 200
        assert response.json()["mode"] == "calibrated"
