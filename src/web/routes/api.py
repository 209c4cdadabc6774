from __future__ import annotations

import time
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request

from calibration.state_machine import CalibrationMode
from runtime.context import RuntimeContext
from ..api_models import (
    CalibrationResponse,
    DetectionsResponse,
    ErrorResponse,
    HealthResponse,
    ReferenceSizeRequest,
    SelectReferenceRequest,
)
from ..services.calibration_service import CalibrationService, NoDetectionSelected

router = APIRouter(
    responses={
        400: {"model": ErrorResponse, "description": "Calibration request rejected"},
        409: {"model": ErrorResponse, "description": "Calibration is in the wrong state"},
    }
)


def get_context(request: Request) -> RuntimeContext:
    return request.app.state.ctx


def get_calibration_service(ctx: RuntimeContext = Depends(get_context)) -> CalibrationService:
    return CalibrationService(ctx)


def _derive_status(last_result_age: Optional[float], mode: CalibrationMode) -> Tuple[str, List[str]]:
    """
    Lightweight status classifier used by /api/health.
    Thresholds: >10s since last result => offline; >2s => degraded.
    """
    level = "running"
    warnings: List[str] = []
    if last_result_age is None or last_result_age > 10:
        level = "offline"
        warnings.append("inference_offline")
    elif last_result_age > 2:
        level = "degraded"
        warnings.append("inference_stale")

    if mode != CalibrationMode.CALIBRATED:
        warnings.append("uncalibrated")

    return level, warnings


@router.get("/health", response_model=HealthResponse)
def health(ctx: RuntimeContext = Depends(get_context)):
    now = time.time()
    stats = ctx.get_system_stats_copy()
    last_result_ts = stats.get("last_result_ts")
    last_result_age = now - last_result_ts if last_result_ts else None
    start_time = stats.get("start_time")
    mode = ctx.calibrator.mode

    level, warnings = _derive_status(last_result_age, mode)
    return {
        "status": level,
        "warnings": warnings,
        "last_result_age_s": last_result_age,
        "last_inference_ms": stats.get("last_inference_ms"),
        "fps": stats.get("fps"),
        "uptime_seconds": int(now - start_time) if start_time else None,
        "calibration_mode": mode.value,
    }


@router.get("/detections", response_model=DetectionsResponse)
def detections(service: CalibrationService = Depends(get_calibration_service)):
    return service.detections()


@router.get("/calibration", response_model=CalibrationResponse)
def calibration_status(service: CalibrationService = Depends(get_calibration_service)):
    return service.status()


@router.post("/calibration/reference-size", response_model=CalibrationResponse)
def set_reference_size(
    body: ReferenceSizeRequest,
    service: CalibrationService = Depends(get_calibration_service),
):
    return service.set_reference_size(body.size_mm)


@router.post("/calibration/start", response_model=CalibrationResponse)
def start_calibration(service: CalibrationService = Depends(get_calibration_service)):
    return service.start()


@router.post("/calibration/select", response_model=CalibrationResponse)
def select_reference(
    body: SelectReferenceRequest,
    service: CalibrationService = Depends(get_calibration_service),
):
    try:
        return service.select(
            index=body.index,
            x=body.x,
            y=body.y,
            display_width=body.display_width,
            display_height=body.display_height,
        )
    except NoDetectionSelected as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/calibration/complete", response_model=CalibrationResponse)
def complete_calibration(service: CalibrationService = Depends(get_calibration_service)):
    return service.complete()


@router.post("/calibration/reset", response_model=CalibrationResponse)
def reset_calibration(service: CalibrationService = Depends(get_calibration_service)):
    return service.reset()
