from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ReferenceSizeRequest(BaseModel):
    size_mm: float = Field(..., description="Physical diameter of the reference object in mm")


class SelectReferenceRequest(BaseModel):
    """
    Pick the reference either by index into the latest detections, or by a
    click position on the display (hit-tested against the latest detections).
    """
    index: Optional[int] = Field(None, description="Index into /api/detections")
    x: Optional[float] = Field(None, description="Click x in display pixels")
    y: Optional[float] = Field(None, description="Click y in display pixels")
    display_width: Optional[float] = Field(None, gt=0)
    display_height: Optional[float] = Field(None, gt=0)


class DetectionItem(BaseModel):
    x1: float
    y1: float
    x2: float
    y2: float
    width: float
    height: float
    class_id: int
    label: str
    confidence: float
    diameter_mm: Optional[float] = None
    annotation: str = ""
    selected: bool = False


class CalibrationResponse(BaseModel):
    mode: str = Field(..., description="uncalibrated|awaiting-reference-selection|calibrated")
    reference_size_mm: Optional[float]
    pixels_per_mm: Optional[float]
    selected_reference: Optional[DetectionItem] = None
    input_size: int


class DetectionsResponse(BaseModel):
    sequence: Optional[int] = None
    timestamp: Optional[float] = None
    inference_ms: Optional[float] = None
    error: Optional[str] = None
    calibrated: bool
    detections: List[DetectionItem] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = Field(..., description="running|degraded|offline")
    warnings: List[str] = Field(default_factory=list)
    last_result_age_s: Optional[float] = None
    last_inference_ms: Optional[float] = None
    fps: Optional[float] = None
    uptime_seconds: Optional[int] = None
    calibration_mode: str


class ErrorResponse(BaseModel):
    detail: str
    error: str
