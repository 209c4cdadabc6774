"""
FastAPI application factory for the O-ring gauge.

Routes:
- /api/health       -> pipeline freshness and calibration mode
- /api/detections   -> latest detections with measured diameters
- /api/calibration* -> calibration workflow
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from calibration.errors import CalibrationError, InvalidState
from runtime.context import RuntimeContext
from .api_models import ErrorResponse
from .routes import api


def create_app(ctx: RuntimeContext) -> FastAPI:
    """Create the FastAPI app bound to a runtime context."""
    app = FastAPI(
        title="O-Ring Gauge",
        version="0.1.0",
        description="O-ring detection and size measurement",
    )
    app.state.ctx = ctx

    # CORS for development (Vite dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CalibrationError)
    async def calibration_error_handler(request: Request, exc: CalibrationError):
        status_code = 409 if isinstance(exc, InvalidState) else 400
        logging.info(f"Calibration request rejected: {type(exc).__name__}: {exc}")
        body = ErrorResponse(detail=str(exc), error=type(exc).__name__)
        return JSONResponse(body.model_dump(), status_code=status_code)

    app.include_router(api.router, prefix="/api")

    return app
