"""
FastAPI server for page orientation detection.

Accepts one rendered page image per request and returns the clockwise
rotation that turns the page upright, or null when no confident answer exists.
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pageorient._version import __version__
from pageorient.config import OrientationConfig, ServiceConfig
from pageorient.detection.base import DetectionEngine
from pageorient.detection.engine import DetectionPipeline
from pageorient.exceptions import FeatureDisabledError, InternalError, RequestError
from pageorient.server.deadline import run_with_deadline
from pageorient.server.models import ErrorPayload, HealthResponse, OrientationPayload
from pageorient.server.payload import extract_image_payload

logger = logging.getLogger(__name__)

MIN_LIKELIHOOD = 0.6
ORIENTATION_PATH = "/api/ocr/orientation"
HEALTH_PATH = "/api/health"
HTTP_ERROR_CODES = {
    400: "invalid_image",
    404: "not_found",
    405: "method_not_allowed",
}


def _elapsed_ms(started_at: float) -> int:
    return int((time.perf_counter() - started_at) * 1000)


async def _handle_request_error(request: Request, error: RequestError) -> JSONResponse:
    payload = ErrorPayload(
        message=error.message,
        code=error.code,
        retryable=error.retryable,
    )
    return JSONResponse(status_code=error.status, content=payload.model_dump())


async def _handle_http_error(request: Request, error: StarletteHTTPException) -> JSONResponse:
    payload = ErrorPayload(
        message=str(error.detail),
        code=HTTP_ERROR_CODES.get(error.status_code, "http_error"),
        retryable=False,
    )
    return JSONResponse(
        status_code=error.status_code,
        content=payload.model_dump(),
        headers=getattr(error, "headers", None),
    )


async def _handle_unexpected_error(request: Request, error: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error method=%s path=%s", request.method, request.url.path, exc_info=error
    )
    payload = ErrorPayload(message="Internal server error.", code="internal_error", retryable=False)
    return JSONResponse(status_code=500, content=payload.model_dump())


def create_app(
    config: ServiceConfig | None = None,
    detector: DetectionEngine | None = None,
) -> FastAPI:
    effective_config = config or ServiceConfig.from_env()
    effective_detector = detector or DetectionPipeline(config=OrientationConfig.from_env())

    app = FastAPI(
        title="Page Orientation API",
        description="Infers scanned page rotation from OCR signal",
        version=__version__,
    )
    app.state.config = effective_config
    app.state.detector = effective_detector

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[effective_config.cors_origin],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestError, _handle_request_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)

    @app.get(HEALTH_PATH)
    async def health_check() -> JSONResponse:
        health = HealthResponse(
            status="ok",
            version=__version__,
            ocr_enabled=effective_config.ocr_enabled,
        )
        return JSONResponse(content=health.model_dump(by_alias=True))

    @app.post(ORIENTATION_PATH)
    async def detect_page_orientation(request: Request) -> JSONResponse:
        request_id = uuid.uuid4().hex[:12]
        started_at = time.perf_counter()
        byte_count: int | None = None
        mime_type: str | None = None

        try:
            if not effective_config.ocr_enabled:
                raise FeatureDisabledError("OCR is disabled.")

            try:
                payload = await extract_image_payload(request, effective_config)
                byte_count = len(payload.data)
                mime_type = payload.mime_type
                logger.info(
                    "ocr_request_start request_id=%s mime_type=%s bytes=%d timeout_ms=%d",
                    request_id,
                    mime_type,
                    byte_count,
                    effective_config.ocr_timeout_ms,
                )

                result = await run_with_deadline(
                    effective_detector.detect, payload.data, effective_config.ocr_timeout_ms
                )
            except RequestError:
                raise
            except Exception as unexpected_error:
                raise InternalError("Internal server error.") from unexpected_error
        except RequestError as error:
            log_method = logger.error if isinstance(error, InternalError) else logger.warning
            log_method(
                "ocr_request_failed request_id=%s code=%s status=%d retryable=%s "
                "duration_ms=%d mime_type=%s bytes=%s",
                request_id,
                error.code,
                error.status,
                error.retryable,
                _elapsed_ms(started_at),
                mime_type,
                byte_count,
                exc_info=error.__cause__ if isinstance(error, InternalError) else None,
            )
            raise

        likelihood = result.confidence
        rotation = result.rotation if likelihood >= MIN_LIKELIHOOD else None
        duration_ms = _elapsed_ms(started_at)

        logger.info(
            "ocr_request_completed request_id=%s duration_ms=%d rotation=%s "
            "confidence=%.3f likelihood=%.3f has_text_sample=%s",
            request_id,
            duration_ms,
            rotation,
            result.confidence,
            likelihood,
            bool(result.text_sample),
        )

        response = OrientationPayload(
            rotation=rotation,
            confidence=result.confidence,
            likelihood=likelihood,
            text_sample=result.text_sample,
            processing_ms=duration_ms,
        )
        return JSONResponse(content=response.to_json())

    return app
