import os
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, List

import structlog
import uvicorn
from fastapi import FastAPI, File, Header, HTTPException, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)

from phishlens.config import ConfigurationError, load_settings
from phishlens.dashboard import dashboard_stats, dashboard_summary
from phishlens.history import SessionHistories
from phishlens.loader import (
    MAX_UPLOAD_BYTES,
    UnsupportedFileError,
    email_input_from_upload,
)
from phishlens.schema import (
    AnalysisReport,
    AnalysisResult,
    DashboardStat,
    DashboardSummary,
    EmailInput,
    HistoryItem,
)
from phishlens.service import DetectionService

logger = structlog.get_logger(__name__)

VERSION = "1.0.0"

# Metrics
REQUEST_COUNT = Counter(
    "phishlens_requests_total", "Total requests", ["method", "endpoint", "status"]
)
REQUEST_DURATION = Histogram("phishlens_request_duration_seconds", "Request duration")
ANALYSIS_COUNT = Counter(
    "phishlens_analyses_total", "Analyses by prediction", ["prediction"]
)
ERROR_COUNT = Counter("phishlens_errors_total", "Errors by type", ["error_type"])

# Global service instance and caller-owned session state
detection_service: DetectionService = None
session_histories: SessionHistories = SessionHistories()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global detection_service, session_histories

    logger.info("Starting PhishLens demo service")

    try:
        settings = load_settings()
        detection_service = DetectionService(settings)
        session_histories = SessionHistories(
            settings.history_limit, settings.session_limit
        )
        logger.info(
            "Service initialized",
            delay_ms=settings.analysis_delay_ms,
            keywords=len(settings.rules.danger_keywords),
            seeded=settings.random_seed is not None,
        )
    except ConfigurationError as e:
        logger.error("Invalid configuration, analysis disabled", error=str(e))
        detection_service = None

    yield

    logger.info("Shutting down PhishLens demo service")


app = FastAPI(
    title="PhishLens API",
    description="Demo phishing email detector with keyword heuristics and "
    "simulated header checks",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Collect metrics for all requests."""
    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time
    REQUEST_DURATION.observe(duration)
    REQUEST_COUNT.labels(
        method=request.method, endpoint=request.url.path, status=response.status_code
    ).inc()

    logger.info(
        "HTTP request processed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=int(duration * 1000),
    )

    return response


def _require_service() -> DetectionService:
    if not detection_service:
        ERROR_COUNT.labels(error_type="service_unavailable").inc()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Detection service not available",
        )
    return detection_service


async def _analyze(email: EmailInput, session_id: str) -> AnalysisResult:
    service = _require_service()

    if not email.subject and not email.body:
        ERROR_COUNT.labels(error_type="invalid_request").inc()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one of subject or body must be provided",
        )

    try:
        result = await service.analyze_email(email)
    except Exception as e:
        ERROR_COUNT.labels(error_type="internal_error").inc()
        logger.error(
            "Analysis failed with internal error",
            session_id=session_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error during analysis",
        )

    session_histories.get(session_id).record(email, result)
    ANALYSIS_COUNT.labels(prediction=result.prediction).inc()

    logger.info(
        "Analysis recorded",
        session_id=session_id,
        result_id=result.id,
        prediction=result.prediction,
        confidence=result.confidence,
    )
    return result


@app.get("/health")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "phishlens",
        "version": VERSION,
        "timestamp": int(time.time()),
    }


@app.get("/ready")
async def readiness_check() -> Dict[str, Any]:
    """Readiness check endpoint."""
    if not detection_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service not ready"
        )

    return {
        "status": "ready",
        "service": "phishlens",
        "components": {"scoring_engine": "ready", "session_histories": "ready"},
    }


@app.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.post("/analyze", response_model=AnalysisResult)
async def analyze_email(
    email: EmailInput, x_session_id: str = Header("anonymous")
) -> AnalysisResult:
    """
    Analyze an email for phishing indicators.

    - **subject**: Subject line
    - **body**: Email body as plain text
    - **raw_headers**: Raw headers (accepted, not inspected)
    - **from_address**: Optional sender address

    Returns the verdict, confidence, explanations, highlighted phrases and
    header indicators. The result is added to the session's scan history.
    """
    return await _analyze(email, x_session_id)


@app.post("/analyze/report", response_model=AnalysisReport)
async def analyze_email_report(
    email: EmailInput, x_session_id: str = Header("anonymous")
) -> AnalysisReport:
    """Analyze an email and return the result with annotated subject and body."""
    result = await _analyze(email, x_session_id)
    return detection_service.build_report(email, result)


@app.post("/analyze/file", response_model=AnalysisResult)
async def analyze_file(
    file: UploadFile = File(...), x_session_id: str = Header("anonymous")
) -> AnalysisResult:
    """Analyze an uploaded .eml, .txt or .msg file read as plain text."""
    content = await file.read(MAX_UPLOAD_BYTES)

    try:
        email = email_input_from_upload(file.filename, content)
    except UnsupportedFileError as e:
        ERROR_COUNT.labels(error_type="unsupported_file").inc()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info(
        "Loaded email from upload",
        session_id=x_session_id,
        filename=file.filename,
        bytes_read=len(content),
    )
    return await _analyze(email, x_session_id)


@app.get("/dashboard/stats", response_model=List[DashboardStat])
async def get_dashboard_stats() -> List[DashboardStat]:
    """Weekly threat volume for the dashboard chart (demo data)."""
    return dashboard_stats()


@app.get("/dashboard/summary", response_model=DashboardSummary)
async def get_dashboard_summary() -> DashboardSummary:
    """Headline dashboard numbers (demo data)."""
    return dashboard_summary()


@app.get("/history", response_model=List[HistoryItem])
async def get_history(x_session_id: str = Header("anonymous")) -> List[HistoryItem]:
    """Scan history of the calling session, newest first."""
    history = session_histories.find(x_session_id)
    return history.items() if history is not None else []


@app.delete("/history", status_code=status.HTTP_204_NO_CONTENT)
async def clear_history(x_session_id: str = Header("anonymous")) -> Response:
    """Forget the calling session's scan history."""
    session_histories.discard(x_session_id)
    logger.info("Scan history cleared", session_id=x_session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": "PhishLens API",
        "version": VERSION,
        "description": "Demo phishing email detector",
        "docs_url": "/docs",
        "health_url": "/health",
        "endpoints": {
            "analyze": "POST /analyze - Analyze an email",
            "report": "POST /analyze/report - Analyze and annotate an email",
            "file": "POST /analyze/file - Analyze an uploaded email file",
            "dashboard_stats": "GET /dashboard/stats - Weekly demo chart data",
            "dashboard_summary": "GET /dashboard/summary - Demo headline numbers",
            "history": "GET /history - Session scan history",
            "health": "GET /health - Health check",
            "ready": "GET /ready - Readiness check",
            "metrics": "GET /metrics - Prometheus metrics",
        },
    }


if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    log_level = os.getenv("LOG_LEVEL", "info").lower()

    uvicorn.run(
        "phishlens.app:app",
        host=host,
        port=port,
        log_level=log_level,
        access_log=True,
        loop="asyncio",
    )
