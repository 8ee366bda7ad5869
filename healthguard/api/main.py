"""FastAPI main application for the HealthGuard analysis service."""

import logging
import secrets
from datetime import datetime
from typing import List, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Depends, Security, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import APIKeyHeader

from ..config import settings
from ..models.schemas import (
    AnalyzeRequest,
    AnalysisResult,
    DashboardStats,
    HistoryEntry,
)
from ..models.errors import EmptyInputError
from ..agents.normalizer import normalize_request
from ..graph.orchestrator import ClaimAnalysisGraph, create_orchestrator
from ..services.history_service import AnalysisHistory
from ..services.rate_limiter import SlidingWindowRateLimiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Per-client request limits for /analyze
_rate_limiter = SlidingWindowRateLimiter()

# Orchestrator instance (singleton)
_orchestrator_instance: Optional[ClaimAnalysisGraph] = None

# Recorded analyses (use a database in production)
_history = AnalysisHistory()

# API Key security
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def get_orchestrator() -> ClaimAnalysisGraph:
    """Get or create the orchestrator instance."""
    global _orchestrator_instance
    if _orchestrator_instance is None:
        _orchestrator_instance = create_orchestrator()
    return _orchestrator_instance


def get_history() -> AnalysisHistory:
    """Get the analysis history store."""
    return _history


def get_rate_limiter() -> SlidingWindowRateLimiter:
    """Get the per-client request limiter."""
    return _rate_limiter


async def verify_api_key(api_key: Optional[str] = Security(api_key_header)) -> bool:
    """Require the configured API key, when one is configured.

    Raises:
        HTTPException: 401 if the key is missing or wrong
    """
    if not settings.API_KEY:
        return True

    if not api_key or not secrets.compare_digest(api_key, settings.API_KEY):
        raise HTTPException(
            status_code=401,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "API key required"}
        )
    return True


async def enforce_rate_limit(
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter)
) -> None:
    """Refuse analysis requests beyond the per-client limit with 429."""
    client_id = request.client.host if request.client else "unknown"

    if not limiter.allow(client_id):
        raise HTTPException(
            status_code=429,
            detail="Too many analysis requests. Please try again later."
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting HealthGuard API...")
    logger.info(f"Inference backend: {settings.INFERENCE_BACKEND}")
    if settings.INFERENCE_BACKEND == "openai":
        logger.info(f"Using LLM model: {settings.LLM_MODEL}")
    else:
        logger.info(f"Inference endpoint: {settings.INFERENCE_URL}")

    yield

    logger.info("Shutting down HealthGuard API...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="HealthGuard API",
        description="Safety triage of health claims from text, URLs and PDF metadata",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    cors_origins = [
        origin.strip()
        for origin in settings.CORS_ORIGINS.split(",")
        if origin.strip()
    ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key"],
    )

    return app


# Create app instance
app = create_app()


# ==================== Health Check ====================

@app.get("/health")
async def health_check():
    """Health check endpoint (no auth required)."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": "0.1.0"
    }


@app.get("/config")
async def get_config(_: bool = Depends(verify_api_key)):
    """Get current configuration (non-sensitive)."""
    return {
        "inference_backend": settings.INFERENCE_BACKEND,
        "llm_model": settings.LLM_MODEL,
        "reject_empty_input": settings.REJECT_EMPTY_INPUT,
        "reasoning_char_limit": settings.REASONING_CHAR_LIMIT,
        "max_text_length": settings.MAX_TEXT_LENGTH,
    }


# ==================== Analysis ====================

@app.post("/analyze", response_model=AnalysisResult)
async def analyze(
    request: AnalyzeRequest,
    _: bool = Depends(verify_api_key),
    __: None = Depends(enforce_rate_limit),
    orchestrator: ClaimAnalysisGraph = Depends(get_orchestrator),
    history: AnalysisHistory = Depends(get_history)
):
    """Analyze a health claim.

    Failed analyses are not reported as errors: they come back as a
    low-confidence misinformation verdict whose reasoning explains the
    failure.

    Args:
        request: AnalyzeRequest with url, text and/or PDF metadata

    Returns:
        AnalysisResult
    """
    if request.text and len(request.text) > settings.MAX_TEXT_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Text too long. Maximum {settings.MAX_TEXT_LENGTH} characters allowed."
        )

    analysis_input = normalize_request(request)

    logger.info(f"Received analysis request (submitter: {request.submitted_by or 'anonymous'})")

    try:
        result = await orchestrator.aanalyze_safely(analysis_input, request.submitted_by)
    except EmptyInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Analysis could not be completed: {e}")
        detail = str(e) if settings.DEBUG_MODE else "Analysis could not be completed"
        raise HTTPException(status_code=500, detail=detail)

    history.record(result, request.submitted_by)
    return result


# ==================== History & Dashboard ====================

@app.get("/history", response_model=List[HistoryEntry])
async def list_history(
    submitted_by: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=500),
    _: bool = Depends(verify_api_key),
    history: AnalysisHistory = Depends(get_history)
):
    """List recorded analyses, newest first.

    Args:
        submitted_by: Only list this submitter's analyses
        limit: Maximum number of entries

    Returns:
        List of history entries
    """
    return history.list(submitted_by=submitted_by, limit=limit)


@app.delete("/history")
async def clear_history(
    submitted_by: Optional[str] = None,
    _: bool = Depends(verify_api_key),
    history: AnalysisHistory = Depends(get_history)
):
    """Delete recorded analyses, all of them or one submitter's."""
    removed = history.clear(submitted_by=submitted_by)
    return {"message": "History cleared", "removed": removed}


@app.get("/dashboard", response_model=DashboardStats)
async def dashboard(
    submitted_by: Optional[str] = None,
    _: bool = Depends(verify_api_key),
    history: AnalysisHistory = Depends(get_history)
):
    """Verdict counts over recorded analyses."""
    return history.stats(submitted_by=submitted_by)


# ==================== Run Server ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "healthguard.api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=True
    )
