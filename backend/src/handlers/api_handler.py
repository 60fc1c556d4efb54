"""Main FastAPI application handler for the feedback API."""

import logging
import os
import time
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mangum import Mangum

from models.feedback import FeedbackSubmission, FeedbackUpdate, describe_validation_errors
from services.feedback_service import FeedbackService
from utils.storage import (
    FeedbackStorage,
    InMemoryStorage,
    JsonFileStorage,
    S3JsonStorage,
)

logger = logging.getLogger(__name__)

# backend/data/feedbacks.json
DEFAULT_DATA_FILE = Path(__file__).parent.parent.parent / "data" / "feedbacks.json"

# Initialize FastAPI app
app = FastAPI(
    title="Feedback API",
    description="API for collecting and triaging event feedback",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log all API requests with timing."""
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000

    path = request.url.path
    if duration_ms > 1000:
        logger.warning(
            "[SLOW] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )
    elif response.status_code >= 500:
        logger.error(
            "[ERROR] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )
    elif response.status_code >= 400:
        logger.info(
            "[CLIENT_ERROR] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )

    return response


# Lazy-initialized storage and services
_storage = None
_feedback_service = None


def reset_services():
    """Reset all lazy-initialized services. Useful for testing."""
    global _storage, _feedback_service
    _storage = None
    _feedback_service = None


def create_storage() -> FeedbackStorage:
    """Build the storage backend selected by FEEDBACK_STORAGE."""
    backend = os.environ.get("FEEDBACK_STORAGE", "file").lower()

    if backend == "s3":
        bucket = os.environ.get("FEEDBACK_BUCKET")
        if not bucket:
            raise ValueError("FEEDBACK_BUCKET is required for s3 storage")
        return S3JsonStorage(
            bucket=bucket,
            key=os.environ.get("FEEDBACK_KEY", "data/feedbacks.json"),
        )
    if backend == "memory":
        return InMemoryStorage()
    if backend == "file":
        return JsonFileStorage(os.environ.get("FEEDBACK_DATA_FILE", DEFAULT_DATA_FILE))

    raise ValueError(f"Unknown FEEDBACK_STORAGE backend: {backend}")


def get_storage() -> FeedbackStorage:
    """Get or create the feedback storage (lazy init for SnapStart)."""
    global _storage
    if _storage is None:
        _storage = create_storage()
        logger.info("Using %s for feedback storage", type(_storage).__name__)
    return _storage


def get_feedback_service() -> FeedbackService:
    """Get or create FeedbackService (lazy init for SnapStart)."""
    global _feedback_service
    if _feedback_service is None:
        _feedback_service = FeedbackService(get_storage())
    return _feedback_service


# MARK: - Health Check


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "message": "Feedback API is running"}


# MARK: - Feedback Endpoints


@app.get("/api/feedback")
async def list_feedback(
    status_filter: str | None = Query(
        None, alias="status", description="Filter by status"
    ),
    division: str | None = Query(None, description="Filter by division"),
    search: str | None = Query(
        None, description="Case-insensitive text search across the record"
    ),
):
    """Get all feedback, newest first.

    Filters are optional and combined with AND when several are given.
    """
    try:
        return get_feedback_service().list_feedback(
            status=status_filter,
            division=division,
            search=search,
        )
    except Exception:
        logger.exception("Failed to list feedback")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch feedbacks",
        )


@app.get("/api/feedback/stats")
async def get_feedback_stats():
    """Get record counts per status and the average rating."""
    try:
        return get_feedback_service().get_stats()
    except Exception:
        logger.exception("Failed to compute feedback stats")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute feedback stats",
        )


@app.get("/api/feedback/{feedback_id}")
async def get_feedback(feedback_id: str):
    """Get a specific feedback record by ID."""
    try:
        feedback = get_feedback_service().get_feedback(feedback_id)
        if not feedback:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Feedback not found",
            )
        return feedback

    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to get feedback %s", feedback_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch feedback",
        )


@app.post("/api/feedback", status_code=status.HTTP_201_CREATED)
async def create_feedback(submission: FeedbackSubmission):
    """Submit new feedback.

    The server assigns id, createdAt and the initial "open" status.
    """
    try:
        feedback = get_feedback_service().create_feedback(submission)
        return feedback.model_dump(by_alias=True)

    except Exception:
        logger.exception("Failed to create feedback")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create feedback",
        )


@app.put("/api/feedback/{feedback_id}")
async def update_feedback(feedback_id: str, update: FeedbackUpdate | None = None):
    """Update a feedback record with the supplied fields."""
    try:
        feedback = get_feedback_service().update_feedback(
            feedback_id, update or FeedbackUpdate()
        )
        if not feedback:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Feedback not found",
            )
        return feedback

    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to update feedback %s", feedback_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update feedback",
        )


@app.delete("/api/feedback/{feedback_id}")
async def delete_feedback(feedback_id: str):
    """Delete a feedback record."""
    try:
        deleted = get_feedback_service().delete_feedback(feedback_id)
        if not deleted:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Feedback not found",
            )
        return {"message": "Feedback deleted successfully"}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to delete feedback %s", feedback_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete feedback",
        )


# MARK: - Error Handlers


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request, exc: RequestValidationError):
    """Report invalid request bodies as 400 with a readable message."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": describe_validation_errors(exc.errors())},
    )


# MARK: - Lambda Handler

# Create the Lambda handler
api_handler = Mangum(app, lifespan="off")


# For local development
if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "5000")))
