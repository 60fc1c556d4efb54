"""Data models for the Feedback API."""

from .feedback import (
    Division,
    Feedback,
    FeedbackStatus,
    FeedbackSubmission,
    FeedbackUpdate,
)

__all__ = [
    "Division",
    "Feedback",
    "FeedbackStatus",
    "FeedbackSubmission",
    "FeedbackUpdate",
]
