"""Services for the Feedback API backend."""

from .feedback_service import FeedbackService

__all__ = [
    "FeedbackService",
]
