"""Utility functions for the Feedback API."""

from .storage import (
    FeedbackStorage,
    InMemoryStorage,
    JsonFileStorage,
    S3JsonStorage,
    StorageError,
)

__all__ = [
    "FeedbackStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "S3JsonStorage",
    "StorageError",
]
