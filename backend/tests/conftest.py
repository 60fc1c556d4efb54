"""Pytest configuration and shared fixtures."""

import pytest

from services.feedback_service import FeedbackService
from utils.storage import InMemoryStorage


@pytest.fixture
def sample_submission_payload():
    """Create a valid feedback submission body."""
    return {
        "name": "A",
        "email": "a@x.com",
        "eventName": "Demo",
        "division": "LnT",
        "rating": 5,
    }


@pytest.fixture
def sample_records():
    """Create a small collection as stored on disk (file order)."""
    return [
        {
            "id": "1768896000000",
            "name": "Budi Santoso",
            "email": "budi@example.com",
            "eventName": "Python Workshop",
            "division": "LnT",
            "rating": 4,
            "comment": "Great pacing",
            "suggestion": "",
            "status": "open",
            "createdAt": "2026-01-20T08:00:00.000Z",
        },
        {
            "id": "1768982400000",
            "name": "Citra Dewi",
            "email": "citra@example.com",
            "eventName": "Public Speaking Demo",
            "division": "EEO",
            "rating": 3,
            "comment": "",
            "suggestion": "Longer Q&A session",
            "status": "in-review",
            "createdAt": "2026-01-21T08:00:00.000Z",
        },
        {
            "id": "1769068800000",
            "name": "Dimas Pratama",
            "email": "dimas@example.com",
            "eventName": "Git Bootcamp",
            "division": "LnT",
            "rating": 5,
            "comment": "Loved the DEMO on rebasing",
            "suggestion": "",
            "status": "resolved",
            "createdAt": "2026-01-22T08:00:00.000Z",
        },
    ]


@pytest.fixture
def memory_storage(sample_records):
    """Create an in-memory storage seeded with the sample collection."""
    return InMemoryStorage(sample_records)


@pytest.fixture
def feedback_service(memory_storage):
    """Create a FeedbackService over the seeded in-memory storage."""
    return FeedbackService(memory_storage)
