"""Feedback collection service."""

from datetime import UTC, datetime
from typing import Any

from models.feedback import (
    Feedback,
    FeedbackStatus,
    FeedbackSubmission,
    FeedbackUpdate,
)
from utils.storage import FeedbackStorage


def _created_at_sort_key(record: dict[str, Any]) -> tuple[int, float]:
    """Sort key for newest-first ordering; unparsable timestamps sort last."""
    value = record.get("createdAt")
    try:
        created = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return (0, 0.0)
    if created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    return (1, created.timestamp())


class FeedbackService:
    """Service for listing, filtering and editing feedback records."""

    # Fields matched by the free-text search, in match order
    SEARCH_FIELDS = ("name", "email", "eventName", "comment", "suggestion")

    def __init__(self, storage: FeedbackStorage):
        """Initialize the service.

        Args:
            storage: Backend holding the feedback collection
        """
        self.storage = storage

    def list_feedback(
        self,
        status: str | None = None,
        division: str | None = None,
        search: str | None = None,
    ) -> list[dict[str, Any]]:
        """Get feedback records, newest first.

        Args:
            status: Only records with exactly this status
            division: Only records with exactly this division
            search: Case-insensitive substring matched against name, email,
                event name, comment and suggestion

        Returns:
            Matching records sorted by createdAt descending
        """
        records = self.storage.get_all()

        if status:
            records = [r for r in records if r.get("status") == status]

        if division:
            records = [r for r in records if r.get("division") == division]

        if search:
            needle = search.lower()
            records = [r for r in records if self._matches_search(r, needle)]

        # Stable: equal timestamps keep file order
        records.sort(key=_created_at_sort_key, reverse=True)
        return records

    def _matches_search(self, record: dict[str, Any], needle: str) -> bool:
        for field in self.SEARCH_FIELDS:
            value = record.get(field)
            if isinstance(value, str) and needle in value.lower():
                return True
        return False

    def get_feedback(self, feedback_id: str) -> dict[str, Any] | None:
        """Get a single record by id, or None if it does not exist."""
        return self.storage.get_by_id(feedback_id)

    def create_feedback(self, submission: FeedbackSubmission) -> Feedback:
        """Store a new feedback submission.

        The storage layer assigns id, createdAt and the default status.
        """
        record = self.storage.insert(submission.to_record_fields())
        return Feedback.model_validate(record)

    def update_feedback(
        self, feedback_id: str, update: FeedbackUpdate
    ) -> dict[str, Any] | None:
        """Merge supplied fields into a record.

        Returns:
            The merged record, or None if the id does not exist
        """
        return self.storage.update_by_id(feedback_id, update.to_update_fields())

    def delete_feedback(self, feedback_id: str) -> bool:
        """Delete a record. Returns False if the id does not exist."""
        return self.storage.delete_by_id(feedback_id)

    def get_stats(self) -> dict[str, Any]:
        """Summary counts for the admin dashboard."""
        records = self.storage.get_all()
        ratings = [
            r["rating"]
            for r in records
            if isinstance(r.get("rating"), int | float)
            and not isinstance(r.get("rating"), bool)
        ]

        def count(status: FeedbackStatus) -> int:
            return sum(1 for r in records if r.get("status") == status.value)

        return {
            "total": len(records),
            "open": count(FeedbackStatus.OPEN),
            "inReview": count(FeedbackStatus.IN_REVIEW),
            "resolved": count(FeedbackStatus.RESOLVED),
            "avgRating": round(sum(ratings) / len(ratings), 1) if ratings else 0.0,
        }
