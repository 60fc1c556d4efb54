"""Tests for FeedbackService."""

from datetime import datetime
from unittest.mock import Mock

import pytest

from models.feedback import Feedback, FeedbackSubmission, FeedbackUpdate
from services.feedback_service import FeedbackService
from utils.storage import InMemoryStorage, StorageError


class TestListFeedback:
    """Test filtering and ordering of the feedback list."""

    def test_newest_first(self, feedback_service):
        records = feedback_service.list_feedback()
        assert [r["id"] for r in records] == [
            "1769068800000",
            "1768982400000",
            "1768896000000",
        ]

    def test_filter_by_division(self, feedback_service):
        records = feedback_service.list_feedback(division="LnT")

        assert {r["division"] for r in records} == {"LnT"}
        assert [r["createdAt"] for r in records] == [
            "2026-01-22T08:00:00.000Z",
            "2026-01-20T08:00:00.000Z",
        ]

    def test_filter_by_status(self, feedback_service):
        records = feedback_service.list_feedback(status="in-review")
        assert [r["name"] for r in records] == ["Citra Dewi"]

    def test_unknown_status_returns_empty(self, feedback_service):
        assert feedback_service.list_feedback(status="archived") == []

    def test_search_is_case_insensitive(self, feedback_service):
        records = feedback_service.list_feedback(search="demo")
        # eventName "Public Speaking Demo" and comment "Loved the DEMO..."
        assert [r["name"] for r in records] == ["Dimas Pratama", "Citra Dewi"]

    def test_search_matches_email_and_suggestion(self, feedback_service):
        assert len(feedback_service.list_feedback(search="BUDI@")) == 1
        assert len(feedback_service.list_feedback(search="q&a")) == 1

    def test_search_skips_missing_optional_fields(self):
        storage = InMemoryStorage(
            [
                {
                    "id": "1",
                    "name": "A",
                    "email": "a@x.com",
                    "eventName": "Demo",
                    "createdAt": "2026-01-20T08:00:00.000Z",
                }
            ]
        )
        service = FeedbackService(storage)

        assert service.list_feedback(search="nothing") == []
        assert len(service.list_feedback(search="demo")) == 1

    def test_filters_are_combined(self, feedback_service):
        records = feedback_service.list_feedback(
            division="LnT", status="open", search="python"
        )
        assert [r["name"] for r in records] == ["Budi Santoso"]

        assert (
            feedback_service.list_feedback(division="EEO", search="python") == []
        )

    def test_empty_filters_are_ignored(self, feedback_service):
        assert len(feedback_service.list_feedback(status="", division="", search="")) == 3

    def test_equal_timestamps_keep_file_order(self):
        ts = "2026-01-20T08:00:00.000Z"
        storage = InMemoryStorage(
            [{"id": str(i), "createdAt": ts} for i in range(5)]
        )
        records = FeedbackService(storage).list_feedback()
        assert [r["id"] for r in records] == ["0", "1", "2", "3", "4"]

    def test_unparsable_timestamps_sort_last(self):
        storage = InMemoryStorage(
            [
                {"id": "bad", "createdAt": "yesterday"},
                {"id": "none"},
                {"id": "old", "createdAt": "2025-01-01T00:00:00Z"},
                {"id": "new", "createdAt": "2026-01-01T00:00:00+00:00"},
            ]
        )
        records = FeedbackService(storage).list_feedback()
        assert [r["id"] for r in records] == ["new", "old", "bad", "none"]

    def test_storage_error_propagates(self):
        storage = Mock()
        storage.get_all.side_effect = StorageError("disk on fire")

        with pytest.raises(StorageError):
            FeedbackService(storage).list_feedback()


class TestCreateFeedback:
    """Test feedback creation."""

    def test_create_assigns_server_fields(self, sample_submission_payload):
        service = FeedbackService(InMemoryStorage())
        submission = FeedbackSubmission.model_validate(sample_submission_payload)

        feedback = service.create_feedback(submission)

        assert isinstance(feedback, Feedback)
        assert feedback.id
        assert datetime.fromisoformat(feedback.created_at)
        assert feedback.status == "open"
        assert feedback.comment == ""
        assert feedback.suggestion == ""

    def test_create_then_get(self, sample_submission_payload):
        service = FeedbackService(InMemoryStorage())
        sample_submission_payload["comment"] = "Nice"
        submission = FeedbackSubmission.model_validate(sample_submission_payload)

        created = service.create_feedback(submission).model_dump(by_alias=True)
        fetched = service.get_feedback(created["id"])

        assert fetched == created
        for key, value in sample_submission_payload.items():
            assert fetched[key] == value

    def test_create_appends_to_collection(
        self, feedback_service, memory_storage, sample_submission_payload
    ):
        feedback_service.create_feedback(
            FeedbackSubmission.model_validate(sample_submission_payload)
        )
        assert len(memory_storage.get_all()) == 4


class TestUpdateFeedback:
    """Test partial updates."""

    def test_update_status_only(self, feedback_service, sample_records):
        original = sample_records[0]

        updated = feedback_service.update_feedback(
            original["id"], FeedbackUpdate.model_validate({"status": "resolved"})
        )

        assert updated == {**original, "status": "resolved"}

    def test_update_missing_returns_none(self, feedback_service):
        update = FeedbackUpdate.model_validate({"status": "resolved"})
        assert feedback_service.update_feedback("missing", update) is None

    def test_update_with_empty_body_is_noop(self, feedback_service, sample_records):
        updated = feedback_service.update_feedback(
            sample_records[1]["id"], FeedbackUpdate()
        )
        assert updated == sample_records[1]


class TestDeleteFeedback:
    """Test deletion."""

    def test_delete_twice(self, feedback_service, memory_storage, sample_records):
        feedback_id = sample_records[0]["id"]

        assert feedback_service.delete_feedback(feedback_id) is True
        assert feedback_service.delete_feedback(feedback_id) is False
        assert len(memory_storage.get_all()) == 2

    def test_delete_missing(self, feedback_service, memory_storage):
        assert feedback_service.delete_feedback("missing") is False
        assert len(memory_storage.get_all()) == 3


class TestStats:
    """Test the dashboard summary."""

    def test_stats(self, feedback_service):
        assert feedback_service.get_stats() == {
            "total": 3,
            "open": 1,
            "inReview": 1,
            "resolved": 1,
            "avgRating": 4.0,
        }

    def test_stats_empty(self):
        stats = FeedbackService(InMemoryStorage()).get_stats()
        assert stats["total"] == 0
        assert stats["avgRating"] == 0.0

    def test_average_is_rounded(self):
        storage = InMemoryStorage(
            [{"id": "1", "rating": 5}, {"id": "2", "rating": 4}, {"id": "3", "rating": 4}]
        )
        assert FeedbackService(storage).get_stats()["avgRating"] == 4.3
