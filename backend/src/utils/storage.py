"""Whole-document JSON storage for the feedback collection.

The collection is a single JSON array. Every operation loads the full array,
works on it in memory and, for mutations, writes the whole array back. There
is no caching between calls, so the stored document is always the source of
truth.
"""

import copy
import json
import logging
import os
import threading
import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from models.feedback import IMMUTABLE_FIELDS, FeedbackStatus

logger = logging.getLogger(__name__)

DEFAULT_STATUS = FeedbackStatus.OPEN.value


class StorageError(Exception):
    """Raised when the feedback collection cannot be read or written."""


def generate_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2026-01-20T08:00:00.000Z."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_id(existing_ids: set[str]) -> str:
    """Millisecond timestamp id, bumped until it is unused."""
    candidate = int(time.time() * 1000)
    while str(candidate) in existing_ids:
        candidate += 1
    return str(candidate)


def _ensure_collection(data: Any, source: str) -> list[dict[str, Any]]:
    if not isinstance(data, list):
        raise StorageError(f"Feedback document {source} is not a JSON array")
    return data


class FeedbackStorage(ABC):
    """Base class for feedback collection storage.

    Subclasses only provide ``_load`` and ``_save``; the record operations
    are implemented here on top of them. Read-modify-write cycles are
    serialized per instance.
    """

    def __init__(self):
        self._lock = threading.RLock()

    @abstractmethod
    def _load(self) -> list[dict[str, Any]]:
        """Load the full collection, creating an empty one if missing."""

    @abstractmethod
    def _save(self, records: list[dict[str, Any]]) -> None:
        """Overwrite the full collection."""

    def get_all(self) -> list[dict[str, Any]]:
        """Return all records in insertion order."""
        with self._lock:
            return self._load()

    def get_by_id(self, feedback_id: str) -> dict[str, Any] | None:
        """Return the record with the given id, or None."""
        with self._lock:
            records = self._load()
        return next((r for r in records if r.get("id") == feedback_id), None)

    def insert(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Append a new record and return it.

        Assigns ``id`` and ``createdAt``; ``status`` defaults to open when
        not supplied.
        """
        with self._lock:
            records = self._load()
            record = {"id": generate_id({str(r.get("id")) for r in records})}
            record.update(
                {k: v for k, v in fields.items() if k not in IMMUTABLE_FIELDS}
            )
            record["createdAt"] = generate_timestamp()
            record["status"] = record.get("status") or DEFAULT_STATUS

            records.append(record)
            self._save(records)
            logger.info("Inserted feedback %s", record["id"])
            return record

    def update_by_id(
        self, feedback_id: str, updates: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Shallow-merge updates into a record. Returns None if not found."""
        with self._lock:
            records = self._load()
            index = next(
                (i for i, r in enumerate(records) if r.get("id") == feedback_id), None
            )
            if index is None:
                return None

            merged = dict(records[index])
            merged.update(
                {k: v for k, v in updates.items() if k not in IMMUTABLE_FIELDS}
            )
            records[index] = merged
            self._save(records)
            logger.info("Updated feedback %s (%s)", feedback_id, ", ".join(updates))
            return merged

    def delete_by_id(self, feedback_id: str) -> bool:
        """Remove a record. Returns False if nothing matched."""
        with self._lock:
            records = self._load()
            remaining = [r for r in records if r.get("id") != feedback_id]
            if len(remaining) == len(records):
                return False

            self._save(remaining)
            logger.info("Deleted feedback %s", feedback_id)
            return True


class JsonFileStorage(FeedbackStorage):
    """Collection stored in a local JSON file."""

    def __init__(self, path: Path | str):
        super().__init__()
        self.path = Path(path)

    def _load(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            logger.info("Creating empty feedback file at %s", self.path)
            self._save([])
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageError(f"Malformed feedback file {self.path}: {e}") from e
        except OSError as e:
            raise StorageError(f"Failed to read feedback file {self.path}: {e}") from e

        return _ensure_collection(data, str(self.path))

    def _save(self, records: list[dict[str, Any]]) -> None:
        # Readers never see a partially written file
        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Failed to write feedback file {self.path}: {e}") from e

        logger.debug("Wrote %d feedback records to %s", len(records), self.path)


class InMemoryStorage(FeedbackStorage):
    """Collection held in process memory. Used by tests and local demos."""

    def __init__(self, records: list[dict[str, Any]] | None = None):
        super().__init__()
        self._records = copy.deepcopy(records) if records else []

    def _load(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._records)

    def _save(self, records: list[dict[str, Any]]) -> None:
        self._records = copy.deepcopy(records)


class S3JsonStorage(FeedbackStorage):
    """Collection stored as a single JSON object in S3."""

    def __init__(self, bucket: str, key: str = "data/feedbacks.json", client=None):
        super().__init__()
        self.bucket = bucket
        self.key = key
        self._client = client

    @property
    def client(self):
        """Get or create the S3 client (lazy init for SnapStart)."""
        if self._client is None:
            region = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
            self._client = boto3.client("s3", region_name=region)
        return self._client

    @property
    def location(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    def _load(self) -> list[dict[str, Any]]:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self.key)
            body = response["Body"].read()
        except ClientError as e:
            if e.response["Error"]["Code"] in ("NoSuchKey", "404"):
                logger.info("Creating empty feedback document at %s", self.location)
                self._save([])
                return []
            raise StorageError(f"Failed to read {self.location}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to read {self.location}: {e}") from e

        try:
            data = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageError(f"Malformed feedback document {self.location}: {e}") from e

        return _ensure_collection(data, self.location)

    def _save(self, records: list[dict[str, Any]]) -> None:
        content = json.dumps(records, indent=2, ensure_ascii=False)
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=self.key,
                Body=content.encode("utf-8"),
                ContentType="application/json",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to upload %s: %s", self.location, e)
            raise StorageError(f"Failed to write {self.location}: {e}") from e

        logger.debug("Wrote %d feedback records to %s", len(records), self.location)
