#!/usr/bin/env python3
"""
API Health Check Script - Verifies API endpoints and response formats.
Run this to check if the feedback form and admin panel will work against a
deployment.

Usage: python3 scripts/check_api_health.py [BASE_URL ...]
"""

import json
import os
import sys
import urllib.error
import urllib.request
from typing import Any

DEFAULT_URL = os.environ.get("FEEDBACK_API_URL", "http://localhost:5000")

RECORD_FIELDS = [
    "id",
    "name",
    "email",
    "eventName",
    "division",
    "rating",
    "status",
    "createdAt",
]


def fetch_json(url: str, timeout: int = 10) -> Any:
    """Fetch JSON from URL."""
    req = urllib.request.Request(
        url, headers={"User-Agent": "FeedbackAPI-HealthCheck/1.0"}
    )
    with urllib.request.urlopen(req, timeout=timeout) as response:
        return json.loads(response.read().decode())


def check_health(base_url: str) -> tuple[bool, str]:
    """Check the health endpoint reports ok."""
    url = f"{base_url}/api/health"
    try:
        data = fetch_json(url)
        if data.get("status") != "ok":
            return False, f"ERROR: status is {data.get('status')!r}"
        return True, f"OK - {data.get('message', '')}"
    except urllib.error.URLError as e:
        return False, f"Request failed: {e}"
    except json.JSONDecodeError as e:
        return False, f"Invalid JSON: {e}"


def check_feedback_format(base_url: str) -> tuple[bool, str]:
    """Check the list endpoint returns a raw array of records, newest first."""
    url = f"{base_url}/api/feedback"
    try:
        data = fetch_json(url)

        if not isinstance(data, list):
            return False, "ERROR: Expected a raw array of feedback records"
        if not data:
            return True, "OK - 0 records (empty)"

        first = data[0]
        missing = [f for f in RECORD_FIELDS if f not in first]
        if missing:
            return False, f"ERROR: Record missing fields: {missing}"

        created = [r.get("createdAt", "") for r in data]
        if created != sorted(created, reverse=True):
            return False, "ERROR: Records are not sorted newest first"

        return True, f"OK - {len(data)} records, newest: {first['createdAt']}"
    except Exception as e:
        return False, f"FAILED: {e}"


def check_stats_format(base_url: str) -> tuple[bool, str]:
    """Check the stats endpoint returns the dashboard counters."""
    url = f"{base_url}/api/feedback/stats"
    try:
        data = fetch_json(url)
        expected = ["total", "open", "inReview", "resolved", "avgRating"]
        missing = [k for k in expected if k not in data]
        if missing:
            return False, f"Missing keys: {missing}"
        return True, f"OK - {data['total']} total, avg {data['avgRating']}"
    except Exception as e:
        return False, f"FAILED: {e}"


def main(argv: list[str]) -> int:
    base_urls = argv or [DEFAULT_URL]

    print("=" * 60)
    print("Feedback API Health Check")
    print("=" * 60)

    all_passed = True

    for base_url in base_urls:
        base_url = base_url.rstrip("/")
        print(f"\n{base_url}")
        print("-" * 40)

        for label, check in [
            ("Health", check_health),
            ("Feedback", check_feedback_format),
            ("Stats", check_stats_format),
        ]:
            ok, msg = check(base_url)
            status = "✓" if ok else "✗"
            print(f"  {status} {label}: {msg}")
            all_passed = all_passed and ok

    print("\n" + "=" * 60)
    if all_passed:
        print("✓ All checks passed")
        return 0
    else:
        print("✗ Some checks failed")
        return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
