"""
Shared pytest fixtures for triage tests.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from invite_triage.config.settings import RunConfig
from invite_triage.db.kv_store import KeyValueStore
from invite_triage.services.mailbox.base import MessageSummary
from invite_triage.services.routing.dedupe_store import DedupeStore
from invite_triage.services.routing.models import RawRecord
from invite_triage.utils.console import console

NOW = datetime(2024, 6, 3, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def quiet_console():
    """Keep test output clean."""
    enabled = console.config.enabled
    console.config.enabled = False
    yield
    console.config.enabled = enabled


class FakeThread:
    def __init__(self, thread_id: str, subject: str, sender: str = "recruiter@acme.example",
                 body: str = "", timestamp: datetime = NOW - timedelta(hours=2)):
        self._thread_id = thread_id
        self._message = MessageSummary(timestamp=timestamp, sender=sender, subject=subject, body=body)
        self.labels: List[str] = []

    @property
    def thread_id(self) -> str:
        return self._thread_id

    def latest_message(self) -> MessageSummary:
        return self._message

    def add_label(self, name: str) -> None:
        self.labels.append(name)


class FakeMailbox:
    def __init__(self, threads):
        self.threads = list(threads)
        self.searches = []

    def search_threads(self, window_hours, max_results):
        self.searches.append((window_hours, max_results))
        return self.threads[:max_results]


class RecordingMessenger:
    def __init__(self):
        self.sent = []

    def send(self, recipient, subject, body):
        self.sent.append((recipient, subject, body))


class FakeClient:
    """Stands in for GeminiClient; returns canned text or raises canned errors."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.prompts = []

    def send(self, prompt, *, max_output_tokens=8192):
        self.prompts.append(prompt)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def model_output(*items) -> str:
    return json.dumps(list(items))


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def kv_store(tmp_path) -> KeyValueStore:
    store = KeyValueStore(f"sqlite:///{tmp_path / 'state.db'}")
    yield store
    store.dispose()


@pytest.fixture
def dedupe(kv_store) -> DedupeStore:
    return DedupeStore(kv_store, retention=timedelta(days=30))


@pytest.fixture
def messenger() -> RecordingMessenger:
    return RecordingMessenger()


@pytest.fixture
def run_config() -> RunConfig:
    return RunConfig(
        api_key="test-key",
        model="gemini-test",
        mailbox_address="me@example.com",
        batch_size=30,
    )


@pytest.fixture
def sample_records() -> List[RawRecord]:
    return [
        RawRecord(
            id="e1",
            thread_id="thread-a",
            timestamp=NOW - timedelta(hours=3),
            sender="Dana Lee <dana@acme.example>",
            subject="Interview for Data Engineer",
            excerpt="Could you do a 30 minute call Tuesday or Wednesday?",
        ),
        RawRecord(
            id="e2",
            thread_id="thread-b",
            timestamp=NOW - timedelta(hours=2),
            sender="no-reply@jobs.example",
            subject="We received your application",
            excerpt="Thank you for applying. Your code is 482913.",
        ),
        RawRecord(
            id="e3",
            thread_id="thread-c",
            timestamp=NOW - timedelta(hours=1),
            sender="news@board.example",
            subject="Weekly job digest",
            excerpt="Top roles this week.",
        ),
    ]


@pytest.fixture
def records_by_id(sample_records):
    return {r.id: r for r in sample_records}
