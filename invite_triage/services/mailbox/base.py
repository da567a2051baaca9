"""
Interfaces for the mailbox collaborators the job talks to.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Protocol


@dataclass(frozen=True)
class MessageSummary:
    """The message of a thread the job classifies."""

    timestamp: datetime
    sender: str
    subject: str
    body: str


class ThreadHandle(Protocol):
    @property
    def thread_id(self) -> str: ...

    def latest_message(self) -> MessageSummary: ...

    def add_label(self, name: str) -> None:
        """Attach a label to the thread, creating the label on first use."""
        ...


class RecordSource(Protocol):
    def search_threads(self, window_hours: int, max_results: int) -> List[ThreadHandle]:
        """Threads with activity inside the window, newest first, at most max_results."""
        ...


class Messenger(Protocol):
    def send(self, recipient: str, subject: str, body: str) -> None: ...


__all__ = ["MessageSummary", "ThreadHandle", "RecordSource", "Messenger"]
