"""Mailbox backed by a JSON export of messages.

Each element of the export is one message:
    {"thread_id": "...", "date": "2024-06-01T09:30:00Z", "from": "...",
     "subject": "...", "body": "...", "labels": ["..."]}

Label assignments are written back to the same file (atomic replace).
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

import pandas as pd

from invite_triage.config.exceptions import PipelineError
from invite_triage.helpers.data_operations import JsonManager
from invite_triage.services.mailbox.base import MessageSummary
from invite_triage.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_COLUMNS = ["thread_id", "date", "from", "subject"]


class JsonThread:
    """Thread handle over one thread_id of the export."""

    def __init__(self, mailbox: "JsonExportMailbox", thread_id: str, message: MessageSummary):
        self._mailbox = mailbox
        self._thread_id = thread_id
        self._message = message

    @property
    def thread_id(self) -> str:
        return self._thread_id

    def latest_message(self) -> MessageSummary:
        return self._message

    def add_label(self, name: str) -> None:
        self._mailbox.add_label(self._thread_id, name)


class JsonExportMailbox:
    """Record source reading a JSON export with pandas."""

    def __init__(
        self,
        path: Path | str,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.path = Path(path)
        self.clock = clock
        self.jm = JsonManager()
        self._frame: Optional[pd.DataFrame] = None
        self._labels: Dict[str, Set[str]] = {}
        self.known_labels: Set[str] = set()

    @property
    def frame(self) -> pd.DataFrame:
        if self._frame is None:
            self._frame = self._load()
        return self._frame

    def _load(self) -> pd.DataFrame:
        df = self.jm.load_frame(self.path)
        if df is None:
            raise PipelineError(f"Mailbox export not found: {self.path}")
        if df.empty:
            return pd.DataFrame(columns=REQUIRED_COLUMNS + ["body", "labels"])

        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise PipelineError(f"Mailbox export missing columns: {', '.join(missing)}")
        if "body" not in df.columns:
            df["body"] = ""
        if "labels" not in df.columns:
            df["labels"] = [[] for _ in range(len(df))]

        df["thread_id"] = df["thread_id"].astype(str)
        for thread_id, labels in zip(df["thread_id"], df["labels"]):
            if isinstance(labels, list):
                self._labels.setdefault(thread_id, set()).update(str(l) for l in labels)
                self.known_labels.update(str(l) for l in labels)
        logger.info("Loaded %d messages from %s", len(df), self.path)
        return df

    def search_threads(self, window_hours: int, max_results: int) -> List[JsonThread]:
        df = self.frame
        if df.empty:
            return []

        dates = pd.to_datetime(df["date"], utc=True, errors="coerce", format="mixed")
        bad = int(dates.isna().sum())
        if bad:
            logger.warning("Skipping %d messages with unparsable dates", bad)

        since = pd.Timestamp(self.clock() - timedelta(hours=window_hours))
        if since.tzinfo is None:
            since = since.tz_localize("UTC")
        recent = df.assign(_ts=dates)[dates.notna() & (dates >= since)]
        if recent.empty:
            return []

        # Latest message per thread, newest threads first
        latest = (
            recent.sort_values("_ts", ascending=False, kind="stable")
            .drop_duplicates(subset="thread_id", keep="first")
            .head(max_results)
        )

        threads = []
        for _, row in latest.iterrows():
            message = MessageSummary(
                timestamp=row["_ts"].to_pydatetime(),
                sender=_text(row.get("from")),
                subject=_text(row.get("subject")),
                body=_text(row.get("body")),
            )
            threads.append(JsonThread(self, row["thread_id"], message))
        logger.debug("Window %dh: %d threads (cap %d)", window_hours, len(threads), max_results)
        return threads

    def add_label(self, thread_id: str, name: str) -> None:
        if name not in self.known_labels:
            self.known_labels.add(name)
            logger.info("Created label %s", name)

        labels = self._labels.setdefault(thread_id, set())
        if name in labels:
            return
        labels.add(name)

        df = self.frame
        df["labels"] = df["thread_id"].map(lambda t: sorted(self._labels.get(t, set())))
        self.jm.write(self.path, df)
        logger.debug("Labeled thread %s with %s", thread_id, name)

    def labels_for(self, thread_id: str) -> Set[str]:
        return set(self._labels.get(thread_id, set()))


def _text(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value)


__all__ = ["JsonExportMailbox", "JsonThread"]
