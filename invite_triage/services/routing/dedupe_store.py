"""Alert-once bookkeeping keyed by thread (group) id.

Each alerted group is one property ``{prefix}{group_id}`` holding the epoch
milliseconds of the alert. Eviction runs once per job before processing.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from invite_triage.config.constants import ALERT_KEY_PREFIX, ALERT_RETENTION_DAYS
from invite_triage.db.kv_store import KeyValueStore
from invite_triage.utils.logging import get_logger

logger = get_logger(__name__)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _to_millis(ts: datetime) -> int:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (ts - _EPOCH) // timedelta(milliseconds=1)


def _from_millis(raw: str) -> Optional[datetime]:
    try:
        return _EPOCH + timedelta(milliseconds=int(raw.strip()))
    except (AttributeError, TypeError, ValueError, OverflowError, OSError):
        return None


class DedupeStore:
    """Persistent group_id -> last-alerted timestamp mapping."""

    def __init__(
        self,
        kv: KeyValueStore,
        prefix: str = ALERT_KEY_PREFIX,
        retention: timedelta = timedelta(days=ALERT_RETENTION_DAYS),
    ) -> None:
        self.kv = kv
        self.prefix = prefix
        self.retention = retention

    def _key(self, group_id: str) -> str:
        return f"{self.prefix}{group_id}"

    def last_alerted(self, group_id: str) -> Optional[datetime]:
        raw = self.kv.get(self._key(group_id))
        if raw is None:
            return None
        return _from_millis(raw)

    def is_alerted(self, group_id: str, now: Optional[datetime] = None) -> bool:
        """True if this group was alerted within the retention window.

        A stored value that cannot be parsed still counts as alerted.
        """
        raw = self.kv.get(self._key(group_id))
        if raw is None:
            return False
        alerted_at = _from_millis(raw)
        if alerted_at is None:
            logger.warning("Unparsable alert timestamp for %s: %r", group_id, raw)
            return True
        now = now or datetime.now(timezone.utc)
        return _to_millis(now) - _to_millis(alerted_at) <= self.retention.total_seconds() * 1000

    def mark_alerted(self, group_id: str, timestamp: datetime) -> None:
        self.kv.set(self._key(group_id), str(_to_millis(timestamp)))
        logger.debug("Marked %s alerted at %s", group_id, timestamp.isoformat())

    def evict_older_than(
        self,
        retention: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Delete entries strictly older than the retention window.

        Entries exactly at the boundary are kept; unparsable values are
        skipped. Returns the number of deleted entries.
        """
        retention = retention if retention is not None else self.retention
        now_ms = _to_millis(now or datetime.now(timezone.utc))
        limit_ms = retention.total_seconds() * 1000

        evicted = 0
        skipped = 0
        for key in self.kv.list_keys(self.prefix):
            raw = self.kv.get(key)
            if raw is None:
                continue
            alerted_at = _from_millis(raw)
            if alerted_at is None:
                skipped += 1
                logger.warning("Skipping eviction of %s: unparsable timestamp %r", key, raw)
                continue
            if now_ms - _to_millis(alerted_at) > limit_ms:
                self.kv.delete(key)
                evicted += 1

        logger.info("Dedupe eviction: %d removed, %d unparsable kept", evicted, skipped)
        return evicted


__all__ = ["DedupeStore"]
