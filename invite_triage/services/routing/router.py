"""
Confidence-gated routing of classification results.

route_result() is pure: it decides what should happen to one record.
OutcomeApplier carries the decision out (labels, dedupe writes, alerts) and
accumulates the run report.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

from invite_triage.config.constants import (
    ALERT_SUBJECT_TEMPLATE,
    AUTO_REPLY_LABEL,
    CONFIDENCE_THRESHOLD,
    INVITE_LABEL,
    REVIEW_LABEL,
    UNKNOWN_COMPANY,
    UNKNOWN_CONTACT,
    UNKNOWN_POSITION,
)
from invite_triage.helpers.data_operations import sanitize_text
from invite_triage.services.mailbox.base import Messenger, ThreadHandle
from invite_triage.services.routing.dedupe_store import DedupeStore
from invite_triage.services.routing.models import (
    Category,
    ClassificationResult,
    InviteRow,
    RawRecord,
    ReviewRow,
    RouteKind,
    RoutingOutcome,
    RunReport,
)
from invite_triage.utils.logging import get_logger

logger = get_logger(__name__)


def build_invite_row(record: RawRecord, result: ClassificationResult) -> InviteRow:
    return InviteRow(
        record_id=record.id,
        company=sanitize_text(result.company or UNKNOWN_COMPANY),
        position=sanitize_text(result.position or UNKNOWN_POSITION),
        contact=sanitize_text(result.contact or UNKNOWN_CONTACT),
        proposed_times=[sanitize_text(t) for t in result.proposed_times],
        urgency=result.urgency,
        subject=sanitize_text(record.subject),
        sender=sanitize_text(record.sender),
        reason=sanitize_text(result.reason),
    )


def build_review_row(record: RawRecord, result: ClassificationResult, confidence: float) -> ReviewRow:
    return ReviewRow(
        record_id=record.id,
        category=sanitize_text(result.raw_category or result.category.value),
        confidence=confidence,
        subject=sanitize_text(record.subject),
        sender=sanitize_text(record.sender),
        reason=sanitize_text(result.reason),
    )


def route_result(
    result: ClassificationResult,
    records_by_id: Mapping[str, RawRecord],
    threshold: float = CONFIDENCE_THRESHOLD,
) -> Optional[RoutingOutcome]:
    """Decide the routing outcome for one result.

    Returns None when the result's id does not belong to this run.
    Low confidence always wins over category.
    """
    record = records_by_id.get(result.id)
    if record is None:
        logger.debug("Dropping result for unknown id %r", result.id)
        return None

    confidence = result.confidence if math.isfinite(result.confidence) else 0.0

    if confidence < threshold:
        return RoutingOutcome(
            kind=RouteKind.NEEDS_REVIEW,
            record=record,
            result=result,
            label=REVIEW_LABEL,
            review_row=build_review_row(record, result, confidence),
        )

    if result.category is Category.INTERVIEW_INVITE:
        return RoutingOutcome(
            kind=RouteKind.INVITE,
            record=record,
            result=result,
            label=INVITE_LABEL,
            invite_row=build_invite_row(record, result),
        )

    if result.category is Category.AUTO_REPLY:
        return RoutingOutcome(
            kind=RouteKind.AUTO_REPLY, record=record, result=result, label=AUTO_REPLY_LABEL
        )

    return RoutingOutcome(kind=RouteKind.OTHER, record=record, result=result)


def format_alert(row: InviteRow) -> tuple[str, str]:
    """Subject and body for a single interview alert."""
    subject = ALERT_SUBJECT_TEMPLATE.format(company=row.company, position=row.position)
    times = "\n".join(f"  - {t}" for t in row.proposed_times) or "  (none proposed)"
    body = (
        f"Interview invite detected ({row.urgency.value} urgency)\n\n"
        f"Company:  {row.company}\n"
        f"Position: {row.position}\n"
        f"Contact:  {row.contact}\n"
        f"From:     {row.sender}\n"
        f"Subject:  {row.subject}\n"
        f"Proposed times:\n{times}\n\n"
        f"Why: {row.reason}\n"
    )
    return subject, body


class OutcomeApplier:
    """Applies routing outcomes: labels, dedupe writes, alerts, report rows."""

    def __init__(
        self,
        threads: Mapping[str, ThreadHandle],
        messenger: Messenger,
        dedupe: DedupeStore,
        recipient: str,
        report: Optional[RunReport] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.threads = threads
        self.messenger = messenger
        self.dedupe = dedupe
        self.recipient = recipient
        self.report = report or RunReport()
        self.clock = clock

    def _attach_label(self, outcome: RoutingOutcome) -> None:
        if outcome.label is None:
            return
        thread = self.threads.get(outcome.record.thread_id)
        if thread is None:
            logger.warning("No thread handle for %s; label %s skipped", outcome.record.thread_id, outcome.label)
            return
        thread.add_label(outcome.label)

    def apply(self, outcome: RoutingOutcome) -> bool:
        """Apply one outcome. Returns True if an alert was sent."""
        counts = self.report.counts
        self._attach_label(outcome)

        if outcome.kind is RouteKind.NEEDS_REVIEW:
            counts.needs_review += 1
            self.report.review_rows.append(outcome.review_row)
            return False

        if outcome.kind is RouteKind.AUTO_REPLY:
            counts.auto_reply += 1
            return False

        if outcome.kind is RouteKind.OTHER:
            counts.other += 1
            return False

        counts.interview += 1
        row = outcome.invite_row
        self.report.invite_rows.append(row)

        group_id = outcome.record.thread_id
        now = self.clock()
        if self.dedupe.is_alerted(group_id, now=now):
            logger.info("Invite %s (thread %s) already alerted; suppressed", outcome.record.id, group_id)
            return False

        self.dedupe.mark_alerted(group_id, now)
        subject, body = format_alert(row)
        self.messenger.send(self.recipient, subject, body)
        self.report.alerts_sent += 1
        logger.info("Alert sent for %s (thread %s)", outcome.record.id, group_id)
        return True


__all__ = [
    "route_result",
    "build_invite_row",
    "build_review_row",
    "format_alert",
    "OutcomeApplier",
]
