"""Tests for routing policy, redaction and outcome application."""

from datetime import timedelta

import pytest

from invite_triage.config.constants import (
    AUTO_REPLY_LABEL,
    INVITE_LABEL,
    REVIEW_LABEL,
    UNKNOWN_COMPANY,
    UNKNOWN_CONTACT,
    UNKNOWN_POSITION,
)
from invite_triage.helpers.data_operations import sanitize_text
from invite_triage.services.routing.models import ClassificationResult, RouteKind
from invite_triage.services.routing.router import OutcomeApplier, route_result

from conftest import FakeThread


def _result(**data):
    data.setdefault("id", "e1")
    return ClassificationResult.from_dict(data)


class TestRouteResult:
    def test_low_confidence_invite_goes_to_review(self, records_by_id):
        outcome = route_result(
            _result(category="interview_invite", confidence=0.65), records_by_id, threshold=0.7
        )
        assert outcome.kind is RouteKind.NEEDS_REVIEW
        assert outcome.label == REVIEW_LABEL
        assert outcome.invite_row is None
        assert outcome.review_row.category == "interview_invite"
        assert outcome.review_row.confidence == pytest.approx(0.65)

    def test_threshold_is_inclusive(self, records_by_id):
        outcome = route_result(_result(category="interview_invite", confidence=0.7), records_by_id)
        assert outcome.kind is RouteKind.INVITE

    @pytest.mark.parametrize("category", ["auto_reply", "other", "something_new"])
    def test_low_confidence_overrides_any_category(self, records_by_id, category):
        outcome = route_result(_result(category=category, confidence=0.2), records_by_id)
        assert outcome.kind is RouteKind.NEEDS_REVIEW
        assert outcome.review_row.category == category

    def test_missing_confidence_goes_to_review(self, records_by_id):
        outcome = route_result(_result(category="interview_invite"), records_by_id)
        assert outcome.kind is RouteKind.NEEDS_REVIEW

    def test_invite_row_defaults(self, records_by_id):
        outcome = route_result(
            _result(category="interview_invite", confidence=0.9, proposed_times=None), records_by_id
        )
        row = outcome.invite_row
        assert outcome.kind is RouteKind.INVITE
        assert outcome.label == INVITE_LABEL
        assert row.company == UNKNOWN_COMPANY
        assert row.position == UNKNOWN_POSITION
        assert row.contact == UNKNOWN_CONTACT
        assert row.proposed_times == []
        assert row.subject == records_by_id["e1"].subject

    def test_invite_row_values(self, records_by_id):
        outcome = route_result(
            _result(
                category="interview_invite",
                confidence=0.95,
                company="Acme",
                position="Data Engineer",
                contact="Dana Lee",
                proposed_times=["Tue 10:00", "Wed 14:00"],
                urgency="high",
            ),
            records_by_id,
        )
        row = outcome.invite_row
        assert (row.company, row.position, row.contact) == ("Acme", "Data Engineer", "Dana Lee")
        assert row.proposed_times == ["Tue 10:00", "Wed 14:00"]
        assert row.urgency.value == "high"

    def test_auto_reply(self, records_by_id):
        outcome = route_result(_result(id="e2", category="auto_reply", confidence=0.95), records_by_id)
        assert outcome.kind is RouteKind.AUTO_REPLY
        assert outcome.label == AUTO_REPLY_LABEL

    def test_unrecognized_category_is_other_without_label(self, records_by_id):
        outcome = route_result(_result(category="rejection", confidence=0.99), records_by_id)
        assert outcome.kind is RouteKind.OTHER
        assert outcome.label is None

    def test_unknown_id_is_dropped(self, records_by_id):
        assert route_result(_result(id="e99", category="other", confidence=0.9), records_by_id) is None


class TestRedaction:
    def test_six_digit_code_redacted_in_review_row(self, records_by_id):
        outcome = route_result(
            _result(category="auto_reply", confidence=0.3, reason="Contains code 123456 for login"),
            records_by_id,
        )
        assert outcome.review_row.reason == "Contains code [REDACTED] for login"

    def test_codes_redacted_in_every_invite_field(self, records_by_id):
        outcome = route_result(
            _result(
                category="interview_invite",
                confidence=0.9,
                company="Acme 123456",
                position="Role 7654321",
                contact="call 5551234567",
                proposed_times=["PIN 123456 at 10:00"],
                reason="Verification 123456 included",
            ),
            records_by_id,
        )
        row = outcome.invite_row
        for text in (row.company, row.position, row.contact, row.reason, *row.proposed_times):
            assert "[REDACTED]" in text
            assert "123456" not in text

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("code 123456", "code [REDACTED]"),
            ("id 1234567890", "id [REDACTED]"),
            ("short 12345", "short 12345"),
            ("long 12345678901", "long 12345678901"),
            ("room B123456", "room B[REDACTED]"),
            ("at 10:30 on 2024-06-04", "at 10:30 on 2024-06-04"),
            (None, ""),
        ],
    )
    def test_sanitize_text(self, raw, expected):
        assert sanitize_text(raw) == expected


class TestOutcomeApplier:
    def _applier(self, threads, messenger, dedupe, now):
        return OutcomeApplier(
            threads=threads, messenger=messenger, dedupe=dedupe, recipient="me@example.com", clock=lambda: now
        )

    def test_first_invite_alerts_and_marks(self, records_by_id, messenger, dedupe, now):
        thread = FakeThread("thread-a", "Interview")
        applier = self._applier({"thread-a": thread}, messenger, dedupe, now)

        outcome = route_result(_result(category="interview_invite", confidence=0.9, company="Acme"), records_by_id)
        assert applier.apply(outcome) is True

        assert thread.labels == [INVITE_LABEL]
        assert applier.report.counts.interview == 1
        assert len(applier.report.invite_rows) == 1
        assert len(messenger.sent) == 1
        recipient, subject, body = messenger.sent[0]
        assert recipient == "me@example.com"
        assert "Acme" in subject
        assert dedupe.is_alerted("thread-a", now=now)

    def test_already_alerted_invite_is_counted_but_silent(self, records_by_id, messenger, dedupe, now):
        dedupe.mark_alerted("thread-a", now - timedelta(days=1))
        thread = FakeThread("thread-a", "Interview")
        applier = self._applier({"thread-a": thread}, messenger, dedupe, now)

        outcome = route_result(_result(category="interview_invite", confidence=0.9), records_by_id)
        assert applier.apply(outcome) is False

        assert messenger.sent == []
        assert thread.labels == [INVITE_LABEL]
        assert applier.report.counts.interview == 1
        assert len(applier.report.invite_rows) == 1

    def test_review_auto_reply_and_other_never_alert(self, records_by_id, messenger, dedupe, now):
        threads = {t: FakeThread(t, "x") for t in ("thread-a", "thread-b", "thread-c")}
        applier = self._applier(threads, messenger, dedupe, now)

        applier.apply(route_result(_result(id="e1", category="interview_invite", confidence=0.5), records_by_id))
        applier.apply(route_result(_result(id="e2", category="auto_reply", confidence=0.9), records_by_id))
        applier.apply(route_result(_result(id="e3", category="other", confidence=0.9), records_by_id))

        counts = applier.report.counts
        assert counts.as_dict() == {"interview": 0, "auto_reply": 1, "other": 1, "needs_review": 1}
        assert messenger.sent == []
        assert threads["thread-a"].labels == [REVIEW_LABEL]
        assert threads["thread-b"].labels == [AUTO_REPLY_LABEL]
        assert threads["thread-c"].labels == []
        assert len(applier.report.review_rows) == 1
        assert not dedupe.is_alerted("thread-a", now=now)
