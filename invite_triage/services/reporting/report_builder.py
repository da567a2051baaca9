"""Plain-text run report and zero-result notice."""
from __future__ import annotations

from typing import Sequence

from invite_triage.config.constants import REPORT_SUBJECT_TEMPLATE, ZERO_SUBJECT
from invite_triage.services.routing.models import InviteRow, ReviewRow, RunCounts

NO_INVITES = "None today."


def _invite_lines(index: int, row: InviteRow) -> list[str]:
    lines = [f"{index}. {row.company} - {row.position}" + (" [HIGH]" if row.urgency.value == "high" else "")]
    lines.append(f"   Contact: {row.contact}")
    lines.append(f"   From: {row.sender}")
    lines.append(f"   Subject: {row.subject}")
    if row.proposed_times:
        lines.append(f"   Proposed times: {'; '.join(row.proposed_times)}")
    if row.reason:
        lines.append(f"   Why: {row.reason}")
    return lines


def build_report(
    total: int,
    counts: RunCounts,
    invite_rows: Sequence[InviteRow],
    review_rows: Sequence[ReviewRow],
) -> str:
    """Render the run report.

    Sections, in order: overview, interview invites (or a "none" line),
    needs review (only when there is something to review), and a summary
    of the non-actionable mail.
    """
    lines = [
        "OVERVIEW",
        f"Emails scanned: {total}",
        f"Interview invites: {counts.interview}",
        f"Auto-replies: {counts.auto_reply}",
        f"Other: {counts.other}",
        f"Needs review: {counts.needs_review}",
        "",
        "INTERVIEW INVITES",
    ]
    if invite_rows:
        for i, row in enumerate(invite_rows, 1):
            lines.extend(_invite_lines(i, row))
    else:
        lines.append(NO_INVITES)

    if review_rows:
        lines.extend(["", "NEEDS REVIEW"])
        for i, row in enumerate(review_rows, 1):
            lines.append(f"{i}. {row.subject} ({row.category}, confidence {row.confidence:.2f})")
            lines.append(f"   From: {row.sender}")
            if row.reason:
                lines.append(f"   Why: {row.reason}")

    lines.extend(
        [
            "",
            "NO ACTION NEEDED",
            f"{counts.auto_reply} auto-replies and {counts.other} other emails need no action.",
        ]
    )
    return "\n".join(lines) + "\n"


def report_subject(counts: RunCounts) -> str:
    return REPORT_SUBJECT_TEMPLATE.format(**counts.as_dict())


def build_zero_notice(window_hours: int) -> tuple[str, str]:
    """Subject and body sent when the window held no matching mail."""
    body = f"0 emails matched in the last {window_hours} hours. Nothing to classify.\n"
    return ZERO_SUBJECT, body


__all__ = ["build_report", "build_zero_notice", "report_subject", "NO_INVITES"]
