"""Pretty console output for the triage job.

This module provides user-friendly terminal output with:
- Emojis for visual scanning
- Per-batch routing details
- Retry notices
- Final run summary

Usage:
    from invite_triage.utils.console import console
    console.start("Triage Started")
    console.batch_start(1, 2, ["e1", "e2"])
    console.success("Complete!")

Design principles:
- Isolated from logging (file logs are separate)
- Stateless methods (no side effects beyond printing)
- Configurable via environment variables
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple


@dataclass
class ConsoleConfig:
    """Configuration for console output behavior."""
    enabled: bool = True
    max_subject_length: int = 45
    max_body_lines: int = 20

    @classmethod
    def from_env(cls) -> "ConsoleConfig":
        """Load configuration from environment variables."""
        return cls(
            enabled=os.getenv("CONSOLE_OUTPUT", "true").lower() == "true",
            max_subject_length=int(os.getenv("CONSOLE_MAX_SUBJECT_LEN", "45")),
        )


_KIND_ICONS = {
    "invite": "🎯",
    "needs_review": "🔎",
    "auto_reply": "🤖",
    "other": "·",
}


class Console:
    """Pretty console output handler for triage runs.

    All output goes to stdout and is designed to be human-readable.
    For machine-readable logs, use the logging module instead.
    """

    def __init__(self, config: Optional[ConsoleConfig] = None):
        self.config = config or ConsoleConfig.from_env()
        self._batch_times: List[float] = []

    # ==================== Helpers ====================

    def _truncate(self, text: str, max_len: int) -> str:
        """Truncate text with ellipsis if too long."""
        if len(text) <= max_len:
            return text
        return text[: max_len - 3] + "..."

    def _print(self, *args, **kwargs) -> None:
        """Print to stdout with flush."""
        if self.config.enabled:
            print(*args, **kwargs, flush=True)

    # ==================== Phase Indicators ====================

    def start(self, message: str, detail: Optional[str] = None) -> None:
        """Display job/phase start message."""
        self._print(f"\n🚀 {message}")
        if detail:
            self._print(f"   └─ {detail}")

    def success(self, message: str, detail: Optional[str] = None) -> None:
        self._print(f"\n✅ {message}")
        if detail:
            self._print(f"   └─ {detail}")

    def error(self, message: str, detail: Optional[str] = None) -> None:
        self._print(f"\n❌ {message}")
        if detail:
            self._print(f"   └─ {detail}")

    def warning(self, message: str, detail: Optional[str] = None) -> None:
        self._print(f"\n⚠️  {message}")
        if detail:
            self._print(f"   └─ {detail}")

    def info(self, message: str, detail: Optional[str] = None) -> None:
        self._print(f"\n📋 {message}")
        if detail:
            self._print(f"   └─ {detail}")

    # ==================== Classification ====================

    def classification_start(self, total_records: int, batch_size: int) -> None:
        """Display classification start info."""
        num_batches = (total_records + batch_size - 1) // batch_size
        self._print("\n🤖 Classification Starting")
        self._print(f"   └─ {total_records} emails → {num_batches} batches of {batch_size}")
        self._batch_times = []

    def batch_start(self, batch_num: int, total_batches: int, record_ids: Sequence[str]) -> None:
        id_range = f"{record_ids[0]}-{record_ids[-1]}" if record_ids else "?"
        self._print(f"\n┌─ Batch {batch_num}/{total_batches} ({id_range})")
        self._print(f"│  Classifying {len(record_ids)} emails...")
        self._print("│")

    def retrying(self, attempt: int, wait: float, reason: str) -> None:
        self._print(f"│  ⏳ Model unavailable (attempt {attempt}), waiting {wait:.0f}s")
        self._print(f"│     {self._truncate(reason, 70)}")

    def batch_result(
        self,
        routed: Sequence[Tuple[Any, bool]],
        requested: int,
        elapsed: float,
        dropped: int = 0,
    ) -> None:
        """Display per-record routing for a batch.

        Each item in routed is (RoutingOutcome, alert_sent).
        """
        self._batch_times.append(elapsed)

        for outcome, alerted in routed:
            kind = outcome.kind.value
            icon = _KIND_ICONS.get(kind, "·")
            subject = self._truncate(outcome.record.subject, self.config.max_subject_length)
            bell = " 🔔" if alerted else ""
            self._print(
                f"│  {icon} {outcome.record.id:<4} {subject:<{self.config.max_subject_length}} "
                f"→ {kind} ({outcome.result.confidence:.2f}){bell}"
            )

        self._print("│")
        missing = requested - len(routed)
        if missing > 0 or dropped > 0:
            self._print(
                f"│  ⚠️  {len(routed)}/{requested} routed in {elapsed:.1f}s "
                f"({missing} without result, {dropped} unknown ids)"
            )
        else:
            self._print(f"│  ✓ {len(routed)}/{requested} routed in {elapsed:.1f}s")
        self._print(f"└{'─' * 60}")

    # ==================== Final Summary ====================

    def run_summary(self, total: int, counts: Dict[str, int], alerts_sent: int, evicted: int) -> None:
        self._print("\n✅ Triage Complete!")
        self._print(f"   ├─ Emails: {total}")
        self._print(
            f"   ├─ Interview: {counts.get('interview', 0)} │ "
            f"Auto-reply: {counts.get('auto_reply', 0)} │ "
            f"Other: {counts.get('other', 0)} │ "
            f"Review: {counts.get('needs_review', 0)}"
        )
        self._print(f"   ├─ Alerts sent: {alerts_sent}")
        self._print(f"   └─ Expired alert records removed: {evicted}")

        if self._batch_times:
            total_time = sum(self._batch_times)
            avg_time = total_time / len(self._batch_times)
            self._print(f"\n⏱️  Total: {total_time:.1f}s (avg {avg_time:.1f}s/batch)")

    def outbound_message(self, recipient: str, subject: str, body: str) -> None:
        """Display a message that a dry run would have sent."""
        self._print(f"\n✉️  To: {recipient}")
        self._print(f"   Subject: {subject}")
        lines = body.splitlines()
        for line in lines[: self.config.max_body_lines]:
            self._print(f"   │ {line}")
        if len(lines) > self.config.max_body_lines:
            self._print(f"   │ ...+{len(lines) - self.config.max_body_lines} more lines")

    # ==================== Pipeline Status ====================

    def pipeline_finished(self, success: bool = True) -> None:
        """Display job completion status."""
        self._print(f"\n{'─' * 50}")
        if success:
            self._print("🎉 Triage finished successfully!")
        else:
            self._print("💥 Triage failed!")
        self._print(f"{'─' * 50}\n")

    def interrupted(self) -> None:
        self._print("\n\n⚡ Interrupted by user")
        self._print("   └─ Labels and alerts already applied are kept")


# ==================== Singleton Instance ====================
# This allows: from invite_triage.utils.console import console
console = Console()

__all__ = ["Console", "ConsoleConfig", "console"]
