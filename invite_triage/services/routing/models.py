"""
Data models for the triage run.

Dataclasses for records and routing values; enums are coerced at the parse
boundary so routing never sees untyped model output.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Category(str, Enum):
    """Model-assigned message category."""

    INTERVIEW_INVITE = "interview_invite"
    AUTO_REPLY = "auto_reply"
    OTHER = "other"

    @classmethod
    def coerce(cls, value: Any) -> "Category":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


class Urgency(str, Enum):
    HIGH = "high"
    NORMAL = "normal"

    @classmethod
    def coerce(cls, value: Any) -> "Urgency":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NORMAL


class RouteKind(str, Enum):
    """Routing outcome for one classification result."""

    NEEDS_REVIEW = "needs_review"
    INVITE = "invite"
    AUTO_REPLY = "auto_reply"
    OTHER = "other"


@dataclass(frozen=True)
class RawRecord:
    """One message summary for the current run.

    `id` is the per-run correlation key (e1, e2, ...); `thread_id` is the
    stable group identifier used for alert dedupe across runs.
    """

    id: str
    thread_id: str
    timestamp: datetime
    sender: str
    subject: str
    excerpt: str


def coerce_confidence(value: Any) -> float:
    """Coerce model confidence to a float; anything non-finite becomes 0.0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _time_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return [str(value)]


@dataclass(frozen=True)
class ClassificationResult:
    """One model output element, keyed by RawRecord.id."""

    id: str
    category: Category
    confidence: float
    company: Optional[str] = None
    position: Optional[str] = None
    contact: Optional[str] = None
    proposed_times: List[str] = field(default_factory=list)
    urgency: Urgency = Urgency.NORMAL
    reason: str = ""
    raw_category: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["ClassificationResult"]:
        """Create a result from one parsed JSON object. Returns None without an id."""
        record_id = _optional_str(data.get("id"))
        if record_id is None:
            return None

        raw_category = "" if data.get("category") is None else str(data.get("category")).strip()
        return cls(
            id=record_id,
            category=Category.coerce(raw_category),
            confidence=coerce_confidence(data.get("confidence")),
            company=_optional_str(data.get("company")),
            position=_optional_str(data.get("position")),
            contact=_optional_str(data.get("contact")),
            proposed_times=_time_list(data.get("proposed_times")),
            urgency=Urgency.coerce(data.get("urgency", Urgency.NORMAL.value)),
            reason=_optional_str(data.get("reason")) or "",
            raw_category=raw_category,
        )


@dataclass(frozen=True)
class InviteRow:
    record_id: str
    company: str
    position: str
    contact: str
    proposed_times: List[str]
    urgency: Urgency
    subject: str
    sender: str
    reason: str


@dataclass(frozen=True)
class ReviewRow:
    record_id: str
    category: str
    confidence: float
    subject: str
    sender: str
    reason: str


@dataclass(frozen=True)
class RoutingOutcome:
    """What should happen to one record. Never persisted."""

    kind: RouteKind
    record: RawRecord
    result: ClassificationResult
    label: Optional[str] = None
    invite_row: Optional[InviteRow] = None
    review_row: Optional[ReviewRow] = None


@dataclass
class RunCounts:
    interview: int = 0
    auto_reply: int = 0
    other: int = 0
    needs_review: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "interview": self.interview,
            "auto_reply": self.auto_reply,
            "other": self.other,
            "needs_review": self.needs_review,
        }


@dataclass
class RunReport:
    """Aggregates for the current run only."""

    total: int = 0
    counts: RunCounts = field(default_factory=RunCounts)
    invite_rows: List[InviteRow] = field(default_factory=list)
    review_rows: List[ReviewRow] = field(default_factory=list)
    alerts_sent: int = 0


__all__ = [
    "Category",
    "Urgency",
    "RouteKind",
    "RawRecord",
    "ClassificationResult",
    "InviteRow",
    "ReviewRow",
    "RoutingOutcome",
    "RunCounts",
    "RunReport",
    "coerce_confidence",
]
