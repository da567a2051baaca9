from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

DATA_DIR = Path("data")

# --------------- Run settings ---------------
BATCH_SIZE = 30
LOOKBACK_HOURS = 24
MAX_THREADS = 100
MAX_OUTPUT_TOKENS = 8192
EXCERPT_MAX_CHARS = 500

MAILBOX_EXPORT_PATH = DATA_DIR / "mailbox.json"
STATE_DB_URL = f"sqlite:///{DATA_DIR / 'state.db'}"

# --------------- Routing policy ---------------
CONFIDENCE_THRESHOLD = 0.7

INVITE_LABEL = "JobBot/Interview"
AUTO_REPLY_LABEL = "JobBot/AutoReply"
REVIEW_LABEL = "JobBot/NeedsReview"

UNKNOWN_COMPANY = "(unknown company)"
UNKNOWN_POSITION = "(unknown position)"
UNKNOWN_CONTACT = "(unknown contact)"

REDACTED = "[REDACTED]"

# --------------- Dedupe ---------------
ALERT_KEY_PREFIX = "invite_alerted:"
ALERT_RETENTION_DAYS = 30

# --------------- Retry ---------------
MAX_ATTEMPTS = 3
BACKOFF_BASE_SECONDS = 1.0

# --------------- Model endpoint ---------------
GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_TIMEOUT = 60

# --------------- Outbound messages ---------------
REPORT_SUBJECT_TEMPLATE = "Job mail summary: {interview} interview, {needs_review} to review"
ZERO_SUBJECT = "Job mail summary: 0 emails"
ALERT_SUBJECT_TEMPLATE = "Interview invite: {company} ({position})"


def get_int_env(key: str, default: Optional[int] = None) -> Optional[int]:
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_float_env(key: str, default: Optional[float] = None) -> Optional[float]:
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


__all__ = [
    "DATA_DIR",
    "BATCH_SIZE",
    "LOOKBACK_HOURS",
    "MAX_THREADS",
    "MAX_OUTPUT_TOKENS",
    "EXCERPT_MAX_CHARS",
    "MAILBOX_EXPORT_PATH",
    "STATE_DB_URL",
    "get_int_env",
    "get_float_env",
    # Routing
    "CONFIDENCE_THRESHOLD",
    "INVITE_LABEL",
    "AUTO_REPLY_LABEL",
    "REVIEW_LABEL",
    "UNKNOWN_COMPANY",
    "UNKNOWN_POSITION",
    "UNKNOWN_CONTACT",
    "REDACTED",
    # Dedupe
    "ALERT_KEY_PREFIX",
    "ALERT_RETENTION_DAYS",
    # Retry / model
    "MAX_ATTEMPTS",
    "BACKOFF_BASE_SECONDS",
    "GEMINI_ENDPOINT",
    "GEMINI_TIMEOUT",
    # Messages
    "REPORT_SUBJECT_TEMPLATE",
    "ZERO_SUBJECT",
    "ALERT_SUBJECT_TEMPLATE",
]
