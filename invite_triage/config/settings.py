"""Run configuration, read once from the environment (and .env via python-dotenv).

Environment Variables:
    GEMINI_API_KEY, GEMINI_MODEL, MAILBOX_ADDRESS
    Optional: ALERT_RECIPIENT, MAILBOX_EXPORT_PATH, STATE_DB_URL, BATCH_SIZE,
    LOOKBACK_HOURS, MAX_THREADS, MAX_OUTPUT_TOKENS, CONFIDENCE_THRESHOLD,
    ALERT_RETENTION_DAYS, DRY_RUN
"""
from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Optional

from invite_triage.config.constants import (
    ALERT_RETENTION_DAYS,
    BATCH_SIZE,
    CONFIDENCE_THRESHOLD,
    LOOKBACK_HOURS,
    MAILBOX_EXPORT_PATH,
    MAX_OUTPUT_TOKENS,
    MAX_THREADS,
    STATE_DB_URL,
    get_float_env,
    get_int_env,
)
from invite_triage.config.exceptions import ConfigError

REQUIRED_SETTINGS = ["GEMINI_API_KEY", "GEMINI_MODEL", "MAILBOX_ADDRESS"]


@dataclass(frozen=True)
class RunConfig:
    api_key: str
    model: str
    mailbox_address: str
    alert_recipient: Optional[str] = None
    mailbox_export_path: str = str(MAILBOX_EXPORT_PATH)
    state_db_url: str = STATE_DB_URL
    batch_size: int = BATCH_SIZE
    lookback_hours: int = LOOKBACK_HOURS
    max_threads: int = MAX_THREADS
    max_output_tokens: int = MAX_OUTPUT_TOKENS
    confidence_threshold: float = CONFIDENCE_THRESHOLD
    retention_days: int = ALERT_RETENTION_DAYS
    dry_run: bool = False

    @property
    def recipient(self) -> str:
        """Where reports and alerts go: the override if set, else the mailbox owner."""
        return self.alert_recipient or self.mailbox_address

    @classmethod
    def from_env(cls) -> "RunConfig":
        """Build the config from environment variables.

        Raises:
            ConfigError: if any required setting is missing or blank, the batch
                size is not positive, or the threshold is outside [0, 1].
        """
        missing = [key for key in REQUIRED_SETTINGS if not (os.getenv(key) or "").strip()]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")

        batch_size = get_int_env("BATCH_SIZE", BATCH_SIZE)
        if batch_size <= 0:
            raise ConfigError(f"BATCH_SIZE must be positive, got {batch_size}")

        threshold = get_float_env("CONFIDENCE_THRESHOLD", CONFIDENCE_THRESHOLD)
        if not (math.isfinite(threshold) and 0.0 <= threshold <= 1.0):
            raise ConfigError(f"CONFIDENCE_THRESHOLD must be within [0, 1], got {threshold}")

        return cls(
            api_key=os.environ["GEMINI_API_KEY"].strip(),
            model=os.environ["GEMINI_MODEL"].strip(),
            mailbox_address=os.environ["MAILBOX_ADDRESS"].strip(),
            alert_recipient=(os.getenv("ALERT_RECIPIENT") or "").strip() or None,
            mailbox_export_path=os.getenv("MAILBOX_EXPORT_PATH", str(MAILBOX_EXPORT_PATH)),
            state_db_url=os.getenv("STATE_DB_URL", STATE_DB_URL),
            batch_size=batch_size,
            lookback_hours=get_int_env("LOOKBACK_HOURS", LOOKBACK_HOURS) or LOOKBACK_HOURS,
            max_threads=get_int_env("MAX_THREADS", MAX_THREADS) or MAX_THREADS,
            max_output_tokens=get_int_env("MAX_OUTPUT_TOKENS", MAX_OUTPUT_TOKENS) or MAX_OUTPUT_TOKENS,
            confidence_threshold=threshold,
            retention_days=get_int_env("ALERT_RETENTION_DAYS", ALERT_RETENTION_DAYS)
            or ALERT_RETENTION_DAYS,
            dry_run=os.getenv("DRY_RUN", "false").lower() == "true",
        )


__all__ = ["RunConfig", "REQUIRED_SETTINGS"]
