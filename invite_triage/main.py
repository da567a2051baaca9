"""
Job mail triage - daily classification of application email.

Usage:
    invite-triage
    python -m invite_triage.main

Safety Features:
- Expired alert records are evicted before processing
- An interview thread alerts at most once per retention window
- Any fatal error aborts before the report is sent; labels and alert
  records written so far are kept, and the next run is safe to re-run
"""
from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from dotenv import load_dotenv

from invite_triage.config.exceptions import PipelineError
from invite_triage.config.settings import RunConfig
from invite_triage.db.kv_store import KeyValueStore
from invite_triage.services import (
    ConsoleMessenger,
    DedupeStore,
    GeminiClient,
    JsonExportMailbox,
    Messenger,
    OutcomeApplier,
    RecordSource,
    SmtpMessenger,
    build_records,
    build_report,
    build_zero_notice,
    report_subject,
    run_triage_classification,
)
from invite_triage.utils.console import console
from invite_triage.utils.logging import get_logger, init_logging

logger = get_logger(__name__)


def main() -> int:
    """
    Run the triage job once.

    Returns exit code.
    """
    pipeline_start = time.time()
    # .env may set LOG_LEVEL
    load_dotenv()
    init_logging("triage")

    try:
        cfg = RunConfig.from_env()

        return run_triage_pipeline(cfg, pipeline_start)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        console.interrupted()
        return 130
    except PipelineError as e:
        logger.error("Pipeline error (%s): %s", type(e).__name__, e)
        console.error("Triage Error", str(e))
        console.pipeline_finished(success=False)
        return 1
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        console.error("Unexpected Error", str(e))
        console.pipeline_finished(success=False)
        return 1


def run_triage_pipeline(
    cfg: RunConfig,
    pipeline_start: Optional[float] = None,
    *,
    mailbox: Optional[RecordSource] = None,
    messenger: Optional[Messenger] = None,
    kv: Optional[KeyValueStore] = None,
    client: Optional[GeminiClient] = None,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Run one triage pass. Collaborators default to the configured adapters."""
    pipeline_start = pipeline_start or time.time()
    logger.info("[TRIAGE] Job starting: model=%s, batch_size=%d", cfg.model, cfg.batch_size)
    console.start("Job Mail Triage", f"Last {cfg.lookback_hours}h, up to {cfg.max_threads} threads")

    if messenger is None:
        messenger = ConsoleMessenger() if cfg.dry_run else SmtpMessenger(from_email=cfg.mailbox_address)
    if mailbox is None:
        mailbox = JsonExportMailbox(cfg.mailbox_export_path, clock=clock)
    if kv is None:
        kv = KeyValueStore(cfg.state_db_url)

    dedupe = DedupeStore(kv, retention=timedelta(days=cfg.retention_days))
    evicted = dedupe.evict_older_than(now=clock())

    threads = mailbox.search_threads(cfg.lookback_hours, cfg.max_threads)
    if not threads:
        logger.info("No matching emails in the last %dh. Sending zero notice.", cfg.lookback_hours)
        subject, body = build_zero_notice(cfg.lookback_hours)
        messenger.send(cfg.recipient, subject, body)
        console.info("Complete", "0 emails matched; notice sent.")
        console.pipeline_finished(success=True)
        return 0

    records = build_records(threads)
    threads_by_id = {t.thread_id: t for t in threads}
    logger.info("Found %d threads to classify", len(records))
    console.info("Emails Found", f"{len(records)} threads to classify")

    client = client or GeminiClient.from_config(cfg)
    applier = OutcomeApplier(
        threads=threads_by_id,
        messenger=messenger,
        dedupe=dedupe,
        recipient=cfg.recipient,
        clock=clock,
    )

    report = run_triage_classification(
        records,
        threads_by_id,
        client,
        applier,
        batch_size=cfg.batch_size,
        threshold=cfg.confidence_threshold,
        max_output_tokens=cfg.max_output_tokens,
        sleep=sleep,
    )

    body = build_report(report.total, report.counts, report.invite_rows, report.review_rows)
    messenger.send(cfg.recipient, report_subject(report.counts), body)

    total_elapsed = time.time() - pipeline_start
    logger.info(
        "[TRIAGE] Job complete in %.1fs. Counts: %s, alerts sent: %d",
        total_elapsed,
        report.counts.as_dict(),
        report.alerts_sent,
    )
    console.run_summary(report.total, report.counts.as_dict(), report.alerts_sent, evicted)
    console.pipeline_finished(success=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
