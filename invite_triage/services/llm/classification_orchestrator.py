from __future__ import annotations

import json
import re
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from .gemini_client import GeminiClient, send_with_retry
from .prompt_builder import PromptBuilder
from invite_triage.config.constants import CONFIDENCE_THRESHOLD, EXCERPT_MAX_CHARS, MAX_OUTPUT_TOKENS
from invite_triage.config.exceptions import ResponseParseError
from invite_triage.services.mailbox.base import ThreadHandle
from invite_triage.services.routing.models import ClassificationResult, RawRecord, RunReport
from invite_triage.services.routing.router import OutcomeApplier, route_result
from invite_triage.utils.logging import get_logger
from invite_triage.utils.console import console

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


def build_records(
    threads: Sequence[ThreadHandle], excerpt_max_chars: int = EXCERPT_MAX_CHARS
) -> List[RawRecord]:
    """Turn thread handles into RawRecords with run-scoped ids e1, e2, ..."""
    records = []
    for n, thread in enumerate(threads, 1):
        message = thread.latest_message()
        excerpt = _WHITESPACE.sub(" ", message.body or "").strip()[:excerpt_max_chars]
        records.append(
            RawRecord(
                id=f"e{n}",
                thread_id=thread.thread_id,
                timestamp=message.timestamp,
                sender=message.sender,
                subject=message.subject,
                excerpt=excerpt,
            )
        )
    return records


class Batcher:
    @staticmethod
    def split(records: Sequence[RawRecord], batch_size: int) -> List[List[RawRecord]]:
        """Split records into order-preserving batches of at most batch_size."""
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        return [list(records[i : i + batch_size]) for i in range(0, len(records), batch_size)]


class Parser:
    @staticmethod
    def parse_array(text: str) -> Any:
        """Parse model output expected to hold a JSON array.

        Tries, in order: the whole text; the span from the first '[' to the
        last ']'; and for output cut off mid-element, the span from the first
        '[' to the last '}' closed with ']'. Raises ResponseParseError from the
        original decode error when nothing works.
        """
        try:
            return json.loads(text)
        except json.JSONDecodeError as original:
            start = text.find("[")
            end = text.rfind("]")

            if start != -1 and end > start:
                try:
                    return json.loads(text[start : end + 1])
                except json.JSONDecodeError:
                    logger.debug("Bracketed slice did not parse; trying truncation repair")

            if start != -1:
                last_brace = text.rfind("}")
                if last_brace > start:
                    try:
                        recovered = json.loads(text[start : last_brace + 1] + "]")
                        logger.warning("Recovered truncated model output (%d chars)", len(text))
                        return recovered
                    except json.JSONDecodeError:
                        pass

            raise ResponseParseError(f"Model output is not valid JSON: {original}") from original

    def parse_results(self, response_text: str) -> List[ClassificationResult]:
        """Parse model output into typed results.

        A non-array top level yields no results for the batch. Entries that
        are not objects or carry no id are skipped.
        """
        if not response_text or not response_text.strip():
            logger.warning("Empty response text; nothing to parse.")
            return []

        data = self.parse_array(response_text)
        if not isinstance(data, list):
            logger.warning(
                "Top-level JSON is not a list (type=%s); skipping.", type(data).__name__
            )
            return []

        results: List[ClassificationResult] = []
        for idx, obj in enumerate(data):
            if not isinstance(obj, dict):
                logger.warning(
                    "Skipping non-dict entry at index %d (type=%s).", idx, type(obj).__name__
                )
                continue
            result = ClassificationResult.from_dict(obj)
            if result is None:
                logger.warning("Missing id in entry at index %d: %s", idx, obj)
                continue
            results.append(result)
        return results


def run_triage_classification(
    records: Sequence[RawRecord],
    threads: Dict[str, ThreadHandle],
    client: GeminiClient,
    applier: OutcomeApplier,
    prompt_builder: Optional[PromptBuilder] = None,
    parser: Optional[Parser] = None,
    batch_size: int = 30,
    threshold: float = CONFIDENCE_THRESHOLD,
    max_output_tokens: int = MAX_OUTPUT_TOKENS,
    sleep: Callable[[float], None] = time.sleep,
) -> RunReport:
    """Classify and route all records, one model call per batch.

    Steps per batch:
        1. Build prompt.
        2. Send to the model (retrying transient failures).
        3. Parse and repair the output.
        4. Route each result and apply its effects.

    Args:
        records: All records of this run, ids unique.
        threads: thread_id -> handle, for label attachment.
        client: Model client.
        applier: Applies outcomes and holds the run report.

    Returns:
        The applier's RunReport, with total set.
    """
    prompt_builder = prompt_builder or PromptBuilder()
    parser = parser or Parser()
    records_by_id = {r.id: r for r in records}

    batches = Batcher.split(records, batch_size)
    report = applier.report
    report.total = len(records)

    logger.info(
        "Starting classification: %d records, batch_size=%d, total_batches=%d",
        len(records),
        batch_size,
        len(batches),
    )
    console.classification_start(len(records), batch_size)

    def _on_retry(attempt: int, wait: float, error: Exception) -> None:
        console.retrying(attempt, wait, str(error))

    for batch_num, batch in enumerate(batches, 1):
        batch_start = time.time()
        console.batch_start(batch_num, len(batches), [r.id for r in batch])

        prompt = prompt_builder.build_prompt(batch)
        logger.debug("Batch %d: prompt length=%d chars", batch_num, len(prompt))

        response_text = send_with_retry(
            client,
            prompt,
            max_output_tokens=max_output_tokens,
            sleep=sleep,
            on_retry=_on_retry,
        )
        logger.debug("Batch %d: response length=%d chars", batch_num, len(response_text))

        results = parser.parse_results(response_text)
        logger.debug("Batch %d: parsed %d items", batch_num, len(results))

        routed = []
        dropped = 0
        for result in results:
            outcome = route_result(result, records_by_id, threshold=threshold)
            if outcome is None:
                dropped += 1
                continue
            alerted = applier.apply(outcome)
            routed.append((outcome, alerted))

        batch_elapsed = time.time() - batch_start
        console.batch_result(
            routed=routed,
            requested=len(batch),
            elapsed=batch_elapsed,
            dropped=dropped,
        )
        logger.info(
            "Batch %d/%d: %d/%d routed in %.1fs (%d unknown ids). Counts: %s",
            batch_num,
            len(batches),
            len(routed),
            len(batch),
            batch_elapsed,
            dropped,
            report.counts.as_dict(),
        )

    logger.info("Classification loop complete: %d batches processed", len(batches))
    return report


__all__ = ["Batcher", "Parser", "build_records", "run_triage_classification"]
