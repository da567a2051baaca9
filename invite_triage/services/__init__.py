"""Triage services.

Exports:
    GeminiClient / send_with_retry: Model client with transient-failure retry.
    PromptBuilder: Builds the classification prompt for a batch.
    Batcher / Parser: Batch splitting and model-output parsing with repair.
    run_triage_classification: Batch loop from records to applied outcomes.
    route_result / OutcomeApplier: Routing policy and its side effects.
    DedupeStore: Alert-once bookkeeping.
    build_report / build_zero_notice: Report text.
    JsonExportMailbox / SmtpMessenger / ConsoleMessenger: Collaborator adapters.
"""

from .llm.gemini_client import GeminiClient, send_with_retry
from .llm.prompt_builder import PromptBuilder
from .llm.classification_orchestrator import (
    Batcher,
    Parser,
    build_records,
    run_triage_classification,
)
from .mailbox.base import MessageSummary, Messenger, RecordSource, ThreadHandle
from .mailbox.json_mailbox import JsonExportMailbox
from .mailbox.messenger import ConsoleMessenger, SmtpMessenger
from .reporting.report_builder import build_report, build_zero_notice, report_subject
from .routing.dedupe_store import DedupeStore
from .routing.router import OutcomeApplier, route_result

__all__ = [
    "GeminiClient",
    "send_with_retry",
    "PromptBuilder",
    "Batcher",
    "Parser",
    "build_records",
    "run_triage_classification",
    "MessageSummary",
    "Messenger",
    "RecordSource",
    "ThreadHandle",
    "JsonExportMailbox",
    "ConsoleMessenger",
    "SmtpMessenger",
    "build_report",
    "build_zero_notice",
    "report_subject",
    "DedupeStore",
    "OutcomeApplier",
    "route_result",
]
