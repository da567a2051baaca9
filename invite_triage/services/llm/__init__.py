"""LLM classification services.

Exports:
	GeminiClient: Thin wrapper around the Gemini generateContent endpoint.
	send_with_retry: Retries transient model failures with exponential backoff.
	PromptBuilder: Builds the classification prompt for a batch.
	Batcher: Splits records into fixed-size batches.
	Parser: Extracts (and repairs) the JSON array from model responses.
	run_triage_classification: Batch loop applying routed outcomes.
"""

from .gemini_client import GeminiClient, send_with_retry
from .prompt_builder import PromptBuilder
from .classification_orchestrator import Batcher, Parser, build_records, run_triage_classification

__all__ = [
	"GeminiClient",
	"send_with_retry",
	"PromptBuilder",
	"Batcher",
	"Parser",
	"build_records",
	"run_triage_classification",
]
