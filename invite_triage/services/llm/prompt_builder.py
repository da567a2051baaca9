from __future__ import annotations

from typing import Sequence

from invite_triage.services.routing.models import RawRecord

PROMPT_VERSION = "2024-06-v3"

RECORD_DELIMITER = "\n---\n"

# Fixed per version so redaction behaves the same on every run.
CLASSIFICATION_INSTRUCTIONS = f"""\
[instructions {PROMPT_VERSION}]
You triage job-application email. Classify every email below.

Return ONLY a JSON array, with no prose before or after it and no code fences.
Return exactly one element per email, using this shape:
{{"id": "e1",
  "category": "interview_invite" | "auto_reply" | "other",
  "confidence": number between 0 and 1,
  "company": string or null,
  "position": string or null,
  "contact": string or null,
  "proposed_times": array of strings or null,
  "urgency": "high" | "normal",
  "reason": short justification, at most 20 words}}

Categories:
- interview_invite: a person asks to schedule or confirms an interview, call or assessment.
- auto_reply: automated acknowledgement, application received, no-reply notices.
- other: everything else, including rejections and newsletters.
Use "high" urgency only when a reply or a time choice is needed within 48 hours.

Redaction (mandatory): never copy one-time codes, verification codes, passwords,
phone numbers, account or ID numbers, or any other personal identifier into any
field. Write [REDACTED] in their place. Include only what classification needs.

Emails:"""


class PromptBuilder:
    """Builds the classification prompt for one batch of records."""

    @staticmethod
    def render_record(record: RawRecord) -> str:
        return (
            f"id: {record.id}\n"
            f"time: {record.timestamp.isoformat()}\n"
            f"from: {record.sender}\n"
            f"subject: {record.subject}\n"
            f"excerpt: {record.excerpt}"
        )

    def build_prompt(self, batch: Sequence[RawRecord]) -> str:
        """Render the instructions followed by every record in the batch.

        Args:
            batch: Records of one batch, in order.

        Returns:
            Prompt text for a single model request.
        """
        blocks = [self.render_record(record) for record in batch]
        return f"{CLASSIFICATION_INSTRUCTIONS}{RECORD_DELIMITER}{RECORD_DELIMITER.join(blocks)}{RECORD_DELIMITER}"


__all__ = ["PromptBuilder", "PROMPT_VERSION", "RECORD_DELIMITER", "CLASSIFICATION_INSTRUCTIONS"]
