"""Tests for prompt rendering."""

import pytest

from invite_triage.services.llm.prompt_builder import (
    CLASSIFICATION_INSTRUCTIONS,
    PROMPT_VERSION,
    RECORD_DELIMITER,
    PromptBuilder,
)


def test_every_record_rendered_in_order(sample_records):
    prompt = PromptBuilder().build_prompt(sample_records)

    positions = [prompt.index(f"id: {r.id}\n") for r in sample_records]
    assert positions == sorted(positions)
    for r in sample_records:
        assert f"subject: {r.subject}" in prompt
        assert f"from: {r.sender}" in prompt
        assert f"excerpt: {r.excerpt}" in prompt
        assert f"time: {r.timestamp.isoformat()}" in prompt


def test_records_separated_by_delimiter(sample_records):
    prompt = PromptBuilder().build_prompt(sample_records)
    assert prompt.count(RECORD_DELIMITER) == len(sample_records) + 1


def test_instructions_lead_the_prompt(sample_records):
    prompt = PromptBuilder().build_prompt(sample_records)
    assert prompt.startswith(CLASSIFICATION_INSTRUCTIONS)
    assert PROMPT_VERSION in prompt


def test_instructions_cover_format_enums_and_redaction():
    text = CLASSIFICATION_INSTRUCTIONS
    assert "JSON array" in text
    for value in ("interview_invite", "auto_reply", "other", "high", "normal"):
        assert f'"{value}"' in text
    for field in ("company", "position", "contact", "proposed_times", "urgency", "reason", "confidence"):
        assert f'"{field}"' in text
    assert "verification codes" in text
    assert "one-time codes" in text


def test_build_is_deterministic(sample_records):
    builder = PromptBuilder()
    assert builder.build_prompt(sample_records) == builder.build_prompt(list(sample_records))


def test_instructions_are_not_configurable():
    with pytest.raises(TypeError):
        PromptBuilder(instructions="custom")
