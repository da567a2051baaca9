from __future__ import annotations

import time
from typing import Any, Callable, Optional

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from invite_triage.config.constants import (
    BACKOFF_BASE_SECONDS,
    GEMINI_ENDPOINT,
    GEMINI_TIMEOUT,
    MAX_ATTEMPTS,
    MAX_OUTPUT_TOKENS,
)
from invite_triage.config.exceptions import FatalServiceError, TransientServiceError
from invite_triage.config.settings import RunConfig
from invite_triage.utils.logging import get_logger

logger = get_logger(__name__)

TRANSIENT_STATUS_CODES = {503}
TRANSIENT_ERROR_STATUSES = {"UNAVAILABLE"}


class GeminiClient:
    """Gemini generateContent client for classification requests."""

    def __init__(
        self,
        api_key: str,
        model: str,
        endpoint: str = GEMINI_ENDPOINT,
        timeout: int = GEMINI_TIMEOUT,
    ):
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.full_endpoint = f"{self.endpoint}/models/{model}:generateContent"

    @classmethod
    def from_config(cls, cfg: RunConfig) -> "GeminiClient":
        return cls(cfg.api_key, cfg.model)

    def send(self, prompt: str, *, max_output_tokens: int = MAX_OUTPUT_TOKENS) -> str:
        """Send one prompt and return the trimmed response text.

        Args:
            prompt: Full classification prompt.
            max_output_tokens: Upper bound on generated tokens.

        Returns:
            Response text with surrounding whitespace stripped.

        Raises:
            TransientServiceError: service unavailable (503 / UNAVAILABLE) or
                the connection failed or timed out.
            FatalServiceError: any other non-2xx status or a malformed envelope.
        """
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "maxOutputTokens": max_output_tokens,
                "temperature": 0,
            },
        }

        logger.info("Sending request to model %s...", self.model)
        logger.debug("Endpoint: %s, Prompt length: %d chars", self.full_endpoint, len(prompt))

        try:
            response = requests.post(
                self.full_endpoint, headers=headers, json=payload, timeout=self.timeout
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning("Request did not complete: %s", e)
            raise TransientServiceError(f"Model request failed: {e}") from e
        except requests.RequestException as e:
            logger.error("Request failed: %s", e)
            raise FatalServiceError(f"Model request failed: {e}") from e

        logger.debug("Response status: %d", response.status_code)

        if not 200 <= response.status_code < 300:
            raise self._classify_error(response)

        try:
            data = response.json()
        except ValueError as e:
            raise FatalServiceError(
                f"Failed to parse model response envelope: {e}", response.status_code
            ) from e

        text = self._extract_text(data)
        if text is None:
            logger.error("Malformed response envelope: %s", str(data)[:500])
            raise FatalServiceError("Model response has no text payload", response.status_code)

        usage = data.get("usageMetadata", {}) if isinstance(data, dict) else {}
        if usage:
            logger.info(
                "Tokens used: %d (prompt=%d, completion=%d)",
                usage.get("totalTokenCount", 0),
                usage.get("promptTokenCount", 0),
                usage.get("candidatesTokenCount", 0),
            )

        return text.strip()

    @staticmethod
    def _extract_text(data: Any) -> Optional[str]:
        """Pull candidates[0].content.parts[*].text; None if the envelope is malformed."""
        if not isinstance(data, dict):
            return None
        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return None
        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return None
        texts = [p.get("text") for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
        if not texts:
            return None
        return "".join(texts)

    @staticmethod
    def _classify_error(response: requests.Response) -> Exception:
        status = response.status_code
        error_status = ""
        error_msg = response.text[:500]
        try:
            body = response.json()
            error = body.get("error", {}) if isinstance(body, dict) else {}
            if isinstance(error, dict):
                error_status = str(error.get("status", "")).upper()
                error_msg = error.get("message", error_msg)
        except ValueError:
            pass

        if status in TRANSIENT_STATUS_CODES or error_status in TRANSIENT_ERROR_STATUSES:
            logger.warning("Model unavailable [%d %s]: %s", status, error_status, error_msg)
            return TransientServiceError(f"Model unavailable [{status}]: {error_msg}", status)

        logger.error("Model error [%d %s]: %s", status, error_status, error_msg)
        return FatalServiceError(f"Model error [{status}]: {error_msg}", status)


def send_with_retry(
    client: GeminiClient,
    prompt: str,
    *,
    max_output_tokens: int = MAX_OUTPUT_TOKENS,
    max_attempts: int = MAX_ATTEMPTS,
    base_delay: float = BACKOFF_BASE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Optional[Callable[[int, float, TransientServiceError], None]] = None,
) -> str:
    """Call client.send, retrying only TransientServiceError.

    Every transient failure, the last one included, is followed by a backoff
    doubling from base_delay (1, 2, 4, ...). Fatal errors propagate on the first
    occurrence; after max_attempts the last transient error does.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    backoff = wait_exponential(multiplier=base_delay)

    def _notify(retry_state: RetryCallState, wait_time: float) -> None:
        error = retry_state.outcome.exception()
        logger.warning(
            "Transient model failure (attempt %d/%d), backing off %.1fs: %s",
            retry_state.attempt_number,
            max_attempts,
            wait_time,
            error,
        )
        if on_retry is not None:
            on_retry(retry_state.attempt_number, wait_time, error)

    def _before_sleep(retry_state: RetryCallState) -> None:
        _notify(retry_state, retry_state.next_action.sleep)

    def _after_final_attempt(retry_state: RetryCallState) -> None:
        if retry_state.attempt_number < max_attempts:
            return
        wait_time = backoff(retry_state)
        _notify(retry_state, wait_time)
        sleep(wait_time)
        logger.error(
            "Model call failed after %d attempts: %s", max_attempts, retry_state.outcome.exception()
        )

    retryer = Retrying(
        retry=retry_if_exception_type(TransientServiceError),
        stop=stop_after_attempt(max_attempts),
        wait=backoff,
        sleep=sleep,
        before_sleep=_before_sleep,
        after=_after_final_attempt,
        reraise=True,
    )
    return retryer(client.send, prompt, max_output_tokens=max_output_tokens)


__all__ = ["GeminiClient", "send_with_retry"]
