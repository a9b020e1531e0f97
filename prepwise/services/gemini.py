"""Gemini client helpers: retrying calls and structured feedback generation."""

import asyncio
import logging
import time
from typing import Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from prepwise.config import (
    GEMINI_API_KEY,
    GEMINI_MODEL,
    GEMINI_MAX_RETRIES,
    GEMINI_TIMEOUT_SECONDS,
)
from prepwise.schemas.feedback import FeedbackAssessment

logger = logging.getLogger("prepwise.gemini")


def _is_rate_limit(error: Exception) -> bool:
    text = str(error).lower()
    code = getattr(error, "status_code", None) or getattr(error, "code", None)
    return code == 429 or "429" in text or "resource exhausted" in text or "quota" in text or "rate limit" in text


def _is_unavailable(error: Exception) -> bool:
    text = str(error).lower()
    code = getattr(error, "status_code", None) or getattr(error, "code", None)
    return code == 503 or "503" in text or "unavailable" in text or "overloaded" in text


def call_gemini_with_retry(client, model, contents, config=None, max_retries=GEMINI_MAX_RETRIES,
                           initial_delay=1, timeout=GEMINI_TIMEOUT_SECONDS):
    """
    Call Gemini with retry logic for 503/429 errors and an overall timeout.

    Args:
        client: Gemini client instance
        model: Model name to use
        contents: Prompt/content to send
        config: Optional GenerateContentConfig
        max_retries: Maximum number of retry attempts
        initial_delay: Initial delay in seconds before first retry
        timeout: Maximum time in seconds for the entire operation

    Returns:
        Response from Gemini API

    Raises:
        TimeoutError: If the overall timeout is exceeded
        Exception: The last error, if it is not retryable or retries ran out
    """
    start_time = time.time()

    for attempt in range(max_retries + 1):
        if time.time() - start_time > timeout:
            raise TimeoutError("Gemini request timed out")

        try:
            return client.models.generate_content(model=model, contents=contents, config=config)
        except Exception as e:
            rate_limited = _is_rate_limit(e)
            retryable = rate_limited or _is_unavailable(e)
            if not retryable or attempt >= max_retries:
                raise

            # Rate limits back off harder
            base_delay = initial_delay * 2 if rate_limited else initial_delay
            delay = min(base_delay * (2 ** attempt), 10)
            if time.time() - start_time + delay > timeout:
                raise TimeoutError("Gemini request timed out") from e

            logger.warning("[Gemini] Retrying in %ss (attempt %d/%d) - %s",
                           delay, attempt + 1, max_retries, str(e)[:100])
            time.sleep(delay)


async def call_gemini_with_retry_async(client, model, contents, config=None, **kwargs):
    """Async wrapper for call_gemini_with_retry to avoid blocking the event loop."""
    return await asyncio.to_thread(call_gemini_with_retry, client, model, contents, config, **kwargs)


class GeminiFeedbackModel:
    """Language-model collaborator: system instruction + prompt -> FeedbackAssessment."""

    def __init__(self, client: Optional[genai.Client] = None, model: str = GEMINI_MODEL,
                 api_key: str = GEMINI_API_KEY):
        self._client = client
        self.api_key = api_key
        self.model = model

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            if not self.api_key:
                raise ValueError("GEMINI_API_KEY not found in environment variables")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def assess(self, system_instruction: str, prompt: str) -> FeedbackAssessment:
        """
        Ask the model for an assessment constrained to the FeedbackAssessment schema.

        Raises:
            ValueError: If the response is empty or violates the schema
            Exception: Transport/API errors from the SDK
        """
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            response_mime_type="application/json",
            response_schema=FeedbackAssessment,
            temperature=0.2,
        )
        response = await call_gemini_with_retry_async(self.client, self.model, prompt, config)

        parsed = getattr(response, "parsed", None)
        if isinstance(parsed, FeedbackAssessment):
            return parsed

        text = (getattr(response, "text", None) or "").strip()
        if not text:
            raise ValueError("Empty response from Gemini")
        # Some responses still arrive fenced
        if text.startswith("```"):
            text = text.strip("`")
            if text.lower().startswith("json"):
                text = text[4:]
        try:
            return FeedbackAssessment.model_validate_json(text)
        except ValidationError as e:
            raise ValueError(f"Gemini response violates the feedback schema: {e}") from e
